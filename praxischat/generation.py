"""OpenAI chat-completions client used for the single generation call."""

from openai import OpenAI

from .config import config

logger = config.get_logger(__name__)


class ChatGenerator:
    """Sends one system/user prompt pair to the chat model."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            api_key: OpenAI API key. If None, reads OPENAI_API_KEY.
            model: Chat model name. If None, uses config.CHAT_MODEL.
            temperature: Sampling temperature. If None, uses
                config.CHAT_TEMPERATURE.
        """
        default_headers = config.get_api_headers()
        self.client = OpenAI(
            api_key=api_key or config.get_openai_api_key(),
            base_url=config.OPENAI_BASE_URL,
            timeout=config.OPENAI_TIMEOUT,
            default_headers=default_headers or None,
        )
        self.model = model or config.CHAT_MODEL
        self.temperature = (
            temperature if temperature is not None else config.CHAT_TEMPERATURE
        )

    def generate(self, system_text: str, user_text: str) -> str | None:
        """Run a single, non-streaming completion.

        Returns:
            Content of the first choice, or None if the model returned none.
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": system_text},
                    {"role": "user", "content": user_text},
                ],
            )
        except Exception:
            logger.exception("Error generating chat completion")
            raise

        if not response.choices:
            logger.warning("Chat model returned no choices")
            return None
        return response.choices[0].message.content
