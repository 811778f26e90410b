"""Tests for the ChatGenerator OpenAI client."""

import os
from unittest.mock import Mock, patch

import pytest

from praxischat import ChatGenerator
from praxischat.config import config

from conftest import create_mock_chat_response


@pytest.fixture
def generator():
    return ChatGenerator(api_key="test-key")


def test_defaults_from_config(generator):
    assert generator.model == config.CHAT_MODEL
    assert generator.temperature == config.CHAT_TEMPERATURE
    assert generator.client.api_key == "test-key"


def test_explicit_zero_temperature():
    generator = ChatGenerator(api_key="test-key", model="gpt-test", temperature=0.0)
    assert generator.model == "gpt-test"
    assert generator.temperature == 0.0


def test_env_api_key():
    with patch.dict(os.environ, {"OPENAI_API_KEY": "env-key"}):
        assert ChatGenerator().client.api_key == "env-key"


def test_generate_sends_system_and_user_turn(generator):
    with patch.object(
        generator.client.chat.completions,
        "create",
        return_value=create_mock_chat_response("Montags ab 8 Uhr."),
    ) as mock_create:
        text = generator.generate("SYSTEM", "USER")

    assert text == "Montags ab 8 Uhr."
    mock_create.assert_called_once_with(
        model=config.CHAT_MODEL,
        temperature=config.CHAT_TEMPERATURE,
        messages=[
            {"role": "system", "content": "SYSTEM"},
            {"role": "user", "content": "USER"},
        ],
    )


def test_generate_returns_none_content(generator):
    with patch.object(
        generator.client.chat.completions,
        "create",
        return_value=create_mock_chat_response(None),
    ):
        assert generator.generate("SYSTEM", "USER") is None


def test_generate_without_choices(generator):
    with patch.object(
        generator.client.chat.completions,
        "create",
        return_value=Mock(choices=[]),
    ):
        assert generator.generate("SYSTEM", "USER") is None


def test_generate_propagates_errors(generator):
    with (
        patch.object(
            generator.client.chat.completions,
            "create",
            side_effect=RuntimeError("rate limited"),
        ),
        pytest.raises(RuntimeError, match="rate limited"),
    ):
        generator.generate("SYSTEM", "USER")
