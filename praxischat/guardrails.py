"""Keyword guardrails applied before any retrieval or model call.

The trigger table is ordered: the first category whose triggers match wins,
so emergencies always take precedence over restricted medical questions.

Matching is an unanchored, case-insensitive substring test. A trigger that
appears inside a longer word still matches (``"behandlung"`` matches
``"Behandlungszimmer"``). This trades false positives for false negatives;
anchoring on word boundaries would change which questions reach the model.
"""

from enum import Enum

from .config import config

logger = config.get_logger(__name__)


class GuardrailCategory(str, Enum):
    """Classification of an incoming message."""

    EMERGENCY = "emergency"
    MEDICAL_ADVICE_RESTRICTED = "medical_advice_restricted"
    NORMAL = "normal"


GUARDRAIL_TRIGGERS: dict[GuardrailCategory, tuple[str, ...]] = {
    GuardrailCategory.EMERGENCY: (
        "brustschmerzen",
        "atemnot",
        "lähmung",
        "starke blutung",
        "bewusstlos",
        "suizid",
        "vergiftung",
        "schlaganfall",
        "herzinfarkt",
    ),
    GuardrailCategory.MEDICAL_ADVICE_RESTRICTED: (
        "diagnose",
        "medikament",
        "dosierung",
        "antibiotikum",
        "behandlung",
    ),
}

EMERGENCY_MESSAGE = (
    "Bei akuter Gefahr rufen Sie bitte sofort **112** an. Außerhalb der "
    "Sprechzeiten erreichen Sie den ärztlichen Bereitschaftsdienst unter "
    "**116 117**."
)
EMERGENCY_FOLLOW_UP = "Wie kann ich organisatorisch helfen (Termin, Öffnungszeiten, Kontakt)?"

MEDICAL_BLOCK_MESSAGE = (
    "Das darf ich hier nicht beurteilen. Gern unterstütze ich bei der "
    "Terminvereinbarung in der Praxis."
)
MEDICAL_BLOCK_FOLLOW_UP = "Möchten Sie eine Terminanfrage stellen?"

SHORT_CIRCUIT_REPLIES: dict[GuardrailCategory, str] = {
    GuardrailCategory.EMERGENCY: f"{EMERGENCY_MESSAGE}\n\n{EMERGENCY_FOLLOW_UP}",
    GuardrailCategory.MEDICAL_ADVICE_RESTRICTED: (
        f"{MEDICAL_BLOCK_MESSAGE} {MEDICAL_BLOCK_FOLLOW_UP}"
    ),
}


def find_trigger(
    message: str,
    triggers: dict[GuardrailCategory, tuple[str, ...]] = GUARDRAIL_TRIGGERS,
) -> tuple[GuardrailCategory, str | None]:
    """Return the first matching category and the trigger that matched.

    Returns:
        ``(category, trigger)``; ``(NORMAL, None)`` when nothing matches.
    """
    lowered = message.lower()
    for category, keywords in triggers.items():
        for keyword in keywords:
            if keyword in lowered:
                return category, keyword
    return GuardrailCategory.NORMAL, None


def classify(message: str) -> GuardrailCategory:
    """Classify a message as emergency, restricted medical advice or normal."""  # noqa: DOC201
    category, trigger = find_trigger(message)
    if trigger is not None:
        logger.info("Guardrail %s triggered by %r", category.value, trigger)
    return category


def short_circuit_reply(category: GuardrailCategory) -> str | None:
    """Fixed reply for a guarded category, or None if the pipeline continues."""  # noqa: DOC201
    return SHORT_CIRCUIT_REPLIES.get(category)
