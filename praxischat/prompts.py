"""Prompt composition for the generation model."""

from collections.abc import Sequence

from .models import ComposedPrompt, RetrievalMatch, TenantVariables

FORMATTING_REMINDER = (
    "Formatiere deine Antwort wie folgt:\n"
    "\n"
    "- Standard ist normaler Fließtext mit kurzen Absätzen.\n"
    '- Nutze eine kurze Markdown-Liste mit "- " nur, wenn die Frage nach '
    "mehreren Leistungen, Öffnungszeiten, Vorteilen, Schritten oder ähnlichen "
    "Aufzählungen fragt oder wenn mehrere Punkte klar getrennt dargestellt "
    "werden sollen.\n"
    "- Verwende pro Liste höchstens 5–7 Bulletpoints.\n"
    "- Wenn es nur ein einzelner Hinweis oder eine kurze Erklärung ist, nutze "
    "keinen Listenpunkt, sondern normalen Text.\n"
    "- Keine Begrüßung, kein Gruß, sachlicher Chat-Stil.\n"
)


def build_system_prompt(variables: TenantVariables) -> str:
    """Build the tenant persona and behavioural rules.

    Returns:
        System instruction personalised with the tenant's display variables.
    """
    return (
        "Rolle:\n"
        f"Sie sind der digitale Praxis-Assistent der {variables.display_name} "
        f"in {variables.location}.\n"
        "\n"
        "WICHTIGE REGELN:\n"
        "\n"
        "- Keine Diagnosen oder Therapieempfehlungen geben.\n"
        "- In Notfällen: 112, außerhalb der Sprechzeiten: 116 117.\n"
        "- Antworten immer direkt auf die Frage, ohne Begrüßung oder "
        "Abschlussformeln.\n"
        "- Höflicher Ton, Sie-Form.\n"
        "- Kurze, übersichtliche Absätze. Standard ist normaler Fließtext.\n"
        "\n"
        "FORMATIERUNG:\n"
        "\n"
        "- Standard: Antworten Sie in normalem Fließtext mit kurzen Absätzen.\n"
        '- Verwenden Sie Markdown-Listen mit "- " nur dann, wenn Sie mehrere '
        "eigenständige Punkte aufzählen:\n"
        "  - z. B. Leistungen, Öffnungszeiten, Schritte, Voraussetzungen, "
        "verschiedene Optionen\n"
        "- Nutzen Sie pro Liste höchstens 5–7 Bulletpoints.\n"
        "- Erfinden Sie keine Listen, wenn ein normaler Satz ausreicht.\n"
        "- Keine Sternchenformatierung (**Text**), nur klare Absätze und ggf. "
        "Listen.\n"
        "\n"
        "ÖFFNUNGSZEITEN:\n"
        "\n"
        "- Öffnungszeiten nach Möglichkeit als Liste:\n"
        "  - Montag: 08:00–12:00, 16:00–17:00\n"
        "  - Dienstag: ...\n"
        "- Wenn nur eine einzelne Zeit genannt wird, genügt ein normaler Satz.\n"
        "\n"
        "UMGANG MIT FEHLENDEN INFORMATIONEN:\n"
        "\n"
        "- Wenn Informationen in den Praxisdaten nicht vorhanden sind, sagen Sie "
        "das offen.\n"
        "- Verweisen Sie dann auf die Kontaktmöglichkeit der Praxis und nennen "
        f"Sie die Telefonnummer {variables.contact_phone}.\n"
        "\n"
        "TERMINANFRAGEN:\n"
        "\n"
        "- Wenn jemand einen Termin möchte, fragen Sie strukturiert nach:\n"
        "  - vollständigem Namen\n"
        "  - Geburtsdatum (TT.MM.JJJJ)\n"
        "  - Telefonnummer\n"
        "  - kurzem Anliegen\n"
        "  - bevorzugtem Zeitraum\n"
        "  - Einverständnis zur Weitergabe\n"
        "\n"
        f"Antwortzeit der Praxis: {variables.average_response_time}."
    )


def format_knowledge(matches: Sequence[RetrievalMatch]) -> str:
    """Render retrieved snippets as a bulleted excerpt list."""  # noqa: DOC201
    return "\n".join(f"- {match.content}" for match in matches)


def build_user_prompt(message: str, matches: Sequence[RetrievalMatch]) -> str:
    """Build the user turn from the question and the retrieved snippets."""  # noqa: DOC201
    return (
        "Nutzerfrage:\n"
        f'"""{message}"""\n'
        "\n"
        "Praxiswissen (Stichpunkte / Textauszüge):\n"
        f"{format_knowledge(matches)}\n"
        "\n"
        f"{FORMATTING_REMINDER}"
    )


def compose_prompt(
    variables: TenantVariables,
    matches: Sequence[RetrievalMatch],
    message: str,
) -> ComposedPrompt:
    """Compose system and user text for one generation call.

    The result depends only on the arguments, so composing twice from the
    same inputs yields identical text.

    Returns:
        ComposedPrompt with system and user text.
    """
    return ComposedPrompt(
        system_text=build_system_prompt(variables),
        user_text=build_user_prompt(message, matches),
    )
