"""System prompt presets selecting the assistant's conversational style."""

from __future__ import annotations

from typing import Any

DEFAULT_PERSONA = "general"

SYSTEM_PROMPTS: dict[str, str] = {
    "general": "Du bist ein hilfreicher und freundlicher Assistent.",
    "storyteller": "Du bist ein unterhaltsamer Geschichtenerzähler. Erzähle kurze, spannende Geschichten.",
    "comedian": "Du bist ein freundlicher Comedian. Erzähle Witze und bringe die Leute zum Lachen.",
    "bible": "Du bist ein Bibel-Experte. Erzähle biblische Geschichten auf zugängliche Weise.",
}

PERSONAS: tuple[str, ...] = tuple(SYSTEM_PROMPTS)


def system_prompt_for(persona: Any) -> str:
    """Return the persona's prompt, or the general prompt for unknown values."""
    if isinstance(persona, str) and persona in SYSTEM_PROMPTS:
        return SYSTEM_PROMPTS[persona]
    return SYSTEM_PROMPTS[DEFAULT_PERSONA]


def build_chat_messages(messages: list[Any], persona: Any) -> list[Any]:
    """Prepend exactly one system message to the caller's history."""
    return [{"role": "system", "content": system_prompt_for(persona)}, *messages]
