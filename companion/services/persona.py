"""System-prompt assembly for companion personas."""

from __future__ import annotations

from services.language import language_instruction

_GUIDELINES = """\
Conversation guidelines:
- Read what the user actually said and reply to that, on their topic.
- Be warm, caring and playful, and keep it tasteful.
- Keep replies short and natural enough to be spoken aloud (1-3 sentences).
- Build on earlier messages in this conversation instead of repeating yourself.
- Use emojis sparingly.
- You are an AI persona created for companionship; never claim otherwise."""


def build_system_prompt(character, language: str) -> str:
    """Persona description + language directive + guidelines."""
    persona = (character.system_prompt or "").strip()
    lines = [f"You are {character.name}, an AI companion."]
    if persona:
        lines.append(f"Your personality: {persona}")
    if character.personality:
        lines.append(f"Traits: {character.personality}")
    lines.append("")
    lines.append(f"CRITICAL LANGUAGE REQUIREMENT: {language_instruction(language)}")
    lines.append("")
    lines.append(_GUIDELINES)
    return "\n".join(lines)
