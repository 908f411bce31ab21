"""Built-in personas."""

from __future__ import annotations

from monames.engine import Persona, Role

from .prompts import load_prompt_template

_BUILTIN = [
    ("spymaster-plain", Role.SPYMASTER, "Plain", "spymaster_plain.md"),
    ("spymaster-creative", Role.SPYMASTER, "Creative", "spymaster_creative.md"),
    ("guesser-plain", Role.GUESSER, "Plain", "guesser_plain.md"),
    ("guesser-risky", Role.GUESSER, "Risky", "guesser_risky.md"),
]


def default_personas() -> list[Persona]:
    return [
        Persona(id=persona_id, role=role, label=label, prompt=load_prompt_template(filename))
        for persona_id, role, label, filename in _BUILTIN
    ]


def default_selected_personas(personas: list[Persona]) -> dict[str, str]:
    """First persona of each role."""
    selected: dict[str, str] = {}
    for role in Role:
        selected[role.value] = next((p.id for p in personas if p.role == role), "")
    return selected
