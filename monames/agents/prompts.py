"""Prompt formatting for AI actors."""

from __future__ import annotations

from pathlib import Path

from monames.engine import (
    Card, ClueEntry, EndTurnEntry, GuessEntry, HistoryEntry, LastClue, Role, Team,
)


def load_prompt_template(name: str) -> str:
    """Load a prompt template from the prompts directory."""
    path = Path(__file__).parent / "prompts" / name
    with open(path, "r") as f:
        return f.read()


def format_board_for_prompt(cards: list[Card], role: Role) -> str:
    """One line per card; guessers see UNREVEALED for hidden teams."""
    lines = []
    for card in cards:
        status = card.team.value if role == Role.SPYMASTER or card.revealed else "unrevealed"
        lines.append(f"{card.word}: {status.upper()}")
    return "\n".join(lines)


def format_history_for_prompt(history: list[HistoryEntry]) -> str:
    """Format the history log for display."""
    if not history:
        return "No previous clues or guesses."

    lines = []
    for entry in history:
        team_label = entry.team.value.upper()
        if isinstance(entry, ClueEntry):
            lines.append(f"{team_label} clue: {entry.clue} {entry.count}")
        elif isinstance(entry, GuessEntry):
            lines.append(f"{team_label} guess: {entry.word} -> {entry.card_team.value.upper()}")
        elif isinstance(entry, EndTurnEntry):
            lines.append(f"{team_label} ended their turn.")
    return "\n".join(lines)


def format_current_clue(last_clue: LastClue | None) -> str:
    if last_clue is None or not last_clue.clue or not last_clue.count:
        return "CLUE: None"
    return f"CLUE: {last_clue.clue} {last_clue.count}"


def apply_prompt_template(
    template: str,
    team: Team,
    role: Role,
    cards: list[Card],
    history: list[HistoryEntry],
    last_clue: LastClue | None,
    remaining_guesses: int | None,
) -> str:
    """
    Fill a persona template.

    Placeholders: {{team}}, {{teamUpper}}, {{role}}, {{board}},
    {{guess_history}}, {{current_clue}}, {{guess_limit}}. Unknown
    placeholders are left as they are.
    """
    if not template:
        return ""

    replacements = {
        "{{team}}": team.value,
        "{{teamUpper}}": team.value.upper(),
        "{{role}}": role.value,
        "{{board}}": format_board_for_prompt(cards, role),
        "{{guess_history}}": format_history_for_prompt(history),
        "{{current_clue}}": format_current_clue(last_clue),
        "{{guess_limit}}": str(remaining_guesses) if remaining_guesses is not None else "0",
    }

    for key, value in replacements.items():
        template = template.replace(key, value)
    return template
