"""Human/AI role assignment and its global invariant."""

from __future__ import annotations

from enum import Enum
from typing import Any

from .models import HUMAN, Persona, Role, RoleControl, Team, TeamRoles

LEGACY_AI_SELECTION = "claude"


class RoleMode(str, Enum):
    """Which role-kind is played by humans on both teams."""
    GUESSERS_HUMAN = "guessers-human"
    SPYMASTERS_HUMAN = "spymasters-human"


def is_human_selection(value: str | None) -> bool:
    return value == HUMAN


def is_ai_selection(value: str | None) -> bool:
    return bool(value) and value != HUMAN


def _persona_exists(personas: list[Persona], persona_id: str | None, role: Role) -> bool:
    return any(p.id == persona_id and p.role == role for p in personas)


def coerce_ai_selection(
    role: Role,
    value: str | None,
    personas: list[Persona],
    selected_personas: dict[str, str],
) -> str:
    """
    Pick a valid persona id for an AI slot.

    Preference: the current value, then the persona selected for the role,
    then the first persona of the role. Falls back to "human" when the
    catalogue has no persona for the role at all.
    """
    if is_ai_selection(value) and _persona_exists(personas, value, role):
        return value  # type: ignore[return-value]

    preferred = selected_personas.get(role.value)
    if preferred and _persona_exists(personas, preferred, role):
        return preferred

    for persona in personas:
        if persona.role == role:
            return persona.id
    return HUMAN


def _force_mode(
    role_control: RoleControl,
    mode: RoleMode,
    personas: list[Persona],
    selected_personas: dict[str, str],
    overrides: dict[Team, str] | None = None,
) -> RoleControl:
    human_role = Role.GUESSER if mode == RoleMode.GUESSERS_HUMAN else Role.SPYMASTER
    ai_role = Role.SPYMASTER if human_role == Role.GUESSER else Role.GUESSER
    overrides = overrides or {}

    teams: dict[str, TeamRoles] = {}
    for team in (Team.RED, Team.BLUE):
        existing = overrides.get(team, role_control.get(team, ai_role))
        slots = {
            human_role.value: HUMAN,
            ai_role.value: coerce_ai_selection(ai_role, existing, personas, selected_personas),
        }
        teams[team.value] = TeamRoles(**slots)
    return RoleControl(**teams)


def update_role_control(
    role_control: RoleControl,
    team: Team,
    role: Role,
    value: str,
    personas: list[Persona],
    selected_personas: dict[str, str],
) -> RoleControl:
    """
    Change one slot and re-establish the invariant.

    Making a guesser human (or a spymaster AI) means guessers are human on
    both teams; otherwise spymasters are. The other role-kind is coerced to a
    valid persona on both teams, using the new value for the changed slot
    when it names a persona.
    """
    is_human = is_human_selection(value)
    if role == Role.GUESSER:
        mode = RoleMode.GUESSERS_HUMAN if is_human else RoleMode.SPYMASTERS_HUMAN
    else:
        mode = RoleMode.SPYMASTERS_HUMAN if is_human else RoleMode.GUESSERS_HUMAN

    overrides = {team: value} if not is_human else None
    return _force_mode(role_control, mode, personas, selected_personas, overrides)


def role_mode(role_control: RoleControl) -> RoleMode | None:
    """The mode a role control satisfies, or None when it is mixed."""
    guessers = [role_control.get(t, Role.GUESSER) for t in (Team.RED, Team.BLUE)]
    spymasters = [role_control.get(t, Role.SPYMASTER) for t in (Team.RED, Team.BLUE)]

    if all(map(is_human_selection, guessers)) and all(map(is_ai_selection, spymasters)):
        return RoleMode.GUESSERS_HUMAN
    if all(map(is_human_selection, spymasters)) and all(map(is_ai_selection, guessers)):
        return RoleMode.SPYMASTERS_HUMAN
    return None


def is_setup_valid(role_control: RoleControl) -> bool:
    return role_mode(role_control) is not None


def enforce_role_mode(
    role_control: RoleControl,
    personas: list[Persona],
    selected_personas: dict[str, str],
) -> RoleControl:
    """
    Repair a role control so it satisfies the invariant.

    Spymasters stay human if both already are and the guessers are not;
    every other shape becomes guessers-human.
    """
    guessers_human = all(
        is_human_selection(role_control.get(t, Role.GUESSER)) for t in (Team.RED, Team.BLUE)
    )
    spymasters_human = all(
        is_human_selection(role_control.get(t, Role.SPYMASTER)) for t in (Team.RED, Team.BLUE)
    )
    if spymasters_human and not guessers_human:
        mode = RoleMode.SPYMASTERS_HUMAN
    else:
        mode = RoleMode.GUESSERS_HUMAN
    return _force_mode(role_control, mode, personas, selected_personas)


def normalize_role_control(
    stored: dict[str, Any] | RoleControl | None,
    personas: list[Persona],
    selected_personas: dict[str, str],
) -> RoleControl:
    """
    Read a persisted role control.

    The legacy value "claude" and ids of personas that no longer exist are
    replaced with the role's fallback persona; missing slots are human.
    """
    if isinstance(stored, RoleControl):
        stored = stored.model_dump()
    stored = stored or {}

    fallbacks: dict[Role, str | None] = {}
    for role in Role:
        preferred = selected_personas.get(role.value)
        if preferred and _persona_exists(personas, preferred, role):
            fallbacks[role] = preferred
        else:
            fallbacks[role] = next((p.id for p in personas if p.role == role), None)

    teams: dict[str, TeamRoles] = {}
    for team in (Team.RED, Team.BLUE):
        stored_team = stored.get(team.value) or {}
        slots: dict[str, str] = {}
        for role in Role:
            value = stored_team.get(role.value)
            if not value or value == HUMAN:
                slots[role.value] = HUMAN
            elif value != LEGACY_AI_SELECTION and _persona_exists(personas, value, role):
                slots[role.value] = value
            else:
                slots[role.value] = fallbacks[role] or HUMAN
        teams[team.value] = TeamRoles(**slots)
    return RoleControl(**teams)


def repair_selected_personas(
    selected_personas: dict[str, str],
    personas: list[Persona],
) -> dict[str, str]:
    """Point each role's selected persona at one that still exists."""
    repaired = dict(selected_personas)
    for role in Role:
        if not _persona_exists(personas, selected_personas.get(role.value), role):
            fallback = next((p.id for p in personas if p.role == role), None)
            repaired[role.value] = fallback or ""
    return repaired


def resolve_persona(
    role_control: RoleControl,
    team: Team,
    role: Role,
    personas: list[Persona],
    selected_personas: dict[str, str],
) -> Persona | None:
    """Persona backing an AI slot, or None when the slot is human."""
    selection = role_control.get(team, role)
    if not is_ai_selection(selection):
        return None
    for persona in personas:
        if persona.id == selection and persona.role == role:
            return persona
    preferred = selected_personas.get(role.value)
    for persona in personas:
        if persona.id == preferred:
            return persona
    for persona in personas:
        if persona.role == role:
            return persona
    return None
