"""Tests for role control."""

import pytest

from monames.engine import (
    HUMAN, Persona, Role, RoleControl, RoleMode, Team, TeamRoles,
    coerce_ai_selection, enforce_role_mode, is_setup_valid,
    normalize_role_control, repair_selected_personas, resolve_persona,
    role_mode, update_role_control,
)


@pytest.fixture
def personas():
    return [
        Persona(id="sm-a", role=Role.SPYMASTER, label="A", prompt="Give clues."),
        Persona(id="sm-b", role=Role.SPYMASTER, label="B", prompt="Give bold clues."),
        Persona(id="g-a", role=Role.GUESSER, label="A", prompt="Guess."),
        Persona(id="g-b", role=Role.GUESSER, label="B", prompt="Guess boldly."),
    ]


@pytest.fixture
def selected():
    return {"spymaster": "sm-b", "guesser": "g-a"}


@pytest.fixture
def guessers_human():
    return RoleControl(
        red=TeamRoles(spymaster="sm-a", guesser=HUMAN),
        blue=TeamRoles(spymaster="sm-b", guesser=HUMAN),
    )


class TestRoleMode:

    def test_guessers_human(self, guessers_human):
        assert role_mode(guessers_human) == RoleMode.GUESSERS_HUMAN
        assert is_setup_valid(guessers_human)

    def test_all_human_is_invalid(self):
        assert role_mode(RoleControl()) is None
        assert not is_setup_valid(RoleControl())

    def test_mixed_is_invalid(self):
        mixed = RoleControl(
            red=TeamRoles(spymaster=HUMAN, guesser="g-a"),
            blue=TeamRoles(spymaster="sm-a", guesser=HUMAN),
        )
        assert role_mode(mixed) is None


class TestUpdateRoleControl:
    """Changing one slot re-establishes the invariant on both teams."""

    def test_human_spymaster_flips_mode(self, guessers_human, personas, selected):
        updated = update_role_control(
            guessers_human, Team.RED, Role.SPYMASTER, HUMAN, personas, selected,
        )

        assert role_mode(updated) == RoleMode.SPYMASTERS_HUMAN
        assert updated.red.spymaster == HUMAN
        assert updated.blue.spymaster == HUMAN
        assert updated.red.guesser == "g-a"
        assert updated.blue.guesser == "g-a"

    def test_flip_without_guesser_personas_falls_back_to_human(self, guessers_human, personas):
        spymasters_only = [p for p in personas if p.role == Role.SPYMASTER]
        updated = update_role_control(
            guessers_human, Team.BLUE, Role.SPYMASTER, HUMAN, spymasters_only, {},
        )

        assert updated.red.guesser == HUMAN
        assert updated.blue.guesser == HUMAN

    def test_ai_spymaster_value_is_kept_for_its_team(self, guessers_human, personas, selected):
        updated = update_role_control(
            guessers_human, Team.RED, Role.SPYMASTER, "sm-b", personas, selected,
        )

        assert updated.red.spymaster == "sm-b"
        assert updated.blue.spymaster == "sm-b"
        assert role_mode(updated) == RoleMode.GUESSERS_HUMAN

    def test_ai_guesser_flips_to_spymasters_human(self, guessers_human, personas, selected):
        updated = update_role_control(
            guessers_human, Team.BLUE, Role.GUESSER, "g-b", personas, selected,
        )

        assert role_mode(updated) == RoleMode.SPYMASTERS_HUMAN
        assert updated.blue.guesser == "g-b"
        assert updated.red.guesser == "g-a"

    def test_human_guesser_restores_guessers_human(self, personas, selected):
        spymasters_human = RoleControl(
            red=TeamRoles(spymaster=HUMAN, guesser="g-b"),
            blue=TeamRoles(spymaster=HUMAN, guesser="g-a"),
        )
        updated = update_role_control(
            spymasters_human, Team.RED, Role.GUESSER, HUMAN, personas, selected,
        )

        assert role_mode(updated) == RoleMode.GUESSERS_HUMAN
        assert updated.red.spymaster == "sm-b"


class TestCoerceAISelection:

    def test_keeps_valid_value(self, personas, selected):
        assert coerce_ai_selection(Role.SPYMASTER, "sm-a", personas, selected) == "sm-a"

    def test_wrong_role_value_uses_selected(self, personas, selected):
        assert coerce_ai_selection(Role.SPYMASTER, "g-a", personas, selected) == "sm-b"

    def test_falls_back_to_first_of_role(self, personas):
        assert coerce_ai_selection(Role.GUESSER, HUMAN, personas, {}) == "g-a"

    def test_no_persona_means_human(self):
        assert coerce_ai_selection(Role.GUESSER, "g-a", [], {}) == HUMAN


class TestEnforceRoleMode:

    def test_default_is_guessers_human(self, personas, selected):
        enforced = enforce_role_mode(RoleControl(), personas, selected)

        assert role_mode(enforced) == RoleMode.GUESSERS_HUMAN
        assert enforced.red.spymaster == "sm-b"

    def test_spymasters_human_is_preserved(self, personas, selected):
        control = RoleControl(
            red=TeamRoles(spymaster=HUMAN, guesser="g-b"),
            blue=TeamRoles(spymaster=HUMAN, guesser=HUMAN),
        )
        enforced = enforce_role_mode(control, personas, selected)

        assert role_mode(enforced) == RoleMode.SPYMASTERS_HUMAN
        assert enforced.red.guesser == "g-b"
        assert enforced.blue.guesser == "g-a"


class TestNormalizeRoleControl:
    """Tests for reading persisted role control."""

    def test_legacy_value_maps_to_fallback(self, personas, selected):
        stored = {"red": {"spymaster": "claude", "guesser": "human"}}
        normalized = normalize_role_control(stored, personas, selected)

        assert normalized.red.spymaster == "sm-b"
        assert normalized.red.guesser == HUMAN
        assert normalized.blue.spymaster == HUMAN

    def test_deleted_persona_is_repaired(self, personas, selected):
        stored = {"blue": {"spymaster": "gone", "guesser": "g-b"}}
        normalized = normalize_role_control(stored, personas, selected)

        assert normalized.blue.spymaster == "sm-b"
        assert normalized.blue.guesser == "g-b"

    def test_fallback_ignores_selection_of_other_role(self, personas):
        stored = {"red": {"spymaster": "claude", "guesser": "human"}}
        normalized = normalize_role_control(stored, personas, {"spymaster": "g-a"})

        assert normalized.red.spymaster == "sm-a"

    def test_missing_fallback_becomes_human(self):
        normalized = normalize_role_control({"red": {"spymaster": "gone"}}, [], {})
        assert normalized.red.spymaster == HUMAN

    def test_accepts_model_and_none(self, guessers_human, personas, selected):
        assert normalize_role_control(guessers_human, personas, selected) == guessers_human
        assert normalize_role_control(None, personas, selected) == RoleControl()


class TestPersonaSelection:

    def test_repair_selected_personas(self, personas):
        repaired = repair_selected_personas({"spymaster": "gone", "guesser": "g-b"}, personas)
        assert repaired == {"spymaster": "sm-a", "guesser": "g-b"}

    def test_repair_with_empty_catalogue(self):
        assert repair_selected_personas({"spymaster": "sm-a"}, []) == {"spymaster": "", "guesser": ""}

    def test_resolve_persona(self, guessers_human, personas, selected):
        assert resolve_persona(guessers_human, Team.BLUE, Role.SPYMASTER, personas, selected).id == "sm-b"
        assert resolve_persona(guessers_human, Team.BLUE, Role.GUESSER, personas, selected) is None
