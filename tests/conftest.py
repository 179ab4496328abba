"""Pytest configuration and shared fixtures."""

import os
from unittest.mock import patch

import pytest

from combat_engine.config import Settings, get_settings
from combat_engine.game.combat import CombatController
from combat_engine.game.models import AbilityScores, ParticipantSpec
from combat_engine.testing import FixedDice
from combat_engine.tools.dice import DiceEngine


@pytest.fixture(autouse=True)
def clean_settings_cache():
    """Clear settings cache before each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_env_empty():
    """Fixture that clears all environment variables."""
    with patch.dict(os.environ, {}, clear=True):
        yield


@pytest.fixture
def make_settings():
    """Factory for settings that ignore .env files and the environment."""

    def _make(**overrides) -> Settings:
        with patch.dict(os.environ, {}, clear=True):
            return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def make_controller(make_settings):
    """Factory for a controller whose dice follow a script.

    Returns (controller, fixed_dice) so tests can queue more rolls.
    """

    def _make(values=(), default=None, **settings_overrides):
        rand = FixedDice(values, default=default)
        controller = CombatController(dice=DiceEngine(rand_func=rand), settings=make_settings(**settings_overrides))
        return controller, rand

    return _make


@pytest.fixture
def fighter_spec():
    """Level 3 fighter, STR 16 (+3), longsword."""
    return ParticipantSpec(
        id="thokk",
        name="Thokk",
        initiative=15,
        max_hp=28,
        ac=16,
        ability_scores=AbilityScores(strength=16, dexterity=12),
        level=3,
        equipped_weapon="longsword",
    )


@pytest.fixture
def goblin_spec():
    """Goblin, DEX 14 (+2), scimitar."""
    return ParticipantSpec(
        id="goblin_1",
        name="Goblin",
        is_enemy=True,
        initiative=12,
        max_hp=7,
        ac=15,
        ability_scores=AbilityScores(strength=8, dexterity=14),
        equipped_weapon="scimitar",
    )
