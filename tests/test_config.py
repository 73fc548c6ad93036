from pathlib import Path

import pytest

import robopower
from robopower.engine import Game, GameConfigurationError, GameRules, InOrderAgent
from robopower.engine.config import MAX_PLAYERS, MIN_PLAYERS


RULES_FILE = Path(robopower.__file__).parent / "config" / "rules.yaml"


def test_defaults() -> None:
    rules = GameRules()

    assert rules.starting_cards == 6
    assert (rules.min_players, rules.max_players) == (2, 10)
    assert rules.max_turns is None


INVALID = [
    {"starting_cards": 0},
    {"starting_cards": True},
    {"starting_cards": "6"},
    {"max_turns": -1},
    {"min_players": 1},
    {"min_players": 5, "max_players": 4},
    {"max_players": 11},
    {"min_players": 3, "max_players": 20},
]


def test_invalid_rules() -> None:
    for kwargs in INVALID:
        with pytest.raises(GameConfigurationError):
            GameRules(**kwargs)


def test_from_dict_ignores_unknown_keys() -> None:
    rules = GameRules.from_dict({"starting_cards": 4, "max_turns": 50, "board": "none"})

    assert rules == GameRules(starting_cards=4, max_turns=50)
    assert GameRules.from_dict(rules.to_dict()) == rules


def test_packaged_rules_are_the_defaults() -> None:
    assert GameRules.from_yaml(str(RULES_FILE)) == GameRules()


def test_missing_file_gives_defaults(tmp_path) -> None:
    assert GameRules.from_yaml(str(tmp_path / "missing.yaml")) == GameRules()
    assert GameRules.from_yaml(None) == GameRules()


def test_rules_at_document_root(tmp_path) -> None:
    path = tmp_path / "rules.yaml"
    path.write_text("starting_cards: 3\nmax_players: 4\n", encoding="utf-8")

    assert GameRules.from_yaml(str(path)) == GameRules(starting_cards=3, max_players=4)


def test_rules_section_must_be_a_mapping(tmp_path) -> None:
    path = tmp_path / "rules.yaml"
    path.write_text("rules:\n  - 1\n  - 2\n", encoding="utf-8")

    with pytest.raises(GameConfigurationError):
        GameRules.from_yaml(str(path))


def test_player_limits_cannot_be_widened(tmp_path) -> None:
    assert (MIN_PLAYERS, MAX_PLAYERS) == (2, 10)
    assert GameRules(min_players=3, max_players=4) == GameRules.from_dict({"min_players": 3, "max_players": 4})

    path = tmp_path / "rules.yaml"
    path.write_text("rules:\n  max_players: 20\n", encoding="utf-8")
    with pytest.raises(GameConfigurationError):
        GameRules.from_yaml(str(path))

    agents = [InOrderAgent(f"p{i}") for i in range(MAX_PLAYERS + 1)]
    with pytest.raises(GameConfigurationError):
        Game(agents, rules=GameRules(starting_cards=1, max_players=MAX_PLAYERS + 1), seed=1)
