from pathlib import Path

import pytest

import robopower
from robopower.engine import (
    AgentFactory, AgentProfile, Card, CompositeAgent, DoubleDuel, DuelRound, Game,
    HeuristicAgent, InOrderAgent, RandomAgent, SimpleAgent
)


PROFILES_FILE = Path(robopower.__file__).parent / "config" / "agent_profiles.yaml"


def _attached(agent, *hands):
    """Collega `agent` come giocatore 0 di una partita con le mani date."""
    others = [InOrderAgent(f"o{i}") for i in range(1, len(hands))]
    game = Game([agent] + others, seed=0)
    for player, hand in zip(game.state.players, hands):
        player.hand[:] = hand
    return game


def test_default_profiles() -> None:
    factory = AgentFactory()

    assert factory.list_profiles() == ["balanced", "aggressive", "cautious", "simple", "random"]
    assert isinstance(factory.create_agent("a", "balanced"), HeuristicAgent)
    assert isinstance(factory.create_agent("b", "simple"), SimpleAgent)
    assert isinstance(factory.create_agent("c", "random"), RandomAgent)
    assert factory.profiles["aggressive"].trap_eagerness == 0.9


def test_unknown_profile() -> None:
    with pytest.raises(ValueError):
        AgentFactory().create_agent("x", "nonexistent")


def test_profiles_from_packaged_yaml() -> None:
    factory = AgentFactory(PROFILES_FILE)

    assert "in_order" in factory.profiles
    assert isinstance(factory.create_agent("t", "in_order"), InOrderAgent)

    cautious = factory.create_agent("c", "cautious")
    assert cautious.profile.counteract_caution == 0.9
    assert cautious.player_id == "c"


def test_profiles_from_yaml_file(tmp_path) -> None:
    path = tmp_path / "profiles.yaml"
    path.write_text(
        "profiles:\n"
        "  bold:\n"
        "    name: Bold\n"
        "    strategy: heuristic\n"
        "    traits:\n"
        "      risk_tolerance: 0.95\n",
        encoding="utf-8",
    )

    factory = AgentFactory(path)

    assert factory.list_profiles() == ["bold"]
    profile = factory.profiles["bold"]
    assert profile.risk_tolerance == 0.95
    assert profile.trap_eagerness == 0.5
    assert profile.description == ""


def test_unknown_strategy_in_yaml(tmp_path) -> None:
    path = tmp_path / "profiles.yaml"
    path.write_text("profiles:\n  weird:\n    strategy: telepathy\n", encoding="utf-8")

    with pytest.raises(ValueError):
        AgentFactory(path)


def test_missing_profiles_file_falls_back_to_defaults(tmp_path) -> None:
    factory = AgentFactory(tmp_path / "missing.yaml")

    assert "balanced" in factory.profiles


def test_simple_agent_discard() -> None:
    agent = SimpleAgent("s")
    game = _attached(agent, [Card.TRAP, Card.SLICE, Card.COUNTERACT, Card.WIND], [Card.BUZZY])

    assert agent.choose_discard() == 3

    game.state.players[0].hand[:] = [Card.TRAP, Card.COUNTERACT]
    assert agent.choose_discard() == 1

    game.state.players[0].hand[:] = [Card.TRAP, Card.TRAP]
    assert agent.choose_discard() == 0


def test_simple_agent_duel() -> None:
    agent = SimpleAgent("s")
    game = _attached(agent, [Card.WIND, Card.COUNTERACT, Card.ROBO_STRIKER], [Card.BUZZY])
    involved = frozenset({0, 1})

    assert agent.choose_duel(involved, []) == 1

    game.state.players[0].hand[:] = [Card.WIND, Card.TRAP, Card.ROBO_STRIKER, Card.SPY]
    assert agent.choose_duel(involved, []) == 2

    game.state.players[0].hand[:] = [Card.SPY, Card.TRAP]
    assert agent.choose_duel(involved, []) == 1

    game.state.players[0].hand[:] = [Card.SPY, Card.SPY_MASTER]
    assert agent.choose_duel(involved, []) == 0


def test_simple_agent_spies_highest_known_card() -> None:
    agent = SimpleAgent("s")
    game = _attached(agent, [Card.SPY], [Card.BUZZY, Card.WIND], [Card.ROCK, Card.SLICE])

    game.trackers[0].on_card_stolen(Card.WIND, 1)
    game.trackers[0].on_card_stolen(Card.SLICE, 2)

    assert agent.choose_spy() == 2


def test_heuristic_agent_plays_highest_card_when_resolving_traps() -> None:
    agent = HeuristicAgent("h", AgentProfile(name="h", description="", risk_tolerance=1.0))
    _attached(agent, [Card.WIND, Card.ROBO_STRIKER, Card.TRAP], [Card.BUZZY])

    trap_round = DuelRound(
        played_cards={0: Card.TRAP, 1: Card.TRAP},
        drawn_cards={},
        result=DoubleDuel(trapping=True, double_duelers={0: Card.TRAP, 1: Card.TRAP}),
    )

    assert agent.choose_duel(frozenset({0, 1}), [trap_round]) == 1


def test_heuristic_agent_risk_tolerance() -> None:
    profile = dict(description="", trap_eagerness=0.0, counteract_caution=0.0)
    bold = HeuristicAgent("b", AgentProfile(name="bold", risk_tolerance=1.0, **profile))
    careful = HeuristicAgent("c", AgentProfile(name="careful", risk_tolerance=0.0, **profile))

    hand = [Card.ROBO_STRIKER, Card.WIND, Card.SLICE]
    _attached(bold, hand, [Card.BUZZY])
    _attached(careful, hand, [Card.BUZZY])

    assert bold.choose_duel(frozenset({0, 1}), []) == 1
    assert careful.choose_duel(frozenset({0, 1}), []) == 0


def test_heuristic_agent_keeps_last_non_spy_card() -> None:
    agent = HeuristicAgent("h", AgentProfile(name="h", description="", spy_preference=0.0))
    _attached(agent, [Card.WIND, Card.SPY], [Card.BUZZY, Card.ROCK])

    assert agent.choose_discard() == 1


def test_heuristic_agent_targets_valuable_known_hand() -> None:
    agent = HeuristicAgent("h", AgentProfile(name="h", description="", spy_preference=0.0))
    game = _attached(
        agent,
        [Card.SPY, Card.WIND, Card.ROCK],
        [Card.BUZZY, Card.SHOCK],
        [Card.ROBO_STRIKER, Card.COPY],
    )

    game.trackers[0].on_card_stolen(Card.ROBO_STRIKER, 2)
    game.trackers[0].on_card_stolen(Card.COPY, 2)

    assert agent.choose_discard() == 0
    assert agent.choose_spy() == 2


def test_composite_agent_uses_first_answer() -> None:
    base = InOrderAgent("base")
    agent = CompositeAgent(
        base,
        discard_strategies=[lambda a: None, lambda a: 2, lambda a: 1],
        spy_strategies=[lambda a: None],
        duel_strategies=[lambda a, involved, rounds: len(rounds) or None],
    )
    game = _attached(agent, [Card.BUZZY, Card.WIND, Card.ROCK], [Card.SHOCK], [Card.ZIP])

    assert agent.choose_discard() == 2
    assert agent.choose_spy() == 1
    assert agent.choose_duel(frozenset({0, 1}), []) == 0

    # il base è collegato alla stessa partita
    assert base.player_index == 0
    assert base.game_state is game.state
    assert base.hand == [Card.BUZZY, Card.WIND, Card.ROCK]


def test_composite_agent_forwards_notifications() -> None:
    drawn = []

    class Recording(InOrderAgent):
        def on_draw(self, card: Card):
            drawn.append(card)

    agent = CompositeAgent(Recording("r"))
    agent.on_draw(Card.SLICE)

    assert drawn == [Card.SLICE]


def test_random_agent_is_reproducible() -> None:
    def choices(seed):
        agent = RandomAgent("r")
        _attached(agent, [Card.BUZZY, Card.WIND, Card.ROCK, Card.ZIP], [Card.SHOCK], [Card.HAIRY])
        agent.set_seed(seed)
        return [agent.choose_discard() for _ in range(10)] + [agent.choose_spy() for _ in range(10)]

    assert choices(5) == choices(5)
    assert set(choices(5)[10:]) <= {1, 2}
