from collections import Counter
from typing import List

from robopower.engine import (
    Card, CardTracker, Deck, DiscardPileReshuffled, DuelCompleted, FromCardList,
    Game, GameLogger, GameRules, GameState, PlayerDiscard, PlayerState, RandomAgent,
    Spied, duel, full_catalog
)


def _state(*hands: List[Card]) -> GameState:
    players = [PlayerState(player_index=i, name=f"p{i}", hand=list(hand)) for i, hand in enumerate(hands)]
    return GameState(game_id="test", players=players, deck=Deck(draw_pile=[]), logger=GameLogger("test"))


def _log_duel(state: GameState, cards_by_player) -> None:
    result = duel({i: FromCardList(cards) for i, cards in cards_by_player.items()})
    state.logger.log_event(DuelCompleted(turn_count=1, up_player_index=0, result=result))


def test_captured_cards_become_known() -> None:
    state = _state([Card.BUZZY], [Card.ROCK], [Card.SHOCK])
    tracker = CardTracker(state, 0)
    other = CardTracker(state, 2)

    _log_duel(state, {0: [Card.WIND], 1: [Card.TRAP], 2: [Card.SLICE]})

    assert tracker.known_cards == {1: [Card.WIND, Card.SLICE], 2: []}
    assert other.known_cards == {0: [], 1: [Card.WIND, Card.SLICE]}


def test_discard_forgets_known_card() -> None:
    state = _state([Card.BUZZY], [Card.ROCK], [Card.SHOCK])
    tracker = CardTracker(state, 0)
    _log_duel(state, {0: [Card.WIND], 1: [Card.TRAP], 2: [Card.SLICE]})

    state.logger.log_event(PlayerDiscard(turn_count=2, up_player_index=1, card=Card.WIND))
    assert tracker.known_cards[1] == [Card.SLICE]

    # una carta non nota non cambia nulla
    state.logger.log_event(PlayerDiscard(turn_count=3, up_player_index=1, card=Card.ZIP))
    assert tracker.known_cards[1] == [Card.SLICE]


def test_retained_cards_become_known_once() -> None:
    state = _state([Card.BUZZY], [Card.ROCK], [Card.SHOCK])
    tracker = CardTracker(state, 0)

    _log_duel(state, {0: [Card.BUZZY], 1: [Card.WIND], 2: [Card.SLICE]})
    assert tracker.known_cards == {1: [Card.WIND], 2: [Card.SLICE]}

    _log_duel(state, {0: [Card.BUZZY], 1: [Card.WIND], 2: [Card.SLICE]})
    assert tracker.known_cards == {1: [Card.WIND], 2: [Card.SLICE]}


def test_lost_cards_are_forgotten() -> None:
    state = _state([Card.BUZZY], [Card.ROCK])
    tracker = CardTracker(state, 0)

    _log_duel(state, {0: [Card.BUZZY], 1: [Card.WIND]})
    assert tracker.known_cards[1] == [Card.WIND]

    _log_duel(state, {0: [Card.SLICE], 1: [Card.WIND]})
    assert tracker.known_cards[1] == []


def test_spied_by_third_party_clears_victim() -> None:
    state = _state([Card.BUZZY], [Card.ROCK], [Card.SHOCK])
    tracker = CardTracker(state, 0)
    _log_duel(state, {0: [Card.WIND], 1: [Card.TRAP], 2: [Card.SLICE]})

    state.logger.log_event(Spied(turn_count=2, up_player_index=2, spied_player_index=1, remaining_cards=3))

    assert tracker.known_cards == {1: [], 2: []}


def test_spied_last_known_card_moves_to_thief() -> None:
    state = _state([Card.BUZZY], [Card.ROCK], [Card.SHOCK])
    tracker = CardTracker(state, 0)
    _log_duel(state, {0: [Card.BUZZY], 1: [Card.WIND], 2: [Card.SLICE]})

    state.logger.log_event(Spied(turn_count=2, up_player_index=2, spied_player_index=1, remaining_cards=0))

    assert tracker.known_cards == {1: [], 2: [Card.SLICE, Card.WIND]}


def test_private_spy_notifications() -> None:
    state = _state([Card.BUZZY], [Card.ROCK])
    tracker = CardTracker(state, 0)

    tracker.on_card_stolen(Card.SLICE, 1)
    assert tracker.known_cards[1] == [Card.SLICE]

    # l'evento pubblico di un furto che coinvolge il tracker è ignorato
    state.logger.log_event(Spied(turn_count=1, up_player_index=1, spied_player_index=0, remaining_cards=1))
    assert tracker.known_cards[1] == [Card.SLICE]

    tracker.on_receive_spy_card(Card.SLICE, 1)
    assert tracker.known_cards[1] == []


def test_head_to_head_reshuffle_reveals_opponent_hand() -> None:
    own = [Card.BUZZY, Card.WIND]
    opponent = [Card.ROBO_STRIKER, Card.SLICE, Card.TRAP]
    state = _state(own, opponent)
    tracker = CardTracker(state, 0)

    previous_discard = full_catalog() - Counter(own) - Counter(opponent)
    state.logger.log_event(DiscardPileReshuffled(
        turn_count=5, up_player_index=0, previous_discard=tuple(previous_discard.elements())
    ))

    assert Counter(tracker.known_cards[1]) == Counter(opponent)
    assert tracker.unknown_cards() == previous_discard


def test_reshuffle_ignores_eliminated_players() -> None:
    own = [Card.BUZZY]
    opponent = [Card.COPY, Card.COPY]
    state = _state(own, [], opponent)
    tracker = CardTracker(state, 0)

    previous_discard = full_catalog() - Counter(own) - Counter(opponent)
    state.logger.log_event(DiscardPileReshuffled(
        turn_count=5, up_player_index=0, previous_discard=tuple(previous_discard.elements())
    ))

    assert tracker.known_cards == {1: [], 2: [Card.COPY, Card.COPY]}


def test_reshuffle_with_several_opponents_reveals_nothing() -> None:
    state = _state([Card.BUZZY], [Card.ROCK], [Card.SHOCK])
    tracker = CardTracker(state, 0)

    state.logger.log_event(DiscardPileReshuffled(
        turn_count=5, up_player_index=0, previous_discard=(Card.WIND, Card.ZIP)
    ))

    assert tracker.known_cards == {1: [], 2: []}


def test_unaccounted_cards() -> None:
    state = _state([Card.WIND, Card.WIND, Card.TRAP], [Card.ROCK])
    tracker = CardTracker(state, 0)

    assert tracker.count_unaccounted_total() == 96
    assert tracker.count_accounted_total() == 3
    assert tracker.count_unaccounted_for(Card.WIND) == 5
    assert tracker.count_known(Card.WIND) == 2
    assert tracker.count_unaccounted_matching(lambda c: c.is_trap) == 9
    assert tracker.count_known_matching(lambda c: c.is_trap or c.is_counteract) == 1

    state.deck.discard(Card.WIND)
    state.logger.log_event(PlayerDiscard(turn_count=1, up_player_index=1, card=Card.WIND))

    assert tracker.count_unaccounted_for(Card.WIND) == 4
    assert tracker.unknown_cards() == full_catalog() - Counter([Card.WIND] * 3 + [Card.TRAP])


def test_returned_collections_are_copies() -> None:
    state = _state([Card.BUZZY], [Card.ROCK])
    tracker = CardTracker(state, 0)
    tracker.on_card_stolen(Card.SLICE, 1)

    tracker.known_cards[1].clear()
    tracker.unknown_cards()[Card.ROCK] = 0

    assert tracker.known_cards[1] == [Card.SLICE]
    assert tracker.count_unaccounted_for(Card.ROCK) == Card.ROCK.multiplicity


def _assert_sound(game: Game) -> None:
    state = game.state
    for tracker in game.trackers:
        known = tracker.known_cards
        for opponent, cards in known.items():
            actual = Counter(state.players[opponent].own_cards())
            assert not Counter(cards) - actual, (tracker.player_index, opponent)

        accounted = (
            len(state.players[tracker.player_index].own_cards())
            + state.deck.discard_pile_size
            + sum(len(cards) for cards in known.values())
        )
        assert accounted + tracker.count_unaccounted_total() == 99


def test_known_cards_are_always_in_opponent_hands() -> None:
    for seed in range(5):
        game = Game([RandomAgent(f"p{i}") for i in range(4)], rules=GameRules(starting_cards=12), seed=seed)
        game.on_event(lambda event: _assert_sound(game))
        game.run(max_turns=300)


def test_head_to_head_reshuffle_matches_actual_hands() -> None:
    reshuffles = 0

    for seed in range(5):
        game = Game([RandomAgent("a"), RandomAgent("b")], rules=GameRules(starting_cards=40), seed=seed)
        state = game.state

        def check(event: DiscardPileReshuffled) -> None:
            nonlocal reshuffles
            reshuffles += 1

            for tracker in game.trackers:
                me = tracker.player_index
                opponent = 1 - me
                own = Counter(state.players[me].own_cards())
                opponent_cards = Counter(state.players[opponent].own_cards())

                assert Counter(tracker.known_cards[opponent]) == opponent_cards
                assert tracker.unknown_cards() == (
                    full_catalog() - own - opponent_cards - Counter(state.discard_pile)
                )

        game.logger.on_event_of_type(DiscardPileReshuffled, check)
        game.on_event(lambda event: _assert_sound(game))
        game.run(max_turns=500)

    assert reshuffles > 0
