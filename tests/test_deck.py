import random
from collections import Counter

import pytest

from robopower.engine import Card, DECK_SIZE, Deck, DeckExhaustedError, FULL_DECK


def test_draw_returns_the_top_card() -> None:
    deck = Deck(draw_pile=[Card.BUZZY, Card.WIND])

    assert deck.draw_pile_size == 2
    card, previous_discard = deck.draw()
    assert card == Card.WIND
    assert previous_discard is None
    assert deck.draw_pile_size == 1


def test_discard_pile_is_in_order() -> None:
    deck = Deck(draw_pile=[])
    deck.discard(Card.BUZZY)
    deck.discard(Card.WIND)
    deck.discard_all([Card.ROBO_STRIKER, Card.TRAP])

    assert deck.discard_pile == [Card.BUZZY, Card.WIND, Card.ROBO_STRIKER, Card.TRAP]
    assert deck.discard_pile_size == 4


def test_discard_pile_property_is_a_copy() -> None:
    deck = Deck(draw_pile=[])
    deck.discard(Card.BUZZY)
    deck.discard_pile.append(Card.WIND)

    assert deck.discard_pile == [Card.BUZZY]


def test_discard_pile_is_reshuffled_into_draw_pile() -> None:
    deck = Deck(rng=random.Random(0))

    for _ in range(DECK_SIZE):
        card, previous_discard = deck.draw()
        assert previous_discard is None
        deck.discard(card)

    assert deck.draw_pile_size == 0
    assert deck.discard_pile_size == DECK_SIZE

    _, previous_discard = deck.draw()
    assert Counter(previous_discard) == Counter(FULL_DECK)
    assert deck.discard_pile_size == 0
    assert deck.draw_pile_size == DECK_SIZE - 1


def test_draw_until_exhausted_with_empty_discard_pile() -> None:
    deck = Deck(rng=random.Random(0))

    drawn = Counter()
    for _ in range(DECK_SIZE):
        card, previous_discard = deck.draw()
        assert previous_discard is None
        drawn[card] += 1

    with pytest.raises(DeckExhaustedError):
        deck.draw()

    assert drawn == Counter({card: card.multiplicity for card in Card})


def test_card_conservation_across_draws_and_discards() -> None:
    rng = random.Random(42)
    deck = Deck(rng=rng)
    hand = []

    for _ in range(500):
        if hand and rng.random() < 0.5:
            deck.discard(hand.pop(rng.randrange(len(hand))))
        else:
            card, _ = deck.draw()
            hand.append(card)

        assert deck.draw_pile_size + deck.discard_pile_size + len(hand) == DECK_SIZE
