"""Helper condivisi: mazzi predeterminati, generatore casuale tutto-zero, partite di prova."""

import random
from typing import List

import pytest

from robopower.engine import Card, Deck, Game, InOrderAgent


class AllZeroRandom(random.Random):
    """Generatore che restituisce sempre 0: le spie rubano sempre la prima carta."""

    def random(self) -> float:
        return 0.0

    def getrandbits(self, k: int) -> int:
        return 0


def build_deck(*cards_by_player: List[Card]) -> Deck:
    """
    Mazzo in cui le carte di ogni giocatore sono inserite a giro, una per
    giocatore, così da determinare sia la distribuzione iniziale sia le pesche
    successive; le carte non assegnate seguono in ordine di catalogo.
    """
    remaining = [list(cards) for cards in cards_by_player]
    ordered: List[Card] = []
    while any(remaining):
        for player_cards in remaining:
            if player_cards:
                ordered.append(player_cards.pop(0))

    for card in Card:
        used = ordered.count(card)
        assert used <= card.multiplicity
        ordered.extend([card] * (card.multiplicity - used))

    # la cima della pila di pesca è l'ultimo elemento
    return Deck(draw_pile=list(reversed(ordered)), rng=AllZeroRandom())


def build_game(agents, *cards_by_player: List[Card], **kwargs) -> Game:
    assert len(agents) == len(cards_by_player)
    return Game(agents, deck=build_deck(*cards_by_player), rng=AllZeroRandom(), **kwargs)


def in_order_agents(count: int) -> List[InOrderAgent]:
    return [InOrderAgent(f"p{i}") for i in range(count)]


@pytest.fixture
def all_zero_random() -> AllZeroRandom:
    return AllZeroRandom()
