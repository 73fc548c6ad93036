"""
Card Catalog
============
Catalogo statico delle carte di Robo Power: forza, numero di spie e
molteplicità nel mazzo. I valori derivati (rank, conteggi) sono calcolati una
sola volta all'import del modulo.
"""

from collections import Counter
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple


class Card(Enum):
    """
    Tipo di carta del mazzo.

    Ogni membro porta: nome leggibile, forza (None per Trap e Counteract, che
    non si confrontano per forza), numero di spie attivate quando la carta
    viene scartata, e numero di copie nel mazzo completo.
    """

    COUNTERACT = ("Counteract", None, 0, 3)
    TRAP = ("Trap", None, 0, 10)
    SPY_MASTER = ("Spy Master", 1, 2, 1)
    SPY = ("Spy", 3, 1, 4)
    BUZZY = ("Buzzy", 10, 0, 6)
    WIND = ("Wind", 25, 0, 7)
    SHOCK = ("Shock", 30, 0, 7)
    ROCK = ("Rock", 35, 0, 7)
    LIGHTOR = ("Lightor", 40, 0, 8)
    ZIP = ("Zip", 50, 0, 4)
    HAIRY = ("Hairy", 51, 0, 6)
    GRAPPLE = ("Grapple", 60, 0, 8)
    BRAINY = ("Brainy", 65, 0, 4)
    BLADE = ("Blade", 70, 0, 3)
    ALX = ("Alx", 75, 0, 3)
    BRAINIAC = ("Brainiac", 85, 0, 3)
    CRUSHER = ("Crusher", 85, 0, 3)
    RAM = ("Ram", 120, 0, 4)
    SLICE = ("Slice", 160, 0, 3)
    UN_BEAT = ("Un-Beat", 200, 0, 2)
    COPY = ("Copy", 205, 0, 2)
    ROBO_STRIKER = ("Robo Striker", 210, 0, 1)

    def __init__(self, card_name: str, score: Optional[int], spy_count: int, multiplicity: int):
        self.card_name = card_name
        self.score = score
        self.spy_count = spy_count
        self.multiplicity = multiplicity

    def __str__(self):
        if self.score is None:
            return self.card_name
        return f"{self.card_name} [{self.score}]"

    @property
    def is_trap(self) -> bool:
        """True per la Trap (la sua forza va ignorata)."""
        return self is Card.TRAP

    @property
    def is_counteract(self) -> bool:
        """True per il Counteract (la sua forza va ignorata)."""
        return self is Card.COUNTERACT

    @property
    def is_normal(self) -> bool:
        """Unità "normale": né Trap, né Counteract, né spia."""
        return self.score is not None and self.spy_count == 0

    @property
    def is_normal_or_spy(self) -> bool:
        """Unità normale oppure spia, cioè non Trap né Counteract."""
        return self.score is not None

    @property
    def rank(self) -> int:
        """
        Rango relativo: le carte con forza sono ordinate per forza crescente,
        la Trap sta sopra ogni carta normale e il Counteract sopra la Trap.
        """
        return _RANKS[self]

    @property
    def score_rank(self) -> Optional[int]:
        """Forza normalizzata (0 = la più debole), None per Trap e Counteract."""
        return _SCORE_RANKS[self]

    @property
    def count_stronger(self) -> Optional[int]:
        """Copie nel mazzo con forza strettamente maggiore."""
        return _COUNTS["stronger"][self]

    @property
    def count_stronger_or_equal(self) -> Optional[int]:
        """Copie nel mazzo con forza maggiore o uguale (inclusa questa carta)."""
        return _COUNTS["stronger_or_equal"][self]

    @property
    def count_weaker(self) -> Optional[int]:
        """Copie nel mazzo con forza strettamente minore."""
        return _COUNTS["weaker"][self]

    @property
    def count_weaker_or_equal(self) -> Optional[int]:
        """Copie nel mazzo con forza minore o uguale (inclusa questa carta)."""
        return _COUNTS["weaker_or_equal"][self]


def score_key(card: Card) -> int:
    """Chiave di ordinamento per forza; Trap e Counteract valgono come le più basse."""
    return card.score if card.score is not None else 0


def _compute_score_ranks() -> Dict[Card, Optional[int]]:
    """Per ogni tipo con forza, quanti tipi del catalogo hanno forza strettamente minore."""
    scores = [c.score for c in Card if c.score is not None]
    return {
        card: (sum(1 for s in scores if s < card.score) if card.score is not None else None)
        for card in Card
    }


_SCORE_RANKS: Dict[Card, Optional[int]] = _compute_score_ranks()

_MAX_SCORE_RANK = max(r for r in _SCORE_RANKS.values() if r is not None)

_RANKS: Dict[Card, int] = {
    card: (
        _MAX_SCORE_RANK + 2 if card.is_counteract
        else _MAX_SCORE_RANK + 1 if card.is_trap
        else _SCORE_RANKS[card]
    )
    for card in Card
}

_COMPARISONS: Dict[str, Callable[[int, int], bool]] = {
    "stronger": lambda other, mine: other > mine,
    "stronger_or_equal": lambda other, mine: other >= mine,
    "weaker": lambda other, mine: other < mine,
    "weaker_or_equal": lambda other, mine: other <= mine,
}

_COUNTS: Dict[str, Dict[Card, Optional[int]]] = {
    kind: {
        card: (
            sum(
                other.multiplicity
                for other in Card
                if other.score is not None and compare(other.score, card.score)
            )
            if card.score is not None else None
        )
        for card in Card
    }
    for kind, compare in _COMPARISONS.items()
}


# Mazzo completo non mescolato: ogni carta ripetuta `multiplicity` volte
FULL_DECK: Tuple[Card, ...] = tuple(card for card in Card for _ in range(card.multiplicity))

DECK_SIZE: int = len(FULL_DECK)


def full_catalog() -> Counter:
    """Restituisce il multiset completo del catalogo (copia nuova a ogni chiamata)."""
    return Counter({card: card.multiplicity for card in Card})


def cards_matching(predicate: Callable[[Card], bool]) -> List[Card]:
    """Tipi di carta che soddisfano il predicato, in ordine di catalogo."""
    return [card for card in Card if predicate(card)]
