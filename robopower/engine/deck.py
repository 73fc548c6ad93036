"""
Deck
====
Gestisce la pila di pesca e la pila degli scarti, con rimescolamento degli
scarti quando la pila di pesca si esaurisce.
"""

from typing import Iterable, List, Optional, Tuple
import random

from .cards import Card, FULL_DECK
from .errors import DeckExhaustedError


class Deck:
    """Mazzo di pesca e pila degli scarti di una partita."""

    def __init__(
        self,
        draw_pile: Optional[Iterable[Card]] = None,
        discard_pile: Optional[Iterable[Card]] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Args:
            draw_pile: Pila di pesca; la cima è l'ultimo elemento. Se omessa si
                usa il mazzo completo mescolato con `rng`.
            discard_pile: Pila degli scarti iniziale (di solito vuota)
            rng: Generatore casuale per mescolare
        """
        self.rng = rng or random.Random()

        if draw_pile is None:
            self._draw_pile = self.create_deck()
            self.rng.shuffle(self._draw_pile)
        else:
            self._draw_pile = list(draw_pile)

        self._discard_pile: List[Card] = list(discard_pile or [])

    @classmethod
    def create_deck(cls) -> List[Card]:
        """Crea un mazzo completo di 99 carte, non mescolato."""
        return list(FULL_DECK)

    @property
    def draw_pile_size(self) -> int:
        return len(self._draw_pile)

    @property
    def discard_pile(self) -> List[Card]:
        """Copia della pila degli scarti, le carte più recenti in fondo."""
        return list(self._discard_pile)

    @property
    def discard_pile_size(self) -> int:
        return len(self._discard_pile)

    def draw(self) -> Tuple[Card, Optional[List[Card]]]:
        """
        Pesca la carta in cima alla pila di pesca.

        Se la pila di pesca è vuota, gli scarti vengono mescolati e diventano la
        nuova pila di pesca.

        Returns:
            Tuple con la carta pescata e, se c'è stato un rimescolamento, il
            contenuto degli scarti prima del rimescolamento (altrimenti None)

        Raises:
            DeckExhaustedError: se entrambe le pile sono vuote
        """
        previous_discard = None
        if not self._draw_pile:
            if not self._discard_pile:
                raise DeckExhaustedError()
            previous_discard = self._shuffle_discard_into_draw()

        return self._draw_pile.pop(), previous_discard

    def discard(self, card: Card):
        """Aggiunge una carta in cima agli scarti."""
        self._discard_pile.append(card)

    def discard_all(self, cards: Iterable[Card]):
        """Aggiunge tutte le carte in cima agli scarti, nell'ordine dato."""
        self._discard_pile.extend(cards)

    def _shuffle_discard_into_draw(self) -> List[Card]:
        previous_discard = list(self._discard_pile)
        shuffled = previous_discard.copy()
        self.rng.shuffle(shuffled)
        self._draw_pile.extend(shuffled)
        self._discard_pile.clear()
        return previous_discard

    def __repr__(self):
        return f"Deck(draw={self.draw_pile_size}, discard={self.discard_pile_size})"
