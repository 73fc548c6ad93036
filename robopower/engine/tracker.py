"""
Card Tracker
============
Contabilità delle carte note nelle mani degli avversari, dal punto di vista di
un singolo giocatore, aggiornata dagli eventi pubblici della partita e dalle
notifiche private di furto (spia).

Le carte "non contabilizzate" sono quelle del mazzo completo che non sono
nella mano del giocatore, negli scarti o tra le carte note degli avversari:
si trovano quindi nella pila di pesca o in mani avversarie sconosciute.

Alcune deduzioni di ordine superiore non vengono fatte: per esempio se un
avversario ha due carte note e una gli viene rubata, la carta giocata dopo
in un duello rivelerebbe quale è stata rubata, ma la carta rubata non viene
attribuita a chi l'ha presa.
"""

from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional

from .cards import Card, DECK_SIZE, full_catalog
from .events import DiscardPileReshuffled, DuelCompleted, GameEvent, PlayerDiscard, Spied
from .game_state import GameState


class CardTracker:
    """Carte note per avversario, dal punto di vista di `player_index`."""

    def __init__(self, game_state: GameState, player_index: int):
        self.game_state = game_state
        self.player_index = player_index

        self._known_cards: Dict[int, List[Card]] = {
            i: [] for i in range(game_state.player_count) if i != player_index
        }
        self._unknown_cards: Optional[Counter] = None

        game_state.logger.on_event(self.on_event)

    @property
    def known_cards(self) -> Dict[int, List[Card]]:
        """Copia delle carte note: avversario -> carte sicuramente nella sua mano."""
        return {i: list(cards) for i, cards in self._known_cards.items()}

    # ============================================
    # AGGIORNAMENTO DA EVENTI
    # ============================================

    def on_event(self, event: GameEvent):
        """Aggiorna la contabilità con un evento pubblico."""
        if isinstance(event, PlayerDiscard):
            self._on_discard(event)
        elif isinstance(event, DuelCompleted):
            self._on_duel(event)
        elif isinstance(event, Spied):
            self._on_spied(event)
        elif isinstance(event, DiscardPileReshuffled):
            self._on_reshuffle(event)

        # anche eventi senza effetto sulle carte note (es. la propria pesca)
        # cambiano mano o scarti
        self._unknown_cards = None

    def _on_discard(self, event: PlayerDiscard):
        if event.up_player_index != self.player_index:
            _remove_each(self._known_cards[event.up_player_index], [event.card])

    def _on_duel(self, event: DuelCompleted):
        result = event.result

        for player, discarded in result.discarded_cards.items():
            if player != self.player_index:
                _remove_each(self._known_cards[player], discarded)

        # le carte trattenute potevano essere già note: si aggiungono solo le
        # copie in eccesso rispetto a quelle conosciute
        for player, retained in result.retained_cards.items():
            if player == self.player_index:
                continue

            known = self._known_cards[player]
            known_counts = Counter(known)
            for card, retained_count in Counter(retained).items():
                newly_seen = retained_count - known_counts[card]
                if newly_seen > 0:
                    known.extend([card] * newly_seen)

        for capturer, by_player in result.trapped_cards.items():
            for victim, cards in by_player.items():
                if victim != self.player_index:
                    _remove_each(self._known_cards[victim], cards)

                # le carte catturate da questo giocatore sono già nella sua mano
                if capturer != self.player_index:
                    self._known_cards[capturer].extend(cards)

    def _on_spied(self, event: Spied):
        # i furti da o verso questo giocatore passano per on_receive_spy_card
        # e on_card_stolen
        if self.player_index in (event.up_player_index, event.spied_player_index):
            return

        victim_cards = self._known_cards[event.spied_player_index]

        # se la vittima aveva una sola carta ed era nota, ora è del ladro
        if event.remaining_cards == 0 and victim_cards:
            self._known_cards[event.up_player_index].append(victim_cards[0])

        # la carta rubata poteva essere una qualsiasi
        victim_cards.clear()

    def _on_reshuffle(self, event: DiscardPileReshuffled):
        # in un testa a testa la mano dell'avversario si ricava per esclusione
        opponents = [i for i in self.game_state.active_player_indices if i != self.player_index]
        if len(opponents) != 1:
            return

        remaining = full_catalog()
        remaining -= Counter(event.previous_discard)
        remaining -= Counter(self._own_cards())
        self._known_cards[opponents[0]] = list(remaining.elements())

    # ============================================
    # NOTIFICHE PRIVATE
    # ============================================

    def on_receive_spy_card(self, card: Card, from_player_index: int):
        """Questo giocatore ha rubato `card` a `from_player_index`."""
        _remove_each(self._known_cards[from_player_index], [card])
        self._unknown_cards = None

    def on_card_stolen(self, card: Card, by_player_index: int):
        """`by_player_index` ha rubato `card` a questo giocatore."""
        self._known_cards[by_player_index].append(card)
        self._unknown_cards = None

    # ============================================
    # INTERROGAZIONI
    # ============================================

    def unknown_cards(self) -> Counter:
        """
        Multiset delle carte non contabilizzate (pila di pesca o mani avversarie
        sconosciute). Ricalcolato solo quando la contabilità cambia.
        """
        if self._unknown_cards is None:
            cards = full_catalog()
            cards -= Counter(self._own_cards())
            cards -= Counter(self.game_state.deck.discard_pile)
            for known in self._known_cards.values():
                cards -= Counter(known)
            self._unknown_cards = cards

        return Counter(self._unknown_cards)

    def count_unaccounted_for(self, card: Card) -> int:
        """Copie di `card` non contabilizzate."""
        if self._unknown_cards is None:
            self.unknown_cards()
        return self._unknown_cards[card]

    def count_unaccounted_matching(self, predicate: Callable[[Card], bool]) -> int:
        """Numero di carte non contabilizzate che soddisfano `predicate`."""
        return sum(count for card, count in self.unknown_cards().items() if predicate(card))

    def count_known(self, card: Card) -> int:
        """Copie di `card` già viste (in mano propria, negli scarti o note agli avversari)."""
        return card.multiplicity - self.count_unaccounted_for(card)

    def count_known_matching(self, predicate: Callable[[Card], bool]) -> int:
        total = sum(card.multiplicity for card in Card if predicate(card))
        return total - self.count_unaccounted_matching(predicate)

    def count_unaccounted_total(self) -> int:
        return sum(self.unknown_cards().values())

    def count_accounted_total(self) -> int:
        return DECK_SIZE - self.count_unaccounted_total()

    def _own_cards(self) -> List[Card]:
        return self.game_state.players[self.player_index].own_cards()


def _remove_each(cards: List[Card], to_remove: Iterable[Card]):
    """Rimuove una copia di ogni carta di `to_remove`, se presente."""
    for card in to_remove:
        if card in cards:
            cards.remove(card)
