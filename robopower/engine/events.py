"""
Game Events
===========
Eventi pubblici della partita e logger append-only con registro degli
osservatori. Ogni evento porta il numero di turno e l'indice del giocatore di
turno al momento dell'emissione.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Tuple, Type, TypeVar

from .cards import Card
from .duel import DoubleDuel, DuelResult, DuelRound, Trapped, Counteracted, LowestLost


@dataclass(frozen=True)
class GameEvent:
    """Base di tutti gli eventi."""
    turn_count: int
    up_player_index: int

    event_type = "event"

    def data(self) -> Dict[str, Any]:
        """Dati specifici dell'evento, serializzabili in JSON."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn_count,
            "up_player": self.up_player_index,
            "type": self.event_type,
            "data": self.data(),
        }


@dataclass(frozen=True)
class StartTurn(GameEvent):
    event_type = "start_turn"


@dataclass(frozen=True)
class EndTurn(GameEvent):
    event_type = "end_turn"


@dataclass(frozen=True)
class PlayerDraw(GameEvent):
    """Il giocatore di turno ha pescato (la carta resta privata)."""
    event_type = "player_draw"


@dataclass(frozen=True)
class PlayerDiscard(GameEvent):
    card: Card

    event_type = "player_discard"

    def data(self) -> Dict[str, Any]:
        return {"card": str(self.card)}


@dataclass(frozen=True)
class Spied(GameEvent):
    """Il giocatore di turno ha rubato una carta a `spied_player_index`."""
    spied_player_index: int
    remaining_cards: int

    event_type = "spied"

    def data(self) -> Dict[str, Any]:
        return {"spied_player": self.spied_player_index, "remaining_cards": self.remaining_cards}


@dataclass(frozen=True)
class PlayerEliminated(GameEvent):
    eliminated_player_index: int

    event_type = "player_eliminated"

    def data(self) -> Dict[str, Any]:
        return {"eliminated_player": self.eliminated_player_index}


@dataclass(frozen=True)
class DiscardPileReshuffled(GameEvent):
    """La pila degli scarti è stata rimescolata; `previous_discard` è il suo contenuto precedente."""
    previous_discard: Tuple[Card, ...]

    event_type = "discard_pile_reshuffled"

    def data(self) -> Dict[str, Any]:
        return {"previous_discard": [str(card) for card in self.previous_discard]}


@dataclass(frozen=True)
class DuelRoundPlayed(GameEvent):
    round: DuelRound

    event_type = "duel_round"

    def data(self) -> Dict[str, Any]:
        return {
            "played_cards": {i: str(card) for i, card in self.round.played_cards.items()},
            "result": describe_round_result(self.round),
        }


@dataclass(frozen=True)
class DuelCompleted(GameEvent):
    result: DuelResult

    event_type = "duel"

    def data(self) -> Dict[str, Any]:
        return {
            "rounds": len(self.result.rounds),
            "discarded": _cards_by_player(self.result.discarded_cards),
            "retained": _cards_by_player(self.result.retained_cards),
            "trapped": {
                capturer: _cards_by_player(by_player)
                for capturer, by_player in self.result.trapped_cards.items()
            },
        }


def describe_round_result(duel_round: DuelRound) -> str:
    """Descrizione breve dell'esito di un round, per log e output verbose."""
    result = duel_round.result
    if isinstance(result, LowestLost):
        return f"lowest_lost:{sorted(result.losers)}"
    if isinstance(result, Counteracted):
        return f"counteracted:{sorted(result.counteracters)}"
    if isinstance(result, Trapped):
        return f"trapped:{result.trapper}"
    if isinstance(result, DoubleDuel):
        kind = "trap_double_duel" if result.trapping else "double_duel"
        return f"{kind}:{sorted(result.double_duelers)}"
    return repr(result)


def _cards_by_player(cards: Dict[int, List[Card]]) -> Dict[int, List[str]]:
    return {i: [str(card) for card in player_cards] for i, player_cards in cards.items()}


E = TypeVar("E", bound=GameEvent)


class GameLogger:
    """
    Log append-only degli eventi di una partita.

    È anche il registro degli osservatori: ogni evento registrato viene
    notificato in modo sincrono ai listener, nell'ordine di registrazione.
    """

    def __init__(self, game_id: str):
        self.game_id = game_id
        self._entries: List[Tuple[str, GameEvent]] = []
        self._listeners: List[Callable[[GameEvent], None]] = []

    def on_event(self, callback: Callable[[GameEvent], None]):
        """Registra un listener per tutti gli eventi."""
        self._listeners.append(callback)

    def on_event_of_type(self, event_class: Type[E], callback: Callable[[E], None]):
        """Registra un listener per gli eventi di una sola classe (o sottoclassi)."""
        def listener(event: GameEvent):
            if isinstance(event, event_class):
                callback(event)

        self._listeners.append(listener)

    def log_event(self, event: GameEvent):
        """Registra un evento e lo notifica a tutti i listener."""
        self._entries.append((datetime.now().isoformat(), event))
        for listener in list(self._listeners):
            listener(event)

    @property
    def events(self) -> List[GameEvent]:
        """Copia della lista degli eventi, in ordine di emissione."""
        return [event for _, event in self._entries]

    def count(self, event_class: Type[GameEvent]) -> int:
        """Numero di eventi registrati di una certa classe."""
        return sum(1 for _, event in self._entries if isinstance(event, event_class))

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [{"timestamp": timestamp, **event.to_dict()} for timestamp, event in self._entries]

    def get_summary(self) -> Dict[str, Any]:
        """Restituisce un riepilogo della partita."""
        by_type: Dict[str, int] = {}
        for _, event in self._entries:
            by_type[event.event_type] = by_type.get(event.event_type, 0) + 1

        return {
            "game_id": self.game_id,
            "total_events": len(self._entries),
            "events_by_type": by_type,
            "events": self.to_dicts()
        }
