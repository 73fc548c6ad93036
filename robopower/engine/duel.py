"""
Duel Resolver
=============
Risolve un duello a partire dalle carte giocate a ogni round, inclusi i
"doppi duelli" ricorsivi (pareggi sulla carta più bassa o Trap multiple).

Usato dal motore per il ciclo di gioco, ma utilizzabile anche dalle strategie
per simulare duelli.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .cards import Card, score_key


# ============================================
# ESITI DEI ROUND
# ============================================

@dataclass(frozen=True)
class LowestLost:
    """
    Tutte carte normali: la più bassa perde.

    Quando si sta risolvendo un doppio duello di Trap vince invece la carta
    più alta, che conquista tutto; in quel caso tutte le altre sono `losers`.
    """
    losers: Dict[int, Card]
    winners: Dict[int, Card]


@dataclass(frozen=True)
class Counteracted:
    """Almeno un Counteract: tutte le carte in gioco vengono scartate."""
    counteracters: FrozenSet[int]


@dataclass(frozen=True)
class Trapped:
    """Una sola Trap: il suo giocatore cattura tutte le carte in gioco."""
    trapper: int


@dataclass(frozen=True)
class DoubleDuel:
    """
    Pareggio (carta più bassa, o più alta durante una cattura) oppure più
    Trap nello stesso round: si gioca un altro round tra `double_duelers`.

    `trapping` indica che il doppio duello è causato da Trap in *questo* round.
    """
    trapping: bool
    double_duelers: Dict[int, Card]


DuelRoundResult = Union[LowestLost, Counteracted, Trapped, DoubleDuel]


@dataclass(frozen=True)
class DuelRound:
    """Un round di duello: carte giocate dai giocatori ancora coinvolti ed esito."""
    played_cards: Dict[int, Card]
    drawn_cards: Dict[int, Card]  # sottoinsieme di played_cards pescato dal mazzo
    result: DuelRoundResult

    def __post_init__(self):
        if __debug__:
            assert len(self.played_cards) >= 2
            assert set(self.drawn_cards) <= set(self.played_cards)


@dataclass(frozen=True)
class DuelResult:
    """
    Resoconto completo di un duello.

    Attributes:
        rounds: I round giocati, l'ultimo non è mai un DoubleDuel
        discarded_cards: giocatore -> carte che finiscono negli scarti
        retained_cards: giocatore -> carte che tornano in mano
        trapped_cards: catturatore -> (giocatore di origine -> carte catturate)
        drawn_cards: giocatore -> carte giocate pescandole dal mazzo (già
            presenti anche nelle mappe precedenti)
    """
    rounds: List[DuelRound]
    discarded_cards: Dict[int, List[Card]] = field(default_factory=dict)
    retained_cards: Dict[int, List[Card]] = field(default_factory=dict)
    trapped_cards: Dict[int, Dict[int, List[Card]]] = field(default_factory=dict)
    drawn_cards: Dict[int, List[Card]] = field(default_factory=dict)

    def __post_init__(self):
        if __debug__:
            assert self.rounds
            assert not isinstance(self.rounds[-1].result, DoubleDuel)
            assert all(isinstance(r.result, DoubleDuel) for r in self.rounds[:-1])
            assert all(self.discarded_cards.values())
            assert all(self.retained_cards.values())
            assert all(
                by_player and all(by_player.values())
                for by_player in self.trapped_cards.values()
            )
            assert self.cards_committed() == self.cards_resolved()

    def cards_committed(self) -> int:
        """Numero totale di carte giocate in tutti i round."""
        return sum(len(r.played_cards) for r in self.rounds)

    def cards_resolved(self) -> int:
        """Numero totale di carte uscite dal duello (scartate + trattenute + catturate)."""
        return (
            sum(len(cards) for cards in self.discarded_cards.values())
            + sum(len(cards) for cards in self.retained_cards.values())
            + sum(len(cards) for by_player in self.trapped_cards.values() for cards in by_player.values())
        )

    def trapped_by(self, player_index: int) -> List[Card]:
        """Tutte le carte catturate da `player_index`."""
        return [card for cards in self.trapped_cards.get(player_index, {}).values() for card in cards]


# ============================================
# FORNITORI DI CARTE
# ============================================

class CardSupplier(ABC):
    """
    Fornisce le carte di un giocatore a ogni round del duello.

    La fornitura è divisa in due fasi: `draw_card` viene chiamata in sequenza
    per tutti i giocatori (accesso al mazzo), poi `choose_card` per quelli che
    non hanno pescato; le scelte possono essere eseguite in parallelo.
    """

    def draw_card(self) -> Optional[Card]:
        """Carta pescata dal mazzo, o None se il giocatore deve scegliere dalla mano."""
        return None

    @abstractmethod
    def choose_card(self, involved_players: FrozenSet[int], previous_rounds: List[DuelRound]) -> Card:
        """Carta scelta per il round tra `involved_players` dopo `previous_rounds`."""


class FromCardList(CardSupplier):
    """Restituisce le carte di una lista predefinita, una per round (test e simulazioni)."""

    def __init__(self, cards: Iterable[Card]):
        self.remaining_cards = list(cards)

    def choose_card(self, involved_players: FrozenSet[int], previous_rounds: List[DuelRound]) -> Card:
        return self.remaining_cards.pop(0)


# ============================================
# RISOLUZIONE
# ============================================

def duel_round(played_cards: Mapping[int, Card], trapping: bool = False) -> DuelRoundResult:
    """
    Determina l'esito di un singolo round.

    Args:
        played_cards: giocatore -> carta giocata in questo round
        trapping: True se un round precedente aveva più Trap; invece di
            eliminare la carta più bassa, la più alta vince tutte le carte
            in gioco (con doppio duello in caso di pareggio)
    """
    if any(card.is_counteract for card in played_cards.values()):
        return Counteracted(
            counteracters=frozenset(i for i, card in played_cards.items() if card.is_counteract)
        )

    trappers = {i: card for i, card in played_cards.items() if card.is_trap}

    if len(trappers) == 1:
        return Trapped(trapper=next(iter(trappers)))

    if len(trappers) > 1:
        return DoubleDuel(trapping=True, double_duelers=trappers)

    if trapping:
        best = max(score_key(card) for card in played_cards.values())
        winners = [i for i, card in played_cards.items() if score_key(card) == best]
        if len(winners) == 1:
            winner = winners[0]
            return LowestLost(
                losers={i: card for i, card in played_cards.items() if i != winner},
                winners={winner: played_cards[winner]},
            )
        return DoubleDuel(trapping=False, double_duelers={i: played_cards[i] for i in winners})

    worst = min(score_key(card) for card in played_cards.values())
    losers = [i for i, card in played_cards.items() if score_key(card) == worst]
    if len(losers) == 1:
        loser = losers[0]
        return LowestLost(
            losers={loser: played_cards[loser]},
            winners={i: card for i, card in played_cards.items() if i != loser},
        )
    return DoubleDuel(trapping=False, double_duelers={i: played_cards[i] for i in losers})


def is_trapping(previous_rounds: Sequence[DuelRound]) -> bool:
    """True se un round precedente del duello è stato un doppio duello di Trap."""
    return any(isinstance(r.result, DoubleDuel) and r.result.trapping for r in previous_rounds)


def duel(
    players: Mapping[int, CardSupplier],
    on_round: Optional[Callable[[DuelRound], None]] = None,
    executor: Optional[Executor] = None
) -> DuelResult:
    """
    Esegue un duello completo tra i giocatori dati.

    Args:
        players: indice giocatore -> fornitore di carte, nell'ordine ufficiale
        on_round: callback invocata dopo ogni round
        executor: se presente, le scelte dei giocatori di ogni round vengono
            eseguite in parallelo su di esso (con barriera a fine raccolta)

    Returns:
        Il DuelResult con round, carte scartate, trattenute e catturate
    """
    rounds: List[DuelRound] = []

    # giocatore -> carte tolte dalla mano e ancora in gioco
    cards_in_play: Dict[int, List[Card]] = {}

    # giocatore -> carte già restituite perché escluso da un doppio duello
    retained_cards: Dict[int, List[Card]] = {}

    # giocatore -> carte giocate pescandole dal mazzo
    drawn_cards: Dict[int, List[Card]] = {}

    involved_players: List[int] = list(players)

    # con Trap in un round precedente tutte le carte in gioco restano in gioco
    # e verranno comunque catturate
    trapping = False

    while True:
        played = _collect_played_cards(players, involved_players, rounds, executor)
        played_cards = {i: card for i, (card, _) in played.items()}
        drawn_now = {i: card for i, (card, was_drawn) in played.items() if was_drawn}

        for i, card in played_cards.items():
            cards_in_play.setdefault(i, []).append(card)
        for i, card in drawn_now.items():
            drawn_cards.setdefault(i, []).append(card)

        result = duel_round(played_cards, trapping=trapping)
        duel_round_record = DuelRound(played_cards=played_cards, drawn_cards=drawn_now, result=result)
        rounds.append(duel_round_record)
        if on_round is not None:
            on_round(duel_round_record)

        if isinstance(result, LowestLost):
            if trapping:
                winner = next(iter(result.winners))
                return _capture(rounds, winner, cards_in_play, retained_cards, drawn_cards)

            loser = next(iter(result.losers))
            retained = dict(retained_cards)
            retained.update({i: cards for i, cards in cards_in_play.items() if i != loser})
            return DuelResult(
                rounds=rounds,
                discarded_cards={loser: cards_in_play[loser]},
                retained_cards=retained,
                drawn_cards=drawn_cards,
            )

        if isinstance(result, Counteracted):
            return DuelResult(
                rounds=rounds,
                discarded_cards=dict(cards_in_play),
                retained_cards=dict(retained_cards),
                drawn_cards=drawn_cards,
            )

        if isinstance(result, Trapped):
            return _capture(rounds, result.trapper, cards_in_play, retained_cards, drawn_cards)

        # DoubleDuel
        if trapping or result.trapping:
            trapping = True
        else:
            # chi esce dal doppio duello si riprende le sue carte
            for i in involved_players:
                if i not in result.double_duelers:
                    retained_cards[i] = cards_in_play.pop(i)

        involved_players = [i for i in involved_players if i in result.double_duelers]


def _capture(
    rounds: List[DuelRound],
    winner: int,
    cards_in_play: Dict[int, List[Card]],
    retained_cards: Dict[int, List[Card]],
    drawn_cards: Dict[int, List[Card]]
) -> DuelResult:
    """Il vincitore cattura tutto ciò che è in gioco; le sue Trap vengono scartate."""
    winner_cards = cards_in_play[winner]
    traps = [card for card in winner_cards if card.is_trap]
    kept = [card for card in winner_cards if not card.is_trap]

    retained = dict(retained_cards)
    if kept:
        retained[winner] = kept

    captured = {i: cards for i, cards in cards_in_play.items() if i != winner}

    return DuelResult(
        rounds=rounds,
        discarded_cards={winner: traps} if traps else {},
        retained_cards=retained,
        trapped_cards={winner: captured} if captured else {},
        drawn_cards=drawn_cards,
    )


def _collect_played_cards(
    players: Mapping[int, CardSupplier],
    involved_players: List[int],
    previous_rounds: List[DuelRound],
    executor: Optional[Executor]
) -> Dict[int, Tuple[Card, bool]]:
    """
    Raccoglie la carta di ogni giocatore coinvolto.

    Returns:
        giocatore -> (carta, pescata dal mazzo)
    """
    involved = frozenset(involved_players)
    history = list(previous_rounds)
    played: Dict[int, Tuple[Card, bool]] = {}
    pending: List[int] = []

    # le pescate dal mazzo restano sequenziali
    for i in involved_players:
        card = players[i].draw_card()
        if card is not None:
            played[i] = (card, True)
        else:
            pending.append(i)

    if executor is not None and len(pending) > 1:
        futures = {i: executor.submit(players[i].choose_card, involved, history) for i in pending}
        for i in pending:
            played[i] = (futures[i].result(), False)
    else:
        for i in pending:
            played[i] = (players[i].choose_card(involved, history), False)

    return {i: played[i] for i in involved_players}
