"""
Game State Manager
==================
Stato pubblico della partita (turno, giocatore di turno, mazzo, log eventi),
stato privato di ogni giocatore (mano, carte in gioco) e risultato finale.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional

from .cards import Card
from .deck import Deck
from .events import GameEvent, GameLogger


@dataclass
class PlayerState:
    """
    Stato privato di un giocatore.

    Le carte nuove vengono sempre aggiunte in fondo alla mano, anche quando
    tornano da un duello.
    """
    player_index: int
    name: str
    hand: List[Card] = field(default_factory=list)

    # Carte tolte dalla mano (o pescate) e impegnate nel duello in corso
    cards_in_play: List[Card] = field(default_factory=list)

    # Secondi spesi nella logica della strategia
    total_logic_time: float = 0.0

    eliminated_at_turn: Optional[int] = None

    def hand_size(self, include_in_play: bool = True) -> int:
        """Numero di carte in mano, incluse quelle in gioco nel duello se `include_in_play`."""
        if include_in_play:
            return len(self.hand) + len(self.cards_in_play)
        return len(self.hand)

    @property
    def is_active(self) -> bool:
        """Un giocatore è attivo finché ha almeno una carta (anche se in gioco)."""
        return self.hand_size(include_in_play=True) > 0

    def own_cards(self) -> List[Card]:
        """Mano più carte in gioco: tutte le carte che il giocatore conosce come proprie."""
        return self.hand + self.cards_in_play


@dataclass
class GameResult:
    """
    Risultato di una partita.

    `placements` mappa ogni giocatore al suo piazzamento (1 = primo). Giocatori
    eliminati dallo stesso evento condividono il piazzamento. Se la partita non
    è terminata (limite di turni) `finished` è False e tutti i giocatori ancora
    attivi sono a pari merito al primo posto.
    """
    placements: Dict[int, int]
    turn_count: int
    finished: bool = True

    def __post_init__(self):
        assert any(place == 1 for place in self.placements.values())

    @property
    def winners(self) -> FrozenSet[int]:
        return frozenset(i for i, place in self.placements.items() if place == 1)

    @property
    def decisive(self) -> bool:
        """True se c'è un vincitore unico."""
        return self.finished and len(self.winners) == 1

    @property
    def winner(self) -> Optional[int]:
        """Indice del vincitore unico, None in caso di pareggio o partita non finita."""
        if not self.decisive:
            return None
        return next(iter(self.winners))

    @property
    def tied_players(self) -> Optional[FrozenSet[int]]:
        """Giocatori a pari merito al primo posto, None se c'è un vincitore unico."""
        if not self.finished or len(self.winners) < 2:
            return None
        return self.winners

    def to_dict(self) -> Dict[str, Any]:
        return {
            "finished": self.finished,
            "turn_count": self.turn_count,
            "winner": self.winner,
            "tied_players": sorted(self.tied_players) if self.tied_players else None,
            "placements": self.placements,
        }


@dataclass
class GameState:
    """
    Stato pubblico della partita.

    È modificato solo dal motore; le strategie lo ricevono in sola lettura.
    """

    game_id: str
    players: List[PlayerState]
    deck: Deck
    logger: GameLogger

    # Numero di turni giocati: 0 durante la distribuzione iniziale, poi
    # incrementato all'inizio di ogni turno prima della pesca
    turn_count: int = 0
    up_player_index: int = 0

    # Gruppi di giocatori eliminati, nell'ordine di eliminazione
    elimination_order: List[List[int]] = field(default_factory=list)

    result: Optional[GameResult] = None

    # Metadati
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def up_player(self) -> PlayerState:
        return self.players[self.up_player_index]

    @property
    def active_player_indices(self) -> List[int]:
        """Indici dei giocatori ancora in gioco, nell'ordine ufficiale."""
        return [p.player_index for p in self.players if p.is_active]

    @property
    def active_player_count(self) -> int:
        return sum(1 for p in self.players if p.is_active)

    @property
    def is_game_over(self) -> bool:
        return self.result is not None

    @property
    def events(self) -> List[GameEvent]:
        """Copia degli eventi emessi finora."""
        return self.logger.events

    @property
    def discard_pile(self) -> List[Card]:
        return self.deck.discard_pile

    @property
    def draw_pile_size(self) -> int:
        return self.deck.draw_pile_size

    def hand_size(self, player_index: int, include_in_play: bool = True) -> int:
        """Numero di carte del giocatore (informazione pubblica)."""
        return self.players[player_index].hand_size(include_in_play)

    def is_active(self, player_index: int) -> bool:
        return self.players[player_index].is_active

    def next_player_index(self) -> int:
        """Prossimo giocatore attivo dopo quello di turno, saltando gli eliminati."""
        player_index = self.up_player_index
        for _ in range(self.player_count):
            player_index = (player_index + 1) % self.player_count
            if self.players[player_index].is_active:
                return player_index
        raise RuntimeError("Nessun giocatore attivo")

    def rounds_until_up(self, player_index: int) -> int:
        """Turni che mancano prima che tocchi a `player_index` (0 se è già di turno)."""
        if not self.is_active(player_index):
            raise ValueError(f"Giocatore {player_index} eliminato")

        rounds = 0
        current = self.up_player_index
        while current != player_index:
            current = (current + 1) % self.player_count
            if self.players[current].is_active:
                rounds += 1
        return rounds

    def total_cards(self) -> int:
        """Carte tra mazzo, scarti, mani e duello in corso; sempre uguale al mazzo completo."""
        return (
            self.deck.draw_pile_size
            + self.deck.discard_pile_size
            + sum(p.hand_size(include_in_play=True) for p in self.players)
        )

    def compute_placements(self) -> Dict[int, int]:
        """
        Piazzamenti correnti: i giocatori attivi sono primi, poi i gruppi di
        eliminati dal più recente al meno recente.
        """
        placements = {i: 1 for i in self.active_player_indices}
        place = 1 + len(placements) if placements else 1

        for group in reversed(self.elimination_order):
            for i in group:
                placements[i] = place
            place += len(group)

        return placements

    def to_dict(self) -> Dict[str, Any]:
        """Converte lo stato in dizionario per logging/serializzazione."""
        return {
            "game_id": self.game_id,
            "turn_count": self.turn_count,
            "up_player": self.up_player_index,
            "players": [
                {
                    "index": p.player_index,
                    "name": p.name,
                    "hand_size": p.hand_size(),
                    "eliminated_at_turn": p.eliminated_at_turn,
                    "logic_time": round(p.total_logic_time, 6),
                }
                for p in self.players
            ],
            "draw_pile_size": self.deck.draw_pile_size,
            "discard_pile_size": self.deck.discard_pile_size,
            "result": self.result.to_dict() if self.result else None,
        }
