"""
Errori del motore
=================
Tipi di errore che interrompono una singola partita. Gli errori attribuibili a
un giocatore portano l'indice del giocatore e il tipo di decisione, così che il
simulatore possa distinguere una "mossa illegale" da un "crash" della strategia.
"""

from enum import Enum
from typing import Optional


class Decision(Enum):
    """Tipo di decisione richiesta a una strategia."""
    DISCARD = "discard"
    SPY = "spy"
    DUEL = "duel"
    CALLBACK = "callback"


class RoboPowerError(Exception):
    """Base di tutti gli errori del motore."""


class DeckExhaustedError(RoboPowerError):
    """Pesca con mazzo e pila degli scarti entrambi vuoti."""

    def __init__(self):
        super().__init__("Nessuna carta nel mazzo né negli scarti")


class GameConfigurationError(RoboPowerError, ValueError):
    """Configurazione della partita non valida (es. numero di giocatori)."""


class GameAlreadyStartedError(RoboPowerError, RuntimeError):
    """Una partita può essere eseguita una sola volta."""

    def __init__(self):
        super().__init__("La partita è già stata avviata")


class PlayerError(RoboPowerError):
    """Errore attribuibile al giocatore `player_index` durante `decision`."""

    def __init__(self, player_index: int, decision: Decision, message: str):
        super().__init__(f"Giocatore {player_index} ({decision.value}): {message}")
        self.player_index = player_index
        self.decision = decision


class PlayerChoiceError(PlayerError):
    """La strategia ha restituito una scelta illegale."""


class InvalidDiscardError(PlayerChoiceError):

    def __init__(self, player_index: int, card_index: int, hand_size: int):
        super().__init__(
            player_index, Decision.DISCARD,
            f"indice di scarto {card_index} con {hand_size} carte in mano",
        )
        self.card_index = card_index


class InvalidSpyError(PlayerChoiceError):
    """Bersaglio della spia fuori intervallo oppure il giocatore stesso."""

    def __init__(self, player_index: int, spied_player_index: int, player_count: int):
        super().__init__(
            player_index, Decision.SPY,
            f"bersaglio spia {spied_player_index} con {player_count} giocatori",
        )
        self.spied_player_index = spied_player_index


class SpiedEmptyHandError(PlayerChoiceError):
    """Bersaglio della spia senza carte in mano (già eliminato)."""

    def __init__(self, player_index: int, spied_player_index: int):
        super().__init__(
            player_index, Decision.SPY,
            f"il giocatore {spied_player_index} non ha carte in mano",
        )
        self.spied_player_index = spied_player_index


class InvalidDuelError(PlayerChoiceError):

    def __init__(self, player_index: int, card_index: int, hand_size: int):
        super().__init__(
            player_index, Decision.DUEL,
            f"indice di duello {card_index} con {hand_size} carte in mano",
        )
        self.card_index = card_index


class PlayerThrownError(PlayerError):
    """Eccezione sollevata dalla logica della strategia; l'originale è in `__cause__`."""

    def __init__(self, player_index: int, decision: Decision, cause: Optional[BaseException] = None):
        detail = f"{type(cause).__name__}: {cause}" if cause is not None else "errore sconosciuto"
        super().__init__(player_index, decision, f"eccezione nella logica del giocatore ({detail})")
