"""
Game Rules
==========
Parametri della partita, con valori di default o caricati da YAML.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional
import os

import yaml

from .errors import GameConfigurationError


# Limiti fissi del regolamento; le regole possono solo restringerli
MIN_PLAYERS = 2
MAX_PLAYERS = 10


@dataclass(frozen=True)
class GameRules:
    """Regole configurabili della partita."""

    # Carte distribuite a ogni giocatore prima del primo turno
    starting_cards: int = 6

    # Numero di giocatori ammesso (estremi inclusi)
    min_players: int = MIN_PLAYERS
    max_players: int = MAX_PLAYERS

    # Limite di turni; None = nessun limite
    max_turns: Optional[int] = None

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "max_turns" and value is None:
                continue
            if not isinstance(value, int) or isinstance(value, bool):
                raise GameConfigurationError(f"Valore non valido per '{f.name}': {value!r}")
            if value < 1:
                raise GameConfigurationError(f"'{f.name}' deve essere positivo: {value}")

        if (self.min_players < MIN_PLAYERS or self.max_players > MAX_PLAYERS
                or self.min_players > self.max_players):
            raise GameConfigurationError(
                f"Intervallo giocatori non valido: {self.min_players}..{self.max_players}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameRules":
        """Crea le regole da un dizionario; le chiavi sconosciute sono ignorate."""
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def from_yaml(cls, path: Optional[str] = None) -> "GameRules":
        """
        Carica le regole da file YAML (sezione `rules` o radice del documento).
        Se il file non esiste si usano i default.
        """
        if not path or not os.path.exists(path):
            return cls()

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        rules = data.get("rules", data) if isinstance(data, dict) else None
        if not isinstance(rules, dict):
            raise GameConfigurationError(f"File regole non valido: {path}")

        return cls.from_dict(rules)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
