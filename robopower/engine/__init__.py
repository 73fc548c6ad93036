"""
Robo Power Simulator - Game Engine
"""

from .cards import Card, FULL_DECK, DECK_SIZE, full_catalog, cards_matching, score_key
from .deck import Deck
from .errors import (
    Decision, RoboPowerError, DeckExhaustedError, GameConfigurationError,
    GameAlreadyStartedError, PlayerError, PlayerChoiceError, InvalidDiscardError,
    InvalidSpyError, SpiedEmptyHandError, InvalidDuelError, PlayerThrownError
)
from .duel import (
    LowestLost, Counteracted, Trapped, DoubleDuel, DuelRound, DuelResult,
    CardSupplier, FromCardList, duel, duel_round, is_trapping
)
from .events import (
    GameEvent, StartTurn, EndTurn, PlayerDraw, PlayerDiscard, Spied,
    PlayerEliminated, DiscardPileReshuffled, DuelRoundPlayed, DuelCompleted,
    GameLogger
)
from .game_state import PlayerState, GameState, GameResult
from .tracker import CardTracker
from .config import GameRules
from .agent import (
    Agent, AgentProfile, AgentFactory, RandomAgent, SimpleAgent,
    HeuristicAgent, InOrderAgent, CompositeAgent
)
from .game_engine import Game, RoboPowerEngine

__all__ = [
    'Card', 'FULL_DECK', 'DECK_SIZE', 'full_catalog', 'cards_matching', 'score_key',
    'Deck',
    'Decision', 'RoboPowerError', 'DeckExhaustedError', 'GameConfigurationError',
    'GameAlreadyStartedError', 'PlayerError', 'PlayerChoiceError', 'InvalidDiscardError',
    'InvalidSpyError', 'SpiedEmptyHandError', 'InvalidDuelError', 'PlayerThrownError',
    'LowestLost', 'Counteracted', 'Trapped', 'DoubleDuel', 'DuelRound', 'DuelResult',
    'CardSupplier', 'FromCardList', 'duel', 'duel_round', 'is_trapping',
    'GameEvent', 'StartTurn', 'EndTurn', 'PlayerDraw', 'PlayerDiscard', 'Spied',
    'PlayerEliminated', 'DiscardPileReshuffled', 'DuelRoundPlayed', 'DuelCompleted',
    'GameLogger',
    'PlayerState', 'GameState', 'GameResult', 'CardTracker', 'GameRules',
    'Agent', 'AgentProfile', 'AgentFactory', 'RandomAgent', 'SimpleAgent',
    'HeuristicAgent', 'InOrderAgent', 'CompositeAgent',
    'Game', 'RoboPowerEngine'
]
