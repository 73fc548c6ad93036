"""
Robo Power Simulator - Main Package
"""

from .simulator import Simulator, SimulationResult, BatchResult
from .engine import (
    Card, Deck, GameState, GameResult, GameRules, Game, RoboPowerEngine,
    Agent, AgentProfile, AgentFactory, CardTracker
)

__version__ = "1.0.0"

__all__ = [
    'Simulator', 'SimulationResult', 'BatchResult',
    'Card', 'Deck', 'GameState', 'GameResult', 'GameRules', 'Game', 'RoboPowerEngine',
    'Agent', 'AgentProfile', 'AgentFactory', 'CardTracker'
]
