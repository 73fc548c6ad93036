"""
Agent System
============
Implementa le strategie che giocano a Robo Power con diversi profili
comportamentali, più la factory che le crea a partire da profili YAML.

Una strategia risponde a tre decisioni: quale carta scartare (indice nella
mano), a chi rubare una carta quando scarta una spia (indice giocatore), e
quale carta giocare in un round di duello (indice nella mano). Può leggere lo
stato pubblico della partita e il proprio CardTracker, ma non modificarli.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, List, Optional
import random

import yaml

from .cards import Card
from .duel import DuelRound, is_trapping
from .game_state import GameState
from .tracker import CardTracker


@dataclass
class AgentProfile:
    """Profilo comportamentale dell'agente."""
    name: str
    description: str

    # Classe di strategia: random, simple, heuristic, in_order
    strategy: str = "heuristic"

    # Tratti (usati dalla strategia euristica)
    risk_tolerance: float = 0.5
    trap_eagerness: float = 0.5
    counteract_caution: float = 0.5
    spy_preference: float = 0.5

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AgentProfile':
        """Crea un profilo da dizionario."""
        traits = data.get('traits', {})

        return cls(
            name=data.get('name', 'Unknown'),
            description=data.get('description', ''),
            strategy=data.get('strategy', 'heuristic'),
            risk_tolerance=traits.get('risk_tolerance', 0.5),
            trap_eagerness=traits.get('trap_eagerness', 0.5),
            counteract_caution=traits.get('counteract_caution', 0.5),
            spy_preference=traits.get('spy_preference', 0.5)
        )


class Agent:
    """
    Base di tutte le strategie.

    L'agente viene collegato a una partita dal motore (`attach`), che gli
    assegna indice, stato pubblico e CardTracker. Le sottoclassi implementano
    `choose_discard`, `choose_spy` e `choose_duel`, e possono ridefinire le
    notifiche private `on_draw`, `on_card_stolen` e `on_receive_spy_card`.
    """

    def __init__(self, player_id: str, profile: Optional[AgentProfile] = None):
        self.player_id = player_id
        self.profile = profile or AgentProfile(name=type(self).__name__, description="")
        self.random_gen = random.Random()

        self.player_index: Optional[int] = None
        self.game_state: Optional[GameState] = None
        self.tracker: Optional[CardTracker] = None

    def set_seed(self, seed: int):
        """Imposta il seed per riproducibilità."""
        self.random_gen.seed(seed)

    def attach(self, player_index: int, game_state: GameState, tracker: CardTracker):
        """Collega l'agente a una nuova partita."""
        self.player_index = player_index
        self.game_state = game_state
        self.tracker = tracker
        self.reset()

    def reset(self):
        """Resetta lo stato interno per una nuova partita."""

    @property
    def hand(self) -> List[Card]:
        """Copia della mano corrente."""
        return list(self.game_state.players[self.player_index].hand)

    def opponents(self) -> List[int]:
        """Avversari ancora in gioco."""
        return [i for i in self.game_state.active_player_indices if i != self.player_index]

    # ============================================
    # DECISIONI
    # ============================================

    def choose_discard(self) -> int:
        """Indice della carta da scartare; se è una spia seguono chiamate a `choose_spy`."""
        raise NotImplementedError

    def choose_spy(self) -> int:
        """Indice del giocatore (attivo, diverso da sé) a cui rubare una carta a caso."""
        raise NotImplementedError

    def choose_duel(self, involved_players: FrozenSet[int], previous_rounds: List[DuelRound]) -> int:
        """
        Indice della carta da giocare nel round tra `involved_players`.

        Non viene chiamata se la mano ha una sola carta (giocata d'ufficio) o
        nessuna (si pesca dal mazzo).
        """
        raise NotImplementedError

    # ============================================
    # NOTIFICHE PRIVATE
    # ============================================

    def on_draw(self, card: Card):
        """Pesca di inizio turno."""

    def on_card_stolen(self, card: Card, by_player_index: int):
        """`by_player_index` ha rubato `card` a questo giocatore."""

    def on_receive_spy_card(self, card: Card, from_player_index: int):
        """Questo giocatore ha rubato `card` a `from_player_index`."""

    def __repr__(self):
        return f"{type(self).__name__}({self.player_id})"


class RandomAgent(Agent):
    """Sceglie ogni decisione in modo uniformemente casuale."""

    def choose_discard(self) -> int:
        return self.random_gen.randrange(len(self.hand))

    def choose_spy(self) -> int:
        return self.random_gen.choice(self.opponents())

    def choose_duel(self, involved_players: FrozenSet[int], previous_rounds: List[DuelRound]) -> int:
        return self.random_gen.randrange(len(self.hand))


class InOrderAgent(Agent):
    """Gioca e scarta sempre la prima carta, ruba al primo avversario attivo. Utile nei test."""

    def choose_discard(self) -> int:
        return 0

    def choose_spy(self) -> int:
        return self.opponents()[0]

    def choose_duel(self, involved_players: FrozenSet[int], previous_rounds: List[DuelRound]) -> int:
        return 0


class SimpleAgent(Agent):
    """
    Regole fisse:
    - scarta la carta con forza più bassa (poi Counteract, poi la prima Trap)
    - in duello gioca Counteract, poi la carta normale più alta, poi Trap
    - ruba al giocatore con la carta nota più alta, altrimenti a caso
    """

    def choose_discard(self) -> int:
        hand = self.hand
        scored = [i for i, card in enumerate(hand) if card.score is not None]
        if scored:
            return min(scored, key=lambda i: hand[i].score)
        return _first_index(hand, lambda c: c.is_counteract, default=0)

    def choose_duel(self, involved_players: FrozenSet[int], previous_rounds: List[DuelRound]) -> int:
        hand = self.hand
        counteract = _first_index(hand, lambda c: c.is_counteract)
        if counteract is not None:
            return counteract

        normal = [i for i, card in enumerate(hand) if card.is_normal]
        if normal:
            return max(normal, key=lambda i: hand[i].score)

        return _first_index(hand, lambda c: c.is_trap, default=0)

    def choose_spy(self) -> int:
        opponents = self.opponents()
        known = self.tracker.known_cards

        best_player = None
        best_score = None
        for i in opponents:
            scores = [card.score for card in known.get(i, []) if card.score is not None]
            if scores and (best_score is None or max(scores) > best_score):
                best_player, best_score = i, max(scores)

        if best_player is not None:
            return best_player
        return self.random_gen.choice(opponents)


class HeuristicAgent(SimpleAgent):
    """
    Estende SimpleAgent con euristiche guidate dal profilo e dal CardTracker.

    - risk_tolerance: quanto rischia giocando carte basse in duello
    - trap_eagerness: propensione a giocare Trap nei doppi duelli
    - counteract_caution: prudenza quando ci sono Counteract non contabilizzati
    - spy_preference: propensione a scartare spie
    """

    # Forza oltre la quale una carta nota vale il furto
    VALUABLE_SCORE = Card.RAM.score

    def choose_discard(self) -> int:
        hand = self.hand
        spy = _first_index(hand, lambda c: c.spy_count > 0)
        if spy is not None:
            non_spies = sum(1 for card in hand if card.spy_count == 0)

            # ultima carta non spia: meglio tenersi quella
            if non_spies == 1:
                return spy

            if self._valuable_target() is not None:
                return spy

            if self.random_gen.random() < self.profile.spy_preference * 0.5:
                return spy

        return super().choose_discard()

    def choose_spy(self) -> int:
        target = self._valuable_target()
        if target is not None:
            return target
        return super().choose_spy()

    def choose_duel(self, involved_players: FrozenSet[int], previous_rounds: List[DuelRound]) -> int:
        # risolvendo Trap multiple vince la carta più alta
        if is_trapping(previous_rounds):
            return super().choose_duel(involved_players, previous_rounds)

        hand = self.hand

        trap = _first_index(hand, lambda c: c.is_trap)
        if trap is not None and previous_rounds:
            if self.random_gen.random() < self.profile.trap_eagerness:
                return trap

        normal = sorted(
            (i for i, card in enumerate(hand) if card.is_normal),
            key=lambda i: hand[i].score
        )

        # con Counteract in circolazione non vale la pena sacrificare le carte migliori
        if normal and self.tracker.count_unaccounted_for(Card.COUNTERACT) > 0:
            if self.random_gen.random() < self.profile.counteract_caution * 0.3:
                return normal[0]

        # la carta normale più bassa che probabilmente non è la più bassa del duello
        opponents_count = max(1, len(involved_players) - 1)
        required = (1.0 - self.profile.risk_tolerance) ** (1.0 / opponents_count)
        for i in normal:
            if self._probability_not_lowest(hand[i]) >= required:
                return i

        if trap is not None and self.random_gen.random() < self.profile.trap_eagerness:
            return trap

        return super().choose_duel(involved_players, previous_rounds)

    def _probability_not_lowest(self, card: Card) -> float:
        """Frazione delle carte non contabilizzate con forza minore di `card`."""
        unknown = self.tracker.unknown_cards()
        total = sum(unknown.values())
        if total == 0:
            return 1.0

        weaker = sum(
            count for other, count in unknown.items()
            if other.score is not None and other.score < card.score
        )
        return weaker / total

    def _valuable_target(self) -> Optional[int]:
        """Avversario la cui mano è tutta nota e contiene solo carte di valore."""
        known = self.tracker.known_cards
        best = None
        best_rank = None

        for i in self.opponents():
            cards = known.get(i, [])
            if not cards or len(cards) != self.game_state.hand_size(i):
                continue

            weakest = min(cards, key=lambda c: c.rank)
            if weakest.score is not None and weakest.score < self.VALUABLE_SCORE:
                continue
            if best_rank is None or weakest.rank > best_rank:
                best, best_rank = i, weakest.rank

        return best


# Strategie opzionali: restituiscono None per delegare alla successiva
OptionalDiscardStrategy = Callable[[Agent], Optional[int]]
OptionalSpyStrategy = Callable[[Agent], Optional[int]]
OptionalDuelStrategy = Callable[[Agent, FrozenSet[int], List[DuelRound]], Optional[int]]


class CompositeAgent(Agent):
    """
    Combina strategie opzionali: per ogni decisione vince la prima che
    restituisce un valore diverso da None, altrimenti decide l'agente `base`.
    """

    def __init__(
        self,
        base: Agent,
        discard_strategies: Optional[List[OptionalDiscardStrategy]] = None,
        spy_strategies: Optional[List[OptionalSpyStrategy]] = None,
        duel_strategies: Optional[List[OptionalDuelStrategy]] = None
    ):
        super().__init__(base.player_id, base.profile)
        self.base = base
        self.discard_strategies = discard_strategies or []
        self.spy_strategies = spy_strategies or []
        self.duel_strategies = duel_strategies or []

    def set_seed(self, seed: int):
        super().set_seed(seed)
        self.base.set_seed(seed)

    def attach(self, player_index: int, game_state: GameState, tracker: CardTracker):
        super().attach(player_index, game_state, tracker)
        self.base.attach(player_index, game_state, tracker)

    def choose_discard(self) -> int:
        for strategy in self.discard_strategies:
            choice = strategy(self)
            if choice is not None:
                return choice
        return self.base.choose_discard()

    def choose_spy(self) -> int:
        for strategy in self.spy_strategies:
            choice = strategy(self)
            if choice is not None:
                return choice
        return self.base.choose_spy()

    def choose_duel(self, involved_players: FrozenSet[int], previous_rounds: List[DuelRound]) -> int:
        for strategy in self.duel_strategies:
            choice = strategy(self, involved_players, previous_rounds)
            if choice is not None:
                return choice
        return self.base.choose_duel(involved_players, previous_rounds)

    def on_draw(self, card: Card):
        self.base.on_draw(card)

    def on_card_stolen(self, card: Card, by_player_index: int):
        self.base.on_card_stolen(card, by_player_index)

    def on_receive_spy_card(self, card: Card, from_player_index: int):
        self.base.on_receive_spy_card(card, from_player_index)


def _first_index(hand: List[Card], predicate: Callable[[Card], bool], default: Optional[int] = None) -> Optional[int]:
    return next((i for i, card in enumerate(hand) if predicate(card)), default)


STRATEGIES: Dict[str, type] = {
    "random": RandomAgent,
    "simple": SimpleAgent,
    "heuristic": HeuristicAgent,
    "in_order": InOrderAgent,
}


class AgentFactory:
    """Factory per creare agenti con profili specifici."""

    def __init__(self, profiles_path: Optional[Path] = None):
        self.profiles: Dict[str, AgentProfile] = {}

        if profiles_path and profiles_path.exists():
            self._load_profiles(profiles_path)
        else:
            self._create_default_profiles()

    def _load_profiles(self, path: Path):
        """Carica i profili dal file YAML."""
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        for profile_id, profile_data in data.get('profiles', {}).items():
            profile = AgentProfile.from_dict(profile_data)
            if profile.strategy not in STRATEGIES:
                raise ValueError(f"Strategia '{profile.strategy}' del profilo '{profile_id}' non valida. "
                                 f"Disponibili: {list(STRATEGIES.keys())}")
            self.profiles[profile_id] = profile

    def _create_default_profiles(self):
        """Crea profili di default se nessun file è fornito."""
        self.profiles = {
            "balanced": AgentProfile(
                name="Bilanciato",
                description="Strategia equilibrata"
            ),
            "aggressive": AgentProfile(
                name="Aggressivo",
                description="Rischia carte basse e gioca Trap appena può",
                risk_tolerance=0.8,
                trap_eagerness=0.9,
                counteract_caution=0.2,
                spy_preference=0.7
            ),
            "cautious": AgentProfile(
                name="Prudente",
                description="Gioca carte alte e teme i Counteract",
                risk_tolerance=0.2,
                trap_eagerness=0.3,
                counteract_caution=0.9,
                spy_preference=0.3
            ),
            "simple": AgentProfile(
                name="Semplice",
                description="Regole fisse: scarta la più bassa, gioca la più alta",
                strategy="simple"
            ),
            "random": AgentProfile(
                name="Casuale",
                description="Gioca a caso",
                strategy="random"
            )
        }

    def create_agent(self, player_id: str, profile_name: str) -> Agent:
        """Crea un agente con il profilo specificato."""
        if profile_name not in self.profiles:
            raise ValueError(f"Profilo '{profile_name}' non trovato. "
                             f"Disponibili: {list(self.profiles.keys())}")

        profile = self.profiles[profile_name]
        return STRATEGIES[profile.strategy](player_id, profile)

    def list_profiles(self) -> List[str]:
        """Restituisce la lista dei profili disponibili."""
        return list(self.profiles.keys())
