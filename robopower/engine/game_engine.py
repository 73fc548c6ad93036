"""
Game Engine
===========
Motore di gioco che gestisce lo svolgimento di una partita di Robo Power:
distribuzione iniziale, ciclo di turno (pesca, scarto, spie, duello),
eliminazioni, piazzamenti ed emissione degli eventi.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, FrozenSet, List, Optional, Tuple
import random
import time
import uuid

from .agent import Agent
from .cards import Card, DECK_SIZE
from .config import GameRules
from .deck import Deck
from .duel import CardSupplier, DuelRound, duel
from .errors import (
    Decision,
    GameAlreadyStartedError,
    GameConfigurationError,
    InvalidDiscardError,
    InvalidDuelError,
    InvalidSpyError,
    PlayerThrownError,
    SpiedEmptyHandError,
)
from .events import (
    DiscardPileReshuffled,
    DuelCompleted,
    DuelRoundPlayed,
    EndTurn,
    GameEvent,
    GameLogger,
    PlayerDiscard,
    PlayerDraw,
    PlayerEliminated,
    Spied,
    StartTurn,
    describe_round_result,
)
from .game_state import GameResult, GameState, PlayerState
from .tracker import CardTracker


class _PlayerCardSupplier(CardSupplier):
    """Carte di duello dalla mano del giocatore, o dal mazzo quando la mano è vuota."""

    def __init__(self, game: "Game", player_index: int):
        self.game = game
        self.player_index = player_index

    def draw_card(self) -> Optional[Card]:
        player = self.game.state.players[self.player_index]
        if player.hand:
            return None

        card = self.game._draw_from_deck()
        player.cards_in_play.append(card)
        return card

    def choose_card(self, involved_players: FrozenSet[int], previous_rounds: List[DuelRound]) -> Card:
        return self.game._play_duel_card(self.player_index, involved_players, previous_rounds)


class Game:
    """
    Una singola partita tra 2-10 agenti.

    La partita può essere eseguita una sola volta con `run`.
    """

    def __init__(
        self,
        agents: List[Agent],
        rules: Optional[GameRules] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        deck: Optional[Deck] = None,
        parallel_decisions: bool = False,
        game_id: Optional[str] = None
    ):
        """
        Args:
            agents: Agenti nell'ordine ufficiale (l'indice è l'indice giocatore)
            rules: Regole della partita (default se omesse)
            seed: Seed per riproducibilità (ignorato se si passa `rng`)
            rng: Generatore casuale per mazzo, furti delle spie e seed degli agenti
            deck: Mazzo predefinito (test); se omesso si usa un mazzo mescolato
            parallel_decisions: Se True le scelte di duello di ogni round sono
                eseguite in parallelo su un pool di thread
            game_id: Identificativo della partita
        """
        self.rules = rules or GameRules()

        if not self.rules.min_players <= len(agents) <= self.rules.max_players:
            raise GameConfigurationError(
                f"Numero di giocatori non valido: {len(agents)} "
                f"(ammessi {self.rules.min_players}..{self.rules.max_players})"
            )
        if len({id(agent) for agent in agents}) != len(agents):
            raise GameConfigurationError("Lo stesso agente non può occupare più posti")

        self.rng = rng or random.Random(seed)
        deck = deck or Deck(rng=self.rng)

        if self.rules.starting_cards * len(agents) > deck.draw_pile_size:
            raise GameConfigurationError(
                f"Carte insufficienti per distribuire {self.rules.starting_cards} carte "
                f"a {len(agents)} giocatori"
            )

        game_id = game_id or str(uuid.uuid4())[:8]
        self.state = GameState(
            game_id=game_id,
            players=[PlayerState(player_index=i, name=agent.player_id) for i, agent in enumerate(agents)],
            deck=deck,
            logger=GameLogger(game_id),
        )

        # i tracker si registrano prima degli agenti, così gli agenti vedono
        # sempre la contabilità già aggiornata
        self.trackers = [CardTracker(self.state, i) for i in range(len(agents))]

        self.agents = list(agents)
        for i, agent in enumerate(self.agents):
            agent.set_seed(self.rng.getrandbits(32))
            agent.attach(i, self.state, self.trackers[i])

        self.parallel_decisions = parallel_decisions
        self.verbose = False
        self._suppliers = {i: _PlayerCardSupplier(self, i) for i in range(len(agents))}
        self._started = False

    @property
    def logger(self) -> GameLogger:
        return self.state.logger

    def on_event(self, callback: Callable[[GameEvent], None]):
        """Registra un osservatore degli eventi pubblici."""
        self.state.logger.on_event(callback)

    # ============================================
    # CICLO DI GIOCO
    # ============================================

    def run(self, max_turns: Optional[int] = None, verbose: bool = False) -> GameResult:
        """
        Gioca la partita fino alla fine.

        Args:
            max_turns: Limite di turni (default: quello delle regole)
            verbose: Se True, stampa lo svolgimento

        Returns:
            Il GameResult; `finished` è False se si è raggiunto il limite di turni
        """
        if self._started:
            raise GameAlreadyStartedError()
        self._started = True

        if max_turns is None:
            max_turns = self.rules.max_turns
        self.verbose = verbose

        state = self.state
        state.start_time = datetime.now()

        if verbose:
            print(f"\n{'='*50}")
            print(f"PARTITA {state.game_id}")
            print(f"Giocatori: {', '.join(p.name for p in state.players)}")
            print(f"{'='*50}\n")

        self._deal()

        executor = ThreadPoolExecutor(max_workers=state.player_count) if self.parallel_decisions else None
        try:
            while max_turns is None or state.turn_count < max_turns:
                state.turn_count += 1

                self._emit(StartTurn)
                self._check_invariants()

                self._draw()

                result = self._discard()
                if result is None:
                    result = self._duel(executor)
                if result is not None:
                    return self._finish(result)

                self._emit(EndTurn)
                state.up_player_index = state.next_player_index()
        finally:
            if executor is not None:
                executor.shutdown()

        return self._finish(GameResult(
            placements=state.compute_placements(),
            turn_count=state.turn_count,
            finished=False
        ))

    def _deal(self):
        """Distribuzione iniziale a giro, senza eventi."""
        for _ in range(self.rules.starting_cards):
            for player in self.state.players:
                card, previous_discard = self.state.deck.draw()
                assert previous_discard is None
                player.hand.append(card)

    def _draw(self):
        up = self.state.up_player_index
        card = self._draw_from_deck()
        self.state.players[up].hand.append(card)
        self._notify(up, self.agents[up].on_draw, card)

        self._emit(PlayerDraw)
        self._check_invariants()

    def _draw_from_deck(self) -> Card:
        card, previous_discard = self.state.deck.draw()
        if previous_discard is not None:
            self._emit(DiscardPileReshuffled, previous_discard=tuple(previous_discard))
        return card

    def _discard(self) -> Optional[GameResult]:
        up = self.state.up_player_index
        player = self.state.players[up]

        card_index = self._ask(up, Decision.DISCARD, self.agents[up].choose_discard)
        if not _is_index(card_index, len(player.hand)):
            raise InvalidDiscardError(up, card_index, len(player.hand))

        card = player.hand.pop(card_index)
        self.state.deck.discard(card)

        self._emit(PlayerDiscard, card=card)
        self._check_invariants()

        for _ in range(card.spy_count):
            result = self._spy()
            if result is not None:
                return result

        return None

    def _spy(self) -> Optional[GameResult]:
        state = self.state
        up = state.up_player_index

        target = self._ask(up, Decision.SPY, self.agents[up].choose_spy)
        if target == up or not _is_index(target, state.player_count):
            raise InvalidSpyError(up, target, state.player_count)

        victim = state.players[target]
        if victim.hand_size() == 0:
            raise SpiedEmptyHandError(up, target)

        card = victim.hand.pop(self.rng.randrange(len(victim.hand)))
        self.trackers[target].on_card_stolen(card, up)
        self._notify(target, self.agents[target].on_card_stolen, card, up)

        state.players[up].hand.append(card)
        self.trackers[up].on_receive_spy_card(card, target)
        self._notify(up, self.agents[up].on_receive_spy_card, card, target)

        remaining = len(victim.hand)
        self._emit(Spied, spied_player_index=target, remaining_cards=remaining)

        if remaining == 0:
            self._eliminate([target])
            if state.active_player_count == 1:
                return GameResult(placements=state.compute_placements(), turn_count=state.turn_count)

        self._check_invariants()
        return None

    def _duel(self, executor: Optional[ThreadPoolExecutor]) -> Optional[GameResult]:
        state = self.state
        involved = state.active_player_indices

        result = duel(
            {i: self._suppliers[i] for i in involved},
            on_round=lambda r: self._emit(DuelRoundPlayed, round=r),
            executor=executor,
        )

        # carte perse, Trap e Counteract negli scarti
        for cards in result.discarded_cards.values():
            state.deck.discard_all(cards)

        # carte trattenute e catturate tornano in fondo alla mano
        for i in involved:
            player = state.players[i]
            player.cards_in_play.clear()
            player.hand.extend(result.retained_cards.get(i, []))
            player.hand.extend(result.trapped_by(i))

        self._emit(DuelCompleted, result=result)

        eliminated = [i for i in involved if not state.players[i].is_active]
        game_result = None
        if eliminated:
            self._eliminate(eliminated)
            if state.active_player_count <= 1:
                # un solo superstite vince, nessuno = pareggio tra i duellanti
                game_result = GameResult(placements=state.compute_placements(), turn_count=state.turn_count)

        self._check_invariants(after_duel=True)
        return game_result

    def _play_duel_card(
        self,
        player_index: int,
        involved_players: FrozenSet[int],
        previous_rounds: List[DuelRound]
    ) -> Card:
        """Carta scelta dall'agente (o unica carta in mano), tolta dalla mano e messa in gioco."""
        player = self.state.players[player_index]
        assert player_index in involved_players

        if len(player.hand) == 1:
            card_index = 0
        else:
            agent = self.agents[player_index]
            card_index = self._ask(
                player_index, Decision.DUEL, agent.choose_duel, involved_players, previous_rounds
            )

        if not _is_index(card_index, len(player.hand)):
            raise InvalidDuelError(player_index, card_index, len(player.hand))

        card = player.hand.pop(card_index)
        player.cards_in_play.append(card)
        return card

    def _eliminate(self, player_indices: List[int]):
        self.state.elimination_order.append(list(player_indices))
        for i in player_indices:
            self.state.players[i].eliminated_at_turn = self.state.turn_count
            self._emit(PlayerEliminated, eliminated_player_index=i)

    def _finish(self, result: GameResult) -> GameResult:
        state = self.state
        state.result = result
        state.end_time = datetime.now()

        if self.verbose:
            print(f"\n{'='*50}")
            print("FINE PARTITA" if result.finished else f"PARTITA INTERROTTA dopo {result.turn_count} turni")
            if result.winner is not None:
                print(f"Vincitore: {state.players[result.winner].name} (giocatore {result.winner})")
            else:
                print(f"Pareggio: {sorted(result.winners)}")
            print(f"Turni: {result.turn_count}")
            print(f"{'='*50}\n")

        return result

    # ============================================
    # SUPPORTO
    # ============================================

    def _ask(self, player_index: int, decision: Decision, choose: Callable[..., Any], *args) -> Any:
        """Chiede una decisione all'agente, misurando il tempo e incapsulando le eccezioni."""
        player = self.state.players[player_index]
        start = time.perf_counter()
        try:
            return choose(*args)
        except Exception as exc:
            raise PlayerThrownError(player_index, decision, exc) from exc
        finally:
            player.total_logic_time += time.perf_counter() - start

    def _notify(self, player_index: int, callback: Callable[..., None], *args):
        self._ask(player_index, Decision.CALLBACK, callback, *args)

    def _emit(self, event_class, **data):
        event = event_class(
            turn_count=self.state.turn_count,
            up_player_index=self.state.up_player_index,
            **data
        )
        self.state.logger.log_event(event)

        if self.verbose:
            self._print_event(event)

    def _print_event(self, event: GameEvent):
        if isinstance(event, StartTurn):
            print(f"Turno {event.turn_count}: tocca a {self.state.up_player.name} "
                  f"({self.state.up_player.hand_size()} carte)")
        elif isinstance(event, DiscardPileReshuffled):
            print(f"  Scarti rimescolati ({len(event.previous_discard)} carte)")
        elif isinstance(event, PlayerDiscard):
            print(f"  Scarta {event.card}")
        elif isinstance(event, Spied):
            print(f"  Ruba una carta al giocatore {event.spied_player_index} "
                  f"(gliene restano {event.remaining_cards})")
        elif isinstance(event, DuelRoundPlayed):
            played = ", ".join(f"{i}: {card}" for i, card in event.round.played_cards.items())
            print(f"  Duello [{played}] -> {describe_round_result(event.round)}")
        elif isinstance(event, PlayerEliminated):
            print(f"  Giocatore {event.eliminated_player_index} eliminato")

    def _check_invariants(self, after_duel: bool = False):
        if __debug__:
            state = self.state
            logger = state.logger
            reshuffled = logger.count(DiscardPileReshuffled) > 0

            # carte totali costanti
            assert state.total_cards() == DECK_SIZE

            # almeno uno scarto e un duello per turno concluso, finché non si rimescola
            assert reshuffled or state.deck.discard_pile_size >= 2 * (state.turn_count - 1)

            # il giocatore di turno è ancora in gioco (dopo il duello può essere stato eliminato)
            assert after_duel or state.active_player_count == 0 or state.up_player.is_active

            assert logger.count(StartTurn) == state.turn_count
            assert logger.count(EndTurn) == max(state.turn_count - 1, 0)

            # ogni giocatore è attivo oppure è stato emesso PlayerEliminated
            assert state.active_player_count + logger.count(PlayerEliminated) == state.player_count


def _is_index(value: Any, size: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < size


class RoboPowerEngine:
    """Motore di gioco: crea e gioca partite con regole comuni."""

    def __init__(self, rules_path: Optional[Path] = None, rules: Optional[GameRules] = None):
        """
        Inizializza il motore di gioco.

        Args:
            rules_path: Percorso al file YAML delle regole (opzionale)
            rules: Regole già costruite; hanno la precedenza su `rules_path`
        """
        self.rules = rules or GameRules.from_yaml(str(rules_path) if rules_path else None)

    def create_game(
        self,
        agents: List[Agent],
        seed: Optional[int] = None,
        deck: Optional[Deck] = None,
        parallel_decisions: bool = False
    ) -> Game:
        """
        Crea una nuova partita.

        Args:
            agents: Agenti nell'ordine ufficiale
            seed: Seed per riproducibilità
            deck: Mazzo predefinito (opzionale)
            parallel_decisions: Scelte di duello in parallelo

        Returns:
            La partita, pronta per `run`
        """
        return Game(
            agents,
            rules=self.rules,
            seed=seed,
            deck=deck,
            parallel_decisions=parallel_decisions
        )

    def play_game(
        self,
        agents: List[Agent],
        seed: Optional[int] = None,
        verbose: bool = False,
        log_actions: bool = False,
        max_turns: Optional[int] = None,
        parallel_decisions: bool = False
    ) -> Tuple[GameState, Optional[GameLogger]]:
        """
        Gioca un'intera partita.

        Args:
            agents: Agenti nell'ordine ufficiale
            seed: Seed per riproducibilità
            verbose: Se True, stampa lo svolgimento
            log_actions: Se True, restituisce il log dettagliato
            max_turns: Limite di turni (default: quello delle regole)
            parallel_decisions: Scelte di duello in parallelo

        Returns:
            Tuple con lo stato finale del gioco (risultato in `state.result`) e
            opzionalmente il logger
        """
        game = self.create_game(agents, seed=seed, parallel_decisions=parallel_decisions)
        game.run(max_turns=max_turns, verbose=verbose)

        if log_actions:
            return game.state, game.logger
        return game.state, None
