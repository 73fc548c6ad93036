"""
Simulator - Sistema di simulazione batch e analisi KPI
"""

from typing import List, Dict, Any, Optional, Tuple
from dataclasses import dataclass, field, asdict
from pathlib import Path
from datetime import datetime
from concurrent.futures import ProcessPoolExecutor, as_completed
import random
import statistics

from .engine import (
    RoboPowerEngine, AgentFactory, GameRules,
    PlayerError, PlayerChoiceError
)


# Esiti possibili di una partita
OUTCOME_WINNER = "winner"
OUTCOME_TIED = "tied"
OUTCOME_UNFINISHED = "unfinished"
OUTCOME_INVALID_CHOICE = "invalid_choice"
OUTCOME_PLAYER_ERROR = "player_error"
OUTCOME_ENGINE_ERROR = "engine_error"


@dataclass
class SimulationResult:
    """
    Risultato di una singola simulazione.

    Gli "slot" sono le posizioni della formazione richiesta (lineup); i "posti"
    (seat) sono gli indici giocatore nella partita, che possono essere
    mescolati a ogni partita.
    """
    game_id: str
    seed: Optional[int]
    lineup: List[str]
    seat_slots: List[int]  # posto -> slot
    outcome: str
    winner_slot: Optional[int] = None
    winner_seat: Optional[int] = None
    tied_slots: List[int] = field(default_factory=list)
    placements: Dict[int, int] = field(default_factory=dict)  # slot -> piazzamento
    turn_count: int = 0
    error_slot: Optional[int] = None
    error_message: Optional[str] = None
    logic_time: Dict[int, float] = field(default_factory=dict)  # slot -> secondi
    duration_ms: float = 0.0


@dataclass
class BatchResult:
    """Risultato aggregato di un batch di simulazioni."""
    total_games: int
    lineup: List[str]
    results: List[SimulationResult] = field(default_factory=list)

    wins: Dict[int, int] = field(default_factory=dict)
    ties: Dict[int, int] = field(default_factory=dict)
    seat_wins: Dict[int, int] = field(default_factory=dict)
    unfinished: int = 0
    turn_histogram: Dict[int, int] = field(default_factory=dict)

    invalid_choices: Dict[int, int] = field(default_factory=dict)
    invalid_choice_examples: Dict[int, str] = field(default_factory=dict)
    player_errors: Dict[int, int] = field(default_factory=dict)
    player_error_examples: Dict[int, str] = field(default_factory=dict)
    engine_errors: int = 0
    engine_error_example: Optional[str] = None

    logic_time: Dict[int, float] = field(default_factory=dict)

    # KPI calcolati
    kpis: Dict[str, Any] = field(default_factory=dict)

    def add(self, result: SimulationResult):
        """Aggiunge il risultato completo di una partita ai contatori."""
        self.results.append(result)

        if result.outcome == OUTCOME_WINNER:
            _increment(self.wins, result.winner_slot)
            _increment(self.seat_wins, result.winner_seat)
        elif result.outcome == OUTCOME_TIED:
            for slot in result.tied_slots:
                _increment(self.ties, slot)
        elif result.outcome == OUTCOME_UNFINISHED:
            self.unfinished += 1
        elif result.outcome == OUTCOME_INVALID_CHOICE:
            _increment(self.invalid_choices, result.error_slot)
            self.invalid_choice_examples.setdefault(result.error_slot, result.error_message)
        elif result.outcome == OUTCOME_PLAYER_ERROR:
            _increment(self.player_errors, result.error_slot)
            self.player_error_examples.setdefault(result.error_slot, result.error_message)
        elif result.outcome == OUTCOME_ENGINE_ERROR:
            self.engine_errors += 1
            if self.engine_error_example is None:
                self.engine_error_example = result.error_message

        if result.outcome in (OUTCOME_WINNER, OUTCOME_TIED, OUTCOME_UNFINISHED):
            _increment(self.turn_histogram, result.turn_count)

        for slot, seconds in result.logic_time.items():
            self.logic_time[slot] = self.logic_time.get(slot, 0.0) + seconds

    @property
    def completed_games(self) -> int:
        return len(self.results)


def _increment(counter: Dict[int, int], key: int):
    counter[key] = counter.get(key, 0) + 1


def _run_game_worker(
    profiles_path: Optional[str],
    rules: Dict[str, Any],
    lineup: List[str],
    seed: Optional[int],
    shuffle_seats: bool,
    max_turns: Optional[int]
) -> SimulationResult:
    """Esegue una partita in un processo separato (argomenti e risultato serializzabili)."""
    simulator = Simulator(
        Path(profiles_path) if profiles_path else None,
        rules=GameRules.from_dict(rules)
    )
    result, _ = simulator.run_single_game(lineup, seed, shuffle_seats=shuffle_seats, max_turns=max_turns)
    return result


class Simulator:
    """Simula partite in batch e calcola KPI."""

    def __init__(
        self,
        profiles_path: Optional[Path] = None,
        rules_path: Optional[Path] = None,
        rules: Optional[GameRules] = None
    ):
        self.profiles_path = profiles_path
        self.agent_factory = AgentFactory(profiles_path)
        self.engine = RoboPowerEngine(rules_path, rules=rules)

    def run_single_game(
        self,
        lineup: List[str],
        seed: Optional[int] = None,
        shuffle_seats: bool = True,
        max_turns: Optional[int] = None,
        log_actions: bool = False,
        verbose: bool = False
    ) -> Tuple[SimulationResult, Optional[List[Dict[str, Any]]]]:
        """
        Esegue una singola partita.

        Args:
            lineup: Profili degli agenti, uno per slot
            seed: Seed per riproducibilità (posti e partita)
            shuffle_seats: Se True l'ordine dei posti è casuale
            max_turns: Limite di turni (default: quello delle regole)
            log_actions: Se True restituisce anche gli eventi della partita
            verbose: Se True stampa lo svolgimento

        Returns:
            Tuple con il risultato e opzionalmente la lista degli eventi
        """
        start = datetime.now()

        seat_slots = list(range(len(lineup)))
        if shuffle_seats:
            random.Random(seed).shuffle(seat_slots)

        agents = [
            self.agent_factory.create_agent(f"{lineup[slot]}#{slot}", lineup[slot])
            for slot in seat_slots
        ]
        game = self.engine.create_game(agents, seed=seed)

        result = SimulationResult(
            game_id=game.state.game_id,
            seed=seed,
            lineup=list(lineup),
            seat_slots=seat_slots,
            outcome=OUTCOME_ENGINE_ERROR
        )

        try:
            game_result = game.run(max_turns=max_turns, verbose=verbose)
        except PlayerChoiceError as e:
            result.outcome = OUTCOME_INVALID_CHOICE
            result.error_slot = seat_slots[e.player_index]
            result.error_message = str(e)
        except PlayerError as e:
            result.outcome = OUTCOME_PLAYER_ERROR
            result.error_slot = seat_slots[e.player_index]
            result.error_message = str(e)
        except Exception as e:
            # errore interno: conta solo per questa partita, il batch prosegue
            result.outcome = OUTCOME_ENGINE_ERROR
            result.error_message = f"{type(e).__name__}: {e}"
        else:
            result.placements = {seat_slots[seat]: place for seat, place in game_result.placements.items()}
            if not game_result.finished:
                result.outcome = OUTCOME_UNFINISHED
            elif game_result.winner is not None:
                result.outcome = OUTCOME_WINNER
                result.winner_seat = game_result.winner
                result.winner_slot = seat_slots[game_result.winner]
            else:
                result.outcome = OUTCOME_TIED
                result.tied_slots = sorted(seat_slots[seat] for seat in game_result.tied_players)

        result.turn_count = game.state.turn_count
        result.logic_time = {
            seat_slots[p.player_index]: p.total_logic_time for p in game.state.players
        }
        result.duration_ms = (datetime.now() - start).total_seconds() * 1000

        if log_actions:
            return result, game.logger.to_dicts()
        return result, None

    def run_batch(
        self,
        lineup: List[str],
        num_games: int = 1000,
        base_seed: Optional[int] = None,
        concurrency: int = 1,
        shuffle_seats: bool = True,
        max_turns: Optional[int] = None
    ) -> BatchResult:
        """
        Esegue un batch di simulazioni.

        Con `concurrency` > 1 le partite girano in processi separati; ogni
        risultato viene aggregato nel processo principale solo a partita
        conclusa.
        """
        print(f"Simulando {num_games} partite: {' vs '.join(lineup)}")

        for profile in lineup:
            if profile not in self.agent_factory.profiles:
                raise ValueError(f"Profilo '{profile}' non trovato. "
                                 f"Disponibili: {self.agent_factory.list_profiles()}")

        batch = BatchResult(total_games=num_games, lineup=list(lineup))
        seeds = [(base_seed + i) if base_seed is not None else None for i in range(num_games)]
        progress_step = max(1, num_games // 10)
        start = datetime.now()

        if concurrency <= 1:
            for i, seed in enumerate(seeds):
                result, _ = self.run_single_game(lineup, seed, shuffle_seats=shuffle_seats, max_turns=max_turns)
                batch.add(result)
                self._print_progress(i + 1, num_games, progress_step)
        else:
            profiles_path = str(self.profiles_path) if self.profiles_path else None
            rules = self.engine.rules.to_dict()

            with ProcessPoolExecutor(max_workers=concurrency) as executor:
                futures = [
                    executor.submit(
                        _run_game_worker, profiles_path, rules, list(lineup), seed, shuffle_seats, max_turns
                    )
                    for seed in seeds
                ]
                for done, future in enumerate(as_completed(futures), start=1):
                    batch.add(future.result())
                    self._print_progress(done, num_games, progress_step)

        elapsed = (datetime.now() - start).total_seconds()
        print(f"  Completato in {elapsed:.2f}s")

        batch.kpis = self.calculate_kpis(batch)
        return batch

    @staticmethod
    def _print_progress(done: int, total: int, step: int):
        if done % step == 0 or done == total:
            print(f"  {done}/{total} partite completate")

    def calculate_kpis(self, batch: BatchResult) -> Dict[str, Any]:
        """Calcola tutti i KPI dal batch di risultati."""
        results = batch.results
        n = len(results)

        if n == 0:
            return {}

        slots = range(len(batch.lineup))
        win_rates = {slot: batch.wins.get(slot, 0) / n for slot in slots}
        seats = range(len(batch.lineup))

        played = [r for r in results if r.outcome in (OUTCOME_WINNER, OUTCOME_TIED, OUTCOME_UNFINISHED)]
        turns = [r.turn_count for r in played]
        tied_games = sum(1 for r in results if r.outcome == OUTCOME_TIED)

        avg_place = {}
        for slot in slots:
            places = [r.placements[slot] for r in played if slot in r.placements]
            avg_place[slot] = statistics.mean(places) if places else 0

        return {
            "balance": {
                "win_rate_by_slot": win_rates,
                "tie_rate_by_slot": {slot: batch.ties.get(slot, 0) / n for slot in slots},
                "win_rate_by_seat": {seat: batch.seat_wins.get(seat, 0) / n for seat in seats},
                "tie_rate": tied_games / n,
                "avg_placement_by_slot": avg_place,
                # 1 = tutti gli slot vincono allo stesso modo
                "balance_score": 1 - (max(win_rates.values()) - min(win_rates.values()))
            },
            "game_length": {
                "avg_turns": statistics.mean(turns) if turns else 0,
                "median_turns": statistics.median(turns) if turns else 0,
                "turns_std": statistics.stdev(turns) if len(turns) > 1 else 0,
                "min_turns": min(turns) if turns else 0,
                "max_turns": max(turns) if turns else 0,
                "unfinished_rate": batch.unfinished / n
            },
            "errors": {
                "invalid_choices_by_slot": dict(batch.invalid_choices),
                "player_errors_by_slot": dict(batch.player_errors),
                "engine_errors": batch.engine_errors,
                "error_rate": (
                    sum(batch.invalid_choices.values()) + sum(batch.player_errors.values()) + batch.engine_errors
                ) / n
            },
            "performance": {
                "avg_game_duration_ms": statistics.mean([r.duration_ms for r in results]),
                "logic_time_by_slot": dict(batch.logic_time),
                "total_games": n
            }
        }

    @staticmethod
    def to_dict(batch: BatchResult, include_games: bool = False) -> Dict[str, Any]:
        """Converte il batch in dizionario serializzabile in JSON."""
        data = asdict(batch)
        if not include_games:
            data.pop("results")
        return data
