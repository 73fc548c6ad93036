"""
Robo Power Simulator - CLI
==========================
Esegue batch di partite tra profili di agenti e stampa i KPI di
bilanciamento, oppure una singola partita con il log completo degli eventi.
"""

import argparse
import json
from datetime import datetime
from pathlib import Path

import robopower
from robopower import Simulator


CONFIG_DIR = Path(robopower.__file__).parent / "config"

SEPARATOR = "=" * 60


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Robo Power Simulator")

    parser.add_argument("--players", "-p", nargs="+", default=["balanced", "simple"],
                        help="Profili dei giocatori, uno per slot (default: balanced simple)")
    parser.add_argument("--games", "-n", type=int, default=100,
                        help="Numero di partite del batch (default: 100)")
    parser.add_argument("--seed", "-s", type=int, default=None,
                        help="Seed iniziale; la partita i usa seed + i")
    parser.add_argument("--concurrency", "-j", type=int, default=1,
                        help="Partite in parallelo su processi separati (default: 1)")
    parser.add_argument("--max-turns", type=int, default=None,
                        help="Limite di turni per partita")
    parser.add_argument("--no-shuffle", action="store_true",
                        help="Mantiene i posti nell'ordine degli slot")
    parser.add_argument("--rules", type=Path, default=CONFIG_DIR / "rules.yaml",
                        help="File YAML delle regole")
    parser.add_argument("--profiles-file", type=Path, default=CONFIG_DIR / "agent_profiles.yaml",
                        help="File YAML dei profili degli agenti")
    parser.add_argument("--output", "-o", default=None,
                        help="File JSON in cui salvare risultati o log")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Stampa lo svolgimento delle partite")
    parser.add_argument("--profiles", action="store_true",
                        help="Elenca i profili disponibili ed esce")
    parser.add_argument("--log", action="store_true",
                        help="Gioca una sola partita e stampa tutti gli eventi")

    return parser


def _save_json(path: str, data):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def _banner(*lines: str):
    print(f"\n{SEPARATOR}")
    for line in lines:
        print(line)
    print(f"{SEPARATOR}\n")


def _print_log(events):
    """Stampa gli eventi di una partita in forma leggibile."""
    print("📜 EVENTI:\n")
    for event in events:
        kind = event.get("type", "")
        data = event.get("data", {})

        if kind == "start_turn":
            print(f"--- Turno {event.get('turn')} (giocatore {event.get('up_player')}) ---")
        elif kind == "discard_pile_reshuffled":
            print(f"   🔀 Scarti rimescolati ({len(data.get('previous_discard', []))} carte)")
        elif kind == "player_discard":
            print(f"   🗑️  Scarta: {data.get('card')}")
        elif kind == "spied":
            print(f"   🕵️  Ruba al giocatore {data.get('spied_player')} "
                  f"(gliene restano {data.get('remaining_cards')})")
        elif kind == "duel_round":
            played = ", ".join(f"{i}: {card}" for i, card in data.get("played_cards", {}).items())
            print(f"   ⚔️  {played} ➜ {data.get('result')}")
        elif kind == "duel":
            for capturer, by_player in data.get("trapped", {}).items():
                count = sum(len(cards) for cards in by_player.values())
                print(f"   🪤 Il giocatore {capturer} cattura {count} carte")
        elif kind == "player_eliminated":
            print(f"   ❌ Giocatore {data.get('eliminated_player')} eliminato")


def _run_single(sim: Simulator, args):
    _banner("PARTITA SINGOLA", f"Giocatori: {', '.join(args.players)}")

    result, events = sim.run_single_game(
        args.players, args.seed,
        shuffle_seats=not args.no_shuffle,
        max_turns=args.max_turns,
        log_actions=True,
        verbose=args.verbose
    )
    _print_log(events)

    print(f"\n🏁 Esito: {result.outcome} dopo {result.turn_count} turni")
    if result.winner_slot is not None:
        print(f"   Vincitore: {args.players[result.winner_slot]} (slot {result.winner_slot})")
    if result.tied_slots:
        print(f"   Pareggio tra: {', '.join(args.players[s] for s in result.tied_slots)}")
    if result.error_message:
        print(f"   Errore: {result.error_message}")

    if args.output:
        _save_json(args.output, {
            "timestamp": datetime.now().isoformat(),
            "players": args.players,
            "seed": args.seed,
            "outcome": result.outcome,
            "winner_slot": result.winner_slot,
            "tied_slots": result.tied_slots,
            "placements": result.placements,
            "turn_count": result.turn_count,
            "events": events
        })
        print(f"\n✅ Log salvato in: {args.output}")


def _print_report(batch, players, shuffled: bool):
    kpis = batch.kpis

    balance = kpis.get("balance", {})
    print("📊 BILANCIAMENTO:")
    for slot, profile in enumerate(players):
        print(f"  {profile} (slot {slot}): "
              f"vittorie {balance.get('win_rate_by_slot', {}).get(slot, 0)*100:.1f}%, "
              f"pareggi {balance.get('tie_rate_by_slot', {}).get(slot, 0)*100:.1f}%, "
              f"piazzamento medio {balance.get('avg_placement_by_slot', {}).get(slot, 0):.2f}")
    if shuffled:
        for seat, rate in balance.get("win_rate_by_seat", {}).items():
            print(f"  Posto {seat}: vittorie {rate*100:.1f}%")
    print(f"  Balance Score: {balance.get('balance_score', 0)*100:.1f}%")

    length = kpis.get("game_length", {})
    print("\n🎮 DURATA PARTITE:")
    print(f"  Turni medi: {length.get('avg_turns', 0):.1f} (mediana {length.get('median_turns', 0)})")
    print(f"  Min/Max: {length.get('min_turns', 0)} / {length.get('max_turns', 0)}")
    print(f"  Non concluse: {length.get('unfinished_rate', 0)*100:.1f}%")

    if kpis.get("errors", {}).get("error_rate"):
        print("\n⚠️ ERRORI:")
        for slot, count in batch.invalid_choices.items():
            print(f"  Scelte illegali di {players[slot]}: {count} "
                  f"(es. {batch.invalid_choice_examples.get(slot)})")
        for slot, count in batch.player_errors.items():
            print(f"  Eccezioni di {players[slot]}: {count} "
                  f"(es. {batch.player_error_examples.get(slot)})")
        if batch.engine_errors:
            print(f"  Errori del motore: {batch.engine_errors} (es. {batch.engine_error_example})")

    performance = kpis.get("performance", {})
    print("\n⏱️ PRESTAZIONI:")
    print(f"  Durata media partita: {performance.get('avg_game_duration_ms', 0):.2f} ms")
    for slot, seconds in performance.get("logic_time_by_slot", {}).items():
        print(f"  Tempo nella logica di {players[slot]}: {seconds:.3f}s")


def _run_batch(sim: Simulator, args):
    _banner(
        "ROBO POWER SIMULATOR",
        *(f"Slot {slot}: {profile}" for slot, profile in enumerate(args.players)),
        f"Partite: {args.games}"
    )

    batch = sim.run_batch(
        args.players,
        args.games,
        args.seed,
        concurrency=args.concurrency,
        shuffle_seats=not args.no_shuffle,
        max_turns=args.max_turns
    )

    _banner("RISULTATI")
    _print_report(batch, args.players, shuffled=not args.no_shuffle)

    if args.output:
        _save_json(args.output, {
            "timestamp": datetime.now().isoformat(),
            "config": {
                "players": args.players,
                "games": args.games,
                "seed": args.seed,
                "concurrency": args.concurrency,
                "max_turns": args.max_turns,
                "shuffle_seats": not args.no_shuffle
            },
            "kpis": batch.kpis,
            "games": [
                {
                    "game_id": r.game_id,
                    "seed": r.seed,
                    "outcome": r.outcome,
                    "winner_slot": r.winner_slot,
                    "tied_slots": r.tied_slots,
                    "turns": r.turn_count
                }
                for r in batch.results
            ]
        })
        print(f"\n✅ Risultati salvati in: {args.output}")


def main():
    args = _build_parser().parse_args()
    sim = Simulator(args.profiles_file, rules_path=args.rules)

    if args.profiles:
        print("\nProfili disponibili:")
        for name in sim.agent_factory.list_profiles():
            profile = sim.agent_factory.profiles[name]
            print(f"  - {name} [{profile.strategy}]: {profile.description}")
        return

    if args.log:
        _run_single(sim, args)
    else:
        _run_batch(sim, args)

    print(f"\n{SEPARATOR}\n")


if __name__ == "__main__":
    main()
