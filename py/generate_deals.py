import argparse
import json
import logging
import multiprocessing as mp
import os
import random
import sys
import time
from concurrent.futures import ProcessPoolExecutor

from deal_generator import DifficultyHint, GenerationDiagnostics, GeneratorOptions, generate_solvable_deal
from deal_shuffler import deal_unsolvable_layout
from klondike import Deal, RoomVariant
from solvability_oracle import solve

logger = logging.getLogger(__name__)


def generate_worker(args: tuple[int | None, DifficultyHint, RoomVariant]) -> tuple[Deal, GenerationDiagnostics]:
    """
    Worker function for parallel generation.

    Args:
        args: Tuple containing (seed, difficulty_hint, room_variant)
    """
    seed, difficulty_hint, room_variant = args
    options = GeneratorOptions(difficulty_hint=difficulty_hint, room_variant=room_variant, seed=seed)
    return generate_solvable_deal(options)


def generate_many(
    num_games: int,
    seed: int | None,
    difficulty_hint: DifficultyHint,
    room_variant: RoomVariant,
    num_processes: int | None = None,
    as_json: bool = False,
) -> None:
    """
    Generate deals in parallel and report statistics, or print each deal as a JSON line.

    Args:
        num_games: Number of deals to generate
        seed: Base seed; deal ``i`` uses ``seed + i``
        difficulty_hint: Layout used for each shuffle
        room_variant: Label carried on every deal
        num_processes: Number of processes to use (None = auto)
        as_json: Print one JSON object per deal instead of the summary
    """
    if num_games < 1:
        msg = f"Cannot generate {num_games} deals"
        raise ValueError(msg)
    if num_processes is None or num_processes <= 0:
        num_cpus = os.cpu_count() or 4
        num_processes = min(num_cpus, num_games)
    else:
        num_processes = min(num_processes, num_games)

    # Progress goes to stderr so JSON lines stay machine readable.
    print(f"Generating {num_games} deals using {num_processes} processes...", file=sys.stderr)
    start_time = time.time()

    worker_args = [
        (None if seed is None else seed + i, difficulty_hint, room_variant)
        for i in range(num_games)
    ]
    if num_processes == 1:
        results = _collect(map(generate_worker, worker_args), num_games, as_json)
    else:
        with ProcessPoolExecutor(max_workers=num_processes) as executor:
            results = _collect(executor.map(generate_worker, worker_args), num_games, as_json)
    completed = len(results)

    duration = time.time() - start_time
    if as_json:
        return

    degraded = sum(1 for _, diagnostics in results if diagnostics.degraded)
    repaired = sum(1 for _, diagnostics in results if diagnostics.repaired)
    mean_attempts = sum(diagnostics.attempts for _, diagnostics in results) / completed
    mean_ms = sum(diagnostics.elapsed_ms for _, diagnostics in results) / completed

    print(f"\nResults from {completed} deals:")
    print(f"Degraded rate: {degraded / completed * 100:.2f}% ({degraded}/{completed})")
    print(f"Repaired deals: {repaired}")
    print(f"Average attempts per deal: {mean_attempts:.2f}")
    print(f"Average generation time: {mean_ms:.1f} ms per deal")
    print(f"Time taken: {duration:.2f} seconds ({duration / completed:.2f} seconds per deal)")


def _collect(generated, num_games: int, as_json: bool) -> list[tuple[Deal, GenerationDiagnostics]]:
    results = []
    for deal, diagnostics in generated:
        results.append((deal, diagnostics))
        if as_json:
            print(json.dumps({"deal": deal.as_jsonable_dict(), "diagnostics": diagnostics.as_jsonable_dict()}))
        completed = len(results)
        if completed % max(1, num_games // 20) == 0 or completed == num_games:
            print(f"Completed {completed}/{num_games} deals...", end="\r", file=sys.stderr)
    return results


def check_unsolvable(num_games: int, seed: int | None) -> int:
    """Run the oracle over hostile layouts; returns how many it still managed to win."""
    rng = random.Random(seed)
    wins = 0
    for _ in range(num_games):
        result = solve(deal_unsolvable_layout(rng))
        wins += result.solvable
        logger.debug(f"Hostile layout: {result.reason.value}, {result.foundation_cards}/52 banked")
    print(f"Oracle won {wins}/{num_games} hostile layouts")
    return wins


def main() -> None:
    """Main entry point for the CLI application."""
    parser = argparse.ArgumentParser(description='Generate Klondike deals the solvability oracle can win')
    parser.add_argument('--games', type=int, default=1,
                        help='Number of deals to generate (default: 1)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Base seed for reproducible generation (default: none)')
    parser.add_argument('--difficulty', choices=[hint.value for hint in DifficultyHint],
                        default=DifficultyHint.NORMAL.value,
                        help='Layout used before probing (default: normal)')
    parser.add_argument('--room', choices=[variant.value for variant in RoomVariant],
                        default=RoomVariant.STANDARD.value,
                        help='Room variant carried on each deal (default: standard)')
    parser.add_argument('--processes', type=int, default=0,
                        help='Number of processes to use (default: 0 = auto)')
    parser.add_argument('--json', action='store_true',
                        help='Print each deal and its diagnostics as a JSON line')
    parser.add_argument('--verbose', action='store_true',
                        help='Log generation details')
    parser.add_argument('--check-unsolvable', action='store_true',
                        help='Run the oracle over hostile debug layouts instead of generating')

    args = parser.parse_args()
    if args.games < 1:
        parser.error(f"--games must be at least 1, got {args.games}")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.check_unsolvable:
        check_unsolvable(args.games, args.seed)
        return

    difficulty_hint = DifficultyHint(args.difficulty)
    room_variant = RoomVariant(args.room)
    if args.games == 1:
        # For a single deal, just run directly (no parallelization needed)
        deal, diagnostics = generate_worker((args.seed, difficulty_hint, room_variant))
        if args.json:
            print(json.dumps({"deal": deal.as_jsonable_dict(), "diagnostics": diagnostics.as_jsonable_dict()}))
        else:
            status = "degraded" if diagnostics.degraded else "winnable"
            print(f"Deal {status} after {diagnostics.attempts} attempts in {diagnostics.elapsed_ms:.1f} ms")
    else:
        # Spawned workers re-import the modules instead of forking the parent.
        mp.set_start_method('spawn', force=True)
        generate_many(
            num_games=args.games,
            seed=args.seed,
            difficulty_hint=difficulty_hint,
            room_variant=room_variant,
            num_processes=args.processes,
            as_json=args.json,
        )


if __name__ == "__main__":
    main()
