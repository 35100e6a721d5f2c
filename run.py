"""CLI entrypoint: load a grid (or a puzzle dataset), run propagation, and report fill counts."""

import argparse
import csv
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from solver import solve_puzzle
from src.sudoku.errors import LoadError, PropagationError, SudokuError
from src.sudoku.loader import load_grid, load_puzzles
from src.utils.trace import reset_tracer

DEFAULT_INPUT = "sudoku.txt"
DATASET_SUFFIXES = (".csv", ".parquet", ".json", ".jsonl")


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Fill in a sudoku grid by constraint propagation")
    parser.add_argument(
        "input",
        type=Path,
        nargs="?",
        default=None,
        help=f"9-line grid file, puzzle dataset, or directory of datasets (default: $SUDOKU_PATH or {DEFAULT_INPUT})",
    )
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write per-puzzle results CSV")
    parser.add_argument("--trace", type=Path, default=None, help="Optional path to write the propagation trace CSV")
    parser.add_argument("--quiet", action="store_true", help="Do not echo progress lines")
    return parser.parse_args(argv)


def resolve_input(path: Optional[Path]) -> Path:
    if path is not None:
        return path
    return Path(os.environ.get("SUDOKU_PATH", DEFAULT_INPUT))


def write_results_csv(results: List[Dict[str, Any]], output_path: Path) -> None:
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["id", "filled", "notes_remaining", "status"])

        for r in results:
            writer.writerow([r["id"], r["filled"], r["notes_remaining"], r["status"]])


def run_single(path: Path, quiet: bool = False, trace_path: Optional[Path] = None) -> Dict[str, Any]:
    """Solve one 9-line grid file, echoing progress lines. Propagation errors are raised."""
    tracer = reset_tracer(echo=not quiet)
    grid = load_grid(str(path))
    try:
        result = solve_puzzle(grid, tracer)
    finally:
        if trace_path:
            tracer.to_csv(trace_path)

    if quiet:
        for line in result.summary_lines():
            print(line)
    return {
        "id": path.stem,
        "filled": result.cells_filled,
        "notes_remaining": result.notes_count,
        "status": "solved" if result.solved else "stalled",
    }


def run_batch(puzzles: List[Dict[str, Any]], trace_path: Optional[Path] = None) -> List[Dict[str, Any]]:
    """Solve each puzzle independently; a failing puzzle is recorded and the batch continues."""
    results = []
    tracer = None

    for puzzle in puzzles:
        tracer = reset_tracer()
        puzzle_id = puzzle.get("id", "unknown")

        try:
            result = solve_puzzle(puzzle, tracer)
            status = "solved" if result.solved else "stalled"
            filled, notes_remaining = result.cells_filled, result.notes_count
        except LoadError as e:
            print(f"ERROR: Invalid puzzle {puzzle_id}: {e}")
            status, filled, notes_remaining = "invalid", -1, -1
        except PropagationError as e:
            print(f"ERROR: Propagation aborted for puzzle {puzzle_id}: {e}")
            status, filled, notes_remaining = "conflict", -1, -1

        results.append({
            "id": puzzle_id,
            "filled": filled,
            "notes_remaining": notes_remaining,
            "status": status,
        })
        print(f"{puzzle_id}: {status} ({filled} of 81 cells, {notes_remaining} note marks)")

    if trace_path and tracer is not None:
        tracer.to_csv(trace_path)
    return results


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    path = resolve_input(args.input)

    try:
        if path.is_dir():
            puzzles = []
            for file_path in sorted(path.iterdir()):
                if file_path.suffix in DATASET_SUFFIXES:
                    puzzles.extend(load_puzzles(str(file_path)))
            results = run_batch(puzzles, args.trace)
        elif path.suffix in DATASET_SUFFIXES:
            results = run_batch(load_puzzles(str(path)), args.trace)
        else:
            results = [run_single(path, quiet=args.quiet, trace_path=args.trace)]
    except (SudokuError, FileNotFoundError) as e:
        print(f"ERROR: {e}")
        return 1

    if args.output:
        write_results_csv(results, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
