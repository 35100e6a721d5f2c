"""Top-level solve interface.

Expose `solve_puzzle(puzzle)` that accepts a pre-built Grid, a 9x9 list of digits,
an 81-character puzzle string, a dataset record (`{"puzzle": ...}`) or a path to
a 9-line grid file.
"""

import os
from pathlib import Path
from typing import Any, Optional

from src.sudoku import solver_core
from src.sudoku.loader import load_grid, parse_grid_string
from src.sudoku.model import CELL_COUNT, Grid, SolveResult
from src.utils.trace import Tracer


def to_grid(puzzle: Any) -> Grid:
    if isinstance(puzzle, Grid):
        return puzzle
    if isinstance(puzzle, dict):
        return parse_grid_string(str(puzzle.get("puzzle", "")))
    if isinstance(puzzle, Path):
        return load_grid(str(puzzle))
    if isinstance(puzzle, str):
        text = puzzle.strip()
        if len(text) == CELL_COUNT and not os.path.exists(text):
            return parse_grid_string(text)
        return load_grid(text)
    if isinstance(puzzle, (list, tuple)):
        return Grid.from_digits(puzzle)
    raise TypeError("solve_puzzle expects a Grid, digit rows, puzzle string, record or path")


def solve_puzzle(puzzle: Any, tracer: Optional[Tracer] = None) -> SolveResult:
    """
    Propagate constraints over a puzzle and return the fill summary.
    Raises LoadError for malformed input and PropagationError subclasses for
    inconsistent puzzles.
    """
    result = solver_core.solve(to_grid(puzzle), tracer)
    if isinstance(puzzle, dict) and "id" in puzzle:
        result.puzzle_id = str(puzzle["id"])
    return result


__all__ = ["solve_puzzle", "to_grid"]
