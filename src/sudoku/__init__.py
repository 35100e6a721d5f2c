"""Constraint propagation solver for 9x9 sudoku puzzles."""

from .errors import (
    ConflictError,
    FixedCellOverwriteError,
    LoadError,
    PropagationError,
    SudokuError,
)
from .model import Assign, Candidates, Grid, Position, ReplaceNotes, SolveResult
from .loader import load_grid, load_puzzles, parse_grid, parse_grid_string
from .solver_core import Propagator, solve

__all__ = [
    "Assign",
    "Candidates",
    "ConflictError",
    "FixedCellOverwriteError",
    "Grid",
    "LoadError",
    "Position",
    "PropagationError",
    "Propagator",
    "ReplaceNotes",
    "SolveResult",
    "SudokuError",
    "load_grid",
    "load_puzzles",
    "parse_grid",
    "parse_grid_string",
    "solve",
]
