"""Exceptions raised while loading or propagating a puzzle."""

from typing import Any, Optional


class SudokuError(Exception):
    """Base class for every error raised by the sudoku package."""


class LoadError(SudokuError, ValueError):
    """Malformed input: wrong line count or length, or a non-digit character."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        if line is not None:
            location = f"line {line + 1}" if column is None else f"line {line + 1}, column {column + 1}"
            message = f"{message} ({location})"
        super().__init__(message)
        self.line = line
        self.column = column


class PropagationError(SudokuError):
    """Fatal error while draining the update queue; the run is aborted."""

    def __init__(self, message: str, position: Any, digit: int):
        super().__init__(message)
        self.position = position
        self.digit = digit


class ConflictError(PropagationError):
    """The digit being assigned already appears in the cell's row, column or block."""

    def __init__(self, position: Any, digit: int):
        super().__init__(
            f"Value {digit} conflicts with a duplicate value in the same row/column/block "
            f"(row {position.row}, column {position.column}, block {position.block})",
            position,
            digit,
        )


class FixedCellOverwriteError(PropagationError):
    """An assignment targets a cell that already holds a different digit."""

    def __init__(self, position: Any, digit: int, existing: int):
        super().__init__(
            f"Cell at row {position.row}, column {position.column} already holds {existing}; "
            f"refusing to write {digit}",
            position,
            digit,
        )
        self.existing = existing
