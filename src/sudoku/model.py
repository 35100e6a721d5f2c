"""Sudoku propagation data structures: coordinates, candidate sets, pending writes and grid state."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Union

from .errors import LoadError

SIZE = 9
CELL_COUNT = SIZE * SIZE
DIGITS = range(1, SIZE + 1)
ALL_BITS = (1 << SIZE) - 1


@dataclass(frozen=True)
class Position:
    """
    Address of one of the 81 cells. Two positions are equal iff their linear
    `cell` index matches; row, column and block are derived from it.
    """

    cell: int
    row: int = field(init=False, compare=False)
    column: int = field(init=False, compare=False)
    block: int = field(init=False, compare=False)

    def __post_init__(self) -> None:
        if not 0 <= self.cell < CELL_COUNT:
            raise ValueError(f"Cell index out of range: {self.cell}")
        row, column = divmod(self.cell, SIZE)
        # Frozen dataclass: derived fields are set through object.__setattr__.
        object.__setattr__(self, "row", row)
        object.__setattr__(self, "column", column)
        object.__setattr__(self, "block", 3 * (row // 3) + column // 3)

    @classmethod
    def at(cls, row: int, column: int) -> "Position":
        if not (0 <= row < SIZE and 0 <= column < SIZE):
            raise ValueError(f"Row/column out of range: ({row}, {column})")
        return cls(SIZE * row + column)

    def __str__(self) -> str:
        return f"[Position: Cell={self.cell}, Column={self.column}, Row={self.row}, Block={self.block}]"


def all_positions() -> List[Position]:
    return [Position(cell) for cell in range(CELL_COUNT)]


def row_positions(row: int) -> List[Position]:
    return [Position.at(row, column) for column in range(SIZE)]


def column_positions(column: int) -> List[Position]:
    return [Position.at(row, column) for row in range(SIZE)]


def block_positions(row: int, column: int) -> List[Position]:
    top = 3 * (row // 3)
    left = 3 * (column // 3)
    return [Position.at(top + i, left + j) for i in range(3) for j in range(3)]


def peers(position: Position) -> List[Position]:
    """Every other cell sharing a row, column or block with `position`, without duplicates."""
    seen: Dict[Position, None] = {}
    for group in (
        row_positions(position.row),
        column_positions(position.column),
        block_positions(position.row, position.column),
    ):
        for other in group:
            if other != position:
                seen[other] = None
    return list(seen)


@dataclass(frozen=True)
class Candidates:
    """
    A set over the digits 1-9 stored as nine flags; digit `d` is bit `d - 1`.
    The empty set doubles as the "unassigned" value of a cell.
    """

    bits: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.bits <= ALL_BITS:
            raise ValueError(f"Invalid candidate bits: {self.bits:#x}")

    @classmethod
    def empty(cls) -> "Candidates":
        return cls(0)

    @classmethod
    def full(cls) -> "Candidates":
        return cls(ALL_BITS)

    @classmethod
    def single(cls, digit: int) -> "Candidates":
        if digit not in DIGITS:
            raise ValueError(f"Digit out of range: {digit}")
        return cls(1 << (digit - 1))

    @classmethod
    def of(cls, digits: Iterable[int]) -> "Candidates":
        bits = 0
        for digit in digits:
            bits |= cls.single(digit).bits
        return cls(bits)

    def __or__(self, other: "Candidates") -> "Candidates":
        return Candidates(self.bits | other.bits)

    def __and__(self, other: "Candidates") -> "Candidates":
        return Candidates(self.bits & other.bits)

    def __sub__(self, other: "Candidates") -> "Candidates":
        # Peer exclusion: keep our flags, clear every flag set in `other`.
        return Candidates(self.bits & ~other.bits)

    def __len__(self) -> int:
        return bin(self.bits).count("1")

    def __bool__(self) -> bool:
        return self.bits != 0

    def __iter__(self) -> Iterator[int]:
        for digit in DIGITS:
            if self.bits & (1 << (digit - 1)):
                yield digit

    def __contains__(self, digit: object) -> bool:
        return isinstance(digit, int) and digit in DIGITS and bool(self.bits & (1 << (digit - 1)))

    def issuperset(self, other: "Candidates") -> bool:
        return self.bits & other.bits == other.bits

    @property
    def is_single(self) -> bool:
        return len(self) == 1

    @property
    def digit(self) -> int:
        """The digit of a single-flag set."""
        if not self.is_single:
            raise ValueError(f"Not a single digit: {self}")
        return self.bits.bit_length()

    def __str__(self) -> str:
        return "".join(str(d) for d in self) or "-"


@dataclass(frozen=True)
class Assign:
    """Pending write: commit `digit` to `position`."""

    position: Position
    digit: int


@dataclass(frozen=True)
class ReplaceNotes:
    """Pending write: overwrite the candidate notes of `position`."""

    position: Position
    candidates: Candidates


PendingWrite = Union[Assign, ReplaceNotes]


@dataclass
class Grid:
    """
    Committed values for all 81 cells plus candidate notes for the unresolved ones.
    A position is in `notes` exactly when its value is the empty set.
    """

    values: Dict[Position, Candidates] = field(default_factory=dict)
    notes: Dict[Position, Candidates] = field(default_factory=dict)
    cells_filled: int = 0
    notes_count: int = 0

    @classmethod
    def from_digits(cls, rows: Sequence[Sequence[int]]) -> "Grid":
        """Seed a grid from 9 rows of 9 digits (0 = blank). No conflict checking happens here."""
        if len(rows) != SIZE:
            raise LoadError(f"Expected {SIZE} rows, got {len(rows)}")
        grid = cls()
        for row, digits in enumerate(rows):
            if len(digits) != SIZE:
                raise LoadError(f"Row {row} has {len(digits)} cells, expected {SIZE}", line=row)
            for column, digit in enumerate(digits):
                if not isinstance(digit, int) or not 0 <= digit <= SIZE:
                    raise LoadError(f"Invalid digit {digit!r}", line=row, column=column)
                position = Position.at(row, column)
                if digit == 0:
                    grid.values[position] = Candidates.empty()
                    grid.notes[position] = Candidates.full()
                    grid.notes_count += SIZE
                else:
                    grid.values[position] = Candidates.single(digit)
                    grid.cells_filled += 1
        return grid

    def is_assigned(self, position: Position) -> bool:
        return bool(self.values.get(position))

    def assign(self, position: Position, digit: int) -> None:
        note = self.notes.pop(position)
        self.notes_count -= len(note)
        self.values[position] = Candidates.single(digit)
        self.cells_filled += 1

    def replace_notes(self, position: Position, candidates: Candidates) -> None:
        self.notes_count -= len(self.notes[position]) - len(candidates)
        self.notes[position] = candidates

    @property
    def is_solved(self) -> bool:
        return self.cells_filled == CELL_COUNT

    def to_rows(self) -> List[List[int]]:
        rows = [[0] * SIZE for _ in range(SIZE)]
        for position, value in self.values.items():
            if value:
                rows[position.row][position.column] = value.digit
        return rows


@dataclass
class SolveResult:
    cells_filled: int
    notes_count: int
    grid: List[List[int]]
    solved: bool = False
    puzzle_id: Optional[str] = None

    def summary_lines(self) -> List[str]:
        return [
            f"{self.cells_filled} of {CELL_COUNT} cells were filled in",
            f"{self.notes_count} note marks remain",
        ]
