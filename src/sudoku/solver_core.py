"""Constraint propagation for 9x9 sudoku: peer exclusion, naked singles and row/column single possibilities."""

from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Tuple

from .errors import ConflictError, FixedCellOverwriteError
from .model import (
    SIZE,
    Assign,
    Candidates,
    Grid,
    PendingWrite,
    Position,
    ReplaceNotes,
    SolveResult,
    block_positions,
    column_positions,
    peers,
    row_positions,
)
from src.utils.trace import Tracer, get_tracer

NoteEntry = Tuple[Position, Candidates]


def read_cell_value(grid: Grid, position: Position, tracer: Optional[Tracer] = None) -> Candidates:
    """Committed value of a cell; unassigned (or missing) cells contribute the empty set."""
    value = grid.values.get(position)
    if value is None:
        (tracer or get_tracer()).log_uninitialized_read(position)
        return Candidates.empty()
    return value


def _read_group_union(grid: Grid, positions: Iterable[Position], tracer: Optional[Tracer]) -> Candidates:
    union = Candidates.empty()
    for position in positions:
        union |= read_cell_value(grid, position, tracer)
    return union


def read_row_union(grid: Grid, row: int, tracer: Optional[Tracer] = None) -> Candidates:
    return _read_group_union(grid, row_positions(row), tracer)


def read_column_union(grid: Grid, column: int, tracer: Optional[Tracer] = None) -> Candidates:
    return _read_group_union(grid, column_positions(column), tracer)


def read_block_union(grid: Grid, row: int, column: int, tracer: Optional[Tracer] = None) -> Candidates:
    return _read_group_union(grid, block_positions(row, column), tracer)


def read_union(grid: Grid, row: int, column: int, tracer: Optional[Tracer] = None) -> Candidates:
    """Peer-exclusion mask: every digit committed in the cell's row, column or block."""
    return (
        read_row_union(grid, row, tracer)
        | read_column_union(grid, column, tracer)
        | read_block_union(grid, row, column, tracer)
    )


def read_row_notes(grid: Grid, row: int) -> List[NoteEntry]:
    return [(p, grid.notes[p]) for p in row_positions(row) if p in grid.notes]


def read_column_notes(grid: Grid, column: int) -> List[NoteEntry]:
    return [(p, grid.notes[p]) for p in column_positions(column) if p in grid.notes]


class Propagator:
    """
    Drives one propagation run over a grid.

    Writes are queued (FIFO) and only take effect when the queue is drained by
    `update`; `mark` and the single-possibility scan never touch the grid directly.
    """

    def __init__(self, grid: Grid, tracer: Optional[Tracer] = None):
        self.grid = grid
        self.tracer = tracer or get_tracer()
        self.queue: Deque[PendingWrite] = deque()
        self.update_count = 0

    def mark(self, position: Position) -> bool:
        """Narrow one cell's notes against its peers. Returns True when a write was queued."""
        current = self.grid.notes.get(position)
        if self.grid.is_assigned(position) or not current:
            # Already solved, or an empty note left behind by an upstream error.
            return False

        narrowed = current - read_union(self.grid, position.row, position.column, self.tracer)
        if narrowed == current:
            return False

        if narrowed.is_single:
            self.queue.append(Assign(position, narrowed.digit))
        else:
            self.queue.append(ReplaceNotes(position, narrowed))
        return True

    def mark_all(self) -> int:
        """Initial sweep over every unassigned cell."""
        self.tracer.log_mark_phase()
        unassigned = [p for p, value in self.grid.values.items() if not value]
        for position in unassigned:
            self.mark(position)
        self.tracer.log_marked(len(self.queue))
        return len(self.queue)

    def update(self) -> None:
        """Apply every queued write, then re-mark the peers of each newly assigned cell once."""
        affected: Dict[Position, None] = {}

        self.tracer.log_update_cycle(self.update_count)
        self.update_count += 1

        while self.queue:
            write = self.queue.popleft()
            if isinstance(write, Assign) and write.position in self.grid.notes:
                self._apply_assign(write, affected)
                if self.grid.is_solved:
                    self.tracer.log_solved()
                    self.queue.clear()
            elif write.position in self.grid.notes:
                self.grid.replace_notes(write.position, write.candidates)
            else:
                self.tracer.log_stale_write(write.position)

        for position in affected:
            self.mark(position)

    def _apply_assign(self, write: Assign, affected: Dict[Position, None]) -> None:
        position = write.position
        digit = Candidates.single(write.digit)
        current = self.grid.values.get(position, Candidates.empty())

        if current == digit:
            return
        if current:
            self.tracer.log_conflict(position, write.digit, "value was already written to")
            raise FixedCellOverwriteError(position, write.digit, current.digit)
        if read_union(self.grid, position.row, position.column, self.tracer) & digit:
            self.tracer.log_conflict(position, write.digit, "duplicate in row/column/block")
            raise ConflictError(position, write.digit)

        self.grid.assign(position, write.digit)
        self.tracer.log_assign(position, write.digit)

        for peer in peers(position):
            if peer in self.grid.notes:
                affected[peer] = None

    def drain(self) -> None:
        while self.queue:
            self.update()

    def find_single_possibilities(self) -> bool:
        """Row pass, then column pass when the row pass found nothing."""
        rows = [read_row_notes(self.grid, row) for row in range(SIZE)]
        if self._scan_groups(rows, "row"):
            return True
        columns = [read_column_notes(self.grid, column) for column in range(SIZE)]
        return self._scan_groups(columns, "column")

    def _scan_groups(self, groups: List[List[NoteEntry]], kind: str) -> bool:
        progress = False
        for notes in groups:
            seen_once = Candidates.empty()
            seen_twice = Candidates.empty()
            for _, candidates in notes:
                seen_twice |= seen_once & candidates
                seen_once |= candidates
            singles = seen_once - seen_twice
            if not singles:
                continue

            self.tracer.log_single(kind, notes[0][0], singles)

            matches = [p for p, candidates in notes if candidates.issuperset(singles)]
            if len(matches) != 1:
                # Several once-only digits spread over different cells: nothing is queued.
                continue

            target = matches[0]
            if singles.is_single:
                self.queue.append(Assign(target, singles.digit))
                progress = True
            elif self.grid.notes[target] != singles:
                self.queue.append(ReplaceNotes(target, singles))
                progress = True
        return progress

    def result(self) -> SolveResult:
        return SolveResult(
            cells_filled=self.grid.cells_filled,
            notes_count=self.grid.notes_count,
            grid=self.grid.to_rows(),
            solved=self.grid.is_solved,
        )

    def run(self) -> SolveResult:
        """
        Initial marking, drain, then alternate single-possibility scans and drains
        until a scan makes no progress. Propagation errors abort the run.
        """
        self.mark_all()
        self.drain()

        while self.find_single_possibilities():
            self.drain()

        result = self.result()
        self.tracer.log_summary(result.summary_lines())
        return result


def solve(grid: Grid, tracer: Optional[Tracer] = None) -> SolveResult:
    """
    Propagate constraints over `grid` in place and return the final counters.
    Raises ConflictError / FixedCellOverwriteError for inconsistent puzzles.
    """
    return Propagator(grid, tracer).run()
