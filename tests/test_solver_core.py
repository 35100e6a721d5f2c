"""Unit and scenario tests for the propagation engine."""

from collections import deque

import pytest

from src.sudoku import solver_core
from src.sudoku.errors import ConflictError, FixedCellOverwriteError
from src.sudoku.loader import parse_grid, parse_grid_string
from src.sudoku.model import Assign, Candidates, Grid, Position, ReplaceNotes, all_positions
from src.utils.trace import Tracer


def _blank_grid() -> Grid:
    return Grid.from_digits([[0] * 9 for _ in range(9)])


def _action_types(tracer):
    return [step.action_type for step in tracer.steps]


def _assert_invariant(grid):
    for position in all_positions():
        assert grid.is_assigned(position) != (position in grid.notes)


def test_read_unions(one_blank_row_lines):
    grid = parse_grid(one_blank_row_lines)
    assert list(solver_core.read_row_union(grid, 0)) == [1, 2, 3, 4, 5, 6, 7, 8]
    assert list(solver_core.read_column_union(grid, 8)) == []
    assert list(solver_core.read_block_union(grid, 1, 7)) == [7, 8]
    assert list(solver_core.read_union(grid, 4, 2)) == [3]


def test_read_notes_lists_only_unassigned(one_blank_row_lines):
    grid = parse_grid(one_blank_row_lines)
    row = solver_core.read_row_notes(grid, 0)
    assert row == [(Position.at(0, 8), Candidates.full())]
    column = solver_core.read_column_notes(grid, 3)
    assert [p.row for p, _ in column] == list(range(1, 9))


def test_missing_cell_reads_as_empty_with_warning(one_blank_row_lines):
    grid = parse_grid(one_blank_row_lines)
    del grid.values[Position.at(0, 0)]
    tracer = Tracer()

    union = solver_core.read_row_union(grid, 0, tracer)

    assert 1 not in union
    assert _action_types(tracer) == ["uninitialized_read"]


def test_mark_queues_narrowed_notes_without_touching_grid():
    grid = parse_grid(["100000000"] + ["000000000"] * 8)
    p = solver_core.Propagator(grid, Tracer())
    target = Position.at(0, 5)

    assert p.mark(target)
    assert list(p.queue) == [ReplaceNotes(target, Candidates.full() - Candidates.single(1))]
    assert grid.notes[target] == Candidates.full()
    assert grid.notes_count == 80 * 9


def test_mark_queues_assignment_for_naked_single(one_blank_row_lines):
    grid = parse_grid(one_blank_row_lines)
    p = solver_core.Propagator(grid, Tracer())

    assert p.mark(Position.at(0, 8))
    assert list(p.queue) == [Assign(Position.at(0, 8), 9)]


def test_mark_is_noop_for_assigned_or_empty_cells(one_blank_row_lines):
    grid = parse_grid(one_blank_row_lines)
    p = solver_core.Propagator(grid, Tracer())
    empty = Position.at(5, 5)
    grid.replace_notes(empty, Candidates.empty())

    assert not p.mark(Position.at(0, 0))
    assert not p.mark(empty)
    assert not p.queue


def test_mark_without_change_queues_nothing():
    grid = _blank_grid()
    p = solver_core.Propagator(grid, Tracer())
    assert p.mark_all() == 0
    assert not p.queue


def test_one_blank_in_row_filled_after_first_cycle(one_blank_row_lines):
    grid = parse_grid(one_blank_row_lines)
    p = solver_core.Propagator(grid, Tracer())

    p.mark_all()
    p.update()

    assert grid.values[Position.at(0, 8)] == Candidates.single(9)
    assert Position.at(0, 8) not in grid.notes
    assert grid.cells_filled == 9


def test_duplicate_digit_in_block_aborts_with_conflict(duplicate_in_block_lines):
    grid = parse_grid(duplicate_in_block_lines)
    tracer = Tracer()

    with pytest.raises(ConflictError) as excinfo:
        solver_core.solve(grid, tracer)

    assert excinfo.value.position == Position.at(0, 8)
    assert excinfo.value.digit == 9
    # Nine givens plus the first of the two competing 9s.
    assert grid.cells_filled == 10
    assert "conflict" in _action_types(tracer)
    assert "summary" not in _action_types(tracer)


def test_row_scan_assigns_only_place_for_digit():
    grid = _blank_grid()
    without_seven = Candidates.full() - Candidates.single(7)
    target = Position.at(0, 4)
    for column in range(9):
        position = Position.at(0, column)
        grid.replace_notes(position, Candidates.of([2, 7]) if position == target else without_seven)
    p = solver_core.Propagator(grid, Tracer())

    assert p.find_single_possibilities()
    assert list(p.queue) == [Assign(target, 7)]

    p.drain()
    assert grid.values[target] == Candidates.single(7)
    assert grid.cells_filled == 1


def test_column_scan_runs_when_rows_find_nothing():
    grid = _blank_grid()
    target = Position.at(5, 0)
    for row in range(9):
        if row != 5:
            grid.replace_notes(Position.at(row, 0), Candidates.full() - Candidates.single(3))
    tracer = Tracer()
    p = solver_core.Propagator(grid, tracer)

    assert p.find_single_possibilities()
    assert list(p.queue) == [Assign(target, 3)]
    assert tracer.steps[-1].message.startswith("Found a single column possibility!")


def test_scan_skips_group_when_singles_span_cells():
    grid = _blank_grid()
    grid.replace_notes(Position.at(0, 0), Candidates.full() - Candidates.single(2))
    grid.replace_notes(Position.at(0, 1), Candidates.full() - Candidates.single(1))
    for column in range(2, 9):
        grid.replace_notes(Position.at(0, column), Candidates.full() - Candidates.of([1, 2]))
    tracer = Tracer()
    p = solver_core.Propagator(grid, tracer)

    assert not p.find_single_possibilities()
    assert not p.queue
    assert _action_types(tracer) == ["single"]
    assert tracer.steps[0].value == "12"


def test_scan_narrows_cell_holding_several_singles():
    grid = _blank_grid()
    target = Position.at(0, 0)
    for column in range(1, 9):
        grid.replace_notes(Position.at(0, column), Candidates.full() - Candidates.of([1, 2]))
    p = solver_core.Propagator(grid, Tracer())

    assert p.find_single_possibilities()
    assert list(p.queue) == [ReplaceNotes(target, Candidates.of([1, 2]))]

    p.drain()
    assert grid.notes[target] == Candidates.of([1, 2])
    # Nothing left to narrow: a second scan reports no progress.
    assert not p.find_single_possibilities()


def test_stale_notes_write_is_dropped(one_blank_row_lines):
    grid = parse_grid(one_blank_row_lines)
    tracer = Tracer()
    p = solver_core.Propagator(grid, tracer)
    target = Position.at(0, 8)
    p.queue.extend([Assign(target, 9), ReplaceNotes(target, Candidates.of([8, 9]))])

    p.update()

    assert grid.values[target] == Candidates.single(9)
    assert target not in grid.notes
    assert "stale_write" in _action_types(tracer)


def test_overwrite_of_fixed_cell_is_fatal():
    grid = _blank_grid()
    target = Position.at(3, 3)
    # Break the grid invariant on purpose: a committed value that still has notes.
    grid.values[target] = Candidates.single(4)
    p = solver_core.Propagator(grid, Tracer())

    p.queue.append(Assign(target, 4))
    p.update()
    assert grid.values[target] == Candidates.single(4)

    p.queue.append(Assign(target, 5))
    with pytest.raises(FixedCellOverwriteError) as excinfo:
        p.update()
    assert excinfo.value.existing == 4


def test_filling_last_cell_discards_remaining_writes(diagonal_blank_rows):
    grid = Grid.from_digits(diagonal_blank_rows)
    tracer = Tracer()
    p = solver_core.Propagator(grid, tracer)

    assert p.mark_all() == 9
    p.queue.append(ReplaceNotes(Position.at(0, 0), Candidates.full()))
    p.update()

    assert grid.is_solved
    assert not p.queue
    assert "solved" in _action_types(tracer)
    assert "stale_write" not in _action_types(tracer)


def test_solved_grid_makes_no_writes(solution_rows):
    grid = Grid.from_digits(solution_rows)
    tracer = Tracer()
    p = solver_core.Propagator(grid, tracer)

    result = p.run()

    assert p.update_count == 0
    assert result.cells_filled == 81
    assert result.notes_count == 0
    assert result.summary_lines() == ["81 of 81 cells were filled in", "0 note marks remain"]
    assert tracer.lines()[-2:] == result.summary_lines()


def test_naked_singles_solve_diagonal_blanks(diagonal_blank_rows, solution_rows):
    result = solver_core.solve(Grid.from_digits(diagonal_blank_rows), Tracer())
    assert result.solved
    assert result.grid == solution_rows
    assert result.notes_count == 0


def test_hard_puzzle_stalls_without_error(hard_puzzle):
    grid = parse_grid_string(hard_puzzle)
    p = solver_core.Propagator(grid, Tracer())

    result = p.run()

    assert result.cells_filled < 81
    assert result.notes_count > 0
    assert not result.solved
    assert p.update_count <= 729


def test_counters_and_invariant_hold_every_cycle(hard_puzzle):
    grid = parse_grid_string(hard_puzzle)
    p = solver_core.Propagator(grid, Tracer())
    filled, marks = grid.cells_filled, grid.notes_count

    def _drain_checked():
        nonlocal filled, marks
        while p.queue:
            p.update()
            _assert_invariant(grid)
            assert grid.cells_filled >= filled
            assert grid.notes_count <= marks
            assert grid.notes_count == sum(len(c) for c in grid.notes.values())
            filled, marks = grid.cells_filled, grid.notes_count

    p.mark_all()
    _drain_checked()
    while p.find_single_possibilities():
        _drain_checked()


def test_fixed_point_after_run(hard_puzzle):
    grid = parse_grid_string(hard_puzzle)
    p = solver_core.Propagator(grid, Tracer())
    p.run()

    for position, candidates in grid.notes.items():
        assert not candidates & solver_core.read_union(grid, position.row, position.column)
    assert not any(p.mark(position) for position in list(grid.notes))
    assert p.queue == deque()


def test_solve_uses_global_tracer_by_default(solution_rows, monkeypatch):
    tracer = Tracer()
    monkeypatch.setattr(solver_core, "get_tracer", lambda: tracer)

    solver_core.solve(Grid.from_digits(solution_rows))

    assert tracer.lines()[0] == "Marking phase begins"


def test_duplicate_givens_are_not_detected(solution_rows):
    # (1,1) repeats the 5 already given at (0,1) and (1,4); no assignment ever
    # touches that digit, so propagation finishes without a conflict.
    rows = [list(row) for row in solution_rows]
    rows[1][1] = 5
    rows[7][7] = 0
    rows[8][8] = 0
    grid = Grid.from_digits(rows)

    result = solver_core.solve(grid, Tracer())

    assert result.solved
    assert result.cells_filled == 81
    assert result.notes_count == 0
    assert result.grid[7][7] == 3 and result.grid[8][8] == 9
