"""Tracing module: records propagation events as progress lines and writes them to CSV."""

import csv
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class TraceStep:
    """A single event in the propagation run."""

    timestamp: float
    step_number: int
    action_type: str  # 'mark_phase', 'update_cycle', 'assign', 'single', 'stale_write', 'conflict', etc.
    message: str
    row: Optional[int] = None
    column: Optional[int] = None
    block: Optional[int] = None
    value: Optional[str] = None
    cycle: Optional[int] = None


class Tracer:
    """Records propagation events; optionally echoes each line to stdout."""

    def __init__(self, enabled: bool = True, echo: bool = False):
        self.enabled = enabled
        self.echo = echo
        self.steps: List[TraceStep] = []
        self.start_time = datetime.now().timestamp()
        self.step_counter = 0

    def _get_timestamp(self) -> float:
        """Get elapsed time in seconds since tracer creation."""
        return datetime.now().timestamp() - self.start_time

    def _record(self, action_type: str, message: str, position: Any = None, **fields: Any) -> None:
        if not self.enabled:
            return
        self.step_counter += 1
        if position is not None:
            fields.setdefault("row", position.row)
            fields.setdefault("column", position.column)
            fields.setdefault("block", position.block)
        self.steps.append(TraceStep(
            timestamp=self._get_timestamp(),
            step_number=self.step_counter,
            action_type=action_type,
            message=message,
            **fields,
        ))
        if self.echo:
            print(message)

    def log_mark_phase(self) -> None:
        """Log the start of the initial marking sweep."""
        self._record('mark_phase', "Marking phase begins")

    def log_marked(self, queued: int) -> None:
        self._record('mark_phase', f"{queued} update(s) queued by initial marking")

    def log_update_cycle(self, cycle: int) -> None:
        """Log the start of an update (drain) cycle."""
        self._record('update_cycle', f"[Update Cycle:{cycle}]", cycle=cycle)

    def log_assign(self, position: Any, digit: int) -> None:
        """Log a committed assignment."""
        self._record(
            'assign',
            f"Set Value for Row {position.row} Column {position.column} Block {position.block} : {digit}",
            position,
            value=str(digit),
        )

    def log_single(self, group: str, position: Any, value: Any) -> None:
        """Log a single-possibility finding in a row or column group."""
        self._record(
            'single',
            f"Found a single {group} possibility! {position} | Value: {value}",
            position,
            value=str(value),
        )

    def log_stale_write(self, position: Any) -> None:
        self._record(
            'stale_write',
            f"Operation already occurred for Row {position.row} Column {position.column}",
            position,
        )

    def log_uninitialized_read(self, position: Any) -> None:
        self._record(
            'uninitialized_read',
            f"Warning! Value not found on Row {position.row} Column {position.column}",
            position,
        )

    def log_conflict(self, position: Any, digit: int, reason: str) -> None:
        self._record('conflict', f"ERROR! Unable to insert value {digit}: {reason}", position, value=str(digit))

    def log_solved(self) -> None:
        self._record('solved', "Filled all cells")

    def log_summary(self, lines: List[str]) -> None:
        for line in lines:
            self._record('summary', line)

    def lines(self) -> List[str]:
        """All recorded progress lines, in order."""
        return [step.message for step in self.steps]

    def to_csv(self, filepath: Path) -> None:
        """Write trace to CSV file."""
        if not self.steps:
            print("No trace steps to write")
            return

        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        fieldnames = [
            'timestamp', 'step_number', 'action_type', 'row', 'column',
            'block', 'value', 'cycle', 'message'
        ]

        with open(filepath, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for step in self.steps:
                writer.writerow(asdict(step))

        print(f"Trace written to {filepath} ({len(self.steps)} steps)")

    def summary(self) -> Dict[str, Any]:
        """Get a summary of the trace."""
        action_counts: Dict[str, int] = {}
        for step in self.steps:
            action_counts[step.action_type] = action_counts.get(step.action_type, 0) + 1

        return {
            'total_steps': len(self.steps),
            'elapsed_time_seconds': self._get_timestamp(),
            'action_counts': action_counts,
            'num_assignments': action_counts.get('assign', 0),
            'num_update_cycles': action_counts.get('update_cycle', 0),
        }


# Global tracer instance
_global_tracer: Optional[Tracer] = None


def get_tracer() -> Tracer:
    """Get or create the global tracer."""
    global _global_tracer
    if _global_tracer is None:
        _global_tracer = Tracer(enabled=True)
    return _global_tracer


def reset_tracer(echo: bool = False) -> Tracer:
    """Replace the global tracer with a fresh one and return it."""
    global _global_tracer
    _global_tracer = Tracer(enabled=True, echo=echo)
    return _global_tracer


def enable_tracing(enabled: bool = True) -> None:
    """Enable or disable tracing."""
    get_tracer().enabled = enabled
