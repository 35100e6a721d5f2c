import json
import os
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .errors import LoadError
from .model import CELL_COUNT, SIZE, Grid

PUZZLE_KEYS = ("quizzes", "puzzle", "grid")
BLANKS = ".0"


def parse_grid(lines: Iterable[str]) -> Grid:
    """
    Parse 9 lines of exactly 9 digit characters ('0' = blank) into a Grid.
    Trailing blank lines are ignored; anything else malformed raises LoadError.
    """
    rows = [line.strip() for line in lines]
    while rows and not rows[-1]:
        rows.pop()
    if len(rows) != SIZE:
        raise LoadError(f"Expected {SIZE} lines, got {len(rows)}")

    digits: List[List[int]] = []
    for row, text in enumerate(rows):
        if len(text) != SIZE:
            raise LoadError(f"Expected {SIZE} characters, got {len(text)}", line=row)
        parsed = []
        for column, char in enumerate(text):
            if char not in "0123456789":
                raise LoadError(f"Non-digit character {char!r}", line=row, column=column)
            parsed.append(int(char))
        digits.append(parsed)
    return Grid.from_digits(digits)


def parse_grid_string(text: str) -> Grid:
    """Parse a single 81-character puzzle string; '.' and '0' both mark blanks."""
    text = text.strip()
    if len(text) != CELL_COUNT:
        raise LoadError(f"Expected {CELL_COUNT} characters, got {len(text)}")
    normalized = "".join("0" if char in BLANKS else char for char in text)
    return parse_grid(normalized[i:i + SIZE] for i in range(0, CELL_COUNT, SIZE))


def load_grid(file_path: str) -> Grid:
    """Read a 9-line grid file."""
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")
    with open(file_path, "r", encoding="utf-8") as f:
        return parse_grid(f.read().splitlines())


def load_puzzles(file_path: str) -> List[Dict[str, Any]]:
    """
    Reads a puzzle collection. Handles .csv / .parquet datasets (one puzzle string
    per row), .json / .jsonl records and single 9-line .txt grids.
    Returns a list of {"id": ..., "puzzle": <81-char string>} dictionaries.
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    stem = os.path.splitext(os.path.basename(file_path))[0]

    def _extract_puzzle(record: Dict[str, Any]) -> Optional[str]:
        for key in PUZZLE_KEYS:
            value = record.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            if isinstance(value, list):
                # 9x9 nested list of ints
                return "".join(str(d) for row in value for d in row)
        return None

    def _normalize(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        puzzles = []
        for index, record in enumerate(records):
            puzzle = _extract_puzzle(record)
            if puzzle is None:
                continue
            puzzle_id = record.get("id")
            if puzzle_id is None or (isinstance(puzzle_id, float) and pd.isna(puzzle_id)):
                puzzle_id = f"{stem}-{index}"
            puzzles.append({"id": str(puzzle_id), "puzzle": puzzle})
        return puzzles

    # Case 1: Parquet / CSV datasets (tabular)
    if file_path.endswith(".parquet") or file_path.endswith(".csv"):
        try:
            if file_path.endswith(".parquet"):
                df = pd.read_parquet(file_path)
            else:
                # Keep leading zeros of puzzle strings.
                df = pd.read_csv(file_path, dtype=str)
        except (ValueError, ImportError, OSError, pd.errors.ParserError) as e:
            raise LoadError(f"Error reading {file_path}: {e}") from e
        return _normalize(df.to_dict(orient="records"))

    # Case 2: Single 9-line grid
    if file_path.endswith(".txt"):
        grid = load_grid(file_path)
        return [{"id": stem, "puzzle": "".join(str(d) for row in grid.to_rows() for d in row)}]

    # Case 3: JSON File (array or object)
    if file_path.endswith(".json"):
        with open(file_path, "r", encoding="utf-8") as f:
            try:
                payload = json.load(f)
            except json.JSONDecodeError as e:
                raise LoadError(f"Invalid JSON in {file_path}: {e}") from e
        if isinstance(payload, list):
            return _normalize(p for p in payload if isinstance(p, dict))
        if isinstance(payload, dict):
            return _normalize([payload])
        return []

    # Case 4: JSONL File
    data = []
    with open(file_path, "r", encoding="utf-8") as f:
        for number, line in enumerate(f):
            if not line.strip():
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as e:
                raise LoadError(f"Invalid JSON record: {e}", line=number) from e
            if isinstance(obj, dict):
                data.append(obj)
    return _normalize(data)
