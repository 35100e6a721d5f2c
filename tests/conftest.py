import pytest

SOLUTION = [
    "534678912",
    "672195348",
    "198342567",
    "859761423",
    "426853791",
    "713924856",
    "961537284",
    "287419635",
    "345286179",
]

# Needs far more than singles; propagation stalls part way.
HARD_PUZZLE = "800000000003600000070090200050007000000045700000100030001000068008500010090000400"


def _rows(lines):
    return [[int(c) for c in line] for line in lines]


@pytest.fixture
def solution_rows():
    return _rows(SOLUTION)


@pytest.fixture
def diagonal_blank_rows():
    rows = _rows(SOLUTION)
    for i in range(9):
        rows[i][i] = 0
    return rows


@pytest.fixture
def hard_puzzle():
    return HARD_PUZZLE


@pytest.fixture
def one_blank_row_lines():
    return ["123456780"] + ["000000000"] * 8


@pytest.fixture
def duplicate_in_block_lines():
    # Column 7 and column 8 each hold an 8 inside block 5, so (0,7) and (0,8)
    # are both narrowed to 9 during initial marking. The conflict comes from
    # those two assignments; the duplicate 8 givens alone are never rejected.
    return [
        "123456700",
        "000000000",
        "000000000",
        "000000080",
        "000000008",
        "000000000",
        "000000000",
        "000000000",
        "000000000",
    ]


@pytest.fixture
def write_grid(tmp_path):
    def _write(lines, name="sudoku.txt"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
