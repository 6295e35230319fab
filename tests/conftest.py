import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))


class OffsetGrid:
    """A SpatialGrid over ASCII rows whose top-left tile sits at (min_x, min_y)."""

    def __init__(self, rows, min_x, min_y):
        self.rows = list(rows)
        self.min_x = min_x
        self.min_y = min_y

    def bounds(self):
        return (
            self.min_x,
            self.min_y,
            self.min_x + len(self.rows[0]) - 1,
            self.min_y + len(self.rows) - 1,
        )

    def _char(self, x, y):
        col, row = x - self.min_x, y - self.min_y
        if 0 <= row < len(self.rows) and 0 <= col < len(self.rows[0]):
            return self.rows[row][col]
        return None

    def is_opaque(self, x, y):
        return self._char(x, y) == "#"

    def is_blocked(self, x, y):
        return self._char(x, y) in (None, "#")

    def is_asymmetrically_visible(self, x, y):
        return False


@pytest.fixture
def offset_grid():
    return OffsetGrid
