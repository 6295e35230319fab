from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Protocol, Sequence, Set, Tuple
import logging

logger = logging.getLogger(__name__)

Coord = Tuple[int, int]
Bounds = Tuple[int, int, int, int]  # min_x, min_y, max_x, max_y (inclusive)


class SpatialGrid(Protocol):
    """The grid contract consumed by the visibility and path engines.

    Opacity and blocking are independent: a closed door may hide what is
    behind it without stopping movement, deep water the other way around.
    """

    def bounds(self) -> Bounds:
        """Return (min_x, min_y, max_x, max_y); the maxima are inclusive."""

    def is_opaque(self, x: int, y: int) -> bool:
        """True if the tile stops line of sight."""

    def is_blocked(self, x: int, y: int) -> bool:
        """True if the tile cannot be walked through."""

    def is_asymmetrically_visible(self, x: int, y: int) -> bool:
        """True if the tile should be shown whenever it is scanned, even
        when its center is outside the viewer's sight lines."""


def in_bounds(bounds: Bounds, x: int, y: int) -> bool:
    min_x, min_y, max_x, max_y = bounds
    return min_x <= x <= max_x and min_y <= y <= max_y


@dataclass(frozen=True)
class Size:
    width: int
    height: int


class TileGrid:
    """
    A simple, engine-agnostic grid implementing :class:`SpatialGrid`.

    Opacity and blocking are tracked as separate layers:
    - `opaque[y][x]` blocks vision (walls, closed doors).
    - `blocked[y][x]` blocks movement (walls, chasms, parked entities).

    Tiles marked as revealed are reported as asymmetrically visible, so they
    show up in a field of view even when only a corner of them is in sight.
    With `reveal_opaque=True` every opaque tile is treated the same way, which
    keeps wall outlines crisp around the edge of a lit room.

    Coordinate system is 0-based: x in [0, width), y in [0, height).
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        default_opaque: bool = False,
        default_blocked: bool = False,
        reveal_opaque: bool = False,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("TileGrid width/height must be > 0")
        self._size = Size(width, height)
        self._opaque: List[List[bool]] = [[default_opaque for _ in range(width)] for _ in range(height)]
        self._blocked: List[List[bool]] = [[default_blocked for _ in range(width)] for _ in range(height)]
        self._revealed: Set[Coord] = set()
        self.reveal_opaque = reveal_opaque
        logger.debug(
            "TileGrid created: %dx%d, default_opaque=%s default_blocked=%s",
            width,
            height,
            default_opaque,
            default_blocked,
        )

    @property
    def size(self) -> Size:
        return self._size

    @property
    def width(self) -> int:
        return self._size.width

    @property
    def height(self) -> int:
        return self._size.height

    def bounds(self) -> Bounds:
        return (0, 0, self.width - 1, self.height - 1)

    def is_in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_opaque(self, x: int, y: int) -> bool:
        if not self.is_in_bounds(x, y):
            return False
        return self._opaque[y][x]

    def is_transparent(self, x: int, y: int) -> bool:
        return not self.is_opaque(x, y)

    def is_blocked(self, x: int, y: int) -> bool:
        if not self.is_in_bounds(x, y):
            return True
        return self._blocked[y][x]

    def is_asymmetrically_visible(self, x: int, y: int) -> bool:
        if (x, y) in self._revealed:
            return True
        return self.reveal_opaque and self.is_opaque(x, y)

    def set_opaque(self, x: int, y: int, opaque: bool) -> None:
        if not self.is_in_bounds(x, y):
            raise IndexError("Tile out of bounds")
        self._opaque[y][x] = bool(opaque)
        logger.debug("Tile (%d,%d) opacity set to %s", x, y, opaque)

    def set_blocked(self, x: int, y: int, blocked: bool) -> None:
        if not self.is_in_bounds(x, y):
            raise IndexError("Tile out of bounds")
        self._blocked[y][x] = bool(blocked)
        logger.debug("Tile (%d,%d) blocked set to %s", x, y, blocked)

    def set_wall(self, x: int, y: int, wall: bool = True) -> None:
        """Shortcut for a tile that both blocks vision and movement."""
        self.set_opaque(x, y, wall)
        self.set_blocked(x, y, wall)

    def set_revealed(self, x: int, y: int, revealed: bool = True) -> None:
        if not self.is_in_bounds(x, y):
            raise IndexError("Tile out of bounds")
        if revealed:
            self._revealed.add((x, y))
        else:
            self._revealed.discard((x, y))

    def clear_revealed(self) -> None:
        self._revealed.clear()

    def fill(self, *, opaque: bool, blocked: bool) -> None:
        for y in range(self.height):
            for x in range(self.width):
                self._opaque[y][x] = opaque
                self._blocked[y][x] = blocked
        logger.debug("TileGrid all tiles set to opaque=%s blocked=%s", opaque, blocked)

    @classmethod
    def from_ascii(
        cls,
        rows: Sequence[str],
        opaque_chars: Iterable[str] = ("#", "+"),
        blocked_chars: Iterable[str] = ("#", "~"),
        *,
        reveal_opaque: bool = False,
    ) -> "TileGrid":
        """
        Build a TileGrid from ASCII rows for tests/tools.
        - Any char in opaque_chars blocks vision ('#' wall, '+' closed door).
        - Any char in blocked_chars blocks movement ('#' wall, '~' deep water).
        - All others are open floor.
        """
        if not rows:
            raise ValueError("rows must not be empty")
        height = len(rows)
        width = len(rows[0])
        for r in rows:
            if len(r) != width:
                raise ValueError("All rows must be same width")
        grid = cls(width, height, reveal_opaque=reveal_opaque)
        opaque_set = set(opaque_chars)
        blocked_set = set(blocked_chars)
        for y, row in enumerate(rows):
            for x, ch in enumerate(row):
                grid._opaque[y][x] = ch in opaque_set
                grid._blocked[y][x] = ch in blocked_set
        return grid

    def clone(self) -> "TileGrid":
        clone = TileGrid(self.width, self.height, reveal_opaque=self.reveal_opaque)
        for y in range(self.height):
            clone._opaque[y] = self._opaque[y][:]
            clone._blocked[y] = self._blocked[y][:]
        clone._revealed = set(self._revealed)
        return clone

    def __repr__(self) -> str:
        return f"TileGrid({self.width}x{self.height})"
