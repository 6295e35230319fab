from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, NamedTuple, Optional, Set, Tuple
import logging

from gridsense.exceptions import InvalidRangeError
from gridsense.map.grid import Coord, SpatialGrid, in_bounds

logger = logging.getLogger(__name__)

# Slopes are (dy, dx) integer pairs; sights are (low_slope, high_slope).
Slope = Tuple[int, int]
Sight = Tuple[Slope, Slope]


class FovShape(str, Enum):
    SQUARE = "square"             # Chebyshev range
    CIRCLE = "circle"             # exact Euclidean range; bumps at the cardinal edges
    CIRCLE_PLUS = "circle_plus"   # Euclidean range relaxed by half a tile


class VisibleCell(NamedTuple):
    x: int
    y: int
    symmetric: bool


@dataclass(frozen=True)
class Octant:
    real_x_from_x: int
    real_x_from_y: int
    real_y_from_x: int
    real_y_from_y: int
    include_edges: bool


# Each seam between neighbouring octants is owned by exactly one of them.
OCTANTS: Tuple[Octant, ...] = (
    Octant(1, 0, 0, 1, True),
    Octant(0, 1, 1, 0, False),
    Octant(0, -1, 1, 0, True),
    Octant(-1, 0, 0, 1, False),
    Octant(-1, 0, 0, -1, True),
    Octant(0, -1, -1, 0, False),
    Octant(0, 1, -1, 0, True),
    Octant(1, 0, 0, -1, False),
)

FULL_OCTANT: Sight = ((0, 1), (1, 1))


def max_dist2(shape: FovShape, fov_range: int) -> Optional[int]:
    """Squared distance cutoff for circular shapes, None for a square."""
    shape = FovShape(shape)
    if shape is FovShape.CIRCLE:
        return fov_range * fov_range
    if shape is FovShape.CIRCLE_PLUS:
        return fov_range * (fov_range + 1)
    return None


def in_shape(shape: FovShape, fov_range: int, dx: int, dy: int) -> bool:
    limit = max_dist2(shape, fov_range)
    if limit is None:
        return max(abs(dx), abs(dy)) <= fov_range
    return dx * dx + dy * dy <= limit


def _slope_le(a: Slope, b: Slope) -> bool:
    return a[0] * b[1] <= b[0] * a[1]


def iter_fov(grid: SpatialGrid, origin: Coord, fov_range: int, shape: FovShape = FovShape.CIRCLE_PLUS) -> Iterator[VisibleCell]:
    """
    Lazily yield the cells in the field of view of `origin`.

    Uses fixed-point shadowcasting with center-to-center visibility and
    diamond-shaped walls. Each item is `(x, y, symmetric)`, where `symmetric`
    means `origin` would be visible in a field of view calculated from that
    cell with the same range and shape. Cells that are not symmetrically
    visible are only yielded when the grid reports them as asymmetrically
    visible.

    The range is checked here rather than when the first item is pulled, so a
    negative range raises InvalidRangeError before any work is done.
    """
    if fov_range < 0:
        raise InvalidRangeError(f"fov_range must be >= 0, got {fov_range}")
    shape = FovShape(shape)
    return _shadowcast(grid, origin, fov_range, shape)


def _shadowcast(grid: SpatialGrid, origin: Coord, fov_range: int, shape: FovShape) -> Iterator[VisibleCell]:
    bounds = grid.bounds()
    min_x, min_y, max_x, max_y = bounds
    ox, oy = origin

    if ox + fov_range < min_x or ox - fov_range > max_x or oy + fov_range < min_y or oy - fov_range > max_y:
        logger.debug("FOV from (%d,%d) range %d misses bounds %s", ox, oy, fov_range, bounds)
        return

    if in_bounds(bounds, ox, oy):
        yield VisibleCell(ox, oy, True)

    limit = max_dist2(shape, fov_range)

    # Page-flipped sight buffers for the current and next column.
    current: List[Sight] = []
    following: List[Sight] = []

    for octant in OCTANTS:
        current.clear()
        current.append(FULL_OCTANT)

        for x in range(1, fov_range + 1):
            following.clear()

            for low, high in current:
                # Rows whose middle lines are cut by the sight's slopes.
                low_y = (2 * x * low[0] // low[1] + 1) // 2
                high_y = (2 * x * high[0] // high[1] + 1) // 2
                open_low: Optional[Slope] = None

                for y in range(low_y, high_y + 1):
                    if limit is not None and x * x + y * y > limit:
                        continue

                    real_x = ox + x * octant.real_x_from_x + y * octant.real_x_from_y
                    real_y = oy + x * octant.real_y_from_x + y * octant.real_y_from_y
                    inside = in_bounds(bounds, real_x, real_y)

                    # Slope of the center of the cell's bottom edge.
                    bottom_mid = (2 * y - 1, 2 * x)

                    if inside and grid.is_opaque(real_x, real_y):
                        if open_low is not None:
                            following.append((open_low, bottom_mid))
                            open_low = None
                    elif open_low is None:
                        open_low = bottom_mid if _slope_le(low, bottom_mid) else low

                    if inside and (octant.include_edges or 0 < y < x):
                        symmetric = _slope_le(low, (y, x)) and _slope_le((y, x), high)
                        if symmetric or grid.is_asymmetrically_visible(real_x, real_y):
                            yield VisibleCell(real_x, real_y, symmetric)

                if open_low is not None:
                    following.append((open_low, high))

            current, following = following, current
            if not current:
                break


def field_of_view(
    grid: SpatialGrid,
    origin: Coord,
    fov_range: int,
    shape: FovShape,
    visit: Callable[[int, int, bool], None],
) -> None:
    """Call `visit(x, y, symmetric)` for every cell in the field of view."""
    for cell in iter_fov(grid, origin, fov_range, shape):
        visit(cell.x, cell.y, cell.symmetric)


def compute_fov(grid: SpatialGrid, origin: Coord, fov_range: int, shape: FovShape = FovShape.CIRCLE_PLUS) -> List[VisibleCell]:
    cells = list(iter_fov(grid, origin, fov_range, shape))
    logger.debug("FOV from %s range %d shape %s -> %d cells", origin, fov_range, FovShape(shape).value, len(cells))
    return cells


def visible_tiles(
    grid: SpatialGrid,
    origin: Coord,
    fov_range: int,
    shape: FovShape = FovShape.CIRCLE_PLUS,
    *,
    symmetric_only: bool = False,
) -> Set[Coord]:
    return {
        (cell.x, cell.y)
        for cell in iter_fov(grid, origin, fov_range, shape)
        if cell.symmetric or not symmetric_only
    }
