from __future__ import annotations

import heapq
import itertools
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from gridsense.exceptions import InvalidInputError
from gridsense.map.grid import Bounds, Coord, SpatialGrid, in_bounds

logger = logging.getLogger(__name__)

CARDINAL_COST = 100
DIAGONAL_COST = 100
CIRCLE_DIAGONAL_COST = 141  # ~100 * sqrt(2)
# Squared per-tile scale of the Euclidean estimate: 141**2 / 2, rounded down.
EUCLID_SCALE2 = CIRCLE_DIAGONAL_COST * CIRCLE_DIAGONAL_COST // 2

ADJACENT: Tuple[Coord, ...] = (
    (-1, 0),  # cardinals
    (1, 0),
    (0, -1),
    (0, 1),
    (-1, -1),  # diagonals
    (-1, 1),
    (1, -1),
    (1, 1),
)


class PathKind(str, Enum):
    EXACT = "exact"
    CLOSEST = "closest"
    NONE = "none"


@dataclass(frozen=True)
class PathResult:
    """
    Steps from the start to the destination, or to the closest reachable
    point when the destination could not be reached.

    `costs[i]` is the accumulated cost of walking from `steps[0]` to
    `steps[i]`.
    """

    steps: Tuple[Coord, ...] = ()
    costs: Tuple[int, ...] = ()
    kind: PathKind = PathKind.NONE

    @property
    def found(self) -> bool:
        return self.kind is not PathKind.NONE

    @property
    def is_exact(self) -> bool:
        return self.kind is PathKind.EXACT

    @property
    def cost(self) -> int:
        return self.costs[-1] if self.costs else 0

    @property
    def end(self) -> Optional[Coord]:
        return self.steps[-1] if self.steps else None

    @property
    def next_step(self) -> Optional[Coord]:
        """The tile to move to this turn, or None when already there or stuck."""
        return self.steps[1] if len(self.steps) > 1 else None

    def __bool__(self) -> bool:
        return self.found

    def __iter__(self) -> Iterator[Coord]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)


def step_cost(dx: int, dy: int, circle_dist: bool = False) -> int:
    if dx and dy:
        return CIRCLE_DIAGONAL_COST if circle_dist else DIAGONAL_COST
    return CARDINAL_COST


def heuristic(a: Coord, b: Coord, circle_dist: bool = False) -> int:
    """Never overestimates the remaining cost under the matching step costs."""
    dx = abs(a[0] - b[0])
    dy = abs(a[1] - b[1])
    if circle_dist:
        return math.isqrt(EUCLID_SCALE2 * (dx * dx + dy * dy))
    return CARDINAL_COST * max(dx, dy)


def distance_rank(a: Coord, b: Coord, circle_dist: bool = False) -> int:
    """Distance used to rank fallback candidates; squared when circular."""
    dx = abs(a[0] - b[0])
    dy = abs(a[1] - b[1])
    if circle_dist:
        return dx * dx + dy * dy
    return max(dx, dy)


def search_bounds(grid: SpatialGrid, start: Coord, dest: Coord, bound_pad: int = 0) -> Bounds:
    if bound_pad < 0:
        raise InvalidInputError(f"bound_pad must be >= 0, got {bound_pad}")
    bounds = grid.bounds()
    if bound_pad == 0:
        return bounds
    min_x, min_y, max_x, max_y = bounds
    return (
        max(min_x, min(start[0], dest[0]) - bound_pad),
        max(min_y, min(start[1], dest[1]) - bound_pad),
        min(max_x, max(start[0], dest[0]) + bound_pad),
        min(max_y, max(start[1], dest[1]) + bound_pad),
    )


def _explore_limit(explore_limit: Optional[int]) -> int:
    if explore_limit is None:
        return 0
    if explore_limit < 0:
        raise InvalidInputError(f"explore_limit must be >= 0, got {explore_limit}")
    return explore_limit


def _with_costs(steps: List[Coord], kind: PathKind, circle_dist: bool) -> PathResult:
    costs = [0]
    for (ax, ay), (bx, by) in zip(steps, steps[1:]):
        costs.append(costs[-1] + step_cost(bx - ax, by - ay, circle_dist))
    return PathResult(tuple(steps), tuple(costs), kind)


def _reverse_a_star(
    grid: SpatialGrid,
    start: Coord,
    dest: Coord,
    bounds: Bounds,
    circle_dist: bool,
    limit: int,
) -> Optional[List[Coord]]:
    """
    A* from `dest` back to `start`, so the predecessor table can be walked
    forward from `start` without reversing it.
    """
    if not in_bounds(bounds, dest[0], dest[1]):
        logger.debug("A* destination %s lies outside search bounds %s", dest, bounds)
        return None

    counter = itertools.count()
    frontier: List[Tuple[int, int, Coord]] = [(0, next(counter), dest)]
    came_from: Dict[Coord, Coord] = {}
    cost_so_far: Dict[Coord, int] = {dest: 0}
    steps = 0
    found = False

    while frontier and (limit <= 0 or steps < limit):
        _, _, current = heapq.heappop(frontier)
        if current == start:
            found = True
            break
        current_cost = cost_so_far[current]

        for dx, dy in ADJACENT:
            nxt = (current[0] + dx, current[1] + dy)
            if not in_bounds(bounds, nxt[0], nxt[1]):
                continue
            if nxt != start and grid.is_blocked(nxt[0], nxt[1]):
                continue
            next_cost = current_cost + step_cost(dx, dy, circle_dist)
            if next_cost < cost_so_far.get(nxt, math.inf):
                cost_so_far[nxt] = next_cost
                came_from[nxt] = current
                priority = next_cost + heuristic(nxt, start, circle_dist)
                heapq.heappush(frontier, (priority, next(counter), nxt))

        steps += 1

    if not found:
        if frontier:
            logger.warning("A* gave up after exploring %d tiles from %s to %s", steps, dest, start)
        else:
            logger.debug("A* exhausted frontier after %d tiles; %s unreachable from %s", steps, dest, start)
        return None

    path = [start]
    current = start
    while current in came_from:
        current = came_from[current]
        path.append(current)
    logger.debug("A* found %d-step path %s -> %s after %d expansions", len(path), start, dest, steps)
    return path


def _flood_closest(
    grid: SpatialGrid,
    start: Coord,
    dest: Coord,
    bounds: Bounds,
    circle_dist: bool,
    limit: int,
) -> List[Coord]:
    """
    Uniform-cost flood from `start`; returns the route to the reachable tile
    nearest to `dest`, preferring the cheaper tile when two are equally near.
    """
    counter = itertools.count()
    frontier: List[Tuple[int, int, Coord]] = [(0, next(counter), start)]
    came_from: Dict[Coord, Coord] = {}
    cost_so_far: Dict[Coord, int] = {start: 0}
    done = set()
    best = start
    best_key = (distance_rank(start, dest, circle_dist), 0)
    steps = 0

    while frontier and (limit <= 0 or steps < limit):
        cost, _, current = heapq.heappop(frontier)
        if current in done:
            continue
        done.add(current)
        steps += 1

        key = (distance_rank(current, dest, circle_dist), cost)
        if key < best_key:
            best, best_key = current, key
        if current == dest:
            break
        # Only an out-of-bounds start gets here; it is ranked but not expanded.
        if not in_bounds(bounds, current[0], current[1]):
            continue

        for dx, dy in ADJACENT:
            nxt = (current[0] + dx, current[1] + dy)
            if not in_bounds(bounds, nxt[0], nxt[1]):
                continue
            if nxt != dest and grid.is_blocked(nxt[0], nxt[1]):
                continue
            next_cost = cost + step_cost(dx, dy, circle_dist)
            if next_cost < cost_so_far.get(nxt, math.inf):
                cost_so_far[nxt] = next_cost
                came_from[nxt] = current
                heapq.heappush(frontier, (next_cost, next(counter), nxt))

    path = [best]
    while path[-1] in came_from:
        path.append(came_from[path[-1]])
    path.reverse()
    logger.debug("Closest reachable point to %s from %s is %s (%d tiles flooded)", dest, start, best, steps)
    return path


def find_path(
    grid: SpatialGrid,
    start: Coord,
    dest: Coord,
    bound_pad: int = 0,
    fallback_closest: bool = False,
    *,
    circle_dist: bool = False,
    explore_limit: Optional[int] = None,
) -> PathResult:
    """
    Find the cheapest path from `start` to `dest` with A*.

    - bound_pad: 0 searches the whole grid; a positive value confines the
      search to the rectangle around start and dest grown by that many tiles.
    - fallback_closest: when no exact path exists, return a path to the
      reachable tile closest to `dest` instead of an empty result.
    - circle_dist: diagonal steps cost 141 instead of 100.
    - explore_limit: maximum number of tiles to expand; None or 0 is unlimited.

    `start` and `dest` are always treated as passable, so a path can lead
    into an occupied tile (e.g. to attack whatever stands there). Tiles
    outside the search bounds are never expanded, so neither an exact path
    nor a fallback route ever leads off the grid.
    """
    bounds = search_bounds(grid, start, dest, bound_pad)
    limit = _explore_limit(explore_limit)

    steps = _reverse_a_star(grid, start, dest, bounds, circle_dist, limit)
    if steps is not None:
        return _with_costs(steps, PathKind.EXACT, circle_dist)

    if not fallback_closest:
        return PathResult()

    steps = _flood_closest(grid, start, dest, bounds, circle_dist, limit)
    reached = steps[-1] == dest and in_bounds(bounds, dest[0], dest[1])
    kind = PathKind.EXACT if reached else PathKind.CLOSEST
    return _with_costs(steps, kind, circle_dist)


def find_closest_reachable_point(
    grid: SpatialGrid,
    start: Coord,
    dest: Coord,
    bound_pad: int = 0,
    *,
    circle_dist: bool = False,
    explore_limit: Optional[int] = None,
) -> Coord:
    """Return `dest` if reachable from `start`, otherwise the nearest tile that is."""
    bounds = search_bounds(grid, start, dest, bound_pad)
    limit = _explore_limit(explore_limit)
    return _flood_closest(grid, start, dest, bounds, circle_dist, limit)[-1]
