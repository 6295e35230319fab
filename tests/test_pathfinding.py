import logging

import pytest

from gridsense.exceptions import InvalidInputError
from gridsense.map.grid import TileGrid
from gridsense.pathing.astar import (
    PathKind,
    PathResult,
    distance_rank,
    find_closest_reachable_point,
    find_path,
    heuristic,
    search_bounds,
    step_cost,
)


CORRIDOR = [
    "#######",
    "#.....#",
    "#####.#",
    "#####.#",
    "#####.#",
    "#####.#",
    "#######",
]

WALLED_OFF = [
    ".........",
    ".....###.",
    ".....#.#.",
    ".....###.",
    ".........",
]

DETOUR = [
    "...........",
    ".....#.....",
    ".....#.....",
    ".....#.....",
    ".....#.....",
    ".....#.....",
    ".....#.....",
    ".....#.....",
]


def assert_well_formed(result: PathResult, grid: TileGrid, circle_dist: bool = False) -> None:
    assert len(result.steps) == len(result.costs)
    assert result.costs[0] == 0
    for i in range(1, len(result.steps)):
        (ax, ay), (bx, by) = result.steps[i - 1], result.steps[i]
        dx, dy = bx - ax, by - ay
        assert max(abs(dx), abs(dy)) == 1
        assert result.costs[i] - result.costs[i - 1] == step_cost(dx, dy, circle_dist)
        assert result.costs[i] >= result.costs[i - 1]
    for x, y in result.steps[1:-1]:
        assert not grid.is_blocked(x, y)


def test_straight_line_on_open_grid():
    grid = TileGrid(5, 5)
    result = find_path(grid, (0, 0), (4, 0))

    assert result.kind is PathKind.EXACT
    assert result.steps[0] == (0, 0)
    assert result.end == (4, 0)
    assert len(result) == 5
    assert result.cost == 400
    assert result.next_step == result.steps[1]
    assert bool(result)
    assert_well_formed(result, grid)


@pytest.mark.parametrize("circle_dist, expected_cost", [(False, 300), (True, 423)])
def test_diagonal_costs(circle_dist, expected_cost):
    grid = TileGrid(5, 5)
    result = find_path(grid, (0, 0), (3, 3), circle_dist=circle_dist)

    assert result.is_exact
    assert len(result) == 4
    assert result.cost == expected_cost
    assert_well_formed(result, grid, circle_dist)


@pytest.mark.parametrize("circle_dist, expected_cost", [(False, 700), (True, 741)])
def test_corridor_with_a_turn_follows_the_corridor(circle_dist, expected_cost):
    grid = TileGrid.from_ascii(CORRIDOR)
    result = find_path(grid, (1, 1), (5, 5), circle_dist=circle_dist)

    assert result.is_exact
    assert result.steps[0] == (1, 1)
    assert result.end == (5, 5)
    # Three steps along the top, one around the corner, three down.
    assert len(result) == 8
    assert result.cost == expected_cost
    assert (2, 2) not in result.steps
    assert_well_formed(result, grid, circle_dist)


def test_start_equals_destination():
    grid = TileGrid(3, 3)
    result = find_path(grid, (1, 1), (1, 1))

    assert result.kind is PathKind.EXACT
    assert result.steps == ((1, 1),)
    assert result.cost == 0
    assert result.next_step is None


def test_occupied_destination_and_start_are_passable():
    grid = TileGrid.from_ascii([
        "~....",
        ".....",
        "....~",
    ])
    result = find_path(grid, (0, 0), (4, 2))

    assert result.is_exact
    assert result.steps[0] == (0, 0)
    assert result.end == (4, 2)
    assert_well_formed(result, grid)


def test_walled_off_destination_without_fallback_is_no_path():
    grid = TileGrid.from_ascii(WALLED_OFF)
    result = find_path(grid, (0, 2), (6, 2))

    assert result.kind is PathKind.NONE
    assert not result
    assert result.steps == ()
    assert result.end is None
    assert result.next_step is None
    assert list(result) == []


@pytest.mark.parametrize("circle_dist", [False, True])
def test_walled_off_destination_falls_back_to_closest_point(circle_dist):
    grid = TileGrid.from_ascii(WALLED_OFF)
    start, dest = (0, 2), (6, 2)
    result = find_path(grid, start, dest, fallback_closest=True, circle_dist=circle_dist)

    assert result.kind is PathKind.CLOSEST
    assert result.steps[0] == start
    assert distance_rank(result.end, dest, circle_dist) < distance_rank(start, dest, circle_dist)
    assert not grid.is_blocked(*result.end)
    assert_well_formed(result, grid, circle_dist)
    if circle_dist:
        # Only (4, 2) is two tiles straight out from the box and cheap to reach.
        assert result.end == (4, 2)
    else:
        assert distance_rank(result.end, dest) == 2


def test_fallback_stays_put_when_nothing_is_closer():
    grid = TileGrid.from_ascii([
        "###....",
        "#.#....",
        "###....",
    ])
    result = find_path(grid, (1, 1), (6, 2), fallback_closest=True)

    assert result.kind is PathKind.CLOSEST
    assert result.steps == ((1, 1),)
    assert result.costs == (0,)
    assert result.next_step is None


def test_search_bounds_padding():
    grid = TileGrid.from_ascii(DETOUR)
    assert search_bounds(grid, (2, 6), (8, 6), 0) == (0, 0, 10, 7)
    assert search_bounds(grid, (2, 6), (8, 6), 1) == (1, 5, 9, 7)
    assert search_bounds(grid, (8, 6), (2, 6), 20) == (0, 0, 10, 7)
    with pytest.raises(InvalidInputError):
        search_bounds(grid, (2, 6), (8, 6), -1)


def test_tight_bound_pad_misses_wide_detour():
    grid = TileGrid.from_ascii(DETOUR)
    start, dest = (2, 6), (8, 6)

    full = find_path(grid, start, dest)
    assert full.is_exact
    assert any(y == 0 for _, y in full.steps)
    assert_well_formed(full, grid)

    padded = find_path(grid, start, dest, bound_pad=6)
    assert padded.is_exact
    assert padded.cost == full.cost

    tight = find_path(grid, start, dest, bound_pad=1)
    assert tight.kind is PathKind.NONE

    closest = find_path(grid, start, dest, bound_pad=1, fallback_closest=True)
    assert closest.kind is PathKind.CLOSEST
    assert closest.end[0] == 4
    assert all(5 <= y <= 7 for _, y in closest.steps)


def test_explore_limit_gives_up(caplog):
    grid = TileGrid(20, 20)

    with caplog.at_level(logging.WARNING, logger="gridsense.pathing.astar"):
        result = find_path(grid, (0, 0), (19, 19), explore_limit=1)
    assert result.kind is PathKind.NONE
    assert any("gave up" in rec.message for rec in caplog.records)

    result = find_path(grid, (0, 0), (19, 19), explore_limit=1, fallback_closest=True)
    assert result.kind is PathKind.CLOSEST
    assert result.steps == ((0, 0),)

    assert find_path(grid, (0, 0), (19, 19), explore_limit=0).is_exact
    with pytest.raises(InvalidInputError):
        find_path(grid, (0, 0), (19, 19), explore_limit=-5)


def test_out_of_bounds_start_is_never_reached():
    grid = TileGrid(5, 5)
    assert find_path(grid, (-3, 2), (2, 2)).kind is PathKind.NONE


@pytest.mark.parametrize("circle_dist", [False, True])
@pytest.mark.parametrize("start, dest", [((0, 0), (7, 3)), ((9, 9), (1, 4)), ((2, 8), (8, 2))])
def test_heuristic_never_overestimates(start, dest, circle_dist):
    grid = TileGrid(10, 10)
    result = find_path(grid, start, dest, circle_dist=circle_dist)

    assert result.is_exact
    assert heuristic(start, dest, circle_dist) <= result.cost
    dx, dy = abs(start[0] - dest[0]), abs(start[1] - dest[1])
    diagonal = min(dx, dy)
    straight = max(dx, dy) - diagonal
    assert result.cost == diagonal * step_cost(1, 1, circle_dist) + straight * 100


def test_find_closest_reachable_point():
    grid = TileGrid.from_ascii(WALLED_OFF)
    assert find_closest_reachable_point(grid, (0, 2), (8, 4)) == (8, 4)
    assert find_closest_reachable_point(grid, (0, 2), (6, 2), circle_dist=True) == (4, 2)


def test_euclidean_heuristic_stays_under_long_diagonals():
    for n in (1, 3, 17, 99, 500):
        assert heuristic((0, 0), (n, n), circle_dist=True) <= n * step_cost(1, 1, circle_dist=True)
        assert heuristic((0, 0), (n, 0), circle_dist=True) <= n * step_cost(1, 0, circle_dist=True)


def test_destination_off_the_grid_is_never_entered():
    grid = TileGrid(5, 5)

    assert find_path(grid, (0, 2), (5, 2)).kind is PathKind.NONE
    assert find_path(grid, (7, 7), (7, 7)).kind is PathKind.NONE

    result = find_path(grid, (0, 2), (5, 2), fallback_closest=True, circle_dist=True)
    assert result.kind is PathKind.CLOSEST
    assert result.end == (4, 2)
    assert result.cost == 400
    assert all(grid.is_in_bounds(x, y) for x, y in result.steps)

    assert find_closest_reachable_point(grid, (0, 2), (5, 2), circle_dist=True) == (4, 2)


@pytest.mark.parametrize("circle_dist", [False, True])
def test_negative_bounds_match_translated_tile_grid(offset_grid, circle_dist):
    shifted = offset_grid(DETOUR, -5, -4)
    start, dest = (2, 6), (8, 6)
    moved_start, moved_dest = (start[0] - 5, start[1] - 4), (dest[0] - 5, dest[1] - 4)

    plain = find_path(TileGrid.from_ascii(DETOUR), start, dest, circle_dist=circle_dist)
    result = find_path(shifted, moved_start, moved_dest, circle_dist=circle_dist)

    assert result.is_exact
    assert result.steps == tuple((x - 5, y - 4) for x, y in plain.steps)
    assert result.costs == plain.costs
    assert any(y == -4 for _, y in result.steps)

    assert search_bounds(shifted, moved_start, moved_dest, 1) == (-4, 1, 4, 3)
    assert find_path(shifted, moved_start, moved_dest, bound_pad=1).kind is PathKind.NONE
    assert find_path(shifted, moved_start, (-9, 0)).kind is PathKind.NONE


def test_fallback_on_negative_bounds(offset_grid):
    grid = offset_grid(WALLED_OFF, -20, 7)
    result = find_path(grid, (-20, 9), (-14, 9), fallback_closest=True, circle_dist=True)

    assert result.kind is PathKind.CLOSEST
    assert result.steps[0] == (-20, 9)
    assert result.end == (-16, 9)
