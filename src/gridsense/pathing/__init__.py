from .astar import (
    PathKind,
    PathResult,
    find_closest_reachable_point,
    find_path,
    heuristic,
    search_bounds,
    step_cost,
)

__all__ = [
    "PathKind",
    "PathResult",
    "find_closest_reachable_point",
    "find_path",
    "heuristic",
    "search_bounds",
    "step_cost",
]
