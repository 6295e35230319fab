from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Set
import logging

from gridsense.exceptions import InvalidRangeError
from gridsense.fov.shadowcast import FovShape, iter_fov
from gridsense.map.grid import Coord, SpatialGrid, TileGrid

if TYPE_CHECKING:
    from gridsense.config.loader import EngineSettings

logger = logging.getLogger(__name__)


@dataclass
class FieldOfView:
    """
    Visible tiles of a single viewer, recalculated only when marked dirty.

    `tiles` holds everything the viewer can see, including asymmetric
    overrides; `symmetric_tiles` holds the subset that could see the viewer
    back, which is what "can this monster see me" checks should consult.
    """

    range: int
    shape: FovShape = FovShape.CIRCLE_PLUS
    center: Optional[Coord] = None
    dirty: bool = True
    tiles: Set[Coord] = field(default_factory=set)
    symmetric_tiles: Set[Coord] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.range < 0:
            raise InvalidRangeError("range must be >= 0")
        self.shape = FovShape(self.shape)

    def mark_dirty(self) -> None:
        self.dirty = True

    def recalculate(self, grid: SpatialGrid, center: Coord) -> bool:
        """Recompute if dirty or moved. Returns True when tiles were recomputed."""
        if not self.dirty and center == self.center:
            return False
        self.center = center
        self.tiles.clear()
        self.symmetric_tiles.clear()
        for x, y, symmetric in iter_fov(grid, center, self.range, self.shape):
            self.tiles.add((x, y))
            if symmetric:
                self.symmetric_tiles.add((x, y))
        self.dirty = False
        logger.debug(
            "FieldOfView at %s range %d: %d tiles (%d symmetric)",
            center,
            self.range,
            len(self.tiles),
            len(self.symmetric_tiles),
        )
        return True

    def __contains__(self, pos: Coord) -> bool:
        return pos in self.tiles

    def can_see_mutually(self, pos: Coord) -> bool:
        return pos in self.symmetric_tiles


class FogTileState(str, Enum):
    UNSEEN = "unseen"         # never seen; fully dark
    SEEN = "seen"             # seen before but not currently visible; dim
    VISIBLE = "visible"       # currently visible; full brightness


@dataclass
class FogSettings:
    vision_radius: int = 8
    dim_factor: float = 0.35  # brightness for seen-not-visible tiles
    shape: FovShape = FovShape.CIRCLE_PLUS

    def __post_init__(self) -> None:
        if self.vision_radius < 0:
            raise ValueError("vision_radius must be >= 0")
        if not (0.0 <= self.dim_factor <= 1.0):
            raise ValueError("dim_factor must be between 0.0 and 1.0")
        self.shape = FovShape(self.shape)

    @classmethod
    def from_engine_settings(cls, settings: "EngineSettings") -> "FogSettings":
        return cls(settings.fov_range, settings.dim_factor, settings.fov_shape)


class FogOfWar:
    """
    Remembers which tiles of a TileGrid the player has seen.

    Responsibilities:
    - Keeps the player's FieldOfView up to date.
    - Remembers tiles that have been seen at least once.
    - Provides tile state (unseen/seen/visible) and a light map for rendering.

    Shading for a renderer:
      - UNSEEN: brightness 0.0
      - SEEN: brightness = dim_factor
      - VISIBLE: brightness 1.0
    """

    def __init__(self, grid: TileGrid, settings: Optional[FogSettings] = None) -> None:
        self.grid = grid
        self.settings = settings or FogSettings()
        self.view = FieldOfView(self.settings.vision_radius, self.settings.shape)
        self._seen: List[List[bool]] = [[False for _ in range(grid.width)] for _ in range(grid.height)]
        logger.debug(
            "FogOfWar initialized: %dx%d radius=%d shape=%s dim=%.2f",
            grid.width,
            grid.height,
            self.settings.vision_radius,
            self.settings.shape.value,
            self.settings.dim_factor,
        )

    def reset_memory(self) -> None:
        """Forget all seen tiles (e.g., on new floor)."""
        for y in range(self.grid.height):
            for x in range(self.grid.width):
                self._seen[y][x] = False
        self.view.tiles.clear()
        self.view.symmetric_tiles.clear()
        self.view.mark_dirty()
        logger.debug("FogOfWar memory reset")

    def mark_all_seen(self) -> None:
        """Debug/cheat: mark the whole map as seen."""
        for y in range(self.grid.height):
            for x in range(self.grid.width):
                self._seen[y][x] = True
        logger.debug("FogOfWar marked all tiles as seen")

    def update(self, player_pos: Coord, *, radius: Optional[int] = None) -> None:
        """
        Recompute current visibility and update memory around the player.

        - player_pos: (x, y) position of the player.
        - radius: optional override for vision radius; if None, uses settings.
        """
        if not self.grid.is_in_bounds(*player_pos):
            raise ValueError("player_pos out of bounds")

        use_radius = self.settings.vision_radius if radius is None else radius
        if use_radius < 0:
            raise InvalidRangeError("radius must be >= 0")
        self.view.range = use_radius

        # The grid may have changed since the last turn (doors, digging).
        self.view.mark_dirty()
        self.view.recalculate(self.grid, player_pos)

        for (x, y) in self.view.tiles:
            self._seen[y][x] = True

        logger.debug("FogOfWar updated at %s with radius %d; %d visible tiles", player_pos, use_radius, len(self.view.tiles))

    def get_state(self, x: int, y: int) -> FogTileState:
        if not self.grid.is_in_bounds(x, y):
            raise IndexError("Tile out of bounds")
        if (x, y) in self.view.tiles:
            return FogTileState.VISIBLE
        if self._seen[y][x]:
            return FogTileState.SEEN
        return FogTileState.UNSEEN

    def light_map(self) -> List[List[float]]:
        """
        Returns a matrix [height][width] of brightness multipliers suitable for rendering.
        0.0 for unseen, dim_factor for seen-not-visible, 1.0 for visible.
        """
        h, w = self.grid.height, self.grid.width
        dim = self.settings.dim_factor
        result: List[List[float]] = [[0.0 for _ in range(w)] for _ in range(h)]
        for y in range(h):
            for x in range(w):
                if (x, y) in self.view.tiles:
                    result[y][x] = 1.0
                elif self._seen[y][x]:
                    result[y][x] = dim
        return result

    def visible_tiles(self) -> Set[Coord]:
        return set(self.view.tiles)

    def seen_mask(self) -> List[List[bool]]:
        return [row[:] for row in self._seen]

    def on_map_changed(self, new_grid: TileGrid) -> None:
        """
        Replace the underlying grid (e.g., when switching floors) and reset memory.
        """
        self.grid = new_grid
        self._seen = [[False for _ in range(new_grid.width)] for _ in range(new_grid.height)]
        self.view.tiles.clear()
        self.view.symmetric_tiles.clear()
        self.view.mark_dirty()
        logger.debug("FogOfWar map changed to %dx%d; memory cleared", new_grid.width, new_grid.height)
