from .grid import Bounds, Coord, SpatialGrid, TileGrid, in_bounds

__all__ = ["Bounds", "Coord", "SpatialGrid", "TileGrid", "in_bounds"]
