from .fog_of_war import FieldOfView, FogOfWar, FogSettings, FogTileState
from .shadowcast import (
    FovShape,
    VisibleCell,
    compute_fov,
    field_of_view,
    in_shape,
    iter_fov,
    visible_tiles,
)

__all__ = [
    "FieldOfView",
    "FogOfWar",
    "FogSettings",
    "FogTileState",
    "FovShape",
    "VisibleCell",
    "compute_fov",
    "field_of_view",
    "in_shape",
    "iter_fov",
    "visible_tiles",
]
