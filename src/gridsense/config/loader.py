from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from importlib.resources import files as resource_files
from typing import Any, Dict, Optional

import yaml

from gridsense.exceptions import ConfigError, InvalidInputError
from gridsense.fov.shadowcast import FovShape

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    """Defaults callers use when asking the engines for a view or a path.

    - fov_range / fov_shape: vision radius and shape policy for entities.
    - circle_dist: price diagonal steps at 141 instead of 100.
    - bound_pad: 0 searches the whole map; otherwise pad around start/dest.
    - fallback_closest: walk toward the nearest reachable tile when boxed out.
    - explore_limit: tiles a single search may expand; None is unlimited.
    - dim_factor: fog-of-war brightness for remembered tiles.
    """

    fov_range: int = 8
    fov_shape: FovShape = FovShape.CIRCLE_PLUS
    circle_dist: bool = False
    bound_pad: int = 0
    fallback_closest: bool = True
    explore_limit: Optional[int] = None
    dim_factor: float = 0.35

    def __post_init__(self) -> None:
        object.__setattr__(self, "fov_shape", FovShape(self.fov_shape))
        if self.fov_range < 0:
            raise InvalidInputError("fov_range must be >= 0")
        if self.bound_pad < 0:
            raise InvalidInputError("bound_pad must be >= 0")
        if self.explore_limit is not None and self.explore_limit < 0:
            raise InvalidInputError("explore_limit must be >= 0")
        if not (0.0 <= self.dim_factor <= 1.0):
            raise InvalidInputError("dim_factor must be between 0.0 and 1.0")


def _as_bool(value: Any) -> bool:
    # YAML already maps true/false/yes/no; a quoted "false" stays a string.
    if not isinstance(value, bool):
        raise TypeError(f"expected true or false, got {type(value).__name__}")
    return value


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected a whole number, got {type(value).__name__}")
    return value


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    return float(value)


def _as_shape(value: Any) -> FovShape:
    if not isinstance(value, str):
        raise TypeError(f"expected a shape name, got {type(value).__name__}")
    return FovShape(value.lower())


_CONVERTERS = {
    "fov_range": _as_int,
    "fov_shape": _as_shape,
    "circle_dist": _as_bool,
    "bound_pad": _as_int,
    "fallback_closest": _as_bool,
    "explore_limit": lambda v: None if v is None else _as_int(v),
    "dim_factor": _as_float,
}


def settings_from_mapping(raw: Dict[str, Any]) -> EngineSettings:
    known = {f.name for f in dataclasses.fields(EngineSettings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        logger.warning("Ignoring unknown engine settings: %s", ", ".join(unknown))
    kwargs: Dict[str, Any] = {}
    for key in known & set(raw):
        try:
            kwargs[key] = _CONVERTERS[key](raw[key])
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for {key!r}: {raw[key]!r}") from exc
    try:
        return EngineSettings(**kwargs)
    except InvalidInputError as exc:
        raise ConfigError(str(exc)) from exc


def load_settings(path: Optional[str] = None) -> EngineSettings:
    """Load engine settings from YAML.

    If path is None, loads the embedded default resource at
    gridsense/config/defaults.yaml.
    """
    if path is None:
        data = resource_files("gridsense.config").joinpath("defaults.yaml").read_text(encoding="utf-8")
        logger.debug("Loaded embedded engine settings resource")
    else:
        with open(path, "r", encoding="utf-8") as f:
            data = f.read()
        logger.debug("Loaded engine settings from path: %s", path)

    try:
        raw = yaml.safe_load(data) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed settings YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("Settings YAML must be a mapping")

    settings = settings_from_mapping(raw)
    logger.info(
        "Engine settings: fov=%d/%s circle_dist=%s bound_pad=%d fallback=%s explore_limit=%s",
        settings.fov_range,
        settings.fov_shape.value,
        settings.circle_dist,
        settings.bound_pad,
        settings.fallback_closest,
        settings.explore_limit,
    )
    return settings
