"""Configuration models for G-code export.

A :class:`PlotConfig` is immutable once built.  Updates go through a
:class:`ConfigPatch`, which lists every recognised option explicitly so a
misspelled key is reported instead of silently ignored.
"""

from __future__ import annotations

import collections.abc
import logging
import numbers
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import yaml

logger = logging.getLogger(__name__)

Margin = Tuple[float, float, float, float]
MarginInput = Union[float, Sequence[float]]


class ConfigError(ValueError):
    """Raised when a configuration value is invalid."""


# camelCase spellings used by sketch-style callers
_ALIASES = {
    "feedRate": "feed_rate",
    "seekRate": "seek_rate",
    "onCommand": "on_command",
    "offCommand": "off_command",
    "powerDelay": "power_delay",
    "fileName": "file_name",
    "paperSize": "paper_size",
    "flipX": "flip_x",
    "flipY": "flip_y",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def normalize_margin(margin: MarginInput) -> Margin:
    """Expand ``margin`` to ``(left, top, right, bottom)``.

    Accepts a single number, a ``(horizontal, vertical)`` pair or four
    values.  Normalising an already normalised margin returns it unchanged.
    """

    if _is_number(margin):
        m = float(margin)
        return (m, m, m, m)
    if isinstance(margin, (str, bytes)) or not isinstance(margin, Sequence):
        raise ConfigError(f"Margin must be a number or a sequence, got {margin!r}")
    values = list(margin)
    if not all(_is_number(v) for v in values):
        raise ConfigError(f"Margin values must be numbers, got {margin!r}")
    if len(values) == 2:
        h, v = float(values[0]), float(values[1])
        return (h, v, h, v)
    if len(values) == 4:
        left, top, right, bottom = (float(v) for v in values)
        return (left, top, right, bottom)
    raise ConfigError(f"Margin must have 2 or 4 values, got {len(values)}")


def compute_draw_area(paper_size: Tuple[float, float], margin: Margin) -> Tuple[float, float]:
    """Usable ``(width, height)`` once margins are taken off the paper."""

    left, top, right, bottom = margin
    width = paper_size[0] - left - right
    height = paper_size[1] - top - bottom
    if width <= 0 or height <= 0:
        raise ConfigError(
            f"Margins {margin} leave no drawable area on paper {paper_size[0]}x{paper_size[1]}"
        )
    return width, height


@dataclass(frozen=True)
class ConfigPatch:
    """Partial configuration overlay.  ``None`` keeps the current value."""

    feed_rate: Optional[float] = None
    seek_rate: Optional[float] = None
    on_command: Optional[str] = None
    off_command: Optional[str] = None
    power_delay: Optional[float] = None
    file_name: Optional[str] = None
    paper_size: Optional[Sequence[float]] = None
    margin: Optional[MarginInput] = None
    flip_x: Optional[bool] = None
    flip_y: Optional[bool] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ConfigPatch":
        if not isinstance(data, collections.abc.Mapping):
            raise ConfigError(f"Configuration must be a mapping of options, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        unknown = []
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                unknown.append(key)
                continue
            values[name] = value
        if unknown:
            raise ConfigError(f"Unknown configuration option(s): {', '.join(sorted(unknown))}")
        return cls(**values)

    def changes(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class PlotConfig:
    """Validated export settings.

    Rates are in machine units per minute, ``power_delay`` is the dwell in
    seconds after every tool state change, ``paper_size`` and ``margin`` are
    in millimetres.
    """

    feed_rate: float = 8000
    seek_rate: float = 8000
    on_command: str = "M03S20"
    off_command: str = "M03S0"
    power_delay: float = 0.2
    file_name: str = "sketch"
    paper_size: Tuple[float, float] = (210.0, 297.0)
    margin: Margin = (10.0, 10.0, 10.0, 10.0)
    flip_x: bool = False
    flip_y: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "margin", normalize_margin(self.margin))
        object.__setattr__(self, "paper_size", _paper_size(self.paper_size))
        self._validate()

    def _validate(self) -> None:
        for name in ("feed_rate", "seek_rate"):
            value = getattr(self, name)
            if not _is_number(value) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")
        if not _is_number(self.power_delay) or self.power_delay < 0:
            raise ConfigError(f"power_delay must be a non-negative number, got {self.power_delay!r}")
        for name in ("on_command", "off_command", "file_name"):
            if not isinstance(getattr(self, name), str):
                raise ConfigError(f"{name} must be a string, got {getattr(self, name)!r}")
        for name in ("flip_x", "flip_y"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be a boolean, got {getattr(self, name)!r}")
        if any(m < 0 for m in self.margin):
            raise ConfigError(f"Margins must be non-negative, got {self.margin}")
        compute_draw_area(self.paper_size, self.margin)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    @property
    def draw_area(self) -> Tuple[float, float]:
        return compute_draw_area(self.paper_size, self.margin)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    def merge(self, patch: ConfigPatch) -> "PlotConfig":
        """Return a new config with ``patch`` applied on top of this one."""
        return replace(self, **patch.changes())

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]] = None) -> "PlotConfig":
        return cls().merge(ConfigPatch.from_mapping(data or {}))

    def to_dict(self) -> Dict[str, Any]:
        """Serialise using the camelCase option names."""
        reverse = {v: k for k, v in _ALIASES.items()}
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = list(value)
            out[reverse.get(f.name, f.name)] = value
        return out


def _paper_size(value: Any) -> Tuple[float, float]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) != 2:
        raise ConfigError(f"paper_size must be a (width, height) pair, got {value!r}")
    if not all(_is_number(v) and v > 0 for v in value):
        raise ConfigError(f"paper_size dimensions must be positive numbers, got {value!r}")
    return float(value[0]), float(value[1])


def load_config(path: Union[str, Path]) -> PlotConfig:
    """Load a :class:`PlotConfig` from a YAML file of option overrides."""

    path = Path(path)
    logger.info("Loading configuration from %s", path)
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"{path}: expected a mapping of options, got {type(data).__name__}")
    return PlotConfig.from_mapping(data)


__all__ = [
    "ConfigError",
    "ConfigPatch",
    "PlotConfig",
    "compute_draw_area",
    "load_config",
    "normalize_margin",
]
