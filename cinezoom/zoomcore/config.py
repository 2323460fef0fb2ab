"""Engine configuration — spring parameters, speed presets, zoom settings.

All tunables live in explicit dataclasses whose defaults are resolved at
construction.  Invalid values never raise: they are clamped or replaced
and a warning is logged, so a bad settings file can't push NaN into the
spring solver.
"""

import logging
import math
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Dict, Optional

logger = logging.getLogger(__name__)


# ── Spring parameter bounds ─────────────────────────────────────────

MIN_TENSION = 1e-3
MAX_TENSION = 1e5
MIN_MASS = 1e-3
MAX_MASS = 1e3
MAX_FRICTION = 1e4


def _sanitize(name: str, value: float, default: float, lo: float, hi: float) -> float:
    """Return *value* clamped into ``[lo, hi]``, or *default* if not finite."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        logger.warning("Spring %s=%r is not a number, using %s", name, value, default)
        return default
    if not math.isfinite(value):
        logger.warning("Spring %s=%r is not finite, using %s", name, value, default)
        return default
    if value < lo or value > hi:
        clamped = max(lo, min(hi, value))
        logger.warning("Spring %s=%s out of range, clamped to %s", name, value, clamped)
        return clamped
    return value


@dataclass
class SpringConfig:
    """Physical parameters of a damped spring.

    The damping ratio ``friction / (2·sqrt(tension·mass))`` decides the
    regime: below 1 the spring overshoots, at 1 it is critically damped,
    above 1 it creeps in without oscillating.
    """
    tension: float = 170.0
    mass: float = 1.0
    friction: float = 26.0

    def __post_init__(self) -> None:
        self.tension = _sanitize("tension", self.tension, 170.0, MIN_TENSION, MAX_TENSION)
        self.mass = _sanitize("mass", self.mass, 1.0, MIN_MASS, MAX_MASS)
        self.friction = _sanitize("friction", self.friction, 26.0, 0.0, MAX_FRICTION)

    @property
    def damping_ratio(self) -> float:
        return self.friction / (2.0 * math.sqrt(self.tension * self.mass))

    def to_dict(self) -> dict:
        return {"tension": self.tension, "mass": self.mass, "friction": self.friction}

    @staticmethod
    def from_dict(d: dict) -> "SpringConfig":
        return SpringConfig(
            tension=d.get("tension", 170.0),
            mass=d.get("mass", 1.0),
            friction=d.get("friction", 26.0),
        )


# Named presets shared by the camera, the segment easing and the cursor.
SPRING_PRESETS: Dict[str, SpringConfig] = {
    # default cursor smoothing, close to critical damping
    "cursor": SpringConfig(tension=170.0, mass=1.0, friction=26.0),
    # click reactions
    "snappy": SpringConfig(tension=700.0, mass=1.0, friction=30.0),
    # heavier while the primary button is held
    "drag": SpringConfig(tension=136.0, mass=1.2, friction=33.8),
    # zoom transitions, slight overshoot
    "zoom": SpringConfig(tension=120.0, mass=1.0, friction=18.0),
    "zoom_critical": SpringConfig(tension=170.0, mass=1.0, friction=26.0),
    # camera pan
    "screen_movement": SpringConfig(tension=200.0, mass=2.25, friction=40.0),
    # cursor following while zoomed
    "gentle_follow": SpringConfig(tension=80.0, mass=2.0, friction=25.0),
    "segment_transition": SpringConfig(tension=200.0, mass=2.25, friction=40.0),
}


def spring_preset(name: str) -> SpringConfig:
    """Return a fresh copy of a named preset (callers may mutate it)."""
    preset = SPRING_PRESETS[name]
    return SpringConfig(tension=preset.tension, mass=preset.mass, friction=preset.friction)


# ── Zoom speed presets ──────────────────────────────────────────────

class ZoomSpeed(str, Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


@dataclass(frozen=True)
class SpeedPreset:
    """Transition timing for one zoom speed.

    Durations are in seconds and drive the zoom-in / zoom-out windows of
    segment playback; *spring* drives both that easing and the live zoom
    spring so preview and export move alike.
    """
    zoom_in_duration: float
    zoom_out_duration: float
    spring: SpringConfig


SPEED_PRESETS: Dict[ZoomSpeed, SpeedPreset] = {
    ZoomSpeed.SLOW: SpeedPreset(1.2, 1.2, SpringConfig(tension=80.0, mass=1.0, friction=25.0)),
    ZoomSpeed.NORMAL: SpeedPreset(0.8, 0.8, SpringConfig(tension=120.0, mass=1.0, friction=18.0)),
    ZoomSpeed.FAST: SpeedPreset(0.4, 0.4, SpringConfig(tension=200.0, mass=1.0, friction=22.0)),
}


def parse_zoom_speed(value) -> ZoomSpeed:
    """Coerce a string or enum to :class:`ZoomSpeed`, defaulting to normal."""
    if isinstance(value, ZoomSpeed):
        return value
    try:
        return ZoomSpeed(str(value).lower())
    except ValueError:
        logger.warning("Unknown zoom speed %r, using 'normal'", value)
        return ZoomSpeed.NORMAL


# ── Zoom configuration ──────────────────────────────────────────────

@dataclass
class ZoomConfig:
    """User-facing zoom settings plus segment-generation thresholds.

    Times are in milliseconds, coordinates normalized to ``0-1``.
    """
    zoom_level: float = 2.0
    zoom_speed: ZoomSpeed = ZoomSpeed.NORMAL
    edge_padding: float = 0.08
    min_zoom: float = 1.0
    max_zoom: float = 4.0

    # camera springs (the zoom spring comes from the speed preset)
    position_spring: SpringConfig = field(default_factory=lambda: spring_preset("screen_movement"))
    cursor_follow_spring: SpringConfig = field(default_factory=lambda: spring_preset("gentle_follow"))
    # replaces the speed preset's spring when set
    zoom_spring_override: Optional[SpringConfig] = None

    # segment generation
    click_group_time_ms: float = 2000.0
    click_group_spatial: float = 0.15
    click_pre_padding_ms: float = 300.0
    click_post_padding_ms: float = 1000.0
    focus_sample_interval_ms: float = 200.0
    merge_gap_ms: float = 400.0
    min_segment_duration_ms: float = 800.0

    def __post_init__(self) -> None:
        self.zoom_speed = parse_zoom_speed(self.zoom_speed)
        if isinstance(self.position_spring, dict):
            self.position_spring = SpringConfig.from_dict(self.position_spring)
        if isinstance(self.cursor_follow_spring, dict):
            self.cursor_follow_spring = SpringConfig.from_dict(self.cursor_follow_spring)
        if isinstance(self.zoom_spring_override, dict):
            self.zoom_spring_override = SpringConfig.from_dict(self.zoom_spring_override)

        if self.min_zoom < 1.0:
            logger.warning("min_zoom=%s below 1.0, clamped", self.min_zoom)
            self.min_zoom = 1.0
        if self.max_zoom < self.min_zoom:
            logger.warning("max_zoom=%s below min_zoom=%s, swapped", self.max_zoom, self.min_zoom)
            self.min_zoom, self.max_zoom = max(1.0, self.max_zoom), self.min_zoom
        level = max(self.min_zoom, min(self.max_zoom, self.zoom_level))
        if level != self.zoom_level:
            logger.warning("zoom_level=%s outside [%s, %s], clamped to %s",
                           self.zoom_level, self.min_zoom, self.max_zoom, level)
            self.zoom_level = level
        padding = max(0.0, min(0.45, self.edge_padding))
        if padding != self.edge_padding:
            logger.warning("edge_padding=%s clamped to %s", self.edge_padding, padding)
            self.edge_padding = padding
        if self.min_segment_duration_ms <= 0:
            logger.warning("min_segment_duration_ms must be positive, using 800")
            self.min_segment_duration_ms = 800.0

    @property
    def speed_preset(self) -> SpeedPreset:
        return SPEED_PRESETS[self.zoom_speed]

    @property
    def zoom_spring(self) -> SpringConfig:
        if self.zoom_spring_override is not None:
            return self.zoom_spring_override
        return self.speed_preset.spring

    @property
    def zoom_in_duration(self) -> float:
        """Zoom-in transition length in seconds."""
        return self.speed_preset.zoom_in_duration

    @property
    def zoom_out_duration(self) -> float:
        """Zoom-out transition length in seconds."""
        return self.speed_preset.zoom_out_duration

    def clamp_zoom(self, level: float) -> float:
        return max(self.min_zoom, min(self.max_zoom, level))

    def to_dict(self) -> dict:
        d = asdict(self)
        d["zoom_speed"] = self.zoom_speed.value
        return d

    @staticmethod
    def from_dict(d: dict) -> "ZoomConfig":
        """Build from a dict, ignoring unknown keys for forward compat."""
        known = {f.name for f in fields(ZoomConfig)}
        filtered = {k: v for k, v in d.items() if k in known}
        return ZoomConfig(**filtered)
