"""Core data models for the zoom engine.

Input events, zoom segments and the per-frame output shapes consumed by
the renderer and the export compositor.  Models that cross the engine
boundary support ``to_dict()`` / ``from_dict()`` for JSON storage;
:class:`RecordingSession` bundles a whole event log with
``to_json()`` / ``from_json()``.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .utils import normalize_point


class ZoomState(str, Enum):
    """Phases of the live zoom state machine."""
    IDLE = "idle"
    ZOOMING_IN = "zooming-in"
    ACTIVE_TRACKING = "active-tracking"
    ZOOMING_OUT = "zooming-out"


@dataclass(frozen=True)
class ClickEvent:
    """A mouse button event.

    ``x`` / ``y`` are normalized to ``0-1``.  Only button-down events
    drive zoom; ups are kept so the cursor engine can tell drags apart.
    """
    time: float  # ms since recording start
    x: float
    y: float
    button: str = "left"
    down: bool = True

    def to_dict(self) -> dict:
        d = {"time": self.time, "x": self.x, "y": self.y}
        if self.button != "left":
            d["button"] = self.button
        if not self.down:
            d["down"] = False
        return d

    @staticmethod
    def from_dict(d: dict) -> "ClickEvent":
        return ClickEvent(
            time=d["time"],
            x=d["x"],
            y=d["y"],
            button=d.get("button", "left"),
            down=d.get("down", True),
        )


@dataclass(frozen=True)
class CursorMoveEvent:
    """A single cursor position sample (normalized coordinates)."""
    time: float  # ms since recording start
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"time": self.time, "x": self.x, "y": self.y}

    @staticmethod
    def from_dict(d: dict) -> "CursorMoveEvent":
        return CursorMoveEvent(time=d["time"], x=d["x"], y=d["y"])


@dataclass(frozen=True)
class FocusPoint:
    """A point the camera passes through inside a segment."""
    time: float  # seconds
    x: float
    y: float

    def to_dict(self) -> dict:
        return {"time": self.time, "x": self.x, "y": self.y}

    @staticmethod
    def from_dict(d: dict) -> "FocusPoint":
        return FocusPoint(time=d["time"], x=d["x"], y=d["y"])


@dataclass
class ZoomSegment:
    """A finalized zoom interval with its pan path.

    ``start`` / ``end`` are in **seconds**.  Segments produced by the
    generator are ordered, non-overlapping, and at least the configured
    minimum duration long.
    """
    start: float
    end: float
    amount: float
    focus_points: List[FocusPoint] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return self.end - self.start

    def contains(self, time_sec: float) -> bool:
        return self.start <= time_sec <= self.end

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "amount": self.amount,
            "focusPoints": [fp.to_dict() for fp in self.focus_points],
        }

    @staticmethod
    def from_dict(d: dict) -> "ZoomSegment":
        return ZoomSegment(
            start=d["start"],
            end=d["end"],
            amount=d["amount"],
            focus_points=[FocusPoint.from_dict(fp) for fp in d.get("focusPoints", [])],
        )


@dataclass(frozen=True)
class CameraTransform:
    """Camera centre and scale evaluated from segments at one instant."""
    x: float = 0.5
    y: float = 0.5
    scale: float = 1.0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "scale": self.scale}


@dataclass(frozen=True)
class CameraState:
    """Live camera output — recomputed each frame, never persisted."""
    x: float = 0.5
    y: float = 0.5
    scale: float = 1.0
    state: ZoomState = ZoomState.IDLE
    is_zoomed: bool = False
    activity_score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "scale": self.scale,
            "state": self.state.value,
            "isZoomed": self.is_zoomed,
            "activityScore": self.activity_score,
        }


@dataclass(frozen=True)
class CursorOverlayState:
    """Smoothed cursor overlay for one rendered frame."""
    x: float = 0.5
    y: float = 0.5
    velocity: Tuple[float, float] = (0.0, 0.0)
    motion: float = 0.0          # 0-1, for motion blur
    opacity: float = 0.0
    click_progress: float = 0.0  # 0 = no ripple, ~1 = peak

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "velocity": list(self.velocity),
            "motion": self.motion,
            "opacity": self.opacity,
            "clickProgress": self.click_progress,
        }


@dataclass
class RecordingSession:
    """Event log of one recording, as handed over by the capture layer.

    ``from_json`` accepts normalized events (``clicks`` / ``moves``) or
    pixel-space events (``clickEvents`` / ``mouseTrack`` with
    ``timestamp`` keys) plus a ``monitorRect`` to normalize them against.
    """
    duration: float  # ms
    clicks: List[ClickEvent] = field(default_factory=list)
    moves: List[CursorMoveEvent] = field(default_factory=list)

    def to_json(self) -> str:
        data = {
            "duration": self.duration,
            "clicks": [c.to_dict() for c in self.clicks],
            "moves": [m.to_dict() for m in self.moves],
        }
        return json.dumps(data, indent=2)

    @staticmethod
    def from_json(s: str) -> "RecordingSession":
        d = json.loads(s)
        rect: Optional[dict] = d.get("monitorRect")

        clicks = [ClickEvent.from_dict(c) for c in d.get("clicks", [])]
        moves = [CursorMoveEvent.from_dict(m) for m in d.get("moves", [])]

        # Pixel-space capture output
        if rect:
            for c in d.get("clickEvents", []):
                nx, ny = normalize_point(c["x"], c["y"], rect)
                clicks.append(ClickEvent(time=c["timestamp"], x=nx, y=ny))
            for m in d.get("mouseTrack", []):
                nx, ny = normalize_point(m["x"], m["y"], rect)
                moves.append(CursorMoveEvent(time=m["timestamp"], x=nx, y=ny))

        duration = d.get("duration")
        if duration is None:
            times = [e.time for e in clicks] + [e.time for e in moves]
            duration = max(times) if times else 0.0
        return RecordingSession(duration=duration, clicks=clicks, moves=moves)


DEFAULT_FPS = 60
FRAME_MS = 1000.0 / DEFAULT_FPS
