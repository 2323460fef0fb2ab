"""Camera blender — springs that move the virtual camera.

Three springs cooperate:

* a **position** spring chasing the camera target (pan),
* a lighter **cursor-follow** spring that trails the live cursor,
* a scalar **zoom** spring for the scale.

While tracking, the camera target is a blend of the click anchor and the
cursor-follow spring.  The cursor weight ramps in after tracking starts
and grows with zoom depth, so the camera hands off from "snap to the
click" to "follow the mouse" without a jump.  The blended target is then
nudged so the live cursor stays inside the zoomed viewport.
"""

from typing import Optional, Tuple

from .config import SpringConfig, ZoomConfig
from .spring_physics import Spring1D, SpringMassDamperSimulation
from .utils import clamp_edge

CURSOR_FOLLOW_RAMP_MS = 600      # ms to ramp cursor influence after tracking starts
CURSOR_FOLLOW_MAX = 0.45         # max cursor influence weight
CURSOR_VISIBILITY_MARGIN = 0.06  # keep the cursor this far inside the viewport
NUDGE_MIN_SCALE = 1.05           # below this the whole frame is visible anyway


class CameraBlender:
    def __init__(self, config: ZoomConfig) -> None:
        self.config = config
        self.position_spring = SpringMassDamperSimulation(config.position_spring)
        self.cursor_spring = SpringMassDamperSimulation(config.cursor_follow_spring)
        self.zoom_spring = Spring1D(config.zoom_spring, initial=1.0)
        self.anchor: Tuple[float, float] = (0.5, 0.5)
        self.reset()

    # ── state ───────────────────────────────────────────────────────

    @property
    def scale(self) -> float:
        # the zoom spring undershoots 1.0 slightly on the way out
        return max(1.0, self.zoom_spring.value)

    @property
    def position(self) -> Tuple[float, float]:
        return self.position_spring.position

    def zoom_depth(self, zoom_level: float) -> float:
        """Fraction of the way from scale 1 to *zoom_level* (not clamped)."""
        return (self.zoom_spring.value - 1.0) / max(0.01, zoom_level - 1.0)

    def reset(self) -> None:
        for spring in (self.position_spring, self.cursor_spring):
            spring.set_position(0.5, 0.5)
            spring.set_target(0.5, 0.5)
            spring.set_velocity(0.0, 0.0)
        self.zoom_spring.set_value(1.0)
        self.zoom_spring.set_target(1.0)
        self.anchor = (0.5, 0.5)

    def configure(self, kind: str, config: SpringConfig) -> None:
        """Swap the parameters of the ``position``, ``zoom`` or ``cursor`` spring."""
        spring = {
            "position": self.position_spring,
            "zoom": self.zoom_spring,
            "cursor": self.cursor_spring,
        }.get(kind)
        if spring is None:
            raise ValueError(f"unknown spring kind: {kind!r}")
        spring.configure(config)

    # ── targets ─────────────────────────────────────────────────────

    def engage(self, x: float, y: float, zoom_level: float) -> None:
        """Start a zoom on (*x*, *y*): anchor there and snap the follow spring."""
        self.anchor = (x, y)
        self.zoom_spring.set_target(zoom_level)
        self.position_spring.set_target(x, y)
        self.cursor_spring.set_position(x, y)
        self.cursor_spring.set_target(x, y)

    def retarget(self, x: float, y: float) -> None:
        """Move the anchor while zoomed; the scale target is left alone."""
        self.anchor = (x, y)
        self.position_spring.set_target(x, y)

    def release(self) -> None:
        """Head back to the full, centred frame."""
        self.zoom_spring.set_target(1.0)
        self.position_spring.set_target(0.5, 0.5)

    # ── per-frame ───────────────────────────────────────────────────

    def step(
        self,
        dt_ms: float,
        cursor: Tuple[float, float],
        zoom_level: float,
        tracking_ms: Optional[float] = None,
    ) -> None:
        """Advance all springs by *dt_ms*.

        *tracking_ms* is the time spent zooming in / tracking; ``None``
        means the camera is not following the cursor this frame.
        """
        self.zoom_spring.run(dt_ms)
        self.position_spring.run(dt_ms)

        if tracking_ms is None:
            return

        self.cursor_spring.set_target(*cursor)
        self.cursor_spring.run(dt_ms)

        weight = self.follow_weight(tracking_ms, zoom_level)
        fx, fy = self.cursor_spring.position
        ax, ay = self.anchor
        blended_x = ax * (1.0 - weight) + fx * weight
        blended_y = ay * (1.0 - weight) + fy * weight

        self.position_spring.set_target(*self.ensure_cursor_visible(blended_x, blended_y, cursor))

    def follow_weight(self, tracking_ms: float, zoom_level: float) -> float:
        ramp = min(1.0, max(0.0, tracking_ms) / CURSOR_FOLLOW_RAMP_MS)
        return CURSOR_FOLLOW_MAX * ramp * self.zoom_depth(zoom_level)

    def ensure_cursor_visible(
        self, target_x: float, target_y: float, cursor: Tuple[float, float],
    ) -> Tuple[float, float]:
        """Shift the target by exactly the cursor's overflow past the viewport.

        The viewport is the rectangle visible at the current scale, shrunk
        by the visibility margin.  Edges the cursor is inside of are left
        untouched.
        """
        scale = self.zoom_spring.value
        if scale <= NUDGE_MIN_SCALE:
            return target_x, target_y

        half_w = 0.5 / scale
        half_h = 0.5 / scale
        margin = CURSOR_VISIBILITY_MARGIN / scale
        cx, cy = cursor

        left = target_x - half_w + margin
        right = target_x + half_w - margin
        top = target_y - half_h + margin
        bottom = target_y + half_h - margin

        if cx < left:
            target_x -= left - cx
        elif cx > right:
            target_x += cx - right
        if cy < top:
            target_y -= top - cy
        elif cy > bottom:
            target_y += cy - bottom

        padding = self.config.edge_padding
        return clamp_edge(target_x, padding), clamp_edge(target_y, padding)
