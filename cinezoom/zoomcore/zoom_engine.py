"""Zoom engine — live state machine plus access to export segments.

The engine is driven once per frame via ``update(time_ms)`` and answers
with a :class:`CameraState`.  Three layers cooperate:

1. **State machine** — ``IDLE → ZOOMING_IN → ACTIVE_TRACKING →
   ZOOMING_OUT → IDLE``.  Zoom is a mode: the first click enters it,
   later clicks only move the anchor.  A burst of activity during
   zoom-out reclaims the zoom without dropping to scale 1 first.
2. **Activity score** — see :mod:`activity_scorer`; it decides when the
   zoom ends.
3. **Camera** — see :mod:`camera`; springs turn targets into motion.

Live preview integrates springs over wall-clock deltas.  Seeking resets
everything and replays the recorded events at a fixed step, because
spring motion depends on the whole path, not just the current target.

For export, :meth:`generate_zoom_segments` / :meth:`evaluate_at_time`
wrap the pure functions of :mod:`segments`.
"""

import copy
import logging
import time
from typing import Iterable, List, Optional, Tuple

from .activity_scorer import ActivityScorer
from .camera import CameraBlender
from .config import SpringConfig, ZoomConfig, ZoomSpeed, parse_zoom_speed
from .models import (
    CameraState,
    CameraTransform,
    ClickEvent,
    CursorMoveEvent,
    ZoomSegment,
    ZoomState,
    FRAME_MS,
)
from .segments import evaluate_at_time, generate_zoom_segments
from .utils import clamp_edge, distance

logger = logging.getLogger(__name__)


# ── Tuning constants ────────────────────────────────────────────────

ZOOM_IN_THRESHOLD = 0.35          # activity above this reclaims a zoom-out
ZOOM_OUT_THRESHOLD = 0.12         # activity below this ends tracking
ZOOM_IN_COOLDOWN_MS = 300         # after zoom-out completes, ignore clicks this long
TRACKING_APPROACH_RATIO = 0.93    # fraction of zoom level that counts as "zoomed in"
ZOOM_OUT_SETTLE_THRESHOLD = 0.005
IS_ZOOMED_SCALE = 1.05
MIN_MOVE_DISTANCE = 0.0005        # smaller cursor steps don't count as activity
MAX_FRAME_DELTA_MS = 100          # cap so a stalled frame doesn't fling the springs


class ZoomEngine:
    """Click-driven zoom camera for preview, with segment export helpers.

    Not thread-safe: one caller drives an instance at a time.  A preview
    engine and an export engine may run side by side on separate copies
    of the same events.  Each engine owns a copy of *config*, so the
    setters never leak into another engine built from the same settings.
    """

    def __init__(self, config: Optional[ZoomConfig] = None) -> None:
        self.config = copy.deepcopy(config) if config is not None else ZoomConfig()
        self._activity = ActivityScorer()
        self._camera = CameraBlender(self.config)

        self._clicks: List[ClickEvent] = []
        self._moves: List[CursorMoveEvent] = []
        self._segments: List[ZoomSegment] = []

        self.reset()

    # ── inputs ──────────────────────────────────────────────────────

    def _clamp(self, x: float, y: float) -> Tuple[float, float]:
        pad = self.config.edge_padding
        return clamp_edge(x, pad), clamp_edge(y, pad)

    def set_clicks(self, clicks: Iterable[ClickEvent]) -> None:
        """Load the full click log for playback and rewind to the start."""
        loaded = []
        for c in clicks:
            x, y = self._clamp(c.x, c.y)
            loaded.append(ClickEvent(time=c.time, x=x, y=y, button=c.button, down=c.down))
        self._clicks = sorted(loaded, key=lambda c: c.time)
        self.reset()

    def set_cursor_moves(self, moves: Iterable[CursorMoveEvent]) -> None:
        """Load the full cursor log for playback and rewind to the start."""
        loaded = []
        for m in moves:
            x, y = self._clamp(m.x, m.y)
            loaded.append(CursorMoveEvent(time=m.time, x=x, y=y))
        self._moves = sorted(loaded, key=lambda m: m.time)
        self.reset()

    def add_click(self, time_ms: float, x: float, y: float) -> None:
        """Append a live click (times are expected to be monotonic)."""
        cx, cy = self._clamp(x, y)
        click = ClickEvent(time=time_ms, x=cx, y=cy)
        self._clicks.append(click)
        self._next_click = len(self._clicks)
        self._process_click(click)

    def update_cursor(self, x: float, y: float, time_ms: Optional[float] = None) -> None:
        """Report the live cursor position.

        Without *time_ms* the position only steers the camera; with it the
        sample is also recorded and counted as activity.
        """
        cx, cy = self._clamp(x, y)
        if time_ms is None:
            self._cursor = (cx, cy)
            return
        move = CursorMoveEvent(time=time_ms, x=cx, y=cy)
        self._moves.append(move)
        self._next_move = len(self._moves)
        self._process_move(move)

    @property
    def clicks(self) -> List[ClickEvent]:
        return list(self._clicks)

    @property
    def cursor_moves(self) -> List[CursorMoveEvent]:
        return list(self._moves)

    # ── outputs ─────────────────────────────────────────────────────

    @property
    def state(self) -> ZoomState:
        return self._state

    def get_state(self) -> CameraState:
        x, y = self._camera.position
        scale = self._camera.scale
        return CameraState(
            x=x,
            y=y,
            scale=scale,
            state=self._state,
            is_zoomed=scale > IS_ZOOMED_SCALE,
            activity_score=self._activity.score,
        )

    # ── per-frame ───────────────────────────────────────────────────

    def update(self, time_ms: float, now_ms: Optional[float] = None) -> CameraState:
        """Advance to recording time *time_ms* and return the camera.

        *now_ms* is the wall clock (defaults to ``time.perf_counter()``);
        the springs integrate over its delta since the previous call,
        capped at ``MAX_FRAME_DELTA_MS``.  The first call uses one frame.
        """
        if now_ms is None:
            now_ms = time.perf_counter() * 1000.0
        if self._last_wall_ms is None:
            dt = FRAME_MS
        else:
            dt = now_ms - self._last_wall_ms
        self._last_wall_ms = now_ms
        self._advance(time_ms, min(max(dt, 0.0), MAX_FRAME_DELTA_MS))
        return self.get_state()

    def _advance(self, time_ms: float, dt_ms: float) -> None:
        self._consume_recorded(time_ms)
        self._activity.update(time_ms, dt_ms)
        self._update_state_machine(time_ms)

        if self._state == ZoomState.ZOOMING_IN:
            tracking_ms: Optional[float] = 0.0
        elif self._state == ZoomState.ACTIVE_TRACKING:
            tracking_ms = time_ms - self._state_entered_at
        else:
            tracking_ms = None
        self._camera.step(dt_ms, self._cursor, self.config.zoom_level, tracking_ms)

    def seek_to(self, time_ms: float) -> CameraState:
        """Rewind and replay every recorded event up to *time_ms*.

        Replay runs at a fixed 60 Hz step from the first event, so the
        result depends only on the recorded data.
        """
        self.reset()
        first = [evs[0].time for evs in (self._clicks, self._moves) if evs]
        if first and min(first) <= time_ms:
            t = min(first)
            self._advance(t, FRAME_MS)
            while t < time_ms:
                step = min(FRAME_MS, time_ms - t)
                t += step
                self._advance(t, step)
        self._last_wall_ms = None
        return self.get_state()

    # ── state machine ───────────────────────────────────────────────

    def _set_state(self, new_state: ZoomState, time_ms: float) -> None:
        if new_state != self._state:
            logger.debug("Zoom state %s -> %s at %.0fms", self._state.value, new_state.value, time_ms)
            self._state = new_state
            self._state_entered_at = time_ms

    def _update_state_machine(self, time_ms: float) -> None:
        score = self._activity.score
        zoom_level = self.config.zoom_level

        if self._state == ZoomState.ZOOMING_IN:
            if self._camera.scale > zoom_level * TRACKING_APPROACH_RATIO:
                self._set_state(ZoomState.ACTIVE_TRACKING, time_ms)

        elif self._state == ZoomState.ACTIVE_TRACKING:
            dwell = time_ms - self._state_entered_at
            if score < ZOOM_OUT_THRESHOLD and dwell >= self.config.click_post_padding_ms:
                self._set_state(ZoomState.ZOOMING_OUT, time_ms)
                self._camera.release()

        elif self._state == ZoomState.ZOOMING_OUT:
            if score > ZOOM_IN_THRESHOLD:
                # Reclaim: head back to the anchor from wherever the scale is now.
                self._set_state(ZoomState.ZOOMING_IN, time_ms)
                self._camera.zoom_spring.set_target(zoom_level)
                self._camera.retarget(*self._camera.anchor)
            elif self._camera.zoom_spring.is_settled(ZOOM_OUT_SETTLE_THRESHOLD):
                self._camera.zoom_spring.set_value(1.0)
                self._set_state(ZoomState.IDLE, time_ms)
                self._zoom_out_complete_time = time_ms

    # ── event processing ────────────────────────────────────────────

    def _consume_recorded(self, time_ms: float) -> None:
        """Feed recorded clicks and moves up to *time_ms* in time order."""
        while True:
            click = self._clicks[self._next_click] if self._next_click < len(self._clicks) else None
            move = self._moves[self._next_move] if self._next_move < len(self._moves) else None
            if click is not None and click.time > time_ms:
                click = None
            if move is not None and move.time > time_ms:
                move = None
            if click is None and move is None:
                return
            if move is not None and (click is None or move.time < click.time):
                self._next_move += 1
                self._process_move(move)
            else:
                self._next_click += 1
                self._process_click(click)

    def _process_move(self, move: CursorMoveEvent) -> None:
        travelled = distance(self._cursor[0], self._cursor[1], move.x, move.y)
        self._cursor = (move.x, move.y)
        if travelled > MIN_MOVE_DISTANCE:
            self._activity.add_movement(move.time, travelled)

    def _process_click(self, click: ClickEvent) -> None:
        if not click.down:
            return
        self._cursor = (click.x, click.y)
        self._activity.add_click(click.time)

        if self._state in (ZoomState.IDLE, ZoomState.ZOOMING_OUT):
            if (
                self._zoom_out_complete_time is not None
                and click.time - self._zoom_out_complete_time < ZOOM_IN_COOLDOWN_MS
            ):
                return
            self._set_state(ZoomState.ZOOMING_IN, click.time)
            self._camera.engage(click.x, click.y, self.config.zoom_level)
        else:
            self._camera.retarget(click.x, click.y)

    # ── segments (export) ───────────────────────────────────────────

    def generate_zoom_segments(
        self,
        zoom_amount: Optional[float] = None,
        duration_ms: Optional[float] = None,
    ) -> List[ZoomSegment]:
        """Regenerate segments from the recorded events, replacing any previous set."""
        self._segments = generate_zoom_segments(
            self._clicks, self._moves, self.config,
            zoom_amount=zoom_amount, duration_ms=duration_ms,
        )
        return list(self._segments)

    def set_zoom_segments(self, segments: List[ZoomSegment]) -> None:
        """Use pre-computed segments (e.g. after manual editing)."""
        self._segments = sorted(segments, key=lambda s: s.start)

    @property
    def zoom_segments(self) -> List[ZoomSegment]:
        return list(self._segments)

    def evaluate_at_time(self, time_ms: float) -> CameraTransform:
        return evaluate_at_time(self._segments, time_ms, self.config)

    # ── settings ────────────────────────────────────────────────────

    def set_zoom_level(self, level: float) -> None:
        self.config.zoom_level = self.config.clamp_zoom(level)
        if self._state in (ZoomState.ZOOMING_IN, ZoomState.ACTIVE_TRACKING):
            self._camera.zoom_spring.set_target(self.config.zoom_level)

    def set_zoom_speed(self, speed: ZoomSpeed) -> None:
        """Switch transition timing and the zoom spring to a speed preset."""
        self.config.zoom_speed = parse_zoom_speed(speed)
        self.config.zoom_spring_override = None
        self._camera.configure("zoom", self.config.zoom_spring)

    def set_spring_config(self, kind: str, spring: SpringConfig) -> None:
        """Override the ``position``, ``zoom`` or ``cursor`` spring."""
        self._camera.configure(kind, spring)
        if kind == "zoom":
            self.config.zoom_spring_override = spring
        elif kind == "position":
            self.config.position_spring = spring
        else:
            self.config.cursor_follow_spring = spring

    # ── lifecycle ───────────────────────────────────────────────────

    def reset(self) -> None:
        """Rewind to the idle, centred state; recorded events are kept."""
        self._camera.reset()
        self._activity.reset()
        self._state = ZoomState.IDLE
        self._state_entered_at = 0.0
        self._zoom_out_complete_time: Optional[float] = None
        self._next_click = 0
        self._next_move = 0
        self._cursor: Tuple[float, float] = (0.5, 0.5)
        self._last_wall_ms: Optional[float] = None

    def destroy(self) -> None:
        """Drop all recorded events and segments."""
        self.reset()
        self._clicks = []
        self._moves = []
        self._segments = []
