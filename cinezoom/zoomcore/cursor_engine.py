"""Cursor engine — spring-smoothed position for the synthetic cursor overlay.

Independent of the zoom camera: it consumes the same click / move
streams and answers ``get_position_at(time_ms)`` with a
:class:`CursorOverlayState` for the renderer.

* **Pre-processing** — tremor (tiny reversals within a short window) is
  filtered out, and long gaps between samples are filled with linear
  samples so the spring doesn't snap across a visible jump.
* **Spring profiles** — *snappy* right after a click, *drag* while the
  primary button is held, *default* otherwise.  Switching only swaps the
  spring's parameters; position and velocity carry over, so there is no
  pop.
* **Click pulse** — a short attack / oscillating-release envelope for
  the click ripple, decoupled from the position spring.
* **Idle fade** — the overlay fades out after the cursor has not moved
  for a while (measured in recording time, not wall clock).
"""

import bisect
import math
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .config import SpringConfig, spring_preset
from .models import ClickEvent, CursorMoveEvent, CursorOverlayState, FRAME_MS
from .spring_physics import SpringMassDamperSimulation
from .utils import clamp, distance, smoothstep


# ── Tuning constants ────────────────────────────────────────────────

CLICK_REACTION_WINDOW_MS = 160
SHAKE_THRESHOLD = 0.015               # normalized distance
SHAKE_DETECTION_WINDOW_MS = 100
CURSOR_IDLE_MIN_DELAY_MS = 500
CURSOR_IDLE_FADE_OUT_MS = 400
GAP_INTERPOLATION_THRESHOLD_MS = FRAME_MS * 4
MIN_CURSOR_TRAVEL_FOR_INTERPOLATION = 0.02
MAX_INTERPOLATED_STEPS = 120
MAX_STEP_MS = 1000                    # larger jumps are treated as a seek

CLICK_PULSE_MS = 400
CLICK_ATTACK_FRACTION = 0.15
CLICK_RELEASE_DECAY = 4.0
CLICK_OVERSHOOT = 0.15
MOTION_GAIN = 50.0


class SpringProfile(str, Enum):
    DEFAULT = "default"
    SNAPPY = "snappy"
    DRAG = "drag"


_PROFILE_PRESETS = {
    SpringProfile.DEFAULT: "cursor",
    SpringProfile.SNAPPY: "snappy",
    SpringProfile.DRAG: "drag",
}


def profile_spring(profile: SpringProfile) -> SpringConfig:
    return spring_preset(_PROFILE_PRESETS[profile])


# ── Pre-processing ──────────────────────────────────────────────────


def filter_shake(moves: List[CursorMoveEvent]) -> List[CursorMoveEvent]:
    """Drop samples that step a tiny distance and then reverse direction.

    Only samples within ``SHAKE_DETECTION_WINDOW_MS`` of the last kept one
    are candidates.  The first and last samples are always kept.
    """
    if len(moves) < 3:
        return list(moves)

    kept = [moves[0]]
    for i in range(1, len(moves) - 1):
        prev = kept[-1]
        curr = moves[i]
        nxt = moves[i + 1]

        if curr.time - prev.time > SHAKE_DETECTION_WINDOW_MS:
            kept.append(curr)
            continue

        dx1, dy1 = curr.x - prev.x, curr.y - prev.y
        dx2, dy2 = nxt.x - curr.x, nxt.y - curr.y
        reverses = dx1 * dx2 + dy1 * dy2 < 0
        if reverses and math.hypot(dx1, dy1) < SHAKE_THRESHOLD:
            continue
        kept.append(curr)

    kept.append(moves[-1])
    return kept


def densify_gaps(moves: List[CursorMoveEvent]) -> List[CursorMoveEvent]:
    """Insert linear samples across gaps longer than four frames.

    Only gaps where the cursor travelled a visible distance are filled,
    with at most ``MAX_INTERPOLATED_STEPS`` segments per gap.
    """
    if len(moves) < 2:
        return list(moves)

    result = [moves[0]]
    for prev, curr in zip(moves, moves[1:]):
        gap = curr.time - prev.time
        if (
            gap > GAP_INTERPOLATION_THRESHOLD_MS
            and distance(prev.x, prev.y, curr.x, curr.y) > MIN_CURSOR_TRAVEL_FOR_INTERPOLATION
        ):
            steps = min(math.ceil(gap / FRAME_MS), MAX_INTERPOLATED_STEPS)
            for s in range(1, steps):
                f = s / steps
                result.append(CursorMoveEvent(
                    time=prev.time + gap * f,
                    x=prev.x + (curr.x - prev.x) * f,
                    y=prev.y + (curr.y - prev.y) * f,
                ))
        result.append(curr)
    return result


def click_pulse(elapsed_ms: float, duration_ms: float = CLICK_PULSE_MS) -> float:
    """Click ripple envelope for *elapsed_ms* after a press.

    A smoothstep attack over the first 15 %, then an exponentially
    decaying release with a slight overshoot.  0 outside the pulse.
    """
    if elapsed_ms < 0 or elapsed_ms > duration_ms:
        return 0.0
    t = elapsed_ms / duration_ms
    if t < CLICK_ATTACK_FRACTION:
        return smoothstep(t / CLICK_ATTACK_FRACTION)
    release = (t - CLICK_ATTACK_FRACTION) / (1.0 - CLICK_ATTACK_FRACTION)
    overshoot = math.sin(release * math.pi * 1.2) * CLICK_OVERSHOOT
    return (1.0 + overshoot) * math.exp(-CLICK_RELEASE_DECAY * release)


# ── Engine ──────────────────────────────────────────────────────────


class CursorEngine:
    """Time-queried smoothed cursor for overlay rendering.

    Queries are expected to move forward in time (preview frames or
    export steps).  A backward jump or a jump of a second or more
    replays the track from its first sample at a fixed step instead of
    teleporting the spring, so a seek lands where continuous playback
    would have.
    """

    def __init__(self, smoothing_enabled: bool = True) -> None:
        self.smoothing_enabled = smoothing_enabled
        self._spring = SpringMassDamperSimulation(profile_spring(SpringProfile.DEFAULT))

        self._moves: List[CursorMoveEvent] = []
        self._move_times: List[float] = []
        self._clicks: List[ClickEvent] = []
        self._press_times: List[float] = []

        self.reset()

    # ── data input ──────────────────────────────────────────────────

    def set_moves(self, moves: Iterable[CursorMoveEvent]) -> None:
        """Load the whole cursor track (normalized), pre-processing it."""
        track = sorted(
            (CursorMoveEvent(time=m.time, x=clamp(m.x, 0.0, 1.0), y=clamp(m.y, 0.0, 1.0))
             for m in moves),
            key=lambda m: m.time,
        )
        if self.smoothing_enabled:
            track = densify_gaps(filter_shake(track))
        self._moves = track
        self._move_times = [m.time for m in track]
        self.reset()

    def set_clicks(self, clicks: Iterable[ClickEvent]) -> None:
        self._clicks = sorted(clicks, key=lambda c: c.time)
        self._press_times = [c.time for c in self._clicks if c.down]
        self.reset()

    def add_move(self, time_ms: float, x: float, y: float) -> None:
        """Append a live sample (no pre-processing)."""
        move = CursorMoveEvent(time=time_ms, x=clamp(x, 0.0, 1.0), y=clamp(y, 0.0, 1.0))
        self._moves.append(move)
        self._move_times.append(move.time)

    def add_click(
        self, time_ms: float, x: float, y: float, button: str = "left", down: bool = True,
    ) -> None:
        self._clicks.append(ClickEvent(time=time_ms, x=x, y=y, button=button, down=down))
        if down:
            self._press_times.append(time_ms)

    # ── queries ─────────────────────────────────────────────────────

    def get_position_at(self, time_ms: float) -> CursorOverlayState:
        """Smoothed overlay state at *time_ms*."""
        if not self._moves or time_ms < self._moves[0].time:
            self._last_time = None
            return CursorOverlayState()

        click_progress = self._click_progress(time_ms)

        if not self.smoothing_enabled:
            x, y = self._raw_position(time_ms)
            self._last_time = time_ms
            return CursorOverlayState(x=x, y=y, opacity=1.0, click_progress=click_progress)

        if self._last_time is None or not 0 <= time_ms - self._last_time < MAX_STEP_MS:
            self._replay_to(time_ms)
        else:
            self._step(time_ms, time_ms - self._last_time)

        px, py = self._spring.position
        vx, vy = self._spring.velocity
        return CursorOverlayState(
            x=clamp(px, 0.0, 1.0),
            y=clamp(py, 0.0, 1.0),
            velocity=(vx, vy),
            motion=min(math.hypot(vx, vy) * MOTION_GAIN, 1.0),
            opacity=self._idle_opacity(time_ms),
            click_progress=click_progress,
        )

    def seek_to(self, time_ms: float) -> CursorOverlayState:
        self.reset()
        return self.get_position_at(time_ms)

    def reset(self) -> None:
        """Forget spring and click state; the recorded data is kept."""
        self._spring.configure(profile_spring(SpringProfile.DEFAULT))
        self._spring.set_position(0.5, 0.5)
        self._spring.set_velocity(0.0, 0.0)
        self._spring.set_target(0.5, 0.5)
        self._profile = SpringProfile.DEFAULT
        self._last_time: Optional[float] = None
        self._next_click = 0
        self._last_click_time = float("-inf")
        self._primary_down = False

    @property
    def profile(self) -> SpringProfile:
        return self._profile

    # ── internals ───────────────────────────────────────────────────

    def _step(self, time_ms: float, dt_ms: float) -> None:
        self._advance_clicks(time_ms)
        self._apply_profile(self._select_profile(time_ms))
        self._spring.set_target(*self._raw_position(time_ms))
        self._spring.run(dt_ms)
        self._last_time = time_ms

    def _replay_to(self, time_ms: float) -> None:
        """Rebuild spring state by replaying every sample up to *time_ms*."""
        self.reset()
        start = self._moves[0].time
        self._advance_clicks(start)
        self._spring.set_position(*self._raw_position(start))
        self._last_time = start
        t = start
        while t < time_ms:
            step = min(FRAME_MS, time_ms - t)
            t += step
            self._step(t, step)
        self._last_time = time_ms

    def _raw_position(self, time_ms: float) -> Tuple[float, float]:
        """Linear interpolation of the (pre-processed) track."""
        moves = self._moves
        if time_ms <= moves[0].time:
            return moves[0].x, moves[0].y
        if time_ms >= moves[-1].time:
            return moves[-1].x, moves[-1].y
        hi = bisect.bisect_right(self._move_times, time_ms)
        a, b = moves[hi - 1], moves[hi]
        span = b.time - a.time
        if span <= 0:
            return b.x, b.y
        f = (time_ms - a.time) / span
        return a.x + (b.x - a.x) * f, a.y + (b.y - a.y) * f

    def _advance_clicks(self, time_ms: float) -> None:
        while self._next_click < len(self._clicks):
            click = self._clicks[self._next_click]
            if click.time > time_ms:
                break
            if click.down:
                self._last_click_time = click.time
            if click.button == "left":
                self._primary_down = click.down
            self._next_click += 1

    def _select_profile(self, time_ms: float) -> SpringProfile:
        if time_ms - self._last_click_time < CLICK_REACTION_WINDOW_MS:
            return SpringProfile.SNAPPY
        if self._primary_down:
            return SpringProfile.DRAG
        return SpringProfile.DEFAULT

    def _apply_profile(self, profile: SpringProfile) -> None:
        if profile != self._profile:
            self._spring.configure(profile_spring(profile))
            self._profile = profile

    def _click_progress(self, time_ms: float) -> float:
        idx = bisect.bisect_right(self._press_times, time_ms)
        if idx == 0:
            return 0.0
        return click_pulse(time_ms - self._press_times[idx - 1])

    def _idle_opacity(self, time_ms: float) -> float:
        idx = bisect.bisect_right(self._move_times, time_ms)
        if idx == 0:
            return 0.0
        idle = time_ms - self._move_times[idx - 1]
        if idle < CURSOR_IDLE_MIN_DELAY_MS:
            return 1.0
        return max(0.0, 1.0 - (idle - CURSOR_IDLE_MIN_DELAY_MS) / CURSOR_IDLE_FADE_OUT_MS)
