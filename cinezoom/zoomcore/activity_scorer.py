"""Activity score — a decaying 0-1 measure of how engaged the user is.

Clicks push the score up immediately; cursor movement adds a smaller,
capped amount.  Every tick the score moves toward a value computed from
the recent click rate and recent movement, but it may only *fall* at a
bounded rate.  This replaces a hard "N ms since the last click" timer:
a drag with no new clicks keeps the camera zoomed, and zoom-out starts
only once interaction genuinely dies down.
"""

from collections import deque
from typing import Deque, Tuple


# ── Tuning constants ────────────────────────────────────────────────

CLICK_SCORE_IMPULSE = 0.5       # added per click
MOVE_SCORE_PER_UNIT = 0.3       # per normalized unit travelled in one tick
MOVE_SCORE_CAP = 0.3            # max movement contribution per tick
INTERACTION_MEMORY_MS = 3000    # how long events count toward the score
MOVEMENT_WINDOW_MS = 500        # window for "recent" movement
ACTIVITY_DECAY_RATE = 0.15      # max score drop per second
MAX_DECAY_STEP_MS = 200         # cap on dt so a stalled frame can't crash the score

CLICK_RATE_WEIGHT = 0.6
MOVEMENT_WEIGHT = 8.0
MOVEMENT_CAP = 0.5
PRESENCE_BONUS = 0.1            # any click still in memory


class ActivityScorer:
    """Bounded history of recent clicks / moves reduced to one score."""

    def __init__(self) -> None:
        self._click_times: Deque[float] = deque()
        self._moves: Deque[Tuple[float, float]] = deque()  # (time, distance)
        self._score = 0.0

    @property
    def score(self) -> float:
        return self._score

    def add_click(self, time_ms: float) -> None:
        self._click_times.append(time_ms)
        self._score = min(1.0, self._score + CLICK_SCORE_IMPULSE)

    def add_movement(self, time_ms: float, distance: float) -> None:
        """Register *distance* (normalized) travelled since the last sample."""
        self._moves.append((time_ms, distance))
        self._score = min(1.0, self._score + min(distance * MOVE_SCORE_PER_UNIT, MOVE_SCORE_CAP))

    def computed_score(self, time_ms: float) -> float:
        """Score implied by the events currently in memory."""
        click_rate = len(self._click_times) / (INTERACTION_MEMORY_MS / 1000.0)

        window_start = time_ms - MOVEMENT_WINDOW_MS
        recent = sum(d for t, d in self._moves if t >= window_start)

        presence = PRESENCE_BONUS if self._click_times else 0.0
        return min(
            1.0,
            click_rate * CLICK_RATE_WEIGHT
            + min(recent * MOVEMENT_WEIGHT, MOVEMENT_CAP)
            + presence,
        )

    def update(self, time_ms: float, dt_ms: float) -> None:
        """Prune old events and move the score toward the computed value."""
        cutoff = time_ms - INTERACTION_MEMORY_MS
        while self._click_times and self._click_times[0] < cutoff:
            self._click_times.popleft()
        while self._moves and self._moves[0][0] < cutoff:
            self._moves.popleft()

        computed = self.computed_score(time_ms)
        dt_sec = min(max(dt_ms, 0.0), MAX_DECAY_STEP_MS) / 1000.0
        floor = self._score - ACTIVITY_DECAY_RATE * dt_sec
        self._score = max(0.0, min(1.0, max(computed, floor)))

    def reset(self) -> None:
        self._click_times.clear()
        self._moves.clear()
        self._score = 0.0
