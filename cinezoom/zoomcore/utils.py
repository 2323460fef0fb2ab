"""Shared utilities used by multiple modules."""

import math
from typing import Tuple


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp *value* into ``[lo, hi]``."""
    return max(lo, min(hi, value))


def clamp_edge(value: float, edge_padding: float) -> float:
    """Keep a normalized coordinate away from the frame edges."""
    return clamp(value, edge_padding, 1.0 - edge_padding)


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    """Euclidean distance between two normalized points."""
    return math.hypot(bx - ax, by - ay)


def smoothstep(t: float) -> float:
    """Hermite smoothstep on ``[0, 1]``: 3t² - 2t³."""
    return t * t * (3.0 - 2.0 * t)


def normalize_point(x: float, y: float, monitor_rect: dict) -> Tuple[float, float]:
    """Convert physical screen pixels to ``0-1`` coordinates of *monitor_rect*.

    The rect uses the ``left`` / ``top`` / ``width`` / ``height`` keys the
    capture layer reports.  Points outside the monitor are clamped.
    """
    left = monitor_rect.get("left", 0)
    top = monitor_rect.get("top", 0)
    width = max(monitor_rect.get("width", 1), 1)
    height = max(monitor_rect.get("height", 1), 1)
    nx = clamp((x - left) / width, 0.0, 1.0)
    ny = clamp((y - top) / height, 0.0, 1.0)
    return nx, ny


def fmt_time(ms: float) -> str:
    """Format milliseconds as m:ss."""
    s = int(ms / 1000)
    m = s // 60
    return f"{m}:{s % 60:02d}"
