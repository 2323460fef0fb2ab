"""Shared pytest fixtures for zoomcore tests."""

import pytest

from zoomcore.config import ZoomConfig
from zoomcore.models import ClickEvent, CursorMoveEvent, FRAME_MS
from zoomcore.zoom_engine import ZoomEngine


# ── Config ──────────────────────────────────────────────────────────

@pytest.fixture
def zoom_config() -> ZoomConfig:
    """Default config at zoom level 2, normal speed."""
    return ZoomConfig(zoom_level=2.0)


# ── Event helpers ───────────────────────────────────────────────────

@pytest.fixture
def single_click() -> list[ClickEvent]:
    """One click in the middle of the frame at t=0."""
    return [ClickEvent(time=0.0, x=0.5, y=0.5)]


@pytest.fixture
def click_pair() -> list[ClickEvent]:
    """Two clicks on the same spot one second apart."""
    return [
        ClickEvent(time=0.0, x=0.5, y=0.5),
        ClickEvent(time=1000.0, x=0.5, y=0.5),
    ]


@pytest.fixture
def steady_track() -> list[CursorMoveEvent]:
    """Slow left-to-right drift, one sample every 20ms for 1s."""
    return [
        CursorMoveEvent(time=float(t), x=0.3 + t * 0.0002, y=0.5)
        for t in range(0, 1001, 20)
    ]


# ── Engine helpers ──────────────────────────────────────────────────

@pytest.fixture
def engine(zoom_config: ZoomConfig) -> ZoomEngine:
    return ZoomEngine(zoom_config)


def run_frames(engine: ZoomEngine, start_ms: float, end_ms: float, step_ms: float = FRAME_MS):
    """Drive *engine* frame by frame with wall clock == recording clock.

    Returns a list of ``(time_ms, CameraState)`` pairs.
    """
    states = []
    t = start_ms
    while t <= end_ms:
        states.append((t, engine.update(t, now_ms=t)))
        t += step_ms
    return states
