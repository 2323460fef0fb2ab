"""Tests for zoomcore.models — dataclass serialization and session loading."""

import json

import pytest

from zoomcore.models import (
    CameraState,
    ClickEvent,
    CursorMoveEvent,
    CursorOverlayState,
    FocusPoint,
    RecordingSession,
    ZoomSegment,
    ZoomState,
    DEFAULT_FPS,
    FRAME_MS,
)


# ── ClickEvent ──────────────────────────────────────────────────────


class TestClickEvent:
    def test_roundtrip(self) -> None:
        ce = ClickEvent(time=30.0, x=0.1, y=0.2)
        ce2 = ClickEvent.from_dict(ce.to_dict())
        assert ce2 == ce

    def test_defaults_omitted_from_dict(self) -> None:
        d = ClickEvent(time=0, x=0.5, y=0.5).to_dict()
        assert set(d.keys()) == {"time", "x", "y"}

    def test_release_roundtrip(self) -> None:
        ce = ClickEvent(time=5, x=0.5, y=0.5, button="right", down=False)
        d = ce.to_dict()
        assert d["down"] is False
        assert d["button"] == "right"
        assert ClickEvent.from_dict(d) == ce

    def test_frozen(self) -> None:
        ce = ClickEvent(time=0, x=0.5, y=0.5)
        with pytest.raises(AttributeError):
            ce.x = 0.1  # type: ignore[misc]


# ── CursorMoveEvent / FocusPoint ────────────────────────────────────


class TestCursorMoveEvent:
    def test_roundtrip(self) -> None:
        m = CursorMoveEvent(time=16.7, x=0.25, y=0.75)
        assert CursorMoveEvent.from_dict(m.to_dict()) == m

    def test_dict_keys(self) -> None:
        d = CursorMoveEvent(time=1, x=2, y=3).to_dict()
        assert set(d.keys()) == {"time", "x", "y"}


class TestFocusPoint:
    def test_roundtrip(self) -> None:
        fp = FocusPoint(time=1.5, x=0.3, y=0.4)
        assert FocusPoint.from_dict(fp.to_dict()) == fp


# ── ZoomSegment ─────────────────────────────────────────────────────


class TestZoomSegment:
    def test_duration(self) -> None:
        seg = ZoomSegment(start=1.0, end=3.5, amount=2.0)
        assert seg.duration == pytest.approx(2.5)

    def test_contains_is_inclusive(self) -> None:
        seg = ZoomSegment(start=1.0, end=2.0, amount=2.0)
        assert seg.contains(1.0)
        assert seg.contains(2.0)
        assert not seg.contains(0.999)
        assert not seg.contains(2.001)

    def test_roundtrip(self) -> None:
        seg = ZoomSegment(
            start=0.0, end=2.0, amount=2.0,
            focus_points=[FocusPoint(0.0, 0.5, 0.5), FocusPoint(1.0, 0.6, 0.4)],
        )
        d = seg.to_dict()
        assert "focusPoints" in d
        assert ZoomSegment.from_dict(d) == seg

    def test_from_dict_without_focus_points(self) -> None:
        seg = ZoomSegment.from_dict({"start": 1, "end": 2, "amount": 1.5})
        assert seg.focus_points == []

    def test_json_serializable(self) -> None:
        seg = ZoomSegment(start=0.0, end=1.0, amount=2.0, focus_points=[FocusPoint(0.5, 0.5, 0.5)])
        json.dumps(seg.to_dict())


# ── Output shapes ───────────────────────────────────────────────────


class TestOutputStates:
    def test_camera_state_defaults(self) -> None:
        cs = CameraState()
        assert (cs.x, cs.y, cs.scale) == (0.5, 0.5, 1.0)
        assert cs.state == ZoomState.IDLE
        assert cs.is_zoomed is False
        assert cs.activity_score == 0.0

    def test_camera_state_dict(self) -> None:
        d = CameraState(scale=2.0, state=ZoomState.ACTIVE_TRACKING, is_zoomed=True).to_dict()
        assert d["state"] == "active-tracking"
        assert d["isZoomed"] is True
        assert d["scale"] == 2.0

    def test_overlay_defaults_hidden(self) -> None:
        ov = CursorOverlayState()
        assert ov.opacity == 0.0
        assert ov.click_progress == 0.0
        assert ov.velocity == (0.0, 0.0)

    def test_overlay_dict(self) -> None:
        d = CursorOverlayState(x=0.2, velocity=(1.0, -1.0)).to_dict()
        assert d["velocity"] == [1.0, -1.0]
        assert "clickProgress" in d

    def test_zoom_state_values(self) -> None:
        assert [s.value for s in ZoomState] == [
            "idle", "zooming-in", "active-tracking", "zooming-out",
        ]


# ── RecordingSession ────────────────────────────────────────────────


class TestRecordingSession:
    def _make(self) -> RecordingSession:
        return RecordingSession(
            duration=5000.0,
            clicks=[ClickEvent(1000, 0.5, 0.5), ClickEvent(1100, 0.5, 0.5, down=False)],
            moves=[CursorMoveEvent(t, 0.4, 0.6) for t in (0.0, 16.0, 33.0)],
        )

    def test_json_roundtrip(self) -> None:
        session = self._make()
        restored = RecordingSession.from_json(session.to_json())
        assert restored == session

    def test_json_is_valid(self) -> None:
        data = json.loads(self._make().to_json())
        assert data["duration"] == 5000.0
        assert len(data["clicks"]) == 2
        assert len(data["moves"]) == 3

    def test_pixel_events_normalized(self) -> None:
        raw = {
            "duration": 2000,
            "monitorRect": {"left": 0, "top": 0, "width": 1920, "height": 1080},
            "clickEvents": [{"x": 960, "y": 540, "timestamp": 500}],
            "mouseTrack": [{"x": 0, "y": 1080, "timestamp": 100}],
        }
        session = RecordingSession.from_json(json.dumps(raw))
        assert session.clicks == [ClickEvent(500, 0.5, 0.5)]
        assert session.moves == [CursorMoveEvent(100, 0.0, 1.0)]

    def test_pixel_events_ignored_without_rect(self) -> None:
        raw = {"duration": 100, "clickEvents": [{"x": 960, "y": 540, "timestamp": 5}]}
        assert RecordingSession.from_json(json.dumps(raw)).clicks == []

    def test_duration_inferred(self) -> None:
        raw = {"clicks": [{"time": 2500, "x": 0.5, "y": 0.5}], "moves": [{"time": 4000, "x": 0.1, "y": 0.1}]}
        assert RecordingSession.from_json(json.dumps(raw)).duration == 4000

    def test_empty(self) -> None:
        session = RecordingSession.from_json("{}")
        assert session.duration == 0.0
        assert session.clicks == []
        assert session.moves == []

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(ValueError):
            RecordingSession.from_json("{not json")


# ── Constants ───────────────────────────────────────────────────────


class TestConstants:
    def test_default_fps(self) -> None:
        assert DEFAULT_FPS == 60

    def test_frame_ms(self) -> None:
        assert FRAME_MS == pytest.approx(16.6667, abs=1e-3)
