"""Tests for zoomcore.utils — clamping, distance, smoothstep, normalization, fmt_time."""

import pytest

from zoomcore.utils import (
    clamp,
    clamp_edge,
    distance,
    fmt_time,
    normalize_point,
    smoothstep,
)


# ── fmt_time ────────────────────────────────────────────────────────


class TestFmtTime:
    def test_zero(self) -> None:
        assert fmt_time(0) == "0:00"

    def test_under_one_minute(self) -> None:
        assert fmt_time(5000) == "0:05"

    def test_one_minute(self) -> None:
        assert fmt_time(60000) == "1:00"

    def test_multi_minute(self) -> None:
        assert fmt_time(125000) == "2:05"

    def test_fractional_ms(self) -> None:
        # 1500.7ms → 1s
        assert fmt_time(1500.7) == "0:01"

    def test_pads_seconds(self) -> None:
        assert fmt_time(3000) == "0:03"  # "03" not "3"


# ── clamp / clamp_edge ──────────────────────────────────────────────


class TestClamp:
    def test_inside(self) -> None:
        assert clamp(0.3, 0.0, 1.0) == 0.3

    def test_below_and_above(self) -> None:
        assert clamp(-2.0, 0.0, 1.0) == 0.0
        assert clamp(7.0, 0.0, 1.0) == 1.0

    def test_edge_band(self) -> None:
        assert clamp_edge(0.0, 0.08) == pytest.approx(0.08)
        assert clamp_edge(1.0, 0.08) == pytest.approx(0.92)
        assert clamp_edge(0.5, 0.08) == 0.5

    def test_zero_padding_is_unit_range(self) -> None:
        assert clamp_edge(1.2, 0.0) == 1.0
        assert clamp_edge(-0.1, 0.0) == 0.0


# ── distance / smoothstep ───────────────────────────────────────────


class TestDistance:
    def test_pythagorean(self) -> None:
        assert distance(0.0, 0.0, 0.3, 0.4) == pytest.approx(0.5)

    def test_symmetric(self) -> None:
        assert distance(0.1, 0.2, 0.7, 0.9) == pytest.approx(distance(0.7, 0.9, 0.1, 0.2))


class TestSmoothstep:
    def test_endpoints(self) -> None:
        assert smoothstep(0.0) == 0.0
        assert smoothstep(1.0) == 1.0

    def test_midpoint(self) -> None:
        assert smoothstep(0.5) == pytest.approx(0.5)

    def test_slow_start(self) -> None:
        """Eases in: below linear in the first half."""
        assert smoothstep(0.25) == pytest.approx(0.15625)
        assert smoothstep(0.25) < 0.25


# ── normalize_point ─────────────────────────────────────────────────


class TestNormalizePoint:
    def test_primary_monitor(self) -> None:
        rect = {"left": 0, "top": 0, "width": 1920, "height": 1080}
        assert normalize_point(960, 540, rect) == pytest.approx((0.5, 0.5))

    def test_offset_monitor(self) -> None:
        """Secondary monitor to the left of the primary one."""
        rect = {"left": -1920, "top": 0, "width": 1920, "height": 1080}
        assert normalize_point(-1920, 1080, rect) == pytest.approx((0.0, 1.0))

    def test_outside_is_clamped(self) -> None:
        rect = {"left": 0, "top": 0, "width": 100, "height": 100}
        assert normalize_point(150, -20, rect) == pytest.approx((1.0, 0.0))

    def test_zero_size_rect_does_not_divide_by_zero(self) -> None:
        nx, ny = normalize_point(0, 0, {"width": 0, "height": 0})
        assert (nx, ny) == (0.0, 0.0)
