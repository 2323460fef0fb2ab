"""Tests for zoomcore.config — spring parameters, speed presets, ZoomConfig."""

import logging
import math

import pytest

from zoomcore.config import (
    SPEED_PRESETS,
    SPRING_PRESETS,
    MAX_TENSION,
    MIN_MASS,
    SpringConfig,
    ZoomConfig,
    ZoomSpeed,
    parse_zoom_speed,
    spring_preset,
)


# ── SpringConfig ────────────────────────────────────────────────────


class TestSpringConfig:
    def test_defaults(self) -> None:
        sc = SpringConfig()
        assert (sc.tension, sc.mass, sc.friction) == (170.0, 1.0, 26.0)

    def test_damping_ratio(self) -> None:
        sc = SpringConfig(tension=100.0, mass=1.0, friction=20.0)
        assert sc.damping_ratio == pytest.approx(1.0)

    def test_out_of_range_clamped(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            sc = SpringConfig(tension=1e9, mass=0.0, friction=-5.0)
        assert sc.tension == MAX_TENSION
        assert sc.mass == MIN_MASS
        assert sc.friction == 0.0
        assert "out of range" in caplog.text

    def test_non_finite_falls_back_to_default(self) -> None:
        sc = SpringConfig(tension=math.nan, mass=math.inf, friction=26.0)
        assert sc.tension == 170.0
        assert sc.mass == 1.0

    def test_non_numeric_falls_back_to_default(self) -> None:
        sc = SpringConfig(friction="stiff")  # type: ignore[arg-type]
        assert sc.friction == 26.0

    def test_roundtrip(self) -> None:
        sc = SpringConfig(tension=200.0, mass=2.25, friction=40.0)
        assert SpringConfig.from_dict(sc.to_dict()) == sc

    def test_from_partial_dict(self) -> None:
        sc = SpringConfig.from_dict({"tension": 300})
        assert sc.tension == 300
        assert sc.friction == 26.0


# ── Presets ─────────────────────────────────────────────────────────


class TestSpringPresets:
    def test_all_named_presets(self) -> None:
        expected = {
            "cursor", "snappy", "drag", "zoom", "zoom_critical",
            "screen_movement", "gentle_follow", "segment_transition",
        }
        assert set(SPRING_PRESETS) == expected

    def test_values(self) -> None:
        assert SPRING_PRESETS["snappy"] == SpringConfig(700.0, 1.0, 30.0)
        assert SPRING_PRESETS["drag"] == SpringConfig(136.0, 1.2, 33.8)
        assert SPRING_PRESETS["screen_movement"] == SpringConfig(200.0, 2.25, 40.0)

    def test_preset_is_a_copy(self) -> None:
        sc = spring_preset("cursor")
        sc.tension = 1.0
        assert SPRING_PRESETS["cursor"].tension == 170.0

    def test_unknown_preset_raises(self) -> None:
        with pytest.raises(KeyError):
            spring_preset("wobbly")


class TestSpeedPresets:
    @pytest.mark.parametrize("speed,duration,tension,friction", [
        (ZoomSpeed.SLOW, 1.2, 80.0, 25.0),
        (ZoomSpeed.NORMAL, 0.8, 120.0, 18.0),
        (ZoomSpeed.FAST, 0.4, 200.0, 22.0),
    ])
    def test_preset_values(self, speed, duration, tension, friction) -> None:
        preset = SPEED_PRESETS[speed]
        assert preset.zoom_in_duration == duration
        assert preset.zoom_out_duration == duration
        assert preset.spring.tension == tension
        assert preset.spring.friction == friction

    def test_parse_strings(self) -> None:
        assert parse_zoom_speed("fast") == ZoomSpeed.FAST
        assert parse_zoom_speed("SLOW") == ZoomSpeed.SLOW
        assert parse_zoom_speed(ZoomSpeed.NORMAL) == ZoomSpeed.NORMAL

    def test_parse_unknown_defaults_to_normal(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            assert parse_zoom_speed("warp") == ZoomSpeed.NORMAL
        assert "warp" in caplog.text


# ── ZoomConfig ──────────────────────────────────────────────────────


class TestZoomConfig:
    def test_defaults(self) -> None:
        cfg = ZoomConfig()
        assert cfg.zoom_level == 2.0
        assert cfg.zoom_speed == ZoomSpeed.NORMAL
        assert cfg.edge_padding == pytest.approx(0.08)
        assert cfg.click_group_time_ms == 2000.0
        assert cfg.click_pre_padding_ms == 300.0
        assert cfg.click_post_padding_ms == 1000.0
        assert cfg.merge_gap_ms == 400.0
        assert cfg.min_segment_duration_ms == 800.0

    def test_default_springs(self) -> None:
        cfg = ZoomConfig()
        assert cfg.position_spring == SPRING_PRESETS["screen_movement"]
        assert cfg.cursor_follow_spring == SPRING_PRESETS["gentle_follow"]
        assert cfg.zoom_spring == SPRING_PRESETS["zoom"]

    def test_zoom_level_clamped(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            assert ZoomConfig(zoom_level=10.0).zoom_level == 4.0
        assert "zoom_level" in caplog.text
        assert ZoomConfig(zoom_level=0.5).zoom_level == 1.0

    def test_zoom_bounds_swapped(self) -> None:
        cfg = ZoomConfig(min_zoom=3.0, max_zoom=1.5, zoom_level=2.0)
        assert cfg.min_zoom == 1.5
        assert cfg.max_zoom == 3.0
        assert cfg.zoom_level == 2.0

    def test_edge_padding_clamped(self) -> None:
        assert ZoomConfig(edge_padding=0.9).edge_padding == 0.45
        assert ZoomConfig(edge_padding=-1).edge_padding == 0.0

    def test_bad_min_duration_replaced(self) -> None:
        assert ZoomConfig(min_segment_duration_ms=0).min_segment_duration_ms == 800.0

    def test_speed_from_string(self) -> None:
        cfg = ZoomConfig(zoom_speed="fast")
        assert cfg.zoom_speed == ZoomSpeed.FAST
        assert cfg.zoom_in_duration == 0.4
        assert cfg.zoom_out_duration == 0.4
        assert cfg.zoom_spring.tension == 200.0

    def test_zoom_spring_override(self) -> None:
        override = SpringConfig(tension=500.0, mass=1.0, friction=45.0)
        cfg = ZoomConfig(zoom_spring_override=override)
        assert cfg.zoom_spring is override
        # durations still follow the speed preset
        assert cfg.zoom_in_duration == 0.8

    def test_clamp_zoom(self) -> None:
        cfg = ZoomConfig()
        assert cfg.clamp_zoom(0.2) == 1.0
        assert cfg.clamp_zoom(2.5) == 2.5
        assert cfg.clamp_zoom(99) == 4.0

    def test_roundtrip(self) -> None:
        cfg = ZoomConfig(
            zoom_level=3.0, zoom_speed=ZoomSpeed.SLOW,
            zoom_spring_override=SpringConfig(300.0, 1.0, 30.0),
        )
        d = cfg.to_dict()
        assert d["zoom_speed"] == "slow"
        assert isinstance(d["position_spring"], dict)
        assert ZoomConfig.from_dict(d) == cfg

    def test_from_dict_ignores_unknown_keys(self) -> None:
        cfg = ZoomConfig.from_dict({"zoom_level": 1.5, "theme": "dark"})
        assert cfg.zoom_level == 1.5

    def test_instances_do_not_share_springs(self) -> None:
        a = ZoomConfig()
        b = ZoomConfig()
        a.position_spring.tension = 1.0
        assert b.position_spring.tension == 200.0
