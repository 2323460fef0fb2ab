"""Offline zoom segments — generation and time-based evaluation.

Turns a full recording's click / move log into ordered, non-overlapping
:class:`ZoomSegment` objects, and evaluates the camera at any time from
those segments.  Everything here is a pure function of its inputs, so an
export pass sampling at fixed steps reproduces exactly what a scrubbing
preview shows.

Generation steps:

1. **Group clicks** — a click joins the current group when it is close
   to the previous click in both time and space.
2. **Pad** — each group becomes ``[first - pre_pad, last + post_pad]``
   with its clicks as focus points.
3. **Enrich** — cursor samples inside an interval (at most one per
   ``focus_sample_interval_ms``) are added as focus points.  Movement
   never creates an interval by itself, so idle drift can't trigger a
   zoom.
4. **Merge** — intervals separated by less than the merge gap fuse.
5. **Filter** — intervals shorter than the minimum duration are dropped;
   they read as flicker.
"""

import bisect
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import numpy as np

from .config import ZoomConfig
from .models import (
    CameraTransform,
    ClickEvent,
    CursorMoveEvent,
    FocusPoint,
    ZoomSegment,
    DEFAULT_FPS,
)
from .spring_physics import spring_ease_in, spring_ease_out
from .utils import clamp_edge, distance, smoothstep

logger = logging.getLogger(__name__)

# Denominator floor for the overlap cross-fade ratio.
CROSSFADE_EPSILON = 0.001

# Absorbs float error when duration_ms is a whole number of frames.
FRAME_COUNT_EPSILON = 1e-6


@dataclass
class _Interval:
    start: float  # ms
    end: float    # ms
    focus: List[Tuple[float, float, float]] = field(default_factory=list)  # (ms, x, y)


# ── Generation ──────────────────────────────────────────────────────


def group_clicks(
    clicks: List[ClickEvent],
    time_threshold_ms: float = 2000.0,
    spatial_threshold: float = 0.15,
) -> List[List[ClickEvent]]:
    """Split time-ordered *clicks* into bursts.

    A click joins the current group only if it is within
    *time_threshold_ms* **and** *spatial_threshold* of the group's
    previous click.
    """
    if not clicks:
        return []

    groups: List[List[ClickEvent]] = []
    current = [clicks[0]]
    for click in clicks[1:]:
        prev = current[-1]
        close_in_time = click.time - prev.time < time_threshold_ms
        close_in_space = distance(prev.x, prev.y, click.x, click.y) < spatial_threshold
        if close_in_time and close_in_space:
            current.append(click)
        else:
            groups.append(current)
            current = [click]
    groups.append(current)
    return groups


def _sample_moves(
    moves: List[CursorMoveEvent],
    move_times: List[float],
    start: float,
    end: float,
    min_spacing_ms: float,
) -> List[Tuple[float, float, float]]:
    """Cursor samples in ``[start, end]`` spaced at least *min_spacing_ms* apart."""
    lo = bisect.bisect_left(move_times, start)
    hi = bisect.bisect_right(move_times, end)
    picked: List[Tuple[float, float, float]] = []
    last = float("-inf")
    for m in moves[lo:hi]:
        if m.time - last >= min_spacing_ms:
            picked.append((m.time, m.x, m.y))
            last = m.time
    return picked


def merge_intervals(intervals: List[_Interval], gap_ms: float) -> List[_Interval]:
    """Fuse start-ordered intervals whose gap is below *gap_ms*."""
    if len(intervals) <= 1:
        return list(intervals)

    merged = [intervals[0]]
    for curr in intervals[1:]:
        prev = merged[-1]
        if curr.start - prev.end < gap_ms:
            prev.end = max(prev.end, curr.end)
            prev.focus = sorted(prev.focus + curr.focus, key=lambda f: f[0])
        else:
            merged.append(curr)
    return merged


def generate_zoom_segments(
    clicks: Iterable[ClickEvent],
    moves: Iterable[CursorMoveEvent] = (),
    config: Optional[ZoomConfig] = None,
    zoom_amount: Optional[float] = None,
    duration_ms: Optional[float] = None,
) -> List[ZoomSegment]:
    """Build the export zoom segments for a whole recording.

    Args:
        clicks: click log in any order; only button-down events count.
        moves: cursor log in any order.
        config: thresholds and padding; defaults to :class:`ZoomConfig`.
        zoom_amount: scale for every segment (default ``config.zoom_level``).
        duration_ms: recording length; segment ends are clamped to it.

    Returns segments in seconds, ordered by start.  Empty input gives an
    empty list.
    """
    config = config or ZoomConfig()
    amount = config.clamp_zoom(zoom_amount if zoom_amount is not None else config.zoom_level)
    pad = config.edge_padding

    presses = sorted(
        (ClickEvent(time=c.time, x=clamp_edge(c.x, pad), y=clamp_edge(c.y, pad),
                    button=c.button, down=c.down)
         for c in clicks if c.down),
        key=lambda c: c.time,
    )
    if not presses:
        logger.info("No clicks — no zoom segments generated")
        return []

    track = sorted(
        (CursorMoveEvent(time=m.time, x=clamp_edge(m.x, pad), y=clamp_edge(m.y, pad))
         for m in moves),
        key=lambda m: m.time,
    )
    track_times = [m.time for m in track]

    groups = group_clicks(presses, config.click_group_time_ms, config.click_group_spatial)

    intervals: List[_Interval] = []
    for group in groups:
        interval = _Interval(
            start=group[0].time - config.click_pre_padding_ms,
            end=group[-1].time + config.click_post_padding_ms,
            focus=[(c.time, c.x, c.y) for c in group],
        )
        if track:
            interval.focus.extend(_sample_moves(
                track, track_times, interval.start, interval.end,
                config.focus_sample_interval_ms,
            ))
            interval.focus.sort(key=lambda f: f[0])
        intervals.append(interval)

    intervals.sort(key=lambda iv: iv.start)
    intervals = merge_intervals(intervals, config.merge_gap_ms)

    segments: List[ZoomSegment] = []
    for iv in intervals:
        start = max(0.0, iv.start)
        end = iv.end
        if duration_ms is not None and duration_ms > 0:
            end = min(end, duration_ms)
        if end - start < config.min_segment_duration_ms:
            continue
        segments.append(ZoomSegment(
            start=start / 1000.0,
            end=end / 1000.0,
            amount=amount,
            focus_points=[FocusPoint(time=t / 1000.0, x=x, y=y) for t, x, y in iv.focus],
        ))

    logger.info(
        "Generated %d zoom segments from %d clicks (%d groups), %d moves",
        len(segments), len(presses), len(groups), len(track),
    )
    return segments


# ── Evaluation ──────────────────────────────────────────────────────


def segment_focus(
    segment: ZoomSegment, time_sec: float, edge_padding: float = 0.08,
) -> Tuple[float, float]:
    """Camera focus inside *segment* at *time_sec*.

    Holds the first / last focus point outside their range and
    smoothsteps between the two bracketing points in between.
    """
    fps = segment.focus_points
    if not fps:
        return 0.5, 0.5
    if len(fps) == 1 or time_sec <= fps[0].time:
        return fps[0].x, fps[0].y
    if time_sec >= fps[-1].time:
        return fps[-1].x, fps[-1].y

    times = [fp.time for fp in fps]
    hi = bisect.bisect_right(times, time_sec)
    a, b = fps[hi - 1], fps[hi]
    span = b.time - a.time
    if span <= 0:
        return b.x, b.y
    s = smoothstep((time_sec - a.time) / span)
    return (
        clamp_edge(a.x + (b.x - a.x) * s, edge_padding),
        clamp_edge(a.y + (b.y - a.y) * s, edge_padding),
    )


def _toward(focus: Tuple[float, float], amount: float, eased: float) -> CameraTransform:
    """Blend from the idle centred frame toward *focus* at *amount*.

    The scale never drops below 1 when the spring easing undershoots.
    """
    return CameraTransform(
        x=0.5 + (focus[0] - 0.5) * eased,
        y=0.5 + (focus[1] - 0.5) * eased,
        scale=max(1.0, 1.0 + (amount - 1.0) * eased),
    )


def evaluate_at_time(
    segments: List[ZoomSegment],
    time_ms: float,
    config: Optional[ZoomConfig] = None,
) -> CameraTransform:
    """Camera transform at *time_ms* from pre-generated *segments*.

    Inside a segment the scale is the segment's amount.  Within the
    zoom-in window before a segment (and the zoom-out window after it)
    progress follows the same spring easing as the live zoom spring.  If
    one segment's zoom-out overlaps the next one's zoom-in, focus and
    scale cross-fade instead of dipping back to scale 1.
    """
    if not segments:
        return CameraTransform()

    config = config or ZoomConfig()
    t = time_ms / 1000.0
    pad = config.edge_padding

    for seg in segments:
        if seg.contains(t):
            x, y = segment_focus(seg, t, pad)
            return CameraTransform(x=x, y=y, scale=seg.amount)

    in_dur = config.zoom_in_duration
    out_dur = config.zoom_out_duration
    spring = config.zoom_spring

    for i, seg in enumerate(segments):
        # zoom-in window before this segment
        if seg.start - in_dur <= t < seg.start:
            eased_in = spring_ease_in((t - (seg.start - in_dur)) / in_dur, spring)
            focus = segment_focus(seg, seg.start, pad)

            if i > 0:
                prev = segments[i - 1]
                if prev.end < t <= prev.end + out_dur:
                    eased_out = spring_ease_out((t - prev.end) / out_dur, spring)
                    prev_focus = segment_focus(prev, prev.end, pad)
                    blend = eased_in / max(CROSSFADE_EPSILON, eased_in + eased_out)
                    return CameraTransform(
                        x=prev_focus[0] + (focus[0] - prev_focus[0]) * blend,
                        y=prev_focus[1] + (focus[1] - prev_focus[1]) * blend,
                        scale=max(
                            1.0,
                            1.0 + (seg.amount - 1.0) * eased_in,
                            1.0 + (prev.amount - 1.0) * eased_out,
                        ),
                    )

            return _toward(focus, seg.amount, eased_in)

        # zoom-out window after this segment, unless the next zoom-in owns it
        if seg.end < t <= seg.end + out_dur:
            nxt = segments[i + 1] if i + 1 < len(segments) else None
            if nxt is not None and t >= nxt.start - in_dur:
                continue
            eased_out = spring_ease_out((t - seg.end) / out_dur, spring)
            return _toward(segment_focus(seg, seg.end, pad), seg.amount, eased_out)

    return CameraTransform()


def sample_camera_path(
    segments: List[ZoomSegment],
    duration_ms: float,
    config: Optional[ZoomConfig] = None,
    fps: float = DEFAULT_FPS,
) -> np.ndarray:
    """Evaluate the camera at fixed export steps.

    Returns an ``(N, 4)`` array of ``[time_ms, x, y, scale]`` rows covering
    ``0 .. duration_ms`` inclusive at *fps*.  A duration that is not a
    whole number of frames ends on the last frame before it.
    """
    if duration_ms <= 0 or fps <= 0:
        return np.empty((0, 4), dtype=np.float64)

    config = config or ZoomConfig()
    # count frames from the product; 1000 // (1000 / 60) rounds down to 59
    frames = int(np.floor(duration_ms * fps / 1000.0 + FRAME_COUNT_EPSILON))
    times = np.arange(frames + 1, dtype=np.float64) * 1000.0 / fps
    path = np.empty((len(times), 4), dtype=np.float64)
    path[:, 0] = times
    for row, t in enumerate(times):
        cam = evaluate_at_time(segments, float(t), config)
        path[row, 1:] = (cam.x, cam.y, cam.scale)
    return path
