"""cinezoom — generate export zoom segments from a recorded event log.

Reads a recording JSON (clicks, cursor moves, duration), runs the segment
generator and prints the segments as JSON.  ``--sample-fps`` additionally
prints the camera path sampled at fixed export steps.
"""

import argparse
import json
import logging
import sys

from zoomcore.config import ZoomConfig
from zoomcore.models import RecordingSession
from zoomcore.segments import generate_zoom_segments, sample_camera_path
from zoomcore.utils import fmt_time
from zoomcore.version import __version__

logging.basicConfig(
    level=logging.INFO,
    format="%(name)s | %(levelname)s | %(message)s",
)

_logger = logging.getLogger(__name__)


def _global_exception_handler(exc_type, exc_value, exc_tb):
    """Log unhandled exceptions instead of dumping a bare traceback."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return
    _logger.critical("Unhandled exception", exc_info=(exc_type, exc_value, exc_tb))


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("session", help="recording JSON file")
    parser.add_argument("--zoom-level", type=float, default=2.0)
    parser.add_argument("--speed", choices=["slow", "normal", "fast"], default="normal")
    parser.add_argument("--sample-fps", type=float, default=0.0,
                        help="also print the camera path sampled at this rate")
    parser.add_argument("--version", action="version", version=__version__)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Entry point — returns the process exit code."""
    sys.excepthook = _global_exception_handler
    args = _parse_args(argv)

    try:
        with open(args.session, "r", encoding="utf-8") as f:
            session = RecordingSession.from_json(f.read())
    except (OSError, ValueError, KeyError) as exc:
        _logger.error("Cannot read %s: %s", args.session, exc)
        return 1

    config = ZoomConfig(zoom_level=args.zoom_level, zoom_speed=args.speed)
    segments = generate_zoom_segments(
        session.clicks, session.moves, config, duration_ms=session.duration,
    )
    for seg in segments:
        _logger.info(
            "Segment %s-%s, %d focus points, zoom=%.2f",
            fmt_time(seg.start * 1000), fmt_time(seg.end * 1000),
            len(seg.focus_points), seg.amount,
        )

    out = {"segments": [s.to_dict() for s in segments]}
    if args.sample_fps > 0:
        path = sample_camera_path(segments, session.duration, config, fps=args.sample_fps)
        out["path"] = path.tolist()
    json.dump(out, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
