"""Command-line front end for fpenroll.

Replays recorded swipes through the enrollment coordinator:

    fpenroll enroll swipe1.png swipe2.png ... \\
        --extractor mypkg.backend:Extractor --comparator mypkg.backend:Comparator
"""

from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from fpenroll.config import MATCH_THRESHOLD, MAX_ATTEMPTS, MIN_ACCEPTABLE_FEATURES
from fpenroll.driver import EnrollDriver, EnrollResult, build_backend
from fpenroll.imaging import ImageSequenceCapture, list_images, save_image
from fpenroll.models import EnrollmentSettings, ImageFlag
from fpenroll.notifications import BackgroundNotifier, LoggingNotifier, PopupNotifier


EXIT_CODES = {
    EnrollResult.COMPLETE: 0,
    EnrollResult.RETRY: 1,
    EnrollResult.ERROR: 2,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fpenroll",
        description="fpenroll - three-swipe fingerprint enrollment"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    enroll_parser = subparsers.add_parser("enroll", help="Enroll from recorded swipes")
    enroll_parser.add_argument("images", type=Path, nargs="+", help="Swipe images (or directories) in capture order")
    enroll_parser.add_argument("--extractor", "-e", required=True, help="Feature extractor backend (module:attr)")
    enroll_parser.add_argument("--comparator", "-c", required=True, help="Comparator backend (module:attr)")
    enroll_parser.add_argument("--threshold", "-t", type=float, default=MATCH_THRESHOLD, help="Match threshold")
    enroll_parser.add_argument("--min-features", type=int, default=MIN_ACCEPTABLE_FEATURES, help="Minimum features per swipe")
    enroll_parser.add_argument("--max-attempts", type=int, default=MAX_ATTEMPTS, help="Capture attempts allowed")
    enroll_parser.add_argument("--flip", choices=["none", "v", "h", "both"], default="none", help="Sensor mounting flips")
    enroll_parser.add_argument("--inverted", action="store_true", help="Sensor reports inverted colours")
    enroll_parser.add_argument("--popup", action="store_true", help="Show progress pop-ups (needs X and xmessage)")
    enroll_parser.add_argument("--save-image", type=Path, default=None, help="Write the returned image here")
    enroll_parser.add_argument("--quiet", "-q", action="store_true", help="Only print the final status")

    return parser


def _expand_sources(paths: List[Path]) -> List[Path]:
    sources: List[Path] = []
    for path in paths:
        sources.extend(list_images(path) if path.is_dir() else [path])
    return sources


def _sensor_flags(flip: str, inverted: bool) -> ImageFlag:
    flags = ImageFlag.NONE
    if flip in ("v", "both"):
        flags |= ImageFlag.V_FLIPPED
    if flip in ("h", "both"):
        flags |= ImageFlag.H_FLIPPED
    if inverted:
        flags |= ImageFlag.COLORS_INVERTED
    return flags


def settings_from_args(args: argparse.Namespace) -> EnrollmentSettings:
    """Build enrollment settings from the command-line limits.

    Raises:
        ValueError: If a limit is out of range
    """
    return EnrollmentSettings(
        max_attempts=args.max_attempts,
        min_features=args.min_features,
        match_threshold=args.threshold
    )


def run_enroll(args: argparse.Namespace, settings: EnrollmentSettings) -> int:
    sources = _expand_sources(args.images)
    capture = ImageSequenceCapture(sources, flags=_sensor_flags(args.flip, args.inverted))
    extractor = build_backend(args.extractor)
    comparator = build_backend(args.comparator)

    inner = PopupNotifier() if args.popup else LoggingNotifier()
    if not args.quiet:
        print(f"[enroll] {len(sources)} swipe image(s), up to {settings.max_attempts} attempts")

    with BackgroundNotifier(inner) as notifier, EnrollDriver(capture, extractor, comparator, notifier, settings) as driver:
        response = driver.enroll(want_image=args.save_image is not None)

    outcome = response.outcome
    if not args.quiet:
        print(f"[enroll] Attempts: {outcome.attempts}, accepted: {outcome.accepted}")
        if outcome.scores is not None:
            s01, s12, s20 = outcome.scores
            print(f"[enroll] Scores: s01={s01} s12={s12} s20={s20}")
        if outcome.winner is not None:
            print(f"[enroll] Winner: sample {outcome.winner}")
    print(f"[enroll] Result: {outcome.kind.name}" + (f" ({outcome.message})" if outcome.message else ""))

    if args.save_image is not None and response.image is not None:
        written = save_image(response.image, args.save_image)
        if not args.quiet:
            print(f"[enroll] Image saved to {written}")

    return EXIT_CODES[response.status]


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "enroll":
        try:
            settings = settings_from_args(args)
        except ValueError as e:
            parser.error(str(e))
        return run_enroll(args, settings)

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
