import argparse
import logging
import sys
from datetime import datetime, timezone

from .errors import TzdbError
from .instants import CivilInstant, SysInstant
from .loader import get_backend
from .models import Choose, Transition
from .probe import probe_sys_info
from .resolver import choose_sys, resolve_local_info


def _format_transition(transition: Transition) -> str:
    return (
        f"[{transition.begin}, {transition.end}) "
        f"offset={transition.utc_offset_hours:+g}h "
        f"save={transition.save_minutes}min "
        f"abbrev={transition.abbrev}"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m tzresolve",
        description="Resolve UTC offsets and classify wall-clock times for a time zone.",
    )
    parser.add_argument("zone", nargs="?", help="IANA zone name, e.g. America/Los_Angeles")
    parser.add_argument("when", nargs="?", help="ISO 8601 date-time")
    parser.add_argument(
        "--local",
        action="store_true",
        help="treat WHEN as a wall-clock time in ZONE instead of UTC",
    )
    parser.add_argument(
        "--choose",
        choices=[c.value for c in Choose],
        default=Choose.EARLIEST.value,
        help="how to pick a UTC instant for ambiguous or skipped wall times",
    )
    parser.add_argument("--list", action="store_true", help="list available zones")
    parser.add_argument("--current", action="store_true", help="print the current zone")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        if args.list:
            for name in sorted(get_backend().available_zones()):
                print(name)
            return 0
        if args.current:
            print(get_backend().current_zone())
            return 0
        if not args.zone or not args.when:
            parser.error("ZONE and WHEN are required")

        when = datetime.fromisoformat(args.when)
        if args.local:
            civil = CivilInstant.from_datetime(when.replace(tzinfo=None))
            resolution = resolve_local_info(args.zone, civil)
            print(resolution.category.name.lower())
            print(f"first:  {_format_transition(resolution.first)}")
            if resolution.second is not None:
                print(f"second: {_format_transition(resolution.second)}")
            print(f"utc: {choose_sys(resolution, args.zone, civil, Choose(args.choose))}")
        else:
            if when.tzinfo is None:
                when = when.replace(tzinfo=timezone.utc)
            instant = SysInstant.from_datetime(when)
            transition = probe_sys_info(args.zone, instant)
            print(_format_transition(transition))
            print(f"local: {transition.to_local(instant)}")
    except TzdbError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
