import calendar
import re
from dataclasses import dataclass
from datetime import date
from typing import IO

_EPOCH_ORDINAL = date(1970, 1, 1).toordinal()

_ABBREV = r"[A-Za-z]{3,}|<[^<>]+>"
_OFFSET = r"[+-]?\d{1,3}(?::\d{1,2}(?::\d{1,2})?)?"

_TZ_STRING = re.compile(
    rf"""
    (?P<std>{_ABBREV})
    (?P<stdoff>{_OFFSET})
    (?:
        (?P<dst>{_ABBREV})
        (?P<dstoff>{_OFFSET})?
        (?:,(?P<start>[^,]+),(?P<end>[^,]+))?
    )?
    """,
    re.ASCII | re.VERBOSE,
)
_HMS = re.compile(r"(?P<sign>[+-])?(?P<h>\d{1,3})(?::(?P<m>\d{2})(?::(?P<s>\d{2}))?)?")
_MONTH_WEEK_DAY = re.compile(r"M(\d{1,2})\.(\d)\.(\d)")


def _days_since_epoch(year: int, month: int, day: int) -> int:
    return date(year, month, day).toordinal() - _EPOCH_ORDINAL


def _is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


@dataclass(frozen=True)
class MonthWeekDay:
    """`Mm.w.d`: day d (Sunday=0) of week w (5 = last) of month m."""

    month: int
    week: int
    weekday: int
    time_secs: int = 7200

    def local_seconds(self, year: int) -> int:
        first_weekday = date(year, self.month, 1).isoweekday() % 7  # Sunday=0
        day = 1 + (self.weekday - first_weekday) % 7 + 7 * (self.week - 1)
        month_length = calendar.monthrange(year, self.month)[1]
        while day > month_length:
            day -= 7
        return _days_since_epoch(year, self.month, day) * 86400 + self.time_secs


@dataclass(frozen=True)
class JulianDay:
    """`Jn`: day n in 1..365, never counting February 29."""

    day_of_year: int
    time_secs: int = 7200

    def local_seconds(self, year: int) -> int:
        day_index = self.day_of_year - 1
        if _is_leap_year(year) and self.day_of_year >= 60:
            day_index += 1
        return (_days_since_epoch(year, 1, 1) + day_index) * 86400 + self.time_secs


@dataclass(frozen=True)
class OrdinalDay:
    """`n`: zero-based day of the year, counting February 29."""

    day_index: int
    time_secs: int = 7200

    def local_seconds(self, year: int) -> int:
        return (_days_since_epoch(year, 1, 1) + self.day_index) * 86400 + self.time_secs


DateRule = MonthWeekDay | JulianDay | OrdinalDay


@dataclass(frozen=True)
class PosixTzRule:
    """
    The TZ string footer of a version 2+ TZif file, governing every instant
    after the last explicit transition. Offsets are seconds east of UTC.
    """

    posix_string: str
    standard_abbrev: str
    utc_offset_secs: int
    dst_abbrev: str | None = None
    dst_offset_secs: int | None = None
    dst_start: DateRule | None = None
    dst_end: DateRule | None = None

    @property
    def has_dst_rules(self) -> bool:
        return self.dst_start is not None and self.dst_end is not None

    @property
    def dst_difference_secs(self) -> int:
        if self.dst_offset_secs is None:
            return 0
        return self.dst_offset_secs - self.utc_offset_secs

    @property
    def utc_offset_hours(self) -> float:
        return self.utc_offset_secs / 3600

    def transitions_in_year(self, year: int) -> list[tuple[int, bool]]:
        """
        (UTC seconds, enters DST) for both rule dates of `year`, in time order.
        """
        if not self.has_dst_rules or self.dst_offset_secs is None:
            return []
        # The start is reckoned in standard time, the end in daylight time
        start = self.dst_start.local_seconds(year) - self.utc_offset_secs
        end = self.dst_end.local_seconds(year) - self.dst_offset_secs
        return sorted([(start, True), (end, False)])

    @classmethod
    def parse(cls, posix_string: str) -> "PosixTzRule":
        match = _TZ_STRING.fullmatch(posix_string)
        if match is None:
            raise ValueError(f"{posix_string!r} is not a valid TZ string")

        std_offset = -cls._parse_hms(match.group("stdoff"), max_hours=24)
        dst_abbrev = match.group("dst")
        dst_offset = None
        if dst_abbrev is not None:
            dstoff = match.group("dstoff")
            # POSIX default: one hour ahead of standard time
            dst_offset = (
                -cls._parse_hms(dstoff, max_hours=24) if dstoff else std_offset + 3600
            )
            dst_abbrev = dst_abbrev.strip("<>")

        start = end = None
        if match.group("start") is not None:
            start = cls._parse_date_rule(match.group("start"))
            end = cls._parse_date_rule(match.group("end"))
        elif dst_abbrev is not None:
            raise ValueError(f"{posix_string!r} names a DST period without rules")

        return cls(
            posix_string,
            match.group("std").strip("<>"),
            std_offset,
            dst_abbrev,
            dst_offset,
            start,
            end,
        )

    @classmethod
    def read(cls, file: IO[bytes]) -> "PosixTzRule | None":
        """Read the footer that follows the version 2+ data block."""
        footer = file.read()
        if not footer:
            return None
        if not footer.startswith(b"\n"):
            raise ValueError("Invalid TZif footer: missing leading newline.")
        line = footer[1:].split(b"\n", 1)[0].rstrip(b"\x00")
        if not line:
            return None
        return cls.parse(line.decode("ascii"))

    @staticmethod
    def _parse_hms(value: str, max_hours: int) -> int:
        match = _HMS.fullmatch(value)
        if match is None:
            raise ValueError(f"{value!r} is not a valid offset or time")
        h, m, s = (int(v or 0) for v in match.group("h", "m", "s"))
        if h > max_hours or m > 59 or s > 59:
            raise ValueError(f"{value!r} is out of range")
        total = h * 3600 + m * 60 + s
        return -total if match.group("sign") == "-" else total

    @classmethod
    def _parse_date_rule(cls, rule: str) -> DateRule:
        day_part, _, time_part = rule.partition("/")
        # Transition times may run from -167 to 167 hours
        time_secs = cls._parse_hms(time_part, max_hours=167) if time_part else 7200

        mwd = _MONTH_WEEK_DAY.fullmatch(day_part)
        if mwd is not None:
            month, week, weekday = (int(x) for x in mwd.groups())
            if not (1 <= month <= 12 and 1 <= week <= 5 and 0 <= weekday <= 6):
                raise ValueError(f"Invalid M<m>.<w>.<d> rule: {rule!r}")
            return MonthWeekDay(month, week, weekday, time_secs)

        if day_part.startswith("J") and day_part[1:].isdigit():
            day_of_year = int(day_part[1:])
            if not 1 <= day_of_year <= 365:
                raise ValueError(f"J<n> must be 1..365: {rule!r}")
            return JulianDay(day_of_year, time_secs)

        if day_part.isdigit():
            day_index = int(day_part)
            if not 0 <= day_index <= 365:
                raise ValueError(f"<n> must be 0..365: {rule!r}")
            return OrdinalDay(day_index, time_secs)

        raise ValueError(f"Invalid DST rule date: {rule!r}")
