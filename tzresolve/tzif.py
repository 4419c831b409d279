import bisect
import functools
import logging
import os
import struct
from dataclasses import dataclass, field
from datetime import date
from importlib import resources, util
from typing import IO, Iterator

from .backend import CalendarBackend, Direction, ZoneHandle
from .config import TzConfig
from .errors import BackendError, BackendUnavailable, ZoneNotFound
from .instants import MICROS_PER_DAY, MICROS_PER_SECOND, SysInstant
from .posix import PosixTzRule
from .tzif_body import TimeZoneInfoBody
from .tzif_header import TimeZoneInfoHeader, read_exact

logger = logging.getLogger(__name__)

_EPOCH_ORDINAL = date(1970, 1, 1).toordinal()
_DEFAULT_SAVE_SECS = 3600


@dataclass(frozen=True)
class LocalType:
    """
    One offset regime. Equality ignores `save_secs`: two regimes with the same
    offset, DST flag and abbreviation are the same period for lookups.
    """

    utc_offset_secs: int
    is_dst: bool
    abbrev: str
    save_secs: int = field(default=0, compare=False)

    @property
    def raw_offset_secs(self) -> int:
        return self.utc_offset_secs - self.save_secs


@dataclass(frozen=True)
class Segment:
    begin: int | None  # microseconds, None when unbounded
    end: int | None
    local_type: LocalType


def _year_of(micros: int) -> int:
    ordinal = _EPOCH_ORDINAL + micros // MICROS_PER_DAY
    if ordinal < 1:
        return 1
    if ordinal > date.max.toordinal():
        return date.max.year
    return date.fromordinal(ordinal).year


class TzifZone:
    """
    Compiled, immutable transition data for one zone: the explicit transitions
    of a TZif body followed by the footer's recurring rules.
    """

    def __init__(
        self,
        timezone_name: str,
        body: TimeZoneInfoBody,
        footer: PosixTzRule | None = None,
        filepath: str | None = None,
        version: int = 2,
    ) -> None:
        if not body.time_type_infos:
            raise ValueError("Invalid TZif file: no local time types.")
        self.timezone_name = timezone_name
        self.body = body
        self.footer = footer
        self.filepath = filepath
        self.version = version

        self.initial_type = self._initial_type(body)
        self._last_body_time = (
            body.transition_times[-1] * MICROS_PER_SECOND
            if body.transition_times
            else None
        )
        self._times: list[int] = []
        self._types: list[LocalType] = []
        previous = self.initial_type
        for seconds, local_type in zip(body.transition_times, self._body_types(body)):
            # Skip transitions that change nothing observable
            if local_type == previous:
                continue
            self._times.append(seconds * MICROS_PER_SECOND)
            self._types.append(local_type)
            previous = local_type

        if footer is not None:
            self._std_type = LocalType(
                footer.utc_offset_secs, False, footer.standard_abbrev
            )
            self._dst_type = LocalType(
                footer.dst_offset_secs
                if footer.dst_offset_secs is not None
                else footer.utc_offset_secs + _DEFAULT_SAVE_SECS,
                True,
                footer.dst_abbrev or footer.standard_abbrev,
                footer.dst_difference_secs or _DEFAULT_SAVE_SECS,
            )

    @property
    def transition_times(self) -> list[int]:
        """Microsecond instants of the meaningful explicit transitions."""
        return list(self._times)

    @staticmethod
    def _initial_type(body: TimeZoneInfoBody) -> LocalType:
        # Prefer the first standard ttinfo, else fall back to index 0
        std = next((tt for tt in body.time_type_infos if not tt.is_dst), None)
        tt = std if std is not None else body.time_type_infos[0]
        return LocalType(
            tt.utc_offset_secs, tt.is_dst, body.get_abbrev_by_index(tt.abbrev_index)
        )

    @staticmethod
    def _body_types(body: TimeZoneInfoBody) -> list[LocalType]:
        """
        LocalType per transition. A DST type's save is measured against the
        nearest standard offset before it, else after it, else one hour.
        """
        ttinfos = [body.time_type_at(i) for i in range(len(body.transition_times))]
        std_before: list[int | None] = []
        last_std = next(
            (tt.utc_offset_secs for tt in body.time_type_infos if not tt.is_dst), None
        )
        for tt in ttinfos:
            if not tt.is_dst:
                last_std = tt.utc_offset_secs
            std_before.append(last_std)

        std_after: list[int | None] = [None] * len(ttinfos)
        next_std = None
        for i in range(len(ttinfos) - 1, -1, -1):
            if not ttinfos[i].is_dst:
                next_std = ttinfos[i].utc_offset_secs
            std_after[i] = next_std

        types = []
        for i, tt in enumerate(ttinfos):
            abbrev = body.get_abbrev_by_index(tt.abbrev_index)
            if not tt.is_dst:
                types.append(LocalType(tt.utc_offset_secs, False, abbrev))
                continue
            std = std_before[i] if std_before[i] is not None else std_after[i]
            save = tt.utc_offset_secs - std if std is not None else 0
            types.append(
                LocalType(tt.utc_offset_secs, True, abbrev, save or _DEFAULT_SAVE_SECS)
            )
        return types

    def _footer_timeline(
        self, first_year: int, last_year: int
    ) -> list[tuple[int, LocalType, int]]:
        """
        (microseconds, type entered, rule year) for every footer rule date.
        Dates falling on the same instant are merged into the later one.
        """
        footer = self.footer
        if footer is None:
            return []
        timeline: list[tuple[int, LocalType, int]] = []
        for year in range(max(first_year, 1), min(last_year, date.max.year) + 1):
            for seconds, enters_dst in footer.transitions_in_year(year):
                event = (
                    seconds * MICROS_PER_SECOND,
                    self._dst_type if enters_dst else self._std_type,
                    year,
                )
                if timeline and timeline[-1][0] == event[0]:
                    timeline[-1] = event
                else:
                    timeline.append(event)
        return timeline

    def _footer_events(self, first_year: int, last_year: int) -> list[tuple[int, LocalType]]:
        """Footer rule dates of the given years that actually change the type."""
        timeline = self._footer_timeline(first_year - 1, last_year + 1)
        return [
            (micros, local_type)
            for (_, before, _), (micros, local_type, year) in zip(timeline, timeline[1:])
            if local_type != before and first_year <= year <= last_year
        ]

    def _footer_state(self, micros: int) -> tuple[int | None, LocalType, int | None]:
        """(previous footer event, type in effect, next footer event) at `micros`."""
        if self.footer is None or not self.footer.has_dst_rules:
            return None, self._std_type, None
        year = _year_of(micros)
        events = self._footer_events(year - 1, year + 1)
        index = bisect.bisect_right([t for t, _ in events], micros)
        previous = events[index - 1] if index > 0 else None
        following = events[index] if index < len(events) else None
        if previous is not None:
            local_type = previous[1]
        elif following is not None:
            local_type = self._std_type if following[1].is_dst else self._dst_type
        else:
            # The rules never leave one type, e.g. DST all year
            local_type = next(
                (
                    event_type
                    for event_micros, event_type, _ in reversed(
                        self._footer_timeline(year - 1, year)
                    )
                    if event_micros <= micros
                ),
                self._std_type,
            )
        return (
            previous[0] if previous else None,
            local_type,
            following[0] if following else None,
        )

    def _first_footer_change(self, after: int, local_type: LocalType) -> int | None:
        """First instant at or after `after` where the footer leaves `local_type`."""
        _, at_after, _ = self._footer_state(after)
        if at_after != local_type:
            return after
        year = _year_of(after)
        return next(
            (
                micros
                for micros, event_type in self._footer_events(year, year + 2)
                if micros > after and event_type != local_type
            ),
            None,
        )

    def segment_at(self, micros: int) -> Segment:
        """The constant-offset period containing the instant `micros`."""
        last_body = self._last_body_time
        use_footer = self.footer is not None and (
            last_body is None or micros >= last_body
        )
        if not use_footer:
            index = bisect.bisect_right(self._times, micros) - 1
            local_type = self._types[index] if index >= 0 else self.initial_type
            begin = self._times[index] if index >= 0 else None
            if index + 1 < len(self._times):
                end = self._times[index + 1]
            elif self.footer is None or last_body is None:
                end = None
            else:
                end = self._first_footer_change(last_body, local_type)
            return Segment(begin, end, local_type)

        previous, local_type, following = self._footer_state(micros)
        if last_body is not None and (previous is None or previous < last_body):
            # Still in the period that was in effect when the footer took over
            last_type = self._types[-1] if self._types else self.initial_type
            if local_type != last_type:
                begin = last_body
            else:
                begin = self._times[-1] if self._times else None
        else:
            begin = previous
        return Segment(begin, following, local_type)

    def abbrev_for(self, is_dst: bool) -> str | None:
        if self.footer is not None:
            return (self._dst_type if is_dst else self._std_type).abbrev
        for local_type in reversed(self._types):
            if local_type.is_dst == is_dst:
                return local_type.abbrev
        if self.initial_type.is_dst == is_dst:
            return self.initial_type.abbrev
        return None

    @property
    def leap_second_transitions(self):
        return self.body.leap_second_transitions

    @classmethod
    def read(
        cls, file: IO[bytes], timezone_name: str, filepath: str | None = None
    ) -> "TzifZone":
        header = TimeZoneInfoHeader.read(file)
        if header.version < 2:
            body = TimeZoneInfoBody.read(file, header, 1)
            return cls(timezone_name, body, None, filepath, header.version)

        # Version 2+ repeats the data with 64-bit times; skip the 32-bit block
        read_exact(file, header.data_block_size(1))
        v2_header = TimeZoneInfoHeader.read(file)
        body = TimeZoneInfoBody.read(file, v2_header, v2_header.version)
        footer = PosixTzRule.read(file)
        return cls(timezone_name, body, footer, filepath, v2_header.version)

    def __repr__(self) -> str:
        return (
            f"TzifZone(timezone_name={self.timezone_name!r}, "
            f"filepath={self.filepath!r}, "
            f"transitions={len(self._times)}, "
            f"footer={self.footer.posix_string if self.footer else None!r})"
        )


class TzifCalendar(ZoneHandle):
    """
    A ZoneHandle over a compiled TzifZone.
    """

    def __init__(self, zone: TzifZone) -> None:
        super().__init__(zone.timezone_name)
        self.zone = zone
        self._instant: SysInstant | None = None
        self._segment: Segment | None = None

    def set_instant(self, instant: SysInstant) -> None:
        self._check_open()
        if not SysInstant.MIN <= instant <= SysInstant.MAX:
            raise BackendError(f"Instant {instant.micros} is outside the supported range")
        self._instant = instant
        self._segment = None

    def _current(self) -> Segment:
        self._check_open()
        if self._instant is None:
            raise BackendError(f"No instant set on calendar for {self.zone_name!r}")
        if self._segment is None:
            self._segment = self.zone.segment_at(self._instant.micros)
        return self._segment

    def is_daylight(self) -> bool:
        return self._current().local_type.is_dst

    def raw_offset_secs(self) -> int:
        local_type = self._current().local_type
        return local_type.raw_offset_secs if local_type.is_dst else local_type.utc_offset_secs

    def dst_offset_secs(self) -> int:
        local_type = self._current().local_type
        return local_type.save_secs if local_type.is_dst else 0

    def transition_boundary(self, direction: Direction) -> SysInstant | None:
        segment = self._current()
        boundary = segment.begin if direction is Direction.PREVIOUS_INCLUSIVE else segment.end
        if boundary is None:
            return None
        # Boundaries beyond the representable range behave as unbounded
        if boundary <= SysInstant.MIN.micros or boundary >= SysInstant.MAX.micros:
            return None
        return SysInstant(boundary)

    def display_name(self, is_dst: bool) -> str:
        local_type = self._current().local_type
        if local_type.is_dst == is_dst:
            return local_type.abbrev
        return self.zone.abbrev_for(is_dst) or local_type.abbrev


class TzifBackend(CalendarBackend):
    """
    Calendar backend reading compiled TZif files from the zoneinfo search path
    or, failing that, from the tzdata package.
    """

    def __init__(self, config: TzConfig | None = None) -> None:
        self.config = config or TzConfig.from_env()
        self._cached_load = functools.lru_cache(maxsize=self.config.cache_size)(
            self._read_zone
        )

    @classmethod
    def discover(cls, config: TzConfig | None = None) -> "TzifBackend":
        config = config or TzConfig.from_env()
        roots = [path for path in config.search_paths if os.path.isdir(path)]
        has_package = config.use_tzdata_package and util.find_spec("tzdata") is not None
        if not roots and not has_package:
            raise BackendUnavailable(
                "No zoneinfo directory found in "
                f"{list(config.search_paths)!r} and the tzdata package is not installed"
            )
        logger.info(
            "Using zoneinfo roots %s%s", roots, " and the tzdata package" if has_package else ""
        )
        return cls(config)

    def open(self, zone_name: str) -> TzifCalendar:
        return TzifCalendar(self.load_zone(zone_name))

    def load_zone(self, zone_name: str) -> TzifZone:
        key = self._validate_timezone_key(zone_name)
        return self._cached_load(key)

    def clear_cache(self) -> None:
        self._cached_load.cache_clear()

    def _read_zone(self, key: str) -> TzifZone:
        for tz_root in self.config.search_paths:
            candidate = os.path.join(tz_root, key)
            if os.path.isfile(candidate):
                real = os.path.realpath(candidate)
                with open(real, "rb") as file:
                    return self._parse(file, key, real)

        if self.config.use_tzdata_package:
            with self._load_tzdata_from_package(key) as file:
                return self._parse(file, key, f"tzdata:{key}")

        raise ZoneNotFound(key)

    @staticmethod
    def _parse(file: IO[bytes], key: str, filepath: str) -> TzifZone:
        try:
            zone = TzifZone.read(file, key, filepath)
        except (ValueError, IndexError, struct.error) as exc:
            # UnicodeDecodeError is a ValueError
            raise BackendError(f"Unable to read zone data for {key!r} from {filepath}: {exc}") from exc
        logger.debug("Loaded %r", zone)
        return zone

    @staticmethod
    def _load_tzdata_from_package(key: str) -> IO[bytes]:
        components = key.split("/")
        package_name = ".".join(["tzdata.zoneinfo"] + components[:-1])
        resource_name = components[-1]
        try:
            return resources.files(package_name).joinpath(resource_name).open("rb")
        except (ImportError, FileNotFoundError, IsADirectoryError, ValueError) as exc:
            # ValueError covers keys the filesystem cannot represent
            raise ZoneNotFound(key) from exc

    @staticmethod
    def _validate_timezone_key(key: str) -> str:
        if not key or "\x00" in key:
            raise ZoneNotFound(key, "invalid zone name")
        if os.path.isabs(key):
            raise ZoneNotFound(key, "absolute paths are not allowed")

        # Normalize and ensure the normalized form does not change length (prevents ../)
        normalized = os.path.normpath(key)
        if len(normalized) != len(key) or normalized in (os.curdir, os.pardir):
            raise ZoneNotFound(key, "invalid zone name")

        # Ensure the path stays within a sentinel base
        base = os.path.normpath(os.path.join("_", "_"))[:-1]
        resolved = os.path.normpath(os.path.join(base, normalized))
        if not resolved.startswith(base):
            raise ZoneNotFound(key, "invalid zone name")

        return normalized

    def available_zones(self) -> set[str]:
        zones: set[str] = set()
        for tz_root in self.config.search_paths:
            if not os.path.isdir(tz_root):
                continue
            for dirpath, dirnames, filenames in os.walk(tz_root):
                # "right/" and "posix/" mirror the main tree
                if dirpath == tz_root:
                    dirnames[:] = [d for d in dirnames if d not in ("right", "posix")]
                for filename in filenames:
                    path = os.path.join(dirpath, filename)
                    if self._is_tzif_file(path):
                        zones.add(os.path.relpath(path, tz_root).replace(os.sep, "/"))
        if self.config.use_tzdata_package:
            zones.update(self._tzdata_package_zones())
        zones.discard("posixrules")
        zones.discard("localtime")
        return zones

    @staticmethod
    def _is_tzif_file(path: str) -> bool:
        try:
            with open(path, "rb") as file:
                return file.read(4) == b"TZif"
        except OSError:
            return False

    @staticmethod
    def _tzdata_package_zones() -> Iterator[str]:
        try:
            with resources.files("tzdata").joinpath("zones").open("r") as file:
                lines = file.read().splitlines()
        except (ImportError, FileNotFoundError):
            return iter(())
        return (line.strip() for line in lines if line.strip())

    def current_zone(self) -> str:
        tz = self.config.tz
        if tz:
            key = tz[1:] if tz.startswith(":") else tz
            if self._is_known(key):
                return key
            logger.debug("Ignoring TZ=%r: not a known zone", tz)

        localtime = self.config.localtime_path
        if os.path.islink(localtime):
            target = os.path.realpath(localtime)
            for tz_root in self.config.search_paths:
                root = os.path.realpath(tz_root) + os.sep
                if target.startswith(root):
                    key = target[len(root):].replace(os.sep, "/")
                    if self._is_known(key):
                        return key
        return "UTC"

    def _is_known(self, key: str) -> bool:
        try:
            self.load_zone(key)
        except (ZoneNotFound, BackendError):
            return False
        return True
