from datetime import datetime, timezone

import pytest

from tzresolve.backend import CalendarBackend, ZoneHandle
from tzresolve.errors import BackendError, ZoneNotFound
from tzresolve.instants import SysInstant
from tzresolve.models import TimeTypeInfo
from tzresolve.posix import PosixTzRule
from tzresolve.tzif import TzifBackend, TzifCalendar, TzifZone
from tzresolve.tzif_body import TimeZoneInfoBody


def _seconds(*args) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp())


def _body(ttinfos, abbrevs, transitions=()) -> TimeZoneInfoBody:
    return TimeZoneInfoBody(
        transition_times=[seconds for seconds, _ in transitions],
        leap_second_transitions=[],
        time_type_infos=[TimeTypeInfo(*tt) for tt in ttinfos],
        time_type_indices=[index for _, index in transitions],
        timezone_abbrevs=abbrevs,
        wall_standard_flags=[0] * len(ttinfos),
        is_utc_flags=[0] * len(ttinfos),
    )


def build_synthetic_zones() -> dict[str, TzifZone]:
    zones = {
        # US-style rules, no explicit transitions
        "Test/PosixOnly": TzifZone(
            "Test/PosixOnly",
            _body([(-5 * 3600, False, 0)], "STD\x00DST\x00"),
            PosixTzRule.parse("STD5DST,M3.2.0,M11.1.0"),
        ),
        # Southern hemisphere: DST spans the new year
        "Test/Southern": TzifZone(
            "Test/Southern",
            _body([(10 * 3600, False, 0)], "AEST\x00AEDT\x00"),
            PosixTzRule.parse("AEST-10AEDT,M10.1.0,M4.1.0/3"),
        ),
        # Explicit transitions, a redundant one, then the footer
        "Test/Body": TzifZone(
            "Test/Body",
            _body(
                [(-5 * 3600, False, 0), (-4 * 3600, True, 4)],
                "EST\x00EDT\x00",
                [
                    (_seconds(2024, 3, 10, 7), 1),
                    (_seconds(2024, 11, 3, 6), 0),
                    (_seconds(2024, 12, 1), 0),
                ],
            ),
            PosixTzRule.parse("EST5EDT,M3.2.0,M11.1.0"),
        ),
        "Test/Fixed": TzifZone(
            "Test/Fixed",
            _body([(19800, False, 0)], "IST\x00"),
            PosixTzRule.parse("IST-5:30"),
        ),
        # Version 1 data: no footer, the last type runs forever
        "Test/NoFooter": TzifZone(
            "Test/NoFooter",
            _body(
                [(3600, False, 0), (7200, False, 4)],
                "AAA\x00BBB\x00",
                [(1_000_000_000, 1)],
            ),
            None,
            version=1,
        ),
        "Test/AllDst": TzifZone(
            "Test/AllDst", _body([(3600, True, 0)], "DST\x00"), None, version=1
        ),
        # Daylight time all year: each year's end meets the next year's start
        "Test/PermanentDst": TzifZone(
            "Test/PermanentDst",
            _body([(-5 * 3600, False, 0)], "EST\x00EDT\x00"),
            PosixTzRule.parse("EST5EDT,0/0,J365/25"),
        ),
        "Test/PermanentDstAfterBody": TzifZone(
            "Test/PermanentDstAfterBody",
            _body(
                [(-5 * 3600, False, 0), (-4 * 3600, True, 4)],
                "EST\x00EDT\x00",
                [(_seconds(2019, 1, 1, 5), 1)],
            ),
            PosixTzRule.parse("EST5EDT,0/0,J365/25"),
        ),
    }
    return zones


class CountingCalendar(TzifCalendar):
    def __init__(self, zone: TzifZone) -> None:
        super().__init__(zone)
        self.probes = 0

    def set_instant(self, instant: SysInstant) -> None:
        self.probes += 1
        super().set_instant(instant)


class StaticBackend(CalendarBackend):
    """In-memory backend over prebuilt zones, recording every handle it opens."""

    def __init__(self, zones: dict[str, TzifZone], current: str = "Test/Fixed") -> None:
        self.zones = zones
        self.current = current
        self.handles: list[CountingCalendar] = []

    def open(self, zone_name: str) -> CountingCalendar:
        if zone_name not in self.zones:
            raise ZoneNotFound(zone_name)
        handle = CountingCalendar(self.zones[zone_name])
        self.handles.append(handle)
        return handle

    def available_zones(self) -> set[str]:
        return set(self.zones)

    def current_zone(self) -> str:
        return self.current


class ScriptedHandle(ZoneHandle):
    """
    Replays fixed periods keyed by their begin: an instant selects the last
    period whose begin is at or before it, whatever that period reports as
    its end.
    """

    def __init__(self, zone_name: str, periods) -> None:
        super().__init__(zone_name)
        # (begin, end, raw_offset_secs, save_secs, abbrev)
        self.periods = periods
        self._period = None

    def set_instant(self, instant: SysInstant) -> None:
        self._check_open()
        candidates = [p for p in self.periods if p[0] is None or p[0] <= instant]
        if not candidates:
            raise BackendError(f"No period at {instant}")
        self._period = candidates[-1]

    def is_daylight(self) -> bool:
        return self._period[3] != 0

    def raw_offset_secs(self) -> int:
        return self._period[2]

    def dst_offset_secs(self) -> int:
        return self._period[3]

    def transition_boundary(self, direction):
        begin, end = self._period[:2]
        return begin if direction.value == "previous_inclusive" else end

    def display_name(self, is_dst: bool) -> str:
        return self._period[4]


class ScriptedBackend(CalendarBackend):
    def __init__(self, periods) -> None:
        self.periods = periods

    def open(self, zone_name: str) -> ScriptedHandle:
        return ScriptedHandle(zone_name, self.periods)

    def available_zones(self) -> set[str]:
        return {"Test/Scripted"}

    def current_zone(self) -> str:
        return "Test/Scripted"


@pytest.fixture
def synthetic_zones() -> dict[str, TzifZone]:
    return build_synthetic_zones()


@pytest.fixture
def synthetic_backend(synthetic_zones) -> StaticBackend:
    return StaticBackend(synthetic_zones)


@pytest.fixture(scope="session")
def tzif_backend() -> TzifBackend:
    return TzifBackend.discover()


@pytest.fixture
def scripted_backend():
    return ScriptedBackend


@pytest.fixture
def scripted_handle():
    return ScriptedHandle
