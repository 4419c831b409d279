from datetime import datetime, timedelta, timezone

import pytest

from tzresolve.errors import AmbiguousLocalTime, NonexistentLocalTime, TzdbError, ZoneNotFound
from tzresolve.instants import CivilInstant, SysInstant
from tzresolve.models import Choose, LocalCategory, LocalResolution, Transition


def _utc(*args) -> SysInstant:
    return SysInstant.from_datetime(datetime(*args, tzinfo=timezone.utc))


PST = Transition(_utc(2019, 11, 3, 9), _utc(2020, 3, 8, 10), -8 * 3600, 0, "PST")
PDT = Transition(_utc(2020, 3, 8, 10), _utc(2020, 11, 1, 9), -7 * 3600, 3600, "PDT")


def test_transition_requires_begin_before_end():
    with pytest.raises(ValueError):
        Transition(_utc(2020, 1, 1), _utc(2020, 1, 1), 0, 0, "UTC")
    with pytest.raises(ValueError):
        Transition(_utc(2020, 1, 2), _utc(2020, 1, 1), 0, 0, "UTC")


def test_transition_offset_views():
    assert PDT.offset == timedelta(hours=-7)
    assert PDT.save == timedelta(hours=1)
    assert PDT.offset_minutes == -420
    assert PDT.save_minutes == 60
    assert PDT.utc_offset_hours == -7
    assert PDT.is_dst
    assert not PST.is_dst


def test_transition_is_half_open():
    assert PDT.contains(PDT.begin)
    assert not PDT.contains(PDT.end)
    assert PST.contains(PDT.begin - timedelta(microseconds=1))


def test_transition_converts_both_ways():
    civil = CivilInstant.from_datetime(datetime(2020, 6, 1, 12, 0))
    instant = PDT.to_sys(civil)
    assert instant == _utc(2020, 6, 1, 19)
    assert PDT.to_local(instant) == civil


def test_unique_resolution_has_one_transition():
    resolution = LocalResolution(LocalCategory.UNIQUE, PDT)
    assert resolution.is_unique
    assert resolution.second is None

    with pytest.raises(ValueError):
        LocalResolution(LocalCategory.UNIQUE, PST, PDT)


@pytest.mark.parametrize("category", [LocalCategory.AMBIGUOUS, LocalCategory.NONEXISTENT])
def test_two_transition_resolutions_must_be_adjacent(category):
    resolution = LocalResolution(category, PST, PDT)
    assert resolution.first.end == resolution.second.begin

    with pytest.raises(ValueError):
        LocalResolution(category, PST)
    with pytest.raises(ValueError):
        LocalResolution(category, PDT, PST)


def test_category_values():
    assert [c.value for c in LocalCategory] == [0, 1, 2]
    assert LocalCategory.NONEXISTENT.name == "NONEXISTENT"


def test_choose_accepts_strings():
    assert Choose("earliest") is Choose.EARLIEST
    assert Choose("latest") is Choose.LATEST
    assert Choose("raise") is Choose.RAISE


def test_error_hierarchy():
    civil = CivilInstant.from_datetime(datetime(2020, 3, 8, 2, 30))
    resolution = LocalResolution(LocalCategory.NONEXISTENT, PST, PDT)
    error = NonexistentLocalTime("America/Los_Angeles", civil, resolution)

    assert isinstance(error, TzdbError)
    assert isinstance(error, ValueError)
    assert error.resolution is resolution
    assert "nonexistent" in str(error)
    assert "2020-03-08T02:30:00" in str(error)
    assert issubclass(AmbiguousLocalTime, ValueError)

    missing = ZoneNotFound("Nope/Zone", "invalid zone name")
    assert isinstance(missing, KeyError)
    assert str(missing) == "No time zone found with key 'Nope/Zone': invalid zone name"
