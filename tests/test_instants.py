from datetime import datetime, timedelta, timezone

import pytest

from tzresolve.instants import MICROS_PER_SECOND, CivilInstant, SysInstant


def test_sentinels_match_datetime_range():
    assert SysInstant.MIN.to_datetime() == datetime.min.replace(tzinfo=timezone.utc)
    assert SysInstant.MAX.to_datetime() == datetime.max.replace(tzinfo=timezone.utc)
    assert SysInstant.MIN < SysInstant(0) < SysInstant.MAX
    assert SysInstant.MIN.is_min
    assert SysInstant.MAX.is_max
    assert not SysInstant(0).is_min
    assert not SysInstant(0).is_max


def test_sys_instant_from_datetime():
    instant = SysInstant.from_datetime(datetime(2020, 3, 8, 10, 0, tzinfo=timezone.utc))
    assert instant == SysInstant.from_seconds(1583661600)
    assert instant.seconds == 1583661600

    # Same instant given in another offset
    eastern = timezone(timedelta(hours=-5))
    assert SysInstant.from_datetime(datetime(2020, 3, 8, 5, 0, tzinfo=eastern)) == instant


def test_sys_instant_keeps_microseconds():
    dt = datetime(1969, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
    instant = SysInstant.from_datetime(dt)
    assert instant.micros == -1
    assert instant.to_datetime() == dt


def test_sys_instant_rejects_naive_datetime():
    with pytest.raises(TypeError):
        SysInstant.from_datetime(datetime(2020, 1, 1))


def test_civil_instant_rejects_aware_datetime():
    with pytest.raises(TypeError):
        CivilInstant.from_datetime(datetime(2020, 1, 1, tzinfo=timezone.utc))


def test_civil_instant_round_trips_naive_datetime():
    dt = datetime(2020, 11, 1, 1, 30, 0, 250)
    assert CivilInstant.from_datetime(dt).to_datetime() == dt


def test_sys_and_civil_are_distinct_types():
    assert SysInstant(5) != CivilInstant(5)
    with pytest.raises(TypeError):
        SysInstant(5) < CivilInstant(6)
    with pytest.raises(TypeError):
        SysInstant(5) - CivilInstant(5)
    with pytest.raises(TypeError):
        CivilInstant(5) - SysInstant(5)


def test_arithmetic_with_timedelta():
    instant = SysInstant(0)
    assert instant + timedelta(days=1) == SysInstant(86_400 * MICROS_PER_SECOND)
    assert instant - timedelta(microseconds=1) == SysInstant(-1)
    assert SysInstant(10) - SysInstant(4) == timedelta(microseconds=6)

    civil = CivilInstant(0)
    assert civil + timedelta(hours=1) == CivilInstant(3600 * MICROS_PER_SECOND)
    assert CivilInstant(10) - CivilInstant(4) == timedelta(microseconds=6)

    with pytest.raises(TypeError):
        instant + 5


def test_offsets_move_between_clocks():
    instant = SysInstant.from_datetime(datetime(2020, 6, 1, 12, 0, tzinfo=timezone.utc))
    civil = instant.plus_offset(-7 * 3600)
    assert civil.to_datetime() == datetime(2020, 6, 1, 5, 0)
    assert civil.minus_offset(-7 * 3600) == instant


def test_from_civil_bits_reuses_count():
    civil = CivilInstant.from_datetime(datetime(2020, 4, 5, 2, 30))
    instant = SysInstant.from_civil_bits(civil)
    assert instant.micros == civil.micros
    assert instant.to_datetime() == datetime(2020, 4, 5, 2, 30, tzinfo=timezone.utc)


def test_str_is_iso_format():
    assert str(SysInstant(0)) == "1970-01-01T00:00:00+00:00"
    assert str(CivilInstant(0)) == "1970-01-01T00:00:00"
    # Outside the datetime range
    assert str(SysInstant.MAX + timedelta(days=1)).startswith("SysInstant(")
