from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import ClassVar

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NAIVE_EPOCH = datetime(1970, 1, 1)

MICROS_PER_SECOND = 1_000_000
MICROS_PER_DAY = 86_400 * MICROS_PER_SECOND


def _to_micros(delta: timedelta) -> int:
    return (delta.days * 86_400 + delta.seconds) * MICROS_PER_SECOND + delta.microseconds


def _delta_micros(delta: timedelta) -> int:
    if not isinstance(delta, timedelta):
        raise TypeError(f"Expected a timedelta, got {type(delta).__name__}")
    return _to_micros(delta)


@dataclass(frozen=True, order=True)
class SysInstant:
    """
    An absolute UTC instant, counted in microseconds since the Unix epoch.

    Never equal to, nor orderable against, a CivilInstant holding the same count.
    """

    micros: int

    MIN: ClassVar["SysInstant"]
    MAX: ClassVar["SysInstant"]

    @classmethod
    def from_datetime(cls, dt: datetime) -> "SysInstant":
        if dt.tzinfo is None:
            raise TypeError(
                "SysInstant requires an aware datetime; use CivilInstant for wall time."
            )
        return cls(_to_micros(dt.astimezone(timezone.utc) - _EPOCH))

    @classmethod
    def from_seconds(cls, seconds: int) -> "SysInstant":
        return cls(seconds * MICROS_PER_SECOND)

    @classmethod
    def from_civil_bits(cls, civil: "CivilInstant") -> "SysInstant":
        """Reinterpret a civil instant's count as if it were already UTC."""
        return cls(civil.micros)

    def to_datetime(self) -> datetime:
        return _EPOCH + timedelta(microseconds=self.micros)

    def plus_offset(self, offset_secs: int) -> "CivilInstant":
        return CivilInstant(self.micros + offset_secs * MICROS_PER_SECOND)

    @property
    def seconds(self) -> int:
        return self.micros // MICROS_PER_SECOND

    @property
    def is_min(self) -> bool:
        return self.micros <= _MIN_MICROS

    @property
    def is_max(self) -> bool:
        return self.micros >= _MAX_MICROS

    def __add__(self, delta: timedelta) -> "SysInstant":
        return SysInstant(self.micros + _delta_micros(delta))

    def __sub__(self, other):
        if isinstance(other, SysInstant):
            return timedelta(microseconds=self.micros - other.micros)
        return SysInstant(self.micros - _delta_micros(other))

    def __str__(self) -> str:
        try:
            return self.to_datetime().isoformat()
        except OverflowError:
            return f"SysInstant({self.micros})"


@dataclass(frozen=True, order=True)
class CivilInstant:
    """
    A naive wall-clock reading, counted in microseconds since 1970-01-01T00:00
    on the same wall clock. It carries no offset.
    """

    micros: int

    @classmethod
    def from_datetime(cls, dt: datetime) -> "CivilInstant":
        if dt.tzinfo is not None:
            raise TypeError(
                "CivilInstant requires a naive datetime; use SysInstant for UTC instants."
            )
        return cls(_to_micros(dt - _NAIVE_EPOCH))

    def to_datetime(self) -> datetime:
        return _NAIVE_EPOCH + timedelta(microseconds=self.micros)

    def minus_offset(self, offset_secs: int) -> SysInstant:
        """The UTC instant this wall time denotes under `offset_secs`."""
        return SysInstant(self.micros - offset_secs * MICROS_PER_SECOND)

    def __add__(self, delta: timedelta) -> "CivilInstant":
        return CivilInstant(self.micros + _delta_micros(delta))

    def __sub__(self, other):
        if isinstance(other, CivilInstant):
            return timedelta(microseconds=self.micros - other.micros)
        return CivilInstant(self.micros - _delta_micros(other))

    def __str__(self) -> str:
        try:
            return self.to_datetime().isoformat()
        except OverflowError:
            return f"CivilInstant({self.micros})"


_MIN_MICROS = _to_micros(datetime.min.replace(tzinfo=timezone.utc) - _EPOCH)
_MAX_MICROS = _to_micros(datetime.max.replace(tzinfo=timezone.utc) - _EPOCH)

SysInstant.MIN = SysInstant(_MIN_MICROS)
SysInstant.MAX = SysInstant(_MAX_MICROS)

ONE_DAY = timedelta(days=1)
RESOLUTION = timedelta(microseconds=1)
