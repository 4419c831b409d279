from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from .instants import CivilInstant, SysInstant


@dataclass
class LeapSecondTransition:
    """
    Represents a leap second entry in a TZif file.
    """

    transition_time: int
    correction: int
    is_expiration: bool = False


@dataclass
class TimeTypeInfo:
    """
    Represents a ttinfo structure in a TZif file.
    """

    utc_offset_secs: int
    is_dst: bool
    abbrev_index: int


@dataclass(frozen=True)
class Transition:
    """
    The maximal half-open interval [begin, end) over which a zone's UTC offset,
    DST save and abbreviation stay constant.
    """

    begin: SysInstant
    end: SysInstant
    offset_secs: int  # standard offset plus save
    save_secs: int
    abbrev: str

    def __post_init__(self) -> None:
        if not self.begin < self.end:
            raise ValueError(
                f"Transition must begin before it ends: [{self.begin}, {self.end})"
            )

    @property
    def offset(self) -> timedelta:
        return timedelta(seconds=self.offset_secs)

    @property
    def save(self) -> timedelta:
        return timedelta(seconds=self.save_secs)

    @property
    def offset_minutes(self) -> int:
        return self.offset_secs // 60

    @property
    def save_minutes(self) -> int:
        return self.save_secs // 60

    @property
    def utc_offset_hours(self) -> float:
        return self.offset_secs / 3600

    @property
    def is_dst(self) -> bool:
        return self.save_secs != 0

    def contains(self, instant: SysInstant) -> bool:
        return self.begin <= instant < self.end

    def to_sys(self, civil: CivilInstant) -> SysInstant:
        return civil.minus_offset(self.offset_secs)

    def to_local(self, instant: SysInstant) -> CivilInstant:
        return instant.plus_offset(self.offset_secs)


class LocalCategory(Enum):
    UNIQUE = 0
    NONEXISTENT = 1
    AMBIGUOUS = 2


@dataclass(frozen=True)
class LocalResolution:
    """
    Classification of a civil time in one zone.

    `first` and `second` are chronological: for AMBIGUOUS and NONEXISTENT,
    `first` ends exactly where `second` begins. `second` is None for UNIQUE.
    """

    category: LocalCategory
    first: Transition
    second: Transition | None = None

    def __post_init__(self) -> None:
        if self.category is LocalCategory.UNIQUE:
            if self.second is not None:
                raise ValueError("A unique resolution has a single transition.")
            return
        if self.second is None:
            raise ValueError(f"A {self.category.name.lower()} resolution needs two transitions.")
        if self.first.end != self.second.begin:
            raise ValueError("Transitions of a resolution must be adjacent.")

    @property
    def is_unique(self) -> bool:
        return self.category is LocalCategory.UNIQUE

    @property
    def is_ambiguous(self) -> bool:
        return self.category is LocalCategory.AMBIGUOUS

    @property
    def is_nonexistent(self) -> bool:
        return self.category is LocalCategory.NONEXISTENT


class Choose(Enum):
    """
    How to_sys() picks a UTC instant for an ambiguous or nonexistent civil time.
    """

    EARLIEST = "earliest"
    LATEST = "latest"
    RAISE = "raise"
