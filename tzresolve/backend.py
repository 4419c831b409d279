import threading
from abc import ABC, abstractmethod
from enum import Enum

from .errors import BackendError
from .instants import SysInstant


class Direction(Enum):
    PREVIOUS_INCLUSIVE = "previous_inclusive"  # most recent boundary at or before the instant
    NEXT = "next"  # first boundary strictly after the instant


class ZoneHandle(ABC):
    """
    An open calendar for one zone, positioned at one instant at a time.

    Setting the instant mutates the handle, so calls against one handle must be
    sequential; `lock` serializes whole probes. Distinct handles are independent.
    """

    def __init__(self, zone_name: str) -> None:
        self.zone_name = zone_name
        self.lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise BackendError(f"Calendar for {self.zone_name!r} is closed")

    @abstractmethod
    def set_instant(self, instant: SysInstant) -> None: ...

    @abstractmethod
    def is_daylight(self) -> bool: ...

    @abstractmethod
    def raw_offset_secs(self) -> int:
        """Standard offset from UTC, excluding any DST save."""

    @abstractmethod
    def dst_offset_secs(self) -> int:
        """DST save in effect; zero outside daylight time."""

    @abstractmethod
    def transition_boundary(self, direction: Direction) -> SysInstant | None:
        """The neighboring boundary in `direction`, or None when there is none."""

    @abstractmethod
    def display_name(self, is_dst: bool) -> str: ...

    def __enter__(self) -> "ZoneHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"{type(self).__name__}(zone_name={self.zone_name!r}, {state})"


class CalendarBackend(ABC):
    """
    Source of zone handles. The resolver only ever talks to this interface.
    """

    @abstractmethod
    def open(self, zone_name: str) -> ZoneHandle:
        """Open a handle for `zone_name`; raise ZoneNotFound if it is unknown."""

    @abstractmethod
    def available_zones(self) -> set[str]: ...

    @abstractmethod
    def current_zone(self) -> str: ...
