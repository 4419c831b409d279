from .backend import CalendarBackend, Direction, ZoneHandle
from .config import TzConfig
from .errors import (
    AmbiguousLocalTime,
    BackendError,
    BackendUnavailable,
    NonexistentLocalTime,
    TzdbError,
    ZoneNotFound,
)
from .instants import CivilInstant, SysInstant
from .loader import BackendLoader, BackendState, get_backend
from .models import Choose, LocalCategory, LocalResolution, Transition
from .probe import TransitionProbe, probe_sys_info
from .resolver import LocalResolver, resolve_local_info, to_local, to_sys
from .tzif import TzifBackend, TzifZone
from .zone import TimeZone


def available_zones() -> set[str]:
    return get_backend().available_zones()


def current_zone() -> str:
    return get_backend().current_zone()


__all__ = [
    "AmbiguousLocalTime",
    "BackendError",
    "BackendLoader",
    "BackendState",
    "BackendUnavailable",
    "CalendarBackend",
    "Choose",
    "CivilInstant",
    "Direction",
    "LocalCategory",
    "LocalResolution",
    "LocalResolver",
    "NonexistentLocalTime",
    "SysInstant",
    "TimeZone",
    "Transition",
    "TransitionProbe",
    "TzConfig",
    "TzdbError",
    "TzifBackend",
    "TzifZone",
    "ZoneHandle",
    "ZoneNotFound",
    "available_zones",
    "current_zone",
    "get_backend",
    "probe_sys_info",
    "resolve_local_info",
    "to_local",
    "to_sys",
]
