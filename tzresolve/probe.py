import logging

from .backend import CalendarBackend, Direction, ZoneHandle
from .errors import BackendError
from .instants import SysInstant
from .loader import get_backend
from .models import Transition

logger = logging.getLogger(__name__)


class TransitionProbe:
    """
    Reads the Transition covering an instant from one open ZoneHandle.
    """

    def __init__(self, handle: ZoneHandle) -> None:
        self.handle = handle

    def probe(self, instant: SysInstant) -> Transition:
        handle = self.handle
        with handle.lock:
            handle.set_instant(instant)
            if handle.is_daylight():
                save = handle.dst_offset_secs()
                offset = handle.raw_offset_secs() + save
            else:
                save = 0
                offset = handle.raw_offset_secs()
            begin = handle.transition_boundary(Direction.PREVIOUS_INCLUSIVE)
            end = handle.transition_boundary(Direction.NEXT)
            abbrev = handle.display_name(save != 0)

        try:
            transition = Transition(
                begin if begin is not None else SysInstant.MIN,
                end if end is not None else SysInstant.MAX,
                offset,
                save,
                abbrev,
            )
        except ValueError as exc:
            raise BackendError(f"Inconsistent period for {handle.zone_name!r}: {exc}") from exc
        logger.debug("%s at %s: %s", handle.zone_name, instant, transition)
        return transition


def probe_sys_info(
    zone_name: str, instant: SysInstant, backend: CalendarBackend | None = None
) -> Transition:
    """The Transition of `zone_name` in effect at the UTC instant `instant`."""
    if not isinstance(instant, SysInstant):
        raise TypeError(f"Expected a SysInstant, got {type(instant).__name__}")
    backend = backend or get_backend()
    with backend.open(zone_name) as handle:
        return TransitionProbe(handle).probe(instant)
