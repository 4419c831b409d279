import logging

from .backend import CalendarBackend
from .errors import AmbiguousLocalTime, BackendError, NonexistentLocalTime
from .instants import ONE_DAY, RESOLUTION, CivilInstant, SysInstant
from .loader import get_backend
from .models import Choose, LocalCategory, LocalResolution, Transition
from .probe import TransitionProbe

logger = logging.getLogger(__name__)


def _check_civil(civil: CivilInstant) -> None:
    if not isinstance(civil, CivilInstant):
        raise TypeError(f"Expected a CivilInstant, got {type(civil).__name__}")


class LocalResolver:
    """
    Classifies civil times of a zone as unique, ambiguous or nonexistent.

    A civil time is first probed as though it were UTC. The true instant is
    then within one UTC offset (well under a day) of that guess, so at most
    one neighboring period, before or after, has to be probed as well.
    """

    def __init__(self, backend: CalendarBackend | None = None) -> None:
        self._backend = backend

    @property
    def backend(self) -> CalendarBackend:
        if self._backend is None:
            self._backend = get_backend()
        return self._backend

    def resolve(self, zone_name: str, civil: CivilInstant) -> LocalResolution:
        _check_civil(civil)
        with self.backend.open(zone_name) as handle:
            probe = TransitionProbe(handle)
            curr = probe.probe(SysInstant.from_civil_bits(civil))
            try:
                resolution = self._classify(probe, curr, civil)
            except ValueError as exc:
                raise BackendError(
                    f"Non-adjacent periods reported for {zone_name!r}: {exc}"
                ) from exc
        logger.debug(
            "%s civil %s -> %s", zone_name, civil, resolution.category.name
        )
        return resolution

    @staticmethod
    def _classify(
        probe: TransitionProbe, curr: Transition, civil: CivilInstant
    ) -> LocalResolution:
        curr_sys = curr.to_sys(civil)

        if not curr.begin.is_min and curr_sys < curr.begin + ONE_DAY:
            neighbor = probe.probe(curr.begin - RESOLUTION)
            neighbor_sys = neighbor.to_sys(civil)
            boundary = curr.begin
            match curr_sys >= boundary, neighbor_sys >= boundary:
                case True, False:
                    return LocalResolution(LocalCategory.AMBIGUOUS, neighbor, curr)
                case True, True:
                    return LocalResolution(LocalCategory.UNIQUE, curr)
                case False, True:
                    return LocalResolution(LocalCategory.NONEXISTENT, neighbor, curr)
                case False, False:
                    return LocalResolution(LocalCategory.UNIQUE, neighbor)

        if not curr.end.is_max and curr_sys > curr.end - ONE_DAY:
            neighbor = probe.probe(curr.end + RESOLUTION)
            neighbor_sys = neighbor.to_sys(civil)
            boundary = curr.end
            match curr_sys < boundary, neighbor_sys < boundary:
                case True, False:
                    return LocalResolution(LocalCategory.AMBIGUOUS, curr, neighbor)
                case True, True:
                    return LocalResolution(LocalCategory.UNIQUE, curr)
                case False, True:
                    return LocalResolution(LocalCategory.NONEXISTENT, curr, neighbor)
                case False, False:
                    return LocalResolution(LocalCategory.UNIQUE, neighbor)

        return LocalResolution(LocalCategory.UNIQUE, curr)

    def to_sys(
        self, zone_name: str, civil: CivilInstant, choose: Choose = Choose.RAISE
    ) -> SysInstant:
        resolution = self.resolve(zone_name, civil)
        return choose_sys(resolution, zone_name, civil, choose)

    def to_local(self, zone_name: str, instant: SysInstant) -> CivilInstant:
        if not isinstance(instant, SysInstant):
            raise TypeError(f"Expected a SysInstant, got {type(instant).__name__}")
        with self.backend.open(zone_name) as handle:
            transition = TransitionProbe(handle).probe(instant)
        return transition.to_local(instant)


def choose_sys(
    resolution: LocalResolution,
    zone_name: str,
    civil: CivilInstant,
    choose: Choose = Choose.RAISE,
) -> SysInstant:
    """Pick the UTC instant for `civil` from its resolution under `choose`."""
    choose = Choose(choose)
    match resolution.category:
        case LocalCategory.UNIQUE:
            return resolution.first.to_sys(civil)
        case LocalCategory.AMBIGUOUS:
            if choose is Choose.RAISE:
                raise AmbiguousLocalTime(zone_name, civil, resolution)
            first, second = resolution.first, resolution.second
            if choose is Choose.LATEST and second is not None:
                return second.to_sys(civil)
            return first.to_sys(civil)
        case LocalCategory.NONEXISTENT:
            if choose is Choose.RAISE:
                raise NonexistentLocalTime(zone_name, civil, resolution)
            # Both choices land on the first instant after the gap
            return resolution.first.end
    raise ValueError(f"Unknown category: {resolution.category!r}")


def resolve_local_info(
    zone_name: str, civil: CivilInstant, backend: CalendarBackend | None = None
) -> LocalResolution:
    return LocalResolver(backend).resolve(zone_name, civil)


def to_sys(
    zone_name: str,
    civil: CivilInstant,
    choose: Choose = Choose.RAISE,
    backend: CalendarBackend | None = None,
) -> SysInstant:
    return LocalResolver(backend).to_sys(zone_name, civil, choose)


def to_local(
    zone_name: str, instant: SysInstant, backend: CalendarBackend | None = None
) -> CivilInstant:
    return LocalResolver(backend).to_local(zone_name, instant)
