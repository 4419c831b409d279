from datetime import datetime, timezone

from .backend import CalendarBackend
from .instants import CivilInstant, SysInstant
from .loader import get_backend
from .models import Choose, LocalResolution, Transition
from .probe import probe_sys_info
from .resolver import LocalResolver


class TimeZone:
    """
    A zone name bound to a backend.
    """

    def __init__(self, name: str, backend: CalendarBackend | None = None) -> None:
        self.backend = backend or get_backend()
        # Fail early on unknown names
        self.backend.open(name).close()
        self.name = name
        self._resolver = LocalResolver(self.backend)

    def get_info(self, instant: SysInstant | datetime) -> Transition:
        if isinstance(instant, datetime):
            if instant.tzinfo is None:
                # Naive datetimes are taken as UTC here
                instant = instant.replace(tzinfo=timezone.utc)
            instant = SysInstant.from_datetime(instant)
        return probe_sys_info(self.name, instant, self.backend)

    def get_local_info(self, civil: CivilInstant | datetime) -> LocalResolution:
        return self._resolver.resolve(self.name, self._civil(civil))

    def to_sys(
        self, civil: CivilInstant | datetime, choose: Choose = Choose.RAISE
    ) -> SysInstant:
        return self._resolver.to_sys(self.name, self._civil(civil), choose)

    def to_local(self, instant: SysInstant) -> CivilInstant:
        return self._resolver.to_local(self.name, instant)

    @staticmethod
    def _civil(civil: CivilInstant | datetime) -> CivilInstant:
        if isinstance(civil, datetime):
            return CivilInstant.from_datetime(civil)
        return civil

    def __eq__(self, other) -> bool:
        if not isinstance(other, TimeZone):
            return NotImplemented
        return self.name == other.name and self.backend is other.backend

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"TimeZone(name={self.name!r})"
