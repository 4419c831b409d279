class TzdbError(Exception):
    """Base class for every error raised by tzresolve."""


class BackendUnavailable(TzdbError):
    """No calendar backend could be initialized for this process."""


class ZoneNotFound(TzdbError, KeyError):
    """The zone name does not resolve to any zone."""

    def __init__(self, zone_name: str, reason: str | None = None) -> None:
        self.zone_name = zone_name
        message = f"No time zone found with key {zone_name!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0])


class BackendError(TzdbError):
    """A backend call failed for a zone and instant."""


class _LocalTimeError(TzdbError, ValueError):
    kind = ""

    def __init__(self, zone_name: str, civil, resolution) -> None:
        self.zone_name = zone_name
        self.civil = civil
        self.resolution = resolution
        super().__init__(f"{civil} is {self.kind} in time zone {zone_name!r}")


class AmbiguousLocalTime(_LocalTimeError):
    """A civil time occurs twice in a zone (fall-back overlap)."""

    kind = "ambiguous"


class NonexistentLocalTime(_LocalTimeError):
    """A civil time is skipped in a zone (spring-forward gap)."""

    kind = "nonexistent"
