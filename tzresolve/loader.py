import logging
import threading
from enum import Enum
from typing import Callable

from .backend import CalendarBackend
from .errors import BackendUnavailable
from .tzif import TzifBackend

logger = logging.getLogger(__name__)


class BackendState(Enum):
    UNINITIALIZED = 0
    INITIALIZING = 1
    READY = 2
    FAILED = 3


class BackendLoader:
    """
    Lazily builds one backend for the process. The first caller runs the
    factory; concurrent callers wait for it. Success and BackendUnavailable
    are both terminal until reset().
    """

    def __init__(self, factory: Callable[[], CalendarBackend]) -> None:
        self._factory = factory
        self._condition = threading.Condition()
        self._state = BackendState.UNINITIALIZED
        self._backend: CalendarBackend | None = None
        self._failure: BackendUnavailable | None = None

    @property
    def state(self) -> BackendState:
        return self._state

    def acquire(self) -> CalendarBackend:
        with self._condition:
            while self._state is BackendState.INITIALIZING:
                self._condition.wait()
            ready = self._backend
            if self._state is BackendState.READY and ready is not None:
                return ready
            if self._state is BackendState.FAILED:
                raise BackendUnavailable(str(self._failure)) from self._failure
            self._state = BackendState.INITIALIZING

        backend = None
        failure = None
        try:
            backend = self._factory()
        except BackendUnavailable as exc:
            failure = exc
        finally:
            with self._condition:
                if backend is not None:
                    self._backend = backend
                    self._state = BackendState.READY
                elif failure is not None:
                    self._failure = failure
                    self._state = BackendState.FAILED
                else:
                    # Unexpected error: let a later caller try again
                    self._state = BackendState.UNINITIALIZED
                self._condition.notify_all()

        if failure is not None:
            logger.warning("Calendar backend unavailable: %s", failure)
            raise failure
        logger.info("Calendar backend ready: %s", type(backend).__name__)
        return backend

    def reset(self) -> None:
        with self._condition:
            while self._state is BackendState.INITIALIZING:
                self._condition.wait()
            self._state = BackendState.UNINITIALIZED
            self._backend = None
            self._failure = None


_default_loader = BackendLoader(TzifBackend.discover)


def get_backend() -> CalendarBackend:
    return _default_loader.acquire()


def default_loader() -> BackendLoader:
    return _default_loader
