import os
import sysconfig
from dataclasses import dataclass
from typing import Mapping

# Fallback paths align with CPython's defaults
DEFAULT_TZPATH = (
    "/usr/share/zoneinfo",
    "/usr/share/lib/zoneinfo",
    "/etc/zoneinfo",
)


@dataclass(frozen=True)
class TzConfig:
    """
    Where zone data comes from and how much of it is kept in memory.
    """

    tzdir: str | None = None
    tzpath: tuple[str, ...] = DEFAULT_TZPATH
    tz: str | None = None
    localtime_path: str = "/etc/localtime"
    use_tzdata_package: bool = True
    cache_size: int = 64

    @property
    def search_paths(self) -> tuple[str, ...]:
        paths: list[str] = []
        if self.tzdir:
            paths.append(os.path.realpath(self.tzdir))
        paths.extend(self.tzpath)
        return tuple(paths)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "TzConfig":
        env = os.environ if environ is None else environ
        return cls(
            tzdir=env.get("TZDIR") or None,
            tzpath=cls._compute_default_tzpath(env),
            tz=env.get("TZ") or None,
        )

    @staticmethod
    def _compute_default_tzpath(env: Mapping[str, str]) -> tuple[str, ...]:
        env_var = env.get("PYTHONTZPATH") or sysconfig.get_config_var("TZPATH")
        if env_var:
            return tuple(path for path in env_var.split(os.pathsep) if path)
        return DEFAULT_TZPATH
