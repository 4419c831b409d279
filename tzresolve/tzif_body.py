import struct
from typing import IO

from .models import LeapSecondTransition, TimeTypeInfo
from .tzif_header import TimeZoneInfoHeader, read_exact


class TimeZoneInfoBody:
    """
    The data block of a TZif file, with transition times kept as Unix seconds.
    """

    def __init__(
        self,
        transition_times: list[int],
        leap_second_transitions: list[LeapSecondTransition],
        time_type_infos: list[TimeTypeInfo],
        time_type_indices: list[int],
        timezone_abbrevs: str,
        wall_standard_flags: list[int],
        is_utc_flags: list[int],
        leap_second_expiration: int | None = None,
    ) -> None:
        if len(transition_times) != len(time_type_indices):
            raise ValueError("Each transition needs exactly one time type index.")
        for index in time_type_indices:
            if index >= len(time_type_infos):
                raise ValueError(f"Time type index {index} out of range.")
        self.transition_times = transition_times
        self.leap_second_transitions = leap_second_transitions
        self.time_type_infos = time_type_infos
        self.time_type_indices = time_type_indices
        self._timezone_abbrevs = timezone_abbrevs
        self.wall_standard_flags = wall_standard_flags
        self.is_utc_flags = is_utc_flags
        self.leap_second_expiration = leap_second_expiration

    @property
    def timezone_abbrevs(self) -> list[str]:
        seen: list[str] = []
        for ttinfo in self.time_type_infos:
            abbr = self.get_abbrev_by_index(ttinfo.abbrev_index)
            if abbr not in seen:
                seen.append(abbr)
        return seen

    def get_abbrev_by_index(self, index: int) -> str:
        if index < 0 or index >= len(self._timezone_abbrevs):
            raise IndexError("Index out of range")
        return self._timezone_abbrevs[index:].partition("\x00")[0]

    def time_type_at(self, transition_index: int) -> TimeTypeInfo:
        return self.time_type_infos[self.time_type_indices[transition_index]]

    @classmethod
    def read(
        cls, file: IO[bytes], header_data: TimeZoneInfoHeader, version=1
    ) -> "TimeZoneInfoBody":
        transition_times = cls._read_transition_times(
            file, header_data.transitions_count, version
        )
        time_type_indices = cls._read_time_type_indices(
            file, header_data.transitions_count
        )
        time_type_infos = cls._read_ttinfo_structures(
            file, header_data.local_time_type_count
        )
        timezone_abbrevs = cls._read_tz_designations(
            file, header_data.timezone_abbrev_byte_count
        )
        (
            leap_second_transitions,
            leap_second_expiration,
        ) = cls._read_leap_seconds(
            file, header_data.leap_second_transitions_count, version
        )
        wall_standard_flags = cls._read_indicators(
            file, header_data.wall_standard_flag_count
        )
        is_utc_flags = cls._read_indicators(file, header_data.is_utc_flag_count)

        return TimeZoneInfoBody(
            transition_times,
            leap_second_transitions,
            time_type_infos,
            time_type_indices,
            timezone_abbrevs,
            wall_standard_flags,
            is_utc_flags,
            leap_second_expiration=leap_second_expiration,
        )

    @classmethod
    def _read_transition_times(
        cls, file: IO[bytes], timecnt: int, version: int
    ) -> list[int]:
        fmt = f">{timecnt}q" if version >= 2 else f">{timecnt}i"
        times = list(struct.unpack(fmt, read_exact(file, struct.calcsize(fmt))))
        if any(later < earlier for earlier, later in zip(times, times[1:])):
            raise ValueError("Invalid TZif file: transition times are not sorted.")
        return times

    @classmethod
    def _read_time_type_indices(cls, file: IO[bytes], timecnt: int) -> list[int]:
        return list(read_exact(file, timecnt))

    @classmethod
    def _read_ttinfo_structures(
        cls, file: IO[bytes], typecnt: int
    ) -> list[TimeTypeInfo]:
        # 4-byte signed offset, 1-byte DST flag, 1-byte abbreviation index
        ttinfo_format = ">i?B"
        ttinfo_size = struct.calcsize(ttinfo_format)
        return [
            TimeTypeInfo(*struct.unpack(ttinfo_format, read_exact(file, ttinfo_size)))
            for _ in range(typecnt)
        ]

    @classmethod
    def _read_tz_designations(cls, file: IO[bytes], charcnt: int) -> str:
        return read_exact(file, charcnt).decode("ascii")

    @classmethod
    def _read_leap_seconds(
        cls, file: IO[bytes], count: int, version: int
    ) -> tuple[list[LeapSecondTransition], int | None]:
        if count == 0:
            return [], None

        fmt = ">qi" if version >= 2 else ">ii"
        size = struct.calcsize(fmt)
        leaps = [
            LeapSecondTransition(*struct.unpack(fmt, read_exact(file, size)))
            for _ in range(count)
        ]

        # Version 4 marks the table's expiry by repeating the last correction
        expiration: int | None = None
        if version >= 4 and len(leaps) >= 2:
            last, previous = leaps[-1], leaps[-2]
            if last.correction == previous.correction:
                last.is_expiration = True
                expiration = last.transition_time

        return leaps, expiration

    @classmethod
    def _read_indicators(cls, file: IO[bytes], count: int) -> list[int]:
        return list(read_exact(file, count))

    def __repr__(self) -> str:
        return (
            f"TimeZoneInfoBody(transition_times={self.transition_times!r}, "
            f"leap_second_transitions={self.leap_second_transitions!r}, "
            f"leap_second_expiration={self.leap_second_expiration!r}, "
            f"time_type_infos={self.time_type_infos!r}, "
            f"time_type_indices={self.time_type_indices!r}, "
            f"timezone_abbrevs={self._timezone_abbrevs!r}, "
            f"wall_standard_flags={self.wall_standard_flags!r}, "
            f"is_utc_flags={self.is_utc_flags!r})"
        )
