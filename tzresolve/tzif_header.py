import struct
from dataclasses import dataclass
from typing import IO

_HEADER_FORMAT = ">4s1c15x6I"  # magic, version, 15 reserved bytes, six counts
HEADER_SIZE = struct.calcsize(_HEADER_FORMAT)


def read_exact(file: IO[bytes], size: int) -> bytes:
    data = file.read(size)
    if len(data) != size:
        raise ValueError(
            f"Truncated TZif data: expected {size} bytes, got {len(data)}."
        )
    return data


@dataclass
class TimeZoneInfoHeader:
    version: int
    is_utc_flag_count: int
    wall_standard_flag_count: int
    leap_second_transitions_count: int
    transitions_count: int
    local_time_type_count: int
    timezone_abbrev_byte_count: int

    def data_block_size(self, version: int) -> int:
        """Byte length of the data block following this header."""
        time_size = 8 if version >= 2 else 4
        return (
            self.transitions_count * (time_size + 1)
            + self.local_time_type_count * 6
            + self.timezone_abbrev_byte_count
            + self.leap_second_transitions_count * (time_size + 4)
            + self.wall_standard_flag_count
            + self.is_utc_flag_count
        )

    @classmethod
    def read(cls, file: IO[bytes]) -> "TimeZoneInfoHeader":
        (
            magic,
            version_byte,
            is_utc_flag_count,
            wall_standard_flag_count,
            leap_second_count,
            transitions_count,
            local_time_type_count,
            timezone_abbrev_byte_count,
        ) = struct.unpack(_HEADER_FORMAT, read_exact(file, HEADER_SIZE))

        if magic != b"TZif":
            raise ValueError("Invalid TZif file: Magic sequence not found.")

        if version_byte == b"\x00":
            version = 1
        elif version_byte in (b"2", b"3", b"4"):
            version = int(version_byte.decode("ascii"))
        else:
            raise ValueError(f"Unsupported TZif version: {version_byte!r}")

        return cls(
            version,
            is_utc_flag_count,
            wall_standard_flag_count,
            leap_second_count,
            transitions_count,
            local_time_type_count,
            timezone_abbrev_byte_count,
        )
