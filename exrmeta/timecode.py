"""SMPTE time codes and their packed TV60, TV50 and FILM24 encodings."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar

from exrmeta.binio import InvalidDataError, Primitive

_GROUP_COUNT = 8
_FLAG_COUNT = 3
_GROUP_MAX = 15


def _get_bit(value: int, index: int) -> bool:
    return bool((value >> index) & 1)


def _set_bit(value: int, index: int, flag: bool) -> int:
    if flag:
        return value | (1 << index)
    return value & ~(1 << index) & 0xFFFFFFFF


def _get_bits(value: int, start: int, end: int) -> int:
    return (value >> start) & ((1 << (end - start)) - 1)


def _set_bits(value: int, start: int, end: int, bits: int) -> int:
    mask = ((1 << (end - start)) - 1) << start
    if bits >> (end - start):
        raise ValueError(f"value {bits} does not fit into bits {start}..{end}")
    return (value & ~mask & 0xFFFFFFFF) | (bits << start)


def _to_decimal_code(binary: int) -> int:
    units = binary % 10
    tens = (binary // 10) % 10
    return units | (tens << 4)


def _from_decimal_code(coded: int) -> int:
    return ((coded & 0x0F) + 10 * ((coded >> 4) & 0x0F)) & 0xFF


def _user_data_bits(group_index: int) -> tuple[int, int]:
    start = 4 * group_index
    return start, start + 4


@dataclass(frozen=True)
class TimeCode:
    """Time information of a frame within a sequence."""

    BYTE_SIZE: ClassVar[int] = 2 * Primitive.U32.byte_size()

    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    frame: int = 0
    drop_frame: bool = False
    color_frame: bool = False
    field_phase: bool = False
    binary_group_flags: tuple = (False, False, False)
    binary_groups: tuple = (0,) * _GROUP_COUNT

    def __post_init__(self) -> None:
        flags = tuple(bool(flag) for flag in self.binary_group_flags)
        groups = tuple(int(group) for group in self.binary_groups)
        if len(flags) != _FLAG_COUNT:
            raise ValueError(f"time code needs {_FLAG_COUNT} binary group flags")
        if len(groups) != _GROUP_COUNT:
            raise ValueError(f"time code needs {_GROUP_COUNT} binary groups")
        object.__setattr__(self, "binary_group_flags", flags)
        object.__setattr__(self, "binary_groups", groups)

    def validate(self, strict: bool) -> None:
        """Raise InvalidDataError if strict and a field is out of range."""
        if not strict:
            return
        if self.frame > 29:
            raise InvalidDataError("time code frame larger than 29")
        if self.seconds > 59:
            raise InvalidDataError("time code seconds larger than 59")
        if self.minutes > 59:
            raise InvalidDataError("time code minutes larger than 59")
        if self.hours > 23:
            raise InvalidDataError("time code hours larger than 23")
        if any(group > _GROUP_MAX for group in self.binary_groups):
            raise InvalidDataError("time code binary group value too large for 3 bits")

    def pack_time_as_tv60_u32(self) -> int:
        """Pack the time and flags with TV60 packing, as stored in files."""
        self.validate(True)
        packed = 0
        packed = _set_bits(packed, 0, 6, _to_decimal_code(self.frame))
        packed = _set_bit(packed, 6, self.drop_frame)
        packed = _set_bit(packed, 7, self.color_frame)
        packed = _set_bits(packed, 8, 15, _to_decimal_code(self.seconds))
        packed = _set_bit(packed, 15, self.field_phase)
        packed = _set_bits(packed, 16, 23, _to_decimal_code(self.minutes))
        packed = _set_bit(packed, 23, self.binary_group_flags[0])
        packed = _set_bits(packed, 24, 30, _to_decimal_code(self.hours))
        packed = _set_bit(packed, 30, self.binary_group_flags[1])
        packed = _set_bit(packed, 31, self.binary_group_flags[2])
        return packed

    @staticmethod
    def from_tv60_time(tv60_time: int, user_data: int) -> "TimeCode":
        """Unpack a TV60 packed time and the packed user data."""
        return TimeCode(
            hours=_from_decimal_code(_get_bits(tv60_time, 24, 30)),
            minutes=_from_decimal_code(_get_bits(tv60_time, 16, 23)),
            seconds=_from_decimal_code(_get_bits(tv60_time, 8, 15)),
            frame=_from_decimal_code(_get_bits(tv60_time, 0, 6)),
            drop_frame=_get_bit(tv60_time, 6),
            color_frame=_get_bit(tv60_time, 7),
            field_phase=_get_bit(tv60_time, 15),
            binary_group_flags=(
                _get_bit(tv60_time, 23),
                _get_bit(tv60_time, 30),
                _get_bit(tv60_time, 31),
            ),
            binary_groups=TimeCode._unpack_user_data(user_data),
        )

    def pack_time_as_tv50_u32(self) -> int:
        """Pack with TV50 packing; the drop frame flag is lost."""
        packed = self.pack_time_as_tv60_u32()
        packed = _set_bit(packed, 6, False)
        packed = _set_bit(packed, 15, self.binary_group_flags[0])
        packed = _set_bit(packed, 30, self.binary_group_flags[1])
        packed = _set_bit(packed, 23, self.binary_group_flags[2])
        packed = _set_bit(packed, 31, self.field_phase)
        return packed

    @staticmethod
    def from_tv50_time(tv50_time: int, user_data: int) -> "TimeCode":
        """Unpack a TV50 packed time; drop frame is always false."""
        return dataclasses.replace(
            TimeCode.from_tv60_time(tv50_time, user_data),
            drop_frame=False,
            field_phase=_get_bit(tv50_time, 31),
            binary_group_flags=(
                _get_bit(tv50_time, 15),
                _get_bit(tv50_time, 30),
                _get_bit(tv50_time, 23),
            ),
        )

    def pack_time_as_film24_u32(self) -> int:
        """Pack with FILM24 packing; drop frame and color frame are lost."""
        packed = self.pack_time_as_tv60_u32()
        packed = _set_bit(packed, 6, False)
        return _set_bit(packed, 7, False)

    @staticmethod
    def from_film24_time(film24_time: int, user_data: int) -> "TimeCode":
        """Unpack a FILM24 packed time; drop and color frame are always false."""
        return dataclasses.replace(
            TimeCode.from_tv60_time(film24_time, user_data),
            drop_frame=False,
            color_frame=False,
        )

    def pack_user_data_as_u32(self) -> int:
        """Pack the binary groups into one integer, clamping each to 15."""
        packed = 0
        for index, group in enumerate(self.binary_groups):
            start, end = _user_data_bits(index)
            packed = _set_bits(packed, start, end, min(group, _GROUP_MAX))
        return packed

    @staticmethod
    def _unpack_user_data(user_data: int) -> tuple:
        return tuple(
            _get_bits(user_data, *_user_data_bits(index)) for index in range(_GROUP_COUNT)
        )

    def write(self, stream: Any) -> None:
        """Write as TV60 packed time followed by the user data."""
        Primitive.U32.write(stream, self.pack_time_as_tv60_u32())
        Primitive.U32.write(stream, self.pack_user_data_as_u32())

    @staticmethod
    def read(stream: Any) -> "TimeCode":
        """Read a TV60 packed time code without validating it."""
        time_and_flags = Primitive.U32.read(stream)
        user_data = Primitive.U32.read(stream)
        return TimeCode.from_tv60_time(time_and_flags, user_data)