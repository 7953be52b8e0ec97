"""Rectangles, sample types and channel descriptions of an image layer."""

from __future__ import annotations

import bisect
import enum
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from exrmeta.binio import InvalidDataError, PeekReader, Primitive, UnsupportedError
from exrmeta.math import Vec2
from exrmeta.text import (
    SEQUENCE_END_BYTE_SIZE,
    Text,
    sequence_end_has_come,
    write_sequence_end,
)

_MAX_BOX_SIZE = (2**31 - 1) // 2
_MAX_CHANNEL_NAME_LENGTH = 256


def _vec(value: Vec2 | tuple) -> Vec2:
    return value if isinstance(value, Vec2) else Vec2(*value)


def _validate_min_max(min_x: int, min_y: int, max_x: int, max_y: int) -> None:
    if (
        max_x >= _MAX_BOX_SIZE
        or max_y >= _MAX_BOX_SIZE
        or min_x <= -_MAX_BOX_SIZE
        or min_y <= -_MAX_BOX_SIZE
    ):
        raise InvalidDataError("window size exceeding integer maximum")


@dataclass(frozen=True)
class IntegerBounds:
    """A rectangle in 2D integer space: top-left position and size."""

    position: Vec2 = Vec2(0, 0)
    size: Vec2 = Vec2(0, 0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _vec(self.position))
        object.__setattr__(self, "size", _vec(self.size))

    @staticmethod
    def zero() -> "IntegerBounds":
        """An empty rectangle at the origin."""
        return IntegerBounds.from_dimensions(Vec2(0, 0))

    @staticmethod
    def from_dimensions(size: Vec2 | tuple) -> "IntegerBounds":
        """A rectangle of the given size at the origin."""
        return IntegerBounds(Vec2(0, 0), _vec(size))

    def end(self) -> Vec2:
        """The first coordinate past the rectangle in both directions."""
        return self.position + self.size.to_i32()

    def max(self) -> Vec2:
        """The largest coordinate inside the rectangle."""
        return self.end() - Vec2(1, 1)

    def validate(self, max_size: Vec2 | tuple | None = None) -> None:
        """Raise InvalidDataError if the rectangle is too large."""
        if max_size is not None:
            max_size = _vec(max_size)
            if self.size.width > max_size.width or self.size.height > max_size.height:
                raise InvalidDataError("window attribute dimension value")

        _validate_min_max(
            self.position.x,
            self.position.y,
            self.position.x + self.size.width,
            self.position.y + self.size.height,
        )

    @staticmethod
    def byte_size() -> int:
        """Bytes occupied in a file."""
        return 4 * Primitive.I32.byte_size()

    def write(self, stream: Any) -> None:
        """Write as inclusive minimum and maximum coordinates."""
        maximum = self.max()
        Primitive.I32.write_many(
            stream, (self.position.x, self.position.y, maximum.x, maximum.y)
        )

    @staticmethod
    def read(stream: Any) -> "IntegerBounds":
        """Read inclusive minimum and maximum coordinates."""
        x_min, y_min, x_max, y_max = (Primitive.I32.read(stream) for _ in range(4))
        low = Vec2(min(x_min, x_max), min(y_min, y_max))
        high = Vec2(max(x_min, x_max), max(y_min, y_max))
        _validate_min_max(low.x, low.y, high.x, high.y)
        size = Vec2(high.x + 1 - low.x, high.y + 1 - low.y).to_usize("box coordinates")
        return IntegerBounds(low, size)

    def with_origin(self, origin: Vec2 | tuple) -> "IntegerBounds":
        """This rectangle moved by `origin`."""
        return IntegerBounds(self.position + _vec(origin), self.size)

    def contains(self, subset: "IntegerBounds") -> bool:
        """Whether `subset` lies entirely inside this rectangle."""
        own_end, other_end = self.end(), subset.end()
        return (
            subset.position.x >= self.position.x
            and subset.position.y >= self.position.y
            and other_end.x <= own_end.x
            and other_end.y <= own_end.y
        )


@dataclass(frozen=True)
class FloatRect:
    """A rectangle in 2D float space with inclusive corners."""

    min: Vec2
    max: Vec2

    @staticmethod
    def byte_size() -> int:
        """Bytes occupied in a file."""
        return 4 * Primitive.F32.byte_size()

    def write(self, stream: Any) -> None:
        Primitive.F32.write_many(stream, (self.min.x, self.min.y, self.max.x, self.max.y))

    @staticmethod
    def read(stream: Any) -> "FloatRect":
        x_min, y_min, x_max, y_max = (Primitive.F32.read(stream) for _ in range(4))
        return FloatRect(Vec2(x_min, y_min), Vec2(x_max, y_max))


class SampleType(enum.Enum):
    """The number type of the samples in a channel."""

    U32 = 0
    F16 = 1
    F32 = 2

    def bytes_per_sample(self) -> int:
        """Bytes one sample of this type occupies."""
        if self is SampleType.F16:
            return Primitive.F16.byte_size()
        if self is SampleType.F32:
            return Primitive.F32.byte_size()
        return Primitive.U32.byte_size()

    @staticmethod
    def byte_size() -> int:
        """Bytes occupied in a file."""
        return Primitive.I32.byte_size()

    def write(self, stream: Any) -> None:
        Primitive.I32.write(stream, self.value)

    @staticmethod
    def read(stream: Any) -> "SampleType":
        code = Primitive.I32.read(stream)
        try:
            return SampleType(code)
        except ValueError:
            raise InvalidDataError("pixel type attribute value") from None


_NON_LINEAR_NAMES = ("R", "G", "B", "L", "Y", "X", "Z")


@dataclass(frozen=True)
class ChannelDescription:
    """Describes one channel of a layer, without its pixel data."""

    name: Text
    sample_type: SampleType
    quantize_linearly: bool
    sampling: Vec2 = Vec2(1, 1)

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", Text(self.name))
        object.__setattr__(self, "sampling", _vec(self.sampling))

    @staticmethod
    def guess_quantization_linearity(name: Text | str) -> bool:
        """Whether a channel of this name should be quantized linearly."""
        name = Text(name)
        return not any(name.eq_case_insensitive(other) for other in _NON_LINEAR_NAMES)

    @staticmethod
    def named(name: Text | str, sample_type: SampleType) -> "ChannelDescription":
        """A channel with sampling (1, 1) and linearity guessed from the name."""
        name = Text(name)
        return ChannelDescription(
            name, sample_type, ChannelDescription.guess_quantization_linearity(name)
        )

    def subsampled_pixels(self, dimensions: Vec2 | tuple) -> int:
        """Sample count of this channel for a layer of the given size."""
        return self.subsampled_resolution(dimensions).area()

    def subsampled_resolution(self, dimensions: Vec2 | tuple) -> Vec2:
        """Resolution of this channel for a layer of the given size."""
        return _vec(dimensions) // self.sampling

    def byte_size(self) -> int:
        """Bytes occupied in a file."""
        return (
            self.name.null_terminated_byte_size()
            + SampleType.byte_size()
            + 1
            + 3
            + 2 * Primitive.U32.byte_size()
        )

    def write(self, stream: Any) -> None:
        self.name.write_null_terminated(stream)
        self.sample_type.write(stream)
        Primitive.U8.write(stream, 1 if self.quantize_linearly else 0)
        Primitive.I8.write_many(stream, (0, 0, 0))
        Primitive.I32.write_many(stream, (self.sampling.x, self.sampling.y))

    @staticmethod
    def read(stream: Any) -> "ChannelDescription":
        name = Text.read_null_terminated(stream, _MAX_CHANNEL_NAME_LENGTH)
        sample_type = SampleType.read(stream)

        linear_flag = Primitive.U8.read(stream)
        if linear_flag not in (0, 1):
            raise InvalidDataError("channel linearity attribute value")

        Primitive.I8.read_many(stream, 3, 3)

        x_sampling = Primitive.I32.read(stream)
        if x_sampling < 0:
            raise InvalidDataError("x channel sampling")
        y_sampling = Primitive.I32.read(stream)
        if y_sampling < 0:
            raise InvalidDataError("y channel sampling")

        return ChannelDescription(
            name, sample_type, linear_flag == 1, Vec2(x_sampling, y_sampling)
        )

    def validate(self, allow_sampling: bool, data_window: IntegerBounds, strict: bool) -> None:
        """Raise if this channel cannot be stored in the given data window."""
        self.name.validate(True)

        if self.sampling.x == 0 or self.sampling.y == 0:
            raise InvalidDataError("zero sampling factor")

        if strict and not allow_sampling and self.sampling != Vec2(1, 1):
            raise InvalidDataError("subsampling is only allowed in flat scan line images")

        if (
            data_window.position.x % self.sampling.x != 0
            or data_window.position.y % self.sampling.y != 0
        ):
            raise InvalidDataError("channel sampling factor not dividing data window position")

        if data_window.size.x % self.sampling.x != 0 or data_window.size.y % self.sampling.y != 0:
            raise InvalidDataError("channel sampling factor not dividing data window size")

        if self.sampling != Vec2(1, 1):
            raise UnsupportedError("channel subsampling not supported yet")


@dataclass(init=False, frozen=True)
class ChannelList:
    """The channels of a layer, expected to be sorted by name."""

    list: tuple = field(default=())
    bytes_per_pixel: int = 0
    uniform_sample_type: SampleType | None = None

    def __init__(self, channels: Iterable[ChannelDescription]) -> None:
        channels = tuple(channels)
        types = {channel.sample_type for channel in channels}
        object.__setattr__(self, "list", channels)
        object.__setattr__(
            self,
            "bytes_per_pixel",
            sum(channel.sample_type.bytes_per_sample() for channel in channels),
        )
        object.__setattr__(
            self, "uniform_sample_type", channels[0].sample_type if len(types) == 1 else None
        )

    def __iter__(self) -> Iterator[ChannelDescription]:
        return iter(self.list)

    def __len__(self) -> int:
        return len(self.list)

    def channels_with_byte_offset(self) -> Iterator[tuple[int, ChannelDescription]]:
        """Yield each channel with the byte offset of its sample within a pixel."""
        offset = 0
        for channel in self.list:
            yield offset, channel
            offset += channel.sample_type.bytes_per_sample()

    def find_index_of_channel(self, exact_name: Text | str) -> int | None:
        """Index of the channel with exactly this name, or None."""
        wanted = Text(exact_name).bytes()
        index = bisect.bisect_left(self.list, wanted, key=lambda channel: channel.name.bytes())
        if index < len(self.list) and self.list[index].name.bytes() == wanted:
            return index
        return None

    def byte_size(self) -> int:
        """Bytes occupied in a file."""
        return sum(channel.byte_size() for channel in self.list) + SEQUENCE_END_BYTE_SIZE

    def write(self, stream: Any) -> None:
        for channel in self.list:
            channel.write(stream)
        write_sequence_end(stream)

    @staticmethod
    def read(reader: PeekReader) -> "ChannelList":
        channels = []
        while not sequence_end_has_come(reader):
            channels.append(ChannelDescription.read(reader))
        return ChannelList(channels)

    def validate(self, allow_sampling: bool, data_window: IntegerBounds, strict: bool) -> None:
        """Raise if a channel is invalid or the names are not sorted."""
        if not self.list:
            raise InvalidDataError("at least one channel is required")

        previous = None
        for channel in self.list:
            channel.validate(allow_sampling, data_window, strict)
            if previous is not None:
                if strict and previous == channel.name:
                    raise InvalidDataError("channel names are not unique")
                if previous > channel.name:
                    raise InvalidDataError("channel names are not sorted alphabetically")
            previous = channel.name