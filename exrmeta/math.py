"""Small vector and rounding utilities."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterator

from exrmeta.binio import InvalidDataError

_I32_MAX = 2**31 - 1


@dataclass(frozen=True)
class Vec2:
    """A two-dimensional vector, also used as a size (width, height)."""

    x: Any
    y: Any

    def __iter__(self) -> Iterator[Any]:
        yield self.x
        yield self.y

    def max(self, other: "Vec2") -> "Vec2":
        """Component-wise maximum."""
        return Vec2(max(self.x, other.x), max(self.y, other.y))

    def min(self, other: "Vec2") -> "Vec2":
        """Component-wise minimum."""
        return Vec2(min(self.x, other.x), min(self.y, other.y))

    def area(self) -> Any:
        """Width times height."""
        return self.x * self.y

    @property
    def width(self) -> Any:
        return self.x

    @property
    def height(self) -> Any:
        return self.y

    def flat_index_for_size(self, resolution: "Vec2") -> Any:
        """Index of this position in a row-major array of the given resolution."""
        if not (self.x < resolution.x and self.y < resolution.y):
            raise IndexError(f"{self} is invalid for resolution {resolution}")
        return self.y * resolution.x + self.x

    def to_usize(self, error_message: str) -> "Vec2":
        """Check that both components are non-negative."""
        if self.x < 0 or self.y < 0:
            raise InvalidDataError(error_message)
        return Vec2(int(self.x), int(self.y))

    def to_i32(self) -> "Vec2":
        """Check that both components fit into a signed 32-bit integer."""
        if self.x > _I32_MAX:
            raise OverflowError("vector x coordinate too large")
        if self.y > _I32_MAX:
            raise OverflowError("vector y coordinate too large")
        return Vec2(int(self.x), int(self.y))

    def __add__(self, other: "Vec2") -> "Vec2":
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vec2") -> "Vec2":
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, other: "Vec2") -> "Vec2":
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x * other.x, self.y * other.y)

    def __floordiv__(self, other: "Vec2") -> "Vec2":
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x // other.x, self.y // other.y)

    def __truediv__(self, other: "Vec2") -> "Vec2":
        if not isinstance(other, Vec2):
            return NotImplemented
        return Vec2(self.x / other.x, self.y / other.y)

    def __neg__(self) -> "Vec2":
        return Vec2(-self.x, -self.y)


def _check_unsigned(number: int) -> None:
    if number < 0:
        raise ValueError("number must not be negative")


def floor_log_2(number: int) -> int:
    """floor(log2(number)), or 0 for 0."""
    _check_unsigned(number)
    return max(number.bit_length() - 1, 0)


def ceil_log_2(number: int) -> int:
    """ceil(log2(number)), or 0 for 0."""
    _check_unsigned(number)
    if number <= 1:
        return 0
    return (number - 1).bit_length()


class RoundingMode(enum.Enum):
    """Whether to round down or up in level calculations."""

    DOWN = "down"
    UP = "up"

    def log2(self, number: int) -> int:
        if self is RoundingMode.DOWN:
            return floor_log_2(number)
        return ceil_log_2(number)

    def divide(self, dividend: int, divisor: int) -> int:
        """Integer division with this rounding; intended for positive numbers."""
        if self is RoundingMode.UP:
            return (dividend + divisor - 1) // divisor
        return dividend // divisor