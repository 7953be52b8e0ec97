"""Little-endian binary primitives and stream helpers."""

from __future__ import annotations

import contextlib
import enum
import os
import struct
from typing import Any, BinaryIO, Callable, Iterable, TypeVar

_T = TypeVar("_T")

_I32_MAX = 2**31 - 1
_ZERO_CHUNK = 64 * 1024


class ExrError(Exception):
    """Base class of all errors raised by this package."""


class InvalidDataError(ExrError):
    """The data does not form a valid value."""


class UnsupportedError(ExrError):
    """The data is valid, but uses a feature that is not supported."""


def _read_exact(stream: Any, count: int) -> bytes:
    """Read exactly `count` bytes, raising EOFError if the stream ends early."""
    chunks = []
    remaining = count
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            raise EOFError(f"expected {count} bytes, found only {count - remaining}")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


class Primitive(enum.Enum):
    """A little-endian number type as stored in an image file."""

    U8 = "B"
    I8 = "b"
    I16 = "h"
    U16 = "H"
    U32 = "I"
    I32 = "i"
    I64 = "q"
    U64 = "Q"
    F16 = "e"
    F32 = "f"
    F64 = "d"

    def byte_size(self) -> int:
        """Number of bytes one value occupies."""
        return struct.calcsize("<" + self.value)

    def _pack(self, count: int, values: Iterable[Any]) -> bytes:
        try:
            return struct.pack(f"<{count}{self.value}", *values)
        except struct.error as error:
            raise ValueError(f"value out of range for {self.name}: {error}") from error

    def read(self, stream: Any) -> Any:
        """Read a single value."""
        (value,) = struct.unpack("<" + self.value, _read_exact(stream, self.byte_size()))
        return value

    def write(self, stream: Any, value: Any) -> None:
        """Write a single value."""
        stream.write(self._pack(1, (value,)))

    def read_many(
        self,
        stream: Any,
        count: int,
        soft_max: int,
        hard_max: int | None = None,
        purpose: str = "value count",
    ) -> list:
        """Read `count` values, never buffering more than `soft_max` at once.

        Raises InvalidDataError if `count` exceeds `hard_max`.
        """
        if count < 0 or (hard_max is not None and count > hard_max):
            raise InvalidDataError(purpose)

        chunk_limit = soft_max if hard_max is None else min(soft_max, hard_max)
        chunk_limit = max(chunk_limit, 1)
        size = self.byte_size()

        values: list = []
        while len(values) < count:
            chunk = min(chunk_limit, count - len(values))
            data = _read_exact(stream, chunk * size)
            values.extend(struct.unpack(f"<{chunk}{self.value}", data))
        return values

    def write_many(self, stream: Any, values: Iterable[Any]) -> None:
        """Write all values one after another."""
        values = list(values)
        stream.write(self._pack(len(values), values))

    def read_i32_sized(
        self,
        stream: Any,
        soft_max: int,
        hard_max: int | None = None,
        purpose: str = "value count",
    ) -> list:
        """Read an i32 element count, then that many values."""
        size = Primitive.I32.read(stream)
        if size < 0:
            raise InvalidDataError(purpose)
        return self.read_many(stream, size, soft_max, hard_max, purpose)

    def write_i32_sized(self, stream: Any, values: Iterable[Any]) -> None:
        """Write the element count as i32, then all values."""
        values = list(values)
        if len(values) > _I32_MAX:
            raise InvalidDataError("sequence too long for i32 size")
        Primitive.I32.write(stream, len(values))
        self.write_many(stream, values)


def skip_bytes(stream: Any, count: int) -> None:
    """Consume `count` bytes, raising EOFError if the stream holds fewer."""
    if count < 0:
        raise ValueError("cannot skip a negative number of bytes")
    remaining = count
    while remaining > 0:
        chunk = stream.read(min(remaining, _ZERO_CHUNK))
        if not chunk:
            raise EOFError("cannot skip more bytes than exist")
        remaining -= len(chunk)


class LateFile:
    """A writable file that is only created on the first write or seek."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = path
        self._file: BinaryIO | None = None

    def _opened(self) -> BinaryIO:
        if self._file is None:
            self._file = open(self.path, "wb")
        return self._file

    def write(self, data: bytes) -> int:
        """Write bytes, creating the file if necessary."""
        written = self._opened().write(data)
        return len(data) if written is None else written

    def flush(self) -> None:
        """Flush the file if it has been created."""
        if self._file is not None:
            self._file.flush()

    def seek(self, position: int) -> int:
        """Move to an absolute byte position, creating the file if necessary."""
        return self._opened().seek(position)

    def close(self) -> None:
        """Close the file if it has been created."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "LateFile":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def attempt_delete_file_on_write_error(
    path: str | os.PathLike, write: Callable[[LateFile], _T]
) -> _T:
    """Call `write` with a lazily created file; delete the file if it raises."""
    late_file = LateFile(path)
    try:
        result = write(late_file)
    except BaseException:
        late_file.close()
        with contextlib.suppress(OSError):
            os.remove(path)
        raise
    late_file.close()
    return result


class TrackingStream:
    """Wrap a stream and count the bytes read or written through it."""

    def __init__(self, inner: Any) -> None:
        self._inner = inner
        self._position = 0

    def read(self, size: int = -1) -> bytes:
        data = self._inner.read(size)
        self._position += len(data)
        return data

    def write(self, data: bytes) -> int:
        written = self._inner.write(data)
        count = len(data) if written is None else written
        self._position += count
        return count

    def flush(self) -> None:
        self._inner.flush()

    def byte_position(self) -> int:
        """Number of bytes read or written so far."""
        return self._position

    def seek_read_to(self, target_position: int) -> None:
        """Move the read cursor; small forward jumps are read and discarded."""
        delta = target_position - self._position
        if 0 < delta < 16:
            skip_bytes(self._inner, delta)
            self._position += delta
        elif delta != 0:
            self._inner.seek(target_position)
            self._position = target_position

    def seek_write_to(self, target_position: int) -> None:
        """Move the write cursor; moving forward writes zeroes."""
        if target_position < self._position:
            self._inner.seek(target_position)
        elif target_position > self._position:
            remaining = target_position - self._position
            while remaining > 0:
                chunk = min(remaining, _ZERO_CHUNK)
                self._inner.write(bytes(chunk))
                remaining -= chunk
        self._position = target_position


class PeekReader:
    """Wrap a stream so that a single byte can be inspected before reading it."""

    def __init__(self, inner: Any) -> None:
        self._inner = inner
        self._peeked: int | BaseException | None = None

    def peek_u8(self) -> int:
        """Return the next byte without consuming it.

        A failure while peeking is remembered and raised again until consumed.
        """
        if self._peeked is None:
            try:
                self._peeked = Primitive.U8.read(self._inner)
            except (EOFError, OSError) as error:
                self._peeked = error
        if isinstance(self._peeked, BaseException):
            raise self._peeked
        return self._peeked

    def skip_if_eq(self, value: int) -> bool:
        """Consume the next byte if it equals `value`; return whether it did."""
        try:
            peeked = self.peek_u8()
        except BaseException:
            self._peeked = None
            raise
        if peeked == value:
            self._peeked = None
            return True
        return False

    def read(self, size: int = -1) -> bytes:
        if size == 0:
            return b""
        peeked, self._peeked = self._peeked, None
        if peeked is None:
            return self._inner.read(size)
        if isinstance(peeked, BaseException):
            raise peeked
        rest = self._inner.read(size - 1 if size > 0 else -1)
        return bytes([peeked]) + rest

    def skip_to(self, position: int) -> None:
        """Seek the wrapped tracking stream, discarding any peeked byte."""
        self._inner.seek_read_to(position)
        self._peeked = None

    def byte_position(self) -> int:
        """Bytes consumed from the wrapped tracking stream."""
        return self._inner.byte_position()