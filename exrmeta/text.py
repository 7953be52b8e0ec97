"""Byte strings as stored in image file headers, and the sequence terminator."""

from __future__ import annotations

import functools
from typing import Any, Iterable

from exrmeta.binio import InvalidDataError, PeekReader, Primitive

SEQUENCE_END_BYTE_SIZE = 1
_MAX_NAME_LENGTH = 255
_LONG_NAME_LENGTH = 32


@functools.total_ordering
class Text:
    """A sequence of bytes where each byte is one character (latin-1)."""

    __slots__ = ("_bytes",)

    def __init__(self, value: str | bytes | bytearray | memoryview | "Text") -> None:
        if isinstance(value, Text):
            data = value._bytes
        elif isinstance(value, str):
            try:
                data = value.encode("latin-1")
            except UnicodeEncodeError as error:
                raise ValueError(f"text contains unsupported characters: {value!r}") from error
        elif isinstance(value, (bytes, bytearray, memoryview)):
            data = bytes(value)
        else:
            raise TypeError(f"cannot create text from {type(value).__name__}")
        self._bytes = data

    @staticmethod
    def new_or_none(string: str) -> "Text | None":
        """Create a text from a string, or return None if a character does not fit a byte."""
        try:
            return Text(string)
        except ValueError:
            return None

    @staticmethod
    def from_bytes(data: bytes | bytearray | memoryview) -> "Text":
        """Create a text from raw bytes without checking them."""
        return Text(bytes(data))

    def bytes(self) -> "bytes":
        """The raw bytes of this text."""
        return self._bytes

    def validate(self, null_terminated: bool, check_length: bool = False) -> bool:
        """Check this text; return whether it needs the long-names flag."""
        return Text.validate_bytes(self._bytes, null_terminated, check_length)

    @staticmethod
    def validate_bytes(data: bytes, null_terminated: bool, check_length: bool = False) -> bool:
        """Check some bytes; return whether they need the long-names flag.

        Length limits are only enforced when `check_length` is set.
        """
        if null_terminated and not data:
            raise InvalidDataError("text must not be empty")
        if not check_length:
            return False
        if len(data) > _MAX_NAME_LENGTH:
            raise InvalidDataError("text must not be longer than 255")
        return len(data) >= _LONG_NAME_LENGTH

    def null_terminated_byte_size(self) -> int:
        """Bytes occupied when written with a null terminator."""
        return len(self._bytes) + SEQUENCE_END_BYTE_SIZE

    def i32_sized_byte_size(self) -> int:
        """Bytes occupied when written with an i32 size prefix."""
        return len(self._bytes) + Primitive.I32.byte_size()

    def write_i32_sized(self, stream: Any) -> None:
        """Write the length as i32, then the bytes."""
        Primitive.I32.write(stream, len(self._bytes))
        stream.write(self._bytes)

    @staticmethod
    def read_i32_sized(stream: Any, max_size: int) -> "Text":
        """Read an i32 length, then that many bytes (at most `max_size`)."""
        size = Primitive.I32.read(stream)
        if size < 0:
            raise InvalidDataError("vector size")
        data = Primitive.U8.read_many(stream, size, 1024, max_size, "text attribute length")
        return Text(bytes(data))

    @staticmethod
    def read_sized(stream: Any, size: int) -> "Text":
        """Read exactly `size` bytes as text."""
        data = Primitive.U8.read_many(stream, size, 1024, None, "text attribute length")
        return Text(bytes(data))

    def write_null_terminated(self, stream: Any) -> None:
        """Write the bytes followed by a null terminator."""
        write_null_terminated_bytes(self._bytes, stream)

    @staticmethod
    def read_null_terminated(stream: Any, max_len: int) -> "Text":
        """Read bytes up to a null terminator, which is consumed.

        The first byte always belongs to the text.
        """
        collected = bytearray([Primitive.U8.read(stream)])
        while True:
            byte = Primitive.U8.read(stream)
            if byte == 0:
                break
            collected.append(byte)
            if len(collected) > max_len:
                raise InvalidDataError("text too long")
        return Text(bytes(collected))

    @staticmethod
    def read_vec_of_i32_sized(stream: Any, total_byte_size: int) -> list["Text"]:
        """Read size-prefixed texts until `total_byte_size` bytes are consumed."""
        result: list[Text] = []
        processed = 0
        while processed < total_byte_size:
            text = Text.read_i32_sized(stream, total_byte_size)
            processed += Primitive.I32.byte_size() + len(text)
            result.append(text)
        if processed != total_byte_size:
            raise InvalidDataError("text array byte size")
        return result

    @staticmethod
    def write_vec_of_i32_sized(stream: Any, texts: Iterable["Text"]) -> None:
        """Write each text with an i32 size prefix."""
        for text in texts:
            text.write_i32_sized(stream)

    def eq_case_insensitive(self, string: str) -> bool:
        """Compare with a string, ignoring capitalization."""
        return self._bytes.lower().decode("latin-1") == string.lower()

    def __len__(self) -> int:
        return len(self._bytes)

    def __str__(self) -> str:
        return self._bytes.decode("latin-1")

    def __repr__(self) -> str:
        return f'Text("{self}")'

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Text):
            return self._bytes == other._bytes
        if isinstance(other, str):
            return str(self) == other
        if isinstance(other, (bytes, bytearray)):
            return self._bytes == bytes(other)
        return NotImplemented

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Text):
            return NotImplemented
        return self._bytes < other._bytes

    def __hash__(self) -> int:
        return hash(self._bytes)


def write_null_terminated_bytes(data: bytes, stream: Any) -> None:
    """Write non-empty bytes followed by a null terminator."""
    if not data:
        raise ValueError("null-terminated text must not be empty")
    stream.write(bytes(data))
    write_sequence_end(stream)


def write_sequence_end(stream: Any) -> None:
    """Write the single zero byte that ends a sequence."""
    Primitive.U8.write(stream, 0)


def sequence_end_has_come(reader: PeekReader) -> bool:
    """Consume the sequence terminator if it is next; return whether it was."""
    return reader.skip_if_eq(0)