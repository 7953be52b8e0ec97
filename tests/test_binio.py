import io

import pytest
from hypothesis import given, strategies as st

from exrmeta.binio import (
    InvalidDataError,
    LateFile,
    PeekReader,
    Primitive,
    TrackingStream,
    attempt_delete_file_on_write_error,
    skip_bytes,
)


def test_peek():
    peek = PeekReader(io.BytesIO(bytes([0, 1, 2, 3])))

    assert peek.peek_u8() == 0
    assert peek.peek_u8() == 0
    assert peek.peek_u8() == 0
    assert Primitive.U8.read(peek) == 0

    assert len(peek.read(2)) == 2

    assert peek.peek_u8() == 3
    assert Primitive.U8.read(peek) == 3

    for _ in range(4):
        with pytest.raises(EOFError):
            peek.peek_u8()

    with pytest.raises(EOFError):
        Primitive.U8.read(peek)


def test_skip_if_eq():
    peek = PeekReader(io.BytesIO(b"\x00\x07"))
    assert peek.skip_if_eq(0) is True
    assert peek.skip_if_eq(0) is False
    assert peek.read(1) == b"\x07"
    with pytest.raises(EOFError):
        peek.skip_if_eq(0)


def test_peek_read_includes_peeked_byte():
    peek = PeekReader(io.BytesIO(b"abcd"))
    assert peek.peek_u8() == ord("a")
    assert peek.read(3) == b"abc"
    assert peek.read(0) == b""
    assert peek.read(5) == b"d"


def test_peek_over_tracking_skip_to():
    reader = PeekReader(TrackingStream(io.BytesIO(bytes(range(40)))))
    assert reader.peek_u8() == 0
    reader.skip_to(10)
    assert reader.peek_u8() == 10
    assert reader.byte_position() == 11


@pytest.mark.parametrize(
    "primitive, value, encoded",
    [
        (Primitive.I32, -2, b"\xfe\xff\xff\xff"),
        (Primitive.U16, 0x1234, b"\x34\x12"),
        (Primitive.F16, 1.0, b"\x00\x3c"),
        (Primitive.F32, 1.0, b"\x00\x00\x80\x3f"),
        (Primitive.U8, 200, b"\xc8"),
        (Primitive.I64, 1, b"\x01" + bytes(7)),
    ],
)
def test_known_encodings(primitive, value, encoded):
    buffer = io.BytesIO()
    primitive.write(buffer, value)
    assert buffer.getvalue() == encoded
    assert primitive.read(io.BytesIO(encoded)) == value
    assert primitive.byte_size() == len(encoded)


def test_write_out_of_range():
    with pytest.raises(ValueError):
        Primitive.U8.write(io.BytesIO(), 256)


def test_read_truncated():
    with pytest.raises(EOFError):
        Primitive.U32.read(io.BytesIO(b"\x01\x02"))


@given(st.lists(st.integers(min_value=-(2**31), max_value=2**31 - 1), max_size=50),
       st.integers(min_value=1, max_value=7))
def test_i32_many_roundtrip(values, soft_max):
    buffer = io.BytesIO()
    Primitive.I32.write_many(buffer, values)
    buffer.seek(0)
    assert Primitive.I32.read_many(buffer, len(values), soft_max) == values


def test_read_many_hard_max():
    data = io.BytesIO(bytes(10))
    with pytest.raises(InvalidDataError):
        Primitive.U8.read_many(data, 10, 4, 5, "too many")


def test_read_many_truncated():
    with pytest.raises(EOFError):
        Primitive.U16.read_many(io.BytesIO(b"\x01\x00\x02"), 2, 1)


def test_i32_sized_roundtrip():
    buffer = io.BytesIO()
    Primitive.F32.write_i32_sized(buffer, [1.5, -2.0, 0.25])
    assert buffer.getvalue()[:4] == b"\x03\x00\x00\x00"
    buffer.seek(0)
    assert Primitive.F32.read_i32_sized(buffer, 2) == [1.5, -2.0, 0.25]


def test_i32_sized_negative_length():
    with pytest.raises(InvalidDataError):
        Primitive.U8.read_i32_sized(io.BytesIO(b"\xff\xff\xff\xff"), 16)


def test_skip_bytes():
    stream = io.BytesIO(b"abcdef")
    skip_bytes(stream, 4)
    assert stream.read() == b"ef"
    with pytest.raises(EOFError):
        skip_bytes(io.BytesIO(b"ab"), 3)


def test_late_file_created_on_first_write(tmp_path):
    path = tmp_path / "out.bin"
    with LateFile(path) as late:
        assert not path.exists()
        assert late.write(b"hello") == 5
    assert path.read_bytes() == b"hello"


def test_late_file_seek(tmp_path):
    path = tmp_path / "seek.bin"
    with LateFile(path) as late:
        late.write(b"abcd")
        late.seek(1)
        late.write(b"X")
    assert path.read_bytes() == b"aXcd"


def test_attempt_delete_removes_file_on_error(tmp_path):
    path = tmp_path / "broken.bin"

    def failing(late):
        late.write(b"partial")
        raise InvalidDataError("boom")

    with pytest.raises(InvalidDataError):
        attempt_delete_file_on_write_error(path, failing)
    assert not path.exists()


def test_attempt_delete_keeps_file_on_success(tmp_path):
    path = tmp_path / "fine.bin"
    result = attempt_delete_file_on_write_error(path, lambda late: late.write(b"ok"))
    assert result == 2
    assert path.read_bytes() == b"ok"


def test_tracking_write_positions():
    inner = io.BytesIO()
    tracking = TrackingStream(inner)
    tracking.write(b"abc")
    assert tracking.byte_position() == 3
    tracking.seek_write_to(6)
    assert tracking.byte_position() == 6
    assert inner.getvalue() == b"abc\x00\x00\x00"
    tracking.seek_write_to(1)
    tracking.write(b"Z")
    assert tracking.byte_position() == 2
    assert inner.getvalue() == b"aZc\x00\x00\x00"


def test_tracking_read_positions():
    tracking = TrackingStream(io.BytesIO(bytes(range(100))))
    tracking.seek_read_to(5)
    assert tracking.byte_position() == 5
    assert tracking.read(1) == b"\x05"
    tracking.seek_read_to(50)
    assert tracking.read(1) == b"\x32"
    tracking.seek_read_to(2)
    assert tracking.read(1) == b"\x02"
    assert tracking.byte_position() == 3