# exrmeta

A pure-Python library of the binary building blocks used in OpenEXR file
headers: little-endian number I/O, byte-string texts, integer and float
rectangles, channel descriptions and channel lists, and SMPTE time codes.
Each value type can be written to and read from a binary stream, reports the
number of bytes it occupies, and can be validated.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `exrmeta.binio`: the `Primitive` enum of little-endian number types
  (`U8`, `I8`, `I16`, `U16`, `U32`, `I32`, `I64`, `U64`, `F16`, `F32`, `F64`)
  with `read`, `write`, `read_many`, `write_many`, `read_i32_sized` and
  `write_i32_sized`; `PeekReader`, which lets one byte be inspected before it
  is read; `TrackingStream`, which counts the bytes passed through it;
  `LateFile`, a file created only on its first write or seek;
  `attempt_delete_file_on_write_error`; `skip_bytes`; and the error types
  `ExrError`, `InvalidDataError` and `UnsupportedError`.
- `exrmeta.math`: `Vec2`, a frozen two-component vector with component-wise
  arithmetic, `RoundingMode` (`DOWN`, `UP`) with `log2` and `divide`, and the
  functions `floor_log_2` and `ceil_log_2`.
- `exrmeta.text`: `Text`, a byte string where each byte is one latin-1
  character, with null-terminated and i32-size-prefixed encodings, plus
  `write_null_terminated_bytes`, `write_sequence_end` and
  `sequence_end_has_come`.
- `exrmeta.channels`: `IntegerBounds`, `FloatRect`, `SampleType`,
  `ChannelDescription` and `ChannelList`.
- `exrmeta.timecode`: `TimeCode`, with TV60, TV50 and FILM24 packing and
  packed user data.

## Example

Write a channel list to a buffer and read it back:

```python
import io

from exrmeta.binio import PeekReader
from exrmeta.channels import ChannelDescription, ChannelList, SampleType

channels = ChannelList([
    ChannelDescription.named("B", SampleType.F16),
    ChannelDescription.named("G", SampleType.F16),
    ChannelDescription.named("R", SampleType.F32),
])
assert channels.bytes_per_pixel == 8
assert channels.find_index_of_channel("G") == 1

buffer = io.BytesIO()
channels.write(buffer)
assert channels.byte_size() == len(buffer.getvalue())

buffer.seek(0)
assert ChannelList.read(PeekReader(buffer)) == channels
```

Round-trip a time code:

```python
import io

from exrmeta.timecode import TimeCode

code = TimeCode(hours=1, minutes=2, seconds=3, frame=4, color_frame=True)
buffer = io.BytesIO()
code.write(buffer)
buffer.seek(0)
assert TimeCode.read(buffer) == code
```

## Errors

Malformed or out-of-range data raises `InvalidDataError`. Valid data that the
library does not handle, such as channel subsampling in
`ChannelDescription.validate`, raises `UnsupportedError`. Both are
subclasses of `ExrError`. A stream that ends too early raises `EOFError`.

## What this package does not do

This package covers individual header value types only. It does not read or
write a complete named, typed header attribute, and it has no types for
compression methods, line order, block types, tile descriptions, key codes,
chromaticities, environment maps or preview images. It does not read or write
pixel data or whole image files, and it provides no command-line tool.