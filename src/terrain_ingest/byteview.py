"""
Typed field access over raw byte buffers.

Fixed-layout headers (USGS DEM type A records, DTED UHL blocks, LAS public
headers) are described as named fields at fixed offsets instead of ad hoc
slicing, so every offset lives in one declaration and can be tested on its
own.

Example:
    >>> NUM_ROWS = AsciiField("num_rows", 47, 4)
    >>> view = ByteView(buffer)
    >>> rows = NUM_ROWS.int(view)
"""

import re
import struct
from dataclasses import dataclass
from typing import Optional, Union

BufferLike = Union[bytes, bytearray, memoryview]

_FORTRAN_EXPONENT = re.compile(r"[Dd]")


def parse_float(token: str) -> Optional[float]:
    """Parse a decimal string, accepting Fortran ``D`` exponents.

    Returns None when the token is empty, malformed or not finite.
    """
    token = token.strip()
    if not token:
        return None
    try:
        value = float(_FORTRAN_EXPONENT.sub("E", token))
    except ValueError:
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return value


def parse_int(token: str) -> Optional[int]:
    """Parse a base-10 integer string; None when empty or malformed."""
    token = token.strip()
    if not token:
        return None
    try:
        return int(token)
    except ValueError:
        return None


class ByteView:
    """Read-only accessor over a byte buffer.

    Wraps the buffer in a memoryview so slicing never copies. Binary reads
    past the end of the buffer raise ``IndexError``; ASCII reads are
    truncated at the end instead.
    """

    def __init__(self, buffer: BufferLike):
        self._view = memoryview(buffer).cast("B")

    def __len__(self):
        return len(self._view)

    @property
    def raw(self) -> memoryview:
        return self._view

    def _check(self, offset: int, size: int):
        if offset < 0 or offset + size > len(self._view):
            raise IndexError(
                f"Read of {size} bytes at offset {offset} exceeds buffer of {len(self._view)} bytes"
            )

    def ascii(self, offset: int, length: int) -> str:
        """Decode a byte range as latin-1 text (never fails on high bytes)."""
        end = min(offset + length, len(self._view))
        if offset >= end:
            return ""
        return bytes(self._view[offset:end]).decode("latin-1")

    def u8(self, offset: int) -> int:
        self._check(offset, 1)
        return self._view[offset]

    def _unpack(self, fmt: str, offset: int):
        size = struct.calcsize(fmt)
        self._check(offset, size)
        return struct.unpack_from(fmt, self._view, offset)[0]

    def u16le(self, offset: int) -> int:
        return self._unpack("<H", offset)

    def u16be(self, offset: int) -> int:
        return self._unpack(">H", offset)

    def u32le(self, offset: int) -> int:
        return self._unpack("<I", offset)

    def i32le(self, offset: int) -> int:
        return self._unpack("<i", offset)

    def u64le(self, offset: int) -> int:
        return self._unpack("<Q", offset)

    def f64le(self, offset: int) -> float:
        return self._unpack("<d", offset)


@dataclass(frozen=True)
class AsciiField:
    """ASCII-encoded header field at a fixed byte offset."""

    name: str
    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length

    def text(self, view: ByteView) -> str:
        return view.ascii(self.offset, self.length)

    def int(self, view: ByteView) -> Optional[int]:
        return parse_int(self.text(view))

    def float(self, view: ByteView) -> Optional[float]:
        return parse_float(self.text(view))

    def tokens(self, view: ByteView) -> list:
        """Whitespace-separated tokens inside the field."""
        return self.text(view).split()
