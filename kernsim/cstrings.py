"""NUL-terminated byte-string and memory helpers."""

from __future__ import annotations

from typing import BinaryIO, Union

ByteLike = Union[bytes, bytearray, memoryview, str]


def _as_bytes(s: ByteLike) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _cstr(s: ByteLike) -> bytes:
    """The bytes of s up to, not including, the first NUL."""
    data = _as_bytes(s)
    end = data.find(b"\0")
    return data if end < 0 else data[:end]


def _at(data: bytes, index: int) -> int:
    return data[index] if index < len(data) else 0


def _char_code(c: Union[int, str, bytes]) -> int:
    if isinstance(c, int):
        return c & 0xFF
    if len(c) != 1:
        raise ValueError(f"expected a single character, got {c!r}")
    return _as_bytes(c)[0]


def memcmp(a: ByteLike, b: ByteLike, n: int) -> int:
    """Compare the first n bytes; the difference of the first unequal pair, or 0."""
    left, right = _as_bytes(a), _as_bytes(b)
    if n < 0 or n > len(left) or n > len(right):
        raise ValueError(f"cannot compare {n} bytes of buffers of {len(left)} and {len(right)}")
    for x, y in zip(left[:n], right[:n]):
        if x != y:
            return x - y
    return 0


def memmove(buf: bytearray, dst: int, src: int, n: int) -> bytearray:
    """Copy n bytes within buf from offset src to offset dst; regions may overlap."""
    if n < 0 or min(dst, src) < 0 or max(dst, src) + n > len(buf):
        raise ValueError(f"move of {n} bytes from {src} to {dst} exceeds a buffer of {len(buf)}")
    buf[dst:dst + n] = buf[src:src + n]
    return buf


def strncmp(p: ByteLike, q: ByteLike, n: int) -> int:
    """Compare at most n characters of two NUL-terminated strings."""
    if n < 0:
        raise ValueError("count must not be negative")
    left, right = _as_bytes(p), _as_bytes(q)
    index = 0
    while n > 0 and _at(left, index) and _at(left, index) == _at(right, index):
        n -= 1
        index += 1
    if n == 0:
        return 0
    return _at(left, index) - _at(right, index)


def strncpy(t: ByteLike, n: int) -> bytes:
    """The n bytes strncpy writes: t up to its NUL, then NUL padding, truncated to n."""
    if n <= 0:
        return b""
    return (_cstr(t) + b"\0" * n)[:n]


def safestrcpy(t: ByteLike, n: int) -> bytes:
    """The bytes written by a copy into n bytes that always ends with a NUL."""
    if n <= 0:
        return b""
    return _cstr(t)[:n - 1] + b"\0"


def strlen(s: ByteLike) -> int:
    """Length of s up to its first NUL."""
    return len(_cstr(s))


def strcmp(p: ByteLike, q: ByteLike) -> int:
    """Compare two NUL-terminated strings."""
    left, right = _cstr(p), _cstr(q)
    index = 0
    while _at(left, index) and _at(left, index) == _at(right, index):
        index += 1
    return _at(left, index) - _at(right, index)


def strchr(s: ByteLike, c: Union[int, str, bytes]) -> int | None:
    """Index of the first c in s before its NUL, or None."""
    code = _char_code(c)
    if code == 0:
        return None
    index = _cstr(s).find(bytes([code]))
    return None if index < 0 else index


def atoi(s: ByteLike) -> int:
    """Value of the leading decimal digits of s; 0 if there are none."""
    value = 0
    for byte in _as_bytes(s):
        if not 0x30 <= byte <= 0x39:
            break
        value = value * 10 + byte - 0x30
    return value


def gets(stream: BinaryIO, limit: int) -> bytes:
    """Read at most limit-1 bytes, stopping after a newline or carriage return."""
    line = bytearray()
    while len(line) + 1 < limit:
        c = stream.read(1)
        if not c:
            break
        line += c
        if c in (b"\n", b"\r"):
            break
    return bytes(line)