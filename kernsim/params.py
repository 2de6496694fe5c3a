"""System parameters, open modes and file status records."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000


class OpenMode(enum.IntFlag):
    """Flags accepted by open."""

    RDONLY = 0x000
    WRONLY = 0x001
    RDWR = 0x002
    CREATE = 0x200


class FileType(enum.IntEnum):
    """Kinds of inode."""

    DIR = 1
    FILE = 2
    DEV = 3


_STAT = struct.Struct("<h2xiIh2xI")


@dataclass
class Stat:
    """File status as returned by fstat."""

    type: int
    dev: int
    ino: int
    nlink: int
    size: int

    def pack(self) -> bytes:
        """Encode in the in-memory layout of the stat record."""
        try:
            return _STAT.pack(int(self.type), self.dev, self.ino, self.nlink, self.size)
        except struct.error as exc:
            raise ValueError(f"stat field out of range: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> "Stat":
        """Decode a stat record."""
        if len(data) != _STAT.size:
            raise ValueError(f"stat record must be {_STAT.size} bytes, got {len(data)}")
        return cls(*_STAT.unpack(data))