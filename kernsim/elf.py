"""ELF executable headers."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

ELF_MAGIC = 0x464C457F
ELF_PROG_LOAD = 1


class ProgFlag(enum.IntFlag):
    """Permission bits of a program header."""

    EXEC = 1
    WRITE = 2
    READ = 4


class ElfFormatError(ValueError):
    """Raised for data that is not a well-formed ELF image."""


_ELFHDR = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROGHDR = struct.Struct("<8I")


@dataclass
class ElfHeader:
    """The ELF file header."""

    magic: int
    elf: bytes
    type: int
    machine: int
    version: int
    entry: int
    phoff: int
    shoff: int
    flags: int
    ehsize: int
    phentsize: int
    phnum: int
    shentsize: int
    shnum: int
    shstrndx: int

    @classmethod
    def parse(cls, data: bytes) -> "ElfHeader":
        """Read the header at the start of data, checking the magic number."""
        if len(data) < _ELFHDR.size:
            raise ElfFormatError(f"need {_ELFHDR.size} bytes for an ELF header, got {len(data)}")
        header = cls(*_ELFHDR.unpack_from(data))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad ELF magic 0x{header.magic:08x}")
        return header

    def pack(self) -> bytes:
        try:
            return _ELFHDR.pack(
                self.magic, self.elf, self.type, self.machine, self.version,
                self.entry, self.phoff, self.shoff, self.flags, self.ehsize,
                self.phentsize, self.phnum, self.shentsize, self.shnum, self.shstrndx,
            )
        except struct.error as exc:
            raise ElfFormatError(f"header field out of range: {exc}") from exc


@dataclass
class ProgramHeader:
    """A program section header."""

    type: int
    off: int
    vaddr: int
    paddr: int
    filesz: int
    memsz: int
    flags: int
    align: int

    @classmethod
    def parse(cls, data: bytes) -> "ProgramHeader":
        if len(data) < _PROGHDR.size:
            raise ElfFormatError(f"need {_PROGHDR.size} bytes for a program header, got {len(data)}")
        return cls(*_PROGHDR.unpack_from(data))

    def pack(self) -> bytes:
        try:
            return _PROGHDR.pack(
                self.type, self.off, self.vaddr, self.paddr,
                self.filesz, self.memsz, self.flags, self.align,
            )
        except struct.error as exc:
            raise ElfFormatError(f"program header field out of range: {exc}") from exc

    @property
    def is_load(self) -> bool:
        return self.type == ELF_PROG_LOAD


def read_program_headers(data: bytes, header: ElfHeader) -> list[ProgramHeader]:
    """Read header.phnum consecutive program headers starting at header.phoff."""
    result = []
    for index in range(header.phnum):
        start = header.phoff + index * _PROGHDR.size
        chunk = data[start:start + _PROGHDR.size]
        if len(chunk) < _PROGHDR.size:
            raise ElfFormatError(f"program header {index} lies beyond the end of the image")
        result.append(ProgramHeader.parse(chunk))
    return result