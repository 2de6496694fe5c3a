"""x86 memory-management constants, address helpers and descriptor encodings."""

from __future__ import annotations

from dataclasses import dataclass, field, fields

_WORD_MASK = 0xFFFFFFFF

# Memory layout.
EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM

# Eflags register.
FL_IF = 0x00000200

# Control register flags.
CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Segment selectors.
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

# Application segment type bits.
STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

# System segment type bits.
STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

# Paging.
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

# Page table entry flags.
PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & _WORD_MASK) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & _WORD_MASK) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & _WORD_MASK


def pgroundup(sz: int) -> int:
    """Round a size up to a page boundary, wrapping like a 32-bit value."""
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _WORD_MASK


def pgrounddown(a: int) -> int:
    """Round an address down to a page boundary."""
    return a & ~(PGSIZE - 1) & _WORD_MASK


def pte_addr(pte: int) -> int:
    """Physical address held in a page table entry."""
    return pte & ~0xFFF & _WORD_MASK


def pte_flags(pte: int) -> int:
    """Flag bits of a page table entry."""
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & _WORD_MASK


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & _WORD_MASK


def _bits(width: int):
    return field(metadata={"bits": width})


class _BitFields:
    """Fields packed least-significant first into one little-endian 64-bit word."""

    _SIZE = 8

    @classmethod
    def _layout(cls):
        return [(f.name, f.metadata["bits"]) for f in fields(cls)]

    def __post_init__(self) -> None:
        for name, width in self._layout():
            value = getattr(self, name)
            if not 0 <= value < (1 << width):
                raise ValueError(f"{name}={value} does not fit in {width} bits")

    def _pack_bits(self) -> bytes:
        word = 0
        shift = 0
        for name, width in self._layout():
            word |= getattr(self, name) << shift
            shift += width
        return word.to_bytes(self._SIZE, "little")

    @classmethod
    def _unpack_bits(cls, data: bytes):
        if len(data) != cls._SIZE:
            raise ValueError(f"descriptor must be {cls._SIZE} bytes, got {len(data)}")
        word = int.from_bytes(data, "little")
        values = {}
        for name, width in cls._layout():
            values[name] = word & ((1 << width) - 1)
            word >>= width
        return cls(**values)


@dataclass(frozen=True)
class SegmentDescriptor(_BitFields):
    """A GDT segment descriptor."""

    lim_15_0: int = _bits(16)
    base_15_0: int = _bits(16)
    base_23_16: int = _bits(8)
    type: int = _bits(4)
    s: int = _bits(1)
    dpl: int = _bits(2)
    p: int = _bits(1)
    lim_19_16: int = _bits(4)
    avl: int = _bits(1)
    rsv1: int = _bits(1)
    db: int = _bits(1)
    g: int = _bits(1)
    base_31_24: int = _bits(8)

    @classmethod
    def segment(cls, seg_type: int, base: int, limit: int, dpl: int) -> "SegmentDescriptor":
        """A normal 32-bit segment with a limit in 4 KiB units."""
        base &= _WORD_MASK
        limit &= _WORD_MASK
        return cls(
            lim_15_0=(limit >> 12) & 0xFFFF,
            base_15_0=base & 0xFFFF,
            base_23_16=(base >> 16) & 0xFF,
            type=seg_type,
            s=1,
            dpl=dpl,
            p=1,
            lim_19_16=(limit >> 28) & 0xF,
            avl=0,
            rsv1=0,
            db=1,
            g=1,
            base_31_24=base >> 24,
        )

    @classmethod
    def segment16(cls, seg_type: int, base: int, limit: int, dpl: int) -> "SegmentDescriptor":
        """A segment whose limit is counted in bytes."""
        base &= _WORD_MASK
        limit &= _WORD_MASK
        return cls(
            lim_15_0=limit & 0xFFFF,
            base_15_0=base & 0xFFFF,
            base_23_16=(base >> 16) & 0xFF,
            type=seg_type,
            s=1,
            dpl=dpl,
            p=1,
            lim_19_16=(limit >> 16) & 0xF,
            avl=0,
            rsv1=0,
            db=1,
            g=0,
            base_31_24=base >> 24,
        )

    def pack(self) -> bytes:
        """Encode the descriptor as its 8 hardware bytes."""
        return self._pack_bits()

    @classmethod
    def unpack(cls, data: bytes) -> "SegmentDescriptor":
        """Decode a descriptor from its 8 hardware bytes."""
        return cls._unpack_bits(data)

    @property
    def base(self) -> int:
        return self.base_15_0 | (self.base_23_16 << 16) | (self.base_31_24 << 24)


@dataclass(frozen=True)
class GateDescriptor(_BitFields):
    """An interrupt or trap gate in the IDT."""

    off_15_0: int = _bits(16)
    cs: int = _bits(16)
    args: int = _bits(5)
    rsv1: int = _bits(3)
    type: int = _bits(4)
    s: int = _bits(1)
    dpl: int = _bits(2)
    p: int = _bits(1)
    off_31_16: int = _bits(16)

    @classmethod
    def make(cls, istrap: bool, selector: int, offset: int, dpl: int) -> "GateDescriptor":
        """A present gate; trap gates leave interrupts enabled, interrupt gates clear them."""
        offset &= _WORD_MASK
        return cls(
            off_15_0=offset & 0xFFFF,
            cs=selector,
            args=0,
            rsv1=0,
            type=STS_TG32 if istrap else STS_IG32,
            s=0,
            dpl=dpl,
            p=1,
            off_31_16=offset >> 16,
        )

    def pack(self) -> bytes:
        """Encode the gate as its 8 hardware bytes."""
        return self._pack_bits()

    @classmethod
    def unpack(cls, data: bytes) -> "GateDescriptor":
        """Decode a gate from its 8 hardware bytes."""
        return cls._unpack_bits(data)

    @property
    def offset(self) -> int:
        return self.off_15_0 | (self.off_31_16 << 16)

    @property
    def is_trap(self) -> bool:
        return self.type == STS_TG32