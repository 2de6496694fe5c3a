"""x86 trap numbers and construction of the interrupt descriptor table."""

from __future__ import annotations

import enum
from collections.abc import Sequence

from kernsim.mmu import DPL_USER, SEG_KCODE, GateDescriptor

IDT_SIZE = 256


class Trap(enum.IntEnum):
    """Processor-defined and system trap numbers."""

    DIVIDE = 0
    DEBUG = 1
    NMI = 2
    BRKPT = 3
    OFLOW = 4
    BOUND = 5
    ILLOP = 6
    DEVICE = 7
    DBLFLT = 8
    TSS = 10
    SEGNP = 11
    STACK = 12
    GPFLT = 13
    PGFLT = 14
    FPERR = 16
    ALIGN = 17
    MCHK = 18
    SIMDERR = 19
    IRQ0 = 32
    SYSCALL = 64
    DEFAULT = 500


class Irq(enum.IntEnum):
    """Hardware interrupt lines, relative to Trap.IRQ0."""

    TIMER = 0
    KBD = 1
    COM1 = 4
    IDE = 14
    ERROR = 19
    SPURIOUS = 31


def build_idt(vectors: Sequence[int]) -> list[GateDescriptor]:
    """Build the 256-entry IDT from handler entry addresses.

    Every entry is a kernel interrupt gate, except the system call vector,
    which is a trap gate callable from user mode.
    """
    if len(vectors) != IDT_SIZE:
        raise ValueError(f"expected {IDT_SIZE} vectors, got {len(vectors)}")
    selector = SEG_KCODE << 3
    idt = [GateDescriptor.make(False, selector, vector, 0) for vector in vectors]
    idt[Trap.SYSCALL] = GateDescriptor.make(True, selector, vectors[Trap.SYSCALL], DPL_USER)
    return idt