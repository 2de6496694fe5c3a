"""Two-level x86 page tables over simulated physical memory."""

from __future__ import annotations

import struct
from collections.abc import Iterable
from dataclasses import dataclass

from kernsim.mmu import (
    KERNBASE,
    NPDENTRIES,
    PDXSHIFT,
    PGSIZE,
    PTE_P,
    PTE_U,
    PTE_W,
    pdx,
    pgrounddown,
    pgroundup,
    pte_addr,
    pte_flags,
    ptx,
)

_WORD_MASK = 0xFFFFFFFF
_ENTRY_SIZE = 4
_DIRECTORY = struct.Struct(f"<{NPDENTRIES}I")


class PhysicalMemory:
    """A pool of page frames.

    Frames lie at physical addresses PGSIZE upwards, so address 0 is never a
    frame. kalloc hands out whole pages; read and write reach any byte of
    the pool.
    """

    def __init__(self, npages: int) -> None:
        if npages < 0:
            raise ValueError("page count must not be negative")
        self.npages = npages
        self._start = PGSIZE
        self._end = PGSIZE * (npages + 1)
        self._ram = bytearray(PGSIZE * npages)
        self._free = [self._start + i * PGSIZE for i in reversed(range(npages))]
        self._free_set = set(self._free)

    @property
    def free_count(self) -> int:
        """Number of pages not currently allocated."""
        return len(self._free)

    def kalloc(self) -> int:
        """Allocate one page and return its physical address."""
        if not self._free:
            raise MemoryError("out of physical pages")
        pa = self._free.pop()
        self._free_set.discard(pa)
        return pa

    def kfree(self, pa: int) -> None:
        """Return the page at pa to the pool."""
        if pa % PGSIZE or not self._start <= pa < self._end:
            raise ValueError(f"kfree: bad page address 0x{pa:x}")
        if pa in self._free_set:
            raise ValueError(f"kfree: page 0x{pa:x} is already free")
        self._free.append(pa)
        self._free_set.add(pa)

    def _offset(self, pa: int, n: int) -> int:
        if n < 0 or pa < self._start or pa + n > self._end:
            raise ValueError(f"physical range 0x{pa:x}+{n} lies outside memory")
        return pa - self._start

    def read(self, pa: int, n: int) -> bytes:
        offset = self._offset(pa, n)
        return bytes(self._ram[offset:offset + n])

    def write(self, pa: int, data: bytes) -> None:
        offset = self._offset(pa, len(data))
        self._ram[offset:offset + len(data)] = data

    def _zero(self, pa: int) -> None:
        self.write(pa, bytes(PGSIZE))


@dataclass(frozen=True)
class KernelMapping:
    """A kernel region present in every page directory."""

    virt: int
    phys_start: int
    phys_end: int
    perm: int


class PageDirectory:
    """A page directory and the page tables and user pages it owns."""

    def __init__(self, memory: PhysicalMemory) -> None:
        self.memory = memory
        self.pa = memory.kalloc()
        memory._zero(self.pa)
        self.kernel_mappings: tuple[KernelMapping, ...] = ()

    def _load(self, addr: int) -> int:
        return int.from_bytes(self.memory.read(addr, _ENTRY_SIZE), "little")

    def _store(self, addr: int, value: int) -> None:
        self.memory.write(addr, (value & _WORD_MASK).to_bytes(_ENTRY_SIZE, "little"))

    def walk(self, va: int, alloc: bool = False) -> int | None:
        """Physical address of the PTE for va.

        Returns None when the page table is missing and alloc is false;
        raises MemoryError when a page table cannot be allocated.
        """
        pde_addr = self.pa + _ENTRY_SIZE * pdx(va)
        pde = self._load(pde_addr)
        if pde & PTE_P:
            table = pte_addr(pde)
        else:
            if not alloc:
                return None
            table = self.memory.kalloc()
            self.memory._zero(table)
            self._store(pde_addr, table | PTE_P | PTE_W | PTE_U)
        return table + _ENTRY_SIZE * ptx(va)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map [va, va+size) to physical memory starting at pa."""
        if size == 0:
            raise ValueError("cannot map an empty range")
        a = pgrounddown(va)
        last = pgrounddown((va + size - 1) & _WORD_MASK)
        while True:
            pte = self.walk(a, True)
            if self._load(pte) & PTE_P:
                raise RuntimeError("remap")
            self._store(pte, pa | perm | PTE_P)
            if a == last:
                break
            a = (a + PGSIZE) & _WORD_MASK
            pa = (pa + PGSIZE) & _WORD_MASK

    def init_uvm(self, init: bytes) -> None:
        """Load init, which must be smaller than a page, at address 0."""
        if len(init) >= PGSIZE:
            raise ValueError("inituvm: more than a page")
        mem = self.memory.kalloc()
        self.memory._zero(mem)
        self.map_pages(0, PGSIZE, mem, PTE_W | PTE_U)
        self.memory.write(mem, bytes(init))

    def alloc_uvm(self, oldsz: int, newsz: int) -> int:
        """Grow user memory from oldsz to newsz; return the new size."""
        if newsz >= KERNBASE:
            raise MemoryError(f"user size 0x{newsz:x} reaches kernel space")
        if newsz < oldsz:
            return oldsz
        a = pgroundup(oldsz)
        while a < newsz:
            mem = None
            try:
                mem = self.memory.kalloc()
                self.memory._zero(mem)
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except MemoryError:
                self.dealloc_uvm(newsz, oldsz)
                if mem is not None:
                    self.memory.kfree(mem)
                raise
            a += PGSIZE
        return newsz

    def dealloc_uvm(self, oldsz: int, newsz: int) -> int:
        """Shrink user memory from oldsz to newsz; return the new size."""
        if newsz >= oldsz:
            return oldsz
        a = pgroundup(newsz)
        while a < oldsz:
            pte = self.walk(a, False)
            if pte is None:
                a = (pdx(a) + 1) << PDXSHIFT
                continue
            entry = self._load(pte)
            if entry & PTE_P:
                pa = pte_addr(entry)
                if pa == 0:
                    raise RuntimeError("kfree")
                self.memory.kfree(pa)
                self._store(pte, 0)
            a += PGSIZE
        return newsz

    def copy(self, sz: int) -> "PageDirectory":
        """A new directory with the kernel mappings and a copy of user memory [0, sz)."""
        child = setup_kvm(self.memory, self.kernel_mappings)
        try:
            for va in range(0, sz, PGSIZE):
                pte = self.walk(va, False)
                if pte is None:
                    raise RuntimeError("copyuvm: pte should exist")
                entry = self._load(pte)
                if not entry & PTE_P:
                    raise RuntimeError("copyuvm: page not present")
                mem = self.memory.kalloc()
                self.memory.write(mem, self.memory.read(pte_addr(entry), PGSIZE))
                try:
                    child.map_pages(va, PGSIZE, mem, pte_flags(entry))
                except MemoryError:
                    self.memory.kfree(mem)
                    raise
        except MemoryError:
            child.free()
            raise
        return child

    def uva2ka(self, uva: int) -> int | None:
        """Physical address of the user page holding uva, or None if not user-accessible."""
        pte = self.walk(uva, False)
        if pte is None:
            return None
        entry = self._load(pte)
        if not entry & PTE_P or not entry & PTE_U:
            return None
        return pte_addr(entry)

    def _user_chunks(self, va: int, n: int):
        while n > 0:
            va0 = pgrounddown(va)
            pa0 = self.uva2ka(va0)
            if pa0 is None:
                raise ValueError(f"user address 0x{va0:x} is not mapped")
            step = min(PGSIZE - (va - va0), n)
            yield pa0 + (va - va0), step
            n -= step
            va = va0 + PGSIZE

    def copyout(self, va: int, data: bytes) -> None:
        """Copy data to user address va."""
        view = memoryview(bytes(data))
        for pa, step in self._user_chunks(va, len(view)):
            self.memory.write(pa, view[:step].tobytes())
            view = view[step:]

    def read_user(self, va: int, n: int) -> bytes:
        """Read n bytes from user address va."""
        return b"".join(self.memory.read(pa, step) for pa, step in self._user_chunks(va, n))

    def clear_pteu(self, uva: int) -> None:
        """Make the page at uva inaccessible to user code."""
        pte = self.walk(uva, False)
        if pte is None:
            raise RuntimeError("clearpteu")
        self._store(pte, self._load(pte) & ~PTE_U)

    def free(self) -> None:
        """Free all user pages, the page tables and the directory itself."""
        self.dealloc_uvm(KERNBASE, 0)
        for pde in _DIRECTORY.unpack(self.memory.read(self.pa, PGSIZE)):
            if pde & PTE_P:
                self.memory.kfree(pte_addr(pde))
        self.memory.kfree(self.pa)


def setup_kvm(memory: PhysicalMemory, mappings: Iterable[KernelMapping]) -> PageDirectory:
    """A new page directory holding the given kernel mappings."""
    mappings = tuple(mappings)
    pgdir = PageDirectory(memory)
    try:
        for k in mappings:
            pgdir.map_pages(k.virt, (k.phys_end - k.phys_start) & _WORD_MASK, k.phys_start, k.perm)
    except MemoryError:
        pgdir.free()
        raise
    pgdir.kernel_mappings = mappings
    return pgdir