"""A first-fit free-list allocator over a simulated, growable heap."""

from __future__ import annotations

HEADER_SIZE = 8
MIN_GROWTH_UNITS = 4096
_BASE = 0


class Allocator:
    """Heap allocator with an address-ordered circular free list.

    Addresses are byte offsets. The sentinel list head sits at address 0 and
    the heap grows upwards from HEADER_SIZE. Every block starts with a
    header of HEADER_SIZE bytes; malloc returns the address just past it.
    """

    def __init__(self, limit: int | None = None) -> None:
        if limit is not None and limit < 0:
            raise ValueError("heap limit must not be negative")
        self.limit = limit
        self._next: dict[int, int] = {_BASE: _BASE}
        self._size: dict[int, int] = {_BASE: 0}
        self._freep = _BASE
        self._top = 1
        self._allocated: set[int] = set()

    @property
    def heap_size(self) -> int:
        """Bytes obtained from the heap so far."""
        return (self._top - 1) * HEADER_SIZE

    def malloc(self, nbytes: int) -> int:
        """Allocate nbytes; raise MemoryError when the heap cannot grow."""
        if nbytes < 0:
            raise ValueError("cannot allocate a negative size")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        prevp = self._freep
        p = self._next[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._next[prevp] = self._next.pop(p)
                else:
                    self._size[p] -= nunits
                    p += self._size[p]
                    self._size[p] = nunits
                self._freep = prevp
                self._allocated.add(p)
                return (p + 1) * HEADER_SIZE
            if p == self._freep:
                grown = self._morecore(nunits)
                if grown is None:
                    raise MemoryError(f"cannot allocate {nbytes} bytes")
                p = grown
            prevp, p = p, self._next[p]

    def free(self, addr: int) -> None:
        """Return a block obtained from malloc to the free list."""
        unit, rem = divmod(addr, HEADER_SIZE)
        block = unit - 1
        if rem or block not in self._allocated:
            raise ValueError(f"address {addr} is not an allocated block")
        self._allocated.remove(block)
        self._release(block)

    def free_blocks(self) -> list[tuple[int, int]]:
        """(header address, size in bytes) of each free block, in address order."""
        blocks = []
        p = self._next[_BASE]
        while p != _BASE:
            blocks.append((p * HEADER_SIZE, self._size[p] * HEADER_SIZE))
            p = self._next[p]
        return blocks

    def _release(self, bp: int) -> None:
        p = self._freep
        while not p < bp < self._next[p]:
            if p >= self._next[p] and (bp > p or bp < self._next[p]):
                break
            p = self._next[p]
        nxt = self._next[p]
        if bp + self._size[bp] == nxt:
            self._size[bp] += self._size.pop(nxt)
            self._next[bp] = self._next.pop(nxt)
        else:
            self._next[bp] = nxt
        if p + self._size[p] == bp:
            self._size[p] += self._size.pop(bp)
            self._next[p] = self._next.pop(bp)
        else:
            self._next[p] = bp
        self._freep = p

    def _morecore(self, nunits: int) -> int | None:
        nunits = max(nunits, MIN_GROWTH_UNITS)
        if self.limit is not None and (self._top - 1 + nunits) * HEADER_SIZE > self.limit:
            return None
        block = self._top
        self._top += nunits
        self._size[block] = nunits
        self._release(block)
        return self._freep