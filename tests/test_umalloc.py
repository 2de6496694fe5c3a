import pytest

from kernsim.umalloc import HEADER_SIZE, MIN_GROWTH_UNITS, Allocator


def test_first_growth_is_minimum_chunk():
    heap = Allocator()
    addr = heap.malloc(10)
    assert addr % HEADER_SIZE == 0
    assert heap.heap_size == MIN_GROWTH_UNITS * HEADER_SIZE


def test_allocations_do_not_overlap():
    heap = Allocator()
    addrs = sorted(heap.malloc(100) for _ in range(20))
    assert len(set(addrs)) == len(addrs)
    for lower, upper in zip(addrs, addrs[1:]):
        assert upper - lower >= 100 + HEADER_SIZE


def test_freed_block_is_reused():
    heap = Allocator()
    first = heap.malloc(100)
    heap.free(first)
    assert heap.malloc(100) == first


def test_free_all_coalesces():
    heap = Allocator()
    addrs = [heap.malloc(n) for n in (1, 50, 300, 7, 1000)]
    for addr in reversed(addrs[::2]):
        heap.free(addr)
    for addr in addrs[1::2]:
        heap.free(addr)
    assert heap.free_blocks() == [(HEADER_SIZE, heap.heap_size)]


def test_large_request_grows_exactly():
    heap = Allocator()
    nbytes = MIN_GROWTH_UNITS * HEADER_SIZE * 2
    addr = heap.malloc(nbytes)
    assert heap.heap_size >= nbytes + HEADER_SIZE
    heap.free(addr)
    assert sum(size for _, size in heap.free_blocks()) == heap.heap_size


def test_limit_too_small_raises():
    heap = Allocator(limit=1000)
    with pytest.raises(MemoryError):
        heap.malloc(1)


def test_exhaust_then_recover():
    limit = MIN_GROWTH_UNITS * HEADER_SIZE
    heap = Allocator(limit=limit)
    addrs = []
    with pytest.raises(MemoryError):
        while True:
            addrs.append(heap.malloc(1000))
    assert addrs
    assert heap.heap_size == limit
    for addr in addrs:
        heap.free(addr)
    assert heap.free_blocks() == [(HEADER_SIZE, limit)]
    big = heap.malloc(1024 * 20)
    assert HEADER_SIZE <= big < limit


def test_double_free_raises():
    heap = Allocator()
    addr = heap.malloc(16)
    heap.free(addr)
    with pytest.raises(ValueError):
        heap.free(addr)


def test_free_of_unknown_address_raises():
    heap = Allocator()
    heap.malloc(16)
    with pytest.raises(ValueError):
        heap.free(HEADER_SIZE * 3 + 1)