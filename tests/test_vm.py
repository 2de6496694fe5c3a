import pytest

from kernsim.mmu import KERNBASE, PGSIZE, PTE_P, PTE_U, PTE_W
from kernsim.vm import KernelMapping, PageDirectory, PhysicalMemory, setup_kvm


def _entry(pd, va):
    pte = pd.walk(va, False)
    return int.from_bytes(pd.memory.read(pte, 4), "little")


def test_kalloc_gives_distinct_aligned_pages():
    mem = PhysicalMemory(4)
    pages = [mem.kalloc() for _ in range(4)]
    assert len(set(pages)) == 4
    assert all(pa % PGSIZE == 0 and pa != 0 for pa in pages)
    with pytest.raises(MemoryError):
        mem.kalloc()
    mem.kfree(pages[0])
    assert mem.kalloc() == pages[0]


def test_kfree_rejects_bad_addresses():
    mem = PhysicalMemory(2)
    pa = mem.kalloc()
    with pytest.raises(ValueError):
        mem.kfree(pa + 1)
    mem.kfree(pa)
    with pytest.raises(ValueError):
        mem.kfree(pa)
    with pytest.raises(ValueError):
        mem.kfree(0)


def test_physical_read_write_round_trip():
    mem = PhysicalMemory(2)
    pa = mem.kalloc()
    mem.write(pa + 10, b"data")
    assert mem.read(pa + 10, 4) == b"data"
    with pytest.raises(ValueError):
        mem.read(0, 4)


def test_walk_without_alloc_on_empty_directory():
    pd = PageDirectory(PhysicalMemory(4))
    assert pd.walk(0, False) is None


def test_map_pages_sets_entry_and_rejects_remap():
    mem = PhysicalMemory(4)
    pd = PageDirectory(mem)
    frame = mem.kalloc()
    pd.map_pages(0, PGSIZE, frame, PTE_W)
    assert _entry(pd, 0) == frame | PTE_W | PTE_P
    with pytest.raises(RuntimeError):
        pd.map_pages(0, PGSIZE, frame, PTE_W)


def test_setup_kvm_maps_kernel_region_without_user_access():
    mem = PhysicalMemory(8)
    mapping = KernelMapping(virt=KERNBASE, phys_start=0, phys_end=2 * PGSIZE, perm=PTE_W)
    pd = setup_kvm(mem, [mapping])
    assert _entry(pd, KERNBASE + PGSIZE) == PGSIZE | PTE_W | PTE_P
    assert pd.uva2ka(KERNBASE) is None
    assert pd.kernel_mappings == (mapping,)
    pd.free()
    assert mem.free_count == 8


def test_init_uvm_loads_code_at_zero():
    pd = setup_kvm(PhysicalMemory(4), [])
    pd.init_uvm(b"\x90" * 10)
    assert pd.read_user(0, 10) == b"\x90" * 10
    assert pd.read_user(10, 5) == bytes(5)
    with pytest.raises(ValueError):
        pd.init_uvm(bytes(PGSIZE))


def test_alloc_and_dealloc_uvm():
    mem = PhysicalMemory(16)
    pd = setup_kvm(mem, [])
    assert pd.alloc_uvm(0, 3 * PGSIZE) == 3 * PGSIZE
    assert pd.read_user(0, 3 * PGSIZE) == bytes(3 * PGSIZE)
    assert pd.alloc_uvm(3 * PGSIZE, PGSIZE) == 3 * PGSIZE
    assert pd.dealloc_uvm(3 * PGSIZE, PGSIZE) == PGSIZE
    assert pd.dealloc_uvm(PGSIZE, 2 * PGSIZE) == PGSIZE
    with pytest.raises(ValueError):
        pd.read_user(PGSIZE, 1)
    assert pd.read_user(0, 4) == bytes(4)
    pd.free()
    assert mem.free_count == 16


def test_alloc_uvm_refuses_kernel_space():
    pd = setup_kvm(PhysicalMemory(4), [])
    with pytest.raises(MemoryError):
        pd.alloc_uvm(0, KERNBASE)


def test_alloc_uvm_failure_releases_pages():
    mem = PhysicalMemory(4)
    pd = setup_kvm(mem, [])
    with pytest.raises(MemoryError):
        pd.alloc_uvm(0, 10 * PGSIZE)
    with pytest.raises(ValueError):
        pd.read_user(0, 1)
    pd.free()
    assert mem.free_count == 4


def test_copyout_across_pages_round_trips():
    pd = setup_kvm(PhysicalMemory(8), [])
    pd.alloc_uvm(0, 2 * PGSIZE)
    data = bytes(range(256)) * 2
    pd.copyout(PGSIZE - 100, data)
    assert pd.read_user(PGSIZE - 100, len(data)) == data
    with pytest.raises(ValueError):
        pd.copyout(2 * PGSIZE - 1, b"xy")


def test_copy_is_independent():
    mem = PhysicalMemory(16)
    pd = setup_kvm(mem, [])
    pd.alloc_uvm(0, 2 * PGSIZE)
    pd.copyout(100, b"hello")
    child = pd.copy(2 * PGSIZE)
    assert child.read_user(100, 5) == b"hello"
    child.copyout(100, b"HELLO")
    assert pd.read_user(100, 5) == b"hello"
    assert child.read_user(100, 5) == b"HELLO"
    child.free()
    pd.free()
    assert mem.free_count == 16


def test_copy_out_of_memory_frees_child():
    mem = PhysicalMemory(5)
    pd = setup_kvm(mem, [])
    pd.alloc_uvm(0, 2 * PGSIZE)
    before = mem.free_count
    with pytest.raises(MemoryError):
        pd.copy(2 * PGSIZE)
    assert mem.free_count == before


def test_copy_of_unmapped_range_panics():
    pd = setup_kvm(PhysicalMemory(8), [])
    with pytest.raises(RuntimeError):
        pd.copy(PGSIZE)


def test_clear_pteu_hides_page_from_user():
    pd = setup_kvm(PhysicalMemory(8), [])
    pd.alloc_uvm(0, 2 * PGSIZE)
    pd.clear_pteu(0)
    assert pd.uva2ka(0) is None
    assert _entry(pd, 0) & PTE_U == 0
    with pytest.raises(ValueError):
        pd.copyout(0, b"x")
    assert pd.read_user(PGSIZE, 1) == b"\0"


def test_clear_pteu_on_missing_table_panics():
    pd = setup_kvm(PhysicalMemory(4), [])
    with pytest.raises(RuntimeError):
        pd.clear_pteu(0)