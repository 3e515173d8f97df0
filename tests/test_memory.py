# tests/test_memory.py
"""
Tests for the heap, the allocator and pointer load/store.
"""

import pytest

from cmem.errors import (
    CmemErrorCodes,
    InternalError,
    RuntimeError as CmemRuntimeError,
)
from cmem.memory import Allocator, Heap, Memory, Region, wrap_byte
from cmem.values import TypeTag
from tests.conftest import c, d, i, rv, s


class TestWrapByte:

    @pytest.mark.parametrize("value, expected", [
        (0, 0), (44, 44), (255, 255), (256, 0), (300, 44),
        (-1, 255), (-255, 1), (-256, 0), (-257, 255),
    ])
    def test_wrap(self, value, expected):
        assert wrap_byte(value) == expected


class TestHeap:

    def test_starts_zeroed(self):
        assert Heap(8).snapshot() == bytes(8)

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            Heap(0)

    def test_store_int_wraps(self):
        heap = Heap(4)
        assert heap.store_int(1, -1) == 255
        assert heap.read_byte(1) == 255

    @pytest.mark.parametrize("address", [-1, 4, 100])
    def test_out_of_range(self, address):
        heap = Heap(4)
        with pytest.raises(CmemRuntimeError) as exc_info:
            heap.read_byte(address)
        assert exc_info.value.code == CmemErrorCodes.ADDRESS_OUT_OF_RANGE
        assert "[0, 4)" in exc_info.value.message

    def test_write_byte_rejects_unwrapped_value(self):
        with pytest.raises(InternalError):
            Heap(4).write_byte(0, 256)

    def test_clear(self):
        heap = Heap(4)
        heap.store_int(0, 9)
        heap.clear()
        assert heap.snapshot() == bytes(4)


class TestAllocator:

    def test_sequential_addresses(self):
        alloc = Allocator(16)
        assert alloc.malloc(4) == 0
        assert alloc.malloc(4) == 4
        assert alloc.malloc(1) == 8

    def test_regions_never_overlap(self):
        alloc = Allocator(64)
        for size in (3, 1, 7, 2, 5):
            alloc.malloc(size)
        regions = alloc.regions
        for left, right in zip(regions, regions[1:]):
            assert left.end <= right.start
        assert alloc.reserved == 18

    def test_exact_fit(self):
        alloc = Allocator(8)
        assert alloc.malloc(8) == 0

    def test_out_of_memory(self):
        alloc = Allocator(8)
        alloc.malloc(6)
        with pytest.raises(CmemRuntimeError) as exc_info:
            alloc.malloc(3)
        assert exc_info.value.code == CmemErrorCodes.OUT_OF_MEMORY

    @pytest.mark.parametrize("size", [0, -4])
    def test_non_positive_size(self, size):
        with pytest.raises(CmemRuntimeError) as exc_info:
            Allocator(8).malloc(size)
        assert exc_info.value.code == CmemErrorCodes.INVALID_ARGUMENT

    def test_reset_reclaims_everything(self):
        alloc = Allocator(8)
        alloc.malloc(8)
        alloc.reset()
        assert alloc.regions == ()
        assert alloc.malloc(8) == 0

    def test_region_repr(self):
        assert repr(Region(4, 2)) == "[4, 6)"


class TestMemory:

    def test_store_returns_coerced_int(self):
        memory = Memory(8)
        result = memory.store(0, rv(i(300)))
        assert result == rv(i(300))
        assert memory.heap.read_byte(0) == 44

    def test_store_coerces_double_and_char(self):
        memory = Memory(8)
        memory.store(0, rv(d(65.9)))
        memory.store(1, rv(c("B")))
        assert memory.heap.snapshot()[:2] == b"AB"

    def test_store_string_fails(self):
        memory = Memory(8)
        with pytest.raises(CmemRuntimeError):
            memory.store(0, rv(s("x")))
        assert memory.heap.snapshot() == bytes(8)

    def test_store_out_of_range(self):
        with pytest.raises(CmemRuntimeError):
            Memory(8).store(8, rv(i(1)))

    def test_load_int_pointer(self):
        memory = Memory(8)
        memory.heap.store_int(2, 200)
        assert memory.load(2, TypeTag.INT_PTR) == rv(i(200))

    def test_load_char_pointer(self):
        memory = Memory(8)
        memory.heap.store_int(3, 97)
        assert memory.load(3, TypeTag.CHAR_PTR) == rv(c("a"))

    def test_load_requires_pointer_type(self):
        with pytest.raises(InternalError):
            Memory(8).load(0, TypeTag.INT)

    def test_reset_zeroes_heap_and_allocations(self):
        memory = Memory(8)
        address = memory.malloc(4)
        memory.store(address, rv(i(7)))
        memory.reset()
        assert memory.heap.snapshot() == bytes(8)
        assert memory.malloc(4) == 0
