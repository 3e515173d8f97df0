"""
cmem/memory.py
==============

Simulated byte-addressable memory.

* ``Heap``       – fixed-length ``bytearray`` with bounds-checked access
* ``Allocator``  – first-fit reservation tracker behind ``malloc``
* ``Memory``     – heap + allocator, plus the pointer load/store rules used
  by dereference reads and writes
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import List, Tuple

from cmem.coerce import coerce, literal_to_char
from cmem.errors import (
    CmemErrorCodes,
    InternalError,
    RuntimeError as CmemRuntimeError,
)
from cmem.values import Literal, RuntimeValue, TypeTag

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_MEMORY_SIZE",
    "wrap_byte",
    "Heap",
    "Region",
    "Allocator",
    "Memory",
]

DEFAULT_MEMORY_SIZE = 256


def wrap_byte(value: int) -> int:
    """Reduce an int to the byte stored on the heap.

    Non-negative values store as ``value % 256``; negative values store as
    ``256 - (|value| % 256)`` with 256 itself folding to 0, i.e. the low
    byte of the two's-complement representation.
    """
    if value < 0:
        return (256 - (abs(value) % 256)) % 256
    return value % 256


class Heap:
    """Fixed-size byte array; every access is bounds checked."""

    def __init__(self, size: int = DEFAULT_MEMORY_SIZE) -> None:
        if size <= 0:
            raise ValueError(f"heap size must be positive, got {size}")
        self._bytes = bytearray(size)

    def __len__(self) -> int:
        return len(self._bytes)

    @property
    def size(self) -> int:
        return len(self._bytes)

    def check_address(self, address: int) -> None:
        if not 0 <= address < len(self._bytes):
            raise CmemRuntimeError(
                f"Address {address} is outside of the addressable memory "
                f"range [0, {len(self._bytes)}).",
                code=CmemErrorCodes.ADDRESS_OUT_OF_RANGE,
            )

    def read_byte(self, address: int) -> int:
        self.check_address(address)
        return self._bytes[address]

    def write_byte(self, address: int, byte: int) -> None:
        self.check_address(address)
        if not 0 <= byte <= 255:
            raise InternalError(
                f"Byte value {byte} out of range 0-255.",
                code=CmemErrorCodes.INVARIANT_VIOLATED,
            )
        self._bytes[address] = byte

    def store_int(self, address: int, value: int) -> int:
        """Write *value* with byte wraparound; returns the stored byte."""
        byte = wrap_byte(value)
        self.write_byte(address, byte)
        return byte

    def clear(self) -> None:
        self._bytes[:] = bytes(len(self._bytes))

    def snapshot(self) -> bytes:
        return bytes(self._bytes)


@dataclass(frozen=True, order=True)
class Region:
    """A reserved span ``[start, start + size)``."""

    start: int
    size: int

    @property
    def end(self) -> int:
        return self.start + self.size

    def __repr__(self) -> str:
        return f"[{self.start}, {self.end})"


class Allocator:
    """First-fit allocator over a fixed capacity.

    Reservations are kept sorted by start address; a request takes the
    lowest gap that fits.  There is no ``free``: only ``reset`` reclaims.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._regions: List[Region] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def regions(self) -> Tuple[Region, ...]:
        return tuple(self._regions)

    @property
    def reserved(self) -> int:
        return sum(r.size for r in self._regions)

    def malloc(self, size: int) -> int:
        if size <= 0:
            raise CmemRuntimeError(
                f"malloc: Cannot allocate {size} bytes; size must be positive.",
                code=CmemErrorCodes.INVALID_ARGUMENT,
            )

        cursor = 0
        for region in self._regions:
            if region.start - cursor >= size:
                break
            cursor = region.end

        if cursor + size > self._capacity:
            raise CmemRuntimeError(
                f"malloc: Out of memory; no free region of {size} bytes "
                f"({self.reserved} of {self._capacity} bytes reserved).",
                code=CmemErrorCodes.OUT_OF_MEMORY,
            )

        region = Region(cursor, size)
        bisect.insort(self._regions, region)
        logger.debug("malloc(%d) -> %r", size, region)
        return cursor

    def reset(self) -> None:
        self._regions.clear()


class Memory:
    """Heap and allocator owned together by one engine."""

    def __init__(self, size: int = DEFAULT_MEMORY_SIZE) -> None:
        self.heap = Heap(size)
        self.allocator = Allocator(size)

    @property
    def size(self) -> int:
        return self.heap.size

    def malloc(self, size: int) -> int:
        return self.allocator.malloc(size)

    def reset(self) -> None:
        """Zero every byte and forget every reservation."""
        self.heap.clear()
        self.allocator.reset()
        logger.debug("memory reset (%d bytes)", self.heap.size)

    def load(self, address: int, pointer_type: TypeTag) -> RuntimeValue:
        """Read the byte at *address* as the pointee of *pointer_type*."""
        byte = Literal.of_int(self.heap.read_byte(address))
        if pointer_type is TypeTag.INT_PTR:
            return RuntimeValue(TypeTag.INT, byte)
        if pointer_type is TypeTag.CHAR_PTR:
            return RuntimeValue(TypeTag.CHAR, literal_to_char(byte))
        raise InternalError(
            f"Unexpected pointer type {pointer_type.value}.",
            code=CmemErrorCodes.INVARIANT_VIOLATED,
        )

    def store(self, address: int, value: RuntimeValue) -> RuntimeValue:
        """Coerce *value* to ``int`` and write it at *address*.

        Returns the coerced ``int`` value, not the stored byte.
        """
        self.heap.check_address(address)
        coerced = coerce(value, TypeTag.INT)
        self.heap.store_int(address, coerced.literal.value)
        return coerced
