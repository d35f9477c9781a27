"""
Memory Subsystem for the Neander Emulator
=========================================

Neander has a single flat memory shared by code and data. Every address
is reduced modulo the memory size, so reads and writes past the end wrap
to the start.

Memory Map (as laid out by the compiler):
    $00-$7F  Program code
    $80-$C7  Variables and constants
    $C8-$FF  Temporaries

Copyright (c) 2026 neander-sdk Contributors
"""

from neander_sdk.cpu import MEMORY_SIZE, BYTE_MASK
from neander_sdk.errors import ImageFormatError


class Memory:
    """
    Flat byte-addressable memory.

    Attributes:
        size: Number of bytes
    """

    def __init__(self, size: int = MEMORY_SIZE):
        if size <= 0:
            raise ValueError(f"memory size must be positive, got {size}")
        self.size = size
        self._data = bytearray(size)

    def __len__(self) -> int:
        return self.size

    def read(self, address: int) -> int:
        """Read the byte at address (wrapped)."""
        return self._data[address % self.size]

    def write(self, address: int, value: int) -> None:
        """Write a byte at address (wrapped). The value is truncated to 8 bits."""
        self._data[address % self.size] = value & BYTE_MASK

    def load(self, data: bytes, address: int = 0) -> None:
        """
        Copy data into memory starting at address.

        Raises:
            ImageFormatError: If data does not fit
        """
        if address < 0 or address + len(data) > self.size:
            raise ImageFormatError(
                f"{len(data)} bytes at ${address:02X} do not fit in {self.size} bytes of memory"
            )
        self._data[address:address + len(data)] = data

    def dump(self, start: int = 0, end: int = None) -> bytes:
        """Contents of [start, end); end defaults to the memory size."""
        end = self.size if end is None else end
        return bytes(self._data[start:end])

    def clear(self) -> None:
        """Fill memory with zeros."""
        self._data[:] = bytes(self.size)
