"""
Memory Image Formats
====================

Readers and writers for the file formats a Neander memory image is
stored in.

Formats
-------
bin
    The raw image, one byte per memory cell.

mem
    The file format of the Neander simulator: the 4-byte header
    ``03 4E 44 52`` followed by every memory cell as a 16-bit
    little-endian word (high byte always 0). A 256-byte image gives a
    516-byte file.

bits
    Text, one line per memory cell with its eight bits written as
    ``0``/``1`` characters, most significant bit first.

Only ``bin`` and ``mem`` can be loaded back. ``load_image`` takes the
format explicitly, or recognizes a .mem file by its header and exact
length.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from neander_sdk.cpu import MEMORY_SIZE
from neander_sdk.errors import ImageFormatError


logger = logging.getLogger(__name__)

MEM_HEADER = bytes([0x03, 0x4E, 0x44, 0x52])


class ImageFormat(Enum):
    """Output formats for a memory image."""
    BIN = "bin"
    MEM = "mem"
    BITS = "bits"


def to_mem(image: bytes) -> bytes:
    """Encode an image in the Neander simulator .mem format."""
    out = bytearray(MEM_HEADER)
    for value in image:
        out.append(value)
        out.append(0)
    return bytes(out)


def to_bits(image: bytes) -> bytes:
    """Encode an image as bit-text, one line per byte."""
    return "".join(f"{value:08b}\n" for value in image).encode("ascii")


def encode_image(image: bytes, fmt: ImageFormat = ImageFormat.BIN) -> bytes:
    """Encode an image in the requested format."""
    if fmt == ImageFormat.MEM:
        return to_mem(image)
    if fmt == ImageFormat.BITS:
        return to_bits(image)
    return bytes(image)


def write_image(filepath: str, image: bytes, fmt: ImageFormat = ImageFormat.BIN) -> None:
    """Write an image to a file in the requested format."""
    data = encode_image(image, fmt)
    Path(filepath).write_bytes(data)
    logger.debug(f"wrote {len(data)} bytes ({fmt.value}) to {filepath}")


def load_image(data: bytes, memory_size: int = MEMORY_SIZE,
               fmt: Optional[ImageFormat] = None) -> bytes:
    """
    Decode a raw or .mem image and pad it to ``memory_size`` bytes.

    Without an explicit fmt, data is taken as .mem only when it starts
    with the .mem header and has exactly the length of a full .mem file
    (516 bytes for 256 cells). A raw image that happens to begin with the
    header bytes is still loaded as raw.

    Raises:
        ImageFormatError: If a .mem payload has odd length, fmt is BITS,
                          or the image is larger than memory
    """
    if fmt is None:
        fmt = ImageFormat.MEM if is_mem_image(data, memory_size) else ImageFormat.BIN
    if fmt == ImageFormat.BITS:
        raise ImageFormatError("bits images cannot be loaded")

    if fmt == ImageFormat.MEM:
        if not data.startswith(MEM_HEADER):
            raise ImageFormatError(".mem image does not start with the 03 4E 44 52 header")
        payload = data[len(MEM_HEADER):]
        if len(payload) % 2:
            raise ImageFormatError(".mem image has an odd number of payload bytes")
        data = payload[0::2]

    if len(data) > memory_size:
        raise ImageFormatError(
            f"image is {len(data)} bytes but memory holds only {memory_size}"
        )
    return bytes(data) + bytes(memory_size - len(data))


def is_mem_image(data: bytes, memory_size: int = MEMORY_SIZE) -> bool:
    """True if data has the header and exact length of a full .mem file."""
    return (data.startswith(MEM_HEADER)
            and len(data) == len(MEM_HEADER) + 2 * memory_size)


def read_image(filepath: str, memory_size: int = MEMORY_SIZE,
               fmt: Optional[ImageFormat] = None) -> bytes:
    """
    Read an image file (raw or .mem).

    Raises:
        FileNotFoundError: If the file does not exist
        ImageFormatError: If the file is not a valid image
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {filepath}")
    return load_image(path.read_bytes(), memory_size, fmt)
