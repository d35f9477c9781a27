"""
Neander Assembler Package
=========================

Encodes compiler output (.DATA/.CODE text) into memory images and reads
and writes those images in the bin, mem and bits formats.

Usage:
    from neander_sdk.assembler import Assembler, ImageFormat

    asm = Assembler()
    asm.assemble_file("program.asm")
    asm.write_image("program.mem", ImageFormat.MEM)
"""

from neander_sdk.assembler.assembler import Assembler, assemble
from neander_sdk.assembler.formats import (
    ImageFormat,
    MEM_HEADER,
    encode_image,
    is_mem_image,
    load_image,
    read_image,
    to_bits,
    to_mem,
    write_image,
)

__all__ = [
    "Assembler",
    "assemble",
    "ImageFormat",
    "MEM_HEADER",
    "encode_image",
    "is_mem_image",
    "load_image",
    "read_image",
    "to_bits",
    "to_mem",
    "write_image",
]
