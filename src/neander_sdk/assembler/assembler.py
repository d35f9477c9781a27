"""
Neander Assembler (Encoder)
===========================

This module turns the textual assembly produced by the compiler into a
flat memory image for the Neander machine.

Source Format
-------------
::

    .DATA
    0x80 0x0        ; address value
    0x81 0x1
    .CODE
    LDA 0x80        ; mnemonic [address]
    NOT
    HLT

- ``.DATA`` lines write ``value`` at ``address``.
- ``.CODE`` lines are encoded one after another starting at address 0.
  NOP, NOT and HLT take one byte, every other instruction takes two.
- Blank lines and everything after ';' are ignored.
- Mnemonics and section names are case-insensitive.
- Numbers are hexadecimal with a ``0x`` prefix, or decimal.

There are no labels or expressions: jump operands are plain addresses.

Example Usage
-------------
>>> from neander_sdk.assembler import Assembler
>>> asm = Assembler()
>>> image = asm.assemble_string('''
... .DATA
... 0x80 0x2A
... .CODE
... LDA 0x80
... HLT
... ''')
>>> image[:3].hex()
'2080f0'
>>> image[0x80]
42
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from neander_sdk.cpu import MEMORY_SIZE, BYTE_MASK, lookup_mnemonic
from neander_sdk.errors import AssemblerError, AssemblySyntaxError, SourceLocation
from neander_sdk.assembler.formats import ImageFormat, write_image


logger = logging.getLogger(__name__)


@dataclass
class _DataEntry:
    address: int
    value: int
    location: SourceLocation
    source_line: str


class Assembler:
    """
    Neander assembler.

    Attributes:
        memory_size: Size of the produced image in bytes
    """

    DATA_SECTION = ".DATA"
    CODE_SECTION = ".CODE"
    COMMENT_CHAR = ";"

    def __init__(self, memory_size: int = MEMORY_SIZE):
        self.memory_size = memory_size
        self._image: Optional[bytes] = None
        self._code_size = 0

    @property
    def code_size(self) -> int:
        """Bytes of code produced by the last assembly."""
        return self._code_size

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source text into a memory image.

        Returns:
            Image of ``memory_size`` bytes

        Raises:
            AssemblySyntaxError: On a malformed line
            AssemblerError: If code and data overlap
        """
        image = bytearray(self.memory_size)
        data: list[_DataEntry] = []
        section: Optional[str] = None
        pc = 0

        for line_no, raw_line in enumerate(source.splitlines(), start=1):
            text = raw_line.split(self.COMMENT_CHAR, 1)[0].strip()
            if not text:
                continue
            column = raw_line.find(text) + 1
            location = SourceLocation(filename, line_no, column)

            if text.upper() in (self.DATA_SECTION, self.CODE_SECTION):
                section = text.upper()
                continue

            fields = text.split()
            if section == self.DATA_SECTION:
                data.append(self._parse_data(fields, location, raw_line))
            elif section == self.CODE_SECTION:
                encoded = self._encode_instruction(fields, location, raw_line)
                if pc + len(encoded) > self.memory_size:
                    raise AssemblerError(
                        f"code does not fit in {self.memory_size} bytes of memory",
                        location, source_line=raw_line,
                    )
                image[pc:pc + len(encoded)] = encoded
                pc += len(encoded)
            else:
                raise AssemblySyntaxError(
                    "line outside of a section",
                    location,
                    hint=f"start the file with {self.DATA_SECTION} or {self.CODE_SECTION}",
                    source_line=raw_line,
                )

        for entry in data:
            if entry.address < pc:
                raise AssemblerError(
                    f"data at 0x{entry.address:X} overlaps code (code ends at 0x{pc:X})",
                    entry.location,
                    source_line=entry.source_line,
                )
            image[entry.address] = entry.value

        self._code_size = pc
        self._image = bytes(image)
        logger.debug(f"assembled {filename}: {pc} code bytes, {len(data)} data cells")
        return self._image

    def assemble_file(self, filepath: str) -> bytes:
        """
        Assemble a source file into a memory image.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")
        return self.assemble_string(path.read_text(encoding="utf-8"), str(filepath))

    def get_image(self) -> bytes:
        """Image produced by the last assembly."""
        if self._image is None:
            raise AssemblerError("nothing has been assembled yet")
        return self._image

    def write_image(self, filepath: str, fmt: ImageFormat = ImageFormat.BIN) -> None:
        """Write the last image to a file in the given format."""
        write_image(filepath, self.get_image(), fmt)

    # =========================================================================
    # Line Parsing
    # =========================================================================

    def _parse_data(
        self, fields: list[str], location: SourceLocation, source_line: str
    ) -> _DataEntry:
        if len(fields) != 2:
            raise AssemblySyntaxError(
                "data lines need an address and a value",
                location, hint="e.g. 0x80 0x2A", source_line=source_line,
            )
        address = self._parse_address(fields[0], location, source_line)
        value = self._parse_number(fields[1], location, source_line)
        if not 0 <= value <= BYTE_MASK:
            raise AssemblySyntaxError(
                f"value {fields[1]} does not fit in a byte",
                location, source_line=source_line,
            )
        return _DataEntry(address, value, location, source_line)

    def _encode_instruction(
        self, fields: list[str], location: SourceLocation, source_line: str
    ) -> bytes:
        info = lookup_mnemonic(fields[0])
        if info is None:
            raise AssemblySyntaxError(
                f"unknown mnemonic '{fields[0]}'", location, source_line=source_line
            )

        if not info.has_operand:
            if len(fields) != 1:
                raise AssemblySyntaxError(
                    f"{info.mnemonic} takes no operand", location, source_line=source_line
                )
            return bytes([int(info.opcode)])

        if len(fields) != 2:
            raise AssemblySyntaxError(
                f"{info.mnemonic} requires one address operand",
                location, source_line=source_line,
            )
        address = self._parse_address(fields[1], location, source_line)
        return bytes([int(info.opcode), address])

    def _parse_address(self, text: str, location: SourceLocation, source_line: str) -> int:
        address = self._parse_number(text, location, source_line)
        if not 0 <= address < self.memory_size:
            raise AssemblySyntaxError(
                f"address {text} is outside memory (0x0-0x{self.memory_size - 1:X})",
                location, source_line=source_line,
            )
        return address

    @staticmethod
    def _parse_number(text: str, location: SourceLocation, source_line: str) -> int:
        try:
            if text.lower().startswith("0x"):
                return int(text[2:], 16)
            return int(text, 10)
        except ValueError:
            raise AssemblySyntaxError(
                f"invalid number '{text}'",
                location,
                hint="use decimal or 0x-prefixed hexadecimal",
                source_line=source_line,
            ) from None


def assemble(source: str, filename: str = "<input>", memory_size: int = MEMORY_SIZE) -> bytes:
    """Assemble source text into a memory image."""
    return Assembler(memory_size).assemble_string(source, filename)
