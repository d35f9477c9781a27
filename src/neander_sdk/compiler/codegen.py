"""
Neander Code Generator
======================

This module turns the parser's requests into Neander instructions. There
is no AST: the parser calls the generator as it recognizes each grammar
production, and every routine leaves its result in a memory cell whose
address it returns.

Primitives
----------
The machine only offers load, store, add, bitwise complement, three jumps
and halt (plus OR/AND, unused here). Everything else is synthesized:

- negation:        NOT, ADD _one                     (two's complement)
- subtraction:     left + (-right)
- multiplication:  repeated addition driven by a down-counter
- division:        repeated subtraction until the difference goes negative

Jump Targets and Back-patching
------------------------------
Instructions are 1 byte (NOP, NOT, HLT) or 2 bytes (everything that takes
an address), so an instruction's position in the list is not its machine
address. The InstructionBuffer keeps the byte address of every emitted
instruction and all jump targets are resolved through it.

A loop exit is not known when its conditional jump is emitted. The jump is
emitted with no operand, its handle (list index) is remembered, and once
the loop body is complete the handle is patched with the address that
follows the loop::

    exit_jump = self.emit_jz()          # operand unresolved
    ...                                 # loop body
    self.emit_jump(loop_start)
    self.code.patch(exit_jump, operand=self.code.next_address)

A patch always targets the instruction recorded at emission time, and may
never change its encoded size, so addresses already handed out stay valid.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from neander_sdk.cpu import Opcode, INSTRUCTION_TABLE, BYTE_MASK, MEMORY_SIZE
from neander_sdk.compiler.errors import CodeGenError, ResourceExhaustedError
from neander_sdk.compiler.symbols import SymbolTable, TempPool, ZERO, ONE, NEG_ONE


logger = logging.getLogger(__name__)


# =============================================================================
# Instructions
# =============================================================================

@dataclass
class Instruction:
    """
    One emitted machine instruction.

    Attributes:
        opcode: The operation
        operand: Address operand, None when absent or not yet resolved
        index: Position in the emitted sequence (the instruction's handle)
        address: Byte address of the instruction in code memory
    """
    opcode: Opcode
    operand: Optional[int]
    index: int
    address: int

    @property
    def size(self) -> int:
        """Encoded size in bytes."""
        return INSTRUCTION_TABLE[self.opcode].size

    @property
    def is_resolved(self) -> bool:
        """False for an operand-taking instruction still waiting for a patch."""
        return not INSTRUCTION_TABLE[self.opcode].has_operand or self.operand is not None

    def to_assembly(self) -> str:
        """Format as a .CODE line, e.g. 'LDA 0x80' or 'NOT'."""
        if not INSTRUCTION_TABLE[self.opcode].has_operand:
            return self.opcode.name
        if self.operand is None:
            raise CodeGenError(
                f"unresolved jump target in instruction {self.index} ({self.opcode.name})"
            )
        return f"{self.opcode.name} 0x{self.operand:X}"

    def encode(self) -> bytes:
        """Machine bytes for this instruction."""
        if INSTRUCTION_TABLE[self.opcode].has_operand:
            if self.operand is None:
                raise CodeGenError(
                    f"unresolved jump target in instruction {self.index} ({self.opcode.name})"
                )
            return bytes([int(self.opcode), self.operand & BYTE_MASK])
        return bytes([int(self.opcode)])


class InstructionBuffer:
    """
    Growable instruction list with stable handles and byte addressing.

    ``emit`` returns the new instruction's index, which stays valid for the
    whole compilation. ``patch`` rewrites an instruction in place through
    that handle.

    Attributes:
        base_address: Byte address of the first instruction
        max_instructions: Capacity of the buffer
    """

    def __init__(self, base_address: int = 0x00, max_instructions: int = 1000):
        self.base_address = base_address
        self.max_instructions = max_instructions
        self._instructions: list[Instruction] = []
        self._next_address = base_address

    def __len__(self) -> int:
        return len(self._instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions)

    def __getitem__(self, handle: int) -> Instruction:
        return self._instructions[handle]

    @property
    def next_address(self) -> int:
        """Byte address the next emitted instruction will occupy."""
        return self._next_address

    @property
    def size_bytes(self) -> int:
        """Total encoded size of the code emitted so far."""
        return self._next_address - self.base_address

    def address_of(self, handle: int) -> int:
        """Byte address of the instruction with the given handle."""
        return self._get(handle).address

    def emit(self, opcode: Opcode, operand: Optional[int] = None) -> int:
        """
        Append an instruction and return its handle.

        Branches may be emitted without an operand and patched later;
        any other operand-taking instruction needs its operand now.

        Raises:
            ResourceExhaustedError: If the buffer is full
            CodeGenError: If the operand does not fit the opcode
        """
        info = INSTRUCTION_TABLE[opcode]
        if len(self._instructions) >= self.max_instructions:
            raise ResourceExhaustedError("instructions", self.max_instructions)
        if not info.has_operand and operand is not None:
            raise CodeGenError(f"{opcode.name} takes no operand")
        if info.has_operand and operand is None and not info.is_branch:
            raise CodeGenError(f"{opcode.name} requires an address operand")

        handle = len(self._instructions)
        self._instructions.append(Instruction(opcode, operand, handle, self._next_address))
        self._next_address += info.size
        return handle

    def patch(
        self,
        handle: int,
        opcode: Optional[Opcode] = None,
        operand: Optional[int] = None,
    ) -> None:
        """
        Overwrite the opcode and/or operand of an emitted instruction.

        Raises:
            CodeGenError: If the handle is invalid or the new opcode has a
                          different encoded size
        """
        instruction = self._get(handle)
        if opcode is not None and opcode != instruction.opcode:
            if INSTRUCTION_TABLE[opcode].size != instruction.size:
                raise CodeGenError(
                    f"cannot patch {instruction.opcode.name} at {handle} into "
                    f"{opcode.name}: encoded size would change"
                )
            instruction.opcode = opcode
        if operand is not None:
            if not INSTRUCTION_TABLE[instruction.opcode].has_operand:
                raise CodeGenError(f"{instruction.opcode.name} takes no operand")
            instruction.operand = operand
        logger.debug(
            f"patched #{handle} at ${instruction.address:02X}: {instruction.opcode.name} "
            f"{'' if instruction.operand is None else f'${instruction.operand:02X}'}"
        )

    def unresolved(self) -> list[int]:
        """Handles of instructions whose operand is still missing."""
        return [i.index for i in self._instructions if not i.is_resolved]

    def encode(self) -> bytes:
        """Machine code for the whole buffer."""
        return b"".join(i.encode() for i in self._instructions)

    def _get(self, handle: int) -> Instruction:
        if not 0 <= handle < len(self._instructions):
            raise CodeGenError(f"invalid instruction handle {handle}")
        return self._instructions[handle]


# =============================================================================
# Compilation Unit
# =============================================================================

@dataclass
class CompilationUnit:
    """
    All mutable state of one compilation.

    A fresh unit is created for every compilation and passed by reference
    through parser and generator, so independent compilations never share
    tables.
    """
    symbols: SymbolTable
    temps: TempPool
    code: InstructionBuffer
    program_name: Optional[str] = None
    data_base: int = 0x80
    memory_size: int = MEMORY_SIZE

    @classmethod
    def create(
        cls,
        data_base: int = 0x80,
        temp_base: int = 0xC8,
        code_base: int = 0x00,
        memory_size: int = MEMORY_SIZE,
        max_symbols: int = 100,
        max_instructions: int = 1000,
    ) -> "CompilationUnit":
        return cls(
            symbols=SymbolTable(data_base, temp_base, max_symbols),
            temps=TempPool(temp_base, memory_size),
            code=InstructionBuffer(code_base, max_instructions),
            data_base=data_base,
            memory_size=memory_size,
        )

    def to_assembly(self) -> str:
        """
        Render the unit as textual assembly.

        Format::

            .DATA
            0x80 0x0
            .CODE
            LDA 0x80
            HLT
        """
        lines = [".DATA"]
        for symbol in self.symbols:
            lines.append(f"0x{symbol.address:X} 0x{symbol.value:X}")
        lines.append(".CODE")
        for instruction in self.code:
            lines.append(instruction.to_assembly())
        return "\n".join(lines) + "\n"

    def to_image(self) -> bytes:
        """Flat memory image: code from the code base, symbols at their addresses."""
        image = bytearray(self.memory_size)
        code = self.code.encode()
        base = self.code.base_address
        image[base:base + len(code)] = code
        for symbol in self.symbols:
            image[symbol.address] = symbol.value & BYTE_MASK
        return bytes(image)


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Emits Neander code into a CompilationUnit.

    Composite routines take the address of their result cell explicitly;
    the parser decides when temporaries are allocated.

    Example:
        unit = CompilationUnit.create()
        gen = CodeGenerator(unit)
        a = gen.copy_to(unit.symbols.constant(6).address, gen.new_temp())
        b = gen.copy_to(unit.symbols.constant(7).address, gen.new_temp())
        product = gen.multiply(a, b, gen.new_temp())
        gen.finish()
    """

    def __init__(self, unit: CompilationUnit):
        self.unit = unit
        self.code = unit.code

        # Seed the constants every synthesis routine relies on, in a fixed
        # order so they always get the first data addresses.
        self._zero = unit.symbols.seed(ZERO, 0).address
        self._one = unit.symbols.seed(ONE, 1).address
        self._neg_one = unit.symbols.seed(NEG_ONE, 0xFF).address

    # =========================================================================
    # Storage
    # =========================================================================

    def new_temp(self) -> int:
        """Allocate a fresh temporary cell."""
        return self.unit.temps.allocate()

    # =========================================================================
    # Primitive Emitters
    # =========================================================================

    def emit_load(self, address: int) -> int:
        return self.code.emit(Opcode.LDA, address)

    def emit_store(self, address: int) -> int:
        return self.code.emit(Opcode.STA, address)

    def emit_add(self, address: int) -> int:
        return self.code.emit(Opcode.ADD, address)

    def emit_not(self) -> int:
        return self.code.emit(Opcode.NOT)

    def emit_jump(self, target: Optional[int] = None) -> int:
        return self.code.emit(Opcode.JMP, target)

    def emit_jn(self, target: Optional[int] = None) -> int:
        return self.code.emit(Opcode.JN, target)

    def emit_jz(self, target: Optional[int] = None) -> int:
        return self.code.emit(Opcode.JZ, target)

    def emit_halt(self) -> int:
        return self.code.emit(Opcode.HLT)

    def resolve_here(self, handle: int) -> None:
        """Back-patch a forward jump to the next instruction's address."""
        self.code.patch(handle, operand=self.code.next_address)

    # =========================================================================
    # Composite Operations
    # =========================================================================

    def copy_to(self, source: int, result: int) -> int:
        """result <- source."""
        self.emit_load(source)
        self.emit_store(result)
        return result

    def negate_in_place(self, address: int) -> int:
        """cell <- -cell (two's complement)."""
        self.emit_load(address)
        self.emit_not()
        self.emit_add(self._one)
        self.emit_store(address)
        return address

    def negate(self, source: int, result: int) -> int:
        """result <- -source."""
        self.emit_load(source)
        self.emit_not()
        self.emit_add(self._one)
        self.emit_store(result)
        return result

    def add(self, left: int, right: int, result: int) -> int:
        """result <- left + right."""
        self.emit_load(left)
        self.emit_add(right)
        self.emit_store(result)
        return result

    def subtract(self, left: int, right: int, result: int) -> int:
        """
        result <- left - right.

        The right operand cell is negated in place; it always holds a
        temporary, never a symbol.
        """
        self.negate_in_place(right)
        return self.add(left, right, result)

    def multiply(self, left: int, right: int, result: int) -> int:
        """
        result <- left * right (mod 256) by repeated addition.

        Generated code::

                  LDA _zero
                  STA result
                  LDA left
                  STA counter
            loop: LDA counter
                  JZ  exit
                  LDA result
                  ADD right
                  STA result
                  LDA counter
                  ADD _neg_one
                  STA counter
                  JMP loop
            exit:
        """
        counter = self.new_temp()

        self.copy_to(self._zero, result)
        self.copy_to(left, counter)

        loop_start = self.code.next_address
        self.emit_load(counter)
        exit_jump = self.emit_jz()

        self.add(result, right, result)
        self.add(counter, self._neg_one, counter)
        self.emit_jump(loop_start)

        self.resolve_here(exit_jump)
        return result

    def divide(self, dividend: int, divisor: int, result: int) -> int:
        """
        result <- dividend / divisor (floor) by repeated subtraction.

        The trial difference ``remainder - divisor`` is formed as
        ``-(-remainder + divisor)``. While it is not negative it becomes the
        new remainder and the quotient grows by one. A zero divisor is not
        checked: the loop then only ends when the step budget runs out.

        Generated code::

                  LDA _zero
                  STA result
                  LDA dividend
                  STA remainder
            loop: LDA remainder
                  NOT
                  ADD _one
                  ADD divisor
                  NOT
                  ADD _one
                  STA scratch
                  JN  exit
                  STA remainder
                  LDA result
                  ADD _one
                  STA result
                  JMP loop
            exit:
        """
        remainder = self.new_temp()
        scratch = self.new_temp()

        self.copy_to(self._zero, result)
        self.copy_to(dividend, remainder)

        loop_start = self.code.next_address
        self.emit_load(remainder)
        self.emit_not()
        self.emit_add(self._one)
        self.emit_add(divisor)
        self.emit_not()
        self.emit_add(self._one)
        # STA leaves the flags of the subtraction intact for JN
        self.emit_store(scratch)
        exit_jump = self.emit_jn()
        self.emit_store(remainder)

        self.add(result, self._one, result)
        self.emit_jump(loop_start)

        self.resolve_here(exit_jump)
        return result

    # =========================================================================
    # Finalization
    # =========================================================================

    def finish(self) -> None:
        """
        Append the terminating HLT and check the code fits below the data.

        Raises:
            CodeGenError: If a forward jump was never resolved
            ResourceExhaustedError: If the code would overlap the data region
        """
        self.emit_halt()

        pending = self.code.unresolved()
        if pending:
            raise CodeGenError(f"unresolved jump targets at instructions {pending}")

        if self.code.next_address > self.unit.data_base:
            raise ResourceExhaustedError(
                "code bytes",
                self.unit.data_base - self.code.base_address,
                hint=f"generated code needs {self.code.size_bytes} bytes and would "
                     f"overlap data at ${self.unit.data_base:02X}",
            )
