"""
Neander CPU Emulator
====================

Fetch/decode/execute model of the Neander accumulator machine.

Registers:
    AC  8-bit accumulator
    PC  program counter (wraps at the memory size)
    N   negative flag, bit 7 of the last flag-setting result
    Z   zero flag, set when the last flag-setting result was 0

Only LDA, ADD, OR, AND and NOT update N and Z. STA and the jumps leave
them alone, which the compiler relies on: a value is stored and then
tested with JN/JZ.

Execution Rules
---------------
- The opcode is the high nibble of the byte at PC.
- Instructions with an address read it from PC+1 and advance PC by 2.
- A taken branch loads PC with its operand; an untaken one advances by 2.
- HLT stops execution with PC still pointing at the HLT byte.
- A byte that is not a Neander opcode is skipped (PC+1), logged as a
  warning and counted as an anomaly.

Instrumentation:
    on_instruction(pc, opcode) -> bool is called before every instruction
    executed by ``execute``; returning False stops before the instruction.

Copyright (c) 2026 neander-sdk Contributors
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from neander_sdk.cpu import Opcode, BYTE_MASK, SIGN_BIT, get_instruction_info
from neander_sdk.emulator.memory import Memory


logger = logging.getLogger(__name__)


@dataclass
class CPUState:
    """
    Complete CPU state for snapshotting.

    Attributes:
        ac: Accumulator (0-255)
        pc: Program counter
        flag_n: Negative flag
        flag_z: Zero flag
        halted: True once HLT has executed
    """
    ac: int = 0
    pc: int = 0
    flag_n: bool = False
    flag_z: bool = False
    halted: bool = False


class NeanderCPU:
    """
    Neander CPU emulator with instrumentation support.

    Example:
        >>> cpu = NeanderCPU(memory)
        >>> executed = cpu.execute(1000)
        >>> print(f"AC=${cpu.ac:02X} PC=${cpu.pc:02X}")

    Attributes:
        memory: The memory the CPU executes from
        state: Register and flag values
        steps: Instructions executed since reset
        anomalies: Unknown opcodes encountered since reset
    """

    def __init__(self, memory: Memory):
        self.memory = memory
        self.state = CPUState()
        self.steps = 0
        self.anomalies = 0

        # on_instruction(pc, opcode) -> bool: return False to stop execution
        self.on_instruction: Optional[Callable[[int, int], bool]] = None

    # =========================================================================
    # Register Properties
    # =========================================================================

    @property
    def ac(self) -> int:
        return self.state.ac

    @ac.setter
    def ac(self, value: int) -> None:
        self.state.ac = value & BYTE_MASK

    @property
    def pc(self) -> int:
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value % self.memory.size

    @property
    def flag_n(self) -> bool:
        return self.state.flag_n

    @property
    def flag_z(self) -> bool:
        return self.state.flag_z

    @property
    def halted(self) -> bool:
        return self.state.halted

    def reset(self) -> None:
        """Clear registers and counters. Memory is left untouched."""
        self.state = CPUState()
        self.steps = 0
        self.anomalies = 0

    # =========================================================================
    # Main Execution Loop
    # =========================================================================

    def execute(self, max_steps: int = 0) -> int:
        """
        Execute instructions until HLT, the hook stops, or the budget ends.

        Args:
            max_steps: Maximum instructions to execute (0 = unlimited)

        Returns:
            Number of instructions executed by this call
        """
        executed = 0
        while not self.state.halted:
            if max_steps and executed >= max_steps:
                break

            if self.on_instruction:
                opcode = self.memory.read(self.pc)
                if not self.on_instruction(self.pc, opcode):
                    # Hook returned False - stop before executing
                    break

            self._execute_one()
            executed += 1

        return executed

    def step(self) -> int:
        """
        Execute exactly one instruction, bypassing the hook.

        Returns:
            The opcode executed (high nibble), or the raw byte if unknown
        """
        if self.state.halted:
            return Opcode.HLT
        return self._execute_one()

    # =========================================================================
    # Instruction Execution
    # =========================================================================

    def _set_flags(self, value: int) -> None:
        self.state.flag_n = (value & SIGN_BIT) != 0
        self.state.flag_z = value == 0

    def _execute_one(self) -> int:
        pc = self.pc
        raw = self.memory.read(pc)
        self.steps += 1

        info = get_instruction_info(raw)
        if info is None:
            self.anomalies += 1
            logger.warning(f"unknown opcode ${raw:02X} at ${pc:02X}, skipping")
            self.pc = pc + 1
            return raw

        opcode = info.opcode
        operand = self.memory.read(pc + 1) if info.has_operand else 0
        next_pc = pc + info.size

        if opcode == Opcode.NOP:
            pass
        elif opcode == Opcode.STA:
            self.memory.write(operand, self.ac)
        elif opcode == Opcode.LDA:
            self.ac = self.memory.read(operand)
        elif opcode == Opcode.ADD:
            self.ac = self.ac + self.memory.read(operand)
        elif opcode == Opcode.OR:
            self.ac = self.ac | self.memory.read(operand)
        elif opcode == Opcode.AND:
            self.ac = self.ac & self.memory.read(operand)
        elif opcode == Opcode.NOT:
            self.ac = ~self.ac
        elif opcode == Opcode.JMP:
            next_pc = operand
        elif opcode == Opcode.JN:
            if self.state.flag_n:
                next_pc = operand
        elif opcode == Opcode.JZ:
            if self.state.flag_z:
                next_pc = operand
        elif opcode == Opcode.HLT:
            self.state.halted = True
            next_pc = pc

        if info.updates_flags:
            self._set_flags(self.ac)
        self.pc = next_pc
        return opcode

    def __repr__(self) -> str:
        return (
            f"NeanderCPU(AC=${self.ac:02X}, PC=${self.pc:02X}, "
            f"N={int(self.flag_n)}, Z={int(self.flag_z)}, halted={self.halted})"
        )
