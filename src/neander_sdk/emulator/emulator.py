"""
Neander Emulator - Main Orchestrator
====================================

This module provides the `Emulator` class, the high-level interface for
loading a memory image, running it and inspecting the result.

The Emulator class:
- Creates the memory and CPU from an EmulatorConfig
- Loads raw or .mem images
- Runs under a step budget, or one instruction at a time
- Integrates PC breakpoints via the CPU's on_instruction hook
- Produces an optional per-instruction trace and memory dumps

Example usage:
    >>> from neander_sdk.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(max_steps=10_000))
    >>> emu.load_file("program.mem")
    >>> event = emu.run()
    >>> print(event, emu.registers)

Copyright (c) 2026 neander-sdk Contributors
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

from neander_sdk.assembler.formats import ImageFormat, load_image
from neander_sdk.cpu import MEMORY_SIZE
from neander_sdk.disassembler import NeanderDisassembler
from neander_sdk.errors import EmulatorError
from .breakpoints import BreakpointManager, BreakEvent, BreakReason
from .cpu import NeanderCPU, CPUState
from .memory import Memory


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmulatorConfig:
    """
    Configuration for emulator initialization.

    Attributes:
        memory_size: Bytes of machine memory
        max_steps: Default instruction budget for run() (0 = unlimited)

    Example:
        >>> config = EmulatorConfig(max_steps=0)   # run until HLT
    """
    memory_size: int = MEMORY_SIZE
    max_steps: int = 1000

    def __post_init__(self):
        if self.memory_size <= 0:
            raise EmulatorError(f"memory size must be positive, got {self.memory_size}")
        if self.max_steps < 0:
            raise EmulatorError(f"max_steps cannot be negative, got {self.max_steps}")


class Emulator:
    """
    Neander machine emulator.

    Attributes:
        config: Emulator configuration
        memory: Machine memory
        cpu: The CPU
        breakpoints: Breakpoint manager connected to the CPU hook
        on_trace: Optional callback receiving one line per executed instruction
    """

    def __init__(self, config: Optional[EmulatorConfig] = None):
        self.config = config or EmulatorConfig()
        self.memory = Memory(self.config.memory_size)
        self.cpu = NeanderCPU(self.memory)
        self.breakpoints = BreakpointManager()
        self.on_trace: Optional[Callable[[str], None]] = None
        self._disassembler = NeanderDisassembler()

        self.cpu.on_instruction = self._instruction_hook

    def _instruction_hook(self, pc: int, opcode: int) -> bool:
        """
        Internal hook called before each CPU instruction.

        Returns:
            True to continue execution, False to stop (breakpoint hit)
        """
        if not self.breakpoints.check_instruction(self.cpu, pc, opcode):
            return False
        if self.on_trace or logger.isEnabledFor(logging.DEBUG):
            self._trace(pc)
        return True

    def _trace(self, pc: int) -> None:
        instr = self._disassembler.disassemble_one(self.memory.dump(), pc)
        line = (
            f"${pc:02X}: {instr.text:<10} "
            f"AC=${self.cpu.ac:02X} N={int(self.cpu.flag_n)} Z={int(self.cpu.flag_z)}"
        )
        if self.on_trace:
            self.on_trace(line)
        else:
            logger.debug(line)

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load_image(self, data: bytes, fmt: Optional[ImageFormat] = None) -> None:
        """
        Load a raw or .mem image from address 0 and reset the CPU.

        fmt forces the image format; by default it is detected.

        Raises:
            ImageFormatError: If the image is malformed or too large
        """
        image = load_image(data, self.config.memory_size, fmt)
        self.memory.load(image)
        self.reset()
        logger.debug(f"loaded {len(data)}-byte image")

    def load_file(self, path: Union[str, Path], fmt: Optional[ImageFormat] = None) -> None:
        """
        Load an image file.

        Raises:
            FileNotFoundError: If the file does not exist
            ImageFormatError: If the image is malformed or too large
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Image file not found: {path}")
        self.load_image(path.read_bytes(), fmt)

    def load_bytes(self, data: bytes, address: int = 0) -> None:
        """Copy bytes into memory without resetting the CPU."""
        self.memory.load(data, address)

    def reset(self) -> None:
        """Reset CPU registers and counters. Memory is kept."""
        self.cpu.reset()
        self.breakpoints.clear_event()

    # =========================================================================
    # Execution
    # =========================================================================

    def step(self) -> BreakEvent:
        """
        Execute a single instruction, regardless of breakpoints.

        Returns:
            BreakEvent with reason HALTED if the instruction was HLT,
            STEP otherwise
        """
        if self.on_trace or logger.isEnabledFor(logging.DEBUG):
            self._trace(self.cpu.pc)
        self.cpu.step()
        if self.cpu.halted:
            return self._halted_event()
        return BreakEvent(
            BreakReason.STEP,
            address=self.cpu.pc,
            message=f"Step at ${self.cpu.pc:02X}",
        )

    def run(self, max_steps: Optional[int] = None) -> BreakEvent:
        """
        Run until HLT, a breakpoint, or the step budget is exhausted.

        Resuming from a breakpoint executes the instruction under it
        before breakpoints are checked again.

        Args:
            max_steps: Instruction budget (0 = unlimited); defaults to
                       the configured max_steps

        Returns:
            BreakEvent describing why execution stopped
        """
        budget = self.config.max_steps if max_steps is None else max_steps
        if self.cpu.halted:
            return self._halted_event()

        total = budget
        last = self.breakpoints.last_event
        self.breakpoints.clear_event()
        if last and last.reason == BreakReason.PC_BREAKPOINT and last.address == self.cpu.pc:
            self.step()
            if self.cpu.halted:
                return self._halted_event()
            if budget == 1:
                return self._max_steps_event(total)
            if budget:
                budget -= 1

        self.cpu.execute(budget)

        if self.cpu.halted:
            return self._halted_event()
        if self.breakpoints.last_event:
            return self.breakpoints.last_event
        return self._max_steps_event(total)

    def _halted_event(self) -> BreakEvent:
        return BreakEvent(
            BreakReason.HALTED,
            address=self.cpu.pc,
            message=f"Halted at ${self.cpu.pc:02X} after {self.cpu.steps} steps",
        )

    def _max_steps_event(self, budget: int) -> BreakEvent:
        logger.warning(f"step budget of {budget} exhausted at ${self.cpu.pc:02X}")
        return BreakEvent(
            BreakReason.MAX_STEPS,
            address=self.cpu.pc,
            message=f"Reached max steps ({budget})",
        )

    # =========================================================================
    # Breakpoints
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        self.breakpoints.add_breakpoint(address)

    def remove_breakpoint(self, address: int) -> None:
        self.breakpoints.remove_breakpoint(address)

    def clear_breakpoints(self) -> None:
        self.breakpoints.clear_breakpoints()

    # =========================================================================
    # Memory Access
    # =========================================================================

    def read_byte(self, address: int) -> int:
        return self.memory.read(address)

    def read_bytes(self, address: int, count: int) -> bytes:
        return bytes(self.memory.read(address + i) for i in range(count))

    def write_byte(self, address: int, value: int) -> None:
        self.memory.write(address, value)

    def dump_memory(self, start: int = 0x80, end: int = 0x90) -> List[str]:
        """
        Format memory [start, end) as lines of up to 16 bytes.

        Example line::

            $80: 00 01 FF 06 07 2A 00 00
        """
        if not 0 <= start <= end <= self.config.memory_size:
            raise EmulatorError(
                f"dump range ${start:02X}-${end:02X} is outside memory"
            )
        data = self.memory.dump(start, end)
        lines = []
        for offset in range(0, len(data), 16):
            chunk = data[offset:offset + 16]
            lines.append(f"${start + offset:02X}: " + " ".join(f"{b:02X}" for b in chunk))
        return lines

    def disassemble_at(self, address: int, count: int = 10) -> List[str]:
        """Disassemble instructions starting at address."""
        return [
            str(instr)
            for instr in self._disassembler.disassemble(self.memory.dump(), address, count)
        ]

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def registers(self) -> dict:
        """Current register values: ac, pc, n, z."""
        return {
            "ac": self.cpu.ac,
            "pc": self.cpu.pc,
            "n": self.cpu.flag_n,
            "z": self.cpu.flag_z,
        }

    @property
    def state(self) -> CPUState:
        return self.cpu.state

    @property
    def halted(self) -> bool:
        return self.cpu.halted

    @property
    def steps(self) -> int:
        """Instructions executed since the last reset."""
        return self.cpu.steps

    @property
    def anomalies(self) -> int:
        """Unknown opcodes encountered since the last reset."""
        return self.cpu.anomalies

    def __repr__(self) -> str:
        return (
            f"Emulator(pc=${self.cpu.pc:02X}, ac=${self.cpu.ac:02X}, "
            f"steps={self.cpu.steps}, halted={self.cpu.halted})"
        )
