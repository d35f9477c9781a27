"""
Breakpoint System for the Neander Emulator
==========================================

PC breakpoints and single-step support, connected to the CPU through its
on_instruction hook. The BreakpointManager records why execution stopped
as a BreakEvent.

Example usage:

    >>> from neander_sdk.emulator import Emulator, BreakReason
    >>> emu = Emulator()
    >>> emu.add_breakpoint(0x0A)
    >>> event = emu.run()
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Hit breakpoint at ${event.address:02X}")

Copyright (c) 2026 neander-sdk Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from .cpu import NeanderCPU


class BreakReason(Enum):
    """
    Enumeration of reasons why execution stopped.

    Used in BreakEvent to indicate what triggered the break.
    """
    NONE = auto()           # No specific reason
    HALTED = auto()         # HLT executed
    PC_BREAKPOINT = auto()  # PC reached a breakpoint address
    STEP = auto()           # Single-step mode
    MAX_STEPS = auto()      # Step budget exhausted


@dataclass
class BreakEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        address: PC at the time of the stop
        message: Human-readable description
    """
    reason: BreakReason
    address: Optional[int] = None
    message: str = ""

    def __str__(self) -> str:
        if self.message:
            return self.message
        match self.reason:
            case BreakReason.HALTED:
                return "Halted"
            case BreakReason.PC_BREAKPOINT:
                return f"Breakpoint at ${self.address:02X}" if self.address is not None else "Breakpoint"
            case BreakReason.STEP:
                return "Single step"
            case BreakReason.MAX_STEPS:
                return "Maximum steps reached"
            case _:
                return "Unknown"


class BreakpointManager:
    """
    Manages PC breakpoints and step mode.

    Example:
        >>> mgr = BreakpointManager()
        >>> mgr.add_breakpoint(0x10)
        >>> cpu.on_instruction = lambda pc, op: mgr.check_instruction(cpu, pc, op)
    """

    def __init__(self):
        self._pc_breakpoints: Set[int] = set()
        self._last_event: Optional[BreakEvent] = None
        self._step_mode: bool = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def last_event(self) -> Optional[BreakEvent]:
        """Get the last break event that occurred."""
        return self._last_event

    @property
    def step_mode(self) -> bool:
        return self._step_mode

    @step_mode.setter
    def step_mode(self, value: bool) -> None:
        self._step_mode = value

    @property
    def breakpoint_count(self) -> int:
        return len(self._pc_breakpoints)

    # =========================================================================
    # PC Breakpoints
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """
        Add PC breakpoint at address.

        Execution stops when PC reaches this address, before the
        instruction there is executed.
        """
        self._pc_breakpoints.add(address & 0xFF)

    def remove_breakpoint(self, address: int) -> None:
        self._pc_breakpoints.discard(address & 0xFF)

    def has_breakpoint(self, address: int) -> bool:
        return (address & 0xFF) in self._pc_breakpoints

    def clear_breakpoints(self) -> None:
        """Remove all PC breakpoints."""
        self._pc_breakpoints.clear()

    def list_breakpoints(self) -> List[int]:
        """Sorted list of breakpoint addresses."""
        return sorted(self._pc_breakpoints)

    def clear_event(self) -> None:
        self._last_event = None

    # =========================================================================
    # Check Function (called by the CPU hook)
    # =========================================================================

    def check_instruction(self, cpu: "NeanderCPU", pc: int, opcode: int) -> bool:
        """
        Check if we should break before executing an instruction.

        Returns:
            True to continue execution, False to break
        """
        if self._step_mode:
            self._step_mode = False
            self._last_event = BreakEvent(
                BreakReason.STEP,
                address=pc,
                message=f"Step at ${pc:02X}",
            )
            return False

        if pc in self._pc_breakpoints:
            self._last_event = BreakEvent(
                BreakReason.PC_BREAKPOINT,
                address=pc,
                message=f"Breakpoint at ${pc:02X}",
            )
            return False

        return True
