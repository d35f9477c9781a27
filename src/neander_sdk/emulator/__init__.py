"""
Neander Emulator Package
========================

Executes Neander memory images: a fetch/decode/execute CPU over flat
256-byte memory, with a step budget, PC breakpoints and tracing.

Usage:
    from neander_sdk.emulator import Emulator, EmulatorConfig, BreakReason

    emu = Emulator(EmulatorConfig(max_steps=10_000))
    emu.load_file("program.bin")
    event = emu.run()
    if event.reason == BreakReason.HALTED:
        print(emu.registers["ac"])

Copyright (c) 2026 neander-sdk Contributors
"""

from .emulator import Emulator, EmulatorConfig
from .cpu import NeanderCPU, CPUState
from .memory import Memory
from .breakpoints import BreakpointManager, BreakEvent, BreakReason

__all__ = [
    "Emulator",
    "EmulatorConfig",
    "NeanderCPU",
    "CPUState",
    "Memory",
    "BreakpointManager",
    "BreakEvent",
    "BreakReason",
]
