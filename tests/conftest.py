"""
Shared fixtures for the Neander SDK test suite.
"""

import pytest

from neander_sdk.assembler import Assembler
from neander_sdk.compiler import Compiler
from neander_sdk.emulator import Emulator, EmulatorConfig


def program(body: str, name: str = "test") -> str:
    """Wrap statements in a PROGRAM header and BEGIN/END."""
    return f'PROGRAM "{name}":\nBEGIN\n{body}\nEND\n'


@pytest.fixture
def run_program():
    """
    Compile, assemble and execute a program body.

    Returns a function (body, max_steps) -> (CompilerResult, Emulator, BreakEvent).
    """
    def _run(body: str, max_steps: int = 100_000):
        result = Compiler().compile_source(program(body), "<test>")
        result.raise_if_failed()
        image = Assembler().assemble_string(result.assembly)
        emu = Emulator(EmulatorConfig(max_steps=max_steps))
        emu.load_image(image)
        event = emu.run()
        return result, emu, event

    return _run
