"""
ndemu - Neander Emulator Command-Line Interface
===============================================

Runs a Neander memory image and prints the final machine state.

Usage Examples
--------------
Run with the default budget of 1000 instructions:
    $ ndemu program.bin

Run until HLT, however long it takes:
    $ ndemu program.mem --steps 0

Trace every instruction and dump the temporaries:
    $ ndemu -v program.bin --dump 0xC8:0x100

Stop at an address:
    $ ndemu program.bin -b 0x1A
"""

import sys
from pathlib import Path
from typing import Optional

import click

from neander_sdk import __version__
from neander_sdk.assembler import ImageFormat
from neander_sdk.cli.errors import ExitCode, handle_cli_exception, setup_logging
from neander_sdk.disassembler import NeanderDisassembler, code_length
from neander_sdk.emulator import BreakReason, Emulator, EmulatorConfig


def parse_number(text: str) -> int:
    """Parse '0x80', '$80' or '128'."""
    text = text.strip()
    if text.lower().startswith("0x"):
        return int(text[2:], 16)
    if text.startswith("$"):
        return int(text[1:], 16)
    return int(text, 10)


class AddressType(click.ParamType):
    """Click parameter accepting decimal, 0x or $ prefixed addresses."""
    name = "address"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return parse_number(value)
        except ValueError:
            self.fail(f"{value!r} is not a valid address", param, ctx)


class RangeType(click.ParamType):
    """Click parameter for START:END address ranges (END exclusive)."""
    name = "range"

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        try:
            start, end = value.split(":", 1)
            return parse_number(start), parse_number(end)
        except ValueError:
            self.fail(f"{value!r} is not a START:END range", param, ctx)


@click.command()
@click.argument(
    "image_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-f", "--format", "fmt",
    type=click.Choice(["auto", "bin", "mem"], case_sensitive=False),
    default="auto",
    show_default=True,
    help="Image format (auto detects a full .mem file by header and size)",
)
@click.option(
    "-s", "--steps",
    type=click.IntRange(min=0),
    default=EmulatorConfig.max_steps,
    show_default=True,
    help="Maximum instructions to execute (0 = unlimited)",
)
@click.option(
    "--dump",
    type=RangeType(),
    default="0x80:0x90",
    show_default=True,
    help="Memory range to print after execution, START:END",
)
@click.option(
    "-b", "--break", "breakpoints",
    type=AddressType(),
    multiple=True,
    help="Stop when PC reaches ADDRESS (can be repeated)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Print the program and trace every instruction",
)
@click.version_option(version=__version__, prog_name="ndemu")
def main(
    image_file: Path,
    fmt: str,
    steps: int,
    dump: tuple[int, int],
    breakpoints: tuple[int, ...],
    verbose: bool,
) -> None:
    """
    Run a Neander memory image.

    IMAGE_FILE is a raw 256-byte image or a Neander .mem file.

    \b
    Examples:
        ndemu prog.bin                 # Run, print AC PC N Z and $80-$8F
        ndemu prog.bin -s 0            # No step limit
        ndemu prog.bin --dump 0:0x20   # Dump the code area instead
        ndemu -v prog.bin              # Trace execution
        ndemu -f bin raw.bin           # Never treat the file as .mem
    """
    setup_logging(verbose)

    try:
        emu = Emulator(EmulatorConfig(max_steps=steps))
        image_format = None if fmt.lower() == "auto" else ImageFormat(fmt.lower())
        emu.load_file(image_file, image_format)
        for address in breakpoints:
            emu.add_breakpoint(address)

        if verbose:
            image = emu.memory.dump()
            click.echo("Program:")
            click.echo(NeanderDisassembler().disassemble_to_text(
                image, end_address=code_length(image)
            ))
            click.echo("Trace:")
            emu.on_trace = click.echo

        event = emu.run()

        click.echo(str(event))
        regs = emu.registers
        click.echo(
            f"AC: 0x{regs['ac']:02X}  PC: 0x{regs['pc']:02X}  "
            f"N: {int(regs['n'])}  Z: {int(regs['z'])}"
        )
        if emu.anomalies:
            click.echo(f"Skipped {emu.anomalies} unknown opcode(s)", err=True)
        for line in emu.dump_memory(*dump):
            click.echo(line)

        if event.reason == BreakReason.MAX_STEPS:
            sys.exit(ExitCode.STEP_LIMIT)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Emulator")


if __name__ == "__main__":
    main()
