"""
ndasm - Neander Assembler Command-Line Interface
================================================

Encodes .DATA/.CODE assembly into a Neander memory image.

Usage Examples
--------------
Raw 256-byte image:
    $ ndasm program.asm

Neander simulator file:
    $ ndasm program.asm -f mem -o program.mem

Bit-text dump:
    $ ndasm program.asm -f bits
"""

from pathlib import Path
from typing import Optional

import click

from neander_sdk import __version__
from neander_sdk.assembler import Assembler, ImageFormat
from neander_sdk.cli.errors import handle_cli_exception, setup_logging


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output image file (default: input with the format's extension)",
)
@click.option(
    "-f", "--format", "fmt",
    type=click.Choice([f.value for f in ImageFormat], case_sensitive=False),
    default=ImageFormat.BIN.value,
    show_default=True,
    help="Image format: raw bytes, Neander .mem, or one line of bits per byte",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="ndasm")
def main(
    input_file: Path,
    output: Optional[Path],
    fmt: str,
    verbose: bool,
) -> None:
    """
    Assemble Neander assembly into a memory image.

    INPUT_FILE is a .DATA/.CODE assembly file such as ndcc produces.

    \b
    Examples:
        ndasm prog.asm               # Outputs prog.bin
        ndasm prog.asm -f mem        # Outputs prog.mem
        ndasm prog.asm -o out.bin    # Specify output file
    """
    setup_logging(verbose)
    image_format = ImageFormat(fmt.lower())

    if output is None:
        output = input_file.with_suffix(f".{image_format.value}")

    try:
        if verbose:
            click.echo(f"Assembling {input_file}...")

        asm = Assembler()
        asm.assemble_file(str(input_file))
        asm.write_image(str(output), image_format)

        if verbose:
            click.echo(f"Code: {asm.code_size} bytes")

        click.echo(f"Assembled {input_file} -> {output}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
