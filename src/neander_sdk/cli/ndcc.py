"""
ndcc - Neander Compiler Command-Line Interface
==============================================

Compiles a Neander source program to textual assembly.

Usage Examples
--------------
Basic compilation:
    $ ndcc program.txt

With output file:
    $ ndcc program.txt -o program.asm

Show the generated code with addresses:
    $ ndcc --listing program.txt

Full pipeline:
    $ ndcc program.txt && ndasm program.asm && ndemu program.bin
"""

import sys
from pathlib import Path
from typing import Optional

import click

from neander_sdk import __version__
from neander_sdk.compiler import Compiler
from neander_sdk.cli.errors import ExitCode, handle_cli_exception, setup_logging


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output assembly file (default: input.asm)",
)
@click.option(
    "--listing",
    is_flag=True,
    help="Print an address listing of the generated code",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="ndcc")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: bool,
    verbose: bool,
) -> None:
    """
    Compile a Neander source program.

    INPUT_FILE is the program source. The output is .DATA/.CODE assembly
    that ndasm turns into a memory image.

    \b
    Examples:
        ndcc prog.txt                # Outputs prog.asm
        ndcc prog.txt -o out.asm     # Specify output file
        ndcc --listing prog.txt      # Also print the code listing
    """
    setup_logging(verbose)

    if output is None:
        output = input_file.with_suffix(".asm")

    try:
        if verbose:
            click.echo(f"Compiling {input_file}...")

        result = Compiler().compile_file(str(input_file))

        for warning in result.warnings:
            click.echo(warning, err=True)

        if not result.success:
            for error in result.errors:
                click.echo(str(error), err=True)
            click.echo(
                f"{input_file}: compilation failed with {len(result.errors)} error(s)",
                err=True,
            )
            sys.exit(ExitCode.BUILD_ERROR)

        output.write_text(result.assembly, encoding="utf-8")

        if listing:
            click.echo(result.listing(), nl=False)

        if verbose:
            code_bytes = sum(i.size for i in result.instructions)
            click.echo(f"Program: {result.program_name}")
            click.echo(
                f"Generated {len(result.instructions)} instructions "
                f"({code_bytes} bytes), {len(result.symbols)} symbols"
            )

        click.echo(f"Compiled {input_file} -> {output}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Compilation")


if __name__ == "__main__":
    main()
