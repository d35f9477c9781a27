"""
Neander SDK Command-Line Interface
==================================

This package provides command-line tools for the Neander SDK:

- **ndcc**: compiler (source → .DATA/.CODE assembly)
- **ndasm**: assembler (assembly → memory image)
- **ndemu**: emulator (runs a memory image)

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["ndcc", "ndasm", "ndemu"]
