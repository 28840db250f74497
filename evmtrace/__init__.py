"""Trace types, geth and parity frames, a trace writer, and transfer and opcode inspectors for EVM execution."""

__version__ = "0.22.3"

__all__ = [
    "evm",
    "frames",
    "opcount",
    "primitives",
    "transfer",
    "types",
    "utils",
    "writer",
]