"""An inspector that counts executed opcodes."""

from __future__ import annotations

from typing import Any


class OpcodeCountInspector:
    """Counts every step the interpreter takes."""

    def __init__(self) -> None:
        self._count = 0

    def step(self, interp: Any, context: Any) -> None:
        """Record one executed opcode."""
        self._count += 1

    def count(self) -> int:
        """Number of opcodes seen so far."""
        return self._count