"""Human-readable, tree-shaped rendering of recorded call traces."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, NamedTuple, Optional, Sequence, TextIO

from .evm import CallKind
from .primitives import checksum_address
from .types import (
    CallLog,
    CallTrace,
    CallTraceNode,
    InternalCallStep,
    LineStep,
    MemberKind,
    TraceMemberOrder,
)

CHEATCODE_ADDRESS = bytes.fromhex("7109709ECfa91a80626fF3989D68f67F5b1DD12D")

PIPE = "  │ "
EDGE = "  └─ "
BRANCH = "  ├─ "
CALL = "→ "
RETURN = "← "

_CALL_SUFFIXES = {
    CallKind.STATIC_CALL: " [staticcall]",
    CallKind.CALL_CODE: " [callcode]",
    CallKind.DELEGATE_CALL: " [delegatecall]",
    CallKind.AUTH_CALL: " [authcall]",
}


class ColorChoice(Enum):
    """Whether coloured output is wanted."""

    AUTO = "auto"
    ALWAYS_ANSI = "always-ansi"
    ALWAYS = "always"
    NEVER = "never"


def resolve_colors(choice: ColorChoice) -> bool:
    """Decide whether to colour output; AUTO colours only when stdout is a terminal."""
    if choice is ColorChoice.AUTO:
        isatty = getattr(sys.stdout, "isatty", None)
        return bool(isatty is not None and isatty())
    return choice is not ColorChoice.NEVER


class _Style(NamedTuple):
    on: str = ""
    off: str = ""


def _ansi(code: int) -> _Style:
    return _Style(f"\x1b[{code}m", "\x1b[0m")


_PLAIN = _Style()
_RED = _ansi(31)
_GREEN = _ansi(32)
_YELLOW = _ansi(33)
_BLUE = _ansi(34)
_CYAN = _ansi(36)


@dataclass
class TraceWriterConfig:
    """Settings of a TraceWriter."""

    use_colors: bool = field(default_factory=lambda: resolve_colors(ColorChoice.AUTO))
    color_cheatcodes: bool = False
    write_bytecodes: bool = False
    write_storage_changes: bool = False

    def with_color_choice(self, choice: ColorChoice) -> "TraceWriterConfig":
        """A copy of this configuration with colours resolved from ``choice``."""
        return replace(self, use_colors=resolve_colors(choice))


def num_or_hex(value: int) -> str:
    """Small numbers in decimal, others as a 32-byte hex word."""
    if value < 1_000_000:
        return str(value)
    return "0x" + value.to_bytes(32, "big").hex()


def _hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


class TraceWriter:
    """Writes call trace trees to a text stream."""

    def __init__(
        self,
        writer: TextIO,
        config: Optional[TraceWriterConfig] = None,
        indentation_level: int = 0,
    ) -> None:
        self.writer = writer
        self.config = config if config is not None else TraceWriterConfig()
        self.indentation_level = indentation_level

    def write_arena(self, nodes: Sequence[CallTraceNode]) -> None:
        """Write the tree rooted at the first node, then flush the stream."""
        self._write_node(nodes, 0)
        self.writer.flush()

    def _write(self, text: str) -> None:
        self.writer.write(text)

    def _write_item(self, nodes: Sequence[CallTraceNode], node_idx: int, item_idx: int) -> int:
        node = nodes[node_idx]
        member = node.ordering[item_idx]
        if member.kind is MemberKind.LOG:
            self._write_log(node.logs[member.index])
            return item_idx + 1
        if member.kind is MemberKind.CALL:
            self._write_node(nodes, node.children[member.index])
            return item_idx + 1
        return self._write_step(nodes, node_idx, item_idx, member.index)

    def _write_items_until(
        self,
        nodes: Sequence[CallTraceNode],
        node_idx: int,
        first_item_idx: int,
        stop: Callable[[int], bool],
    ) -> int:
        item_idx = first_item_idx
        while not stop(item_idx):
            item_idx = self._write_item(nodes, node_idx, item_idx)
        return item_idx

    def _write_items(self, nodes: Sequence[CallTraceNode], node_idx: int) -> None:
        count = len(nodes[node_idx].ordering)
        self._write_items_until(nodes, node_idx, 0, lambda idx: idx == count)

    def _write_node(self, nodes: Sequence[CallTraceNode], idx: int) -> None:
        node = nodes[idx]

        self._write_branch()
        self._write_trace_header(node.trace)
        self._write("\n")

        self.indentation_level += 1
        self._write_items(nodes, idx)

        if self.config.write_storage_changes:
            self._write_storage_changes(node)

        self._write_edge()
        self._write_trace_footer(node.trace)
        self._write("\n")

        self.indentation_level -= 1

    def _write_trace_header(self, trace: CallTrace) -> None:
        self._write(f"[{trace.gas_used}] ")

        kind_style = self._trace_kind_style()
        address = checksum_address(trace.address)
        label = trace.decoded.label

        if trace.kind.is_any_create():
            shown = label if label is not None else "<unknown>"
            self._write(f"{kind_style.on}{CALL}new{kind_style.off} {shown}@{address}")
            if self.config.write_bytecodes:
                self._write(f"({_hex(trace.data)})")
            return

        call_data = trace.decoded.call_data
        if call_data is not None:
            func_name = call_data.signature.split("(", 1)[0]
            inputs = ", ".join(call_data.args)
        elif len(trace.data) < 4:
            func_name, inputs = "fallback", bytes(trace.data).hex()
        else:
            func_name, inputs = bytes(trace.data[:4]).hex(), bytes(trace.data[4:]).hex()

        style = self._trace_style(trace)
        shown = label if label is not None else address
        self._write(f"{style.on}{shown}{style.off}::{style.on}{func_name}{style.off}")

        if trace.value:
            self._write(f"{{value: {trace.value}}}")

        self._write(f"({inputs})")

        suffix = _CALL_SUFFIXES.get(trace.kind)
        if suffix is not None:
            self._write(f"{kind_style.on}{suffix}{kind_style.off}")

    def _write_log(self, log: CallLog) -> None:
        style = self._log_style()
        self._write_branch()

        if log.decoded.name is not None:
            self._write(f"emit {log.decoded.name}({style.on}")
            if log.decoded.params is not None:
                self._write(", ".join(f"{name}: {value}" for name, value in log.decoded.params))
            self._write(f"{style.off})\n")
            return

        topics = log.raw_log.topics
        for i, topic in enumerate(topics):
            if i == 0:
                self._write(" emit topic 0")
            else:
                self._write_pipes()
                self._write(f"       topic {i}")
            self._write(f": {style.on}{_hex(topic)}{style.off}\n")

        if topics:
            self._write_pipes()
        self._write(f"          data: {style.on}{_hex(log.raw_log.data)}{style.off}\n")

    def _write_step(
        self,
        nodes: Sequence[CallTraceNode],
        node_idx: int,
        item_idx: int,
        step_idx: int,
    ) -> int:
        node = nodes[node_idx]
        step = node.trace.steps[step_idx]
        decoded = step.decoded

        # Only explicitly decoded steps are written.
        if decoded is None:
            return item_idx + 1

        if isinstance(decoded, InternalCallStep):
            end_idx = decoded.end_idx
            call = decoded.call
            used = max(node.trace.steps[end_idx].gas_used - step.gas_used, 0)

            self._write_branch()
            self.indentation_level += 1

            args = f"({', '.join(call.args)})" if call.args is not None else ""
            self._write(f"[{used}] {call.func_name}{args}\n")

            end_member = TraceMemberOrder.step(end_idx)
            end_item_idx = self._write_items_until(
                nodes, node_idx, item_idx + 1, lambda idx: node.ordering[idx] == end_member
            )

            self._write_edge()
            self._write(RETURN)
            if call.return_data is not None:
                self._write(", ".join(call.return_data))
            self._write("\n")

            self.indentation_level -= 1
            return end_item_idx + 1

        if isinstance(decoded, LineStep):
            self._write_branch()
            self._write(f"{decoded.line}\n")
        return item_idx + 1

    def _write_trace_footer(self, trace: CallTrace) -> None:
        style = self._trace_style(trace)
        self._write(f"{style.on}{RETURN}[{trace.status.name}]{style.off}")

        if trace.decoded.return_data is not None:
            self._write(f" {trace.decoded.return_data}")
            return

        if (
            not self.config.write_bytecodes
            and trace.kind.is_any_create()
            and trace.status.is_ok()
        ):
            self._write(f" {len(trace.output)} bytes of code")
        elif trace.output:
            self._write(f" {_hex(trace.output)}")

    def _write_indentation(self) -> None:
        self._write("  " + PIPE * max(self.indentation_level - 1, 0))

    def _write_branch(self) -> None:
        self._write_indentation()
        if self.indentation_level != 0:
            self._write(BRANCH)

    def _write_pipes(self) -> None:
        self._write_indentation()
        self._write(PIPE)

    def _write_edge(self) -> None:
        self._write_indentation()
        self._write(EDGE)

    def _trace_style(self, trace: CallTrace) -> _Style:
        if not self.config.use_colors:
            return _PLAIN
        if self.config.color_cheatcodes and bytes(trace.address) == CHEATCODE_ADDRESS:
            return _BLUE
        return _GREEN if trace.success else _RED

    def _trace_kind_style(self) -> _Style:
        return _YELLOW if self.config.use_colors else _PLAIN

    def _log_style(self) -> _Style:
        return _CYAN if self.config.use_colors else _PLAIN

    def _write_storage_changes(self, node: CallTraceNode) -> None:
        # Compact intermediate writes: keep the first and last access of each slot.
        slots: dict = {}
        for step in node.trace.steps:
            change = step.storage_change
            if change is None:
                continue
            if change.key in slots:
                slots[change.key] = (slots[change.key][0], change)
            else:
                slots[change.key] = (change, change)

        changes = []
        for key, (first, last) in slots.items():
            before = first.had_value if first.had_value is not None else 0
            after = last.value
            if before != after:
                changes.append((key, before, after))

        if not changes:
            return
        self._write_branch()
        self._write(" storage changes:\n")
        for key, before, after in changes:
            self._write_pipes()
            self._write(f"  @ {num_or_hex(key)}: {num_or_hex(before)} → {num_or_hex(after)}\n")