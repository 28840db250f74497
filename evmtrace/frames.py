"""Parity and geth trace frame types produced from recorded call traces."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .evm import CallKind
from .primitives import ZERO_ADDRESS


class CallType(Enum):
    """Parity call type of a call action."""

    NONE = "none"
    CALL = "call"
    CALL_CODE = "callcode"
    DELEGATE_CALL = "delegatecall"
    STATIC_CALL = "staticcall"
    AUTH_CALL = "authcall"


class CreationMethod(Enum):
    """Parity creation method of a create action."""

    NONE = "none"
    CREATE = "create"
    CREATE2 = "create2"
    EOF_CREATE = "eofcreate"


class ActionType(Enum):
    """Kind of a parity action."""

    CALL = "call"
    CREATE = "create"
    SELFDESTRUCT = "suicide"
    REWARD = "reward"


@dataclass
class CallAction:
    """A parity call action."""

    from_: bytes = ZERO_ADDRESS
    to: bytes = ZERO_ADDRESS
    value: int = 0
    gas: int = 0
    input: bytes = b""
    call_type: CallType = CallType.CALL


@dataclass
class CreateAction:
    """A parity create action."""

    from_: bytes = ZERO_ADDRESS
    value: int = 0
    gas: int = 0
    init: bytes = b""
    creation_method: CreationMethod = CreationMethod.CREATE


@dataclass
class SelfdestructAction:
    """A parity selfdestruct action."""

    address: bytes = ZERO_ADDRESS
    refund_address: bytes = ZERO_ADDRESS
    balance: int = 0


Action = Union[CallAction, CreateAction, SelfdestructAction]


@dataclass
class CallOutput:
    """Result of a parity call trace."""

    gas_used: int = 0
    output: bytes = b""


@dataclass
class CreateOutput:
    """Result of a parity create trace."""

    gas_used: int = 0
    code: bytes = b""
    address: bytes = ZERO_ADDRESS


TraceOutput = Union[CallOutput, CreateOutput]


@dataclass
class TransactionTrace:
    """A single parity trace entry."""

    action: Action
    error: Optional[str] = None
    result: Optional[TraceOutput] = None
    trace_address: list[int] = field(default_factory=list)
    subtraces: int = 0


@dataclass
class CallLogFrame:
    """A log as it appears inside a geth call frame."""

    address: Optional[bytes] = None
    topics: Optional[list[bytes]] = None
    data: Optional[bytes] = None
    position: Optional[int] = None


@dataclass
class CallFrame:
    """A geth call tracer frame."""

    typ: str = ""
    from_: bytes = ZERO_ADDRESS
    to: Optional[bytes] = None
    value: Optional[int] = None
    gas: int = 0
    gas_used: int = 0
    input: bytes = b""
    output: Optional[bytes] = None
    error: Optional[str] = None
    revert_reason: Optional[str] = None
    calls: list["CallFrame"] = field(default_factory=list)
    logs: list[CallLogFrame] = field(default_factory=list)


@dataclass
class StructLog:
    """A geth struct log entry for a single executed opcode."""

    pc: int
    op: str
    gas: int
    gas_cost: int
    depth: int
    error: Optional[str] = None
    stack: Optional[list[int]] = None
    return_data: Optional[bytes] = None
    memory: Optional[list[str]] = None
    memory_size: Optional[int] = None
    storage: Optional[dict[int, int]] = None
    refund_counter: Optional[int] = None


@dataclass
class GethDefaultTracingOptions:
    """Options of geth's default struct-log tracer."""

    enable_memory: Optional[bool] = None
    disable_stack: Optional[bool] = None
    disable_storage: Optional[bool] = None
    enable_return_data: Optional[bool] = None
    debug: Optional[bool] = None
    limit: Optional[int] = None

    def is_stack_enabled(self) -> bool:
        return not bool(self.disable_stack)

    def is_memory_enabled(self) -> bool:
        return bool(self.enable_memory)


_CALL_TYPES = {
    CallKind.CALL: CallType.CALL,
    CallKind.STATIC_CALL: CallType.STATIC_CALL,
    CallKind.CALL_CODE: CallType.CALL_CODE,
    CallKind.DELEGATE_CALL: CallType.DELEGATE_CALL,
    CallKind.AUTH_CALL: CallType.AUTH_CALL,
}

_CREATION_METHODS = {
    CallKind.CREATE: CreationMethod.CREATE,
    CallKind.CREATE2: CreationMethod.CREATE2,
    CallKind.EOF_CREATE: CreationMethod.EOF_CREATE,
}


def call_type_for(kind: CallKind) -> CallType:
    """Parity call type of a call kind; creations map to NONE."""
    return _CALL_TYPES.get(kind, CallType.NONE)


def creation_method_for(kind: CallKind) -> CreationMethod:
    """Parity creation method of a call kind; plain calls map to NONE."""
    return _CREATION_METHODS.get(kind, CreationMethod.NONE)


def action_type_for(kind: CallKind) -> ActionType:
    """Parity action type of a call kind."""
    return ActionType.CREATE if kind.is_any_create() else ActionType.CALL