"""Types describing recorded call traces, logs and execution steps."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union

from .evm import CallKind, InstructionResult, OpCode
from .frames import (
    Action,
    CallAction,
    CallFrame,
    CallLogFrame,
    CallOutput,
    CreateAction,
    CreateOutput,
    GethDefaultTracingOptions,
    SelfdestructAction,
    StructLog,
    TraceOutput,
    TransactionTrace,
    call_type_for,
    creation_method_for,
)
from .primitives import ZERO_ADDRESS
from .utils import TraceStyle, convert_memory, fmt_error_msg, maybe_revert_reason


@dataclass
class LogData:
    """Topics and data of an emitted log."""

    topics: list[bytes] = field(default_factory=list)
    data: bytes = b""


@dataclass
class DecodedCallData:
    """Decoded call data."""

    signature: str = ""
    args: list[str] = field(default_factory=list)


@dataclass
class DecodedCallTrace:
    """Decoded data enhancing a call trace."""

    label: Optional[str] = None
    return_data: Optional[str] = None
    call_data: Optional[DecodedCallData] = None


@dataclass
class StepDefaults:
    pass


@dataclass
class DecodedInternalCall:
    """A decoded internal function call."""

    func_name: str
    args: Optional[list[str]] = None
    return_data: Optional[list[str]] = None


@dataclass
class InternalCallStep:
    """Decoded internal call, ending at the step with index ``end_idx``."""

    call: DecodedInternalCall
    end_idx: int


@dataclass
class LineStep:
    """An arbitrary line describing a step."""

    line: str


DecodedTraceStep = Union[InternalCallStep, LineStep]


class StorageChangeReason(Enum):
    """Instruction that accessed a storage slot."""

    SLOAD = "SLOAD"
    SSTORE = "SSTORE"


@dataclass(frozen=True)
class StorageChange:
    """A storage slot access or change during execution."""

    key: int
    value: int
    had_value: Optional[int]
    reason: StorageChangeReason


@dataclass(frozen=True)
class RecordedMemory:
    """Memory captured before a step executed."""

    data: bytes = b""

    def __len__(self) -> int:
        return len(self.data)

    def __bytes__(self) -> bytes:
        return bytes(self.data)

    def memory_chunks(self) -> list[str]:
        """Memory as a list of 32-byte hex-encoded chunks."""
        return convert_memory(self.data)


@dataclass
class CallTraceStep:
    """A recorded execution step."""

    depth: int = 0
    pc: int = 0
    code_section_idx: int = 0
    op: OpCode = OpCode(0)
    contract: bytes = ZERO_ADDRESS
    stack: Optional[list[int]] = None
    push_stack: Optional[list[int]] = None
    memory: Optional[RecordedMemory] = None
    returndata: bytes = b""
    gas_remaining: int = 0
    gas_refund_counter: int = 0
    gas_used: int = 0
    gas_cost: int = 0
    storage_change: Optional[StorageChange] = None
    status: InstructionResult = InstructionResult.Continue
    immediate_bytes: Optional[bytes] = None
    decoded: Optional[DecodedTraceStep] = None

    def to_struct_log(self, opts: GethDefaultTracingOptions) -> StructLog:
        """Convert to a geth struct log, capturing stack and memory per ``opts``."""
        log = StructLog(
            pc=self.pc,
            op=str(self.op),
            gas=self.gas_remaining,
            gas_cost=self.gas_cost,
            depth=self.depth,
            error=self.error_message(),
            refund_counter=self.gas_refund_counter if self.gas_refund_counter > 0 else None,
        )
        if opts.is_stack_enabled() and self.stack is not None:
            log.stack = list(self.stack)
        if opts.is_memory_enabled() and self.memory is not None:
            log.memory = self.memory.memory_chunks()
        return log

    def is_stop(self) -> bool:
        return self.op.is_stop()

    def is_calllike_op(self) -> bool:
        return self.op.is_calllike()

    def is_error(self) -> bool:
        return self.status >= InstructionResult.Revert

    def error_message(self) -> Optional[str]:
        return self.status.name if self.is_error() else None


@dataclass
class CallTrace:
    """A trace of a call with optional decoded data."""

    depth: int = 0
    success: bool = False
    caller: bytes = ZERO_ADDRESS
    address: bytes = ZERO_ADDRESS
    maybe_precompile: Optional[bool] = None
    selfdestruct_address: Optional[bytes] = None
    selfdestruct_refund_target: Optional[bytes] = None
    selfdestruct_transferred_value: Optional[int] = None
    kind: CallKind = CallKind.CALL
    value: int = 0
    data: bytes = b""
    output: bytes = b""
    gas_used: int = 0
    gas_limit: int = 0
    status: InstructionResult = InstructionResult.Continue
    steps: list[CallTraceStep] = field(default_factory=list)
    decoded: DecodedCallTrace = field(default_factory=DecodedCallTrace)

    def is_error(self) -> bool:
        return not self.status.is_ok()

    def is_revert(self) -> bool:
        return self.status is InstructionResult.Revert

    def is_selfdestruct(self) -> bool:
        """True if the call selfdestructed, by status or by a recorded refund target."""
        return (
            self.status is InstructionResult.SelfDestruct
            or self.selfdestruct_refund_target is not None
        )

    def error_message(self, style: TraceStyle) -> Optional[str]:
        return fmt_error_msg(self.status, style)


@dataclass
class DecodedCallLog:
    """Decoded event name and parameters of a log."""

    name: Optional[str] = None
    params: Optional[list[tuple[str, str]]] = None


@dataclass
class CallLog:
    """A log with optional decoded data."""

    raw_log: LogData = field(default_factory=LogData)
    decoded: DecodedCallLog = field(default_factory=DecodedCallLog)
    position: int = 0

    def with_position(self, position: int) -> "CallLog":
        """A copy of this log placed at ``position`` relative to subcalls."""
        return replace(self, position=position)


class MemberKind(Enum):
    """What an ordering entry of a node refers to."""

    LOG = "log"
    CALL = "call"
    STEP = "step"


@dataclass(frozen=True)
class TraceMemberOrder:
    """Index of a log, child call or step in a node's execution order."""

    kind: MemberKind
    index: int

    @classmethod
    def log(cls, index: int) -> "TraceMemberOrder":
        return cls(MemberKind.LOG, index)

    @classmethod
    def call(cls, index: int) -> "TraceMemberOrder":
        return cls(MemberKind.CALL, index)

    @classmethod
    def step(cls, index: int) -> "TraceMemberOrder":
        return cls(MemberKind.STEP, index)


@dataclass
class CallTraceStepStackItem:
    """A step together with the node holding it and the child call it started."""

    trace_node: "CallTraceNode"
    step: CallTraceStep
    call_child_id: Optional[int] = None


@dataclass
class CallTraceNode:
    """A node in the call trace arena."""

    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)
    idx: int = 0
    trace: CallTrace = field(default_factory=CallTrace)
    logs: list[CallLog] = field(default_factory=list)
    ordering: list[TraceMemberOrder] = field(default_factory=list)

    def execution_address(self) -> bytes:
        """Address whose context executes this call."""
        return self.trace.caller if self.trace.kind.is_delegate() else self.trace.address

    def call_step_stack(self) -> list[CallTraceStepStackItem]:
        """All steps in execution order, call-like steps linked to their child node."""
        items = []
        children = iter(self.children)
        for step in self.trace.steps:
            child = next(children, None) if step.is_calllike_op() else None
            items.append(CallTraceStepStackItem(self, step, child))
        return items

    def is_precompile(self) -> bool:
        return bool(self.trace.maybe_precompile)

    def kind(self) -> CallKind:
        return self.trace.kind

    def status(self) -> InstructionResult:
        return self.trace.status

    def selector(self) -> Optional[bytes]:
        data = self.trace.data
        return bytes(data[:4]) if len(data) >= 4 else None

    def is_selfdestruct(self) -> bool:
        return self.trace.is_selfdestruct()

    def parity_transaction_trace(self, trace_address: list[int]) -> TransactionTrace:
        """Convert this node into a parity transaction trace."""
        if self.trace.is_error() and not self.trace.is_revert():
            result = None
        else:
            result = self.parity_trace_output()
        return TransactionTrace(
            action=self.parity_action(),
            error=self.trace.error_message(TraceStyle.PARITY),
            result=result,
            trace_address=list(trace_address),
            subtraces=len(self.children),
        )

    def parity_trace_output(self) -> TraceOutput:
        if self.kind().is_any_create():
            return CreateOutput(
                gas_used=self.trace.gas_used,
                code=self.trace.output,
                address=self.trace.address,
            )
        return CallOutput(gas_used=self.trace.gas_used, output=self.trace.output)

    def parity_selfdestruct_action(self) -> Optional[SelfdestructAction]:
        if not self.is_selfdestruct():
            return None
        trace = self.trace
        return SelfdestructAction(
            address=trace.selfdestruct_address or ZERO_ADDRESS,
            refund_address=trace.selfdestruct_refund_target or ZERO_ADDRESS,
            balance=trace.selfdestruct_transferred_value or 0,
        )

    def geth_selfdestruct_call_trace(self) -> Optional[CallFrame]:
        if not self.is_selfdestruct():
            return None
        return CallFrame(
            typ="SELFDESTRUCT",
            from_=self.trace.selfdestruct_address or ZERO_ADDRESS,
            to=self.trace.selfdestruct_refund_target,
            value=self.trace.selfdestruct_transferred_value,
        )

    def parity_selfdestruct_trace(self, trace_address: list[int]) -> Optional[TransactionTrace]:
        action = self.parity_selfdestruct_action()
        if action is None:
            return None
        return TransactionTrace(action=action, trace_address=list(trace_address), subtraces=0)

    def parity_action(self) -> Action:
        """Call or create action; a selfdestruct is reported separately."""
        trace = self.trace
        if self.kind().is_any_create():
            return CreateAction(
                from_=trace.caller,
                value=trace.value,
                gas=trace.gas_limit,
                init=trace.data,
                creation_method=creation_method_for(self.kind()),
            )
        return CallAction(
            from_=trace.caller,
            to=trace.address,
            value=trace.value,
            gas=trace.gas_limit,
            input=trace.data,
            call_type=call_type_for(self.kind()),
        )

    def geth_empty_call_frame(self, include_logs: bool) -> CallFrame:
        """A geth call frame for this node without nested calls."""
        trace = self.trace
        frame = CallFrame(
            typ=str(trace.kind),
            from_=trace.caller,
            to=trace.address,
            value=trace.value,
            gas=trace.gas_limit,
            gas_used=trace.gas_used,
            input=trace.data,
            output=trace.output if trace.output else None,
        )
        if trace.kind.is_static_call():
            frame.value = None

        if not trace.success:
            if self.kind().is_any_create():
                frame.to = None
            if not self.status().is_revert():
                frame.gas_used = trace.gas_limit
                frame.output = None
            frame.revert_reason = maybe_revert_reason(trace.output)
            frame.error = trace.error_message(TraceStyle.GETH)

        if include_logs and self.logs:
            address = self.execution_address()
            frame.logs = [
                CallLogFrame(
                    address=address,
                    topics=list(log.raw_log.topics),
                    data=log.raw_log.data,
                    position=log.position,
                )
                for log in self.logs
            ]
        return frame