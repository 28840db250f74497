import pytest

from evmtrace.evm import CallKind, InstructionResult, OpCode
from evmtrace.frames import (
    CallAction,
    CallOutput,
    CallType,
    CreateAction,
    CreateOutput,
    CreationMethod,
    GethDefaultTracingOptions,
    SelfdestructAction,
)
from evmtrace.primitives import ZERO_ADDRESS, uint_to_word
from evmtrace.types import (
    CallLog,
    CallTrace,
    CallTraceNode,
    CallTraceStep,
    LogData,
    MemberKind,
    RecordedMemory,
    TraceMemberOrder,
)
from evmtrace.utils import TraceStyle

CALLER = bytes([0x11]) * 20
TARGET = bytes([0x22]) * 20


def _revert_output(reason: str) -> bytes:
    raw = reason.encode()
    padded = raw.ljust((len(raw) + 31) // 32 * 32, b"\x00")
    return bytes.fromhex("08c379a0") + uint_to_word(32) + uint_to_word(len(raw)) + padded


def _node(**trace_fields) -> CallTraceNode:
    fields = {"caller": CALLER, "address": TARGET}
    fields.update(trace_fields)
    return CallTraceNode(trace=CallTrace(**fields))


def test_call_trace_defaults():
    trace = CallTrace()
    assert trace.kind is CallKind.CALL
    assert trace.status is InstructionResult.Continue
    assert trace.is_error() is False


def test_call_trace_revert_flags():
    trace = CallTrace(status=InstructionResult.Revert)
    assert trace.is_error()
    assert trace.is_revert()
    assert trace.error_message(TraceStyle.PARITY) == "Reverted"
    assert trace.error_message(TraceStyle.GETH) == "execution reverted"


def test_call_trace_selfdestruct_by_target():
    trace = CallTrace(selfdestruct_refund_target=CALLER)
    assert trace.is_selfdestruct()
    assert CallTrace(status=InstructionResult.SelfDestruct).is_selfdestruct()
    assert not CallTrace(status=InstructionResult.Stop).is_selfdestruct()


def test_call_log_with_position():
    log = CallLog(raw_log=LogData(topics=[bytes(32)], data=b"\x01"))
    moved = log.with_position(3)
    assert moved.position == 3
    assert moved.raw_log == log.raw_log
    assert log.position == 0


def test_trace_member_order_constructors():
    assert TraceMemberOrder.log(2) == TraceMemberOrder(MemberKind.LOG, 2)
    assert TraceMemberOrder.call(1).kind is MemberKind.CALL
    assert TraceMemberOrder.step(4).index == 4


def test_recorded_memory_chunks():
    data = bytes(range(33))
    chunks = RecordedMemory(data).memory_chunks()
    assert len(chunks) == 2
    assert chunks[0] == data[:32].hex()
    assert chunks[1] == data[32:].ljust(32, b"\x00").hex()
    assert len(RecordedMemory(data)) == len(data)


def test_step_opcode_predicates():
    assert CallTraceStep(op=OpCode.from_name("STOP")).is_stop()
    assert CallTraceStep(op=OpCode.from_name("CREATE2")).is_calllike_op()
    assert not CallTraceStep(op=OpCode.from_name("ADD")).is_calllike_op()


@pytest.mark.parametrize(
    "status, is_error",
    [
        (InstructionResult.Revert, True),
        (InstructionResult.OutOfGas, True),
        (InstructionResult.Return, False),
        (InstructionResult.Continue, False),
    ],
)
def test_step_is_error(status, is_error):
    step = CallTraceStep(status=status)
    assert step.is_error() is is_error
    assert step.error_message() == (status.name if is_error else None)


def test_step_to_struct_log_options():
    step = CallTraceStep(
        op=OpCode.from_name("MSTORE"),
        stack=[1, 2],
        memory=RecordedMemory(bytes(32)),
        gas_remaining=100,
        gas_cost=3,
    )
    log = step.to_struct_log(GethDefaultTracingOptions())
    assert log.op == "MSTORE"
    assert log.stack == [1, 2]
    assert log.memory is None
    assert log.refund_counter is None
    assert log.gas == step.gas_remaining

    log = step.to_struct_log(GethDefaultTracingOptions(disable_stack=True, enable_memory=True))
    assert log.stack is None
    assert log.memory == step.memory.memory_chunks()


def test_call_step_stack_links_children():
    node = _node(
        steps=[
            CallTraceStep(op=OpCode.from_name("CALL")),
            CallTraceStep(op=OpCode.from_name("ADD")),
            CallTraceStep(op=OpCode.from_name("CALL")),
        ]
    )
    node.children = [5]
    items = node.call_step_stack()
    assert [item.call_child_id for item in items] == [5, None, None]
    assert all(item.trace_node is node for item in items)


def test_selector_and_execution_address():
    node = _node(data=b"\xaa\xbb\xcc\xdd\x00", kind=CallKind.DELEGATE_CALL)
    assert node.selector() == b"\xaa\xbb\xcc\xdd"
    assert node.execution_address() == CALLER
    assert _node(data=b"\x01").selector() is None
    assert _node().execution_address() == TARGET


def test_is_precompile():
    assert _node(maybe_precompile=True).is_precompile()
    assert not _node().is_precompile()


def test_parity_action_call_and_create():
    call = _node(kind=CallKind.STATIC_CALL, value=0, gas_limit=50, data=b"\x01")
    action = call.parity_action()
    assert action == CallAction(
        from_=CALLER, to=TARGET, value=0, gas=50, input=b"\x01", call_type=CallType.STATIC_CALL
    )
    create = _node(kind=CallKind.CREATE2, gas_limit=50, data=b"\x02")
    assert create.parity_action() == CreateAction(
        from_=CALLER, value=0, gas=50, init=b"\x02", creation_method=CreationMethod.CREATE2
    )


def test_parity_trace_output():
    assert _node(gas_used=9, output=b"\x05").parity_trace_output() == CallOutput(9, b"\x05")
    created = _node(kind=CallKind.CREATE, gas_used=9, output=b"\x05")
    assert created.parity_trace_output() == CreateOutput(9, b"\x05", TARGET)


def test_parity_transaction_trace_revert_keeps_result():
    node = _node(status=InstructionResult.Revert)
    node.children = [1, 2]
    trace = node.parity_transaction_trace([0])
    assert trace.error == "Reverted"
    assert trace.result == node.parity_trace_output()
    assert trace.subtraces == 2
    assert trace.trace_address == [0]


def test_parity_transaction_trace_halt_drops_result():
    trace = _node(status=InstructionResult.OutOfGas).parity_transaction_trace([])
    assert trace.result is None
    assert trace.error == "Out of gas"


def test_selfdestruct_traces():
    node = _node(
        selfdestruct_address=TARGET,
        selfdestruct_refund_target=CALLER,
        selfdestruct_transferred_value=69,
    )
    expected = SelfdestructAction(address=TARGET, refund_address=CALLER, balance=69)
    assert node.parity_selfdestruct_action() == expected
    trace = node.parity_selfdestruct_trace([0, 0])
    assert trace.action == expected
    assert trace.trace_address == [0, 0]
    assert trace.subtraces == 0 and trace.error is None
    frame = node.geth_selfdestruct_call_trace()
    assert frame.typ == "SELFDESTRUCT"
    assert frame.from_ == TARGET and frame.to == CALLER and frame.value == 69


def test_no_selfdestruct_traces():
    node = _node(status=InstructionResult.Stop)
    assert node.parity_selfdestruct_action() is None
    assert node.parity_selfdestruct_trace([]) is None
    assert node.geth_selfdestruct_call_trace() is None


def test_geth_frame_success():
    node = _node(
        success=True,
        status=InstructionResult.Return,
        value=3,
        gas_limit=100,
        gas_used=40,
        output=b"",
    )
    frame = node.geth_empty_call_frame(False)
    assert frame.typ == "CALL"
    assert frame.to == TARGET
    assert frame.value == 3
    assert frame.gas_used == 40
    assert frame.output is None
    assert frame.error is None


def test_geth_frame_static_call_has_no_value():
    node = _node(kind=CallKind.STATIC_CALL, success=True, status=InstructionResult.Stop)
    assert node.geth_empty_call_frame(False).value is None


def test_geth_frame_revert_reason():
    output = _revert_output("my revert")
    node = _node(status=InstructionResult.Revert, gas_limit=100, gas_used=40, output=output)
    frame = node.geth_empty_call_frame(False)
    assert frame.revert_reason == "my revert"
    assert frame.error == "execution reverted"
    assert frame.gas_used == 40
    assert frame.output == output


def test_geth_frame_halted_create():
    node = _node(kind=CallKind.CREATE, status=InstructionResult.OutOfGas, gas_limit=100, gas_used=7)
    frame = node.geth_empty_call_frame(False)
    assert frame.to is None
    assert frame.gas_used == node.trace.gas_limit
    assert frame.output is None
    assert frame.error == "out of gas"


def test_geth_frame_logs():
    node = _node(kind=CallKind.DELEGATE_CALL, success=True, status=InstructionResult.Stop)
    node.logs = [CallLog(raw_log=LogData(topics=[bytes(32)], data=b"\x09")).with_position(1)]
    frame = node.geth_empty_call_frame(True)
    assert len(frame.logs) == 1
    log = frame.logs[0]
    assert log.address == CALLER
    assert log.topics == [bytes(32)]
    assert log.data == b"\x09"
    assert log.position == 1
    assert node.geth_empty_call_frame(False).logs == []
    assert ZERO_ADDRESS != CALLER