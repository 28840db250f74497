import pytest

from evmtrace.evm import (
    CallKind,
    CallScheme,
    CreateScheme,
    InstructionResult,
    OpCode,
    SpecId,
)


def test_ok_results():
    for result in (InstructionResult.Stop, InstructionResult.Return, InstructionResult.SelfDestruct):
        assert result.is_ok()
        assert not result.is_revert()
        assert not result.is_error()


def test_revert_results():
    for result in (InstructionResult.Revert, InstructionResult.OutOfFunds, InstructionResult.CallTooDeep):
        assert result.is_revert()
        assert not result.is_ok()
        assert not result.is_error()


def test_error_results():
    for result in (InstructionResult.OutOfGas, InstructionResult.StackOverflow, InstructionResult.InvalidJump):
        assert result.is_error()
        assert not result.is_ok()
        assert not result.is_revert()


def test_classes_are_disjoint_and_ordered():
    assert InstructionResult.Stop.is_ok()
    assert InstructionResult.Revert.is_revert()
    assert InstructionResult.OutOfGas.is_error()
    for result in list(InstructionResult):
        flags = [result.is_ok(), result.is_revert(), result.is_error()]
        assert sum(flags) <= 1
        if result.is_revert() or result.is_error():
            assert result >= InstructionResult.Revert
        if result.is_ok():
            assert result < InstructionResult.Revert


def test_call_or_create_is_neither():
    result = InstructionResult.CallOrCreate
    assert not (result.is_ok() or result.is_revert() or result.is_error())


def test_instruction_result_prints_its_name():
    result = InstructionResult.OutOfGas
    assert result.is_error()
    assert str(result) == "OutOfGas"
    assert format(InstructionResult.Revert) == "Revert"


def test_spec_enabled_in():
    assert SpecId.CANCUN.is_enabled_in(SpecId.LONDON)
    assert SpecId.LONDON.is_enabled_in(SpecId.LONDON)
    assert not SpecId.BERLIN.is_enabled_in(SpecId.LONDON)
    assert all(SpecId.LATEST.is_enabled_in(spec) for spec in SpecId)


def test_opcode_name_roundtrip():
    for code in range(256):
        op = OpCode(code)
        if op.is_known:
            assert OpCode.from_name(op.name) == op


def test_opcode_known_name():
    assert OpCode(0x54).name == "SLOAD"
    assert str(OpCode.from_name("sstore")) == "SSTORE"


def test_opcode_unknown_name():
    op = OpCode(0x0C)
    assert not op.is_known
    assert str(op) == "UNKNOWN(0x0C)"
    assert op.outputs() == op.inputs()


def test_opcode_out_of_range_and_bad_name():
    with pytest.raises(ValueError):
        OpCode(256)
    with pytest.raises(ValueError):
        OpCode.from_name("NOPE")


def test_opcode_stack_shapes():
    assert OpCode.from_name("PUSH1").outputs() == 1
    for n in range(1, 17):
        dup = OpCode.from_name(f"DUP{n}")
        swap = OpCode.from_name(f"SWAP{n}")
        assert dup.outputs() == dup.inputs() + 1
        assert swap.outputs() == swap.inputs()
    assert OpCode.from_name("SSTORE").outputs() == OpCode.from_name("STOP").outputs()


def test_opcode_memory_and_calls():
    assert OpCode.from_name("MSTORE").modifies_memory()
    assert OpCode.from_name("CALL").modifies_memory()
    assert not OpCode.from_name("ADD").modifies_memory()
    for name in ("CALL", "DELEGATECALL", "STATICCALL", "CREATE", "CALLCODE", "CREATE2"):
        assert OpCode.from_name(name).is_calllike()
    assert not OpCode.from_name("EXTCALL").is_calllike()
    assert OpCode(0).is_stop()
    assert not OpCode.from_name("RETURN").is_stop()


def test_call_kind_strings():
    assert str(CallKind.from_call_scheme(CallScheme.STATIC_CALL)) == "STATICCALL"
    assert str(CallKind.from_call_scheme(CallScheme.DELEGATE_CALL)) == "DELEGATECALL"
    assert str(CallKind.from_create_scheme(CreateScheme.CREATE2)) == "CREATE2"
    eof = CallKind.EOF_CREATE
    assert eof.is_any_create()
    assert str(eof) == "EOF_CREATE"


@pytest.mark.parametrize(
    "scheme, kind",
    [
        (CallScheme.CALL, CallKind.CALL),
        (CallScheme.EXT_CALL, CallKind.CALL),
        (CallScheme.STATIC_CALL, CallKind.STATIC_CALL),
        (CallScheme.EXT_STATIC_CALL, CallKind.STATIC_CALL),
        (CallScheme.DELEGATE_CALL, CallKind.DELEGATE_CALL),
        (CallScheme.EXT_DELEGATE_CALL, CallKind.DELEGATE_CALL),
        (CallScheme.CALL_CODE, CallKind.CALL_CODE),
    ],
)
def test_call_kind_from_call_scheme(scheme, kind):
    assert CallKind.from_call_scheme(scheme) is kind


def test_call_kind_from_create_scheme():
    assert CallKind.from_create_scheme(CreateScheme.CREATE) is CallKind.CREATE
    assert CallKind.from_create_scheme(CreateScheme.CREATE2) is CallKind.CREATE2
    assert CallKind.from_create_scheme(CreateScheme.CUSTOM) is CallKind.CREATE


def test_call_kind_predicates():
    assert CallKind.CREATE2.is_any_create()
    assert not CallKind.CALL.is_any_create()
    assert CallKind.CALL_CODE.is_delegate()
    assert not CallKind.STATIC_CALL.is_delegate()
    assert CallKind.STATIC_CALL.is_static_call()
    assert CallKind.AUTH_CALL.is_auth_call()
    kinds = list(CallKind)
    creates = {k for k in kinds if k.is_any_create()}
    assert creates == {CallKind.CREATE, CallKind.CREATE2, CallKind.EOF_CREATE}
    delegates = {k for k in kinds if k.is_delegate()}
    assert delegates == {CallKind.DELEGATE_CALL, CallKind.CALL_CODE}
    assert [k for k in kinds if k.is_static_call()] == [CallKind.STATIC_CALL]
    assert [k for k in kinds if k.is_auth_call()] == [CallKind.AUTH_CALL]