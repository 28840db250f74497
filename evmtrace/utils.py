"""Helpers for error messages, memory formatting, gas and revert reasons."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol

from .evm import InstructionResult, SpecId
from .primitives import KECCAK_EMPTY


class TraceStyle(Enum):
    """Which client's conventions a trace follows."""

    PARITY = "parity"
    GETH = "geth"

    def is_parity(self) -> bool:
        return self is TraceStyle.PARITY


_R = InstructionResult

# (parity message, geth message)
_ERROR_MESSAGES: dict[InstructionResult, tuple[str, str]] = {
    _R.Revert: ("Reverted", "execution reverted"),
    _R.OutOfGas: ("Out of gas", "out of gas"),
    _R.PrecompileOOG: ("Out of gas", "out of gas"),
    _R.OutOfFunds: ("Insufficient balance for transfer", "insufficient balance for transfer"),
    _R.MemoryOOG: ("Out of gas", "out of gas: out of memory"),
    _R.MemoryLimitOOG: ("Out of gas", "out of gas: reach memory limit"),
    _R.InvalidOperandOOG: ("Out of gas", "out of gas: invalid operand"),
    _R.OpcodeNotFound: ("Bad instruction", "invalid opcode"),
    _R.StackOverflow: ("Out of stack", "Out of stack"),
    _R.InvalidJump: ("Bad jump destination", "invalid jump destination"),
    _R.PrecompileError: ("Built-in failed", "precompiled failed"),
    _R.InvalidFEOpcode: ("Bad instruction", "invalid opcode: INVALID"),
    _R.ReentrancySentryOOG: (
        "Out of gas",
        "out of gas: not enough gas for reentrancy sentry",
    ),
}


def fmt_error_msg(result: InstructionResult, style: TraceStyle) -> Optional[str]:
    """Error message for an unsuccessful result, or None if it succeeded."""
    if result.is_ok():
        return None
    messages = _ERROR_MESSAGES.get(result)
    if messages is None:
        return result.name
    parity, geth = messages
    return parity if style.is_parity() else geth


def convert_memory(data: bytes) -> list[str]:
    """Split memory into hex-encoded 32-byte chunks, zero-padding the last."""
    data = bytes(data)
    return [data[start:start + 32].ljust(32, b"\x00").hex() for start in range(0, len(data), 32)]


def gas_used(spec: SpecId, spent: int, refunded: int) -> int:
    """Gas used after applying the refund cap of the given spec."""
    quotient = 5 if spec.is_enabled_in(SpecId.LONDON) else 2
    return spent - min(refunded, spent // quotient)


class _CodeDatabase(Protocol):
    def code_by_hash(self, code_hash: bytes) -> bytes: ...


class _Account(Protocol):
    code: Optional[bytes]
    code_hash: bytes


def load_account_code(db: _CodeDatabase, account: _Account) -> Optional[bytes]:
    """Code of an account, from the account itself or looked up by hash.

    Returns None for accounts with the empty code hash or when the lookup fails.
    """
    if account.code is not None:
        return bytes(account.code)
    if bytes(account.code_hash) == KECCAK_EMPTY:
        return None
    try:
        return bytes(db.code_by_hash(account.code_hash))
    except Exception:
        return None


_REVERT_SELECTOR = bytes.fromhex("08c379a0")
_PANIC_SELECTOR = bytes.fromhex("4e487b71")

_PANIC_KINDS = {
    0x00: "generic compiler panic",
    0x01: "assertion failed",
    0x11: "arithmetic underflow or overflow",
    0x12: "division or modulo by zero",
    0x21: "failed to convert value into enum type",
    0x22: "storage byte array incorrectly encoded",
    0x31: "called `.pop()` on an empty array",
    0x32: "array out-of-bounds access",
    0x41: "memory allocation error",
    0x51: "called an invalid internal function",
}


def _decode_abi_string(body: bytes) -> Optional[str]:
    if len(body) < 32:
        return None
    offset = int.from_bytes(body[:32], "big")
    if offset + 32 > len(body):
        return None
    length = int.from_bytes(body[offset:offset + 32], "big")
    end = offset + 32 + length
    if end > len(body):
        return None
    return body[offset + 32:end].decode("utf-8", errors="replace")


def _decode_contract_error(output: bytes) -> Optional[str]:
    selector, body = output[:4], output[4:]
    if selector == _REVERT_SELECTOR:
        return _decode_abi_string(body)
    if selector == _PANIC_SELECTOR and len(body) >= 32:
        code = int.from_bytes(body[:32], "big")
        kind = _PANIC_KINDS.get(code, "unknown code")
        return f"panic: {kind} (0x{code:x})"
    return None


def maybe_revert_reason(output: bytes) -> Optional[str]:
    """Decode a non-empty revert reason from call output, if there is one."""
    output = bytes(output)
    reason = _decode_contract_error(output)
    if reason is None:
        try:
            reason = output.decode("utf-8")
        except UnicodeDecodeError:
            return None
    return reason or None