"""Core EVM enumerations: instruction results, hardforks, opcodes and call kinds."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, auto


class InstructionResult(IntEnum):
    """Outcome of executing an instruction or a whole frame.

    Member names follow the interpreter's own spelling, which is also the
    text used when a status is printed.
    """

    Continue = 0x00
    Stop = 0x01
    Return = 0x02
    SelfDestruct = 0x03
    ReturnContract = 0x04
    Revert = 0x10
    CallTooDeep = 0x11
    OutOfFunds = 0x12
    CreateInitCodeStartingEF00 = 0x13
    InvalidEOFInitCode = 0x14
    InvalidExtDelegateCallTarget = 0x15
    CallOrCreate = 0x20
    OutOfGas = 0x50
    MemoryOOG = 0x51
    MemoryLimitOOG = 0x52
    PrecompileOOG = 0x53
    InvalidOperandOOG = 0x54
    ReentrancySentryOOG = 0x55
    OpcodeNotFound = 0x56
    CallNotAllowedInsideStatic = 0x57
    StateChangeDuringStaticCall = 0x58
    InvalidFEOpcode = 0x59
    InvalidJump = 0x5A
    NotActivated = 0x5B
    StackUnderflow = 0x5C
    StackOverflow = 0x5D
    OutOfOffset = 0x5E
    CreateCollision = 0x5F
    OverflowPayment = 0x60
    PrecompileError = 0x61
    NonceOverflow = 0x62
    CreateContractSizeLimit = 0x63
    CreateContractStartingWithEF = 0x64
    CreateInitCodeSizeLimit = 0x65
    FatalExternalError = 0x66
    ReturnContractInNotInitEOF = 0x67
    EOFOpcodeDisabledInLegacy = 0x68
    SubRoutineStackOverflow = 0x69
    EofAuxDataOverflow = 0x6A
    EofAuxDataTooSmall = 0x6B
    InvalidEXTCALLTarget = 0x6C

    def is_ok(self) -> bool:
        return self in _OK_RESULTS

    def is_revert(self) -> bool:
        return self in _REVERT_RESULTS

    def is_error(self) -> bool:
        return self >= InstructionResult.OutOfGas

    def __str__(self) -> str:
        return self.name


_OK_RESULTS = frozenset(
    {
        InstructionResult.Continue,
        InstructionResult.Stop,
        InstructionResult.Return,
        InstructionResult.SelfDestruct,
        InstructionResult.ReturnContract,
    }
)

_REVERT_RESULTS = frozenset(
    {
        InstructionResult.Revert,
        InstructionResult.CallTooDeep,
        InstructionResult.OutOfFunds,
        InstructionResult.CreateInitCodeStartingEF00,
        InstructionResult.InvalidEOFInitCode,
        InstructionResult.InvalidExtDelegateCallTarget,
    }
)


class SpecId(IntEnum):
    """Ethereum hardforks, in activation order."""

    FRONTIER = 0
    FRONTIER_THAWING = 1
    HOMESTEAD = 2
    DAO_FORK = 3
    TANGERINE = 4
    SPURIOUS_DRAGON = 5
    BYZANTIUM = 6
    CONSTANTINOPLE = 7
    PETERSBURG = 8
    ISTANBUL = 9
    MUIR_GLACIER = 10
    BERLIN = 11
    LONDON = 12
    ARROW_GLACIER = 13
    GRAY_GLACIER = 14
    MERGE = 15
    SHANGHAI = 16
    CANCUN = 17
    PRAGUE = 18
    OSAKA = 19
    LATEST = 255

    def is_enabled_in(self, other: "SpecId") -> bool:
        """True if the rules of ``other`` are active under this spec."""
        return self >= other


def _build_opcode_table() -> dict[int, tuple[str, int, int]]:
    table: dict[int, tuple[str, int, int]] = {
        0x00: ("STOP", 0, 0),
        0x01: ("ADD", 2, 1),
        0x02: ("MUL", 2, 1),
        0x03: ("SUB", 2, 1),
        0x04: ("DIV", 2, 1),
        0x05: ("SDIV", 2, 1),
        0x06: ("MOD", 2, 1),
        0x07: ("SMOD", 2, 1),
        0x08: ("ADDMOD", 3, 1),
        0x09: ("MULMOD", 3, 1),
        0x0A: ("EXP", 2, 1),
        0x0B: ("SIGNEXTEND", 2, 1),
        0x10: ("LT", 2, 1),
        0x11: ("GT", 2, 1),
        0x12: ("SLT", 2, 1),
        0x13: ("SGT", 2, 1),
        0x14: ("EQ", 2, 1),
        0x15: ("ISZERO", 1, 1),
        0x16: ("AND", 2, 1),
        0x17: ("OR", 2, 1),
        0x18: ("XOR", 2, 1),
        0x19: ("NOT", 1, 1),
        0x1A: ("BYTE", 2, 1),
        0x1B: ("SHL", 2, 1),
        0x1C: ("SHR", 2, 1),
        0x1D: ("SAR", 2, 1),
        0x20: ("KECCAK256", 2, 1),
        0x30: ("ADDRESS", 0, 1),
        0x31: ("BALANCE", 1, 1),
        0x32: ("ORIGIN", 0, 1),
        0x33: ("CALLER", 0, 1),
        0x34: ("CALLVALUE", 0, 1),
        0x35: ("CALLDATALOAD", 1, 1),
        0x36: ("CALLDATASIZE", 0, 1),
        0x37: ("CALLDATACOPY", 3, 0),
        0x38: ("CODESIZE", 0, 1),
        0x39: ("CODECOPY", 3, 0),
        0x3A: ("GASPRICE", 0, 1),
        0x3B: ("EXTCODESIZE", 1, 1),
        0x3C: ("EXTCODECOPY", 4, 0),
        0x3D: ("RETURNDATASIZE", 0, 1),
        0x3E: ("RETURNDATACOPY", 3, 0),
        0x3F: ("EXTCODEHASH", 1, 1),
        0x40: ("BLOCKHASH", 1, 1),
        0x41: ("COINBASE", 0, 1),
        0x42: ("TIMESTAMP", 0, 1),
        0x43: ("NUMBER", 0, 1),
        0x44: ("DIFFICULTY", 0, 1),
        0x45: ("GASLIMIT", 0, 1),
        0x46: ("CHAINID", 0, 1),
        0x47: ("SELFBALANCE", 0, 1),
        0x48: ("BASEFEE", 0, 1),
        0x49: ("BLOBHASH", 1, 1),
        0x4A: ("BLOBBASEFEE", 0, 1),
        0x50: ("POP", 1, 0),
        0x51: ("MLOAD", 1, 1),
        0x52: ("MSTORE", 2, 0),
        0x53: ("MSTORE8", 2, 0),
        0x54: ("SLOAD", 1, 1),
        0x55: ("SSTORE", 2, 0),
        0x56: ("JUMP", 1, 0),
        0x57: ("JUMPI", 2, 0),
        0x58: ("PC", 0, 1),
        0x59: ("MSIZE", 0, 1),
        0x5A: ("GAS", 0, 1),
        0x5B: ("JUMPDEST", 0, 0),
        0x5C: ("TLOAD", 1, 1),
        0x5D: ("TSTORE", 2, 0),
        0x5E: ("MCOPY", 3, 0),
        0x5F: ("PUSH0", 0, 1),
        0xD0: ("DATALOAD", 1, 1),
        0xD1: ("DATALOADN", 0, 1),
        0xD2: ("DATASIZE", 0, 1),
        0xD3: ("DATACOPY", 3, 0),
        0xE0: ("RJUMP", 0, 0),
        0xE1: ("RJUMPI", 1, 0),
        0xE2: ("RJUMPV", 1, 0),
        0xE3: ("CALLF", 0, 0),
        0xE4: ("RETF", 0, 0),
        0xE5: ("JUMPF", 0, 0),
        0xE6: ("DUPN", 0, 1),
        0xE7: ("SWAPN", 0, 0),
        0xE8: ("EXCHANGE", 0, 0),
        0xEC: ("EOFCREATE", 4, 1),
        0xEE: ("RETURNCONTRACT", 2, 0),
        0xF0: ("CREATE", 3, 1),
        0xF1: ("CALL", 7, 1),
        0xF2: ("CALLCODE", 7, 1),
        0xF3: ("RETURN", 2, 0),
        0xF4: ("DELEGATECALL", 6, 1),
        0xF5: ("CREATE2", 4, 1),
        0xF7: ("RETURNDATALOAD", 1, 1),
        0xF8: ("EXTCALL", 4, 1),
        0xF9: ("EXTDELEGATECALL", 3, 1),
        0xFA: ("STATICCALL", 6, 1),
        0xFB: ("EXTSTATICCALL", 3, 1),
        0xFD: ("REVERT", 2, 0),
        0xFE: ("INVALID", 0, 0),
        0xFF: ("SELFDESTRUCT", 1, 0),
    }
    for n in range(1, 33):
        table[0x5F + n] = (f"PUSH{n}", 0, 1)
    for n in range(1, 17):
        table[0x7F + n] = (f"DUP{n}", n, n + 1)
        table[0x8F + n] = (f"SWAP{n}", n + 1, n + 1)
    for n in range(5):
        table[0xA0 + n] = (f"LOG{n}", n + 2, 0)
    return table


_OPCODE_TABLE = _build_opcode_table()
_OPCODE_BY_NAME = {name: code for code, (name, _, _) in _OPCODE_TABLE.items()}

_MEMORY_WRITERS = frozenset(
    _OPCODE_BY_NAME[name]
    for name in (
        "EXTCODECOPY", "MLOAD", "MSTORE", "MSTORE8", "MCOPY", "CODECOPY",
        "CALLDATACOPY", "RETURNDATACOPY", "CALL", "CALLCODE", "DELEGATECALL",
        "STATICCALL", "DATACOPY", "EOFCREATE", "RETURNCONTRACT", "EXTCALL",
        "EXTDELEGATECALL", "EXTSTATICCALL",
    )
)

_CALL_LIKE = frozenset(
    _OPCODE_BY_NAME[name]
    for name in ("CALL", "DELEGATECALL", "STATICCALL", "CREATE", "CALLCODE", "CREATE2")
)


@dataclass(frozen=True)
class OpCode:
    """A single opcode byte; unknown bytes are allowed and print as UNKNOWN."""

    code: int

    def __post_init__(self) -> None:
        if not 0 <= self.code <= 0xFF:
            raise ValueError(f"opcode must be a byte, got {self.code}")

    @classmethod
    def from_name(cls, name: str) -> "OpCode":
        try:
            return cls(_OPCODE_BY_NAME[name.upper()])
        except KeyError:
            raise ValueError(f"unknown opcode name: {name!r}") from None

    @property
    def is_known(self) -> bool:
        return self.code in _OPCODE_TABLE

    @property
    def name(self) -> str:
        info = _OPCODE_TABLE.get(self.code)
        return info[0] if info else f"UNKNOWN(0x{self.code:02X})"

    def inputs(self) -> int:
        info = _OPCODE_TABLE.get(self.code)
        return info[1] if info else 0

    def outputs(self) -> int:
        info = _OPCODE_TABLE.get(self.code)
        return info[2] if info else 0

    def modifies_memory(self) -> bool:
        return self.code in _MEMORY_WRITERS

    def is_calllike(self) -> bool:
        return self.code in _CALL_LIKE

    def is_stop(self) -> bool:
        return self.code == 0x00

    def __int__(self) -> int:
        return self.code

    def __str__(self) -> str:
        return self.name


class CallScheme(Enum):
    """How a message call was issued."""

    CALL = auto()
    CALL_CODE = auto()
    DELEGATE_CALL = auto()
    STATIC_CALL = auto()
    EXT_CALL = auto()
    EXT_STATIC_CALL = auto()
    EXT_DELEGATE_CALL = auto()


class CreateScheme(Enum):
    """How a contract creation was issued."""

    CREATE = auto()
    CREATE2 = auto()
    CUSTOM = auto()


class CallKind(Enum):
    """A unified representation of a call or creation."""

    CALL = "CALL"
    STATIC_CALL = "STATICCALL"
    CALL_CODE = "CALLCODE"
    DELEGATE_CALL = "DELEGATECALL"
    AUTH_CALL = "AUTHCALL"
    CREATE = "CREATE"
    CREATE2 = "CREATE2"
    EOF_CREATE = "EOF_CREATE"

    @classmethod
    def from_call_scheme(cls, scheme: CallScheme) -> "CallKind":
        return _KIND_BY_CALL_SCHEME[scheme]

    @classmethod
    def from_create_scheme(cls, scheme: CreateScheme) -> "CallKind":
        return cls.CREATE2 if scheme is CreateScheme.CREATE2 else cls.CREATE

    def is_any_create(self) -> bool:
        return self in (CallKind.CREATE, CallKind.CREATE2, CallKind.EOF_CREATE)

    def is_delegate(self) -> bool:
        return self in (CallKind.DELEGATE_CALL, CallKind.CALL_CODE)

    def is_static_call(self) -> bool:
        return self is CallKind.STATIC_CALL

    def is_auth_call(self) -> bool:
        return self is CallKind.AUTH_CALL

    def __str__(self) -> str:
        return self.value


_KIND_BY_CALL_SCHEME = {
    CallScheme.CALL: CallKind.CALL,
    CallScheme.EXT_CALL: CallKind.CALL,
    CallScheme.STATIC_CALL: CallKind.STATIC_CALL,
    CallScheme.EXT_STATIC_CALL: CallKind.STATIC_CALL,
    CallScheme.DELEGATE_CALL: CallKind.DELEGATE_CALL,
    CallScheme.EXT_DELEGATE_CALL: CallKind.DELEGATE_CALL,
    CallScheme.CALL_CODE: CallKind.CALL_CODE,
}