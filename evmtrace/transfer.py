"""An inspector that collects internal ETH transfers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Protocol, Union

from .evm import CallScheme, CreateScheme
from .primitives import (
    address_to_word,
    create2_address,
    create_address,
    to_address,
    uint_to_word,
)

#: Sender of ETH transfer logs per the ``eth_simulateV1`` spec.
TRANSFER_LOG_EMITTER = bytes.fromhex("ee" * 20)

#: Topic of the ``Transfer(address,address,uint256)`` event.
TRANSFER_EVENT_TOPIC = bytes.fromhex(
    "ddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
)


class TransferKind(Enum):
    """The kind of transfer operation."""

    CALL = "call"
    CREATE = "create"
    CREATE2 = "create2"
    SELF_DESTRUCT = "selfdestruct"
    EOF_CREATE = "eofcreate"


@dataclass(frozen=True)
class TransferOperation:
    """A value transfer between two accounts."""

    kind: TransferKind
    from_: bytes
    to: bytes
    value: int


@dataclass(frozen=True)
class TransferLog:
    """An ERC20-style transfer log emitted for an ETH transfer."""

    address: bytes
    topics: tuple[bytes, ...]
    data: bytes


class Journal(Protocol):
    """The part of the execution journal the inspector relies on."""

    def depth(self) -> int: ...

    def log(self, log: TransferLog) -> None: ...

    def account_nonce(self, address: bytes) -> int:
        """Nonce of a loaded account; raises LookupError if it cannot be loaded."""
        ...


class Context(Protocol):
    """Execution context handed to the inspector hooks."""

    journal: Journal
    tx_nonce: int


@dataclass
class CallInputs:
    """Inputs of a message call.

    ``apparent_value`` marks a value that is only visible to the callee
    (as in DELEGATECALL) and is not actually transferred.
    """

    caller: bytes
    target_address: bytes
    value: int = 0
    scheme: CallScheme = CallScheme.CALL
    apparent_value: bool = False
    gas_limit: int = 0
    input: bytes = b""

    def __post_init__(self) -> None:
        self.caller = to_address(self.caller)
        self.target_address = to_address(self.target_address)

    def transfer_value(self) -> Optional[int]:
        """The value moved by this call, or None if nothing is transferred."""
        return None if self.apparent_value else self.value

    @property
    def transfer_from(self) -> bytes:
        return self.caller

    @property
    def transfer_to(self) -> bytes:
        return self.target_address


@dataclass
class CreateInputs:
    """Inputs of a CREATE, CREATE2 or custom creation."""

    caller: bytes
    scheme: CreateScheme = CreateScheme.CREATE
    value: int = 0
    init_code: bytes = b""
    salt: Union[bytes, int] = 0
    custom_address: Optional[bytes] = None
    gas_limit: int = 0

    def __post_init__(self) -> None:
        self.caller = to_address(self.caller)
        if self.custom_address is not None:
            self.custom_address = to_address(self.custom_address)

    def created_address(self, nonce: int) -> bytes:
        """Address of the contract this creation produces."""
        if self.scheme is CreateScheme.CREATE:
            return create_address(self.caller, nonce)
        if self.scheme is CreateScheme.CREATE2:
            return create2_address(self.caller, self.salt, self.init_code)
        if self.custom_address is None:
            raise ValueError("custom creation requires an address")
        return self.custom_address


@dataclass
class EofCreateInputs:
    """Inputs of an EOF creation.

    ``created_address`` is set for the EOFCREATE opcode; when it is None the
    creation is a transaction and the address derives from the tx nonce.
    """

    caller: bytes
    value: int = 0
    created_address: Optional[bytes] = None
    gas_limit: int = 0

    def __post_init__(self) -> None:
        self.caller = to_address(self.caller)
        if self.created_address is not None:
            self.created_address = to_address(self.created_address)


@dataclass
class TransferInspector:
    """Collects ETH transfers, optionally emitting transfer logs for each.

    With ``internal_only`` the top-level call is ignored. With
    ``insert_logs`` an ERC20-style log from TRANSFER_LOG_EMITTER is added to
    the journal for every recorded transfer.
    """

    _internal_only: bool = False
    insert_logs: bool = False
    _transfers: list[TransferOperation] = field(default_factory=list)

    def __init__(self, internal_only: bool = False, insert_logs: bool = False) -> None:
        self._internal_only = internal_only
        self.insert_logs = insert_logs
        self._transfers = []

    @classmethod
    def internal_only(cls) -> "TransferInspector":
        """An inspector that only collects internal transfers."""
        return cls(internal_only=True)

    @property
    def is_internal_only(self) -> bool:
        return self._internal_only

    def transfers(self) -> list[TransferOperation]:
        """The collected transfers, in order."""
        return list(self._transfers)

    def __iter__(self) -> Iterator[TransferOperation]:
        return iter(self._transfers)

    def __len__(self) -> int:
        return len(self._transfers)

    def _on_transfer(
        self,
        from_: bytes,
        to: bytes,
        value: int,
        kind: TransferKind,
        journal: Journal,
    ) -> None:
        if self._internal_only and journal.depth() == 0:
            return
        if value == 0:
            return
        self._transfers.append(TransferOperation(kind, from_, to, value))

        if self.insert_logs:
            journal.log(
                TransferLog(
                    address=TRANSFER_LOG_EMITTER,
                    topics=(TRANSFER_EVENT_TOPIC, address_to_word(from_), address_to_word(to)),
                    data=uint_to_word(value),
                )
            )

    def call(self, context: Context, inputs: CallInputs) -> None:
        value = inputs.transfer_value()
        if value is not None:
            self._on_transfer(
                inputs.transfer_from,
                inputs.transfer_to,
                value,
                TransferKind.CALL,
                context.journal,
            )
        return None

    def create(self, context: Context, inputs: CreateInputs) -> None:
        try:
            nonce = context.journal.account_nonce(inputs.caller)
        except LookupError:
            return None
        if inputs.scheme is CreateScheme.CUSTOM:
            return None
        kind = TransferKind.CREATE if inputs.scheme is CreateScheme.CREATE else TransferKind.CREATE2
        address = inputs.created_address(nonce)
        self._on_transfer(inputs.caller, address, inputs.value, kind, context.journal)
        return None

    def eofcreate(self, context: Context, inputs: EofCreateInputs) -> None:
        if inputs.created_address is not None:
            address = inputs.created_address
        else:
            address = create_address(inputs.caller, context.tx_nonce)
        self._on_transfer(
            inputs.caller, address, inputs.value, TransferKind.EOF_CREATE, context.journal
        )
        return None

    def selfdestruct(self, contract: bytes, target: bytes, value: int) -> None:
        self._transfers.append(
            TransferOperation(
                TransferKind.SELF_DESTRUCT, to_address(contract), to_address(target), value
            )
        )