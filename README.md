# evmtrace

Building blocks for describing and inspecting EVM execution: trace data types, conversion to
geth and parity output shapes, a tree-shaped text writer, and two small inspectors.

## What is in the package

- `evmtrace.primitives`: `keccak256`, `checksum_address`, `create_address` (CREATE),
  `create2_address` (CREATE2), and the 32-byte ABI word helpers `address_to_word` and
  `uint_to_word`.
- `evmtrace.evm`: `InstructionResult` (with `is_ok`, `is_revert`, `is_error`), `SpecId`
  hardforks, `OpCode` (name, stack outputs, `modifies_memory`, `is_calllike`), `CallScheme`,
  `CreateScheme` and `CallKind`.
- `evmtrace.utils`: `fmt_error_msg` gives geth- or parity-style error text for a
  `TraceStyle`. `convert_memory` splits memory into 32-byte hex chunks. `gas_used` applies
  the refund cap (1/5 from London, 1/2 before). `load_account_code` returns an account's code.
  `maybe_revert_reason` decodes `Error(string)`, `Panic(uint256)` and raw UTF-8 revert output.
- `evmtrace.frames`: parity frames (`CallAction`, `CreateAction`, `SelfdestructAction`,
  `CallOutput`, `CreateOutput`, `TransactionTrace`) and geth frames (`CallFrame`,
  `CallLogFrame`, `StructLog`, `GethDefaultTracingOptions`). It also has the mappings
  `call_type_for`, `creation_method_for` and `action_type_for`.
- `evmtrace.types`: `CallTrace`, `CallTraceNode`, `CallTraceStep`, `CallLog`, `LogData`,
  `StorageChange`, `RecordedMemory`, `TraceMemberOrder`, and decoded data (`DecodedCallData`,
  `DecodedCallTrace`, `DecodedCallLog`, `InternalCallStep`, `LineStep`). A node converts itself
  with `parity_transaction_trace`, `parity_action`, `parity_selfdestruct_trace`,
  `geth_empty_call_frame` and `geth_selfdestruct_call_trace`. A step converts with
  `to_struct_log`.
- `evmtrace.writer`: `TraceWriter` prints a list of `CallTraceNode`s as a tree of calls, logs,
  decoded steps and, if enabled, compacted storage changes. `TraceWriterConfig` has the
  options `use_colors`, `color_cheatcodes`, `write_bytecodes` and `write_storage_changes`.
  `ColorChoice` and `resolve_colors` decide colouring. `AUTO` colours only when stdout is a
  terminal.
- `evmtrace.transfer`: `TransferInspector` collects value transfers made by CALL, CREATE,
  CREATE2, EOFCREATE and SELFDESTRUCT. It can skip the top-level call (`internal_only`) and can
  emit ERC20-style `Transfer` logs from `TRANSFER_LOG_EMITTER` (`insert_logs`).
- `evmtrace.opcount`: `OpcodeCountInspector` counts the steps it is shown.

## What it does not do

The package does not execute bytecode. It has no interpreter or state database. It also has no
recorder that builds `CallTraceNode` lists as execution runs. The inspectors' hooks (`call`,
`create`, `eofcreate`, `selfdestruct`, `step`) must be called by an execution engine that you
supply. Trace nodes are built by your own code.

## Installation

```
pip install evmtrace
```

## Writing a trace

```python
import io

from evmtrace.evm import CallKind, InstructionResult
from evmtrace.types import CallTrace, CallTraceNode
from evmtrace.writer import TraceWriter, TraceWriterConfig

root = CallTraceNode(
    trace=CallTrace(
        kind=CallKind.CALL,
        address=bytes(20),
        data=bytes.fromhex("a9059cbb"),
        gas_used=21000,
        status=InstructionResult.Stop,
        success=True,
    )
)

out = io.StringIO()
TraceWriter(out, TraceWriterConfig(use_colors=False)).write_arena([root])
print(out.getvalue())
```

This prints:

```
  [21000] 0x0000000000000000000000000000000000000000::a9059cbb()
    └─ ← [Stop]
```

## Collecting transfers

```python
from evmtrace.transfer import CallInputs, TransferInspector


class Journal:
    def __init__(self, depth):
        self._depth = depth
        self.logs = []

    def depth(self):
        return self._depth

    def log(self, log):
        self.logs.append(log)

    def account_nonce(self, address):
        return 0


class Context:
    def __init__(self, depth):
        self.journal = Journal(depth)
        self.tx_nonce = 0


inspector = TransferInspector(insert_logs=True)
inputs = CallInputs(caller=bytes(20), target_address=b"\x01" * 20, value=10)
inspector.call(Context(depth=1), inputs)
for transfer in inspector:
    print(transfer.kind, transfer.value)
```

## Decoding a revert reason

```python
from evmtrace.utils import maybe_revert_reason

maybe_revert_reason(output_bytes)  # a non-empty reason string, or None
```

## Running the tests

```
pip install -e ".[test]"
pytest
```