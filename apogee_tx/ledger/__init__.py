"""
Contract-call transaction pipeline for a smart-contract ledger.

Public API:

    Call description (pure, no I/O):
        - ``CallDescriptor`` — contract address, method, typed arguments.
        - ``ScVal`` and constructors (``i128``, ``symbol``, ``address``, ...).
        - Envelope codec: ``build_draft``, ``encode_envelope``,
          ``decode_envelope``, ``transaction_hash``.

    Stages (network I/O through an injected client):
        - ``fetch_account_state()`` — fresh sequence number for the signer.
        - ``simulate()`` / ``read_contract()`` — dry run and read-only calls.
        - ``prepare()`` — pure; merges simulation into an unsigned envelope.
        - ``submit()`` / ``open_record()`` — send a signed envelope.
        - ``await_confirmation()`` — poll until a terminal status.
        - ``invoke()`` — all of the above in order.

    Protocols (for dependency injection):
        - ``LedgerClient`` — network boundary (account, simulate, send, status).
        - ``Signer`` — secrets boundary (sign an opaque envelope string).

    Error mapping:
        - ``classify()`` — raw failure → ``ClassifiedError``.
        - ``PipelineError`` — the one exception callers catch.

    Concrete client:
        - ``JsonRpcClient`` — JSON-RPC implementation of LedgerClient.

    Transport:
        - ``JsonRpcTransport`` — injectable transport protocol for JSON-RPC.
        - ``HttpxTransport`` — default httpx-based transport.
"""

from apogee_tx.ledger.call import CallDescriptor
from apogee_tx.ledger.client import (
    AccountState,
    Footprint,
    GetStatus,
    LedgerClient,
    SendResult,
    SendStatus,
    SimulationFailure,
    SimulationNeedsRestore,
    SimulationResult,
    SimulationSuccess,
    TxStatusResult,
)
from apogee_tx.ledger.envelope import (
    build_draft,
    decode_envelope,
    encode_envelope,
    transaction_hash,
)
from apogee_tx.ledger.errors import (
    ERROR_TABLE_VERSION,
    ClassifiedError,
    ErrorCategory,
    Stage,
    classify,
)
from apogee_tx.ledger.exceptions import (
    AccountNotFoundError,
    EnvelopeError,
    LedgerError,
    PipelineError,
    ResponseDecodeError,
    RpcError,
    SignerError,
    UserRejectedError,
    WalletLockedError,
)
from apogee_tx.ledger.jsonrpc_client import JsonRpcClient
from apogee_tx.ledger.pipeline import PipelineState, failure_of, invoke, state_message
from apogee_tx.ledger.poller import await_confirmation
from apogee_tx.ledger.preparer import PreparedTransaction, prepare
from apogee_tx.ledger.record import TERMINAL_STATUSES, TransactionRecord, TxStatus
from apogee_tx.ledger.scval import ScType, ScVal, decode_scval
from apogee_tx.ledger.sequencer import fetch_account_state
from apogee_tx.ledger.signer import SignedTransaction, Signer
from apogee_tx.ledger.simulator import read_contract, simulate
from apogee_tx.ledger.submitter import open_record, submit
from apogee_tx.ledger.transport import HttpxTransport, JsonRpcTransport

__all__ = [
    "ERROR_TABLE_VERSION",
    "TERMINAL_STATUSES",
    "AccountNotFoundError",
    "AccountState",
    "CallDescriptor",
    "ClassifiedError",
    "EnvelopeError",
    "ErrorCategory",
    "Footprint",
    "GetStatus",
    "HttpxTransport",
    "JsonRpcClient",
    "JsonRpcTransport",
    "LedgerClient",
    "LedgerError",
    "PipelineError",
    "PipelineState",
    "PreparedTransaction",
    "ResponseDecodeError",
    "RpcError",
    "ScType",
    "ScVal",
    "SendResult",
    "SendStatus",
    "SignedTransaction",
    "Signer",
    "SignerError",
    "SimulationFailure",
    "SimulationNeedsRestore",
    "SimulationResult",
    "SimulationSuccess",
    "Stage",
    "TransactionRecord",
    "TxStatus",
    "TxStatusResult",
    "UserRejectedError",
    "WalletLockedError",
    "await_confirmation",
    "build_draft",
    "classify",
    "decode_envelope",
    "decode_scval",
    "encode_envelope",
    "failure_of",
    "fetch_account_state",
    "invoke",
    "open_record",
    "prepare",
    "read_contract",
    "simulate",
    "state_message",
    "submit",
    "transaction_hash",
]
