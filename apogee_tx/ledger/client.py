"""
Ledger client protocol — the network boundary.

Defines the interface the pipeline depends on, not a concrete
implementation. This keeps every stage testable and prevents
``httpx.post`` from creeping into pipeline logic.

Concrete implementations:
    - JsonRpcClient (real, jsonrpc_client.py)
    - FakeClient / FakeLedger (tests)

The protocol has four methods, one per logical RPC call:
    - get_account(address) → AccountState
    - simulate_transaction(envelope) → SimulationResult
    - send_transaction(signed_envelope) → SendResult
    - get_transaction(tx_hash) → TxStatusResult

All return boring frozen dataclasses. No exceptions for "expected"
answers: a failed simulation or a rejected send is captured in the
result. Exceptions mean the answer never arrived (transport), could not
be parsed (ResponseDecodeError), or the account does not exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable


# =========================================================================
# Account
# =========================================================================


@dataclass(frozen=True)
class AccountState:
    """Snapshot of the signer account, read fresh before every write.

    Attributes:
        address: Account address.
        sequence_number: Last consumed sequence number. The next
            transaction from this account must use ``sequence_number + 1``.
        exists: False only for the placeholder source of read-only calls.
    """

    address: str
    sequence_number: int
    exists: bool = True

    def __post_init__(self) -> None:
        if not self.address:
            raise ValueError("address must be non-empty")
        if self.sequence_number < 0:
            raise ValueError(
                f"sequence_number must be >= 0, got: {self.sequence_number}"
            )

    @property
    def next_sequence(self) -> int:
        return self.sequence_number + 1


# =========================================================================
# Simulation
# =========================================================================


@dataclass(frozen=True)
class Footprint:
    """Ledger entries a transaction declares it will read or write."""

    read_only: tuple[str, ...] = ()
    read_write: tuple[str, ...] = ()

    def to_wire(self) -> dict[str, list[str]]:
        return {"readOnly": list(self.read_only), "readWrite": list(self.read_write)}


@dataclass(frozen=True)
class SimulationSuccess:
    """Dry run succeeded.

    Attributes:
        footprint: Entries the real execution will touch.
        estimated_fee: Resource fee the network asks for, in stroops.
        return_value: Decoded return value of the call (native Python).
        latest_ledger: Ledger the simulation ran against, if reported.
    """

    footprint: Footprint
    estimated_fee: int
    return_value: Any = None
    latest_ledger: int | None = None


@dataclass(frozen=True)
class SimulationFailure:
    """Dry run failed. ``raw_message`` is the engine text, verbatim."""

    raw_message: str


@dataclass(frozen=True)
class SimulationNeedsRestore:
    """Ledger state the call reads has expired and must be restored first."""

    raw_message: str
    restore_fee: int | None = None


SimulationResult = SimulationSuccess | SimulationFailure | SimulationNeedsRestore


# =========================================================================
# Send / status
# =========================================================================


class SendStatus(StrEnum):
    """Immediate acknowledgment status from sendTransaction."""

    PENDING = "PENDING"
    DUPLICATE = "DUPLICATE"
    ERROR = "ERROR"
    TRY_AGAIN_LATER = "TRY_AGAIN_LATER"


class GetStatus(StrEnum):
    """Status reported by getTransaction."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    NOT_FOUND = "NOT_FOUND"


@dataclass(frozen=True)
class SendResult:
    """Result of sending a signed envelope.

    Attributes:
        hash: Transaction hash (64 hex chars). Present even on ERROR
            when the node computed one.
        status: Coarse acknowledgment status.
        error_result: Engine result code on ERROR (e.g. "txBadSeq").
        detail: Human-readable detail for diagnostics.
        latest_ledger: Ledger the node was at when it answered.
    """

    hash: str | None
    status: SendStatus
    error_result: str | None = None
    detail: str | None = None
    latest_ledger: int | None = None


@dataclass(frozen=True)
class TxStatusResult:
    """Result of querying a transaction by hash.

    Attributes:
        status: SUCCESS, FAILED or NOT_FOUND.
        ledger: Ledger the transaction was included in, if found.
        return_value: Decoded contract return value on SUCCESS.
        result_detail: Engine result text on FAILED.
    """

    status: GetStatus
    ledger: int | None = None
    return_value: Any = None
    result_detail: str | None = None


# =========================================================================
# Protocol
# =========================================================================


@runtime_checkable
class LedgerClient(Protocol):
    """Interface for ledger network operations.

    Methods are async because network I/O is inherently asynchronous.
    """

    async def get_account(self, address: str) -> AccountState:
        """Fetch the account's current sequence number.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        ...

    async def simulate_transaction(self, envelope: str) -> SimulationResult:
        """Dry-run an unsigned envelope. Never raises for engine failures."""
        ...

    async def send_transaction(self, signed_envelope: str) -> SendResult:
        """Send a signed envelope. Never raises for rejections."""
        ...

    async def get_transaction(self, tx_hash: str) -> TxStatusResult:
        """Query the status of a previously sent transaction.

        Raises:
            ResponseDecodeError: If the response arrived but could not
                be decoded.
        """
        ...
