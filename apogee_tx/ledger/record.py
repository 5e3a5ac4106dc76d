"""
Transaction record — the caller-facing outcome of a submitted transaction.

Created at submission time and mutated only by the confirmation poller.
Once ``status`` is terminal the record never changes again.

Status semantics:
    - SUCCESS: included and succeeded. If ``presumed`` is True, the final
      status response could not be decoded and success is inferred; the
      hash should be verified out-of-band (see ``detail``).
    - FAILED: included and failed on-chain.
    - DUPLICATE: the node already had this transaction. As a submission
      acknowledgment it is kept in ``initial_status`` and polling still
      runs, so ``status`` ends in the on-chain outcome.
    - ERROR: rejected at submission; never polled.
    - TIMED_OUT: no terminal answer within the attempt cap. Not proof
      of failure; the transaction may still land.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any


class TxStatus(StrEnum):
    """Lifecycle status of a submitted transaction."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    DUPLICATE = "DUPLICATE"
    ERROR = "ERROR"
    TIMED_OUT = "TIMED_OUT"


TERMINAL_STATUSES = frozenset(
    {
        TxStatus.SUCCESS,
        TxStatus.FAILED,
        TxStatus.DUPLICATE,
        TxStatus.ERROR,
        TxStatus.TIMED_OUT,
    }
)


def now_utc() -> str:
    """RFC3339 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S+00:00")


@dataclass
class TransactionRecord:
    """Mutable record of one submitted transaction.

    Attributes:
        hash: Transaction hash (64 hex chars).
        status: Current status.
        attempts: Number of status queries made so far.
        first_seen_at: RFC3339 UTC time of submission.
        last_polled_at: RFC3339 UTC time of the latest status query.
        initial_status: Status from the submission acknowledgment
            (PENDING or DUPLICATE).
        ledger: Ledger the transaction landed in, once known.
        return_value: Decoded contract return value on SUCCESS.
        presumed: True when SUCCESS was inferred, not observed.
        detail: Diagnostic note (failure text, presumption reason).
    """

    hash: str
    status: TxStatus = TxStatus.PENDING
    attempts: int = 0
    first_seen_at: str = ""
    last_polled_at: str | None = None
    initial_status: TxStatus = TxStatus.PENDING
    ledger: int | None = None
    return_value: Any = None
    presumed: bool = False
    detail: str | None = None

    def __post_init__(self) -> None:
        if not self.hash:
            raise ValueError("hash must be non-empty")
        if not self.first_seen_at:
            self.first_seen_at = now_utc()

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def succeeded(self) -> bool:
        return self.status == TxStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for logs and UI payloads."""
        return {
            "hash": self.hash,
            "status": str(self.status),
            "attempts": self.attempts,
            "first_seen_at": self.first_seen_at,
            "last_polled_at": self.last_polled_at,
            "initial_status": str(self.initial_status),
            "ledger": self.ledger,
            "presumed": self.presumed,
            "detail": self.detail,
        }
