"""
Signer protocol — the secrets boundary.

The pipeline never sees private keys. It passes an unsigned envelope
string to the signer and submits whatever string comes back, without
parsing it.

Concrete implementations live in the surrounding application (browser
wallet bridge, hardware wallet, headless test key). Anything with an
async ``sign(str) -> str`` method qualifies.

Signing may wait on a human indefinitely. The pipeline does not apply a
timeout to this step; cancelling the task is the caller's job.
Implementations signal refusal with ``UserRejectedError`` or
``WalletLockedError`` from ``apogee_tx.ledger.exceptions``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class SignedTransaction:
    """A signed envelope, opaque to the pipeline."""

    envelope: str

    def __post_init__(self) -> None:
        if not self.envelope:
            raise ValueError("signed envelope must be non-empty")


@runtime_checkable
class Signer(Protocol):
    """Interface for transaction signing."""

    async def sign(self, unsigned_envelope: str) -> str:
        """Sign an unsigned envelope.

        Args:
            unsigned_envelope: Prepared envelope from
                ``PreparedTransaction.envelope``.

        Returns:
            Signed envelope string, ready for submission.

        Raises:
            UserRejectedError: If the user declined.
            WalletLockedError: If the wallet is locked.
        """
        ...
