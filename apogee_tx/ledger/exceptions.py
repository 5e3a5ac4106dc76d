"""
Exception types for the ledger pipeline.

Expected network answers (simulation failure, send status ERROR, tx not
found) are result objects, not exceptions. Exceptions are reserved for:

    - transport/RPC failures (``RpcError``),
    - responses that arrived but could not be parsed (``ResponseDecodeError``),
    - a missing signer account (``AccountNotFoundError``),
    - signer refusals (``SignerError`` and subclasses),
    - malformed envelopes (``EnvelopeError``),
    - the one caller-facing failure, ``PipelineError``, which carries
      a ``ClassifiedError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from apogee_tx.ledger.errors import ClassifiedError


class LedgerError(Exception):
    """Base class for ledger pipeline errors."""


class RpcError(LedgerError):
    """The RPC endpoint answered with a JSON-RPC error object."""

    def __init__(self, code: int | None, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"RPC error {self.code}: {self.message}"


class AccountNotFoundError(LedgerError):
    """The signer account does not exist on the ledger."""

    def __init__(self, address: str) -> None:
        super().__init__(f"account not found: {address}")
        self.address = address


class ResponseDecodeError(LedgerError):
    """A response arrived but could not be decoded."""


class EnvelopeError(LedgerError, ValueError):
    """An envelope string is malformed or inconsistent."""


class SignerError(LedgerError):
    """The external signer did not produce a signed envelope."""


class UserRejectedError(SignerError):
    """The user declined the signing prompt."""


class WalletLockedError(SignerError):
    """The wallet is locked and cannot sign."""


class PipelineError(LedgerError):
    """A pipeline stage failed; ``classified`` says why in caller terms."""

    def __init__(self, classified: ClassifiedError) -> None:
        super().__init__(classified.human_message)
        self.classified = classified

    @property
    def category(self) -> str:
        return str(self.classified.category)
