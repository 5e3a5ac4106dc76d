"""
Transaction envelope builder and codec.

Builds the unsigned draft for a contract call and merges simulation
results into it. Pure and deterministic; holds no keys and makes no
network calls.

Wire form: base64 of the canonical JSON of the envelope dict. The
pipeline hands this string to the signer and never looks inside the
signed result.

Envelope shape::

    {
        "network":   sha256 hex of the network passphrase,
        "source":    signer account address,
        "sequence":  account sequence + 1,
        "fee":       total fee (base fee, plus resource fee once prepared),
        "timeout":   validity window in seconds,
        "operation": {"type": "invoke_contract", "contract", "method", "args"},
        "resources": null (draft) | {"footprint": {...}, "resourceFee": n},
    }

A signer adds a ``"signatures"`` list. The transaction hash covers the
network id and everything except ``signatures``, so re-submitting the
same signed transaction always yields the same hash.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from apogee_tx.canonical_json import canonical_json_bytes
from apogee_tx.integrity import network_id, sha256_digest
from apogee_tx.ledger.call import CallDescriptor
from apogee_tx.ledger.exceptions import EnvelopeError

# Default validity window for built transactions (seconds).
DEFAULT_TX_TIMEOUT = 30

_REQUIRED_FIELDS = ("network", "source", "sequence", "fee", "operation")


def network_hash(network_passphrase: str) -> str:
    """Hex network identifier embedded in every envelope."""
    return network_id(network_passphrase).hex()


def build_draft(
    call: CallDescriptor,
    source: str,
    sequence: int,
    *,
    network_passphrase: str,
    fee: int,
    timeout: int = DEFAULT_TX_TIMEOUT,
) -> dict[str, Any]:
    """Build an unsigned, unprepared envelope dict.

    Args:
        call: The contract call to wrap.
        source: Source account address.
        sequence: Sequence number this transaction consumes
            (the account's current sequence + 1).
        network_passphrase: Network identifier string.
        fee: Inclusion fee before resource fees.
        timeout: Validity window in seconds.

    Raises:
        ValueError: If source is empty, sequence < 1, fee < 0, or
            timeout <= 0.
    """
    if not source:
        raise ValueError("source must be non-empty")
    if sequence < 1:
        raise ValueError(f"sequence must be >= 1, got: {sequence}")
    if fee < 0:
        raise ValueError(f"fee must be >= 0, got: {fee}")
    if timeout <= 0:
        raise ValueError(f"timeout must be > 0, got: {timeout}")

    return {
        "network": network_hash(network_passphrase),
        "source": source,
        "sequence": sequence,
        "fee": fee,
        "timeout": timeout,
        "operation": call.to_operation(),
        "resources": None,
    }


def attach_resources(
    draft: dict[str, Any],
    footprint: dict[str, list[str]],
    resource_fee: int,
) -> dict[str, Any]:
    """Return a copy of ``draft`` with footprint and resource fee merged in.

    The total fee becomes the draft's inclusion fee plus the resource fee.
    """
    if resource_fee < 0:
        raise ValueError(f"resource_fee must be >= 0, got: {resource_fee}")
    prepared = dict(draft)
    prepared["resources"] = {
        "footprint": {
            "readOnly": list(footprint.get("readOnly", [])),
            "readWrite": list(footprint.get("readWrite", [])),
        },
        "resourceFee": resource_fee,
    }
    prepared["fee"] = int(draft["fee"]) + resource_fee
    return prepared


# =========================================================================
# Codec
# =========================================================================


def encode_envelope(envelope: dict[str, Any]) -> str:
    """Envelope dict → base64 canonical JSON string."""
    return base64.b64encode(canonical_json_bytes(envelope)).decode("ascii")


def decode_envelope(encoded: str) -> dict[str, Any]:
    """Base64 canonical JSON string → envelope dict.

    Raises:
        EnvelopeError: If the string is not valid base64 JSON or lacks
            required fields.
    """
    try:
        raw = base64.b64decode(encoded.encode("ascii"), validate=True)
        envelope = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise EnvelopeError(f"malformed envelope: {exc}") from None

    if not isinstance(envelope, dict):
        raise EnvelopeError("envelope must decode to an object")
    missing = [name for name in _REQUIRED_FIELDS if name not in envelope]
    if missing:
        raise EnvelopeError(f"envelope missing fields: {', '.join(missing)}")
    return envelope


def transaction_hash(envelope: dict[str, Any] | str) -> str:
    """Compute the transaction hash (64 hex chars).

    Signatures are excluded, so the hash is fixed from the moment the
    envelope is prepared.
    """
    if isinstance(envelope, str):
        envelope = decode_envelope(envelope)
    body = {k: v for k, v in envelope.items() if k != "signatures"}
    return sha256_digest(canonical_json_bytes(body))
