"""
Preparer — merge a successful simulation into the final unsigned envelope.

Pure function of its inputs; no network access. Rebuilds the same draft
the simulator sent (same source, sequence, network and fee) and attaches
the footprint and resource fee the dry run reported.
"""

from __future__ import annotations

from dataclasses import dataclass

from apogee_tx.config import DEFAULT_BASE_FEE
from apogee_tx.ledger.call import CallDescriptor
from apogee_tx.ledger.client import AccountState, SimulationSuccess
from apogee_tx.ledger.envelope import (
    attach_resources,
    build_draft,
    encode_envelope,
    transaction_hash,
)


@dataclass(frozen=True)
class PreparedTransaction:
    """An unsigned, ready-to-sign envelope.

    Single use: once any transaction from the source account lands,
    ``source_sequence`` is stale and the envelope must be rebuilt from a
    fresh AccountState.

    Attributes:
        envelope: Encoded unsigned envelope, handed to the signer.
        source_sequence: The account's sequence number when this was
            built (the envelope itself consumes ``source_sequence + 1``).
        method: Contract method, kept for error wording.
        fee: Total fee (inclusion + resources).
    """

    envelope: str
    source_sequence: int
    method: str
    fee: int

    @property
    def hash(self) -> str:
        """Transaction hash the network will report for this envelope."""
        return transaction_hash(self.envelope)


def prepare(
    call: CallDescriptor,
    simulation: SimulationSuccess,
    account: AccountState,
    *,
    network_passphrase: str,
    base_fee: int = DEFAULT_BASE_FEE,
) -> PreparedTransaction:
    """Build the unsigned envelope from a successful simulation.

    Raises:
        TypeError: If ``simulation`` is not a SimulationSuccess. Calling
            prepare on a failed simulation is a programming error.
    """
    if not isinstance(simulation, SimulationSuccess):
        raise TypeError(
            f"prepare() needs a SimulationSuccess, got {type(simulation).__name__}"
        )

    draft = build_draft(
        call,
        account.address,
        account.next_sequence,
        network_passphrase=network_passphrase,
        fee=base_fee,
    )
    envelope = attach_resources(
        draft,
        simulation.footprint.to_wire(),
        simulation.estimated_fee,
    )
    return PreparedTransaction(
        envelope=encode_envelope(envelope),
        source_sequence=account.sequence_number,
        method=call.method,
        fee=int(envelope["fee"]),
    )
