"""
Simulator — dry-run a contract call against current ledger state.

A dry run discovers the footprint (ledger entries the call touches) and
the resource fee before anything is signed, and catches calls that would
fail. Nothing is committed and nothing is retried: a failed simulation
means the call as built cannot succeed.

Also hosts the read-only path: ``read_contract()`` simulates against a
placeholder source account and returns the decoded return value, with
no prepare/sign/submit stages.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from apogee_tx.config import DEFAULT_BASE_FEE
from apogee_tx.ledger.call import CallDescriptor
from apogee_tx.ledger.client import (
    AccountState,
    LedgerClient,
    SimulationFailure,
    SimulationNeedsRestore,
    SimulationResult,
    SimulationSuccess,
)
from apogee_tx.ledger.envelope import build_draft, encode_envelope
from apogee_tx.ledger.errors import Stage, classify
from apogee_tx.ledger.exceptions import PipelineError

logger = logging.getLogger(__name__)

# All-zero account key; never exists on-chain, good enough for dry runs.
READ_ONLY_SOURCE = "GAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAWHF"


def placeholder_account() -> AccountState:
    """Source account used for read-only simulations."""
    return AccountState(address=READ_ONLY_SOURCE, sequence_number=0, exists=False)


async def simulate(
    client: LedgerClient,
    call: CallDescriptor,
    account: AccountState,
    *,
    network_passphrase: str,
    base_fee: int = DEFAULT_BASE_FEE,
    timeout: float | None = None,
) -> SimulationResult:
    """Dry-run ``call`` from ``account`` at its next sequence number.

    Args:
        client: Ledger client.
        call: The contract call.
        account: Fresh account state of the source.
        network_passphrase: Network identifier; must match the one used
            to prepare and submit.
        base_fee: Inclusion fee for the draft.
        timeout: Optional caller deadline in seconds.

    Returns:
        SimulationSuccess, SimulationFailure or SimulationNeedsRestore.
        Transport failures propagate as exceptions.
    """
    draft = build_draft(
        call,
        account.address,
        account.next_sequence,
        network_passphrase=network_passphrase,
        fee=base_fee,
    )

    async with asyncio.timeout(timeout):
        result = await client.simulate_transaction(encode_envelope(draft))

    if isinstance(result, SimulationSuccess):
        logger.debug(
            "simulated %s.%s: fee=%d footprint=%d/%d",
            call.contract_address,
            call.method,
            result.estimated_fee,
            len(result.footprint.read_only),
            len(result.footprint.read_write),
        )
    else:
        logger.info("simulation of %s failed: %s", call.method, result.raw_message)
    return result


def expect_success(
    result: SimulationResult,
    *,
    method: str | None = None,
) -> SimulationSuccess:
    """Return ``result`` if it is a success, else raise a classified error.

    Raises:
        PipelineError: With stage SIMULATE. NeedsRestore is reported as
            its own category, not as a generic simulation failure.
    """
    if isinstance(result, SimulationSuccess):
        return result
    if isinstance(result, (SimulationFailure, SimulationNeedsRestore)):
        raise PipelineError(classify(result.raw_message, Stage.SIMULATE, method=method))
    raise TypeError(f"not a simulation result: {type(result).__name__}")


async def read_contract(
    client: LedgerClient,
    call: CallDescriptor,
    *,
    network_passphrase: str,
    base_fee: int = DEFAULT_BASE_FEE,
    timeout: float | None = None,
) -> Any:
    """Run a read-only call and return its decoded return value.

    Raises:
        PipelineError: If the simulation fails or the network call does.
    """
    try:
        result = await simulate(
            client,
            call,
            placeholder_account(),
            network_passphrase=network_passphrase,
            base_fee=base_fee,
            timeout=timeout,
        )
    except Exception as exc:
        raise PipelineError(classify(exc, Stage.SIMULATE, method=call.method)) from exc

    return expect_success(result, method=call.method).return_value
