"""
Write pipeline — one contract call from descriptor to final status.

Composes the stages in order:

    fetch_account_state → simulate → prepare → Signer.sign → submit
        → open_record → await_confirmation → TransactionRecord

Every stage failure leaves as a ``PipelineError`` carrying a
``ClassifiedError`` with the stage it happened in. A transaction that
was accepted always comes back as a TransactionRecord, including FAILED
and TIMED_OUT outcomes; ``failure_of()`` turns those into a
ClassifiedError for display.

Nothing here retries. A ``StaleSequence`` failure means another write
from the same account landed first; call ``invoke()`` again to rebuild
from a fresh AccountState.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import TypeVar

from apogee_tx.config import NetworkConfig
from apogee_tx.ledger.call import CallDescriptor
from apogee_tx.ledger.client import LedgerClient
from apogee_tx.ledger.errors import ClassifiedError, ErrorCategory, Stage, classify
from apogee_tx.ledger.exceptions import PipelineError, UserRejectedError
from apogee_tx.ledger.poller import await_confirmation
from apogee_tx.ledger.preparer import prepare
from apogee_tx.ledger.record import TransactionRecord, TxStatus
from apogee_tx.ledger.sequencer import fetch_account_state
from apogee_tx.ledger.signer import SignedTransaction, Signer
from apogee_tx.ledger.simulator import expect_success, simulate
from apogee_tx.ledger.submitter import open_record, submit

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PipelineState(StrEnum):
    """Progress labels reported through ``on_state``."""

    IDLE = "idle"
    SIMULATING = "simulating"
    SIGNING = "signing"
    SUBMITTING = "submitting"
    CONFIRMING = "confirming"
    SUCCESS = "success"
    ERROR = "error"


_STATE_MESSAGES: dict[PipelineState, str] = {
    PipelineState.SIMULATING: "Preparing transaction...",
    PipelineState.SIGNING: "Waiting for wallet signature...",
    PipelineState.SUBMITTING: "Submitting transaction...",
    PipelineState.CONFIRMING: "Confirming on-chain...",
    PipelineState.SUCCESS: "Transaction confirmed!",
    PipelineState.ERROR: "Transaction failed",
}


def state_message(state: PipelineState) -> str:
    """Short progress text for a UI. Empty for IDLE."""
    return _STATE_MESSAGES.get(state, "")


StateCallback = Callable[[PipelineState], None]


async def _run_stage(
    stage: Stage,
    awaitable: Awaitable[T],
    *,
    method: str,
) -> T:
    try:
        return await awaitable
    except PipelineError:
        raise
    except Exception as exc:
        classified = classify(exc, stage, method=method)
        logger.warning("%s stage failed for %s: %s", stage, method, classified.category)
        raise PipelineError(classified) from exc


async def _sign(signer: Signer, unsigned_envelope: str) -> SignedTransaction:
    signed = await signer.sign(unsigned_envelope)
    if not signed:
        raise UserRejectedError("signer returned an empty envelope")
    return SignedTransaction(envelope=signed)


async def invoke(
    call: CallDescriptor,
    source: str,
    signer: Signer,
    client: LedgerClient,
    config: NetworkConfig,
    *,
    on_state: StateCallback | None = None,
    timeout: float | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> TransactionRecord:
    """Run one write call through the whole pipeline.

    Args:
        call: The contract call.
        source: Signer account address.
        signer: External signer; the only place keys live.
        client: Ledger client.
        config: Network configuration.
        on_state: Optional progress callback.
        timeout: Per-request deadline for account, simulate and submit.
            Defaults to ``config.request_timeout``. Signing is never
            timed out here.
        sleep: Awaitable sleep used between polls.

    Returns:
        Terminal TransactionRecord (SUCCESS, FAILED or TIMED_OUT).

    Raises:
        PipelineError: If any stage before confirmation fails.
    """

    def notify(state: PipelineState) -> None:
        if on_state is not None:
            on_state(state)

    method = call.method
    if timeout is None:
        timeout = config.request_timeout
    try:
        notify(PipelineState.SIMULATING)
        account = await _run_stage(
            Stage.ACCOUNT,
            fetch_account_state(client, source, timeout=timeout),
            method=method,
        )
        result = await _run_stage(
            Stage.SIMULATE,
            simulate(
                client,
                call,
                account,
                network_passphrase=config.network_passphrase,
                base_fee=config.base_fee,
                timeout=timeout,
            ),
            method=method,
        )
        simulation = expect_success(result, method=method)

        try:
            prepared = prepare(
                call,
                simulation,
                account,
                network_passphrase=config.network_passphrase,
                base_fee=config.base_fee,
            )
        except ValueError as exc:
            raise PipelineError(classify(exc, Stage.PREPARE, method=method)) from exc

        notify(PipelineState.SIGNING)
        signed = await _run_stage(
            Stage.SIGN, _sign(signer, prepared.envelope), method=method
        )

        notify(PipelineState.SUBMITTING)
        sent = await submit(client, signed, method=method, timeout=timeout)
        record = open_record(sent)
    except PipelineError as exc:
        logger.info("%s aborted at %s: %s", method, exc.classified.stage, exc.category)
        notify(PipelineState.ERROR)
        raise

    notify(PipelineState.CONFIRMING)
    record = await await_confirmation(
        client,
        record,
        interval=config.poll_interval,
        max_attempts=config.max_poll_attempts,
        sleep=sleep,
    )
    notify(PipelineState.SUCCESS if record.succeeded else PipelineState.ERROR)
    return record


def failure_of(
    record: TransactionRecord,
    *,
    method: str | None = None,
) -> ClassifiedError | None:
    """Classify a FAILED or TIMED_OUT record. None for anything else.

    TIMED_OUT is reported as a timeout, not a failure: the transaction
    may still land.
    """
    if record.status == TxStatus.TIMED_OUT:
        return ClassifiedError(
            category=ErrorCategory.TIMEOUT,
            human_message=(
                "Transaction timed out. Please check the explorer and try again."
            ),
            stage=Stage.POLL,
            cause=record.detail,
        )
    if record.status == TxStatus.FAILED:
        return classify(record.detail or "transaction failed", Stage.POLL, method=method)
    return None
