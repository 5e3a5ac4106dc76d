"""
Submitter — send a signed envelope and read the immediate acknowledgment.

PENDING and DUPLICATE are handed back (DUPLICATE means the node already
has this exact transaction; it is in flight, not a new one). ERROR and
TRY_AGAIN_LATER are classified and raised at once; the poller is never
started for them. Nothing is retried here.
"""

from __future__ import annotations

import asyncio
import logging

from apogee_tx.ledger.client import LedgerClient, SendResult, SendStatus
from apogee_tx.ledger.errors import Stage, classify
from apogee_tx.ledger.exceptions import PipelineError
from apogee_tx.ledger.record import TransactionRecord, TxStatus
from apogee_tx.ledger.signer import SignedTransaction

logger = logging.getLogger(__name__)


def _rejection_message(result: SendResult) -> str:
    if result.status == SendStatus.TRY_AGAIN_LATER:
        return "network busy: try again later"
    parts = [part for part in (result.error_result, result.detail) if part]
    if not parts:
        return "Transaction submission failed: unknown error"
    return "Transaction submission failed: " + "; ".join(parts)


async def submit(
    client: LedgerClient,
    signed: SignedTransaction,
    *,
    method: str | None = None,
    timeout: float | None = None,
) -> SendResult:
    """Send a signed transaction.

    Args:
        client: Ledger client.
        signed: Signed envelope from the signer.
        method: Contract method, for error wording.
        timeout: Optional caller deadline in seconds.

    Returns:
        SendResult with status PENDING or DUPLICATE and a hash.

    Raises:
        PipelineError: On ERROR/TRY_AGAIN_LATER, a missing hash, or a
            transport failure (stage SUBMIT).
    """
    try:
        async with asyncio.timeout(timeout):
            result = await client.send_transaction(signed.envelope)
    except Exception as exc:
        classified = classify(exc, Stage.SUBMIT, method=method)
        logger.warning("submit failed before acknowledgment: %s", classified.category)
        raise PipelineError(classified) from exc

    if result.status in (SendStatus.ERROR, SendStatus.TRY_AGAIN_LATER):
        message = _rejection_message(result)
        logger.warning("submission rejected (hash=%s): %s", result.hash, message)
        raise PipelineError(classify(message, Stage.SUBMIT, method=method))

    if not result.hash:
        raise PipelineError(
            classify("no transaction hash in acknowledgment", Stage.SUBMIT, method=method)
        )

    logger.info("transaction %s sent, status=%s", result.hash, result.status)
    return result


def open_record(result: SendResult) -> TransactionRecord:
    """Create the TransactionRecord for an accepted submission.

    Raises:
        ValueError: If the submission was not accepted.
    """
    if result.status not in (SendStatus.PENDING, SendStatus.DUPLICATE):
        raise ValueError(f"cannot track a {result.status} submission")
    if not result.hash:
        raise ValueError("accepted submission has no hash")
    return TransactionRecord(
        hash=result.hash,
        status=TxStatus.PENDING,
        initial_status=TxStatus(str(result.status)),
    )
