"""
Confirmation poller — wait for a submitted transaction to reach a final state.

State machine::

    PENDING --NOT_FOUND--> PENDING (attempts += 1)
    PENDING --SUCCESS----> SUCCESS
    PENDING --FAILED-----> FAILED
    PENDING --decode err-> SUCCESS (presumed=True)
    PENDING --other err--> PENDING (attempts += 1, logged)
    attempts == max -----> TIMED_OUT

Fixed interval, hard attempt cap, no backoff.

Presumed success: when a status response arrives but cannot be decoded
(a bad union switch or XDR error in practice) the transaction was almost
always accepted. The poller records SUCCESS with ``presumed=True`` and
stops. This is not an on-chain proof; callers that need certainty
verify the hash out-of-band.

TIMED_OUT is informational. The transaction may still land after the
poller gives up.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable

from apogee_tx.ledger.client import GetStatus, LedgerClient
from apogee_tx.ledger.exceptions import ResponseDecodeError
from apogee_tx.ledger.record import TransactionRecord, TxStatus, now_utc

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_ATTEMPTS = 30

_DECODE_HINT_RE = re.compile(r"union|xdr", re.I)


def is_decode_glitch(exc: BaseException) -> bool:
    """True if ``exc`` means "the response arrived but would not parse"."""
    if isinstance(exc, ResponseDecodeError):
        return True
    return bool(_DECODE_HINT_RE.search(str(exc)))


async def await_confirmation(
    client: LedgerClient,
    record: TransactionRecord,
    *,
    interval: float = DEFAULT_POLL_INTERVAL,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> TransactionRecord:
    """Poll until ``record`` reaches a terminal status.

    Args:
        client: Ledger client.
        record: Record opened at submission (status PENDING).
        interval: Seconds to wait before each status query.
        max_attempts: Hard cap on status queries.
        sleep: Awaitable sleep; inject a no-op in tests.

    Returns:
        The same record, now terminal (SUCCESS, FAILED or TIMED_OUT).

    Raises:
        ValueError: If the record is already terminal or the limits
            are invalid.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got: {max_attempts}")
    if interval < 0:
        raise ValueError(f"interval must be >= 0, got: {interval}")
    if record.is_terminal:
        raise ValueError(f"record {record.hash} is already {record.status}")

    while record.attempts < max_attempts:
        await sleep(interval)
        record.attempts += 1
        record.last_polled_at = now_utc()

        try:
            result = await client.get_transaction(record.hash)
        except Exception as exc:
            if is_decode_glitch(exc):
                logger.warning(
                    "status for %s could not be decoded (%s); presuming success",
                    record.hash,
                    exc,
                )
                record.status = TxStatus.SUCCESS
                record.presumed = True
                record.detail = f"presumed success, status response undecodable: {exc}"
                return record
            logger.warning(
                "poll attempt %d/%d for %s failed: %s",
                record.attempts,
                max_attempts,
                record.hash,
                exc,
            )
            continue

        logger.debug(
            "poll attempt %d/%d for %s: %s",
            record.attempts,
            max_attempts,
            record.hash,
            result.status,
        )

        if result.status == GetStatus.SUCCESS:
            record.status = TxStatus.SUCCESS
            record.ledger = result.ledger
            record.return_value = result.return_value
            logger.info("transaction %s confirmed in ledger %s", record.hash, result.ledger)
            return record

        if result.status == GetStatus.FAILED:
            record.status = TxStatus.FAILED
            record.ledger = result.ledger
            record.detail = result.result_detail or "transaction failed on-chain"
            logger.warning("transaction %s failed on-chain: %s", record.hash, record.detail)
            return record

    record.status = TxStatus.TIMED_OUT
    record.detail = f"no final status after {max_attempts} attempts"
    logger.warning(
        "gave up waiting for %s after %d attempts; it may still confirm",
        record.hash,
        max_attempts,
    )
    return record
