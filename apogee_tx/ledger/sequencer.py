"""
Account sequencer — read the signer account's current sequence number.

Never cache the result across write attempts: every successful
submission from the account (ours or anyone else's) consumes a sequence
number, and a transaction built on a stale one is rejected.
"""

from __future__ import annotations

import asyncio
import logging

from apogee_tx.ledger.client import AccountState, LedgerClient

logger = logging.getLogger(__name__)


async def fetch_account_state(
    client: LedgerClient,
    address: str,
    *,
    timeout: float | None = None,
) -> AccountState:
    """Fetch a fresh AccountState for ``address``.

    Args:
        client: Ledger client.
        address: Signer account address.
        timeout: Optional caller deadline in seconds.

    Raises:
        AccountNotFoundError: If the account does not exist.
        ValueError: If address is empty.
    """
    if not address:
        raise ValueError("address must be non-empty")

    async with asyncio.timeout(timeout):
        state = await client.get_account(address)

    logger.debug("account %s at sequence %d", address, state.sequence_number)
    return state
