"""
Lending pool call catalog.

Builds CallDescriptors for the pool, price oracle and token contracts.
Pure: nothing here talks to the network except ``ensure_pool_ready()``
and the ``read_*`` helpers, which go through the read-only simulate path.

Conventions shared by every pool method:
    - the acting user is the first argument, as an ``address``;
    - assets are ``symbol`` values, ``XLM`` or ``USDC``;
    - amounts are positive ``i128`` values scaled by 10^7.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from apogee_tx.amounts import from_scaled, to_scaled
from apogee_tx.config import ContractAddresses, NetworkConfig
from apogee_tx.ledger.call import CallDescriptor
from apogee_tx.ledger.client import LedgerClient
from apogee_tx.ledger.errors import ClassifiedError, ErrorCategory, Stage
from apogee_tx.ledger.exceptions import PipelineError
from apogee_tx.ledger.scval import ScVal, address, i128, symbol
from apogee_tx.ledger.simulator import read_contract

XLM = "XLM"
USDC = "USDC"
ASSETS = frozenset({XLM, USDC})

Amount = Decimal | int | float | str

# Pool methods that move funds, in the order a user meets them.
WRITE_METHODS = (
    "supply",
    "withdraw",
    "deposit_collateral",
    "withdraw_collateral",
    "borrow",
    "repay",
    "liquidate",
)


def _asset(asset: str) -> ScVal:
    if asset not in ASSETS:
        raise ValueError(f"unknown asset {asset!r}, expected one of {sorted(ASSETS)}")
    return symbol(asset)


def _positive(amount: Amount) -> ScVal:
    scaled = to_scaled(amount)
    if scaled <= 0:
        raise ValueError(f"amount must be positive, got: {amount!r}")
    return i128(scaled)


def _require(contract: str, name: str) -> str:
    if not contract:
        raise ValueError(f"{name} contract is not configured")
    return contract


# =========================================================================
# Pool writes
# =========================================================================


def _user_asset_amount(
    contracts: ContractAddresses,
    method: str,
    user: str,
    asset: str,
    amount: Amount,
) -> CallDescriptor:
    return CallDescriptor(
        contract_address=_require(contracts.pool, "pool"),
        method=method,
        args=(address(user), _asset(asset), _positive(amount)),
    )


def supply(contracts: ContractAddresses, user: str, asset: str, amount: Amount) -> CallDescriptor:
    """Lend ``amount`` of ``asset`` to the pool in exchange for shares."""
    return _user_asset_amount(contracts, "supply", user, asset, amount)


def withdraw(contracts: ContractAddresses, user: str, asset: str, shares: Amount) -> CallDescriptor:
    """Redeem supplied shares."""
    return _user_asset_amount(contracts, "withdraw", user, asset, shares)


def deposit_collateral(
    contracts: ContractAddresses, user: str, asset: str, amount: Amount
) -> CallDescriptor:
    return _user_asset_amount(contracts, "deposit_collateral", user, asset, amount)


def withdraw_collateral(
    contracts: ContractAddresses, user: str, asset: str, amount: Amount
) -> CallDescriptor:
    return _user_asset_amount(contracts, "withdraw_collateral", user, asset, amount)


def borrow(contracts: ContractAddresses, user: str, asset: str, amount: Amount) -> CallDescriptor:
    return _user_asset_amount(contracts, "borrow", user, asset, amount)


def repay(contracts: ContractAddresses, user: str, asset: str, amount: Amount) -> CallDescriptor:
    return _user_asset_amount(contracts, "repay", user, asset, amount)


def liquidate(
    contracts: ContractAddresses,
    liquidator: str,
    borrower: str,
    repay_asset: str,
    amount: Amount,
    collateral_asset: str,
) -> CallDescriptor:
    """Repay part of an unhealthy borrower's debt and seize collateral."""
    if liquidator == borrower:
        raise ValueError("liquidator and borrower must differ")
    return CallDescriptor(
        contract_address=_require(contracts.pool, "pool"),
        method="liquidate",
        args=(
            address(liquidator),
            address(borrower),
            _asset(repay_asset),
            _positive(amount),
            _asset(collateral_asset),
        ),
    )


# =========================================================================
# Oracle and token
# =========================================================================


def set_price(contracts: ContractAddresses, asset: str, price_usd: Amount) -> CallDescriptor:
    """Admin-only oracle update. Price is USD per unit, scaled by 10^7."""
    return CallDescriptor(
        contract_address=_require(contracts.oracle, "oracle"),
        method="set_price",
        args=(_asset(asset), _positive(price_usd)),
    )


def get_price(contracts: ContractAddresses, asset: str) -> CallDescriptor:
    return CallDescriptor(
        contract_address=_require(contracts.oracle, "oracle"),
        method="get_price",
        args=(_asset(asset),),
    )


def token_balance(token_contract: str, user: str) -> CallDescriptor:
    """``balance(user)`` on a token contract."""
    return CallDescriptor(
        contract_address=_require(token_contract, "token"),
        method="balance",
        args=(address(user),),
    )


# =========================================================================
# Pool reads
# =========================================================================


def _user_asset_read(
    contracts: ContractAddresses, method: str, user: str, asset: str
) -> CallDescriptor:
    return CallDescriptor(
        contract_address=_require(contracts.pool, "pool"),
        method=method,
        args=(address(user), _asset(asset)),
    )


def get_user_collateral(contracts: ContractAddresses, user: str, asset: str) -> CallDescriptor:
    return _user_asset_read(contracts, "get_user_collateral", user, asset)


def get_user_debt(contracts: ContractAddresses, user: str, asset: str) -> CallDescriptor:
    return _user_asset_read(contracts, "get_user_debt", user, asset)


def get_user_shares(contracts: ContractAddresses, user: str, asset: str) -> CallDescriptor:
    return _user_asset_read(contracts, "get_user_shares", user, asset)


def get_health_factor(contracts: ContractAddresses, user: str) -> CallDescriptor:
    return CallDescriptor(
        contract_address=_require(contracts.pool, "pool"),
        method="get_health_factor",
        args=(address(user),),
    )


def get_ltv_ratio(contracts: ContractAddresses, asset: str) -> CallDescriptor:
    return CallDescriptor(
        contract_address=_require(contracts.pool, "pool"),
        method="get_ltv_ratio",
        args=(_asset(asset),),
    )


def get_market_info(contracts: ContractAddresses, asset: str) -> CallDescriptor:
    return CallDescriptor(
        contract_address=_require(contracts.pool, "pool"),
        method="get_market_info",
        args=(_asset(asset),),
    )


async def read_scaled(
    client: LedgerClient,
    call: CallDescriptor,
    config: NetworkConfig,
) -> Decimal:
    """Run a read call that returns a scaled ``i128`` and unscale it.

    A void return reads as zero (the contract has no entry yet).
    """
    value: Any = await read_contract(
        client,
        call,
        network_passphrase=config.network_passphrase,
        base_fee=config.base_fee,
        timeout=config.request_timeout,
    )
    if value is None:
        return Decimal(0)
    return from_scaled(value)


async def ensure_pool_ready(
    client: LedgerClient,
    contracts: ContractAddresses,
    config: NetworkConfig,
) -> None:
    """Check the pool is deployed and initialized before sending writes.

    Reads ``get_ltv_ratio(XLM)``, which panics on an uninitialized pool.

    Raises:
        PipelineError: NotInitialized if contracts are not configured or
            the read fails for any reason other than the network.
    """
    if not contracts.is_configured:
        raise PipelineError(
            ClassifiedError(
                category=ErrorCategory.NOT_INITIALIZED,
                human_message="Pool and oracle contracts are not configured.",
                stage=Stage.SIMULATE,
            )
        )
    try:
        await read_contract(
            client,
            get_ltv_ratio(contracts, XLM),
            network_passphrase=config.network_passphrase,
            base_fee=config.base_fee,
            timeout=config.request_timeout,
        )
    except PipelineError as exc:
        if exc.classified.category in (ErrorCategory.NETWORK_ERROR, ErrorCategory.TIMEOUT):
            raise
        raise PipelineError(
            ClassifiedError(
                category=ErrorCategory.NOT_INITIALIZED,
                human_message="Pool contract is not initialized.",
                stage=Stage.SIMULATE,
                cause=exc.classified.cause,
            )
        ) from exc
