"""
Error classification — raw pipeline failures → a small stable taxonomy.

Engine error text is not a stable contract, so this mapping is
best-effort. The tables below are configuration: extend them when the
contracts or the network start saying something new, and bump
``ERROR_TABLE_VERSION``.

Classification order:
    0. Known exception types (signer refusals, missing account,
       httpx timeouts and transport errors).
    1. Case-insensitive substring match against ``KNOWN_ERRORS``.
    2. Ordered regular expressions in ``ERROR_PATTERNS``.
    3. Fallback: a contract ``panic: <msg>`` is surfaced as ``<msg>``;
       otherwise short messages are shown verbatim and long ones are
       replaced with a generic "try again" message so engine internals
       never reach end users.

Stage and method awareness: the category is decided from the text, the
human message can be specialised per contract method through
``OPERATION_MESSAGES`` ("insufficient balance" reads differently for a
deposit than for a repay).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

import httpx

from apogee_tx.canonical_json import canonical_json
from apogee_tx.ledger.exceptions import (
    AccountNotFoundError,
    UserRejectedError,
    WalletLockedError,
)

ERROR_TABLE_VERSION = "4"

# Fallback threshold: longer unmatched messages are not shown verbatim.
MAX_VERBATIM_LENGTH = 100

GENERIC_FAILURE_MESSAGE = "Transaction failed. Please try again or contact support."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred. Please try again."


# =========================================================================
# Enums
# =========================================================================


class ErrorCategory(StrEnum):
    """Caller-facing failure categories."""

    INSUFFICIENT_BALANCE = "InsufficientBalance"
    INSUFFICIENT_COLLATERAL = "InsufficientCollateral"
    INSUFFICIENT_LIQUIDITY = "InsufficientLiquidity"
    LIMIT_EXCEEDED = "LimitExceeded"
    UNSAFE_POSITION = "UnsafePosition"
    POSITION_HEALTHY = "PositionHealthy"
    UNAUTHORIZED = "Unauthorized"
    NOT_INITIALIZED = "NotInitialized"
    USER_REJECTED = "UserRejected"
    WALLET_LOCKED = "WalletLocked"
    NETWORK_ERROR = "NetworkError"
    SIMULATION_FAILED = "SimulationFailed"
    TIMEOUT = "Timeout"
    UNKNOWN = "Unknown"
    NEEDS_RESTORE = "NeedsRestore"
    STALE_SEQUENCE = "StaleSequence"
    INVALID_AMOUNT = "InvalidAmount"
    PRICE_UNAVAILABLE = "PriceUnavailable"
    TRANSACTION_FAILED = "TransactionFailed"
    ACCOUNT_NOT_FOUND = "AccountNotFound"


class Stage(StrEnum):
    """Pipeline stage where a failure happened."""

    ACCOUNT = "account"
    SIMULATE = "simulate"
    PREPARE = "prepare"
    SIGN = "sign"
    SUBMIT = "submit"
    POLL = "poll"


@dataclass(frozen=True)
class ClassifiedError:
    """A failure in caller terms.

    Attributes:
        category: Stable category for programmatic handling.
        human_message: Short message safe to show to end users.
        stage: Where in the pipeline it happened.
        cause: The original error (exception, string, or mapping).
    """

    category: ErrorCategory
    human_message: str
    stage: Stage
    cause: object = field(default=None, compare=False)


# =========================================================================
# Tables
# =========================================================================

# (phrase, category, message). Phrases are lowercase; first match wins,
# so more specific phrases go first.
KNOWN_ERRORS: tuple[tuple[str, ErrorCategory, str], ...] = (
    # Pool contract
    ("already initialized", ErrorCategory.UNKNOWN, "Contract is already initialized"),
    ("not initialized", ErrorCategory.NOT_INITIALIZED, "Contract is not initialized"),
    ("not enabled as collateral", ErrorCategory.NOT_INITIALIZED,
     "This asset is not enabled as collateral on this pool."),
    ("not enabled for borrowing", ErrorCategory.NOT_INITIALIZED,
     "This asset is not enabled for borrowing on this pool."),
    ("insufficient share balance", ErrorCategory.INSUFFICIENT_BALANCE,
     "You don't have enough supplied balance to withdraw this amount."),
    ("insufficient balance", ErrorCategory.INSUFFICIENT_BALANCE,
     "Insufficient balance in your wallet"),
    ("insufficient collateral", ErrorCategory.INSUFFICIENT_COLLATERAL,
     "Not enough collateral to complete this action"),
    ("insufficient pool liquidity", ErrorCategory.INSUFFICIENT_LIQUIDITY,
     "Insufficient liquidity in the pool. Try a smaller amount."),
    ("insufficient liquidity", ErrorCategory.INSUFFICIENT_LIQUIDITY,
     "Insufficient liquidity in the pool. Try a smaller amount."),
    ("borrow limit exceeded", ErrorCategory.LIMIT_EXCEEDED,
     "Borrow limit exceeded. You need more collateral or less debt."),
    ("exceeds ltv limit", ErrorCategory.LIMIT_EXCEEDED,
     "Loan-to-Value ratio exceeded. Deposit more collateral or borrow less."),
    ("ltv exceeded", ErrorCategory.LIMIT_EXCEEDED,
     "Loan-to-Value ratio exceeded. Deposit more collateral or borrow less."),
    ("close factor exceeded", ErrorCategory.LIMIT_EXCEEDED,
     "Cannot liquidate more than 50% of the debt at once"),
    ("health factor too low", ErrorCategory.UNSAFE_POSITION,
     "Health factor would drop too low. This action is not safe."),
    ("would make position unhealthy", ErrorCategory.UNSAFE_POSITION,
     "This action would make your position liquidatable. Repay some debt first."),
    ("position is healthy", ErrorCategory.POSITION_HEALTHY,
     "Position is healthy and cannot be liquidated"),
    ("position healthy", ErrorCategory.POSITION_HEALTHY,
     "Position is healthy and cannot be liquidated"),
    ("no outstanding debt", ErrorCategory.INVALID_AMOUNT,
     "You don't have any outstanding debt to repay."),
    ("has no debt in this asset", ErrorCategory.INVALID_AMOUNT,
     "This borrower has no debt in this asset."),
    ("amount must be positive", ErrorCategory.INVALID_AMOUNT,
     "Amount must be greater than zero"),
    ("amount too small", ErrorCategory.INVALID_AMOUNT, "Amount is too small"),
    ("invalid amount", ErrorCategory.INVALID_AMOUNT, "Invalid amount specified"),
    ("zero amount", ErrorCategory.INVALID_AMOUNT, "Amount must be greater than zero"),
    ("unauthorized", ErrorCategory.UNAUTHORIZED,
     "You are not authorized to perform this action"),
    # Oracle
    ("price not set", ErrorCategory.PRICE_UNAVAILABLE,
     "Price not available for this asset"),
    ("price is stale", ErrorCategory.PRICE_UNAVAILABLE,
     "Price data is stale. Please wait for oracle update."),
    ("stale price", ErrorCategory.PRICE_UNAVAILABLE,
     "Price data is stale. Please wait for oracle update."),
    # Token
    ("transfer failed", ErrorCategory.INSUFFICIENT_BALANCE,
     "Token transfer failed. Check your balance."),
    ("approval required", ErrorCategory.UNAUTHORIZED,
     "Token approval required before this action"),
    # Wallet
    ("wallet is locked", ErrorCategory.WALLET_LOCKED,
     "Please unlock your wallet and try again."),
    # Network / protocol
    ("txbadseq", ErrorCategory.STALE_SEQUENCE,
     "Another transaction from this account landed first. Please retry."),
    ("needs restoration", ErrorCategory.NEEDS_RESTORE,
     "Contract state has expired and needs restoration before this call."),
    ("account not found", ErrorCategory.ACCOUNT_NOT_FOUND,
     "Account not found on the network. Fund it before sending transactions."),
    ("try again later", ErrorCategory.NETWORK_ERROR,
     "The network is busy. Please try again shortly."),
    ("simulation failed", ErrorCategory.SIMULATION_FAILED,
     "Transaction simulation failed. The operation may not be valid."),
    ("transaction failed", ErrorCategory.TRANSACTION_FAILED,
     "Transaction failed on-chain. Please try again."),
    ("timeout", ErrorCategory.TIMEOUT,
     "Transaction timed out. Please check the explorer and try again."),
)

# Broader patterns, tried in order after KNOWN_ERRORS.
ERROR_PATTERNS: tuple[tuple[re.Pattern[str], ErrorCategory, str], ...] = (
    (re.compile(r"insufficient.*balance", re.I), ErrorCategory.INSUFFICIENT_BALANCE,
     "Insufficient balance in your wallet"),
    (re.compile(r"insufficient.*collateral", re.I), ErrorCategory.INSUFFICIENT_COLLATERAL,
     "Not enough collateral. Deposit more XLM first."),
    (re.compile(r"insufficient.*liquidity", re.I), ErrorCategory.INSUFFICIENT_LIQUIDITY,
     "Pool doesn't have enough liquidity. Try a smaller amount."),
    (re.compile(r"borrow.*limit|ltv.*exceeded|exceeds.*limit", re.I),
     ErrorCategory.LIMIT_EXCEEDED,
     "Borrow limit exceeded. You can only borrow up to 75% of your collateral value."),
    (re.compile(r"unhealthy|health.*factor", re.I), ErrorCategory.UNSAFE_POSITION,
     "This action would make your position unsafe (Health Factor < 1.0)."),
    (re.compile(r"position.*\bhealthy", re.I), ErrorCategory.POSITION_HEALTHY,
     "This position is healthy and cannot be liquidated."),
    (re.compile(r"unauthori[sz]ed|not.*admin|auth.*fail", re.I), ErrorCategory.UNAUTHORIZED,
     "You don't have permission to perform this action."),
    (re.compile(r"user.*(rejected|declined)|rejected.*by.*user|denied", re.I),
     ErrorCategory.USER_REJECTED,
     "Transaction was rejected in your wallet."),
    (re.compile(r"wallet.*locked|unlock.*wallet", re.I), ErrorCategory.WALLET_LOCKED,
     "Please unlock your wallet and try again."),
    (re.compile(r"bad.*seq|sequence.*(number|mismatch)", re.I), ErrorCategory.STALE_SEQUENCE,
     "Another transaction from this account landed first. Please retry."),
    (re.compile(r"restore", re.I), ErrorCategory.NEEDS_RESTORE,
     "Contract state has expired and needs restoration before this call."),
    (re.compile(r"simulation.*failed", re.I), ErrorCategory.SIMULATION_FAILED,
     "Transaction simulation failed. Check your inputs and try again."),
    (re.compile(r"timeout|timed.*out|deadline", re.I), ErrorCategory.TIMEOUT,
     "Transaction timed out. Please check the explorer and try again."),
    (re.compile(r"network.*error|fetch.*failed|connection.*(refused|reset|error)", re.I),
     ErrorCategory.NETWORK_ERROR,
     "Network error. Please check your connection and try again."),
    # Generic engine conditions, last so contract text above wins.
    (re.compile(r"missingvalue|storage", re.I), ErrorCategory.NOT_INITIALIZED,
     "Contract storage error. The contract may not be initialized."),
    (re.compile(r"budget", re.I), ErrorCategory.SIMULATION_FAILED,
     "Transaction too complex. Try a smaller amount."),
)

# Per-method human messages, keyed by contract method then category.
OPERATION_MESSAGES: dict[str, dict[ErrorCategory, str]] = {
    "supply": {
        ErrorCategory.INSUFFICIENT_BALANCE:
            "You don't have enough USDC in your wallet to supply this amount.",
    },
    "withdraw": {
        ErrorCategory.INSUFFICIENT_BALANCE:
            "You don't have enough supplied balance to withdraw this amount.",
        ErrorCategory.INSUFFICIENT_LIQUIDITY:
            "Pool doesn't have enough liquidity. Some funds are borrowed by others.",
    },
    "borrow": {
        ErrorCategory.INSUFFICIENT_COLLATERAL:
            "You need more collateral to borrow this amount. Deposit more XLM first.",
        ErrorCategory.LIMIT_EXCEEDED:
            "Borrow limit exceeded. Maximum is 75% of your collateral value.",
        ErrorCategory.INSUFFICIENT_LIQUIDITY:
            "Pool doesn't have enough USDC to lend. Try a smaller amount.",
        ErrorCategory.INSUFFICIENT_BALANCE:
            "Pool doesn't have enough USDC to lend. Try a smaller amount.",
    },
    "repay": {
        ErrorCategory.INSUFFICIENT_BALANCE:
            "You don't have enough USDC to repay this amount.",
        ErrorCategory.INVALID_AMOUNT:
            "You don't have any outstanding debt to repay.",
    },
    "deposit_collateral": {
        ErrorCategory.INSUFFICIENT_BALANCE: "You don't have enough XLM in your wallet.",
        ErrorCategory.NOT_INITIALIZED:
            "XLM is not enabled as collateral on this pool. "
            "The contract may need to be initialized.",
    },
    "withdraw_collateral": {
        ErrorCategory.INSUFFICIENT_COLLATERAL:
            "You don't have enough collateral to withdraw this amount.",
        ErrorCategory.UNSAFE_POSITION:
            "Withdrawing this amount would make your position liquidatable. "
            "Repay some debt first.",
    },
    "liquidate": {
        ErrorCategory.POSITION_HEALTHY:
            "This position is healthy (Health Factor >= 1.0) and cannot be liquidated.",
        ErrorCategory.LIMIT_EXCEEDED:
            "You can only liquidate up to 50% of the debt in a single transaction.",
        ErrorCategory.INSUFFICIENT_BALANCE:
            "You don't have enough USDC to perform this liquidation.",
    },
}

_PANIC_RE = re.compile(r"panic(?:ked)?:?\s*[\"']?([^\"'\n]+)[\"']?", re.I)


# =========================================================================
# Classification
# =========================================================================


def raw_message(raw_error: object) -> str:
    """Extract a message string from an exception, string, or mapping."""
    if raw_error is None:
        return ""
    if isinstance(raw_error, BaseException):
        return str(raw_error) or type(raw_error).__name__
    if isinstance(raw_error, str):
        return raw_error
    if isinstance(raw_error, Mapping):
        try:
            return canonical_json(dict(raw_error))
        except (TypeError, ValueError):
            return str(dict(raw_error))
    return str(raw_error)


def _typed(raw_error: object) -> tuple[ErrorCategory, str] | None:
    if isinstance(raw_error, UserRejectedError):
        return ErrorCategory.USER_REJECTED, "Transaction was rejected in your wallet."
    if isinstance(raw_error, WalletLockedError):
        return ErrorCategory.WALLET_LOCKED, "Please unlock your wallet and try again."
    if isinstance(raw_error, AccountNotFoundError):
        return (
            ErrorCategory.ACCOUNT_NOT_FOUND,
            "Account not found on the network. Fund it before sending transactions.",
        )
    # httpx.TimeoutException is a TransportError, check it first.
    if isinstance(raw_error, (httpx.TimeoutException, TimeoutError)):
        return (
            ErrorCategory.TIMEOUT,
            "The network did not answer in time. Please try again.",
        )
    if isinstance(raw_error, httpx.HTTPError):
        return (
            ErrorCategory.NETWORK_ERROR,
            "Network error. Please check your connection and try again.",
        )
    return None


def _match(message: str) -> tuple[ErrorCategory, str] | None:
    lowered = message.lower()
    for phrase, category, human in KNOWN_ERRORS:
        if phrase in lowered:
            return category, human
    for pattern, category, human in ERROR_PATTERNS:
        if pattern.search(message):
            return category, human
    return None


def _fallback_category(stage: Stage) -> ErrorCategory:
    if stage == Stage.SIMULATE:
        return ErrorCategory.SIMULATION_FAILED
    if stage == Stage.POLL:
        return ErrorCategory.TRANSACTION_FAILED
    return ErrorCategory.UNKNOWN


def _fallback_message(message: str) -> str:
    panic = _PANIC_RE.search(message)
    if panic:
        message = panic.group(1).strip()
    if not message:
        return UNKNOWN_ERROR_MESSAGE
    if len(message) > MAX_VERBATIM_LENGTH:
        return GENERIC_FAILURE_MESSAGE
    return message


def classify(
    raw_error: object,
    stage: Stage,
    *,
    method: str | None = None,
) -> ClassifiedError:
    """Map a raw pipeline failure to a ClassifiedError.

    Args:
        raw_error: Exception, engine message string, or response mapping.
        stage: Pipeline stage where it happened.
        method: Contract method being called, for operation-specific
            wording.

    Returns:
        ClassifiedError. Never raises.
    """
    message = raw_message(raw_error)
    matched = _typed(raw_error) or _match(message)

    if matched is None:
        return ClassifiedError(
            category=_fallback_category(stage),
            human_message=_fallback_message(message),
            stage=stage,
            cause=raw_error,
        )

    category, human = matched
    if method is not None:
        human = OPERATION_MESSAGES.get(method, {}).get(category, human)
    return ClassifiedError(
        category=category,
        human_message=human,
        stage=stage,
        cause=raw_error,
    )
