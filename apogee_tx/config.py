"""
Network and contract configuration.

Build one ``NetworkConfig`` at process start (usually from the
environment) and pass it to every pipeline call. Nothing here is global
state.

Environment variables:
    APOGEE_RPC_URL              RPC endpoint URL
    APOGEE_NETWORK_PASSPHRASE   Network identifier string
    APOGEE_BASE_FEE             Inclusion fee per transaction
    APOGEE_REQUEST_TIMEOUT      HTTP timeout in seconds
    APOGEE_POLL_INTERVAL        Seconds between status queries
    APOGEE_MAX_POLL_ATTEMPTS    Status queries before giving up
    APOGEE_EXPLORER_URL         Explorer base for transaction links

    APOGEE_POOL_CONTRACT_ID, APOGEE_ORACLE_CONTRACT_ID,
    APOGEE_INTEREST_RATE_MODEL_CONTRACT_ID, APOGEE_XLM_TOKEN_ID,
    APOGEE_USDC_TOKEN_ID        Contract addresses
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_RPC_URL = "https://soroban-testnet.stellar.org"
DEFAULT_NETWORK_PASSPHRASE = "Test SDF Network ; September 2015"
DEFAULT_EXPLORER_URL = "https://stellar.expert/explorer/testnet"
DEFAULT_BASE_FEE = 100
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_POLL_ATTEMPTS = 30


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw!r}") from None


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw!r}") from None


@dataclass(frozen=True)
class NetworkConfig:
    """Where and how to talk to the ledger network.

    The passphrase must be identical for simulate, prepare and submit;
    the network rejects envelopes built for another network.
    """

    rpc_url: str = DEFAULT_RPC_URL
    network_passphrase: str = DEFAULT_NETWORK_PASSPHRASE
    base_fee: int = DEFAULT_BASE_FEE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_poll_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS
    explorer_url: str = DEFAULT_EXPLORER_URL

    def __post_init__(self) -> None:
        if not self.rpc_url:
            raise ValueError("rpc_url must be non-empty")
        if not self.network_passphrase:
            raise ValueError("network_passphrase must be non-empty")
        if self.base_fee < 0:
            raise ValueError(f"base_fee must be >= 0, got: {self.base_fee}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be > 0, got: {self.request_timeout}")
        if self.poll_interval < 0:
            raise ValueError(f"poll_interval must be >= 0, got: {self.poll_interval}")
        if self.max_poll_attempts < 1:
            raise ValueError(
                f"max_poll_attempts must be >= 1, got: {self.max_poll_attempts}"
            )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> NetworkConfig:
        """Read configuration from the environment (or a given mapping)."""
        env = os.environ if env is None else env
        return cls(
            rpc_url=env.get("APOGEE_RPC_URL") or DEFAULT_RPC_URL,
            network_passphrase=(
                env.get("APOGEE_NETWORK_PASSPHRASE") or DEFAULT_NETWORK_PASSPHRASE
            ),
            base_fee=_env_int(env, "APOGEE_BASE_FEE", DEFAULT_BASE_FEE),
            request_timeout=_env_float(
                env, "APOGEE_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT
            ),
            poll_interval=_env_float(env, "APOGEE_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            max_poll_attempts=_env_int(
                env, "APOGEE_MAX_POLL_ATTEMPTS", DEFAULT_MAX_POLL_ATTEMPTS
            ),
            explorer_url=env.get("APOGEE_EXPLORER_URL") or DEFAULT_EXPLORER_URL,
        )

    def explorer_tx_url(self, tx_hash: str) -> str:
        """Link for verifying a transaction out-of-band."""
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"


@dataclass(frozen=True)
class ContractAddresses:
    """Deployed contract addresses. Empty string means "not configured"."""

    pool: str = ""
    oracle: str = ""
    interest_rate_model: str = ""
    xlm_token: str = ""
    usdc_token: str = ""

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> ContractAddresses:
        env = os.environ if env is None else env
        return cls(
            pool=env.get("APOGEE_POOL_CONTRACT_ID", ""),
            oracle=env.get("APOGEE_ORACLE_CONTRACT_ID", ""),
            interest_rate_model=env.get("APOGEE_INTEREST_RATE_MODEL_CONTRACT_ID", ""),
            xlm_token=env.get("APOGEE_XLM_TOKEN_ID", ""),
            usdc_token=env.get("APOGEE_USDC_TOKEN_ID", ""),
        )

    @property
    def is_configured(self) -> bool:
        """Pool and oracle are the minimum for any write."""
        return bool(self.pool and self.oracle)
