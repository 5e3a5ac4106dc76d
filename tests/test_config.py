"""
Tests for network and contract configuration.

Test plan:
- Defaults: testnet RPC and passphrase, base fee, poll settings
- from_env: every variable read, empty values fall back to defaults,
  malformed numbers rejected with the variable name
- Validation: empty URL/passphrase, negative fee, zero attempts
- explorer_tx_url: trailing slash tolerated
- ContractAddresses: from_env, is_configured needs pool and oracle
"""

import pytest

from apogee_tx.config import (
    DEFAULT_BASE_FEE,
    DEFAULT_MAX_POLL_ATTEMPTS,
    DEFAULT_NETWORK_PASSPHRASE,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RPC_URL,
    ContractAddresses,
    NetworkConfig,
)


class TestDefaults:
    def test_values(self) -> None:
        config = NetworkConfig()
        assert config.rpc_url == DEFAULT_RPC_URL == "https://soroban-testnet.stellar.org"
        assert config.network_passphrase == DEFAULT_NETWORK_PASSPHRASE
        assert DEFAULT_NETWORK_PASSPHRASE == "Test SDF Network ; September 2015"
        assert config.base_fee == DEFAULT_BASE_FEE == 100
        assert config.poll_interval == DEFAULT_POLL_INTERVAL == 1.0
        assert config.max_poll_attempts == DEFAULT_MAX_POLL_ATTEMPTS == 30

    def test_frozen(self) -> None:
        config = NetworkConfig()
        with pytest.raises(AttributeError):
            config.base_fee = 5  # type: ignore[misc]


class TestFromEnv:
    def test_empty_env_gives_defaults(self) -> None:
        assert NetworkConfig.from_env({}) == NetworkConfig()

    def test_all_variables(self) -> None:
        config = NetworkConfig.from_env(
            {
                "APOGEE_RPC_URL": "http://localhost:8000/soroban/rpc",
                "APOGEE_NETWORK_PASSPHRASE": "Standalone Network ; February 2017",
                "APOGEE_BASE_FEE": "1000",
                "APOGEE_REQUEST_TIMEOUT": "5",
                "APOGEE_POLL_INTERVAL": "0.25",
                "APOGEE_MAX_POLL_ATTEMPTS": "10",
                "APOGEE_EXPLORER_URL": "http://localhost:8000/explorer",
            }
        )
        assert config.rpc_url == "http://localhost:8000/soroban/rpc"
        assert config.network_passphrase == "Standalone Network ; February 2017"
        assert config.base_fee == 1000
        assert config.request_timeout == 5.0
        assert config.poll_interval == 0.25
        assert config.max_poll_attempts == 10
        assert config.explorer_url == "http://localhost:8000/explorer"

    def test_empty_values_fall_back(self) -> None:
        config = NetworkConfig.from_env({"APOGEE_RPC_URL": "", "APOGEE_BASE_FEE": ""})
        assert config.rpc_url == DEFAULT_RPC_URL
        assert config.base_fee == DEFAULT_BASE_FEE

    def test_bad_integer(self) -> None:
        with pytest.raises(ValueError, match="APOGEE_MAX_POLL_ATTEMPTS"):
            NetworkConfig.from_env({"APOGEE_MAX_POLL_ATTEMPTS": "many"})

    def test_bad_float(self) -> None:
        with pytest.raises(ValueError, match="APOGEE_POLL_INTERVAL"):
            NetworkConfig.from_env({"APOGEE_POLL_INTERVAL": "soon"})

    def test_reads_os_environ(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APOGEE_BASE_FEE", "321")
        assert NetworkConfig.from_env().base_fee == 321


class TestValidation:
    def test_empty_url(self) -> None:
        with pytest.raises(ValueError, match="rpc_url"):
            NetworkConfig(rpc_url="")

    def test_empty_passphrase(self) -> None:
        with pytest.raises(ValueError, match="network_passphrase"):
            NetworkConfig(network_passphrase="")

    def test_negative_fee(self) -> None:
        with pytest.raises(ValueError, match="base_fee"):
            NetworkConfig(base_fee=-1)

    def test_zero_attempts(self) -> None:
        with pytest.raises(ValueError, match="max_poll_attempts"):
            NetworkConfig(max_poll_attempts=0)

    def test_zero_request_timeout(self) -> None:
        with pytest.raises(ValueError, match="request_timeout"):
            NetworkConfig(request_timeout=0)


class TestExplorer:
    def test_tx_url(self) -> None:
        config = NetworkConfig(explorer_url="https://stellar.expert/explorer/testnet/")
        assert (
            config.explorer_tx_url("a" * 64)
            == "https://stellar.expert/explorer/testnet/tx/" + "a" * 64
        )


class TestContractAddresses:
    def test_from_env(self) -> None:
        contracts = ContractAddresses.from_env(
            {
                "APOGEE_POOL_CONTRACT_ID": "CPOOL",
                "APOGEE_ORACLE_CONTRACT_ID": "CORACLE",
                "APOGEE_USDC_TOKEN_ID": "CUSDC",
            }
        )
        assert contracts.pool == "CPOOL"
        assert contracts.oracle == "CORACLE"
        assert contracts.usdc_token == "CUSDC"
        assert contracts.xlm_token == ""
        assert contracts.is_configured

    def test_not_configured(self) -> None:
        assert not ContractAddresses().is_configured
        assert not ContractAddresses(pool="CPOOL").is_configured
