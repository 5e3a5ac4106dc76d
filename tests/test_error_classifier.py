"""
Tests for error classification.

Test plan:
- Scenario A: dry-run failure "insufficient balance" → InsufficientBalance
- Phrase table: contract panics, oracle, network conditions
- Method-specific wording overrides the generic message, category unchanged
- Typed exceptions: signer refusals, missing account, httpx errors, timeouts
- Regex fallbacks: storage and budget conditions
- Fallback: panic message extracted, short text verbatim, long text generic,
  empty text, stage-dependent category
- Inputs: exception, string, mapping, None; cause preserved
- Table hygiene: version set, phrases lowercase, operation keys are
  known categories
"""

import httpx
import pytest

from apogee_tx.ledger.errors import (
    ERROR_TABLE_VERSION,
    GENERIC_FAILURE_MESSAGE,
    KNOWN_ERRORS,
    MAX_VERBATIM_LENGTH,
    OPERATION_MESSAGES,
    UNKNOWN_ERROR_MESSAGE,
    ClassifiedError,
    ErrorCategory,
    Stage,
    classify,
    raw_message,
)
from apogee_tx.ledger.exceptions import (
    AccountNotFoundError,
    UserRejectedError,
    WalletLockedError,
)

SAMPLE_ACCOUNT = "GBRPYHIL2CI3FNQ4BXLFMNDLFJUNPU2HY3ZMFSHONUCEOASW7QC7OX2H"


class TestScenarioA:
    def test_insufficient_balance(self) -> None:
        result = classify("insufficient balance", Stage.SIMULATE)
        assert result.category == ErrorCategory.INSUFFICIENT_BALANCE
        assert result.stage == Stage.SIMULATE

    def test_engine_wrapped_panic(self) -> None:
        raw = "HostError: Error(Contract, #3)\nEvent log: panicked: insufficient balance"
        assert classify(raw, Stage.SIMULATE).category == ErrorCategory.INSUFFICIENT_BALANCE

    def test_case_insensitive(self) -> None:
        assert (
            classify("INSUFFICIENT BALANCE", Stage.SIMULATE).category
            == ErrorCategory.INSUFFICIENT_BALANCE
        )


class TestPhraseTable:
    @pytest.mark.parametrize(
        ("raw", "category"),
        [
            ("insufficient collateral", ErrorCategory.INSUFFICIENT_COLLATERAL),
            ("insufficient pool liquidity", ErrorCategory.INSUFFICIENT_LIQUIDITY),
            ("borrow limit exceeded", ErrorCategory.LIMIT_EXCEEDED),
            ("close factor exceeded", ErrorCategory.LIMIT_EXCEEDED),
            ("would make position unhealthy", ErrorCategory.UNSAFE_POSITION),
            ("position is healthy", ErrorCategory.POSITION_HEALTHY),
            ("unauthorized", ErrorCategory.UNAUTHORIZED),
            ("pool not initialized", ErrorCategory.NOT_INITIALIZED),
            ("price not set", ErrorCategory.PRICE_UNAVAILABLE),
            ("amount must be positive", ErrorCategory.INVALID_AMOUNT),
            ("no outstanding debt", ErrorCategory.INVALID_AMOUNT),
        ],
    )
    def test_contract_phrases(self, raw: str, category: ErrorCategory) -> None:
        assert classify(raw, Stage.SIMULATE).category == category

    def test_oracle_stale_panic(self) -> None:
        result = classify(
            "HostError: Error(WasmVm, InvalidAction) panic: Price is stale", Stage.SIMULATE
        )
        assert result.category == ErrorCategory.PRICE_UNAVAILABLE
        assert result.human_message == "Price data is stale. Please wait for oracle update."

    def test_share_balance_before_balance(self) -> None:
        result = classify("insufficient share balance", Stage.SIMULATE)
        assert result.category == ErrorCategory.INSUFFICIENT_BALANCE
        assert "supplied balance" in result.human_message

    def test_already_initialized_is_not_not_initialized(self) -> None:
        result = classify("already initialized", Stage.SIMULATE)
        assert result.category == ErrorCategory.UNKNOWN

    def test_bad_sequence(self) -> None:
        result = classify("Transaction submission failed: txBadSeq", Stage.SUBMIT)
        assert result.category == ErrorCategory.STALE_SEQUENCE

    def test_needs_restore(self) -> None:
        result = classify("contract state needs restoration", Stage.SIMULATE)
        assert result.category == ErrorCategory.NEEDS_RESTORE

    def test_try_again_later(self) -> None:
        result = classify("network busy: try again later", Stage.SUBMIT)
        assert result.category == ErrorCategory.NETWORK_ERROR


class TestOperationMessages:
    def test_deposit_collateral_balance(self) -> None:
        result = classify("insufficient balance", Stage.SIMULATE, method="deposit_collateral")
        assert result.category == ErrorCategory.INSUFFICIENT_BALANCE
        assert result.human_message == "You don't have enough XLM in your wallet."

    def test_repay_balance(self) -> None:
        result = classify("insufficient balance", Stage.SIMULATE, method="repay")
        assert "repay" in result.human_message

    def test_borrow_limit(self) -> None:
        result = classify("borrow limit exceeded", Stage.SIMULATE, method="borrow")
        assert result.category == ErrorCategory.LIMIT_EXCEEDED
        assert "75%" in result.human_message

    def test_liquidate_healthy(self) -> None:
        result = classify("position is healthy", Stage.SIMULATE, method="liquidate")
        assert "cannot be liquidated" in result.human_message

    def test_unknown_method_keeps_generic(self) -> None:
        generic = classify("insufficient balance", Stage.SIMULATE)
        result = classify("insufficient balance", Stage.SIMULATE, method="set_price")
        assert result.human_message == generic.human_message

    def test_method_without_override_keeps_generic(self) -> None:
        generic = classify("unauthorized", Stage.SIMULATE)
        result = classify("unauthorized", Stage.SIMULATE, method="supply")
        assert result.human_message == generic.human_message


class TestTypedExceptions:
    def test_user_rejected(self) -> None:
        result = classify(UserRejectedError("declined"), Stage.SIGN)
        assert result.category == ErrorCategory.USER_REJECTED

    def test_wallet_locked(self) -> None:
        result = classify(WalletLockedError("locked"), Stage.SIGN)
        assert result.category == ErrorCategory.WALLET_LOCKED

    def test_account_not_found(self) -> None:
        result = classify(AccountNotFoundError(SAMPLE_ACCOUNT), Stage.ACCOUNT)
        assert result.category == ErrorCategory.ACCOUNT_NOT_FOUND

    def test_httpx_connect_error(self) -> None:
        result = classify(httpx.ConnectError("Connection refused"), Stage.SUBMIT)
        assert result.category == ErrorCategory.NETWORK_ERROR

    def test_httpx_timeout(self) -> None:
        result = classify(httpx.ReadTimeout("read timed out"), Stage.SIMULATE)
        assert result.category == ErrorCategory.TIMEOUT

    def test_asyncio_timeout(self) -> None:
        result = classify(TimeoutError(), Stage.SUBMIT)
        assert result.category == ErrorCategory.TIMEOUT

    def test_user_rejected_text(self) -> None:
        result = classify("User declined access", Stage.SIGN)
        assert result.category == ErrorCategory.USER_REJECTED


class TestPatterns:
    def test_missing_storage(self) -> None:
        result = classify("HostError: Error(Storage, MissingValue)", Stage.SIMULATE)
        assert result.category == ErrorCategory.NOT_INITIALIZED

    def test_budget(self) -> None:
        result = classify("HostError: Error(Budget, ExceededLimit)", Stage.SIMULATE)
        assert result.category == ErrorCategory.SIMULATION_FAILED

    def test_ltv_pattern(self) -> None:
        result = classify("LTV ratio exceeded for user", Stage.SIMULATE)
        assert result.category == ErrorCategory.LIMIT_EXCEEDED


class TestFallback:
    def test_panic_message_extracted(self) -> None:
        result = classify('panicked: "reserve frozen"', Stage.SIMULATE)
        assert result.human_message == "reserve frozen"
        assert result.category == ErrorCategory.SIMULATION_FAILED

    def test_short_text_verbatim(self) -> None:
        result = classify("reserve frozen", Stage.SUBMIT)
        assert result.human_message == "reserve frozen"
        assert result.category == ErrorCategory.UNKNOWN

    def test_long_text_generic(self) -> None:
        raw = "x" * (MAX_VERBATIM_LENGTH + 1)
        assert classify(raw, Stage.SUBMIT).human_message == GENERIC_FAILURE_MESSAGE

    def test_exactly_threshold_verbatim(self) -> None:
        raw = "y" * MAX_VERBATIM_LENGTH
        assert classify(raw, Stage.SUBMIT).human_message == raw

    def test_empty_text(self) -> None:
        assert classify("", Stage.SUBMIT).human_message == UNKNOWN_ERROR_MESSAGE

    def test_poll_stage_category(self) -> None:
        assert classify("reserve frozen", Stage.POLL).category == ErrorCategory.TRANSACTION_FAILED

    def test_simulate_stage_category(self) -> None:
        assert (
            classify("reserve frozen", Stage.SIMULATE).category
            == ErrorCategory.SIMULATION_FAILED
        )


class TestInputs:
    def test_mapping(self) -> None:
        result = classify({"code": "txBadSeq"}, Stage.SUBMIT)
        assert result.category == ErrorCategory.STALE_SEQUENCE

    def test_none(self) -> None:
        result = classify(None, Stage.SUBMIT)
        assert result.category == ErrorCategory.UNKNOWN
        assert result.human_message == UNKNOWN_ERROR_MESSAGE

    def test_cause_preserved(self) -> None:
        exc = RuntimeError("insufficient balance")
        assert classify(exc, Stage.SUBMIT).cause is exc

    def test_cause_not_compared(self) -> None:
        a = classify(RuntimeError("insufficient balance"), Stage.SUBMIT)
        b = classify("insufficient balance", Stage.SUBMIT)
        assert a == b

    def test_raw_message_of_empty_exception(self) -> None:
        assert raw_message(RuntimeError()) == "RuntimeError"

    def test_result_frozen(self) -> None:
        result = classify("x", Stage.SUBMIT)
        assert isinstance(result, ClassifiedError)
        with pytest.raises(AttributeError):
            result.category = ErrorCategory.UNKNOWN  # type: ignore[misc]


class TestTables:
    def test_version_set(self) -> None:
        assert ERROR_TABLE_VERSION

    def test_phrases_lowercase(self) -> None:
        for phrase, _, _ in KNOWN_ERRORS:
            assert phrase == phrase.lower()

    def test_operation_messages_use_categories(self) -> None:
        for messages in OPERATION_MESSAGES.values():
            for category in messages:
                assert isinstance(category, ErrorCategory)

    def test_category_values_stable(self) -> None:
        assert ErrorCategory.INSUFFICIENT_BALANCE == "InsufficientBalance"
        assert ErrorCategory.USER_REJECTED == "UserRejected"
