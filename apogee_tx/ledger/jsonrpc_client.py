"""
Ledger JSON-RPC client — real network implementation of LedgerClient.

Translates JSON-RPC responses into the result types in client.py. Uses
an injectable transport (JsonRpcTransport) so the HTTP layer can be
swapped for test fakes without changing parsing logic.

No retry loops. No secrets. No pipeline logic beyond response parsing.

Response conventions (JSON-RPC 2.0):
    - Success:  {"jsonrpc": "2.0", "id": n, "result": {...}}
    - Error:    {"jsonrpc": "2.0", "id": n, "error": {"code": c, "message": "..."}}
    - simulateTransaction results carry one of: ``error``,
      ``restorePreamble``, or ``transactionData`` + ``minResourceFee``.
    - sendTransaction results carry ``status`` and ``hash``.
    - getTransaction results carry ``status`` and, on SUCCESS,
      ``ledger`` and ``returnValue``.
"""

from __future__ import annotations

import itertools
import logging
from types import TracebackType
from typing import Any

from apogee_tx.ledger.client import (
    AccountState,
    Footprint,
    GetStatus,
    SendResult,
    SendStatus,
    SimulationFailure,
    SimulationNeedsRestore,
    SimulationResult,
    SimulationSuccess,
    TxStatusResult,
)
from apogee_tx.ledger.exceptions import (
    AccountNotFoundError,
    ResponseDecodeError,
    RpcError,
)
from apogee_tx.ledger.scval import decode_scval
from apogee_tx.ledger.transport import HttpxTransport, JsonRpcTransport

logger = logging.getLogger(__name__)


class JsonRpcClient:
    """Ledger JSON-RPC client implementing the LedgerClient protocol.

    Args:
        url: The RPC endpoint URL (e.g. "https://soroban-testnet.stellar.org").
        transport: Injectable transport for HTTP POST. Defaults to
            HttpxTransport. Pass a FakeTransport for testing.
    """

    def __init__(
        self,
        url: str,
        transport: JsonRpcTransport | None = None,
    ) -> None:
        if not url:
            raise ValueError("url must be non-empty")
        self._url = url
        self._transport = transport or HttpxTransport()
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        """The JSON-RPC endpoint URL."""
        return self._url

    async def _call(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        response = await self._transport.post_json(self._url, payload)
        if not isinstance(response, dict):
            raise ResponseDecodeError(f"{method}: response is not an object")
        return response

    # -----------------------------------------------------------------
    # LedgerClient protocol methods
    # -----------------------------------------------------------------

    async def get_account(self, address: str) -> AccountState:
        """Fetch account sequence via ``getAccount``.

        Raises:
            AccountNotFoundError: If the node reports no such account.
            RpcError: On any other JSON-RPC error.
        """
        response = await self._call("getAccount", {"address": address})
        return _parse_account_response(response, address)

    async def simulate_transaction(self, envelope: str) -> SimulationResult:
        """Dry-run an envelope via ``simulateTransaction``."""
        response = await self._call("simulateTransaction", {"transaction": envelope})
        return _parse_simulate_response(response)

    async def send_transaction(self, signed_envelope: str) -> SendResult:
        """Send a signed envelope via ``sendTransaction``.

        Transport exceptions propagate to the caller (the submitter
        classifies them as network errors).
        """
        response = await self._call("sendTransaction", {"transaction": signed_envelope})
        return _parse_send_response(response)

    async def get_transaction(self, tx_hash: str) -> TxStatusResult:
        """Query transaction status via ``getTransaction``."""
        response = await self._call("getTransaction", {"hash": tx_hash})
        return _parse_get_transaction_response(response)

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the transport, if it supports closing."""
        close = getattr(self._transport, "aclose", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> JsonRpcClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


# =====================================================================
# Response parsing (pure functions, no I/O)
# =====================================================================


def _rpc_error(response: dict[str, Any]) -> RpcError | None:
    error = response.get("error")
    if error is None:
        return None
    if isinstance(error, dict):
        code = error.get("code")
        message = str(error.get("message") or error.get("data") or "unknown RPC error")
        return RpcError(code if isinstance(code, int) else None, message)
    return RpcError(None, str(error))


def _result(response: dict[str, Any], method: str) -> dict[str, Any]:
    result = response.get("result")
    if not isinstance(result, dict):
        raise ResponseDecodeError(f"{method}: missing result object")
    return result


def _parse_int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise ResponseDecodeError(f"{what} is not an integer: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ResponseDecodeError(f"{what} is not an integer: {value!r}") from None


def _parse_optional_int(value: Any, what: str) -> int | None:
    if value is None:
        return None
    return _parse_int(value, what)


def _status_ledger(value: Any) -> int | None:
    """Ledger of a decoded status. A malformed value reads as unknown
    so it cannot mask the status itself.
    """
    try:
        return _parse_optional_int(value, "ledger")
    except ResponseDecodeError:
        logger.warning("getTransaction: ignoring malformed ledger %r", value)
        return None


def _parse_account_response(response: dict[str, Any], address: str) -> AccountState:
    """Parse a ``getAccount`` response into AccountState.

    Handles:
        - Found account (``sequence`` as decimal string or int)
        - Not-found, reported as an RPC error or a null result
        - Other RPC errors (raised as RpcError)
    """
    error = _rpc_error(response)
    if error is not None:
        if "not found" in error.message.lower():
            raise AccountNotFoundError(address)
        raise error

    if response.get("result") is None:
        raise AccountNotFoundError(address)

    result = _result(response, "getAccount")
    return AccountState(
        address=str(result.get("id") or address),
        sequence_number=_parse_int(result.get("sequence"), "account sequence"),
        exists=True,
    )


def _parse_simulate_response(response: dict[str, Any]) -> SimulationResult:
    """Parse a ``simulateTransaction`` response into a SimulationResult.

    Handles:
        - Engine error (``result.error`` or a JSON-RPC error object)
        - Expired state (``result.restorePreamble``)
        - Success (footprint, resource fee, first return value)
    """
    error = _rpc_error(response)
    if error is not None:
        return SimulationFailure(raw_message=error.message)

    result = _result(response, "simulateTransaction")

    if result.get("error"):
        return SimulationFailure(raw_message=str(result["error"]))

    preamble = result.get("restorePreamble")
    if preamble:
        restore_fee = None
        if isinstance(preamble, dict):
            restore_fee = _parse_optional_int(
                preamble.get("minResourceFee"), "restore fee"
            )
        return SimulationNeedsRestore(
            raw_message="contract state needs restoration",
            restore_fee=restore_fee,
        )

    tx_data = result.get("transactionData")
    if not isinstance(tx_data, dict):
        raise ResponseDecodeError("simulateTransaction: missing transactionData")
    raw_footprint = tx_data.get("footprint") or {}
    if not isinstance(raw_footprint, dict):
        raise ResponseDecodeError("simulateTransaction: footprint is not an object")
    footprint = Footprint(
        read_only=tuple(str(k) for k in raw_footprint.get("readOnly") or []),
        read_write=tuple(str(k) for k in raw_footprint.get("readWrite") or []),
    )

    return_value = None
    results = result.get("results") or []
    if results:
        first = results[0]
        if isinstance(first, dict) and first.get("retval") is not None:
            return_value = decode_scval(first["retval"])

    return SimulationSuccess(
        footprint=footprint,
        estimated_fee=_parse_int(result.get("minResourceFee", 0), "minResourceFee"),
        return_value=return_value,
        latest_ledger=_parse_optional_int(result.get("latestLedger"), "latestLedger"),
    )


def _parse_send_response(response: dict[str, Any]) -> SendResult:
    """Parse a ``sendTransaction`` response into SendResult.

    Handles:
        - PENDING / DUPLICATE / ERROR / TRY_AGAIN_LATER
        - JSON-RPC error object (reported as ERROR with detail)
        - Unknown status (ResponseDecodeError)
    """
    error = _rpc_error(response)
    if error is not None:
        return SendResult(hash=None, status=SendStatus.ERROR, detail=error.message)

    result = _result(response, "sendTransaction")
    raw_status = result.get("status")
    try:
        status = SendStatus(raw_status)
    except ValueError:
        raise ResponseDecodeError(
            f"sendTransaction: unexpected status {raw_status!r}"
        ) from None

    error_result = result.get("errorResult")
    return SendResult(
        hash=result.get("hash"),
        status=status,
        error_result=str(error_result) if error_result is not None else None,
        detail=result.get("detail") or result.get("message"),
        latest_ledger=_parse_optional_int(result.get("latestLedger"), "latestLedger"),
    )


def _parse_get_transaction_response(response: dict[str, Any]) -> TxStatusResult:
    """Parse a ``getTransaction`` response into TxStatusResult.

    Handles:
        - NOT_FOUND (still pending)
        - SUCCESS with ledger and return value
        - FAILED with engine result text
        - JSON-RPC error object (raised as RpcError)
        - Unparseable results (raised as ResponseDecodeError)
    """
    error = _rpc_error(response)
    if error is not None:
        raise error

    result = _result(response, "getTransaction")
    raw_status = result.get("status")
    try:
        status = GetStatus(raw_status)
    except ValueError:
        raise ResponseDecodeError(
            f"getTransaction: bad union switch {raw_status!r}"
        ) from None

    if status == GetStatus.NOT_FOUND:
        return TxStatusResult(status=status)

    ledger = _status_ledger(result.get("ledger"))

    if status == GetStatus.FAILED:
        detail = result.get("resultXdr") or result.get("resultDetail")
        return TxStatusResult(
            status=status,
            ledger=ledger,
            result_detail=str(detail) if detail is not None else None,
        )

    return_value = None
    if result.get("returnValue") is not None:
        return_value = decode_scval(result["returnValue"])
    return TxStatusResult(status=status, ledger=ledger, return_value=return_value)
