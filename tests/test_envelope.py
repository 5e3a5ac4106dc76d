"""
Tests for call descriptors and the envelope codec.

Test plan:
- CallDescriptor: validation (empty address/method, long method, non-ScVal
  args), list args stored as tuple, operation dict shape
- build_draft: fields, network hash, input validation
- attach_resources: footprint merged, fee = base + resource fee, draft
  left untouched
- Codec: encode/decode identity, malformed base64/JSON, missing fields
- transaction_hash: deterministic, 64 hex, ignores signatures, changes
  with sequence and network
"""

import base64

import pytest

from apogee_tx.integrity import network_id
from apogee_tx.ledger.call import CallDescriptor
from apogee_tx.ledger.envelope import (
    DEFAULT_TX_TIMEOUT,
    attach_resources,
    build_draft,
    decode_envelope,
    encode_envelope,
    network_hash,
    transaction_hash,
)
from apogee_tx.ledger.exceptions import EnvelopeError
from apogee_tx.ledger.scval import address, amount, symbol

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

SAMPLE_POOL = "CDLZFC3SYJYDZT7K67VZ75HPJVIEUVNIXF47ZG2FB2RMQQVU2HHGCYSC"
SAMPLE_SOURCE = "GBRPYHIL2CI3FNQ4BXLFMNDLFJUNPU2HY3ZMFSHONUCEOASW7QC7OX2H"
TESTNET = "Test SDF Network ; September 2015"
MAINNET = "Public Global Stellar Network ; September 2015"


def _make_call(method: str = "deposit_collateral") -> CallDescriptor:
    return CallDescriptor(
        contract_address=SAMPLE_POOL,
        method=method,
        args=(address(SAMPLE_SOURCE), symbol("XLM"), amount("100")),
    )


def _make_draft(**overrides: object) -> dict[str, object]:
    kwargs: dict[str, object] = {
        "network_passphrase": TESTNET,
        "fee": 100,
    }
    kwargs.update(overrides)
    sequence = kwargs.pop("sequence", 42)
    return build_draft(_make_call(), SAMPLE_SOURCE, sequence, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# CallDescriptor
# ---------------------------------------------------------------------------


class TestCallDescriptor:
    def test_operation_shape(self) -> None:
        op = _make_call().to_operation()
        assert op["type"] == "invoke_contract"
        assert op["contract"] == SAMPLE_POOL
        assert op["method"] == "deposit_collateral"
        assert op["args"][1] == {"type": "symbol", "value": "XLM"}
        assert op["args"][2] == {"type": "i128", "value": "1000000000"}

    def test_list_args_stored_as_tuple(self) -> None:
        call = CallDescriptor(SAMPLE_POOL, "get_price", [symbol("XLM")])  # type: ignore[arg-type]
        assert call.args == (symbol("XLM"),)

    def test_no_args(self) -> None:
        assert CallDescriptor(SAMPLE_POOL, "get_admin").to_operation()["args"] == []

    def test_empty_contract_rejected(self) -> None:
        with pytest.raises(ValueError, match="contract_address"):
            CallDescriptor("", "supply")

    def test_empty_method_rejected(self) -> None:
        with pytest.raises(ValueError, match="method"):
            CallDescriptor(SAMPLE_POOL, "")

    def test_long_method_rejected(self) -> None:
        with pytest.raises(ValueError, match="longer than"):
            CallDescriptor(SAMPLE_POOL, "m" * 33)

    def test_raw_values_rejected(self) -> None:
        with pytest.raises(ValueError, match="args\\[0\\]"):
            CallDescriptor(SAMPLE_POOL, "supply", (100,))  # type: ignore[arg-type]

    def test_frozen(self) -> None:
        call = _make_call()
        with pytest.raises(AttributeError):
            call.method = "borrow"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Draft
# ---------------------------------------------------------------------------


class TestBuildDraft:
    def test_fields(self) -> None:
        draft = _make_draft()
        assert draft["source"] == SAMPLE_SOURCE
        assert draft["sequence"] == 42
        assert draft["fee"] == 100
        assert draft["timeout"] == DEFAULT_TX_TIMEOUT
        assert draft["resources"] is None
        assert draft["operation"] == _make_call().to_operation()

    def test_network_hash(self) -> None:
        draft = _make_draft()
        assert draft["network"] == network_id(TESTNET).hex()
        assert draft["network"] == network_hash(TESTNET)
        assert len(draft["network"]) == 64  # type: ignore[arg-type]

    def test_sequence_zero_rejected(self) -> None:
        with pytest.raises(ValueError, match="sequence"):
            _make_draft(sequence=0)

    def test_negative_fee_rejected(self) -> None:
        with pytest.raises(ValueError, match="fee"):
            _make_draft(fee=-1)

    def test_zero_timeout_rejected(self) -> None:
        with pytest.raises(ValueError, match="timeout"):
            _make_draft(timeout=0)

    def test_empty_source_rejected(self) -> None:
        with pytest.raises(ValueError, match="source"):
            build_draft(_make_call(), "", 1, network_passphrase=TESTNET, fee=100)


class TestAttachResources:
    FOOTPRINT = {"readOnly": ["k1"], "readWrite": ["k2", "k3"]}

    def test_resources_set(self) -> None:
        prepared = attach_resources(_make_draft(), self.FOOTPRINT, 5_000)
        assert prepared["resources"] == {
            "footprint": {"readOnly": ["k1"], "readWrite": ["k2", "k3"]},
            "resourceFee": 5_000,
        }

    def test_fee_includes_resource_fee(self) -> None:
        prepared = attach_resources(_make_draft(), self.FOOTPRINT, 5_000)
        assert prepared["fee"] == 5_100

    def test_draft_not_mutated(self) -> None:
        draft = _make_draft()
        attach_resources(draft, self.FOOTPRINT, 5_000)
        assert draft["resources"] is None
        assert draft["fee"] == 100

    def test_negative_resource_fee_rejected(self) -> None:
        with pytest.raises(ValueError):
            attach_resources(_make_draft(), self.FOOTPRINT, -1)


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


class TestCodec:
    def test_decode_inverts_encode(self) -> None:
        draft = _make_draft()
        assert decode_envelope(encode_envelope(draft)) == draft

    def test_encoding_is_canonical(self) -> None:
        draft = _make_draft()
        reordered = dict(reversed(list(draft.items())))
        assert encode_envelope(draft) == encode_envelope(reordered)

    def test_not_base64(self) -> None:
        with pytest.raises(EnvelopeError, match="malformed"):
            decode_envelope("not base64!!")

    def test_not_json(self) -> None:
        with pytest.raises(EnvelopeError):
            decode_envelope(base64.b64encode(b"\x00\x01").decode())

    def test_not_an_object(self) -> None:
        with pytest.raises(EnvelopeError, match="object"):
            decode_envelope(base64.b64encode(b"[1, 2]").decode())

    def test_missing_fields(self) -> None:
        with pytest.raises(EnvelopeError, match="sequence"):
            decode_envelope(base64.b64encode(b'{"network": "x", "source": "y", "fee": 1, "operation": {}}').decode())

    def test_envelope_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            decode_envelope("%%%")


class TestTransactionHash:
    def test_hex_64(self) -> None:
        h = transaction_hash(_make_draft())
        assert len(h) == 64
        int(h, 16)

    def test_deterministic(self) -> None:
        assert transaction_hash(_make_draft()) == transaction_hash(_make_draft())

    def test_accepts_encoded_string(self) -> None:
        draft = _make_draft()
        assert transaction_hash(encode_envelope(draft)) == transaction_hash(draft)

    def test_signatures_excluded(self) -> None:
        draft = _make_draft()
        signed = dict(draft, signatures=[{"key": "k", "sig": "s"}])
        assert transaction_hash(signed) == transaction_hash(draft)

    def test_sequence_changes_hash(self) -> None:
        assert transaction_hash(_make_draft(sequence=1)) != transaction_hash(
            _make_draft(sequence=2)
        )

    def test_network_changes_hash(self) -> None:
        assert transaction_hash(_make_draft()) != transaction_hash(
            _make_draft(network_passphrase=MAINNET)
        )
