"""
Tests for the canonical payload.

These tests verify:
    - build_payload() re-clamps answers and copies the verifiable analysis
    - canonical_json() is byte-stable and ordered
    - Checksums exclude the checksum field itself
    - validate_payload_dict() names the failing field
    - Transport encoding (base64) rejects garbage with SchemaError
"""

import base64
import hashlib
import json
import re

import pytest

from ibvault.classifier import classify
from ibvault.errors import SchemaError
from ibvault.payload import (
    CHECKSUM_FIELD,
    SCHEMA_TAG,
    SCHEMA_VERSION,
    Payload,
    analysis_to_dict,
    attach_checksum,
    build_payload,
    canonical_json,
    compute_checksum,
    decode_transport,
    encode_transport,
    now_iso,
    payload_from_dict,
    payload_from_json,
    payload_from_yaml,
    payload_to_dict,
    payload_to_json,
    payload_to_yaml,
    sha256_hex,
    validate_payload_dict,
)
from ibvault.questionnaire import QUESTIONNAIRE_ID


ANSWERS = [9, 3, 4, 9, 9, 6, 8, 6, 9, 9]
TIMESTAMP = "2024-05-01T12:00:00.000Z"


@pytest.fixture
def payload():
    return attach_checksum(build_payload(ANSWERS, classify(ANSWERS), timestamp=TIMESTAMP))


@pytest.fixture
def payload_dict(payload):
    return payload_to_dict(payload)


class TestBuildPayload:
    """Test payload construction."""

    def test_literals(self, payload):
        assert payload.schema == SCHEMA_TAG == "IB_V1_RESULT"
        assert payload.version == SCHEMA_VERSION == "1.0"
        assert payload.questionnaire == QUESTIONNAIRE_ID

    def test_copies_verifiable_analysis(self, payload):
        analysis = classify(ANSWERS)
        assert payload.orientation == analysis.orientation
        assert payload.meaning == analysis.meaning
        assert payload.tendencies == analysis.tendencies

    def test_reclamps_answers(self):
        p = build_payload([0, 11, "7", 5], classify([5] * 10), timestamp=TIMESTAMP)
        assert p.answers == (1, 10, 7, 5, 1, 1, 1, 1, 1, 1)

    def test_no_checksum_until_attached(self):
        p = build_payload(ANSWERS, classify(ANSWERS), timestamp=TIMESTAMP)
        assert p.checksum is None
        assert CHECKSUM_FIELD not in payload_to_dict(p)

    def test_default_timestamp(self):
        p = build_payload(ANSWERS, classify(ANSWERS))
        assert p.timestamp.endswith("Z")

    def test_tensions_not_in_payload(self, payload_dict):
        assert "tensions" not in payload_dict["analysis"]
        assert "signals" not in payload_dict["analysis"]


def test_now_iso_format():
    assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", now_iso())


class TestCanonicalJson:
    """Test the canonical serialization."""

    def test_exact_form(self):
        mapping = {
            "answers": [1, 2],
            "schema": "S",
            "analysis": {"tendencies": ["t"], "orientation": "O", "meaning": "M"},
            "version": "1.0",
        }
        assert canonical_json(mapping) == (
            '{"schema":"S","version":"1.0","answers":[1,2],'
            '"analysis":{"orientation":"O","meaning":"M","tendencies":["t"]}}'
        )

    def test_field_order(self, payload_dict):
        keys = list(json.loads(canonical_json(payload_dict)))
        assert keys == ["schema", "version", "questionnaire", "timestamp", "answers", "analysis", CHECKSUM_FIELD]

    def test_insertion_order_irrelevant(self, payload_dict):
        reversed_dict = dict(reversed(list(payload_dict.items())))
        reversed_dict["analysis"] = dict(reversed(list(payload_dict["analysis"].items())))
        assert canonical_json(reversed_dict) == canonical_json(payload_dict)

    def test_unknown_keys_sorted_after(self):
        text = canonical_json({"zeta": 1, "schema": "S", "alpha": {"b": 1, "a": 2}})
        assert text == '{"schema":"S","alpha":{"a":2,"b":1},"zeta":1}'

    def test_compact_separators(self, payload_dict):
        text = canonical_json(payload_dict)
        assert text == json.dumps(json.loads(text), separators=(",", ":"), ensure_ascii=False)
        assert "\n" not in text

    def test_non_ascii_verbatim(self):
        assert canonical_json({"schema": "é"}) == '{"schema":"é"}'

    def test_rejects_nan(self):
        with pytest.raises(ValueError):
            canonical_json({"answers": [float("nan")]})


class TestChecksum:
    """Test checksum computation."""

    def test_sha256_hex(self):
        assert sha256_hex("abc") == hashlib.sha256(b"abc").hexdigest()
        assert sha256_hex(b"abc") == sha256_hex("abc")

    def test_checksum_is_over_canonical_form(self, payload_dict):
        without = {k: v for k, v in payload_dict.items() if k != CHECKSUM_FIELD}
        expected = hashlib.sha256(canonical_json(without).encode("utf-8")).hexdigest()
        assert payload_dict[CHECKSUM_FIELD] == expected

    def test_checksum_ignores_existing_checksum(self, payload_dict):
        tampered = dict(payload_dict, **{CHECKSUM_FIELD: "0" * 64})
        assert compute_checksum(tampered) == payload_dict[CHECKSUM_FIELD]

    def test_checksum_format(self, payload):
        assert re.match(r"^[0-9a-f]{64}$", payload.checksum)

    def test_checksum_changes_with_content(self, payload_dict):
        changed = dict(payload_dict, timestamp="2024-05-01T12:00:00.001Z")
        assert compute_checksum(changed) != payload_dict[CHECKSUM_FIELD]

    def test_attach_returns_copy(self):
        p = build_payload(ANSWERS, classify(ANSWERS), timestamp=TIMESTAMP)
        attached = attach_checksum(p)
        assert p.checksum is None
        assert attached.checksum is not None
        assert attached.answers == p.answers


class TestValidation:
    """Test structural validation."""

    def test_valid(self, payload_dict):
        assert validate_payload_dict(payload_dict) == tuple(ANSWERS)

    def test_checksum_optional(self, payload_dict):
        del payload_dict[CHECKSUM_FIELD]
        assert validate_payload_dict(payload_dict) == tuple(ANSWERS)

    def test_reclamps(self, payload_dict):
        payload_dict["answers"] = [0, 11, 5.5, 5, 5, 5, 5, 5, 5, 5]
        assert validate_payload_dict(payload_dict) == (1, 10, 6, 5, 5, 5, 5, 5, 5, 5)

    @pytest.mark.parametrize("mutate,field", [
        (lambda d: d.update(schema="IB_V2_RESULT"), "schema"),
        (lambda d: d.pop("schema"), "schema"),
        (lambda d: d.update(version="2.0"), "version"),
        (lambda d: d.update(questionnaire="Other"), "questionnaire"),
        (lambda d: d.update(answers=[5] * 9), "answers"),
        (lambda d: d.update(answers=[5] * 11), "answers"),
        (lambda d: d.update(answers="5555555555"), "answers"),
        (lambda d: d.update(answers=["5"] * 10), "answers"),
        (lambda d: d.update(answers=[True] * 10), "answers"),
        (lambda d: d.update(answers=[None] * 10), "answers"),
        (lambda d: d.update(answers=[float("inf")] + [5] * 9), "answers"),
        (lambda d: d.update(answers=[float("nan")] + [5] * 9), "answers"),
        (lambda d: d.pop("analysis"), "analysis"),
        (lambda d: d.update(analysis=[]), "analysis"),
        (lambda d: d["analysis"].update(orientation=""), "analysis.orientation"),
        (lambda d: d["analysis"].pop("meaning"), "analysis.meaning"),
        (lambda d: d["analysis"].update(tendencies="text"), "analysis.tendencies"),
        (lambda d: d.update(checksum_sha256="ABC"), CHECKSUM_FIELD),
        (lambda d: d.update(checksum_sha256="A" * 64), CHECKSUM_FIELD),
        (lambda d: d.update(checksum_sha256=None), CHECKSUM_FIELD),
    ])
    def test_invalid(self, payload_dict, mutate, field):
        mutate(payload_dict)
        with pytest.raises(SchemaError) as exc_info:
            validate_payload_dict(payload_dict)
        assert exc_info.value.field == field
        assert exc_info.value.reason

    @pytest.mark.parametrize("value", [None, [], "text", 5])
    def test_not_an_object(self, value):
        with pytest.raises(SchemaError) as exc_info:
            validate_payload_dict(value)
        assert exc_info.value.field == "payload"


class TestConversions:
    """Test dict / JSON / YAML conversions."""

    def test_dict_roundtrip(self, payload):
        assert payload_from_dict(payload_to_dict(payload)) == payload

    def test_json_is_canonical(self, payload):
        assert payload_to_json(payload) == canonical_json(payload_to_dict(payload))
        assert payload_from_json(payload_to_json(payload)) == payload

    def test_yaml_roundtrip(self, payload):
        text = payload_to_yaml(payload)
        assert text.startswith("schema: IB_V1_RESULT")
        assert payload_from_yaml(text) == payload

    def test_from_json_rejects_invalid(self):
        with pytest.raises(SchemaError):
            payload_from_json("{not json")

    def test_analysis_to_dict(self):
        d = analysis_to_dict(classify(ANSWERS))
        assert list(d) == ["orientation", "meaning", "tendencies", "tensions", "signals"]
        assert len(d["tensions"]) == 2

    def test_payload_type(self, payload):
        assert isinstance(payload_from_dict(payload_to_dict(payload)), Payload)


class TestTransport:
    """Test the base64 text stored in the PNG."""

    def test_encode_is_base64_of_canonical_json(self, payload, payload_dict):
        text = encode_transport(payload)
        assert base64.b64decode(text).decode("utf-8") == canonical_json(payload_dict)
        assert encode_transport(payload_dict) == text

    def test_decode(self, payload, payload_dict):
        assert decode_transport(encode_transport(payload)) == payload_dict

    def test_decode_tolerates_whitespace(self, payload, payload_dict):
        text = encode_transport(payload)
        wrapped = "\n".join(text[i:i + 76] for i in range(0, len(text), 76))
        assert decode_transport(wrapped) == payload_dict

    def test_non_ascii_survives(self, payload_dict):
        payload_dict["timestamp"] = "naïve ✓"
        assert decode_transport(encode_transport(payload_dict))["timestamp"] == "naïve ✓"

    @pytest.mark.parametrize("text", [
        "!!!not base64!!!",
        "abc",
        base64.b64encode(b"\xff\xfe\xfd").decode("ascii"),
        base64.b64encode(b"{not json").decode("ascii"),
        base64.b64encode(b"[1, 2, 3]").decode("ascii"),
        base64.b64encode(b'{"answers": [NaN]}').decode("ascii"),
        base64.b64encode(b'{"answers": [1e400]}').decode("ascii"),
        base64.b64encode(b'{"answers": [-1e400]}').decode("ascii"),
        base64.b64encode(b"[" * 100000 + b"]" * 100000).decode("ascii"),
    ])
    def test_decode_garbage(self, text):
        with pytest.raises(SchemaError) as exc_info:
            decode_transport(text)
        assert exc_info.value.field == "payload"
