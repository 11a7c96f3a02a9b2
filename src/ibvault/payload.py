"""
Canonical payload for V1 result images.

Provides:
    - Payload construction from answers + analysis (build_payload)
    - The one canonical JSON form used for checksums (canonical_json)
    - SHA-256 checksum computation and attachment
    - Structural validation of decoded payloads (validate_payload_dict)
    - JSON / YAML / base64 transport helpers

IMPORTANT: If the payload schema changes, bump SCHEMA_VERSION.
Verification of older images depends on canonical_json() staying byte-stable.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import json
import math
import re
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import yaml

from ibvault.classifier import Analysis
from ibvault.errors import SchemaError
from ibvault.questionnaire import ANSWER_COUNT, QUESTIONNAIRE_ID, AnswerSet, normalize_answers


SCHEMA_TAG = "IB_V1_RESULT"
SCHEMA_VERSION = "1.0"
CHECKSUM_FIELD = "checksum_sha256"

PAYLOAD_FIELD_ORDER = (
    "schema",
    "version",
    "questionnaire",
    "timestamp",
    "answers",
    "analysis",
    CHECKSUM_FIELD,
)
ANALYSIS_FIELD_ORDER = ("orientation", "meaning", "tendencies")

_CHECKSUM_RE = re.compile(r"^[0-9a-f]{64}$")


@dataclass(frozen=True)
class Payload:
    """
    Versioned, checksum-able record of one questionnaire result.

    Properties:
        answers: Re-clamped AnswerSet (exactly 10 values in [1, 10])
        orientation / meaning / tendencies: Verifiable subset of Analysis
        timestamp: ISO-8601 creation time (advisory, not verified)
        checksum: SHA-256 hex over the canonical form without the checksum

    Tensions and signals are deliberately not part of the payload.
    """

    answers: AnswerSet
    orientation: str
    meaning: str
    tendencies: Tuple[str, ...]
    timestamp: str
    schema: str = SCHEMA_TAG
    version: str = SCHEMA_VERSION
    questionnaire: str = QUESTIONNAIRE_ID
    checksum: Optional[str] = None


def now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2024-05-01T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_payload(answers: Iterable[Any], analysis: Analysis, timestamp: Optional[str] = None) -> Payload:
    """
    Wrap answers and the verifiable part of an analysis into a Payload.

    Answers are clamped and padded/truncated to ANSWER_COUNT here,
    independent of any upstream normalization. No checksum is attached.
    """
    return Payload(
        answers=normalize_answers(answers),
        orientation=analysis.orientation,
        meaning=analysis.meaning,
        tendencies=tuple(analysis.tendencies),
        timestamp=timestamp if timestamp is not None else now_iso(),
    )


# =========================================================================
# Dict conversion
# =========================================================================

def payload_to_dict(p: Payload) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "schema": p.schema,
        "version": p.version,
        "questionnaire": p.questionnaire,
        "timestamp": p.timestamp,
        "answers": list(p.answers),
        "analysis": {
            "orientation": p.orientation,
            "meaning": p.meaning,
            "tendencies": list(p.tendencies),
        },
    }
    if p.checksum is not None:
        d[CHECKSUM_FIELD] = p.checksum
    return d


def payload_from_dict(d: Mapping[str, Any]) -> Payload:
    """Build a Payload from a decoded mapping. Raises SchemaError if invalid."""
    answers = validate_payload_dict(d)
    analysis = d["analysis"]
    return Payload(
        answers=answers,
        orientation=analysis["orientation"],
        meaning=analysis["meaning"],
        tendencies=tuple(str(t) for t in analysis["tendencies"]),
        timestamp=str(d.get("timestamp", "")),
        schema=d["schema"],
        version=d["version"],
        questionnaire=d["questionnaire"],
        checksum=d.get(CHECKSUM_FIELD),
    )


def analysis_to_dict(analysis: Analysis) -> Dict[str, Any]:
    return {
        "orientation": analysis.orientation,
        "meaning": analysis.meaning,
        "tendencies": list(analysis.tendencies),
        "tensions": list(analysis.tensions),
        "signals": dict(analysis.signals),
    }


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not isinstance(value, float) or math.isfinite(value)


def validate_payload_dict(d: Any) -> AnswerSet:
    """
    Structural validation of a decoded payload.

    Checks schema/version/questionnaire literals, exactly ANSWER_COUNT
    numeric answers, a non-empty orientation and meaning, a tendencies list,
    and (if present) a 64-character lowercase hex checksum.

    Returns:
        The re-clamped AnswerSet

    Raises:
        SchemaError: naming the offending field
    """
    if not isinstance(d, Mapping):
        raise SchemaError("Payload is not a JSON object.", field="payload")
    if d.get("schema") != SCHEMA_TAG:
        raise SchemaError("Missing or invalid schema.", field="schema")
    if d.get("version") != SCHEMA_VERSION:
        raise SchemaError(f"Unsupported version: {d.get('version')}", field="version")
    if d.get("questionnaire") != QUESTIONNAIRE_ID:
        raise SchemaError(f"Unexpected questionnaire: {d.get('questionnaire')}", field="questionnaire")

    answers = d.get("answers")
    if not isinstance(answers, list) or len(answers) != ANSWER_COUNT:
        raise SchemaError(f"Answers must be an array of length {ANSWER_COUNT}.", field="answers")
    if not all(_is_number(a) for a in answers):
        raise SchemaError("Answers must all be finite numbers.", field="answers")

    analysis = d.get("analysis")
    if not isinstance(analysis, Mapping):
        raise SchemaError("Missing analysis block.", field="analysis")
    for name in ("orientation", "meaning"):
        value = analysis.get(name)
        if not isinstance(value, str) or not value:
            raise SchemaError(f"Missing analysis.{name}.", field=f"analysis.{name}")
    if not isinstance(analysis.get("tendencies"), list):
        raise SchemaError("Missing analysis.tendencies array.", field="analysis.tendencies")

    if CHECKSUM_FIELD in d:
        checksum = d[CHECKSUM_FIELD]
        if not isinstance(checksum, str) or not _CHECKSUM_RE.match(checksum):
            raise SchemaError(
                f"{CHECKSUM_FIELD} must be 64 lowercase hexadecimal characters.", field=CHECKSUM_FIELD
            )

    return normalize_answers(answers)


# =========================================================================
# Canonical form and checksum
# =========================================================================

def _ordered(mapping: Mapping[str, Any], order: Tuple[str, ...]) -> Dict[str, Any]:
    known = [k for k in order if k in mapping]
    extra = sorted(k for k in mapping if k not in order)
    return {k: mapping[k] for k in known + extra}


def _canonical_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _canonical_value(value[k]) for k in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [_canonical_value(v) for v in value]
    return value


def canonical_json(mapping: Mapping[str, Any]) -> str:
    """
    Serialize a payload mapping in its single canonical form.

    Rules:
        - Top-level keys in PAYLOAD_FIELD_ORDER, analysis keys in
          ANALYSIS_FIELD_ORDER; unknown keys follow in sorted order
        - Any other nested object has sorted keys
        - Compact separators, no whitespace
        - Non-ASCII characters emitted as-is (UTF-8 when encoded)
    """
    top = {k: _canonical_value(v) for k, v in _ordered(mapping, PAYLOAD_FIELD_ORDER).items()}
    analysis = mapping.get("analysis")
    if isinstance(analysis, Mapping):
        top["analysis"] = {
            k: _canonical_value(v) for k, v in _ordered(analysis, ANALYSIS_FIELD_ORDER).items()
        }
    return json.dumps(top, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def sha256_hex(data: str | bytes) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def compute_checksum(mapping: Mapping[str, Any]) -> str:
    """SHA-256 hex of canonical_json(mapping) with the checksum field removed."""
    stripped = {k: v for k, v in mapping.items() if k != CHECKSUM_FIELD}
    return sha256_hex(canonical_json(stripped))


def attach_checksum(p: Payload) -> Payload:
    """Return a copy of the payload carrying its checksum."""
    return replace(p, checksum=compute_checksum(payload_to_dict(p)))


# =========================================================================
# Transport
# =========================================================================

def payload_to_json(p: Payload) -> str:
    return canonical_json(payload_to_dict(p))


def payload_from_json(s: str) -> Payload:
    return payload_from_dict(_loads(s))


def payload_to_yaml(p: Payload) -> str:
    return yaml.safe_dump(payload_to_dict(p), sort_keys=False, allow_unicode=True)


def payload_from_yaml(s: str) -> Payload:
    return payload_from_dict(yaml.safe_load(s))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number {name} is not allowed")


def _parse_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number {text} is out of range")
    return value


def _loads(s: str) -> Any:
    """
    Parse payload JSON, rejecting anything canonical_json() could not
    serialize back: NaN/Infinity literals and floats overflowing to inf.
    """
    try:
        return json.loads(s, parse_constant=_reject_constant, parse_float=_parse_float)
    except ValueError as e:
        raise SchemaError(f"Payload is not valid JSON: {e}", field="payload")
    except RecursionError:
        raise SchemaError("Payload is nested too deeply.", field="payload")


def encode_transport(p: Payload | Mapping[str, Any]) -> str:
    """base64(UTF-8 canonical JSON), the text stored in the PNG tEXt chunk."""
    mapping = payload_to_dict(p) if isinstance(p, Payload) else p
    return base64.b64encode(canonical_json(mapping).encode("utf-8")).decode("ascii")


def decode_transport(text: str) -> Dict[str, Any]:
    """
    Reverse encode_transport() without validating the schema.

    Raises:
        SchemaError: if the text is not base64 of UTF-8 JSON
    """
    try:
        raw = base64.b64decode("".join(text.split()), validate=True)
        decoded = raw.decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise SchemaError(f"Payload is not decodable: {e}", field="payload")
    data = _loads(decoded)
    if not isinstance(data, dict):
        raise SchemaError("Payload is not a JSON object.", field="payload")
    return data