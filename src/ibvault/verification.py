"""
Verification of V1 result images.

Linear protocol, no retries, no external calls:

    bytes -> tEXt "IB_V1" -> base64 -> JSON -> schema check
          -> classify(embedded answers)       (trust anchor)
          -> compare orientation / meaning / tendencies
          -> recompute checksum (if present)
          -> Verdict

The embedded analysis text is never trusted; it is only compared against
the recomputation. Malformed or adversarial input yields a Verdict, never
an exception.

A valid verdict proves internal consistency with the V1 scoring logic.
It does NOT verify identity, citizenship or intent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ibvault.classifier import MAX_TENDENCIES, Analysis, classify
from ibvault.errors import ConsistencyError, FormatError, SchemaError
from ibvault.payload import CHECKSUM_FIELD, compute_checksum, decode_transport, validate_payload_dict
from ibvault.pngmeta import find_text


logger = logging.getLogger(__name__)

TEXT_KEY = "IB_V1"


class VerdictStatus(str, Enum):
    """
    OK: payload matches the V1 scoring output and checksum
    INVALID: format, schema or consistency failure; see failed_checks
    NO_PAYLOAD: image is a PNG but carries no IB_V1 payload
    """
    OK = "ok"
    INVALID = "invalid"
    NO_PAYLOAD = "no_payload"


class Check(str, Enum):
    """Named checks reported in Verdict.failed_checks."""
    FORMAT = "format"
    SCHEMA = "schema"
    ORIENTATION = "orientation"
    MEANING = "meaning"
    TENDENCIES = "tendencies"
    CHECKSUM = "checksum"


CONSISTENCY_CHECKS = (Check.ORIENTATION, Check.MEANING, Check.TENDENCIES, Check.CHECKSUM)


@dataclass(frozen=True)
class Verdict:
    """
    Outcome of verifying one image or payload.

    Properties:
        status: OK / INVALID / NO_PAYLOAD
        failed_checks: Checks that failed (empty unless INVALID)
        reasons: Human-readable messages, one per failure
        payload: Decoded payload mapping, when decoding succeeded
        recomputed: Analysis recomputed from the embedded answers
        checksum_present: Whether the payload carried a checksum
    """

    status: VerdictStatus
    failed_checks: Tuple[Check, ...] = ()
    reasons: Tuple[str, ...] = ()
    payload: Optional[Dict[str, Any]] = None
    recomputed: Optional[Analysis] = field(default=None, compare=False)
    checksum_present: bool = False

    def is_valid(self) -> bool:
        return self.status is VerdictStatus.OK

    @classmethod
    def ok(cls, payload: Dict[str, Any], recomputed: Analysis, checksum_present: bool) -> 'Verdict':
        return cls(
            status=VerdictStatus.OK,
            payload=payload,
            recomputed=recomputed,
            checksum_present=checksum_present,
        )

    @classmethod
    def invalid(
        cls,
        checks: Tuple[Check, ...],
        reasons: Tuple[str, ...],
        payload: Optional[Dict[str, Any]] = None,
        recomputed: Optional[Analysis] = None,
        checksum_present: bool = False,
    ) -> 'Verdict':
        return cls(
            status=VerdictStatus.INVALID,
            failed_checks=checks,
            reasons=reasons,
            payload=payload,
            recomputed=recomputed,
            checksum_present=checksum_present,
        )

    @classmethod
    def no_payload(cls) -> 'Verdict':
        return cls(
            status=VerdictStatus.NO_PAYLOAD,
            reasons=(f"No embedded {TEXT_KEY} payload was found in this PNG.",),
        )

    def raise_for_status(self) -> None:
        """
        Raise the matching error for a non-OK verdict.

        Raises:
            FormatError: INVALID because of the container, or NO_PAYLOAD
            SchemaError: INVALID because of payload structure
            ConsistencyError: INVALID because of mismatched claims
        """
        if self.status is VerdictStatus.OK:
            return
        if self.status is VerdictStatus.NO_PAYLOAD:
            raise FormatError(self.reasons[0])
        if Check.FORMAT in self.failed_checks:
            raise FormatError("; ".join(self.reasons))
        if Check.SCHEMA in self.failed_checks:
            raise SchemaError("; ".join(self.reasons))
        raise ConsistencyError(c.value for c in self.failed_checks)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "status": self.status.value,
            "failed_checks": [c.value for c in self.failed_checks],
            "reasons": list(self.reasons),
            "checksum_present": self.checksum_present,
        }
        if self.payload is not None:
            analysis = self.payload.get("analysis")
            d["orientation"] = analysis.get("orientation") if isinstance(analysis, Mapping) else None
            d["questionnaire"] = self.payload.get("questionnaire")
            d["version"] = self.payload.get("version")
            d["timestamp"] = self.payload.get("timestamp")
        return d


def _log_verdict(verdict: Verdict) -> Verdict:
    if verdict.status is not VerdictStatus.OK:
        logger.warning(
            "Verification %s: %s",
            verdict.status.value,
            ", ".join(c.value for c in verdict.failed_checks) or "-",
            extra={"extra_fields": {"status": verdict.status.value,
                                    "failed_checks": [c.value for c in verdict.failed_checks]}},
        )
    return verdict


def _compare(payload: Mapping[str, Any], recomputed: Analysis) -> Tuple[Tuple[Check, ...], Tuple[str, ...]]:
    analysis = payload["analysis"]
    checks = []
    reasons = []

    if analysis["orientation"] != recomputed.orientation:
        checks.append(Check.ORIENTATION)
        reasons.append("Orientation mismatch")
    if analysis["meaning"] != recomputed.meaning:
        checks.append(Check.MEANING)
        reasons.append("Meaning mismatch")

    expected = list(recomputed.tendencies[:MAX_TENDENCIES])
    if list(analysis["tendencies"]) != expected:
        checks.append(Check.TENDENCIES)
        reasons.append("Tendencies mismatch")

    if CHECKSUM_FIELD in payload:
        computed = compute_checksum(payload)
        stored = payload[CHECKSUM_FIELD]
        if computed != stored:
            checks.append(Check.CHECKSUM)
            reasons.append(f"Checksum mismatch (expected {computed[:12]}…, got {stored[:12]}…)")

    return tuple(checks), tuple(reasons)


def verify_payload(payload: Any) -> Verdict:
    """
    Verify an already-decoded payload mapping.

    Runs the schema check, recomputes the analysis from the embedded
    answers and compares every verifiable field plus the checksum.
    """
    try:
        answers = validate_payload_dict(payload)
    except SchemaError as e:
        data = dict(payload) if isinstance(payload, Mapping) else None
        return _log_verdict(Verdict.invalid((Check.SCHEMA,), (f"Payload schema check failed: {e.reason}",), data))

    recomputed = classify(answers)
    try:
        checks, reasons = _compare(payload, recomputed)
    except (ValueError, RecursionError) as e:
        # a mapping handed in directly can hold values with no canonical form
        reason = f"Payload schema check failed: not canonically serializable ({type(e).__name__})"
        return _log_verdict(Verdict.invalid((Check.SCHEMA,), (reason,), dict(payload), recomputed))
    checksum_present = CHECKSUM_FIELD in payload
    data = dict(payload)

    if checks:
        return _log_verdict(Verdict.invalid(checks, reasons, data, recomputed, checksum_present))
    logger.info("Verification ok: %s", recomputed.orientation)
    return Verdict.ok(data, recomputed, checksum_present)


def verify(data: bytes) -> Verdict:
    """
    Verify a PNG byte buffer.

    Never raises for malformed input: non-PNG buffers give an INVALID
    verdict with Check.FORMAT, PNGs without a payload give NO_PAYLOAD.
    """
    try:
        text = find_text(bytes(data), TEXT_KEY)
    except (FormatError, TypeError) as e:
        return _log_verdict(Verdict.invalid((Check.FORMAT,), (f"Not a readable PNG: {e}",)))

    if text is None:
        return _log_verdict(Verdict.no_payload())

    try:
        payload = decode_transport(text)
    except SchemaError as e:
        return _log_verdict(Verdict.invalid((Check.SCHEMA,), (f"Payload schema check failed: {e.reason}",)))

    return verify_payload(payload)


def verify_file(path: str) -> Verdict:
    """Read a file and verify it. OSError propagates to the caller."""
    with open(path, "rb") as fh:
        return verify(fh.read())
