"""
Error taxonomy for ibvault.

    FormatError       bytes are not a PNG, or the chunk stream has no IEND
    SchemaError       decoded payload fails a structural/literal check
    ConsistencyError  recomputed analysis or checksum disagrees with the claim

Verification reports all three as data (see verification.Verdict).
They only surface as exceptions from the codec's public functions and from
Verdict.raise_for_status().
"""

from typing import Iterable, Optional, Tuple


class VaultError(Exception):
    """Base class for all ibvault errors."""
    pass


class FormatError(VaultError):
    """Raised when a byte buffer is not a usable PNG container."""
    pass


class SchemaError(VaultError):
    """
    Raised when a decoded payload is structurally invalid.

    Properties:
        field: Payload field that failed (e.g. "answers", "analysis.meaning")
        reason: Human-readable explanation
    """

    def __init__(self, reason: str, field: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.field = field


class ConsistencyError(VaultError):
    """Raised when embedded claims do not match the recomputed result."""

    def __init__(self, mismatches: Iterable[str]):
        self.mismatches: Tuple[str, ...] = tuple(mismatches)
        super().__init__(f"Consistency check failed: {', '.join(self.mismatches)}")


class ConfigError(VaultError):
    """Raised when settings cannot be loaded or are invalid."""
    pass
