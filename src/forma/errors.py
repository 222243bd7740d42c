"""
Structured failures raised by FORMA operators.

Every failure carries a ``kind`` string and a ``context`` mapping that
identifies the key being processed, so that an engine can isolate and
report the failure without aborting unrelated keys.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class FormaError(Exception):
    """Base class for all structured FORMA failures."""

    kind = "FormaError"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})

    def __str__(self) -> str:
        if not self.context:
            return f"{self.kind}: {self.message}"
        ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.kind}: {self.message} ({ctx})"


class NoOverlapError(FormaError):
    """Aligned series share no common period."""

    kind = "NoOverlap"


class InconsistentChunkWidthError(FormaError):
    """Chunks for one pixel group disagree on their width."""

    kind = "InconsistentChunkWidth"


class ConfigError(FormaError):
    """Invalid job configuration."""

    kind = "ConfigError"


class CodecError(FormaError):
    """Malformed or unsupported binary record."""

    kind = "CodecError"
