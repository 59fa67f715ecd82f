from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

One record per failed wizard step (or failed batch inside the translate step).
``batch=-1`` marks failures that are not tied to a specific batch, and an empty
``language`` marks failures that happen before languages are known.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        step: Wizard step id (e.g. "translate")
        language: Target language code or "" when not language specific
        batch: 0-based batch index. Use -1 when not batch specific
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable message
    """
    timestamp: str  # ISO8601 UTC
    step: str
    language: str
    batch: int  # -1 when unknown
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(step: str, error_type: str, message: str, *, language: str = "", batch: int = -1) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            step=step,
            language=language,
            batch=batch,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
