"""
Error taxonomy for chart computation.

Every failure the pipeline reports carries a machine-readable kind,
a human-readable message and the offending inputs as context.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    # Fatal: no chart can be produced
    INPUT_VALIDATION_FAILED = "INPUT_VALIDATION_FAILED"
    LUNAR_YEAR_OUT_OF_RANGE = "LUNAR_YEAR_OUT_OF_RANGE"
    LUNAR_CONVERSION_FAILED = "LUNAR_CONVERSION_FAILED"
    PALACE_CALC_FAILED = "PALACE_CALC_FAILED"

    # Section level: recorded in the result's errors map
    MODULE_MISSING = "MODULE_MISSING"  # a section whose input section failed
    PRIMARY_STARS_FAILED = "PRIMARY_STARS_FAILED"
    SECONDARY_STARS_FAILED = "SECONDARY_STARS_FAILED"
    MINOR_STARS_FAILED = "MINOR_STARS_FAILED"
    CYCLE_STARS_FAILED = "CYCLE_STARS_FAILED"
    ATTRIBUTES_FAILED = "ATTRIBUTES_FAILED"
    MUTATIONS_FAILED = "MUTATIONS_FAILED"
    BRIGHTNESS_FAILED = "BRIGHTNESS_FAILED"
    LIFE_CYCLE_FAILED = "LIFE_CYCLE_FAILED"


class ChartError(Exception):
    """Structured error raised (or recorded) by the chart pipeline."""

    def __init__(self, kind: ErrorKind, message: str,
                 context: Optional[dict] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self):
        return f"[{self.kind.value}] {self.message}"

    def to_dict(self):
        return {
            "kind": self.kind.value,
            "message": self.message,
            "context": self.context,
            "cause": repr(self.cause) if self.cause is not None else None,
            "timestamp": self.timestamp,
        }
