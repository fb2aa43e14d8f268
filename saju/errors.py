"""
Error taxonomy for chart computation.

Every failure the core raises on bad input is a SajuError. Each subclass
carries a stable machine-readable code so the outer layers (CLI, JSON
payloads) can report it without parsing messages.
"""

from typing import Optional


class SajuError(ValueError):
    code = "SAJU_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class UnsupportedYearError(SajuError):
    """Date falls outside the 1900-2200 lunar table coverage."""
    code = "UNSUPPORTED_YEAR"


class InvalidLeapMonthError(SajuError):
    """Leap month requested for a month the table does not mark as leap."""
    code = "INVALID_LEAP_MONTH"


class UnknownSolarTermError(SajuError):
    """Moment falls outside the covered solar-term range."""
    code = "UNKNOWN_SOLAR_TERM"


class UnknownBranchError(SajuError):
    code = "UNKNOWN_BRANCH"


class UnknownAlgorithmError(SajuError):
    code = "UNKNOWN_ALGORITHM"
