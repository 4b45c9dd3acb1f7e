"""
Exceptions raised by the comparison core.

The composer converts every one of these into a CompareOutcome
variant, so callers of `compose` never see them directly. They are
public for callers that drive the edit-script engine on their own.
"""

from __future__ import annotations


class CompareError(Exception):
    """Base class for comparison errors."""
    pass


class EditScriptTooLarge(CompareError):
    """Raised when the edit distance exceeds the configured ceiling."""

    def __init__(self, limit: int, old_length: int, new_length: int):
        self.limit = limit
        self.old_length = old_length
        self.new_length = new_length
        super().__init__(
            f"Edit distance exceeds limit of {limit} "
            f"({old_length} vs {new_length} items)"
        )


class OversizedInputError(CompareError):
    """Raised when an input exceeds the configured size ceiling."""

    def __init__(self, side: str, size: int, limit: int, unit: str = "bytes"):
        self.side = side
        self.size = size
        self.limit = limit
        self.unit = unit
        super().__init__(
            f"{side.capitalize()} input too large to compare "
            f"({size} {unit}, limit is {limit} {unit})"
        )


class InvalidEncodingError(CompareError):
    """Raised when input bytes are not valid text in the expected encoding."""

    def __init__(self, side: str, encoding: str, reason: str):
        self.side = side
        self.encoding = encoding
        self.reason = reason
        super().__init__(f"{side.capitalize()} input is not valid {encoding}: {reason}")


class ComparisonCancelled(CompareError):
    """Raised when a cancellation request is observed."""

    def __init__(self, message: str = "Comparison cancelled"):
        super().__init__(message)
