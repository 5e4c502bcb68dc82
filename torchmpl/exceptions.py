"""
torchmpl.exceptions
~~~~~~~~~~~~~~~~~~~

Error types raised by the formula toolkit and the Kripke model engine.

Each error also derives from the built-in exception family callers would
expect (``ValueError``, ``LookupError``, ``RuntimeError``), so existing
``except ValueError`` handlers keep working.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "MPLError",
    "ParseError",
    "InvalidStructureError",
    "StateNotFoundError",
    "ConfluenceViolation",
    "ModelStringError",
]


class MPLError(Exception):
    """Base class for all torchmpl errors."""


class ParseError(MPLError, ValueError):
    """Malformed formula text.

    Args:
        message: Description of the problem.
        position: Character offset in the input where parsing failed,
            or ``None`` if the failure is not tied to one location.
    """

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)
        self.position = position


class InvalidStructureError(MPLError, ValueError):
    """A formula tree violates the arity or tag rules of the grammar."""


class StateNotFoundError(MPLError, LookupError):
    """A state index does not name a live state of the model."""

    def __init__(self, index: object) -> None:
        super().__init__(f"State {index} not found!")
        self.index = index


class ConfluenceViolation(MPLError, RuntimeError):
    """Forward confluence is required for evaluation but does not hold."""


class ModelStringError(MPLError, ValueError):
    """A model string does not encode a valid model."""
