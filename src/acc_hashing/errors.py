"""Exception hierarchy for condition hashing failures."""

from __future__ import annotations

__all__ = [
    "ConditionHashingError",
    "FormatterError",
    "RoutingError",
    "EncodingError",
]


class ConditionHashingError(ValueError):
    """Base class for every failure raised while hashing conditions.

    Args:
        message: Human readable description of the failure.
        location: Optional path of the offending node inside the input,
            for example ``[2].returnValueTest``.
    """

    def __init__(self, message: str, *, location: str | None = None) -> None:
        self.location = location
        if location:
            message = f"{message} (at {location})"
        super().__init__(message)


class FormatterError(ConditionHashingError):
    """A condition item or resource id has a malformed or unknown shape."""


class RoutingError(ConditionHashingError):
    """A condition item's discriminant does not name a known variant."""


class EncodingError(ConditionHashingError):
    """A canonical form holds a value with no deterministic JSON encoding."""
