"""Domain-specific exceptions for the ecology process engine."""

from __future__ import annotations


class EcologyError(RuntimeError):
    """Base class for ecology engine errors."""


class UnknownIdentifier(EcologyError, KeyError):
    """Raised when a mandatory tracer or cache variable is not registered."""

    def __str__(self) -> str:
        return RuntimeError.__str__(self)


class MissingParameter(EcologyError, KeyError):
    """Raised when a mandatory parameter is absent from the parameter store."""

    def __str__(self) -> str:
        return RuntimeError.__str__(self)


class InvalidConfiguration(EcologyError):
    """Raised when the process configuration is inconsistent."""


class NumericsError(EcologyError):
    """Raised when the host-side solver fails to advance a cell."""


__all__ = [
    "EcologyError",
    "UnknownIdentifier",
    "MissingParameter",
    "InvalidConfiguration",
    "NumericsError",
]
