"""
Exception types raised by coordkit.

Both concrete errors subclass ``ValueError`` so callers that already guard
parsing code with ``except ValueError`` keep working.
"""


class CoordkitError(Exception):
    """Base class for all coordkit errors"""


class FormatError(CoordkitError, ValueError):
    """
    Malformed text input (WKT syntax, coordinate arity, parentheses).

    Attributes:
        text: The offending substring of the input
    """

    def __init__(self, message: str, text: str | None = None):
        if text is not None:
            message = f"{message}: {text}"
        super().__init__(message)
        self.text = text


class InvalidArgumentError(CoordkitError, ValueError):
    """An argument violates a documented precondition"""


def check_tolerance(tolerance: float) -> None:
    """Raise InvalidArgumentError unless tolerance >= 0."""
    if not tolerance >= 0.0:
        raise InvalidArgumentError(f"Tolerance must be >= 0, got {tolerance}")
