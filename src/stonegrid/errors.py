"""
Exceptions raised by the stonegrid core.

Painting errors (OutOfBounds, Occupied, InsufficientGrowth) are raised
before any cell is touched, so callers can retry with other parameters.
ModelUnavailable is fatal for the session and is never retried.
"""


class StoneGridError(Exception):
    """Base class for all stonegrid errors."""


class InvalidArgument(StoneGridError, ValueError):
    """Bad construction or call parameters."""


class OutOfBounds(StoneGridError, IndexError):
    """An index lies outside the lattice."""


class Occupied(StoneGridError):
    """A rectangle target cell is already painted."""


class InsufficientGrowth(StoneGridError):
    """Blob growth claimed fewer cells than its radius."""


class ModelUnavailable(StoneGridError, RuntimeError):
    """The inference model is missing or produced malformed output."""
