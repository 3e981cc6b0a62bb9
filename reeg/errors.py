"""
Exception classes for reeg.

Every processing stage raises one of these (never a bare ValueError) so callers
can tell a bad parameter from a bad recording. Each one also derives from the
matching builtin, so ``except ValueError`` keeps working.
"""


class ReegError(Exception):
    """Base class for reeg specific errors."""

    pass


class ConfigurationError(ReegError, ValueError):
    """Invalid processing parameter: filter cutoff/order, sample rate, mode name."""

    pass


class BoundsError(ReegError, IndexError):
    """Degenerate or out-of-range marker window."""

    pass


class ShapeError(ReegError, ValueError):
    """Matrix does not have the expected (rectangular) shape."""

    pass


class NumericalError(ReegError, ArithmeticError):
    """Curve fit or transform could not be constructed, or produced non-finite values."""

    pass
