class VerificationError(Exception):
    """Base class for failures raised while verifying a math function."""


class NotComparableError(VerificationError, ArithmeticError):
    """Two exact values were compared without a guarantee that the comparison terminates."""


class BoundViolationError(VerificationError, AssertionError):
    """A floating-point result is further from the true value than its operation allows."""
