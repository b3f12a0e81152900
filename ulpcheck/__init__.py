"""Checks that floating-point math functions round correctly, measured in ulps."""
from .errors import BoundViolationError, NotComparableError, VerificationError
from .exact import ExactValue, hypot
from .ulp import DEFAULT_COMPARE_BITS, ErrorClass, approx_classify, classify

__version__ = "0.1.0"
