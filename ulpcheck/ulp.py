"""Distance in ulps between a double and the exact value it approximates."""
import enum
import math

from .exact import ExactValue

# Absolute precision, in bits, of the comparisons made by approx_classify.
# Chosen empirically: exact values closer than this to a double or to a
# midpoint between doubles may be misclassified.
DEFAULT_COMPARE_BITS = 2000


class ErrorClass(enum.IntEnum):
    EXACT = 0      # correctly rounded
    ONE_ULP = 1    # the double next to a correctly rounded one
    TWO_ULP = 2    # one further removed
    WRONG = 3      # more than 2 ulps off


def _ulp_error(fp_val, exact, compare):
    fp_as_exact = ExactValue.from_double(fp_val)
    error_sign = compare(fp_as_exact, exact)
    if error_sign == 0:
        return ErrorClass.EXACT
    if error_sign < 0:
        # Negating both sides turns an undershoot into an overshoot
        return _ulp_error(-fp_val, exact.negate(), compare)
    # fp_val > exact from here on
    prev_fp = math.nextafter(fp_val, -math.inf)
    if math.isinf(prev_fp):
        # fp_val is the most negative double; nothing representable is closer
        return ErrorClass.EXACT
    prev = ExactValue.from_double(prev_fp)
    if compare(prev, exact) >= 0:
        # exact <= prev < fp_val, so prev is at least as good
        prevprev_fp = math.nextafter(prev_fp, -math.inf)
        if math.isinf(prevprev_fp):
            return ErrorClass.TWO_ULP
        prevprev = ExactValue.from_double(prevprev_fp)
        if compare(prevprev, exact) >= 0:
            # exact <= prevprev < prev < fp_val
            return ErrorClass.WRONG
        return ErrorClass.TWO_ULP
    # prev < exact < fp_val: fp_val wins ties
    prev_diff = exact.subtract(prev)
    fp_diff = fp_as_exact.subtract(exact)
    if compare(fp_diff, prev_diff) <= 0:
        return ErrorClass.EXACT
    return ErrorClass.ONE_ULP


def classify(fp_val, exact):
    """Return the ErrorClass of the double fp_val as an approximation of exact.

    Every comparison made along the way must be known to terminate; a
    NotComparableError means the exact value was built in a way that cannot
    be decided against rationals, and is a bug in the caller.
    """
    return _ulp_error(fp_val, exact, ExactValue.compare)


def approx_classify(fp_val, exact, bits=DEFAULT_COMPARE_BITS):
    """classify() with every comparison cut off at an absolute precision of 2**-bits.

    Terminates for any exact value, at the price of a small chance of a wrong
    answer when exact lies within 2**-bits of a double or of a midpoint.
    """
    return _ulp_error(fp_val, exact, lambda a, b: a.compare_bounded(b, bits))
