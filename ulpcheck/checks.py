"""Checks that the math module stays within stated error bounds.

Each check_* function takes finite doubles, computes the platform result and
the exact result, and raises BoundViolationError if the platform result is
too far off. Inputs outside the operation's domain, and results whose exact
counterpart is out of reach of a cheap comparison, are skipped: the function
returns None and does not count a check. Otherwise it returns the ErrorClass
of the result.
"""
import collections
import math

from .doubles import double_bits, find_surrounding_floats
from .errors import BoundViolationError
from .exact import ExactValue, hypot
from .ulp import DEFAULT_COMPARE_BITS, ErrorClass, approx_classify, classify

BOUNDS = {
    'div': ErrorClass.EXACT,
    'exp': ErrorClass.ONE_ULP,
    'ln': ErrorClass.ONE_ULP,
    'log10': ErrorClass.ONE_ULP,
    'sqrt': ErrorClass.EXACT,
    'sin': ErrorClass.ONE_ULP,
    'cos': ErrorClass.ONE_ULP,
    'tan': ErrorClass.ONE_ULP,
    'asin': ErrorClass.ONE_ULP,
    'acos': ErrorClass.ONE_ULP,
    'atan': ErrorClass.ONE_ULP,
    'hypot': ErrorClass.ONE_ULP,
    'pow': ErrorClass.ONE_ULP,
}


class CheckCounter:
    """Number of checks made in the current batch."""

    def __init__(self):
        self.count = 0

    def reset(self):
        self.count = 0

    def increment(self):
        self.count += 1


def describe_failure(label, inputs, result, reference, detail):
    args = ', '.join(f"{x!r} [{double_bits(x):016X}]" for x in inputs)
    return f"{label}({args}) = {result!r}: {detail}; exact value {reference.render(40)}"


def _enforce(label, inputs, result, reference, error_class):
    if error_class > BOUNDS[label]:
        raise BoundViolationError(describe_failure(
            label, inputs, result, reference,
            f"{error_class.name} exceeds {BOUNDS[label].name}"))
    return error_class


def _check_at(label, inputs, result, reference, counter):
    if counter is not None:
        counter.increment()
    return _enforce(label, inputs, result, reference, classify(result, reference))


def _finite(*values):
    return all(math.isfinite(x) for x in values)


def check_div(x, other, counter=None):
    if not _finite(x, other) or x == 0.0:
        return None
    result = other / x
    if math.isinf(result):
        return None
    reference = ExactValue.from_double(other).divide(ExactValue.from_double(x))
    return _check_at('div', (x, other), result, reference, counter)


def check_exp(x, counter=None):
    if not _finite(x):
        return None
    try:
        result = math.exp(x)
    except OverflowError:
        return None
    if result == 0.0 or math.isinf(result):
        return None
    return _check_at('exp', (x,), result, ExactValue.from_double(x).exp(), counter)


def check_ln(x, counter=None):
    if not _finite(x) or x <= 0.0:
        return None
    return _check_at('ln', (x,), math.log(x), ExactValue.from_double(x).ln(), counter)


def check_log10(x, counter=None):
    if not _finite(x) or x <= 0.0:
        return None
    return _check_at('log10', (x,), math.log10(x), ExactValue.from_double(x).log10(), counter)


def check_sqrt(x, counter=None):
    if not _finite(x) or x < 0.0:
        return None
    return _check_at('sqrt', (x,), math.sqrt(x), ExactValue.from_double(x).sqrt(), counter)


def check_sin(x, counter=None):
    if not _finite(x):
        return None
    return _check_at('sin', (x,), math.sin(x), ExactValue.from_double(x).sin(), counter)


def check_cos(x, counter=None):
    if not _finite(x):
        return None
    return _check_at('cos', (x,), math.cos(x), ExactValue.from_double(x).cos(), counter)


def check_tan(x, counter=None):
    if not _finite(x):
        return None
    return _check_at('tan', (x,), math.tan(x), ExactValue.from_double(x).tan(), counter)


def check_asin(x, counter=None):
    if not _finite(x) or abs(x) > 1.0:
        return None
    return _check_at('asin', (x,), math.asin(x), ExactValue.from_double(x).asin(), counter)


def check_acos(x, counter=None):
    if not _finite(x) or abs(x) > 1.0:
        return None
    return _check_at('acos', (x,), math.acos(x), ExactValue.from_double(x).acos(), counter)


def check_atan(x, counter=None):
    if not _finite(x):
        return None
    return _check_at('atan', (x,), math.atan(x), ExactValue.from_double(x).atan(), counter)


def check_hypot(x, other, counter=None):
    """Check hypot; an infinite result only needs the true value near the top of the range."""
    if not _finite(x, other):
        return None
    try:
        result = math.hypot(x, other)
    except OverflowError:
        result = math.inf
    reference = hypot(ExactValue.from_double(x), ExactValue.from_double(other))
    if not math.isinf(result):
        return _check_at('hypot', (x, other), result, reference, counter)
    if counter is not None:
        counter.increment()
    nearest = reference.to_float()
    _, above = find_surrounding_floats(nearest)
    if not (math.isinf(nearest) or math.isinf(above)):
        raise BoundViolationError(describe_failure(
            'hypot', (x, other), result, reference,
            f"overflowed although the exact value rounds to {nearest!r}"))
    return None


def check_pow(x, other, counter=None, compare_bits=DEFAULT_COMPARE_BITS):
    """Check pow where the result is real.

    The exact power is compared to the result only to 2**-compare_bits first,
    since powers whose rationality is unknown cannot be compared exactly.
    """
    if not _finite(x, other):
        return None
    if x < 0.0 and not other.is_integer():
        return None
    try:
        result = math.pow(x, other)
    except (OverflowError, ValueError):
        # Overflow, or zero to a negative power
        return None
    if math.isinf(result):
        return None
    if counter is not None:
        counter.increment()
    reference = ExactValue.from_double(x).pow(ExactValue.from_double(other))
    result_as_exact = ExactValue.from_double(result)
    if reference.compare_bounded(result_as_exact, compare_bits) == 0:
        return ErrorClass.EXACT
    if reference.is_comparable(result_as_exact):
        error_class = classify(result, reference)
    else:
        error_class = approx_classify(result, reference, compare_bits)
    return _enforce('pow', (x, other), result, reference, error_class)


Operation = collections.namedtuple('Operation', ['checker', 'arity', 'evaluate'])

OPERATIONS = {
    'div': Operation(check_div, 2, lambda x, other: other / x),
    'exp': Operation(check_exp, 1, math.exp),
    'ln': Operation(check_ln, 1, math.log),
    'log10': Operation(check_log10, 1, math.log10),
    'sqrt': Operation(check_sqrt, 1, math.sqrt),
    'sin': Operation(check_sin, 1, math.sin),
    'cos': Operation(check_cos, 1, math.cos),
    'tan': Operation(check_tan, 1, math.tan),
    'asin': Operation(check_asin, 1, math.asin),
    'acos': Operation(check_acos, 1, math.acos),
    'atan': Operation(check_atan, 1, math.atan),
    'hypot': Operation(check_hypot, 2, math.hypot),
    'pow': Operation(check_pow, 2, math.pow),
}
