"""Lazily evaluated real numbers backed by mpmath.

A Real is only ever approximated: ``approximate(bits)`` returns an mpf within
``2**-bits`` of the true value (``bits`` may be negative). The best
approximation computed so far is cached on the node, so asking again for the
same or a lower precision costs nothing, and nodes that share an operand share
its cache.
"""
import abc
from fractions import Fraction

from mpmath import mp, mpf

# Extra bits carried through every evaluation
GUARD_BITS = 8
# Working precision for first magnitude estimates
COARSE_BITS = 32


def fraction_magnitude(q):
    """Return m such that |q| < 2**m."""
    if q == 0:
        return 0
    return abs(q.numerator).bit_length() - q.denominator.bit_length() + 1


def fraction_to_mpf(q):
    """Round q to the current working precision."""
    return mpf(q.numerator) / q.denominator


def mpf_to_fraction(x):
    man, exp = x.man_exp
    value = Fraction(abs(man)) * Fraction(2) ** exp
    return -value if x < 0 else value


def is_finite(value):
    return isinstance(value, mpf) and not (mp.isinf(value) or mp.isnan(value))


def estimate_magnitude(value):
    """Upper bound on log2|value| for nonzero finite values, 0 otherwise."""
    if not is_finite(value) or not value:
        return 0
    return int(mp.mag(value))


class Real(abc.ABC):
    # Only set when the value is proven irrational
    irrational = False

    def __init__(self):
        self._bits = None
        self._approx = None

    def approximate(self, bits):
        """Return an mpf within 2**-bits of this value."""
        if self._bits is None or bits > self._bits:
            self._approx = self._evaluate(bits)
            self._bits = bits
        return self._approx

    def bound(self):
        """Return m such that |self| <= 2**m."""
        return int(mp.mag(abs(self.approximate(0)) + 2))

    @abc.abstractmethod
    def _evaluate(self, bits):
        pass


class Rational(Real):

    def __init__(self, value):
        super().__init__()
        self.value = Fraction(value)

    def to_mpf(self):
        """The value at no less than the working precision; exact for dyadic rationals."""
        with mp.workprec(max(mp.prec, abs(self.value.numerator).bit_length())):
            return fraction_to_mpf(self.value)

    def _evaluate(self, bits):
        with mp.workprec(max(fraction_magnitude(self.value) + bits + 2, COARSE_BITS)):
            return self.to_mpf()


class Apply(Real):
    """An mpmath function applied to Real operands.

    Rational operands are handed to ``fn`` rounded to the working precision,
    and the result is trusted to within a few ulps of that precision. Any
    other operand is approximated to an absolute precision, and the result is
    only accepted once two evaluations with increasing operand precision agree.
    """

    def __init__(self, fn, *operands, irrational=False):
        super().__init__()
        self._fn = fn
        self._operands = operands
        self._exact = all(isinstance(op, Rational) for op in operands)
        self._magnitude = None
        self.irrational = irrational

    def _at(self, prec, slack):
        with mp.workprec(prec):
            args = [op.to_mpf() if isinstance(op, Rational) else op.approximate(prec + slack)
                    for op in self._operands]
            return self._fn(*args)

    def _converge(self, prec, bits):
        tolerance = mp.ldexp(1, -(bits + 1))
        slack = GUARD_BITS
        while True:
            low = self._at(prec, slack)
            high = self._at(prec + slack, 2 * slack)
            if is_finite(low) and is_finite(high) and abs(high - low) <= tolerance:
                return high
            slack *= 2

    def _evaluate(self, bits):
        if self._magnitude is None:
            self._magnitude = estimate_magnitude(self._at(COARSE_BITS, GUARD_BITS))
        while True:
            prec = max(bits + self._magnitude + GUARD_BITS, COARSE_BITS)
            if self._exact:
                value = self._at(prec, 0)
            else:
                value = self._converge(prec, bits)
            magnitude = estimate_magnitude(value)
            if magnitude <= self._magnitude:
                return value
            self._magnitude = magnitude


class Affine(Real):
    """offset + scale * core, with rational offset and nonzero rational scale."""

    def __init__(self, offset, scale, core):
        super().__init__()
        self._offset = offset
        self._scale = scale
        self._core = core
        self.irrational = core.irrational

    def _evaluate(self, bits):
        scale_magnitude = fraction_magnitude(self._scale)
        core = self._core.approximate(bits + scale_magnitude + 2)
        size = max(fraction_magnitude(self._offset), scale_magnitude + estimate_magnitude(core), 0)
        with mp.workprec(max(bits + size + GUARD_BITS, COARSE_BITS)):
            return fraction_to_mpf(self._offset) + fraction_to_mpf(self._scale) * core


class Sum(Real):

    def __init__(self, left, right):
        super().__init__()
        self._left = left
        self._right = right

    def _evaluate(self, bits):
        left = self._left.approximate(bits + 2)
        right = self._right.approximate(bits + 2)
        size = max(estimate_magnitude(left), estimate_magnitude(right), 0)
        with mp.workprec(max(bits + size + GUARD_BITS, COARSE_BITS)):
            return left + right


class Product(Real):

    def __init__(self, left, right):
        super().__init__()
        self._left = left
        self._right = right

    def _evaluate(self, bits):
        left_bound = self._left.bound()
        right_bound = self._right.bound()
        left = self._left.approximate(bits + right_bound + 2)
        right = self._right.approximate(bits + left_bound + 2)
        with mp.workprec(max(bits + left_bound + right_bound + GUARD_BITS, COARSE_BITS)):
            return left * right


class Inverse(Real):
    """1 / operand. Never finishes evaluating when the operand is zero."""

    def __init__(self, operand, irrational=False):
        super().__init__()
        self._operand = operand
        self._floor = None
        self.irrational = irrational

    def _lower_bound(self):
        bits = COARSE_BITS
        while True:
            value = self._operand.approximate(bits)
            # |operand| >= |value| - 2**-bits >= |value| / 2
            if abs(value) > mp.ldexp(1, 1 - bits):
                return int(mp.mag(value)) - 3
            bits *= 2

    def _evaluate(self, bits):
        if self._floor is None:
            self._floor = self._lower_bound()
        # |1/a - 1/a'| <= |a - a'| / (|a| |a'|), both at least 2**floor
        value = self._operand.approximate(bits - 2 * self._floor + 2)
        with mp.workprec(max(bits - self._floor + GUARD_BITS, COARSE_BITS)):
            return 1 / value
