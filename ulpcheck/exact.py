"""Exact real values used as the reference for floating-point results.

An ExactValue is ``offset + scale * core`` where offset and scale are
Fractions and core is an optional lazily evaluated ``reals.Real``. Values
without a core are known rationals and are handled with exact arithmetic;
values whose core is proven irrational can always be compared against
rationals in finite time.
"""
import math
from fractions import Fraction

from mpmath import mp

from . import reals
from .errors import NotComparableError

# Exact rational powers whose result would need more bits are evaluated lazily
EXACT_POWER_BITS = 1 << 16
# Absolute precision of the first approximation used to decide a sign
INITIAL_COMPARE_BITS = 32
FLOAT_BITS = 64
# Below 2**-SUBNORMAL_BITS every value rounds to zero as a double
SUBNORMAL_BITS = 1074 + FLOAT_BITS


def _iroot(n, k):
    """Return the k-th root of the nonnegative integer n if it is an integer, else None."""
    if n < 2:
        return n
    if k >= n.bit_length():
        # 1 < root < 2
        return None
    x = 1 << -(-n.bit_length() // k)
    while True:
        y = ((k - 1) * x + n // x ** (k - 1)) // k
        if y >= x:
            break
        x = y
    return x if x ** k == n else None


def _exact_root(q, k):
    numerator = _iroot(q.numerator, k)
    denominator = _iroot(q.denominator, k)
    if numerator is None or denominator is None:
        return None
    return Fraction(numerator, denominator)


def _power_of_ten(q):
    """Return k if q == 10**k for an integer k, else None."""
    if q.denominator == 1:
        n, sign = q.numerator, 1
    elif q.numerator == 1:
        n, sign = q.denominator, -1
    else:
        return None
    k = 0
    while n % 10 == 0:
        n //= 10
        k += 1
    return sign * k if n == 1 else None


def _power_bits(q, n):
    return abs(n) * max(abs(q.numerator).bit_length(), q.denominator.bit_length())


def _sign(q):
    return (q > 0) - (q < 0)


def _refine_sign(real, limit=None):
    """Sign of a Real, refining the approximation until it is certain.

    With a limit, stop at 2**-limit and report 0 for anything smaller.
    """
    bits = INITIAL_COMPARE_BITS
    while True:
        if limit is not None:
            bits = min(bits, limit)
        approx = real.approximate(bits)
        if abs(approx) > mp.ldexp(1, -bits):
            return 1 if approx > 0 else -1
        if limit is not None and bits >= limit:
            return 0
        bits *= 2


def _domain_error():
    return ValueError("math domain error")


def _coerce(value):
    if isinstance(value, ExactValue):
        return value
    if isinstance(value, float):
        return ExactValue.from_double(value)
    return ExactValue(value)


class ExactValue:
    __slots__ = ("_offset", "_scale", "_core")

    def __init__(self, value=0):
        self._offset = Fraction(value)
        self._scale = Fraction(0)
        self._core = None

    @classmethod
    def from_double(cls, x):
        """Exact embedding of a finite double."""
        if not math.isfinite(x):
            raise ValueError(f"cannot embed non-finite double {x!r}")
        return cls(Fraction(x))

    @classmethod
    def _build(cls, offset, scale, core):
        result = cls.__new__(cls)
        if core is None or scale == 0:
            scale, core = Fraction(0), None
        result._offset = Fraction(offset)
        result._scale = Fraction(scale)
        result._core = core
        return result

    @classmethod
    def _wrap(cls, core):
        return cls._build(0, 1, core)

    @property
    def is_rational(self):
        """True when the value is a known rational."""
        return self._core is None

    @property
    def known_irrational(self):
        return self._core is not None and self._core.irrational

    def as_fraction(self):
        if self._core is not None:
            raise ValueError("value is not a known rational")
        return self._offset

    def as_real(self):
        """The value as a lazily evaluated reals.Real."""
        if self._core is None:
            return reals.Rational(self._offset)
        if self._offset == 0 and self._scale == 1:
            return self._core
        return reals.Affine(self._offset, self._scale, self._core)

    def _scaled(self, factor):
        return self._build(self._offset * factor, self._scale * factor, self._core)

    def _apply(self, fn, *others, irrational=False):
        operands = [self.as_real()] + [other.as_real() for other in others]
        return self._wrap(reals.Apply(fn, *operands, irrational=irrational))

    def _transcendental(self, fn, fixed_point, fixed_value):
        # fn(fixed_point) == fixed_value is fn's only rational value at a rational argument
        if self._core is None:
            if self._offset == fixed_point:
                return ExactValue(fixed_value)
            return self._apply(fn, irrational=True)
        return self._apply(fn)

    def _require_rational_in(self, low, high):
        if self._core is None and not low <= self._offset <= high:
            raise _domain_error()

    # Arithmetic

    def negate(self):
        return self._build(-self._offset, -self._scale, self._core)

    def add(self, other):
        other = _coerce(other)
        if self._core is None or other._core is None or self._core is other._core:
            core = self._core if self._core is not None else other._core
            return self._build(self._offset + other._offset, self._scale + other._scale, core)
        return self._wrap(reals.Sum(self.as_real(), other.as_real()))

    def subtract(self, other):
        return self.add(_coerce(other).negate())

    def multiply(self, other):
        other = _coerce(other)
        if other._core is None:
            return self._scaled(other._offset)
        if self._core is None:
            return other._scaled(self._offset)
        return self._wrap(reals.Product(self.as_real(), other.as_real()))

    def inverse(self):
        if self._core is None:
            return ExactValue(1 / self._offset)
        if self._offset == 0:
            return self._build(0, 1 / self._scale, reals.Inverse(self._core, self._core.irrational))
        return self._wrap(reals.Inverse(self.as_real(), self.known_irrational))

    def divide(self, other):
        other = _coerce(other)
        if other._core is None:
            if other._offset == 0:
                raise ZeroDivisionError("division by an exact zero")
            return self._scaled(1 / other._offset)
        return self.multiply(other.inverse())

    __neg__ = negate
    __add__ = add
    __sub__ = subtract
    __mul__ = multiply
    __truediv__ = divide

    # Functions

    def sqrt(self):
        if self._core is None:
            if self._offset < 0:
                raise _domain_error()
            root = _exact_root(self._offset, 2)
            if root is not None:
                return ExactValue(root)
            return self._apply(mp.sqrt, irrational=True)
        # the square root of an irrational is irrational
        return self._apply(mp.sqrt, irrational=self.known_irrational)

    def exp(self):
        return self._transcendental(mp.exp, 0, 1)

    def ln(self):
        if self._core is None and self._offset <= 0:
            raise _domain_error()
        return self._transcendental(mp.ln, 1, 0)

    def log10(self):
        if self._core is None:
            if self._offset <= 0:
                raise _domain_error()
            k = _power_of_ten(self._offset)
            if k is not None:
                return ExactValue(k)
            return self._apply(mp.log10, irrational=True)
        return self._apply(mp.log10)

    def sin(self):
        return self._transcendental(mp.sin, 0, 0)

    def cos(self):
        return self._transcendental(mp.cos, 0, 1)

    def tan(self):
        return self._transcendental(mp.tan, 0, 0)

    def asin(self):
        self._require_rational_in(-1, 1)
        return self._transcendental(mp.asin, 0, 0)

    def acos(self):
        self._require_rational_in(-1, 1)
        return self._transcendental(mp.acos, 1, 0)

    def atan(self):
        return self._transcendental(mp.atan, 0, 0)

    def pow(self, exponent):
        exponent = _coerce(exponent)
        if self._core is not None or exponent._core is not None:
            return self._apply(mp.power, exponent)
        base, power = self._offset, exponent._offset
        if base == 0:
            if power > 0:
                return ExactValue(0)
            if power == 0:
                return ExactValue(1)
            raise ZeroDivisionError("0 cannot be raised to a negative power")
        if power.denominator == 1:
            root = base
        else:
            if base < 0:
                raise _domain_error()
            # base**(m/n) with m, n coprime is rational only for perfect n-th powers
            root = _exact_root(base, power.denominator)
            if root is None:
                return self._apply(mp.power, exponent, irrational=True)
        if _power_bits(root, power.numerator) <= EXACT_POWER_BITS:
            return ExactValue(root ** power.numerator)
        # Rational, but too large to build exactly
        return self._apply(mp.power, exponent)

    # Comparison

    def is_comparable(self, other):
        """True if compare() is guaranteed to terminate."""
        diff = self.subtract(other)
        return diff._core is None or diff._core.irrational

    def compare(self, other):
        """Return -1, 0 or 1 as self is less than, equal to or greater than other."""
        other = _coerce(other)
        diff = self.subtract(other)
        if diff._core is None:
            return _sign(diff._offset)
        if not diff._core.irrational:
            raise NotComparableError(f"{self.render(20)} not comparable to {other.render(20)}")
        return _refine_sign(diff.as_real())

    def compare_bounded(self, other, bits):
        """Like compare(), but 0 whenever the values agree to within about 2**-bits.

        Always terminates. Values that differ by less than the tolerance may
        compare either way.
        """
        diff = self.subtract(other)
        if diff._core is None:
            if abs(diff._offset) <= Fraction(2) ** -bits:
                return 0
            return _sign(diff._offset)
        return _refine_sign(diff.as_real(), bits)

    # Conversion

    def to_float(self):
        """The value rounded to a double, overflowing to an infinity."""
        if self._core is None:
            try:
                return float(self._offset)
            except OverflowError:
                return math.inf if self._offset > 0 else -math.inf
        real = self.as_real()
        bits = FLOAT_BITS
        while True:
            approx = real.approximate(bits)
            # Double rounding through a 64-bit approximation; fine short of a tie
            if abs(approx) > mp.ldexp(1, FLOAT_BITS - bits) or bits > SUBNORMAL_BITS:
                return float(approx)
            bits *= 2

    def render(self, digits):
        """Decimal rendering truncated to the given number of fractional digits."""
        if self._core is None:
            value = self._offset
        else:
            bits = math.ceil(digits * math.log2(10)) + 4
            value = reals.mpf_to_fraction(self.as_real().approximate(bits))
        scaled = abs(value.numerator) * 10 ** digits // value.denominator
        sign = "-" if value < 0 and scaled else ""
        whole, fraction = divmod(scaled, 10 ** digits)
        if digits == 0:
            return f"{sign}{whole}"
        return f"{sign}{whole}.{fraction:0{digits}d}"

    def __repr__(self):
        return f"ExactValue({self.render(20)})"


def hypot(x, y):
    """sqrt(x*x + y*y); exact values have no overflow to guard against."""
    return x.multiply(x).add(y.multiply(y)).sqrt()
