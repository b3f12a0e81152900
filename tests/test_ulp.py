import math
import sys
from fractions import Fraction

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from mpmath import mp

from ulpcheck.errors import NotComparableError
from ulpcheck.exact import ExactValue, hypot
from ulpcheck.ulp import ErrorClass, approx_classify, classify

finite_doubles = st.floats(allow_nan=False, allow_infinity=False)
MAX = sys.float_info.max


def exact(x):
    return ExactValue.from_double(x)


def up(x, steps=1):
    for _ in range(steps):
        x = math.nextafter(x, math.inf)
    return x


def down(x, steps=1):
    for _ in range(steps):
        x = math.nextafter(x, -math.inf)
    return x


@given(finite_doubles)
def test_double_is_exact_against_itself(x):
    assert classify(x, exact(x)) == ErrorClass.EXACT
    assert approx_classify(x, exact(x)) == ErrorClass.EXACT


@settings(max_examples=50, deadline=None)
@given(st.floats(min_value=0.0, allow_infinity=False))
def test_classification_is_symmetric_under_negation(x):
    reference = exact(x).sqrt()
    root = math.sqrt(x)
    for candidate in (root, up(root), down(root), up(root, 3)):
        assert classify(-candidate, reference.negate()) == classify(candidate, reference)


@settings(deadline=None)
@given(finite_doubles, finite_doubles)
def test_division_is_correctly_rounded(x, y):
    if x == 0.0 or math.isinf(y / x):
        return
    assert classify(y / x, exact(y).divide(exact(x))) == ErrorClass.EXACT


@settings(deadline=None)
@given(st.floats(min_value=0.0, allow_infinity=False))
def test_sqrt_is_correctly_rounded(x):
    assert classify(math.sqrt(x), exact(x).sqrt()) == ErrorClass.EXACT


def test_sqrt_two():
    root = math.sqrt(2.0)
    assert root == 1.4142135623730951
    assert classify(root, ExactValue(2).sqrt()) == ErrorClass.EXACT


def test_neighbours_of_sqrt_two():
    # sqrt(2) lies between down(root) and root, closer to root
    reference = ExactValue(2).sqrt()
    root = math.sqrt(2.0)
    assert classify(down(root), reference) == ErrorClass.ONE_ULP
    assert classify(up(root), reference) == ErrorClass.TWO_ULP
    assert classify(down(root, 2), reference) == ErrorClass.TWO_ULP
    assert classify(up(root, 2), reference) == ErrorClass.WRONG
    assert classify(down(root, 3), reference) == ErrorClass.WRONG


def test_exp_one():
    assert classify(math.exp(1.0), ExactValue(1).exp()) <= ErrorClass.ONE_ULP


def test_hypot_three_four():
    result = math.hypot(3.0, 4.0)
    assert result == 5.0
    assert classify(result, hypot(exact(3.0), exact(4.0))) == ErrorClass.EXACT


def test_ties_go_to_the_double():
    midpoint = ExactValue(1) + ExactValue(Fraction(1, 2 ** 53))
    assert classify(1.0, midpoint) == ErrorClass.EXACT
    assert classify(up(1.0), midpoint) == ErrorClass.EXACT
    assert classify(up(1.0, 2), midpoint) == ErrorClass.TWO_ULP


def test_most_negative_double_has_no_predecessor():
    assert classify(-MAX, exact(-MAX) - ExactValue(1)) == ErrorClass.EXACT
    assert classify(-MAX, exact(-MAX) - ExactValue(2).sqrt()) == ErrorClass.EXACT
    assert classify(MAX, exact(MAX) + ExactValue(2 ** 1000)) == ErrorClass.EXACT


def test_zero_and_subnormals():
    tiny = ExactValue(Fraction(1, 2 ** 2000))
    assert classify(0.0, tiny) == ErrorClass.EXACT
    assert classify(-0.0, tiny) == ErrorClass.EXACT
    assert classify(5e-324, tiny) == ErrorClass.ONE_ULP
    assert classify(1e-323, tiny) == ErrorClass.TWO_ULP


def test_far_off_is_wrong():
    assert classify(1.0, ExactValue(2)) == ErrorClass.WRONG
    assert classify(3.0, ExactValue(2).sqrt()) == ErrorClass.WRONG


def test_classify_requires_comparable_values():
    total = ExactValue(2).sqrt() + ExactValue(3).sqrt()
    with pytest.raises(NotComparableError):
        classify(1.0, total)


def test_approx_classify_handles_values_of_unknown_rationality():
    total = ExactValue(2).sqrt() + ExactValue(3).sqrt()
    with mp.workprec(200):
        nearest = float(mp.sqrt(2) + mp.sqrt(3))
    assert approx_classify(nearest, total) == ErrorClass.EXACT
    assert approx_classify(1.0, total) == ErrorClass.WRONG


def test_coarse_bounded_precision_can_hide_an_error():
    # A known weakness of the bounded comparison: with too few bits, an
    # exact value 0.75 ulp above 1.0 is taken to equal 1.0.
    reference = ExactValue(1) + ExactValue(Fraction(3, 2 ** 54))
    assert classify(1.0, reference) == ErrorClass.ONE_ULP
    assert approx_classify(1.0, reference) == ErrorClass.ONE_ULP
    assert approx_classify(1.0, reference, bits=40) == ErrorClass.EXACT
