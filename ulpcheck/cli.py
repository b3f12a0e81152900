"""Run the math checks on random doubles and report their throughput.

    python -m ulpcheck [seed] [--iterations N] [--rounds N] [--ops OP ...]
"""
import argparse
import functools
import sys

from . import report
from .checks import OPERATIONS, CheckCounter
from .doubles import make_rng, random_doubles, write_vectors
from .ulp import DEFAULT_COMPARE_BITS

DEFAULT_ITERATIONS = 10000
DEFAULT_ROUNDS = 6


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Check math module results against exact values, in ulps")
    parser.add_argument('seed', nargs='?', type=int, default=None,
                        help="seed for the random doubles (default: fresh entropy)")
    parser.add_argument('--iterations', type=int, default=DEFAULT_ITERATIONS,
                        help="random inputs per operation and round")
    parser.add_argument('--rounds', type=int, default=DEFAULT_ROUNDS)
    parser.add_argument('--ops', nargs='+', choices=list(OPERATIONS), default=list(OPERATIONS),
                        help="operations to check, in order")
    parser.add_argument('--compare-bits', type=int, default=DEFAULT_COMPARE_BITS,
                        help="absolute precision of bounded comparisons, in bits")
    parser.add_argument('--csv', default=None, help="write the batch timings to this CSV file")
    parser.add_argument('--vectors', default=None,
                        help="write the checked cases as hex test vectors to this directory")
    return parser.parse_args(argv)


def run_batch(label, rng, iterations, counter, compare_bits=DEFAULT_COMPARE_BITS):
    """Check one operation on random inputs; return the cases that were classified."""
    operation = OPERATIONS[label]
    checker = operation.checker
    if label == 'pow':
        checker = functools.partial(checker, compare_bits=compare_bits)
    values = random_doubles(rng, iterations * operation.arity)
    cases = []
    for i in range(iterations):
        inputs = values[i * operation.arity:(i + 1) * operation.arity]
        error_class = checker(*inputs, counter=counter)
        if error_class is not None:
            cases.append((inputs, error_class))
    return cases


def run_empty_batch(rng, iterations, counter):
    """Draw and compare random pairs only, as a baseline for the other batches."""
    values = random_doubles(rng, 2 * iterations)
    for x, other in zip(values[::2], values[1::2]):
        counter.increment()
        if x == other:
            print("jackpot!", file=sys.stderr)


def many_random_double_checks(rng, args, round_index=0):
    counter = CheckCounter()
    rows = []
    for label in args.ops:
        start = report.init_timing(counter)
        cases = run_batch(label, rng, args.iterations, counter, args.compare_bits)
        rows.append(report.finish_timing(label, counter, start, round_index))
        if args.vectors:
            evaluate = OPERATIONS[label].evaluate
            write_vectors(args.vectors, label,
                          [(inputs, evaluate(*inputs), error_class) for inputs, error_class in cases])
    start = report.init_timing(counter)
    run_empty_batch(rng, args.iterations, counter)
    rows.append(report.finish_timing('empty', counter, start, round_index))
    return rows


def main(argv=None):
    args = parse_args(argv)
    rng = make_rng(args.seed)
    rows = []
    for round_index in range(args.rounds):
        rows.extend(many_random_double_checks(rng, args, round_index))
    report.print_summary(rows)
    if args.csv:
        report.save_batches(rows, args.csv)
    return 0
