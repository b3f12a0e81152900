# Random doubles for the checkers, and the hex test-vector files written for
# checked cases. A test-vector line holds the inputs and the float result as
# 16-digit hex bit patterns followed by the error class:
#   <x> [<other>] <result> <class>
import math
import os
import struct

import numpy as np


def double_bits(x):
    return struct.unpack('>Q', struct.pack('>d', x))[0]


def bits_to_double(u):
    return struct.unpack('>d', struct.pack('>Q', u))[0]


def find_surrounding_floats(r):
    r_minus = math.nextafter(r, -math.inf)  # The largest float less than r
    r_plus = math.nextafter(r, math.inf)    # The smallest float greater than r
    return r_minus, r_plus


def make_rng(seed=None):
    """numpy Generator; unseeded runs draw fresh OS entropy."""
    return np.random.default_rng(seed)


def random_doubles(rng, n):
    """Return n doubles such that every finite bit pattern is equally likely.

    Patterns for NaN or infinity are dropped and drawn again.
    """
    result = np.empty(0, dtype=np.float64)
    while result.size < n:
        bits = rng.integers(0, np.iinfo(np.uint64).max, size=n - result.size,
                            dtype=np.uint64, endpoint=True)
        values = bits.view(np.float64)
        result = np.concatenate([result, values[np.isfinite(values)]])
    return result.tolist()


def random_double(rng):
    return random_doubles(rng, 1)[0]


def format_vector(inputs, result, error_class):
    fields = [f"{double_bits(x):016X}" for x in inputs]
    fields.append(f"{double_bits(result):016X}")
    fields.append(str(int(error_class)))
    return ' '.join(fields)


def write_vectors(directory, label, rows):
    """Write (inputs, result, error_class) rows to <directory>/<label>_ulp."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, f"{label}_ulp")
    with open(path, 'w') as file:
        for inputs, result, error_class in rows:
            file.write(format_vector(inputs, result, error_class) + '\n')
    return path


def read_vectors(path):
    """Parse a test-vector file back into (inputs, result, error_class) rows."""
    rows = []
    with open(path, 'r') as file:
        for line in file:
            parts = line.split()
            if len(parts) < 3:
                continue
            values = [bits_to_double(int(part, 16)) for part in parts[:-1]]
            rows.append((values[:-1], values[-1], int(parts[-1])))
    return rows
