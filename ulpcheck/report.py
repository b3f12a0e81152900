"""Batch timing and the per-operation statistics printed after a run."""
import math
import time

import pandas as pd

COLUMNS = ['round', 'operation', 'checks', 'msecs', 'usecs_per_check']


def init_timing(counter):
    counter.reset()
    return time.perf_counter()


def finish_timing(label, counter, start, round_index=0):
    """Print the throughput line for a batch and return it as a row."""
    msecs = (time.perf_counter() - start) * 1000.0
    usecs = 1000.0 * msecs / counter.count if counter.count else math.nan
    print(f"{label}: {counter.count} checks took {msecs:.0f} msecs or {usecs:.2f} usecs/check")
    return {
        'round': round_index,
        'operation': label,
        'checks': counter.count,
        'msecs': msecs,
        'usecs_per_check': usecs,
    }


def batches_frame(rows):
    return pd.DataFrame(rows, columns=COLUMNS)


def summarize(rows):
    """Descriptive statistics of usecs/check, grouped by operation."""
    df = batches_frame(rows)
    return df.groupby('operation', sort=False)['usecs_per_check'].describe()


def print_summary(rows):
    print("\nDescriptive Statistics Grouped by Operation (usecs/check):")
    print(summarize(rows).to_string())


def save_batches(rows, path):
    batches_frame(rows).to_csv(path, index=False)


def load_batches(path):
    return pd.read_csv(path)
