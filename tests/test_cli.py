import math
import os

import pytest

from ulpcheck import report
from ulpcheck.checks import CheckCounter
from ulpcheck.cli import main, parse_args, run_batch, run_empty_batch
from ulpcheck.doubles import make_rng, read_vectors


def test_finish_timing_prints_throughput(capsys):
    counter = CheckCounter()
    start = report.init_timing(counter)
    for _ in range(4):
        counter.increment()
    row = report.finish_timing('sqrt', counter, start, round_index=2)
    out = capsys.readouterr().out
    assert out.startswith("sqrt: 4 checks took ")
    assert "usecs/check" in out
    assert row['round'] == 2
    assert row['operation'] == 'sqrt'
    assert row['checks'] == 4
    assert row['usecs_per_check'] == pytest.approx(1000.0 * row['msecs'] / 4)


def test_finish_timing_with_no_checks(capsys):
    counter = CheckCounter()
    counter.increment()
    start = report.init_timing(counter)
    assert counter.count == 0
    row = report.finish_timing('exp', counter, start)
    assert math.isnan(row['usecs_per_check'])
    assert "exp: 0 checks" in capsys.readouterr().out


def rows():
    return [
        {'round': 0, 'operation': 'div', 'checks': 10, 'msecs': 1.0, 'usecs_per_check': 100.0},
        {'round': 0, 'operation': 'empty', 'checks': 10, 'msecs': 0.1, 'usecs_per_check': 10.0},
        {'round': 1, 'operation': 'div', 'checks': 10, 'msecs': 3.0, 'usecs_per_check': 300.0},
        {'round': 1, 'operation': 'empty', 'checks': 10, 'msecs': 0.1, 'usecs_per_check': 10.0},
    ]


def test_summarize():
    summary = report.summarize(rows())
    assert list(summary.index) == ['div', 'empty']
    assert summary.loc['div', 'count'] == 2
    assert summary.loc['div', 'mean'] == 200.0
    assert summary.loc['empty', 'max'] == 10.0


def test_print_summary(capsys):
    report.print_summary(rows())
    out = capsys.readouterr().out
    assert "Grouped by Operation" in out
    assert "div" in out and "empty" in out


def test_batches_csv_round_trip(tmp_path):
    path = str(tmp_path / "batches.csv")
    report.save_batches(rows(), path)
    df = report.load_batches(path)
    assert list(df.columns) == report.COLUMNS
    assert df['operation'].tolist() == ['div', 'empty', 'div', 'empty']
    assert df['usecs_per_check'].sum() == 420.0


def test_parse_args_defaults():
    args = parse_args([])
    assert args.seed is None
    assert args.iterations == 10000
    assert args.rounds == 6
    assert args.ops[0] == 'div' and args.ops[-1] == 'pow'
    assert args.compare_bits == 2000
    assert args.csv is None and args.vectors is None


def test_parse_args_rejects_unknown_operation():
    with pytest.raises(SystemExit):
        parse_args(['--ops', 'cbrt'])


def test_run_batch_counts_only_checked_inputs():
    counter = CheckCounter()
    cases = run_batch('ln', make_rng(5), 50, counter)
    # Roughly half of all random doubles are negative
    assert 0 < counter.count < 50
    assert len(cases) == counter.count
    assert all(inputs[0] > 0 for inputs, _ in cases)


def test_run_empty_batch_counts_pairs():
    counter = CheckCounter()
    run_empty_batch(make_rng(5), 25, counter)
    assert counter.count == 25


def test_main(tmp_path, capsys):
    csv_path = tmp_path / "batches.csv"
    vectors = tmp_path / "vectors"
    status = main(['42', '--iterations', '20', '--rounds', '2', '--ops', 'div', 'sqrt',
                   '--csv', str(csv_path), '--vectors', str(vectors)])
    assert status == 0
    out = capsys.readouterr().out
    # Quotients that overflow are skipped, empty pairs never are
    assert out.count("div: ") == 2
    assert out.count("empty: 20 checks") == 2
    assert out.count("sqrt: ") == 2
    df = report.load_batches(str(csv_path))
    assert df['operation'].tolist() == ['div', 'sqrt', 'empty'] * 2
    assert sorted(os.listdir(vectors)) == ['div_ulp', 'sqrt_ulp']
    for inputs, result, error_class in read_vectors(str(vectors / 'div_ulp')):
        assert result == inputs[1] / inputs[0]
        assert error_class == 0


def test_main_is_reproducible(capsys):
    main(['7', '--iterations', '10', '--rounds', '1', '--ops', 'sqrt'])
    first = capsys.readouterr().out
    main(['7', '--iterations', '10', '--rounds', '1', '--ops', 'sqrt'])
    second = capsys.readouterr().out
    assert first.split(" checks")[0] == second.split(" checks")[0]
