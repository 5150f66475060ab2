from strategy_lab import main_backtest, main_sweep


def test_main_backtest_prints_report(tmp_path, price_frame, capsys):
    data = tmp_path / "bars.csv"
    price_frame.to_csv(data, index=False)
    plot = tmp_path / "equity.png"

    code = main_backtest.main(["--data", str(data), "--template", "momentum_pulse", "--plot", str(plot)])

    out = capsys.readouterr().out
    assert code == 0
    assert "Total return" in out
    assert "Signal coverage" in out
    assert plot.exists()


def test_main_backtest_reports_typed_errors(tmp_path, price_frame):
    data = tmp_path / "bars.csv"
    price_frame.to_csv(data, index=False)
    script = tmp_path / "greedy.py"
    script.write_text("def strategy(ctx):\n    return {'action': 'buy', 'size': 1000}\n")

    code = main_backtest.main(["--data", str(data), "--script", str(script), "--log-level", "CRITICAL"])

    assert code == 1


def test_main_sweep_writes_csv(tmp_path, price_frame, capsys):
    data = tmp_path / "bars.csv"
    price_frame.to_csv(data, index=False)
    output = tmp_path / "sweep.csv"

    code = main_sweep.main(["--data", str(data), "--output", str(output), "--max-runs", "2"])

    assert code == 0
    assert output.exists()
    assert "Completed 2 runs" in capsys.readouterr().out


def test_main_sweep_reports_empty_data(tmp_path):
    data = tmp_path / "empty.csv"
    data.write_text("Date,Open,High,Low,Close,Volume\n")
    output = tmp_path / "sweep.csv"

    code = main_sweep.main(["--data", str(data), "--output", str(output)])

    assert code == 1
    assert not output.exists()
