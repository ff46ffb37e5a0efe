"""
Unit tests for the command-line interface.
"""

import json

import pytest
from click.testing import CliRunner

from candlelens import __version__
from candlelens.cli import main

HOUR_MS = 3_600_000


@pytest.fixture
def data_file(tmp_path):
    """JSON candle file with a steady rally on every timeframe."""
    klines = []
    for i in range(300):
        price = 100.0 + i
        open_time = 1_700_000_000_000 + i * HOUR_MS
        klines.append([open_time, price, price + 0.5, price - 0.5, price, 1000.0, open_time + HOUR_MS - 1])

    path = tmp_path / "candles.json"
    path.write_text(json.dumps({"BTCUSDT": {tf: klines for tf in ("15m", "1h", "4h", "1d")}}))
    return path


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setenv("DEFAULT_SYMBOLS", "BTCUSDT,ETHUSDT")
    return CliRunner()


class TestCli:
    """Test CLI commands against a local data file."""

    def test_version(self, runner) -> None:
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_analyze_json(self, runner, data_file) -> None:
        result = runner.invoke(main, ["analyze", "btcusdt", "--data", str(data_file), "--json"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["symbol"] == "BTCUSDT"
        assert payload["timeframe"] == "1h"
        assert payload["candle_count"] == 100
        assert payload["score"]["signal"] == "BUY"

    def test_json_output_keeps_logs_on_stderr(self, runner, data_file) -> None:
        result = runner.invoke(main, ["-v", "trend", "BTCUSDT", "--data", str(data_file), "--json"])

        assert result.exit_code == 0, result.output
        assert result.stdout.lstrip().startswith("{")
        assert json.loads(result.stdout)["symbol"] == "BTCUSDT"
        assert "Loaded" in result.stderr
        assert "DEBUG" in result.stderr

    def test_analyze_table(self, runner, data_file) -> None:
        result = runner.invoke(main, ["analyze", "BTCUSDT", "-d", str(data_file), "-t", "4h", "-l", "60"])

        assert result.exit_code == 0, result.output
        assert "Summary" in result.output

    def test_trend_json(self, runner, data_file) -> None:
        result = runner.invoke(
            main, ["trend", "BTCUSDT", "--data", str(data_file), "-t", "1h", "-t", "1d", "--json"]
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert set(payload["timeframes"]) == {"1h", "1d"}
        assert payload["alignment"]["is_aligned"] is True

    def test_levels_json(self, runner, data_file) -> None:
        result = runner.invoke(main, ["levels", "BTCUSDT", "--data", str(data_file), "-t", "1h", "--json"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["symbol"] == "BTCUSDT"
        assert payload["current_price"] == 399.0

    def test_batch_json(self, runner, data_file) -> None:
        result = runner.invoke(main, ["batch", "--data", str(data_file), "--json"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert list(payload["results"]) == ["BTCUSDT"]
        assert payload["failed_symbols"] == ["ETHUSDT"]

    def test_malformed_symbol_exits_with_error(self, runner, data_file) -> None:
        result = runner.invoke(main, ["analyze", "BTC/USDT", "--data", str(data_file)])

        assert result.exit_code == 1
        assert "Analysis failed" in result.output

    def test_missing_data_file(self, runner, tmp_path) -> None:
        result = runner.invoke(main, ["analyze", "BTCUSDT", "--data", str(tmp_path / "missing.json")])
        assert result.exit_code == 2

    def test_invalid_config_file(self, runner, tmp_path) -> None:
        env_file = tmp_path / "bad.env"
        env_file.write_text("CANDLE_LIMIT=not-a-number\n")

        # dotenv writes into os.environ; the runner restores it afterwards
        result = runner.invoke(
            main,
            ["--config", str(env_file), "analyze", "BTCUSDT", "-d", str(env_file)],
            env={"CANDLE_LIMIT": None},
        )

        assert result.exit_code == 1
