"""Tests for the command-line interface."""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path

import pytest
import yaml

from goldtracker import cli
from goldtracker.config import ENV_VARS


def _write_csv(path: Path, closes: list[float]) -> Path:
    start = dt.date(2024, 1, 1)
    lines = ["Date,Open,High,Low,Close,Volume"]
    for i, close in enumerate(closes):
        day = start + dt.timedelta(days=i)
        lines.append(f"{day.isoformat()},{close},{close},{close},{close},1000")
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run each command in an empty directory with no tracker env vars."""
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda level="INFO": None)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """YAML config reading a rallying CSV series."""
    csv_path = _write_csv(tmp_path / "gld.csv", [100.0] * 81 + [110.0 + i for i in range(9)])
    path = tmp_path / "tracker.yaml"
    with open(path, "w") as f:
        yaml.dump(
            {
                "ticker": "GLD",
                "data_source": "csv",
                "source_params": {"file_path": str(csv_path)},
                "history_path": str(tmp_path / "alert-history.json"),
                "snapshot_path": str(tmp_path / "public" / "data.json"),
            },
            f,
        )
    return path


class TestMain:
    """Tests for argument parsing."""

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Without a subcommand the help text is shown."""
        assert cli.main([]) == 0
        assert "Ichimoku" in capsys.readouterr().out

    def test_unknown_command_exits(self) -> None:
        """argparse rejects unknown subcommands."""
        with pytest.raises(SystemExit):
            cli.main(["backtest"])


class TestRunCommand:
    """Tests for `run`."""

    def test_run_publishes_and_records(
        self, config_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A run prints the signal, writes the snapshot and records the BUY."""
        assert cli.main(["run", "-c", str(config_file)]) == 0

        out = capsys.readouterr().out
        assert "GLD 2024-03-30 $118.00 -> BUY" in out
        snapshot = json.loads((tmp_path / "public" / "data.json").read_text())
        assert snapshot["signal"] == "BUY"
        assert json.loads((tmp_path / "alert-history.json").read_text()) == {
            "BUY-2024-03-30": True
        }

    def test_missing_config_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A missing config file is reported and fails."""
        assert cli.main(["run", "-c", str(tmp_path / "nope.yaml")]) == 1
        assert "Configuration error" in capsys.readouterr().out

    def test_missing_data_file_fails_without_writes(
        self, config_file: Path, tmp_path: Path
    ) -> None:
        """A fetch failure exits non-zero and publishes nothing."""
        (tmp_path / "gld.csv").unlink()

        assert cli.main(["run", "-c", str(config_file)]) == 1
        assert not (tmp_path / "public" / "data.json").exists()
        assert not (tmp_path / "alert-history.json").exists()

    def test_short_history_exits_zero(
        self, config_file: Path, tmp_path: Path
    ) -> None:
        """Too little history is a clean exit."""
        _write_csv(tmp_path / "gld.csv", [100.0] * 79)

        assert cli.main(["run", "-c", str(config_file)]) == 0
        assert not (tmp_path / "public" / "data.json").exists()


class TestReadOnlyCommands:
    """Tests for `indicators`, `signals` and `show`."""

    def test_indicators(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Latest values are printed without writing anything."""
        assert cli.main(["indicators", "-c", str(config_file)]) == 0

        out = capsys.readouterr().out
        assert "Tenkan:    114.00" in out
        assert "Kijun:     109.00" in out
        assert "Signal:    BUY" in out

    def test_signals_empty(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """An empty ledger is reported."""
        assert cli.main(["signals", "-c", str(config_file)]) == 0
        assert "No signals recorded" in capsys.readouterr().out

    def test_signals_after_run(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Recorded signals are listed."""
        cli.main(["run", "-c", str(config_file)])
        capsys.readouterr()

        assert cli.main(["signals", "-c", str(config_file)]) == 0
        out = capsys.readouterr().out
        assert "2024-03-30" in out
        assert "BUY" in out

    def test_show_before_run(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Showing without a published snapshot fails."""
        assert cli.main(["show", "-c", str(config_file)]) == 1
        assert "No snapshot published" in capsys.readouterr().out

    def test_show_after_run(self, config_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """The published snapshot is summarized."""
        cli.main(["run", "-c", str(config_file)])
        capsys.readouterr()

        assert cli.main(["show", "-c", str(config_file)]) == 0
        out = capsys.readouterr().out
        assert "Signal:   BUY" in out
        assert "History:  40 bars, 1 signals" in out
