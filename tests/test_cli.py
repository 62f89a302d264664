from __future__ import annotations

from pathlib import Path

import yaml
from typer.testing import CliRunner

from epi_explorer.cli import app


def _write_wide_csv(path: Path) -> Path:
    rows = ["date,World,Europe"]
    for day in range(1, 11):
        rows.append(f"2024-01-{day:02d},{day},{day * 2}")
    path.write_text("\n".join(rows), encoding="utf-8")
    return path


def _write_config(path: Path, **overrides: object) -> Path:
    data = {"input": {"layout": "wide"}, **overrides}
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_cli_help() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    assert "explore" in result.stdout
    assert "timelapse" in result.stdout
    assert "legend" in result.stdout
    assert "regions" in result.stdout


def test_explore_prints_cumulative_table_and_writes_outputs(tmp_path: Path) -> None:
    csv_path = _write_wide_csv(tmp_path / "data.csv")
    config_path = _write_config(tmp_path / "config.yaml")
    out_dir = tmp_path / "out"

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "explore",
            "--csv",
            str(csv_path),
            "--config",
            str(config_path),
            "--region",
            "World",
            "--mode",
            "cumulative",
            "--out",
            str(out_dir),
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "55.0" in result.stdout
    table_path = out_dir / "tables" / "explorer_cumulative.csv"
    assert table_path.exists()
    assert (out_dir / "figures" / "explorer_cumulative.png").exists()
    summary = (out_dir / "summary" / "explorer.json").read_text(encoding="utf-8")
    assert '"mode": "cumulative"' in summary
    assert '"World": "hsl(0, 70%, 50%)"' in summary


def test_explore_rejects_unknown_mode(tmp_path: Path) -> None:
    csv_path = _write_wide_csv(tmp_path / "data.csv")
    config_path = _write_config(tmp_path / "config.yaml")

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["explore", "--csv", str(csv_path), "--config", str(config_path), "--mode", "weekly"],
    )

    assert result.exit_code != 0


def test_explore_uses_csv_path_from_config(tmp_path: Path) -> None:
    _write_wide_csv(tmp_path / "data.csv")
    config_path = _write_config(
        tmp_path / "config.yaml",
        input={"layout": "wide", "csv_path": "data.csv"},
    )

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "explore",
            "--config",
            str(config_path),
            "-r",
            "Europe",
            "--mode",
            "daily",
            "--start",
            "100",
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "20.0" in result.stdout
    assert "2024-01-10" in result.stdout


def test_regions_command_filters_by_search(tmp_path: Path) -> None:
    csv_path = _write_wide_csv(tmp_path / "data.csv")
    config_path = _write_config(tmp_path / "config.yaml")

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["regions", "--csv", str(csv_path), "--config", str(config_path), "--search", "eur"],
    )

    assert result.exit_code == 0
    assert result.stdout.split() == ["Europe"]


def test_legend_lists_every_bucket(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "config.yaml")

    runner = CliRunner()
    result = runner.invoke(app, ["legend", "--config", str(config_path)])

    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert len(lines) == 12
    assert lines[-1].split() == ["1,000+", "#4a1402"]


def test_timelapse_plays_to_the_end(tmp_path: Path) -> None:
    csv_path = _write_wide_csv(tmp_path / "data.csv")
    config_path = _write_config(tmp_path / "config.yaml")

    runner = CliRunner()
    result = runner.invoke(
        app,
        [
            "timelapse",
            "--csv",
            str(csv_path),
            "--config",
            str(config_path),
            "--mode",
            "cumulative",
            "--end",
            "98",
            "--tick-ms",
            "1",
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert "[  0- 98]" in result.stdout
    assert "[  0-100] 2024-01-01..2024-01-10 World=55.0" in result.stdout
    assert result.stdout.strip().endswith("Playback finished.")
