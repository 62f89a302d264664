from __future__ import annotations

from pathlib import Path

import typer

from epi_explorer.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from epi_explorer.errors import ConfigurationError
from epi_explorer.io.read import load_store
from epi_explorer.io.write import table_suffix, write_summary, write_table
from epi_explorer.logging import configure_logging
from epi_explorer.paths import build_output_paths
from epi_explorer.playback import PlaybackController
from epi_explorer.regions import RegionSelection
from epi_explorer.series.buckets import MagnitudeBucketer
from epi_explorer.series.frequency import FrequencyMode, parse_frequency_mode
from epi_explorer.series.store import Metric, Series
from epi_explorer.series.window import WindowPosition, resolve, series_span
from epi_explorer.viewmodel import ExplorerViewModel
from epi_explorer.viz.chart import plot_series

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path | None) -> AppConfig:
    if config_path is None:
        if DEFAULT_CONFIG_PATH.exists():
            return load_config(DEFAULT_CONFIG_PATH)
        return AppConfig()
    return load_config(config_path)


def _require_csv(csv: Path | None, cfg: AppConfig) -> Path:
    if csv is not None:
        return csv
    if cfg.input.csv_path:
        return Path(cfg.input.csv_path)
    raise typer.BadParameter(
        "Missing --csv. Pass a data file or set input.csv_path "
        "(or EPI_EXPLORER_DATA_CSV) in the config."
    )


def _parse_mode(mode: str | None, cfg: AppConfig) -> FrequencyMode:
    try:
        return parse_frequency_mode(mode or cfg.frequency.default_mode)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="--mode") from exc


def _window_position(start: int, end: int) -> WindowPosition:
    try:
        return WindowPosition(start=start, end=end)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--start/--end") from exc


def _load_series(csv: Path | None, cfg: AppConfig, metric: Metric | None) -> Series:
    store = load_store(_require_csv(csv, cfg), cfg)
    return store.series(metric or cfg.input.metric)


def _selected_regions(region: list[str] | None, cfg: AppConfig) -> list[str]:
    selection = RegionSelection.from_config(cfg.regions, regions=region or None)
    return list(selection.regions)


@app.command()
def explore(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    region: list[str] | None = typer.Option(
        None,
        "--region",
        "-r",
        help="Region to chart; repeat for several. Defaults to the configured default region.",
    ),
    metric: Metric | None = typer.Option(None, help="Metric series to explore."),
    mode: str | None = typer.Option(None, help="Frequency: daily, cumulative or 7day."),
    start: int = typer.Option(0, min=0, max=100, help="Window start offset (0-100)."),
    end: int = typer.Option(100, min=0, max=100, help="Window end offset (0-100)."),
    out: Path | None = typer.Option(None, resolve_path=True, help="Write table and figure here."),
) -> None:
    """Print the derived table for the selected regions, mode and window."""
    configure_logging()
    cfg = _load_app_config(config)
    frequency = _parse_mode(mode, cfg)
    position = _window_position(start, end)
    series = _load_series(csv, cfg, metric)
    regions = _selected_regions(region, cfg)

    view_model = ExplorerViewModel(cfg)
    table = view_model.table(series, regions, frequency, position)
    if table.empty:
        typer.echo("No data in the selected window.")
    else:
        typer.echo(table.to_string(index=False))

    if out is None:
        return

    paths = build_output_paths(out)
    extension = table_suffix(cfg.outputs.tables_format)
    table_path = write_table(
        table,
        paths.tables / f"explorer_{frequency.name}.{extension}",
        fmt=cfg.outputs.tables_format,
    )
    payload = view_model.chart(series, regions, frequency, position)
    figure_path = plot_series(
        payload,
        paths.figures / f"explorer_{frequency.name}.{cfg.outputs.figures_format}",
    )
    write_summary(
        {
            "metric": str((metric or Metric(cfg.input.metric)).value),
            "mode": frequency.value,
            "regions": regions,
            "window_position": {"start": position.start, "end": position.end},
            "window": (
                {"start": payload.window.start, "end": payload.window.end}
                if payload.window is not None
                else None
            ),
            "rows": int(len(table)),
            "region_colors": {color.region: color.css for color in payload.regions},
            "map": {
                value.region: {"value": value.value, "bucket": value.bucket.label}
                for value in view_model.map_values(series, regions, frequency, position)
            },
        },
        paths.summary / "explorer.json",
    )
    typer.echo(f"Table written to: {table_path}")
    if figure_path is not None:
        typer.echo(f"Figure written to: {figure_path}")


@app.command()
def regions(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    metric: Metric | None = typer.Option(None),
    search: str | None = typer.Option(None, help="Case-insensitive name filter."),
) -> None:
    """List the regions present in a data file."""
    configure_logging()
    cfg = _load_app_config(config)
    store = load_store(_require_csv(csv, cfg), cfg)
    known = store.regions(metric or cfg.input.metric)
    if search is not None:
        known = RegionSelection(regions=[]).search(search, known)
    for name in known:
        typer.echo(name)


@app.command()
def legend(
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
) -> None:
    """Print the magnitude buckets used by the chart legend and the map."""
    cfg = _load_app_config(config)
    bucketer = MagnitudeBucketer.from_config(cfg.buckets)
    for label, color in bucketer.legend():
        typer.echo(f"{label:>12}  {color}")


@app.command()
def timelapse(
    csv: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    region: list[str] | None = typer.Option(None, "--region", "-r"),
    metric: Metric | None = typer.Option(None),
    mode: str | None = typer.Option(None),
    start: int = typer.Option(0, min=0, max=100),
    end: int = typer.Option(0, min=0, max=100, help="Window end offset to play from."),
    tick_ms: int | None = typer.Option(None, min=1, help="Override playback.tick_ms."),
) -> None:
    """Play the window end forward to 100, printing each frame."""
    configure_logging()
    cfg = _load_app_config(config)
    frequency = _parse_mode(mode, cfg)
    position = _window_position(start, end)
    series = _load_series(csv, cfg, metric)
    regions = _selected_regions(region, cfg)
    span = series_span(series)
    if span is None:
        typer.echo("No data to play.")
        return

    view_model = ExplorerViewModel(cfg)

    def _render(frame: WindowPosition) -> None:
        window = resolve(frame, span)
        records = view_model.compute(series, regions, frequency, frame)
        latest = records[-1].values if records else {}
        values = ", ".join(f"{name}={latest.get(name, 0.0):.1f}" for name in regions)
        typer.echo(f"[{frame.start:3d}-{frame.end:3d}] {window.start}..{window.end} {values}")

    controller = PlaybackController(
        tick_ms=tick_ms or cfg.playback.tick_ms,
        step=cfg.playback.step,
    )
    _render(position)
    with controller:
        controller.start(position, on_tick=_render)
        try:
            controller.wait()
        except KeyboardInterrupt:
            typer.echo("Playback interrupted.")
    typer.echo("Playback finished.")


if __name__ == "__main__":
    app()
