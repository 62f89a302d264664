from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt

from epi_explorer.viewmodel import ChartPayload


def _save_figure(fig: plt.Figure, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_series(payload: ChartPayload, output_path: Path, title: str = "") -> Path | None:
    """Draw one line per selected region in selection colour order."""
    if payload.is_empty:
        return None

    dates = [record.date for record in payload.records]
    fig, ax = plt.subplots(figsize=(12, 4))
    for region_color in payload.regions:
        ax.plot(
            dates,
            [record.values.get(region_color.region, 0.0) for record in payload.records],
            linewidth=2,
            color=region_color.hex,
            label=region_color.region,
        )
    ax.set_title(title or payload.mode.label)
    ax.set_xlabel("Date")
    ax.set_ylabel(payload.mode.label)
    ax.grid(True, linestyle="--", alpha=0.4)
    ax.legend(loc="upper left")
    return _save_figure(fig, output_path)
