# file: src/climate_cv/cli.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from src.climate_cv.config import DEFAULT_MODELS, DEFAULT_VARIABLES, load_config
from src.climate_cv.io_utils import atomic_write_csv, atomic_write_json, load_monthly_series
from src.climate_cv.tasks import RunReport, run_all, run_holdout, run_rolling_origin

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


def _print_frame(df: pd.DataFrame, title: str) -> None:
    table = Table(title=title)
    for col in df.columns:
        table.add_column(str(col), style="cyan" if col in ("ClimaticVariable", "Model") else "green")
    for row in df.itertuples(index=False):
        table.add_row(*[f"{v:.4f}" if isinstance(v, float) else str(v) for v in row])
    console.print(table)


def _report(report: RunReport, output_dir: Optional[Path], config) -> None:
    aggregator = report.aggregator

    if aggregator.holdout_results:
        for model, table in aggregator.holdout_tables().items():
            _print_frame(table, f"Holdout ({config.train_fraction:.0%} train): {model}")

    if aggregator.folds:
        _print_frame(aggregator.summary(), "Rolling-origin CV: mean / SD across folds")

    for error in report.errors:
        console.print(f"[red]Configuration error:[/red] {error}")

    if output_dir is not None:
        if aggregator.holdout_results:
            atomic_write_csv(aggregator.holdout_wide(), output_dir / config.holdout_path().name)
        if aggregator.folds:
            atomic_write_csv(aggregator.fold_table(), output_dir / config.folds_path().name)
            atomic_write_csv(aggregator.summary(), output_dir / config.summary_path().name)
        atomic_write_json(report.metadata(), output_dir / config.metadata_path().name)
        console.print(f"Results written to {output_dir}")


def _load(data: Path, variables: List[str], config):
    return load_monthly_series(data, variables, frequency=config.season_length)


@app.command()
def holdout(
    data: Path = typer.Argument(..., exists=True, help="CSV with Year, Month and variable columns"),
    variable: List[str] = typer.Option(list(DEFAULT_VARIABLES), "--variable", "-v"),
    model: List[str] = typer.Option(list(DEFAULT_MODELS), "--model", "-m"),
    train_fraction: float = 0.8,
    output_dir: Optional[Path] = None,
):
    """Single chronological train/test split."""
    config = load_config(variables=variable, models=model, train_fraction=train_fraction)
    report = run_holdout(_load(data, variable, config), config)
    _report(report, output_dir, config)


@app.command()
def rolling(
    data: Path = typer.Argument(..., exists=True, help="CSV with Year, Month and variable columns"),
    variable: List[str] = typer.Option(list(DEFAULT_VARIABLES), "--variable", "-v"),
    model: List[str] = typer.Option(list(DEFAULT_MODELS), "--model", "-m"),
    initial: int = 36,
    horizon: int = 1,
    step: int = 1,
    n_jobs: Optional[int] = None,
    output_dir: Optional[Path] = None,
):
    """Expanding-window rolling-origin cross-validation."""
    config = load_config(
        variables=variable, models=model,
        initial=initial, horizon=horizon, step=step, n_jobs=n_jobs,
    )
    report = run_rolling_origin(_load(data, variable, config), config)
    _report(report, output_dir, config)


@app.command()
def run(
    data: Path = typer.Argument(..., exists=True, help="CSV with Year, Month and variable columns"),
    variable: List[str] = typer.Option(list(DEFAULT_VARIABLES), "--variable", "-v"),
    model: List[str] = typer.Option(list(DEFAULT_MODELS), "--model", "-m"),
    train_fraction: float = 0.8,
    initial: int = 36,
    horizon: int = 1,
    step: int = 1,
    n_jobs: Optional[int] = None,
    output_dir: Optional[Path] = None,
):
    """Holdout and rolling-origin evaluation in one run."""
    config = load_config(
        variables=variable, models=model, train_fraction=train_fraction,
        initial=initial, horizon=horizon, step=step, n_jobs=n_jobs,
    )
    report = run_all(_load(data, variable, config), config)
    _report(report, output_dir, config)


if __name__ == "__main__":
    app()
