# file: src/climate_cv/tasks.py
"""
Evaluation Runs

Runs each climatic variable through the holdout and rolling-origin
evaluators for every configured model family:
- variables in input order, then model family in config order
- a ConfigurationError stops only that (variable, model) evaluation;
  it is logged and returned in RunReport.errors
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .aggregation import ResultAggregator
from .config import EvaluationConfig
from .errors import ConfigurationError
from .models import ModelFactory
from .series import MonthlySeries
from .training import holdout_eval, rolling_origin_eval

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    protocol: str
    aggregator: ResultAggregator = field(default_factory=ResultAggregator)
    errors: List[ConfigurationError] = field(default_factory=list)
    duration_sec: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.errors

    def metadata(self) -> Dict:
        return {
            "protocol": self.protocol,
            "n_holdout": len(self.aggregator.holdout_results),
            "n_folds": len(self.aggregator.folds),
            "n_failed_folds": sum(f.failed for f in self.aggregator.folds),
            "errors": [str(e) for e in self.errors],
            "duration_sec": round(self.duration_sec, 3),
        }


def _frequency_error(series: MonthlySeries, config: EvaluationConfig) -> ConfigurationError | None:
    if series.frequency == config.season_length:
        return None
    return ConfigurationError(
        "series frequency does not match configured season length",
        variable=series.name,
        frequency=series.frequency,
        season_length=config.season_length,
    )


def run_holdout(
    series_list: Sequence[MonthlySeries],
    config: EvaluationConfig,
    report: RunReport | None = None,
) -> RunReport:
    """
    Holdout evaluation for every (variable, model)
    """
    report = report or RunReport(protocol="holdout")
    start = time.time()

    logger.info(
        f"[holdout] {len(series_list)} variables x {len(config.models)} models, "
        f"train_fraction={config.train_fraction}"
    )

    for series in series_list:
        error = _frequency_error(series, config)
        if error is not None:
            logger.error(f"[holdout] skipped: {error}")
            report.errors.append(error)
            continue
        for model_key in config.models:
            try:
                model = ModelFactory.from_config(model_key, config)
                result = holdout_eval(
                    series,
                    model,
                    train_fraction=config.train_fraction,
                    confidence_levels=config.confidence_levels,
                )
            except ConfigurationError as e:
                error = e.with_context(variable=series.name, model=model_key)
                logger.error(f"[holdout] skipped: {error}")
                report.errors.append(error)
                continue
            report.aggregator.add_holdout(result)

    report.duration_sec += time.time() - start
    return report


def run_rolling_origin(
    series_list: Sequence[MonthlySeries],
    config: EvaluationConfig,
    report: RunReport | None = None,
) -> RunReport:
    """
    Rolling-origin (expanding window) evaluation for every (variable, model)
    """
    report = report or RunReport(protocol="rolling_origin")
    start = time.time()

    logger.info(
        f"[rolling] {len(series_list)} variables x {len(config.models)} models, "
        f"initial={config.initial}, h={config.horizon}, step={config.step}, n_jobs={config.n_jobs}"
    )

    for series in series_list:
        error = _frequency_error(series, config)
        if error is not None:
            logger.error(f"[rolling] skipped: {error}")
            report.errors.append(error)
            continue
        for model_key in config.models:
            try:
                model = ModelFactory.from_config(model_key, config)
                folds = rolling_origin_eval(
                    series,
                    model,
                    initial=config.initial,
                    horizon=config.horizon,
                    step=config.step,
                    n_jobs=config.n_jobs,
                )
            except ConfigurationError as e:
                error = e.with_context(variable=series.name, model=model_key)
                logger.error(f"[rolling] skipped: {error}")
                report.errors.append(error)
                continue
            report.aggregator.add_folds(folds)

    report.duration_sec += time.time() - start
    return report


def run_all(series_list: Sequence[MonthlySeries], config: EvaluationConfig) -> RunReport:
    """Holdout then rolling-origin into a single report"""
    report = RunReport(protocol="holdout+rolling_origin")
    run_holdout(series_list, config, report=report)
    run_rolling_origin(series_list, config, report=report)
    return report
