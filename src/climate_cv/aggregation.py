# file: src/climate_cv/aggregation.py
"""
Result Aggregation

Collects fold-level and holdout results across variables and model families
and derives the report tables. Summaries are always recomputed from the
fold table; NaN metrics are excluded from means and standard deviations.
"""

import logging
from typing import Dict, Iterable, List

import pandas as pd

from .training import FoldMetric, HoldoutResult

logger = logging.getLogger(__name__)

METRICS = ["rmse", "mae", "mape"]
FOLD_COLUMNS = ["ClimaticVariable", "Model", "origin", "n_train", "n_test",
                "rmse", "mae", "mape", "error"]
SUMMARY_COLUMNS = ["ClimaticVariable", "Model",
                   "Mean_RMSE", "SD_RMSE", "Mean_MAE", "SD_MAE",
                   "Mean_MAPE", "SD_MAPE", "Folds", "Failed"]


class ResultAggregator:
    """Append-only store of evaluation results for one run"""

    def __init__(self):
        self._folds: List[FoldMetric] = []
        self._holdout: List[HoldoutResult] = []

    def add_folds(self, folds: Iterable[FoldMetric]) -> None:
        self._folds.extend(folds)

    def add_holdout(self, result: HoldoutResult) -> None:
        self._holdout.append(result)

    @property
    def folds(self) -> List[FoldMetric]:
        return list(self._folds)

    @property
    def holdout_results(self) -> List[HoldoutResult]:
        return list(self._holdout)

    def fold_table(self) -> pd.DataFrame:
        """All fold metrics in insertion order"""
        return pd.DataFrame([fold.to_record() for fold in self._folds], columns=FOLD_COLUMNS)

    def summary(self) -> pd.DataFrame:
        """
        Mean and sample SD of each metric per (variable, model)

        Groups appear in first-insertion order (variables in input order,
        then model family in input order). Folds counts folds with a
        finite RMSE; Failed counts folds recorded as fit failures.
        """
        folds = self.fold_table()
        if folds.empty:
            return pd.DataFrame(columns=SUMMARY_COLUMNS)

        folds["failed"] = folds["error"].notna()

        summary = (
            folds.groupby(["ClimaticVariable", "Model"], sort=False)
            .agg(
                Mean_RMSE=("rmse", "mean"),
                SD_RMSE=("rmse", "std"),
                Mean_MAE=("mae", "mean"),
                SD_MAE=("mae", "std"),
                Mean_MAPE=("mape", "mean"),
                SD_MAPE=("mape", "std"),
                Folds=("rmse", "count"),
                Failed=("failed", "sum"),
            )
            .reset_index()
        )
        summary["Folds"] = summary["Folds"].astype(int)
        summary["Failed"] = summary["Failed"].astype(int)

        for row in summary.itertuples():
            if row.Folds == 0:
                logger.warning(f"{row.ClimaticVariable} / {row.Model}: no contributing folds")

        return summary[SUMMARY_COLUMNS]

    def holdout_tables(self) -> Dict[str, pd.DataFrame]:
        """
        One table per model family: ClimaticVariable, RMSE, MAE, MAPE
        """
        tables: Dict[str, List[Dict]] = {}
        for result in self._holdout:
            tables.setdefault(result.model, []).append({
                "ClimaticVariable": result.variable,
                "RMSE": result.rmse,
                "MAE": result.mae,
                "MAPE": result.mape,
            })

        return {
            model: pd.DataFrame(rows, columns=["ClimaticVariable", "RMSE", "MAE", "MAPE"])
            for model, rows in tables.items()
        }

    def holdout_wide(self) -> pd.DataFrame:
        """
        One row per variable with <model>_RMSE / _MAE / _MAPE columns
        """
        if not self._holdout:
            return pd.DataFrame(columns=["ClimaticVariable"])

        long = pd.DataFrame([
            {"ClimaticVariable": r.variable, "Model": r.model, **r.metrics()}
            for r in self._holdout
        ])
        variables = list(dict.fromkeys(long["ClimaticVariable"]))
        models = list(dict.fromkeys(long["Model"]))

        wide = long.pivot(index="ClimaticVariable", columns="Model", values=METRICS)
        wide = wide.reindex(index=variables)

        columns = {}
        for model in models:
            for metric in METRICS:
                columns[f"{model}_{metric.upper()}"] = wide[(metric, model)].to_numpy(dtype=float)

        return pd.DataFrame({"ClimaticVariable": variables, **columns})


def summarize_folds(folds: Iterable[FoldMetric]) -> pd.DataFrame:
    """Summary table for a standalone list of folds"""
    aggregator = ResultAggregator()
    aggregator.add_folds(folds)
    return aggregator.summary()

