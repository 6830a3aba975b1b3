# file: src/climate_cv/config.py
"""
Evaluation Configuration

Season length, confidence levels and validation parameters are passed
explicitly through EvaluationConfig so every evaluator call is a pure
function of its inputs. Runtime knobs (parallelism, fit budgets) can be
set in env (prod) / .env (local).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_VARIABLES = ("Temperature", "Precipitation", "SoilMoisture", "WindSpeed")
DEFAULT_MODELS = ("sarima", "hw")


@dataclass(frozen=True)
class EvaluationConfig:
    # Series
    season_length: int = 12
    variables: Tuple[str, ...] = DEFAULT_VARIABLES

    # Models
    models: Tuple[str, ...] = DEFAULT_MODELS
    confidence_levels: Tuple[int, ...] = (80, 95)
    max_models: int = 94
    fit_timeout: Optional[float] = None

    # Holdout
    train_fraction: float = 0.8

    # Rolling origin
    initial: int = 36
    horizon: int = 1
    step: int = 1
    n_jobs: int = 1

    # IO
    output_dir: str = "artifacts"

    def output_path(self) -> Path:
        return Path(self.output_dir)

    def holdout_path(self) -> Path:
        return self.output_path() / "holdout_results.csv"

    def folds_path(self) -> Path:
        return self.output_path() / "rolling_cv_folds.csv"

    def summary_path(self) -> Path:
        return self.output_path() / "rolling_cv_summary.csv"

    def metadata_path(self) -> Path:
        return self.output_path() / "run_metadata.json"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_config(**overrides) -> EvaluationConfig:
    """
    Load evaluation config from environment, then apply overrides.

    Reads CLIMATE_CV_N_JOBS, CLIMATE_CV_FIT_TIMEOUT and CLIMATE_CV_MAX_MODELS
    from a .env file or the environment. Unparseable values fall back to the
    defaults. Explicit keyword overrides win over the environment.
    """
    load_dotenv()

    values = {
        "n_jobs": _env_int("CLIMATE_CV_N_JOBS", 1),
        "fit_timeout": _env_float("CLIMATE_CV_FIT_TIMEOUT", None),
        "max_models": _env_int("CLIMATE_CV_MAX_MODELS", 94),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    for key in ("variables", "models", "confidence_levels"):
        if key in values:
            values[key] = tuple(values[key])

    return EvaluationConfig(**values)
