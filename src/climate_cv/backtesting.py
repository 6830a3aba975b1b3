# file: src/climate_cv/backtesting.py
"""
Time Series Split Generation

Implements the two validation protocols:
1. Holdout: single chronological train/test split (e.g. 80/20)
2. Expanding Window (rolling origin): training window grows from the
   first observation, origin advances by `step`

Both keep temporal order and never shuffle.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class BacktestSplit:
    """Represents a single train/test split over positions 0..n-1"""
    split_id: int
    train_indices: np.ndarray
    test_indices: np.ndarray

    def __post_init__(self):
        """Validate contiguity and no leakage"""
        self.train_indices = np.asarray(self.train_indices, dtype=int)
        self.test_indices = np.asarray(self.test_indices, dtype=int)

        if len(self.train_indices) == 0 or len(self.test_indices) == 0:
            raise ValueError("Train and test must both be non-empty")
        if self.train_indices[0] != 0:
            raise ValueError("Train must start at the first observation")
        if np.any(np.diff(self.train_indices) != 1) or np.any(np.diff(self.test_indices) != 1):
            raise ValueError("Train and test must be contiguous")
        if self.test_indices[0] != self.train_indices[-1] + 1:
            raise ValueError(
                f"Train/test leakage or gap: train_end ({self.train_indices[-1]}) "
                f"test_start ({self.test_indices[0]})"
            )

    @property
    def origin(self) -> int:
        """Number of observations available at forecast time"""
        return int(self.train_indices[-1]) + 1

    @property
    def train_size(self) -> int:
        return len(self.train_indices)

    @property
    def test_size(self) -> int:
        return len(self.test_indices)

    @property
    def info(self) -> Dict:
        """Serialize split info"""
        return {
            "split_id": self.split_id,
            "origin": self.origin,
            "train_size": self.train_size,
            "test_size": self.test_size,
        }


class HoldoutSplit:
    """Single chronological train/test split"""

    def __init__(self, train_fraction: float = 0.8):
        """
        Args:
            train_fraction: Share of observations used for training
        """
        if not 0 < train_fraction < 1:
            raise ConfigurationError(
                "train_fraction must be in (0, 1)", train_fraction=train_fraction
            )
        self.train_fraction = train_fraction

    def generate_split(self, n: int) -> BacktestSplit:
        """
        Split n observations: n_train = floor(train_fraction * n), test = rest

        Raises:
            ConfigurationError: when either side would be empty
        """
        n_train = int(math.floor(self.train_fraction * n))
        horizon = n - n_train

        if n_train < 1 or horizon < 1:
            raise ConfigurationError(
                "Holdout split needs at least one train and one test point",
                n=n, train_fraction=self.train_fraction,
                n_train=n_train, horizon=horizon,
            )

        return BacktestSplit(
            split_id=n_train,
            train_indices=np.arange(n_train),
            test_indices=np.arange(n_train, n),
        )


class ExpandingWindowBacktest:
    """Expanding window (walk-forward) backtesting strategy"""

    def __init__(self, initial: int = 36, horizon: int = 1, step: int = 1):
        """
        Args:
            initial: Training observations at the first origin
            horizon: Test observations per fold (forecast horizon)
            step: Origin advance between folds
        """
        if initial < 1 or horizon < 1 or step < 1:
            raise ConfigurationError(
                "initial, horizon and step must all be >= 1",
                initial=initial, horizon=horizon, step=step,
            )
        self.initial = initial
        self.horizon = horizon
        self.step = step

    def origins(self, n: int) -> List[int]:
        """Ascending origins with origin + horizon <= n"""
        if self.initial >= n:
            raise ConfigurationError(
                "initial window must be shorter than the series",
                initial=self.initial, n=n,
            )
        return list(range(self.initial, n - self.horizon + 1, self.step))

    def generate_splits(self, n: int) -> List[BacktestSplit]:
        """
        Generate expanding window splits for a series of length n

        An empty list (series too short for initial + horizon) is valid;
        callers check the fold count.
        """
        splits = [
            BacktestSplit(
                split_id=origin,
                train_indices=np.arange(origin),
                test_indices=np.arange(origin, origin + self.horizon),
            )
            for origin in self.origins(n)
        ]

        if not splits:
            logger.warning(
                f"No origins for n={n}, initial={self.initial}, horizon={self.horizon}"
            )
        else:
            logger.debug(f"Generated {len(splits)} expanding splits (n={n})")
        return splits


def validate_backtesting_splits(splits: List[BacktestSplit], step: int = 1) -> bool:
    """
    Validate a fold sequence: ascending origins, train growing by exactly `step`,
    no train/test overlap.
    """
    is_valid = True

    for split in splits:
        if set(split.train_indices) & set(split.test_indices):
            logger.error(f"split {split.split_id}: overlapping indices")
            is_valid = False

    for prev, curr in zip(splits, splits[1:]):
        if curr.train_size - prev.train_size != step:
            logger.error(
                f"split {curr.split_id}: train grew by {curr.train_size - prev.train_size}, expected {step}"
            )
            is_valid = False

    return is_valid
