"""
Climate CV Test Suite

- test_metrics.py: RMSE/MAE/MAPE missing-value and zero policy
- test_series.py: monthly input contract (fail-loud)
- test_backtesting.py: holdout and expanding-window split correctness
- test_models.py: model adapter FitFailure policy and StatsForecast models
- test_evaluators.py: holdout and rolling-origin evaluators
- test_aggregation.py: fold tables and mean/SD summaries
- test_tasks.py: run orchestration, config loading, CSV IO, CLI
- test_end_to_end.py: 48-month scenario with both model families
"""
