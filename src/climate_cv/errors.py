# file: src/climate_cv/errors.py
"""
Error taxonomy for the validation engine.

- ConfigurationError: evaluator parameters that make no sense (raised before fitting)
- FitFailure: a model could not produce a usable fit/forecast for one train segment
- SeriesContractError: input series violates the monthly time-index contract

Undefined metrics (e.g. MAPE with no non-zero actuals) are NaN, not exceptions.
"""


class ClimateCVError(Exception):
    """Base class for engine errors"""


class ConfigurationError(ClimateCVError, ValueError):
    """Invalid evaluator parameters for a given series"""

    def __init__(self, message: str, **context):
        self.message = message
        self.context = context
        if context:
            details = ", ".join(f"{k}={v}" for k, v in context.items())
            message = f"{message} ({details})"
        super().__init__(message)

    def with_context(self, **context) -> "ConfigurationError":
        """Copy of this error with extra context (e.g. variable and model)"""
        return ConfigurationError(self.message, **{**context, **self.context})


class FitFailure(ClimateCVError, RuntimeError):
    """Model fitting (or forecasting) failed for one train segment"""

    def __init__(self, model_name: str, reason: str):
        self.model_name = model_name
        self.reason = reason
        super().__init__(f"{model_name}: {reason}")


class SeriesContractError(ClimateCVError, ValueError):
    """Series is not a gap-free, strictly increasing monthly sequence"""
