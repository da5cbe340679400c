"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from .defaults import MIN_STUDY_BARS


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


_POSITIVE_INT_STUDY_FIELDS = (
    "atr_period", "volatility_window", "ma_short", "ma_medium",
    "ma_long", "volume_trend_window", "rsi_period", "forward_days",
    "high_low_lookback", "year_window", "support_buckets", "support_levels",
)

_POSITIVE_FLOAT_STUDY_FIELDS = (
    "histogram_bucket_pct", "gap_threshold_pct", "cluster_multiplier",
    "high_volume_multiplier", "large_move_sigma",
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_study_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate statistical study parameters."""
        errors = []

        if "min_bars" in params:
            value = params["min_bars"]
            if not _is_positive_int(value) or value < MIN_STUDY_BARS:
                errors.append(ValidationError(
                    field="min_bars",
                    message=f"Must be an integer of at least {MIN_STUDY_BARS}",
                    value=value
                ))

        for name in _POSITIVE_INT_STUDY_FIELDS:
            if name in params and not _is_positive_int(params[name]):
                errors.append(ValidationError(
                    field=name,
                    message="Must be a positive integer",
                    value=params[name]
                ))

        for name in _POSITIVE_FLOAT_STUDY_FIELDS:
            if name in params:
                value = params[name]
                if not _is_number(value) or value <= 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a positive number",
                        value=value
                    ))

        # RSI levels live on the 0-100 oscillator scale
        for name in ("rsi_overbought", "rsi_oversold"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value <= 0 or value >= 100:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a number between 0 and 100",
                        value=value
                    ))

        overbought = params.get("rsi_overbought")
        oversold = params.get("rsi_oversold")
        if _is_number(overbought) and _is_number(oversold) and oversold >= overbought:
            errors.append(ValidationError(
                field="rsi_oversold",
                message="Must be below rsi_overbought",
                value=oversold
            ))

        if "autocorr_threshold" in params:
            value = params["autocorr_threshold"]
            if not _is_number(value) or value < 0 or value >= 1:
                errors.append(ValidationError(
                    field="autocorr_threshold",
                    message="Must be a number in [0, 1)",
                    value=value
                ))

        if "doji_threshold" in params:
            value = params["doji_threshold"]
            if not _is_number(value) or value < 0 or value > 1:
                errors.append(ValidationError(
                    field="doji_threshold",
                    message="Must be a number between 0 and 1",
                    value=value
                ))

        if "projection_horizons" in params:
            value = params["projection_horizons"]
            if (not isinstance(value, (list, tuple)) or not value
                    or not all(_is_positive_int(h) for h in value)):
                errors.append(ValidationError(
                    field="projection_horizons",
                    message="Must be a non-empty list of positive integers",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_backtest_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate backtest simulator parameters."""
        errors = []

        if "initial_capital" in params:
            value = params["initial_capital"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="initial_capital",
                    message="Must be a positive number",
                    value=value
                ))

        if "rebalance_frequency" in params:
            value = params["rebalance_frequency"]
            if value not in ("monthly", "quarterly"):
                errors.append(ValidationError(
                    field="rebalance_frequency",
                    message="Must be 'monthly' or 'quarterly'",
                    value=value
                ))

        for name in ("momentum_lookback", "mean_reversion_lookback", "rsi_period"):
            if name in params and not _is_positive_int(params[name]):
                errors.append(ValidationError(
                    field=name,
                    message="Must be a positive integer",
                    value=params[name]
                ))

        if "mean_reversion_entry_z" in params:
            value = params["mean_reversion_entry_z"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="mean_reversion_entry_z",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_risk_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate risk library parameters."""
        errors = []

        if "risk_free_rate" in params:
            value = params["risk_free_rate"]
            if not _is_number(value) or value < -0.05 or value > 0.5:
                errors.append(ValidationError(
                    field="risk_free_rate",
                    message="Must be an annual rate between -0.05 and 0.5",
                    value=value
                ))

        if "trading_days_per_year" in params and not _is_positive_int(params["trading_days_per_year"]):
            errors.append(ValidationError(
                field="trading_days_per_year",
                message="Must be a positive integer",
                value=params["trading_days_per_year"]
            ))

        if "var_confidence" in params:
            value = params["var_confidence"]
            if not _is_number(value) or value <= 0 or value >= 1:
                errors.append(ValidationError(
                    field="var_confidence",
                    message="Must be a number between 0 and 1",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "studies" in config:
            errors.extend(ConfigValidator.validate_study_params(config["studies"]))

        if "backtest" in config:
            errors.extend(ConfigValidator.validate_backtest_params(config["backtest"]))

        if "risk" in config:
            errors.extend(ConfigValidator.validate_risk_params(config["risk"]))

        return errors
