"""Rate annualization."""

from bcb_rates.indicators.annualizer import RateAnnualizer, AsyncRateAnnualizer
from bcb_rates.indicators.strategies import (
    ArithmeticMean,
    Compounding,
    LatestTreatment,
    LatestValue,
    StrategyKind,
    reduce_series,
    strategy_from_name,
)

__all__ = [
    "RateAnnualizer",
    "AsyncRateAnnualizer",
    "ArithmeticMean",
    "Compounding",
    "LatestTreatment",
    "LatestValue",
    "StrategyKind",
    "reduce_series",
    "strategy_from_name",
]
