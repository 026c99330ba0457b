"""Annualization strategies.

A rate series is reduced to one annual percentage by exactly one of:

1. Compounding: chain the period factors, rescale to a year
2. Arithmetic mean: plain average of the period values (not compounded)
3. Latest value: take the newest observation, optionally compound it to a
   year, subtract a spread and clamp to a floor

The caller picks one explicitly; nothing switches strategy implicitly.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

import numpy as np

from bcb_rates.errors import EmptySeriesError
from bcb_rates.models import Periodicity


class StrategyKind(Enum):
    """Tag for the available reductions."""
    COMPOUNDING = "compounding"
    ARITHMETIC_MEAN = "mean"
    LATEST_VALUE = "latest"


class LatestTreatment(Enum):
    """How the newest observation is turned into an annual rate."""
    AS_ANNUAL = "as_annual"  # already an annual rate, e.g. the SELIC target
    COMPOUND_PERIOD = "compound_period"  # one period rate compounded over a year

    @classmethod
    def for_periodicity(cls, periodicity: Periodicity) -> "LatestTreatment":
        if periodicity is Periodicity.ANNUAL:
            return cls.AS_ANNUAL
        return cls.COMPOUND_PERIOD


@dataclass(frozen=True)
class Compounding:
    """Geometric annualization: (prod(1 + v/100)) ** (periods_per_year / n) - 1."""

    kind: ClassVar[StrategyKind] = StrategyKind.COMPOUNDING

    def reduce(self, values: np.ndarray, periodicity: Periodicity) -> float:
        factor = np.prod(1.0 + values / 100.0)
        exponent = periodicity.periods_per_year / len(values)
        return float((factor ** exponent - 1.0) * 100.0)


@dataclass(frozen=True)
class ArithmeticMean:
    """Average period value. Ignores compounding; the result stays a per-period figure."""

    kind: ClassVar[StrategyKind] = StrategyKind.ARITHMETIC_MEAN

    def reduce(self, values: np.ndarray, periodicity: Periodicity) -> float:
        return float(np.sum(values) / len(values))


@dataclass(frozen=True)
class LatestValue:
    """
    Newest observation only. The look-back window does not apply.

    Without an explicit treatment, annual series are taken as-is and
    daily/monthly series are compounded over periods_per_year.
    AS_ANNUAL is only valid for annual series.
    """

    treatment: LatestTreatment | None = None
    spread: float = 0.0  # percentage points subtracted after treatment
    floor: float | None = 0.0

    kind: ClassVar[StrategyKind] = StrategyKind.LATEST_VALUE

    def treatment_for(self, periodicity: Periodicity) -> LatestTreatment:
        if self.treatment is None:
            return LatestTreatment.for_periodicity(periodicity)
        if (
            self.treatment is LatestTreatment.AS_ANNUAL
            and periodicity is not Periodicity.ANNUAL
        ):
            raise ValueError(
                f"A {periodicity.name.lower()} rate cannot be read as annual; "
                "use LatestTreatment.COMPOUND_PERIOD"
            )
        return self.treatment

    def reduce(self, values: np.ndarray, periodicity: Periodicity) -> float:
        rate = float(values[-1])
        if self.treatment_for(periodicity) is LatestTreatment.COMPOUND_PERIOD:
            rate = ((1.0 + rate / 100.0) ** periodicity.periods_per_year - 1.0) * 100.0
        rate -= self.spread
        if self.floor is not None:
            rate = max(rate, self.floor)
        return rate


AnnualizationStrategy = Union[Compounding, ArithmeticMean, LatestValue]


def strategy_from_name(name: str) -> AnnualizationStrategy:
    """Build a strategy with default parameters from its tag value."""
    try:
        kind = StrategyKind(name.lower())
    except ValueError:
        options = ", ".join(k.value for k in StrategyKind)
        raise ValueError(f"Unknown strategy: {name}. Available: {options}") from None

    if kind is StrategyKind.COMPOUNDING:
        return Compounding()
    if kind is StrategyKind.ARITHMETIC_MEAN:
        return ArithmeticMean()
    return LatestValue()


def reduce_series(
    values, periodicity: Periodicity, strategy: AnnualizationStrategy
) -> float:
    """
    Reduce a sequence of period percentages to one percentage.

    Args:
        values: period rates in percent, oldest first
        periodicity: publication frequency of the series
        strategy: reduction to apply

    Raises:
        EmptySeriesError: no values to reduce
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        raise EmptySeriesError("Cannot annualize an empty series")
    return strategy.reduce(arr, periodicity)
