"""Data models for rate series."""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class Periodicity(Enum):
    """How often a series publishes, and how many periods make a year."""

    DAILY = 252  # business days
    MONTHLY = 12
    ANNUAL = 1  # value is already an annual rate

    @property
    def periods_per_year(self) -> int:
        return self.value


@dataclass(frozen=True)
class RateObservation:
    """Single observation from an SGS series, in percent for one period."""

    date: date
    value: float


@dataclass(frozen=True)
class SeriesInfo:
    """A catalogued SGS series."""

    key: str
    code: int
    name: str
    periodicity: Periodicity
