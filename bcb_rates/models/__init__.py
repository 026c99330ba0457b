"""Rate data models."""

from .rates import Periodicity, RateObservation, SeriesInfo

__all__ = ["Periodicity", "RateObservation", "SeriesInfo"]
