"""Configuration."""

from .settings import Settings, SGS_SERIES, get_series_info

__all__ = ["Settings", "SGS_SERIES", "get_series_info"]
