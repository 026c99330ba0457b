"""Interest-rate and inflation fetching for the loan simulator."""

__version__ = "0.1.0"
