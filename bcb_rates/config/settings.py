"""Configuration settings for the rate fetcher."""

from dataclasses import dataclass, field
import os

from dotenv import load_dotenv

from bcb_rates.models.rates import Periodicity, SeriesInfo


load_dotenv()


# SGS series used by the simulator
SGS_SERIES: dict[str, SeriesInfo] = {
    "cdi": SeriesInfo("cdi", 12, "CDI (% a.d.)", Periodicity.DAILY),
    "selic": SeriesInfo("selic", 11, "SELIC (% a.d.)", Periodicity.DAILY),
    "selic_meta": SeriesInfo("selic_meta", 432, "Meta SELIC (% a.a.)", Periodicity.ANNUAL),
    "selic_mensal": SeriesInfo("selic_mensal", 4390, "SELIC acumulada no mês (% a.m.)", Periodicity.MONTHLY),
    "ipca": SeriesInfo("ipca", 433, "IPCA (% a.m.)", Periodicity.MONTHLY),
}

STRATEGY_NAMES = ("compounding", "mean", "latest")


def get_series_info(key: str) -> SeriesInfo:
    """Look up a catalogued series by key (case-insensitive)."""
    try:
        return SGS_SERIES[key.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown series: {key}. Available: {', '.join(SGS_SERIES)}"
        ) from None


@dataclass
class Settings:
    """Application settings."""

    base_url: str = field(
        default_factory=lambda: os.getenv(
            "BCB_SGS_BASE_URL", "https://api.bcb.gov.br/dados/serie"
        )
    )
    http_timeout: float = field(
        default_factory=lambda: float(os.getenv("BCB_HTTP_TIMEOUT", "30"))
    )
    # Most recent N records fetched for "current rate" lookups; tolerates holidays
    latest_window: int = field(
        default_factory=lambda: int(os.getenv("BCB_LATEST_WINDOW", "20"))
    )
    # Percentage points subtracted from the SELIC target to estimate CDI
    cdi_spread: float = field(
        default_factory=lambda: float(os.getenv("BCB_CDI_SPREAD", "0.1"))
    )
    default_strategy: str = field(
        default_factory=lambda: os.getenv("BCB_DEFAULT_STRATEGY", "compounding")
    )

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")

    def validate(self) -> None:
        """Validate settings."""
        if self.http_timeout <= 0:
            raise ValueError("BCB_HTTP_TIMEOUT must be positive")
        if self.latest_window <= 0:
            raise ValueError("BCB_LATEST_WINDOW must be a positive integer")
        if self.cdi_spread < 0:
            raise ValueError("BCB_CDI_SPREAD cannot be negative")
        if self.default_strategy not in STRATEGY_NAMES:
            raise ValueError(
                f"BCB_DEFAULT_STRATEGY must be one of: {', '.join(STRATEGY_NAMES)}"
            )
