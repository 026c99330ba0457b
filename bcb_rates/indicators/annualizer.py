"""Annualize SGS rate series for the loan simulator."""

import logging
from dataclasses import dataclass
from datetime import date

import pandas as pd

from bcb_rates.config import Settings, SGS_SERIES, get_series_info
from bcb_rates.data.dates import lookback_window, parse_lookback_months
from bcb_rates.data.sgs_fetcher import AsyncSgsFetcher, SgsFetcher, to_observations
from bcb_rates.errors import RateDataError
from bcb_rates.indicators.strategies import (
    AnnualizationStrategy,
    Compounding,
    LatestTreatment,
    LatestValue,
    reduce_series,
    strategy_from_name,
)
from bcb_rates.models import RateObservation, SeriesInfo


logger = logging.getLogger(__name__)

# IPCA "last 12 months" always uses this window
TRAILING_MONTHS = 12


@dataclass(frozen=True)
class _Request:
    """What to fetch for one annualization."""

    info: SeriesInfo
    strategy: AnnualizationStrategy
    start_date: date | None = None
    end_date: date | None = None

    @property
    def latest_only(self) -> bool:
        return self.start_date is None


class _AnnualizerBase:
    """Request planning and reduction shared by the sync and async services."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()

    def _plan(
        self,
        series: str | SeriesInfo,
        lookback_months: object,
        strategy: AnnualizationStrategy | None,
        today: date | None,
    ) -> _Request:
        info = series if isinstance(series, SeriesInfo) else get_series_info(series)
        strategy = strategy or strategy_from_name(self.settings.default_strategy)

        if isinstance(strategy, LatestValue):
            # Rejects AS_ANNUAL on a daily/monthly series before fetching
            strategy.treatment_for(info.periodicity)
            return _Request(info, strategy)

        # Raises ValidationError before anything touches the network
        months = parse_lookback_months(lookback_months)
        start_date, end_date = lookback_window(months, today)
        return _Request(info, strategy, start_date, end_date)

    def _reduce(self, request: _Request, df: pd.DataFrame) -> float:
        rate = reduce_series(
            df["value"].to_numpy(), request.info.periodicity, request.strategy
        )
        logger.info(
            f"{request.info.key} [{request.strategy.kind.value}] over "
            f"{len(df)} observations = {rate:.4f}%"
        )
        return rate

    def _current_cdi_plan(
        self, policy: LatestTreatment
    ) -> tuple[SeriesInfo, LatestValue]:
        if policy is LatestTreatment.COMPOUND_PERIOD:
            return SGS_SERIES["cdi"], LatestValue(LatestTreatment.COMPOUND_PERIOD)
        return SGS_SERIES["selic_meta"], LatestValue(
            LatestTreatment.AS_ANNUAL, spread=self.settings.cdi_spread, floor=0.0
        )


class RateAnnualizer(_AnnualizerBase):
    """
    Fetches a series and reduces it to an annual percentage.

    Every data-source failure (transport, HTTP status, empty series,
    unparseable value) degrades to None so callers fall back to manual
    input. An invalid look-back raises ValidationError.
    """

    def __init__(
        self, fetcher: SgsFetcher | None = None, settings: Settings | None = None
    ) -> None:
        super().__init__(settings or (fetcher.settings if fetcher else None))
        self.fetcher = fetcher or SgsFetcher(self.settings)

    def close(self) -> None:
        self.fetcher.close()

    def __enter__(self) -> "RateAnnualizer":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def annualize(
        self,
        series: str | SeriesInfo,
        lookback_months: object = None,
        strategy: AnnualizationStrategy | None = None,
        today: date | None = None,
    ) -> float | None:
        """
        Annual percentage for `series` over the last `lookback_months` months.

        Args:
            series: catalogue key (e.g. "cdi") or SeriesInfo
            lookback_months: positive whole months; ignored by LatestValue
            strategy: reduction to apply (default from settings)
            today: end of the window, defaults to the current date

        Returns:
            Percentage, or None when no value could be obtained
        """
        request = self._plan(series, lookback_months, strategy, today)
        try:
            if request.latest_only:
                df = self.fetcher.fetch_latest(request.info.code)
            else:
                df = self.fetcher.fetch_range(
                    request.info.code, request.start_date, request.end_date
                )
            return self._reduce(request, df)
        except RateDataError as e:
            logger.warning(f"Could not annualize {request.info.key}: {e}")
            return None

    def observations(
        self,
        series: str | SeriesInfo,
        lookback_months: object,
        today: date | None = None,
    ) -> list[RateObservation]:
        """Raw observations for the window. Raises RateDataError on failure."""
        request = self._plan(series, lookback_months, Compounding(), today)
        df = self.fetcher.fetch_range(
            request.info.code, request.start_date, request.end_date
        )
        return to_observations(df)

    def historical_cdi(self, lookback_months: object, today: date | None = None) -> float | None:
        return self.annualize("cdi", lookback_months, Compounding(), today)

    def historical_ipca(self, lookback_months: object, today: date | None = None) -> float | None:
        return self.annualize("ipca", lookback_months, Compounding(), today)

    def ipca_trailing_12m(self, today: date | None = None) -> float | None:
        """IPCA compounded over the fixed last-12-months window."""
        return self.annualize("ipca", TRAILING_MONTHS, Compounding(), today)

    def current_cdi(
        self, policy: LatestTreatment = LatestTreatment.AS_ANNUAL
    ) -> float | None:
        """
        Current CDI estimate.

        AS_ANNUAL: latest SELIC target minus the configured spread, floored at 0.
        COMPOUND_PERIOD: latest daily CDI compounded over 252 business days.
        """
        info, strategy = self._current_cdi_plan(policy)
        return self.annualize(info, strategy=strategy)


class AsyncRateAnnualizer(_AnnualizerBase):
    """Async counterpart of RateAnnualizer, for concurrent fetches."""

    def __init__(
        self,
        fetcher: AsyncSgsFetcher | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__(settings or (fetcher.settings if fetcher else None))
        self.fetcher = fetcher or AsyncSgsFetcher(self.settings)

    async def aclose(self) -> None:
        await self.fetcher.aclose()

    async def __aenter__(self) -> "AsyncRateAnnualizer":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def annualize(
        self,
        series: str | SeriesInfo,
        lookback_months: object = None,
        strategy: AnnualizationStrategy | None = None,
        today: date | None = None,
    ) -> float | None:
        """See RateAnnualizer.annualize."""
        request = self._plan(series, lookback_months, strategy, today)
        try:
            if request.latest_only:
                df = await self.fetcher.fetch_latest(request.info.code)
            else:
                df = await self.fetcher.fetch_range(
                    request.info.code, request.start_date, request.end_date
                )
            return self._reduce(request, df)
        except RateDataError as e:
            logger.warning(f"Could not annualize {request.info.key}: {e}")
            return None

    async def historical_cdi(self, lookback_months: object, today: date | None = None) -> float | None:
        return await self.annualize("cdi", lookback_months, Compounding(), today)

    async def historical_ipca(self, lookback_months: object, today: date | None = None) -> float | None:
        return await self.annualize("ipca", lookback_months, Compounding(), today)

    async def ipca_trailing_12m(self, today: date | None = None) -> float | None:
        return await self.annualize("ipca", TRAILING_MONTHS, Compounding(), today)

    async def current_cdi(
        self, policy: LatestTreatment = LatestTreatment.AS_ANNUAL
    ) -> float | None:
        info, strategy = self._current_cdi_plan(policy)
        return await self.annualize(info, strategy=strategy)


def main() -> None:
    """CLI entry point for annualizing a series."""
    import argparse
    import sys

    from bcb_rates.errors import ValidationError
    from bcb_rates.ui.form import format_percentage

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Annualize BCB SGS rate series")
    parser.add_argument(
        "--series",
        type=str,
        default="cdi",
        help=f"Series key ({', '.join(SGS_SERIES)})",
    )
    parser.add_argument(
        "--months",
        type=str,
        default="12",
        help="Look-back period in months",
    )
    parser.add_argument(
        "--strategy",
        type=str,
        help="compounding, mean or latest (default from BCB_DEFAULT_STRATEGY)",
    )
    parser.add_argument(
        "--current-cdi",
        action="store_true",
        help="Current CDI from the SELIC target minus spread",
    )
    parser.add_argument(
        "--compound-daily",
        action="store_true",
        help="With --current-cdi, compound the latest daily CDI instead",
    )
    parser.add_argument(
        "--ipca-12m",
        action="store_true",
        help="IPCA accumulated over the last 12 months",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Print the raw observations of the window and exit",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List known series and exit",
    )
    args = parser.parse_args()

    if args.list:
        print("\nKnown series:")
        print("-" * 60)
        for key, info in SGS_SERIES.items():
            print(f"{key:14} | SGS {info.code:5} | {info.periodicity.name:8} | {info.name}")
        return

    try:
        with RateAnnualizer() as annualizer:
            if args.show:
                for obs in annualizer.observations(args.series, args.months):
                    print(f"{obs.date.strftime('%d/%m/%Y')} | {obs.value:.6f}")
                return
            if args.current_cdi:
                policy = (
                    LatestTreatment.COMPOUND_PERIOD
                    if args.compound_daily
                    else LatestTreatment.AS_ANNUAL
                )
                label = "CDI atual"
                rate = annualizer.current_cdi(policy)
            elif args.ipca_12m:
                label = "IPCA 12 meses"
                rate = annualizer.ipca_trailing_12m()
            else:
                strategy = strategy_from_name(args.strategy) if args.strategy else None
                label = f"{args.series} ({args.months} meses)"
                rate = annualizer.annualize(args.series, args.months, strategy)
    except ValidationError as e:
        print(f"Invalid input: {e}")
        sys.exit(2)
    except RateDataError as e:
        print(f"API error: {e}")
        sys.exit(1)
    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    if rate is None:
        print(f"{label}: no value available")
        sys.exit(1)
    print(f"{label}: {format_percentage(rate)}")


if __name__ == "__main__":
    main()
