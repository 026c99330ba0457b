"""Form collaborator: writes fetched rates into the simulator form.

The host page owns rendering. This module only keeps the form state the
page renders from: field values, "rate known?" selectors, which inputs are
editable, and one status line.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Union

from bcb_rates.data.dates import lookback_window, parse_lookback_months
from bcb_rates.errors import ValidationError
from bcb_rates.indicators.annualizer import AsyncRateAnnualizer


logger = logging.getLogger(__name__)

# Field names on the simulator form
PERIOD_FIELD = "period"
RATE_FIELD = "rate"
INFLATION_FIELD = "inflation"
KNOWS_RATE = "knows_rate"
KNOWS_INFLATION = "knows_inflation"

# Which input each "known/unknown" selector controls
SELECTOR_INPUTS = {
    KNOWS_RATE: RATE_FIELD,
    KNOWS_INFLATION: INFLATION_FIELD,
}

KNOWN = "yes"
UNKNOWN = "no"

MSG_LOADING = "Buscando taxas históricas acumuladas..."
MSG_LOADING_CURRENT = "Buscando taxas atuais..."
MSG_INVALID_PERIOD = "Por favor, informe um prazo válido em meses."
MSG_FAILURE = (
    "Não foi possível obter as taxas automaticamente. "
    "Por favor, informe manualmente."
)


def format_percentage(rate: float) -> str:
    """12.3456 -> '12,35 %' (decimal comma, two digits)."""
    return f"{rate:.2f}".replace(".", ",") + " %"


class StatusKind(Enum):
    """Status line states and the colour the page shows them in."""
    LOADING = "#6c757d"
    SUCCESS = "green"
    FAILURE = "red"

    @property
    def color(self) -> str:
        return self.value


@dataclass
class Status:
    kind: StatusKind
    message: str


@dataclass
class RateForm:
    """In-memory state of the simulator form."""

    values: dict[str, str] = field(default_factory=dict)
    selectors: dict[str, str] = field(
        default_factory=lambda: {KNOWS_RATE: UNKNOWN, KNOWS_INFLATION: UNKNOWN}
    )
    enabled: dict[str, bool] = field(
        default_factory=lambda: {RATE_FIELD: False, INFLATION_FIELD: False}
    )
    status: Status | None = None

    def get(self, name: str, default: str = "") -> str:
        return self.values.get(name, default)

    def set(self, name: str, value: str) -> None:
        self.values[name] = value

    def show_status(self, kind: StatusKind, message: str) -> None:
        self.status = Status(kind, message)


ToggleCallback = Callable[[RateForm, str, str], Union[None, Awaitable[None]]]


class FieldToggle:
    """
    Handles a change on a "known/unknown" selector.

    The base behaviour enables the controlled input when the rate is known
    and disables it otherwise. Extra behaviour is registered explicitly
    with `register` and runs after the base handler, in order.
    """

    def __init__(self, form: RateForm) -> None:
        self.form = form
        self._callbacks: list[ToggleCallback] = []

    def register(self, callback: ToggleCallback) -> None:
        self._callbacks.append(callback)

    async def change(self, selector: str, value: str) -> None:
        if selector not in SELECTOR_INPUTS:
            raise KeyError(f"Unknown selector: {selector}")

        self.form.selectors[selector] = value
        self.form.enabled[SELECTOR_INPUTS[selector]] = value == KNOWN

        for callback in self._callbacks:
            result = callback(self.form, selector, value)
            if inspect.isawaitable(result):
                await result


class RequestTokens:
    """
    Per-field request tokens.

    Issuing a token for a field invalidates every token issued before it,
    so a response that arrives after a newer request was started can be
    recognised and dropped.
    """

    def __init__(self) -> None:
        self._current: dict[str, int] = {}

    def issue(self, *fields: str) -> dict[str, int]:
        issued = {}
        for name in fields:
            self._current[name] = self._current.get(name, 0) + 1
            issued[name] = self._current[name]
        return issued

    def is_current(self, name: str, token: int) -> bool:
        return self._current.get(name) == token


class RateFormUpdater:
    """Fills the rate and inflation fields from the SGS API."""

    def __init__(
        self,
        annualizer: AsyncRateAnnualizer,
        form: RateForm,
        tokens: RequestTokens | None = None,
    ) -> None:
        self.annualizer = annualizer
        self.form = form
        self.tokens = tokens or RequestTokens()

    def attach(self, toggle: FieldToggle) -> None:
        """Fetch automatically whenever the user says a rate is unknown."""
        toggle.register(self.on_selector_change)

    async def on_selector_change(self, form: RateForm, selector: str, value: str) -> None:
        if value == UNKNOWN:
            await self.update_from_period()

    async def update_from_period(self) -> bool:
        """
        Annualize CDI and IPCA over the look-back typed in the period field.

        Returns:
            True when both fields were filled by this call
        """
        # Any new input supersedes requests still in flight, valid or not
        tokens = self.tokens.issue(RATE_FIELD, INFLATION_FIELD)
        try:
            months = parse_lookback_months(self.form.get(PERIOD_FIELD))
            lookback_window(months)
        except ValidationError as e:
            logger.info(f"Rejected look-back: {e}")
            self.form.show_status(StatusKind.FAILURE, MSG_INVALID_PERIOD)
            return False

        self.form.show_status(StatusKind.LOADING, MSG_LOADING)
        rate, inflation = await self._gather(
            self.annualizer.historical_cdi(months),
            self.annualizer.historical_ipca(months),
        )
        return self._apply(
            tokens,
            rate,
            inflation,
            lambda r, i: f"Taxas anualizadas com base nos últimos {months} meses: CDI {r} e IPCA {i}",
        )

    async def update_current_rates(self) -> bool:
        """Fill the form with the current CDI and the trailing 12-month IPCA."""
        self.form.show_status(StatusKind.LOADING, MSG_LOADING_CURRENT)
        tokens = self.tokens.issue(RATE_FIELD, INFLATION_FIELD)

        rate, inflation = await self._gather(
            self.annualizer.current_cdi(),
            self.annualizer.ipca_trailing_12m(),
        )
        return self._apply(
            tokens,
            rate,
            inflation,
            lambda r, i: f"Taxas atuais: CDI {r} e IPCA (12 meses) {i}",
        )

    async def _gather(self, *fetches: Awaitable[float | None]) -> list[float | None]:
        """Run fetches concurrently; one that raises counts as no value."""
        results = await asyncio.gather(*fetches, return_exceptions=True)
        values = []
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, Exception):
                logger.warning(f"Rate fetch failed: {result!r}")
                values.append(None)
            else:
                values.append(result)
        return values

    def _apply(
        self,
        tokens: dict[str, int],
        rate: float | None,
        inflation: float | None,
        success_message: Callable[[str, str], str],
    ) -> bool:
        stale = [
            name for name, token in tokens.items()
            if not self.tokens.is_current(name, token)
        ]
        if stale:
            logger.debug(f"Discarding stale response for {stale}")
            return False

        if rate is None or inflation is None:
            self.form.show_status(StatusKind.FAILURE, MSG_FAILURE)
            return False

        rate_text = format_percentage(rate)
        inflation_text = format_percentage(inflation)
        for name, selector, text in (
            (RATE_FIELD, KNOWS_RATE, rate_text),
            (INFLATION_FIELD, KNOWS_INFLATION, inflation_text),
        ):
            self.form.set(name, text)
            self.form.selectors[selector] = KNOWN
            # Left editable so the user can still adjust the value
            self.form.enabled[name] = True

        self.form.show_status(
            StatusKind.SUCCESS, success_message(rate_text, inflation_text)
        )
        return True
