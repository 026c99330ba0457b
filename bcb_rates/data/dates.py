"""Look-back windows and SGS date formatting."""

from datetime import date

import pandas as pd

from bcb_rates.errors import ValidationError


SGS_DATE_FORMAT = "%d/%m/%Y"


def format_sgs_date(value: date) -> str:
    """Format a date as dd/mm/yyyy, the only shape the SGS API accepts."""
    return value.strftime(SGS_DATE_FORMAT)


def parse_lookback_months(value: object) -> int:
    """
    Coerce a user-supplied look-back to a positive number of months.

    Accepts ints and digit strings (surrounding whitespace allowed).

    Raises:
        ValidationError: value is missing, non-numeric, or not positive
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid look-back period: {value!r}")
    if isinstance(value, int):
        months = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        months = int(value.strip())
    else:
        raise ValidationError(f"Invalid look-back period: {value!r}")

    if months <= 0:
        raise ValidationError(f"Look-back period must be positive, got {months}")
    return months


def lookback_window(months: int, today: date | None = None) -> tuple[date, date]:
    """
    Date range covering the last `months` months up to today, inclusive.

    Month arithmetic clamps to the last valid day (31/03 minus one month
    is 28/02 or 29/02).

    Raises:
        ValidationError: the window starts before the earliest representable date
    """
    end = today or date.today()
    try:
        start = (pd.Timestamp(end) - pd.DateOffset(months=months)).date()
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Look-back period too long: {months} months") from e
    return start, end
