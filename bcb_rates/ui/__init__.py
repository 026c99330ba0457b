"""Form collaborator for the simulator page."""

from bcb_rates.ui.form import (
    FieldToggle,
    RateForm,
    RateFormUpdater,
    RequestTokens,
    StatusKind,
    format_percentage,
)

__all__ = [
    "FieldToggle",
    "RateForm",
    "RateFormUpdater",
    "RequestTokens",
    "StatusKind",
    "format_percentage",
]
