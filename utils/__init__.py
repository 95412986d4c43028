"""Utility modules for cross-cutting concerns."""

from utils.timezone import (
    now_utc,
    to_utc,
    to_local,
    parse_iso,
    shift_month,
    month_bounds,
    start_of_day,
    end_of_day,
)
from utils.formatting import format_currency, format_date, month_label
