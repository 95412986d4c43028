"""Display formatting for documents and report labels (pt-BR conventions)."""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from utils.timezone import to_local

_CENTS = Decimal("0.01")

MONTH_ABBREVIATIONS = (
    "Jan", "Fev", "Mar", "Abr", "Mai", "Jun",
    "Jul", "Ago", "Set", "Out", "Nov", "Dez",
)


def format_currency(value: Decimal | int | float, symbol: str = "R$") -> str:
    """
    Format an amount as Brazilian currency.

    format_currency(Decimal("1234.5")) == "R$ 1.234,50"
    """
    amount = Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    integer_part, fraction = f"{abs(amount):,.2f}".split(".")
    integer_part = integer_part.replace(",", ".")
    body = f"{integer_part},{fraction}"
    if not symbol:
        return f"{sign}{body}"
    return f"{sign}{symbol} {body}"


def format_date(dt: datetime, tz_name: str = "UTC") -> str:
    """Format a timezone-aware datetime as dd/mm/yyyy in the given timezone."""
    return to_local(dt, tz_name).strftime("%d/%m/%Y")


def month_label(month: int) -> str:
    """Short pt-BR month name for a 1-based month number."""
    return MONTH_ABBREVIATIONS[month - 1]
