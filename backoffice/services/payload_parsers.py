from decimal import Decimal, InvalidOperation

from dateutil import parser as date_parser

from backoffice.services.errors import InvalidArgumentError

CENTS = Decimal("0.01")
# Numeric(12, 2) holds ten integer digits
MAX_AMOUNT = Decimal("1e10")


def require_fields(data, *names):
    missing = [name for name in names if data.get(name) in (None, "")]
    if missing:
        raise InvalidArgumentError("Missing required fields", details={"missing": missing})


def parse_date(value, field_name):
    """Accepts '2025-11-09' as well as full ISO timestamps; keeps the calendar date."""
    if value in (None, ""):
        return None
    try:
        return date_parser.isoparse(str(value)).date()
    except (ValueError, OverflowError):
        raise InvalidArgumentError(f"{field_name} must be an ISO date", details={field_name: value})


def parse_amount(value, field_name):
    """Positive currency amount below 10^10, rounded to cents."""
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise InvalidOperation
        amount = amount.quantize(CENTS)
    except (InvalidOperation, ValueError):
        raise InvalidArgumentError(f"{field_name} must be a number", details={field_name: value})
    if amount <= 0:
        raise InvalidArgumentError(f"{field_name} must be greater than zero", details={field_name: value})
    if amount >= MAX_AMOUNT:
        raise InvalidArgumentError(f"{field_name} is too large", details={field_name: value})
    return amount
