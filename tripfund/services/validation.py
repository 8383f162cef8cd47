"""
INPUT VALIDATION
================

Parsing helpers shared by the resource services.
Client values are never coerced silently: anything that is not a clean
number, date or known role is rejected with a ValidationError.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from tripfund.models import MemberRole
from tripfund.services.errors import ValidationError

NAME_MAX_LENGTH = 100
MONEY_MAX = Decimal('99999999.99')
CENT = Decimal('0.01')


def require_name(value, field='name'):
    """Return the stripped name, rejecting missing/blank/too long values."""
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")

    value = value.strip()
    if len(value) > NAME_MAX_LENGTH:
        raise ValidationError(f"{field} must be at most {NAME_MAX_LENGTH} characters")
    return value


def optional_id(value, field):
    """An id taken from a request body. Missing/empty gives None."""
    if value is None or value == '':
        return None
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a string id")
    return value.strip()


def require_id(value, field):
    value = optional_id(value, field)
    if value is None:
        raise ValidationError(f"{field} is required")
    return value


def optional_text(value, field, max_length=None):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")

    value = value.strip()
    if max_length and len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return value or None


def parse_amount(value, field='amount', allow_zero=True, required=True, default=None):
    """
    Parse a money value into a Decimal with two fractional digits.

    Accepts int, Decimal, float and numeric strings.
    Rejects booleans, non-numeric strings, NaN/Infinity, negatives,
    more than two fractional digits and values too large for the column.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return default

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")

    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")

    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")

    if amount == 0 and not allow_zero:
        raise ValidationError(f"{field} must be greater than 0")

    if amount > MONEY_MAX:
        raise ValidationError(f"{field} cannot exceed {MONEY_MAX}")

    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} cannot have more than two decimal places")

    return amount.quantize(CENT)


def parse_date(value, field):
    """Parse an ISO date (YYYY-MM-DD). Empty values give None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format")


def parse_datetime(value, field):
    """Parse an ISO date or datetime. Empty values give None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date or datetime")

    if parsed.tzinfo is not None:
        # Stored as naive UTC
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def check_date_range(start_date, end_date):
    if start_date and end_date and end_date < start_date:
        raise ValidationError("end_date cannot be before start_date")


def parse_assignable_role(value):
    """
    Parse a role given to a member through the membership endpoints.
    OWNER is not assignable; callers check for it before this.
    """
    if not value:
        raise ValidationError("role is required")

    try:
        role = MemberRole(str(value).strip().lower())
    except ValueError:
        raise ValidationError("Invalid role. Must be admin or collector")

    if role is MemberRole.OWNER:
        raise ValidationError("Invalid role. Must be admin or collector")
    return role


def is_owner_role(value):
    """True when a client-supplied role names the owner."""
    if isinstance(value, MemberRole):
        return value is MemberRole.OWNER
    return isinstance(value, str) and value.strip().lower() == MemberRole.OWNER.value
