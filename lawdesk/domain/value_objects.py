"""
Domain Value Objects

Value objects are immutable and defined by their attributes.
They have no identity beyond their values.
"""
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from .errors import InvalidAmountError


ZERO = Decimal("0")


class ClientType(Enum):
    """
    Kind of client: a natural person or an organization.
    """
    INDIVIDUAL = "Individual"
    ORGANIZATION = "Organization"

    @classmethod
    def parse(cls, value: Any) -> 'ClientType':
        """Accept an enum member or its (case-insensitive) label."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if str(value).strip().lower() == member.value.lower():
                return member
        raise ValueError(f"unknown client type: {value!r}")


class CaseStatus(Enum):
    """
    Well-known case statuses.

    Case.status is free-form; these are the values the screens offer.
    """
    OPEN = "Open"
    PENDING = "Pending"
    ON_HOLD = "On Hold"
    CLOSED = "Closed"


class InvoiceStatus(Enum):
    """
    Invoice workflow states.
    """
    DRAFT = "Draft"
    ISSUED = "Issued"
    PAID = "Paid"
    PARTIALLY_PAID = "Partially Paid"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


class SortDirection(Enum):
    """
    Ordering applied by a table view.
    """
    ASCENDING = "asc"
    DESCENDING = "desc"

    @property
    def reverse(self) -> bool:
        """Flag suitable for sorted(reverse=...)."""
        return self is SortDirection.DESCENDING


PAYMENT_METHODS = (
    "Cash",
    "Check",
    "Credit Card",
    "Bank Transfer",
    "Wire Transfer",
    "PayPal",
    "Other",
)

ACTIVITY_CODES = {
    "RES": "Research",
    "DRA": "Drafting",
    "REV": "Review",
    "COM": "Communication",
    "MEE": "Meeting",
    "HEA": "Hearing",
    "TRI": "Trial",
    "DEP": "Deposition",
    "TRA": "Travel",
    "NEG": "Negotiation",
    "OTH": "Other",
}


def _to_decimal(value: Any, field: str, allow_float: bool) -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmountError(f"{field} must be numeric, got a boolean", value)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if not allow_float:
            raise InvalidAmountError(
                f"{field} must be a Decimal, int or numeric string, not float", value
            )
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidAmountError(f"{field} is not a number: {value!r}", value) from None
    else:
        raise InvalidAmountError(f"{field} must be numeric, got {type(value).__name__}", value)

    if not result.is_finite():
        raise InvalidAmountError(f"{field} must be finite", value)
    return result


def to_money(value: Any, field: str = "amount", positive: bool = False) -> Decimal:
    """
    Convert a monetary value to Decimal.

    Binary floats are rejected so that amounts never carry rounding error.

    Args:
        value: Decimal, int or numeric string
        field: Name used in error messages
        positive: Require a strictly positive amount (payments)

    Raises:
        InvalidAmountError: If the value is malformed or has the wrong sign
    """
    amount = _to_decimal(value, field, allow_float=False)
    if positive and amount <= ZERO:
        raise InvalidAmountError(f"{field} must be greater than zero", value)
    if amount < ZERO:
        raise InvalidAmountError(f"{field} must not be negative", value)
    return amount


def to_optional_money(value: Any, field: str) -> Optional[Decimal]:
    """Like to_money, but None passes through."""
    if value is None:
        return None
    return to_money(value, field)


def to_hours(value: Any, field: str = "hours") -> Decimal:
    """
    Convert an hours value to Decimal.

    Floats are accepted here (entry forms produce them) and converted
    through their shortest repr, so 2.5 becomes Decimal('2.5').
    """
    hours = _to_decimal(value, field, allow_float=True)
    if hours < ZERO:
        raise InvalidAmountError(f"{field} must not be negative", value)
    return hours
