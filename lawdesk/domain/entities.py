"""
Domain Entities

Entities are objects with identity that persists over time.
They are passive records: associations between entities are not stored
on them but in the EntityGraph adjacency indexes, and the attributes that
feed invariants (identity, business keys, amounts, hours) are read-only
outside the graph and relationship manager.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, ClassVar, FrozenSet, Optional
from uuid import uuid4

from .errors import ReadOnlyAttributeError
from .value_objects import (
    ZERO,
    CaseStatus,
    ClientType,
    InvoiceStatus,
    to_hours,
    to_money,
    to_optional_money,
)


DEFAULT_INVOICE_DUE_DAYS = 30


def _new_id() -> str:
    return str(uuid4())


def assign(entity: 'Entity', name: str, value: Any) -> None:
    """
    Write a guarded attribute.

    Reserved for the graph and the relationship manager.
    """
    object.__setattr__(entity, name, value)


class Entity:
    """
    Base class for all domain entities.

    Identity is assigned once; guarded attributes raise
    ReadOnlyAttributeError when assigned after construction.
    """
    business_key_field: ClassVar[str] = ""
    _guarded: ClassVar[FrozenSet[str]] = frozenset({"id"})

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self._guarded and name in self.__dict__:
            raise ReadOnlyAttributeError(type(self).__name__, name)
        object.__setattr__(self, name, value)

    @property
    def business_key(self) -> str:
        return getattr(self, self.business_key_field)


@dataclass(eq=False)
class Client(Entity):
    """A client of the firm, either an individual or an organization."""
    business_key_field: ClassVar[str] = "client_id"
    _guarded: ClassVar[FrozenSet[str]] = frozenset({"id", "client_id"})

    client_id: str
    name: str
    client_type: ClientType = ClientType.INDIVIDUAL
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    registration_date: date = field(default_factory=date.today)
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        object.__setattr__(self, "client_type", ClientType.parse(self.client_type))

    @property
    def is_individual(self) -> bool:
        return self.client_type is ClientType.INDIVIDUAL

    @property
    def is_organization(self) -> bool:
        return self.client_type is ClientType.ORGANIZATION

    @property
    def display_name(self) -> str:
        """Name decorated with the client type (and contact, for organizations)."""
        if self.is_organization and self.contact_person:
            return f"{self.name} (Org, Contact: {self.contact_person})"
        if self.is_organization:
            return f"{self.name} (Organization)"
        return f"{self.name} (Individual)"


@dataclass(eq=False)
class Attorney(Entity):
    """An attorney who can be assigned to cases and log time."""
    business_key_field: ClassVar[str] = "attorney_id"
    _guarded: ClassVar[FrozenSet[str]] = frozenset({"id", "attorney_id"})

    attorney_id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    specialization: Optional[str] = None
    bar_number: Optional[str] = None
    hourly_rate: Decimal = ZERO
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        object.__setattr__(self, "hourly_rate", to_money(self.hourly_rate, "hourly_rate"))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def display_name(self) -> str:
        if self.specialization:
            return f"{self.full_name} ({self.specialization})"
        return self.full_name


@dataclass(eq=False)
class Case(Entity):
    """A legal matter handled for one client by one or more attorneys."""
    business_key_field: ClassVar[str] = "case_number"
    _guarded: ClassVar[FrozenSet[str]] = frozenset({"id", "case_number"})

    case_number: str
    title: str
    case_type: Optional[str] = None
    status: str = CaseStatus.OPEN.value
    description: Optional[str] = None
    file_date: date = field(default_factory=date.today)
    closing_date: Optional[date] = None
    court: Optional[str] = None
    judge: Optional[str] = None
    opposing_party: Optional[str] = None
    opposing_counsel: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        if isinstance(self.status, CaseStatus):
            object.__setattr__(self, "status", self.status.value)

    @property
    def is_closed(self) -> bool:
        return (self.status or "").lower() == CaseStatus.CLOSED.value.lower()


@dataclass(eq=False)
class TimeEntry(Entity):
    """Hours logged against a case."""
    business_key_field: ClassVar[str] = "entry_id"
    _guarded: ClassVar[FrozenSet[str]] = frozenset({"id", "entry_id", "hours", "billed"})

    entry_id: str
    hours: Decimal
    entry_date: date = field(default_factory=date.today)
    description: Optional[str] = None
    activity_code: Optional[str] = None
    hourly_rate: Optional[Decimal] = None
    billed: bool = False
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        object.__setattr__(self, "hours", to_hours(self.hours))
        object.__setattr__(self, "hourly_rate", to_optional_money(self.hourly_rate, "hourly_rate"))

    @property
    def amount(self) -> Decimal:
        """Billable amount; zero when no rate is set."""
        if self.hourly_rate is None:
            return ZERO
        return self.hours * self.hourly_rate


@dataclass(eq=False)
class Document(Entity):
    """A document filed under a case."""
    business_key_field: ClassVar[str] = "document_id"
    _guarded: ClassVar[FrozenSet[str]] = frozenset({"id", "document_id"})

    document_id: str
    title: str
    document_type: Optional[str] = None
    file_path: Optional[str] = None
    upload_date: date = field(default_factory=date.today)
    status: Optional[str] = None
    id: str = field(default_factory=_new_id)


@dataclass(eq=False)
class Event(Entity):
    """A calendar event (hearing, deadline, meeting) for a case."""
    business_key_field: ClassVar[str] = "event_id"
    _guarded: ClassVar[FrozenSet[str]] = frozenset({"id", "event_id"})

    event_id: str
    title: str
    event_date: date = field(default_factory=date.today)
    event_type: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    id: str = field(default_factory=_new_id)


@dataclass(eq=False)
class Invoice(Entity):
    """
    An invoice issued to a client.

    amount_paid is derived from the invoice's payments and written only by
    the aggregate recalculator.
    """
    business_key_field: ClassVar[str] = "invoice_number"
    _guarded: ClassVar[FrozenSet[str]] = frozenset({"id", "invoice_number", "amount_paid"})

    invoice_number: str
    amount: Decimal = ZERO
    issue_date: date = field(default_factory=date.today)
    due_date: Optional[date] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT
    notes: Optional[str] = None
    amount_paid: Decimal = field(default=ZERO, init=False)
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        object.__setattr__(self, "amount", to_money(self.amount, "amount"))
        object.__setattr__(self, "amount_paid", ZERO)
        if not isinstance(self.status, InvoiceStatus):
            object.__setattr__(self, "status", InvoiceStatus(self.status))
        if self.due_date is None:
            object.__setattr__(
                self, "due_date", self.issue_date + timedelta(days=DEFAULT_INVOICE_DUE_DAYS)
            )

    @property
    def balance(self) -> Decimal:
        """Outstanding amount; negative when overpaid."""
        return self.amount - self.amount_paid

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """An invoice is overdue when unpaid past its due date."""
        if self.status in (InvoiceStatus.CANCELLED, InvoiceStatus.DRAFT):
            return False
        today = today or date.today()
        return self.balance > ZERO and self.due_date < today


@dataclass(eq=False)
class Payment(Entity):
    """
    A payment received against an invoice.

    The paying client is never stored here; it is derived from the
    invoice the payment currently belongs to.
    """
    business_key_field: ClassVar[str] = "payment_id"
    _guarded: ClassVar[FrozenSet[str]] = frozenset({"id", "payment_id", "amount"})

    payment_id: str
    amount: Decimal
    payment_date: date = field(default_factory=date.today)
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        object.__setattr__(self, "amount", to_money(self.amount, "amount", positive=True))

    @property
    def display_text(self) -> str:
        text = f"{self.payment_method or 'Unspecified'} payment of {self.amount} on {self.payment_date}"
        if self.reference:
            text += f" (Ref: {self.reference})"
        return text
