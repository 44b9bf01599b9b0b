"""
Graph Loader

Builds a populated EntityGraph from the plain records supplied by the
data-access collaborator. Records are validated with pydantic schemas;
every association is made through the RelationshipManager, and every
invoice's amount paid is recomputed once all payments are in.

A record that breaks a graph invariant raises GraphLoadError. Nothing is
silently repaired.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from lawdesk.domain.entities import (
    Attorney,
    Case,
    Client,
    Document,
    Event,
    Invoice,
    Payment,
    TimeEntry,
)
from lawdesk.domain.errors import DuplicateKeyError, GraphLoadError
from lawdesk.domain.graph import EntityGraph
from lawdesk.domain.value_objects import to_optional_money
from lawdesk.infrastructure.config import LawdeskConfig
from lawdesk.infrastructure.logging import LogContext, log_extra, timed_operation

from .relationships import RelationshipManager

logger = logging.getLogger(__name__)

_CONTEXT = LogContext(component="loader")

R = TypeVar("R", bound="EntityRecord")


# --- Pydantic Schemas for stored records ---

def _money(value: Any, info: ValidationInfo) -> Any:
    """Money follows the entity rules: Decimal, int or numeric text, never float."""
    return to_optional_money(value, info.field_name)


class EntityRecord(BaseModel):
    """Common configuration for stored entity records."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: Optional[str] = Field(default=None, description="Internal identity, when already assigned")


class ClientRecord(EntityRecord):
    client_id: str = Field(min_length=1, description="Business key, e.g. CL-0001")
    name: str = Field(min_length=1)
    client_type: str = Field(default="Individual", description="Individual or Organization")
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    registration_date: Optional[date] = None


class AttorneyRecord(EntityRecord):
    attorney_id: str = Field(min_length=1)
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    specialization: Optional[str] = None
    bar_number: Optional[str] = None
    hourly_rate: Decimal = Decimal("0")

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def _check_money(cls, value: Any, info: ValidationInfo) -> Any:
        return _money(value, info)


class CaseRecord(EntityRecord):
    case_number: str = Field(min_length=1)
    title: str
    client_id: Optional[str] = Field(default=None, description="Business key of the owning client")
    attorney_ids: List[str] = Field(default_factory=list)
    case_type: Optional[str] = None
    status: str = "Open"
    description: Optional[str] = None
    file_date: Optional[date] = None
    closing_date: Optional[date] = None
    court: Optional[str] = None
    judge: Optional[str] = None
    opposing_party: Optional[str] = None
    opposing_counsel: Optional[str] = None


class TimeEntryRecord(EntityRecord):
    entry_id: str = Field(min_length=1)
    case_number: Optional[str] = None
    hours: Decimal
    entry_date: Optional[date] = None
    description: Optional[str] = None
    activity_code: Optional[str] = None
    hourly_rate: Optional[Decimal] = None
    attorney_id: Optional[str] = None
    invoice_number: Optional[str] = Field(default=None, description="Set when the entry was billed")

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def _check_money(cls, value: Any, info: ValidationInfo) -> Any:
        return _money(value, info)


class DocumentRecord(EntityRecord):
    document_id: str = Field(min_length=1)
    case_number: Optional[str] = None
    title: str
    document_type: Optional[str] = None
    file_path: Optional[str] = None
    upload_date: Optional[date] = None
    status: Optional[str] = None


class EventRecord(EntityRecord):
    event_id: str = Field(min_length=1)
    case_number: Optional[str] = None
    title: str
    event_date: Optional[date] = None
    event_type: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None


class InvoiceRecord(EntityRecord):
    invoice_number: str = Field(min_length=1)
    client_id: Optional[str] = None
    case_number: Optional[str] = None
    amount: Decimal = Decimal("0")
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    status: str = "Draft"
    notes: Optional[str] = None
    amount_paid: Optional[Decimal] = Field(
        default=None,
        description="Stored total; checked against the payments when strict_totals is on",
    )

    @field_validator("amount", "amount_paid", mode="before")
    @classmethod
    def _check_money(cls, value: Any, info: ValidationInfo) -> Any:
        return _money(value, info)


class PaymentRecord(EntityRecord):
    payment_id: str = Field(min_length=1)
    invoice_number: Optional[str] = None
    client_id: Optional[str] = Field(
        default=None,
        description="Stored client; must match the invoice's client when present",
    )
    amount: Decimal
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def _check_money(cls, value: Any, info: ValidationInfo) -> Any:
        return _money(value, info)


class GraphRecords(BaseModel):
    """Everything needed to build one graph."""

    model_config = ConfigDict(extra="forbid")

    clients: List[Dict[str, Any]] = Field(default_factory=list)
    attorneys: List[Dict[str, Any]] = Field(default_factory=list)
    cases: List[Dict[str, Any]] = Field(default_factory=list)
    time_entries: List[Dict[str, Any]] = Field(default_factory=list)
    documents: List[Dict[str, Any]] = Field(default_factory=list)
    events: List[Dict[str, Any]] = Field(default_factory=list)
    invoices: List[Dict[str, Any]] = Field(default_factory=list)
    payments: List[Dict[str, Any]] = Field(default_factory=list)


def _fields(record: BaseModel, *exclude: str) -> Dict[str, Any]:
    """Record fields for an entity constructor, dropping unset optionals."""
    data = record.model_dump(exclude=set(exclude))
    return {key: value for key, value in data.items() if value is not None}


class GraphLoader:
    """
    Validates stored records and assembles them into an EntityGraph.

    Usage:
        loader = GraphLoader()
        manager = loader.load({"clients": [...], "cases": [...], ...})
        graph = manager.graph
    """

    def __init__(self, config: Optional[LawdeskConfig] = None, strict_totals: bool = False):
        self._config = config or LawdeskConfig()
        self._strict_totals = strict_totals

    def load(self, data: Union[GraphRecords, Mapping[str, Any]]) -> RelationshipManager:
        """
        Build a graph from records.

        Returns:
            A RelationshipManager bound to the new graph

        Raises:
            GraphLoadError: If any record is malformed or violates an invariant
        """
        if not isinstance(data, GraphRecords):
            try:
                data = GraphRecords.model_validate(data)
            except ValidationError as exc:
                raise GraphLoadError(f"malformed graph records: {exc}", "graph") from exc

        manager = RelationshipManager(EntityGraph())
        with timed_operation(logger, "load_graph", _CONTEXT):
            for raw in data.clients:
                self._load_client(manager, self._parse(ClientRecord, raw, "client_id"))
            for raw in data.attorneys:
                self._load_attorney(manager, self._parse(AttorneyRecord, raw, "attorney_id"))
            for raw in data.cases:
                self._load_case(manager, self._parse(CaseRecord, raw, "case_number"))
            entry_records = [self._parse(TimeEntryRecord, raw, "entry_id") for raw in data.time_entries]
            for entry_record in entry_records:
                self._load_time_entry(manager, entry_record)
            for raw in data.documents:
                record = self._parse(DocumentRecord, raw, "document_id")
                self._load_child(manager, record, Document, record.document_id, "document")
            for raw in data.events:
                record = self._parse(EventRecord, raw, "event_id")
                self._load_child(manager, record, Event, record.event_id, "event")
            stored_totals: Dict[str, Optional[Decimal]] = {}
            for raw in data.invoices:
                record = self._parse(InvoiceRecord, raw, "invoice_number")
                self._load_invoice(manager, record)
                stored_totals[record.invoice_number] = record.amount_paid
            for raw in data.payments:
                self._load_payment(manager, self._parse(PaymentRecord, raw, "payment_id"))
            for entry_record in entry_records:
                self._bill_time_entry(manager, entry_record)
            self._recalculate_invoices(manager, stored_totals)

        logger.info(
            "Loaded graph with %d entities",
            len(manager.graph),
            extra=log_extra(_CONTEXT.with_operation("load_graph")),
        )
        return manager

    # --- per-record loading ---

    def _load_client(self, manager: RelationshipManager, record: ClientRecord) -> None:
        self._register(manager, self._build(Client, record, "client", record.client_id), "client")

    def _load_attorney(self, manager: RelationshipManager, record: AttorneyRecord) -> None:
        self._register(manager, self._build(Attorney, record, "attorney", record.attorney_id), "attorney")

    def _load_case(self, manager: RelationshipManager, record: CaseRecord) -> None:
        key = record.case_number
        client = self._require(manager, Client, record.client_id, "case", key, "client")
        case = self._build(Case, record, "case", key, "client_id", "attorney_ids")
        self._register(manager, case, "case")
        manager.link_case_to_client(case, client)
        for attorney_id in record.attorney_ids:
            attorney = self._require(manager, Attorney, attorney_id, "case", key, "attorney")
            manager.link_attorney_to_case(attorney, case)

    def _load_time_entry(self, manager: RelationshipManager, record: TimeEntryRecord) -> None:
        key = record.entry_id
        case = self._require(manager, Case, record.case_number, "time_entry", key, "case")
        entry = self._build(
            TimeEntry, record, "time_entry", key,
            "case_number", "attorney_id", "invoice_number",
        )
        self._register(manager, entry, "time_entry")
        manager.attach_time_entry(case, entry)
        if record.attorney_id is not None:
            attorney = self._require(manager, Attorney, record.attorney_id, "time_entry", key, "attorney")
            manager.assign_time_entry_attorney(entry, attorney)

    def _load_child(self, manager: RelationshipManager, record: EntityRecord,
                    entity_type: type, key: str, record_type: str) -> None:
        case = self._require(manager, Case, record.case_number, record_type, key, "case")
        child = self._build(entity_type, record, record_type, key, "case_number")
        self._register(manager, child, record_type)
        if entity_type is Document:
            manager.attach_document(case, child)
        else:
            manager.attach_event(case, child)

    def _load_invoice(self, manager: RelationshipManager, record: InvoiceRecord) -> None:
        key = record.invoice_number
        client = self._require(manager, Client, record.client_id, "invoice", key, "client")
        case = None
        if record.case_number is not None:
            case = self._require(manager, Case, record.case_number, "invoice", key, "case")
        fields = _fields(record, "client_id", "case_number", "amount_paid")
        if record.due_date is None:
            issue_date = record.issue_date or date.today()
            fields["issue_date"] = issue_date
            fields["due_date"] = issue_date + timedelta(days=self._config.invoice_due_days)
        try:
            invoice = Invoice(**fields)
        except ValueError as exc:
            raise GraphLoadError(str(exc), "invoice", key) from exc
        self._register(manager, invoice, "invoice")
        logger.debug(
            "Invoice %s due %s",
            key,
            invoice.due_date,
            extra=log_extra(_CONTEXT.with_operation("load_invoice")),
        )
        manager.link_invoice_to_client(invoice, client)
        if case is not None:
            manager.link_invoice_to_case(invoice, case)

    def _load_payment(self, manager: RelationshipManager, record: PaymentRecord) -> None:
        key = record.payment_id
        invoice = self._require(manager, Invoice, record.invoice_number, "payment", key, "invoice")
        invoice_client = manager.graph.client_of(invoice)
        if record.client_id is not None and (
            invoice_client is None or invoice_client.client_id != record.client_id
        ):
            raise GraphLoadError(
                f"payment client {record.client_id!r} does not match the client of "
                f"invoice {invoice.invoice_number!r}",
                "payment",
                key,
            )
        payment = self._build(Payment, record, "payment", key, "invoice_number", "client_id")
        self._register(manager, payment, "payment")
        manager.add_payment(invoice, payment)

    def _bill_time_entry(self, manager: RelationshipManager, record: TimeEntryRecord) -> None:
        if record.invoice_number is None:
            return
        key = record.entry_id
        invoice = self._require(manager, Invoice, record.invoice_number, "time_entry", key, "invoice")
        entry = manager.graph.find_by_key(TimeEntry, key)
        manager.bill_time_entries(invoice, [entry])

    def _recalculate_invoices(self, manager: RelationshipManager,
                              stored_totals: Dict[str, Optional[Decimal]]) -> None:
        for invoice in manager.graph.all(Invoice):
            computed = manager.recalculator.recalculate(invoice)
            stored = stored_totals.get(invoice.invoice_number)
            if stored is None or stored == computed:
                continue
            if self._strict_totals:
                raise GraphLoadError(
                    f"stored amount paid {stored} does not match payments total {computed}",
                    "invoice",
                    invoice.invoice_number,
                )
            logger.warning(
                "Invoice %s stored amount paid %s replaced by payments total %s",
                invoice.invoice_number,
                stored,
                computed,
                extra=log_extra(_CONTEXT.with_operation("recalculate_invoices")),
            )

    # --- helpers ---

    @staticmethod
    def _parse(record_type: Type[R], raw: Mapping[str, Any], key_field: str) -> R:
        try:
            return record_type.model_validate(raw)
        except ValidationError as exc:
            name = record_type.__name__.replace("Record", "").lower()
            raise GraphLoadError(f"invalid {name} record: {exc}", name, raw.get(key_field)) from exc

    @staticmethod
    def _build(entity_type: type, record: BaseModel, record_type: str, key: str, *exclude: str):
        try:
            return entity_type(**_fields(record, *exclude))
        except ValueError as exc:
            # InvalidAmountError, unknown client type or invoice status
            raise GraphLoadError(str(exc), record_type, key) from exc

    @staticmethod
    def _register(manager: RelationshipManager, entity, record_type: str) -> None:
        try:
            manager.graph.add(entity)
        except DuplicateKeyError as exc:
            raise GraphLoadError(str(exc), record_type, exc.key) from exc

    @staticmethod
    def _require(manager: RelationshipManager, entity_type: type, key: Optional[str],
                 record_type: str, record_key: str, role: str):
        if key is None:
            raise GraphLoadError(f"{record_type} {record_key!r} has no {role}", record_type, record_key)
        entity = manager.graph.find_by_key(entity_type, key)
        if entity is None:
            raise GraphLoadError(
                f"{record_type} {record_key!r} references unknown {role} {key!r}",
                record_type,
                record_key,
            )
        return entity
