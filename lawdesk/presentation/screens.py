"""
Screen Row Projections

Row view models translate graph entities into the fixed-width row tuples a
screen's TableView holds. They contain display logic but no business logic.

Cells keep their native types (Decimal amounts, dates) so that sorting
compares values, not formatted text.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Optional, Tuple, Union

from lawdesk.domain.entities import Attorney, Case, Client, Document, Event, Invoice, Payment
from lawdesk.domain.graph import EntityGraph
from lawdesk.infrastructure.config import LawdeskConfig

from .table_view import Row, TableView


ALL = "All"


@dataclass(frozen=True)
class ScreenLayout:
    """
    Columns of one screen and the search modes its filter panel offers.

    search_modes maps a mode name to the columns it searches; the "All"
    mode spans several columns and becomes one OR-group filter.
    """
    name: str
    columns: Tuple[str, ...]
    search_modes: Dict[str, Tuple[str, ...]]

    def search_columns(self, mode: Optional[str]) -> Tuple[str, ...]:
        """
        Columns searched by a mode; None means "All".

        Raises:
            ValueError: If the screen does not offer the mode
        """
        mode = mode or ALL
        try:
            return self.search_modes[mode]
        except KeyError:
            raise ValueError(
                f"screen {self.name!r} has no search mode {mode!r}; "
                f"expected one of {sorted(self.search_modes)}"
            ) from None

    def create_view(self, config: Optional[LawdeskConfig] = None) -> TableView:
        return TableView(self.columns, config)


CLIENTS = ScreenLayout(
    name="clients",
    columns=("Client ID", "Name", "Type", "Contact Person", "Email", "Phone", "Registration Date"),
    search_modes={
        ALL: ("Name", "Type"),
        "Name": ("Name",),
        "Type": ("Type",),
    },
)

ATTORNEYS = ScreenLayout(
    name="attorneys",
    columns=("Attorney ID", "Name", "Specialization", "Bar Number", "Email", "Phone", "Hourly Rate"),
    search_modes={
        ALL: ("Name", "Specialization"),
        "Name": ("Name",),
        "Specialization": ("Specialization",),
    },
)

CASES = ScreenLayout(
    name="cases",
    columns=("Case Number", "Title", "Type", "Status", "Client", "Filing Date", "Court"),
    search_modes={
        ALL: ("Case Number", "Title", "Type", "Client"),
        "Title": ("Title",),
        "Status": ("Status",),
        "Type": ("Type",),
        "Client": ("Client",),
    },
)

INVOICES = ScreenLayout(
    name="invoices",
    columns=(
        "Invoice #", "Client", "Case #", "Issue Date", "Due Date",
        "Amount", "Paid", "Balance", "Status",
    ),
    search_modes={
        ALL: ("Invoice #", "Client", "Case #"),
        "Invoice #": ("Invoice #",),
        "Client": ("Client",),
        "Case #": ("Case #",),
    },
)

PAYMENTS = ScreenLayout(
    name="payments",
    columns=("Payment ID", "Invoice #", "Client", "Date", "Amount", "Method", "Reference"),
    search_modes={
        ALL: ("Payment ID", "Invoice #", "Client", "Reference"),
        "Invoice #": ("Invoice #",),
        "Client": ("Client",),
        "Method": ("Method",),
    },
)

DOCUMENTS = ScreenLayout(
    name="documents",
    columns=("Document ID", "Title", "Type", "Case", "Date Added", "Status"),
    search_modes={
        ALL: ("Title", "Type"),
        "Title": ("Title",),
        "Type": ("Type",),
        "Case": ("Case",),
    },
)

EVENTS = ScreenLayout(
    name="events",
    columns=("Event ID", "Date", "Title", "Type", "Case", "Location"),
    search_modes={
        ALL: ("Title", "Type", "Case"),
        "Title": ("Title",),
        "Type": ("Type",),
        "Case": ("Case",),
    },
)

SCREENS: Dict[str, ScreenLayout] = {
    layout.name: layout
    for layout in (CLIENTS, ATTORNEYS, CASES, INVOICES, PAYMENTS, DOCUMENTS, EVENTS)
}


def get_screen(screen: Union[str, ScreenLayout]) -> ScreenLayout:
    if isinstance(screen, ScreenLayout):
        return screen
    try:
        return SCREENS[screen]
    except KeyError:
        raise ValueError(f"unknown screen: {screen!r}") from None


# --- row view models ---

@dataclass(frozen=True)
class ClientRow:
    """Row view model for the clients screen."""
    client_id: str
    name: str
    client_type: str
    contact_person: str
    email: str
    phone: str
    registration_date: Optional[date]

    @classmethod
    def from_domain(cls, client: Client) -> 'ClientRow':
        return cls(
            client_id=client.client_id,
            name=client.name,
            client_type=client.client_type.value,
            contact_person=client.contact_person or "",
            email=client.email or "",
            phone=client.phone or "",
            registration_date=client.registration_date,
        )

    def to_row(self) -> Row:
        return (
            self.client_id,
            self.name,
            self.client_type,
            self.contact_person,
            self.email,
            self.phone,
            self.registration_date,
        )


@dataclass(frozen=True)
class AttorneyRow:
    """Row view model for the attorneys screen."""
    attorney_id: str
    name: str
    specialization: str
    bar_number: str
    email: str
    phone: str
    hourly_rate: Decimal

    @classmethod
    def from_domain(cls, attorney: Attorney) -> 'AttorneyRow':
        return cls(
            attorney_id=attorney.attorney_id,
            name=attorney.full_name,
            specialization=attorney.specialization or "",
            bar_number=attorney.bar_number or "",
            email=attorney.email or "",
            phone=attorney.phone or "",
            hourly_rate=attorney.hourly_rate,
        )

    def to_row(self) -> Row:
        return (
            self.attorney_id,
            self.name,
            self.specialization,
            self.bar_number,
            self.email,
            self.phone,
            self.hourly_rate,
        )


@dataclass(frozen=True)
class CaseRow:
    """Row view model for the cases screen; the client is resolved through the graph."""
    case_number: str
    title: str
    case_type: str
    status: str
    client_name: str
    file_date: Optional[date]
    court: str

    @classmethod
    def from_domain(cls, case: Case, graph: EntityGraph) -> 'CaseRow':
        client = graph.client_of(case)
        return cls(
            case_number=case.case_number,
            title=case.title,
            case_type=case.case_type or "",
            status=case.status or "",
            client_name=client.name if client is not None else "",
            file_date=case.file_date,
            court=case.court or "",
        )

    def to_row(self) -> Row:
        return (
            self.case_number,
            self.title,
            self.case_type,
            self.status,
            self.client_name,
            self.file_date,
            self.court,
        )


@dataclass(frozen=True)
class InvoiceRow:
    """Row view model for the invoices screen."""
    invoice_number: str
    client_name: str
    case_number: str
    issue_date: date
    due_date: date
    amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: str

    @classmethod
    def from_domain(cls, invoice: Invoice, graph: EntityGraph) -> 'InvoiceRow':
        client = graph.client_of(invoice)
        case = graph.case_of(invoice)
        return cls(
            invoice_number=invoice.invoice_number,
            client_name=client.name if client is not None else "",
            case_number=case.case_number if case is not None else "",
            issue_date=invoice.issue_date,
            due_date=invoice.due_date,
            amount=invoice.amount,
            amount_paid=invoice.amount_paid,
            balance=invoice.balance,
            status=invoice.status.value,
        )

    def to_row(self) -> Row:
        return (
            self.invoice_number,
            self.client_name,
            self.case_number,
            self.issue_date,
            self.due_date,
            self.amount,
            self.amount_paid,
            self.balance,
            self.status,
        )


@dataclass(frozen=True)
class PaymentRow:
    """Row view model for the payments screen; client derived from the invoice."""
    payment_id: str
    invoice_number: str
    client_name: str
    payment_date: date
    amount: Decimal
    payment_method: str
    reference: str

    @classmethod
    def from_domain(cls, payment: Payment, graph: EntityGraph) -> 'PaymentRow':
        invoice = graph.invoice_of(payment)
        client = graph.client_of(payment)
        return cls(
            payment_id=payment.payment_id,
            invoice_number=invoice.invoice_number if invoice is not None else "",
            client_name=client.name if client is not None else "",
            payment_date=payment.payment_date,
            amount=payment.amount,
            payment_method=payment.payment_method or "",
            reference=payment.reference or "",
        )

    def to_row(self) -> Row:
        return (
            self.payment_id,
            self.invoice_number,
            self.client_name,
            self.payment_date,
            self.amount,
            self.payment_method,
            self.reference,
        )


def _case_label(case: Optional[Case]) -> str:
    if case is None:
        return ""
    return f"{case.case_number} - {case.title}"


@dataclass(frozen=True)
class DocumentRow:
    """Row view model for the documents screen."""
    document_id: str
    title: str
    document_type: str
    case_label: str
    upload_date: date
    status: str

    @classmethod
    def from_domain(cls, document: Document, graph: EntityGraph) -> 'DocumentRow':
        return cls(
            document_id=document.document_id,
            title=document.title,
            document_type=document.document_type or "",
            case_label=_case_label(graph.case_of(document)),
            upload_date=document.upload_date,
            status=document.status or "",
        )

    def to_row(self) -> Row:
        return (
            self.document_id,
            self.title,
            self.document_type,
            self.case_label,
            self.upload_date,
            self.status,
        )


@dataclass(frozen=True)
class EventRow:
    """Row view model for the calendar's event list."""
    event_id: str
    event_date: date
    title: str
    event_type: str
    case_label: str
    location: str

    @classmethod
    def from_domain(cls, event: Event, graph: EntityGraph) -> 'EventRow':
        return cls(
            event_id=event.event_id,
            event_date=event.event_date,
            title=event.title,
            event_type=event.event_type or "",
            case_label=_case_label(graph.case_of(event)),
            location=event.location or "",
        )

    def to_row(self) -> Row:
        return (
            self.event_id,
            self.event_date,
            self.title,
            self.event_type,
            self.case_label,
            self.location,
        )


# --- screen population and search ---

def project_rows(graph: EntityGraph, screen: Union[str, ScreenLayout]) -> Tuple[Row, ...]:
    """Row tuples for every entity a screen lists, in graph order."""
    layout = get_screen(screen)
    if layout is CLIENTS:
        return tuple(ClientRow.from_domain(c).to_row() for c in graph.all(Client))
    if layout is ATTORNEYS:
        return tuple(AttorneyRow.from_domain(a).to_row() for a in graph.all(Attorney))
    if layout is CASES:
        return tuple(CaseRow.from_domain(c, graph).to_row() for c in graph.all(Case))
    if layout is INVOICES:
        return tuple(InvoiceRow.from_domain(i, graph).to_row() for i in graph.all(Invoice))
    if layout is PAYMENTS:
        return tuple(PaymentRow.from_domain(p, graph).to_row() for p in graph.all(Payment))
    if layout is DOCUMENTS:
        return tuple(DocumentRow.from_domain(d, graph).to_row() for d in graph.all(Document))
    if layout is EVENTS:
        return tuple(EventRow.from_domain(e, graph).to_row() for e in graph.all(Event))
    raise ValueError(f"no row projection for screen {layout.name!r}")


def populate(view: TableView, graph: EntityGraph, screen: Union[str, ScreenLayout]) -> int:
    """Reload a screen's view from the graph. Returns the backing row count."""
    view.load(project_rows(graph, screen))
    return view.row_count


def apply_search(
    view: TableView,
    screen: Union[str, ScreenLayout],
    mode: Optional[str],
    text: Optional[str],
) -> bool:
    """
    Apply the filter panel's search to a screen's view.

    A single-column mode adds one column filter; "All" adds one OR-group
    over the screen's searchable columns, so a row matching any of them is
    shown. Empty text adds nothing.

    Returns:
        True if a filter was added
    """
    columns = get_screen(screen).search_columns(mode)
    if len(columns) == 1:
        return view.add_filter(columns[0], text)
    return view.add_any_filter(columns, text)


def apply_invoice_status(view: TableView, status: Optional[str]) -> bool:
    """
    Restrict the invoices view to one status; "All" or empty shows every status.

    Returns:
        True if a filter was added
    """
    if not status or status == ALL:
        return False
    column = view.column_index("Status")
    wanted = status.strip().lower()
    view.add_predicate(lambda row: _folded_text(row[column]) == wanted)
    return True


def _folded_text(value: Any) -> str:
    return "" if value is None else str(value).strip().lower()


ALL_EVENTS = "All Events"

# Calendar view selector: event types shown under each category
EVENT_CATEGORIES: Dict[str, FrozenSet[str]] = {
    "Court Dates": frozenset({"court appearance", "hearing", "trial"}),
    "Meetings": frozenset({"meeting", "conference call"}),
    "Deadlines": frozenset({"deadline", "filing"}),
}


def apply_event_category(view: TableView, category: Optional[str]) -> bool:
    """
    Restrict the events view to one calendar category.

    "All Events" (or empty) shows every event.

    Returns:
        True if a filter was added

    Raises:
        ValueError: If category is not a calendar category
    """
    if not category or category in (ALL_EVENTS, ALL):
        return False
    try:
        types = EVENT_CATEGORIES[category]
    except KeyError:
        raise ValueError(
            f"unknown event category {category!r}; expected one of {sorted(EVENT_CATEGORIES)}"
        ) from None
    column = view.column_index("Type")
    view.add_predicate(lambda row: _folded_text(row[column]) in types)
    return True
