"""
Tests for lawdesk Domain Entities

Covers construction, derived properties and the read-only guard on
identity, business keys and derived amounts.
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal


class TestClient:
    """Tests for Client entity."""

    def test_creation_with_required_fields(self):
        """Client needs a business key and a name."""
        from lawdesk.domain.entities import Client
        from lawdesk.domain.value_objects import ClientType
        client = Client(client_id="CL-001", name="Ana Torres")
        assert client.client_id == "CL-001"
        assert client.client_type is ClientType.INDIVIDUAL
        assert client.registration_date == date.today()

    def test_identity_assigned(self):
        """Each client gets its own id."""
        from lawdesk.domain.entities import Client
        first = Client(client_id="CL-001", name="A")
        second = Client(client_id="CL-002", name="B")
        assert first.id and second.id
        assert first.id != second.id

    def test_client_type_parsed_from_label(self):
        """A string client type is parsed into ClientType."""
        from lawdesk.domain.entities import Client
        client = Client(client_id="CL-001", name="Acme", client_type="organization")
        assert client.is_organization
        assert not client.is_individual

    def test_unknown_client_type_rejected(self):
        """An unknown client type raises ValueError."""
        from lawdesk.domain.entities import Client
        with pytest.raises(ValueError):
            Client(client_id="CL-001", name="Acme", client_type="Trust")

    def test_display_name_for_organization_with_contact(self):
        """Organizations show their contact person."""
        from lawdesk.domain.entities import Client
        client = Client(
            client_id="CL-001", name="Acme", client_type="Organization", contact_person="Luis"
        )
        assert client.display_name == "Acme (Org, Contact: Luis)"

    def test_display_name_for_individual(self):
        """Individuals are labelled as such."""
        from lawdesk.domain.entities import Client
        assert Client(client_id="CL-001", name="Ana").display_name == "Ana (Individual)"

    def test_identity_is_read_only(self):
        """Assigning id after construction raises."""
        from lawdesk.domain.entities import Client
        from lawdesk.domain.errors import ReadOnlyAttributeError
        client = Client(client_id="CL-001", name="Ana")
        with pytest.raises(ReadOnlyAttributeError):
            client.id = "other"

    def test_business_key_is_read_only(self):
        """Business keys change only through the graph."""
        from lawdesk.domain.entities import Client
        client = Client(client_id="CL-001", name="Ana")
        with pytest.raises(AttributeError):
            client.client_id = "CL-999"
        assert client.business_key == "CL-001"

    def test_plain_fields_are_editable(self):
        """Non-guarded attributes can be edited."""
        from lawdesk.domain.entities import Client
        client = Client(client_id="CL-001", name="Ana")
        client.email = "ana@example.com"
        assert client.email == "ana@example.com"

    def test_equality_is_identity(self):
        """Two clients with the same fields are distinct entities."""
        from lawdesk.domain.entities import Client
        assert Client(client_id="CL-001", name="A", id="x") != Client(client_id="CL-001", name="A", id="y")


class TestAttorney:
    """Tests for Attorney entity."""

    def test_full_name(self):
        """full_name joins first and last name."""
        from lawdesk.domain.entities import Attorney
        attorney = Attorney(attorney_id="AT-1", first_name="Maria", last_name="Lopez")
        assert attorney.full_name == "Maria Lopez"

    def test_display_name_with_specialization(self):
        """display_name appends the specialization."""
        from lawdesk.domain.entities import Attorney
        attorney = Attorney(
            attorney_id="AT-1", first_name="Maria", last_name="Lopez", specialization="Tax"
        )
        assert attorney.display_name == "Maria Lopez (Tax)"

    def test_hourly_rate_is_decimal(self):
        """hourly_rate is normalized to Decimal."""
        from lawdesk.domain.entities import Attorney
        attorney = Attorney(attorney_id="AT-1", first_name="M", last_name="L", hourly_rate="175.50")
        assert attorney.hourly_rate == Decimal("175.50")

    def test_float_rate_rejected(self):
        """A float hourly rate raises InvalidAmountError."""
        from lawdesk.domain.entities import Attorney
        from lawdesk.domain.errors import InvalidAmountError
        with pytest.raises(InvalidAmountError):
            Attorney(attorney_id="AT-1", first_name="M", last_name="L", hourly_rate=175.5)


class TestCase:
    """Tests for Case entity."""

    def test_default_status_open(self):
        """A new case is Open."""
        from lawdesk.domain.entities import Case
        case = Case(case_number="2024-001", title="Smith v. Jones")
        assert case.status == "Open"
        assert not case.is_closed

    def test_status_enum_stored_as_label(self):
        """A CaseStatus member is stored as its label."""
        from lawdesk.domain.entities import Case
        from lawdesk.domain.value_objects import CaseStatus
        case = Case(case_number="2024-001", title="T", status=CaseStatus.CLOSED)
        assert case.status == "Closed"
        assert case.is_closed

    def test_free_form_status_allowed(self):
        """Statuses outside the enum are kept as given."""
        from lawdesk.domain.entities import Case
        case = Case(case_number="2024-001", title="T", status="Appeal")
        assert case.status == "Appeal"


class TestTimeEntry:
    """Tests for TimeEntry entity."""

    def test_hours_from_float(self):
        """Float hours are stored as exact Decimal."""
        from lawdesk.domain.entities import TimeEntry
        entry = TimeEntry(entry_id="TE-1", hours=1.25)
        assert entry.hours == Decimal("1.25")

    def test_negative_hours_rejected(self):
        """Negative hours raise InvalidAmountError."""
        from lawdesk.domain.entities import TimeEntry
        from lawdesk.domain.errors import InvalidAmountError
        with pytest.raises(InvalidAmountError):
            TimeEntry(entry_id="TE-1", hours=-1)

    def test_amount_without_rate_is_zero(self):
        """An entry without a rate bills nothing."""
        from lawdesk.domain.entities import TimeEntry
        assert TimeEntry(entry_id="TE-1", hours=2).amount == Decimal("0")

    def test_amount_with_rate(self):
        """amount is hours times rate."""
        from lawdesk.domain.entities import TimeEntry
        entry = TimeEntry(entry_id="TE-1", hours=1.5, hourly_rate=Decimal("200"))
        assert entry.amount == Decimal("300.0")

    def test_hours_and_billed_are_read_only(self):
        """hours and billed are written only by the relationship manager."""
        from lawdesk.domain.entities import TimeEntry
        from lawdesk.domain.errors import ReadOnlyAttributeError
        entry = TimeEntry(entry_id="TE-1", hours=1)
        with pytest.raises(ReadOnlyAttributeError):
            entry.hours = Decimal("3")
        with pytest.raises(ReadOnlyAttributeError):
            entry.billed = True


class TestInvoice:
    """Tests for Invoice entity."""

    def test_due_date_defaults_to_thirty_days(self):
        """Without a due date, the invoice is due 30 days after issue."""
        from lawdesk.domain.entities import Invoice
        invoice = Invoice(invoice_number="INV-1", issue_date=date(2024, 1, 1))
        assert invoice.due_date == date(2024, 1, 31)

    def test_explicit_due_date_kept(self):
        """An explicit due date is not overridden."""
        from lawdesk.domain.entities import Invoice
        invoice = Invoice(invoice_number="INV-1", issue_date=date(2024, 1, 1), due_date=date(2024, 1, 15))
        assert invoice.due_date == date(2024, 1, 15)

    def test_status_parsed_from_label(self):
        """A status label becomes InvoiceStatus."""
        from lawdesk.domain.entities import Invoice
        from lawdesk.domain.value_objects import InvoiceStatus
        invoice = Invoice(invoice_number="INV-1", status="Partially Paid")
        assert invoice.status is InvoiceStatus.PARTIALLY_PAID

    def test_amount_paid_starts_at_zero(self):
        """amount_paid is derived and starts at zero."""
        from lawdesk.domain.entities import Invoice
        invoice = Invoice(invoice_number="INV-1", amount=Decimal("500"))
        assert invoice.amount_paid == Decimal("0")
        assert invoice.balance == Decimal("500")

    def test_amount_paid_is_read_only(self):
        """amount_paid cannot be assigned directly."""
        from lawdesk.domain.entities import Invoice
        from lawdesk.domain.errors import ReadOnlyAttributeError
        invoice = Invoice(invoice_number="INV-1", amount=Decimal("500"))
        with pytest.raises(ReadOnlyAttributeError) as exc_info:
            invoice.amount_paid = Decimal("100")
        assert exc_info.value.attribute == "amount_paid"

    def test_amount_paid_guarded_before_any_payment(self):
        """A new invoice holds amount_paid on the instance and refuses writes."""
        from lawdesk.domain.entities import Invoice
        from lawdesk.domain.errors import ReadOnlyAttributeError
        invoice = Invoice(invoice_number="INV-2")
        assert vars(invoice)["amount_paid"] == Decimal("0")
        with pytest.raises(ReadOnlyAttributeError):
            invoice.amount_paid = Decimal("999")
        assert invoice.amount_paid == Decimal("0")
        assert invoice.balance == Decimal("0")

    def test_amount_paid_not_a_constructor_argument(self):
        """amount_paid cannot be passed to the constructor."""
        from lawdesk.domain.entities import Invoice
        with pytest.raises(TypeError):
            Invoice(invoice_number="INV-1", amount_paid=Decimal("1"))

    def test_is_overdue(self):
        """An issued invoice with a balance past its due date is overdue."""
        from lawdesk.domain.entities import Invoice
        invoice = Invoice(
            invoice_number="INV-1",
            amount=Decimal("100"),
            issue_date=date(2024, 1, 1),
            status="Issued",
        )
        assert invoice.is_overdue(today=date(2024, 3, 1))
        assert not invoice.is_overdue(today=date(2024, 1, 10))

    def test_draft_and_cancelled_never_overdue(self):
        """Draft and cancelled invoices are never overdue."""
        from lawdesk.domain.entities import Invoice
        later = date.today() + timedelta(days=365)
        for status in ("Draft", "Cancelled"):
            invoice = Invoice(invoice_number="INV-1", amount=Decimal("100"), status=status)
            assert not invoice.is_overdue(today=later)


class TestPayment:
    """Tests for Payment entity."""

    def test_amount_must_be_positive(self):
        """Zero and negative payments are rejected."""
        from lawdesk.domain.entities import Payment
        from lawdesk.domain.errors import InvalidAmountError
        with pytest.raises(InvalidAmountError):
            Payment(payment_id="PAY-1", amount=Decimal("0"))
        with pytest.raises(InvalidAmountError):
            Payment(payment_id="PAY-1", amount=Decimal("-5"))

    def test_float_amount_rejected(self):
        """A float payment amount is rejected."""
        from lawdesk.domain.entities import Payment
        from lawdesk.domain.errors import InvalidAmountError
        with pytest.raises(InvalidAmountError):
            Payment(payment_id="PAY-1", amount=10.0)

    def test_amount_is_read_only(self):
        """Payment amount changes only through the relationship manager."""
        from lawdesk.domain.entities import Payment
        payment = Payment(payment_id="PAY-1", amount="10")
        with pytest.raises(AttributeError):
            payment.amount = Decimal("20")

    def test_display_text(self):
        """display_text shows method, amount, date and reference."""
        from lawdesk.domain.entities import Payment
        payment = Payment(
            payment_id="PAY-1",
            amount=Decimal("150.00"),
            payment_date=date(2024, 2, 1),
            payment_method="Check",
            reference="CHK-88",
        )
        assert payment.display_text == "Check payment of 150.00 on 2024-02-01 (Ref: CHK-88)"
