"""
Tests for the AggregateRecalculator.
"""
import pytest
from decimal import Decimal

from lawdesk.application.aggregates import AggregateRecalculator
from lawdesk.domain.entities import Case, Client, Document, Invoice, Payment, TimeEntry
from lawdesk.domain.graph import EntityGraph


@pytest.fixture
def graph():
    return EntityGraph()


@pytest.fixture
def recalculator(graph):
    return AggregateRecalculator(graph)


def _attach(graph, case, entry):
    graph.add(entry)
    graph.links.entry_case.set(entry.id, case.id)
    return entry


class TestCaseTotals:
    """Tests for case totals computed on read."""

    def test_no_entries_is_zero(self, graph, recalculator):
        """A case without time entries has zero hours."""
        case = graph.add(Case(case_number="2024-001", title="T"))
        assert recalculator.compute_case_total_hours(case) == Decimal("0")

    def test_sum_of_hours(self, graph, recalculator):
        """2.5 + 1.25 hours total 3.75 exactly."""
        case = graph.add(Case(case_number="2024-001", title="T"))
        _attach(graph, case, TimeEntry(entry_id="TE-1", hours=2.5))
        _attach(graph, case, TimeEntry(entry_id="TE-2", hours=1.25))
        assert recalculator.compute_case_total_hours(case) == Decimal("3.75")

    def test_total_amount_skips_unrated_entries(self, graph, recalculator):
        """Entries without a rate contribute nothing to the amount."""
        case = graph.add(Case(case_number="2024-001", title="T"))
        _attach(graph, case, TimeEntry(entry_id="TE-1", hours=2, hourly_rate=Decimal("150")))
        _attach(graph, case, TimeEntry(entry_id="TE-2", hours=3))
        assert recalculator.compute_case_total_amount(case) == Decimal("300")

    def test_totals_are_never_stale(self, graph, recalculator):
        """Totals reflect the graph at the time of the call."""
        case = graph.add(Case(case_number="2024-001", title="T"))
        entry = _attach(graph, case, TimeEntry(entry_id="TE-1", hours=1))
        assert recalculator.compute_case_total_hours(case) == Decimal("1")
        graph.links.entry_case.remove(entry.id)
        assert recalculator.compute_case_total_hours(case) == Decimal("0")


class TestInvoiceAmountPaid:
    """Tests for recalculate_invoice_amount_paid()."""

    def test_sums_payments(self, graph, recalculator):
        """amount_paid is written as the exact Decimal sum."""
        invoice = graph.add(Invoice(invoice_number="INV-1", amount=Decimal("100")))
        for key, amount in (("P1", "33.33"), ("P2", "33.33"), ("P3", "33.34")):
            payment = graph.add(Payment(payment_id=key, amount=Decimal(amount)))
            graph.links.payment_invoice.set(payment.id, invoice.id)
        assert recalculator.recalculate_invoice_amount_paid(invoice) == Decimal("100.00")
        assert invoice.amount_paid == Decimal("100.00")
        assert invoice.balance == Decimal("0")

    def test_no_payments(self, graph, recalculator):
        """An invoice without payments has nothing paid."""
        invoice = graph.add(Invoice(invoice_number="INV-1", amount=Decimal("100")))
        assert recalculator.recalculate_invoice_amount_paid(invoice) == Decimal("0")


class TestRecalculate:
    """Tests for the recalculate() entry point."""

    def test_invoice(self, graph, recalculator):
        """recalculate(invoice) returns the amount paid."""
        invoice = graph.add(Invoice(invoice_number="INV-1"))
        payment = graph.add(Payment(payment_id="P1", amount=Decimal("20")))
        graph.links.payment_invoice.set(payment.id, invoice.id)
        assert recalculator.recalculate(invoice) == Decimal("20")

    def test_client_recomputes_every_invoice(self, graph, recalculator):
        """recalculate(client) refreshes each invoice and returns the total."""
        client = graph.add(Client(client_id="CL-1", name="Ana"))
        invoices = [graph.add(Invoice(invoice_number=f"INV-{i}")) for i in range(2)]
        for i, invoice in enumerate(invoices):
            graph.links.invoice_client.set(invoice.id, client.id)
            payment = graph.add(Payment(payment_id=f"P{i}", amount=Decimal("10")))
            graph.links.payment_invoice.set(payment.id, invoice.id)
        assert recalculator.recalculate(client) == Decimal("20")
        assert all(invoice.amount_paid == Decimal("10") for invoice in invoices)

    def test_case_returns_hours(self, graph, recalculator):
        """recalculate(case) returns total hours."""
        case = graph.add(Case(case_number="2024-001", title="T"))
        _attach(graph, case, TimeEntry(entry_id="TE-1", hours=4))
        assert recalculator.recalculate(case) == Decimal("4")

    def test_other_entities(self, graph, recalculator):
        """Entities without aggregates return None."""
        document = graph.add(Document(document_id="D-1", title="Brief"))
        assert recalculator.recalculate(document) is None
        assert recalculator.recalculate(None) is None
