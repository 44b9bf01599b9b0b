"""
Relationship Manager

The single point of mutation for every association in an EntityGraph.
Each operation updates both sides of a link in one call, then asks the
AggregateRecalculator to refresh whatever derived values depend on it.

Operations on None, unregistered or foreign entities (stale UI selections)
are no-ops that return False; they never raise.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional, Tuple

from lawdesk.domain.entities import (
    Attorney,
    Case,
    Client,
    Document,
    Entity,
    Event,
    Invoice,
    Payment,
    TimeEntry,
    assign,
)
from lawdesk.domain.graph import EntityGraph
from lawdesk.domain.value_objects import ZERO, to_hours, to_money
from lawdesk.infrastructure.logging import LogContext, log_extra

from .aggregates import AggregateRecalculator

logger = logging.getLogger(__name__)

_CONTEXT = LogContext(component="relationships")


@dataclass(frozen=True)
class CascadeResult:
    """
    Outcome of a cascading delete.

    Attributes:
        success: False when the entity was None or not in the graph
        deleted: The removed entity
        affected: Counterpart entities whose associations changed,
            so the caller can refresh the screens showing them
    """
    success: bool
    deleted: Optional[Entity] = None
    affected: Tuple[Entity, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.success


class RelationshipManager:
    """
    Links, unlinks and deletes entities of one graph.
    """

    def __init__(self, graph: EntityGraph, recalculator: Optional[AggregateRecalculator] = None):
        self._graph = graph
        self._recalculator = recalculator or AggregateRecalculator(graph)
        self._links = graph.links

    @property
    def graph(self) -> EntityGraph:
        return self._graph

    @property
    def recalculator(self) -> AggregateRecalculator:
        return self._recalculator

    # --- Case <-> Client ---

    def link_case_to_client(self, case: Case, client: Client) -> bool:
        """Move the case into client's collection (idempotent)."""
        if not self._valid(case, Case) or not self._valid(client, Client):
            return self._stale("link_case_to_client", case, client)
        previous = self._links.case_client.set(case.id, client.id)
        self._log("link_case_to_client", "Case %s linked to client %s (was %s)",
                  case.case_number, client.client_id, previous)
        return True

    def unlink_case_from_client(self, case: Case, client: Optional[Client] = None) -> bool:
        """
        Remove the case from its client.

        When client is given, the case must currently belong to it.
        """
        if not self._valid(case, Case) or (client is not None and not self._valid(client, Client)):
            return self._stale("unlink_case_from_client", case, client)
        current = self._links.case_client.parent(case.id)
        if current is None or (client is not None and client.id != current):
            return self._stale("unlink_case_from_client", case, client)
        self._links.case_client.remove(case.id)
        self._log("unlink_case_from_client", "Case %s unlinked from its client", case.case_number)
        return True

    # --- Case <-> Attorney ---

    def link_attorney_to_case(self, attorney: Attorney, case: Case) -> bool:
        """Assign attorney to case; set semantics on both sides."""
        if not self._valid(attorney, Attorney) or not self._valid(case, Case):
            return self._stale("link_attorney_to_case", attorney, case)
        if self._links.case_attorneys.add(case.id, attorney.id):
            self._log("link_attorney_to_case", "Attorney %s assigned to case %s",
                      attorney.attorney_id, case.case_number)
        return True

    def unlink_attorney_from_case(self, attorney: Attorney, case: Case) -> bool:
        if not self._valid(attorney, Attorney) or not self._valid(case, Case):
            return self._stale("unlink_attorney_from_case", attorney, case)
        if not self._links.case_attorneys.remove(case.id, attorney.id):
            return self._stale("unlink_attorney_from_case", attorney, case)
        self._log("unlink_attorney_from_case", "Attorney %s removed from case %s",
                  attorney.attorney_id, case.case_number)
        return True

    # --- Case children ---

    def attach_time_entry(self, case: Case, entry: TimeEntry) -> bool:
        """Append entry to the case, moving it out of any previous case."""
        previous = self._attach(case, entry, TimeEntry, "attach_time_entry")
        if previous is False:
            return False
        self._time_entries_changed(case)
        if previous is not None:
            self._time_entries_changed(self._graph.get(Case, previous))
        return True

    def attach_document(self, case: Case, document: Document) -> bool:
        return self._attach(case, document, Document, "attach_document") is not False

    def attach_event(self, case: Case, event: Event) -> bool:
        return self._attach(case, event, Event, "attach_event") is not False

    def detach_child(self, case: Case, child: Entity) -> bool:
        """
        Detach a time entry, document or event from the case owning it.

        The child stays registered in the graph with no owning case.
        """
        index = self._links.child_index(child)
        if index is None or not self._valid(case, Case) or child not in self._graph:
            return self._stale("detach_child", case, child)
        if index.parent(child.id) != case.id:
            return self._stale("detach_child", case, child)
        index.remove(child.id)
        self._log("detach_child", "%s %s detached from case %s",
                  type(child).__name__, child.business_key, case.case_number)
        if isinstance(child, TimeEntry):
            self._time_entries_changed(case)
        return True

    def assign_time_entry_attorney(self, entry: TimeEntry, attorney: Attorney) -> bool:
        """
        Record which attorney logged the entry.

        An entry without its own rate takes the attorney's hourly rate.
        """
        if not self._valid(entry, TimeEntry) or not self._valid(attorney, Attorney):
            return self._stale("assign_time_entry_attorney", entry, attorney)
        self._links.entry_attorney.set(entry.id, attorney.id)
        if entry.hourly_rate is None and attorney.hourly_rate > ZERO:
            entry.hourly_rate = attorney.hourly_rate
        self._log("assign_time_entry_attorney", "Time entry %s logged by %s",
                  entry.entry_id, attorney.attorney_id)
        return True

    def set_time_entry_hours(self, entry: TimeEntry, hours: Any) -> bool:
        """
        Change an entry's hours.

        Raises:
            InvalidAmountError: If hours is malformed or negative
        """
        value = to_hours(hours)
        if not self._valid(entry, TimeEntry):
            return self._stale("set_time_entry_hours", entry)
        assign(entry, "hours", value)
        self._time_entries_changed(self._graph.case_of(entry))
        return True

    def delete_case(self, case: Case) -> CascadeResult:
        """
        Remove a case from the graph.

        The case is unlinked from its client and every attorney, its
        time entries, documents and events are detached (not deleted), and
        invoices raised for it lose their case reference.
        """
        if not self._valid(case, Case):
            self._stale("delete_case", case)
            return CascadeResult(success=False)

        client = self._graph.client_of(case)
        attorneys = self._graph.attorneys_of(case)
        children = (
            self._graph.time_entries_of(case)
            + self._graph.documents_of(case)
            + self._graph.events_of(case)
        )
        invoices = self._graph.invoices_of(case)

        self._links.case_client.remove(case.id)
        self._links.case_attorneys.drop_left(case.id)
        self._links.entry_case.drop_parent(case.id)
        self._links.document_case.drop_parent(case.id)
        self._links.event_case.drop_parent(case.id)
        self._links.invoice_case.drop_parent(case.id)
        self._graph.deregister(case)

        affected = ((client,) if client is not None else ()) + attorneys + children + invoices
        self._log("delete_case", "Case %s deleted, %d related entities detached",
                  case.case_number, len(affected))
        return CascadeResult(success=True, deleted=case, affected=affected)

    # --- Invoice <-> Client / Case ---

    def link_invoice_to_client(self, invoice: Invoice, client: Client) -> bool:
        """Bill the invoice to client; its payments follow the new client."""
        if not self._valid(invoice, Invoice) or not self._valid(client, Client):
            return self._stale("link_invoice_to_client", invoice, client)
        self._links.invoice_client.set(invoice.id, client.id)
        self._log("link_invoice_to_client", "Invoice %s billed to client %s",
                  invoice.invoice_number, client.client_id)
        return True

    def link_invoice_to_case(self, invoice: Invoice, case: Case) -> bool:
        if not self._valid(invoice, Invoice) or not self._valid(case, Case):
            return self._stale("link_invoice_to_case", invoice, case)
        self._links.invoice_case.set(invoice.id, case.id)
        self._log("link_invoice_to_case", "Invoice %s raised for case %s",
                  invoice.invoice_number, case.case_number)
        return True

    # --- Invoice <-> Payment ---

    def add_payment(self, invoice: Invoice, payment: Payment) -> bool:
        """Record payment against invoice, recomputing amounts paid."""
        return self._move_payment(payment, invoice, "add_payment")

    def reassign_payment(self, payment: Payment, invoice: Invoice) -> bool:
        """
        Move payment to another invoice.

        The old invoice is recomputed without it, the payment's client
        becomes the new invoice's client, and the new invoice is recomputed.
        """
        return self._move_payment(payment, invoice, "reassign_payment")

    def remove_payment(self, payment: Payment, invoice: Optional[Invoice] = None) -> bool:
        """
        Orphan a payment; it stays registered with no invoice and no client.

        When invoice is given, the payment must currently belong to it.
        """
        if not self._valid(payment, Payment) or (
            invoice is not None and not self._valid(invoice, Invoice)
        ):
            return self._stale("remove_payment", payment, invoice)
        current = self._links.payment_invoice.parent(payment.id)
        if current is None or (invoice is not None and invoice.id != current):
            return self._stale("remove_payment", payment, invoice)
        self._links.payment_invoice.remove(payment.id)
        old_invoice = self._graph.get(Invoice, current)
        self._recalculator.recalculate_invoice_amount_paid(old_invoice)
        self._log("remove_payment", "Payment %s removed from invoice %s",
                  payment.payment_id, old_invoice.invoice_number)
        return True

    def set_payment_amount(self, payment: Payment, amount: Any) -> bool:
        """
        Change a payment's amount and recompute its invoice.

        Raises:
            InvalidAmountError: If amount is malformed or not positive
        """
        value: Decimal = to_money(amount, "amount", positive=True)
        if not self._valid(payment, Payment):
            return self._stale("set_payment_amount", payment)
        assign(payment, "amount", value)
        invoice = self._graph.invoice_of(payment)
        if invoice is not None:
            self._recalculator.recalculate_invoice_amount_paid(invoice)
        self._log("set_payment_amount", "Payment %s amount set to %s", payment.payment_id, value)
        return True

    def delete_payment(self, payment: Payment) -> CascadeResult:
        if not self._valid(payment, Payment):
            self._stale("delete_payment", payment)
            return CascadeResult(success=False)
        invoice = self._graph.invoice_of(payment)
        if invoice is not None:
            self.remove_payment(payment)
        self._graph.deregister(payment)
        self._log("delete_payment", "Payment %s deleted", payment.payment_id)
        return CascadeResult(
            success=True,
            deleted=payment,
            affected=(invoice,) if invoice is not None else (),
        )

    def delete_invoice(self, invoice: Invoice) -> CascadeResult:
        """
        Remove an invoice.

        Its payments are orphaned (no invoice, no client) and the time
        entries billed on it become unbilled.
        """
        if not self._valid(invoice, Invoice):
            self._stale("delete_invoice", invoice)
            return CascadeResult(success=False)

        client = self._graph.client_of(invoice)
        case = self._graph.case_of(invoice)
        payments = self._graph.payments_of(invoice)
        entries = self._graph.time_entries_of(invoice)

        self._links.payment_invoice.drop_parent(invoice.id)
        self._links.entry_invoice.drop_parent(invoice.id)
        for entry in entries:
            assign(entry, "billed", False)
        self._links.invoice_client.remove(invoice.id)
        self._links.invoice_case.remove(invoice.id)
        self._graph.deregister(invoice)

        counterparts = tuple(e for e in (client, case) if e is not None)
        affected = counterparts + payments + entries
        self._log("delete_invoice", "Invoice %s deleted, %d payments orphaned",
                  invoice.invoice_number, len(payments))
        return CascadeResult(success=True, deleted=invoice, affected=affected)

    # --- Billing ---

    def bill_time_entries(self, invoice: Invoice, entries: Iterable[TimeEntry]) -> int:
        """
        Mark time entries as billed on invoice.

        Entries that are stale or already billed on another invoice are
        skipped.

        Returns:
            Number of entries billed
        """
        if not self._valid(invoice, Invoice):
            self._stale("bill_time_entries", invoice)
            return 0
        billed = 0
        for entry in entries:
            if not self._valid(entry, TimeEntry):
                continue
            current = self._links.entry_invoice.parent(entry.id)
            if current is not None and current != invoice.id:
                continue
            self._links.entry_invoice.set(entry.id, invoice.id)
            assign(entry, "billed", True)
            billed += 1
        self._log("bill_time_entries", "%d time entries billed on invoice %s",
                  billed, invoice.invoice_number)
        return billed

    def unbill_time_entry(self, entry: TimeEntry) -> bool:
        if not self._valid(entry, TimeEntry) or self._links.entry_invoice.parent(entry.id) is None:
            return self._stale("unbill_time_entry", entry)
        self._links.entry_invoice.remove(entry.id)
        assign(entry, "billed", False)
        return True

    # --- Other cascades ---

    def delete_child(self, child: Entity) -> CascadeResult:
        """Delete a time entry, document or event, detaching it first."""
        if self._links.child_index(child) is None or child not in self._graph:
            self._stale("delete_child", child)
            return CascadeResult(success=False)
        case = self._graph.case_of(child)
        if case is not None:
            self.detach_child(case, child)
        affected: Tuple[Entity, ...] = (case,) if case is not None else ()
        if isinstance(child, TimeEntry):
            invoice = self._graph.invoice_of(child)
            self._links.entry_attorney.remove(child.id)
            self._links.entry_invoice.remove(child.id)
            if invoice is not None:
                affected += (invoice,)
        self._graph.deregister(child)
        return CascadeResult(success=True, deleted=child, affected=affected)

    def delete_client(self, client: Client) -> CascadeResult:
        """
        Remove a client; its cases and invoices are left without a client.
        """
        if not self._valid(client, Client):
            self._stale("delete_client", client)
            return CascadeResult(success=False)
        cases = self._graph.cases_of(client)
        invoices = self._graph.invoices_of(client)
        self._links.case_client.drop_parent(client.id)
        self._links.invoice_client.drop_parent(client.id)
        self._graph.deregister(client)
        self._log("delete_client", "Client %s deleted", client.client_id)
        return CascadeResult(success=True, deleted=client, affected=cases + invoices)

    def delete_attorney(self, attorney: Attorney) -> CascadeResult:
        """Remove an attorney from every case and time entry, then the graph."""
        if not self._valid(attorney, Attorney):
            self._stale("delete_attorney", attorney)
            return CascadeResult(success=False)
        cases = self._graph.cases_of(attorney)
        entries = self._graph.time_entries_of(attorney)
        self._links.case_attorneys.drop_right(attorney.id)
        self._links.entry_attorney.drop_parent(attorney.id)
        self._graph.deregister(attorney)
        self._log("delete_attorney", "Attorney %s deleted", attorney.attorney_id)
        return CascadeResult(success=True, deleted=attorney, affected=cases + entries)

    # --- helpers ---

    def _valid(self, entity: Any, entity_type: type) -> bool:
        return isinstance(entity, entity_type) and entity in self._graph

    def _attach(self, case: Case, child: Entity, child_type: type, operation: str):
        """Returns False when stale, else the previous owner id (or None)."""
        if not self._valid(case, Case) or not self._valid(child, child_type):
            return self._stale(operation, case, child)
        previous = self._links.child_index(child).set(child.id, case.id)
        self._log(operation, "%s %s attached to case %s",
                  child_type.__name__, child.business_key, case.case_number)
        return previous if previous != case.id else None

    def _move_payment(self, payment: Payment, invoice: Invoice, operation: str) -> bool:
        if not self._valid(payment, Payment) or not self._valid(invoice, Invoice):
            return self._stale(operation, payment, invoice)
        previous = self._links.payment_invoice.set(payment.id, invoice.id)
        if previous is not None and previous != invoice.id:
            self._recalculator.recalculate_invoice_amount_paid(self._graph.get(Invoice, previous))
        self._recalculator.recalculate_invoice_amount_paid(invoice)
        self._log(operation, "Payment %s recorded on invoice %s",
                  payment.payment_id, invoice.invoice_number)
        return True

    def _time_entries_changed(self, case: Optional[Case]) -> None:
        if case is None:
            return
        total = self._recalculator.recalculate(case)
        logger.debug(
            "Case %s total hours now %s",
            case.case_number,
            total,
            extra=log_extra(_CONTEXT.with_operation("time_entries_changed")),
        )

    def _log(self, operation: str, message: str, *args: Any) -> None:
        logger.debug(message, *args, extra=log_extra(_CONTEXT.with_operation(operation)))

    def _stale(self, operation: str, *entities: Any) -> bool:
        logger.info(
            "Ignored %s on stale or foreign reference",
            operation,
            extra=log_extra(_CONTEXT.with_operation(operation).with_extra(
                entities=[_describe(entity) for entity in entities],
            )),
        )
        return False


def _describe(entity: Any) -> str:
    if isinstance(entity, Entity):
        return f"{type(entity).__name__}:{entity.business_key}"
    return repr(entity)
