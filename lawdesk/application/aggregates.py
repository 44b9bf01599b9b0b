"""
Aggregate Recalculator

Keeps derived numeric fields correct. Invoice.amount_paid is stored and
rewritten here; case totals are computed on every read so they can never
go stale.
"""
import logging
from decimal import Decimal
from typing import Optional

from lawdesk.domain.entities import Case, Client, Entity, Invoice, assign
from lawdesk.domain.graph import EntityGraph
from lawdesk.domain.value_objects import ZERO
from lawdesk.infrastructure.logging import LogContext, log_extra

logger = logging.getLogger(__name__)

_CONTEXT = LogContext(component="aggregates")


class AggregateRecalculator:
    """
    Derives amounts and totals from the current state of an EntityGraph.

    All arithmetic is Decimal; nothing here raises for empty collections.
    """

    def __init__(self, graph: EntityGraph):
        self._graph = graph

    @property
    def graph(self) -> EntityGraph:
        return self._graph

    def recalculate_invoice_amount_paid(self, invoice: Invoice) -> Decimal:
        """
        Sum the invoice's current payments into invoice.amount_paid.

        Returns:
            The new amount paid
        """
        total = sum((payment.amount for payment in self._graph.payments_of(invoice)), ZERO)
        assign(invoice, "amount_paid", total)
        logger.debug(
            "Invoice %s amount paid is now %s",
            invoice.invoice_number,
            total,
            extra=log_extra(_CONTEXT.with_operation("recalculate_invoice_amount_paid")),
        )
        return total

    def compute_case_total_hours(self, case: Case) -> Decimal:
        """Total hours over the case's time entries; 0 for none."""
        return sum((entry.hours for entry in self._graph.time_entries_of(case)), ZERO)

    def compute_case_total_amount(self, case: Case) -> Decimal:
        """Total billable amount; entries without a rate contribute 0."""
        return sum((entry.amount for entry in self._graph.time_entries_of(case)), ZERO)

    def recalculate(self, entity: Optional[Entity]) -> Optional[Decimal]:
        """
        Explicit recalculation for bulk-load scenarios.

        Invoice: recompute and return amount paid.
        Client: recompute every invoice of the client, return the total paid.
        Case: return total hours.
        Anything else: None.
        """
        if isinstance(entity, Invoice):
            return self.recalculate_invoice_amount_paid(entity)
        if isinstance(entity, Client):
            return sum(
                (self.recalculate_invoice_amount_paid(invoice)
                 for invoice in self._graph.invoices_of(entity)),
                ZERO,
            )
        if isinstance(entity, Case):
            return self.compute_case_total_hours(entity)
        return None
