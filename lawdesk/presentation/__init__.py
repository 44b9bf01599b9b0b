# lawdesk Presentation Layer
"""
Presentation layer containing:
- TableView: filter/sort/snapshot engine behind every table
- Screens: row view models and search modes per screen
"""
from .screens import (
    ATTORNEYS,
    CASES,
    CLIENTS,
    DOCUMENTS,
    EVENTS,
    INVOICES,
    PAYMENTS,
    SCREENS,
    AttorneyRow,
    CaseRow,
    ClientRow,
    DocumentRow,
    EventRow,
    InvoiceRow,
    PaymentRow,
    ScreenLayout,
    apply_event_category,
    apply_invoice_status,
    apply_search,
    populate,
    project_rows,
)
from .table_view import TableSnapshot, TableView

__all__ = [
    'TableSnapshot',
    'TableView',
    'ScreenLayout',
    'SCREENS',
    'CLIENTS',
    'ATTORNEYS',
    'CASES',
    'INVOICES',
    'PAYMENTS',
    'DOCUMENTS',
    'EVENTS',
    'ClientRow',
    'AttorneyRow',
    'CaseRow',
    'InvoiceRow',
    'PaymentRow',
    'DocumentRow',
    'EventRow',
    'apply_search',
    'apply_invoice_status',
    'apply_event_category',
    'populate',
    'project_rows',
]
