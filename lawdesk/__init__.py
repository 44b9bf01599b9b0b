"""
lawdesk: domain graph and table view projection for a legal practice desk.

Entities are registered in an EntityGraph and linked only through the
RelationshipManager, which keeps derived amounts current. Screens feed
row tuples into a TableView and export its snapshots.
"""
from lawdesk.application import (
    AggregateRecalculator,
    CascadeResult,
    GraphLoader,
    RelationshipManager,
)
from lawdesk.domain import (
    Attorney,
    Case,
    CaseStatus,
    Client,
    ClientType,
    Document,
    DuplicateKeyError,
    EntityGraph,
    Event,
    GraphLoadError,
    InvalidAmountError,
    Invoice,
    InvoiceStatus,
    LawdeskError,
    LinkedEntityError,
    Payment,
    ReadOnlyAttributeError,
    SortDirection,
    TimeEntry,
    UnknownColumnError,
    ViewIndexError,
)
from lawdesk.infrastructure.config import LawdeskConfig
from lawdesk.infrastructure.logging import configure_logging
from lawdesk.presentation import TableSnapshot, TableView

__version__ = "1.0.0"

__all__ = [
    'Attorney',
    'Case',
    'Client',
    'Document',
    'Event',
    'Invoice',
    'Payment',
    'TimeEntry',
    'CaseStatus',
    'ClientType',
    'InvoiceStatus',
    'SortDirection',
    'EntityGraph',
    'RelationshipManager',
    'AggregateRecalculator',
    'CascadeResult',
    'GraphLoader',
    'TableView',
    'TableSnapshot',
    'LawdeskConfig',
    'configure_logging',
    'LawdeskError',
    'DuplicateKeyError',
    'GraphLoadError',
    'InvalidAmountError',
    'LinkedEntityError',
    'ReadOnlyAttributeError',
    'UnknownColumnError',
    'ViewIndexError',
]
