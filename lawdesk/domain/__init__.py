# lawdesk Domain Layer
"""
Domain layer containing:
- Entities: Core business records with identity
- Value Objects: Immutable values (statuses, directions, money parsing)
- Graph: Arena storage plus adjacency indexes for associations
- Errors: The lawdesk exception hierarchy
"""
from .entities import (
    Attorney,
    Case,
    Client,
    Document,
    Entity,
    Event,
    Invoice,
    Payment,
    TimeEntry,
)
from .errors import (
    DuplicateKeyError,
    GraphLoadError,
    InvalidAmountError,
    LawdeskError,
    LinkedEntityError,
    ReadOnlyAttributeError,
    UnknownColumnError,
    ViewIndexError,
)
from .graph import EntityGraph
from .value_objects import (
    CaseStatus,
    ClientType,
    InvoiceStatus,
    SortDirection,
)

__all__ = [
    'Attorney',
    'Case',
    'Client',
    'Document',
    'Entity',
    'Event',
    'Invoice',
    'Payment',
    'TimeEntry',
    'EntityGraph',
    'CaseStatus',
    'ClientType',
    'InvoiceStatus',
    'SortDirection',
    'LawdeskError',
    'DuplicateKeyError',
    'GraphLoadError',
    'InvalidAmountError',
    'LinkedEntityError',
    'ReadOnlyAttributeError',
    'UnknownColumnError',
    'ViewIndexError',
]
