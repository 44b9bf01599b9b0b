"""
lawdesk Application Layer

Services that coordinate the domain graph:
- RelationshipManager: the only writer of associations
- AggregateRecalculator: derived amounts and totals
- GraphLoader: validated bulk load from stored records
"""
from .aggregates import AggregateRecalculator
from .loader import GraphLoader, GraphRecords
from .relationships import CascadeResult, RelationshipManager

__all__ = [
    'AggregateRecalculator',
    'CascadeResult',
    'GraphLoader',
    'GraphRecords',
    'RelationshipManager',
]
