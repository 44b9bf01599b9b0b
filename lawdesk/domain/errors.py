"""
Domain Error Types

Custom exceptions for the lawdesk core.
Only genuine caller/programmer errors are raised; stale references in
relationship operations are reported through boolean results instead.
"""
from typing import Optional


class LawdeskError(Exception):
    """Base exception for all lawdesk errors."""
    pass


class InvalidAmountError(LawdeskError, ValueError):
    """
    A monetary amount or an hours value is malformed.

    Raised at entity construction (or by a setter operation) when the value
    is a binary float, not a number, not finite, or violates its sign rule.
    """
    def __init__(self, message: str, value: object = None):
        super().__init__(message)
        self.value = value


class DuplicateKeyError(LawdeskError):
    """
    Two entities of the same type collide inside one graph.

    Raised when registering an entity whose id or business key is
    already taken by another entity of the same type.
    """
    def __init__(self, entity_type: str, key: str):
        super().__init__(f"{entity_type} with key {key!r} already exists")
        self.entity_type = entity_type
        self.key = key


class LinkedEntityError(LawdeskError, ValueError):
    """An entity still has associations and cannot leave the graph yet."""

    def __init__(self, entity_type: str, key: str):
        super().__init__(f"{entity_type} {key!r} still has associations")
        self.entity_type = entity_type
        self.key = key


class ReadOnlyAttributeError(LawdeskError, AttributeError):
    """A guarded attribute was assigned directly instead of through the graph."""

    def __init__(self, entity_type: str, attribute: str):
        super().__init__(f"{entity_type}.{attribute} is read-only")
        self.entity_type = entity_type
        self.attribute = attribute


class GraphLoadError(LawdeskError):
    """
    Loaded data violates a graph invariant.

    Surfaced to the data-access collaborator; the loader never repairs
    the offending record.
    """
    def __init__(self, message: str, record_type: str = "", key: Optional[str] = None):
        super().__init__(message)
        self.record_type = record_type
        self.key = key


class ViewIndexError(LawdeskError, IndexError):
    """A view-relative row index is outside the visible range."""

    def __init__(self, index: int, row_count: int):
        super().__init__(
            f"view row {index} out of range (visible rows: {row_count})"
        )
        self.index = index
        self.row_count = row_count


class UnknownColumnError(LawdeskError, KeyError):
    """A column index or name does not exist in the table."""

    def __init__(self, column: object):
        super().__init__(column)
        self.column = column

    def __str__(self) -> str:
        return f"unknown column: {self.column!r}"
