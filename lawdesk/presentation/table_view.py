"""
Table View Projection

Holds the backing dataset of one table (fixed-width row tuples) and
maintains the view: the filtered and sorted list of backing rows the
screen shows. Every query is in view-relative coordinates; callers never
see backing-store indices.

Any change to the rows, the filters or the sort rebuilds the view from
the full backing dataset.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from lawdesk.domain.errors import UnknownColumnError, ViewIndexError
from lawdesk.domain.value_objects import SortDirection
from lawdesk.infrastructure.config import LawdeskConfig
from lawdesk.infrastructure.logging import LogContext, timed_operation

logger = logging.getLogger(__name__)

Row = Tuple[Any, ...]
ColumnRef = Union[int, str]
RowPredicate = Callable[[Row], bool]


@dataclass(frozen=True)
class TableSnapshot:
    """
    Immutable copy of the rows visible at one moment.

    This is what export consumes.
    """
    columns: Tuple[str, ...]
    rows: Tuple[Row, ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def column_values(self, column: str) -> Tuple[Any, ...]:
        """All visible values of one column, in view order."""
        try:
            index = self.columns.index(column)
        except ValueError:
            raise UnknownColumnError(column) from None
        return tuple(row[index] for row in self.rows)

    def to_records(self) -> List[Dict[str, Any]]:
        """Rows as column-name -> value mappings."""
        return [dict(zip(self.columns, row)) for row in self.rows]


@dataclass(frozen=True)
class TextFilter:
    """
    Case-insensitive search over one or more columns.

    A row passes when the pattern is found in any of the columns, so a
    single-column filter is the one-element case of an OR-group.
    """
    columns: Tuple[int, ...]
    text: str
    pattern: re.Pattern

    def matches(self, row: Row) -> bool:
        return any(self.pattern.search(_cell_text(row[column])) for column in self.columns)


@dataclass(frozen=True)
class PredicateFilter:
    """Arbitrary row predicate supplied by the screen."""
    predicate: RowPredicate

    def matches(self, row: Row) -> bool:
        return bool(self.predicate(row))


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value)


def _sort_key(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


class TableView:
    """
    Filter/sort/snapshot engine behind every table on every screen.

    Filters combine with AND. Sorting is stable, so rows that compare equal
    keep their backing order; empty (None) cells always sort last.

    Usage:
        view = TableView(["Name", "Cases"])
        view.load([("Acme", 3), ("Globex", 1)])
        view.add_filter("Name", "acm")
        view.get_cell(0, "Cases")   # -> 3
    """

    def __init__(self, columns: Sequence[str], config: Optional[LawdeskConfig] = None):
        if not columns:
            raise ValueError("a table needs at least one column")
        self._columns: Tuple[str, ...] = tuple(columns)
        self._regex = (config or LawdeskConfig()).filter_regex
        self._rows: List[Row] = []
        self._filters: List[Union[TextFilter, PredicateFilter]] = []
        self._sort: Optional[Tuple[int, SortDirection]] = None
        self._view: List[int] = []
        self._context = LogContext(component="table_view", extra={"columns": len(self._columns)})

    # --- columns ---

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    @property
    def column_count(self) -> int:
        return len(self._columns)

    def column_index(self, column: ColumnRef) -> int:
        """
        Resolve a column given by index or by name.

        Raises:
            UnknownColumnError: If no such column exists
        """
        if isinstance(column, str):
            try:
                return self._columns.index(column)
            except ValueError:
                raise UnknownColumnError(column) from None
        if isinstance(column, int) and not isinstance(column, bool):
            if 0 <= column < len(self._columns):
                return column
        raise UnknownColumnError(column)

    # --- backing dataset ---

    @property
    def row_count(self) -> int:
        """Rows in the backing dataset, visible or not."""
        return len(self._rows)

    def load(self, rows: Iterable[Sequence[Any]]) -> None:
        """Replace the backing dataset."""
        self._rows = [self._check_row(row) for row in rows]
        self._rebuild("load")

    def add_row(self, row: Sequence[Any]) -> None:
        self._rows.append(self._check_row(row))
        self._rebuild("add_row")

    def replace_row(self, view_row: int, row: Sequence[Any]) -> None:
        """Overwrite the backing row currently shown at view_row."""
        model_index = self._model_index(view_row)
        self._rows[model_index] = self._check_row(row)
        self._rebuild("replace_row")

    def clear(self) -> None:
        """Drop all rows; filters and sort stay in place."""
        self._rows = []
        self._rebuild("clear")

    # --- filter state ---

    @property
    def filter_count(self) -> int:
        return len(self._filters)

    def add_filter(self, column: ColumnRef, text: Optional[str]) -> bool:
        """
        Add a case-insensitive search on one column.

        Empty text is ignored.

        Returns:
            True if a filter was added
        """
        return self.add_any_filter([column], text)

    def add_any_filter(self, columns: Sequence[ColumnRef], text: Optional[str]) -> bool:
        """
        Add one filter that passes a row when any of columns matches.

        This is the "search all columns" filter of the screens; it is a
        single conjunct of the AND like any other filter.

        Returns:
            True if a filter was added
        """
        if not text:
            return False
        indices = tuple(self.column_index(column) for column in columns)
        if not indices:
            raise ValueError("an OR-group filter needs at least one column")
        self._push_filter(TextFilter(indices, text, self._compile(text)), "add_filter")
        return True

    def add_predicate(self, predicate: RowPredicate) -> None:
        """Add an arbitrary row predicate as one conjunct."""
        self._push_filter(PredicateFilter(predicate), "add_predicate")

    def clear_filters(self) -> None:
        self._filters.clear()
        self._rebuild("clear_filters")

    # --- sort state ---

    @property
    def sort_state(self) -> Optional[Tuple[str, SortDirection]]:
        """(column name, direction), or None when unsorted."""
        if self._sort is None:
            return None
        column, direction = self._sort
        return self._columns[column], direction

    def set_sort(
        self,
        column: ColumnRef,
        direction: Union[SortDirection, str] = SortDirection.ASCENDING,
    ) -> None:
        self._sort = (self.column_index(column), SortDirection(direction))
        self._rebuild("set_sort")

    def clear_sort(self) -> None:
        self._sort = None
        self._rebuild("clear_sort")

    # --- view queries ---

    def visible_row_count(self) -> int:
        return len(self._view)

    def get_cell(self, view_row: int, column: ColumnRef) -> Any:
        """
        Value at a view-relative row.

        Raises:
            ViewIndexError: If view_row is outside the visible range
            UnknownColumnError: If column does not exist
        """
        column_index = self.column_index(column)
        return self._rows[self._model_index(view_row)][column_index]

    def get_row(self, view_row: int) -> Row:
        return self._rows[self._model_index(view_row)]

    def visible_rows(self) -> Tuple[Row, ...]:
        return tuple(self._rows[index] for index in self._view)

    def snapshot(self) -> TableSnapshot:
        """Immutable copy of exactly the rows visible now."""
        return TableSnapshot(columns=self._columns, rows=self.visible_rows())

    # --- internals ---

    def _model_index(self, view_row: int) -> int:
        if isinstance(view_row, bool) or not isinstance(view_row, int):
            raise TypeError(f"view row must be an int, got {type(view_row).__name__}")
        if not 0 <= view_row < len(self._view):
            raise ViewIndexError(view_row, len(self._view))
        return self._view[view_row]

    def _check_row(self, row: Sequence[Any]) -> Row:
        row = tuple(row)
        if len(row) != len(self._columns):
            raise ValueError(
                f"row has {len(row)} cells, table has {len(self._columns)} columns"
            )
        return row

    def _compile(self, text: str) -> re.Pattern:
        if self._regex:
            try:
                return re.compile(text, re.IGNORECASE)
            except re.error:
                logger.debug("Filter text %r is not a valid pattern, matching literally", text)
        return re.compile(re.escape(text), re.IGNORECASE)

    def _push_filter(self, row_filter: Union[TextFilter, PredicateFilter], operation: str) -> None:
        """Add row_filter, withdrawing it again if the rebuild fails."""
        self._filters.append(row_filter)
        try:
            self._rebuild(operation)
        except Exception:
            self._filters.pop()
            raise

    def _rebuild(self, operation: str) -> None:
        with timed_operation(logger, f"rebuild_view:{operation}", self._context):
            rows = list(self._rows)
            indices = [
                index for index, row in enumerate(rows)
                if all(row_filter.matches(row) for row_filter in self._filters)
            ]
            if self._sort is not None:
                indices = self._sorted(indices, rows)
            self._view = indices

    def _sorted(self, indices: List[int], rows: List[Row]) -> List[int]:
        column, direction = self._sort
        present = [index for index in indices if rows[index][column] is not None]
        missing = [index for index in indices if rows[index][column] is None]
        try:
            ordered = sorted(
                present,
                key=lambda index: _sort_key(rows[index][column]),
                reverse=direction.reverse,
            )
        except TypeError:
            # mixed cell types: compare their text
            ordered = sorted(
                present,
                key=lambda index: _cell_text(rows[index][column]).casefold(),
                reverse=direction.reverse,
            )
        return ordered + missing
