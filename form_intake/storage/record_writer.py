# ==============================================
# RecordWriter
# ==============================================
#
# PURPOSE:
#   Append one projected record to the end of a sink and note which
#   column should be highlighted when it holds a High priority.
#
# HIGHLIGHT RULES:
#   After each append, the first cell whose value is one of the
#   priority labels (High / Medium / Low) gets a rule "highlight this
#   column when the text equals High". Rules are keyed by column
#   position only, so deleting rows (retention) never invalidates
#   them. They are only ever added, never replaced or pruned, so the
#   list grows by at most one entry per append for the life of the
#   writer.
#
#   Nothing is read back from the store after append_row: once the
#   row is written, append() cannot fail.
#
# ==============================================

import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

from form_intake.analysis.classifier import PRIORITY_LABELS
from .schema_manager import SchemaManager

HIGHLIGHT_WHEN_EQUALS = "High"
HIGHLIGHT_BACKGROUND = "#f4cccc"


@dataclass(frozen=True)
class HighlightRule:
    """Conditional highlight of one column (0-based) of a sink."""
    sink: str
    column_index: int
    when_equals: str = HIGHLIGHT_WHEN_EQUALS
    background: str = HIGHLIGHT_BACKGROUND

    def matches(self, value: Any) -> bool:
        return value == self.when_equals


class RecordWriter:
    """Appends records to sinks and accumulates highlight rules."""

    def __init__(self, store):
        self.store = store
        self._rules: Dict[str, List[HighlightRule]] = {}
        self._lock = threading.Lock()

    def append(self, sink: str, columns: Sequence[str], record: Mapping[str, Any]) -> List[Any]:
        """
        Project `record` onto `columns` and append it as the last row.

        Args:
            sink: Sink name
            columns: Column list returned by SchemaManager.reconcile()
            record: Flat record

        Returns:
            The row that was appended
        """
        row = SchemaManager.project(columns, record)
        column_index = next(
            (index for index, value in enumerate(row) if value in PRIORITY_LABELS),
            None
        )

        self.store.append_row(sink, row)

        if column_index is not None:
            with self._lock:
                self._rules.setdefault(sink, []).append(
                    HighlightRule(sink=sink, column_index=column_index)
                )
        return row

    def highlight_rules(self, sink: str) -> List[HighlightRule]:
        with self._lock:
            return list(self._rules.get(sink, []))
