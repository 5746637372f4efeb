# ==============================================
# TabularStore (contract)
# ==============================================
#
# PURPOSE:
#   The only way the pipeline touches persistent data. A store holds
#   named sinks; each sink is a header row plus an ordered list of
#   data rows, much like a spreadsheet tab.
#
# CONVENTIONS:
# ------------
#   - Row indices are 0-based and count data rows only (the header
#     is not a row).
#   - get_all_rows() pads every row to the current header length
#     with "" so len(row) == len(headers) always holds for callers.
#   - Backends translate driver failures into TransientIOError.
#
# METHODS:
# --------
#   - get_headers(sink) -> list[str]
#   - set_headers(sink, headers) -> None
#   - get_all_rows(sink) -> list[list]
#   - append_row(sink, values) -> None
#   - delete_rows(sink, start_index, count) -> None
#   - clear_sink(sink) -> None            (headers and rows)
#   - create_sink(sink) -> None
#   - sink_exists(sink) -> bool
#   - get_sink_reference_url(sink) -> str
#   - get_or_create_sink(sink) -> bool    (True when created)
#   - close() -> None
#
# ==============================================

from abc import ABC, abstractmethod
from typing import Any, List, Sequence


class TabularStore(ABC):
    """Abstract tabular storage backend."""

    @abstractmethod
    def get_headers(self, sink: str) -> List[str]:
        """Return the header row of `sink` (possibly empty)."""

    @abstractmethod
    def set_headers(self, sink: str, headers: Sequence[str]) -> None:
        """Replace the header row of `sink`."""

    @abstractmethod
    def get_all_rows(self, sink: str) -> List[List[Any]]:
        """Return every data row, oldest first, padded to the header length."""

    @abstractmethod
    def append_row(self, sink: str, values: Sequence[Any]) -> None:
        """Append one row after the last existing row."""

    @abstractmethod
    def delete_rows(self, sink: str, start_index: int, count: int) -> None:
        """Delete `count` rows starting at 0-based data row `start_index`."""

    @abstractmethod
    def clear_sink(self, sink: str) -> None:
        """Remove the header and every row; the sink itself remains."""

    @abstractmethod
    def create_sink(self, sink: str) -> None:
        """Create an empty sink. Creating an existing sink is a no-op."""

    @abstractmethod
    def sink_exists(self, sink: str) -> bool:
        """True if `sink` has been created."""

    @abstractmethod
    def get_sink_reference_url(self, sink: str) -> str:
        """A human-usable locator for `sink`, quoted in notifications."""

    def get_or_create_sink(self, sink: str) -> bool:
        """
        Make sure `sink` exists.

        Returns:
            True if the sink was created by this call
        """
        if self.sink_exists(sink):
            return False
        self.create_sink(sink)
        return True

    def close(self) -> None:
        """Release connections. Stores without connections need not override."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def pad_row(row: Sequence[Any], width: int) -> List[Any]:
    """Extend `row` with "" up to `width` cells; never truncates."""
    padded = list(row)
    if len(padded) < width:
        padded.extend([""] * (width - len(padded)))
    return padded


def check_delete_range(start_index: int, count: int, row_count: int) -> None:
    """
    Validate a delete_rows() range.

    Raises:
        IndexError: If the range falls outside the existing rows
    """
    if start_index < 0 or count < 0 or start_index + count > row_count:
        raise IndexError(
            f"Cannot delete rows [{start_index}, {start_index + count}) "
            f"from a sink with {row_count} rows"
        )
