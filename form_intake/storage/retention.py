# ==============================================
# RetentionPruner
# ==============================================
#
# PURPOSE:
#   Delete rows whose timestamp is older than the retention period.
#
# RULES:
# ------
#   1. The timestamp column is the first header containing
#      "timestamp" (case-insensitive). No such header → nothing to do.
#   2. cutoff = now - retention_days. Rows strictly older are stale.
#   3. Empty or unparseable timestamps are kept.
#   4. Stale rows need not be contiguous: they are grouped into runs
#      and the runs are deleted from the bottom up, so the indices of
#      runs not yet deleted stay valid.
#
# ==============================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from form_intake.normalization.value_parser import ValueParser

logger = logging.getLogger(__name__)

TIMESTAMP_MARKER = "timestamp"


def find_timestamp_column(headers: Sequence[str]) -> Optional[int]:
    """Index of the first header containing "timestamp", or None."""
    for index, header in enumerate(headers):
        if TIMESTAMP_MARKER in str(header).lower():
            return index
    return None


def group_runs(indices: Sequence[int]) -> List[Tuple[int, int]]:
    """
    Collapse sorted indices into (start, count) runs.

    group_runs([0, 1, 2, 5, 7, 8]) == [(0, 3), (5, 1), (7, 2)]
    """
    runs: List[Tuple[int, int]] = []
    for index in indices:
        if runs and runs[-1][0] + runs[-1][1] == index:
            start, count = runs[-1]
            runs[-1] = (start, count + 1)
        else:
            runs.append((index, 1))
    return runs


class RetentionPruner:
    """Removes stale rows from a sink."""

    def __init__(self, store, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def cutoff(self, retention_days: int) -> datetime:
        return self._clock() - timedelta(days=retention_days)

    def stale_rows(self, sink: str, retention_days: int) -> List[int]:
        """
        Find the 0-based indices of rows older than the cutoff.

        Returns:
            Sorted list of stale row indices (empty if there is no timestamp column)
        """
        headers = self.store.get_headers(sink)
        column = find_timestamp_column(headers)
        if column is None:
            return []

        cutoff = self.cutoff(retention_days)
        stale = []
        for index, row in enumerate(self.store.get_all_rows(sink)):
            value = row[column] if column < len(row) else ""
            moment = ValueParser.parse_timestamp(value)
            if moment is not None and moment < cutoff:
                stale.append(index)
        return stale

    def prune(self, sink: str, retention_days: int) -> int:
        """
        Delete every row older than `retention_days`.

        Args:
            sink: Sink name
            retention_days: Retention period in days

        Returns:
            Number of rows deleted
        """
        stale = self.stale_rows(sink, retention_days)
        if not stale:
            return 0

        for start, count in reversed(group_runs(stale)):
            self.store.delete_rows(sink, start, count)

        logger.info("Pruned %d row(s) older than %d day(s) from '%s'", len(stale), retention_days, sink)
        return len(stale)
