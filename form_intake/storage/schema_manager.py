# ==============================================
# SchemaManager
# ==============================================
#
# PURPOSE:
#   Keep a sink's header row in step with the keys of incoming
#   records, then lay each record out in header order.
#
# WHY THIS CLASS EXISTS:
#   Every form variant can submit a different key set and nothing
#   is declared up front. Unseen keys always grow the header; a key
#   is never rejected and a column is never moved or dropped, so
#   rows written earlier stay aligned.
#
# RULES:
# ------
#   1. New keys are appended after the existing headers, in the order
#      they first appear in the record.
#   2. Keys repeated within one record are added once.
#   3. The header is only written when something was added.
#   4. Projection fills absent (or None) values with "".
#
# CALLERS MUST hold the sink's lock around reconcile() + append:
# the header update is a read-modify-write of the whole row.
#
# ==============================================

import logging
from typing import Any, Iterable, List, Mapping, Sequence

logger = logging.getLogger(__name__)

EMPTY_CELL = ""


class SchemaManager:
    """Grows sink headers and projects records onto them."""

    def __init__(self, store):
        self.store = store

    def reconcile(self, sink: str, incoming_keys: Iterable[str]) -> List[str]:
        """
        Extend the sink's header with any keys it does not have yet.

        Args:
            sink: Sink name
            incoming_keys: Keys of the record about to be written

        Returns:
            The full ordered column list after reconciliation
        """
        existing = self.store.get_headers(sink)
        known = set(existing)
        new_keys = []
        for key in incoming_keys:
            if key not in known:
                known.add(key)
                new_keys.append(key)

        if not new_keys:
            return list(existing)

        columns = list(existing) + new_keys
        self.store.set_headers(sink, columns)
        logger.info("Sink '%s' gained %d column(s): %s", sink, len(new_keys), ", ".join(new_keys))
        return columns

    @staticmethod
    def project(columns: Sequence[str], record: Mapping[str, Any]) -> List[Any]:
        """
        Lay a record out in column order.

        Args:
            columns: Ordered column list
            record: Flat record

        Returns:
            List with exactly len(columns) values
        """
        values = []
        for column in columns:
            value = record.get(column)
            values.append(EMPTY_CELL if value is None else value)
        return values
