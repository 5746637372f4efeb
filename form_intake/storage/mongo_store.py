# ==============================================
# MongoTabularStore
# ==============================================
#
# PURPOSE:
#   Keep sinks in MongoDB. Rows are documents holding a positional
#   `values` array, so schema growth never touches existing documents;
#   short rows are padded on read.
#
# LAYOUT:
# -------
#   sinks      { _id: <sink name>, headers: [...], next_seq: int, created_at }
#   sink_rows  { sink: <sink name>, seq: int, values: [...] }
#              compound index (sink, seq) gives append order
#
# ERRORS:
#   Every pymongo PyMongoError is re-raised as TransientIOError.
#
# ==============================================

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, List, Sequence
from urllib.parse import quote_plus

import pymongo
from pymongo import MongoClient as PyMongoClient
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from form_intake.errors import TransientIOError
from .tabular_store import TabularStore, check_delete_range, pad_row

logger = logging.getLogger(__name__)

SINKS_COLLECTION = "sinks"
ROWS_COLLECTION = "sink_rows"


class MongoTabularStore(TabularStore):
    def __init__(self, host, port, database, user=None, password=None):
        # Store connection params. Don't connect yet.
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.client = None

    def connect(self) -> None:
        """Connect, verify with a ping, and make sure the row index exists."""
        if self.user and self.password:
            uri = (
                f"mongodb://{quote_plus(self.user)}:{quote_plus(self.password)}"
                f"@{self.host}:{self.port}/{self.database}"
            )
        else:
            uri = f"mongodb://{self.host}:{self.port}/{self.database}"
        try:
            self.client = PyMongoClient(uri)
            self.client.admin.command("ping")
            self._rows.create_index(
                [("sink", pymongo.ASCENDING), ("seq", pymongo.ASCENDING)],
                unique=True
            )
        except PyMongoError as e:
            self.client = None
            raise TransientIOError(f"Could not connect to MongoDB at {self.host}:{self.port}: {e}") from e
        logger.info("Connected to MongoDB %s:%s/%s", self.host, self.port, self.database)

    def close(self) -> None:
        if self.client:
            self.client.close()
            self.client = None

    @property
    def _sinks(self):
        return self.client[self.database][SINKS_COLLECTION]

    @property
    def _rows(self):
        return self.client[self.database][ROWS_COLLECTION]

    @contextmanager
    def _session(self):
        if self.client is None:
            self.connect()
        try:
            yield
        except PyMongoError as e:
            raise TransientIOError(f"MongoDB operation failed: {e}") from e

    def _sink_doc(self, sink: str) -> dict:
        doc = self._sinks.find_one({"_id": sink})
        if doc is None:
            raise KeyError(f"Sink '{sink}' does not exist")
        return doc

    def get_headers(self, sink: str) -> List[str]:
        with self._session():
            return list(self._sink_doc(sink).get("headers", []))

    def set_headers(self, sink: str, headers: Sequence[str]) -> None:
        with self._session():
            result = self._sinks.update_one({"_id": sink}, {"$set": {"headers": list(headers)}})
            if result.matched_count == 0:
                raise KeyError(f"Sink '{sink}' does not exist")

    def get_all_rows(self, sink: str) -> List[List[Any]]:
        with self._session():
            width = len(self._sink_doc(sink).get("headers", []))
            cursor = self._rows.find({"sink": sink}).sort("seq", pymongo.ASCENDING)
            return [pad_row(doc.get("values", []), width) for doc in cursor]

    def append_row(self, sink: str, values: Sequence[Any]) -> None:
        with self._session():
            counter = self._sinks.find_one_and_update(
                {"_id": sink},
                {"$inc": {"next_seq": 1}},
                return_document=ReturnDocument.AFTER
            )
            if counter is None:
                raise KeyError(f"Sink '{sink}' does not exist")
            self._rows.insert_one({"sink": sink, "seq": counter["next_seq"], "values": list(values)})

    def delete_rows(self, sink: str, start_index: int, count: int) -> None:
        with self._session():
            self._sink_doc(sink)
            ids = [
                doc["_id"]
                for doc in self._rows.find({"sink": sink}, {"_id": 1}).sort("seq", pymongo.ASCENDING)
            ]
            check_delete_range(start_index, count, len(ids))
            doomed = ids[start_index:start_index + count]
            if doomed:
                self._rows.delete_many({"_id": {"$in": doomed}})

    def clear_sink(self, sink: str) -> None:
        with self._session():
            self._sink_doc(sink)
            self._rows.delete_many({"sink": sink})
            self._sinks.update_one({"_id": sink}, {"$set": {"headers": []}})

    def create_sink(self, sink: str) -> None:
        with self._session():
            result = self._sinks.update_one(
                {"_id": sink},
                {"$setOnInsert": {
                    "headers": [],
                    "next_seq": 0,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                }},
                upsert=True
            )
        if result.upserted_id is not None:
            logger.info("Created sink '%s' in MongoDB", sink)

    def sink_exists(self, sink: str) -> bool:
        with self._session():
            return self._sinks.count_documents({"_id": sink}, limit=1) > 0

    def get_sink_reference_url(self, sink: str) -> str:
        return f"mongodb://{self.host}:{self.port}/{self.database}/{ROWS_COLLECTION}?sink={quote_plus(sink)}"
