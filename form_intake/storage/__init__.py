# ==============================================
# TOPIC 3: STORAGE
# ==============================================
#
# This package owns everything that reads or writes sinks:
# the storage contract and its backends, header growth, row
# appends, and retention pruning.
#
# Modules:
# --------
# - tabular_store.py   → TabularStore contract (abstract)
# - memory_store.py    → In-process backend
# - mysql_store.py     → MySQL backend (pymysql)
# - mongo_store.py     → MongoDB backend (pymongo)
# - factory.py         → Pick a backend from configuration
# - schema_manager.py  → Grow headers, project records onto them
# - record_writer.py   → Append rows, collect highlight rules
# - retention.py       → Delete rows past the retention period
# - sink_locks.py      → Per-sink mutual exclusion
#
# ==============================================

from .tabular_store import TabularStore
from .memory_store import InMemoryTabularStore
from .mysql_store import MySQLTabularStore
from .mongo_store import MongoTabularStore
from .factory import create_store
from .schema_manager import SchemaManager
from .record_writer import HighlightRule, RecordWriter
from .retention import RetentionPruner
from .sink_locks import SinkLockRegistry

__all__ = [
    "TabularStore",
    "InMemoryTabularStore",
    "MySQLTabularStore",
    "MongoTabularStore",
    "create_store",
    "SchemaManager",
    "HighlightRule",
    "RecordWriter",
    "RetentionPruner",
    "SinkLockRegistry",
]
