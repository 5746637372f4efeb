# ==============================================
# MySQLTabularStore
# ==============================================
#
# PURPOSE:
#   Keep sinks in MySQL. Each sink is one table; header names live in
#   a catalogue table because submitted keys ("contact.email",
#   "Your Message") are not safe SQL identifiers.
#
# LAYOUT:
# -------
#   _sink_catalog
#     sink_name     VARCHAR(255) PRIMARY KEY
#     table_name    VARCHAR(64)
#     headers       LONGTEXT      (JSON list of header names)
#     column_count  INT           (physical cell columns in the table)
#     created_at    VARCHAR(40)
#
#   sink_<name>_<hash>
#     _row_id       BIGINT AUTO_INCREMENT PRIMARY KEY  (row order)
#     col_0000 ...  LONGTEXT NULL (JSON-encoded cell values)
#
#   When the header grows past column_count the table is ALTERed to
#   add the missing col_NNNN columns. Columns are positional, so an
#   existing column is never renamed or moved.
#
# ERRORS:
#   Every pymysql.MySQLError is rolled back and re-raised as
#   TransientIOError. After an OperationalError or InterfaceError (or a
#   rollback that fails) the connection is closed and forgotten, so the
#   next call, usually the next retry attempt, reconnects.
#
# ==============================================

import hashlib
import json
import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

import pymysql

from form_intake.errors import TransientIOError
from .tabular_store import TabularStore, check_delete_range, pad_row

logger = logging.getLogger(__name__)

CATALOG_TABLE = "_sink_catalog"


def table_name_for(sink: str) -> str:
    """Derive a safe, collision-resistant table name for a sink."""
    slug = re.sub(r"[^0-9a-zA-Z_]", "_", sink)[:40]
    digest = hashlib.sha1(sink.encode("utf-8")).hexdigest()[:8]
    return f"sink_{slug}_{digest}"


def column_name(position: int) -> str:
    return f"col_{position:04d}"


def encode_cell(value: Any) -> str:
    return json.dumps(value, default=str)


def decode_cell(raw: Optional[str]) -> Any:
    if raw is None:
        return ""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class MySQLTabularStore(TabularStore):
    def __init__(self, host, port, user, password, database):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connection = None

    def connect(self) -> None:
        """Establish the connection, creating the database and catalogue if needed."""
        try:
            self.connection = pymysql.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                autocommit=False,
            )
            with self.connection.cursor() as cursor:
                cursor.execute(f"CREATE DATABASE IF NOT EXISTS `{self.database}`")
                cursor.execute(f"USE `{self.database}`")
                cursor.execute(
                    f"CREATE TABLE IF NOT EXISTS {CATALOG_TABLE} ("
                    "sink_name VARCHAR(255) PRIMARY KEY, "
                    "table_name VARCHAR(64) NOT NULL, "
                    "headers LONGTEXT NOT NULL, "
                    "column_count INT NOT NULL DEFAULT 0, "
                    "created_at VARCHAR(40) NOT NULL)"
                )
            self.connection.commit()
        except pymysql.MySQLError as e:
            self.connection = None
            raise TransientIOError(f"Could not connect to MySQL at {self.host}:{self.port}: {e}") from e
        logger.info("Connected to MySQL %s:%s/%s", self.host, self.port, self.database)

    def close(self) -> None:
        if self.connection:
            self.connection.close()
            self.connection = None

    @contextmanager
    def _cursor(self):
        if self.connection is None:
            self.connect()
        try:
            with self.connection.cursor() as cursor:
                yield cursor
            self.connection.commit()
        except pymysql.MySQLError as e:
            self._rollback_or_drop(e)
            raise TransientIOError(f"MySQL operation failed: {e}") from e

    def _rollback_or_drop(self, error: Exception) -> None:
        """Roll back after a failed statement; forget the connection if it is gone."""
        lost = isinstance(error, (pymysql.err.OperationalError, pymysql.err.InterfaceError))
        try:
            self.connection.rollback()
        except pymysql.MySQLError as e:
            logger.warning("MySQL rollback failed: %s", e)
            lost = True
        if lost:
            logger.warning("Dropping MySQL connection after: %s", error)
            try:
                self.connection.close()
            except pymysql.MySQLError:
                logger.debug("Closing the dropped MySQL connection failed", exc_info=True)
            self.connection = None

    def _catalog_entry(self, cursor, sink: str) -> tuple:
        cursor.execute(
            f"SELECT table_name, headers, column_count FROM {CATALOG_TABLE} WHERE sink_name = %s",
            (sink,)
        )
        row = cursor.fetchone()
        if row is None:
            raise KeyError(f"Sink '{sink}' does not exist")
        table, headers, column_count = row
        return table, json.loads(headers), int(column_count)

    def _ensure_columns(self, cursor, sink: str, table: str, current: int, needed: int) -> int:
        if needed <= current:
            return current
        for position in range(current, needed):
            cursor.execute(f"ALTER TABLE `{table}` ADD COLUMN {column_name(position)} LONGTEXT NULL")
        cursor.execute(
            f"UPDATE {CATALOG_TABLE} SET column_count = %s WHERE sink_name = %s",
            (needed, sink)
        )
        logger.debug("Added %d physical columns to %s", needed - current, table)
        return needed

    def get_headers(self, sink: str) -> List[str]:
        with self._cursor() as cursor:
            _, headers, _ = self._catalog_entry(cursor, sink)
        return headers

    def set_headers(self, sink: str, headers: Sequence[str]) -> None:
        with self._cursor() as cursor:
            table, _, column_count = self._catalog_entry(cursor, sink)
            self._ensure_columns(cursor, sink, table, column_count, len(headers))
            cursor.execute(
                f"UPDATE {CATALOG_TABLE} SET headers = %s WHERE sink_name = %s",
                (json.dumps(list(headers)), sink)
            )

    def get_all_rows(self, sink: str) -> List[List[Any]]:
        with self._cursor() as cursor:
            table, headers, column_count = self._catalog_entry(cursor, sink)
            selected = ", ".join(["_row_id"] + [column_name(i) for i in range(column_count)])
            cursor.execute(f"SELECT {selected} FROM `{table}` ORDER BY _row_id")
            fetched = cursor.fetchall()
        width = len(headers)
        return [pad_row([decode_cell(raw) for raw in row[1:width + 1]], width) for row in fetched]

    def append_row(self, sink: str, values: Sequence[Any]) -> None:
        with self._cursor() as cursor:
            table, _, column_count = self._catalog_entry(cursor, sink)
            self._ensure_columns(cursor, sink, table, column_count, len(values))
            if values:
                columns = ", ".join(column_name(i) for i in range(len(values)))
                placeholders = ", ".join(["%s"] * len(values))
                cursor.execute(
                    f"INSERT INTO `{table}` ({columns}) VALUES ({placeholders})",
                    tuple(encode_cell(v) for v in values)
                )
            else:
                cursor.execute(f"INSERT INTO `{table}` () VALUES ()")

    def delete_rows(self, sink: str, start_index: int, count: int) -> None:
        with self._cursor() as cursor:
            table, _, _ = self._catalog_entry(cursor, sink)
            cursor.execute(f"SELECT _row_id FROM `{table}` ORDER BY _row_id")
            row_ids = [row[0] for row in cursor.fetchall()]
            check_delete_range(start_index, count, len(row_ids))
            doomed = row_ids[start_index:start_index + count]
            if doomed:
                placeholders = ", ".join(["%s"] * len(doomed))
                cursor.execute(f"DELETE FROM `{table}` WHERE _row_id IN ({placeholders})", tuple(doomed))

    def clear_sink(self, sink: str) -> None:
        with self._cursor() as cursor:
            table, _, _ = self._catalog_entry(cursor, sink)
            cursor.execute(f"DELETE FROM `{table}`")
            cursor.execute(
                f"UPDATE {CATALOG_TABLE} SET headers = %s WHERE sink_name = %s",
                ("[]", sink)
            )

    def create_sink(self, sink: str) -> None:
        table = table_name_for(sink)
        with self._cursor() as cursor:
            cursor.execute(
                f"CREATE TABLE IF NOT EXISTS `{table}` (_row_id BIGINT AUTO_INCREMENT PRIMARY KEY)"
            )
            cursor.execute(
                f"INSERT IGNORE INTO {CATALOG_TABLE} "
                "(sink_name, table_name, headers, column_count, created_at) "
                "VALUES (%s, %s, %s, %s, %s)",
                (sink, table, "[]", 0, datetime.now(timezone.utc).isoformat())
            )
        logger.info("Created sink '%s' as table %s", sink, table)

    def sink_exists(self, sink: str) -> bool:
        with self._cursor() as cursor:
            cursor.execute(f"SELECT COUNT(*) FROM {CATALOG_TABLE} WHERE sink_name = %s", (sink,))
            row = cursor.fetchone()
        return bool(row and row[0])

    def get_sink_reference_url(self, sink: str) -> str:
        return f"mysql://{self.host}:{self.port}/{self.database}/{table_name_for(sink)}"
