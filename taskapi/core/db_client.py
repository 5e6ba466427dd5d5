"""SQLite-backed document store.

Each collection is a table of JSON documents keyed by a 24 character hex id.
Filtering and sorting go through json_extract, so the store behaves like a
small document database: exact-match filters, multi-key sort, skip/limit and
inclusion projections.

The store is an explicit handle: construct it, open() it, pass it around,
close() it. There is no module-level connection.
"""

import asyncio
import json
import logging
import re
import secrets
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Self

import aiosqlite
from pydantic import BaseModel, ValidationError

from taskapi.core.config import constants
from taskapi.core.errors import CastError, DuplicateKeyError, StoreValidationError
from taskapi.core.timestamps import format_timestamp, utc_now


logger = logging.getLogger(__name__)

SYSTEM_FIELDS = frozenset({"id", "createdAt", "updatedAt"})

# Largest value SQLite can bind as an INTEGER
SQLITE_MAX_INTEGER = 2**63 - 1

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_RECORD_ID_RE = re.compile(rf"^[0-9a-f]{{{constants.RECORD_ID_LENGTH}}}$")
_UNIQUE_INDEX_RE = re.compile(r"uq_[A-Za-z0-9_]+?__([A-Za-z0-9_]+)")


class DatabaseError(RuntimeError):
    """Unexpected failure talking to the underlying database."""


@dataclass(frozen=True)
class CollectionSpec:
    """Declaration of a collection: its storage schema and indexes."""

    name: str
    schema: type[BaseModel]
    unique_fields: tuple[str, ...] = ()
    indexed_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


def _validate_identifier(name: str, kind: str) -> None:
    """Validate that a collection or field name contains only alphanumeric characters and underscores."""
    if not _IDENTIFIER_RE.match(name):
        msg = f"Invalid {kind} name: {name}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def is_valid_record_id(record_id: str) -> bool:
    return bool(_RECORD_ID_RE.match(record_id))


def _field_expr(name: str) -> str:
    _validate_identifier(name, "field")
    if name == "id":
        return "id"
    return f"json_extract(data, '$.{name}')"


def to_storage(value: Any) -> Any:
    """Convert a Python value into its JSON/SQLite representation."""
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, Enum):
        return value.value
    return value


def build_where(filters: Mapping[str, Any] | None) -> tuple[str, list[Any]]:
    """Build a WHERE clause of exact-match conditions joined with AND."""
    if not filters:
        return "", []
    conditions = []
    params = []
    for name, value in filters.items():
        conditions.append(f"{_field_expr(name)} = ?")
        params.append(to_storage(value))
    return f" WHERE {' AND '.join(conditions)}", params


def build_order(sort: Sequence[SortKey]) -> str:
    """Build an ORDER BY clause; id is always the final tie-breaker."""
    terms = [f"{_field_expr(key.field)} {'DESC' if key.descending else 'ASC'}" for key in sort]
    if not any(key.field == "id" for key in sort):
        terms.append("id ASC")
    return ", ".join(terms)


def _project(document: dict[str, Any], projection: Sequence[str] | None) -> dict[str, Any]:
    if not projection:
        return document
    projected = {"id": document["id"]}
    for name in projection:
        if name in document:
            projected[name] = document[name]
    return projected


class DocumentStore:
    """Async document store over a single aiosqlite connection."""

    def __init__(self, db_path: str, collections: Iterable[CollectionSpec]) -> None:
        self._db_path = db_path
        self._collections = {spec.name: spec for spec in collections}
        for name in self._collections:
            _validate_identifier(name, "collection")
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> None:
        """Open the connection, creating the database directory if needed."""
        if self._conn is not None:
            return
        if self._db_path != ":memory:":
            Path(self._db_path).resolve().parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(self._db_path)
        await self._conn.execute("PRAGMA journal_mode = WAL")
        logger.info("Opened document store", extra={"db_path": self._db_path})

    async def close(self) -> None:
        if self._conn is None:
            return
        try:
            await self._conn.close()
            logger.info("Closed document store", extra={"db_path": self._db_path})
        finally:
            self._conn = None

    async def __aenter__(self) -> Self:
        await self.open()
        await self.init_db()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def init_db(self) -> None:
        """Create collection tables and their indexes."""
        conn = self._connection()
        for spec in self._collections.values():
            await conn.execute(f"CREATE TABLE IF NOT EXISTS {spec.name} (id TEXT PRIMARY KEY, data TEXT NOT NULL)")
            for name in spec.indexed_fields:
                await conn.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_{spec.name}__{name} ON {spec.name} ({_field_expr(name)})"
                )
            for name in spec.unique_fields:
                await conn.execute(
                    f"CREATE UNIQUE INDEX IF NOT EXISTS uq_{spec.name}__{name} ON {spec.name} ({_field_expr(name)})"
                )
        await conn.commit()
        logger.info("Initialized collections", extra={"collections": list(self._collections)})

    async def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        if self._conn is None:
            return False
        try:
            cursor = await self._conn.execute("SELECT 1")
            await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.warning("Document store ping failed", extra={"error": str(e)})
            return False
        return True

    def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            msg = "Document store is not open. Call open() first."
            raise DatabaseError(msg)
        return self._conn

    def _spec(self, collection: str) -> CollectionSpec:
        try:
            return self._collections[collection]
        except KeyError:
            msg = f"Unknown collection: {collection}"
            raise ValueError(msg) from None

    @staticmethod
    def _check_id(record_id: str) -> None:
        if not isinstance(record_id, str) or not is_valid_record_id(record_id):
            raise CastError(field="id", value=record_id)

    @staticmethod
    def _validate_document(spec: CollectionSpec, fields: Mapping[str, Any], *, is_new: bool) -> dict[str, Any]:
        """Validate business fields against the collection schema and return storable values."""
        try:
            model = spec.schema.model_validate(dict(fields), context={"is_new": is_new})
        except ValidationError as e:
            messages = []
            for error in e.errors():
                if error["type"] == "missing":
                    field = ".".join(str(part) for part in error["loc"])
                    messages.append(f"{field.capitalize()} is required")
                else:
                    messages.append(str(error.get("ctx", {}).get("error", error["msg"])))
            raise StoreValidationError(messages) from e
        return {name: to_storage(value) for name, value in model.model_dump().items()}

    @staticmethod
    def _duplicate_key_error(spec: CollectionSpec, document: Mapping[str, Any], exc: Exception) -> DuplicateKeyError:
        match = _UNIQUE_INDEX_RE.search(str(exc))
        if match and match.group(1) in spec.unique_fields:
            name = match.group(1)
        elif spec.unique_fields:
            name = spec.unique_fields[0]
        else:
            name = "id"
        return DuplicateKeyError(field=name, value=document.get(name))

    @staticmethod
    def _row_to_document(row: Sequence[Any]) -> dict[str, Any]:
        record_id, data = row
        return {"id": record_id, **json.loads(data)}

    async def create(self, collection: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Insert a new document and return it with its id and timestamps."""
        spec = self._spec(collection)
        document = self._validate_document(spec, fields, is_new=True)
        now = format_timestamp(utc_now())
        document = {**document, "createdAt": now, "updatedAt": now}
        record_id = secrets.token_hex(constants.RECORD_ID_BYTES)

        conn = self._connection()
        async with self._write_lock:
            try:
                await conn.execute(
                    f"INSERT INTO {spec.name} (id, data) VALUES (?, ?)",  # noqa: S608 - collection is validated
                    (record_id, json.dumps(document)),
                )
                await conn.commit()
            except aiosqlite.IntegrityError as e:
                await conn.rollback()
                logger.warning("Duplicate key on create", extra={"collection": collection, "error": str(e)})
                raise self._duplicate_key_error(spec, document, e) from e
            except aiosqlite.Error as e:
                await conn.rollback()
                logger.error("create_failed", extra={"collection": collection, "error": str(e)})
                msg = f"Failed to create document in {collection}: {e}"
                raise DatabaseError(msg) from e

        logger.info("Created document", extra={"collection": collection, "record_id": record_id})
        return {"id": record_id, **document}

    async def query(
        self,
        collection: str,
        *,
        filters: Mapping[str, Any] | None = None,
        sort: Sequence[SortKey] = (),
        skip: int = 0,
        limit: int | None = None,
        projection: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Return documents matching every filter, sorted, paginated and projected."""
        spec = self._spec(collection)
        where_clause, params = build_where(filters)
        order_clause = build_order(sort)
        limit_param = -1 if limit is None else min(limit, SQLITE_MAX_INTEGER)
        params.extend([limit_param, min(max(skip, 0), SQLITE_MAX_INTEGER)])

        sql = f"SELECT id, data FROM {spec.name}{where_clause} ORDER BY {order_clause} LIMIT ? OFFSET ?"  # noqa: S608 - names are validated
        try:
            cursor = await self._connection().execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.error("query_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to query {collection}: {e}"
            raise DatabaseError(msg) from e

        documents = [_project(self._row_to_document(row), projection) for row in rows]
        logger.info("Queried documents", extra={"collection": collection, "count": len(documents)})
        return documents

    async def count(self, collection: str, filters: Mapping[str, Any] | None = None) -> int:
        spec = self._spec(collection)
        where_clause, params = build_where(filters)
        try:
            cursor = await self._connection().execute(
                f"SELECT COUNT(*) FROM {spec.name}{where_clause}",  # noqa: S608 - names are validated
                params,
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error("count_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to count documents in {collection}: {e}"
            raise DatabaseError(msg) from e
        return int(row[0]) if row else 0

    async def find_by_id(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Fetch a document by id; None if absent, CastError if the id is malformed."""
        spec = self._spec(collection)
        self._check_id(record_id)
        try:
            cursor = await self._connection().execute(
                f"SELECT id, data FROM {spec.name} WHERE id = ?",  # noqa: S608 - collection is validated
                (record_id,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error("find_by_id_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
            msg = f"Failed to get document from {collection}: {e}"
            raise DatabaseError(msg) from e

        if row is None:
            return None
        return self._row_to_document(row)

    async def find_by_id_and_update(
        self, collection: str, record_id: str, fields: Mapping[str, Any]
    ) -> dict[str, Any] | None:
        """Merge fields into a document, re-validate it and return the updated document."""
        spec = self._spec(collection)
        self._check_id(record_id)
        unknown = set(fields) & SYSTEM_FIELDS
        if unknown:
            raise StoreValidationError([f"{name} is managed by the store and cannot be set" for name in sorted(unknown)])

        conn = self._connection()
        async with self._write_lock:
            existing = await self.find_by_id(collection, record_id)
            if existing is None:
                return None

            current = {name: value for name, value in existing.items() if name not in SYSTEM_FIELDS}
            merged = self._validate_document(spec, {**current, **fields}, is_new=False)
            document = {**merged, "createdAt": existing["createdAt"], "updatedAt": format_timestamp(utc_now())}

            try:
                await conn.execute(
                    f"UPDATE {spec.name} SET data = ? WHERE id = ?",  # noqa: S608 - collection is validated
                    (json.dumps(document), record_id),
                )
                await conn.commit()
            except aiosqlite.IntegrityError as e:
                await conn.rollback()
                logger.warning("Duplicate key on update", extra={"collection": collection, "error": str(e)})
                raise self._duplicate_key_error(spec, document, e) from e
            except aiosqlite.Error as e:
                await conn.rollback()
                logger.error("update_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
                msg = f"Failed to update document in {collection}: {e}"
                raise DatabaseError(msg) from e

        logger.info("Updated document", extra={"collection": collection, "record_id": record_id})
        return {"id": record_id, **document}

    async def find_by_id_and_delete(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Delete a document permanently and return it; None if absent."""
        spec = self._spec(collection)
        self._check_id(record_id)

        conn = self._connection()
        async with self._write_lock:
            existing = await self.find_by_id(collection, record_id)
            if existing is None:
                return None
            try:
                await conn.execute(
                    f"DELETE FROM {spec.name} WHERE id = ?",  # noqa: S608 - collection is validated
                    (record_id,),
                )
                await conn.commit()
            except aiosqlite.Error as e:
                await conn.rollback()
                logger.error("delete_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
                msg = f"Failed to delete document from {collection}: {e}"
                raise DatabaseError(msg) from e

        logger.info("Deleted document", extra={"collection": collection, "record_id": record_id})
        return existing
