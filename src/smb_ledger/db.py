# SMB Ledger - Financial dashboard & reporting engine for small-business portals
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Ledger store for SMB Ledger.

This module provides the persistence boundary of the portal: two keyed
collections (``entrepreneurs`` and ``transactions``) stored in SQLite, plus a
small listener mechanism that pushes the full, fresh collection to
subscribers after every change.

The engine never queries the store incrementally. Every change produces a
new snapshot, and dashboards are recomputed from it.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

One table holds both collections:

records
   - collection   TEXT NOT NULL  -- "entrepreneurs" | "transactions"
   - id           TEXT NOT NULL
   - payload      TEXT NOT NULL  -- JSON wire record (camelCase keys)
   - updated_at   TEXT NOT NULL  -- ISO datetime, UTC
   PRIMARY KEY (collection, id)

Records are returned in insertion order (SQLite rowid); updating an existing
record keeps its position.

------------------------------------------------------------------------------
Operations
------------------------------------------------------------------------------

- write_entity           insert or replace one record,
- delete_entity          remove one record,
- overwrite_collection   replace a whole collection,
- apply_update           multi-path update {"collection/id": entity or None},
                         applied atomically (all or nothing),
- load_collection        read one collection as entities,
- load_snapshot          read both collections as one LedgerSnapshot.

Every function opens its own connection and closes it before returning.
"""

import json
import logging
import sqlite3
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from .ledger import (
    Entrepreneur,
    LedgerSnapshot,
    Transaction,
    entrepreneur_to_record,
    parse_entrepreneur,
    parse_transaction,
    transaction_to_record,
)

logger = logging.getLogger(__name__)

ENTREPRENEURS = "entrepreneurs"
TRANSACTIONS = "transactions"
COLLECTIONS: tuple[str, ...] = (ENTREPRENEURS, TRANSACTIONS)

Entity = Union[Entrepreneur, Transaction]
Listener = Callable[[list[Any]], None]


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for SMB Ledger.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    return sqlite3.connect(cfg.path)


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS records (
            collection  TEXT NOT NULL,
            id          TEXT NOT NULL,
            payload     TEXT NOT NULL,
            updated_at  TEXT NOT NULL,
            PRIMARY KEY (collection, id)
        );
        """
    )
    conn.commit()


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        msg = (
            f"Unknown collection: {collection!r}. "
            f"Expected one of {', '.join(COLLECTIONS)}."
        )
        raise ValueError(msg)


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _to_payload(collection: str, entity: Entity) -> str:
    if collection == ENTREPRENEURS:
        if not isinstance(entity, Entrepreneur):
            raise ValueError(f"Expected an Entrepreneur for {collection!r}.")
        record = entrepreneur_to_record(entity)
    else:
        if not isinstance(entity, Transaction):
            raise ValueError(f"Expected a Transaction for {collection!r}.")
        record = transaction_to_record(entity)
    return json.dumps(record, sort_keys=True)


def _from_payload(collection: str, payload: str) -> Entity:
    record = json.loads(payload)
    if collection == ENTREPRENEURS:
        return parse_entrepreneur(record)
    return parse_transaction(record)


def _upsert(
    conn: sqlite3.Connection, collection: str, entity: Entity, stamp: str
) -> None:
    conn.execute(
        """
        INSERT INTO records (collection, id, payload, updated_at)
        VALUES (?, ?, ?, ?)
        ON CONFLICT (collection, id)
        DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at;
        """,
        (collection, entity.id, _to_payload(collection, entity), stamp),
    )


def _split_path(path: str) -> tuple[str, str]:
    """'transactions/tx-1' -> ('transactions', 'tx-1')."""
    collection, sep, entity_id = path.partition("/")
    if not sep or not entity_id or "/" in entity_id:
        raise ValueError(f"Invalid update path: {path!r}. Expected 'collection/id'.")
    _check_collection(collection)
    return collection, entity_id


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file (and its parent directory) if missing.
    - Creates the ``records`` table if missing.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


def write_entity(cfg: DatabaseConfig, collection: str, entity: Entity) -> Entity:
    """Insert ``entity`` into ``collection``, replacing any record with its id."""
    _check_collection(collection)
    conn = _connect(cfg)
    try:
        _upsert(conn, collection, entity, _now_utc_iso())
        conn.commit()
    finally:
        conn.close()
    logger.debug("Wrote %s/%s", collection, entity.id)
    return entity


def delete_entity(cfg: DatabaseConfig, collection: str, entity_id: str) -> bool:
    """
    Remove one record.

    Returns
    -------
    bool
        True if a record was deleted, False if none had that id.
    """
    _check_collection(collection)
    conn = _connect(cfg)
    try:
        cur = conn.execute(
            "DELETE FROM records WHERE collection = ? AND id = ?;",
            (collection, entity_id),
        )
        conn.commit()
        deleted = cur.rowcount > 0
    finally:
        conn.close()
    logger.debug("Deleted %s/%s: %s", collection, entity_id, deleted)
    return deleted


def overwrite_collection(
    cfg: DatabaseConfig, collection: str, entities: Iterable[Entity]
) -> int:
    """
    Replace the whole content of ``collection``.

    Returns
    -------
    int
        Number of records written.
    """
    _check_collection(collection)
    items = list(entities)
    stamp = _now_utc_iso()

    conn = _connect(cfg)
    try:
        conn.execute("DELETE FROM records WHERE collection = ?;", (collection,))
        for entity in items:
            _upsert(conn, collection, entity, stamp)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    logger.info("Overwrote %s with %d records", collection, len(items))
    return len(items)


def apply_update(
    cfg: DatabaseConfig, updates: Mapping[str, Optional[Entity]]
) -> set[str]:
    """
    Apply a multi-path update atomically.

    Parameters
    ----------
    updates:
        Mapping of ``"collection/id"`` paths to the new entity, or to None to
        delete the record at that path.

    Returns
    -------
    set[str]
        The collections touched by the update.

    Raises
    ------
    ValueError
        If a path is malformed, names an unknown collection, or does not
        match the id of its entity. Nothing is written in that case.
    """
    parsed: list[tuple[str, str, Optional[Entity]]] = []
    for path, entity in updates.items():
        collection, entity_id = _split_path(path)
        if entity is not None and entity.id != entity_id:
            raise ValueError(
                f"Path {path!r} does not match entity id {entity.id!r}."
            )
        parsed.append((collection, entity_id, entity))

    stamp = _now_utc_iso()
    conn = _connect(cfg)
    try:
        for collection, entity_id, entity in parsed:
            if entity is None:
                conn.execute(
                    "DELETE FROM records WHERE collection = ? AND id = ?;",
                    (collection, entity_id),
                )
            else:
                _upsert(conn, collection, entity, stamp)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    logger.debug("Applied multi-path update of %d paths", len(parsed))
    return {collection for collection, _, _ in parsed}


def load_collection(cfg: DatabaseConfig, collection: str) -> list[Entity]:
    """Read one collection in insertion order."""
    _check_collection(collection)
    conn = _connect(cfg)
    try:
        rows = conn.execute(
            "SELECT payload FROM records WHERE collection = ? ORDER BY rowid;",
            (collection,),
        ).fetchall()
    finally:
        conn.close()
    return [_from_payload(collection, payload) for (payload,) in rows]


def load_snapshot(cfg: DatabaseConfig) -> LedgerSnapshot:
    """Read both collections as one LedgerSnapshot."""
    return LedgerSnapshot(
        entrepreneurs=tuple(load_collection(cfg, ENTREPRENEURS)),
        transactions=tuple(load_collection(cfg, TRANSACTIONS)),
    )


# ---------------------------------------------------------------------------
# Store with change listeners
# ---------------------------------------------------------------------------


class LedgerStore:
    """
    Ledger store pushing full collections to subscribers.

    Each successful change notifies the listeners of the affected
    collection(s) with the complete, freshly loaded array. Listeners never
    receive deltas.
    """

    def __init__(self, cfg: DatabaseConfig) -> None:
        self.cfg = cfg
        self._listeners: dict[str, list[Listener]] = {c: [] for c in COLLECTIONS}
        init_database(cfg)

    def subscribe(self, collection: str, callback: Listener) -> Callable[[], None]:
        """
        Register ``callback`` for ``collection`` and push its current content.

        Returns
        -------
        Callable[[], None]
            Function removing the subscription.
        """
        _check_collection(collection)
        self._listeners[collection].append(callback)
        callback(load_collection(self.cfg, collection))

        def unsubscribe() -> None:
            if callback in self._listeners[collection]:
                self._listeners[collection].remove(callback)

        return unsubscribe

    def _notify(self, collections: Iterable[str]) -> None:
        for collection in collections:
            listeners = list(self._listeners[collection])
            if not listeners:
                continue
            items = load_collection(self.cfg, collection)
            for callback in listeners:
                callback(items)

    def write(self, collection: str, entity: Entity) -> Entity:
        write_entity(self.cfg, collection, entity)
        self._notify([collection])
        return entity

    def delete(self, collection: str, entity_id: str) -> bool:
        deleted = delete_entity(self.cfg, collection, entity_id)
        if deleted:
            self._notify([collection])
        return deleted

    def overwrite(self, collection: str, entities: Iterable[Entity]) -> int:
        count = overwrite_collection(self.cfg, collection, entities)
        self._notify([collection])
        return count

    def update(self, updates: Mapping[str, Optional[Entity]]) -> None:
        touched = apply_update(self.cfg, updates)
        self._notify(c for c in COLLECTIONS if c in touched)

    def snapshot(self) -> LedgerSnapshot:
        return load_snapshot(self.cfg)
