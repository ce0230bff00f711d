# -*- coding: utf-8 -*-
"""
sluicewatch/storage.py
Persisted snapshot cache:
- one named slot holds the last successful non-empty dataset as a JSON array
- read() fails open: anything unreadable is reported as "no cache"
- write() is one upsert, so a slot is never half-written; a db file that
  is not SQLite at all is moved aside and the write retried once
SqliteCacheStore is the real store; MemoryCacheStore is the in-process fake.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from sluicewatch.errors import CacheCorruption
from sluicewatch.models import Dataset, occurrence_from_wire, occurrence_to_wire
from sluicewatch.utils import now_ms

DEFAULT_SLOT = "occurrences"


class CacheStore(Protocol):
    def read(self) -> Optional[Dataset]: ...

    def write(self, dataset: Dataset) -> None: ...


# --------- codec ---------
def encode_dataset(dataset: Dataset) -> str:
    return json.dumps([occurrence_to_wire(o) for o in dataset], ensure_ascii=False)


def decode_dataset(payload: Union[str, bytes]) -> Dataset:
    """Inverse of encode_dataset; raises CacheCorruption on anything malformed."""
    try:
        raw = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise CacheCorruption(f"payload is not JSON: {e}") from e
    if not isinstance(raw, list):
        raise CacheCorruption(f"payload is {type(raw).__name__}, expected list")
    try:
        return tuple(occurrence_from_wire(item) for item in raw)
    except (KeyError, TypeError, ValueError) as e:
        raise CacheCorruption(f"bad record in payload: {e!r}") from e


# --------- sqlite ---------
SCHEMA_SLOTS = """
CREATE TABLE IF NOT EXISTS cache_slots (
    name            TEXT PRIMARY KEY,
    payload         TEXT NOT NULL,
    updated_at_utc  INTEGER NOT NULL
);
"""


class SqliteCacheStore:
    """
    File-backed slot store. Uses plain sqlite3: cache I/O is local and
    synchronous and must never suspend the event loop's callers.
    """

    def __init__(self, db_path: Union[str, Path], slot: str = DEFAULT_SLOT):
        self.db_path = Path(db_path)
        self.slot = slot

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute(SCHEMA_SLOTS)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def read(self) -> Optional[Dataset]:
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT payload FROM cache_slots WHERE name = ?;", (self.slot,)
                ).fetchone()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            print(f"[storage] slot {self.slot!r} unreadable, treating as empty: {e}")
            return None
        if row is None:
            return None
        try:
            return decode_dataset(row[0])
        except CacheCorruption as e:
            print(f"[storage] slot {self.slot!r} corrupted, treating as empty: {e}")
            return None

    def _upsert(self, payload: str) -> None:
        conn = self._connect()
        try:
            # the connection context commits on success and rolls back on error
            with conn:
                conn.execute(
                    """
                    INSERT INTO cache_slots(name, payload, updated_at_utc) VALUES(?,?,?)
                    ON CONFLICT(name) DO UPDATE SET
                        payload        = excluded.payload,
                        updated_at_utc = excluded.updated_at_utc
                    """,
                    (self.slot, payload, now_ms()),
                )
        finally:
            conn.close()

    def _set_aside(self) -> Path:
        """Move an unusable db file out of the way so the next connect starts fresh."""
        broken = self.db_path.with_name(self.db_path.name + ".corrupt")
        self.db_path.replace(broken)
        return broken

    def write(self, dataset: Dataset) -> None:
        payload = encode_dataset(dataset)
        try:
            try:
                self._upsert(payload)
            except sqlite3.OperationalError:
                # locked / read-only / disk full: the file itself is fine
                raise
            except sqlite3.DatabaseError as e:
                broken = self._set_aside()
                print(f"[storage] {self.db_path} is not a usable database ({e}), moved to {broken.name}")
                self._upsert(payload)
        except (sqlite3.Error, OSError) as e:
            # the in-memory dataset stays authoritative; next success retries the write
            print(f"[storage] write to slot {self.slot!r} failed: {e}")

    def clear(self) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM cache_slots WHERE name = ?;", (self.slot,))
        finally:
            conn.close()


# --------- in-memory ---------
class MemoryCacheStore:
    """
    Same contract as SqliteCacheStore, kept in a dict. Slots hold the
    serialized JSON so reads go through the real codec.
    """

    def __init__(self, slot: str = DEFAULT_SLOT, initial: Optional[Dataset] = None):
        self.slot = slot
        self._slots: Dict[str, str] = {}
        self.writes: List[Dataset] = []
        if initial is not None:
            self._slots[slot] = encode_dataset(initial)

    def read(self) -> Optional[Dataset]:
        payload = self._slots.get(self.slot)
        if payload is None:
            return None
        try:
            return decode_dataset(payload)
        except CacheCorruption as e:
            print(f"[storage] memory slot {self.slot!r} corrupted, treating as empty: {e}")
            return None

    def write(self, dataset: Dataset) -> None:
        self._slots[self.slot] = encode_dataset(dataset)
        self.writes.append(dataset)

    def put_raw(self, payload: str) -> None:
        """Store an arbitrary payload as-is."""
        self._slots[self.slot] = payload
