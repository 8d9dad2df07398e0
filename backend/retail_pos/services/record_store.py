# Overview: Path-addressed JSON record store on top of the records table.

"""
Record Store

A schemaless document store addressed by slash-separated paths:

    products/<id>            one product record
    products                 the whole collection (dict keyed by id)
    settings/store           a singleton document
    settings/users/<uid>     a document in collection "settings/users"

Operations: create (generates an id), read, read_versioned, update (partial
merge), set (replace), delete, list, query and subscribe.

Invariants:
- Every write commits on its own, except inside records.batch(), where the
  writes of the block commit together or not at all.
- create stamps id, createdAt and updatedAt; update and set stamp updatedAt.
- update(expected_version=N) writes only if the stored version is still N,
  otherwise raises VersionConflictError. The version_id column is also
  checked by SQLAlchemy at flush time, so two sessions racing on the same
  record cannot both succeed.
- Store failures are rolled back and surfaced as PersistenceError carrying
  the underlying message. Nothing is retried here.
- Subscribers get the full current value right away and again after every
  committed change to the path, one of its ancestors or descendants.
"""

from __future__ import annotations

import re
import secrets
import time
from contextlib import contextmanager
from typing import Any, Callable

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import PersistenceError, ValidationError, VersionConflictError
from ..extensions import db
from ..models import Record
from retail_pos.time_utils import utcnow, to_utc_z


_INVALID_SEGMENT = re.compile(r"[.#$\[\]]")
_MISSING = object()
_BATCH_KEY = "record_store.batch"


def normalize_path(path: str) -> str:
    if not isinstance(path, str):
        raise ValidationError("path must be a string")
    segments = [s for s in path.strip().split("/") if s]
    if not segments:
        raise ValidationError("path cannot be empty")
    for segment in segments:
        if _INVALID_SEGMENT.search(segment):
            raise ValidationError(f"Invalid path segment: {segment}")
    return "/".join(segments)


def split_path(path: str) -> tuple[str, str]:
    """'settings/users/42' -> ('settings/users', '42'). Single segments have no parent."""
    path = normalize_path(path)
    if "/" not in path:
        return "", path
    collection, key = path.rsplit("/", 1)
    return collection, key


def generate_key() -> str:
    """Time-ordered id: millisecond timestamp in hex plus 8 random hex chars."""
    return f"{int(time.time() * 1000):012x}{secrets.token_hex(4)}"


def _related(a: str, b: str) -> bool:
    return a == b or a.startswith(b + "/") or b.startswith(a + "/")


def _raise_store_error(exc: SQLAlchemyError, paths: list[str]):
    """Roll back and re-raise as the matching PosError."""
    db.session.rollback()
    if isinstance(exc, StaleDataError):
        raise VersionConflictError("Record was modified concurrently", details={"paths": paths}) from exc
    raise PersistenceError(str(exc), details={"paths": paths}) from exc


class RecordStore:
    def __init__(self):
        self._listeners: dict[str, list[Callable[[Any], None]]] = {}

    # -- internal helpers ----------------------------------------------------

    def _get(self, path: str) -> Record | None:
        collection, key = split_path(path)
        try:
            return db.session.query(Record).filter_by(collection=collection, key=key).first()
        except SQLAlchemyError as exc:
            _raise_store_error(exc, [path])

    def _children(self, collection: str) -> list[Record]:
        try:
            return (
                db.session.query(Record)
                .filter_by(collection=collection)
                .order_by(Record.created_at.asc(), Record.id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            _raise_store_error(exc, [collection])

    def _commit(self, *paths: str) -> None:
        pending = db.session.info.get(_BATCH_KEY)
        if pending is not None:
            pending.extend(paths)
            return
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            _raise_store_error(exc, list(paths))
        for path in paths:
            self._notify(path)

    def _notify(self, changed_path: str) -> None:
        for path, callbacks in list(self._listeners.items()):
            if not _related(path, changed_path):
                continue
            value = self.read(path)
            for callback in list(callbacks):
                try:
                    callback(value)
                except Exception:
                    current_app.logger.exception("Record subscriber for %s failed", path)

    @contextmanager
    def batch(self):
        """
        Stage every write made inside the block and commit them together on
        exit. An exception inside the block, or a failed commit, rolls all of
        them back. Nested batches join the outermost one.
        """
        if db.session.info.get(_BATCH_KEY) is not None:
            yield
            return

        pending: list[str] = []
        db.session.info[_BATCH_KEY] = pending
        try:
            yield
        except BaseException:
            db.session.info.pop(_BATCH_KEY, None)
            db.session.rollback()
            raise
        db.session.info.pop(_BATCH_KEY, None)
        self._commit(*pending)

    # -- data-access interface ----------------------------------------------

    def create(self, collection: str, record: dict) -> str:
        """Insert a new record under collection and return its generated id."""
        collection = normalize_path(collection)
        if not isinstance(record, dict):
            raise ValidationError("record must be an object")

        key = generate_key()
        now = to_utc_z(utcnow())
        data = {**record, "id": key, "createdAt": now, "updatedAt": now}

        db.session.add(Record(collection=collection, key=key, data=data))
        self._commit(f"{collection}/{key}")
        return key

    def read(self, path: str):
        """
        Return the document at path, or the collection under path as a dict
        keyed by record id (creation order), or None when nothing exists.
        Only direct children are included in a collection read.
        """
        path = normalize_path(path)
        if "/" in path:
            record = self._get(path)
            if record is not None:
                return dict(record.data)

        children = self._children(path)
        if not children:
            return None
        return {child.key: dict(child.data) for child in children}

    def read_versioned(self, path: str) -> tuple[dict | None, int | None]:
        """Return (document, version) for a single document path."""
        record = self._get(path)
        if record is None:
            return None, None
        return dict(record.data), record.version_id

    def update(self, path: str, partial: dict, *, expected_version: int | None = None) -> int:
        """
        Merge partial into the document at path and return the new version.

        A missing document is created (settings documents are written this
        way), unless expected_version is given, in which case the write is a
        compare-and-swap and a missing or changed document is a conflict.
        Inside a batch the returned version is the one before the batch commits.
        """
        path = normalize_path(path)
        if not isinstance(partial, dict):
            raise ValidationError("update payload must be an object")

        record = self._get(path)
        now = to_utc_z(utcnow())

        if expected_version is not None:
            current = record.version_id if record is not None else None
            if current != expected_version:
                raise VersionConflictError(
                    "Record was modified concurrently",
                    details={"path": path, "expected_version": expected_version, "current_version": current},
                )

        if record is None:
            collection, key = split_path(path)
            record = Record(collection=collection, key=key, data={**partial, "updatedAt": now})
            db.session.add(record)
        else:
            record.data = {**record.data, **partial, "updatedAt": now}

        self._commit(path)
        return record.version_id

    def set(self, path: str, record: dict, *, preserve_timestamps: bool = False) -> None:
        """Replace the document at path with record."""
        path = normalize_path(path)
        if not isinstance(record, dict):
            raise ValidationError("record must be an object")

        data = dict(record)
        if not preserve_timestamps or "updatedAt" not in data:
            data["updatedAt"] = to_utc_z(utcnow())

        existing = self._get(path)
        if existing is None:
            collection, key = split_path(path)
            db.session.add(Record(collection=collection, key=key, data=data))
        else:
            existing.data = data
        self._commit(path)

    def delete(self, path: str) -> bool:
        """Delete a document, or every document of a collection. True if anything was removed."""
        path = normalize_path(path)
        targets = []
        if "/" in path:
            record = self._get(path)
            if record is not None:
                targets.append(record)
        if not targets:
            targets = self._children(path)
        if not targets:
            return False

        for record in targets:
            db.session.delete(record)
        self._commit(path)
        return True

    def list(self, collection: str) -> list[dict]:
        """All documents of a collection, oldest first."""
        collection = normalize_path(collection)
        return [dict(child.data) for child in self._children(collection)]

    def query(
        self,
        collection: str,
        *,
        order_by: str | None = None,
        equal_to: Any = _MISSING,
        limit: int | None = None,
    ) -> list[dict]:
        """
        Filter/sort a collection by one child field.

        equal_to keeps records whose order_by field equals the value; limit
        keeps the last N after ordering (records missing the field sort first).
        """
        rows = self.list(collection)
        if order_by:
            if equal_to is not _MISSING:
                rows = [r for r in rows if r.get(order_by) == equal_to]
            rows.sort(key=lambda r: (r.get(order_by) is not None, _sort_key(r.get(order_by))))
        if limit:
            rows = rows[-limit:]
        return rows

    def subscribe(self, path: str, on_change: Callable[[Any], None]) -> Callable[[], None]:
        """Register on_change for path; returns a function that unsubscribes it."""
        path = normalize_path(path)
        self._listeners.setdefault(path, []).append(on_change)
        on_change(self.read(path))

        def unsubscribe() -> None:
            callbacks = self._listeners.get(path, [])
            if on_change in callbacks:
                callbacks.remove(on_change)
            if not callbacks:
                self._listeners.pop(path, None)

        return unsubscribe


def _sort_key(value):
    if isinstance(value, bool):
        return (0, int(value), "")
    if isinstance(value, (int, float)):
        return (1, value, "")
    if value is None:
        return (0, 0, "")
    return (2, 0, str(value))


records = RecordStore()
