# Overview: Key-value persistence over the storage_entries table.

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import StorageEntry
from ..validation import PosError

logger = logging.getLogger(__name__)


class StorageError(PosError):
    """Persistence failure. Logged; in-memory state stays authoritative."""
    status_code = 500


class KeyValueStorage:
    """
    Local key-value store: get(key, default) / set(key, value).

    Values are JSON documents. Neither call ever raises to the caller:
    reads fall back to the default on any failure, writes log the failure
    and report it through their boolean result.
    """

    def __init__(self, prefix: str = "pos_"):
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str, default: Any = None) -> Any:
        try:
            entry = db.session.get(StorageEntry, self._key(key))
            if entry is None:
                return default
            return json.loads(entry.value_json)
        except (SQLAlchemyError, ValueError) as exc:
            db.session.rollback()
            logger.error("Error reading %s from storage: %s", self._key(key), exc)
            return default

    def set(self, key: str, value: Any) -> bool:
        return self.set_many({key: value})

    def set_many(self, values: dict[str, Any]) -> bool:
        """Write several keys in one transaction: all of them land or none do."""
        try:
            self._write(values)
        except StorageError as exc:
            logger.error("Error saving to storage: %s (%s)", exc, exc.__cause__)
            return False
        return True

    def _write(self, values: dict[str, Any]) -> None:
        try:
            for key, value in values.items():
                payload = json.dumps(value, ensure_ascii=False)
                entry = db.session.get(StorageEntry, self._key(key))
                if entry is None:
                    db.session.add(StorageEntry(key=self._key(key), value_json=payload))
                else:
                    entry.value_json = payload
            db.session.commit()
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            db.session.rollback()
            raise StorageError(f"failed to write {', '.join(sorted(values))}") from exc

    def keys(self) -> list[str]:
        rows = (
            db.session.query(StorageEntry.key)
            .filter(StorageEntry.key.startswith(self.prefix, autoescape=True))
            .order_by(StorageEntry.key)
            .all()
        )
        return [row.key[len(self.prefix):] for row in rows]

    def clear(self) -> int:
        """Delete every key under this prefix. Returns the number removed."""
        try:
            removed = (
                db.session.query(StorageEntry)
                .filter(StorageEntry.key.startswith(self.prefix, autoescape=True))
                .delete(synchronize_session=False)
            )
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError("failed to clear storage") from exc
        return removed
