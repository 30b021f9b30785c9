from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class StorageEntry(db.Model):
    """
    One key of the local key-value store.

    The whole POS state (catalog, sales ledger, stock adjustment log,
    settings, users, held carts) lives in a handful of these rows, each
    holding a JSON document. Writes that must land together go through
    KeyValueStorage.set_many, which commits them in one transaction.
    """
    __tablename__ = "storage_entries"

    key = db.Column(db.String(128), primary_key=True)
    value_json = db.Column(db.Text, nullable=False)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<StorageEntry key={self.key!r} bytes={len(self.value_json or '')}>"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "size": len(self.value_json or ""),
            "updated_at": to_utc_z(self.updated_at),
        }
