from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..time_utils import utcnow, to_utc_z, parse_iso_datetime


@dataclass
class User:
    id: str
    username: str
    name: str
    role: str
    password_hash: str
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self, include_hash: bool = False) -> dict:
        data = {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
        if include_hash:
            data["password_hash"] = self.password_hash
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=data["id"],
            username=data["username"],
            name=data.get("name") or data["username"],
            role=data.get("role", "cashier"),
            password_hash=data.get("password_hash", ""),
            is_active=bool(data.get("is_active", True)),
            created_at=parse_iso_datetime(data.get("created_at")) or utcnow(),
        )
