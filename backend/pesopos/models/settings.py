from __future__ import annotations

from dataclasses import dataclass, asdict, fields, replace

from ..time_utils import DEFAULT_TIMEZONE


@dataclass(frozen=True)
class BusinessSettings:
    """
    Shop identity, VAT and receipt layout.

    A singleton: updates produce a new instance via with_updates() and the
    whole object is persisted.
    """
    business_name: str = "BALANDZXC POS"
    address: str = "123 Barangay Street, Gabao, Irosin"
    tin: str = "123-456-789-000"
    bir_permit_number: str = "FP-12345678"
    contact_number: str = "+63 912 345 6789"
    email: str = "store@example.com"
    receipt_header: str = ""
    receipt_footer: str = "Salamat sa inyong pagbili!"
    vat_enabled: bool = True
    vat_rate: float = 0.12
    receipt_width: int = 80
    receipt_font_size: int = 12
    show_business_name: bool = True
    show_address: bool = True
    show_tin: bool = True
    show_bir_permit: bool = True
    show_contact_number: bool = True
    timezone: str = DEFAULT_TIMEZONE

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> "BusinessSettings":
        # Unknown keys from older payloads are ignored; missing keys take defaults
        known = cls.field_names()
        return cls(**{k: v for k, v in (data or {}).items() if k in known})

    def with_updates(self, updates: dict) -> "BusinessSettings":
        return replace(self, **updates)
