from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..time_utils import parse_iso_datetime


POSITION_BEFORE = "before"
POSITION_AFTER = "after"
SYMBOL_POSITIONS = (POSITION_BEFORE, POSITION_AFTER)

RESET_NEVER = "NEVER"
RESET_MONTHLY = "MONTHLY"
RESET_YEARLY = "YEARLY"
RESET_FREQUENCIES = (RESET_NEVER, RESET_MONTHLY, RESET_YEARLY)


@dataclass(frozen=True)
class SettingEntry:
    """
    One tenant setting as returned by the settings API.

    Entries are replaced wholesale on update; `value` is the raw JSON payload
    and its shape depends on the key (see settings_catalog).
    """
    key: str
    category: str
    value: Any
    id: str | None = None
    tenant_id: str | None = None
    description: str | None = None
    is_system: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "SettingEntry":
        key = data.get("key")
        if not isinstance(key, str) or not key:
            raise ValueError("Setting entry requires a key")
        category = data.get("category")
        if not isinstance(category, str) or not category:
            # Keys are namespaced "<category>.<name>"
            category = key.split(".", 1)[0]
        return cls(
            key=key,
            category=category,
            value=data.get("value"),
            id=data.get("id"),
            tenant_id=data.get("tenantId"),
            description=data.get("description"),
            is_system=bool(data.get("isSystem", False)),
            created_at=parse_iso_datetime(data.get("createdAt")),
            updated_at=parse_iso_datetime(data.get("updatedAt")),
        )


@dataclass(frozen=True)
class CurrencyFormatOptions:
    code: str = "USD"
    symbol: str = "$"
    position: str = POSITION_BEFORE
    decimal_separator: str = "."
    thousand_separator: str = ","
    decimals: int = 2

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "symbol": self.symbol,
            "position": self.position,
            "decimalSeparator": self.decimal_separator,
            "thousandSeparator": self.thousand_separator,
            "decimals": self.decimals,
        }


@dataclass(frozen=True)
class InvoiceNumberingConfig:
    prefix_template: str = "INV-{YYYY}"
    format_template: str = "{PREFIX}-{YYYY}-{SEQ}"
    sequence_length: int = 3
    reset_frequency: str = RESET_YEARLY
    next_sequence: int = 1
    allow_manual_override: bool = False

    def to_dict(self) -> dict:
        return {
            "prefixTemplate": self.prefix_template,
            "formatTemplate": self.format_template,
            "sequenceLength": self.sequence_length,
            "resetFrequency": self.reset_frequency,
            "nextSequence": self.next_sequence,
            "allowManualOverride": self.allow_manual_override,
        }


@dataclass(frozen=True)
class PaymentTerm:
    value: str
    label: str
    days: int
    is_default: bool = False
