# Overview: Compiled-in default for every tenant setting key the console interprets.

"""
Settings Catalog

Each supported key maps to a *kind*: either a record kind (the stored value is
a partial object merged field-by-field over a complete default dataclass) or a
list kind (the stored value replaces an empty default wholesale, element by
element). Merging is total: whatever is stored, the result is a complete value
of the kind's type.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, Callable

from .models import (
    CurrencyFormatOptions,
    InvoiceNumberingConfig,
    PaymentTerm,
    SYMBOL_POSITIONS,
    RESET_FREQUENCIES,
)


logger = logging.getLogger(__name__)

MAX_DECIMALS = 20


def _string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("expected string")
    return value


def _non_empty_string(value: Any) -> str:
    s = _string(value)
    if s == "":
        raise ValueError("expected non-empty string")
    return s


def _int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("expected integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and int(value) == value:
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValueError("expected integer")


def _decimals(value: Any) -> int:
    n = _int(value)
    if n < 0 or n > MAX_DECIMALS:
        raise ValueError(f"expected 0..{MAX_DECIMALS}")
    return n


def _positive_int(value: Any) -> int:
    n = _int(value)
    if n < 1:
        raise ValueError("expected positive integer")
    return n


def _bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError("expected boolean")


def _one_of(options: tuple[str, ...]) -> Callable[[Any], str]:
    def coerce(value: Any) -> str:
        if value not in options:
            raise ValueError(f"expected one of {list(options)}")
        return value
    return coerce


def _payment_term(value: Any) -> PaymentTerm:
    if not isinstance(value, dict):
        raise ValueError("expected object")
    days = _int(value.get("days"))
    if days < 0:
        raise ValueError("days must be >= 0")
    return PaymentTerm(
        value=_non_empty_string(value.get("value")),
        label=_string(value.get("label", "")),
        days=days,
        is_default=_bool(value.get("isDefault", False)),
    )


@dataclass(frozen=True)
class FieldSpec:
    wire_name: str
    attr: str
    coerce: Callable[[Any], Any]


@dataclass(frozen=True)
class RecordKind:
    key: str
    default: Any
    fields: tuple[FieldSpec, ...]

    def merge(self, override: Any) -> Any:
        if override is None:
            return self.default
        if not isinstance(override, dict):
            logger.warning("Setting %s: stored value is not an object; using defaults", self.key)
            return self.default
        changes = {}
        for spec in self.fields:
            if spec.wire_name not in override:
                continue
            try:
                changes[spec.attr] = spec.coerce(override[spec.wire_name])
            except ValueError as exc:
                logger.warning("Setting %s: ignoring %s (%s)", self.key, spec.wire_name, exc)
        return replace(self.default, **changes)


@dataclass(frozen=True)
class ListKind:
    key: str
    coerce_item: Callable[[Any], Any]
    default: tuple = ()

    def merge(self, override: Any) -> tuple:
        if override is None:
            return self.default
        if not isinstance(override, list):
            logger.warning("Setting %s: stored value is not a list; using defaults", self.key)
            return self.default
        items = []
        for index, raw in enumerate(override):
            try:
                items.append(self.coerce_item(raw))
            except ValueError as exc:
                logger.warning("Setting %s: dropping item %d (%s)", self.key, index, exc)
        return tuple(items)


CURRENCY_KEY = "finance.currency"
PAYMENT_TERMS_KEY = "finance.payment_terms"
INVOICE_NUMBERING_KEY = "billing.invoice_numbering"

CURRENCY_KIND = RecordKind(
    key=CURRENCY_KEY,
    default=CurrencyFormatOptions(),
    fields=(
        FieldSpec("code", "code", _non_empty_string),
        FieldSpec("symbol", "symbol", _string),
        FieldSpec("position", "position", _one_of(SYMBOL_POSITIONS)),
        FieldSpec("decimalSeparator", "decimal_separator", _non_empty_string),
        FieldSpec("thousandSeparator", "thousand_separator", _string),
        FieldSpec("decimals", "decimals", _decimals),
    ),
)

INVOICE_NUMBERING_KIND = RecordKind(
    key=INVOICE_NUMBERING_KEY,
    default=InvoiceNumberingConfig(),
    fields=(
        FieldSpec("prefixTemplate", "prefix_template", _string),
        FieldSpec("formatTemplate", "format_template", _string),
        FieldSpec("sequenceLength", "sequence_length", _int),
        FieldSpec("resetFrequency", "reset_frequency", _one_of(RESET_FREQUENCIES)),
        FieldSpec("nextSequence", "next_sequence", _positive_int),
        FieldSpec("allowManualOverride", "allow_manual_override", _bool),
    ),
)

SETTINGS_CATALOG: dict[str, RecordKind | ListKind] = {
    CURRENCY_KEY: CURRENCY_KIND,
    INVOICE_NUMBERING_KEY: INVOICE_NUMBERING_KIND,
    PAYMENT_TERMS_KEY: ListKind(key=PAYMENT_TERMS_KEY, coerce_item=_payment_term),
    "clients.types": ListKind(key="clients.types", coerce_item=_non_empty_string),
    "products.types": ListKind(key="products.types", coerce_item=_non_empty_string),
    "units.quantity": ListKind(key="units.quantity", coerce_item=_non_empty_string),
    "units.weight": ListKind(key="units.weight", coerce_item=_non_empty_string),
    "units.volume": ListKind(key="units.volume", coerce_item=_non_empty_string),
}
