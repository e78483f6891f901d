# Overview: Resolves the effective value of a tenant setting from the store snapshot and compiled-in defaults.

from __future__ import annotations

import logging
from typing import Any, Callable

from ..models import CurrencyFormatOptions, InvoiceNumberingConfig
from ..settings_catalog import (
    SETTINGS_CATALOG,
    CURRENCY_KEY,
    INVOICE_NUMBERING_KEY,
    PAYMENT_TERMS_KEY,
    RecordKind,
    ListKind,
)
from .settings_store import ALL_CATEGORIES, SettingsStore


logger = logging.getLogger(__name__)


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


class UnknownSettingError(SettingsError):
    pass


class ConfigurationIntegrityError(SettingsError):
    """More than one stored entry claims the same key."""

    def __init__(self, key: str, count: int):
        super().__init__(f"{key}: {count} stored entries share this key")
        self.key = key
        self.count = count


def kind_for(key: str, catalog: dict[str, RecordKind | ListKind] | None = None) -> RecordKind | ListKind:
    kind = (catalog or SETTINGS_CATALOG).get(key)
    if kind is None:
        raise UnknownSettingError(f"{key}: no compiled-in default")
    return kind


def merge_over_defaults(key: str, override: Any, catalog: dict | None = None) -> Any:
    """Merge a (possibly partial, possibly malformed) stored value over the key's default."""
    return kind_for(key, catalog).merge(override)


class SettingsResolver:
    """
    resolve(category, key) -> fully-populated value

    Pure function of the current store snapshot:
    - snapshot not loaded yet -> default verbatim
    - no entry with that key -> default verbatim
    - exactly one entry -> its value merged over the default
    - several entries -> ConfigurationIntegrityError
    """

    def __init__(self, store: SettingsStore, catalog: dict[str, RecordKind | ListKind] | None = None):
        self.store = store
        self.catalog = catalog or SETTINGS_CATALOG

    def resolve(self, category: str, key: str) -> Any:
        if not isinstance(category, str) or not category:
            raise SettingsValidationError("category must be a non-empty string")
        if not isinstance(key, str) or not key:
            raise SettingsValidationError("key must be a non-empty string")

        kind = kind_for(key, self.catalog)
        matches = self.store.matching(category, key)
        if not matches:
            return kind.default
        if len(matches) > 1:
            raise ConfigurationIntegrityError(key, len(matches))
        return kind.merge(matches[0].value)

    def resolve_currency(self) -> CurrencyFormatOptions:
        return self.resolve("finance", CURRENCY_KEY)

    def resolve_payment_terms(self) -> tuple:
        return self.resolve("finance", PAYMENT_TERMS_KEY)

    def resolve_invoice_numbering(self) -> InvoiceNumberingConfig:
        return self.resolve("billing", INVOICE_NUMBERING_KEY)

    def watch(
        self,
        category: str,
        key: str,
        callback: Callable[[Any], None],
        on_error: Callable[[SettingsError], None] | None = None,
    ) -> Callable[[], None]:
        """
        Deliver the resolved value now and again after every store update that
        touches `category`. Returns an unsubscribe function.
        """
        def deliver() -> None:
            try:
                value = self.resolve(category, key)
            except ConfigurationIntegrityError as exc:
                if on_error is None:
                    logger.error("Cannot resolve %s: %s", key, exc)
                    return
                on_error(exc)
                return
            callback(value)

        def on_update(slot: str) -> None:
            if slot in (category, ALL_CATEGORIES):
                deliver()

        unsubscribe = self.store.subscribe(on_update)
        deliver()
        return unsubscribe
