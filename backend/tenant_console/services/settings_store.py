# Overview: Tenant-scoped cache of settings snapshots loaded from the settings API.

"""
Settings Store

WHY: The resolver needs a synchronous, side-effect-free view of the tenant's
settings while the actual fetch is asynchronous. The store keeps one immutable
snapshot per category (or one for "all categories") and notifies subscribers
whenever a snapshot is replaced.

CONVERGENCE: While a category is loading (or failed to load) its snapshot is
simply absent or stale; resolution falls back to defaults and converges when
the next notification fires. Nothing here blocks.

STALENESS: Each load carries a generation number. A load that completes after
a newer load of the same category started, or after the store was reset to a
different tenant, is discarded.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..models import SettingEntry
from .api_client import ApiError, SettingsApi


logger = logging.getLogger(__name__)

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_LOADED = "loaded"
STATUS_ERROR = "error"

# Snapshot slot for an unfiltered get_all()
ALL_CATEGORIES = "*"


class SettingsStore:
    def __init__(self, api: SettingsApi, tenant_id: str | None = None):
        self.api = api
        self.tenant_id = tenant_id
        self._snapshots: dict[str, tuple[SettingEntry, ...]] = {}
        self._status: dict[str, str] = {}
        self._generation: dict[str, int] = {}
        self._epoch = 0
        self._subscribers: list[Callable[[str], None]] = []

    # -- reads -------------------------------------------------------------

    def snapshot(self, category: str | None = None) -> tuple[SettingEntry, ...] | None:
        return self._snapshots.get(category or ALL_CATEGORIES)

    def status(self, category: str | None = None) -> str:
        return self._status.get(category or ALL_CATEGORIES, STATUS_IDLE)

    def matching(self, category: str, key: str) -> list[SettingEntry] | None:
        """
        Entries whose key equals `key` in the snapshot covering `category`.

        Returns None when no snapshot covering the category has loaded yet.
        For entries of `category` the category snapshot wins over the
        all-categories snapshot; entries filed under other categories in the
        all-categories snapshot still count, since keys are unique tenant-wide.
        """
        own = self._snapshots.get(category)
        everything = self._snapshots.get(ALL_CATEGORIES)
        if own is None and everything is None:
            return None
        entries = list(own) if own is not None else []
        if everything is not None:
            entries.extend(e for e in everything if own is None or e.category != category)
        return [e for e in entries if e.key == key]

    # -- subscriptions -----------------------------------------------------

    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, slot: str) -> None:
        for callback in list(self._subscribers):
            try:
                callback(slot)
            except Exception:
                logger.exception("Settings subscriber failed for %s", slot)

    # -- loading -----------------------------------------------------------

    def reset(self, tenant_id: str | None) -> None:
        """Drop every snapshot; in-flight loads become stale."""
        self.tenant_id = tenant_id
        self._epoch += 1
        slots = list(self._snapshots)
        self._snapshots.clear()
        self._status.clear()
        for slot in slots:
            self._notify(slot)

    async def load(self, category: str | None = None) -> bool:
        """
        Fetch one category (or everything) once. No retries.

        Returns True when the snapshot was replaced. Failures are logged and
        leave the previous snapshot in place.
        """
        slot = category or ALL_CATEGORIES
        generation = self._generation.get(slot, 0) + 1
        self._generation[slot] = generation
        epoch = self._epoch
        self._status[slot] = STATUS_LOADING

        def is_current() -> bool:
            return self._generation.get(slot) == generation and self._epoch == epoch

        try:
            entries = await self.api.get_all(category)
        except ApiError as exc:
            if is_current():
                self._status[slot] = STATUS_ERROR
            logger.warning("Failed to load settings for %s: %s", slot, exc)
            return False
        except Exception:
            if is_current():
                self._status[slot] = STATUS_ERROR
            logger.exception("Unexpected failure loading settings for %s", slot)
            raise

        if not is_current():
            logger.debug("Discarding stale settings load for %s", slot)
            return False

        kept = []
        for entry in entries:
            if self.tenant_id and entry.tenant_id and entry.tenant_id != self.tenant_id:
                logger.warning("Ignoring setting %s owned by tenant %s", entry.key, entry.tenant_id)
                continue
            kept.append(entry)

        self._snapshots[slot] = tuple(kept)
        self._status[slot] = STATUS_LOADED
        self._notify(slot)
        return True

    async def invalidate(self) -> None:
        """Reload every slot that has been requested so far."""
        for slot in list(self._status):
            await self.load(None if slot == ALL_CATEGORIES else slot)

    # -- writes ------------------------------------------------------------

    async def create(self, *, key: str, value: Any, category: str, description: str | None = None) -> SettingEntry:
        entry = await self.api.create(key=key, value=value, category=category, description=description)
        await self.invalidate()
        return entry

    async def update(self, key: str, value: Any, description: str | None = None) -> SettingEntry:
        entry = await self.api.update(key, value=value, description=description)
        await self.invalidate()
        return entry

    async def delete(self, key: str) -> None:
        await self.api.delete(key)
        await self.invalidate()
