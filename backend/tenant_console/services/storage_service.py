# Overview: The two key-value storage boundaries session identities live in.

"""
Storage Boundaries

WHY: An operator's own session and an impersonated tenant session must never
see or overwrite each other's credentials. Instead of one mutable global, each
lives in its own independently addressable namespace:

- SharedStorage: cross-tab, persistent until logout (browser localStorage).
  Backed by SQLAlchemy so every tab (and every process) pointing at the same
  database and origin reads the same values. Multi-key writes are one
  transaction.
- TabStorage: owned by exactly one tab, in memory, gone when the tab closes
  (browser sessionStorage). Multi-key writes build a new mapping and swap it
  in, so a reader never observes half of a write.

Both expose the same small interface; services get handed the boundary they
are allowed to touch and nothing else.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import sessionmaker

from ..extensions import make_engine, make_session_factory
from ..models import SharedStorageEntry


ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"
TENANT_ID_KEY = "tenantId"
IMPERSONATED_KEY = "impersonated"

SESSION_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY, TENANT_ID_KEY)


class StorageError(Exception):
    pass


class StorageClosedError(StorageError):
    pass


class StorageBoundary(ABC):
    name = "storage"

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def items(self) -> dict[str, str]:
        ...

    @abstractmethod
    def apply(self, updates: dict[str, str] | None = None, removals: Iterable[str] = ()) -> None:
        """Write `updates` and delete `removals` as one atomic change."""

    def set(self, key: str, value: str) -> None:
        self.apply({key: value})

    def remove(self, *keys: str) -> None:
        self.apply(removals=keys)

    def snapshot(self) -> dict[str, str]:
        return dict(self.items())


class TabStorage(StorageBoundary):
    name = "tab"

    def __init__(self, tab_id: str | None = None):
        self.tab_id = tab_id or uuid.uuid4().hex
        self._data: dict[str, str] = {}
        self.closed = False

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def items(self) -> dict[str, str]:
        return dict(self._data)

    def apply(self, updates: dict[str, str] | None = None, removals: Iterable[str] = ()) -> None:
        if self.closed:
            raise StorageClosedError(f"Tab {self.tab_id} is closed")
        data = dict(self._data)
        for key in removals:
            data.pop(key, None)
        for key, value in (updates or {}).items():
            data[key] = str(value)
        self._data = data

    def close(self) -> None:
        """The tab went away; its storage goes with it."""
        self._data = {}
        self.closed = True


class SharedStorage(StorageBoundary):
    name = "shared"

    def __init__(self, session_factory: sessionmaker, origin: str):
        self._session_factory = session_factory
        self.origin = origin

    @classmethod
    def from_url(cls, url: str, origin: str) -> "SharedStorage":
        return cls(make_session_factory(make_engine(url)), origin)

    def get(self, key: str) -> str | None:
        with self._session_factory() as session:
            return session.execute(
                select(SharedStorageEntry.value).where(
                    SharedStorageEntry.origin == self.origin,
                    SharedStorageEntry.key == key,
                )
            ).scalar_one_or_none()

    def items(self) -> dict[str, str]:
        with self._session_factory() as session:
            rows = session.execute(
                select(SharedStorageEntry.key, SharedStorageEntry.value).where(
                    SharedStorageEntry.origin == self.origin
                )
            ).all()
        return {key: value for key, value in rows}

    def apply(self, updates: dict[str, str] | None = None, removals: Iterable[str] = ()) -> None:
        removals = [k for k in removals if k not in (updates or {})]
        with self._session_factory.begin() as session:
            if removals:
                session.execute(
                    delete(SharedStorageEntry).where(
                        SharedStorageEntry.origin == self.origin,
                        SharedStorageEntry.key.in_(removals),
                    )
                )
            for key, value in (updates or {}).items():
                row = session.execute(
                    select(SharedStorageEntry).where(
                        SharedStorageEntry.origin == self.origin,
                        SharedStorageEntry.key == key,
                    )
                ).scalar_one_or_none()
                if row is None:
                    session.add(SharedStorageEntry(origin=self.origin, key=key, value=str(value)))
                else:
                    row.value = str(value)
