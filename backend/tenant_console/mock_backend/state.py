# Overview: In-memory tenants, users, tokens and settings behind the stand-in REST API.

"""
Stand-in Backend State

WHY: The console core talks to a REST API it does not own. For local
development and tests this module keeps just enough server state to answer
those calls realistically:

- users with bcrypt password hashes (cost factor configurable)
- opaque access / refresh tokens (secrets.token_hex)
- single-use impersonation tokens with an expiry
- per-tenant settings keyed by setting key
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import bcrypt
from flask import current_app

from ..settings_catalog import SETTINGS_CATALOG
from ..time_utils import to_utc_z, utcnow


EXTENSION_KEY = "tenant_console_mock"
DEFAULT_PASSWORD = "Password123!"


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_token() -> str:
    return secrets.token_hex(32)


@dataclass
class MockUser:
    id: str
    email: str
    password_hash: str
    tenant_id: str | None = None
    first_name: str = ""
    last_name: str = ""
    role: str = "ADMIN"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "tenantId": self.tenant_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role,
        }


@dataclass
class BackendState:
    bcrypt_rounds: int = 12
    users: dict[str, MockUser] = field(default_factory=dict)
    access_tokens: dict[str, str] = field(default_factory=dict)
    refresh_tokens: dict[str, str] = field(default_factory=dict)
    impersonation_tokens: dict[str, tuple[str, datetime]] = field(default_factory=dict)
    settings: dict[str, dict[str, dict]] = field(default_factory=dict)

    # -- users / tokens ----------------------------------------------------

    def add_user(self, email: str, password: str, tenant_id: str | None = None, **fields) -> MockUser:
        if email in self.users:
            raise ValueError(f"User {email} already exists")
        user = MockUser(
            id=uuid.uuid4().hex,
            email=email,
            password_hash=hash_password(password, self.bcrypt_rounds),
            tenant_id=tenant_id,
            **fields,
        )
        self.users[email] = user
        return user

    def authenticate(self, email: str, password: str) -> MockUser | None:
        user = self.users.get(email)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    def issue_session(self, user: MockUser) -> dict:
        access_token = generate_token()
        refresh_token = generate_token()
        self.access_tokens[access_token] = user.email
        self.refresh_tokens[refresh_token] = user.email
        return {"user": user.to_dict(), "accessToken": access_token, "refreshToken": refresh_token}

    def user_for_access_token(self, token: str) -> MockUser | None:
        email = self.access_tokens.get(token)
        return self.users.get(email) if email else None

    def refresh(self, refresh_token: str) -> str | None:
        email = self.refresh_tokens.get(refresh_token)
        if email is None or email not in self.users:
            return None
        access_token = generate_token()
        self.access_tokens[access_token] = email
        return access_token

    def revoke(self, access_token: str) -> bool:
        return self.access_tokens.pop(access_token, None) is not None

    def issue_impersonation_token(self, email: str, ttl_seconds: int) -> str:
        if email not in self.users:
            raise ValueError(f"User {email} not found")
        token = generate_token()
        self.impersonation_tokens[token] = (email, utcnow() + timedelta(seconds=ttl_seconds))
        return token

    def consume_impersonation_token(self, token: str) -> MockUser | None:
        """Single use: the token is gone whether or not it was still valid."""
        entry = self.impersonation_tokens.pop(token, None)
        if entry is None:
            return None
        email, expires_at = entry
        if expires_at < utcnow():
            return None
        return self.users.get(email)

    # -- settings ----------------------------------------------------------

    def tenant_settings(self, tenant_id: str) -> dict[str, dict]:
        return self.settings.setdefault(tenant_id, {})

    def put_setting(self, tenant_id: str, key: str, value: Any, category: str | None = None,
                    description: str | None = None, is_system: bool = False) -> dict:
        now = to_utc_z(utcnow())
        existing = self.tenant_settings(tenant_id).get(key)
        entry = {
            "id": existing["id"] if existing else uuid.uuid4().hex,
            "tenantId": tenant_id,
            "key": key,
            "category": category or (existing or {}).get("category") or key.split(".", 1)[0],
            "value": value,
            "description": description if description is not None else (existing or {}).get("description"),
            "isSystem": is_system or bool((existing or {}).get("isSystem")),
            "createdAt": existing["createdAt"] if existing else now,
            "updatedAt": now,
        }
        # Replaced wholesale, never mutated in place
        self.tenant_settings(tenant_id)[key] = entry
        return entry

    def initialize_defaults(self, tenant_id: str) -> int:
        created = 0
        for key, kind in SETTINGS_CATALOG.items():
            if key in self.tenant_settings(tenant_id):
                continue
            default = kind.default
            value = default.to_dict() if hasattr(default, "to_dict") else list(default)
            self.put_setting(tenant_id, key, value, is_system=True)
            created += 1
        return created


def seed_demo_data(state: BackendState) -> None:
    """Two tenants and a tenant-less super admin; all share DEFAULT_PASSWORD."""
    state.add_user("superadmin@console.local", DEFAULT_PASSWORD, None,
                   first_name="Super", last_name="Admin", role="SUPER_ADMIN")
    state.add_user("admin@acme.test", DEFAULT_PASSWORD, "tenant-acme",
                   first_name="Ada", last_name="Acme", role="ADMIN")
    state.add_user("admin@beta.test", DEFAULT_PASSWORD, "tenant-beta",
                   first_name="Ben", last_name="Beta", role="ADMIN")
    state.put_setting("tenant-acme", "finance.currency", {"code": "EUR", "symbol": "€", "position": "after",
                                                           "decimalSeparator": ",", "thousandSeparator": "."})
    state.put_setting("tenant-acme", "clients.types", ["Retail", "Wholesale"])


def get_state() -> BackendState:
    return current_app.extensions[EXTENSION_KEY]
