from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SessionScope(str, Enum):
    PRIMARY = "primary"
    IMPERSONATED = "impersonated"


class SessionState(str, Enum):
    NO_SESSION = "NoSession"
    PRIMARY_ACTIVE = "PrimaryActive"
    IMPERSONATED_ACTIVE = "ImpersonatedActive"
    PRIMARY_AND_IMPERSONATED_ACTIVE = "PrimaryAndImpersonatedActive"


@dataclass(frozen=True)
class User:
    """
    Identity record returned by the auth API.

    `extra` keeps the fields this package does not interpret (avatar,
    timestamps, ...) so a stored user round-trips without loss.
    """
    id: str
    email: str
    tenant_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    _KNOWN = ("id", "email", "tenantId", "firstName", "lastName", "role")

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        if not isinstance(data, dict):
            raise ValueError("User payload must be an object")
        user_id = data.get("id")
        email = data.get("email")
        if user_id is None or not isinstance(email, str) or not email:
            raise ValueError("User payload requires id and email")
        tenant_id = data.get("tenantId")
        return cls(
            id=str(user_id),
            email=email,
            tenant_id=str(tenant_id) if tenant_id not in (None, "") else None,
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            role=data.get("role"),
            extra={k: v for k, v in data.items() if k not in cls._KNOWN},
        )

    @classmethod
    def from_json(cls, raw: str) -> "User":
        return cls.from_dict(json.loads(raw))

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "email": self.email,
            "tenantId": self.tenant_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role,
        })
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), sort_keys=True)


@dataclass(frozen=True)
class Session:
    scope: SessionScope
    access_token: str
    user: User
    refresh_token: str | None = None

    @property
    def tenant_id(self) -> str | None:
        return self.user.tenant_id


@dataclass(frozen=True)
class AuthResult:
    """The {accessToken, refreshToken?, user} triple issued by the auth API."""
    access_token: str
    user: User
    refresh_token: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "AuthResult":
        if not isinstance(data, dict):
            raise ValueError("Auth response must be an object")
        access_token = data.get("accessToken")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("Auth response is missing accessToken")
        refresh_token = data.get("refreshToken") or None
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            user=User.from_dict(data.get("user")),
        )


@dataclass(frozen=True)
class LoginCredentials:
    email: str
    password: str = field(repr=False)

    def to_dict(self) -> dict:
        return {"email": self.email, "password": self.password}
