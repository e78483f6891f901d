# Overview: httpx-based REST collaborators (auth, settings) used by the console core.

"""
REST Client

WHY: The console core never talks HTTP directly. Session and settings services
depend on AuthApi / SettingsApi, which translate transport and status failures
into a small error taxonomy:

- ApiNetworkError: the request never produced a response (connect, timeout)
- ApiRejectedError: the server refused it (4xx, or 501 "not implemented"),
  e.g. an expired impersonation token or an endpoint that does not exist yet
- ApiServerError: any other 5xx
- AuthenticationRequired: 401 that could not be cured by a token refresh

Requests carry `Authorization` / `X-Tenant-ID` from a headers provider (the
session manager). A 401 on a normal request triggers one refresh-and-retry.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

import httpx

from ..models import AuthResult, LoginCredentials, SettingEntry, User


logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ApiNetworkError(ApiError):
    pass


class ApiRejectedError(ApiError):
    pass


class ApiServerError(ApiError):
    pass


class AuthenticationRequired(ApiError):
    pass


def _error_message(response: httpx.Response) -> tuple[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if isinstance(message, str) and message:
            return message, payload
    return f"HTTP {response.status_code}", payload


def _items(payload: Any) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "items"):
            if isinstance(payload.get(key), list):
                return payload[key]
    raise ApiServerError("Unexpected list payload", payload=payload)


class ApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        headers_provider: Callable[[], dict[str, str]] | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        self.headers_provider = headers_provider
        self.refresh_handler: Callable[[], Awaitable[str]] | None = None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(self, method: str, path: str, *, json: Any, params: dict | None,
                    headers: dict[str, str]) -> httpx.Response:
        try:
            return await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TransportError as exc:
            raise ApiNetworkError(f"{method} {path} failed: {exc}") from exc

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict | None = None,
        headers: dict[str, str] | None = None,
        authenticated: bool = True,
        retry_on_401: bool = True,
    ) -> Any:
        def build_headers() -> dict[str, str]:
            out = {}
            if authenticated and self.headers_provider:
                out.update(self.headers_provider())
            out.update(headers or {})
            return out

        response = await self._send(method, path, json=json, params=params, headers=build_headers())

        if response.status_code == 401 and authenticated and retry_on_401 and self.refresh_handler:
            logger.info("%s %s returned 401; refreshing access token", method, path)
            await self.refresh_handler()
            response = await self._send(method, path, json=json, params=params, headers=build_headers())
            if response.status_code == 401:
                message, payload = _error_message(response)
                raise AuthenticationRequired(message, 401, payload)

        if response.status_code >= 400:
            message, payload = _error_message(response)
            if response.status_code == 401 and authenticated:
                raise AuthenticationRequired(message, 401, payload)
            if response.status_code < 500 or response.status_code == 501:
                raise ApiRejectedError(message, response.status_code, payload)
            raise ApiServerError(message, response.status_code, payload)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiServerError(f"{method} {path}: response is not JSON") from exc


class AuthApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def login(self, credentials: LoginCredentials) -> AuthResult:
        data = await self.client.request(
            "POST", "/auth/login", json=credentials.to_dict(), authenticated=False,
        )
        return _auth_result(data)

    async def logout(self, access_token: str) -> None:
        await self.client.request(
            "POST", "/auth/logout",
            headers={"Authorization": f"Bearer {access_token}"},
            authenticated=False,
        )

    async def refresh(self, refresh_token: str) -> str:
        data = await self.client.request(
            "POST", "/auth/refresh", json={"refreshToken": refresh_token}, authenticated=False,
        )
        token = data.get("accessToken") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise ApiServerError("Refresh response is missing accessToken", payload=data)
        return token

    async def impersonate(self, token: str) -> AuthResult:
        # Unauthenticated on purpose: the exchange must not read the primary session
        data = await self.client.request(
            "POST", "/auth/impersonate", json={"token": token}, authenticated=False,
        )
        return _auth_result(data)

    async def me(self) -> User:
        data = await self.client.request("GET", "/auth/me")
        try:
            return User.from_dict(data)
        except ValueError as exc:
            raise ApiServerError(str(exc), payload=data) from exc


def _auth_result(data: Any) -> AuthResult:
    try:
        return AuthResult.from_dict(data)
    except ValueError as exc:
        raise ApiServerError(f"Malformed auth response: {exc}", payload=data) from exc


def _entry(data: Any) -> SettingEntry:
    if not isinstance(data, dict):
        raise ApiServerError("Malformed setting payload", payload=data)
    try:
        return SettingEntry.from_dict(data)
    except ValueError as exc:
        raise ApiServerError(f"Malformed setting payload: {exc}", payload=data) from exc


class SettingsApi:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_all(self, category: str | None = None) -> list[SettingEntry]:
        params = {"category": category} if category else None
        data = await self.client.request("GET", "/settings", params=params)
        return [_entry(row) for row in _items(data)]

    async def get_by_key(self, key: str) -> SettingEntry:
        data = await self.client.request("GET", f"/settings/{key}")
        return _entry(data)

    async def create(self, *, key: str, value: Any, category: str, description: str | None = None) -> SettingEntry:
        payload = {"key": key, "value": value, "category": category}
        if description is not None:
            payload["description"] = description
        data = await self.client.request("POST", "/settings", json=payload)
        return _entry(data)

    async def update(self, key: str, *, value: Any = None, description: str | None = None) -> SettingEntry:
        payload: dict[str, Any] = {"value": value}
        if description is not None:
            payload["description"] = description
        data = await self.client.request("PATCH", f"/settings/{key}", json=payload)
        return _entry(data)

    async def delete(self, key: str) -> None:
        await self.client.request("DELETE", f"/settings/{key}")

    async def initialize_defaults(self) -> None:
        await self.client.request("POST", "/settings/initialize")
