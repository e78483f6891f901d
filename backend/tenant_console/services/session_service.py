# Overview: Dual-session identity model; primary (cross-tab) and impersonated (tab-local) sessions.

"""
Session Identity Model with Tab-Isolated Impersonation

WHY: A super admin keeps their own session open while supporting a tenant in
another tab. The two identities must coexist without ever touching each
other's stored credentials.

STATES (derived from storage, never cached):
- NoSession
- PrimaryActive                 shared boundary holds a session
- ImpersonatedActive            this tab's boundary holds a session
- PrimaryAndImpersonatedActive  both

OWNERSHIP:
- login / logout / token refresh of the primary session write the shared
  boundary only.
- impersonation install / end write this tab's boundary only.
- Reads of "who am I / which tenant" prefer the impersonated session. When it
  exists the shared boundary is not even consulted.

CORRUPTION: a boundary holding an unreadable or inconsistent identity (bad
user JSON, token without user, tenantId disagreeing with user.tenantId) is
treated as empty and its session keys are cleared.
"""

from __future__ import annotations

import logging

from ..models import AuthResult, LoginCredentials, Session, SessionScope, SessionState, User
from .api_client import ApiError, AuthApi, AuthenticationRequired
from .storage_service import (
    ACCESS_TOKEN_KEY,
    IMPERSONATED_KEY,
    REFRESH_TOKEN_KEY,
    SESSION_KEYS,
    TENANT_ID_KEY,
    USER_KEY,
    SharedStorage,
    StorageBoundary,
    TabStorage,
)


logger = logging.getLogger(__name__)

IMPERSONATED_FLAG = "true"


class SessionError(Exception):
    pass


class SessionConflictError(SessionError):
    pass


class CorruptSessionError(SessionError, ValueError):
    pass


def read_session(boundary: StorageBoundary, scope: SessionScope) -> Session | None:
    """
    Build a Session from one boundary's keys, read as a single snapshot.

    Raises CorruptSessionError for inconsistent contents.
    """
    data = boundary.items()
    if scope == SessionScope.IMPERSONATED and data.get(IMPERSONATED_KEY) != IMPERSONATED_FLAG:
        return None

    token = data.get(ACCESS_TOKEN_KEY)
    raw_user = data.get(USER_KEY)
    if not token and not raw_user:
        if scope == SessionScope.IMPERSONATED:
            raise CorruptSessionError("Impersonation flag set without a session")
        return None
    if not token or not raw_user:
        raise CorruptSessionError("Stored session is missing its token or user")

    try:
        user = User.from_json(raw_user)
    except ValueError as exc:
        raise CorruptSessionError(f"Stored user is unreadable: {exc}") from exc

    if data.get(TENANT_ID_KEY) != user.tenant_id:
        raise CorruptSessionError("Stored tenantId does not match the stored user")

    return Session(
        scope=scope,
        access_token=token,
        refresh_token=data.get(REFRESH_TOKEN_KEY) or None,
        user=user,
    )


def session_writes(result: AuthResult, scope: SessionScope) -> tuple[dict[str, str], list[str]]:
    """The complete set of key writes/removals that installs `result`."""
    updates = {
        ACCESS_TOKEN_KEY: result.access_token,
        USER_KEY: result.user.to_json(),
    }
    removals = []
    if result.refresh_token:
        updates[REFRESH_TOKEN_KEY] = result.refresh_token
    else:
        removals.append(REFRESH_TOKEN_KEY)
    if result.user.tenant_id:
        updates[TENANT_ID_KEY] = result.user.tenant_id
    else:
        removals.append(TENANT_ID_KEY)
    if scope == SessionScope.IMPERSONATED:
        updates[IMPERSONATED_KEY] = IMPERSONATED_FLAG
    return updates, removals


class SessionManager:
    """Session identity for ONE browser tab of an origin."""

    def __init__(self, shared: SharedStorage, tab: TabStorage, auth_api: AuthApi | None = None):
        self.shared = shared
        self.tab = tab
        self.auth_api = auth_api

    def _boundary(self, scope: SessionScope) -> StorageBoundary:
        return self.tab if scope == SessionScope.IMPERSONATED else self.shared

    def _clear(self, scope: SessionScope) -> None:
        boundary = self._boundary(scope)
        if scope == SessionScope.IMPERSONATED:
            if boundary.closed:
                return
            boundary.remove(*SESSION_KEYS, IMPERSONATED_KEY)
        else:
            boundary.remove(*SESSION_KEYS)

    def _load(self, scope: SessionScope) -> Session | None:
        try:
            return read_session(self._boundary(scope), scope)
        except CorruptSessionError as exc:
            logger.warning("Discarding %s session from %s storage: %s", scope.value, self._boundary(scope).name, exc)
            self._clear(scope)
            return None

    # -- reads -------------------------------------------------------------

    def primary_session(self) -> Session | None:
        return self._load(SessionScope.PRIMARY)

    def impersonated_session(self) -> Session | None:
        return self._load(SessionScope.IMPERSONATED)

    def active_session(self) -> Session | None:
        """Impersonation is a strict override within this tab."""
        return self.impersonated_session() or self.primary_session()

    @property
    def state(self) -> SessionState:
        impersonated = self.impersonated_session() is not None
        primary = self.primary_session() is not None
        if impersonated and primary:
            return SessionState.PRIMARY_AND_IMPERSONATED_ACTIVE
        if impersonated:
            return SessionState.IMPERSONATED_ACTIVE
        if primary:
            return SessionState.PRIMARY_ACTIVE
        return SessionState.NO_SESSION

    @property
    def is_impersonating(self) -> bool:
        return self.impersonated_session() is not None

    def current_user(self) -> User | None:
        session = self.active_session()
        return session.user if session else None

    def tenant_id(self) -> str | None:
        session = self.active_session()
        return session.tenant_id if session else None

    def auth_headers(self) -> dict[str, str]:
        session = self.active_session()
        if session is None:
            return {}
        headers = {"Authorization": f"Bearer {session.access_token}"}
        if session.tenant_id:
            headers["X-Tenant-ID"] = session.tenant_id
        return headers

    # -- transitions -------------------------------------------------------

    async def login(self, credentials: LoginCredentials) -> Session:
        if self.impersonated_session() is not None:
            raise SessionConflictError("End the impersonated session in this tab before signing in")
        if self.auth_api is None:
            raise SessionError("No auth collaborator configured")

        result = await self.auth_api.login(credentials)
        updates, removals = session_writes(result, SessionScope.PRIMARY)
        self.shared.apply(updates, removals)
        logger.info("Primary session started for %s", result.user.email)
        return Session(
            scope=SessionScope.PRIMARY,
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            user=result.user,
        )

    async def logout(self) -> SessionState:
        """
        End the primary session. The tab's impersonated session (if any)
        survives; it has its own lifecycle.
        """
        session = self.primary_session()
        if session is not None and self.auth_api is not None:
            try:
                await self.auth_api.logout(session.access_token)
            except ApiError as exc:
                logger.warning("Server-side logout failed: %s", exc)
        self._clear(SessionScope.PRIMARY)
        logger.info("Primary session cleared")
        return self.state

    def install_impersonated(self, result: AuthResult) -> Session:
        """Write the whole impersonated identity to this tab in one step."""
        updates, removals = session_writes(result, SessionScope.IMPERSONATED)
        self.tab.apply(updates, removals)
        return Session(
            scope=SessionScope.IMPERSONATED,
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            user=result.user,
        )

    def end_impersonation(self) -> SessionState:
        self._clear(SessionScope.IMPERSONATED)
        logger.info("Impersonated session cleared from tab %s", self.tab.tab_id)
        return self.state

    def update_user(self, user: User) -> None:
        """Replace the stored user of the authoritative session."""
        scope = SessionScope.IMPERSONATED if self.is_impersonating else SessionScope.PRIMARY
        updates = {USER_KEY: user.to_json()}
        removals = []
        if user.tenant_id:
            updates[TENANT_ID_KEY] = user.tenant_id
        else:
            removals.append(TENANT_ID_KEY)
        self._boundary(scope).apply(updates, removals)

    async def refresh_access_token(self) -> str:
        """
        Exchange the authoritative session's refresh token for a new access
        token and store it in that session's boundary only.
        """
        session = self.impersonated_session()
        if session is None:
            session = self.primary_session()
        if session is None:
            raise AuthenticationRequired("No session to refresh", 401)

        scope = session.scope
        if not session.refresh_token or self.auth_api is None:
            self._clear(scope)
            raise AuthenticationRequired("Session expired", 401)

        try:
            token = await self.auth_api.refresh(session.refresh_token)
        except ApiError as exc:
            logger.warning("Token refresh failed for %s session: %s", scope.value, exc)
            self._clear(scope)
            raise AuthenticationRequired("Session expired", 401) from exc

        current = self._load(scope)
        if current is None or current.access_token != session.access_token:
            # Session replaced or ended while the refresh was in flight
            logger.info("Discarding refreshed token; %s session changed meanwhile", scope.value)
            if current is None:
                raise AuthenticationRequired("Session ended during refresh", 401)
            return current.access_token

        self._boundary(scope).set(ACCESS_TOKEN_KEY, token)
        return token
