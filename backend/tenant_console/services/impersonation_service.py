# Overview: One-shot exchange of an impersonation token for a tab-local tenant session.

"""
Impersonation Handshake

Flow (one invocation = one exchange, never retried here):
1. Validate the token locally. Missing token -> ImpersonationValidationError,
   no network call.
2. POST /auth/impersonate {token} (unauthenticated: the primary session is
   neither read nor required).
3. On success write accessToken, refreshToken (or clear a stale one), user,
   tenantId and the impersonated flag to THIS tab's storage in one atomic
   step, then fire the reinitialization signal (full navigation to the
   dashboard) so no in-memory context keeps the previous tenant.
4. On any failure raise HandshakeFailure with a user-displayable message.
   Nothing has been written at that point.

The shared (primary) storage boundary is never touched by this module.

REUSE: a token this tab already exchanged is rejected locally; the console
does not replay a previous session for a consumed token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..models import Session
from .api_client import ApiError, ApiNetworkError, ApiRejectedError, AuthApi
from .session_service import SessionManager
from .storage_service import StorageClosedError


logger = logging.getLogger(__name__)

PREPARING_MESSAGE = "Preparing impersonated session..."
MISSING_TOKEN_MESSAGE = "Missing impersonation token."
REJECTED_MESSAGE = (
    "Unable to complete impersonation. The link may have expired or the backend "
    "endpoint is not implemented yet."
)
NETWORK_MESSAGE = "Unable to reach the server to complete impersonation. Check your connection and try again."
IN_PROGRESS_MESSAGE = "An impersonation is already being prepared in this tab."
CONSUMED_MESSAGE = "This impersonation link has already been used. Request a new one."
ABANDONED_MESSAGE = "The tab was closed before the impersonation completed."

REASON_REJECTED = "rejected"
REASON_NETWORK = "network"
REASON_SERVER = "server"
REASON_IN_PROGRESS = "in_progress"
REASON_CONSUMED = "consumed"
REASON_ABANDONED = "abandoned"


class ImpersonationError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ImpersonationValidationError(ImpersonationError, ValueError):
    pass


class HandshakeFailure(ImpersonationError):
    def __init__(self, message: str, reason: str):
        super().__init__(message)
        self.reason = reason


class HandshakeInProgress(HandshakeFailure):
    def __init__(self):
        super().__init__(IN_PROGRESS_MESSAGE, REASON_IN_PROGRESS)


class HandshakeStatus(str, Enum):
    LOADING = "loading"
    REDIRECTING = "redirecting"
    ERROR = "error"


@dataclass
class HandshakeOutcome:
    status: HandshakeStatus
    message: str
    session: Session | None = None
    redirect_to: str | None = None


class ImpersonationHandshake:
    def __init__(
        self,
        sessions: SessionManager,
        auth_api: AuthApi,
        reinitialize: Callable[[str], None] | None = None,
        redirect_to: str = "/dashboard",
    ):
        self.sessions = sessions
        self.auth_api = auth_api
        self.reinitialize = reinitialize
        self.redirect_to = redirect_to
        self.in_flight = False
        self._consumed: set[str] = set()

    async def begin(self, token: str | None) -> Session:
        if not isinstance(token, str) or not token.strip():
            raise ImpersonationValidationError(MISSING_TOKEN_MESSAGE)
        if self.in_flight:
            raise HandshakeInProgress()
        if token in self._consumed:
            raise HandshakeFailure(CONSUMED_MESSAGE, REASON_CONSUMED)
        if self.sessions.tab.closed:
            raise HandshakeFailure(ABANDONED_MESSAGE, REASON_ABANDONED)

        self.in_flight = True
        try:
            try:
                result = await self.auth_api.impersonate(token)
            except ApiRejectedError as exc:
                logger.warning("Impersonation token rejected: %s", exc)
                raise HandshakeFailure(REJECTED_MESSAGE, REASON_REJECTED) from exc
            except ApiNetworkError as exc:
                logger.warning("Impersonation exchange failed: %s", exc)
                raise HandshakeFailure(NETWORK_MESSAGE, REASON_NETWORK) from exc
            except ApiError as exc:
                logger.error("Impersonation exchange failed: %s", exc)
                raise HandshakeFailure(REJECTED_MESSAGE, REASON_SERVER) from exc

            self._consumed.add(token)
            if not result.user.tenant_id:
                # The tab session must always carry accessToken, user and tenantId together
                logger.error("Impersonation response for %s has no tenantId", result.user.email)
                raise HandshakeFailure(REJECTED_MESSAGE, REASON_SERVER)
            try:
                session = self.sessions.install_impersonated(result)
            except StorageClosedError as exc:
                logger.info("Tab %s closed during impersonation; nothing stored", self.sessions.tab.tab_id)
                raise HandshakeFailure(ABANDONED_MESSAGE, REASON_ABANDONED) from exc
        finally:
            self.in_flight = False

        logger.info(
            "Impersonating %s (tenant %s) in tab %s",
            session.user.email, session.tenant_id, self.sessions.tab.tab_id,
        )
        if self.reinitialize is not None:
            try:
                self.reinitialize(self.redirect_to)
            except Exception:
                logger.exception("Reinitialization after impersonation failed")
        return session

    async def run(self, token: str | None) -> HandshakeOutcome:
        """begin() folded into the status/message model shown on the impersonation page."""
        try:
            session = await self.begin(token)
        except ImpersonationError as exc:
            return HandshakeOutcome(status=HandshakeStatus.ERROR, message=exc.message)
        return HandshakeOutcome(
            status=HandshakeStatus.REDIRECTING,
            message=f"Connected as {session.user.email}",
            session=session,
            redirect_to=self.redirect_to,
        )
