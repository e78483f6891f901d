# backend/tenant_console/__init__.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable

import httpx

from .config import Config
from .models import LoginCredentials, Session, SessionState
from .services.api_client import ApiClient, AuthApi, SettingsApi
from .services.format_service import CurrencyFormatter
from .services.impersonation_service import HandshakeOutcome, ImpersonationHandshake
from .services.numbering_service import InvoiceNumberPreview, compute_invoice_number_preview
from .services.session_service import SessionManager
from .services.settings_service import SettingsResolver
from .services.settings_store import SettingsStore
from .services.storage_service import SharedStorage, TabStorage


class Console:
    """
    The tenant console core for one browser tab: session identity, the
    tenant's settings snapshot, and the formatters fed by it.

    Every identity change that can switch tenants drops the settings
    snapshot, so nothing cached for the previous tenant is ever resolved.
    """

    def __init__(
        self,
        config: type[Config],
        client: ApiClient,
        sessions: SessionManager,
        settings: SettingsStore,
        on_navigate: Callable[[str], None] | None = None,
    ):
        self.config = config
        self.client = client
        self.auth_api = sessions.auth_api
        self.settings_api = settings.api
        self.sessions = sessions
        self.settings = settings
        self.resolver = SettingsResolver(settings)
        self.on_navigate = on_navigate
        self.handshake = ImpersonationHandshake(
            sessions,
            self.auth_api,
            reinitialize=self.reinitialize,
            redirect_to=config.DASHBOARD_PATH,
        )

    @property
    def state(self) -> SessionState:
        return self.sessions.state

    def reinitialize(self, path: str) -> None:
        """Full reload: drop tenant-bound state, then navigate."""
        self.settings.reset(self.sessions.tenant_id())
        if self.on_navigate is not None:
            self.on_navigate(path)

    async def login(self, email: str, password: str) -> Session:
        session = await self.sessions.login(LoginCredentials(email=email, password=password))
        self.reinitialize(self.config.DASHBOARD_PATH)
        return session

    async def logout(self) -> SessionState:
        state = await self.sessions.logout()
        self.settings.reset(self.sessions.tenant_id())
        if state == SessionState.NO_SESSION and self.on_navigate is not None:
            self.on_navigate(self.config.LOGIN_PATH)
        return state

    async def begin_impersonation(self, token: str | None) -> HandshakeOutcome:
        return await self.handshake.run(token)

    def end_impersonation(self) -> SessionState:
        state = self.sessions.end_impersonation()
        target = self.config.SUPER_ADMIN_PATH if state != SessionState.NO_SESSION else self.config.LOGIN_PATH
        self.reinitialize(target)
        return state

    async def load_settings(self, category: str | None = None) -> bool:
        return await self.settings.load(category)

    def currency_formatter(self) -> CurrencyFormatter:
        return CurrencyFormatter(self.resolver.resolve_currency())

    def format_currency(self, amount: Any) -> str:
        return self.currency_formatter().format(amount)

    def parse_currency(self, text: str) -> Decimal:
        return self.currency_formatter().parse(text)

    def invoice_number_preview(self, **overrides: Any) -> InvoiceNumberPreview:
        return compute_invoice_number_preview(self.resolver.resolve_invoice_numbering(), **overrides)

    async def aclose(self) -> None:
        await self.client.aclose()


def create_console(
    *,
    shared: SharedStorage | None = None,
    tab: TabStorage | None = None,
    config: type[Config] = Config,
    transport: httpx.AsyncBaseTransport | None = None,
    on_navigate: Callable[[str], None] | None = None,
) -> Console:
    logging.getLogger(__name__).setLevel(config.LOG_LEVEL)

    if shared is None:
        shared = SharedStorage.from_url(config.SHARED_STORAGE_URL, config.STORAGE_ORIGIN)
    if tab is None:
        tab = TabStorage()

    client = ApiClient(config.API_BASE_URL, timeout=config.REQUEST_TIMEOUT, transport=transport)
    sessions = SessionManager(shared, tab, AuthApi(client))
    client.headers_provider = sessions.auth_headers
    client.refresh_handler = sessions.refresh_access_token

    store = SettingsStore(SettingsApi(client), tenant_id=sessions.tenant_id())
    return Console(config, client, sessions, store, on_navigate=on_navigate)


__all__ = ["Console", "create_console", "Config"]
