# backend/tenant_console/config.py
from __future__ import annotations
import os


class Config:
    # Base URL of the tenant REST API (settings, auth)
    API_BASE_URL = os.environ.get("CONSOLE_API_BASE_URL", "http://localhost:3001/api")
    REQUEST_TIMEOUT = float(os.environ.get("CONSOLE_REQUEST_TIMEOUT", "30"))

    # Cross-tab storage lives in a SQLite file next to the process by default
    SHARED_STORAGE_URL = os.environ.get(
        "CONSOLE_SHARED_STORAGE_URL",
        "sqlite:///console_storage.sqlite3",
    )
    STORAGE_ORIGIN = os.environ.get("CONSOLE_STORAGE_ORIGIN", "http://localhost:3000")

    DASHBOARD_PATH = "/dashboard"
    LOGIN_PATH = "/login"
    SUPER_ADMIN_PATH = "/super-admin/tenants"

    LOG_LEVEL = os.environ.get("CONSOLE_LOG_LEVEL", "INFO")


class MockBackendConfig:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Seed demo tenants/users on startup
    DEBUG_SEED_ENABLED = os.environ.get("MOCK_BACKEND_SEED", "true").lower() == "true"
    IMPERSONATION_TOKEN_TTL_SECONDS = int(os.environ.get("MOCK_IMPERSONATION_TTL", "300"))
    BCRYPT_ROUNDS = int(os.environ.get("MOCK_BCRYPT_ROUNDS", "12"))
