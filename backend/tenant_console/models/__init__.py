from .settings import (
    SettingEntry,
    CurrencyFormatOptions,
    InvoiceNumberingConfig,
    PaymentTerm,
    POSITION_BEFORE,
    POSITION_AFTER,
    SYMBOL_POSITIONS,
    RESET_NEVER,
    RESET_MONTHLY,
    RESET_YEARLY,
    RESET_FREQUENCIES,
)
from .auth import User, Session, SessionScope, SessionState, AuthResult, LoginCredentials
from .storage import SharedStorageEntry

__all__ = [
    'SettingEntry', 'CurrencyFormatOptions', 'InvoiceNumberingConfig', 'PaymentTerm',
    'POSITION_BEFORE', 'POSITION_AFTER', 'SYMBOL_POSITIONS',
    'RESET_NEVER', 'RESET_MONTHLY', 'RESET_YEARLY', 'RESET_FREQUENCIES',
    'User', 'Session', 'SessionScope', 'SessionState', 'AuthResult', 'LoginCredentials',
    'SharedStorageEntry',
]
