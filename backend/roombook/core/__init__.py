from .config import Settings, get_settings, settings
from .security import (
    AdminAuthenticator,
    AdminCredentials,
    AdminPrincipal,
    SettingsAdminAuthenticator,
    create_admin_token,
    get_password_hash,
    verify_admin_token,
    verify_password,
)

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "AdminAuthenticator",
    "AdminCredentials",
    "AdminPrincipal",
    "SettingsAdminAuthenticator",
    "create_admin_token",
    "get_password_hash",
    "verify_admin_token",
    "verify_password",
]
