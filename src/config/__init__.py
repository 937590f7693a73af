"""Configuration module for the account administration panel."""

from .settings import (
    Settings,
    StartupSecurityError,
    get_settings,
    validate_startup_security,
)

__all__ = [
    "Settings",
    "StartupSecurityError",
    "get_settings",
    "validate_startup_security",
]
