"""
Configuration management package for QuillQuiver.

This package handles all configuration settings and validation for the
session and synchronization engine.
"""

from .settings import (
    get_config,
    reload_config,
    AppConfig,
    SupabaseConfig,
    AuthConfig,
    EditorConfig,
    LoggingConfig,
)

__all__ = [
    "get_config",
    "reload_config",
    "AppConfig",
    "SupabaseConfig",
    "AuthConfig",
    "EditorConfig",
    "LoggingConfig",
]
