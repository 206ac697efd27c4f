"""
Configuration management for the QuillQuiver client core.

This module handles all configuration settings including the Supabase
connection, authentication flow options, editor auto-save behaviour and
logging, using Pydantic settings.
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import validator, Field
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class SupabaseConfig(BaseSettings):
    """Supabase-specific configuration settings."""

    url: str = "https://placeholder.supabase.co"
    key: str = "placeholder_key"
    timeout: int = 30
    notes_table: str = "notes"

    class Config:
        env_prefix = "SUPABASE_"
        case_sensitive = False
        extra = "ignore"

    @validator("url")
    def validate_url(cls, v: str) -> str:
        """Validate Supabase URL format."""
        if not v.startswith(("https://", "http://")):
            raise ValueError("Invalid Supabase URL format")
        return v.rstrip("/")


class AuthConfig(BaseSettings):
    """Authentication flow configuration."""

    oauth_provider: str = Field("google", description="Default OAuth provider")
    oauth_redirect_url: Optional[str] = Field(None, description="Redirect target after OAuth sign-in")

    class Config:
        env_prefix = "AUTH_"
        case_sensitive = False
        extra = "ignore"


class EditorConfig(BaseSettings):
    """Note editor configuration."""

    autosave_delay_seconds: float = Field(2.0, description="Debounce window before an automatic save")
    default_note_title: str = "Untitled Note"

    class Config:
        env_prefix = "EDITOR_"
        case_sensitive = False
        extra = "ignore"

    @validator("autosave_delay_seconds")
    def validate_autosave_delay(cls, v: float) -> float:
        """Validate auto-save debounce window."""
        if v <= 0:
            raise ValueError("Auto-save delay must be positive")
        return v


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "text"

    class Config:
        env_prefix = "LOG_"
        case_sensitive = False
        extra = "ignore"

    @validator("format")
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v.lower() not in ("text", "json"):
            raise ValueError("Log format must be 'text' or 'json'")
        return v.lower()


class AppConfig(BaseSettings):
    """Main application configuration."""

    environment: str = "development"
    debug: bool = False

    # Sub-configurations
    supabase: SupabaseConfig
    auth: AuthConfig
    editor: EditorConfig
    logging: LoggingConfig

    def __init__(self, **kwargs):
        kwargs.setdefault("supabase", SupabaseConfig())
        kwargs.setdefault("auth", AuthConfig())
        kwargs.setdefault("editor", EditorConfig())
        kwargs.setdefault("logging", LoggingConfig())
        super().__init__(**kwargs)

    class Config:
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


# Global configuration instance
config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the global configuration instance.

    Returns:
        AppConfig: The application configuration instance.
    """
    global config
    if config is None:
        config = AppConfig()
    return config


def reload_config() -> AppConfig:
    """
    Reload the configuration from environment variables.

    Returns:
        AppConfig: The reloaded application configuration instance.
    """
    global config
    config = AppConfig()
    return config
