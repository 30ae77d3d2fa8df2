"""
Unified Configuration System for the Hospital Management console

This module provides a centralized configuration system that consolidates all application settings,
supports environment-based overrides, and provides type-safe configuration access.
"""

from dataclasses import dataclass, field
from typing import Optional, List
import streamlit as st
import os
from pathlib import Path


def _read_setting(name: str, default: str = "") -> str:
    """Read a setting from Streamlit secrets, falling back to the environment"""
    # In test environment, prefer environment variables
    if os.getenv("PYTEST_CURRENT_TEST") is not None:
        return os.getenv(name, default)

    try:
        return st.secrets.get(name, os.getenv(name, default))
    except Exception:
        # Secrets file missing or unreadable
        return os.getenv(name, default)


@dataclass
class BackendConfig:
    """Managed backend (Supabase PostgREST) settings"""
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    users_table: str = "users"
    request_timeout_seconds: float = 30.0

    @classmethod
    def from_secrets(cls) -> 'BackendConfig':
        """Load backend config from Streamlit secrets or environment variables"""
        timeout = _read_setting("SUPABASE_TIMEOUT_SECONDS", "30")
        try:
            request_timeout = float(timeout)
        except ValueError:
            request_timeout = 30.0

        return cls(
            supabase_url=_read_setting("SUPABASE_URL").rstrip("/"),
            supabase_anon_key=_read_setting("SUPABASE_ANON_KEY"),
            supabase_service_role_key=_read_setting("SUPABASE_SERVICE_ROLE_KEY"),
            users_table=_read_setting("SUPABASE_USERS_TABLE", "users") or "users",
            request_timeout_seconds=request_timeout,
        )

    @property
    def rest_url(self) -> str:
        """Base URL of the PostgREST API"""
        return f"{self.supabase_url}/rest/v1"

    @property
    def admin_key(self) -> str:
        """Service role key if available, otherwise the anon key"""
        return self.supabase_service_role_key or self.supabase_anon_key


@dataclass
class AuthConfig:
    """Authentication and session configuration"""
    session_storage_key: str = "user_session"
    session_backend: str = "streamlit"  # streamlit, file, memory
    session_file_path: str = ".sessions/user_session.json"
    password_min_length: int = 6
    reset_return_delay_seconds: float = 2.0


@dataclass
class UIConfig:
    """User interface configuration"""
    app_title: str = "Hospital Management System"
    login_heading: str = "Welcome Back"
    login_subtitle: str = "Please enter your details to sign in"
    reset_heading: str = "Reset Password"
    reset_subtitle: str = "Enter your username and new password"


@dataclass
class LoggingConfig:
    """Logging and monitoring configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = True
    log_file: str = "logs/app.log"


@dataclass
class AppConfig:
    """Main application configuration"""
    backend: BackendConfig = field(default_factory=BackendConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment settings
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    @classmethod
    def load(cls) -> 'AppConfig':
        """Load configuration with environment overrides"""
        config = cls()

        # Load backend configuration from secrets/environment
        config.backend = BackendConfig.from_secrets()

        # Apply environment-specific overrides
        if config.environment == "production":
            config.debug = False
            config.logging.level = "WARNING"
        elif config.environment == "development":
            config.debug = True
            config.logging.level = "DEBUG"

        return config

    def apply_env_overrides(self) -> 'AppConfig':
        """Apply SESSION_BACKEND on top of any environment preset"""
        session_backend = os.getenv("SESSION_BACKEND")
        if session_backend:
            self.auth.session_backend = session_backend.lower()

        return self

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        # Check backend settings
        if not self.backend.supabase_url:
            errors.append("Supabase URL is required")
        elif not self.backend.supabase_url.startswith(("http://", "https://")):
            errors.append("Supabase URL must use http or https")

        if not self.backend.supabase_anon_key:
            errors.append("Supabase anon key is required")

        if self.backend.request_timeout_seconds <= 0:
            errors.append("Backend request timeout must be positive")

        if self.auth.session_backend not in ("streamlit", "file", "memory"):
            errors.append(f"Unknown session backend '{self.auth.session_backend}'")

        if self.auth.password_min_length < 1:
            errors.append("Password minimum length must be at least 1")

        # Check file paths exist
        if self.logging.enable_file_logging:
            log_dir = Path(self.logging.log_file).parent
            if not log_dir.exists():
                log_dir.mkdir(parents=True, exist_ok=True)

        return errors


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        from config.environments import get_environment_config
        _config = get_environment_config().apply_env_overrides()

        # Validate configuration
        errors = _config.validate()
        if errors:
            import warnings
            for error in errors:
                warnings.warn(f"Configuration error: {error}")

    return _config


def reload_config() -> AppConfig:
    """Reload configuration (useful for testing)"""
    global _config
    _config = None
    return get_config()


def get_backend_config() -> BackendConfig:
    """Get managed backend configuration"""
    return get_config().backend
