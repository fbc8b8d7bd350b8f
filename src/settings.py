#!/usr/bin/env python3
"""
Settings module for the Adobe Sign envelope adapter.
Handles environment variable loading and validation.
"""
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

ADOBE_SIGN_PROVIDER = "adobe-sign"


def _get_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def _get_float(environ: Mapping[str, str], name: str, default: float) -> float:
    value = environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}")


@dataclass(frozen=True)
class Settings:
    """Configuration settings loaded from environment variables."""

    # Adobe Sign credentials
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None

    # Adobe Sign endpoint
    base_url: str = "https://api.na1.adobesign.com"
    api_version: str = "v6"

    webhook_url: Optional[str] = None
    webhook_secret: Optional[str] = None

    # Timeouts in seconds
    connection_timeout: float = 30.0
    read_timeout: float = 60.0

    max_retries: int = 3
    token_expiration: int = 3600

    default_email_subject: str = "Please sign this document"
    default_email_message: str = "Please review and sign the attached document(s)."

    enable_embedded_signing: bool = False
    return_url: Optional[str] = None

    enable_document_retention: bool = True
    document_retention_days: int = 365

    enable_reminders: bool = True
    reminder_frequency_days: int = 3

    # Provider selection
    esignature_provider: str = ADOBE_SIGN_PROVIDER

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "development"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the process environment (or the given mapping)."""
        env = os.environ if environ is None else environ
        return cls(
            client_id=env.get("ADOBE_SIGN_CLIENT_ID"),
            client_secret=env.get("ADOBE_SIGN_CLIENT_SECRET"),
            refresh_token=env.get("ADOBE_SIGN_REFRESH_TOKEN"),
            base_url=env.get("ADOBE_SIGN_BASE_URL", cls.base_url),
            api_version=env.get("ADOBE_SIGN_API_VERSION", cls.api_version),
            webhook_url=env.get("ADOBE_SIGN_WEBHOOK_URL"),
            webhook_secret=env.get("ADOBE_SIGN_WEBHOOK_SECRET"),
            connection_timeout=_get_float(env, "ADOBE_SIGN_CONNECTION_TIMEOUT", cls.connection_timeout),
            read_timeout=_get_float(env, "ADOBE_SIGN_READ_TIMEOUT", cls.read_timeout),
            max_retries=_get_int(env, "ADOBE_SIGN_MAX_RETRIES", cls.max_retries),
            token_expiration=_get_int(env, "ADOBE_SIGN_TOKEN_EXPIRATION", cls.token_expiration),
            default_email_subject=env.get("ADOBE_SIGN_DEFAULT_EMAIL_SUBJECT", cls.default_email_subject),
            default_email_message=env.get("ADOBE_SIGN_DEFAULT_EMAIL_MESSAGE", cls.default_email_message),
            enable_embedded_signing=_get_bool(env, "ADOBE_SIGN_ENABLE_EMBEDDED_SIGNING", cls.enable_embedded_signing),
            return_url=env.get("ADOBE_SIGN_RETURN_URL"),
            enable_document_retention=_get_bool(
                env, "ADOBE_SIGN_ENABLE_DOCUMENT_RETENTION", cls.enable_document_retention
            ),
            document_retention_days=_get_int(env, "ADOBE_SIGN_DOCUMENT_RETENTION_DAYS", cls.document_retention_days),
            enable_reminders=_get_bool(env, "ADOBE_SIGN_ENABLE_REMINDERS", cls.enable_reminders),
            reminder_frequency_days=_get_int(env, "ADOBE_SIGN_REMINDER_FREQUENCY_DAYS", cls.reminder_frequency_days),
            esignature_provider=env.get("ESIGNATURE_PROVIDER", cls.esignature_provider),
            host=env.get("HOST", cls.host),
            port=_get_int(env, "PORT", cls.port),
            environment=env.get("ENVIRONMENT", cls.environment),
        )

    def validation_errors(self) -> List[str]:
        """Return a description of every invalid setting (empty when valid)."""
        errors = []
        required = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
        }
        for name, value in required.items():
            if value is None or value.strip() == "":
                errors.append(f"{name} must not be blank")

        bounded = [
            ("max_retries", self.max_retries, 0, 10),
            ("token_expiration", self.token_expiration, 300, 86400),
            ("document_retention_days", self.document_retention_days, 1, 3650),
            ("reminder_frequency_days", self.reminder_frequency_days, 1, 30),
        ]
        for name, value, low, high in bounded:
            if not low <= value <= high:
                errors.append(f"{name} must be between {low} and {high}, got {value}")

        if self.connection_timeout <= 0:
            errors.append("connection_timeout must be positive")
        if self.read_timeout <= 0:
            errors.append("read_timeout must be positive")
        if not self.base_url.strip():
            errors.append("base_url must not be blank")
        return errors

    def validate(self) -> "Settings":
        """Raise ValueError if the configuration is incomplete or out of range."""
        errors = self.validation_errors()
        if errors:
            raise ValueError("Adobe Sign configuration is invalid: " + "; ".join(errors))
        return self

    def validate_adobe_sign_config(self) -> bool:
        """Check that all required Adobe Sign settings are present and in range."""
        return not self.validation_errors()

    def is_adobe_sign_enabled(self) -> bool:
        """Check whether Adobe Sign is the configured e-signature provider."""
        return self.esignature_provider.strip().lower() == ADOBE_SIGN_PROVIDER

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_api_base_path(self) -> str:
        """Path prefix of the versioned Adobe Sign REST API."""
        return f"/api/rest/{self.api_version}"


# Global settings instance
settings = Settings.from_env()
