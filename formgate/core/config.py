"""Settings for the formgate service.

Centralized configuration loaded from environment variables with the
``FORMGATE_`` prefix.  Dict-valued settings are read as JSON, e.g.
``FORMGATE_RESTRICTED_DATA_FIELDS='{"header": ["cookie", "authorization"]}'``.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

# Validation targets whose issue payloads must have fields redacted.
# Only targets listed here are ever touched by the issue sanitizer.
DEFAULT_RESTRICTED_DATA_FIELDS: dict[str, list[str]] = {
    "header": ["cookie"],
}


class Settings(BaseSettings):
    """formgate configuration.

    All fields can be overridden by environment variables prefixed with
    ``FORMGATE_``.  For example, ``FORMGATE_PORT=9999`` overrides the
    default port.
    """

    # ── Service identity ────────────────────────────────────────────
    SERVICE_NAME: str = "formgate"
    SERVICE_VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8090

    # ── Logging ─────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Issue redaction ─────────────────────────────────────────────
    RESTRICTED_DATA_FIELDS: dict[str, list[str]] = Field(
        default_factory=lambda: {
            target: list(fields) for target, fields in DEFAULT_RESTRICTED_DATA_FIELDS.items()
        }
    )

    model_config = {
        "env_prefix": "FORMGATE_",
    }
