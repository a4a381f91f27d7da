"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, overridable from
``WAYMARK_*`` environment variables.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

# Minimum recommended secret key length (in characters)
MIN_SECRET_KEY_LENGTH: int = 16

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, mount_prefix="/api")
    """

    debug: bool = False
    title: str = "Waymark API"
    version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"

    # Path prefix removed before matching (e.g. "/api")
    mount_prefix: str = ""

    # Authentication (disabled while secret_key is None)
    secret_key: str | None = None
    jwt_algorithm: str = "HS256"

    # Limits
    max_body_size: int = 1_048_576

    def __post_init__(self) -> None:
        if self.secret_key is not None and len(self.secret_key) < MIN_SECRET_KEY_LENGTH:
            raise ValueError(
                f"secret_key must be at least {MIN_SECRET_KEY_LENGTH} characters. "
                f"Use a cryptographically random value in production."
            )
        if self.log_level.upper() not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log_level: {self.log_level!r}")

    @classmethod
    def from_env(
        cls,
        prefix: str = "WAYMARK_",
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> "AppConfig":
        """
        Build a config from ``<prefix><FIELD>`` environment variables.

        Explicit ``overrides`` win over the environment.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for f in fields(cls):
            raw = environ.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            if f.type in (bool, "bool"):
                values[f.name] = raw.strip().lower() in _TRUE_VALUES
            elif f.type in (int, "int"):
                try:
                    values[f.name] = int(raw)
                except ValueError:
                    raise ValueError(f"{prefix}{f.name.upper()} must be an integer, got {raw!r}") from None
            else:
                values[f.name] = raw

        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "AppConfig":
        return replace(self, **overrides)
