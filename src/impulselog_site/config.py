"""
# Configuration Management Module

This module provides the configuration layer for the ImpulseLog site service.
Built on **Pydantic Settings**, it loads configuration from a layered hierarchy and validates it
once at import time.

## Configuration Loading Hierarchy

Higher layers override lower layers:

1. **Environment variables** (highest priority)
2. **`IMPULSELOG_CONFIG_PATH`**: custom config file path from an env var
3. **`.impulselog` file** in the project root
4. **`.env` file** in the project root
5. **Default values** defined on `Settings` (lowest priority)

If no configuration file is found, the service runs in environment-only mode.

## Configuration Groups

| Group | Purpose |
|-------|---------|
| **Server** | Host, port, debug mode, log level |
| **Site** | Canonical base URL, site name, fallback images used in SEO tags |
| **MongoDB** | Server-side document store (Motor) |
| **Data API** | HTTP query protocol used where the native driver is unavailable; needs a self-hosted endpoint compatible with the retired Atlas Data API |
| **Webhook** | Shared secret and CORS origin for content ingestion |
| **Templates** | Origin that serves the static HTML templates |
| **Sitemap** | Lastmod policy for post entries |

## Secrets

`MONGODB_PASSWORD`, `MONGODB_CLIENT_PEM`, `DATA_API_KEY` and `WEBHOOK_API_KEY` are `SecretStr`
so they never show up in logs or reprs. None of them has a default: the webhook answers 500 while
`WEBHOOK_API_KEY` is unset.

## Usage

```python
from impulselog_site.config import settings

canonical = f"{settings.SITE_BASE_URL}/blog/{slug}"
api_key = settings.WEBHOOK_API_KEY.get_secret_value() if settings.WEBHOOK_API_KEY else None
```

Attributes:
    CONFIG_FILENAME (str): Primary configuration filename (`.impulselog`).
    DEFAULT_ENV_FILENAME (str): Fallback configuration filename (`.env`).
    CONFIG_ENV_VAR (str): Environment variable naming a custom config file.
    PROJECT_ROOT (Path): Directory searched for config files.
    CONFIG_PATH (Optional[str]): Resolved config file, or `None` in env-only mode.
    settings (Settings): Global settings singleton.
"""

import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
CONFIG_FILENAME: str = ".impulselog"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "IMPULSELOG_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent

STORE_BACKENDS = ("auto", "motor", "data_api")


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path based on a predefined precedence order.

    Checks, in order: the file named by `IMPULSELOG_CONFIG_PATH`, `.impulselog` in the project
    root, then `.env` in the project root.

    Returns:
        Optional[str]: The path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    primary_path: Path = PROJECT_ROOT / CONFIG_FILENAME
    if primary_path.exists():
        return str(primary_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode, logging.
    *   **Site**: Canonical domain and branding used by the SEO injector and sitemap.
    *   **Store**: MongoDB (Motor) and Data API (HTTP) backends plus backend selection.
    *   **Webhook**: Shared secret and allowed CORS origin.
    *   **Templates**: Where the static HTML templates are fetched from.

    **Validation:**
    Secrets containing placeholder text are rejected, store backend names are checked, and the
    site base URL is normalized without a trailing slash.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: Optional[str] = None

    # Site identity (canonical URLs, Open Graph fallbacks, JSON-LD publisher block)
    SITE_BASE_URL: str = "https://www.impulselog.com"
    SITE_NAME: str = "ImpulseLog"
    DEFAULT_AUTHOR_NAME: str = "ImpulseLog Team"
    DEFAULT_OG_IMAGE: str = "https://www.impulselog.com/assets/images/social-preview.png"
    PUBLISHER_LOGO_URL: str = "https://www.impulselog.com/assets/icons/logo.svg"

    # MongoDB configuration
    MONGODB_URL: str = ""
    MONGODB_DATABASE: str = "impulselog"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None
    # X.509 client certificate and private key (PEM); escaped or single-line forms are accepted
    MONGODB_CLIENT_PEM: Optional[SecretStr] = None
    BLOG_COLLECTION: str = "blogPosts"

    # Data API (HTTP query protocol for contexts without the native driver). The hosted Atlas
    # Data API was retired on 2025-09-30; point this at a self-hosted compatible endpoint.
    # EDGE_STORE_BACKEND=auto prefers it whenever DATA_API_URL and DATA_API_KEY are set.
    DATA_API_URL: Optional[str] = None
    DATA_API_KEY: Optional[SecretStr] = None
    DATA_API_DATA_SOURCE: str = "Cluster0"
    DATA_API_TIMEOUT: float = 10.0

    # Store backend selection: auto | motor | data_api
    POST_STORE_BACKEND: str = "auto"
    EDGE_STORE_BACKEND: str = "auto"

    # Webhook ingestion
    WEBHOOK_API_KEY: Optional[SecretStr] = None
    WEBHOOK_ALLOWED_ORIGIN: Optional[str] = None

    # Static HTML templates
    TEMPLATE_ORIGIN: Optional[str] = None
    TEMPLATE_FETCH_TIMEOUT: float = 10.0

    # Sitemap: stamp every post with today's date to force a re-crawl
    SITEMAP_FORCE_TODAY_LASTMOD: bool = True

    @field_validator("MONGODB_PASSWORD", "MONGODB_CLIENT_PEM", "DATA_API_KEY", "WEBHOOK_API_KEY", mode="before")
    @classmethod
    def no_placeholder_secrets(cls, v: Any, info: Any) -> Any:
        """
        Rejects secrets that still carry placeholder text.

        Unset secrets are allowed (the features depending on them degrade at runtime), but a
        value such as `change-me` or `0000` is almost certainly a copy of an example file.

        Raises:
            ValueError: If the value looks like a placeholder.
        """
        if v is None:
            return v
        raw = v.get_secret_value() if isinstance(v, SecretStr) else str(v)
        if not raw.strip():
            return None
        if "change" in raw.lower() or "0000" in raw:
            raise ValueError(f"{info.field_name} must be set via environment or config file and not hardcoded!")
        return v

    @field_validator("POST_STORE_BACKEND", "EDGE_STORE_BACKEND", mode="before")
    @classmethod
    def validate_store_backend(cls, v: Any, info: Any) -> str:
        value = str(v).strip().lower()
        if value not in STORE_BACKENDS:
            raise ValueError(f"{info.field_name} must be one of {', '.join(STORE_BACKENDS)}")
        return value

    @field_validator("SITE_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: Any) -> str:
        return str(v).strip().rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def mongodb_configured(self) -> bool:
        return bool(self.MONGODB_URL and self.MONGODB_URL.strip())

    @property
    def data_api_configured(self) -> bool:
        return bool(self.DATA_API_URL and self.DATA_API_KEY)


# Global settings instance
settings: Settings = Settings()
