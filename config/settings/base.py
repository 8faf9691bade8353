# ruff: noqa: ERA001
"""
Base settings for the player-insights service.

These settings are suitable for production.
Local development settings should override these in 'local.py'.
"""

from pathlib import Path

import environ
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.log import LOGGING  # noqa: F401

# Project structure
BASE_DIR = Path(__file__).resolve(strict=True).parent.parent.parent
APPS_DIR = BASE_DIR

# Environment variables setup
env = environ.Env()
READ_DOT_ENV_FILE = env.bool("DJANGO_READ_DOT_ENV_FILE", default=False)
if READ_DOT_ENV_FILE:
    env.read_env(str(BASE_DIR / ".env"))

# GENERAL
# ------------------------------------------------------------------------------
DEBUG = env.bool("DJANGO_DEBUG", False)
TIME_ZONE = "UTC"
LANGUAGE_CODE = "en-us"
USE_I18N = False
USE_TZ = True

# URLS & APPLICATIONS
# ------------------------------------------------------------------------------
ROOT_URLCONF = "config.urls"
ASGI_APPLICATION = "config.asgi.application"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# DATABASES
# ------------------------------------------------------------------------------
# Nothing is persisted; every payload lives in the cache tiers.
DATABASES: dict = {}

# APPS
# ------------------------------------------------------------------------------
DJANGO_APPS = [
    "django.contrib.contenttypes",
]
LOCAL_APPS = [
    "apps.core.apps.CoreConfig",
    "apps.analytics.apps.AnalyticsConfig",
    "apps.players.apps.PlayersConfig",
    "apps.matches.apps.MatchesConfig",
]
INSTALLED_APPS = DJANGO_APPS + LOCAL_APPS

# MIDDLEWARE
# ------------------------------------------------------------------------------
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

# SECURITY
# ------------------------------------------------------------------------------
X_FRAME_OPTIONS = "DENY"
SECRET_KEY = env("DJANGO_SECRET_KEY", default=None)
APPEND_SLASH = False


# OPENDOTA CLIENT
# ------------------------------------------------------------------------------


class OpenDotaSettings(BaseSettings):
    BASE_URL: str = "https://api.opendota.com/api"
    TIMEOUT_S: float = 30.0
    RATE_LIMIT: int = 60
    RATE_WINDOW_S: float = 60.0
    API_KEY: str | None = None

    model_config = SettingsConfigDict(env_prefix="OPENDOTA_", frozen=True)


# CACHE
# ------------------------------------------------------------------------------


class CacheSettings(BaseSettings):
    REDIS_URL: str = "redis://localhost:6379/1"
    CONNECT_TIMEOUT_S: float = 2.0
    KEY_PREFIX: str = ""

    model_config = SettingsConfigDict(env_prefix="CACHE_", frozen=True)


OPENDOTA_CONFIG = OpenDotaSettings()  # attribute-style access
CACHE_CONFIG = CacheSettings()
