"""Django settings for the ballot service.

Everything deployment-specific comes from the environment.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from urllib.parse import urlparse

from django.core.management.utils import get_random_secret_key


def _env_bool(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


BASE_DIR = Path(__file__).resolve().parent.parent

DEBUG: bool = _env_bool("DEBUG")

# No sessions or signed cookies are issued, so an ephemeral key is acceptable
# when none is configured.
SECRET_KEY: str = os.getenv("SECRET_KEY", "") or get_random_secret_key()

if os.getenv("ALLOWED_HOSTS"):
    ALLOWED_HOSTS: list[str] = [h.strip() for h in os.environ["ALLOWED_HOSTS"].split(",") if h.strip()]
else:
    ALLOWED_HOSTS = ["localhost", "127.0.0.1"]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "ballots",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

TEMPLATES: list[dict[str, object]] = []


if os.getenv("DATABASE_URL"):
    database_url: str = os.environ["DATABASE_URL"]
    parsed = urlparse(database_url)

    if parsed.scheme in {"postgres", "postgresql"}:
        DATABASES = {
            "default": {
                "ENGINE": "django.db.backends.postgresql",
                "NAME": parsed.path.lstrip("/"),
                "USER": parsed.username,
                "PASSWORD": parsed.password,
                "HOST": parsed.hostname,
                "PORT": parsed.port or "5432",
                "CONN_MAX_AGE": int(os.getenv("DATABASE_CONN_MAX_AGE", "60")),
            }
        }
    elif parsed.scheme == "mysql":
        DATABASES = {
            "default": {
                "ENGINE": "django.db.backends.mysql",
                "NAME": parsed.path.lstrip("/"),
                "USER": parsed.username,
                "PASSWORD": parsed.password,
                "HOST": parsed.hostname,
                "PORT": parsed.port or "3306",
            }
        }
    else:
        raise ValueError(f"For DATABASE_URL, only mysql and postgres are supported, not {parsed.scheme!r}.")
else:
    # sqlite fallback: useful for local setups and the test suite.
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.getenv("DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "ballots",
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE: str = os.getenv("TIME_ZONE", "UTC")
USE_I18N = False
USE_TZ = True


# Election engine.
# Upper bound, in seconds, on how stale the cached open-position/active-candidate
# catalog may be in another worker process. Commits always re-read the rows.
BALLOTS_CATALOG_CACHE_SECONDS: int = int(os.getenv("BALLOTS_CATALOG_CACHE_SECONDS", "30"))
# Whether winner resolution reports closed positions.
BALLOTS_RESOLVE_CLOSED_POSITIONS: bool = _env_bool("BALLOTS_RESOLVE_CLOSED_POSITIONS")


LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "health_endpoint": {
            "()": "config.logging_filters.HealthEndpointFilter",
        },
    },
    "formatters": {
        "default": {
            "format": "[{asctime}] {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "ballots": {
            "handlers": ["stderr"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "django.server": {
            "handlers": ["stderr"],
            "level": "INFO",
            "filters": ["health_endpoint"],
            "propagate": False,
        },
    },
    "root": {
        "handlers": ["stderr"],
        "level": "WARNING",
    },
}


SENTRY_DSN: str = os.getenv("SENTRY_DSN", "").strip()
if SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[
            DjangoIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        environment=os.getenv("SENTRY_ENVIRONMENT", "production"),
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0")),
        send_default_pii=False,
        send_client_reports=False,
        auto_session_tracking=False,
    )
