"""Django settings for launchmeta.

Everything environment-specific is read from environment variables so the
same settings module works for the plugin data directory, the worker and
the test suite.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("SECRET_KEY", "launchmeta-insecure-dev-key")
DEBUG = os.environ.get("DEBUG", "false").lower() in ("1", "true", "yes")
ALLOWED_HOSTS = ["*"]

# Per-plugin data directory: holds the local games database
GAMESDB_DATA_DIR = Path(os.environ.get("GAMESDB_DATA_DIR", BASE_DIR / "data"))

# Remote LaunchBox games database
GAMESDB_METADATA_URL = os.environ.get(
    "GAMESDB_METADATA_URL", "https://gamesdb.launchbox-app.com/Metadata.zip"
)
GAMESDB_METADATA_FILENAME = "Metadata.xml"
GAMESDB_IMAGE_BASE_URL = "https://images.launchbox-app.com/"
GAMESDB_IMPORT_BATCH_SIZE = int(os.environ.get("GAMESDB_IMPORT_BATCH_SIZE", "10000"))

INSTALLED_APPS = [
    "gamesdb",
]

if os.environ.get("POSTGRES_DB"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ["POSTGRES_DB"],
            "USER": os.environ.get("POSTGRES_USER", "launchmeta"),
            "PASSWORD": os.environ.get("POSTGRES_PASSWORD", ""),
            "HOST": os.environ.get("POSTGRES_HOST", "localhost"),
            "PORT": os.environ.get("POSTGRES_PORT", "5432"),
        }
    }
    # Procrastinate keeps its job tables in PostgreSQL
    INSTALLED_APPS.append("procrastinate.contrib.django")
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": GAMESDB_DATA_DIR / "gamesdb.sqlite3",
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "UTC"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": "{asctime} {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "simple",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "httpx": {"level": "WARNING"},
    },
}
