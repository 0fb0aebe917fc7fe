from pathlib import Path

from tookan_api.config import settings

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = settings.django.secret_key or "tookan-sync-insecure-key"
DEBUG = bool(settings.debug)
USE_TZ = True
TIME_ZONE = "UTC"

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "tookan_data.apps.TookanDataConfig",
]

MIDDLEWARE: list[str] = []
ROOT_URLCONF = "tookan_site.urls"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


def _database() -> dict[str, object]:
    engine = settings.django.db_engine or "django.db.backends.sqlite3"
    if engine == "django.db.backends.sqlite3":
        name = Path(settings.django.db_name or "tookan_sync.sqlite3")
        if not name.is_absolute():
            name = BASE_DIR / name
        return {"ENGINE": engine, "NAME": str(name)}

    database: dict[str, object] = {
        "ENGINE": engine,
        "NAME": settings.django.db_name,
        "HOST": settings.django.db_host,
        "PORT": settings.django.db_port,
        "USER": settings.django.db_user,
        "PASSWORD": settings.django.db_password,
    }
    if engine == "django.db.backends.mysql":
        database["OPTIONS"] = {"charset": "utf8mb4"}
    return database


DATABASES = {"default": _database()}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "root": {"handlers": ["console"], "level": "DEBUG" if DEBUG else "INFO"},
}
