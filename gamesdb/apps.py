from pathlib import Path

from django.apps import AppConfig


class GamesDbConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "gamesdb"
    verbose_name = "LaunchBox games database"

    def ready(self):
        from django.conf import settings

        # SQLite can't create the directory holding its database file
        data_dir = getattr(settings, "GAMESDB_DATA_DIR", None)
        if data_dir:
            Path(data_dir).mkdir(parents=True, exist_ok=True)
