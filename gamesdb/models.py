from django.db import models


class ReferenceGame(models.Model):
    """A game record from the LaunchBox games database.

    Rows are replaced wholesale on every import and are read-only otherwise.
    """

    database_id = models.IntegerField(primary_key=True)  # LaunchBox DatabaseID
    name = models.CharField(max_length=500)
    platform = models.CharField(max_length=200, blank=True)

    # Derived by gamesdb.normalize at import time
    name_search = models.CharField(max_length=500, db_index=True)
    platform_search = models.CharField(max_length=200, db_index=True)

    release_date = models.DateField(null=True, blank=True)
    genres = models.TextField(blank=True)  # "Action; Platform"
    developer = models.TextField(blank=True)  # "Sonic Team; Sega"
    publisher = models.TextField(blank=True)
    overview = models.TextField(blank=True)
    community_rating = models.IntegerField(
        null=True,
        blank=True,
        help_text="Community rating out of 100 (rescaled from 0-5 on import)",
    )
    community_rating_count = models.IntegerField(default=0)
    wikipedia_url = models.CharField(max_length=1000, blank=True)
    video_url = models.CharField(max_length=1000, blank=True)

    class Meta:
        ordering = ["database_id"]
        indexes = [
            models.Index(
                fields=["platform_search", "name_search"],
                name="gamesdb_platform_name_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.platform})"


class AlternateName(models.Model):
    """Alternate (usually regional) title for a reference game."""

    game = models.ForeignKey(
        ReferenceGame,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        db_column="database_id",
        related_name="alternate_names",
    )
    alternate_name = models.CharField(max_length=500)
    name_search = models.CharField(max_length=500, db_index=True)
    region = models.CharField(max_length=100, blank=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        if self.region:
            return f"{self.alternate_name} ({self.region})"
        return self.alternate_name


class GameImage(models.Model):
    """A remote artwork asset for a reference game."""

    game = models.ForeignKey(
        ReferenceGame,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        db_column="database_id",
        related_name="images",
    )
    file_name = models.CharField(max_length=500)  # Relative to the image base URL
    image_type = models.CharField(max_length=100, db_index=True)  # "Box - Front"
    region = models.CharField(max_length=100, blank=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return self.file_name


class Setting(models.Model):
    """Simple key-value store for plugin state (e.g. the imported version hash)."""

    key = models.CharField(max_length=100, unique=True)
    value = models.JSONField()

    def __str__(self) -> str:
        return self.key

    @classmethod
    def get(cls, key: str, default=None):
        """Get a setting value by key, returning default if not found."""
        try:
            return cls.objects.get(key=key).value
        except cls.DoesNotExist:
            return default

    @classmethod
    def set(cls, key: str, value) -> "Setting":
        """Set a setting value, creating or updating as needed."""
        setting, _ = cls.objects.update_or_create(key=key, defaults={"value": value})
        return setting


class ImportJob(models.Model):
    """Tracks a background games database update."""

    STATUS_PENDING = "pending"
    STATUS_RUNNING = "running"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_RUNNING, "Running"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
    ]

    task_id = models.CharField(max_length=64, blank=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING
    )
    force = models.BooleanField(default=False)

    # Progress tracking (updated after each stage)
    stage = models.CharField(max_length=40, default="idle")
    progress = models.IntegerField(default=0)

    # Results (populated on completion)
    version_hash = models.CharField(max_length=200, blank=True)
    games_imported = models.IntegerField(default=0)
    alternate_names_imported = models.IntegerField(default=0)
    images_imported = models.IntegerField(default=0)
    error = models.TextField(blank=True)

    started_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-started_at"]

    def __str__(self) -> str:
        return f"ImportJob {self.pk} ({self.status})"

    @property
    def total_duration(self):
        """Return total execution duration (for finished jobs)."""
        if self.completed_at:
            return self.completed_at - self.started_at
        return None
