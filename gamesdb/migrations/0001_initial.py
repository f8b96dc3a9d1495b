from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ReferenceGame",
            fields=[
                ("database_id", models.IntegerField(primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=500)),
                ("platform", models.CharField(blank=True, max_length=200)),
                ("name_search", models.CharField(db_index=True, max_length=500)),
                ("platform_search", models.CharField(db_index=True, max_length=200)),
                ("release_date", models.DateField(blank=True, null=True)),
                ("genres", models.TextField(blank=True)),
                ("developer", models.TextField(blank=True)),
                ("publisher", models.TextField(blank=True)),
                ("overview", models.TextField(blank=True)),
                (
                    "community_rating",
                    models.IntegerField(
                        blank=True,
                        help_text="Community rating out of 100 (rescaled from 0-5 on import)",
                        null=True,
                    ),
                ),
                ("community_rating_count", models.IntegerField(default=0)),
                ("wikipedia_url", models.CharField(blank=True, max_length=1000)),
                ("video_url", models.CharField(blank=True, max_length=1000)),
            ],
            options={
                "ordering": ["database_id"],
                "indexes": [
                    models.Index(
                        fields=["platform_search", "name_search"],
                        name="gamesdb_platform_name_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="AlternateName",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("alternate_name", models.CharField(max_length=500)),
                ("name_search", models.CharField(db_index=True, max_length=500)),
                ("region", models.CharField(blank=True, max_length=100)),
                (
                    "game",
                    models.ForeignKey(
                        db_column="database_id",
                        db_constraint=False,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="alternate_names",
                        to="gamesdb.referencegame",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="GameImage",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("file_name", models.CharField(max_length=500)),
                ("image_type", models.CharField(db_index=True, max_length=100)),
                ("region", models.CharField(blank=True, max_length=100)),
                (
                    "game",
                    models.ForeignKey(
                        db_column="database_id",
                        db_constraint=False,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="images",
                        to="gamesdb.referencegame",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="Setting",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("key", models.CharField(max_length=100, unique=True)),
                ("value", models.JSONField()),
            ],
        ),
        migrations.CreateModel(
            name="ImportJob",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("task_id", models.CharField(blank=True, max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("running", "Running"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("force", models.BooleanField(default=False)),
                ("stage", models.CharField(default="idle", max_length=40)),
                ("progress", models.IntegerField(default=0)),
                ("version_hash", models.CharField(blank=True, max_length=200)),
                ("games_imported", models.IntegerField(default=0)),
                ("alternate_names_imported", models.IntegerField(default=0)),
                ("images_imported", models.IntegerField(default=0)),
                ("error", models.TextField(blank=True)),
                ("started_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ["-started_at"],
            },
        ),
    ]
