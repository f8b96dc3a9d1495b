"""Background tasks using Procrastinate task queue."""

import logging

from django.utils import timezone
from procrastinate import job_context
from procrastinate.contrib.django import app

from launchmeta.archive_fetch import GamesDbClient, TransientFetchFailure

from .models import ImportJob
from .queues import PRIORITY_HIGH, PRIORITY_LOW, QUEUE_BACKGROUND, QUEUE_USER_ACTIONS
from .updater import new_metadata_available, run_update

logger = logging.getLogger(__name__)


def queue_gamesdb_update(
    force: bool = False,
    priority: int = PRIORITY_HIGH,
    queue: str = QUEUE_USER_ACTIONS,
) -> ImportJob | None:
    """Create an ImportJob and enqueue the update task.

    Returns the new job, or None if an update is already pending or running.
    """
    existing_job = ImportJob.objects.filter(
        status__in=[ImportJob.STATUS_PENDING, ImportJob.STATUS_RUNNING],
    ).exists()
    if existing_job:
        logger.debug("Skip games database update: job already pending")
        return None

    job = ImportJob.objects.create(task_id="pending", force=force)

    job_id = run_gamesdb_update.configure(queue=queue, priority=priority).defer(
        import_job_id=job.pk
    )
    job.task_id = str(job_id)
    job.save()

    logger.info(f"Queued games database update (job {job.pk})")
    return job


@app.task(queue=QUEUE_BACKGROUND, pass_context=True)
def run_gamesdb_update(context: job_context.JobContext, import_job_id: int) -> dict:
    """Background task to download and import the games database."""
    import_job = ImportJob.objects.get(pk=import_job_id)
    import_job.status = ImportJob.STATUS_RUNNING
    import_job.save()

    # Mirror pipeline progress into the ImportJob
    def update_progress(data: dict) -> None:
        ImportJob.objects.filter(pk=import_job_id).update(
            stage=data["stage"],
            progress=data["progress"],
        )

    try:
        client = GamesDbClient()
        if not import_job.force and not new_metadata_available(client):
            import_job.status = ImportJob.STATUS_COMPLETED
            import_job.completed_at = timezone.now()
            import_job.save()
            logger.info("Games database already up to date")
            return {"updated": False}

        version_hash, counts = run_update(client, progress_callback=update_progress)

        import_job.refresh_from_db()
        import_job.status = ImportJob.STATUS_COMPLETED
        import_job.version_hash = version_hash
        import_job.games_imported = counts.get("Game", 0)
        import_job.alternate_names_imported = counts.get("GameAlternateName", 0)
        import_job.images_imported = counts.get("GameImage", 0)
        import_job.completed_at = timezone.now()
        import_job.save()

        return {"updated": True, "version_hash": version_hash, **counts}
    except Exception as e:
        import_job.refresh_from_db()
        import_job.status = ImportJob.STATUS_FAILED
        import_job.error = str(e)
        import_job.completed_at = timezone.now()
        import_job.save()
        raise


@app.periodic(cron="0 4 * * *")
@app.task(queue=QUEUE_BACKGROUND, queueing_lock="gamesdb_update_check")
def check_gamesdb_update(timestamp) -> dict:
    """Queue an update when the remote archive has changed.

    Runs daily. A failed version check is logged and retried on the next run.
    """
    try:
        available = new_metadata_available()
    except TransientFetchFailure as e:
        logger.warning(f"Games database version check failed: {e}")
        return {"queued": False, "error": str(e)}

    if not available:
        return {"queued": False}

    job = queue_gamesdb_update(priority=PRIORITY_LOW, queue=QUEUE_BACKGROUND)
    return {"queued": job is not None}
