# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# The TutorHub worker: booking emails on the "email" queue and the hourly
# lesson reminder scan run by celery beat.
#
# Usage:
#   celery -A workers.celery_app worker --beat -Q default,email --loglevel=info
#   python scripts/start_worker.py
#
# Broker and result backend both come from settings.REDIS_URL.
# =============================================================================

import logging

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun, worker_ready

from app.config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def redacted(url: str) -> str:
    """Broker URL without credentials (redis://:secret@host -> host)."""
    return url.rsplit("@", 1)[-1]


def create_celery_app() -> Celery:
    """Build the Celery app from workers.config.CeleryConfig."""
    app = Celery("tutorhub_worker", include=["workers.tasks"])
    app.config_from_object("workers.config:CeleryConfig")
    logger.info(f"Celery app created with broker: {redacted(settings.REDIS_URL)}")
    return app


celery_app = create_celery_app()


# =============================================================================
# Task Lifecycle Logging
# =============================================================================

def describe(task_name: str | None, args) -> str:
    """Short label for log lines, e.g. "send_booking_cancellation(lesson 42)"."""
    short = (task_name or "unknown").rsplit(".", 1)[-1]
    if args:
        return f"{short}(lesson {args[0]})"
    return short


@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, **extra):
    logger.info(f"Task started: {describe(getattr(task, 'name', None), args)} [{task_id}]")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, args=None, retval=None, state=None, **extra):
    # Email tasks report delivery failures in their result, not as exceptions
    if isinstance(retval, dict) and retval.get("success") is False:
        logger.warning(f"Task {describe(getattr(task, 'name', None), args)} [{task_id}]: {retval.get('message')}")
    logger.info(f"Task completed: {describe(getattr(task, 'name', None), args)} [{task_id}] - State: {state}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, args=None, **extra):
    logger.error(f"Task failed: {describe(getattr(sender, 'name', None), args)} [{task_id}] - Error: {exception}")


@worker_ready.connect
def worker_ready_handler(sender=None, **extra):
    schedule = ", ".join(celery_app.conf.beat_schedule or {}) or "none"
    logger.info(f"TutorHub worker ready (beat entries: {schedule})")


if __name__ == "__main__":
    celery_app.start()
