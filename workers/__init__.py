# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# booking emails and lesson reminders.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (booking emails, periodic reminders)
# - config.py: Worker-specific settings and the beat schedule
#
# Usage:
#   # Start worker with beat
#   python scripts/start_worker.py
#
#   # Submit task (from API)
#   from workers.tasks import enqueue, send_booking_cancellation
#   enqueue(send_booking_cancellation, lesson_id)
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
