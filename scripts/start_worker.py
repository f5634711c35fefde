#!/usr/bin/env python3
# =============================================================================
# scripts/start_worker.py - Celery Worker Entry Point
# =============================================================================
# Starts a Celery worker (with embedded beat for lesson reminders) that
# consumes the default and email queues.
#
# Usage:
#   python scripts/start_worker.py
#   python scripts/start_worker.py --no-beat
#
#   # Or use Celery CLI directly
#   celery -A workers.celery_app worker --beat -Q default,email --loglevel=info
#
# Prerequisites:
#   - Redis must be running (REDIS_URL)
#   - Environment variables must be set (.env file)
# =============================================================================

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from workers.celery_app import celery_app


def worker_args(beat: bool = True, concurrency: int = 2) -> list[str]:
    """Arguments for celery_app.worker_main."""
    args = [
        "worker",
        "--loglevel=info",
        f"--concurrency={concurrency}",
        "--queues=default,email",
    ]
    if beat:
        args.append("--beat")
    return args


def main():
    """Start the Celery worker."""
    beat = "--no-beat" not in sys.argv[1:]

    print("=" * 60)
    print("TutorHub Celery Worker")
    print("=" * 60)
    print()
    print(f"Starting worker (reminder schedule {'on' if beat else 'off'})...")
    print("Press Ctrl+C to stop")
    print()

    celery_app.worker_main(worker_args(beat=beat))


if __name__ == "__main__":
    main()
