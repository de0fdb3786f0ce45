"""
Celery Configuration for Bidmarket Backend

Configures Celery for background tasks and the scheduled payment repair job.
"""

import os

from celery import Celery


# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "bidmarketBackend.settings")

app = Celery("bidmarketBackend")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()
app.autodiscover_tasks(["payment_system.Tasks"])

app.conf.beat_schedule = {
    # Finish paid auctions whose transaction or delivery record is missing
    "complete-unfinished-payments": {
        "task": "payment_system.Tasks.reconciliation_tasks.complete_unfinished_payments_task",
        "schedule": 15.0 * 60.0,
        "options": {"expires": 10.0 * 60.0, "queue": "payment_tasks"},
    },
}

app.conf.update(
    task_routes={
        "payment_system.Tasks.*": {"queue": "payment_tasks"},
    },
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=60 * 60 * 24,
    worker_max_tasks_per_child=1000,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=30 * 60,
    task_soft_time_limit=25 * 60,
)
