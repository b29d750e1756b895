"""
Celery configuration for the file sharing service.

Celery runs:
- Recipient notification emails after a share is created
- Periodic share maintenance (sweeps, log retention, analytics)

Redis is the message broker. Periodic schedules live in the database
(django-celery-beat DatabaseScheduler) and are seeded by the sharing
app's migrations, so they can be tuned from the admin without a deploy.

Usage:
    # Worker
    celery -A config worker -l info

    # Scheduler
    celery -A config beat -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up sharing/tasks.py
app.autodiscover_tasks()
