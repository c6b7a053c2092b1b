"""Celery configuration"""

from celery import Celery

from app.core.config import settings

# Celery application instance
app = Celery('inventory_worker')

# Redis as broker and result backend
app.conf.broker_url = settings.celery_url(settings.CELERY_BROKER_DB)
app.conf.result_backend = settings.celery_url(settings.CELERY_RESULT_DB)

# Serialization
app.conf.task_serializer = 'json'
app.conf.result_serializer = 'json'
app.conf.accept_content = ['json']

app.conf.timezone = 'UTC'
app.conf.enable_utc = True

# Task routing
app.conf.task_routes = {
    'tasks.inventory.*': {'queue': 'inventory'},
}

# Worker settings
app.conf.worker_prefetch_multiplier = 1
app.conf.task_acks_late = True

# Task modules loaded by the worker
app.conf.imports = ('tasks.inventory_tasks',)

__all__ = ['app']
