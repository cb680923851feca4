"""
Celery Configuration for Kopqela Billing

This module configures Celery for background task processing including:
- Expiring trials and paid periods that have run out
- Reconciling Azampay payments whose callback never arrived
- Expiring stale pending payments
"""

import os
from celery import Celery
from celery.schedules import crontab

# Set default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.local')

# Create Celery app
app = Celery('kopqela')

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()

# ════════════════════════════════════════════════════════════════════════════
# CELERY BEAT SCHEDULE - Periodic Tasks
# ════════════════════════════════════════════════════════════════════════════

app.conf.beat_schedule = {
    # ────────────────────────────────────────────────────────────────
    # Subscription expiry - Every hour at :05
    # TRIAL past trial_ends_at and ACTIVE past current_period_end → EXPIRED
    # ────────────────────────────────────────────────────────────────
    'check-expired-subscriptions-hourly': {
        'task': 'apps.subscriptions.tasks.check_expired_subscriptions',
        'schedule': crontab(minute=5),
        'options': {'queue': 'billing'}
    },

    # ────────────────────────────────────────────────────────────────
    # Azampay reconciliation - Every 5 minutes
    # Polls the gateway for PENDING transactions (missed callbacks)
    # ────────────────────────────────────────────────────────────────
    'reconcile-pending-payments-every-5-min': {
        'task': 'apps.payments.tasks.reconcile_pending_payments',
        'schedule': crontab(minute='*/5'),
        'options': {'queue': 'billing'}
    },

    # ────────────────────────────────────────────────────────────────
    # Stale payments - Every 10 minutes
    # ────────────────────────────────────────────────────────────────
    'expire-stale-pending-payments-every-10-min': {
        'task': 'apps.payments.tasks.expire_stale_pending_payments',
        'schedule': crontab(minute='*/10'),
        'options': {'queue': 'billing'}
    },
}

# ════════════════════════════════════════════════════════════════════════════
# QUEUE ROUTING
# ════════════════════════════════════════════════════════════════════════════

app.conf.task_routes = {
    'apps.subscriptions.tasks.*': {'queue': 'billing'},
    'apps.payments.tasks.*': {'queue': 'billing'},
}

# ════════════════════════════════════════════════════════════════════════════
# TASK CONFIGURATION
# ════════════════════════════════════════════════════════════════════════════

app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='Africa/Dar_es_Salaam',
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
)
