"""
Subscription Celery Tasks

- Expiring lapsed trials and paid periods (hourly via Celery Beat)
"""

import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name='apps.subscriptions.tasks.check_expired_subscriptions')
def check_expired_subscriptions():
    """
    Periodic task: move lapsed TRIAL and ACTIVE subscriptions to EXPIRED.

    Runs hourly via Celery Beat. The same work can be triggered over HTTP
    (POST /api/v1/subscriptions/check-status/) or with
    ``manage.py check_subscriptions``.
    """
    try:
        from apps.subscriptions.services.manager import SubscriptionManager

        result = SubscriptionManager().check_and_update_expired()
        total = result['expired_trials'] + result['expired_active']
        if total:
            logger.info(f"Subscription expiry check: {total} expired")
        return result
    except Exception as e:
        logger.error(f"Subscription expiry task failed: {e}", exc_info=True)
        return {'error': str(e)}
