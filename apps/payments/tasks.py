"""
Payment Celery Tasks

Periodic tasks for:
- Polling Azampay for payments still PENDING
- Expiring payments that were never confirmed
"""

import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name='apps.payments.tasks.reconcile_pending_payments')
def reconcile_pending_payments():
    """
    Periodic task: ask Azampay about PENDING payments whose callback
    has not arrived. SUCCESS results activate the plan.

    Runs every 5 minutes via Celery Beat.
    """
    try:
        from apps.payments.services.payment_service import PaymentService

        result = PaymentService().reconcile_pending()
        if result['resolved']:
            logger.info(f"Reconciled {result['resolved']} of {result['checked']} pending payments")
        return result
    except Exception as e:
        logger.error(f"Payment reconciliation task failed: {e}", exc_info=True)
        return {'error': str(e)}


@shared_task(name='apps.payments.tasks.expire_stale_pending_payments')
def expire_stale_pending_payments():
    """
    Periodic task: mark payments stuck in PENDING as EXPIRED.

    If the customer never entered their PIN the payment stays pending
    forever. Cut off after AZAMPAY_PENDING_TIMEOUT_MINUTES.

    Runs every 10 minutes via Celery Beat.
    """
    try:
        from apps.payments.services.payment_service import PaymentService

        count = PaymentService().expire_stale_pending()
        return {'expired': count}
    except Exception as e:
        logger.error(f"Stale payment cleanup task failed: {e}", exc_info=True)
        return {'error': str(e)}
