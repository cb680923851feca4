"""
Subscription Signals

Handles automatic creation of trial subscriptions for new businesses.
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender='core.Business')
def create_trial_subscription_for_new_business(sender, instance, created, **kwargs):
    """
    Start the free trial when a new Business is created.
    Disabled with SUBSCRIPTION_AUTO_TRIAL = False.
    """
    if not created or kwargs.get('raw'):
        return
    if not getattr(settings, 'SUBSCRIPTION_AUTO_TRIAL', True):
        return

    # Avoid circular imports
    from .exceptions import SubscriptionError
    from .services.manager import SubscriptionManager

    try:
        subscription = SubscriptionManager().create_trial(instance)
        logger.info(
            f"Created trial subscription for business {instance.name}. "
            f"Trial ends: {subscription.trial_ends_at}"
        )
    except SubscriptionError as e:
        # A missing trial plan must not block business creation;
        # migrate_existing_businesses picks these up later.
        logger.error(f"Failed to create trial subscription for business {instance.name}: {e.message}")
