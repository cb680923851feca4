from django.core.management.base import BaseCommand

from apps.subscriptions.services.manager import SubscriptionManager


class Command(BaseCommand):
    help = 'Expire lapsed trials and paid subscriptions'

    def handle(self, *args, **kwargs):
        result = SubscriptionManager().check_and_update_expired()
        self.stdout.write(self.style.SUCCESS(
            f"Expired {result['expired_trials']} trial(s) and "
            f"{result['expired_active']} active subscription(s)"
        ))
