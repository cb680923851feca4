from django.core.management.base import BaseCommand

from apps.subscriptions.services.manager import SubscriptionManager


class Command(BaseCommand):
    help = 'Start trial subscriptions for businesses that have none'

    def handle(self, *args, **kwargs):
        results = SubscriptionManager().migrate_existing()

        self.stdout.write(f"Found {results['total']} businesses without subscriptions")
        for error in results['errors']:
            self.stdout.write(self.style.ERROR(
                f"  {error['business_name']} (ID: {error['business_id']}): {error['error']}"
            ))

        style = self.style.SUCCESS if not results['failed'] else self.style.WARNING
        self.stdout.write(style(
            f"Migration completed. {results['success']} successful, {results['failed']} failed."
        ))
