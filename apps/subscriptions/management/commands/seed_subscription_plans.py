from django.core.management.base import BaseCommand

from apps.subscriptions.catalogue import seed_plans


class Command(BaseCommand):
    help = 'Create or update the BASIC, PROFESSIONAL and ENTERPRISE plans'

    def handle(self, *args, **kwargs):
        self.stdout.write('Seeding subscription plans...')

        for plan, created in seed_plans():
            action = 'Created' if created else 'Updated'
            self.stdout.write(self.style.SUCCESS(
                f"{action} plan: {plan.display_name} ({plan.name}) - "
                f"{plan.currency} {plan.price_monthly}/mo"
            ))

        self.stdout.write(self.style.SUCCESS('Subscription plans seeded successfully'))
