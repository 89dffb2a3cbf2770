"""
Load the demo dataset into a tenant
Usage: python manage.py seed_demo --tenant <slug> [--replace]
"""
from django.core.management.base import BaseCommand, CommandError

from iproduction.core.models import Tenant
from iproduction.core.portability import has_business_data, reset_tenant_data


class Command(BaseCommand):
    help = 'Seed demo products, parties, documents, production runs and payroll for a tenant'

    def add_arguments(self, parser):
        parser.add_argument('--tenant', required=True, help='Tenant slug')
        parser.add_argument(
            '--replace',
            action='store_true',
            help='Delete the tenant\'s existing business data first',
        )

    def handle(self, *args, **options):
        try:
            tenant = Tenant.objects.get(slug=options['tenant'])
        except Tenant.DoesNotExist:
            raise CommandError(f"Tenant '{options['tenant']}' does not exist")

        if has_business_data(tenant) and not options['replace']:
            raise CommandError(f"Tenant '{tenant.slug}' already has data. Use --replace to overwrite it.")

        result = reset_tenant_data(tenant, seed=True)
        for name, count in result['seeded'].items():
            self.stdout.write(f'  - {name}: {count}')
        self.stdout.write(self.style.SUCCESS(f"Seeded demo data for {tenant.name}"))
