"""
Delete all business data of one tenant (users, roles and audit logs are kept)
Usage: python manage.py clear_tenant_data --tenant <slug> [--confirm]
"""
from django.core.management.base import BaseCommand, CommandError

from iproduction.core.models import Tenant
from iproduction.core.portability import reset_tenant_data


class Command(BaseCommand):
    help = 'Clear products, documents, production, accounting and payroll records of a tenant'

    def add_arguments(self, parser):
        parser.add_argument('--tenant', required=True, help='Tenant slug')
        parser.add_argument(
            '--confirm',
            action='store_true',
            help='Skip confirmation prompt',
        )

    def handle(self, *args, **options):
        try:
            tenant = Tenant.objects.get(slug=options['tenant'])
        except Tenant.DoesNotExist:
            raise CommandError(f"Tenant '{options['tenant']}' does not exist")

        if not options['confirm']:
            self.stdout.write(self.style.WARNING(f'WARNING: This will delete ALL business data of {tenant.name}.'))
            confirm = input('Type "YES" to confirm: ')
            if confirm != 'YES':
                self.stdout.write(self.style.ERROR('Operation cancelled.'))
                return

        result = reset_tenant_data(tenant, seed=False)
        for name, count in result['deleted'].items():
            if count:
                self.stdout.write(f'  - {name}: {count}')
        self.stdout.write(self.style.SUCCESS(f"Cleared {sum(result['deleted'].values())} records"))
