# Generated manually for accounting period audit actions

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='auditlog',
            name='action',
            field=models.CharField(choices=[('create', 'Create'), ('update', 'Update'), ('delete', 'Delete'), ('status_change', 'Status Change'), ('stock_adjust', 'Stock Adjustment'), ('payment_add', 'Payment Added'), ('payment_receive', 'Payment Received'), ('production_advance', 'Production Stage Advanced'), ('production_complete', 'Production Completed'), ('production_cancel', 'Production Cancelled'), ('payroll_pay', 'Payroll Paid'), ('data_import', 'Data Imported'), ('data_reset', 'Data Reset'), ('document_email', 'Document E-mailed'), ('period_close', 'Accounting Period Closed'), ('period_reopen', 'Accounting Period Reopened')], max_length=50),
        ),
    ]
