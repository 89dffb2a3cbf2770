# Generated manually for goods received notes

from decimal import Decimal
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ('catalog', '0001_initial'),
        ('core', '0001_initial'),
        ('purchasing', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='GoodsReceipt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('grn_no', models.CharField(max_length=50)),
                ('received_date', models.DateField(db_index=True)),
                ('warehouse_location', models.CharField(blank=True, max_length=200)),
                ('remarks', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('accepted', 'Accepted'), ('partial', 'Partially Accepted'), ('rejected', 'Rejected')], default='pending', max_length=20)),
                ('total_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('accepted_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('rejected_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('purchase', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='goods_receipts', to='purchasing.purchase')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='purchasing_goodsreceipt_set', to='core.tenant')),
            ],
            options={
                'db_table': 'goods_receipts',
                'ordering': ['-received_date', '-id'],
                'unique_together': {('tenant', 'grn_no')},
            },
        ),
        migrations.CreateModel(
            name='GoodsReceiptItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ordered_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('received_quantity', models.DecimalField(decimal_places=3, max_digits=12)),
                ('accepted_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('rejected_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('batch_no', models.CharField(blank=True, max_length=100)),
                ('expiry_date', models.DateField(blank=True, null=True)),
                ('remarks', models.TextField(blank=True)),
                ('quality_status', models.CharField(choices=[('pending', 'Pending'), ('passed', 'Passed'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('goods_receipt', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='purchasing.goodsreceipt')),
                ('raw_material', models.ForeignKey(on_delete=django.db.models.deletion.RESTRICT, related_name='receipt_items', to='catalog.rawmaterial')),
            ],
            options={
                'db_table': 'goods_receipt_items',
                'ordering': ['id'],
            },
        ),
    ]
