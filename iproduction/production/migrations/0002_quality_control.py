# Generated manually for quality control templates, inspections and NCRs

from decimal import Decimal
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
        ('production', '0001_initial'),
        ('purchasing', '0001_initial'),
        ('sales', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='QCTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('type', models.CharField(choices=[('incoming', 'Incoming'), ('inprocess', 'In-process'), ('final', 'Final')], default='final', max_length=20)),
                ('parameters', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='production_qctemplate_set', to='core.tenant')),
            ],
            options={
                'db_table': 'qc_templates',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='NonConformanceReport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('report_no', models.CharField(max_length=50)),
                ('description', models.TextField()),
                ('severity', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], default='medium', max_length=20)),
                ('status', models.CharField(choices=[('open', 'Open'), ('investigating', 'Investigating'), ('resolved', 'Resolved'), ('closed', 'Closed')], default='open', max_length=20)),
                ('root_cause', models.TextField(blank=True)),
                ('corrective_action', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='production_nonconformancereport_set', to='core.tenant')),
            ],
            options={
                'db_table': 'non_conformance_reports',
                'ordering': ['-created_at', '-id'],
                'unique_together': {('tenant', 'report_no')},
            },
        ),
        migrations.CreateModel(
            name='QCInspection',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('batch_no', models.CharField(blank=True, max_length=100)),
                ('inspection_date', models.DateField(db_index=True)),
                ('results', models.JSONField(default=dict)),
                ('passed_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('rejected_quantity', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12)),
                ('defect_count', models.PositiveIntegerField(default=0)),
                ('defect_notes', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('passed', 'Passed'), ('failed', 'Failed')], default='passed', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('inspected_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('non_conformance', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inspections', to='production.nonconformancereport')),
                ('production', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inspections', to='production.production')),
                ('purchase', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inspections', to='purchasing.purchase')),
                ('sale', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='inspections', to='sales.sale')),
                ('template', models.ForeignKey(on_delete=django.db.models.deletion.RESTRICT, related_name='inspections', to='production.qctemplate')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='production_qcinspection_set', to='core.tenant')),
            ],
            options={
                'db_table': 'qc_inspections',
                'ordering': ['-inspection_date', '-id'],
            },
        ),
    ]
