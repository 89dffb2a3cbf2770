"""
Test suite for production runs, stages and losses
"""
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError

from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.inventory.utils import inventory_value
from iproduction.production.models import Production, ProductionLoss, ProductionMaterial, QCInspection, StageTransition
from iproduction.production.utils import cancel_production, complete_production


class ProductionStageTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_stages_listed_by_order(self):
        self.client.post('/api/v1/production-stages/', {'name': 'Packaging', 'order': 3}, format='json')
        self.client.post('/api/v1/production-stages/', {'name': 'Cutting', 'order': 1}, format='json')
        response = self.client.get('/api/v1/production-stages/')
        self.assertEqual([s['name'] for s in response.data], ['Cutting', 'Packaging'])

    def test_duplicate_order_rejected(self):
        TestDataFactory.create_stages(self.tenant, names=('Cutting',))
        response = self.client.post('/api/v1/production-stages/', {'name': 'Sewing', 'order': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stage_with_history_cannot_be_deleted(self):
        stage = TestDataFactory.create_stages(self.tenant, names=('Cutting',))[0]
        product = TestDataFactory.create_product(self.tenant)
        self.client.post('/api/v1/productions/', {'product': product.id, 'quantity': '1'}, format='json')
        response = self.client.delete(f'/api/v1/production-stages/{stage.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProductionLifecycleTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.cutting, self.assembly, self.packaging = TestDataFactory.create_stages(self.tenant)
        self.product = TestDataFactory.create_product(self.tenant, name='Widget A', stock=Decimal('0'))
        self.steel = TestDataFactory.create_raw_material(self.tenant, name='Steel Sheets', stock=Decimal('100'))
        self.pellets = TestDataFactory.create_raw_material(self.tenant, name='Plastic Pellets', stock=Decimal('10'))
        TestDataFactory.create_bom_line(self.product, self.steel, '2')
        TestDataFactory.create_bom_line(self.product, self.pellets, '0.5')

    def _start(self, quantity='10'):
        response = self.client.post('/api/v1/productions/', {
            'product': self.product.id, 'quantity': quantity, 'start_date': '2024-01-15'
        }, format='json')
        return response

    def test_start_consumes_bom_and_opens_first_stage(self):
        response = self._start()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['reference_no'], 'PRD-001')
        self.assertEqual(response.data['status'], 'running')
        self.assertEqual(response.data['stage_name'], 'Cutting')
        self.assertEqual(len(response.data['materials']), 2)
        self.assertEqual(response.data['transitions'][0]['status'], 'in_progress')

        self.steel.refresh_from_db()
        self.pellets.refresh_from_db()
        self.assertEqual(self.steel.stock, Decimal('80'))
        self.assertEqual(self.pellets.stock, Decimal('5'))

    def test_shortage_blocks_start(self):
        response = self._start(quantity='21')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual([s['name'] for s in response.data['shortages']], ['Plastic Pellets'])
        self.assertFalse(Production.objects.exists())
        self.steel.refresh_from_db()
        self.assertEqual(self.steel.stock, Decimal('100'))

    def test_advance_through_stages(self):
        production_id = self._start().data['id']
        url = f'/api/v1/productions/{production_id}/advance/'

        self.assertEqual(self.client.post(url, {'notes': 'cut done'}, format='json').data['stage_name'], 'Assembly')
        self.assertEqual(self.client.post(url, format='json').data['stage_name'], 'Packaging')
        self.assertEqual(self.client.post(url, format='json').status_code, status.HTTP_400_BAD_REQUEST)

        transitions = StageTransition.objects.filter(production_id=production_id)
        self.assertEqual(transitions.count(), 3)
        self.assertEqual(transitions.filter(status='in_progress').count(), 1)
        self.assertEqual(transitions.get(stage=self.cutting).notes, 'cut done')

    def test_complete_adds_output_to_stock(self):
        production_id = self._start().data['id']
        response = self.client.post(f'/api/v1/productions/{production_id}/complete/',
                                    {'completed_qty': '9', 'end_date': '2024-01-20'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')
        self.assertEqual(response.data['efficiency'], '90.00')
        self.assertFalse(StageTransition.objects.filter(production_id=production_id, status='in_progress').exists())

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('9'))

        response = self.client.post(f'/api/v1/productions/{production_id}/advance/', format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_complete_defaults_to_planned_quantity(self):
        production_id = self._start(quantity='4').data['id']
        self.client.post(f'/api/v1/productions/{production_id}/complete/', format='json')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('4'))

    def test_cancel_returns_materials(self):
        production_id = self._start().data['id']
        response = self.client.post(f'/api/v1/productions/{production_id}/cancel/', {'reason': 'machine down'}, format='json')
        self.assertEqual(response.data['status'], 'cancelled')
        self.steel.refresh_from_db()
        self.assertEqual(self.steel.stock, Decimal('100'))
        self.assertEqual(self.client.post(f'/api/v1/productions/{production_id}/cancel/').status_code,
                         status.HTTP_400_BAD_REQUEST)

    def test_stale_copy_cannot_complete_cancelled_production(self):
        production_id = self._start().data['id']
        stale = Production.objects.get(pk=production_id)
        self.client.post(f'/api/v1/productions/{production_id}/cancel/', format='json')

        with transaction.atomic():
            with self.assertRaises(ValidationError):
                complete_production(stale)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('0'))
        self.assertEqual(Production.objects.get(pk=production_id).status, 'cancelled')

    def test_stale_copy_cannot_cancel_twice(self):
        production_id = self._start().data['id']
        stale = Production.objects.get(pk=production_id)
        self.client.post(f'/api/v1/productions/{production_id}/cancel/', format='json')

        with transaction.atomic():
            with self.assertRaises(ValidationError):
                cancel_production(stale)
        self.steel.refresh_from_db()
        self.assertEqual(self.steel.stock, Decimal('100'))

    def test_cancel_keeps_consumption_record(self):
        production_id = self._start().data['id']
        self.client.post(f'/api/v1/productions/{production_id}/cancel/', format='json')
        self.assertEqual(ProductionMaterial.objects.filter(production_id=production_id).count(), 2)

    def test_inventory_value_rolls_back_later_production(self):
        production_id = self._start().data['id']
        self.client.post(f'/api/v1/productions/{production_id}/complete/', {'end_date': '2024-02-10'}, format='json')
        self.product.refresh_from_db()
        self.steel.refresh_from_db()
        self.pellets.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('10'))

        before_completion = Decimal('80') * self.steel.price + Decimal('5') * self.pellets.price
        self.assertEqual(inventory_value(self.tenant, as_of=date(2024, 1, 31)), before_completion.quantize(Decimal('0.01')))
        before_start = Decimal('100') * self.steel.price + Decimal('10') * self.pellets.price
        self.assertEqual(inventory_value(self.tenant, as_of=date(2024, 1, 10)), before_start.quantize(Decimal('0.01')))
        self.assertEqual(inventory_value(self.tenant, as_of=date(2024, 3, 1)), inventory_value(self.tenant))

    def test_delete_running_returns_materials(self):
        production_id = self._start().data['id']
        response = self.client.delete(f'/api/v1/productions/{production_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.pellets.refresh_from_db()
        self.assertEqual(self.pellets.stock, Decimal('10'))

    def test_completed_cannot_be_deleted(self):
        production_id = self._start().data['id']
        self.client.post(f'/api/v1/productions/{production_id}/complete/', format='json')
        response = self.client.delete(f'/api/v1/productions/{production_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_product_cannot_change_after_start(self):
        production_id = self._start().data['id']
        other = TestDataFactory.create_product(self.tenant)
        response = self.client.patch(f'/api/v1/productions/{production_id}/', {'product': other.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.patch(f'/api/v1/productions/{production_id}/', {'notes': 'rush order'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_stats(self):
        first = self._start(quantity='10').data['id']
        self._start(quantity='2')
        self.client.post(f'/api/v1/productions/{first}/complete/', {'completed_qty': '8'}, format='json')

        stats = self.client.get('/api/v1/productions/stats/').data
        self.assertEqual(stats['total'], 2)
        self.assertEqual(stats['running'], 1)
        self.assertEqual(stats['completed'], 1)
        self.assertEqual(stats['average_efficiency'], '80.00')

        response = self.client.get('/api/v1/productions/', {'status': 'running'})
        self.assertEqual(response.data['count'], 1)


class ProductionLossTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(self.tenant, stock=Decimal('20'))

    def test_loss_is_recorded_without_moving_stock(self):
        response = self.client.post('/api/v1/production-losses/', {
            'product': self.product.id, 'quantity': '2', 'loss_type': 'defect', 'date': '2024-01-18',
            'reason': 'Quality check failure'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, Decimal('20'))

        response = self.client.get('/api/v1/production-losses/', {'loss_type': 'defect'})
        self.assertEqual(len(response.data), 1)

    def test_production_of_other_product_rejected(self):
        other = TestDataFactory.create_product(self.tenant)
        production = Production.objects.create(tenant=self.tenant, reference_no='PRD-001', product=other,
                                               quantity=Decimal('5'), start_date='2024-01-15')
        response = self.client.post('/api/v1/production-losses/', {
            'product': self.product.id, 'production': production.id, 'quantity': '1', 'date': '2024-01-18'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(ProductionLoss.objects.exists())

    def test_view_only_role_cannot_record(self):
        user = TestDataFactory.create_user(tenant=self.tenant, permissions=['production.view'])
        client = AuthenticatedAPIClient().authenticate_user(user)
        response = client.post('/api/v1/production-losses/', {
            'product': self.product.id, 'quantity': '1', 'date': '2024-01-18'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(client.get('/api/v1/production-losses/').status_code, status.HTTP_200_OK)


class QualityControlTests(TestCase):

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.template = self.client.post('/api/v1/qc/templates/', {
            'name': 'Final inspection', 'type': 'final',
            'parameters': [{'name': 'stitching'}, {'name': 'color'}],
        }, format='json').data

    def _inspect(self, results, **extra):
        payload = {'template': self.template['id'], 'results': results, 'passed_quantity': '10', 'batch_no': 'B-1'}
        payload.update(extra)
        return self.client.post('/api/v1/qc/inspections/', payload, format='json')

    def test_all_parameters_passing_marks_inspection_passed(self):
        response = self._inspect({'stitching': {'passed': True}, 'color': {'passed': True, 'value': 'navy'}})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'passed')
        self.assertEqual(response.data['defect_count'], 0)
        self.assertEqual(response.data['inspected_by'], self.user.id)

    def test_failed_parameters_are_counted_as_defects(self):
        response = self._inspect({'stitching': {'passed': False}, 'color': {'passed': True}}, rejected_quantity='2')
        self.assertEqual(response.data['status'], 'failed')
        self.assertEqual(response.data['defect_count'], 1)

    def test_results_need_boolean_outcomes(self):
        self.assertEqual(self._inspect({}).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._inspect({'stitching': {'passed': 'yes'}}).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self._inspect(['stitching']).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(QCInspection.objects.exists())

    def test_template_in_use_cannot_be_deleted(self):
        self._inspect({'stitching': {'passed': True}})
        response = self.client.delete(f"/api/v1/qc/templates/{self.template['id']}/")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_ncr_numbering_and_linking(self):
        first = self.client.post('/api/v1/qc/ncr/', {'description': 'Loose threads', 'severity': 'high'}, format='json')
        second = self.client.post('/api/v1/qc/ncr/', {'description': 'Wrong shade'}, format='json')
        self.assertEqual(first.data['report_no'], 'NCR-001')
        self.assertEqual(second.data['report_no'], 'NCR-002')
        self.assertEqual(first.data['status'], 'open')

        inspection = self._inspect({'stitching': {'passed': False}}, non_conformance=first.data['id']).data
        self.assertEqual(inspection['non_conformance_no'], 'NCR-001')

        response = self.client.patch(f"/api/v1/qc/ncr/{first.data['id']}/",
                                     {'status': 'resolved', 'corrective_action': 'Retrained line 3'}, format='json')
        self.assertEqual(response.data['status'], 'resolved')

    def test_dashboard_pass_rate(self):
        self._inspect({'stitching': {'passed': True}})
        self._inspect({'stitching': {'passed': True}})
        self._inspect({'stitching': {'passed': True}})
        self._inspect({'stitching': {'passed': False}})
        self.client.post('/api/v1/qc/ncr/', {'description': 'Loose threads'}, format='json')

        data = self.client.get('/api/v1/qc/dashboard/').data
        self.assertEqual(data['total'], 4)
        self.assertEqual(data['failed'], 1)
        self.assertEqual(data['pass_rate'], '75.00')
        self.assertEqual(data['open_ncrs'], 1)

    def test_other_tenants_template_rejected(self):
        other = TestDataFactory.create_tenant()
        other_client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user(tenant=other))
        response = other_client.post('/api/v1/qc/inspections/', {
            'template': self.template['id'], 'results': {'stitching': {'passed': True}},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
