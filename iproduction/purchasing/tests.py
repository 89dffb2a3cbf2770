"""
Test suite for the purchasing module
Tests: purchase creation, totals, raw material stock, supplier balance, updates and deletes
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from iproduction.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from iproduction.purchasing.models import GoodsReceipt, Purchase, PurchaseItem


class PurchaseModelTests(TestCase):
    """Test Purchase and PurchaseItem model methods"""

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.supplier = TestDataFactory.create_supplier(self.tenant)
        self.material = TestDataFactory.create_raw_material(self.tenant)

    def test_purchase_str(self):
        """Test purchase string representation"""
        purchase = Purchase.objects.create(tenant=self.tenant, invoice_no='PUR-001', supplier=self.supplier, date='2024-01-10')
        self.assertEqual(str(purchase), 'PUR-001')

    def test_recalculate_totals(self):
        """Subtotal from lines, tax added on top, status follows paid"""
        purchase = Purchase.objects.create(tenant=self.tenant, invoice_no='PUR-001', supplier=self.supplier,
                                           date='2024-01-10', tax_amount=Decimal('12.50'), paid=Decimal('100.00'))
        PurchaseItem.objects.create(purchase=purchase, raw_material=self.material, quantity=Decimal('4'), price=Decimal('25.00'))
        purchase.recalculate_totals()
        self.assertEqual(purchase.subtotal, Decimal('100.00'))
        self.assertEqual(purchase.total, Decimal('112.50'))
        self.assertEqual(purchase.due, Decimal('12.50'))
        self.assertEqual(purchase.status, 'partial')


class PurchaseAPITests(TestCase):
    """Test purchase endpoints and their stock/balance effects"""

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier(self.tenant)
        self.steel = TestDataFactory.create_raw_material(self.tenant, name='Steel Sheets', stock=Decimal('500'))
        self.pellets = TestDataFactory.create_raw_material(self.tenant, name='Plastic Pellets', stock=Decimal('0'))

    def _create_purchase(self, items=None, **extra):
        payload = {
            'supplier': self.supplier.id,
            'date': '2024-01-10',
            'items': items or [{'raw_material': self.steel.id, 'quantity': '100', 'price': '50.00'}],
        }
        payload.update(extra)
        return self.client.post('/api/v1/purchases/', payload, format='json')

    def test_create_purchase(self):
        """Purchase gets a number, totals and adds stock"""
        response = self._create_purchase(tax_amount='25.00', paid='1000.00')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['invoice_no'], 'PUR-001')
        self.assertEqual(response.data['total'], '5025.00')
        self.assertEqual(response.data['due'], '4025.00')
        self.assertEqual(response.data['status'], 'partial')

        self.steel.refresh_from_db()
        self.supplier.refresh_from_db()
        self.assertEqual(self.steel.stock, Decimal('600'))
        self.assertEqual(self.supplier.balance, Decimal('4025.00'))

    def test_numbers_are_sequential(self):
        """Second purchase gets the next number"""
        self._create_purchase()
        self.assertEqual(self._create_purchase().data['invoice_no'], 'PUR-002')

    def test_requires_items(self):
        """A purchase without lines is rejected"""
        response = self.client.post('/api/v1/purchases/', {'supplier': self.supplier.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('items', response.data)

    def test_zero_quantity_rejected(self):
        """Line quantities must be positive"""
        response = self._create_purchase(items=[{'raw_material': self.steel.id, 'quantity': '0', 'price': '5.00'}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Purchase.objects.exists())

    def test_paid_above_total_rejected(self):
        """Paid amount cannot exceed total"""
        response = self._create_purchase(paid='5000.01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.steel.refresh_from_db()
        self.assertEqual(self.steel.stock, Decimal('500'))

    def test_foreign_material_rejected(self):
        """Raw materials of another tenant cannot be purchased"""
        foreign = TestDataFactory.create_raw_material(TestDataFactory.create_tenant())
        response = self._create_purchase(items=[{'raw_material': foreign.id, 'quantity': '1', 'price': '1.00'}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_applies_quantity_difference(self):
        """Changing lines only moves the difference"""
        purchase_id = self._create_purchase().data['id']
        response = self.client.patch(f'/api/v1/purchases/{purchase_id}/', {
            'items': [
                {'raw_material': self.steel.id, 'quantity': '60', 'price': '50.00'},
                {'raw_material': self.pellets.id, 'quantity': '200', 'price': '2.00'},
            ]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], '3400.00')

        self.steel.refresh_from_db()
        self.pellets.refresh_from_db()
        self.supplier.refresh_from_db()
        self.assertEqual(self.steel.stock, Decimal('560'))
        self.assertEqual(self.pellets.stock, Decimal('200'))
        self.assertEqual(self.supplier.balance, Decimal('3400.00'))

    def test_update_blocked_when_material_consumed(self):
        """Lowering a quantity below what is left in stock fails"""
        purchase_id = self._create_purchase(items=[{'raw_material': self.pellets.id, 'quantity': '100', 'price': '2.00'}]).data['id']
        self.pellets.stock = Decimal('30')
        self.pellets.save()

        response = self.client.patch(f'/api/v1/purchases/{purchase_id}/', {
            'items': [{'raw_material': self.pellets.id, 'quantity': '50', 'price': '2.00'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.pellets.refresh_from_db()
        self.assertEqual(self.pellets.stock, Decimal('30'))

    def test_delete_reverses_stock_and_balance(self):
        """Deleting a purchase takes the stock back out"""
        purchase_id = self._create_purchase().data['id']
        response = self.client.delete(f'/api/v1/purchases/{purchase_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.steel.refresh_from_db()
        self.supplier.refresh_from_db()
        self.assertEqual(self.steel.stock, Decimal('500'))
        self.assertEqual(self.supplier.balance, Decimal('0.00'))

    def test_delete_with_payments_rejected(self):
        """Purchases with supplier payments cannot be deleted"""
        purchase_id = self._create_purchase().data['id']
        self.client.post('/api/v1/supplier-payments/', {
            'supplier': self.supplier.id, 'purchase': purchase_id, 'amount': '100.00', 'date': '2024-01-11'
        }, format='json')
        response = self.client.delete(f'/api/v1/purchases/{purchase_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        """Supplier, status and search filters"""
        other = TestDataFactory.create_supplier(self.tenant, name='XYZ Components')
        self._create_purchase()
        self._create_purchase(supplier=other.id, paid='5000.00')

        response = self.client.get('/api/v1/purchases/', {'supplier': other.id})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/purchases/', {'status': 'unpaid'})
        self.assertEqual(response.data['results'][0]['supplier'], self.supplier.id)
        response = self.client.get('/api/v1/purchases/', {'search': 'xyz'})
        self.assertEqual(response.data['count'], 1)

    def test_sales_only_role_forbidden(self):
        """Purchases need the purchases module permission"""
        user = TestDataFactory.create_user(tenant=self.tenant, permissions=['sales.*'])
        client = AuthenticatedAPIClient().authenticate_user(user)
        self.assertEqual(client.get('/api/v1/purchases/').status_code, status.HTTP_403_FORBIDDEN)


class GoodsReceiptTests(TestCase):
    """Goods received notes against purchases"""

    def setUp(self):
        self.tenant = TestDataFactory.create_tenant()
        self.user = TestDataFactory.create_user(tenant=self.tenant)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier(self.tenant)
        self.cotton = TestDataFactory.create_raw_material(self.tenant, name='Cotton', stock=Decimal('0'))
        self.dye = TestDataFactory.create_raw_material(self.tenant, name='Dye', stock=Decimal('0'))
        self.purchase = self.client.post('/api/v1/purchases/', {
            'supplier': self.supplier.id, 'date': '2024-01-10',
            'items': [
                {'raw_material': self.cotton.id, 'quantity': '100', 'price': '3.00'},
                {'raw_material': self.dye.id, 'quantity': '10', 'price': '8.00'},
            ],
        }, format='json').data

    def _receive(self, items, **extra):
        payload = {'purchase': self.purchase['id'], 'received_date': '2024-01-12', 'items': items}
        payload.update(extra)
        return self.client.post('/api/v1/grn/', payload, format='json')

    def test_create_grn_with_lines(self):
        response = self._receive([
            {'raw_material': self.cotton.id, 'received_quantity': '100', 'accepted_quantity': '95', 'rejected_quantity': '5',
             'batch_no': 'C-24'},
        ], warehouse_location='Bay 2')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['grn_no'], 'GRN-001')
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['total_quantity'], '100.000')
        self.assertEqual(response.data['accepted_quantity'], '95.000')
        self.assertEqual(response.data['items'][0]['ordered_quantity'], '100.000')
        self.assertEqual(self._receive([]).data['grn_no'], 'GRN-002')

    def test_receipt_does_not_move_stock(self):
        self._receive([{'raw_material': self.cotton.id, 'received_quantity': '100', 'accepted_quantity': '100'}])
        self.cotton.refresh_from_db()
        self.assertEqual(self.cotton.stock, Decimal('100'))

    def test_accepted_and_rejected_cannot_exceed_received(self):
        response = self._receive([
            {'raw_material': self.cotton.id, 'received_quantity': '10', 'accepted_quantity': '8', 'rejected_quantity': '3'},
        ])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(GoodsReceipt.objects.exists())

    def test_material_must_be_on_purchase(self):
        other = TestDataFactory.create_raw_material(self.tenant, name='Zippers')
        response = self._receive([{'raw_material': other.id, 'received_quantity': '5'}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(GoodsReceipt.objects.exists())

    def test_add_lines_then_set_status_recomputes_totals(self):
        grn_id = self._receive([]).data['id']
        response = self.client.post(f'/api/v1/grn/{grn_id}/items/', {'items': [
            {'raw_material': self.cotton.id, 'received_quantity': '100', 'accepted_quantity': '90', 'rejected_quantity': '10'},
            {'raw_material': self.dye.id, 'received_quantity': '10', 'accepted_quantity': '10'},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_quantity'], '110.000')

        response = self.client.put(f'/api/v1/grn/{grn_id}/status/', {'status': 'partial'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'partial')
        self.assertEqual(response.data['accepted_quantity'], '100.000')
        self.assertEqual(response.data['rejected_quantity'], '10.000')

        # Only pending receipts take new lines
        response = self.client.post(f'/api/v1/grn/{grn_id}/items/', {
            'raw_material': self.dye.id, 'received_quantity': '1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_status_rejected(self):
        grn_id = self._receive([]).data['id']
        response = self.client.put(f'/api/v1/grn/{grn_id}/status/', {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_line_quality_status(self):
        grn = self._receive([{'raw_material': self.cotton.id, 'received_quantity': '100'}]).data
        item_id = grn['items'][0]['id']
        response = self.client.patch(f'/api/v1/grn/items/{item_id}/quality/', {'quality_status': 'failed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['quality_status'], 'failed')
        response = self.client.patch(f'/api/v1/grn/items/{item_id}/quality/', {'quality_status': 'maybe'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dashboard_counts(self):
        first = self._receive([{'raw_material': self.cotton.id, 'received_quantity': '100', 'accepted_quantity': '100'}]).data
        self._receive([])
        self.client.put(f"/api/v1/grn/{first['id']}/status/", {'status': 'accepted'}, format='json')
        data = self.client.get('/api/v1/grn/dashboard/').data
        self.assertEqual(data['total'], 2)
        self.assertEqual(data['pending'], 1)
        self.assertEqual(data['accepted'], 1)
        self.assertEqual(Decimal(data['accepted_qty']), Decimal('100'))

    def test_deleting_purchase_removes_its_receipts(self):
        self._receive([{'raw_material': self.cotton.id, 'received_quantity': '100'}])
        response = self.client.delete(f"/api/v1/purchases/{self.purchase['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(GoodsReceipt.objects.exists())
