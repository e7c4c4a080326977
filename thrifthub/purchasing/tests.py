"""
Test suite for Purchasing module
Tests: Suppliers, purchase order numbering, items, amounts, status activity and roles
"""
from django.test import TestCase
from rest_framework import status
from django.utils import timezone
from thrifthub.core.models import Activity
from thrifthub.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from thrifthub.purchasing.models import PurchaseOrder, PurchaseOrderItem, Supplier
from thrifthub.purchasing.serializers import generate_po_number


class PurchaseOrderModelTests(TestCase):
    """Test PurchaseOrder and PurchaseOrderItem model methods"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.supplier = TestDataFactory.create_supplier()

    def test_purchase_order_str(self):
        """Test purchase order string representation"""
        purchase_order = TestDataFactory.create_purchase_order(supplier=self.supplier, po_number='PO-2025-001')
        self.assertEqual(str(purchase_order), 'PO-2025-001')

    def test_items_total(self):
        """Test items total in cents"""
        purchase_order = TestDataFactory.create_purchase_order(supplier=self.supplier)
        PurchaseOrderItem.objects.create(purchase_order=purchase_order, product_name='Lens', quantity=2, unit_price=2500)
        PurchaseOrderItem.objects.create(purchase_order=purchase_order, product_name='Body', quantity=1, unit_price=10000)
        self.assertEqual(purchase_order.get_items_total(), 15000)

    def test_po_number_sequence_per_year(self):
        """Test PO numbers continue from the highest number of that year"""
        TestDataFactory.create_purchase_order(supplier=self.supplier, po_number='PO-2025-007')
        TestDataFactory.create_purchase_order(supplier=self.supplier, po_number='PO-2024-020')
        self.assertEqual(generate_po_number(2025), 'PO-2025-008')
        self.assertEqual(generate_po_number(2026), 'PO-2026-001')


class SupplierAPITests(TestCase):
    """Test Supplier API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_supplier(self):
        """Test creating a supplier"""
        data = {'supplier_number': 'SUP-100', 'name': 'Camera Groothandel', 'email': 'inkoop@groothandel.nl'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['supplier_number'], 'SUP-100')

    def test_duplicate_supplier_number_rejected(self):
        """Test supplier numbers are unique"""
        TestDataFactory.create_supplier(supplier_number='SUP-100')
        data = {'supplier_number': 'SUP-100', 'name': 'Other'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search_suppliers(self):
        """Test searching suppliers by name"""
        TestDataFactory.create_supplier(name='Fotohandel Noord')
        TestDataFactory.create_supplier(name='Lenzen BV')
        response = self.client.get('/api/v1/suppliers/?search=lenzen')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_supplier_with_orders_cannot_be_deleted(self):
        """Test deleting a supplier that has purchase orders fails"""
        supplier = TestDataFactory.create_supplier()
        TestDataFactory.create_purchase_order(supplier=supplier)
        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Supplier.objects.filter(id=supplier.id).exists())


class PurchaseOrderAPITests(TestCase):
    """Test PurchaseOrder API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier()

    def test_create_purchase_order(self):
        """Test creating a purchase order with items"""
        today = timezone.now().date()
        data = {
            'title': 'Voorjaarsinkoop',
            'supplier': self.supplier.id,
            'purchase_date': today.isoformat(),
            'items': [
                {'sku': 'CAM-1', 'product_name': 'Canon AE-1', 'quantity': 2, 'unit_price': 7500},
                {'sku': 'LENS-1', 'product_name': '50mm f/1.8', 'quantity': 1, 'unit_price': 3000},
            ]
        }
        response = self.client.post('/api/v1/purchase-orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['po_number'], f'PO-{today.year}-001')
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(response.data['amount'], 18000)
        self.assertEqual(response.data['created_by'], self.user.id)

    def test_explicit_amount_is_kept(self):
        """Test an explicit amount is not overwritten by item totals"""
        data = {
            'title': 'Partij',
            'supplier': self.supplier.id,
            'purchase_date': timezone.now().date().isoformat(),
            'amount': 50000,
            'items': [{'product_name': 'Doos camera\'s', 'quantity': 1, 'unit_price': 100}]
        }
        response = self.client.post('/api/v1/purchase-orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['amount'], 50000)

    def test_negative_item_quantity_fails(self):
        """Test items with a negative quantity are rejected"""
        data = {
            'title': 'Fout',
            'supplier': self.supplier.id,
            'purchase_date': timezone.now().date().isoformat(),
            'items': [{'product_name': 'Lens', 'quantity': -1, 'unit_price': 100}]
        }
        response = self.client.post('/api/v1/purchase-orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(PurchaseOrder.objects.exists())

    def test_list_and_filter_purchase_orders(self):
        """Test listing purchase orders filtered by status"""
        TestDataFactory.create_purchase_order(supplier=self.supplier, status='pending')
        TestDataFactory.create_purchase_order(supplier=self.supplier, status='received')
        response = self.client.get('/api/v1/purchase-orders/?status=received')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['status'], 'received')

    def test_update_replaces_items(self):
        """Test PUT with items replaces the existing items and recomputes the amount"""
        purchase_order = TestDataFactory.create_purchase_order(supplier=self.supplier)
        PurchaseOrderItem.objects.create(purchase_order=purchase_order, product_name='Oud', quantity=5, unit_price=100)
        data = {
            'title': purchase_order.title,
            'supplier': self.supplier.id,
            'purchase_date': purchase_order.purchase_date.isoformat(),
            'items': [{'product_name': 'Nieuw', 'quantity': 3, 'unit_price': 1000}]
        }
        response = self.client.put(f'/api/v1/purchase-orders/{purchase_order.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['product_name'] for item in response.data['items']], ['Nieuw'])
        self.assertEqual(response.data['amount'], 3000)

    def test_status_patch_writes_activity(self):
        """Test a status change is recorded in the activity feed"""
        purchase_order = TestDataFactory.create_purchase_order(supplier=self.supplier)
        response = self.client.patch(f'/api/v1/purchase-orders/{purchase_order.id}/', {'status': 'ordered'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(Activity.objects.filter(type='purchase_order_status_updated').exists())

    def test_invalid_status_rejected(self):
        """Test statuses outside the enum are rejected"""
        purchase_order = TestDataFactory.create_purchase_order(supplier=self.supplier)
        response = self.client.patch(f'/api/v1/purchase-orders/{purchase_order.id}/', {'status': 'verwerkt'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_purchase_order(self):
        """Test deleting a purchase order"""
        purchase_order = TestDataFactory.create_purchase_order(supplier=self.supplier)
        response = self.client.delete(f'/api/v1/purchase-orders/{purchase_order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(PurchaseOrder.objects.filter(id=purchase_order.id).exists())

    def test_viewer_cannot_create(self):
        """Test viewers have read-only access"""
        viewer = TestDataFactory.create_user(role='viewer')
        self.client.authenticate_user(viewer)
        data = {'title': 'X', 'supplier': self.supplier.id, 'purchase_date': timezone.now().date().isoformat()}
        response = self.client.post('/api/v1/purchase-orders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
