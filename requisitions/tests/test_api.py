"""
Integration tests for the requisition HTTP API.

These exercise the endpoints end to end through Django REST
framework's APIClient: role checks, the error envelope and the
create → submit → approve → fulfill flow.
"""
from decimal import Decimal

from django.core.cache import cache
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.test import APITestCase

from ..models import (
    Department,
    InventoryItem,
    InventoryLocation,
    InventoryTransaction,
    Requisition,
    StockRecord,
    User,
)

BASE = '/api/requisitions'


class RequisitionAPITests(APITestCase):
    def setUp(self) -> None:
        cache.clear()
        self.dept = Department.objects.create(id='er', name='Emergency')
        self.requester = User.objects.create_user(username='req1', password='P@ssw0rd1',
                                                  role=User.ROLE_REQUESTER, department=self.dept)
        self.approver = User.objects.create_user(username='appr1', password='P@ssw0rd1',
                                                 role=User.ROLE_APPROVER, first_name='Ada', last_name='Lee')
        self.storekeeper = User.objects.create_user(username='store1', password='P@ssw0rd1',
                                                    role=User.ROLE_STOREKEEPER)
        self.admin = User.objects.create_user(username='admin1', password='P@ssw0rd1', role=User.ROLE_ADMIN)
        self.item = InventoryItem.objects.create(sku='GAU-4X4', name='Gauze pad', unit_of_measure='PK',
                                                 average_cost=Decimal('2.10'))
        self.location = InventoryLocation.objects.create(code='CS-MAIN', name='Central stores')
        self.stock = StockRecord.objects.create(item=self.item, location=self.location,
                                                quantity_on_hand=12, quantity_available=12)

    def as_user(self, user):
        self.client.force_authenticate(user=user)

    def create_draft(self, qty=4, **extra):
        self.as_user(self.requester)
        body = {'departmentId': 'er', 'items': [{'itemId': str(self.item.id), 'quantityRequested': qty}]}
        body.update(extra)
        resp = self.client.post(BASE, body, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        return resp.data['data']

    def test_requires_authentication(self):
        resp = self.client.get(BASE)
        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
        self.assertFalse(resp.data['ok'])

    def test_token_authentication(self):
        token = Token.objects.create(user=self.requester)
        self.client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')
        resp = self.client.get(BASE)
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data['ok'])

    def test_create_returns_detail(self):
        data = self.create_draft(qty=4, priority='HIGH', justification='<b>trauma</b> bay')
        self.assertEqual(data['reqNumber'], 'REQ-000001')
        self.assertEqual(data['status'], 'DRAFT')
        self.assertEqual(data['priority'], 'HIGH')
        self.assertEqual(data['justification'], 'trauma bay')
        self.assertEqual(data['departmentName'], 'Emergency')
        self.assertEqual(data['itemCount'], 1)
        line = data['items'][0]
        self.assertEqual(line['quantityRequested'], 4)
        self.assertEqual(line['availableStock'], 12)
        self.assertEqual(line['stockLocations'][0]['locationCode'], 'CS-MAIN')

    def test_create_validation_error_envelope(self):
        self.as_user(self.requester)
        resp = self.client.post(BASE, {'departmentId': 'er', 'items': []}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['error']['code'], 'invalid')

        resp = self.client.post(BASE, {'departmentId': 'er',
                                       'items': [{'itemId': str(self.item.id), 'quantityRequested': 0}]},
                                format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(Requisition.objects.exists())

    def test_create_unknown_department_is_404(self):
        self.as_user(self.requester)
        resp = self.client.post(BASE, {'departmentId': 'nope',
                                       'items': [{'itemId': str(self.item.id), 'quantityRequested': 1}]},
                                format='json')
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data['error']['code'], 'not_found')

    def test_storekeeper_cannot_create(self):
        self.as_user(self.storekeeper)
        resp = self.client.post(BASE, {'departmentId': 'er',
                                       'items': [{'itemId': str(self.item.id), 'quantityRequested': 1}]},
                                format='json')
        self.assertEqual(resp.status_code, 403)

    def test_full_flow(self):
        req = self.create_draft(qty=4)
        rid = req['id']

        resp = self.client.post(f'{BASE}/{rid}/submit', {}, format='json')
        self.assertEqual(resp.data['data']['status'], 'PENDING_APPROVAL')

        # requesters may not approve
        resp = self.client.post(f'{BASE}/{rid}/approve', {}, format='json')
        self.assertEqual(resp.status_code, 403)

        self.as_user(self.approver)
        line_id = req['items'][0]['id']
        resp = self.client.post(f'{BASE}/{rid}/approve', {
            'approvalNotes': 'ok',
            'items': [{'requisitionItemId': line_id, 'quantityApproved': 3}],
        }, format='json')
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data['data']['status'], 'APPROVED')
        self.assertEqual(resp.data['data']['approvedByName'], 'Ada Lee')
        self.assertEqual(resp.data['data']['items'][0]['quantityApproved'], 3)

        self.as_user(self.storekeeper)
        resp = self.client.post(f'{BASE}/{rid}/fulfill', {
            'items': [{'requisitionItemId': line_id, 'quantityIssued': 2, 'fromLocationId': str(self.location.id)}],
        }, format='json')
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data['data']['status'], 'PARTIALLY_FULFILLED')

        self.assertIsNotNone(resp.data['data']['fulfilledAt'])

        # a partially fulfilled requisition takes no second batch
        resp = self.client.post(f'{BASE}/{rid}/fulfill', {
            'items': [{'requisitionItemId': line_id, 'quantityIssued': 1, 'fromLocationId': str(self.location.id)}],
        }, format='json')
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['error']['code'], 'invalid_state')

        self.stock.refresh_from_db()
        self.assertEqual(self.stock.quantity_on_hand, 10)

        resp = self.client.get(f'{BASE}/{rid}/transactions')
        self.assertEqual([t['quantity'] for t in resp.data['data']], [2])
        self.assertEqual(resp.data['data'][0]['transactionNumber'], 'TRX-000001')
        self.assertEqual(resp.data['data'][0]['totalCost'], '4.20')

    def test_insufficient_stock_is_409(self):
        req = self.create_draft(qty=20)
        self.client.post(f'{BASE}/{req["id"]}/submit', {}, format='json')
        self.as_user(self.admin)
        self.client.post(f'{BASE}/{req["id"]}/approve', {}, format='json')
        resp = self.client.post(f'{BASE}/{req["id"]}/fulfill', {
            'items': [{'requisitionItemId': req['items'][0]['id'], 'quantityIssued': 20,
                       'fromLocationId': str(self.location.id)}],
        }, format='json')
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['error']['code'], 'insufficient_stock')
        self.assertFalse(InventoryTransaction.objects.exists())

    def test_invalid_state_is_409(self):
        req = self.create_draft()
        resp = self.client.post(f'{BASE}/{req["id"]}/cancel', {'reason': 'duplicate'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['status'], 'CANCELLED')
        self.assertIn('Cancellation reason: duplicate', resp.data['data']['notes'])

        resp = self.client.post(f'{BASE}/{req["id"]}/cancel', {}, format='json')
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['error']['code'], 'invalid_state')

    def test_reject_requires_reason(self):
        req = self.create_draft()
        self.client.post(f'{BASE}/{req["id"]}/submit', {}, format='json')
        self.as_user(self.approver)
        resp = self.client.post(f'{BASE}/{req["id"]}/reject', {}, format='json')
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(f'{BASE}/{req["id"]}/reject', {'reason': 'over budget'}, format='json')
        self.assertEqual(resp.data['data']['status'], 'REJECTED')
        self.assertEqual(resp.data['data']['approvalNotes'], 'over budget')

    def test_patch_updates_draft(self):
        req = self.create_draft()
        resp = self.client.patch(f'{BASE}/{req["id"]}', {'priority': 'URGENT', 'notes': 'asap'}, format='json')
        self.assertEqual(resp.status_code, 200, resp.data)
        self.assertEqual(resp.data['data']['priority'], 'URGENT')
        self.assertEqual(resp.data['data']['notes'], 'asap')

    def test_unknown_requisition_is_404(self):
        self.as_user(self.requester)
        resp = self.client.get(f'{BASE}/00000000-0000-0000-0000-000000000000')
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data['error']['code'], 'not_found')

    def test_list_with_pagination(self):
        for _ in range(3):
            self.create_draft()
        resp = self.client.get(BASE, {'pageSize': 2, 'page': 2})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data['data']), 1)
        self.assertEqual(resp.data['pagination'], {'page': 2, 'pageSize': 2, 'total': 3, 'totalPages': 2})
        self.assertEqual(resp.data['data'][0]['requestedByName'], 'req1')

        resp = self.client.get(BASE, {'status': 'BOGUS'})
        self.assertEqual(resp.status_code, 400)

    def test_stats(self):
        self.create_draft()
        resp = self.client.get(f'{BASE}/stats')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['total'], 1)
        self.assertEqual(resp.data['data']['pendingApproval'], 0)

    def test_healthz(self):
        resp = self.client.get('/healthz')
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()['ok'])
