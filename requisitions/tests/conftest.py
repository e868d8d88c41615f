from decimal import Decimal

import pytest
from django.core.cache import cache

from requisitions.models import Department, InventoryItem, InventoryLocation, StockRecord, User


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def department(db):
    return Department.objects.create(id='icu', name='Intensive Care Unit')


@pytest.fixture
def requester(db, department):
    return User.objects.create_user(username='req1', password='P@ssw0rd1', role=User.ROLE_REQUESTER,
                                    department=department)


@pytest.fixture
def approver(db, department):
    return User.objects.create_user(username='appr1', password='P@ssw0rd1', role=User.ROLE_APPROVER,
                                    department=department)


@pytest.fixture
def storekeeper(db):
    return User.objects.create_user(username='store1', password='P@ssw0rd1', role=User.ROLE_STOREKEEPER)


@pytest.fixture
def location(db):
    return InventoryLocation.objects.create(code='CS-MAIN', name='Central stores')


@pytest.fixture
def gloves(db):
    return InventoryItem.objects.create(sku='GLV-M', name='Nitrile gloves M', unit_of_measure='BOX',
                                        average_cost=Decimal('7.50'))


@pytest.fixture
def syringes(db):
    return InventoryItem.objects.create(sku='SYR-10', name='Syringe 10 ml', average_cost=Decimal('0.35'))


@pytest.fixture
def make_stock(location):
    def _make(item, quantity, *, loc=None, lot_number=None, reserved=0):
        return StockRecord.objects.create(
            item=item,
            location=loc or location,
            lot_number=lot_number,
            quantity_on_hand=quantity,
            quantity_reserved=reserved,
            quantity_available=quantity - reserved,
        )
    return _make
