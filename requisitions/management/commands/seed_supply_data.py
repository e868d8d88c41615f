"""
Management command to populate the database with demo supply data.

Safe to run repeatedly: every row is fetched by its natural key and
only created when missing.
"""
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from requisitions.models import Department, InventoryItem, InventoryLocation, StockRecord, User

DEPARTMENTS = [
    ('icu', 'Intensive Care Unit'),
    ('er', 'Emergency'),
    ('surg', 'Surgery'),
    ('peds', 'Pediatrics'),
]

ITEMS = [
    ('GLV-NIT-M', 'Nitrile gloves, medium (box of 100)', 'BOX', Decimal('7.50')),
    ('SYR-10ML', 'Syringe 10 ml, luer lock', 'EA', Decimal('0.35')),
    ('GAU-4X4', 'Sterile gauze pad 4x4', 'PK', Decimal('2.10')),
    ('IV-NS-1L', 'Normal saline 0.9% 1 L', 'BAG', Decimal('1.80')),
    ('MSK-N95', 'N95 respirator', 'EA', Decimal('1.25')),
]

LOCATIONS = [
    ('CS-MAIN', 'Central stores'),
    ('PHARM-01', 'Main pharmacy'),
    ('ICU-CUP', 'ICU supply cupboard'),
]

USERS = [
    ('requester1', User.ROLE_REQUESTER, 'icu'),
    ('approver1', User.ROLE_APPROVER, 'icu'),
    ('storekeeper1', User.ROLE_STOREKEEPER, None),
    ('supplyadmin', User.ROLE_ADMIN, None),
]


class Command(BaseCommand):
    help = 'Populate database with demo departments, users, catalog items, locations and stock'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='changeme', help='Password for newly created users')
        parser.add_argument('--stock', type=int, default=500, help='On-hand quantity for new stock records')

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Seeding supply data...')
        departments = self.create_departments()
        self.create_users(departments, options['password'])
        items = self.create_items()
        locations = self.create_locations()
        self.create_stock(items, locations, options['stock'])
        self.stdout.write(self.style.SUCCESS('Supply data ready.'))

    def create_departments(self):
        departments = {}
        for dept_id, name in DEPARTMENTS:
            dept, created = Department.objects.get_or_create(id=dept_id, defaults={'name': name})
            departments[dept_id] = dept
            if created:
                self.stdout.write(f'  department {dept_id}')
        return departments

    def create_users(self, departments, password):
        for username, role, dept_id in USERS:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    'password': make_password(password),
                    'role': role,
                    'department': departments.get(dept_id),
                    'is_staff': role == User.ROLE_ADMIN,
                },
            )
            if created:
                self.stdout.write(f'  user {username} ({role})')

    def create_items(self):
        items = []
        for sku, name, uom, cost in ITEMS:
            item, _ = InventoryItem.objects.get_or_create(
                sku=sku, defaults={'name': name, 'unit_of_measure': uom, 'average_cost': cost},
            )
            items.append(item)
        return items

    def create_locations(self):
        locations = []
        for code, name in LOCATIONS:
            location, _ = InventoryLocation.objects.get_or_create(code=code, defaults={'name': name})
            locations.append(location)
        return locations

    def create_stock(self, items, locations, quantity):
        expires = timezone.now().date() + timedelta(days=365)
        created_count = 0
        for item in items:
            for location in locations[:2]:
                lot = f'LOT-{item.sku}-{location.code}'
                _, created = StockRecord.objects.get_or_create(
                    item=item,
                    location=location,
                    lot_number=lot,
                    serial_number=None,
                    defaults={
                        'quantity_on_hand': quantity,
                        'quantity_available': quantity,
                        'expiration_date': expires,
                    },
                )
                created_count += int(created)
        self.stdout.write(f'  {created_count} stock record(s) created')
