"""
Django management command to load demo data for the storefront API.
Creates a store, its admin, a client, a wholesaler with an agreement and a
small catalog.
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from decimal import Decimal


class Command(BaseCommand):
    help = 'Load demo data (store, identities, products, wholesaler agreement)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--store',
            type=str,
            default='demo',
            help='Demo store slug (default: demo)',
        )
        parser.add_argument(
            '--password',
            type=str,
            default='Demo1234@',
            help='Password for every demo identity (default: Demo1234@)',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        from stores.models import Store
        from users.identity import Conflict, derive_key, reserve
        from users.models import User
        from inventory.models import Product
        from wholesalers.models import WholesalerAgreement
        from wholesalers.resolver import grant

        slug = options['store'].lower()
        password = options['password']

        self.stdout.write(self.style.NOTICE('Loading demo data...'))

        # =================================================================
        # Store
        # =================================================================
        store, created = Store.objects.get_or_create(
            slug=slug,
            defaults={
                'name': 'Demo Store',
                'contact_email': f'info@{slug}.example.com',
                'discount_rate': Decimal('0.05'),
            }
        )
        if created:
            self.stdout.write(self.style.SUCCESS(f'Created store: {store}'))
        else:
            self.stdout.write(f'Store already exists: {store}')

        # =================================================================
        # Identities
        # =================================================================
        identities = {}
        for role, first_name in [
            (User.Role.ADMIN, 'Admin'),
            (User.Role.CLIENT, 'Client'),
            (User.Role.WHOLESALER, 'Wholesaler'),
        ]:
            email = f'{role}@{slug}.example.com'
            result = reserve(
                derive_key(email, store.pk, role),
                password=password,
                first_name=first_name,
                last_name='Demo',
            )
            if isinstance(result, Conflict):
                identities[role] = User.objects.get(pk=result.existing_user_id)
                self.stdout.write(f'{role} already exists: {email}')
            else:
                identities[role] = result.user
                self.stdout.write(self.style.SUCCESS(f'Created {role}: {email} / {password}'))

        # =================================================================
        # Products
        # =================================================================
        products_data = [
            {'sku': 'COF-001', 'name': 'Espresso Beans 1kg', 'price': Decimal('100.00')},
            {'sku': 'COF-002', 'name': 'Filter Coffee 500g', 'price': Decimal('45.50')},
            {'sku': 'TEA-001', 'name': 'Green Tea 100 bags', 'price': Decimal('32.90')},
            {'sku': 'ACC-001', 'name': 'Ceramic Mug', 'price': Decimal('18.00')},
        ]
        for product_data in products_data:
            product, created = Product.objects.get_or_create(
                store=store,
                sku=product_data['sku'],
                defaults={'name': product_data['name'], 'price': product_data['price']}
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f'Created product: {product}'))

        # =================================================================
        # Wholesaler agreement
        # =================================================================
        wholesaler = identities[User.Role.WHOLESALER]
        if WholesalerAgreement.objects.for_identity(wholesaler.pk, store.pk).exists():
            self.stdout.write(f'Agreement already exists for {wholesaler.email}')
        else:
            agreement = grant(
                wholesaler,
                store,
                Decimal('0.20'),
                business_name='Demo Wholesale Ltd',
            )
            self.stdout.write(self.style.SUCCESS(f'Created agreement: {agreement}'))

        self.stdout.write(self.style.SUCCESS('Demo data loaded.'))
