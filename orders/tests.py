"""
Tests for pricing, quotes and order placement.
"""
import re
import pytest
from decimal import Decimal
from rest_framework import status
from main.exceptions import InvalidInput
from orders.models import Order
from orders.pricing import DiscountSource, LineItem, price_for, round_minor
from orders.services import place_order, quote
from wholesalers.resolver import Active, INACTIVE


def line(base_price='100.00', quantity=1):
    return LineItem(product_id=1, base_price=base_price, quantity=quantity)


# ============== Price Resolution Tests ==============

class TestPriceFor:

    def test_wholesaler_discount_wins_over_store(self):
        price = price_for(line(Decimal('100.00')), Active(Decimal('0.20')), Decimal('0.10'), 'ILS')

        assert price.unit_price == Decimal('80.00')
        assert price.discount_source == DiscountSource.WHOLESALER
        assert price.discount_rate == Decimal('0.20')

    def test_store_discount_for_non_wholesaler(self):
        price = price_for(line(Decimal('100.00')), INACTIVE, Decimal('0.10'), 'ILS')

        assert price.unit_price == Decimal('90.00')
        assert price.discount_source == DiscountSource.STORE

    def test_no_discount(self):
        price = price_for(line(Decimal('100.00')), INACTIVE, None, 'ILS')

        assert price.unit_price == Decimal('100.00')
        assert price.discount_source == DiscountSource.NONE
        assert price.discount_amount == Decimal('0.00')

    def test_discounts_do_not_stack(self):
        price = price_for(line(Decimal('100.00')), Active(Decimal('0')), Decimal('0.50'), 'ILS')

        assert price.unit_price == Decimal('100.00')
        assert price.discount_source == DiscountSource.WHOLESALER

    def test_line_total_uses_quantity(self):
        price = price_for(line(Decimal('19.99'), quantity=3), INACTIVE, Decimal('0.10'), 'ILS')

        assert price.unit_price == Decimal('17.99')
        assert price.line_total == Decimal('53.97')
        assert price.gross_total == Decimal('59.97')
        assert price.discount_amount == Decimal('6.00')

    def test_line_total_rounded_from_unrounded_amount(self):
        price = price_for(line(Decimal('10.005'), quantity=2), INACTIVE, None, 'ILS')

        assert price.unit_price == Decimal('10.01')
        assert price.line_total == Decimal('20.01')
        assert price.line_total != price.unit_price * 2

    def test_rounds_half_up_to_minor_unit(self):
        price = price_for(line(Decimal('10.005')), INACTIVE, None, 'ILS')

        assert price.unit_price == Decimal('10.01')

    def test_float_input_is_not_binary_rounded(self):
        price = price_for(line(10.005), INACTIVE, None, 'ILS')

        assert price.unit_price == Decimal('10.01')

    def test_three_digit_currency(self):
        price = price_for(line(Decimal('10.0005')), INACTIVE, None, 'JOD')

        assert price.unit_price == Decimal('10.001')

    def test_unknown_currency_uses_two_digits(self):
        assert round_minor(Decimal('1.005'), 'XYZ') == Decimal('1.01')

    def test_rate_above_one_floors_at_zero(self):
        price = price_for(line(Decimal('100.00'), quantity=2), INACTIVE, Decimal('1.5'), 'ILS')

        assert price.unit_price == Decimal('0.00')
        assert price.line_total == Decimal('0.00')

    def test_full_discount(self):
        price = price_for(line(Decimal('42.00')), Active(Decimal('1')), None, 'ILS')

        assert price.unit_price == Decimal('0.00')

    def test_zero_base_price(self):
        assert price_for(line(Decimal('0')), INACTIVE, Decimal('0.10'), 'ILS').line_total == Decimal('0.00')

    def test_negative_base_price_rejected(self):
        with pytest.raises(InvalidInput):
            price_for(line(Decimal('-1.00')), INACTIVE, None, 'ILS')

    @pytest.mark.parametrize('quantity', [0, -1, 1.5, '2', True, None])
    def test_bad_quantity_rejected(self, quantity):
        with pytest.raises(InvalidInput):
            price_for(line(quantity=quantity), INACTIVE, None, 'ILS')

    def test_negative_store_rate_rejected(self):
        with pytest.raises(InvalidInput):
            price_for(line(), INACTIVE, Decimal('-0.10'), 'ILS')

    def test_negative_wholesaler_rate_rejected(self):
        with pytest.raises(InvalidInput):
            price_for(line(), Active(Decimal('-0.10')), None, 'ILS')

    def test_negative_store_rate_ignored_for_wholesaler(self):
        price = price_for(line(), Active(Decimal('0.20')), Decimal('-0.10'), 'ILS')

        assert price.unit_price == Decimal('80.00')

    @pytest.mark.parametrize('base_price', ['abc', None, float('nan'), 'Infinity'])
    def test_non_numeric_base_price_rejected(self, base_price):
        with pytest.raises(InvalidInput):
            price_for(line(base_price), INACTIVE, None, 'ILS')


# ============== Quote and Placement Tests ==============

@pytest.mark.django_db
class TestQuote:

    def test_guest_gets_store_discount(self, store, product):
        priced = quote(store, [(product, 2)])

        assert not priced.is_wholesale
        assert priced.discount_source == DiscountSource.STORE
        assert priced.subtotal == Decimal('200.00')
        assert priced.total == Decimal('180.00')
        assert priced.discount_total == Decimal('20.00')

    def test_wholesaler_gets_agreement_rate(self, store, product, wholesaler_user, agreement):
        priced = quote(store, [(product, 2)], customer=wholesaler_user)

        assert priced.is_wholesale
        assert priced.discount_source == DiscountSource.WHOLESALER
        assert priced.total == Decimal('160.00')

    def test_client_without_agreement_gets_store_discount(self, store, product, client_user):
        assert quote(store, [(product, 1)], customer=client_user).total == Decimal('90.00')

    def test_repeated_products_are_merged(self, store, product, product2):
        priced = quote(store, [(product, 1), (product2, 1), (product, 2)])

        assert [l.price.quantity for l in priced.lines] == [3, 1]
        assert priced.lines[0].product == product

    def test_empty_items_rejected(self, store):
        with pytest.raises(InvalidInput):
            quote(store, [])

    def test_foreign_product_rejected(self, store, store2_product):
        with pytest.raises(InvalidInput):
            quote(store, [(store2_product, 1)])

    def test_inactive_product_rejected(self, store, inactive_product):
        with pytest.raises(InvalidInput):
            quote(store, [(inactive_product, 1)])

    def test_store_without_discount(self, store2, store2_product):
        priced = quote(store2, [(store2_product, 1)])

        assert priced.discount_source == DiscountSource.NONE
        assert priced.currency == 'USD'
        assert priced.total == Decimal('40.00')


@pytest.mark.django_db
class TestPlaceOrder:

    def test_order_persists_priced_lines(self, store, product, product2, wholesaler_user, agreement):
        order = place_order(store, [(product, 1), (product2, 2)], customer=wholesaler_user, notes='rush')

        order = Order.objects.get(pk=order.pk)
        assert order.is_wholesale
        assert order.discount_source == Order.DiscountSource.WHOLESALER
        assert order.subtotal == Decimal('151.00')
        assert order.total == Decimal('120.80')
        assert order.notes == 'rush'
        assert order.items.count() == 2
        item = order.items.get(product=product2)
        assert item.unit_price == Decimal('20.40')
        assert item.line_total == Decimal('40.80')

    def test_order_number_format(self, store, product):
        order = place_order(store, [(product, 1)])

        assert re.match(r'^ORD-\d{14}-[0-9A-F]{4}$', order.order_number)
        assert order.customer is None

    def test_invalid_items_leave_no_order(self, store, product, inactive_product):
        with pytest.raises(InvalidInput):
            place_order(store, [(product, 1), (inactive_product, 1)])

        assert not Order.objects.exists()


# ============== Endpoint Tests ==============

@pytest.mark.django_db
class TestCalculatePriceView:

    url = '/api/stores/test-store/calculate-price/'

    def test_anonymous_quote(self, api_client, product):
        response = api_client.post(self.url, {'items': [{'product': product.pk, 'quantity': 2}]}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total'] == Decimal('180.00')
        assert response.data['is_wholesale'] is False
        assert response.data['items'][0]['discount_source'] == 'store'

    def test_wholesaler_quote(self, wholesaler_client, product, agreement):
        response = wholesaler_client.post(self.url, {'items': [{'product': product.pk, 'quantity': 1}]}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_wholesale'] is True
        assert response.data['items'][0]['unit_price'] == Decimal('80.00')

    def test_admin_quotes_for_customer(self, admin_client, product, wholesaler_user, agreement):
        response = admin_client.post(self.url, {
            'items': [{'product': product.pk, 'quantity': 1}],
            'customer': wholesaler_user.pk,
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total'] == Decimal('80.00')

    def test_client_cannot_quote_for_others(self, customer_client, product, wholesaler_user):
        response = customer_client.post(self.url, {
            'items': [{'product': product.pk, 'quantity': 1}],
            'customer': wholesaler_user.pk,
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_foreign_product_rejected(self, api_client, product, store2_product):
        response = api_client.post(self.url, {'items': [{'product': store2_product.pk, 'quantity': 1}]}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_zero_quantity_rejected(self, api_client, product):
        response = api_client.post(self.url, {'items': [{'product': product.pk, 'quantity': 0}]}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_empty_items_rejected(self, api_client, store):
        response = api_client.post(self.url, {'items': []}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_keys_rejected(self, api_client, product):
        response = api_client.post(self.url, {
            'items': [{'product': product.pk, 'quantity': 1, 'price': '0.01'}],
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_inactive_store_refused(self, api_client, inactive_store):
        response = api_client.post('/api/stores/inactive-store/calculate-price/', {'items': []}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestOrderViews:

    url = '/api/stores/test-store/orders/'

    def test_client_places_order(self, customer_client, client_user, product):
        response = customer_client.post(self.url, {'items': [{'product': product.pk, 'quantity': 2}]}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert Decimal(response.data['total']) == Decimal('180.00')
        assert response.data['customer'] == client_user.pk
        assert len(response.data['items']) == 1

    def test_anonymous_cannot_order(self, api_client, product):
        response = api_client.post(self.url, {'items': [{'product': product.pk, 'quantity': 1}]}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_client_sees_own_orders_only(self, customer_client, client_user, wholesaler_user, store, product):
        mine = place_order(store, [(product, 1)], customer=client_user)
        place_order(store, [(product, 1)], customer=wholesaler_user)

        response = customer_client.get(self.url)

        assert response.status_code == status.HTTP_200_OK
        assert [o['id'] for o in response.data['results']] == [mine.pk]

    def test_admin_sees_all_store_orders(self, admin_client, client_user, wholesaler_user, store, product):
        place_order(store, [(product, 1)], customer=client_user)
        place_order(store, [(product, 1)], customer=wholesaler_user)

        response = admin_client.get(self.url)

        assert response.data['count'] == 2

    def test_other_store_admin_refused(self, store2_client, store):
        response = store2_client.get(self.url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_order_detail(self, customer_client, client_user, store, product):
        order = place_order(store, [(product, 1)], customer=client_user)

        response = customer_client.get(f'{self.url}{order.pk}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['order_number'] == order.order_number

    def test_order_of_other_customer_404(self, customer_client, wholesaler_user, store, product):
        order = place_order(store, [(product, 1)], customer=wholesaler_user)

        response = customer_client.get(f'{self.url}{order.pk}/')

        assert response.status_code == status.HTTP_404_NOT_FOUND
