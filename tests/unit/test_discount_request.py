"""
Unit tests for discount payload validation.
"""

import pytest
from datetime import date
from decimal import Decimal

from retailpos.exceptions import ValidationError
from retailpos.models import DiscountType, DiscountScope
from retailpos.services.discount_service import parse_discount_request


def payload(**overrides):
    data = {
        'name': 'Weekend 10%',
        'code': ' WEEKEND ',
        'type': 'percentage',
        'value': '10',
        'applies_to': 'entire_order',
        'start_date': '2026-10-01',
    }
    data.update(overrides)
    return data


def errors_of(data):
    with pytest.raises(ValidationError) as exc_info:
        parse_discount_request(data)
    assert exc_info.value.status_code == 400
    return exc_info.value.payload['errors']


class TestParseDiscountRequest:

    def test_valid_percentage(self):
        request = parse_discount_request(payload())

        assert request.name == 'Weekend 10%'
        assert request.code == 'WEEKEND'
        assert request.type is DiscountType.PERCENTAGE
        assert request.applies_to is DiscountScope.ENTIRE_ORDER
        assert request.value == Decimal('10')
        assert request.start_date == date(2026, 10, 1)
        assert request.end_date is None
        assert request.is_active is True

    def test_zero_means_unset(self):
        request = parse_discount_request(payload(max_uses=0, min_purchase_amount='0'))

        assert request.max_uses is None
        assert request.min_purchase_amount is None

    def test_unknown_type(self):
        assert 'type' in errors_of(payload(type='bogus'))

    def test_percentage_over_100(self):
        assert 'value' in errors_of(payload(value='150'))

    def test_fixed_over_100_is_allowed(self):
        request = parse_discount_request(payload(type='FIXED', value='150'))

        assert request.value == Decimal('150')

    def test_negative_value(self):
        assert 'value' in errors_of(payload(type='FIXED', value='-1'))

    def test_end_before_start(self):
        assert 'end_date' in errors_of(payload(end_date='2026-09-30'))

    def test_buy_x_get_y_requires_quantities_and_products(self):
        errors = errors_of(payload(type='BUY_X_GET_Y'))

        assert set(errors) >= {'buy_x_quantity', 'get_y_quantity', 'product_ids'}

    def test_buy_x_get_y_valid(self):
        request = parse_discount_request(payload(
            type='BUY_X_GET_Y', value='100', buy_x_quantity='2', get_y_quantity=1, product_ids=['p1', 'p2']
        ))

        assert (request.buy_x_quantity, request.get_y_quantity) == (2, 1)
        assert request.product_ids == frozenset({'p1', 'p2'})

    def test_specific_products_require_products(self):
        assert 'product_ids' in errors_of(payload(applies_to='SPECIFIC_PRODUCTS'))

    def test_specific_categories_require_categories(self):
        assert 'category_ids' in errors_of(payload(applies_to='SPECIFIC_CATEGORIES'))

    def test_category_ids_from_comma_separated_string(self):
        request = parse_discount_request(payload(applies_to='SPECIFIC_CATEGORIES', category_ids='c1, c2'))

        assert request.category_ids == frozenset({'c1', 'c2'})

    def test_every_invalid_field_is_reported(self):
        errors = errors_of({'type': 'x', 'value': 'abc'})

        assert set(errors) >= {'name', 'type', 'applies_to', 'value', 'start_date'}

    def test_message_names_first_error(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_discount_request(payload(name=''))

        assert exc_info.value.message == 'Invalid discount: name is required'
