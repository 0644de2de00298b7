"""
Unit tests for turning Discount rows into policy variants.
"""

import pytest
from datetime import date
from decimal import Decimal

from retailpos.models import Discount, DiscountType, DiscountScope, Product
from retailpos.pricing import PercentageDiscount, FixedDiscount, BuyXGetYDiscount, policy_from_model


def discount_row(**overrides):
    fields = dict(
        id='d1',
        name='Promo',
        code='PROMO',
        type=DiscountType.PERCENTAGE,
        value=Decimal('10.00'),
        applies_to=DiscountScope.ENTIRE_ORDER,
        start_date=date(2026, 1, 1),
        is_active=True,
    )
    fields.update(overrides)
    return Discount(**fields)


class TestPolicyFromModel:

    def test_percentage(self):
        policy = policy_from_model(discount_row())

        assert isinstance(policy, PercentageDiscount)
        assert policy.rate == Decimal('0.1')
        assert policy.min_purchase_amount is None

    def test_fixed_keeps_minimum_purchase(self):
        policy = policy_from_model(discount_row(
            type=DiscountType.FIXED, value=Decimal('5'), min_purchase_amount=Decimal('50')
        ))

        assert isinstance(policy, FixedDiscount)
        assert policy.min_purchase_amount == Decimal('50')
        assert policy.meets_minimum_purchase(Decimal('49.99')) is False
        assert policy.meets_minimum_purchase(Decimal('50')) is True

    def test_buy_x_get_y_carries_products_and_quantities(self):
        row = discount_row(type=DiscountType.BUY_X_GET_Y, buy_x_quantity=2, get_y_quantity=1)
        row.products = [Product(id='p1', name='Cookie', price=Decimal('5'))]

        policy = policy_from_model(row)

        assert isinstance(policy, BuyXGetYDiscount)
        assert policy.product_ids == frozenset({'p1'})
        assert (policy.buy_quantity, policy.get_quantity) == (2, 1)
        assert policy.is_configured is True

    def test_category_ids_stored_as_text(self):
        row = discount_row(applies_to=DiscountScope.SPECIFIC_CATEGORIES)
        row.category_ids = ['c2', 'c1', ' ', 'c1']

        assert row.category_ids_raw == 'c1,c2'
        assert policy_from_model(row).category_ids == frozenset({'c1', 'c2'})

    def test_unknown_type_string_is_rejected(self):
        row = discount_row()
        row.type = 'BOGUS'

        with pytest.raises(ValueError):
            policy_from_model(row)

    def test_summary_uses_lowercase_type(self):
        summary = policy_from_model(discount_row(type=DiscountType.BUY_X_GET_Y)).summary()

        assert summary == {
            'id': 'd1', 'name': 'Promo', 'code': 'PROMO', 'type': 'buy_x_get_y', 'value': Decimal('10.00')
        }
