"""
Unit tests for the discount allocator.
"""

import pytest
from decimal import Decimal

from retailpos.models import DiscountScope
from retailpos.pricing import (
    LineItem, DiscountPolicy, PercentageDiscount, FixedDiscount, BuyXGetYDiscount,
    compute_discount_amount
)
from retailpos.pricing.line_items import subtotal_of


def item(product_id, price, quantity, category_id=None):
    return LineItem(
        product_id=product_id,
        product_name=product_id.upper(),
        unit_price=Decimal(price),
        quantity=quantity,
        category_id=category_id,
    )


class TestPercentageDiscount:
    """PERCENTAGE: rate = value / 100, applied per scope."""

    def test_entire_order(self):
        items = [item('a', '10.00', 2), item('b', '5.00', 1)]
        policy = PercentageDiscount(id='d1', name='10% off', value=Decimal('10'))

        assert compute_discount_amount(items, policy, subtotal_of(items)) == Decimal('2.5')

    def test_specific_products_only_counts_listed_products(self):
        items = [item('a', '10.00', 2), item('b', '5.00', 4)]
        policy = PercentageDiscount(
            id='d1', name='Half price A', value=Decimal('50'),
            scope=DiscountScope.SPECIFIC_PRODUCTS, product_ids=frozenset({'a'})
        )

        assert compute_discount_amount(items, policy, subtotal_of(items)) == Decimal('10')

    def test_specific_categories_uses_item_category(self):
        items = [
            item('a', '10.00', 1, category_id='food'),
            item('b', '4.00', 5, category_id='drinks'),
            item('c', '3.00', 1),
        ]
        policy = PercentageDiscount(
            id='d1', name='Drinks 25%', value=Decimal('25'),
            scope=DiscountScope.SPECIFIC_CATEGORIES, category_ids=frozenset({'drinks'})
        )

        assert compute_discount_amount(items, policy, subtotal_of(items)) == Decimal('5')

    def test_specific_products_with_no_matching_items_is_zero(self):
        items = [item('a', '10.00', 1)]
        policy = PercentageDiscount(
            id='d1', name='Other', value=Decimal('50'),
            scope=DiscountScope.SPECIFIC_PRODUCTS, product_ids=frozenset({'z'})
        )

        assert compute_discount_amount(items, policy, subtotal_of(items)) == Decimal('0')


class TestFixedDiscount:
    """FIXED: flat amount, never more than the subtotal, scope ignored."""

    def test_fixed_below_subtotal(self):
        items = [item('a', '20.00', 2)]
        policy = FixedDiscount(id='d1', name='5 off', value=Decimal('5'))

        assert compute_discount_amount(items, policy, Decimal('40')) == Decimal('5')

    def test_fixed_capped_at_subtotal(self):
        items = [item('a', '3.00', 1)]
        policy = FixedDiscount(id='d1', name='5 off', value=Decimal('5'))

        assert compute_discount_amount(items, policy, Decimal('3')) == Decimal('3')

    def test_fixed_ignores_scope(self):
        items = [item('a', '20.00', 1), item('b', '1.00', 1)]
        policy = FixedDiscount(
            id='d1', name='5 off B', value=Decimal('5'),
            scope=DiscountScope.SPECIFIC_PRODUCTS, product_ids=frozenset({'b'})
        )

        assert compute_discount_amount(items, policy, subtotal_of(items)) == Decimal('5')


class TestBuyXGetYDiscount:
    """BUY_X_GET_Y: free units go to the cheapest eligible items first."""

    def policy(self, buy, get, product_ids=('a', 'b')):
        return BuyXGetYDiscount(
            id='d1', name='Buy X get Y', value=Decimal('100'),
            product_ids=frozenset(product_ids), buy_quantity=buy, get_quantity=get
        )

    def test_cheapest_units_are_free(self):
        """(A, 10.00, 3) + (B, 5.00, 3), buy 2 get 1: two free units, both from B."""
        items = [item('a', '10.00', 3), item('b', '5.00', 3)]

        assert compute_discount_amount(items, self.policy(2, 1), Decimal('45')) == Decimal('10')

    def test_free_units_spill_to_next_cheapest(self):
        items = [item('a', '10.00', 5), item('b', '5.00', 1)]

        # 6 units, sets of 3 -> 2 free: one B at 5, one A at 10
        assert compute_discount_amount(items, self.policy(2, 1), Decimal('55')) == Decimal('15')

    def test_below_buy_quantity_is_zero(self):
        items = [item('a', '10.00', 1)]

        assert compute_discount_amount(items, self.policy(2, 1), Decimal('10')) == Decimal('0')

    def test_incomplete_set_earns_nothing(self):
        items = [item('a', '10.00', 2)]

        # bought 2 >= X but 2 // 3 == 0 complete sets
        assert compute_discount_amount(items, self.policy(2, 1), Decimal('20')) == Decimal('0')

    def test_non_eligible_items_are_ignored(self):
        items = [item('a', '10.00', 3), item('z', '1.00', 10)]

        assert compute_discount_amount(items, self.policy(2, 1, ('a',)), Decimal('40')) == Decimal('10')

    @pytest.mark.parametrize('buy, get', [(None, 1), (2, None), (0, 1), (2, 0)])
    def test_unconfigured_quantities_yield_zero(self, buy, get):
        items = [item('a', '10.00', 6)]

        assert compute_discount_amount(items, self.policy(buy, get), Decimal('60')) == Decimal('0')

    def test_ties_keep_cart_order(self):
        """Equal prices: the earlier line gives its units first."""
        items = [item('a', '4.00', 1), item('b', '4.00', 5)]
        policy = self.policy(5, 1)

        assert compute_discount_amount(items, policy, Decimal('24')) == Decimal('4')


def test_unknown_policy_variant_raises_type_error():
    items = [item('a', '10.00', 1)]
    policy = DiscountPolicy(id='d1', name='Mystery', value=Decimal('10'))

    with pytest.raises(TypeError):
        compute_discount_amount(items, policy, Decimal('10'))
