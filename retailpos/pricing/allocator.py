"""Discount allocation: how much a policy takes off a set of line items."""
from decimal import Decimal
from typing import Sequence

from retailpos.models.discount import DiscountScope
from retailpos.pricing.line_items import LineItem
from retailpos.pricing.policies import (
    DiscountPolicy, PercentageDiscount, FixedDiscount, BuyXGetYDiscount
)

ZERO = Decimal('0')


def compute_discount_amount(items: Sequence[LineItem], policy: DiscountPolicy, subtotal: Decimal) -> Decimal:
    """
    Discount amount for `policy` over `items`.

    Only FIXED clamps to the subtotal here; callers clamp the other variants.

    Raises:
        TypeError: if `policy` is not one of the known variants.
    """
    if isinstance(policy, PercentageDiscount):
        return _percentage_amount(items, policy, subtotal)
    if isinstance(policy, FixedDiscount):
        return min(subtotal, policy.value)
    if isinstance(policy, BuyXGetYDiscount):
        return _buy_x_get_y_amount(items, policy)
    raise TypeError(f'Unsupported discount policy: {type(policy).__name__}')


def _percentage_amount(items, policy: PercentageDiscount, subtotal: Decimal) -> Decimal:
    rate = policy.rate
    if policy.scope is DiscountScope.ENTIRE_ORDER:
        return subtotal * rate
    if policy.scope is DiscountScope.SPECIFIC_PRODUCTS:
        eligible = (item for item in items if item.product_id in policy.product_ids)
    elif policy.scope is DiscountScope.SPECIFIC_CATEGORIES:
        eligible = (
            item for item in items
            if item.category_id is not None and item.category_id in policy.category_ids
        )
    else:
        raise TypeError(f'Unsupported discount scope: {policy.scope}')
    return sum((item.unit_price * item.quantity * rate for item in eligible), ZERO)


def _buy_x_get_y_amount(items, policy: BuyXGetYDiscount) -> Decimal:
    if not policy.is_configured:
        return ZERO

    buy_x = policy.buy_quantity
    get_y = policy.get_quantity
    eligible = [item for item in items if item.product_id in policy.product_ids]

    bought = sum(item.quantity for item in eligible)
    if bought < buy_x:
        return ZERO

    # Units beyond the last complete X+Y set earn nothing
    eligible_sets = bought // (buy_x + get_y)
    remaining_free = eligible_sets * get_y

    # Cheapest units are given away first; sorted() is stable so ties keep cart order
    amount = ZERO
    for item in sorted(eligible, key=lambda i: i.unit_price):
        if remaining_free <= 0:
            break
        free_units = min(item.quantity, remaining_free)
        amount += item.unit_price * free_units
        remaining_free -= free_units
    return amount
