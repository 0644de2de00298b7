"""Cart totals: subtotal, tax, discount and grand total."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from retailpos.pricing.allocator import compute_discount_amount
from retailpos.pricing.line_items import LineItem, subtotal_of, tax_total_of
from retailpos.pricing.policies import DiscountPolicy

ZERO = Decimal('0')


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    tax_total: Decimal
    discount_total: Decimal
    total_amount: Decimal
    # False when a policy was given but the cart is below its minimum purchase
    discount_applied: bool = False


def compute_totals(items: Sequence[LineItem], policy: Optional[DiscountPolicy] = None) -> CartTotals:
    """
    Totals for a cart.

    `policy` must already be validated (active, in date). A policy whose
    minimum purchase is not met contributes nothing and comes back with
    `discount_applied=False` so the caller can detach it from the cart.
    The discount is clamped to the subtotal; the grand total is not floored.
    """
    subtotal = subtotal_of(items)
    tax_total = tax_total_of(items)

    discount_total = ZERO
    applied = False
    if policy is not None and policy.meets_minimum_purchase(subtotal):
        discount_total = min(compute_discount_amount(items, policy, subtotal), subtotal)
        applied = True

    return CartTotals(
        subtotal=subtotal,
        tax_total=tax_total,
        discount_total=discount_total,
        total_amount=subtotal + tax_total - discount_total,
        discount_applied=applied,
    )
