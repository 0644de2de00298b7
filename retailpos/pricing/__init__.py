"""Pricing engine: pure functions over line items and discount policies (no database access)."""
from retailpos.pricing.line_items import LineItem, line_item_from_model, line_items_from_models
from retailpos.pricing.policies import (
    DiscountPolicy, PercentageDiscount, FixedDiscount, BuyXGetYDiscount, policy_from_model
)
from retailpos.pricing.allocator import compute_discount_amount
from retailpos.pricing.totals import CartTotals, compute_totals

__all__ = [
    'LineItem', 'line_item_from_model', 'line_items_from_models',
    'DiscountPolicy', 'PercentageDiscount', 'FixedDiscount', 'BuyXGetYDiscount', 'policy_from_model',
    'compute_discount_amount', 'CartTotals', 'compute_totals',
]
