"""
Discount policies as a closed set of variants.

A stored Discount row is turned into exactly one of PercentageDiscount,
FixedDiscount or BuyXGetYDiscount before any pricing happens, so the
allocator never has to guess from strings what a discount means.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import FrozenSet, Optional

from retailpos.models.discount import DiscountType, DiscountScope


@dataclass(frozen=True)
class DiscountPolicy:
    """Fields shared by every discount variant."""
    id: str
    name: str
    value: Decimal
    scope: DiscountScope = DiscountScope.ENTIRE_ORDER
    code: Optional[str] = None
    min_purchase_amount: Optional[Decimal] = None
    product_ids: FrozenSet[str] = field(default_factory=frozenset)
    category_ids: FrozenSet[str] = field(default_factory=frozenset)

    kind = None

    def meets_minimum_purchase(self, subtotal: Decimal) -> bool:
        if self.min_purchase_amount is None:
            return True
        return subtotal >= self.min_purchase_amount

    def summary(self) -> dict:
        """Display subset used by the cart view."""
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'type': self.kind.value.lower(),
            'value': self.value,
        }


@dataclass(frozen=True)
class PercentageDiscount(DiscountPolicy):
    """`value` percent off the order, the listed products or the listed categories."""
    kind = DiscountType.PERCENTAGE

    @property
    def rate(self) -> Decimal:
        return self.value / Decimal('100')


@dataclass(frozen=True)
class FixedDiscount(DiscountPolicy):
    """Flat `value` off the order, whatever the scope."""
    kind = DiscountType.FIXED


@dataclass(frozen=True)
class BuyXGetYDiscount(DiscountPolicy):
    """For every X eligible units bought, Y more eligible units are free."""
    buy_quantity: Optional[int] = None
    get_quantity: Optional[int] = None

    kind = DiscountType.BUY_X_GET_Y

    @property
    def is_configured(self) -> bool:
        return bool(self.buy_quantity) and bool(self.get_quantity)


_VARIANTS = {
    DiscountType.PERCENTAGE: PercentageDiscount,
    DiscountType.FIXED: FixedDiscount,
    DiscountType.BUY_X_GET_Y: BuyXGetYDiscount,
}


def policy_from_model(discount) -> DiscountPolicy:
    """
    Convert a Discount row into its policy variant.

    Raises:
        ValueError: if the stored type is not a known discount type.
    """
    discount_type = discount.type
    if not isinstance(discount_type, DiscountType):
        discount_type = DiscountType(str(discount_type).upper())
    variant = _VARIANTS[discount_type]

    scope = discount.applies_to or DiscountScope.ENTIRE_ORDER
    if not isinstance(scope, DiscountScope):
        scope = DiscountScope(str(scope).upper())

    common = dict(
        id=discount.id,
        name=discount.name,
        code=discount.code,
        value=Decimal(discount.value),
        scope=scope,
        min_purchase_amount=(
            Decimal(discount.min_purchase_amount)
            if discount.min_purchase_amount is not None else None
        ),
        product_ids=frozenset(discount.product_ids),
        category_ids=frozenset(discount.category_ids),
    )
    if variant is BuyXGetYDiscount:
        return BuyXGetYDiscount(
            buy_quantity=discount.buy_x_quantity,
            get_quantity=discount.get_y_quantity,
            **common
        )
    return variant(**common)
