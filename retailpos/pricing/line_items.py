"""Line items as seen by the pricing engine."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

HUNDRED = Decimal('100')


@dataclass(frozen=True)
class LineItem:
    """One cart line. Money is always Decimal; quantity is a whole number of units."""
    product_id: str
    product_name: str
    unit_price: Decimal
    quantity: int
    tax_rate: Decimal = Decimal('0')
    category_id: Optional[str] = None
    item_id: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_tax(self) -> Decimal:
        return self.unit_price * self.quantity * self.tax_rate / HUNDRED


def line_item_from_model(item) -> LineItem:
    """Build a LineItem from a CartItem row (category comes from the catalog product)."""
    product = item.product
    return LineItem(
        product_id=item.product_id,
        product_name=item.name,
        unit_price=Decimal(item.price),
        quantity=int(item.quantity),
        tax_rate=Decimal(item.tax_rate or 0),
        category_id=product.category_id if product is not None else None,
        item_id=item.id,
    )


def line_items_from_models(items: Iterable) -> List[LineItem]:
    return [line_item_from_model(item) for item in items]


def subtotal_of(items: Iterable[LineItem]) -> Decimal:
    return sum((item.line_total for item in items), Decimal('0'))


def tax_total_of(items: Iterable[LineItem]) -> Decimal:
    return sum((item.line_tax for item in items), Decimal('0'))
