"""
Cart Service - POS cart lifecycle (multi-branch, one active cart per user and branch).

Every lookup is scoped to the requesting user, so an id belonging to someone
else's cart behaves exactly like an id that does not exist.

Services only flush(); the caller owns the transaction. There is no locking:
two concurrent writes to the same cart are last-write-wins.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict, Any

from sqlalchemy.orm import Session

from retailpos.models import Cart, CartItem, Customer, Product
from retailpos.pricing import LineItem, line_items_from_models, compute_totals
from retailpos.pricing.line_items import subtotal_of
from retailpos.services.discount_service import (
    resolve_active_discount, ensure_discount_applicable, get_discount
)
from retailpos.services.register_service import get_register_branch
from retailpos.metrics import cart_discount_auto_detached_total, cart_discount_rejected_total
from retailpos.exceptions import ValidationError, NotFoundError
from retailpos.utils.formatters import money

logger = logging.getLogger(__name__)

DEFAULT_CART_NAME = 'Default Cart'


@dataclass
class CartView:
    """Cart as returned to callers: items plus freshly computed totals."""
    id: str
    name: str
    branch_id: str
    items: List[LineItem]
    customer: Optional[Dict[str, Any]]
    discount: Optional[Dict[str, Any]]
    subtotal: Decimal
    tax_total: Decimal
    discount_total: Decimal
    total_amount: Decimal
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        discount = None
        if self.discount:
            discount = dict(self.discount, value=money(self.discount['value']))
        return {
            'id': self.id,
            'name': self.name,
            'branch_id': self.branch_id,
            'items': [
                {
                    'id': item.item_id,
                    'product_id': item.product_id,
                    'name': item.product_name,
                    'price': money(item.unit_price),
                    'quantity': item.quantity,
                    'tax_rate': money(item.tax_rate),
                    'line_total': money(item.line_total),
                }
                for item in self.items
            ],
            'customer': self.customer,
            'discount': discount,
            'subtotal': money(self.subtotal),
            'tax_total': money(self.tax_total),
            'discount_total': money(self.discount_total),
            'total_amount': money(self.total_amount),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def _find_cart(session: Session, cart_id: str, user_id: str, active_only: bool = True) -> Cart:
    query = session.query(Cart).filter(Cart.id == cart_id, Cart.user_id == user_id)
    if active_only:
        query = query.filter(Cart.is_active.is_(True))
    cart = query.first()
    if not cart:
        raise NotFoundError('Cart not found')
    return cart


def _find_active_cart(session: Session, user_id: str, branch_id: str) -> Optional[Cart]:
    return session.query(Cart).filter(
        Cart.user_id == user_id,
        Cart.branch_id == branch_id,
        Cart.is_active.is_(True)
    ).first()


def _create_cart(session: Session, user_id: str, branch_id: str, name: str = DEFAULT_CART_NAME) -> Cart:
    cart = Cart(user_id=user_id, branch_id=branch_id, name=name, is_active=True)
    session.add(cart)
    session.flush()
    logger.info(f"Cart created: id={cart.id}, user_id={user_id}, branch_id={branch_id}")
    return cart


def _deactivate_user_carts(session: Session, user_id: str, branch_id: str) -> None:
    carts = session.query(Cart).filter(
        Cart.user_id == user_id,
        Cart.branch_id == branch_id,
        Cart.is_active.is_(True)
    ).all()
    for cart in carts:
        cart.is_active = False


def _find_item(cart: Cart, item_id: str) -> CartItem:
    for item in cart.items:
        if item.id == item_id:
            return item
    raise NotFoundError('Item not found in cart')


# ---------------------------------------------------------------------------
# View
# ---------------------------------------------------------------------------

def _detach_stale_discount(session: Session, cart: Cart, reason: str) -> None:
    logger.info(f"Discount {cart.discount_id} detached from cart {cart.id}: {reason}")
    cart_discount_auto_detached_total.labels(reason=reason).inc()
    cart.discount_id = None
    session.flush()


def build_cart_view(session: Session, cart: Cart, today: Optional[date] = None) -> CartView:
    """
    Compute the cart view from the stored items.

    An attached discount that is no longer valid, or whose minimum purchase
    the cart no longer reaches, is removed from the cart (persisted) and the
    view is returned without it. This is not an error.
    """
    items = line_items_from_models(cart.items)

    policy = None
    if cart.discount_id:
        policy = resolve_active_discount(session, cart.discount_id, today)
        if policy is None:
            _detach_stale_discount(session, cart, 'invalid')

    totals = compute_totals(items, policy)
    if policy is not None and not totals.discount_applied:
        _detach_stale_discount(session, cart, 'below_minimum')
        policy = None

    customer = None
    if cart.customer_id:
        customer_row = session.query(Customer).filter(Customer.id == cart.customer_id).first()
        if customer_row:
            customer = {'id': customer_row.id, 'name': customer_row.name}

    return CartView(
        id=cart.id,
        name=cart.name,
        branch_id=cart.branch_id,
        items=items,
        customer=customer,
        discount=policy.summary() if policy is not None else None,
        subtotal=totals.subtotal,
        tax_total=totals.tax_total,
        discount_total=totals.discount_total,
        total_amount=totals.total_amount,
        created_at=cart.created_at,
    )


def get_or_create_active_cart(session: Session, user_id: str, register_id: str,
                              today: Optional[date] = None) -> CartView:
    """Active cart of the user in the register's branch, created on first use."""
    branch_id = get_register_branch(session, register_id)
    cart = _find_active_cart(session, user_id, branch_id)
    if not cart:
        cart = _create_cart(session, user_id, branch_id)
    return build_cart_view(session, cart, today)


def get_cart_view(session: Session, cart_id: str, user_id: str, today: Optional[date] = None) -> CartView:
    return build_cart_view(session, _find_cart(session, cart_id, user_id), today)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

def add_item(
    session: Session,
    cart_id: str,
    user_id: str,
    product_id: str,
    name: str,
    price: Decimal,
    quantity: int,
    tax_rate: Optional[Decimal] = None,
    today: Optional[date] = None
) -> CartView:
    """Add a product to the cart, or increase its quantity if it is already there."""
    if not product_id or not name or price is None or not quantity:
        raise ValidationError('Missing required product details')
    if quantity < 0:
        raise ValidationError('Quantity must be greater than 0')
    if price < 0:
        raise ValidationError('Price cannot be negative')
    if tax_rate is not None and tax_rate < 0:
        raise ValidationError('Tax rate cannot be negative')

    cart = _find_cart(session, cart_id, user_id)

    product = session.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError('Product not found')

    existing = next((item for item in cart.items if item.product_id == product_id), None)
    if existing:
        existing.quantity = existing.quantity + quantity
    else:
        cart.items.append(CartItem(
            product_id=product_id,
            product=product,
            name=name,
            price=price,
            quantity=quantity,
            tax_rate=tax_rate or Decimal('0'),
        ))

    session.flush()
    return build_cart_view(session, cart, today)


def update_item_quantity(session: Session, cart_id: str, user_id: str, item_id: str, quantity: int,
                         today: Optional[date] = None) -> CartView:
    """Set a line's quantity; 0 removes the line."""
    if quantity is None or quantity < 0:
        raise ValidationError('Invalid quantity')

    cart = _find_cart(session, cart_id, user_id)
    item = _find_item(cart, item_id)

    if quantity == 0:
        cart.items.remove(item)
    else:
        item.quantity = quantity

    session.flush()
    return build_cart_view(session, cart, today)


def remove_item(session: Session, cart_id: str, user_id: str, item_id: str,
                today: Optional[date] = None) -> CartView:
    cart = _find_cart(session, cart_id, user_id)
    item = _find_item(cart, item_id)
    cart.items.remove(item)
    session.flush()
    return build_cart_view(session, cart, today)


# ---------------------------------------------------------------------------
# Discount / customer
# ---------------------------------------------------------------------------

def attach_discount(session: Session, cart_id: str, user_id: str, discount_id: str,
                    today: Optional[date] = None) -> CartView:
    """
    Attach a discount after checking it can be used right now on this cart.

    Raises:
        ValidationError: missing id, inactive, not started, expired, usage
            limit reached or cart below the minimum purchase.
        NotFoundError: unknown discount or cart.
    """
    if not discount_id:
        raise ValidationError('Discount ID is required')

    discount = get_discount(session, discount_id)
    cart = _find_cart(session, cart_id, user_id)

    subtotal = subtotal_of(line_items_from_models(cart.items))
    try:
        ensure_discount_applicable(discount, subtotal, today)
    except ValidationError as e:
        cart_discount_rejected_total.inc()
        logger.info(f"Discount {discount_id} rejected for cart {cart_id}: {e.message}")
        raise

    cart.discount_id = discount.id
    session.flush()
    return build_cart_view(session, cart, today)


def detach_discount(session: Session, cart_id: str, user_id: str, today: Optional[date] = None) -> CartView:
    """Remove the cart's discount. Idempotent."""
    cart = _find_cart(session, cart_id, user_id)
    cart.discount_id = None
    session.flush()
    return build_cart_view(session, cart, today)


def set_customer(session: Session, cart_id: str, user_id: str, customer_id: Optional[str] = None,
                 today: Optional[date] = None) -> CartView:
    """Attach a customer to the cart, or clear it when customer_id is empty."""
    cart = _find_cart(session, cart_id, user_id)
    if customer_id:
        customer = session.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise NotFoundError('Customer not found')
        cart.customer_id = customer.id
    else:
        cart.customer_id = None
    session.flush()
    return build_cart_view(session, cart, today)


def clear_cart(session: Session, cart_id: str, user_id: str, today: Optional[date] = None) -> CartView:
    """Empty the cart and drop its customer and discount. The cart itself stays."""
    cart = _find_cart(session, cart_id, user_id)
    cart.items.clear()
    cart.customer_id = None
    cart.discount_id = None
    session.flush()
    return build_cart_view(session, cart, today)


# ---------------------------------------------------------------------------
# Multi-cart
# ---------------------------------------------------------------------------

def _cart_summary(cart: Cart) -> Dict[str, Any]:
    return {
        'id': cart.id,
        'name': cart.name,
        'active': cart.is_active,
        'item_count': sum(item.quantity for item in cart.items),
        'customer_id': cart.customer_id,
        'created_at': cart.created_at.isoformat() if cart.created_at else None,
    }


def list_user_carts(session: Session, user_id: str, register_id: str) -> Dict[str, Any]:
    """All carts of the user in the register's branch, oldest first."""
    branch_id = get_register_branch(session, register_id)
    carts = (session.query(Cart)
             .filter(Cart.user_id == user_id, Cart.branch_id == branch_id)
             .order_by(Cart.created_at)
             .all())
    if not carts:
        carts = [_create_cart(session, user_id, branch_id)]

    active = next((cart for cart in carts if cart.is_active), None)
    return {
        'active_cart_id': active.id if active else None,
        'carts': [_cart_summary(cart) for cart in carts],
    }


def create_cart(session: Session, user_id: str, register_id: str, today: Optional[date] = None) -> CartView:
    """Park the current cart and start a new active one."""
    branch_id = get_register_branch(session, register_id)
    _deactivate_user_carts(session, user_id, branch_id)
    cart = _create_cart(session, user_id, branch_id, name=f"Cart {datetime.now().strftime('%H:%M:%S')}")
    return build_cart_view(session, cart, today)


def set_active_cart(session: Session, cart_id: str, user_id: str, today: Optional[date] = None) -> CartView:
    cart = _find_cart(session, cart_id, user_id, active_only=False)
    _deactivate_user_carts(session, user_id, cart.branch_id)
    cart.is_active = True
    session.flush()
    return build_cart_view(session, cart, today)


def duplicate_cart(session: Session, cart_id: str, user_id: str, today: Optional[date] = None) -> CartView:
    """Copy a cart (items, customer, discount) into a new active cart."""
    source = _find_cart(session, cart_id, user_id, active_only=False)
    _deactivate_user_carts(session, user_id, source.branch_id)

    copy = Cart(
        user_id=user_id,
        branch_id=source.branch_id,
        name=f'{source.name} (Copy)',
        is_active=True,
        customer_id=source.customer_id,
        discount_id=source.discount_id,
    )
    for item in source.items:
        copy.items.append(CartItem(
            product_id=item.product_id,
            product=item.product,
            name=item.name,
            price=item.price,
            quantity=item.quantity,
            tax_rate=item.tax_rate,
        ))
    session.add(copy)
    session.flush()
    logger.info(f"Cart {source.id} duplicated into {copy.id}")
    return build_cart_view(session, copy, today)


def delete_cart(session: Session, cart_id: str, user_id: str) -> None:
    """
    Delete a cart and its items. If it was the active one, the most recent
    remaining cart in the branch becomes active, or a default cart is created.
    """
    cart = _find_cart(session, cart_id, user_id, active_only=False)
    was_active = cart.is_active
    branch_id = cart.branch_id

    session.delete(cart)
    session.flush()

    if was_active:
        latest = (session.query(Cart)
                  .filter(Cart.user_id == user_id, Cart.branch_id == branch_id)
                  .order_by(Cart.created_at.desc())
                  .first())
        if latest:
            latest.is_active = True
            session.flush()
        else:
            _create_cart(session, user_id, branch_id)
    logger.info(f"Cart deleted: id={cart_id}, user_id={user_id}")
