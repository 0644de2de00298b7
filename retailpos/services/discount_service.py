"""
Discount Service - discount validity, attach-time checks and administration.

Two validity checks exist on purpose:
- the read path (`resolve_active_discount`) only looks at `is_active` and the
  date window, so a discount that ran out of uses keeps pricing the carts it
  is already attached to;
- the attach path (`ensure_discount_applicable`) additionally rejects
  exhausted discounts and carts below the minimum purchase, with a message
  the cashier can act on.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, List, FrozenSet, Dict, Any

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from retailpos.models import Discount, DiscountType, DiscountScope, Product, Branch, Cart
from retailpos.pricing.policies import DiscountPolicy, policy_from_model
from retailpos.exceptions import ValidationError, NotFoundError
from retailpos.utils.formatters import (
    amount_label, money, parse_decimal, parse_int, parse_date, iso_date
)

logger = logging.getLogger(__name__)


def is_discount_valid(discount: Discount, today: date) -> bool:
    """Read-path validity: active and inside its date window (no end date = no expiry)."""
    if not discount.is_active:
        return False
    if discount.start_date is not None and discount.start_date > today:
        return False
    if discount.end_date is not None and discount.end_date < today:
        return False
    return True


def is_discount_exhausted(discount: Discount) -> bool:
    return discount.max_uses is not None and (discount.current_uses or 0) >= discount.max_uses


def resolve_active_discount(session: Session, discount_id: str, today: Optional[date] = None) -> Optional[DiscountPolicy]:
    """
    Load a discount and return its policy if it is currently valid.

    Fails closed: a missing row, an invalid row or a lookup error all return None.
    The lookup runs in a savepoint so a failed query leaves the caller's
    transaction usable (PostgreSQL aborts the whole transaction otherwise).
    """
    today = today or date.today()
    try:
        with session.begin_nested():
            discount = _fetch_discount(session, discount_id)
            if discount is None or not is_discount_valid(discount, today):
                return None
            return policy_from_model(discount)
    except (SQLAlchemyError, LookupError, ValueError) as e:
        logger.warning(f"Discount {discount_id} could not be resolved, treating as invalid: {e}")
        return None


def ensure_discount_applicable(discount: Discount, subtotal: Decimal, today: Optional[date] = None) -> None:
    """
    Attach-path checks. Raises ValidationError with the reason the discount cannot be used.
    """
    today = today or date.today()

    if not discount.is_active:
        raise ValidationError('Discount is not active')
    if discount.start_date is not None and discount.start_date > today:
        raise ValidationError('Discount is not valid yet')
    if discount.end_date is not None and discount.end_date < today:
        raise ValidationError('Discount has expired')
    if is_discount_exhausted(discount):
        raise ValidationError('Discount usage limit reached')
    if discount.min_purchase_amount and subtotal < discount.min_purchase_amount:
        raise ValidationError(
            f'The minimum spend should be {amount_label(discount.min_purchase_amount)}',
            payload={'min_purchase_amount': money(discount.min_purchase_amount)}
        )


def _fetch_discount(session: Session, discount_id: str) -> Optional[Discount]:
    return session.query(Discount).filter(Discount.id == discount_id).first()


def get_discount(session: Session, discount_id: str) -> Discount:
    discount = _fetch_discount(session, discount_id)
    if not discount:
        raise NotFoundError('Discount not found')
    return discount


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------

@dataclass
class DiscountRequest:
    """Validated create/update payload."""
    name: str
    type: DiscountType
    value: Decimal
    applies_to: DiscountScope
    start_date: date
    code: Optional[str] = None
    min_purchase_amount: Optional[Decimal] = None
    product_ids: FrozenSet[str] = field(default_factory=frozenset)
    category_ids: FrozenSet[str] = field(default_factory=frozenset)
    branch_ids: FrozenSet[str] = field(default_factory=frozenset)
    buy_x_quantity: Optional[int] = None
    get_y_quantity: Optional[int] = None
    end_date: Optional[date] = None
    max_uses: Optional[int] = None
    is_active: bool = True


def _parse_enum(enum_cls, value, field_name):
    if not value:
        raise ValueError(f'{field_name} is required')
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        allowed = ', '.join(member.value for member in enum_cls)
        raise ValueError(f'{field_name} must be one of: {allowed}')


def _parse_id_set(value) -> FrozenSet[str]:
    if not value:
        return frozenset()
    if isinstance(value, str):
        value = value.split(',')
    return frozenset(str(v).strip() for v in value if str(v).strip())


def _optional_positive_int(value, field_name) -> Optional[int]:
    # 0 and empty mean "not set"
    if value in (None, '', 0, '0'):
        return None
    number = parse_int(value, field_name)
    if number < 0:
        raise ValueError(f'{field_name} cannot be negative')
    return number or None


def parse_discount_request(payload: Dict[str, Any]) -> DiscountRequest:
    """
    Validate a discount create/update payload.

    Raises:
        ValidationError: listing every invalid field in payload['errors'].
    """
    payload = payload or {}
    errors: Dict[str, str] = {}
    values: Dict[str, Any] = {}

    def collect(key, parser):
        try:
            values[key] = parser()
        except ValueError as e:
            errors[key] = str(e)

    name = (payload.get('name') or '').strip()
    if not name:
        errors['name'] = 'name is required'
    values['name'] = name
    values['code'] = (payload.get('code') or '').strip() or None

    collect('type', lambda: _parse_enum(DiscountType, payload.get('type'), 'type'))
    collect('applies_to', lambda: _parse_enum(DiscountScope, payload.get('applies_to'), 'applies_to'))
    collect('value', lambda: parse_decimal(payload.get('value'), 'value'))
    collect('start_date', lambda: parse_date(payload.get('start_date'), 'start_date'))
    collect('end_date', lambda: (
        parse_date(payload['end_date'], 'end_date') if payload.get('end_date') else None
    ))
    collect('min_purchase_amount', lambda: (
        parse_decimal(payload['min_purchase_amount'], 'min_purchase_amount')
        if payload.get('min_purchase_amount') not in (None, '') else None
    ))
    collect('buy_x_quantity', lambda: _optional_positive_int(payload.get('buy_x_quantity'), 'buy_x_quantity'))
    collect('get_y_quantity', lambda: _optional_positive_int(payload.get('get_y_quantity'), 'get_y_quantity'))
    collect('max_uses', lambda: _optional_positive_int(payload.get('max_uses'), 'max_uses'))

    values['product_ids'] = _parse_id_set(payload.get('product_ids'))
    values['category_ids'] = _parse_id_set(payload.get('category_ids'))
    values['branch_ids'] = _parse_id_set(payload.get('branch_ids'))
    is_active = payload.get('is_active')
    if is_active is None:
        values['is_active'] = True
    elif isinstance(is_active, bool):
        values['is_active'] = is_active
    else:
        values['is_active'] = str(is_active).lower() in ('1', 'true', 'yes', 'on')

    # Cross-field rules only once the individual fields parsed
    value = values.get('value')
    if value is not None:
        if value < 0:
            errors['value'] = 'value cannot be negative'
        elif values.get('type') is DiscountType.PERCENTAGE and value > 100:
            errors['value'] = 'percentage value must be between 0 and 100'

    min_purchase = values.get('min_purchase_amount')
    if min_purchase is not None:
        if min_purchase < 0:
            errors['min_purchase_amount'] = 'min_purchase_amount cannot be negative'
        elif min_purchase == 0:
            values['min_purchase_amount'] = None

    start, end = values.get('start_date'), values.get('end_date')
    if start and end and end < start:
        errors['end_date'] = 'end_date cannot be before start_date'

    if values.get('type') is DiscountType.BUY_X_GET_Y:
        if not values.get('buy_x_quantity'):
            errors.setdefault('buy_x_quantity', 'buy_x_quantity is required for buy X get Y discounts')
        if not values.get('get_y_quantity'):
            errors.setdefault('get_y_quantity', 'get_y_quantity is required for buy X get Y discounts')
        if not values['product_ids']:
            errors['product_ids'] = 'buy X get Y discounts need at least one product'
    elif values.get('applies_to') is DiscountScope.SPECIFIC_PRODUCTS and not values['product_ids']:
        errors['product_ids'] = 'select at least one product'
    elif values.get('applies_to') is DiscountScope.SPECIFIC_CATEGORIES and not values['category_ids']:
        errors['category_ids'] = 'select at least one category'

    if errors:
        first = next(iter(errors.values()))
        raise ValidationError(f'Invalid discount: {first}', payload={'errors': errors})

    return DiscountRequest(**values)


def _load_products(session: Session, product_ids) -> List[Product]:
    if not product_ids:
        return []
    products = session.query(Product).filter(Product.id.in_(product_ids)).all()
    missing = set(product_ids) - {p.id for p in products}
    if missing:
        raise NotFoundError(f'Product not found: {", ".join(sorted(missing))}')
    return products


def _load_branches(session: Session, branch_ids) -> List[Branch]:
    if not branch_ids:
        return []
    branches = session.query(Branch).filter(Branch.id.in_(branch_ids)).all()
    missing = set(branch_ids) - {b.id for b in branches}
    if missing:
        raise NotFoundError(f'Branch not found: {", ".join(sorted(missing))}')
    return branches


def _ensure_code_available(session: Session, code: Optional[str], exclude_id: Optional[str] = None) -> None:
    if not code:
        return
    query = session.query(Discount).filter(Discount.code == code)
    if exclude_id:
        query = query.filter(Discount.id != exclude_id)
    if query.first():
        raise ValidationError('Discount with this code already exists')


def _apply_request(session: Session, discount: Discount, request: DiscountRequest) -> None:
    discount.name = request.name
    discount.code = request.code
    discount.type = request.type
    discount.value = request.value
    discount.min_purchase_amount = request.min_purchase_amount
    discount.applies_to = request.applies_to
    discount.category_ids = request.category_ids
    discount.buy_x_quantity = request.buy_x_quantity
    discount.get_y_quantity = request.get_y_quantity
    discount.start_date = request.start_date
    discount.end_date = request.end_date
    discount.max_uses = request.max_uses
    discount.is_active = request.is_active
    discount.products = _load_products(session, request.product_ids)
    discount.branches = _load_branches(session, request.branch_ids)


def create_discount(session: Session, request: DiscountRequest) -> Discount:
    """Create a discount. Codes are unique across discounts."""
    _ensure_code_available(session, request.code)

    discount = Discount(current_uses=0)
    _apply_request(session, discount, request)
    session.add(discount)
    session.flush()

    logger.info(f"Discount created: id={discount.id}, type={discount.type.value}, code={discount.code}")
    return discount


def update_discount(session: Session, discount_id: str, request: DiscountRequest) -> Discount:
    """Replace every editable field of a discount; usage counter is untouched."""
    discount = get_discount(session, discount_id)
    _ensure_code_available(session, request.code, exclude_id=discount.id)

    _apply_request(session, discount, request)
    session.flush()

    logger.info(f"Discount updated: id={discount.id}")
    return discount


def delete_discount(session: Session, discount_id: str) -> None:
    """Delete a discount and detach it from any cart still pointing at it."""
    discount = get_discount(session, discount_id)

    detached = session.query(Cart).filter(Cart.discount_id == discount.id).update(
        {Cart.discount_id: None}, synchronize_session='fetch'
    )
    session.delete(discount)
    session.flush()

    logger.info(f"Discount deleted: id={discount_id}, detached_from_carts={detached}")


def list_discounts(session: Session) -> List[Discount]:
    return session.query(Discount).order_by(Discount.name).all()


def list_pos_discounts(session: Session, branch_id: str, today: Optional[date] = None) -> List[Discount]:
    """Discounts a cashier can pick right now in the given branch."""
    today = today or date.today()
    return (session.query(Discount)
            .filter(
                Discount.branches.any(Branch.id == branch_id),
                Discount.is_active.is_(True),
                Discount.start_date <= today,
                or_(Discount.end_date.is_(None), Discount.end_date >= today),
            )
            .order_by(Discount.name)
            .all())


def discount_to_dict(discount: Discount) -> Dict[str, Any]:
    return {
        'id': discount.id,
        'name': discount.name,
        'code': discount.code,
        'type': discount.type.value,
        'value': money(discount.value),
        'min_purchase_amount': money(discount.min_purchase_amount),
        'applies_to': discount.applies_to.value,
        'products': [{'id': p.id, 'name': p.name} for p in discount.products],
        'category_ids': sorted(discount.category_ids),
        'branch_ids': sorted(b.id for b in discount.branches),
        'buy_x_quantity': discount.buy_x_quantity,
        'get_y_quantity': discount.get_y_quantity,
        'start_date': iso_date(discount.start_date),
        'end_date': iso_date(discount.end_date),
        'max_uses': discount.max_uses,
        'current_uses': discount.current_uses,
        'is_active': discount.is_active,
    }
