"""Cart blueprint - JSON endpoints for the POS cart of the logged-in cashier."""
from typing import Any, Callable, Optional

from flask import Blueprint, request, jsonify, g, Response

from retailpos.database import get_session, run_in_transaction
from retailpos.models import Permission
from retailpos.services import cart_service
from retailpos.services.discount_service import list_pos_discounts, discount_to_dict
from retailpos.services.register_service import get_register_branch
from retailpos.middleware import require_login
from retailpos.decorators.permissions import require_permission
from retailpos.exceptions import ValidationError
from retailpos.utils.formatters import parse_decimal, parse_int

cart_bp = Blueprint('cart', __name__, url_prefix='/carts')


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _optional(parser: Callable, payload: dict, key: str) -> Optional[Any]:
    """Parse payload[key] with parser, None when absent. Parse errors become ValidationError."""
    value = payload.get(key)
    if value is None or value == '':
        return None
    try:
        return parser(value, key)
    except ValueError as e:
        raise ValidationError(str(e))


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------

@cart_bp.route('/active', methods=['GET'])
@require_login
@require_permission(Permission.CREATE_SALE)
def active_cart() -> Response:
    """Active cart for the current register's branch (created on first use)."""
    view = run_in_transaction(cart_service.get_or_create_active_cart, g.user_id, g.register_id)
    return jsonify(view.to_dict())


@cart_bp.route('/<cart_id>', methods=['GET'])
@require_login
@require_permission(Permission.CREATE_SALE)
def get_cart(cart_id: str) -> Response:
    # Reads commit too: an invalid discount is detached while building the view
    view = run_in_transaction(cart_service.get_cart_view, cart_id, g.user_id)
    return jsonify(view.to_dict())


@cart_bp.route('/<cart_id>/items', methods=['POST'])
@require_login
@require_permission(Permission.CREATE_SALE)
def add_item(cart_id: str) -> Response:
    payload = _payload()
    view = run_in_transaction(
        cart_service.add_item,
        cart_id,
        g.user_id,
        product_id=payload.get('product_id'),
        name=payload.get('name'),
        price=_optional(parse_decimal, payload, 'price'),
        quantity=_optional(parse_int, payload, 'quantity'),
        tax_rate=_optional(parse_decimal, payload, 'tax_rate'),
    )
    return jsonify(view.to_dict())


@cart_bp.route('/<cart_id>/items/<item_id>', methods=['PATCH'])
@require_login
@require_permission(Permission.CREATE_SALE)
def update_item(cart_id: str, item_id: str) -> Response:
    quantity = _optional(parse_int, _payload(), 'quantity')
    view = run_in_transaction(cart_service.update_item_quantity, cart_id, g.user_id, item_id, quantity)
    return jsonify(view.to_dict())


@cart_bp.route('/<cart_id>/items/<item_id>', methods=['DELETE'])
@require_login
@require_permission(Permission.CREATE_SALE)
def remove_item(cart_id: str, item_id: str) -> Response:
    view = run_in_transaction(cart_service.remove_item, cart_id, g.user_id, item_id)
    return jsonify(view.to_dict())


@cart_bp.route('/<cart_id>/discount', methods=['PUT'])
@require_login
@require_permission(Permission.APPLY_DISCOUNT)
def attach_discount(cart_id: str) -> Response:
    view = run_in_transaction(cart_service.attach_discount, cart_id, g.user_id, _payload().get('discount_id'))
    return jsonify(view.to_dict())


@cart_bp.route('/<cart_id>/discount', methods=['DELETE'])
@require_login
@require_permission(Permission.APPLY_DISCOUNT)
def detach_discount(cart_id: str) -> Response:
    view = run_in_transaction(cart_service.detach_discount, cart_id, g.user_id)
    return jsonify(view.to_dict())


@cart_bp.route('/<cart_id>/customer', methods=['PUT'])
@require_login
@require_permission(Permission.CREATE_SALE)
def set_customer(cart_id: str) -> Response:
    view = run_in_transaction(cart_service.set_customer, cart_id, g.user_id, _payload().get('customer_id'))
    return jsonify(view.to_dict())


@cart_bp.route('/<cart_id>/clear', methods=['POST'])
@require_login
@require_permission(Permission.CREATE_SALE)
def clear_cart(cart_id: str) -> Response:
    view = run_in_transaction(cart_service.clear_cart, cart_id, g.user_id)
    return jsonify(view.to_dict())


# ---------------------------------------------------------------------------
# Multi-cart
# ---------------------------------------------------------------------------

@cart_bp.route('', methods=['GET'])
@require_login
@require_permission(Permission.CREATE_SALE)
def list_carts() -> Response:
    return jsonify(run_in_transaction(cart_service.list_user_carts, g.user_id, g.register_id))


@cart_bp.route('', methods=['POST'])
@require_login
@require_permission(Permission.CREATE_SALE)
def create_cart() -> Response:
    view = run_in_transaction(cart_service.create_cart, g.user_id, g.register_id)
    return jsonify(view.to_dict()), 201


@cart_bp.route('/<cart_id>/activate', methods=['POST'])
@require_login
@require_permission(Permission.CREATE_SALE)
def activate_cart(cart_id: str) -> Response:
    view = run_in_transaction(cart_service.set_active_cart, cart_id, g.user_id)
    return jsonify(view.to_dict())


@cart_bp.route('/<cart_id>/duplicate', methods=['POST'])
@require_login
@require_permission(Permission.CREATE_SALE)
def duplicate_cart(cart_id: str) -> Response:
    view = run_in_transaction(cart_service.duplicate_cart, cart_id, g.user_id)
    return jsonify(view.to_dict()), 201


@cart_bp.route('/<cart_id>', methods=['DELETE'])
@require_login
@require_permission(Permission.CREATE_SALE)
def delete_cart(cart_id: str) -> Response:
    run_in_transaction(cart_service.delete_cart, cart_id, g.user_id)
    return jsonify({'status': 'ok'})


@cart_bp.route('/discounts', methods=['GET'])
@require_login
@require_permission(Permission.APPLY_DISCOUNT)
def available_discounts() -> Response:
    """Discounts the cashier can pick in the current branch today."""
    db_session = get_session()
    branch_id = get_register_branch(db_session, g.register_id)
    discounts = list_pos_discounts(db_session, branch_id)
    return jsonify({'discounts': [discount_to_dict(d) for d in discounts]})
