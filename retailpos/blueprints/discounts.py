"""Discounts blueprint - discount administration (JSON)."""
from flask import Blueprint, request, jsonify, Response

from retailpos.database import get_session, run_in_transaction
from retailpos.models import Permission
from retailpos.services import discount_service
from retailpos.middleware import require_login
from retailpos.decorators.permissions import require_permission

discounts_bp = Blueprint('discounts', __name__, url_prefix='/discounts')


@discounts_bp.route('', methods=['GET'])
@require_login
@require_permission(Permission.VIEW_DISCOUNTS)
def list_discounts() -> Response:
    discounts = discount_service.list_discounts(get_session())
    return jsonify({'discounts': [discount_service.discount_to_dict(d) for d in discounts]})


@discounts_bp.route('/<discount_id>', methods=['GET'])
@require_login
@require_permission(Permission.VIEW_DISCOUNTS)
def get_discount(discount_id: str) -> Response:
    discount = discount_service.get_discount(get_session(), discount_id)
    return jsonify(discount_service.discount_to_dict(discount))


@discounts_bp.route('', methods=['POST'])
@require_login
@require_permission(Permission.CREATE_DISCOUNT)
def create_discount() -> Response:
    discount_request = discount_service.parse_discount_request(request.get_json(silent=True) or {})
    discount = run_in_transaction(discount_service.create_discount, discount_request)
    return jsonify(discount_service.discount_to_dict(discount)), 201


@discounts_bp.route('/<discount_id>', methods=['PUT'])
@require_login
@require_permission(Permission.UPDATE_DISCOUNT)
def update_discount(discount_id: str) -> Response:
    discount_request = discount_service.parse_discount_request(request.get_json(silent=True) or {})
    discount = run_in_transaction(discount_service.update_discount, discount_id, discount_request)
    return jsonify(discount_service.discount_to_dict(discount))


@discounts_bp.route('/<discount_id>', methods=['DELETE'])
@require_login
@require_permission(Permission.DELETE_DISCOUNT)
def delete_discount(discount_id: str) -> Response:
    run_in_transaction(discount_service.delete_discount, discount_id)
    return jsonify({'status': 'ok'})
