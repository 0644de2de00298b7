"""Roles blueprint - custom roles and user permission assignment (JSON)."""
from flask import Blueprint, request, jsonify, Response

from retailpos.database import get_session, run_in_transaction
from retailpos.models import Permission
from retailpos.services import role_service
from retailpos.middleware import require_login
from retailpos.decorators.permissions import require_permission

roles_bp = Blueprint('roles', __name__, url_prefix='/roles')


def _payload() -> dict:
    return request.get_json(silent=True) or {}


@roles_bp.route('', methods=['GET'])
@require_login
@require_permission(Permission.VIEW_ROLES)
def list_roles() -> Response:
    roles = role_service.list_roles(get_session())
    return jsonify({'roles': [role_service.role_to_dict(r) for r in roles]})


@roles_bp.route('/permissions', methods=['GET'])
@require_login
@require_permission(Permission.VIEW_ROLES)
def list_permissions() -> Response:
    return jsonify({'permissions': [p.value for p in Permission]})


@roles_bp.route('', methods=['POST'])
@require_login
@require_permission(Permission.CREATE_ROLE)
def create_role() -> Response:
    payload = _payload()
    role = run_in_transaction(
        role_service.create_role,
        payload.get('name'),
        payload.get('permissions') or [],
        payload.get('description'),
    )
    return jsonify(role_service.role_to_dict(role)), 201


@roles_bp.route('/<role_id>', methods=['PUT'])
@require_login
@require_permission(Permission.UPDATE_ROLE)
def update_role(role_id: str) -> Response:
    payload = _payload()
    role = run_in_transaction(
        role_service.update_role,
        role_id,
        payload.get('permissions') or [],
        payload.get('description'),
    )
    return jsonify(role_service.role_to_dict(role))


@roles_bp.route('/<role_id>', methods=['DELETE'])
@require_login
@require_permission(Permission.DELETE_ROLE)
def delete_role(role_id: str) -> Response:
    run_in_transaction(role_service.delete_role, role_id)
    return jsonify({'status': 'ok'})


@roles_bp.route('/users/<user_id>', methods=['GET'])
@require_login
@require_permission(Permission.VIEW_ROLES)
def user_permissions(user_id: str) -> Response:
    permissions = role_service.get_user_permissions(get_session(), user_id)
    return jsonify({'user_id': user_id, 'permissions': sorted(permissions)})


@roles_bp.route('/users/<user_id>/roles', methods=['PUT'])
@require_login
@require_permission(Permission.ASSIGN_PERMISSIONS)
def assign_roles(user_id: str) -> Response:
    user = run_in_transaction(role_service.assign_roles, user_id, _payload().get('roles') or [])
    return jsonify({'user_id': user.id, 'roles': sorted(r.name for r in user.roles)})


@roles_bp.route('/users/<user_id>/permissions', methods=['PUT'])
@require_login
@require_permission(Permission.ASSIGN_PERMISSIONS)
def set_user_permissions(user_id: str) -> Response:
    user = run_in_transaction(
        role_service.set_additional_permissions, user_id, _payload().get('permissions') or []
    )
    return jsonify({
        'user_id': user.id,
        'permissions': sorted(p.permission for p in user.additional_permissions),
    })
