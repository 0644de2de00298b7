"""
Role Service - persistent role and permission store.

Built-in roles are seeded from BUILTIN_ROLE_PERMISSIONS; custom roles are
created at runtime and live in the same tables, so they survive restarts and
are shared by every application instance.
"""
import logging
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from retailpos.models import AppUser, Role, RolePermission, UserPermission, Permission
from retailpos.exceptions import ValidationError, NotFoundError

logger = logging.getLogger(__name__)


class BuiltinRole:
    ADMIN = 'admin'
    OWNER = 'owner'
    MANAGER = 'manager'
    CASHIER = 'cashier'
    INVENTORY_CLERK = 'inventory_clerk'
    ACCOUNTANT = 'accountant'
    VIEWER = 'viewer'


BUILTIN_ROLE_PERMISSIONS: Dict[str, List[Permission]] = {
    BuiltinRole.ADMIN: list(Permission),
    BuiltinRole.OWNER: list(Permission),
    BuiltinRole.MANAGER: [
        Permission.VIEW_ANALYTICS,
        Permission.VIEW_USERS,
        Permission.VIEW_PRODUCTS,
        Permission.EDIT_PRODUCTS,
        Permission.CREATE_PRODUCT,
        Permission.VIEW_CUSTOMERS,
        Permission.EDIT_CUSTOMERS,
        Permission.CREATE_CUSTOMER,
        Permission.VIEW_TRANSACTIONS,
        Permission.VIEW_SALES,
        Permission.CREATE_SALE,
        Permission.VOID_SALE,
        Permission.APPLY_DISCOUNT,
        Permission.VIEW_DISCOUNTS,
        Permission.ISSUE_REFUND,
        Permission.VIEW_REGISTER,
        Permission.OPEN_CLOSE_REGISTER,
        Permission.VIEW_SETTINGS,
    ],
    BuiltinRole.CASHIER: [
        Permission.VIEW_PRODUCTS,
        Permission.VIEW_CUSTOMERS,
        Permission.CREATE_CUSTOMER,
        Permission.CREATE_SALE,
        Permission.APPLY_DISCOUNT,
        Permission.VIEW_REGISTER,
        Permission.OPEN_CLOSE_REGISTER,
    ],
    BuiltinRole.INVENTORY_CLERK: [
        Permission.VIEW_PRODUCTS,
        Permission.EDIT_PRODUCTS,
        Permission.CREATE_PRODUCT,
        Permission.ADJUST_INVENTORY,
    ],
    BuiltinRole.ACCOUNTANT: [
        Permission.VIEW_ANALYTICS,
        Permission.VIEW_TRANSACTIONS,
        Permission.VIEW_SALES,
    ],
    BuiltinRole.VIEWER: [
        Permission.VIEW_PRODUCTS,
        Permission.VIEW_CUSTOMERS,
    ],
}


def _normalize_permissions(permissions: Iterable) -> Set[str]:
    """Validate permission names against the Permission enum."""
    names = set()
    for perm in permissions or ():
        name = perm.value if isinstance(perm, Permission) else str(perm).strip().lower()
        try:
            Permission(name)
        except ValueError:
            raise ValidationError(f'Unknown permission: {name}')
        names.add(name)
    return names


def _set_role_permissions(role: Role, names: Set[str]) -> None:
    # Diff instead of replacing the collection: rows are keyed by (role_id, permission)
    current = {p.permission: p for p in role.permissions}
    for name, row in current.items():
        if name not in names:
            role.permissions.remove(row)
    for name in sorted(names - set(current)):
        role.permissions.append(RolePermission(permission=name))


def seed_builtin_roles(session: Session) -> int:
    """
    Create or refresh the built-in roles. Idempotent.

    Returns the number of roles created.
    """
    created = 0
    for name, permissions in BUILTIN_ROLE_PERMISSIONS.items():
        role = session.query(Role).filter(Role.name == name).first()
        if not role:
            role = Role(name=name, is_builtin=True)
            session.add(role)
            created += 1
        role.is_builtin = True
        _set_role_permissions(role, {p.value for p in permissions})
    session.flush()
    logger.info(f"Built-in roles seeded: created={created}")
    return created


def get_role(session: Session, role_id: str) -> Role:
    role = session.query(Role).filter(Role.id == role_id).first()
    if not role:
        raise NotFoundError('Role not found')
    return role


def list_roles(session: Session) -> List[Role]:
    return session.query(Role).order_by(Role.name).all()


def create_role(session: Session, name: str, permissions: Iterable, description: Optional[str] = None) -> Role:
    name = (name or '').strip().lower()
    if not name:
        raise ValidationError('Role name is required')
    if session.query(Role).filter(Role.name == name).first():
        raise ValidationError(f"A role named '{name}' already exists")

    role = Role(name=name, description=description, is_builtin=False)
    _set_role_permissions(role, _normalize_permissions(permissions))
    session.add(role)
    session.flush()
    logger.info(f"Role created: {name}")
    return role


def update_role(session: Session, role_id: str, permissions: Iterable,
                description: Optional[str] = None) -> Role:
    role = get_role(session, role_id)
    _set_role_permissions(role, _normalize_permissions(permissions))
    if description is not None:
        role.description = description
    session.flush()
    return role


def delete_role(session: Session, role_id: str) -> None:
    role = get_role(session, role_id)
    if role.is_builtin:
        raise ValidationError('Built-in roles cannot be deleted')
    session.delete(role)
    session.flush()
    logger.info(f"Role deleted: {role.name}")


def _get_user(session: Session, user_id: str) -> AppUser:
    user = session.query(AppUser).filter(AppUser.id == user_id).first()
    if not user:
        raise NotFoundError('User not found')
    return user


def assign_roles(session: Session, user_id: str, role_names: Iterable[str]) -> AppUser:
    user = _get_user(session, user_id)
    names = {str(n).strip().lower() for n in role_names or ()}
    roles = session.query(Role).filter(Role.name.in_(names)).all() if names else []
    missing = names - {r.name for r in roles}
    if missing:
        raise NotFoundError(f'Role not found: {", ".join(sorted(missing))}')
    user.roles = roles
    session.flush()
    return user


def set_additional_permissions(session: Session, user_id: str, permissions: Iterable) -> AppUser:
    user = _get_user(session, user_id)
    names = _normalize_permissions(permissions)
    current = {p.permission: p for p in user.additional_permissions}
    for name, row in current.items():
        if name not in names:
            user.additional_permissions.remove(row)
    for name in sorted(names - set(current)):
        user.additional_permissions.append(UserPermission(permission=name))
    session.flush()
    return user


def get_user_permissions(session: Session, user_id: str) -> Set[str]:
    """Union of the user's role permissions and direct permissions. Inactive users have none."""
    user = session.query(AppUser).filter(AppUser.id == user_id).first()
    if not user or not user.active:
        return set()

    permissions = {p.permission for role in user.roles for p in role.permissions}
    permissions.update(p.permission for p in user.additional_permissions)
    return permissions


def user_has_any_permission(session: Session, user_id: str, permissions: Iterable) -> bool:
    wanted = {p.value if isinstance(p, Permission) else str(p) for p in permissions}
    return bool(wanted & get_user_permissions(session, user_id))


def role_to_dict(role: Role) -> dict:
    return {
        'id': role.id,
        'name': role.name,
        'description': role.description,
        'is_builtin': role.is_builtin,
        'permissions': role.permission_names,
    }
