from __future__ import annotations
from typing import Any, Dict, Optional, Set
from flask import abort
from flask_jwt_extended import get_jwt, get_jwt_identity
from assetflow.constants.permissions import ROLE_ADMIN, ROLE_OFFICER, permissions_for_role


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def has_permissions(*codes: str) -> bool:
    perms = current_permissions()
    return all(c in perms for c in codes)


def current_user_id() -> int:
    # Identity is stored as a string (flask-jwt-extended v4 requirement)
    return int(get_jwt_identity())


def current_role() -> Optional[str]:
    return get_jwt().get('role')


def build_claims(user) -> Dict[str, Any]:
    """Additional JWT claims for a user: role, expanded permission codes, department scope."""
    return {
        'role': user.role,
        'perms': permissions_for_role(user.role),
        'department_id': user.department_id,
    }


def department_scope() -> Optional[int]:
    """Department an officer is confined to; None means unscoped (admins)."""
    claims = get_jwt()
    if claims.get('role') == ROLE_ADMIN:
        return None
    dept = claims.get('department_id')
    if dept is None and claims.get('role') == ROLE_OFFICER:
        abort(403, description='No department assigned')
    return dept


def assert_department_access(department_id: int):
    scope = department_scope()
    if scope is None:
        return
    if int(department_id) != int(scope):
        abort(403, description='Department access denied')
