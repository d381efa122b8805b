from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select
from assetflow import get_db
from assetflow.constants.permissions import ALL_ROLES, ROLE_OFFICER
from assetflow.decorators.auth import require_permissions
from assetflow.decorators.audit import audit_log
from assetflow.models.audit import AuditLog
from assetflow.models.authz import User
from assetflow.models.department import Department
from assetflow.models.password_reset import PasswordResetRequest
from assetflow.services import password_resets
from assetflow.services.policy import current_user_id
from assetflow.utils.dates import iso
from assetflow.routes.auth import user_json
from assetflow.utils.listing import apply_filters, list_response
from assetflow.utils.validation import validate_choice, require_fields

admin_bp = Blueprint('admin', __name__)


@admin_bp.get('/users')
@require_permissions('ADMIN.USER.MANAGE')
def list_users():
    session = get_db()
    q = session.query(User)
    filter_specs = {
        'role': {'op': lambda qu, v: qu.filter(User.role==v), 'validate': lambda v: v in ALL_ROLES},
        'departmentId': {'coerce': int, 'op': lambda qu, v: qu.filter(User.department_id==v)},
    }
    q = apply_filters(q, filter_specs, request.args).order_by(User.id.asc())
    return list_response(q, user_json, version_key='id')


@admin_bp.post('/users')
@require_permissions('ADMIN.USER.MANAGE')
@audit_log('USER.CREATE', entity='User', entity_id_key='id', meta_keys=['email', 'role'])
def create_user():
    session = get_db()
    data = request.json or {}
    require_fields(data, 'name', 'email', 'password')
    role = validate_choice(data.get('role') or ROLE_OFFICER, ALL_ROLES, 'role')
    email = data['email'].strip().lower()
    if session.execute(select(User).where(User.email==email)).scalar_one_or_none():
        abort(400, description='email already registered')
    department_id = data.get('department')
    if role == ROLE_OFFICER and department_id is None:
        abort(400, description='department required for department officers')
    if department_id is not None and session.get(Department, department_id) is None:
        abort(400, description='department not found')
    user = User(name=data['name'], email=email, password_hash='', role=role, department_id=department_id)
    user.set_password(data['password'])
    session.add(user)
    session.commit()
    return {'success': True, 'data': user_json(user)}, 201


@admin_bp.get('/audit/logs')
@require_permissions('ADMIN.AUDIT.READ')
def list_audit_logs():
    session = get_db()
    q = session.query(AuditLog)
    filter_specs = {
        'actorUserId': {'coerce': int, 'op': lambda qu, v: qu.filter(AuditLog.actor_user_id==v)},
        'action': {'op': lambda qu, v: qu.filter(AuditLog.action==v)},
        'entity': {'op': lambda qu, v: qu.filter(AuditLog.entity==v)},
        'entityId': {'op': lambda qu, v: qu.filter(AuditLog.entity_id==v)},
    }
    q = apply_filters(q, filter_specs, request.args).order_by(AuditLog.id.desc())
    return list_response(q, _audit_json, version_key='id')


def _audit_json(r: AuditLog):
    return {
        'id': r.id,
        'actorUserId': r.actor_user_id,
        'action': r.action,
        'entity': r.entity,
        'entityId': r.entity_id,
        'role': r.role,
        'meta': r.meta,
        'createdAt': r.created_at.isoformat() if r.created_at else None,
    }


@admin_bp.get('/password-resets')
@require_permissions('ADMIN.USER.MANAGE')
def list_password_resets():
    session = get_db()
    q = session.query(PasswordResetRequest)
    filter_specs = {
        'status': {'op': lambda qu, v: qu.filter(PasswordResetRequest.status==v),
                   'validate': lambda v: v in PasswordResetRequest.ALL_STATUSES},
    }
    q = apply_filters(q, filter_specs, request.args).order_by(PasswordResetRequest.id.desc())
    return list_response(q, _reset_json, version_key='status')


def _reset_status(args, kwargs):
    req = get_db().get(PasswordResetRequest, kwargs['request_id'])
    return {'status': req.status if req else None}


@admin_bp.post('/password-resets/<int:request_id>/approve')
@require_permissions('ADMIN.USER.MANAGE')
@audit_log('AUTH.PASSWORD_RESET.APPROVE', entity='PasswordResetRequest', entity_id_arg='request_id',
           meta_keys=['userId'], diff_keys=['status'], pre_fetch=_reset_status)
def approve_password_reset(request_id: int):
    session = get_db()
    req, token = password_resets.approve_request(session, request_id, current_user_id())
    session.commit()
    return {'success': True, 'message': 'Password reset approved', 'token': token, 'data': _reset_json(req)}


@admin_bp.post('/password-resets/<int:request_id>/reject')
@require_permissions('ADMIN.USER.MANAGE')
@audit_log('AUTH.PASSWORD_RESET.REJECT', entity='PasswordResetRequest', entity_id_arg='request_id',
           meta_keys=['userId', 'rejectedReason'], diff_keys=['status'], pre_fetch=_reset_status)
def reject_password_reset(request_id: int):
    data = request.get_json(silent=True) or {}
    reason = data.get('reason')
    if reason is not None and not isinstance(reason, str):
        abort(400, description='reason must be a string')
    session = get_db()
    req = password_resets.reject_request(session, request_id, current_user_id(), reason)
    session.commit()
    return {'success': True, 'message': 'Password reset request rejected', 'data': _reset_json(req)}


def _reset_json(r: PasswordResetRequest):
    return {
        'id': r.id,
        'user': {'id': r.user.id, 'name': r.user.name, 'email': r.user.email, 'role': r.user.role} if r.user else None,
        'userId': r.user_id,
        'reason': r.reason,
        'status': r.status,
        'reviewedBy': {'id': r.reviewer.id, 'name': r.reviewer.name, 'email': r.reviewer.email} if r.reviewer else None,
        'reviewedAt': iso(r.reviewed_at),
        'rejectedReason': r.rejected_reason,
        'createdAt': iso(r.created_at),
    }
