from flask import Blueprint, request, abort, current_app
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
from sqlalchemy import select
from assetflow import get_db
from assetflow.decorators.audit import audit_log
from assetflow.models.authz import User
from assetflow.models.department import Department
from assetflow.services import password_resets
from assetflow.services.policy import build_claims
from assetflow.constants.permissions import permissions_for_role, ROLE_OFFICER
from assetflow.utils.validation import require_fields, parse_int

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/login')
def login():
    data = request.json or {}
    email = data.get('email'); password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    session = get_db()
    user = session.execute(select(User).where(User.email==email.strip().lower())).scalar_one_or_none()
    if not user or not user.verify_password(password):
        abort(401, description='invalid credentials')
    if not user.is_active:
        abort(403, description='account disabled')
    token = _issue_login_token(user)
    return {'success': True, 'token': token, 'access_token': token, 'user': user_json(user)}


@auth_bp.get('/me')
@jwt_required()
def me():
    user_id = int(get_jwt_identity())
    session = get_db()
    user = session.execute(select(User).where(User.id==user_id)).scalar_one_or_none()
    if not user:
        abort(404, description='User not found')
    body = user_json(user)
    body['perms'] = permissions_for_role(user.role)
    return {'success': True, 'data': body}


def _issue_login_token(user: User) -> str:
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    return create_access_token(identity=str(user.id), additional_claims=build_claims(user))


@auth_bp.post('/register')
@audit_log('USER.REGISTER', entity='User', entity_id_key='id', meta_keys=['email', 'role'])
def register():
    """Self-registration; always creates a department officer."""
    if not current_app.config.get('ALLOW_SELF_REGISTRATION', True):
        abort(403, description='Self-registration is disabled')
    data = request.get_json(silent=True) or {}
    require_fields(data, 'name', 'email', 'password')
    if data.get('role') not in (None, '', ROLE_OFFICER):
        abort(400, description='Only department officers can self-register')
    if data.get('department') in (None, ''):
        abort(400, description='department required for department officers')
    session = get_db()
    department_id = parse_int(data['department'], 'department')
    if session.get(Department, department_id) is None:
        abort(400, description='department not found')
    email = str(data['email']).strip().lower()
    if session.execute(select(User).where(User.email==email)).scalar_one_or_none():
        abort(400, description='User already exists')
    user = User(name=data['name'], email=email, password_hash='', role=ROLE_OFFICER, department_id=department_id)
    user.set_password(data['password'])
    session.add(user)
    session.commit()
    token = _issue_login_token(user)
    return {'success': True, 'token': token, 'access_token': token, 'data': user_json(user)}, 201


@auth_bp.post('/password-reset/request')
@audit_log('AUTH.PASSWORD_RESET.REQUEST', entity='PasswordResetRequest', entity_id_key='requestId', meta_keys=['email'])
def request_password_reset():
    data = request.get_json(silent=True) or {}
    require_fields(data, 'email')
    session = get_db()
    token, req = password_resets.request_reset(session, str(data['email']), data.get('reason'))
    session.commit()
    if token:
        return {'success': True, 'message': 'Password reset token generated', 'token': token,
                'email': data['email']}
    return {'success': True, 'message': 'Password reset request submitted. Admin approval required.',
            'data': {'requestId': req.id, 'status': req.status, 'email': data['email']}}


@auth_bp.post('/password-reset/confirm')
@audit_log('AUTH.PASSWORD_RESET', entity='User', entity_id_key='userId')
def confirm_password_reset():
    data = request.get_json(silent=True) or {}
    require_fields(data, 'token', 'newPassword')
    session = get_db()
    user = password_resets.consume_token(session, str(data['token']), str(data['newPassword']))
    session.commit()
    return {'success': True, 'message': 'Password reset successfully', 'data': {'userId': user.id}}


def user_json(u: User):
    return {
        'id': u.id,
        'name': u.name,
        'email': u.email,
        'role': u.role,
        'department': {'id': u.department.id, 'name': u.department.name} if u.department else None,
        'isActive': u.is_active,
    }
