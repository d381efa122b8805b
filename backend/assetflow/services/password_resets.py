from __future__ import annotations
"""Password reset workflow.

Admins may reset their own password straight away: requesting one issues a
single-use token. Officers file a request with a reason; an admin approves it
(which issues the token) or rejects it. Tokens expire after
``PASSWORD_RESET_TTL_MINUTES`` and are consumed by ``consume_token``.

    PENDING -> APPROVED | REJECTED
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from flask import abort, current_app
from sqlalchemy import select

from assetflow.constants.permissions import ROLE_ADMIN
from assetflow.models.authz import User
from assetflow.models.password_reset import PasswordResetRequest, PasswordResetToken
from assetflow.utils.fsm import TransitionValidator

logger = logging.getLogger(__name__)

RESET_FSM = TransitionValidator({
    PasswordResetRequest.STATUS_PENDING: {PasswordResetRequest.STATUS_APPROVED, PasswordResetRequest.STATUS_REJECTED},
}, field_name='status')


def _now() -> datetime:
    return datetime.now(timezone.utc)


def issue_token(session, user: User) -> str:
    token = secrets.token_hex(32)
    ttl = current_app.config['PASSWORD_RESET_TTL_MINUTES']
    session.add(PasswordResetToken(user_id=user.id, token=token, expires_at=_now() + timedelta(minutes=ttl)))
    return token


def request_reset(session, email: str, reason: Optional[str]) -> Tuple[Optional[str], Optional[PasswordResetRequest]]:
    """Returns (token, None) for admins and (None, request) for officers."""
    user = session.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()
    if user is None:
        abort(404, description='User not found')
    if user.role == ROLE_ADMIN:
        logger.info('password reset token issued to admin %s', user.id)
        return issue_token(session, user), None
    if not reason or not str(reason).strip():
        abort(400, description='Reason is required for password reset request')
    open_request = session.execute(select(PasswordResetRequest).where(
        PasswordResetRequest.user_id == user.id,
        PasswordResetRequest.status == PasswordResetRequest.STATUS_PENDING,
    )).scalar_one_or_none()
    if open_request is not None:
        abort(409, description='A password reset request is already pending')
    req = PasswordResetRequest(user_id=user.id, reason=str(reason).strip(), status=PasswordResetRequest.STATUS_PENDING)
    session.add(req)
    session.flush()
    logger.info('password reset request %s filed by user %s', req.id, user.id)
    return None, req


def _load_pending(session, request_id: int, target: str) -> PasswordResetRequest:
    req = session.get(PasswordResetRequest, request_id)
    if req is None:
        abort(404, description='Password reset request not found')
    RESET_FSM.assert_can_transition(req.status, target, description='Request already processed')
    return req


def approve_request(session, request_id: int, admin_id: int) -> Tuple[PasswordResetRequest, str]:
    req = _load_pending(session, request_id, PasswordResetRequest.STATUS_APPROVED)
    req.status = PasswordResetRequest.STATUS_APPROVED
    req.reviewed_by = admin_id
    req.reviewed_at = _now()
    return req, issue_token(session, req.user)


def reject_request(session, request_id: int, admin_id: int, reason: Optional[str]) -> PasswordResetRequest:
    req = _load_pending(session, request_id, PasswordResetRequest.STATUS_REJECTED)
    req.status = PasswordResetRequest.STATUS_REJECTED
    req.reviewed_by = admin_id
    req.reviewed_at = _now()
    req.rejected_reason = reason
    return req


def consume_token(session, token: str, new_password: str) -> User:
    record = session.execute(select(PasswordResetToken).where(
        PasswordResetToken.token == token,
        PasswordResetToken.used.is_(False),
        PasswordResetToken.expires_at > _now(),
    )).scalar_one_or_none()
    if record is None:
        abort(400, description='Invalid or expired reset token')
    user = session.get(User, record.user_id)
    user.set_password(new_password)
    record.used = True
    logger.info('password reset for user %s', user.id)
    return user

__all__ = ['RESET_FSM', 'issue_token', 'request_reset', 'approve_request', 'reject_request', 'consume_token']
