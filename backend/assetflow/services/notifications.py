from __future__ import annotations
"""Notification sink.

``create_notification`` persists one in-app message. ``dispatch_notification``
hands delivery to the task queue and never raises: the caller's transaction is
already committed when it runs, and a failed delivery must not undo it.
"""
import logging
from typing import Iterable, Optional
from sqlalchemy import select
from assetflow import get_db
from assetflow.constants.permissions import ROLE_ADMIN
from assetflow.models.authz import User
from assetflow.models.notification import Notification

logger = logging.getLogger(__name__)


def create_notification(recipient_id: int, type_: str, title: str, message: str,
                        asset_id: Optional[int] = None, bill_no: Optional[str] = None,
                        actor_id: Optional[int] = None) -> Notification:
    session = get_db()
    n = Notification(
        recipient_id=recipient_id,
        type=type_,
        title=title,
        message=message,
        asset_id=asset_id,
        bill_no=bill_no,
        created_by=actor_id,
    )
    session.add(n)
    session.commit()
    return n


def dispatch_notification(recipient_id: Optional[int], type_: str, title: str, message: str,
                          asset_id: Optional[int] = None, bill_no: Optional[str] = None,
                          actor_id: Optional[int] = None) -> bool:
    if recipient_id is None:
        logger.warning('notification %s for asset %s has no recipient; dropped', type_, asset_id)
        return False
    from assetflow.tasks import deliver_notification
    try:
        deliver_notification.delay(recipient_id, type_, title, message, asset_id, bill_no, actor_id)
    except Exception:
        logger.exception('could not schedule %s notification for user %s', type_, recipient_id)
        return False
    return True


def admin_ids() -> Iterable[int]:
    session = get_db()
    return [u.id for u in session.execute(
        select(User).where(User.role == ROLE_ADMIN, User.is_active.is_(True))
    ).scalars()]


def notification_json(n: Notification):
    return {
        'id': n.id,
        'recipient': n.recipient_id,
        'type': n.type,
        'title': n.title,
        'message': n.message,
        'assetId': n.asset_id,
        'billNo': n.bill_no,
        'isRead': n.is_read,
        'createdBy': {'id': n.creator.id, 'name': n.creator.name} if n.creator else None,
        'createdAt': n.created_at.isoformat() if n.created_at else None,
    }
