from flask import Blueprint, abort
from sqlalchemy import select, update
from assetflow import get_db
from assetflow.decorators.auth import require_permissions
from assetflow.models.notification import Notification
from assetflow.services.notifications import notification_json
from assetflow.services.policy import current_user_id

notif_bp = Blueprint('notifications', __name__)

LATEST_LIMIT = 50


@notif_bp.get('')
@require_permissions('NOTIF.READ')
def list_notifications():
    session = get_db()
    stmt = (select(Notification)
            .where(Notification.recipient_id == current_user_id())
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(LATEST_LIMIT))
    rows = session.execute(stmt).scalars().all()
    return {'success': True, 'data': [notification_json(n) for n in rows]}


@notif_bp.put('/<int:notification_id>/read')
@require_permissions('NOTIF.READ')
def mark_read(notification_id: int):
    session = get_db()
    n = session.get(Notification, notification_id)
    # Someone else's notification reads as missing
    if not n or n.recipient_id != current_user_id():
        abort(404, description='Notification not found')
    n.is_read = True
    session.commit()
    return {'success': True, 'message': 'Notification marked as read'}


@notif_bp.put('/mark-all-read')
@require_permissions('NOTIF.READ')
def mark_all_read():
    session = get_db()
    result = session.execute(
        update(Notification)
        .where(Notification.recipient_id == current_user_id(), Notification.is_read.is_(False))
        .values(is_read=True)
    )
    session.commit()
    return {'success': True, 'message': 'All notifications marked as read', 'data': {'updated': result.rowcount}}
