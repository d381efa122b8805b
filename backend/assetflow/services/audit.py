from __future__ import annotations
import logging
from typing import Any, Dict, Optional
from flask_jwt_extended import get_jwt_identity, get_jwt
from assetflow import get_db
from assetflow.models.audit import AuditLog

logger = logging.getLogger(__name__)


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[Any] = None, meta: Optional[Dict[str, Any]] = None):
    """Stage an audit log entry in the current DB session.

    Parameters:
      action: short action code e.g. ASSET.CREATE, ASSET.UPDATE.APPROVE
      entity: optional entity name (Asset, Department, User)
      entity_id: optional primary key
      meta: additional JSON-safe dictionary (shallow copied)
    """
    session = get_db()
    claims: Dict[str, Any] = {}
    try:
        claims = get_jwt() or {}
    except RuntimeError:
        logger.debug('audit entry %s recorded outside a JWT context', action)
    actor = None
    try:
        ident = get_jwt_identity()
        actor = int(ident) if ident is not None else None
    except (RuntimeError, ValueError):
        actor = None
    log = AuditLog(
        actor_user_id=actor or 0,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        role=claims.get('role'),
        meta=dict(meta or {}),
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log
