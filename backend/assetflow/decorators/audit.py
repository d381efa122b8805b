from __future__ import annotations
"""Audit logging decorator for route handlers.

Usage:

@audit_log('ASSET.CREATE', entity='Asset', entity_id_key='id', meta_keys=['billNo', 'vendorName'])
def create_asset():
    ... return {'success': True, 'data': asset_json(asset)}, 201

@audit_log('ASSET.UPDATE.APPROVE', entity='Asset', entity_id_arg='asset_id',
           diff_keys=['updateRequestStatus'], pre_fetch=lambda a, kw: _snapshot(kw['asset_id']))
def approve_update(asset_id): ...

Parameters:
  action: audit action code
  entity: entity label (Asset, Department, User)
  entity_id_key: key of the response payload whose value becomes entity_id
  entity_id_arg: view argument used for entity_id when the payload lacks the key
  meta_keys: payload keys copied into meta
  meta_builder: callable(payload, rv, args, kwargs) -> dict, overrides meta_keys
  diff_keys / pre_fetch: snapshot taken before the handler; changed keys land in meta['changes']

Handlers return ``{'success': True, 'data': {...}}``, optionally with a status;
keys are looked up in ``data`` first, then in the envelope. Responses with a
status >= 400 are not audited.
"""
import logging
from functools import wraps
from typing import Any, Callable, Iterable, Optional, Dict

from assetflow.services.audit import add_audit
from assetflow import get_db

logger = logging.getLogger(__name__)


def _extract_payload(rv: Any):
    """Return (payload, status) from a view return value."""
    status = 200
    body = rv
    if isinstance(rv, tuple) and rv:
        body = rv[0]
        if len(rv) > 1 and isinstance(rv[1], int):
            status = rv[1]
    if not isinstance(body, dict):
        return None, status
    data = body.get('data')
    if isinstance(data, dict):
        merged = dict(body)
        merged.update(data)
        return merged, status
    return body, status


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    meta_builder: Optional[Callable[[dict, Any, tuple, dict], dict]] = None,
    commit: bool = True,
    diff_keys: Optional[Iterable[str]] = None,
    pre_fetch: Optional[Callable[[tuple, dict], Dict[str, Any]]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before_snapshot = None
            if diff_keys and pre_fetch:
                try:
                    before_snapshot = pre_fetch(args, kwargs)
                except Exception:
                    logger.exception('audit pre-fetch for %s failed', action)
            rv = fn(*args, **kwargs)
            try:
                data, status = _extract_payload(rv)
                if status >= 400:
                    return rv
                if data is None:
                    add_audit(action, entity, kwargs.get(entity_id_arg) if entity_id_arg else None, None)
                else:
                    entity_id = None
                    if entity_id_key and entity_id_key in data:
                        entity_id = data.get(entity_id_key)
                    elif entity_id_arg and entity_id_arg in kwargs:
                        entity_id = kwargs.get(entity_id_arg)
                    meta = None
                    if meta_builder:
                        meta = meta_builder(data, rv, args, kwargs)
                    elif meta_keys:
                        meta = {k: data.get(k) for k in meta_keys if k in data}
                    if diff_keys and isinstance(before_snapshot, dict):
                        changes = {}
                        for k in diff_keys:
                            if k in before_snapshot and k in data and before_snapshot.get(k) != data.get(k):
                                changes[k] = {'before': before_snapshot.get(k), 'after': data.get(k)}
                        if changes:
                            meta = dict(meta or {})
                            meta['changes'] = changes
                    add_audit(action, entity, entity_id, meta)
                if commit:
                    get_db().commit()
            except Exception:
                # The handler already succeeded; a lost audit row must not turn it into an error
                logger.exception('audit entry %s not recorded', action)
                get_db().rollback()
            return rv
        return wrapper
    return outer
