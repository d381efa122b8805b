from __future__ import annotations
import logging
from flask import Blueprint, request, abort
from assetflow import get_db
from assetflow.decorators.auth import require_permissions
from assetflow.decorators.audit import audit_log
from assetflow.models.asset import Asset
from assetflow.routes.assets import asset_json
from assetflow.services import update_requests as workflow
from assetflow.services.policy import assert_department_access, current_user_id
from assetflow.utils.listing import apply_filters

logger = logging.getLogger(__name__)

upd_bp = Blueprint('update_requests', __name__)


def _load_asset(asset_id: int) -> Asset:
    asset = get_db().get(Asset, asset_id)
    if not asset:
        abort(404, description='Asset not found')
    return asset


def _status_snapshot(args, kwargs):
    asset = get_db().get(Asset, kwargs['asset_id'])
    return {'updateRequestStatus': asset.update_request_status if asset else None}


def _remarks():
    data = request.get_json(silent=True) or {}
    remarks = data.get('adminRemarks')
    if remarks is not None and not isinstance(remarks, str):
        abort(400, description='adminRemarks must be a string')
    return remarks or ''


@upd_bp.get('/pending-updates')
@require_permissions('ASSET.REVIEW_UPDATE')
def list_pending_updates():
    session = get_db()
    q = session.query(Asset).filter(Asset.update_request_status == Asset.UPDATE_PENDING)
    filter_specs = {
        'departmentId': {'coerce': int, 'op': lambda qu, v: qu.filter(Asset.department_id == v)},
    }
    q = apply_filters(q, filter_specs, request.args)
    rows = q.order_by(Asset.requested_at.desc(), Asset.id.desc()).all()
    return {'success': True, 'data': [_pending_json(a) for a in rows]}


@upd_bp.post('/<int:asset_id>/request-update')
@require_permissions('ASSET.REQUEST_UPDATE')
@audit_log('ASSET.UPDATE.REQUEST', entity='Asset', entity_id_arg='asset_id', meta_keys=['requestedFields'])
def request_update(asset_id: int):
    session = get_db()
    asset = _load_asset(asset_id)
    assert_department_access(asset.department_id)
    data = request.get_json(silent=True) or {}
    caller = current_user_id()
    proposal = workflow.submit_proposal(asset, data.get('requestedFields'), data.get('tempValues'), caller)
    workflow.commit_or_conflict(session)
    logger.info('update request on asset %s by user %s: %s', asset.id, caller, proposal.fields)
    body = {'success': True, 'message': 'Update request submitted successfully', 'data': asset_json(asset)}
    workflow.notify_submitted(asset, caller)
    return body


@upd_bp.post('/<int:asset_id>/approve-update')
@require_permissions('ASSET.REVIEW_UPDATE')
@audit_log('ASSET.UPDATE.APPROVE', entity='Asset', entity_id_arg='asset_id', meta_keys=['requestedFields', 'adminRemarks'],
           diff_keys=['updateRequestStatus'], pre_fetch=_status_snapshot)
def approve_update(asset_id: int):
    session = get_db()
    asset = _load_asset(asset_id)
    remarks = _remarks()
    caller = current_user_id()
    state = workflow.approve(asset, caller, remarks)
    workflow.commit_or_conflict(session)
    logger.info('update request on asset %s approved by user %s', asset.id, caller)
    body = {'success': True, 'message': 'Update request approved successfully', 'data': asset_json(asset)}
    body['data']['requestedFields'] = state.proposal.fields
    workflow.notify_decision(asset, state, True, caller, remarks)
    return body


@upd_bp.post('/<int:asset_id>/reject-update')
@require_permissions('ASSET.REVIEW_UPDATE')
@audit_log('ASSET.UPDATE.REJECT', entity='Asset', entity_id_arg='asset_id', meta_keys=['requestedFields', 'adminRemarks'],
           diff_keys=['updateRequestStatus'], pre_fetch=_status_snapshot)
def reject_update(asset_id: int):
    session = get_db()
    asset = _load_asset(asset_id)
    remarks = _remarks()
    caller = current_user_id()
    state = workflow.reject(asset, caller, remarks)
    workflow.commit_or_conflict(session)
    logger.info('update request on asset %s rejected by user %s', asset.id, caller)
    body = {'success': True, 'message': 'Update request rejected', 'data': asset_json(asset)}
    body['data']['requestedFields'] = state.proposal.fields
    workflow.notify_decision(asset, state, False, caller, remarks)
    return body


def _pending_json(a: Asset):
    current, proposed = workflow.build_diff(a)
    body = asset_json(a)
    body['department'] = {'id': a.department.id, 'name': a.department.name} if a.department else None
    body['requestedBy'] = {'id': a.requester.id, 'name': a.requester.name, 'email': a.requester.email} if a.requester else None
    body['currentValues'] = current
    body['newValues'] = proposed
    return body
