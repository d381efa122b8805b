from __future__ import annotations
import io
import json
import logging
from flask import Blueprint, request, abort, current_app, send_file
from assetflow import get_db
from assetflow.decorators.auth import require_permissions
from assetflow.decorators.audit import audit_log
from assetflow.models.asset import Asset
from assetflow.models.department import Department
from assetflow.services.blobs import put_blob, get_blob, delete_blob, looks_like_pdf, PDF_CONTENT_TYPE
from assetflow.services.policy import department_scope, assert_department_access, current_user_id
from assetflow.services.totals import normalize_item, normalize_items, refresh_asset_totals
from assetflow.services.update_requests import FIELD_COLUMNS, FieldChange, ProposableField, commit_or_conflict, resolve_scalar
from assetflow.utils.dates import parse_date, iso
from assetflow.utils.listing import apply_filters, apply_sort, list_response
from assetflow.utils.validation import validate_choice, require_fields, coerce_number, strict_number, parse_int

logger = logging.getLogger(__name__)

assets_bp = Blueprint('assets', __name__)


def _date_param(name):
    def coerce(v):
        d = parse_date(v)
        if d is None:
            raise ValueError(name)
        return d
    return coerce


@assets_bp.get('')
@require_permissions('ASSET.READ')
def list_assets():
    session = get_db()
    q = session.query(Asset)
    scope = department_scope()
    if scope is not None:
        q = q.filter(Asset.department_id == scope)
    filter_specs = {
        'departmentId': {'coerce': int, 'op': lambda qu, v: qu.filter(Asset.department_id == v)},
        'type': {'op': lambda qu, v: qu.filter(Asset.type == v), 'validate': lambda v: v in Asset.ALL_TYPES},
        'startDate': {'coerce': _date_param('startDate'), 'op': lambda qu, v: qu.filter(Asset.bill_date >= v)},
        'endDate': {'coerce': _date_param('endDate'), 'op': lambda qu, v: qu.filter(Asset.bill_date <= v)},
        'vendorName': {'op': lambda qu, v: qu.filter(Asset.vendor_name.ilike(f'%{v}%'))},
        'updateRequestStatus': {'op': lambda qu, v: qu.filter(Asset.update_request_status == v),
                                'validate': lambda v: v in Asset.ALL_UPDATE_STATUSES},
    }
    q = apply_filters(q, filter_specs, request.args)
    allowed = {
        'billDate': Asset.bill_date,
        'billNo': Asset.bill_no,
        'vendorName': Asset.vendor_name,
        'grandTotal': Asset.grand_total,
        'createdAt': Asset.created_at,
        'id': Asset.id,
    }
    q = apply_sort(q, request.args.get('sort'), allowed, Asset.id, default=[Asset.created_at.desc()])
    return list_response(q, asset_json)


def _form_payload():
    """JSON body, or multipart fields with ``items`` sent as a JSON string."""
    if request.is_json:
        return request.get_json(silent=True) or {}, None
    data = request.form.to_dict()
    raw_items = data.get('items')
    if raw_items:
        try:
            data['items'] = json.loads(raw_items)
        except ValueError:
            abort(400, description='items must be a JSON array')
    return data, request.files.get('billFile')


def _read_pdf(upload):
    limit = current_app.config['MAX_BILL_FILE_BYTES']
    data = upload.read(limit + 1)
    if len(data) > limit:
        abort(400, description=f'Bill file exceeds {limit} bytes')
    if not looks_like_pdf(upload.filename or '', upload.mimetype, data[:5]):
        abort(400, description='Only PDF files are allowed')
    return data


@assets_bp.post('')
@require_permissions('ASSET.CREATE')
@audit_log('ASSET.CREATE', entity='Asset', entity_id_key='id', meta_keys=['billNo', 'vendorName', 'grandTotal'])
def create_asset():
    session = get_db()
    data, upload = _form_payload()
    scope = department_scope()
    department_id = data.get('department', scope)
    if department_id in (None, ''):
        abort(400, description='department required')
    department_id = parse_int(department_id, 'department')
    assert_department_access(department_id)
    if session.get(Department, department_id) is None:
        abort(400, description='department not found')
    data.setdefault('vendorName', data.get('vendor'))
    require_fields(data, 'vendorName', 'billNo', 'billDate')
    bill_date = parse_date(data.get('billDate'))
    if bill_date is None:
        abort(400, description='billDate invalid')
    type_ = validate_choice(data.get('type') or Asset.TYPE_CAPITAL, Asset.ALL_TYPES, 'type')
    raw_items = data.get('items') or []
    if not isinstance(raw_items, list) or any(not isinstance(i, dict) for i in raw_items):
        abort(400, description='items must be a list of items')
    user_id = current_user_id()
    asset = Asset(
        department_id=department_id,
        category=str(data.get('category') or type_).lower(),
        type=type_,
        item_name=data.get('itemName'),
        quantity=strict_number(data.get('quantity', 0), 'quantity', minimum=0),
        price_per_item=strict_number(data.get('pricePerItem', 0), 'pricePerItem', minimum=0),
        vendor_name=data['vendorName'],
        vendor_address=data.get('vendorAddress'),
        contact_number=data.get('contactNumber'),
        email=data.get('email'),
        bill_no=str(data['billNo']),
        bill_date=bill_date,
        college_isr_no=data.get('collegeISRNo'),
        it_isr_no=data.get('itISRNo'),
        igst=coerce_number(data.get('igst')),
        cgst=coerce_number(data.get('cgst')),
        sgst=coerce_number(data.get('sgst')),
        remark=data.get('remark'),
        items=normalize_items(raw_items),
        created_by=user_id,
    )
    refresh_asset_totals(asset)
    if not asset.items:
        # single-line bills record the grand total printed on the bill, if any
        grand = coerce_number(data.get('grandTotal'))
        asset.grand_total = grand or asset.total_amount
    if upload is not None:
        asset.bill_file_id = put_blob(upload.filename, _read_pdf(upload), PDF_CONTENT_TYPE, user_id)
    session.add(asset)
    session.commit()
    logger.info('asset %s created by user %s (bill %s)', asset.id, user_id, asset.bill_no)
    return {'success': True, 'data': asset_json(asset)}, 201


def _load_asset(asset_id: int) -> Asset:
    asset = get_db().get(Asset, asset_id)
    if not asset:
        abort(404, description='Asset not found')
    assert_department_access(asset.department_id)
    return asset


@assets_bp.get('/<int:asset_id>')
@require_permissions('ASSET.READ')
def get_asset(asset_id: int):
    return {'success': True, 'data': asset_json(_load_asset(asset_id))}


# Header fields an admin may overwrite in place; totals are derived
EDITABLE_FIELDS = [f for f in FIELD_COLUMNS if f is not ProposableField.GRAND_TOTAL]
UNAUDITED_KEYS = ('createdAt', 'updatedAt', 'version')


def _edit_snapshot(asset: Asset):
    body = asset_json(asset)
    for key in UNAUDITED_KEYS:
        body.pop(key, None)
    return body


def _edit_meta(data, rv, args, kwargs):
    return {
        'billNo': data.get('billNo'),
        'reason': data.get('reason'),
        'officerName': data.get('officerName'),
        'changes': data.get('changes'),
    }


@assets_bp.put('/<int:asset_id>')
@require_permissions('ASSET.UPDATE')
@audit_log('ASSET.UPDATE', entity='Asset', entity_id_arg='asset_id', meta_builder=_edit_meta)
def update_asset(asset_id: int):
    """Overwrite header fields and/or the item list of an asset.

    Only keys present in the body change. ``reason`` and ``officerName`` are
    required and land in the audit entry together with the before/after values.
    """
    session = get_db()
    data, upload = _form_payload()
    require_fields(data, 'reason', 'officerName')
    asset = _load_asset(asset_id)
    if asset.update_request_status == Asset.UPDATE_PENDING:
        abort(409, description='Resolve the pending update request before editing this asset')

    resolved = [(f, resolve_scalar(FieldChange(f, data[f.value]))) for f in EDITABLE_FIELDS if f.value in data]
    items = None
    if 'items' in data:
        raw_items = data['items'] or []
        if not isinstance(raw_items, list) or any(not isinstance(i, dict) for i in raw_items):
            abort(400, description='items must be a list of items')
        items = normalize_items(raw_items)
    department_id = None
    if data.get('department') not in (None, ''):
        department_id = parse_int(data['department'], 'department')
        if session.get(Department, department_id) is None:
            abort(400, description='department not found')
    grand_total = None
    if data.get('grandTotal') not in (None, ''):
        grand_total = strict_number(data['grandTotal'], 'grandTotal', minimum=0)
    pdf = _read_pdf(upload) if upload is not None else None
    if not resolved and items is None and department_id is None and grand_total is None and pdf is None:
        abort(400, description='No changes supplied')

    before = _edit_snapshot(asset)
    for field, value in resolved:
        setattr(asset, FIELD_COLUMNS[field], value)
    if department_id is not None:
        asset.department_id = department_id
    if items is not None:
        asset.items = items
    unit_price_changed = any(f in (ProposableField.QUANTITY, ProposableField.PRICE_PER_ITEM) for f, _ in resolved)
    if items is not None or unit_price_changed:
        refresh_asset_totals(asset)
        if not asset.items:
            asset.grand_total = asset.total_amount
    if grand_total is not None:
        asset.grand_total = grand_total
    if pdf is not None:
        old_id = asset.bill_file_id
        asset.bill_file_id = put_blob(upload.filename, pdf, PDF_CONTENT_TYPE, current_user_id())
        delete_blob(old_id)
    commit_or_conflict(session)
    session.refresh(asset)
    after = _edit_snapshot(asset)
    changes = {k: {'before': before[k], 'after': after[k]} for k in after if before.get(k) != after[k]}
    logger.info('asset %s edited by user %s: %s', asset.id, current_user_id(), sorted(changes))
    return {
        'success': True,
        'data': asset_json(asset),
        'changes': changes,
        'reason': data['reason'],
        'officerName': data['officerName'],
    }


def _deletion_meta(data, rv, args, kwargs):
    body = request.get_json(silent=True) or {}
    return {'billNo': data.get('billNo'), 'reason': body.get('reason')}


@assets_bp.delete('/<int:asset_id>')
@require_permissions('ASSET.DELETE')
@audit_log('ASSET.DELETE', entity='Asset', entity_id_arg='asset_id', meta_builder=_deletion_meta)
def delete_asset(asset_id: int):
    session = get_db()
    asset = _load_asset(asset_id)
    body = request.get_json(silent=True) or {}
    require_fields(body, 'reason')
    bill_no = asset.bill_no
    delete_blob(asset.bill_file_id)
    session.delete(asset)
    session.commit()
    return {'success': True, 'data': {'id': asset_id, 'billNo': bill_no}}


def _item_edit_meta(data, rv, args, kwargs):
    body = request.get_json(silent=True) or {}
    return {
        'itemIndex': body.get('itemIndex'),
        'reason': body.get('reason'),
        'officerName': body.get('officerName'),
        'grandTotal': data.get('grandTotal'),
    }


def _item_edit_target():
    body = request.get_json(silent=True) or {}
    require_fields(body, 'reason', 'officerName')
    if 'itemIndex' not in body:
        abort(400, description='itemIndex required')
    index = parse_int(body['itemIndex'], 'itemIndex')
    return body, index


@assets_bp.put('/<int:asset_id>/items')
@require_permissions('ASSET.UPDATE')
@audit_log('ASSET.ITEM.UPDATE', entity='Asset', entity_id_arg='asset_id', meta_builder=_item_edit_meta)
def update_asset_item(asset_id: int):
    body, index = _item_edit_target()
    updated = body.get('updatedItem')
    if not isinstance(updated, dict):
        abort(400, description='updatedItem must be an object')
    asset = _load_asset(asset_id)
    items = list(asset.items or [])
    if not 0 <= index < len(items):
        abort(400, description='Invalid item index')
    items[index] = normalize_item(updated)
    asset.items = items
    refresh_asset_totals(asset)
    commit_or_conflict(get_db())
    return {'success': True, 'data': asset_json(asset)}


@assets_bp.delete('/<int:asset_id>/items')
@require_permissions('ASSET.UPDATE')
@audit_log('ASSET.ITEM.DELETE', entity='Asset', entity_id_arg='asset_id', meta_builder=_item_edit_meta)
def delete_asset_item(asset_id: int):
    _, index = _item_edit_target()
    asset = _load_asset(asset_id)
    items = list(asset.items or [])
    if not 0 <= index < len(items):
        abort(400, description='Invalid item index')
    if len(items) == 1:
        abort(400, description='Cannot delete the last item. Delete the entire asset instead.')
    del items[index]
    asset.items = items
    refresh_asset_totals(asset)
    commit_or_conflict(get_db())
    return {'success': True, 'data': asset_json(asset)}


@assets_bp.post('/<int:asset_id>/bill')
@require_permissions('ASSET.CREATE')
@audit_log('ASSET.BILL.UPLOAD', entity='Asset', entity_id_arg='asset_id', meta_keys=['billFileId'])
def upload_bill(asset_id: int):
    asset = _load_asset(asset_id)
    upload = request.files.get('billFile')
    if upload is None:
        abort(400, description='billFile required')
    data = _read_pdf(upload)
    old_id = asset.bill_file_id
    asset.bill_file_id = put_blob(upload.filename, data, PDF_CONTENT_TYPE, current_user_id())
    delete_blob(old_id)
    commit_or_conflict(get_db())
    return {'success': True, 'data': asset_json(asset)}, 201


@assets_bp.get('/<int:asset_id>/bill')
@require_permissions('ASSET.READ')
def download_bill(asset_id: int):
    asset = _load_asset(asset_id)
    blob = get_blob(asset.bill_file_id)
    if blob is None:
        abort(404, description='Bill file not found')
    inline = request.args.get('inline') in ('1', 'true')
    return send_file(
        io.BytesIO(blob.data),
        mimetype=blob.content_type,
        as_attachment=not inline,
        download_name=blob.filename,
    )


def asset_json(a: Asset):
    return {
        'id': a.id,
        'department': {'id': a.department.id, 'name': a.department.name, 'type': a.department.type} if a.department else None,
        'category': a.category,
        'type': a.type,
        'itemName': a.item_name,
        'quantity': a.quantity,
        'pricePerItem': a.price_per_item,
        'totalAmount': a.total_amount,
        'vendorName': a.vendor_name,
        'vendorAddress': a.vendor_address,
        'contactNumber': a.contact_number,
        'email': a.email,
        'billNo': a.bill_no,
        'billDate': iso(a.bill_date),
        'billFileId': a.bill_file_id,
        'collegeISRNo': a.college_isr_no,
        'itISRNo': a.it_isr_no,
        'igst': a.igst,
        'cgst': a.cgst,
        'sgst': a.sgst,
        'grandTotal': a.grand_total,
        'remark': a.remark,
        'items': list(a.items or []),
        'updateRequestStatus': a.update_request_status,
        'requestedFields': list(a.requested_fields or []),
        'tempValues': dict(a.temp_values or {}),
        'requestedBy': a.requested_by,
        'requestedAt': iso(a.requested_at),
        'reviewedBy': a.reviewed_by,
        'reviewedAt': iso(a.reviewed_at),
        'adminRemarks': a.admin_remarks,
        'version': a.version,
        'createdAt': iso(a.created_at),
        'updatedAt': iso(a.updated_at),
    }
