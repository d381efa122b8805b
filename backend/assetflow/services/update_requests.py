from __future__ import annotations
"""Update-request workflow for assets.

A department officer proposes field changes; the proposal is stored on the
asset itself (``requested_fields`` / ``temp_values``) until an admin approves
(changes merged into the live record) or rejects it (changes discarded).

Stored columns are loose JSON; everything in this module works on the typed
view built by ``parse_proposal`` and ``workflow_state``:

    WorkflowState = NoRequest | Pending(proposal) | Approved(decision) | Rejected(decision)
    Change        = FullReplace(items) | SinglePatch(index, item or None) | FieldChange(field, value)

Lifecycle (enforced by ``UPDATE_FSM``, violations abort with 409):

    none -> pending -> approved | rejected -> pending -> ...
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from flask import abort
from sqlalchemy.orm.exc import StaleDataError
from werkzeug.exceptions import BadRequest

from assetflow.models.asset import Asset
from assetflow.models.notification import Notification
from assetflow.services.notifications import dispatch_notification, admin_ids
from assetflow.services.totals import normalize_item, normalize_items, refresh_asset_totals, sum_items
from assetflow.utils.dates import parse_date, display_date
from assetflow.utils.fsm import TransitionValidator
from assetflow.utils.validation import parse_int, strict_number, validate_choice

logger = logging.getLogger(__name__)

UPDATE_FSM = TransitionValidator({
    Asset.UPDATE_NONE: {Asset.UPDATE_PENDING},
    Asset.UPDATE_PENDING: {Asset.UPDATE_APPROVED, Asset.UPDATE_REJECTED},
    Asset.UPDATE_APPROVED: {Asset.UPDATE_PENDING},
    Asset.UPDATE_REJECTED: {Asset.UPDATE_PENDING},
}, field_name='updateRequestStatus')


class ProposableField(str, Enum):
    ITEMS = 'items'
    SINGLE_ITEM = 'singleItem'
    DELETE_ITEM = 'deleteItem'
    VENDOR_NAME = 'vendorName'
    VENDOR_ADDRESS = 'vendorAddress'
    CONTACT_NUMBER = 'contactNumber'
    EMAIL = 'email'
    BILL_NO = 'billNo'
    BILL_DATE = 'billDate'
    TYPE = 'type'
    CATEGORY = 'category'
    ITEM_NAME = 'itemName'
    QUANTITY = 'quantity'
    PRICE_PER_ITEM = 'pricePerItem'
    COLLEGE_ISR_NO = 'collegeISRNo'
    IT_ISR_NO = 'itISRNo'
    REMARK = 'remark'
    IGST = 'igst'
    CGST = 'cgst'
    SGST = 'sgst'
    GRAND_TOTAL = 'grandTotal'

    @classmethod
    def lookup(cls, name: Any) -> 'ProposableField':
        try:
            return cls(name)
        except ValueError:
            abort(400, description=f'Unknown field {name}')


F = ProposableField

# Scalar field -> Asset attribute
FIELD_COLUMNS: Dict[ProposableField, str] = {
    F.VENDOR_NAME: 'vendor_name',
    F.VENDOR_ADDRESS: 'vendor_address',
    F.CONTACT_NUMBER: 'contact_number',
    F.EMAIL: 'email',
    F.BILL_NO: 'bill_no',
    F.BILL_DATE: 'bill_date',
    F.TYPE: 'type',
    F.CATEGORY: 'category',
    F.ITEM_NAME: 'item_name',
    F.QUANTITY: 'quantity',
    F.PRICE_PER_ITEM: 'price_per_item',
    F.COLLEGE_ISR_NO: 'college_isr_no',
    F.IT_ISR_NO: 'it_isr_no',
    F.REMARK: 'remark',
    F.IGST: 'igst',
    F.CGST: 'cgst',
    F.SGST: 'sgst',
    F.GRAND_TOTAL: 'grand_total',
}
DATE_FIELDS = {F.BILL_DATE}
NUMBER_FIELDS = {F.QUANTITY, F.PRICE_PER_ITEM, F.IGST, F.CGST, F.SGST, F.GRAND_TOTAL}
REQUIRED_TEXT_FIELDS = {F.VENDOR_NAME, F.BILL_NO, F.CATEGORY}
ITEM_FIELDS = {F.ITEMS, F.SINGLE_ITEM, F.DELETE_ITEM}

ACTION_UPDATE = 'update'
ACTION_DELETE = 'delete'


# ---------------- Typed proposal ---------------- #

@dataclass(frozen=True)
class FullReplace:
    items: Tuple[Dict[str, Any], ...]
    field: ProposableField = F.ITEMS


@dataclass(frozen=True)
class SinglePatch:
    field: ProposableField
    index: int
    item: Optional[Dict[str, Any]]  # None deletes the line

    @property
    def is_delete(self) -> bool:
        return self.item is None


@dataclass(frozen=True)
class FieldChange:
    field: ProposableField
    value: Any


Change = Union[FullReplace, SinglePatch, FieldChange]


@dataclass(frozen=True)
class Proposal:
    changes: Tuple[Change, ...]

    @property
    def fields(self) -> List[str]:
        return [c.field.value for c in self.changes]

    def temp_values(self) -> Dict[str, Any]:
        """Storage form, keyed by field name."""
        out: Dict[str, Any] = {}
        for c in self.changes:
            if isinstance(c, FullReplace):
                out[c.field.value] = [dict(i) for i in c.items]
            elif isinstance(c, SinglePatch):
                if c.is_delete:
                    out[c.field.value] = {'itemIndex': c.index, 'action': ACTION_DELETE}
                else:
                    out[c.field.value] = {'itemIndex': c.index, 'updatedItem': dict(c.item), 'action': ACTION_UPDATE}
            else:
                out[c.field.value] = c.value
        return out


@dataclass(frozen=True)
class NoRequest:
    pass


@dataclass(frozen=True)
class Pending:
    proposal: Proposal
    requested_by: Optional[int]
    requested_at: Optional[datetime]


@dataclass(frozen=True)
class Decision:
    reviewed_by: Optional[int]
    reviewed_at: Optional[datetime]
    remarks: str
    requested_by: Optional[int]


@dataclass(frozen=True)
class Approved:
    decision: Decision


@dataclass(frozen=True)
class Rejected:
    decision: Decision


WorkflowState = Union[NoRequest, Pending, Approved, Rejected]


def _normalize_submission(requested_fields: Any, temp_values: Any) -> Tuple[List[str], Dict[str, Any]]:
    if requested_fields is None:
        requested_fields = []
    if not isinstance(requested_fields, list) or any(not isinstance(f, str) for f in requested_fields):
        abort(400, description='requestedFields must be a list of field names')
    if temp_values is None:
        temp_values = {}
    if not isinstance(temp_values, dict):
        abort(400, description='tempValues must be an object')
    fields: List[str] = []
    for f in requested_fields:
        if f not in fields:
            fields.append(f)
    if not fields:
        abort(400, description='No fields selected')
    # Item dialogs in older clients post the patch flat: {itemIndex, updatedItem, action}
    if len(fields) == 1 and fields[0] in (F.SINGLE_ITEM.value, F.DELETE_ITEM.value) \
            and fields[0] not in temp_values and 'itemIndex' in temp_values:
        temp_values = {fields[0]: temp_values}
    return fields, temp_values


def _parse_item(raw: Any, label: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        abort(400, description=f'{label} must be an object')
    return dict(raw)


def _parse_change(field: ProposableField, raw: Any) -> Change:
    if field is F.ITEMS:
        if isinstance(raw, list):
            return FullReplace(tuple(_parse_item(i, 'items[]') for i in raw))
        if isinstance(raw, dict) and 'itemIndex' in raw:
            return SinglePatch(F.ITEMS, parse_int(raw['itemIndex'], 'itemIndex'), _parse_item(raw.get('updatedItem'), 'updatedItem'))
        abort(400, description='items must be a list of items')
    if field in (F.SINGLE_ITEM, F.DELETE_ITEM):
        if not isinstance(raw, dict) or 'itemIndex' not in raw:
            abort(400, description=f'{field.value} requires itemIndex')
        index = parse_int(raw['itemIndex'], 'itemIndex')
        default_action = ACTION_DELETE if field is F.DELETE_ITEM else ACTION_UPDATE
        action = validate_choice(raw.get('action') or default_action, (ACTION_UPDATE, ACTION_DELETE), 'action')
        if action == ACTION_DELETE:
            return SinglePatch(field, index, None)
        return SinglePatch(field, index, _parse_item(raw.get('updatedItem'), 'updatedItem'))
    # Scalars are held as submitted; they are validated when approved
    return FieldChange(field, raw)


def parse_proposal(requested_fields: Any, temp_values: Any) -> Proposal:
    """Validate the shape of a submission and build the typed proposal.

    Aborts with 400 for an empty selection, unknown field names, a selected
    field without a proposed value, or a malformed item payload.
    """
    fields, temp_values = _normalize_submission(requested_fields, temp_values)
    changes: List[Change] = []
    for name in fields:
        field = ProposableField.lookup(name)
        if name not in temp_values:
            abort(400, description=f'Missing proposed value for {name}')
        changes.append(_parse_change(field, temp_values[name]))
    return Proposal(tuple(changes))


def workflow_state(asset: Asset) -> WorkflowState:
    status = asset.update_request_status or Asset.UPDATE_NONE
    if status == Asset.UPDATE_PENDING:
        return Pending(parse_proposal(list(asset.requested_fields or []), dict(asset.temp_values or {})),
                       asset.requested_by, asset.requested_at)
    if status in (Asset.UPDATE_APPROVED, Asset.UPDATE_REJECTED):
        decision = Decision(asset.reviewed_by, asset.reviewed_at, asset.admin_remarks or '', asset.requested_by)
        return Approved(decision) if status == Asset.UPDATE_APPROVED else Rejected(decision)
    return NoRequest()


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------- Transitions ---------------- #

def submit_proposal(asset: Asset, requested_fields: Any, temp_values: Any, caller_id: int) -> Proposal:
    UPDATE_FSM.assert_can_transition(
        asset.update_request_status, Asset.UPDATE_PENDING,
        description='An update request is already pending for this asset',
    )
    proposal = parse_proposal(requested_fields, temp_values)
    asset.requested_fields = proposal.fields
    asset.temp_values = proposal.temp_values()
    asset.requested_by = caller_id
    asset.requested_at = _now()
    asset.update_request_status = Asset.UPDATE_PENDING
    return proposal


def resolve_scalar(change: FieldChange) -> Any:
    field, value = change.field, change.value
    if field in DATE_FIELDS:
        d = parse_date(value)
        if d is None:
            abort(400, description=f'{field.value} invalid')
        return d
    if field in NUMBER_FIELDS:
        return strict_number(value, field.value, minimum=0)
    if field is F.TYPE:
        return validate_choice(value, Asset.ALL_TYPES, 'type')
    if field is F.CATEGORY:
        value = str(value).strip().lower() if value is not None else value
    if field in REQUIRED_TEXT_FIELDS and (value is None or str(value).strip() == ''):
        abort(400, description=f'{field.value} cannot be empty')
    return None if value is None else str(value)


def apply_proposal(asset: Asset, proposal: Proposal) -> None:
    """Merge proposal into the asset.

    Every value is resolved before the first attribute is touched, so a bad
    value leaves the asset unmodified.
    """
    resolved: List[Tuple[Change, Any]] = []
    for change in proposal.changes:
        if isinstance(change, FullReplace):
            resolved.append((change, normalize_items(change.items)))
        elif isinstance(change, SinglePatch):
            resolved.append((change, None if change.is_delete else normalize_item(change.item)))
        else:
            resolved.append((change, resolve_scalar(change)))

    items_changed = False
    unit_price_changed = False
    grand_total_override = None
    for change, value in resolved:
        if isinstance(change, FullReplace):
            asset.items = value
            items_changed = True
        elif isinstance(change, SinglePatch):
            items = list(asset.items or [])
            if not 0 <= change.index < len(items):
                logger.info('asset %s: item index %s out of range, patch skipped', asset.id, change.index)
                continue
            if change.is_delete:
                del items[change.index]
            else:
                items[change.index] = value
            asset.items = items
            items_changed = True
        elif change.field is F.GRAND_TOTAL:
            grand_total_override = value
        else:
            setattr(asset, FIELD_COLUMNS[change.field], value)
            if change.field in (F.QUANTITY, F.PRICE_PER_ITEM):
                unit_price_changed = True
    if items_changed:
        # sums over the resulting list; an emptied list totals zero
        asset.total_amount, asset.grand_total = sum_items(asset.items or [])
    elif unit_price_changed:
        refresh_asset_totals(asset)
    if grand_total_override is not None:
        asset.grand_total = grand_total_override


def _close_request(asset: Asset, status: str, caller_id: int, remarks: Optional[str]) -> None:
    asset.update_request_status = status
    asset.reviewed_by = caller_id
    asset.reviewed_at = _now()
    asset.admin_remarks = remarks or ''
    asset.temp_values = {}
    asset.requested_fields = []


def _pending_or_conflict(asset: Asset, target: str) -> Pending:
    UPDATE_FSM.assert_can_transition(
        asset.update_request_status, target,
        description='No pending update request for this asset',
    )
    state = workflow_state(asset)
    if not isinstance(state, Pending):
        abort(409, description='No pending update request for this asset')
    return state


def approve(asset: Asset, caller_id: int, remarks: Optional[str] = None) -> Pending:
    state = _pending_or_conflict(asset, Asset.UPDATE_APPROVED)
    apply_proposal(asset, state.proposal)
    _close_request(asset, Asset.UPDATE_APPROVED, caller_id, remarks)
    return state


def reject(asset: Asset, caller_id: int, remarks: Optional[str] = None) -> Pending:
    state = _pending_or_conflict(asset, Asset.UPDATE_REJECTED)
    _close_request(asset, Asset.UPDATE_REJECTED, caller_id, remarks)
    return state


def commit_or_conflict(session) -> None:
    """Commit; a concurrent write to the same asset turns into 409."""
    try:
        session.commit()
    except StaleDataError:
        session.rollback()
        abort(409, description='Asset was modified concurrently; reload and retry')


# ---------------- Notifications ---------------- #

def notify_submitted(asset: Asset, caller_id: int) -> None:
    for admin_id in admin_ids():
        dispatch_notification(
            admin_id,
            Notification.TYPE_UPDATE_REQUESTED,
            'Update Request Submitted',
            f'An update request for Bill #{asset.bill_no} is awaiting review.',
            asset.id, asset.bill_no, caller_id,
        )


def notify_decision(asset: Asset, state: Pending, approved: bool, caller_id: int, remarks: Optional[str]) -> None:
    if approved:
        type_, title = Notification.TYPE_UPDATE_APPROVED, 'Update Request Approved'
        message = f'Your update request for Bill #{asset.bill_no} has been approved by admin.'
        if remarks:
            message += f' Remarks: {remarks}'
    else:
        type_, title = Notification.TYPE_UPDATE_REJECTED, 'Update Request Rejected'
        message = f'Your update request for Bill #{asset.bill_no} has been rejected by admin.'
        if remarks:
            message += f' Reason: {remarks}'
    dispatch_notification(state.requested_by, type_, title, message, asset.id, asset.bill_no, caller_id)


# ---------------- Review diff ---------------- #

def _js(value: Any) -> str:
    """String form as the review UI prints it: 10.0 -> '10', None -> ''."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_item(item: Mapping[str, Any]) -> str:
    return f"{_js(item.get('particulars'))} (Qty: {_js(item.get('quantity'))}, Rate: ₹{_js(item.get('rate'))})"


def render_items(items) -> str:
    return ', '.join(render_item(i) for i in (items or []))


def render_scalar(field: ProposableField, value: Any) -> str:
    if field in DATE_FIELDS:
        return '' if value in (None, '') else display_date(value)
    if value is None or value == '':
        return ''
    return _js(value)


def render_current(asset: Asset, change: Change) -> str:
    if isinstance(change, FullReplace):
        return render_items(asset.items)
    if isinstance(change, SinglePatch):
        items = asset.items or []
        if 0 <= change.index < len(items):
            return render_item(items[change.index])
        return 'Item not found'
    return render_scalar(change.field, getattr(asset, FIELD_COLUMNS[change.field]))


def render_proposed(change: Change) -> str:
    if isinstance(change, FullReplace):
        return render_items(change.items)
    if isinstance(change, SinglePatch):
        if change.is_delete:
            return f'Delete item at index {change.index}'
        return render_item(change.item)
    return render_scalar(change.field, change.value)


def build_diff(asset: Asset) -> Tuple[Dict[str, str], Dict[str, str]]:
    """(currentValues, newValues) keyed by requested field name.

    A stored proposal that no longer parses renders as an empty diff so one bad
    row does not break the review queue.
    """
    try:
        state = workflow_state(asset)
    except BadRequest as e:
        logger.warning('asset %s: stored update request unreadable (%s)', asset.id, e.description)
        return {}, {}
    if not isinstance(state, Pending):
        return {}, {}
    current: Dict[str, str] = {}
    proposed: Dict[str, str] = {}
    for change in state.proposal.changes:
        current[change.field.value] = render_current(asset, change)
        proposed[change.field.value] = render_proposed(change)
    return current, proposed
