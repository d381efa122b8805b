import pytest
from sqlalchemy import select
from assetflow import get_db
from assetflow.models.audit import AuditLog
from tests.seed_helpers import make_department, make_admin, make_officer, make_asset, auth_headers, reload_asset, submit


def _edit(client, headers, asset_id, **body):
    body.setdefault('reason', 'Bill re-issued by vendor')
    body.setdefault('officerName', 'R. Rao')
    return client.put(f'/assets/{asset_id}', headers=headers, json=body)


def test_admin_edits_header_fields_with_audit(client):
    dept = make_department()
    asset = make_asset(dept)
    resp = _edit(client, auth_headers(client, make_admin()), asset.id, vendorName='Globex', billDate='2025-02-20')
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    assert body['data']['vendorName'] == 'Globex'
    assert body['data']['billDate'] == '2025-02-20'
    assert body['changes'] == {
        'vendorName': {'before': 'Acme Traders', 'after': 'Globex'},
        'billDate': {'before': '2025-01-15', 'after': '2025-02-20'},
    }

    log = get_db().execute(select(AuditLog).where(
        AuditLog.action == 'ASSET.UPDATE', AuditLog.entity_id == str(asset.id))).scalar_one()
    assert log.meta['reason'] == 'Bill re-issued by vendor'
    assert log.meta['officerName'] == 'R. Rao'
    assert log.meta['changes']['vendorName'] == {'before': 'Acme Traders', 'after': 'Globex'}


def test_replacing_items_recomputes_totals(client):
    asset = make_asset(make_department())
    resp = _edit(client, auth_headers(client, make_admin()), asset.id,
                 items=[{'particulars': 'Router', 'quantity': 2, 'rate': 1000, 'cgst': 9, 'sgst': 9, 'amount': 1}])
    assert resp.status_code == 200, resp.get_json()
    stored = reload_asset(asset.id)
    assert stored.items[0]['amount'] == 2000
    assert stored.total_amount == 2000
    assert stored.grand_total == pytest.approx(2360)


def test_single_line_quantity_change(client):
    asset = make_asset(make_department(), items=[], quantity=2, price_per_item=50)
    resp = _edit(client, auth_headers(client, make_admin()), asset.id, quantity=3)
    assert resp.status_code == 200, resp.get_json()
    data = resp.get_json()['data']
    assert data['totalAmount'] == 150
    assert data['grandTotal'] == 150


@pytest.mark.parametrize('body', [
    {'reason': ''},
    {'officerName': None},
    {'billDate': 'not-a-date'},
    {'type': 'luxury'},
    {'quantity': -1},
    {'department': 999999},
    {},
])
def test_invalid_edits_rejected(client, body):
    asset = make_asset(make_department())
    resp = _edit(client, auth_headers(client, make_admin()), asset.id, **body)
    assert resp.status_code == 400
    assert reload_asset(asset.id).vendor_name == 'Acme Traders'


def test_edit_blocked_while_update_request_pending(client):
    dept = make_department()
    asset = make_asset(dept)
    submit(client, auth_headers(client, make_officer(dept)), asset.id, ['remark'], {'remark': 'x'})
    resp = _edit(client, auth_headers(client, make_admin()), asset.id, vendorName='Globex')
    assert resp.status_code == 409


def test_officers_cannot_edit_directly(client):
    dept = make_department()
    asset = make_asset(dept)
    resp = _edit(client, auth_headers(client, make_officer(dept)), asset.id, vendorName='Globex')
    assert resp.status_code == 403


def test_edit_unknown_asset(client):
    resp = _edit(client, auth_headers(client, make_admin()), 987654, vendorName='Globex')
    assert resp.status_code == 404
