import pytest
from sqlalchemy import select
from assetflow import get_db
from assetflow.models.audit import AuditLog
from tests.seed_helpers import make_department, make_admin, make_officer, make_asset, auth_headers, reload_asset, unique


def _payload(**overrides):
    body = {
        'vendorName': 'Initech',
        'billNo': unique('INV'),
        'billDate': '2025-04-10',
        'type': 'capital',
        'category': 'Capital',
        'items': [
            {'particulars': 'Projector', 'serialNumber': 'P-9', 'quantity': 1, 'rate': 30000, 'cgst': 9, 'sgst': 9},
            {'particulars': 'Screen', 'quantity': 1, 'rate': 5000},
        ],
    }
    body.update(overrides)
    return body


def test_officer_creates_asset_in_own_department(client):
    dept = make_department()
    officer = make_officer(dept)
    resp = client.post('/assets', headers=auth_headers(client, officer), json=_payload())
    assert resp.status_code == 201, resp.get_json()
    data = resp.get_json()['data']
    assert data['department']['id'] == dept.id
    assert data['category'] == 'capital'
    assert data['items'][0]['amount'] == 30000
    assert data['items'][0]['grandTotal'] == pytest.approx(35400)
    assert data['totalAmount'] == 35000
    assert data['grandTotal'] == pytest.approx(40400)
    assert data['updateRequestStatus'] == 'none'
    assert data['version'] == 1


def test_single_line_asset_totals(client):
    officer = make_officer(make_department())
    resp = client.post('/assets', headers=auth_headers(client, officer),
                       json=_payload(items=[], quantity=3, pricePerItem=200, grandTotal=700))
    data = resp.get_json()['data']
    assert data['totalAmount'] == 600
    assert data['grandTotal'] == 700


def test_create_validation(client):
    dept = make_department()
    headers = auth_headers(client, make_officer(dept))
    assert client.post('/assets', headers=headers, json=_payload(billNo='')).status_code == 400
    assert client.post('/assets', headers=headers, json=_payload(billDate='someday')).status_code == 400
    assert client.post('/assets', headers=headers, json=_payload(type='luxury')).status_code == 400
    assert client.post('/assets', headers=headers, json=_payload(items='nope')).status_code == 400
    foreign = make_department()
    assert client.post('/assets', headers=headers, json=_payload(department=foreign.id)).status_code == 403


def test_admin_must_name_department(client):
    headers = auth_headers(client, make_admin())
    assert client.post('/assets', headers=headers, json=_payload()).status_code == 400
    dept = make_department()
    resp = client.post('/assets', headers=headers, json=_payload(department=dept.id))
    assert resp.status_code == 201


def test_list_scoped_to_officer_department(client):
    dept, other = make_department(), make_department()
    mine = make_asset(dept)
    theirs = make_asset(other)
    resp = client.get('/assets', headers=auth_headers(client, make_officer(dept)), query_string={'limit': 100})
    assert resp.status_code == 200
    ids = {a['id'] for a in resp.get_json()['data']}
    assert mine.id in ids
    assert theirs.id not in ids


def test_list_filters_and_pagination(client):
    dept = make_department()
    vendor = unique('Vendor')
    a = make_asset(dept, vendor_name=vendor, type='capital')
    b = make_asset(dept, vendor_name=vendor, type='revenue')
    headers = auth_headers(client, make_admin())
    body = client.get('/assets', headers=headers, query_string={'vendorName': vendor, 'type': 'revenue'}).get_json()
    assert [r['id'] for r in body['data']] == [b.id]
    body = client.get('/assets', headers=headers,
                      query_string={'departmentId': dept.id, 'sort': 'id', 'limit': 1}).get_json()
    assert body['pagination'] == {'total': 2, 'limit': 1, 'offset': 0, 'returned': 1}
    assert body['data'][0]['id'] == a.id
    assert client.get('/assets', headers=headers, query_string={'sort': 'colour'}).status_code == 400
    assert client.get('/assets', headers=headers, query_string={'startDate': 'x'}).status_code == 400


def test_list_date_range_and_status_filters(client):
    from datetime import date
    dept = make_department()
    early = make_asset(dept, bill_date=date(2024, 1, 1))
    late = make_asset(dept, bill_date=date(2025, 6, 1))
    headers = auth_headers(client, make_admin())
    ids = [r['id'] for r in client.get('/assets', headers=headers, query_string={
        'departmentId': dept.id, 'startDate': '2025-01-01', 'endDate': '2025-12-31'}).get_json()['data']]
    assert ids == [late.id]
    ids = [r['id'] for r in client.get('/assets', headers=headers, query_string={
        'departmentId': dept.id, 'updateRequestStatus': 'none', 'sort': '-billDate'}).get_json()['data']]
    assert ids == [late.id, early.id]


def test_list_etag_conditional(client):
    dept = make_department()
    make_asset(dept)
    headers = auth_headers(client, make_admin())
    first = client.get('/assets', headers=headers, query_string={'departmentId': dept.id})
    etag = first.headers['ETag']
    second = client.get('/assets', headers={**headers, 'If-None-Match': etag}, query_string={'departmentId': dept.id})
    assert second.status_code == 304


def test_get_asset_respects_department(client):
    dept = make_department()
    asset = make_asset(dept)
    assert client.get(f'/assets/{asset.id}', headers=auth_headers(client, make_officer(dept))).status_code == 200
    assert client.get(f'/assets/{asset.id}', headers=auth_headers(client, make_officer())).status_code == 403
    assert client.get('/assets/999999', headers=auth_headers(client, make_admin())).status_code == 404


def test_admin_edits_single_item(client):
    dept = make_department()
    asset = make_asset(dept)
    headers = auth_headers(client, make_admin())
    resp = client.put(f'/assets/{asset.id}/items', headers=headers, json={
        'itemIndex': 0, 'reason': 'wrong rate', 'officerName': 'R. Rao',
        'updatedItem': {'particulars': 'Desktop', 'quantity': 2, 'rate': 150, 'cgst': 9, 'sgst': 9},
    })
    assert resp.status_code == 200, resp.get_json()
    data = resp.get_json()['data']
    assert data['items'][0]['amount'] == 300
    assert data['totalAmount'] == 350
    assert data['grandTotal'] == pytest.approx(404)
    entry = get_db().execute(select(AuditLog).where(
        AuditLog.action == 'ASSET.ITEM.UPDATE', AuditLog.entity_id == str(asset.id))).scalar_one()
    assert entry.meta['reason'] == 'wrong rate'
    assert entry.meta['officerName'] == 'R. Rao'


def test_item_edit_validation(client):
    dept = make_department()
    asset = make_asset(dept)
    headers = auth_headers(client, make_admin())
    base = {'reason': 'r', 'officerName': 'o', 'updatedItem': {'particulars': 'x'}}
    assert client.put(f'/assets/{asset.id}/items', headers=headers, json={**base, 'itemIndex': 5}).status_code == 400
    assert client.put(f'/assets/{asset.id}/items', headers=headers, json={**base, 'itemIndex': -1}).status_code == 400
    assert client.put(f'/assets/{asset.id}/items', headers=headers,
                      json={'itemIndex': 0, 'updatedItem': {'particulars': 'x'}}).status_code == 400
    officer_headers = auth_headers(client, make_officer(dept))
    assert client.put(f'/assets/{asset.id}/items', headers=officer_headers, json={**base, 'itemIndex': 0}).status_code == 403


def test_admin_deletes_item_but_not_the_last(client):
    dept = make_department()
    asset = make_asset(dept)
    headers = auth_headers(client, make_admin())
    body = {'reason': 'duplicate line', 'officerName': 'R. Rao'}
    resp = client.delete(f'/assets/{asset.id}/items', headers=headers, json={**body, 'itemIndex': 0})
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert [i['particulars'] for i in data['items']] == ['Monitor']
    assert data['grandTotal'] == 50
    resp = client.delete(f'/assets/{asset.id}/items', headers=headers, json={**body, 'itemIndex': 0})
    assert resp.status_code == 400
    assert len(reload_asset(asset.id).items) == 1


def test_delete_asset_requires_reason_and_admin(client):
    dept = make_department()
    asset = make_asset(dept)
    officer_headers = auth_headers(client, make_officer(dept))
    assert client.delete(f'/assets/{asset.id}', headers=officer_headers, json={'reason': 'x'}).status_code == 403
    headers = auth_headers(client, make_admin())
    assert client.delete(f'/assets/{asset.id}', headers=headers, json={}).status_code == 400
    resp = client.delete(f'/assets/{asset.id}', headers=headers, json={'reason': 'entered twice'})
    assert resp.status_code == 200
    assert reload_asset(asset.id) is None
    entry = get_db().execute(select(AuditLog).where(
        AuditLog.action == 'ASSET.DELETE', AuditLog.entity_id == str(asset.id))).scalar_one()
    assert entry.meta == {'billNo': asset.bill_no, 'reason': 'entered twice'}
