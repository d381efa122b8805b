from sqlalchemy import select
from assetflow import get_db
from assetflow.models.notification import Notification
from tests.seed_helpers import make_department, make_admin, make_officer, make_asset, auth_headers, reload_asset, submit


def test_submit_marks_asset_pending_and_notifies_admins(client):
    admin = make_admin()
    dept = make_department()
    officer = make_officer(dept)
    asset = make_asset(dept)
    headers = auth_headers(client, officer)
    resp = submit(client, headers, asset.id, ['vendorName', 'billDate'],
                  {'vendorName': 'Globex', 'billDate': '2025-03-01', 'remark': 'not requested'})
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    assert body['success'] is True
    data = body['data']
    assert data['updateRequestStatus'] == 'pending'
    assert data['requestedFields'] == ['vendorName', 'billDate']
    # only requested fields are kept
    assert data['tempValues'] == {'vendorName': 'Globex', 'billDate': '2025-03-01'}
    assert data['requestedBy'] == officer.id
    assert data['requestedAt']
    # live record untouched until approval
    assert data['vendorName'] == 'Acme Traders'

    notes = get_db().execute(select(Notification).where(
        Notification.recipient_id == admin.id, Notification.asset_id == asset.id)).scalars().all()
    assert len(notes) == 1
    assert notes[0].type == 'update_requested'
    assert notes[0].bill_no == asset.bill_no
    assert notes[0].created_by == officer.id


def test_empty_selection_rejected(client):
    dept = make_department()
    officer = make_officer(dept)
    asset = make_asset(dept)
    resp = submit(client, auth_headers(client, officer), asset.id, [], {})
    assert resp.status_code == 400
    assert resp.get_json()['message'] == 'No fields selected'
    assert reload_asset(asset.id).update_request_status == 'none'


def test_unknown_field_and_missing_value_rejected(client):
    dept = make_department()
    officer = make_officer(dept)
    asset = make_asset(dept)
    headers = auth_headers(client, officer)
    resp = submit(client, headers, asset.id, ['colour'], {'colour': 'red'})
    assert resp.status_code == 400
    assert 'colour' in resp.get_json()['message']
    resp = submit(client, headers, asset.id, ['vendorName'], {})
    assert resp.status_code == 400
    assert resp.get_json()['message'] == 'Missing proposed value for vendorName'


def test_malformed_item_payload_rejected(client):
    dept = make_department()
    officer = make_officer(dept)
    asset = make_asset(dept)
    headers = auth_headers(client, officer)
    resp = submit(client, headers, asset.id, ['singleItem'],
                  {'singleItem': {'itemIndex': 'first', 'updatedItem': {'particulars': 'x'}}})
    assert resp.status_code == 400
    resp = submit(client, headers, asset.id, ['singleItem'], {'singleItem': {'itemIndex': 0, 'action': 'update'}})
    assert resp.status_code == 400


def test_resubmitting_while_pending_conflicts(client):
    dept = make_department()
    officer = make_officer(dept)
    asset = make_asset(dept)
    headers = auth_headers(client, officer)
    assert submit(client, headers, asset.id, ['remark'], {'remark': 'first'}).status_code == 200
    resp = submit(client, headers, asset.id, ['remark'], {'remark': 'second'})
    assert resp.status_code == 409
    assert reload_asset(asset.id).temp_values == {'remark': 'first'}


def test_legacy_flat_item_payload_accepted(client):
    dept = make_department()
    officer = make_officer(dept)
    asset = make_asset(dept)
    resp = submit(client, auth_headers(client, officer), asset.id, ['singleItem'],
                  {'itemIndex': 1, 'updatedItem': {'particulars': 'Wide monitor', 'quantity': 1, 'rate': 80}, 'action': 'update'})
    assert resp.status_code == 200, resp.get_json()
    stored = reload_asset(asset.id).temp_values
    assert stored['singleItem']['itemIndex'] == 1
    assert stored['singleItem']['action'] == 'update'


def test_officer_cannot_touch_other_department(client):
    officer = make_officer(make_department())
    foreign = make_asset(make_department())
    resp = submit(client, auth_headers(client, officer), foreign.id, ['remark'], {'remark': 'x'})
    assert resp.status_code == 403


def test_admin_cannot_submit_requests(client):
    dept = make_department()
    asset = make_asset(dept)
    resp = submit(client, auth_headers(client, make_admin()), asset.id, ['remark'], {'remark': 'x'})
    assert resp.status_code == 403


def test_submit_unknown_asset_404(client):
    officer = make_officer(make_department())
    resp = submit(client, auth_headers(client, officer), 987654, ['remark'], {'remark': 'x'})
    assert resp.status_code == 404


def test_submit_requires_token(client):
    dept = make_department()
    asset = make_asset(dept)
    resp = client.post(f'/assets/{asset.id}/request-update', json={'requestedFields': ['remark'], 'tempValues': {'remark': 'x'}})
    assert resp.status_code == 401
