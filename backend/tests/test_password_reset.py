from datetime import datetime, timedelta, timezone
from sqlalchemy import select
from assetflow import get_db
from assetflow.models.audit import AuditLog
from assetflow.models.password_reset import PasswordResetToken
from tests.seed_helpers import make_department, make_admin, make_officer, auth_headers


def _request(client, email, reason=None):
    body = {'email': email}
    if reason is not None:
        body['reason'] = reason
    return client.post('/auth/password-reset/request', json=body)


def _confirm(client, token, password='fresh-pw'):
    return client.post('/auth/password-reset/confirm', json={'token': token, 'newPassword': password})


def _can_login(client, user, password):
    return client.post('/auth/login', json={'email': user.email, 'password': password}).status_code == 200


def test_admin_gets_token_immediately(client):
    admin = make_admin()
    resp = _request(client, admin.email)
    assert resp.status_code == 200, resp.get_json()
    token = resp.get_json()['token']
    assert len(token) == 64
    assert _confirm(client, token).status_code == 200
    assert _can_login(client, admin, 'fresh-pw')
    assert not _can_login(client, admin, 'pw')
    # single use
    assert _confirm(client, token, 'another').status_code == 400


def test_officer_request_approved_by_admin(client):
    officer = make_officer(make_department())
    resp = _request(client, officer.email, 'Forgot it')
    assert resp.status_code == 200, resp.get_json()
    assert 'token' not in resp.get_json()
    request_id = resp.get_json()['data']['requestId']
    assert resp.get_json()['data']['status'] == 'PENDING'

    admin = make_admin()
    headers = auth_headers(client, admin)
    listed = client.get('/admin/password-resets', headers=headers, query_string={'status': 'PENDING'})
    assert request_id in [r['id'] for r in listed.get_json()['data']]

    approved = client.post(f'/admin/password-resets/{request_id}/approve', headers=headers)
    assert approved.status_code == 200, approved.get_json()
    body = approved.get_json()
    assert body['data']['status'] == 'APPROVED'
    assert body['data']['reviewedBy']['id'] == admin.id
    assert body['data']['user']['email'] == officer.email
    assert _confirm(client, body['token']).status_code == 200
    assert _can_login(client, officer, 'fresh-pw')

    log = get_db().execute(select(AuditLog).where(
        AuditLog.action == 'AUTH.PASSWORD_RESET.APPROVE', AuditLog.entity_id == str(request_id))).scalar_one()
    assert log.meta['changes'] == {'status': {'before': 'PENDING', 'after': 'APPROVED'}}
    assert 'token' not in log.meta


def test_processed_requests_conflict(client):
    officer = make_officer(make_department())
    request_id = _request(client, officer.email, 'Locked out').get_json()['data']['requestId']
    headers = auth_headers(client, make_admin())
    rejected = client.post(f'/admin/password-resets/{request_id}/reject', headers=headers, json={'reason': 'Call IT'})
    assert rejected.status_code == 200
    assert rejected.get_json()['data']['rejectedReason'] == 'Call IT'
    assert client.post(f'/admin/password-resets/{request_id}/approve', headers=headers).status_code == 409
    assert client.post(f'/admin/password-resets/{request_id}/reject', headers=headers, json={}).status_code == 409
    assert client.post('/admin/password-resets/999999/approve', headers=headers).status_code == 404


def test_officer_request_validation(client):
    officer = make_officer(make_department())
    assert _request(client, officer.email).status_code == 400
    assert _request(client, 'ghost@example.com', 'x').status_code == 404
    assert _request(client, officer.email, 'first').status_code == 200
    assert _request(client, officer.email, 'second').status_code == 409


def test_expired_or_unknown_token_rejected(client):
    officer = make_officer(make_department())
    session = get_db()
    session.add(PasswordResetToken(user_id=officer.id, token='e' * 64,
                                   expires_at=datetime.now(timezone.utc) - timedelta(minutes=1)))
    session.commit()
    assert _confirm(client, 'e' * 64).status_code == 400
    assert _confirm(client, 'nope').status_code == 400
    assert client.post('/auth/password-reset/confirm', json={'token': 'nope'}).status_code == 400
    assert _can_login(client, officer, 'pw')


def test_reset_review_requires_user_admin(client):
    officer = make_officer(make_department())
    headers = auth_headers(client, officer)
    assert client.get('/admin/password-resets', headers=headers).status_code == 403
