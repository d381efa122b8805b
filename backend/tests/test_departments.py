from tests.seed_helpers import make_department, make_admin, make_officer, make_asset, auth_headers, unique


def test_list_departments_sorted_by_name(client):
    make_department(name='zz ' + unique('Dept'))
    make_department(name='aa ' + unique('Dept'))
    resp = client.get('/departments', headers=auth_headers(client, make_officer()))
    assert resp.status_code == 200
    body = resp.get_json()
    names = [d['name'] for d in body['data']]
    assert names == sorted(names)
    assert body['count'] == len(names)


def test_admin_department_crud(client):
    headers = auth_headers(client, make_admin())
    name = unique('Department of Physics')
    resp = client.post('/departments', headers=headers, json={'name': name, 'type': 'Academic'})
    assert resp.status_code == 201, resp.get_json()
    dept_id = resp.get_json()['data']['id']

    assert client.post('/departments', headers=headers, json={'name': name, 'type': 'Academic'}).status_code == 400
    assert client.post('/departments', headers=headers, json={'name': unique('D'), 'type': 'Secret'}).status_code == 400

    resp = client.put(f'/departments/{dept_id}', headers=headers, json={'type': 'Service'})
    assert resp.status_code == 200
    assert resp.get_json()['data']['type'] == 'Service'

    resp = client.delete(f'/departments/{dept_id}', headers=headers)
    assert resp.status_code == 200
    assert client.delete(f'/departments/{dept_id}', headers=headers).status_code == 404


def test_rename_to_existing_name_rejected(client):
    headers = auth_headers(client, make_admin())
    a, b = make_department(), make_department()
    resp = client.put(f'/departments/{b.id}', headers=headers, json={'name': a.name})
    assert resp.status_code == 400


def test_department_with_assets_cannot_be_deleted(client):
    dept = make_department()
    make_asset(dept)
    resp = client.delete(f'/departments/{dept.id}', headers=auth_headers(client, make_admin()))
    assert resp.status_code == 409


def test_deleting_department_detaches_its_users(client):
    from assetflow import get_db
    from assetflow.models.authz import User
    dept = make_department()
    officer = make_officer(dept)
    resp = client.delete(f'/departments/{dept.id}', headers=auth_headers(client, make_admin()))
    assert resp.status_code == 200
    get_db().expire_all()
    assert get_db().get(User, officer.id).department_id is None


def test_officer_cannot_manage_departments(client):
    headers = auth_headers(client, make_officer())
    assert client.post('/departments', headers=headers, json={'name': unique('D'), 'type': 'Major'}).status_code == 403
