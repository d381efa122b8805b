def test_openapi_spec_available(client):
    resp = client.get('/openapi.json')
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['openapi'].startswith('3.')
    assert body['info']['title'] == 'AssetFlow API'
    for path in ('/auth/login', '/assets', '/assets/pending-updates', '/assets/{asset_id}/request-update',
                 '/assets/{asset_id}/approve-update', '/assets/{asset_id}/reject-update', '/notifications',
                 '/departments/{dept_id}', '/admin/audit/logs'):
        assert path in body['paths'], path


def test_docs_page(client):
    resp = client.get('/docs')
    assert resp.status_code == 200
    assert b'redoc' in resp.data


def test_workflow_actions_carry_permissions(client):
    paths = client.get('/openapi.json').get_json()['paths']
    assert paths['/assets/{asset_id}/request-update']['post']['x-required-permissions'] == ['ASSET.REQUEST_UPDATE']
    assert paths['/assets/{asset_id}/approve-update']['post']['x-required-permissions'] == ['ASSET.REVIEW_UPDATE']
    assert paths['/assets/{asset_id}/reject-update']['post']['x-required-permissions'] == ['ASSET.REVIEW_UPDATE']
    assert paths['/assets/pending-updates']['get']['x-required-permissions'] == ['ASSET.REVIEW_UPDATE']
    assert '409' in paths['/assets/{asset_id}/approve-update']['post']['responses']


def test_every_operation_has_unique_operation_id(client):
    spec = client.get('/openapi.json').get_json()
    ids = [op['operationId'] for ops in spec['paths'].values() for op in ops.values()]
    assert len(ids) == len(set(ids))


def test_documented_permissions_exist(client):
    from assetflow.constants.permissions import ALL_PERMISSION_CODES
    spec = client.get('/openapi.json').get_json()
    for ops in spec['paths'].values():
        for op in ops.values():
            for code in op.get('x-required-permissions', []):
                assert code in ALL_PERMISSION_CODES, code


def test_list_caching_headers_documented(client):
    spec = client.get('/openapi.json').get_json()
    get_assets = spec['paths']['/assets']['get']
    assert 'ETag' in get_assets['responses']['200']['headers']
    assert any(p.get('$ref', '').endswith('SortAssetsParam') for p in get_assets['parameters'])


def test_openapi_document_is_deterministic(client):
    import json
    first = json.dumps(client.get('/openapi.json').get_json(), sort_keys=True)
    second = json.dumps(client.get('/openapi.json').get_json(), sort_keys=True)
    assert first == second


def test_account_and_edit_paths_documented(client):
    paths = client.get('/openapi.json').get_json()['paths']
    assert paths['/assets/{asset_id}']['put']['x-required-permissions'] == ['ASSET.UPDATE']
    assert paths['/auth/register']['post']['security'] == []
    assert '409' in paths['/admin/password-resets/{request_id}/approve']['post']['responses']
    for path in ('/auth/password-reset/request', '/auth/password-reset/confirm', '/admin/password-resets'):
        assert path in paths
