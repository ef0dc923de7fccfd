"""
HTTP surface: status codes for domain errors and the main workflow endpoints
"""

import pytest

ACTOR = {'X-Actor-Id': '1'}


@pytest.fixture
def registered(client, business_units):
    response = client.post('/api/assets', headers=ACTOR, json={
        'business_unit_id': business_units[0].id,
        'item_code': 'IT-0500',
        'description': 'Laptop',
        'purchase_price': '120000.00',
        'depreciation_method': 'STRAIGHT_LINE',
        'useful_life_months': 12,
        'depreciation_start_date': '2025-01-01',
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()['data']


def test_register_asset(registered):
    assert registered['status'] == 'AVAILABLE'
    assert registered['current_book_value'] == '120000.00'
    assert registered['monthly_depreciation'] == '10000.00'
    assert registered['next_depreciation_date'] == '2025-02-01'


def test_register_validation_error(client, business_units):
    response = client.post('/api/assets', headers=ACTOR, json={
        'business_unit_id': business_units[0].id,
        'item_code': 'IT-0501',
        'description': 'Laptop',
        'purchase_price': '100.00',
        'salvage_value': '200.00',
        'depreciation_method': 'STRAIGHT_LINE',
        'useful_life_months': 12,
    })
    assert response.status_code == 400
    body = response.get_json()
    assert body['success'] is False
    assert body['error']['type'] == 'ValidationError'
    assert 'salvage_value' in body['error']['fields']


def test_missing_actor_is_rejected(client, registered):
    response = client.post(f"/api/assets/{registered['id']}/status", json={
        'status': 'DAMAGED',
        'reason': 'Dropped',
    })
    assert response.status_code == 400
    assert 'actor_id' in response.get_json()['error']['fields']


def test_unknown_asset_is_404(client, app):
    response = client.get('/api/assets/4242')
    assert response.status_code == 404
    assert response.get_json()['error']['type'] == 'RecordNotFoundError'


def test_deployment_over_http(client, registered, employee):
    response = client.post('/api/deployments', headers=ACTOR, json={
        'asset_id': registered['id'],
        'employee_id': employee.id,
    })
    assert response.status_code == 201
    deployment = response.get_json()['data']
    assert deployment['status'] == 'PENDING_ACCOUNTING_APPROVAL'

    duplicate = client.post('/api/deployments', headers=ACTOR, json={
        'asset_id': registered['id'],
        'employee_id': employee.id,
    })
    assert duplicate.status_code == 409

    pending = client.get('/api/approvals/pending').get_json()['data']
    assert [d['id'] for d in pending['deployments']] == [deployment['id']]

    approved = client.post(f"/api/deployments/{deployment['id']}/approve", headers=ACTOR, json={})
    assert approved.status_code == 200
    assert approved.get_json()['data']['status'] == 'DEPLOYED'

    asset = client.get(f"/api/assets/{registered['id']}").get_json()['data']
    assert asset['status'] == 'DEPLOYED'
    assert asset['current_employee_id'] == employee.id


def test_precondition_failure_is_422(client, registered):
    client.post(f"/api/assets/{registered['id']}/retire", headers=ACTOR, json={'reason': 'Replaced'})

    response = client.post(f"/api/assets/{registered['id']}/status", headers=ACTOR, json={
        'status': 'DAMAGED',
        'reason': 'Dropped',
    })
    assert response.status_code == 422
    assert response.get_json()['error']['rule'] == 'override_source'


def test_depreciation_run_and_reports(client, registered):
    response = client.post('/api/depreciation/run', headers=ACTOR, json={'as_of': '2025-02-01'})
    assert response.status_code == 200
    summary = response.get_json()['data']
    assert summary['processed'] == 1
    assert summary['total_depreciation'] == '10000.00'

    rerun = client.post('/api/depreciation/run', headers=ACTOR, json={'as_of': '2025-02-01'})
    assert rerun.get_json()['data']['processed'] == 0

    history = client.get(f"/api/depreciation/assets/{registered['id']}/history").get_json()['data']
    assert len(history['entries']) == 1

    rows = client.get('/api/depreciation/summary').get_json()['data']
    assert len(rows) == 1
    assert rows[0]['accumulated_depreciation'] == '10000.00'
    assert rows[0]['book_value'] == '110000.00'
    assert rows[0]['by_method']['STRAIGHT_LINE']['asset_count'] == 1


def test_schedule_preview(client, registered):
    data = client.get(f"/api/depreciation/assets/{registered['id']}/schedule").get_json()['data']
    assert len(data['schedule']) == 12
    assert data['preview']['monthly_amount'] == '10000.00'


def test_bad_date_is_validation_error(client, registered):
    response = client.post('/api/depreciation/run', headers=ACTOR, json={'as_of': 'next tuesday'})
    assert response.status_code == 400
    assert 'as_of' in response.get_json()['error']['fields']


def test_eligible_lists(client, registered, employee):
    client.post('/api/deployments', headers=ACTOR, json={
        'asset_id': registered['id'],
        'employee_id': employee.id,
    })

    deployable = client.get('/api/assets/eligible/deployment').get_json()['data']
    disposable = client.get('/api/assets/eligible/disposal').get_json()['data']
    assert deployable == [], "A pending deployment takes the asset off the list"
    assert disposable == []

    unknown = client.get('/api/assets/eligible/repair')
    assert unknown.status_code == 400
