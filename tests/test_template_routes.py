from datetime import timedelta

from services.validation_service import local_today


def create_template(client, title='Morning', items=None):
    response = client.post('/api/templates', json={'title': title, 'items': items or []})
    assert response.status_code == 201
    return response.get_json()


def test_create_normalizes_items(client):
    template = create_template(client, items=[
        {'title': 'Wake', 'subItems': [{'title': 'Water'}]},
        {'title': 'Read'},
    ])
    assert [(i['title'], i['depth']) for i in template['items']] == [('Wake', 0), ('Water', 1), ('Read', 0)]
    assert client.post('/api/templates', json={}).status_code == 400


def test_item_editing_endpoints(client):
    template = create_template(client)
    tid = template['id']

    first = client.post(f'/api/templates/{tid}/items', json={'title': 'Stretch'}).get_json()
    stretch_id = first['item']['id']
    second = client.post(f'/api/templates/{tid}/items', json={'title': 'Coffee', 'first': True}).get_json()
    assert [i['title'] for i in second['template']['items']] == ['Coffee', 'Stretch']

    indented = client.post(f'/api/templates/{tid}/items/{stretch_id}/indent', json={'direction': 'right'})
    assert indented.status_code == 200
    items = indented.get_json()['template']['items']
    assert items[1]['depth'] == 1

    renamed = client.patch(f'/api/templates/{tid}/items/{stretch_id}', json={'title': 'Long stretch'})
    assert renamed.get_json()['template']['items'][1]['title'] == 'Long stretch'

    dup = client.post(f'/api/templates/{tid}/items/{stretch_id}/duplicate').get_json()
    assert dup['item_id'] != stretch_id
    assert len(dup['template']['items']) == 3

    deleted = client.delete(f'/api/templates/{tid}/items/{stretch_id}').get_json()
    assert [i['title'] for i in deleted['template']['items']] == ['Coffee', 'Long stretch (copy)']


def test_item_errors(client):
    tid = create_template(client, items=[{'id': 'a', 'title': 'A'}])['id']
    assert client.patch(f'/api/templates/{tid}/items/nope', json={'title': 'x'}).status_code == 404
    assert client.post(f'/api/templates/{tid}/items/a/indent', json={}).status_code == 400
    assert client.post(f'/api/templates/{tid}/items/a/indent', json={'direction': 'up'}).status_code == 400
    assert client.post(f'/api/templates/{tid}/items', json={'parent_id': 'nope'}).status_code == 404
    assert client.post('/api/templates/missing/items', json={}).status_code == 404


def test_reorder_items(client):
    tid = create_template(client, items=[{'title': 'A'}, {'title': 'B'}])['id']
    response = client.post(f'/api/templates/{tid}/items/reorder', json={'from_index': 1, 'to_index': 0})
    assert [i['title'] for i in response.get_json()['template']['items']] == ['B', 'A']


def test_activate_materializes_todos(client, app):
    app.config['TEMPLATE_HORIZON_DAYS'] = 3
    try:
        old = create_template(client, title='Old', items=[{'title': 'Old task'}])
        client.post(f"/api/templates/{old['id']}/activate")
        template = create_template(client, items=[
            {'title': 'Wake', 'subItems': [{'title': 'Water'}]},
        ])
        response = client.post(f"/api/templates/{template['id']}/activate")
        assert response.get_json() == {'success': True, 'createdCount': 6}

        active = client.get('/api/templates?active=true').get_json()
        assert [t['id'] for t in active] == [template['id']]

        today = local_today(app.config['APP_TIMEZONE'])
        todos = client.get(f'/api/todos?date={today.isoformat()}').get_json()
        assert [(t['title'], t['order_index']) for t in todos] == [('Wake', 0), ('Water', 1)]
    finally:
        app.config['TEMPLATE_HORIZON_DAYS'] = 90


def test_check_active_fills_missing_days(client, app):
    app.config['TEMPLATE_HORIZON_DAYS'] = 3
    try:
        assert client.post('/api/templates/check-active').get_json()['applied'] is False
        template = create_template(client, items=[{'title': 'Read'}])
        client.post(f"/api/templates/{template['id']}/activate")
        again = client.post('/api/templates/check-active').get_json()
        assert again == {'applied': True, 'createdCount': 0}

        tomorrow = local_today(app.config['APP_TIMEZONE']) + timedelta(days=1)
        client.delete(f'/api/todos?from={tomorrow.isoformat()}&to={tomorrow.isoformat()}')
        refill = client.post('/api/templates/check-active').get_json()
        assert refill == {'applied': True, 'createdCount': 1}
    finally:
        app.config['TEMPLATE_HORIZON_DAYS'] = 90


def test_bulk_deactivate(client):
    template = create_template(client)
    client.post(f"/api/templates/{template['id']}/activate")
    response = client.patch('/api/templates', json={'is_active': False})
    assert response.get_json()['updated'] == 1
    refreshed = client.get(f"/api/templates/{template['id']}").get_json()
    assert refreshed['is_active'] is False
    assert refreshed['applied_from_date'] is None


def test_template_crud(client):
    template = create_template(client)
    updated = client.patch(f"/api/templates/{template['id']}", json={'description': 'daily'}).get_json()
    assert updated['description'] == 'daily'
    assert client.patch(f"/api/templates/{template['id']}", json={'title': ''}).status_code == 400
    assert client.delete(f"/api/templates/{template['id']}").status_code == 200
    assert client.get(f"/api/templates/{template['id']}").status_code == 404
