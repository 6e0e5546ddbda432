from row_store import RowStore, StoreWriteError


def create(client, title, **fields):
    response = client.post('/api/plans', json=dict(fields, title=title))
    assert response.status_code == 201
    return response.get_json()


def root_titles(client):
    plans = client.get('/api/plans').get_json()
    roots = [p for p in plans if p['parent_id'] is None]
    return [p['title'] for p in sorted(roots, key=lambda p: p['order_index'])]


def test_create_requires_title(client):
    response = client.post('/api/plans', json={'title': '  '})
    assert response.status_code == 400


def test_create_places_by_priority(client):
    create(client, 'A', priority='medium')
    create(client, 'B', priority='high')
    create(client, 'C', priority='medium')
    create(client, 'D', priority='low')
    assert root_titles(client) == ['B', 'C', 'A', 'D']


def test_list_puts_roots_first(client):
    parent = create(client, 'Parent')
    create(client, 'Child', parent_id=parent['id'])
    create(client, 'Other')
    plans = client.get('/api/plans').get_json()
    assert plans[-1]['title'] == 'Child'
    assert plans[-1]['depth'] == 1


def test_tree_view_respects_expansion(client):
    parent = create(client, 'Parent')
    create(client, 'Child', parent_id=parent['id'])
    full = client.get('/api/plans/tree?filter=all').get_json()
    assert [r['title'] for r in full['items']] == ['Parent', 'Child']
    assert full['items'][0]['has_children'] is True

    collapsed = client.get('/api/plans/tree?filter=all&expanded=').get_json()
    assert [r['title'] for r in collapsed['items']] == ['Parent']


def test_tree_filter_promotes_children_of_hidden_parents(client):
    parent = create(client, 'Parent')
    create(client, 'Child', parent_id=parent['id'])
    client.patch(f"/api/plans/{parent['id']}", json={'completed': True})
    pending = client.get('/api/plans/tree').get_json()
    assert [r['title'] for r in pending['items']] == ['Child']


def test_tree_rejects_unknown_filter(client):
    assert client.get('/api/plans/tree?filter=soon').status_code == 400


def test_completed_at_follows_completed(client):
    plan = create(client, 'Task')
    done = client.patch(f"/api/plans/{plan['id']}", json={'completed': True}).get_json()
    assert done['completed_at'] is not None
    undone = client.patch(f"/api/plans/{plan['id']}", json={'completed': False}).get_json()
    assert undone['completed_at'] is None


def test_reparent_updates_depth_and_closes_gap(client):
    a = create(client, 'A', priority='low')
    b = create(client, 'B', priority='low')
    c = create(client, 'C', priority='low')
    create(client, 'B1', parent_id=b['id'])
    response = client.patch(f"/api/plans/{b['id']}", json={'parent_id': a['id']})
    assert response.status_code == 200
    plans = {p['title']: p for p in client.get('/api/plans').get_json()}
    assert plans['B']['parent_id'] == a['id']
    assert plans['B']['depth'] == 1
    assert plans['B1']['depth'] == 2
    assert plans['C']['order_index'] == 1
    assert c['order_index'] == 2


def test_reparent_guard_errors(client):
    a = create(client, 'A')
    b = create(client, 'B', parent_id=a['id'])

    response = client.patch(f"/api/plans/{a['id']}", json={'parent_id': a['id']})
    assert response.status_code == 400
    assert response.get_json()['code'] == 'self_parent'

    response = client.patch(f"/api/plans/{a['id']}", json={'parent_id': b['id']})
    assert response.status_code == 409
    assert response.get_json()['code'] == 'cyclic_parent'

    response = client.patch(f"/api/plans/{a['id']}", json={'parent_id': 'missing'})
    assert response.status_code == 404


def test_max_depth_rejected_without_writes(client):
    parent = create(client, 'L0')
    for depth in range(1, 4):
        parent = create(client, f'L{depth}', parent_id=parent['id'])
    loose = create(client, 'Loose')
    response = client.patch(f"/api/plans/{loose['id']}", json={'parent_id': parent['id']})
    assert response.status_code == 400
    assert response.get_json()['code'] == 'max_depth_exceeded'
    plans = {p['title']: p for p in client.get('/api/plans').get_json()}
    assert plans['Loose']['parent_id'] is None

    response = client.post('/api/plans', json={'title': 'Too deep', 'parent_id': parent['id']})
    assert response.status_code == 400


def test_delete_cascades_and_renumbers(client):
    a = create(client, 'A', priority='low')
    create(client, 'A1', parent_id=a['id'])
    create(client, 'B', priority='low')
    response = client.delete(f"/api/plans/{a['id']}")
    assert response.get_json()['deleted'] == 2
    plans = client.get('/api/plans').get_json()
    assert [(p['title'], p['order_index']) for p in plans] == [('B', 0)]
    assert client.delete(f"/api/plans/{a['id']}").status_code == 404


def test_reorder_by_index(client):
    for title in ('A', 'B', 'C'):
        create(client, title, priority='low')
    response = client.post('/api/plans/reorder', json={'parent_id': None, 'from_index': 0, 'to_index': 2})
    assert response.status_code == 200
    assert [i['title'] for i in response.get_json()['items']] == ['B', 'C', 'A']
    assert root_titles(client) == ['B', 'C', 'A']


def test_reorder_by_drop_target(client):
    a = create(client, 'A', priority='low')
    create(client, 'B', priority='low')
    c = create(client, 'C', priority='low')
    response = client.post('/api/plans/reorder', json={'active_id': c['id'], 'over_id': a['id']})
    assert response.status_code == 200
    assert root_titles(client) == ['C', 'A', 'B']


def test_reorder_across_parents_refused(client):
    a = create(client, 'A', priority='low')
    child = create(client, 'A1', parent_id=a['id'])
    b = create(client, 'B', priority='low')
    response = client.post('/api/plans/reorder', json={'active_id': child['id'], 'over_id': b['id']})
    assert response.status_code == 400
    assert root_titles(client) == ['A', 'B']


def test_reorder_write_failure_returns_stored_order(client, monkeypatch):
    for title in ('A', 'B', 'C'):
        create(client, title, priority='low')

    def fail(self, collection, updates):
        raise StoreWriteError('disk full', collection)

    monkeypatch.setattr(RowStore, 'update_many', fail)
    response = client.post('/api/plans/reorder', json={'from_index': 0, 'to_index': 2})
    assert response.status_code == 500
    body = response.get_json()
    assert [i['title'] for i in body['items']] == ['A', 'B', 'C']


def test_swap_order(client):
    a = create(client, 'A', priority='low')
    b = create(client, 'B', priority='low')
    response = client.post('/api/plans/swap-order', json={'planId1': a['id'], 'planId2': b['id']})
    assert response.status_code == 200
    assert root_titles(client) == ['B', 'A']
    missing = client.post('/api/plans/swap-order', json={'planId1': a['id'], 'planId2': 'nope'})
    assert missing.status_code == 404


def test_ai_plan(client, monkeypatch):
    calls = {}

    def fake_suggest(title, **kwargs):
        calls['title'] = title
        return 'Action plan:\n\n1. Start'

    monkeypatch.setattr('services.plan_routes.suggest_action_plan', fake_suggest)
    response = client.post('/api/ai-plan', json={'title': 'Learn piano'})
    assert response.status_code == 200
    assert response.get_json() == {'suggestion': 'Action plan:\n\n1. Start'}
    assert calls['title'] == 'Learn piano'


def test_ai_plan_unavailable(client, monkeypatch):
    monkeypatch.setattr('services.plan_routes.suggest_action_plan', lambda title, **kwargs: None)
    assert client.post('/api/ai-plan', json={'title': 'x'}).status_code == 500


def test_reorder_failure_renumbers_in_memory_when_store_stays_down(client, store, monkeypatch):
    for idx, title in zip((0, 5, 9), ('A', 'B', 'C')):
        plan = create(client, title, priority='low')
        store.update('plans', plan['id'], {'order_index': idx})

    def fail(self, collection, updates):
        raise StoreWriteError('disk full', collection)

    monkeypatch.setattr(RowStore, 'update_many', fail)
    response = client.post('/api/plans/reorder', json={'parent_id': None, 'from_index': 0, 'to_index': 2})
    assert response.status_code == 500
    body = response.get_json()
    assert [(i['title'], i['order_index']) for i in body['items']] == [('A', 0), ('B', 1), ('C', 2)]
    stored = sorted(store.siblings('plans', None), key=lambda p: p['order_index'])
    assert [p['order_index'] for p in stored] == [0, 5, 9]


def test_create_falls_back_to_single_updates_when_shift_procedure_fails(client, monkeypatch):
    create(client, 'A', priority='medium')
    create(client, 'B', priority='low')

    def fail(self, name, args=None):
        raise StoreWriteError('procedure missing', 'plans')

    monkeypatch.setattr(RowStore, 'rpc', fail)
    create(client, 'C', priority='high')
    assert root_titles(client) == ['C', 'A', 'B']
    indexes = sorted(p['order_index'] for p in client.get('/api/plans').get_json())
    assert indexes == [0, 1, 2]


def test_delete_succeeds_when_renumbering_fails(client, monkeypatch):
    a = create(client, 'A', priority='low')
    create(client, 'B', priority='low')

    def fail(self, collection, parent_id, filters=None):
        raise StoreWriteError('disk full', collection)

    monkeypatch.setattr(RowStore, 'reconcile_siblings', fail)
    response = client.delete(f"/api/plans/{a['id']}")
    assert response.status_code == 200
    assert response.get_json()['deleted'] == 1
    assert root_titles(client) == ['B']


def test_reparent_and_field_patch_apply_together(client):
    a = create(client, 'A', priority='low')
    b = create(client, 'B', priority='low')
    response = client.patch(f"/api/plans/{b['id']}", json={'parent_id': a['id'], 'completed': True})
    assert response.status_code == 200
    moved = response.get_json()
    assert moved['parent_id'] == a['id']
    assert moved['completed'] is True
    assert moved['completed_at'] is not None


def test_ai_plan_uses_configured_model(client, app, monkeypatch):
    calls = {}

    def fake_suggest(title, **kwargs):
        calls.update(kwargs)
        return 'Action plan'

    monkeypatch.setitem(app.config, 'OPENAI_MODEL', 'test-model')
    monkeypatch.setattr('services.plan_routes.suggest_action_plan', fake_suggest)
    assert client.post('/api/ai-plan', json={'title': 'x'}).status_code == 200
    assert calls['model'] == 'test-model'
