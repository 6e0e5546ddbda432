def add(client, title, day='2024-06-03', order_index=0):
    response = client.post('/api/todos', json={'title': title, 'date': day, 'order_index': order_index})
    assert response.status_code == 201
    return response.get_json()[0]


def test_list_requires_a_date(client):
    assert client.get('/api/todos').status_code == 400
    assert client.get('/api/todos?date=tomorrow').status_code == 400


def test_bulk_create_and_list_by_dates(client):
    response = client.post('/api/todos', json=[
        {'title': 'a', 'date': '2024-06-03'},
        {'title': 'b', 'date': '2024-06-04'},
        {'title': 'c', 'date': '2024-06-05'},
    ])
    assert response.status_code == 201
    assert len(response.get_json()) == 3
    rows = client.get('/api/todos?dates=2024-06-03,2024-06-05').get_json()
    assert sorted(r['title'] for r in rows) == ['a', 'c']


def test_create_validates_each_row(client):
    response = client.post('/api/todos', json=[{'title': 'ok', 'date': '2024-06-03'}, {'title': 'no date'}])
    assert response.status_code == 400
    assert client.get('/api/todos?date=2024-06-03').get_json() == []


def test_update_and_delete(client):
    todo = add(client, 'a')
    updated = client.patch(f"/api/todos/{todo['id']}", json={'completed': True}).get_json()
    assert updated['completed'] is True
    assert client.patch('/api/todos/missing', json={'completed': True}).status_code == 404
    assert client.delete(f"/api/todos/{todo['id']}").status_code == 200
    assert client.delete(f"/api/todos/{todo['id']}").status_code == 404


def test_delete_range_is_inclusive(client):
    for day in ('2024-06-01', '2024-06-02', '2024-06-03', '2024-06-04'):
        add(client, day, day=day)
    response = client.delete('/api/todos?from=2024-06-02&to=2024-06-03')
    assert response.get_json()['deleted'] == 2
    assert client.delete('/api/todos?from=2024-06-02').status_code == 400


def test_reorder_day(client):
    a = add(client, 'a', order_index=0)
    b = add(client, 'b', order_index=1)
    c = add(client, 'c', order_index=2)
    response = client.post('/api/todos/reorder', json={'date': '2024-06-03', 'ids': [c['id'], a['id'], b['id']]})
    assert response.status_code == 200
    assert [(t['title'], t['order_index']) for t in response.get_json()['items']] == [('c', 0), ('a', 1), ('b', 2)]
    assert client.post('/api/todos/reorder', json={'date': '2024-06-03'}).status_code == 400
