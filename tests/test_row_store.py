import pytest

from row_store import StoreWriteError


def seed(store, *titles, parent_id=None):
    return [
        store.insert('plans', {'title': title, 'parent_id': parent_id, 'order_index': idx})
        for idx, title in enumerate(titles)
    ]


def test_insert_and_get_round_trip(store):
    row = store.insert('plans', {'title': 'x', 'due_date': '2024-01-05', 'not_a_column': 1})
    assert row['due_date'] == '2024-01-05'
    assert store.get('plans', row['id'])['title'] == 'x'
    assert store.get('plans', 'missing') is None


def test_unknown_collection(store):
    with pytest.raises(ValueError):
        store.list('widgets')


def test_list_filters_ranges_and_order(store):
    store.insert_many('todos', [
        {'title': 'a', 'date': '2024-01-01', 'order_index': 1},
        {'title': 'b', 'date': '2024-01-02', 'order_index': 0},
        {'title': 'c', 'date': '2024-01-03', 'order_index': 0},
    ])
    rows = store.list('todos', ranges={'date': ('2024-01-01', '2024-01-02')}, order_by=['order_index'])
    assert [r['title'] for r in rows] == ['b', 'a']
    assert store.count('todos', {'title': ['a', 'c']}) == 2
    assert [r['title'] for r in store.list('todos', order_by=['-date'], limit=1)] == ['c']


def test_list_paged_reads_everything(store):
    seed(store, 'a', 'b', 'c', 'd', 'e')
    rows = store.list_paged('plans', order_by=['order_index'], page_size=2)
    assert [r['title'] for r in rows] == ['a', 'b', 'c', 'd', 'e']


def test_update_many_is_all_or_nothing(store):
    a, b = seed(store, 'a', 'b')
    with pytest.raises(StoreWriteError):
        store.update_many('plans', [
            {'id': a['id'], 'order_index': 5},
            {'id': b['id'], 'title': None},
        ])
    assert store.get('plans', a['id'])['order_index'] == 0


def test_update_missing_row(store):
    assert store.update('plans', 'missing', {'title': 'x'}) is None


def test_reconcile_siblings_repairs_gaps(store):
    a, b, c = seed(store, 'a', 'b', 'c')
    store.update_many('plans', [{'id': a['id'], 'order_index': 4}, {'id': b['id'], 'order_index': 5}])
    rows = store.reconcile_siblings('plans', None)
    assert [(r['title'], r['order_index']) for r in rows] == [('c', 0), ('a', 1), ('b', 2)]


def test_named_procedures(store):
    a, b, c = seed(store, 'a', 'b', 'c')
    store.rpc('swap_plan_order', {'plan_id_1': a['id'], 'plan_id_2': c['id']})
    assert store.get('plans', a['id'])['order_index'] == 2
    assert store.rpc('increment_plan_order_index', {'plan_ids': [b['id']]}) == 1
    assert store.get('plans', b['id'])['order_index'] == 2
    with pytest.raises(ValueError):
        store.rpc('drop_everything')


def test_delete_where_range(store):
    store.insert_many('todos', [
        {'title': 'a', 'date': '2024-01-01'},
        {'title': 'b', 'date': '2024-01-09'},
    ])
    assert store.delete_where('todos', ranges={'date': ('2024-01-05', None)}) == 1
    assert store.delete_many('todos', []) == 0
    assert not store.delete('todos', 'missing')
