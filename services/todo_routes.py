"""Daily todo route handlers."""
from flask import current_app, jsonify, request

from order_utils import reorder_to_ids
from row_store import RowStore, StoreWriteError
from services.validation_service import parse_bool, parse_day_value, parse_id_list, parse_int

COLLECTION = 'todos'


def _todo_values(data, partial=False):
    """Column values from a request body; returns (values, error)."""
    values = {}
    if 'title' in data or not partial:
        title = (data.get('title') or '').strip()
        if not title:
            return None, 'title is required'
        values['title'] = title
    if 'date' in data or not partial:
        day = parse_day_value(data.get('date'))
        if day is None:
            return None, 'date must be YYYY-MM-DD'
        values['date'] = day
    if 'description' in data:
        values['description'] = (data.get('description') or '').strip() or None
    if 'completed' in data:
        values['completed'] = parse_bool(data.get('completed'))
    if 'order_index' in data:
        order_index = parse_int(data.get('order_index'))
        if order_index is None or order_index < 0:
            return None, 'order_index must be a non-negative integer'
        values['order_index'] = order_index
    if 'template_id' in data:
        values['template_id'] = data.get('template_id') or None
    return values, None


def list_todos():
    store = RowStore()
    dates_raw = request.args.get('dates')
    date_raw = request.args.get('date')
    if dates_raw:
        days = [parse_day_value(d) for d in parse_id_list(dates_raw)]
        if not days or any(d is None for d in days):
            return jsonify({'error': 'dates must be a comma separated list of YYYY-MM-DD'}), 400
        return jsonify(store.list(COLLECTION, {'date': days}, order_by=['order_index']))
    if date_raw:
        day = parse_day_value(date_raw)
        if day is None:
            return jsonify({'error': 'date must be YYYY-MM-DD'}), 400
        return jsonify(store.list(COLLECTION, {'date': day}, order_by=['order_index']))
    return jsonify({'error': 'date or dates parameter required'}), 400


def create_todos():
    """Create one todo, or many when the body is a list."""
    body = request.get_json(silent=True)
    if body is None:
        return jsonify({'error': 'JSON body required'}), 400
    raw_rows = body if isinstance(body, list) else [body]
    rows = []
    for raw in raw_rows:
        if not isinstance(raw, dict):
            return jsonify({'error': 'each todo must be an object'}), 400
        values, error = _todo_values(raw)
        if error:
            return jsonify({'error': error}), 400
        values.setdefault('order_index', 0)
        rows.append(values)
    try:
        created = RowStore().insert_many(COLLECTION, rows)
    except StoreWriteError as exc:
        current_app.logger.error("Error creating todos: %s", exc)
        return jsonify({'error': 'Failed to create todos'}), 500
    return jsonify(created), 201


def delete_todo_range():
    start = parse_day_value(request.args.get('from'))
    end = parse_day_value(request.args.get('to'))
    if not start or not end:
        return jsonify({'error': 'from and to parameters required'}), 400
    try:
        removed = RowStore().delete_where(COLLECTION, ranges={'date': (start, end)})
    except StoreWriteError as exc:
        current_app.logger.error("Error deleting todos %s..%s: %s", start, end, exc)
        return jsonify({'error': 'Failed to delete todos'}), 500
    return jsonify({'success': True, 'deleted': removed})


def update_todo(todo_id):
    values, error = _todo_values(request.get_json(silent=True) or {}, partial=True)
    if error:
        return jsonify({'error': error}), 400
    try:
        todo = RowStore().update(COLLECTION, todo_id, values)
    except StoreWriteError as exc:
        current_app.logger.error("Error updating todo %s: %s", todo_id, exc)
        return jsonify({'error': 'Failed to update todo'}), 500
    if todo is None:
        return jsonify({'error': 'Todo not found'}), 404
    return jsonify(todo)


def delete_todo(todo_id):
    try:
        removed = RowStore().delete(COLLECTION, todo_id)
    except StoreWriteError as exc:
        current_app.logger.error("Error deleting todo %s: %s", todo_id, exc)
        return jsonify({'error': 'Failed to delete todo'}), 500
    if not removed:
        return jsonify({'error': 'Todo not found'}), 404
    return jsonify({'success': True})


def reorder_todos():
    data = request.get_json(silent=True) or {}
    day = parse_day_value(data.get('date'))
    ids = parse_id_list(data.get('ids'))
    if day is None or not ids:
        return jsonify({'error': 'date and ids array required'}), 400
    store = RowStore()
    todos = store.list(COLLECTION, {'date': day}, order_by=['order_index'])
    updates = reorder_to_ids(todos, ids)
    try:
        store.update_many(COLLECTION, updates)
    except StoreWriteError as exc:
        current_app.logger.error("Error reordering todos for %s: %s", day, exc)
        return jsonify({
            'error': 'Failed to update todo order',
            'items': store.list(COLLECTION, {'date': day}, order_by=['order_index']),
        }), 500
    return jsonify({'updated': len(updates), 'items': store.list(COLLECTION, {'date': day}, order_by=['order_index'])})
