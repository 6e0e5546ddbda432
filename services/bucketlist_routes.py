"""Bucket list route handlers."""
from flask import current_app, jsonify, request

from hierarchy_guard import GuardError
from order_utils import next_order_index
from row_store import RowStore, StoreWriteError
from services.hierarchy_service import create_node, delete_subtree, reorder_request, reparent_node, visible_rows
from services.validation_service import (
    normalize_category,
    normalize_parent_id,
    normalize_priority,
    parse_bool,
    parse_day_value,
    parse_id_list,
    parse_int,
    tags_to_string,
    utc_now_naive,
)
from tree_utils import siblings_of

COLLECTION = 'bucketlist'
DEFAULT_TITLE = 'New bucket list item'


def _max_depth():
    return current_app.config.get('BUCKETLIST_MAX_DEPTH', 3)


def _matches(item, query):
    query = query.lower()
    return query in (item.get('title') or '').lower() or query in (item.get('description') or '').lower()


def _editable_fields(data, current=None):
    """Translate a request body into column values; returns (values, error)."""
    values = {}
    if 'title' in data:
        title = (data.get('title') or '').strip()
        if not title:
            return None, 'title cannot be empty'
        values['title'] = title
    if 'description' in data:
        values['description'] = (data.get('description') or '').strip() or None
    if 'category' in data:
        values['category'] = normalize_category(data.get('category'))
    if 'priority' in data:
        values['priority'] = normalize_priority(data.get('priority'))
    if 'progress' in data:
        progress = parse_int(data.get('progress'))
        if progress is None:
            return None, 'progress must be an integer'
        values['progress'] = max(0, min(100, progress))
    if 'target_date' in data:
        raw = data.get('target_date')
        values['target_date'] = parse_day_value(raw) if raw else None
        if raw and values['target_date'] is None:
            return None, 'target_date must be YYYY-MM-DD'
    if 'tags' in data:
        values['tags'] = tags_to_string(data.get('tags')) or None
    if 'completed' in data:
        completed = parse_bool(data.get('completed'))
        values['completed'] = completed
        if completed and not (current or {}).get('completed'):
            values['completed_at'] = utc_now_naive()
        elif not completed:
            values['completed_at'] = None
    return values, None


def list_items():
    show_completed = parse_bool(request.args.get('showCompleted'), default=False)
    filters = {} if show_completed else {'completed': False}
    return jsonify(RowStore().list(COLLECTION, filters, order_by=['order_index']))


def item_tree():
    """Filtered, flattened bucket list; a parent hidden by a filter leaves its children at root."""
    show_completed = parse_bool(request.args.get('showCompleted'), default=False)
    filters = {} if show_completed else {'completed': False}
    category = request.args.get('category', 'all')
    if category and category != 'all':
        filters['category'] = normalize_category(category)
    rows = RowStore().list(COLLECTION, filters, order_by=['order_index'])
    query = (request.args.get('q') or '').strip()
    if query:
        rows = [row for row in rows if _matches(row, query)]
    expanded_raw = request.args.get('expanded')
    expanded = parse_id_list(expanded_raw) if expanded_raw is not None else None
    return jsonify({'items': visible_rows(rows, expanded), 'total': len(rows)})


def create_item():
    data = request.get_json(silent=True) or {}
    values, error = _editable_fields(data)
    if error:
        return jsonify({'error': error}), 400
    values.setdefault('title', DEFAULT_TITLE)
    values.setdefault('category', 'general')
    values.setdefault('priority', 'medium')
    values.setdefault('progress', 0)
    values['completed'] = False
    values['completed_at'] = None
    values['parent_id'] = normalize_parent_id(data.get('parent_id'))
    try:
        item = create_node(RowStore(), COLLECTION, values, _max_depth(), by_priority=False)
    except GuardError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except StoreWriteError as exc:
        current_app.logger.error("Error creating bucketlist item: %s", exc)
        return jsonify({'error': 'Failed to create bucketlist item'}), 500
    return jsonify(item), 201


def update_item(item_id):
    store = RowStore()
    current = store.get(COLLECTION, item_id)
    if current is None:
        return jsonify({'error': 'Item not found'}), 404
    data = request.get_json(silent=True) or {}
    values, error = _editable_fields(data, current)
    if error:
        return jsonify({'error': error}), 400
    try:
        if 'parent_id' in data:
            new_parent_id = normalize_parent_id(data.get('parent_id'))
            item = reparent_node(store, COLLECTION, item_id, new_parent_id, _max_depth(), patch=values)
        else:
            item = store.update(COLLECTION, item_id, values) if values else store.get(COLLECTION, item_id)
    except GuardError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except StoreWriteError as exc:
        current_app.logger.error("Error updating bucketlist item %s: %s", item_id, exc)
        return jsonify({'error': 'Failed to update bucketlist item'}), 500
    return jsonify(item)


def delete_item(item_id):
    try:
        removed = delete_subtree(RowStore(), COLLECTION, item_id)
    except StoreWriteError as exc:
        current_app.logger.error("Error deleting bucketlist item %s: %s", item_id, exc)
        return jsonify({'error': 'Failed to delete bucketlist item'}), 500
    if not removed:
        return jsonify({'error': 'Item not found'}), 404
    return jsonify({'success': True, 'deleted': removed})


def duplicate_item(item_id):
    """Copy a single row (children stay with the original) to the end of its group."""
    store = RowStore()
    source = store.get(COLLECTION, item_id)
    if source is None:
        return jsonify({'error': 'Item not found'}), 404
    siblings = siblings_of(store.list(COLLECTION, {'parent_id': source['parent_id']}), source['parent_id'])
    copy = {
        key: value for key, value in source.items()
        if key not in ('id', 'created_at', 'updated_at', 'completed_at')
    }
    copy.update({
        'title': f"{source['title']} (copy)",
        'completed': False,
        'completed_at': None,
        'tags': tags_to_string(source.get('tags')) or None,
        'order_index': next_order_index(siblings),
    })
    try:
        item = store.insert(COLLECTION, copy)
    except StoreWriteError as exc:
        current_app.logger.error("Error duplicating bucketlist item %s: %s", item_id, exc)
        return jsonify({'error': 'Failed to duplicate bucketlist item'}), 500
    return jsonify(item), 201


def reorder_items():
    return reorder_request(COLLECTION, 'bucketlist')
