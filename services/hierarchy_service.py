"""Tree mutations for row-backed hierarchies (plans and the bucket list)."""
from flask import current_app, jsonify, request

from hierarchy_guard import validate_new_child, validate_reparent
from order_utils import (
    apply_updates,
    close_gaps,
    insert_with_priority,
    next_order_index,
    reconcile_order,
    reorder_siblings,
    shift_updates,
)
from row_store import RowStore, StoreWriteError
from services.validation_service import normalize_parent_id, parse_int
from tree_utils import all_ids, build_tree, depth_updates, descendant_ids, flatten_tree, order_key, siblings_of


class ReorderError(ValueError):
    """A drag request that does not describe a move inside one sibling group."""


def _merge_updates(*groups):
    merged = {}
    for group in groups:
        for update in group:
            merged.setdefault(update['id'], {'id': update['id']}).update(update)
    return list(merged.values())


def visible_rows(rows, expanded=None):
    """Flattened list view of rows; None expands everything."""
    rows = list(rows)
    if expanded is None:
        expanded = all_ids(rows)
    return flatten_tree(build_tree(rows), set(expanded))


def _shift_siblings(store, collection, shifts, shift_rpc=None):
    if not shifts:
        return
    if shift_rpc:
        try:
            store.rpc(shift_rpc, {'plan_ids': [s['id'] for s in shifts]})
            return
        except StoreWriteError as exc:
            current_app.logger.warning(
                "Bulk shift via %s failed, falling back to single updates: %s", shift_rpc, exc
            )
    for shift in shifts:
        store.update(collection, shift['id'], {'order_index': shift['order_index']})


def create_node(store, collection, values, max_depth, by_priority=True, shift_rpc=None):
    """
    Insert a row into its sibling group.

    With by_priority the position follows the priority rule and later
    siblings are pushed down first; otherwise the row is appended.
    """
    nodes = store.list(collection)
    parent_id = values.get('parent_id')
    depth = validate_new_child(parent_id, nodes, max_depth)
    siblings = siblings_of(nodes, parent_id)
    if by_priority:
        order_index = insert_with_priority(siblings, values.get('priority'))
        _shift_siblings(store, collection, shift_updates(siblings, order_index), shift_rpc)
    else:
        order_index = next_order_index(siblings)
    row = dict(values, parent_id=parent_id, order_index=order_index, depth=depth)
    return store.insert(collection, row)


def reparent_node(store, collection, node_id, new_parent_id, max_depth, patch=None):
    """
    Move a row (with its subtree) under new_parent_id.

    The row is appended to its new sibling group, the subtree depths follow,
    and the old group is renumbered. Field changes in `patch` go into the
    same batch, so the move and the edit commit together.
    """
    nodes = store.list(collection)
    node = next((n for n in nodes if n['id'] == node_id), None)
    if node is None:
        return None
    old_parent_id = node.get('parent_id')
    if old_parent_id == new_parent_id:
        if patch:
            return store.update(collection, node_id, patch)
        return node
    new_depth = validate_reparent(node_id, new_parent_id, nodes, max_depth)
    order_index = next_order_index(siblings_of(nodes, new_parent_id))
    updates = _merge_updates(
        [dict(patch or {}, id=node_id, parent_id=new_parent_id, order_index=order_index)],
        depth_updates(nodes, node_id, new_depth),
        close_gaps(siblings_of(nodes, old_parent_id), removed_id=node_id),
    )
    store.update_many(collection, updates)
    current_app.logger.info("Moved %s %s from %s to %s", collection, node_id, old_parent_id, new_parent_id)
    return store.get(collection, node_id)


def drag_indexes(nodes, active_id, over_id):
    """Translate a drop of active_id onto over_id into (parent_id, from, to)."""
    lookup = {n['id']: n for n in nodes}
    active = lookup.get(active_id)
    over = lookup.get(over_id)
    if active is None or over is None:
        raise ReorderError('Unknown row in drag request')
    if active.get('parent_id') != over.get('parent_id'):
        raise ReorderError('Rows can only be reordered within the same parent')
    siblings = siblings_of(nodes, active.get('parent_id'))
    ids = [s['id'] for s in siblings]
    return active.get('parent_id'), ids.index(active_id), ids.index(over_id)


def reorder_group(store, collection, parent_id, from_index, to_index):
    """Apply a drag inside one sibling group; returns the group in its new order."""
    siblings = store.siblings(collection, parent_id)
    try:
        updates = reorder_siblings(siblings, from_index, to_index)
    except IndexError as exc:
        raise ReorderError(str(exc)) from exc
    try:
        store.update_many(collection, updates)
    except StoreWriteError as exc:
        current_app.logger.error("Reorder of %s under %s failed: %s", collection, parent_id, exc)
        raise
    return store.siblings(collection, parent_id)


def stored_order(store, collection, parent_id):
    """
    Sibling group as stored, numbered 0..n-1.

    The renumbering is written back when the store accepts it; otherwise it is
    only applied to the returned rows.
    """
    try:
        return store.reconcile_siblings(collection, parent_id)
    except StoreWriteError as exc:
        current_app.logger.warning("Could not renumber %s under %s: %s", collection, parent_id, exc)
    rows = store.siblings(collection, parent_id)
    return sorted(apply_updates(rows, reconcile_order(rows)), key=order_key)


def reorder_request(collection, label):
    """
    Shared drag-reorder handler.

    Accepts either {active_id, over_id} (a drop of one row onto another) or
    {parent_id, from_index, to_index}. Dropping onto a row under another
    parent is refused without writing anything.
    """
    data = request.get_json(silent=True) or {}
    store = RowStore()
    try:
        if data.get('active_id') is not None:
            parent_id, from_index, to_index = drag_indexes(
                store.list(collection), str(data.get('active_id')), str(data.get('over_id'))
            )
        else:
            parent_id = normalize_parent_id(data.get('parent_id'))
            from_index = parse_int(data.get('from_index'))
            to_index = parse_int(data.get('to_index'))
            if from_index is None or to_index is None:
                return jsonify({'error': 'from_index and to_index are required'}), 400
        items = reorder_group(store, collection, parent_id, from_index, to_index)
    except ReorderError as exc:
        return jsonify({'error': str(exc)}), 400
    except StoreWriteError:
        # The batch was rolled back; answer with the stored order, made contiguous.
        items = stored_order(store, collection, parent_id)
        return jsonify({'error': f'Failed to update {label} order', 'items': items}), 500
    return jsonify({'parent_id': parent_id, 'items': items})


def delete_subtree(store, collection, node_id):
    """Delete a row and everything below it, then close the gap it left."""
    nodes = store.list(collection)
    node = next((n for n in nodes if n['id'] == node_id), None)
    if node is None:
        return 0
    ids = [node_id] + descendant_ids(nodes, node_id)
    removed = store.delete_many(collection, ids)
    try:
        store.reconcile_siblings(collection, node.get('parent_id'))
    except StoreWriteError as exc:
        # The rows are gone; the gap is closed by the next reconcile.
        current_app.logger.warning("Deleted %s %s but could not renumber siblings: %s", collection, node_id, exc)
    return removed
