"""Plan route handlers."""
from flask import current_app, jsonify, request

from hierarchy_guard import GuardError
from row_store import RowStore, StoreWriteError
from services.ai_gateway import suggest_action_plan
from services.hierarchy_service import (
    create_node,
    delete_subtree,
    reorder_request,
    reparent_node,
    visible_rows,
)
from services.validation_service import (
    PLAN_FILTERS,
    normalize_parent_id,
    normalize_priority,
    parse_bool,
    parse_day_value,
    parse_id_list,
    utc_now_naive,
)

COLLECTION = 'plans'


def _max_depth():
    return current_app.config.get('PLAN_MAX_DEPTH', 3)


def _guard_response(exc):
    return jsonify(exc.to_dict()), exc.status_code


def list_plans():
    store = RowStore()
    plans = store.list(COLLECTION, order_by=['order_index'])
    # Roots first, then grouped by parent; order_index order is kept inside each group.
    plans.sort(key=lambda p: (p['parent_id'] is not None, p['parent_id'] or ''))
    return jsonify(plans)


def plan_tree():
    """Flattened, expansion-aware view of the plans list."""
    status_filter = request.args.get('filter', 'pending')
    if status_filter not in PLAN_FILTERS:
        return jsonify({'error': 'filter must be all, pending or completed'}), 400
    filters = {}
    if status_filter == 'pending':
        filters['completed'] = False
    elif status_filter == 'completed':
        filters['completed'] = True
    rows = RowStore().list(COLLECTION, filters, order_by=['order_index'])
    expanded_raw = request.args.get('expanded')
    expanded = parse_id_list(expanded_raw) if expanded_raw is not None else None
    return jsonify({
        'items': visible_rows(rows, expanded),
        'total': len(rows),
        'completed': sum(1 for r in rows if r['completed']),
    })


def create_plan():
    data = request.get_json(silent=True) or {}
    title = (data.get('title') or '').strip()
    if not title:
        return jsonify({'error': 'title is required'}), 400
    due_date = None
    if data.get('due_date'):
        due_date = parse_day_value(data.get('due_date'))
        if due_date is None:
            return jsonify({'error': 'due_date must be YYYY-MM-DD'}), 400

    values = {
        'title': title,
        'description': (data.get('description') or '').strip() or None,
        'due_date': due_date,
        'priority': normalize_priority(data.get('priority')),
        'parent_id': normalize_parent_id(data.get('parent_id')),
        'completed': False,
    }
    store = RowStore()
    try:
        plan = create_node(
            store, COLLECTION, values, _max_depth(),
            by_priority=True, shift_rpc='increment_plan_order_index',
        )
    except GuardError as exc:
        return _guard_response(exc)
    except StoreWriteError as exc:
        current_app.logger.error("Error creating plan: %s", exc)
        return jsonify({'error': 'Failed to create plan'}), 500
    return jsonify(plan), 201


def update_plan(plan_id):
    store = RowStore()
    plan = store.get(COLLECTION, plan_id)
    if plan is None:
        return jsonify({'error': 'Plan not found'}), 404
    data = request.get_json(silent=True) or {}

    patch = {}
    if 'title' in data:
        title = (data.get('title') or '').strip()
        if not title:
            return jsonify({'error': 'title cannot be empty'}), 400
        patch['title'] = title
    if 'description' in data:
        patch['description'] = (data.get('description') or '').strip() or None
    if 'due_date' in data:
        raw = data.get('due_date')
        patch['due_date'] = parse_day_value(raw) if raw else None
        if raw and patch['due_date'] is None:
            return jsonify({'error': 'due_date must be YYYY-MM-DD'}), 400
    if 'priority' in data:
        patch['priority'] = normalize_priority(data.get('priority'), default=plan['priority'])
    if 'completed' in data:
        completed = parse_bool(data.get('completed'))
        patch['completed'] = completed
        if completed and not plan['completed']:
            patch['completed_at'] = utc_now_naive()
        elif not completed:
            patch['completed_at'] = None

    try:
        if 'parent_id' in data:
            new_parent_id = normalize_parent_id(data.get('parent_id'))
            plan = reparent_node(store, COLLECTION, plan_id, new_parent_id, _max_depth(), patch=patch)
        elif patch:
            plan = store.update(COLLECTION, plan_id, patch)
        else:
            plan = store.get(COLLECTION, plan_id)
    except GuardError as exc:
        return _guard_response(exc)
    except StoreWriteError as exc:
        current_app.logger.error("Error updating plan %s: %s", plan_id, exc)
        return jsonify({'error': 'Failed to update plan'}), 500
    return jsonify(plan)


def delete_plan(plan_id):
    try:
        removed = delete_subtree(RowStore(), COLLECTION, plan_id)
    except StoreWriteError as exc:
        current_app.logger.error("Error deleting plan %s: %s", plan_id, exc)
        return jsonify({'error': 'Failed to delete plan'}), 500
    if not removed:
        return jsonify({'error': 'Plan not found'}), 404
    return jsonify({'success': True, 'deleted': removed})


def reorder_plans():
    return reorder_request(COLLECTION, 'plan')


def swap_plan_order():
    data = request.get_json(silent=True) or {}
    plan_id_1 = data.get('planId1')
    plan_id_2 = data.get('planId2')
    if not plan_id_1 or not plan_id_2:
        return jsonify({'error': 'planId1 and planId2 required'}), 400
    try:
        RowStore().rpc('swap_plan_order', {'plan_id_1': plan_id_1, 'plan_id_2': plan_id_2})
    except LookupError:
        return jsonify({'error': 'Plan not found'}), 404
    except StoreWriteError as exc:
        current_app.logger.error("Error swapping plan order: %s", exc)
        return jsonify({'error': 'Failed to swap plan order'}), 500
    return jsonify({'success': True})


def ai_plan():
    data = request.get_json(silent=True) or {}
    title = (data.get('title') or '').strip()
    if not title:
        return jsonify({'error': 'title is required'}), 400
    suggestion = suggest_action_plan(
        title,
        description=data.get('description'),
        due_date=data.get('dueDate') or data.get('due_date'),
        priority=normalize_priority(data.get('priority')),
        model=current_app.config.get('OPENAI_MODEL'),
        logger=current_app.logger,
    )
    if not suggestion:
        return jsonify({'error': 'AI assistant is unavailable'}), 500
    return jsonify({'suggestion': suggestion})
