"""Template route handlers."""
from flask import current_app, jsonify, request

from backend.template_items import (
    TemplateItemError,
    add_item,
    duplicate_item,
    indent_item,
    normalize_items,
    outdent_item,
    remove_item,
    reorder_items,
    update_item,
)
from backend.template_schedule import activate_template, check_active_template
from hierarchy_guard import GuardError
from row_store import RowStore, StoreWriteError
from services.validation_service import local_today, normalize_parent_id, parse_bool, parse_int

COLLECTION = 'templates'


def _max_depth():
    return current_app.config.get('TEMPLATE_MAX_DEPTH', 3)


def _horizon():
    return current_app.config.get('TEMPLATE_HORIZON_DAYS', 90)


def _today():
    return local_today(current_app.config.get('APP_TIMEZONE', 'UTC'))


def _template_fields(data):
    values = {}
    if 'title' in data:
        values['title'] = (data.get('title') or '').strip()
    if 'description' in data:
        values['description'] = (data.get('description') or '').strip() or None
    if 'items' in data:
        values['items'] = normalize_items(data.get('items') or [])
    if 'is_active' in data:
        values['is_active'] = parse_bool(data.get('is_active'))
    return values


def list_templates():
    filters = {}
    if parse_bool(request.args.get('active')):
        filters['is_active'] = True
    return jsonify(RowStore().list(COLLECTION, filters, order_by=['-created_at']))


def create_template():
    data = request.get_json(silent=True) or {}
    values = _template_fields(data)
    if not values.get('title'):
        return jsonify({'error': 'title is required'}), 400
    values.setdefault('items', [])
    try:
        template = RowStore().insert(COLLECTION, values)
    except StoreWriteError as exc:
        current_app.logger.error("Error creating template: %s", exc)
        return jsonify({'error': 'Failed to create template'}), 500
    return jsonify(template), 201


def update_all_templates():
    """Bulk patch every template (used to deactivate them all)."""
    data = request.get_json(silent=True) or {}
    values = _template_fields(data)
    values.pop('items', None)
    values.pop('title', None)
    if 'is_active' in values and not values['is_active']:
        values['applied_from_date'] = None
    if not values:
        return jsonify({'error': 'Nothing to update'}), 400
    try:
        changed = RowStore().update_where(COLLECTION, values)
    except StoreWriteError as exc:
        current_app.logger.error("Error updating templates: %s", exc)
        return jsonify({'error': 'Failed to update templates'}), 500
    return jsonify({'success': True, 'updated': changed})


def get_template(template_id):
    template = RowStore().get(COLLECTION, template_id)
    if template is None:
        return jsonify({'error': 'Template not found'}), 404
    return jsonify(template)


def update_template(template_id):
    store = RowStore()
    if store.get(COLLECTION, template_id) is None:
        return jsonify({'error': 'Template not found'}), 404
    values = _template_fields(request.get_json(silent=True) or {})
    if 'title' in values and not values['title']:
        return jsonify({'error': 'title cannot be empty'}), 400
    try:
        template = store.update(COLLECTION, template_id, values)
    except StoreWriteError as exc:
        current_app.logger.error("Error updating template %s: %s", template_id, exc)
        return jsonify({'error': 'Failed to update template'}), 500
    return jsonify(template)


def delete_template(template_id):
    try:
        removed = RowStore().delete(COLLECTION, template_id)
    except StoreWriteError as exc:
        current_app.logger.error("Error deleting template %s: %s", template_id, exc)
        return jsonify({'error': 'Failed to delete template'}), 500
    if not removed:
        return jsonify({'error': 'Template not found'}), 404
    return jsonify({'success': True})


def activate(template_id):
    try:
        created = activate_template(RowStore(), template_id, _today(), _horizon())
    except StoreWriteError as exc:
        current_app.logger.error("Error activating template %s: %s", template_id, exc)
        return jsonify({'error': 'Failed to activate template'}), 500
    if created is None:
        return jsonify({'error': 'Template not found'}), 404
    return jsonify({'success': True, 'createdCount': created})


def check_active():
    try:
        result = check_active_template(RowStore(), _today(), _horizon())
    except StoreWriteError as exc:
        current_app.logger.error("Error checking active template: %s", exc)
        return jsonify({'error': 'Failed to check active template'}), 500
    return jsonify(result)


# --- item editing ------------------------------------------------------------

def _edit_items(template_id, edit):
    """
    Load a template's items, apply `edit`, save the result in one update.

    `edit` receives the item list and returns (items, payload); payload is
    merged into the response next to the saved template.
    """
    store = RowStore()
    template = store.get(COLLECTION, template_id)
    if template is None:
        return jsonify({'error': 'Template not found'}), 404
    try:
        items, payload = edit(normalize_items(template['items']))
    except KeyError:
        return jsonify({'error': 'Item not found'}), 404
    except GuardError as exc:
        return jsonify(exc.to_dict()), exc.status_code
    except TemplateItemError as exc:
        return jsonify({'error': str(exc)}), 400
    try:
        template = store.update(COLLECTION, template_id, {'items': items})
    except StoreWriteError as exc:
        current_app.logger.error("Error saving items of template %s: %s", template_id, exc)
        return jsonify({'error': 'Failed to save template items', 'template': store.get(COLLECTION, template_id)}), 500
    response = {'template': template}
    response.update(payload or {})
    return jsonify(response)


def add_template_item(template_id):
    data = request.get_json(silent=True) or {}

    def edit(items):
        items, new_item = add_item(
            items,
            _max_depth(),
            title=(data.get('title') or '').strip(),
            description=(data.get('description') or '').strip(),
            after_id=data.get('after_id'),
            parent_id=normalize_parent_id(data.get('parent_id')),
            first=parse_bool(data.get('first')),
        )
        return items, {'item': new_item}

    return _edit_items(template_id, edit)


def update_template_item(template_id, item_id):
    data = request.get_json(silent=True) or {}
    return _edit_items(template_id, lambda items: (update_item(items, item_id, data), None))


def delete_template_item(template_id, item_id):
    return _edit_items(template_id, lambda items: (remove_item(items, item_id), None))


def duplicate_template_item(template_id, item_id):
    def edit(items):
        items, copy_id = duplicate_item(items, item_id)
        return items, {'item_id': copy_id}

    return _edit_items(template_id, edit)


def reorder_template_items(template_id):
    data = request.get_json(silent=True) or {}
    from_index = parse_int(data.get('from_index'))
    to_index = parse_int(data.get('to_index'))
    if from_index is None or to_index is None:
        return jsonify({'error': 'from_index and to_index are required'}), 400
    parent_id = normalize_parent_id(data.get('parent_id'))
    return _edit_items(template_id, lambda items: (reorder_items(items, parent_id, from_index, to_index), None))


def indent_template_item(template_id, item_id):
    data = request.get_json(silent=True) or {}
    direction = data.get('direction', 'right')
    if direction not in ('left', 'right'):
        return jsonify({'error': 'direction must be left or right'}), 400
    move = indent_item if direction == 'right' else outdent_item
    return _edit_items(template_id, lambda items: (move(items, item_id, _max_depth()), None))
