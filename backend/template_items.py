"""
Editing operations for a template's item list.

Template items live inline on the template row as a flat list of nodes
(`id`, `title`, `description`, `parent_id`, `order_index`, `depth`), so every
operation here takes the current list and returns a new one, kept in display
(pre-order) order. The caller saves the whole list back in one update.
"""
from hierarchy_guard import validate_new_child, validate_reparent
from models import new_id
from order_utils import apply_updates, close_gaps, reconcile_order, reorder_siblings, shift_updates
from tree_utils import all_ids, build_tree, depth_updates, derive_depths, descendant_ids, flatten_tree, siblings_of

ITEM_FIELDS = ('id', 'title', 'description', 'parent_id', 'order_index', 'depth')


class TemplateItemError(ValueError):
    """An edit that does not apply to the current item list."""


def _clean(item):
    return {key: item.get(key) for key in ITEM_FIELDS}


def _lookup(items, item_id):
    for item in items:
        if item['id'] == item_id:
            return item
    raise KeyError(item_id)


def _merge(*groups):
    merged = {}
    for group in groups:
        for update in group:
            merged.setdefault(update['id'], {'id': update['id']}).update(update)
    return list(merged.values())


def tree_order(items):
    """Items in fully expanded pre-order, without view-only keys."""
    items = list(items)
    return [_clean(row) for row in flatten_tree(build_tree(items), all_ids(items))]


def _flatten_nested(raw_items, parent_id, out):
    for position, raw in enumerate(raw_items or []):
        if not isinstance(raw, dict):
            continue
        item = {
            'id': str(raw.get('id') or new_id()),
            'title': str(raw.get('title') or ''),
            'description': raw.get('description') or '',
            'parent_id': raw.get('parent_id', parent_id),
            'order_index': raw.get('order_index', position),
        }
        out.append(item)
        _flatten_nested(raw.get('subItems'), item['id'], out)


def normalize_items(raw_items):
    """
    Bring an incoming item list into canonical shape.

    Accepts flat nodes or the older nested `subItems` form. Missing ids are
    generated, orphans become roots, depth is derived from the parent chain
    and each sibling group is renumbered 0..n-1.
    """
    flat = []
    _flatten_nested(raw_items, None, flat)
    for item in flat:
        if not isinstance(item['order_index'], int):
            item['order_index'] = 0
    # Orphans, self-parents and cycle breaks all surface as roots.
    root_ids = {root['id'] for root in build_tree(flat)}
    for item in flat:
        if item['id'] in root_ids:
            item['parent_id'] = None
    depths = derive_depths(flat)
    for item in flat:
        item['depth'] = depths.get(item['id'], 0)
    updates = []
    for parent_id in {item['parent_id'] for item in flat}:
        updates.extend(reconcile_order(siblings_of(flat, parent_id)))
    return tree_order(apply_updates(flat, updates))


def add_item(items, max_depth, title='', description='', after_id=None, parent_id=None, first=False):
    """
    Insert a new item and return (items, new_item).

    after_id places it right below that item in the same group; otherwise it
    goes under parent_id, at the front when `first` is set, else at the end.
    """
    items = list(items)
    if after_id is not None:
        anchor = _lookup(items, after_id)
        parent_id = anchor.get('parent_id')
        position = anchor['order_index'] + 1
    else:
        position = 0 if first else None
    depth = validate_new_child(parent_id, items, max_depth)
    siblings = siblings_of(items, parent_id)
    if position is None:
        position = len(siblings)
    new_item = {
        'id': new_id(),
        'title': title or '',
        'description': description or '',
        'parent_id': parent_id,
        'order_index': position,
        'depth': depth,
    }
    items = apply_updates(items, shift_updates(siblings, position))
    items.append(new_item)
    return tree_order(items), new_item


def update_item(items, item_id, fields):
    _lookup(items, item_id)
    patch = {key: fields[key] for key in ('title', 'description') if key in fields}
    return tree_order(apply_updates(items, [dict(patch, id=item_id)]))


def remove_item(items, item_id):
    """Drop an item with its subtree and close the gap in its group."""
    item = _lookup(items, item_id)
    doomed = {item_id, *descendant_ids(items, item_id)}
    remaining = [i for i in items if i['id'] not in doomed]
    gaps = close_gaps(siblings_of(items, item.get('parent_id')), removed_id=item_id)
    return tree_order(apply_updates(remaining, gaps))


def duplicate_item(items, item_id):
    """Copy an item and its subtree, placing the copy right after the original."""
    items = list(items)
    source = _lookup(items, item_id)
    subtree = [source] + [_lookup(items, i) for i in descendant_ids(items, item_id)]
    fresh = {node['id']: new_id() for node in subtree}
    siblings = siblings_of(items, source.get('parent_id'))
    position = source['order_index'] + 1
    items = apply_updates(items, shift_updates(siblings, position))
    for node in subtree:
        copy = _clean(node)
        copy['id'] = fresh[node['id']]
        if node['id'] == item_id:
            copy['title'] = f"{node.get('title') or ''} (copy)"
            copy['order_index'] = position
        else:
            copy['parent_id'] = fresh[node['parent_id']]
        items.append(copy)
    return tree_order(items), fresh[item_id]


def reorder_items(items, parent_id, from_index, to_index):
    siblings = siblings_of(items, parent_id)
    try:
        updates = reorder_siblings(siblings, from_index, to_index)
    except IndexError as exc:
        raise TemplateItemError(str(exc)) from exc
    return tree_order(apply_updates(items, updates))


def _move(items, item_id, new_parent_id, position, max_depth):
    item = _lookup(items, item_id)
    new_depth = validate_reparent(item_id, new_parent_id, items, max_depth)
    items = apply_updates(items, close_gaps(siblings_of(items, item.get('parent_id')), removed_id=item_id))
    target = [s for s in siblings_of(items, new_parent_id) if s['id'] != item_id]
    if position is None:
        position = len(target)
    updates = _merge(
        shift_updates(target, position),
        [{'id': item_id, 'parent_id': new_parent_id, 'order_index': position}],
        depth_updates(items, item_id, new_depth),
    )
    return tree_order(apply_updates(items, updates))


def indent_item(items, item_id, max_depth):
    """Make the item the last child of the sibling just above it."""
    item = _lookup(items, item_id)
    siblings = siblings_of(items, item.get('parent_id'))
    index = [s['id'] for s in siblings].index(item_id)
    if index == 0:
        raise TemplateItemError('The first item in a group cannot be indented')
    return _move(items, item_id, siblings[index - 1]['id'], None, max_depth)


def outdent_item(items, item_id, max_depth):
    """Move the item out of its parent, right below that parent."""
    item = _lookup(items, item_id)
    if item.get('parent_id') is None:
        raise TemplateItemError('A top-level item cannot be outdented')
    parent = _lookup(items, item['parent_id'])
    return _move(items, item_id, parent.get('parent_id'), parent['order_index'] + 1, max_depth)
