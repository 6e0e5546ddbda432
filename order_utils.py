"""
Sibling ordering rules.

All functions are pure: they take sibling rows (dicts with `id` and
`order_index`) and return the `{'id', 'order_index'}` updates a caller must
persist. Positions are 0-based and contiguous after any reindex.
"""
from typing import Dict, Iterable, List, Sequence

from tree_utils import order_key

PRIORITIES = ('high', 'medium', 'low')


def _updates_for(ordered: Sequence[Dict], changed_only=True) -> List[Dict]:
    updates = []
    for idx, node in enumerate(ordered):
        if changed_only and node.get('order_index') == idx:
            continue
        updates.append({'id': node['id'], 'order_index': idx})
    return updates


def move_item(items: Sequence, from_index: int, to_index: int) -> List:
    """Pick the element at from_index up and drop it at to_index."""
    size = len(items)
    if not (0 <= from_index < size) or not (0 <= to_index < size):
        raise IndexError(f"move {from_index} -> {to_index} out of range for {size} items")
    moved = list(items)
    item = moved.pop(from_index)
    moved.insert(to_index, item)
    return moved


def reorder_siblings(siblings: Sequence[Dict], from_index: int, to_index: int,
                     changed_only=True) -> List[Dict]:
    """
    Drag-reorder within one sibling group.

    `siblings` is taken in display order. The dragged row lands at to_index
    and every sibling's order_index becomes its new position. With
    changed_only (default) rows already holding their position are left out.
    """
    if from_index == to_index and 0 <= from_index < len(siblings):
        return _updates_for(siblings, changed_only)
    return _updates_for(move_item(siblings, from_index, to_index), changed_only)


def reorder_to_ids(siblings: Sequence[Dict], ordered_ids: Sequence, changed_only=True) -> List[Dict]:
    """
    Reindex siblings to follow ordered_ids.

    Ids not among the siblings are ignored; siblings missing from
    ordered_ids keep their relative order after the listed ones.
    """
    by_id = {node['id']: node for node in siblings}
    ordered = []
    placed = set()
    for node_id in ordered_ids:
        node = by_id.get(node_id)
        if node is not None and node_id not in placed:
            ordered.append(node)
            placed.add(node_id)
    ordered.extend(node for node in sorted(siblings, key=order_key) if node['id'] not in placed)
    return _updates_for(ordered, changed_only)


def insert_with_priority(siblings: Iterable[Dict], priority) -> int:
    """
    Position for a new row in a sibling group, by priority.

    high goes to the front, medium right after the existing high-priority
    siblings, anything else to the end.
    """
    siblings = list(siblings)
    if priority == 'high':
        return 0
    if priority == 'medium':
        return sum(1 for node in siblings if node.get('priority') == 'high')
    return len(siblings)


def shift_updates(siblings: Iterable[Dict], order_index: int) -> List[Dict]:
    """+1 for every sibling at or after order_index, making room for an insert."""
    return [
        {'id': node['id'], 'order_index': order_key(node) + 1}
        for node in siblings
        if order_key(node) >= order_index
    ]


def next_order_index(siblings: Iterable[Dict]) -> int:
    """Append position: never collides even when stored indexes have gaps."""
    siblings = list(siblings)
    if not siblings:
        return 0
    return max(len(siblings), max(order_key(node) for node in siblings) + 1)


def reconcile_order(siblings: Iterable[Dict], changed_only=True) -> List[Dict]:
    """
    Renumber a sibling group to 0..n-1 from whatever is stored.

    Duplicated or gapped indexes are resolved by stored order_index, then by
    the order rows were given in. Used after deletes and after a failed
    batch write.
    """
    return _updates_for(sorted(siblings, key=order_key), changed_only)


def close_gaps(siblings: Iterable[Dict], removed_id=None) -> List[Dict]:
    remaining = [node for node in siblings if node['id'] != removed_id]
    return reconcile_order(remaining)


def apply_updates(nodes: Iterable[Dict], updates: Iterable[Dict]) -> List[Dict]:
    """Copies of nodes with the given field updates merged in by id."""
    patch = {}
    for update in updates:
        patch.setdefault(update['id'], {}).update({k: v for k, v in update.items() if k != 'id'})
    merged = []
    for node in nodes:
        if node['id'] in patch:
            node = dict(node, **patch[node['id']])
        merged.append(node)
    return merged
