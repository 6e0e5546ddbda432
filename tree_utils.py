"""
Tree helpers shared by plans, bucket list items and template items.

Every collection stores its hierarchy the same way: flat rows carrying
`id`, `parent_id`, `order_index` and `depth`. These helpers turn those rows
into a nested forest, flatten the forest back into the rows a list view
should show, and answer the small structural questions (siblings,
descendants) the mutation paths need. Nothing here touches the database.
"""
from typing import Dict, Iterable, List, Optional, Set


def order_key(node) -> int:
    value = node.get('order_index')
    return value if value is not None else 0


def _closes_cycle(node_id, lookup, cut) -> bool:
    """True when walking up from node_id's parent leads back to node_id."""
    seen = set()
    current = lookup[node_id].get('parent_id')
    while current is not None and current in lookup and current not in cut:
        if current == node_id:
            return True
        if current in seen:
            return False
        seen.add(current)
        current = lookup[current].get('parent_id')
    return False


def build_tree(nodes: Iterable[Dict]) -> List[Dict]:
    """
    Build a forest from flat rows.

    Returns the root nodes; each node is a shallow copy of its row with a
    `children` list, and every level is sorted by `order_index` (stable, so
    ties keep input order). A node whose parent is not in `nodes` is promoted
    to root. A parent chain that loops back on itself is cut at the first
    node (in input order) that closes the loop, which becomes a root.
    """
    lookup = {}
    ordered = []
    for node in nodes:
        node_id = node.get('id')
        if node_id in lookup:
            continue
        copy = dict(node)
        copy['children'] = []
        lookup[node_id] = copy
        ordered.append(copy)

    roots = []
    cut = set()
    for copy in ordered:
        parent_id = copy.get('parent_id')
        if parent_id is not None and parent_id in lookup and parent_id != copy['id']:
            if not _closes_cycle(copy['id'], lookup, cut):
                lookup[parent_id]['children'].append(copy)
                continue
        if parent_id is not None and parent_id in lookup:
            cut.add(copy['id'])
        roots.append(copy)

    roots.sort(key=order_key)
    for copy in ordered:
        copy['children'].sort(key=order_key)
    return roots


def flatten_tree(forest: Iterable[Dict], expanded) -> List[Dict]:
    """
    Pre-order walk of the forest, descending only into expanded nodes.

    A collapsed node hides its whole subtree, whatever the expansion state
    of its descendants. Returned rows drop `children` and carry
    `has_children` instead; `depth` is left as stored.
    """
    expanded = expanded or set()
    visible = []
    seen = set()
    stack = list(reversed(list(forest)))
    while stack:
        node = stack.pop()
        if node['id'] in seen:
            continue
        seen.add(node['id'])
        children = node.get('children') or []
        row = {k: v for k, v in node.items() if k != 'children'}
        row['has_children'] = bool(children)
        visible.append(row)
        if node['id'] in expanded:
            stack.extend(reversed(children))
    return visible


def toggle_expanded(expanded, node_id) -> Set:
    """Return a new expansion set with node_id flipped."""
    updated = set(expanded or ())
    if node_id in updated:
        updated.discard(node_id)
    else:
        updated.add(node_id)
    return updated


def all_ids(nodes: Iterable[Dict]) -> Set:
    return {node['id'] for node in nodes}


def siblings_of(nodes: Iterable[Dict], parent_id) -> List[Dict]:
    """Rows sharing parent_id, in order_index order."""
    return sorted((n for n in nodes if n.get('parent_id') == parent_id), key=order_key)


def children_map(nodes: Iterable[Dict]) -> Dict[Optional[str], List[Dict]]:
    grouped = {}
    for node in nodes:
        grouped.setdefault(node.get('parent_id'), []).append(node)
    return grouped


def descendant_ids(nodes: Iterable[Dict], node_id) -> List:
    """Ids of every row below node_id, breadth first. node_id itself is excluded."""
    grouped = children_map(nodes)
    found = []
    seen = {node_id}
    queue = [node_id]
    while queue:
        current = queue.pop(0)
        for child in grouped.get(current, []):
            if child['id'] in seen:
                continue
            seen.add(child['id'])
            found.append(child['id'])
            queue.append(child['id'])
    return found


def subtree_height(nodes: Iterable[Dict], node_id) -> int:
    """Levels below node_id (0 for a leaf)."""
    grouped = children_map(nodes)
    height = 0
    seen = {node_id}
    frontier = [node_id]
    while frontier:
        next_frontier = []
        for current in frontier:
            for child in grouped.get(current, []):
                if child['id'] not in seen:
                    seen.add(child['id'])
                    next_frontier.append(child['id'])
        if next_frontier:
            height += 1
        frontier = next_frontier
    return height


def depth_updates(nodes: Iterable[Dict], node_id, new_depth: int) -> List[Dict]:
    """
    Depth changes for node_id and its subtree when node_id moves to new_depth.

    Only rows whose stored depth differs are returned, as {'id', 'depth'}.
    """
    nodes = list(nodes)
    lookup = {n['id']: n for n in nodes}
    grouped = children_map(nodes)
    updates = []
    seen = set()
    queue = [(node_id, new_depth)]
    while queue:
        current, depth = queue.pop(0)
        if current in seen:
            continue
        seen.add(current)
        row = lookup.get(current)
        if row is not None and row.get('depth') != depth:
            updates.append({'id': current, 'depth': depth})
        for child in grouped.get(current, []):
            queue.append((child['id'], depth + 1))
    return updates


def derive_depths(nodes: Iterable[Dict]) -> Dict:
    """Depth of every row computed from its parent chain (orphans count as roots)."""
    depths = {}
    for root in build_tree(nodes):
        stack = [(root, 0)]
        while stack:
            node, depth = stack.pop()
            depths[node['id']] = depth
            for child in node['children']:
                stack.append((child, depth + 1))
    return depths
