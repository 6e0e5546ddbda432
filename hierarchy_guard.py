"""Checks run before a row is attached to a new parent."""
from typing import Dict, Iterable, Optional

from tree_utils import subtree_height


class GuardError(Exception):
    code = 'invalid_parent'
    status_code = 400

    def __init__(self, message, node_id=None, parent_id=None):
        super().__init__(message)
        self.message = message
        self.node_id = node_id
        self.parent_id = parent_id

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class SelfParentError(GuardError):
    code = 'self_parent'


class CyclicParentError(GuardError):
    code = 'cyclic_parent'
    status_code = 409


class MaxDepthExceededError(GuardError):
    code = 'max_depth_exceeded'


class UnknownParentError(GuardError):
    code = 'unknown_parent'
    status_code = 404


def _parent_depth(parent, lookup) -> int:
    if parent.get('depth') is not None:
        return parent['depth']
    depth = 0
    seen = {parent['id']}
    current = parent.get('parent_id')
    while current is not None and current in lookup and current not in seen:
        seen.add(current)
        depth += 1
        current = lookup[current].get('parent_id')
    return depth


def validate_reparent(node_id, new_parent_id, all_nodes: Iterable[Dict], max_depth: int) -> int:
    """
    Validate moving node_id under new_parent_id and return its new depth.

    Raises SelfParentError, CyclicParentError (new parent sits inside the
    node's own subtree), UnknownParentError, or MaxDepthExceededError when
    the node or the deepest row of its subtree would end up deeper than
    max_depth. A None parent means "make it a root" and always passes.
    """
    if new_parent_id is None:
        return 0
    if new_parent_id == node_id:
        raise SelfParentError('A row cannot be its own parent', node_id, new_parent_id)

    all_nodes = list(all_nodes)
    lookup = {n['id']: n for n in all_nodes}
    parent = lookup.get(new_parent_id)
    if parent is None:
        raise UnknownParentError('Parent not found', node_id, new_parent_id)

    if node_id is not None:
        seen = set()
        current = new_parent_id
        while current is not None and current not in seen:
            if current == node_id:
                raise CyclicParentError('Cannot move a row under its own descendant', node_id, new_parent_id)
            seen.add(current)
            row = lookup.get(current)
            current = row.get('parent_id') if row else None

    new_depth = _parent_depth(parent, lookup) + 1
    deepest = new_depth
    if node_id is not None and node_id in lookup:
        deepest += subtree_height(all_nodes, node_id)
    if deepest > max_depth:
        raise MaxDepthExceededError(f'Maximum depth is {max_depth}', node_id, new_parent_id)
    return new_depth


def validate_new_child(parent_id: Optional[str], all_nodes: Iterable[Dict], max_depth: int) -> int:
    """Depth for a brand new row created under parent_id."""
    return validate_reparent(None, parent_id, all_nodes, max_depth)
