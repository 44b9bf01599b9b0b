"""
Adjacency Indexes

Id-keyed association maps used by the EntityGraph.
Each index keeps both directions together so one call updates both sides.
"""
from typing import Dict, List, Optional, Tuple


class ManyToOne:
    """
    child id -> parent id, with an ordered parent -> children index.
    """

    def __init__(self):
        self._parent: Dict[str, str] = {}
        self._children: Dict[str, List[str]] = {}

    def parent(self, child_id: str) -> Optional[str]:
        return self._parent.get(child_id)

    def children(self, parent_id: str) -> Tuple[str, ...]:
        return tuple(self._children.get(parent_id, ()))

    def set(self, child_id: str, parent_id: str) -> Optional[str]:
        """
        Point child at parent, moving it out of its previous parent.

        Returns:
            The previous parent id (None if there was none).
        """
        previous = self._parent.get(child_id)
        if previous == parent_id:
            return previous
        if previous is not None:
            self._children[previous].remove(child_id)
        self._parent[child_id] = parent_id
        self._children.setdefault(parent_id, []).append(child_id)
        return previous

    def remove(self, child_id: str) -> Optional[str]:
        """Detach child; returns the parent it was removed from."""
        previous = self._parent.pop(child_id, None)
        if previous is not None:
            self._children[previous].remove(child_id)
        return previous

    def involves(self, entity_id: str) -> bool:
        """True if entity_id is a child or a parent with children."""
        return entity_id in self._parent or bool(self._children.get(entity_id))

    def drop_parent(self, parent_id: str) -> Tuple[str, ...]:
        """Detach every child of parent; returns the detached child ids."""
        children = tuple(self._children.pop(parent_id, ()))
        for child_id in children:
            del self._parent[child_id]
        return children


class ManyToMany:
    """
    Ordered set semantics on both sides: left ids <-> right ids.
    """

    def __init__(self):
        self._rights: Dict[str, List[str]] = {}
        self._lefts: Dict[str, List[str]] = {}

    def rights(self, left_id: str) -> Tuple[str, ...]:
        return tuple(self._rights.get(left_id, ()))

    def lefts(self, right_id: str) -> Tuple[str, ...]:
        return tuple(self._lefts.get(right_id, ()))

    def contains(self, left_id: str, right_id: str) -> bool:
        return right_id in self._rights.get(left_id, ())

    def add(self, left_id: str, right_id: str) -> bool:
        """Link both sides; False if already linked."""
        rights = self._rights.setdefault(left_id, [])
        lefts = self._lefts.setdefault(right_id, [])
        changed = False
        if right_id not in rights:
            rights.append(right_id)
            changed = True
        if left_id not in lefts:
            lefts.append(left_id)
            changed = True
        return changed

    def remove(self, left_id: str, right_id: str) -> bool:
        """Unlink both sides; False if they were not linked."""
        rights = self._rights.get(left_id, [])
        lefts = self._lefts.get(right_id, [])
        changed = False
        if right_id in rights:
            rights.remove(right_id)
            changed = True
        if left_id in lefts:
            lefts.remove(left_id)
            changed = True
        return changed

    def involves(self, entity_id: str) -> bool:
        return bool(self._rights.get(entity_id)) or bool(self._lefts.get(entity_id))

    def drop_left(self, left_id: str) -> Tuple[str, ...]:
        rights = tuple(self._rights.pop(left_id, ()))
        for right_id in rights:
            self._lefts[right_id].remove(left_id)
        return rights

    def drop_right(self, right_id: str) -> Tuple[str, ...]:
        lefts = tuple(self._lefts.pop(right_id, ()))
        for left_id in lefts:
            self._rights[left_id].remove(right_id)
        return lefts
