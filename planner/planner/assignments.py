"""
Assignment table produced by a solver round-trip.

A table maps queue item ids to the node the solver picked for them. Items
the solver looked at but left without a node are recorded as explicitly
unassigned, which is different from an id the table has never seen.
"""

from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .types import NOT_ASSIGNED, UnknownId


class NodeAssignments:
    """Read-only mapping of task id to assigned node name."""

    def __init__(self, entries: Mapping[int, Optional[str]], unassigned_marker: str = NOT_ASSIGNED):
        self._entries = MappingProxyType(dict(entries))
        self._marker = unassigned_marker

    @classmethod
    def builder(cls, unassigned_marker: str = NOT_ASSIGNED) -> 'Builder':
        return Builder(unassigned_marker)

    @classmethod
    def empty(cls) -> 'NodeAssignments':
        return cls({})

    def to_builder(self) -> 'Builder':
        """Start a builder pre-populated with this table's entries."""
        builder = Builder(self._marker)
        builder._entries.update(self._entries)
        return builder

    @property
    def unassigned_marker(self) -> str:
        return self._marker

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def task_node_name(self, task_id: int) -> str:
        """
        Get the node assigned to a task.

        Args:
            task_id: Queue id of the task

        Returns:
            Node name, or the unassigned marker if the solver chose no node

        Raises:
            UnknownId: If the task was never recorded
        """
        try:
            node_name = self._entries[task_id]
        except KeyError:
            raise UnknownId(task_id) from None
        return self._marker if node_name is None else node_name

    def assigned_node(self, task_id: int) -> Optional[str]:
        """Node name for the task, or None if unknown or unassigned."""
        return self._entries.get(task_id)

    def is_assigned(self, task_id: int) -> bool:
        return self._entries.get(task_id) is not None

    def items(self) -> Iterator[Tuple[int, str]]:
        """Yield (task id, node name or marker) pairs in insertion order."""
        for task_id, node_name in self._entries.items():
            yield task_id, self._marker if node_name is None else node_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeAssignments):
            return NotImplemented
        return dict(self._entries) == dict(other._entries) and self._marker == other._marker

    def __repr__(self) -> str:
        return f"NodeAssignments({dict(self.items())!r})"


class Builder:
    """
    Collects assignments before freezing them into a NodeAssignments.

    Not safe for concurrent use.
    """

    def __init__(self, unassigned_marker: str = NOT_ASSIGNED):
        self._marker = unassigned_marker
        self._entries: Dict[int, Optional[str]] = {}

    def assign(self, task_id: int, node_name: Optional[str]) -> 'Builder':
        """Record a node for a task, replacing any earlier assignment."""
        if node_name is None or node_name == self._marker:
            return self.unassign(task_id)
        self._entries[task_id] = node_name
        return self

    def unassign(self, task_id: int) -> 'Builder':
        """Record that the solver left the task without a node."""
        self._entries[task_id] = None
        return self

    def build(self) -> NodeAssignments:
        return NodeAssignments(self._entries, self._marker)
