"""
Queue serialization for the external solver.

This module turns the live build queue into the snapshot document the
solver consumes, and turns the solver's solution document back into an
assignment table.

Serialization is deterministic: given the same queue state and the same
assignment table, it will always produce byte-identical output.
"""

import json
import logging
from typing import Any, Iterable, List, Optional, Sequence

from .assignments import NodeAssignments
from .types import (
    LiveNode, LiveQueueItem, MalformedDocument, NodeDescriptor, NodeUnavailable,
    QueueItemDescriptor, SerializerConfig
)


logger = logging.getLogger(__name__)


def build_node_descriptor(node: LiveNode) -> NodeDescriptor:
    """
    Read the current executor state of a live node.

    The idle executor count is read on every call since it changes as
    builds start and finish.

    Args:
        node: Live node to describe

    Returns:
        Descriptor of the node

    Raises:
        NodeUnavailable: If the node cannot report its executor state
    """
    accounting = node.executor_accounting()
    if accounting is None:
        raise NodeUnavailable(node.name)

    try:
        return NodeDescriptor(
            name=node.name,
            executors=node.executors,
            free_executors=accounting.count_idle()
        )
    except ValueError as e:
        raise NodeUnavailable(node.name, str(e)) from e


def node_sort_key(name: str) -> bytes:
    """
    Sort key ordering node names by UTF-16 code unit.

    Differs from plain str ordering for characters outside the Basic
    Multilingual Plane.
    """
    return name.encode('utf-16-be', 'surrogatepass')


def build_item_descriptor(
    item: LiveQueueItem,
    assignments: NodeAssignments,
    drop_unavailable_nodes: bool = True
) -> QueueItemDescriptor:
    """
    Describe one queue item together with its candidate nodes.

    Args:
        item: Live queue item
        assignments: Current assignment table
        drop_unavailable_nodes: Skip unavailable nodes instead of failing

    Returns:
        Descriptor with nodes sorted by name
    """
    nodes = []
    for node in item.compatible_nodes():
        try:
            nodes.append(build_node_descriptor(node))
        except NodeUnavailable as e:
            if not drop_unavailable_nodes:
                raise
            logger.warning(f"Dropping node {e.node_name} from item {item.id}: {e.reason}")

    return QueueItemDescriptor(
        id=item.id,
        priority=item.priority,
        in_queue_since=item.in_queue_since,
        name=item.display_name,
        nodes=tuple(sorted(nodes, key=lambda node: node_sort_key(node.name))),
        assigned=assignments.assigned_node(item.id)
    )


class QueueSerializer:
    """Converts between the live queue and the solver's JSON documents."""

    def __init__(self, config: Optional[SerializerConfig] = None):
        self.config = config or SerializerConfig()

    def describe(
        self,
        items: Iterable[LiveQueueItem],
        assignments: NodeAssignments
    ) -> List[QueueItemDescriptor]:
        """Build descriptors for all items, keeping the caller's order."""
        return [
            build_item_descriptor(item, assignments, self.config.drop_unavailable_nodes)
            for item in items
        ]

    def serialize(
        self,
        items: Iterable[LiveQueueItem],
        assignments: NodeAssignments
    ) -> str:
        """
        Render the queue snapshot document.

        Args:
            items: Queued items, in the order they should appear
            assignments: Assignment table from the previous solver round

        Returns:
            Compact JSON document with a single "queue" field
        """
        return self.render(self.describe(items, assignments))

    def render(self, descriptors: Sequence[QueueItemDescriptor]) -> str:
        document = {'queue': [descriptor.to_dict() for descriptor in descriptors]}
        logger.debug(f"Rendered snapshot of {len(descriptors)} queue items")
        return json.dumps(document, separators=(',', ':'), ensure_ascii=False)

    def deserialize(self, document: str) -> NodeAssignments:
        """
        Parse a solution document into an assignment table.

        Entries are applied in document order, so a later entry for the
        same id replaces an earlier one.

        Args:
            document: JSON text with a single "solution" field

        Returns:
            Freshly built assignment table

        Raises:
            MalformedDocument: If the document does not follow the schema
        """
        try:
            data = json.loads(document)
        except (TypeError, ValueError, RecursionError) as e:
            raise MalformedDocument(f"Solution is not valid JSON: {e}") from e

        return self.parse_solution(data)

    def parse_solution(self, data: Any) -> NodeAssignments:
        """Build an assignment table from an already decoded solution."""
        if not isinstance(data, dict) or 'solution' not in data:
            raise MalformedDocument("Solution document has no 'solution' field")

        entries = data['solution']
        if not isinstance(entries, list):
            raise MalformedDocument("'solution' must be a list")

        builder = NodeAssignments.builder(self.config.unassigned_marker)
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise MalformedDocument(f"Solution entry {index} is not an object")
            if 'id' not in entry or 'node' not in entry:
                raise MalformedDocument(f"Solution entry {index} needs both 'id' and 'node'")

            task_id = entry['id']
            node_name = entry['node']
            # bool is an int subclass
            if not isinstance(task_id, int) or isinstance(task_id, bool):
                raise MalformedDocument(f"Solution entry {index} has non-integer id {task_id!r}")
            if not isinstance(node_name, str):
                raise MalformedDocument(f"Solution entry {index} has non-string node {node_name!r}")

            builder.assign(task_id, node_name)

        assignments = builder.build()
        logger.debug(f"Parsed solution with {assignments.size()} assignments")
        return assignments


def calculate_snapshot_metrics(descriptors: Sequence[QueueItemDescriptor]) -> dict:
    """
    Calculate metrics about a queue snapshot.

    Args:
        descriptors: Item descriptors included in the snapshot

    Returns:
        Dictionary containing snapshot metrics
    """
    # Nodes are shared between items, count each one once
    nodes = {
        node.name: node
        for descriptor in descriptors
        for node in descriptor.nodes
    }

    return {
        "items": len(descriptors),
        "assigned_items": sum(1 for d in descriptors if d.assigned is not None),
        "items_without_nodes": sum(1 for d in descriptors if not d.nodes),
        "total_executors": sum(n.executors for n in nodes.values()),
        "free_executors": sum(n.free_executors for n in nodes.values()),
    }
