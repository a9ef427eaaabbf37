"""
Apply solver assignments to live queue items.

The solution document is not checked against the live queue when it is
parsed. This module does that check at the point an item is about to be
placed: the assigned node must still be one of the item's compatible
nodes.
"""

import logging
from typing import Optional

from .assignments import NodeAssignments
from .types import LiveNode, LiveQueueItem


logger = logging.getLogger(__name__)


class AssignmentBalancer:
    """Maps queue items to the live nodes the solver assigned them."""

    def __init__(self, assignments: Optional[NodeAssignments] = None):
        self.assignments = assignments or NodeAssignments.empty()

    def with_assignments(self, assignments: NodeAssignments) -> 'AssignmentBalancer':
        return AssignmentBalancer(assignments)

    def map(self, item: LiveQueueItem) -> Optional[LiveNode]:
        """
        Find the live node assigned to an item.

        Args:
            item: Queue item about to be placed

        Returns:
            The assigned node, or None if the solver chose no node for the
            item, never saw it, or picked a node the item can no longer use
        """
        node_name = self.assignments.assigned_node(item.id)
        if node_name is None:
            return None

        for node in item.compatible_nodes():
            if node.name == node_name:
                return node

        logger.info(f"Assigned node {node_name} is not compatible with item {item.id} any more")
        return None
