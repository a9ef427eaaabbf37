"""
Data models for the queue planner.

This module defines the core data structures exchanged with the solver:
- Descriptors of candidate nodes and queued items
- Interfaces the live build queue must provide
- Serializer configuration and error conditions
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple


NOT_ASSIGNED = "not-assigned"


class PlannerError(Exception):
    """Base class for queue planner errors."""


class NodeUnavailable(PlannerError):
    """A compatible node could not report its live executor state."""

    def __init__(self, node_name: str, reason: str = "no executor accounting"):
        super().__init__(f"Node {node_name!r} unavailable: {reason}")
        self.node_name = node_name
        self.reason = reason


class MalformedDocument(PlannerError, ValueError):
    """A solution document does not follow the expected schema."""


class UnknownId(PlannerError, KeyError):
    """Lookup of a task id that was never recorded in an assignment table."""

    def __init__(self, task_id: int):
        super().__init__(task_id)
        self.task_id = task_id

    def __str__(self) -> str:
        return f"No assignment recorded for task {self.task_id}"


@dataclass(frozen=True)
class NodeDescriptor:
    """
    Snapshot of one candidate execution node.

    Attributes:
        name: Display name of the node
        executors: Number of executor slots configured on the node
        free_executors: Executor slots idle when the snapshot was taken
    """
    name: str
    executors: int
    free_executors: int

    def __post_init__(self):
        """Validate node fields."""
        if not self.name:
            raise ValueError("Node name must not be empty")
        if self.executors < 0:
            raise ValueError(f"Executor count cannot be negative, got {self.executors}")
        if not 0 <= self.free_executors <= self.executors:
            raise ValueError(
                f"Free executors must be between 0 and {self.executors}, "
                f"got {self.free_executors}"
            )

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'executors': self.executors,
            'freeExecutors': self.free_executors,
        }


@dataclass(frozen=True)
class QueueItemDescriptor:
    """
    Snapshot of one pending job.

    Attributes:
        id: Queue id of the job, stable across solver rounds
        priority: Externally supplied scheduling priority
        in_queue_since: Epoch milliseconds when the job entered the queue
        name: Display name of the job
        nodes: Compatible nodes, sorted by name
        assigned: Node name from the previous solution, if any
    """
    id: int
    priority: int
    in_queue_since: int
    name: str
    nodes: Tuple[NodeDescriptor, ...] = ()
    assigned: Optional[str] = None

    def __post_init__(self):
        """Validate item fields."""
        for label, value in (('Id', self.id), ('Priority', self.priority),
                             ('Queue time', self.in_queue_since)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{label} must be an integer, got {value!r}")
        if not isinstance(self.name, str):
            raise ValueError(f"Item name must be a string, got {self.name!r}")
        if self.assigned is not None and not isinstance(self.assigned, str):
            raise ValueError(f"Assigned node must be a string, got {self.assigned!r}")

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'priority': self.priority,
            'inQueueSince': self.in_queue_since,
            'name': self.name,
            'nodes': [node.to_dict() for node in self.nodes],
            'assigned': self.assigned,
        }


class ExecutorAccounting(ABC):
    """Live view of the executors running on a node."""

    @abstractmethod
    def count_idle(self) -> int:
        """Number of executors currently idle."""
        ...


class LiveNode(ABC):
    """A node of the build farm as seen by the live queue."""

    name: str
    executors: int

    @abstractmethod
    def executor_accounting(self) -> Optional[ExecutorAccounting]:
        """Executor accounting handle, or None when the node is offline."""
        ...


class LiveQueueItem(ABC):
    """A pending job as seen by the live queue."""

    id: int
    priority: int
    in_queue_since: int
    display_name: str

    @abstractmethod
    def compatible_nodes(self) -> Iterable[LiveNode]:
        """Nodes matching the label the job is restricted to."""
        ...


@dataclass
class StaticAccounting(ExecutorAccounting):
    idle: int

    def count_idle(self) -> int:
        return self.idle


@dataclass
class StaticNode(LiveNode):
    """
    Node with fixed executor state, built from a request body.

    Attributes:
        name: Display name of the node
        executors: Configured executor count
        free_executors: Idle executor count
        online: Offline nodes report no executor accounting
    """
    name: str
    executors: int
    free_executors: int
    online: bool = True

    def executor_accounting(self) -> Optional[ExecutorAccounting]:
        if not self.online:
            return None
        return StaticAccounting(self.free_executors)


@dataclass
class StaticQueueItem(LiveQueueItem):
    """
    Queue item with a fixed set of compatible nodes.

    Attributes:
        id: Queue id of the job
        priority: Scheduling priority
        in_queue_since: Epoch milliseconds when the job was queued
        display_name: Display name of the job
        nodes: Nodes the job may run on
    """
    id: int
    priority: int
    in_queue_since: int
    display_name: str
    nodes: List[LiveNode] = field(default_factory=list)

    def compatible_nodes(self) -> Iterable[LiveNode]:
        return list(self.nodes)


@dataclass(frozen=True)
class SerializerConfig:
    """
    Configuration for the queue serializer.

    Attributes:
        unassigned_marker: Node value the solver uses for "no node chosen"
        drop_unavailable_nodes: Drop nodes that cannot report executor state
            instead of failing the whole snapshot
    """
    unassigned_marker: str = NOT_ASSIGNED
    drop_unavailable_nodes: bool = True
