"""
Queue Planner Package

Exports the pending build queue as a deterministic snapshot for an
external solver and reads the solver's job to node assignments back.
"""

__version__ = '0.1.0'

from .types import (
    NOT_ASSIGNED,
    NodeDescriptor,
    QueueItemDescriptor,
    LiveNode,
    LiveQueueItem,
    ExecutorAccounting,
    StaticNode,
    StaticQueueItem,
    SerializerConfig,
    PlannerError,
    NodeUnavailable,
    MalformedDocument,
    UnknownId
)

from .assignments import NodeAssignments, Builder

from .serializer import (
    QueueSerializer,
    build_node_descriptor,
    build_item_descriptor,
    calculate_snapshot_metrics
)

from .balancer import AssignmentBalancer

from .server import create_app, run_server

__all__ = [
    'NOT_ASSIGNED',
    'NodeDescriptor',
    'QueueItemDescriptor',
    'LiveNode',
    'LiveQueueItem',
    'ExecutorAccounting',
    'StaticNode',
    'StaticQueueItem',
    'SerializerConfig',
    'PlannerError',
    'NodeUnavailable',
    'MalformedDocument',
    'UnknownId',
    'NodeAssignments',
    'Builder',
    'QueueSerializer',
    'build_node_descriptor',
    'build_item_descriptor',
    'calculate_snapshot_metrics',
    'AssignmentBalancer',
    'create_app',
    'run_server',
]
