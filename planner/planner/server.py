"""
HTTP API server for the queue planner.

This module provides a Flask-based REST API that renders queue snapshots
for the solver and keeps the assignment table from the latest solution.
"""

from flask import Flask, request, jsonify
from datetime import datetime
from threading import Lock
from typing import Dict, Any, List
import logging

from . import __version__
from .assignments import NodeAssignments
from .serializer import QueueSerializer, calculate_snapshot_metrics
from .types import (
    MalformedDocument, NodeUnavailable, SerializerConfig, StaticNode,
    StaticQueueItem, UnknownId, NOT_ASSIGNED
)


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(levelname)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def parse_queue(data: Dict[str, Any]) -> List[StaticQueueItem]:
    """
    Parse a live queue description from a request body.

    Args:
        data: Decoded request body with a "queue" list

    Returns:
        Queue items in request order

    Raises:
        KeyError, TypeError, ValueError: If an item or node is incomplete
    """
    queue = data['queue']
    if not isinstance(queue, list):
        raise ValueError("'queue' must be a list")

    items = []
    for item_data in queue:
        if not isinstance(item_data, dict):
            raise ValueError(f"Queue item {item_data!r} is not an object")

        node_list = item_data.get('nodes', [])
        if not isinstance(node_list, list):
            raise ValueError(f"'nodes' of item {item_data.get('id')!r} must be a list")

        nodes = []
        for node_data in node_list:
            if not isinstance(node_data, dict):
                raise ValueError(f"Node {node_data!r} is not an object")
            nodes.append(StaticNode(
                name=_field(node_data, 'name', str),
                executors=_field(node_data, 'executors', int),
                free_executors=_field(node_data, 'freeExecutors', int),
                online=_field(node_data, 'online', bool, True)
            ))

        items.append(StaticQueueItem(
            id=_field(item_data, 'id', int),
            priority=_field(item_data, 'priority', int),
            in_queue_since=_field(item_data, 'inQueueSince', int),
            display_name=_field(item_data, 'name', str, ''),
            nodes=nodes
        ))
    return items


_MISSING = object()


def _field(data: Dict[str, Any], key: str, kind: type, default: Any = _MISSING) -> Any:
    """Read a field that must already have the given JSON type."""
    if key not in data:
        if default is _MISSING:
            raise KeyError(key)
        return default

    value = data[key]
    # bool is an int subclass
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"'{key}' must be {kind.__name__}, got {value!r}")
    return value


def create_app(config: Dict[str, Any] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config: Optional configuration dictionary

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)

    # Default configuration
    app.config.update({
        'TESTING': False,
        'UNASSIGNED_MARKER': NOT_ASSIGNED,
        'DROP_UNAVAILABLE_NODES': True,
    })

    # Apply custom config
    if config:
        app.config.update(config)

    serializer = QueueSerializer(SerializerConfig(
        unassigned_marker=app.config['UNASSIGNED_MARKER'],
        drop_unavailable_nodes=app.config['DROP_UNAVAILABLE_NODES']
    ))

    # Replaced wholesale after every solution
    state = {'assignments': NodeAssignments.builder(serializer.config.unassigned_marker).build()}
    state_lock = Lock()

    def current_assignments() -> NodeAssignments:
        with state_lock:
            return state['assignments']

    @app.route('/health', methods=['GET'])
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'service': 'queue-planner',
            'version': __version__,
            'timestamp': datetime.utcnow().isoformat()
        })

    @app.route('/snapshot', methods=['POST'])
    def snapshot():
        """
        Render the snapshot document for the solver.

        Request body:
        {
            "queue": [
                {
                    "id": 4,
                    "priority": 70,
                    "inQueueSince": 5,
                    "name": "raven_eap",
                    "nodes": [
                        {"name": "slave1", "executors": 7, "freeExecutors": 7},
                        {"name": "slave2", "executors": 1, "freeExecutors": 0, "online": false}
                    ]
                }
            ]
        }

        Response is the snapshot document, with "assigned" taken from the
        latest solution.
        """
        data = request.get_json(silent=True)
        if not data:
            return jsonify({'error': 'Empty request body'}), 400

        try:
            items = parse_queue(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid queue data: {e}")
            return jsonify({'error': f'Invalid queue data: {e}'}), 400

        try:
            descriptors = serializer.describe(items, current_assignments())
        except NodeUnavailable as e:
            logger.error(f"Snapshot aborted: {e}")
            return jsonify({'error': str(e)}), 503

        metrics = calculate_snapshot_metrics(descriptors)
        logger.info(f"Snapshot of {len(descriptors)} queue items")
        logger.info(f"Metrics: {metrics}")

        return app.response_class(serializer.render(descriptors), status=200, mimetype='application/json')

    @app.route('/solution', methods=['POST'])
    def solution():
        """
        Replace the assignment table with a solver solution.

        Request body:
        {
            "solution": [
                {"id": 1, "name": "job@1", "node": "vmg77-Win2k3-x86_64"},
                {"id": 2, "name": "job@2", "node": "not-assigned"}
            ]
        }
        """
        try:
            assignments = serializer.deserialize(request.get_data(as_text=True))
        except MalformedDocument as e:
            logger.error(f"Rejected solution: {e}")
            return jsonify({'error': str(e)}), 400

        with state_lock:
            state['assignments'] = assignments

        logger.info(f"Accepted solution with {assignments.size()} assignments")
        return jsonify({'assignments': assignments.size()}), 200

    @app.route('/assignments', methods=['GET'])
    def list_assignments():
        """Get the current assignment table."""
        return jsonify({
            'assignments': {
                str(task_id): node_name
                for task_id, node_name in current_assignments().items()
            }
        })

    @app.route('/assignments/<int:task_id>', methods=['GET'])
    def get_assignment(task_id: int):
        """Get the node assigned to one task."""
        try:
            node_name = current_assignments().task_node_name(task_id)
        except UnknownId as e:
            return jsonify({'error': str(e)}), 404
        return jsonify({'id': task_id, 'node': node_name})

    @app.route('/config', methods=['GET'])
    def get_config():
        """Get current serializer configuration."""
        return jsonify({
            'unassigned_marker': serializer.config.unassigned_marker,
            'drop_unavailable_nodes': serializer.config.drop_unavailable_nodes
        })

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        logger.error(f"Internal server error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


def run_server(host: str = '0.0.0.0', port: int = 8001, debug: bool = False):
    """
    Run the queue planner HTTP server.

    Args:
        host: Host to bind to
        port: Port to listen on
        debug: Enable debug mode
    """
    logger.info("=" * 50)
    logger.info("  Queue Planner Server")
    logger.info("=" * 50)
    logger.info("")
    logger.info(f"Starting server on {host}:{port}")
    logger.info("")
    logger.info("Endpoints:")
    logger.info(f"  POST {host}:{port}/snapshot        - Render queue snapshot")
    logger.info(f"  POST {host}:{port}/solution        - Load solver solution")
    logger.info(f"  GET  {host}:{port}/assignments     - List assignments")
    logger.info(f"  GET  {host}:{port}/assignments/<id> - Get one assignment")
    logger.info(f"  GET  {host}:{port}/health          - Health check")
    logger.info(f"  GET  {host}:{port}/config          - Get configuration")
    logger.info("")

    app = create_app()
    app.run(host=host, port=port, debug=debug)


if __name__ == '__main__':
    run_server()
