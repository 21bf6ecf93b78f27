"""
api_server.py
~~~~~~~~~~~~~

Flask-based REST API for building networks and running predictions.

This module provides endpoints for:
- Creating networks from layer sizes
- Running forward predictions on a column of input values
- Persisting networks to/from the SQLite database
"""

import math
import uuid
import logging
from numbers import Real
from typing import Any, Dict, List, Optional

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from matrixnet.config import configure_logging, load_settings
from matrixnet.errors import MatrixNetError
from matrixnet.matrix import Matrix
from matrixnet.network import Network, NetworkBuilder
from matrixnet.model_persistence import (
    save_network,
    load_network,
    list_saved_networks,
    delete_network,
    delete_old_networks
)

# ============================================================================
# APP SETUP
# ============================================================================

settings = load_settings()
configure_logging(settings)
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app, resources={r"/api/*": {"origins": "*"}})
app.config['MODEL_DIR'] = settings.model_dir
app.config['MAX_NETWORK_NODES'] = settings.max_network_nodes

# Networks currently loaded in memory: {network_id: network}
active_networks: Dict[str, Network] = {}


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _model_dir() -> str:
    return current_app.config['MODEL_DIR']


def _get_network(network_id: str) -> Optional[Network]:
    """Find a network in memory, falling back to the database."""
    net = active_networks.get(network_id)
    if net is None:
        net = load_network(network_id, _model_dir())
        if net is not None:
            active_networks[network_id] = net
    return net


def _validate_size(value: Any, name: str) -> Optional[str]:
    """Return an error message if ``value`` is not a usable layer size."""
    max_nodes = current_app.config['MAX_NETWORK_NODES']
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return f'{name} must be a positive integer'
    if value > max_nodes:
        return f'{name} must not exceed {max_nodes}'
    return None


def _describe(network_id: str, net: Network) -> Dict[str, Any]:
    return {
        'network_id': network_id,
        'architecture': net.sizes,
        'weights_shape': [list(layer.weights.shape) for layer in net.layers],
        'biases_shape': [list(layer.bias.shape) for layer in net.layers]
    }


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.route('/api/status', methods=['GET'])
def get_status():
    """Return server status and the number of networks in memory."""
    return jsonify({
        'status': 'online',
        'active_networks': len(active_networks)
    }), 200


@app.route('/api/networks', methods=['POST'])
def create_network():
    """
    Create a new network.

    Request body:
        {
            'input_nodes': 3,
            'hidden_layers': [7],   # optional
            'output_nodes': 10,
            'save': false           # optional
        }

    Returns:
        JSON with network_id and architecture
    """
    data = request.get_json(silent=True) or {}
    input_nodes = data.get('input_nodes')
    hidden_layers = data.get('hidden_layers', [])
    output_nodes = data.get('output_nodes')

    if not isinstance(hidden_layers, list):
        return jsonify({'error': 'hidden_layers must be a list'}), 400

    errors: List[str] = [
        message for message in (
            _validate_size(input_nodes, 'input_nodes'),
            _validate_size(output_nodes, 'output_nodes'),
            *(_validate_size(nodes, 'hidden_layers entries') for nodes in hidden_layers)
        )
        if message is not None
    ]
    if errors:
        logger.warning(f"Invalid architecture requested: {data}")
        return jsonify({'error': errors[0]}), 400

    builder = NetworkBuilder(input_nodes)
    for nodes in hidden_layers:
        builder.add_hidden_layer(nodes)
    net = builder.add_output_layer(output_nodes)

    network_id = str(uuid.uuid4())
    active_networks[network_id] = net
    logger.info(f"Created network {network_id} with architecture {net.sizes}")

    saved = False
    if data.get('save'):
        saved = save_network(net, network_id, model_dir=_model_dir())

    return jsonify({
        'network_id': network_id,
        'architecture': net.sizes,
        'saved': saved,
        'status': 'created'
    }), 201


@app.route('/api/networks', methods=['GET'])
def list_networks():
    """List all available networks (both in-memory and saved to disk)."""
    in_memory = [
        {'network_id': nid, 'architecture': net.sizes, 'status': 'in_memory'}
        for nid, net in active_networks.items()
    ]

    saved_only = []
    for net_info in list_saved_networks(_model_dir()):
        if net_info['network_id'] not in active_networks:
            net_info['status'] = 'saved'
            saved_only.append(net_info)

    logger.debug(f"Listing networks: {len(in_memory)} in memory, {len(saved_only)} saved")
    return jsonify({'networks': in_memory + saved_only}), 200


@app.route('/api/networks/<network_id>', methods=['GET'])
def get_network(network_id: str):
    """Return the architecture and layer shapes of a network."""
    net = _get_network(network_id)
    if net is None:
        logger.warning(f"Requested non-existent network: {network_id}")
        return jsonify({'error': 'Network not found'}), 404

    return jsonify(_describe(network_id, net)), 200


@app.route('/api/networks/<network_id>/predict', methods=['POST'])
def predict(network_id: str):
    """
    Run a forward prediction.

    Request body:
        {'input': [0.5, 0.1, 0.9]}   # one value per input node

    Returns:
        JSON with the output values of the last layer
    """
    net = _get_network(network_id)
    if net is None:
        logger.warning(f"Prediction requested for non-existent network: {network_id}")
        return jsonify({'error': 'Network not found'}), 404

    data = request.get_json(silent=True) or {}
    values = data.get('input')

    if not isinstance(values, list) or not values:
        return jsonify({'error': 'input must be a non-empty list of numbers'}), 400
    if any(isinstance(v, bool) or not isinstance(v, Real) for v in values):
        return jsonify({'error': 'input must only contain numbers'}), 400
    try:
        floats = [float(v) for v in values]
    except OverflowError:
        return jsonify({'error': 'input must only contain finite numbers'}), 400
    if not all(math.isfinite(v) for v in floats):
        return jsonify({'error': 'input must only contain finite numbers'}), 400

    input_nodes = net.sizes[0]
    if len(values) != input_nodes:
        return jsonify({
            'error': f'input must have {input_nodes} values, got {len(values)}'
        }), 400

    try:
        output = net.predict(Matrix.from_flat(len(floats), 1, floats))
    except MatrixNetError as e:
        logger.error(f"Prediction failed for network {network_id}: {e}")
        return jsonify({'error': str(e)}), 400

    return jsonify({
        'network_id': network_id,
        'output': list(output.as_flat_slice())
    }), 200


@app.route('/api/networks/<network_id>/save', methods=['POST'])
def save_network_endpoint(network_id: str):
    """Persist an in-memory network to the database."""
    net = _get_network(network_id)
    if net is None:
        return jsonify({'error': 'Network not found'}), 404

    data = request.get_json(silent=True) or {}
    if not save_network(net, network_id, model_dir=_model_dir(),
                        description=data.get('description')):
        return jsonify({'error': 'Failed to save network'}), 500

    return jsonify({'network_id': network_id, 'status': 'saved'}), 200


@app.route('/api/networks/<network_id>', methods=['DELETE'])
def delete_network_endpoint(network_id: str):
    """Delete a network from both memory and disk."""
    deleted_from_memory = active_networks.pop(network_id, None) is not None
    deleted_from_disk = delete_network(network_id, _model_dir())

    if not deleted_from_memory and not deleted_from_disk:
        logger.warning(f"Delete attempted for non-existent network: {network_id}")
        return jsonify({'error': 'Network not found'}), 404

    logger.info(
        f"Deleted network {network_id}: memory={deleted_from_memory}, "
        f"disk={deleted_from_disk}"
    )
    return jsonify({
        'network_id': network_id,
        'deleted_from_memory': deleted_from_memory,
        'deleted_from_disk': deleted_from_disk
    }), 200


@app.route('/api/networks/cleanup', methods=['POST'])
def cleanup_old_networks_endpoint():
    """
    Delete saved networks older than the given number of days.

    Request body (optional):
        {'days': 2}  # defaults to 2
    """
    data = request.get_json(silent=True) or {}
    days = data.get('days', 2)

    if isinstance(days, bool) or not isinstance(days, Real) or days < 0:
        return jsonify({'error': 'days must be a non-negative number'}), 400

    deleted_count = delete_old_networks(days=days, model_dir=_model_dir())
    if deleted_count == -1:
        return jsonify({'error': 'Error occurred during cleanup'}), 500

    return jsonify({
        'deleted_count': deleted_count,
        'days': days,
        'message': f'Deleted {deleted_count} network(s) older than {days} day(s)'
    }), 200


if __name__ == '__main__':
    logger.info(f"Starting server at http://localhost:{settings.port}/")
    app.run(host='0.0.0.0', port=settings.port, debug=not settings.is_production)
