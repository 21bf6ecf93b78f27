"""
model_persistence.py
~~~~~~~~~~~~~~~~~~~~

SQLite-based persistence for networks.

Networks are stored as JSON: the architecture (layer sizes) for queries and
the weights and bias of every layer for rebuilding the network.
"""

import os
import json
import sqlite3
import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from matrixnet.errors import MatrixNetError
from matrixnet.layer import Layer
from matrixnet.matrix import Matrix
from matrixnet.network import Network

logger = logging.getLogger(__name__)

DB_FILENAME = 'networks.db'


class MatrixEncoder(json.JSONEncoder):
    """JSON encoder that writes matrices as ``{rows, columns, data}``."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Matrix):
            return {
                'rows': obj.rows,
                'columns': obj.columns,
                'data': list(obj.as_flat_slice())
            }
        return super().default(obj)


def _decode_matrix(payload: Dict[str, Any]) -> Matrix:
    return Matrix.from_flat(payload['rows'], payload['columns'], payload['data'])


def encode_layers(network: Network) -> str:
    """Serialize the weights and bias of every layer to JSON."""
    return json.dumps(
        [{'weights': layer.weights, 'bias': layer.bias} for layer in network.layers],
        cls=MatrixEncoder
    )


def decode_layers(layers_json: str) -> Network:
    """
    Rebuild a network from :func:`encode_layers` output.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON
        KeyError: If a layer or matrix entry is missing
        TypeError: If a stored dimension is not an integer
        MatrixNetError: If the stored matrices are inconsistent
    """
    layers = [
        Layer.from_matrices(
            _decode_matrix(entry['weights']),
            _decode_matrix(entry['bias'])
        )
        for entry in json.loads(layers_json)
    ]
    return Network(layers)


class NetworkStore:
    """
    Manages the SQLite database holding saved networks.

    The database stores:
    - Network metadata (architecture, description, timestamps)
    - The layers of every network as JSON
    """

    def __init__(self, db_path: str = os.path.join('models', DB_FILENAME)):
        """
        Open (and create, if needed) the database.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._ensure_directory()
        self._initialize_schema()

    def _ensure_directory(self) -> None:
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.

        Commits on success, rolls back on any exception.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _initialize_schema(self) -> None:
        with self._get_connection() as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS networks (
                    network_id TEXT PRIMARY KEY,
                    architecture TEXT NOT NULL,
                    layers TEXT NOT NULL,
                    description TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')
            conn.execute('''
                CREATE INDEX IF NOT EXISTS idx_created_at
                ON networks(created_at DESC)
            ''')

    @staticmethod
    def _row_to_metadata(row: sqlite3.Row) -> Dict[str, Any]:
        architecture = json.loads(row['architecture'])
        return {
            'network_id': row['network_id'],
            'architecture': architecture,
            'weights_shape': [
                [architecture[i + 1], architecture[i]]
                for i in range(len(architecture) - 1)
            ],
            'biases_shape': [
                [architecture[i + 1], 1]
                for i in range(len(architecture) - 1)
            ],
            'description': row['description'],
            'created_at': row['created_at'],
            'updated_at': row['updated_at']
        }

    def save(
        self,
        network: Network,
        network_id: str,
        description: Optional[str] = None
    ) -> None:
        """
        Insert a network, replacing any network with the same id.

        A replaced network keeps its original ``created_at``.
        """
        architecture_json = json.dumps(network.sizes)
        layers_json = encode_layers(network)

        with self._get_connection() as conn:
            conn.execute('''
                INSERT INTO networks (network_id, architecture, layers, description)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(network_id) DO UPDATE SET
                    architecture = excluded.architecture,
                    layers = excluded.layers,
                    description = excluded.description,
                    updated_at = CURRENT_TIMESTAMP
            ''', (network_id, architecture_json, layers_json, description))

        logger.info(f"Saved network '{network_id}' with architecture {network.sizes}")

    def load(self, network_id: str) -> Optional[Network]:
        """Rebuild a stored network, or return None if it does not exist."""
        with self._get_connection() as conn:
            row = conn.execute(
                'SELECT layers FROM networks WHERE network_id = ?',
                (network_id,)
            ).fetchone()

        if row is None:
            logger.warning(f"Network '{network_id}' not found")
            return None

        network = decode_layers(row['layers'])
        logger.info(f"Loaded network '{network_id}'")
        return network

    def list(self) -> List[Dict[str, Any]]:
        """Metadata of all stored networks, newest first."""
        with self._get_connection() as conn:
            rows = conn.execute('''
                SELECT network_id, architecture, description, created_at, updated_at
                FROM networks
                ORDER BY created_at DESC
            ''').fetchall()

        networks = [self._row_to_metadata(row) for row in rows]
        logger.debug(f"Listed {len(networks)} networks")
        return networks

    def metadata(self, network_id: str) -> Optional[Dict[str, Any]]:
        """Metadata of one network without rebuilding its layers."""
        with self._get_connection() as conn:
            row = conn.execute('''
                SELECT network_id, architecture, description, created_at, updated_at
                FROM networks
                WHERE network_id = ?
            ''', (network_id,)).fetchone()

        if row is None:
            logger.warning(f"Metadata for network '{network_id}' not found")
            return None

        return self._row_to_metadata(row)

    def delete(self, network_id: str) -> bool:
        """Delete a network. Returns False if it did not exist."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                'DELETE FROM networks WHERE network_id = ?',
                (network_id,)
            )
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info(f"Deleted network '{network_id}'")
        else:
            logger.warning(f"Could not delete network '{network_id}': not found")
        return deleted

    def delete_older_than(self, days: float) -> int:
        """
        Delete networks created more than ``days`` days ago.

        Returns:
            int: Number of deleted networks

        Raises:
            ValueError: If ``days`` is negative
        """
        if days < 0:
            raise ValueError(f"days must be non-negative, got {days}")

        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM networks WHERE created_at < datetime('now', ?)",
                (f'-{days} days',)
            )
            deleted = cursor.rowcount

        logger.info(f"Deleted {deleted} network(s) older than {days} day(s)")
        return deleted


# One store per database path, kept for the life of the process. A store only
# holds its path; connections are opened per operation and closed again.
_stores: Dict[str, NetworkStore] = {}


def _get_store(model_dir: str) -> NetworkStore:
    """Get the store for a model directory, opening it on first use."""
    db_path = os.path.abspath(os.path.join(model_dir, DB_FILENAME))
    if db_path not in _stores:
        _stores[db_path] = NetworkStore(db_path=db_path)
    return _stores[db_path]


def _is_valid_id(network_id: Any) -> bool:
    if not network_id or not isinstance(network_id, str):
        logger.error("Invalid network_id: must be a non-empty string")
        return False
    return True


def save_network(
    network: Network,
    network_id: str,
    model_dir: str = 'models',
    description: Optional[str] = None
) -> bool:
    """
    Save a network to the database in ``model_dir``.

    Returns:
        bool: True if the save was successful, False otherwise

    Example:
        >>> net = NetworkBuilder(3).add_output_layer(2)
        >>> save_network(net, "my_network")
        True
    """
    if not _is_valid_id(network_id):
        return False

    try:
        _get_store(model_dir).save(network, network_id, description)
        return True
    except sqlite3.Error as e:
        logger.error(f"Database error saving network '{network_id}': {e}")
        return False
    except (TypeError, ValueError) as e:
        logger.error(f"Serialization error saving network '{network_id}': {e}")
        return False


def load_network(network_id: str, model_dir: str = 'models') -> Optional[Network]:
    """
    Load a network from the database in ``model_dir``.

    Returns:
        The rebuilt network, or None if it is missing or unreadable
    """
    if not _is_valid_id(network_id):
        return None

    try:
        return _get_store(model_dir).load(network_id)
    except sqlite3.Error as e:
        logger.error(f"Database error loading network '{network_id}': {e}")
        return None
    except (json.JSONDecodeError, KeyError, TypeError, MatrixNetError) as e:
        logger.error(f"Corrupt data for network '{network_id}': {e}")
        return None


def list_saved_networks(model_dir: str = 'models') -> List[Dict[str, Any]]:
    """
    List all saved networks with their metadata.

    Example:
        >>> for net in list_saved_networks():
        ...     print(f"{net['network_id']}: {net['architecture']}")
    """
    try:
        return _get_store(model_dir).list()
    except sqlite3.Error as e:
        logger.error(f"Database error listing networks: {e}")
        return []
    except json.JSONDecodeError as e:
        logger.error(f"JSON decode error listing networks: {e}")
        return []


def delete_network(network_id: str, model_dir: str = 'models') -> bool:
    """Delete a saved network. Returns True if it existed."""
    if not _is_valid_id(network_id):
        return False

    try:
        return _get_store(model_dir).delete(network_id)
    except sqlite3.Error as e:
        logger.error(f"Database error deleting network '{network_id}': {e}")
        return False


def get_network_metadata(
    network_id: str,
    model_dir: str = 'models'
) -> Optional[Dict[str, Any]]:
    """Get the metadata of a saved network without rebuilding it."""
    if not _is_valid_id(network_id):
        return None

    try:
        return _get_store(model_dir).metadata(network_id)
    except sqlite3.Error as e:
        logger.error(f"Database error getting metadata for '{network_id}': {e}")
        return None
    except json.JSONDecodeError as e:
        logger.error(f"JSON decode error getting metadata for '{network_id}': {e}")
        return None


def delete_old_networks(days: float = 2, model_dir: str = 'models') -> int:
    """
    Delete saved networks older than ``days`` days.

    Returns:
        int: Number of deleted networks, or -1 on a database error

    Raises:
        ValueError: If ``days`` is negative
    """
    try:
        return _get_store(model_dir).delete_older_than(days)
    except sqlite3.Error as e:
        logger.error(f"Database error deleting old networks: {e}")
        return -1
