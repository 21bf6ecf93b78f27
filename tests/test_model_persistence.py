"""
test_model_persistence.py
~~~~~~~~~~~~~~~~~~~~~~~~~~

Unit tests for SQLite-based network persistence.
"""

import os
import sys
import sqlite3

import pytest

# Add the project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from matrixnet.matrix import Matrix
from matrixnet.network import Network, NetworkBuilder
from matrixnet.model_persistence import (
    save_network,
    load_network,
    list_saved_networks,
    delete_network,
    get_network_metadata,
    delete_old_networks,
    decode_layers,
    encode_layers,
    NetworkStore,
    _get_store
)


@pytest.fixture
def temp_db_dir(tmp_path):
    """Create a temporary directory for database storage."""
    db_dir = tmp_path / "test_models"
    db_dir.mkdir()
    return str(db_dir)


@pytest.fixture
def simple_network():
    """Create a simple 3 -> 4 -> 2 network for testing."""
    return NetworkBuilder(3).add_hidden_layer(4).add_output_layer(2)


def _age_network(model_dir, network_id, modifier):
    """Move the creation time of a stored network into the past."""
    conn = sqlite3.connect(os.path.join(model_dir, "networks.db"))
    conn.execute('''
        UPDATE networks
        SET created_at = datetime('now', ?)
        WHERE network_id = ?
    ''', (modifier, network_id))
    conn.commit()
    conn.close()


@pytest.mark.unit
class TestSerialization:
    """Test the JSON encoding of layers."""

    def test_encode_decode_keeps_layers(self, simple_network):
        """Test that weights and bias survive exactly."""
        restored = decode_layers(encode_layers(simple_network))

        assert restored.sizes == simple_network.sizes
        for original, loaded in zip(simple_network.layers, restored.layers):
            assert loaded.weights == original.weights
            assert loaded.bias == original.bias

    def test_decode_inconsistent_layers(self):
        """Test that a bias of the wrong size is rejected."""
        broken = (
            '[{"weights": {"rows": 2, "columns": 1, "data": [0.1, 0.2]}, '
            '"bias": {"rows": 3, "columns": 1, "data": [0.1, 0.2, 0.3]}}]'
        )

        with pytest.raises(ValueError):
            decode_layers(broken)


@pytest.mark.unit
class TestModelPersistence:
    """Test basic persistence operations."""

    def test_save_network_creates_database(self, simple_network, temp_db_dir):
        """Test that saving a network creates the database file."""
        assert save_network(simple_network, "test_network_1", model_dir=temp_db_dir) is True
        assert os.path.exists(f"{temp_db_dir}/networks.db")

    def test_save_network_with_metadata(self, simple_network, temp_db_dir):
        """Test that network metadata is saved correctly."""
        network_id = "described_network"

        save_network(
            simple_network,
            network_id,
            model_dir=temp_db_dir,
            description="three inputs, two outputs"
        )

        metadata = get_network_metadata(network_id, temp_db_dir)
        assert metadata is not None
        assert metadata['network_id'] == network_id
        assert metadata['architecture'] == [3, 4, 2]
        assert metadata['weights_shape'] == [[4, 3], [2, 4]]
        assert metadata['biases_shape'] == [[4, 1], [2, 1]]
        assert metadata['description'] == "three inputs, two outputs"

    def test_load_network_returns_network(self, simple_network, temp_db_dir):
        """Test that loading a network returns a valid Network object."""
        save_network(simple_network, "test_network_2", model_dir=temp_db_dir)
        loaded_network = load_network("test_network_2", temp_db_dir)

        assert isinstance(loaded_network, Network)
        assert loaded_network.sizes == simple_network.sizes

    def test_load_nonexistent_network(self, temp_db_dir):
        """Test that loading a non-existent network returns None."""
        assert load_network("nonexistent", temp_db_dir) is None

    def test_load_preserves_weights(self, simple_network, temp_db_dir):
        """Test that saved weights give identical predictions after loading."""
        save_network(simple_network, "test_network_3", model_dir=temp_db_dir)
        loaded_network = load_network("test_network_3", temp_db_dir)

        for original, loaded in zip(simple_network.layers, loaded_network.layers):
            assert loaded.weights == original.weights
            assert loaded.bias == original.bias

        input = Matrix.from_flat(3, 1, [0.2, 0.4, 0.6])
        assert loaded_network.predict(input) == simple_network.predict(input)

    def test_load_corrupt_network(self, simple_network, temp_db_dir):
        """Test that unreadable layer data returns None."""
        save_network(simple_network, "corrupt", model_dir=temp_db_dir)

        conn = sqlite3.connect(os.path.join(temp_db_dir, "networks.db"))
        conn.execute("UPDATE networks SET layers = 'not json' WHERE network_id = 'corrupt'")
        conn.commit()
        conn.close()

        assert load_network("corrupt", temp_db_dir) is None

    def test_load_non_integer_dimensions(self, simple_network, temp_db_dir):
        """Test that a stored dimension of the wrong type returns None."""
        save_network(simple_network, "bad_rows", model_dir=temp_db_dir)
        broken = (
            '[{"weights": {"rows": "2", "columns": 1, "data": [0.1, 0.2]}, '
            '"bias": {"rows": 2, "columns": 1, "data": [0.1, 0.2]}}]'
        )

        conn = sqlite3.connect(os.path.join(temp_db_dir, "networks.db"))
        conn.execute(
            "UPDATE networks SET layers = ? WHERE network_id = 'bad_rows'",
            (broken,)
        )
        conn.commit()
        conn.close()

        assert load_network("bad_rows", temp_db_dir) is None

    def test_store_reused_per_directory(self, temp_db_dir):
        """Test that one store is opened per database, however it is spelled."""
        first = _get_store(temp_db_dir)
        second = _get_store(os.path.join(temp_db_dir, '.'))

        assert first is second
        assert first.db_path == os.path.abspath(os.path.join(temp_db_dir, "networks.db"))

    @pytest.mark.parametrize('network_id', ["", None, 42])
    def test_invalid_network_id(self, simple_network, temp_db_dir, network_id):
        """Test that ids must be non-empty strings."""
        assert save_network(simple_network, network_id, model_dir=temp_db_dir) is False
        assert load_network(network_id, temp_db_dir) is None
        assert delete_network(network_id, temp_db_dir) is False
        assert get_network_metadata(network_id, temp_db_dir) is None

    def test_list_saved_networks_empty(self, temp_db_dir):
        """Test listing networks when database is empty."""
        assert list_saved_networks(temp_db_dir) == []

    def test_list_saved_networks(self, simple_network, temp_db_dir):
        """Test that listing networks returns correct metadata."""
        save_network(simple_network, "net1", model_dir=temp_db_dir)
        save_network(simple_network, "net2", model_dir=temp_db_dir)

        networks = list_saved_networks(temp_db_dir)

        assert len(networks) == 2
        assert {net['network_id'] for net in networks} == {"net1", "net2"}
        for net in networks:
            assert net['architecture'] == [3, 4, 2]
            assert 'created_at' in net
            assert 'updated_at' in net

    def test_delete_network_success(self, simple_network, temp_db_dir):
        """Test successful network deletion."""
        save_network(simple_network, "delete_test", model_dir=temp_db_dir)
        assert load_network("delete_test", temp_db_dir) is not None

        assert delete_network("delete_test", temp_db_dir) is True
        assert load_network("delete_test", temp_db_dir) is None

    def test_delete_nonexistent_network(self, temp_db_dir):
        """Test that deleting a non-existent network returns False."""
        assert delete_network("nonexistent", temp_db_dir) is False

    def test_update_network(self, simple_network, temp_db_dir):
        """Test that saving with the same ID replaces the network."""
        network_id = "update_test"
        save_network(simple_network, network_id, model_dir=temp_db_dir)

        bigger = NetworkBuilder(5).add_output_layer(1)
        save_network(bigger, network_id, model_dir=temp_db_dir, description="v2")

        metadata = get_network_metadata(network_id, temp_db_dir)
        assert metadata['architecture'] == [5, 1]
        assert metadata['description'] == "v2"
        assert len(list_saved_networks(temp_db_dir)) == 1


@pytest.mark.integration
class TestPersistenceIntegration:
    """Integration tests for network persistence."""

    def test_multiple_networks_coexist(self, temp_db_dir):
        """Test that multiple networks can coexist in the database."""
        architectures = {
            "wide_network": [784, 30, 10],
            "simple_network": [3, 4, 2],
            "deep_network": [10, 20, 20, 10],
        }

        for network_id, sizes in architectures.items():
            builder = NetworkBuilder(sizes[0])
            for nodes in sizes[1:-1]:
                builder.add_hidden_layer(nodes)
            save_network(builder.add_output_layer(sizes[-1]), network_id, model_dir=temp_db_dir)

        assert len(list_saved_networks(temp_db_dir)) == len(architectures)
        for network_id, sizes in architectures.items():
            assert load_network(network_id, temp_db_dir).sizes == sizes

    def test_store_used_directly(self, simple_network, temp_db_dir):
        """Test the NetworkStore methods without the module helpers."""
        store = NetworkStore(db_path=os.path.join(temp_db_dir, "direct.db"))

        store.save(simple_network, "direct")

        assert store.metadata("direct")['architecture'] == [3, 4, 2]
        assert store.load("direct").sizes == [3, 4, 2]
        assert [net['network_id'] for net in store.list()] == ["direct"]
        assert store.delete("direct") is True
        assert store.load("direct") is None

    def test_store_creates_missing_directory(self, tmp_path):
        """Test that nested model directories are created."""
        db_path = tmp_path / "a" / "b" / "networks.db"

        NetworkStore(db_path=str(db_path))

        assert db_path.exists()


class TestDeleteOldNetworks:
    """Tests for cleanup of old networks."""

    def test_delete_old_networks_basic(self, simple_network, temp_db_dir):
        """Test that networks older than the threshold are deleted."""
        save_network(simple_network, "old_network", model_dir=temp_db_dir)
        _age_network(temp_db_dir, "old_network", '-3 days')

        assert delete_old_networks(days=2, model_dir=temp_db_dir) == 1
        assert load_network("old_network", temp_db_dir) is None

    def test_delete_old_networks_preserves_recent(self, simple_network, temp_db_dir):
        """Test that recent networks are not deleted."""
        save_network(simple_network, "recent_network", model_dir=temp_db_dir)

        assert delete_old_networks(days=2, model_dir=temp_db_dir) == 0
        assert load_network("recent_network", temp_db_dir) is not None

    def test_delete_old_networks_mixed_ages(self, simple_network, temp_db_dir):
        """Test with a mix of old and recent networks."""
        old_ids = ["old_1", "old_2"]
        recent_ids = ["recent_1", "recent_2"]
        for network_id in old_ids + recent_ids:
            save_network(simple_network, network_id, model_dir=temp_db_dir)
        for network_id in old_ids:
            _age_network(temp_db_dir, network_id, '-3 days')

        assert delete_old_networks(days=2, model_dir=temp_db_dir) == len(old_ids)
        for network_id in old_ids:
            assert load_network(network_id, temp_db_dir) is None
        for network_id in recent_ids:
            assert load_network(network_id, temp_db_dir) is not None

    def test_delete_old_networks_custom_days(self, simple_network, temp_db_dir):
        """Test different day thresholds."""
        save_network(simple_network, "five_days", model_dir=temp_db_dir)
        _age_network(temp_db_dir, "five_days", '-5 days')

        assert delete_old_networks(days=7, model_dir=temp_db_dir) == 0
        assert delete_old_networks(days=3, model_dir=temp_db_dir) == 1

    def test_delete_old_networks_zero_days(self, simple_network, temp_db_dir):
        """Test that days=0 deletes anything created before now."""
        save_network(simple_network, "hour_old", model_dir=temp_db_dir)
        _age_network(temp_db_dir, "hour_old", '-1 hour')

        assert delete_old_networks(days=0, model_dir=temp_db_dir) == 1

    def test_delete_old_networks_empty_db(self, temp_db_dir):
        assert delete_old_networks(days=2, model_dir=temp_db_dir) == 0

    def test_delete_old_networks_negative_days(self, temp_db_dir):
        """Test that negative days raises ValueError."""
        with pytest.raises(ValueError) as exc_info:
            delete_old_networks(days=-1, model_dir=temp_db_dir)
        assert "non-negative" in str(exc_info.value)

    def test_update_keeps_creation_time(self, simple_network, temp_db_dir):
        """Test that replacing a network does not make it look recent."""
        save_network(simple_network, "replaced", model_dir=temp_db_dir)
        _age_network(temp_db_dir, "replaced", '-3 days')
        save_network(simple_network, "replaced", model_dir=temp_db_dir)

        assert delete_old_networks(days=2, model_dir=temp_db_dir) == 1
