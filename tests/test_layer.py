"""
test_layer.py
~~~~~~~~~~~~~

Unit tests for sigmoid layers.
"""

import os
import sys

import numpy as np
import pytest

# Add the project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from matrixnet.layer import Layer, sigmoid
from matrixnet.matrix import Matrix
from matrixnet.errors import DimensionMismatch, DimensionsTooLarge, InvalidDimension


@pytest.mark.unit
class TestSigmoid:
    """Test the logistic function."""

    def test_zero(self):
        assert sigmoid(0.0) == 0.5

    def test_symmetry(self):
        """Test that sigmoid(-x) == 1 - sigmoid(x)."""
        for x in (0.1, 1.0, 3.5, 10.0):
            assert sigmoid(-x) == pytest.approx(1.0 - sigmoid(x))

    def test_extreme_values(self):
        """Test that large magnitudes saturate instead of overflowing."""
        assert sigmoid(1000.0) == 1.0
        assert sigmoid(-1000.0) == 0.0


@pytest.mark.unit
class TestLayer:
    """Test creating layers and predicting with them."""

    def test_new_valid_size(self):
        """Test the shapes of weights and bias."""
        layer = Layer(2, 3)

        assert layer.weights.shape == (3, 2)
        assert layer.bias.shape == (3, 1)
        assert layer.input_nodes == 2
        assert layer.output_nodes == 3
        for value in layer.weights.as_flat_slice() + layer.bias.as_flat_slice():
            assert 0.0 <= value <= 1.0

    def test_new_invalid_size(self):
        """Test that oversized weight matrices are rejected."""
        with pytest.raises(DimensionsTooLarge):
            Layer(sys.maxsize, 2)

    def test_new_zero_nodes(self):
        with pytest.raises(InvalidDimension):
            Layer(0, 2)

    def test_new_reproducible(self):
        """Test that equally seeded generators give equal layers."""
        first = Layer(3, 4, rng=np.random.default_rng(7))
        second = Layer(3, 4, rng=np.random.default_rng(7))

        assert first.weights == second.weights
        assert first.bias == second.bias

    def test_predict_valid_input(self):
        """Test that the output is a column of sigmoid values."""
        layer = Layer(3, 5)
        output = layer.predict(Matrix.from_flat(3, 1, [1.0, 1.1, 1.2]))

        assert output.shape == (5, 1)
        for value in output.as_flat_slice():
            assert 0.0 <= value <= 1.0

    def test_predict_known_weights(self):
        """Test the affine transform and activation with fixed values."""
        weights = Matrix.from_rows([[1.0, -1.0], [0.0, 0.0]])
        bias = Matrix.from_flat(2, 1, [0.5, 0.0])
        layer = Layer.from_matrices(weights, bias)

        output = layer.predict(Matrix.from_flat(2, 1, [2.0, 1.0]))

        assert list(output.as_flat_slice()) == pytest.approx([sigmoid(1.5), 0.5])

    def test_predict_does_not_mutate_layer(self):
        layer = Layer(2, 2)
        weights = layer.weights.copy()
        bias = layer.bias.copy()

        layer.predict(Matrix.from_flat(2, 1, [0.3, 0.7]))

        assert layer.weights == weights
        assert layer.bias == bias

    def test_predict_too_many_columns(self):
        """Test that the input must be a single column."""
        layer = Layer(3, 2)

        with pytest.raises(DimensionMismatch):
            layer.predict(Matrix.uniform(3, 2, 1.0))

    def test_predict_wrong_number_of_rows(self):
        """Test that the input must have input_nodes rows."""
        layer = Layer(3, 2)

        with pytest.raises(DimensionMismatch):
            layer.predict(Matrix.uniform(4, 1, 1.0))

    def test_from_matrices_bias_mismatch(self):
        """Test that the bias must be a weights.rows x 1 column."""
        weights = Matrix.uniform(3, 2, 0.5)

        with pytest.raises(DimensionMismatch):
            Layer.from_matrices(weights, Matrix.uniform(2, 1, 0.5))
        with pytest.raises(DimensionMismatch):
            Layer.from_matrices(weights, Matrix.uniform(3, 2, 0.5))

    def test_from_matrices_copies(self):
        """Test that the layer does not share matrices with the caller."""
        weights = Matrix.uniform(1, 1, 0.0)
        bias = Matrix.uniform(1, 1, 0.0)
        layer = Layer.from_matrices(weights, bias)

        weights += 100.0

        assert layer.weights.get(0, 0) == 0.0
