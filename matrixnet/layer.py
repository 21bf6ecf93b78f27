"""
layer.py
~~~~~~~~

A single fully connected layer with sigmoid activation.
"""

import math
import logging
from typing import Optional

import numpy as np

from matrixnet.dimension import Dimension
from matrixnet.errors import DimensionMismatch
from matrixnet.matrix import Matrix

logger = logging.getLogger(__name__)


def sigmoid(x: float) -> float:
    """The logistic function ``1 / (1 + e^-x)``."""
    # Split on the sign so math.exp never overflows.
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


class Layer:
    """
    Computes ``sigmoid(weights * input + bias)``.

    ``weights`` has ``output_nodes`` rows and ``input_nodes`` columns,
    ``bias`` is a column of ``output_nodes`` elements. Both are drawn
    uniformly from ``[0, 1]`` on creation and never change afterwards.
    """

    def __init__(
        self,
        input_nodes: int,
        output_nodes: int,
        rng: Optional[np.random.Generator] = None
    ):
        """
        Create a layer with random weights and bias.

        Args:
            input_nodes: Number of values the layer accepts
            output_nodes: Number of values the layer produces
            rng: Generator for the initial values

        Raises:
            DimensionsTooLarge: If ``input_nodes * output_nodes`` exceeds the
                maximum matrix length
        """
        input_nodes = Dimension(input_nodes)
        output_nodes = Dimension(output_nodes)

        self.weights = Matrix.random(output_nodes, input_nodes, rng=rng)
        self.bias = Matrix.random(output_nodes, 1, rng=rng)

        logger.debug(f"Created layer {int(input_nodes)} -> {int(output_nodes)}")

    @classmethod
    def from_matrices(cls, weights: Matrix, bias: Matrix) -> 'Layer':
        """
        Create a layer from existing weights and bias, e.g. from storage.

        Raises:
            DimensionMismatch: If ``bias`` is not a ``weights.rows x 1`` matrix
        """
        if bias.columns != 1 or bias.rows != weights.rows:
            raise DimensionMismatch(
                f"Bias must be a {weights.rows}x1 matrix for "
                f"{weights.rows}x{weights.columns} weights, got "
                f"{bias.rows}x{bias.columns}."
            )

        layer = cls.__new__(cls)
        layer.weights = weights.copy()
        layer.bias = bias.copy()
        return layer

    @property
    def input_nodes(self) -> int:
        return self.weights.columns

    @property
    def output_nodes(self) -> int:
        return self.weights.rows

    def predict(self, input: Matrix) -> Matrix:
        """
        Feed a column of ``input_nodes`` values through the layer.

        Returns:
            Matrix: A column of ``output_nodes`` values in ``[0, 1]``

        Raises:
            DimensionMismatch: If ``input`` has more than one column or does
                not have ``input_nodes`` rows
        """
        if input.columns != 1:
            raise DimensionMismatch(
                f"Layer input must have exactly one column, got {input.columns}."
            )

        output = self.weights.matrix_mul(input)
        output = output + self.bias
        output.map(lambda value, row, column: sigmoid(value))

        return output

    def __repr__(self) -> str:
        return f"Layer(input_nodes={self.input_nodes}, output_nodes={self.output_nodes})"
