"""
network.py
~~~~~~~~~~

Feed-forward networks of sigmoid layers and a builder that wires the layer
sizes together.

Example:
    >>> builder = NetworkBuilder(3)
    >>> network = builder.add_hidden_layer(7).add_output_layer(10)
    >>> network.sizes
    [3, 7, 10]
    >>> output = network.predict(Matrix.from_flat(3, 1, [0.5, 0.1, 0.9]))
    >>> output.shape
    (10, 1)
"""

import logging
from typing import Iterable, List, Optional, Tuple

import numpy as np

from matrixnet.dimension import Dimension
from matrixnet.errors import DimensionMismatch, EmptyNetwork
from matrixnet.layer import Layer
from matrixnet.matrix import Matrix

logger = logging.getLogger(__name__)


class Network:
    """An ordered chain of layers, each feeding its output into the next."""

    def __init__(self, layers: Iterable[Layer]):
        """
        Create a network from its layers.

        Adjacent layers are not checked against each other here; use
        :class:`NetworkBuilder` to get matching sizes. A mismatch surfaces
        as :class:`~matrixnet.errors.DimensionMismatch` in :meth:`predict`.

        Raises:
            EmptyNetwork: If ``layers`` is empty
        """
        self._layers: Tuple[Layer, ...] = tuple(layers)
        if not self._layers:
            raise EmptyNetwork()

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return self._layers

    @property
    def sizes(self) -> List[int]:
        """Number of nodes per layer, starting with the input layer."""
        return [self._layers[0].input_nodes] + [
            layer.output_nodes for layer in self._layers
        ]

    def predict(self, input: Matrix) -> Matrix:
        """
        Feed a column of input values through all layers.

        Raises:
            DimensionMismatch: If ``input`` has more than one column or its
                rows do not match the first layer
        """
        if input.columns != 1:
            raise DimensionMismatch(
                f"Network input must have exactly one column, got {input.columns}."
            )

        output = input
        for layer in self._layers:
            output = layer.predict(output)

        return output

    def __repr__(self) -> str:
        return f"Network(sizes={self.sizes})"


class NetworkBuilder:
    """
    Collects layer sizes and builds a :class:`Network` from them.

    ``add_hidden_layer`` returns the builder so calls can be chained. The
    builder is not consumed by ``add_output_layer`` and may build several
    networks with the same architecture.
    """

    def __init__(self, input_nodes: int):
        self.input_nodes = Dimension(input_nodes)
        self.hidden_layer_sizes: List[Dimension] = []

    def add_hidden_layer(self, nodes: int) -> 'NetworkBuilder':
        """Append a hidden layer with ``nodes`` nodes."""
        self.hidden_layer_sizes.append(Dimension(nodes))
        return self

    def add_output_layer(
        self,
        nodes: int,
        rng: Optional[np.random.Generator] = None
    ) -> Network:
        """
        Finish the architecture with an output layer and build the network.

        One layer is created for every pair of consecutive sizes in
        ``[input_nodes, *hidden_layer_sizes, nodes]``.

        Raises:
            DimensionsTooLarge: If any layer's weight matrix is too large
        """
        sizes = [self.input_nodes, *self.hidden_layer_sizes, Dimension(nodes)]

        layers = [
            Layer(input_nodes, output_nodes, rng=rng)
            for input_nodes, output_nodes in zip(sizes, sizes[1:])
        ]

        network = Network(layers)
        logger.debug(f"Built network with sizes {network.sizes}")
        return network
