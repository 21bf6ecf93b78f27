"""
matrixnet package
~~~~~~~~~~~~~~~~~

Dense matrices and a minimal feed-forward neural network built on them.
Contains the matrix implementation, sigmoid layers, networks and their
builder, network persistence, and an inference API server.
"""

from matrixnet.dimension import Dimension
from matrixnet.errors import (
    CellOutOfBounds,
    DimensionMismatch,
    DimensionsTooLarge,
    EmptyNetwork,
    InvalidDimension,
    MatrixNetError
)
from matrixnet.layer import Layer
from matrixnet.matrix import Matrix
from matrixnet.network import Network, NetworkBuilder

__version__ = "1.0.0"

__all__ = [
    'CellOutOfBounds',
    'Dimension',
    'DimensionMismatch',
    'DimensionsTooLarge',
    'EmptyNetwork',
    'InvalidDimension',
    'Layer',
    'Matrix',
    'MatrixNetError',
    'Network',
    'NetworkBuilder',
]
