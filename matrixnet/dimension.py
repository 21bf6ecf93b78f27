"""
dimension.py
~~~~~~~~~~~~

Strictly positive sizes for matrix rows, columns and layer nodes.
"""

import sys
import operator

from matrixnet.errors import DimensionsTooLarge, InvalidDimension

# Largest number of elements a matrix may hold.
MAX_LENGTH = sys.maxsize


class Dimension(int):
    """
    An integer that is at least one.

    Zero-sized matrices and layers cannot be represented: constructing a
    dimension from zero or a negative number raises
    :class:`~matrixnet.errors.InvalidDimension`.

    Example:
        >>> Dimension(3) + 1
        4
        >>> Dimension(0)
        Traceback (most recent call last):
        ...
        matrixnet.errors.InvalidDimension: Dimensions must be > 0, got 0.
    """

    def __new__(cls, value):
        # operator.index accepts any integer type, numpy integers included.
        if isinstance(value, bool):
            raise TypeError("Dimensions must be integers, got bool.")
        try:
            value = operator.index(value)
        except TypeError:
            raise TypeError(
                f"Dimensions must be integers, got {type(value).__name__}."
            ) from None
        if value < 1:
            raise InvalidDimension(f"Dimensions must be > 0, got {value}.")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"Dimension({int(self)})"


def checked_length(rows: int, columns: int) -> int:
    """
    Get the number of elements of a ``rows x columns`` matrix.

    Raises:
        DimensionsTooLarge: If the product exceeds :data:`MAX_LENGTH`
    """
    length = rows * columns
    if length > MAX_LENGTH:
        raise DimensionsTooLarge(rows, columns)
    return length
