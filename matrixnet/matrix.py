"""
matrix.py
~~~~~~~~~

A simple and naive implementation of mathematical matrices.

A matrix is a 2-dimensional structure with specific dimensions that can hold
data of any type. The elements are stored in a flat list in row-major order:
the element in row ``r`` and column ``c`` lives at index ``columns * r + c``.

A ``2x3`` matrix of floats could look like this::

    [0.25   1.33    -0.1]
    [1.0    -2.73   1.2 ]

All arithmetic is delegated to the operators of the element type; the matrix
only contributes dimension checking and element-wise combination.
"""

import operator
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np

from matrixnet.dimension import Dimension, checked_length
from matrixnet.errors import CellOutOfBounds, DimensionMismatch


def _binary_operator(operation: Callable[[Any, Any], Any], symbol: str):
    """Create a binary operator combining a matrix with a matrix or a scalar."""

    def method(self, other):
        if isinstance(other, Matrix):
            return self._combine_element_wise(other, operation)
        return self._combine_with_scalar(other, operation)

    method.__name__ = f'__{operation.__name__.rstrip("_")}__'
    method.__doc__ = (
        f"Apply ``{symbol}`` to each element and the corresponding element "
        f"of another matrix, or to each element and a scalar."
    )
    return method


def _reflected_operator(operation: Callable[[Any, Any], Any], symbol: str):
    """Create a reflected operator for a scalar on the left-hand side."""

    def method(self, other):
        return self._combine_with_scalar(other, operation, reflected=True)

    method.__name__ = f'__r{operation.__name__.rstrip("_")}__'
    method.__doc__ = f"Apply ``{symbol}`` to a scalar and each element."
    return method


def _assign_operator(operation: Callable[[Any, Any], Any], symbol: str):
    """
    Create a compound assignment operator for scalars.

    A matrix on the right-hand side is not handled here: Python then falls
    back to the binary operator and rebinds the name, so a dimension mismatch
    leaves the receiver unchanged.
    """

    def method(self, other):
        if isinstance(other, Matrix):
            return NotImplemented
        # Compute everything first so a failing element leaves the matrix intact.
        data = [operation(value, other) for value in self._data]
        self._data[:] = data
        return self

    method.__name__ = f'__i{operation.__name__.rstrip("_")}__'
    method.__doc__ = f"Apply ``{symbol}=`` to each element and a scalar in place."
    return method


def _unary_operator(operation: Callable[[Any], Any], symbol: str):
    """Create an element-wise unary operator."""

    def method(self):
        return Matrix._wrap(
            self._rows, self._columns, [operation(value) for value in self._data]
        )

    method.__name__ = f'__{operation.__name__.rstrip("_")}__'
    method.__doc__ = f"Apply unary ``{symbol}`` to each element."
    return method


class Matrix:
    """
    A dense matrix with at least one row and one column.

    Matrices are created through the class methods :meth:`uniform`,
    :meth:`from_flat`, :meth:`from_rows`, :meth:`from_numpy` and
    :meth:`random`. Transposition and arithmetic return new matrices that do
    not share their data with the operands.

    Example:
        >>> a = Matrix.from_flat(1, 3, [3, 4, 2])
        >>> b = Matrix.from_flat(3, 2, [13, 9, 8, 7, 6, 4])
        >>> (a @ b).as_flat_slice()
        (83, 63)
    """

    # Make numpy scalars on the left of an operator defer to the matrix.
    __array_ufunc__ = None

    def __init__(self, rows: int, columns: int, data: Sequence[Any]):
        """
        Create a matrix from flat data in row-major order.

        Args:
            rows: Number of rows, at least one
            columns: Number of columns, at least one
            data: ``rows * columns`` elements; the first ``columns`` elements
                become the first row and so on

        Raises:
            InvalidDimension: If ``rows`` or ``columns`` is smaller than one
            DimensionsTooLarge: If ``rows * columns`` exceeds the maximum length
            DimensionMismatch: If the length of ``data`` is not ``rows * columns``
        """
        rows = Dimension(rows)
        columns = Dimension(columns)
        length = checked_length(rows, columns)

        if len(data) != length:
            raise DimensionMismatch(
                f"Expected {length} elements for a {rows}x{columns} matrix, "
                f"got {len(data)}."
            )

        self._rows: int = int(rows)
        self._columns: int = int(columns)
        self._data: List[Any] = list(data)

    @classmethod
    def _wrap(cls, rows: int, columns: int, data: List[Any]) -> 'Matrix':
        """Take ownership of already validated data without copying it."""
        matrix = cls.__new__(cls)
        matrix._rows = rows
        matrix._columns = columns
        matrix._data = data
        return matrix

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def uniform(cls, rows: int, columns: int, default: Any) -> 'Matrix':
        """
        Create a matrix with ``default`` in all elements.

        Example:
            >>> str(Matrix.uniform(2, 3, 0.25))
            '[0.25   0.25   0.25]\\n[0.25   0.25   0.25]'

        Raises:
            DimensionsTooLarge: If ``rows * columns`` exceeds the maximum length
        """
        rows = Dimension(rows)
        columns = Dimension(columns)
        length = checked_length(rows, columns)
        return cls._wrap(int(rows), int(columns), [default] * length)

    @classmethod
    def from_flat(cls, rows: int, columns: int, data: Sequence[Any]) -> 'Matrix':
        """
        Copy a flat sequence into a matrix of the given dimensions.

        Raises:
            DimensionsTooLarge: If ``rows * columns`` exceeds the maximum length
            DimensionMismatch: If the length of ``data`` is not ``rows * columns``
        """
        return cls(rows, columns, data)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]]) -> 'Matrix':
        """
        Create a matrix from a sequence of equally long rows.

        Raises:
            InvalidDimension: If there are no rows or the rows are empty
            DimensionMismatch: If the rows differ in length
        """
        row_lists = [list(row) for row in rows]
        number_of_rows = Dimension(len(row_lists))
        columns = Dimension(len(row_lists[0]))

        data: List[Any] = []
        for index, row in enumerate(row_lists):
            if len(row) != columns:
                raise DimensionMismatch(
                    f"Row {index} has {len(row)} elements, expected {columns}."
                )
            data.extend(row)

        return cls._wrap(int(number_of_rows), int(columns), data)

    @classmethod
    def from_numpy(cls, array: np.ndarray) -> 'Matrix':
        """
        Convert a 2-dimensional numpy array into a matrix of Python scalars.

        Raises:
            DimensionMismatch: If the array is not 2-dimensional
            InvalidDimension: If the array has no rows or no columns
        """
        array = np.asarray(array)
        if array.ndim != 2:
            raise DimensionMismatch(
                f"Expected a 2-dimensional array, got {array.ndim} dimension(s)."
            )

        rows = Dimension(array.shape[0])
        columns = Dimension(array.shape[1])
        return cls._wrap(int(rows), int(columns), array.reshape(-1).tolist())

    @classmethod
    def random(
        cls,
        rows: int,
        columns: int,
        rng: Optional[np.random.Generator] = None
    ) -> 'Matrix':
        """
        Create a matrix of floats drawn uniformly from ``[0.0, 1.0]``.

        Args:
            rows: Number of rows, at least one
            columns: Number of columns, at least one
            rng: Generator to draw from; numpy's global state if omitted

        Raises:
            DimensionsTooLarge: If ``rows * columns`` exceeds the maximum length
        """
        rows = Dimension(rows)
        columns = Dimension(columns)
        length = checked_length(rows, columns)

        generator = np.random if rng is None else rng
        data = generator.uniform(0.0, 1.0, size=length).tolist()
        return cls._wrap(int(rows), int(columns), data)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def rows(self) -> int:
        """The number of rows."""
        return self._rows

    @property
    def columns(self) -> int:
        """The number of columns."""
        return self._columns

    @property
    def shape(self) -> Tuple[int, int]:
        """The dimensions as ``(rows, columns)``."""
        return self._rows, self._columns

    def as_flat_slice(self) -> Tuple[Any, ...]:
        """
        Get the elements in row-major order.

        The matrix ``[[0, 1, 2], [3, 4, 5]]`` results in ``(0, 1, 2, 3, 4, 5)``.
        """
        return tuple(self._data)

    def to_rows(self) -> List[List[Any]]:
        """Get a nested list copy of the matrix, one list per row."""
        return [
            self._data[row * self._columns:(row + 1) * self._columns]
            for row in range(self._rows)
        ]

    def to_numpy(self) -> np.ndarray:
        """Get the matrix as a 2-dimensional numpy array."""
        return np.array(self._data).reshape(self._rows, self._columns)

    def copy(self) -> 'Matrix':
        """Get an independent copy of the matrix."""
        return Matrix._wrap(self._rows, self._columns, list(self._data))

    def _index_unchecked(self, row: int, column: int) -> int:
        # The caller guarantees that row and column are within the matrix.
        return self._columns * row + column

    def get(self, row: int, column: int) -> Any:
        """
        Get the element in row ``row`` and column ``column`` (0-indexed).

        Raises:
            CellOutOfBounds: If the cell is not part of the matrix
        """
        if not (0 <= row < self._rows and 0 <= column < self._columns):
            raise CellOutOfBounds(row, column, self._rows, self._columns)
        return self._data[self._index_unchecked(row, column)]

    def get_unchecked(self, row: int, column: int) -> Any:
        """
        Get an element without validating the coordinates.

        Only for callers that already iterate over valid coordinates. Calling
        it with a cell outside the matrix is a programming error, not a
        reportable condition; it is caught by an assertion at most.
        """
        assert 0 <= row < self._rows and 0 <= column < self._columns, (
            f"cell ({row}, {column}) outside {self._rows}x{self._columns} matrix"
        )
        return self._data[self._index_unchecked(row, column)]

    # ------------------------------------------------------------------
    # Transformation
    # ------------------------------------------------------------------

    def map(self, mapping: Callable[[Any, int, int], Any]) -> None:
        """
        Replace every element by ``mapping(element, row, column)``.

        The elements are visited in row-major order.

        Example:
            >>> matrix = Matrix.uniform(2, 2, 1)
            >>> matrix.map(lambda value, row, column: value + row * 10 + column)
            >>> matrix.as_flat_slice()
            (1, 2, 11, 12)
        """
        for row in range(self._rows):
            for column in range(self._columns):
                index = self._index_unchecked(row, column)
                self._data[index] = mapping(self._data[index], row, column)

    def map_in_place(self, mutate: Callable[[Any, int, int], None]) -> None:
        """
        Call ``mutate(element, row, column)`` on every element for its side
        effect.

        Meant for matrices of mutable elements (lists, arrays, accumulators)
        that are updated in place. The return value of ``mutate`` is ignored,
        so every element keeps its slot.
        """
        for row in range(self._rows):
            for column in range(self._columns):
                mutate(self._data[self._index_unchecked(row, column)], row, column)

    def transpose(self) -> 'Matrix':
        """
        Get a new matrix with rows and columns swapped.

        The result is built by walking its own buffer once and looking up the
        source element for each position.
        """
        length = self._rows * self._columns
        data: List[Any] = [None] * length

        # The transposed matrix has self._rows columns.
        for index in range(length):
            row, column = divmod(index, self._rows)
            data[index] = self._data[self._index_unchecked(column, row)]

        return Matrix._wrap(self._columns, self._rows, data)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _combine_element_wise(
        self,
        other: 'Matrix',
        operation: Callable[[Any, Any], Any]
    ) -> 'Matrix':
        if self._rows != other._rows or self._columns != other._columns:
            raise DimensionMismatch(
                f"Cannot combine a {self._rows}x{self._columns} matrix with a "
                f"{other._rows}x{other._columns} matrix element-wise."
            )

        data = [operation(a, b) for a, b in zip(self._data, other._data)]
        return Matrix._wrap(self._rows, self._columns, data)

    def _combine_with_scalar(
        self,
        scalar: Any,
        operation: Callable[[Any, Any], Any],
        reflected: bool = False
    ) -> 'Matrix':
        if reflected:
            data = [operation(scalar, value) for value in self._data]
        else:
            data = [operation(value, scalar) for value in self._data]
        return Matrix._wrap(self._rows, self._columns, data)

    __add__ = _binary_operator(operator.add, '+')
    __sub__ = _binary_operator(operator.sub, '-')
    __mul__ = _binary_operator(operator.mul, '*')
    __truediv__ = _binary_operator(operator.truediv, '/')
    __floordiv__ = _binary_operator(operator.floordiv, '//')
    __mod__ = _binary_operator(operator.mod, '%')
    __and__ = _binary_operator(operator.and_, '&')
    __or__ = _binary_operator(operator.or_, '|')
    __xor__ = _binary_operator(operator.xor, '^')
    __lshift__ = _binary_operator(operator.lshift, '<<')
    __rshift__ = _binary_operator(operator.rshift, '>>')

    __radd__ = _reflected_operator(operator.add, '+')
    __rsub__ = _reflected_operator(operator.sub, '-')
    __rmul__ = _reflected_operator(operator.mul, '*')
    __rtruediv__ = _reflected_operator(operator.truediv, '/')
    __rfloordiv__ = _reflected_operator(operator.floordiv, '//')
    __rmod__ = _reflected_operator(operator.mod, '%')
    __rand__ = _reflected_operator(operator.and_, '&')
    __ror__ = _reflected_operator(operator.or_, '|')
    __rxor__ = _reflected_operator(operator.xor, '^')
    __rlshift__ = _reflected_operator(operator.lshift, '<<')
    __rrshift__ = _reflected_operator(operator.rshift, '>>')

    __iadd__ = _assign_operator(operator.add, '+')
    __isub__ = _assign_operator(operator.sub, '-')
    __imul__ = _assign_operator(operator.mul, '*')
    __itruediv__ = _assign_operator(operator.truediv, '/')
    __ifloordiv__ = _assign_operator(operator.floordiv, '//')
    __imod__ = _assign_operator(operator.mod, '%')
    __iand__ = _assign_operator(operator.and_, '&')
    __ior__ = _assign_operator(operator.or_, '|')
    __ixor__ = _assign_operator(operator.xor, '^')
    __ilshift__ = _assign_operator(operator.lshift, '<<')
    __irshift__ = _assign_operator(operator.rshift, '>>')

    __neg__ = _unary_operator(operator.neg, '-')
    __invert__ = _unary_operator(operator.invert, '~')

    def matrix_mul(self, other: 'Matrix') -> 'Matrix':
        """
        Multiply this matrix with ``other`` (``self @ other``).

        Each element of the result is the dot product of a row of ``self``
        and a column of ``other``. The sum is seeded with the first product
        instead of a zero, so the element type needs no additive identity.

        Raises:
            DimensionMismatch: If ``self.columns != other.rows``
            DimensionsTooLarge: If ``self.rows * other.columns`` exceeds the
                maximum length
        """
        if self._columns != other._rows:
            raise DimensionMismatch(
                f"Cannot multiply a {self._rows}x{self._columns} matrix with a "
                f"{other._rows}x{other._columns} matrix."
            )

        checked_length(self._rows, other._columns)

        data: List[Any] = []
        for row in range(self._rows):
            for column in range(other._columns):
                element = self.get_unchecked(row, 0) * other.get_unchecked(0, column)
                for i in range(1, self._columns):
                    element = element + (
                        self.get_unchecked(row, i) * other.get_unchecked(i, column)
                    )
                data.append(element)

        return Matrix._wrap(self._rows, other._columns, data)

    def __matmul__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.matrix_mul(other)

    # ------------------------------------------------------------------
    # Comparison and formatting
    # ------------------------------------------------------------------

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return (
            self._rows == other._rows
            and self._columns == other._columns
            and self._data == other._data
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"Matrix(rows={self._rows}, columns={self._columns}, "
            f"data={self._data!r})"
        )

    def __str__(self) -> str:
        """
        Render the matrix as a grid with one bracketed row per line.

        Each column is left-aligned to the widest value in that column::

            [0.25   1.33    -0.1]
            [1.0    -2.73   1.2 ]
        """
        rendered = [str(value) for value in self._data]

        column_widths = [
            max(
                len(rendered[self._index_unchecked(row, column)])
                for row in range(self._rows)
            )
            for column in range(self._columns)
        ]

        lines = []
        for row in range(self._rows):
            values = [
                rendered[self._index_unchecked(row, column)].ljust(width)
                for column, width in enumerate(column_widths)
            ]
            lines.append(f"[{'   '.join(values)}]")

        return '\n'.join(lines)
