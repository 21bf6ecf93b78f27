"""
errors.py
~~~~~~~~~

Exceptions raised by matrices, layers and networks.

Every exception derives from :class:`MatrixNetError` and from the builtin
exception that best describes it, so callers may catch either.
"""


class MatrixNetError(Exception):
    """Base class for all errors raised by this package."""


class DimensionMismatch(MatrixNetError, ValueError):
    """
    The shapes of two operands are incompatible.

    Also raised when the length of flat data does not match the requested
    dimensions, or when a layer or network receives an input with more than
    one column.
    """

    def __init__(self, message: str = "The dimensions of the operands do not match."):
        super().__init__(message)


class DimensionsTooLarge(MatrixNetError, ValueError):
    """The product of rows and columns exceeds the maximum container length."""

    def __init__(self, rows: int, columns: int):
        self.rows = rows
        self.columns = columns
        super().__init__(
            f"The product of rows and columns ({rows} x {columns}) must not "
            f"exceed the maximum length, sys.maxsize."
        )


class CellOutOfBounds(MatrixNetError, IndexError):
    """A checked access requested a cell outside the matrix."""

    def __init__(self, row: int, column: int, rows: int, columns: int):
        self.row = row
        self.column = column
        super().__init__(
            f"The cell ({row}, {column}) is not part of the "
            f"{rows}x{columns} matrix."
        )


class EmptyNetwork(MatrixNetError, ValueError):
    """A network was constructed without any layers."""

    def __init__(self):
        super().__init__("A network requires at least one layer.")


class InvalidDimension(MatrixNetError, ValueError):
    """A dimension was smaller than one."""
