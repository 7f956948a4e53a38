"""Dense vector and matrix containers used by the network engine.

Both containers wrap a contiguous ``float64`` :class:`numpy.ndarray` whose
shape is fixed at construction.  Every binary operation checks the shapes of
its operands first and raises :class:`~neuronnet.core.errors.ShapeMismatch`
instead of broadcasting, so a wrongly sized buffer can never be silently
reinterpreted.
"""

from __future__ import annotations

from numbers import Real
from typing import Callable, Iterable, Iterator, Sequence, Tuple

import numpy as np

from .errors import ShapeMismatch, check_length

DTYPE = np.float64


def _as_scalar(value: object) -> float | None:
    if isinstance(value, (Real, np.floating, np.integer)) and not isinstance(value, bool):
        return float(value)
    return None


class Vector:
    """Fixed-length dense vector of floats."""

    __slots__ = ("_values",)
    __hash__ = None  # mutable
    __array_ufunc__ = None  # numpy defers to our operators instead of broadcasting

    def __init__(self, values: int | Iterable[float] | np.ndarray, fill: float = 0.0) -> None:
        if isinstance(values, (int, np.integer)) and not isinstance(values, bool):
            if values < 0:
                raise ShapeMismatch(f"Vector length must be non-negative, got {values}")
            self._values = np.full(int(values), fill, dtype=DTYPE)
            return
        array = np.array(values, dtype=DTYPE)
        if array.ndim != 1:
            raise ShapeMismatch(f"Vector requires 1-D data, got shape {array.shape}")
        self._values = array

    # ------------------------------------------------------------------
    # Construction helpers

    @classmethod
    def filled(cls, count: int, fill: float = 0.0) -> "Vector":
        return cls(count, fill)

    @classmethod
    def zeros(cls, count: int) -> "Vector":
        return cls(count, 0.0)

    @classmethod
    def map(cls, a: "Vector", fn: Callable[[float], float]) -> "Vector":
        """Return a new vector with ``fn`` applied to every component of ``a``."""

        values = np.fromiter((fn(x) for x in a._values.tolist()), dtype=DTYPE, count=len(a))
        return cls._wrap(values)

    @classmethod
    def zip(cls, a: "Vector", b: "Vector", fn: Callable[[float, float], float]) -> "Vector":
        """Return ``fn(a[i], b[i])`` for every component."""

        check_length("Vector.zip", len(b), len(a))
        pairs = zip(a._values.tolist(), b._values.tolist())
        values = np.fromiter((fn(x, y) for x, y in pairs), dtype=DTYPE, count=len(a))
        return cls._wrap(values)

    @classmethod
    def product(cls, matrix: "Matrix", vector: "Vector", out: "Vector | None" = None) -> "Vector":
        """Matrix-vector product: ``result[row] = sum_col matrix[row, col] * vector[col]``."""

        if matrix.n_columns != len(vector):
            raise ShapeMismatch(
                f"Cannot multiply a {matrix.n_rows}x{matrix.n_columns} matrix "
                f"by a vector of length {len(vector)}"
            )
        if out is None:
            return cls._wrap(matrix.values @ vector.values)
        check_length("matrix-vector product output", len(out), matrix.n_rows)
        np.matmul(matrix.values, vector.values, out=out.values)
        return out

    @classmethod
    def _wrap(cls, array: np.ndarray) -> "Vector":
        vector = cls.__new__(cls)
        vector._values = np.ascontiguousarray(array, dtype=DTYPE)
        return vector

    # ------------------------------------------------------------------
    # Container protocol

    @property
    def count(self) -> int:
        return int(self._values.shape[0])

    @property
    def values(self) -> np.ndarray:
        """The live backing array; writes go straight into the vector."""

        return self._values

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[float]:
        return iter(self._values.tolist())

    def __getitem__(self, index: int) -> float:
        return float(self._values[index])

    def __setitem__(self, index: int, value: float) -> None:
        self._values[index] = value

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        if dtype is not None and np.dtype(dtype) != self._values.dtype:
            return self._values.astype(dtype)
        return self._values.copy() if copy else self._values

    def tolist(self) -> list[float]:
        return self._values.tolist()

    def copy(self) -> "Vector":
        return Vector._wrap(self._values.copy())

    def fill(self, value: float) -> "Vector":
        self._values.fill(value)
        return self

    def copy_from(self, other: "Vector") -> "Vector":
        check_length("Vector.copy_from", len(other), len(self))
        np.copyto(self._values, other._values)
        return self

    def resized(self, count: int) -> "Vector":
        """Return a copy of length ``count``; overlap is kept, new entries are zero."""

        out = Vector.zeros(count)
        keep = min(count, len(self))
        out._values[:keep] = self._values[:keep]
        return out

    # ------------------------------------------------------------------
    # Arithmetic

    def _operand(self, other: object, op: str) -> np.ndarray | float:
        if isinstance(other, Vector):
            if len(other) != len(self):
                raise ShapeMismatch(
                    f"Vector {op}: operand lengths differ ({len(self)} vs {len(other)})"
                )
            return other._values
        if isinstance(other, np.ndarray):
            if other.shape != self._values.shape:
                raise ShapeMismatch(
                    f"Vector {op}: array operand has shape {other.shape}, expected ({len(self)},)"
                )
            return other.astype(DTYPE, copy=False)
        scalar = _as_scalar(other)
        if scalar is None:
            return NotImplemented  # type: ignore[return-value]
        return scalar

    def _binary(self, other: object, op: str, fn) -> "Vector":
        rhs = self._operand(other, op)
        if rhs is NotImplemented:
            return NotImplemented  # type: ignore[return-value]
        return Vector._wrap(fn(self._values, rhs))

    def _inplace(self, other: object, op: str, fn) -> "Vector":
        rhs = self._operand(other, op)
        if rhs is NotImplemented:
            return NotImplemented  # type: ignore[return-value]
        fn(self._values, rhs, out=self._values)
        return self

    def __add__(self, other: object) -> "Vector":
        return self._binary(other, "+", np.add)

    def __sub__(self, other: object) -> "Vector":
        return self._binary(other, "-", np.subtract)

    def __mul__(self, other: object) -> "Vector":
        return self._binary(other, "*", np.multiply)

    def __truediv__(self, other: object) -> "Vector":
        return self._binary(other, "/", np.divide)

    def __rmul__(self, other: object) -> "Vector":
        if _as_scalar(other) is None:
            return NotImplemented
        return self.__mul__(other)

    def __iadd__(self, other: object) -> "Vector":
        return self._inplace(other, "+=", np.add)

    def __isub__(self, other: object) -> "Vector":
        return self._inplace(other, "-=", np.subtract)

    def __imul__(self, other: object) -> "Vector":
        return self._inplace(other, "*=", np.multiply)

    def __itruediv__(self, other: object) -> "Vector":
        return self._inplace(other, "/=", np.divide)

    def __neg__(self) -> "Vector":
        return Vector._wrap(-self._values)

    def dot(self, other: "Vector") -> float:
        check_length("Vector.dot", len(other), len(self))
        return float(np.dot(self._values, other._values))

    # ------------------------------------------------------------------
    # Comparison

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return len(self) == len(other) and bool(np.array_equal(self._values, other._values))

    def allclose(self, other: "Vector", rtol: float = 1e-9, atol: float = 1e-12) -> bool:
        check_length("Vector.allclose", len(other), len(self))
        return bool(np.allclose(self._values, other._values, rtol=rtol, atol=atol))

    def __repr__(self) -> str:
        return f"Vector({self._values.tolist()!r})"


class Matrix:
    """Dense ``n_rows x n_columns`` matrix stored row-major."""

    __slots__ = ("_values",)
    __hash__ = None  # mutable
    __array_ufunc__ = None  # numpy defers to our operators instead of broadcasting

    def __init__(self, rows: int, columns: int, diagonal: float = 1.0) -> None:
        if rows < 0 or columns < 0:
            raise ShapeMismatch(f"Matrix dimensions must be non-negative, got {rows}x{columns}")
        values = np.zeros((int(rows), int(columns)), dtype=DTYPE)
        if min(rows, columns) > 0 and diagonal != 0.0:
            np.fill_diagonal(values, diagonal)
        self._values = values

    @classmethod
    def zeros(cls, rows: int, columns: int) -> "Matrix":
        return cls(rows, columns, diagonal=0.0)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]] | np.ndarray) -> "Matrix":
        array = np.array(rows, dtype=DTYPE)
        if array.ndim != 2:
            raise ShapeMismatch(f"Matrix requires 2-D data, got shape {array.shape}")
        return cls._wrap(array)

    @classmethod
    def product(cls, lhs: "Matrix", rhs: "Matrix") -> "Matrix":
        """Standard matrix product ``lhs @ rhs``."""

        if lhs.n_columns != rhs.n_rows:
            raise ShapeMismatch(
                f"Cannot multiply {lhs.n_rows}x{lhs.n_columns} by {rhs.n_rows}x{rhs.n_columns}"
            )
        return cls._wrap(lhs._values @ rhs._values)

    @classmethod
    def _wrap(cls, array: np.ndarray) -> "Matrix":
        matrix = cls.__new__(cls)
        matrix._values = np.ascontiguousarray(array, dtype=DTYPE)
        return matrix

    @property
    def n_rows(self) -> int:
        return int(self._values.shape[0])

    @property
    def n_columns(self) -> int:
        return int(self._values.shape[1])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.n_rows, self.n_columns

    @property
    def values(self) -> np.ndarray:
        """The live backing array; writes go straight into the matrix."""

        return self._values

    def __getitem__(self, index: Tuple[int, int]) -> float:
        row, column = index
        return float(self._values[row, column])

    def __setitem__(self, index: Tuple[int, int], value: float) -> None:
        row, column = index
        self._values[row, column] = value

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        if dtype is not None and np.dtype(dtype) != self._values.dtype:
            return self._values.astype(dtype)
        return self._values.copy() if copy else self._values

    def row(self, index: int) -> Vector:
        return Vector._wrap(self._values[index].copy())

    def tolist(self) -> list[list[float]]:
        return self._values.tolist()

    def transpose(self) -> "Matrix":
        """Return a new matrix ``t`` with ``t[c, r] == self[r, c]``."""

        return Matrix._wrap(self._values.T.copy())

    def copy(self) -> "Matrix":
        return Matrix._wrap(self._values.copy())

    def fill(self, value: float) -> "Matrix":
        self._values.fill(value)
        return self

    def copy_from(self, other: "Matrix") -> "Matrix":
        if other.shape != self.shape:
            raise ShapeMismatch(f"Matrix.copy_from: expected {self.shape}, got {other.shape}")
        np.copyto(self._values, other._values)
        return self

    def resized(self, rows: int, columns: int) -> "Matrix":
        """Return a ``rows x columns`` copy; overlap is kept, new entries are zero."""

        out = Matrix.zeros(rows, columns)
        keep_r = min(rows, self.n_rows)
        keep_c = min(columns, self.n_columns)
        out._values[:keep_r, :keep_c] = self._values[:keep_r, :keep_c]
        return out

    def add_outer(self, column: Vector, row: Vector) -> "Matrix":
        """Accumulate ``self[r, c] += column[r] * row[c]`` in place."""

        check_length("Matrix.add_outer rows", len(column), self.n_rows)
        check_length("Matrix.add_outer columns", len(row), self.n_columns)
        self._values += np.outer(column.values, row.values)
        return self

    def __matmul__(self, other: object):
        if isinstance(other, Matrix):
            return Matrix.product(self, other)
        if isinstance(other, Vector):
            return Vector.product(self, other)
        return NotImplemented

    def _operand(self, other: object, op: str) -> np.ndarray | float:
        if isinstance(other, Matrix):
            if other.shape != self.shape:
                raise ShapeMismatch(f"Matrix {op}: shapes differ ({self.shape} vs {other.shape})")
            return other._values
        if isinstance(other, np.ndarray):
            if other.shape != self.shape:
                raise ShapeMismatch(
                    f"Matrix {op}: array operand has shape {other.shape}, expected {self.shape}"
                )
            return other.astype(DTYPE, copy=False)
        scalar = _as_scalar(other)
        if scalar is None:
            return NotImplemented  # type: ignore[return-value]
        return scalar

    def __add__(self, other: object) -> "Matrix":
        rhs = self._operand(other, "+")
        if rhs is NotImplemented:
            return NotImplemented
        return Matrix._wrap(self._values + rhs)

    def __sub__(self, other: object) -> "Matrix":
        rhs = self._operand(other, "-")
        if rhs is NotImplemented:
            return NotImplemented
        return Matrix._wrap(self._values - rhs)

    def __mul__(self, other: object) -> "Matrix":
        if _as_scalar(other) is None:
            return NotImplemented
        return Matrix._wrap(self._values * float(other))  # type: ignore[arg-type]

    __rmul__ = __mul__

    def __iadd__(self, other: object) -> "Matrix":
        rhs = self._operand(other, "+=")
        if rhs is NotImplemented:
            return NotImplemented
        self._values += rhs
        return self

    def __isub__(self, other: object) -> "Matrix":
        rhs = self._operand(other, "-=")
        if rhs is NotImplemented:
            return NotImplemented
        self._values -= rhs
        return self

    def __itruediv__(self, other: object) -> "Matrix":
        scalar = _as_scalar(other)
        if scalar is None:
            return NotImplemented
        self._values /= scalar
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._values, other._values))

    def allclose(self, other: "Matrix", rtol: float = 1e-9, atol: float = 1e-12) -> bool:
        if other.shape != self.shape:
            raise ShapeMismatch(f"Matrix.allclose: shapes differ ({self.shape} vs {other.shape})")
        return bool(np.allclose(self._values, other._values, rtol=rtol, atol=atol))

    def __repr__(self) -> str:
        return f"Matrix({self._values.tolist()!r})"


__all__ = ["DTYPE", "Matrix", "Vector"]
