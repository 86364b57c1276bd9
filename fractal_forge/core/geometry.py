"""
Small fixed-size linear algebra types used by the chaos game.

Vectors and matrices wrap numpy arrays. Arithmetic never mutates its operands:
``add``, ``sub`` and ``multiply`` always hand back a new object, so callers can
share vectors between transforms without aliasing surprises. ``Vector.set`` is
the only in-place mutator and exists for interactive parameter tuning.
"""

import math
from typing import Iterable, Iterator, List, Union

import numpy as np

Number = Union[int, float]


class Vector:
    """Ordered sequence of real components."""

    def __init__(self, *components: Number):
        """
        Initialize a vector.

        Args:
            *components: Real components, at least one
        """
        if len(components) == 1 and isinstance(components[0], (list, tuple, np.ndarray)):
            components = tuple(components[0])
        if len(components) == 0:
            raise ValueError("Vector must have at least one component")
        self._elements = np.array(components, dtype=np.float64)

    @classmethod
    def from_array(cls, array: Iterable[Number]) -> 'Vector':
        """Create a vector from any iterable of numbers."""
        return cls(*[float(value) for value in array])

    @property
    def size(self) -> int:
        return self._elements.shape[0]

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= self.size:
            raise IndexError(f"Index {index} is out of range for vector of size {self.size}")

    def get(self, index: int) -> float:
        """Get the component at ``index``."""
        self._check_index(index)
        return float(self._elements[index])

    def set(self, index: int, value: Number) -> None:
        """Set the component at ``index`` in place."""
        self._check_index(index)
        self._elements[index] = value

    def _check_size(self, other: 'Vector') -> None:
        if self.size != other.size:
            raise ValueError(
                f"Vector sizes differ: {self.size} and {other.size}"
            )

    def add(self, other: 'Vector') -> 'Vector':
        """Return the componentwise sum of this vector and ``other``."""
        self._check_size(other)
        return self._new(self._elements + other._elements)

    def sub(self, other: 'Vector') -> 'Vector':
        """Return the componentwise difference of this vector and ``other``."""
        self._check_size(other)
        return self._new(self._elements - other._elements)

    def mul(self, scalar: Number) -> 'Vector':
        """Return this vector scaled by ``scalar``."""
        return self._new(self._elements * scalar)

    def _new(self, array: np.ndarray) -> 'Vector':
        return Vector.from_array(array)

    def is_zero(self) -> bool:
        return not np.any(self._elements)

    def to_list(self) -> List[float]:
        return [float(value) for value in self._elements]

    def to_array(self) -> np.ndarray:
        """Return a copy of the components as a numpy array."""
        return self._elements.copy()

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[float]:
        return iter(self.to_list())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector) or type(self) is not type(other):
            return NotImplemented
        return np.array_equal(self._elements, other._elements)

    __hash__ = None

    def __repr__(self) -> str:
        values = ", ".join(repr(value) for value in self.to_list())
        return f"{type(self).__name__}({values})"


class Matrix:
    """Square N x N matrix built from a flat, row-major list of numbers."""

    def __init__(self, *elements: Number):
        """
        Initialize a matrix.

        The dimension is ``floor(sqrt(len(elements)))``. Trailing elements that
        do not fill a complete square are discarded.

        Args:
            *elements: Row-major matrix entries, at least one
        """
        if len(elements) == 1 and isinstance(elements[0], (list, tuple, np.ndarray)):
            elements = tuple(np.asarray(elements[0], dtype=np.float64).ravel())
        if len(elements) < 1:
            raise ValueError("Matrix must have at least one element")

        dimension = math.isqrt(len(elements))
        flat = np.array(elements[:dimension * dimension], dtype=np.float64)
        self._elements = flat.reshape(dimension, dimension)

    @classmethod
    def zeros(cls, dimension: int) -> 'Matrix':
        return cls(*([0.0] * (dimension * dimension)))

    @classmethod
    def identity(cls, dimension: int) -> 'Matrix':
        return cls(*np.eye(dimension).ravel())

    @property
    def size(self) -> int:
        return self._elements.shape[0]

    def _check_indices(self, i: int, j: int) -> None:
        if not (0 <= i < self.size and 0 <= j < self.size):
            raise IndexError(f"Indices ({i}, {j}) are out of range for {self.size}x{self.size} matrix")

    def get(self, i: int, j: int) -> float:
        self._check_indices(i, j)
        return float(self._elements[i, j])

    def set(self, i: int, j: int, value: Number) -> None:
        self._check_indices(i, j)
        self._elements[i, j] = value

    def set_flat(self, index: int, value: Number) -> None:
        """Set an entry addressed by its row-major position."""
        self.set(index // self.size, index % self.size, value)

    def multiply(self, vector: Vector) -> Vector:
        """
        Multiply this matrix with a vector.

        Args:
            vector: Vector with as many components as the matrix dimension

        Returns:
            New vector of row-by-vector dot products
        """
        if vector is None:
            raise ValueError("Vector cannot be None")
        if self.size != vector.size:
            raise ValueError(
                f"Vector of size {vector.size} does not match {self.size}x{self.size} matrix"
            )
        return Vector.from_array(self._elements @ vector.to_array())

    def is_zero(self) -> bool:
        return not np.any(self._elements)

    def to_list(self) -> List[float]:
        """Entries in row-major order."""
        return [float(value) for value in self._elements.ravel()]

    def to_array(self) -> np.ndarray:
        return self._elements.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return np.array_equal(self._elements, other._elements)

    __hash__ = None

    def __repr__(self) -> str:
        return f"Matrix({', '.join(repr(value) for value in self.to_list())})"


class Complex(Vector):
    """Complex number stored as a 2-component vector (real, imaginary)."""

    def __init__(self, real: Number = 0.0, imag: Number = 0.0):
        super().__init__(real, imag)

    @classmethod
    def from_array(cls, array: Iterable[Number]) -> 'Complex':
        values = [float(value) for value in array]
        if len(values) < 2:
            raise ValueError("Complex number needs two components")
        return cls(values[0], values[1])

    @classmethod
    def from_complex(cls, value: complex) -> 'Complex':
        return cls(value.real, value.imag)

    @classmethod
    def from_vector(cls, vector: Vector) -> 'Complex':
        """Use the first two components of ``vector``."""
        return cls(vector.get(0), vector.get(1))

    def _new(self, array: np.ndarray) -> 'Complex':
        return Complex.from_array(array)

    @property
    def real(self) -> float:
        return float(self._elements[0])

    @property
    def imag(self) -> float:
        return float(self._elements[1])

    def to_complex(self) -> complex:
        return complex(self.real, self.imag)

    def sqrt(self) -> 'Complex':
        """Principal square root."""
        return self.nth_root(2)

    def nth_root(self, n: int) -> 'Complex':
        """
        Principal n-th root computed in polar form.

        Args:
            n: Root degree, at least 1

        Returns:
            ``r^(1/n) * (cos(t/n) + i sin(t/n))`` with ``t = atan2(imag, real)``
        """
        if n < 1:
            raise ValueError("Root degree must be at least 1")
        magnitude = math.hypot(self.real, self.imag)
        angle = math.atan2(self.imag, self.real) / n
        root_magnitude = magnitude ** (1.0 / n)
        return Complex(root_magnitude * math.cos(angle), root_magnitude * math.sin(angle))

    def power(self, n: int) -> 'Complex':
        """Integer power by repeated multiplication."""
        if n < 1:
            raise ValueError("Power must be at least 1")
        real, imag = complex_power(self.real, self.imag, n)
        return Complex(real, imag)


def complex_power(real: float, imag: float, n: int):
    """Raise ``real + i*imag`` to the integer power ``n >= 1``."""
    result_real, result_imag = real, imag
    for _ in range(n - 1):
        result_real, result_imag = (
            result_real * real - result_imag * imag,
            result_real * imag + result_imag * real,
        )
    return result_real, result_imag


def abs_power(value, n: int):
    """``|value| ** n`` by repeated multiplication; works on floats and arrays."""
    magnitude = abs(value)
    result = magnitude
    for _ in range(n - 1):
        result = result * magnitude
    return result
