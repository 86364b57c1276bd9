"""
Transform definitions for iterated function systems and Julia sets.

Every transform can map a point forward and serialize its parameters for the
description file. Only Julia transforms additionally know how to run a
divergence test, which is expressed by the ``DivergenceTestable`` capability
instead of a dead method on every transform.
"""

import math
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Type
import logging

import numpy as np

from .geometry import Complex, Matrix, Vector, abs_power, complex_power
from ..config import (
    AFFINE_TYPE_NAME,
    DEFAULT_JULIA_POWER,
    DIVERGENCE_BOUND,
    JULIA_TYPE_NAME,
    MAX_DIVERGENCE_ITERATIONS,
)

logger = logging.getLogger(__name__)


def _format_values(values: Sequence[float]) -> str:
    return ", ".join(repr(float(value)) for value in values)


class Transform(ABC):
    """Abstract base class for forward transforms."""

    type_name: str = ""

    @abstractmethod
    def forward(self, vector: Optional[Vector]) -> Optional[Vector]:
        """
        Map a point through the transform.

        Args:
            vector: Point to transform

        Returns:
            Transformed point
        """
        pass

    @abstractmethod
    def serialize(self) -> str:
        """Flattened numeric parameters, comma separated."""
        pass

    @classmethod
    @abstractmethod
    def from_values(cls, values: Sequence[float]) -> 'Transform':
        """Build a transform from the numbers of one description line."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.serialize()})"


class DivergenceTestable(ABC):
    """Capability of transforms that support a per-point escape test."""

    @abstractmethod
    def divergence_test(self, vector: Vector) -> int:
        """
        Iterate the point and report when it escapes.

        Returns:
            Iteration at which the point escaped, or 0 if it stayed bounded
        """
        pass

    def divergence_test_grid(self, real: np.ndarray, imag: np.ndarray) -> np.ndarray:
        """Apply ``divergence_test`` to every element of two same-shaped arrays."""
        real = np.asarray(real, dtype=np.float64)
        imag = np.asarray(imag, dtype=np.float64)
        if real.shape != imag.shape:
            raise ValueError("Real and imaginary arrays must have the same shape")
        result = np.zeros(real.shape, dtype=np.int32)
        for index in np.ndindex(real.shape):
            result[index] = self.divergence_test(Complex(real[index], imag[index]))
        return result


class AffineTransform(Transform):
    """Linear map followed by a translation: ``forward(v) = M v + t``."""

    type_name = AFFINE_TYPE_NAME

    def __init__(self, matrix: Matrix, vector: Vector):
        """
        Initialize affine transform.

        Args:
            matrix: Linear part
            vector: Translation, same dimension as the matrix
        """
        if matrix is None or vector is None:
            raise ValueError("Matrix and vector are required")
        if matrix.size != vector.size:
            raise ValueError(
                f"Translation of size {vector.size} does not match {matrix.size}x{matrix.size} matrix"
            )
        self.matrix = matrix
        self.vector = vector

    @classmethod
    def zeros(cls, dimension: int) -> 'AffineTransform':
        return cls(Matrix.zeros(dimension), Vector(*([0.0] * dimension)))

    @classmethod
    def identity(cls, dimension: int) -> 'AffineTransform':
        return cls(Matrix.identity(dimension), Vector(*([0.0] * dimension)))

    @property
    def dimension(self) -> int:
        return self.matrix.size

    def forward(self, vector: Optional[Vector]) -> Optional[Vector]:
        # A missing point passes through as None; callers guard for it
        if vector is None:
            return None
        return self.matrix.multiply(vector).add(self.vector)

    def serialize(self) -> str:
        return _format_values(self.matrix.to_list() + self.vector.to_list())

    @classmethod
    def from_values(cls, values: Sequence[float]) -> 'AffineTransform':
        """
        Parse matrix entries followed by the translation.

        The dimension is ``floor(sqrt(len(values)))``; the first ``d*d``
        numbers fill the matrix and the rest form the translation, zero padded
        or truncated to ``d`` components.
        """
        if len(values) == 0:
            raise ValueError("Affine transform needs at least one value")
        dimension = math.isqrt(len(values))
        matrix = Matrix(*values[:dimension * dimension])
        translation = list(values[dimension * dimension:])[:dimension]
        translation += [0.0] * (dimension - len(translation))
        return cls(matrix, Vector(*translation))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AffineTransform):
            return NotImplemented
        return self.matrix == other.matrix and self.vector == other.vector

    __hash__ = None


class JuliaTransform(Transform, DivergenceTestable):
    """Inverse Julia map ``forward(z) = sign * (z - c)^(1/power)``."""

    type_name = JULIA_TYPE_NAME

    def __init__(self, point: Complex, sign: int = 1, power: Optional[int] = None):
        """
        Initialize Julia transform.

        Args:
            point: Julia constant ``c``
            sign: Branch selector; -1 selects the negative root, anything else +1
            power: Integer power of the forward map (defaults to 2)
        """
        if point is None:
            raise ValueError("Julia constant cannot be None")
        self.point = point if isinstance(point, Complex) else Complex.from_vector(point)
        self.sign = -1 if sign == -1 else 1
        self.power = DEFAULT_JULIA_POWER
        if power is not None:
            self.set_power(power)

    def set_power(self, power: int) -> None:
        if int(power) != power or power < 1:
            raise ValueError(f"Power must be a positive integer, got {power}")
        self.power = int(power)

    def set_point(self, real: float, imag: float) -> None:
        """Move the Julia constant in place."""
        self.point.set(0, real)
        self.point.set(1, imag)

    def with_sign(self, sign: int) -> 'JuliaTransform':
        """Copy of this transform on the other root branch."""
        return JuliaTransform(self.point, sign, self.power)

    def forward(self, vector: Optional[Vector]) -> Vector:
        if vector is None:
            raise ValueError("Vector cannot be None")
        z = Complex(vector.get(0), vector.get(1))
        return z.sub(self.point).nth_root(self.power).mul(self.sign)

    def divergence_test(self, vector: Vector) -> int:
        """
        Iterate ``z = z^power + c`` and report the escaping check.

        The bound compares ``|re|^power + |im|^power`` with 4, which is only
        the squared magnitude for ``power == 2``.

        Returns:
            1-based index of the check that exceeded the bound, or 0 when the
            point stayed bounded for all iterations
        """
        if vector is None:
            raise ValueError("Vector cannot be None")
        real = vector.get(0)
        imag = vector.get(1)
        c_real = self.point.real
        c_imag = self.point.imag

        for iteration in range(1, MAX_DIVERGENCE_ITERATIONS + 1):
            if abs_power(real, self.power) + abs_power(imag, self.power) > DIVERGENCE_BOUND:
                return iteration
            real, imag = complex_power(real, imag, self.power)
            real += c_real
            imag += c_imag

        return 0

    def divergence_test_grid(self, real: np.ndarray, imag: np.ndarray) -> np.ndarray:
        """
        Run ``divergence_test`` on whole arrays of points at once.

        Performs exactly the same floating point operations per element as the
        scalar test, so both agree point for point.

        Args:
            real: Real parts of the seeds
            imag: Imaginary parts of the seeds, same shape

        Returns:
            Integer array of iteration results (0 = stayed bounded)
        """
        real = np.array(real, dtype=np.float64)
        imag = np.array(imag, dtype=np.float64)
        if real.shape != imag.shape:
            raise ValueError("Real and imaginary arrays must have the same shape")

        iterations = np.zeros(real.shape, dtype=np.int32)
        active = np.ones(real.shape, dtype=bool)
        c_real = self.point.real
        c_imag = self.point.imag

        with np.errstate(over='ignore', invalid='ignore'):
            for iteration in range(1, MAX_DIVERGENCE_ITERATIONS + 1):
                escaped = active & (
                    abs_power(real, self.power) + abs_power(imag, self.power) > DIVERGENCE_BOUND
                )
                iterations[escaped] = iteration
                active &= ~escaped

                if not np.any(active):
                    break

                new_real, new_imag = complex_power(real[active], imag[active], self.power)
                real[active] = new_real + c_real
                imag[active] = new_imag + c_imag

        return iterations

    def serialize(self) -> str:
        return _format_values(self.point.to_list())

    @classmethod
    def from_values(cls, values: Sequence[float]) -> 'JuliaTransform':
        """Parse exactly ``real, imag``; sign and power take their defaults."""
        if len(values) != 2:
            raise ValueError(
                f"Julia transform needs a real and an imaginary part, got {len(values)} values"
            )
        return cls(Complex(values[0], values[1]), 1)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JuliaTransform):
            return NotImplemented
        return (self.point == other.point and self.sign == other.sign
                and self.power == other.power)

    __hash__ = None

    def __repr__(self) -> str:
        return f"JuliaTransform({self.serialize()}, sign={self.sign}, power={self.power})"


class TransformRegistry:
    """Registry mapping description type names to transform classes."""

    _transforms: Dict[str, Type[Transform]] = {
        AFFINE_TYPE_NAME: AffineTransform,
        JULIA_TYPE_NAME: JuliaTransform,
    }

    @classmethod
    def register(cls, name: str, transform_class: type) -> None:
        """
        Register a new transform type.

        Args:
            name: Type line used in description files
            transform_class: Class implementing the transform
        """
        if not issubclass(transform_class, Transform):
            raise ValueError("Transform class must inherit from Transform")
        cls._transforms[name] = transform_class
        logger.info(f"Registered transform type: {name}")

    @classmethod
    def get(cls, name: str) -> Type[Transform]:
        transform_class = cls._transforms.get(name)
        if transform_class is None:
            available = ', '.join(cls._transforms.keys())
            raise ValueError(f"Unknown transform type '{name}'. Available: {available}")
        return transform_class

    @classmethod
    def list_types(cls) -> List[str]:
        return list(cls._transforms.keys())
