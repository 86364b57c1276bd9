"""
Declarative description of a chaos game fractal.

A description holds the world-space bounding box, an ordered list of
transforms of a single kind, and an optional cumulative probability vector
used to pick the transform walked at each step.
"""

from typing import List, Optional, Sequence
import logging

from .geometry import Vector
from .transforms import AffineTransform, JuliaTransform, Transform
from ..config import PROBABILITY_SCALE

logger = logging.getLogger(__name__)


def equal_share_probability(count: int) -> Vector:
    """
    Cumulative percentages giving every transform an equal share.

    Args:
        count: Number of transforms

    Returns:
        Vector ``100*(i+1)//count`` for ``i`` in ``range(count)``; the last
        entry is always 100
    """
    if count < 1:
        raise ValueError("At least one transform is required")
    return Vector(*[float(PROBABILITY_SCALE * (i + 1) // count) for i in range(count)])


def validate_probability(probability: Vector, count: int) -> None:
    """Check that ``probability`` is a cumulative percentage ladder for ``count`` transforms."""
    values = probability.to_list()
    if len(values) != count:
        raise ValueError(
            f"Probability vector has {len(values)} entries for {count} transforms"
        )
    if any(later < earlier for earlier, later in zip(values, values[1:])):
        raise ValueError("Probability vector must be non-decreasing")
    if values[0] < 0:
        raise ValueError("Probability vector must not be negative")
    if values[-1] != PROBABILITY_SCALE:
        raise ValueError(f"Probability vector must end at {PROBABILITY_SCALE}, got {values[-1]}")


def _check_dimension(transform: Transform, dimension: int) -> None:
    # Affine maps act on points of the same size as the bounds
    if isinstance(transform, AffineTransform) and transform.dimension != dimension:
        raise ValueError(
            f"Affine transform of dimension {transform.dimension} does not match "
            f"{dimension}-D bounds"
        )


class FractalDescription:
    """Bounds, transforms and selection probabilities of one fractal."""

    def __init__(self, min_coords: Vector, max_coords: Vector,
                 transforms: Sequence[Transform],
                 probability: Optional[Vector] = None):
        """
        Initialize and validate a fractal description.

        Args:
            min_coords: Lower-left corner of the world window (2 components)
            max_coords: Upper-right corner of the world window (2 components)
            transforms: At least one transform, all of the same kind
            probability: Optional cumulative percentages, one per transform
        """
        if min_coords is None or max_coords is None:
            raise ValueError("Bounds are required")
        if min_coords.size != 2 or max_coords.size != 2:
            raise ValueError("Bounds must have exactly two components")
        if min_coords.get(0) >= max_coords.get(0) or min_coords.get(1) >= max_coords.get(1):
            raise ValueError("Invalid bounds: min values must be less than max values")

        transforms = list(transforms or [])
        if not transforms:
            raise ValueError("A fractal description needs at least one transform")
        first_kind = type(transforms[0])
        if any(type(transform) is not first_kind for transform in transforms):
            raise ValueError("Transforms of different kinds cannot be mixed")
        for transform in transforms:
            _check_dimension(transform, min_coords.size)
        if probability is not None:
            validate_probability(probability, len(transforms))

        self._min_coords = min_coords
        self._max_coords = max_coords
        self.transforms: List[Transform] = transforms
        self._probability = probability

    @property
    def min_coords(self) -> Vector:
        return self._min_coords

    @property
    def max_coords(self) -> Vector:
        return self._max_coords

    @property
    def has_explicit_probability(self) -> bool:
        return self._probability is not None

    @property
    def is_affine(self) -> bool:
        return isinstance(self.transforms[0], AffineTransform)

    @property
    def is_julia(self) -> bool:
        return isinstance(self.transforms[0], JuliaTransform)

    @property
    def type_name(self) -> str:
        return self.transforms[0].type_name

    def get_probability(self) -> Vector:
        """
        Get the cumulative selection probabilities.

        Returns the explicit vector when one was set, otherwise a freshly
        synthesised equal-share vector on every call.
        """
        if self._probability is None:
            return equal_share_probability(len(self.transforms))
        return self._probability

    def set_probability(self, probability: Optional[Vector]) -> None:
        if probability is not None:
            validate_probability(probability, len(self.transforms))
        self._probability = probability

    def clear_probabilities(self) -> None:
        self._probability = None

    def add_transform(self, transform: Transform) -> None:
        """Append a transform of the same kind; explicit probabilities are dropped."""
        if type(transform) is not type(self.transforms[0]):
            raise ValueError(
                f"Cannot add {type(transform).__name__} to a {self.type_name} description"
            )
        _check_dimension(transform, self._min_coords.size)
        self.transforms.append(transform)
        self.clear_probabilities()

    def remove_transform(self, index: int) -> Transform:
        """Remove the transform at ``index``; explicit probabilities are dropped."""
        if len(self.transforms) == 1:
            raise ValueError("Cannot remove the last transform of a description")
        removed = self.transforms.pop(index)
        self.clear_probabilities()
        logger.debug(f"Removed transform {index}, {len(self.transforms)} left")
        return removed

    def with_bounds(self, min_coords: Vector, max_coords: Vector) -> 'FractalDescription':
        """New description with other bounds, sharing this transform list."""
        description = FractalDescription(min_coords, max_coords, self.transforms, self._probability)
        description.transforms = self.transforms
        return description

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FractalDescription):
            return NotImplemented
        return (self._min_coords == other._min_coords
                and self._max_coords == other._max_coords
                and self.transforms == other.transforms
                and self._probability == other._probability)

    __hash__ = None

    def __repr__(self) -> str:
        return (f"FractalDescription({self.type_name}, min={self._min_coords.to_list()}, "
                f"max={self._max_coords.to_list()}, transforms={len(self.transforms)})")
