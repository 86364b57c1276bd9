"""
Chaos game orchestrator.

Runs either the stochastic IFS walk or the per-pixel Julia divergence scan for
a fractal description and paints the result onto a ChaosCanvas. Every mutator
recreates the canvas, reruns the current mode and then notifies observers.
"""

from bisect import bisect_left
from enum import Enum
from typing import Callable, List, Optional, Sequence
import logging
import time

import numpy as np

from .canvas import ChaosCanvas
from .description import FractalDescription
from .geometry import Complex, Vector
from .transforms import AffineTransform, DivergenceTestable, JuliaTransform, Transform
from ..acceleration.parallel import ParallelPainter
from ..config import (
    DEFAULT_STEPS,
    DIVERGENCE_WINDOW_X,
    DIVERGENCE_WINDOW_Y,
    PIXEL_HIT_INCREMENT,
    PROBABILITY_SCALE,
)

logger = logging.getLogger(__name__)

Observer = Callable[[], None]


class RunMode(Enum):
    """How the game produces points."""
    STOCHASTIC = "stochastic"
    DIVERGENCE = "divergence"


def select_transform_index(cumulative: Sequence[float], draw: float) -> int:
    """
    Pick the transform for a random draw.

    Args:
        cumulative: Non-decreasing cumulative probabilities
        draw: Random value in ``[0, 100)``

    Returns:
        Smallest index whose cumulative threshold is >= ``draw``, clamped to
        the last index
    """
    index = bisect_left(cumulative, draw)
    return min(index, len(cumulative) - 1)


def julia_branch_probabilities(count: int) -> List[int]:
    """Cumulative ladder 50, 100, 150, ... for ``count`` Julia transforms doubled into +/- pairs."""
    half = PROBABILITY_SCALE // 2
    return [half * (i + 1) for i in range(2 * count)]


class ChaosGame:
    """Drives a fractal description and owns its canvas."""

    def __init__(self, description: FractalDescription, width: int, height: int,
                 steps: int = DEFAULT_STEPS, mode: RunMode = RunMode.STOCHASTIC,
                 seed: Optional[int] = None, painter: Optional[ParallelPainter] = None,
                 pixel_increment: float = PIXEL_HIT_INCREMENT):
        """
        Initialize chaos game.

        Args:
            description: Fractal to iterate
            width, height: Canvas resolution
            steps: Steps per stochastic run
            mode: Run mode used by ``run`` and ``refresh``
            seed: Seed for the random transform selection
            painter: Painter for the final painting phase
            pixel_increment: Density added per hit
        """
        if description is None:
            raise ValueError("Description cannot be None")
        if steps < 0:
            raise ValueError("steps must not be negative")

        self._description = description
        self.width = width
        self.height = height
        self.steps = steps
        self.mode = mode
        self.pixel_increment = pixel_increment
        self.painter = painter or ParallelPainter()
        self._rng = np.random.default_rng(seed)
        self._observers: List[Observer] = []
        self._points = np.empty((0, 2), dtype=np.float64)
        self.current_point = Vector(0.0, 0.0)
        self._canvas = self._create_canvas()

    def _create_canvas(self) -> ChaosCanvas:
        return ChaosCanvas(self.width, self.height,
                           self._description.min_coords, self._description.max_coords,
                           self.pixel_increment)

    @property
    def canvas(self) -> ChaosCanvas:
        return self._canvas

    @property
    def description(self) -> FractalDescription:
        return self._description

    @property
    def points(self) -> List[Vector]:
        """Points collected by the last run."""
        return [Vector(x, y) for x, y in self._points]

    @property
    def point_array(self) -> np.ndarray:
        """Points collected by the last run as an ``(N, 2)`` array."""
        return self._points.copy()

    def is_affine(self) -> bool:
        return isinstance(self._description.transforms[0], AffineTransform)

    def reseed(self, seed: Optional[int]) -> None:
        self._rng = np.random.default_rng(seed)

    def _active_transforms(self):
        if self.is_affine():
            transforms = list(self._description.transforms)
            cumulative = self._description.get_probability().to_list()
        else:
            transforms = []
            for transform in self._description.transforms:
                transforms.append(transform.with_sign(1))
                transforms.append(transform.with_sign(-1))
            cumulative = julia_branch_probabilities(len(self._description.transforms))
        return transforms, cumulative

    def run_steps(self, steps: Optional[int] = None) -> None:
        """
        Run the stochastic walk and paint every candidate point.

        Each step applies every active transform to the current point and
        keeps all candidates; the drawn transform's candidate becomes the next
        current point.

        Args:
            steps: Number of steps (defaults to ``self.steps``)
        """
        steps = self.steps if steps is None else steps
        if steps < 0:
            raise ValueError("steps must not be negative")
        start_time = time.time()

        self._canvas.clear()
        self.current_point = Vector(0.0, 0.0)
        point_stack = [self.current_point]

        transforms, cumulative = self._active_transforms()
        batch_size = len(transforms)
        draws = self._rng.integers(0, PROBABILITY_SCALE, size=steps)

        for draw in draws:
            for transform in transforms:
                point_stack.append(transform.forward(self.current_point))
            index = select_transform_index(cumulative, draw)
            self.current_point = point_stack[len(point_stack) - batch_size + index]

        self._points = np.array([point.to_list()[:2] for point in point_stack], dtype=np.float64)
        self._paint()
        logger.info(f"Ran {steps} steps with {batch_size} transforms: "
                    f"{len(self._points)} points in {time.time() - start_time:.2f}s")

    def divergence_grid(self):
        """
        World coordinates of every pixel for the divergence scan.

        ``x`` spans roughly [-1.5, 1.5] and ``y`` roughly [-1, 1] regardless of
        the description bounds.

        Returns:
            Tuple of ``(zx, zy)`` arrays of shape ``(height, width)``
        """
        half_width = self.width >> 1
        half_height = self.height >> 1
        if half_width == 0 or half_height == 0:
            raise ValueError("Divergence scan needs a canvas of at least 2x2 pixels")
        xs = DIVERGENCE_WINDOW_X * (np.arange(self.width, dtype=np.float64) - half_width) / half_width
        ys = DIVERGENCE_WINDOW_Y * (np.arange(self.height, dtype=np.float64) - half_height) / half_height
        return np.meshgrid(xs, ys)

    def run_divergence(self) -> None:
        """
        Scan every pixel with the Julia divergence test and paint interior points.

        Raises:
            ValueError: Unless the description holds exactly one Julia transform
        """
        transforms = self._description.transforms
        if len(transforms) != 1:
            raise ValueError("Divergence scan needs exactly one transform")
        transform = transforms[0]
        if not isinstance(transform, DivergenceTestable):
            raise ValueError("Divergence scan needs a Julia transform")

        zx, zy = self.divergence_grid()
        start_time = time.time()
        self._canvas.clear()

        iterations = transform.divergence_test_grid(zx, zy)
        inside = iterations == 0
        self._points = np.column_stack((zx[inside], zy[inside]))

        self._paint()
        logger.info(f"Divergence scan {self.width}x{self.height}: "
                    f"{len(self._points)} interior points in {time.time() - start_time:.2f}s")

    def _paint(self) -> None:
        if len(self._points) == 0:
            return
        self.painter.paint(self._canvas, self._points)

    def run(self) -> None:
        """Run the current mode."""
        if self.mode == RunMode.DIVERGENCE:
            self.run_divergence()
        else:
            self.run_steps()

    def add_observer(self, observer: Observer) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def notify(self) -> None:
        for observer in list(self._observers):
            observer()

    def update_canvas(self) -> None:
        """Recreate the canvas for the current size and bounds and notify observers."""
        self._canvas = self._create_canvas()
        self.notify()

    def refresh(self) -> None:
        """Recreate the canvas, rerun the current mode and notify observers."""
        self._canvas = self._create_canvas()
        try:
            self.run()
        except ValueError as e:
            logger.error(f"Run skipped: {e}")
        self.notify()

    def set_size(self, size: int) -> None:
        self.set_resolution(size, size)

    def set_resolution(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive")
        self.width = width
        self.height = height
        self.refresh()

    def set_bounds(self, min_coords: Vector, max_coords: Vector) -> None:
        self._description = self._description.with_bounds(min_coords, max_coords)
        self.refresh()

    def zoom(self, amount: float) -> None:
        """
        Shrink the world window by ``amount`` on every side.

        Negative amounts zoom out.
        """
        delta = Vector(amount, amount)
        self.set_bounds(self._description.min_coords.add(delta),
                        self._description.max_coords.sub(delta))

    def set_steps(self, steps: int) -> None:
        if steps < 0:
            raise ValueError("steps must not be negative")
        self.steps = steps
        self.refresh()

    def set_mode(self, mode: RunMode) -> None:
        self.mode = RunMode(mode)
        self.refresh()

    def add_transform(self, transform: Optional[Transform] = None) -> None:
        """
        Append a transform; explicit probabilities revert to equal shares.

        Args:
            transform: Transform to add. Defaults to a zero affine transform of
                matching dimension, or a Julia transform at the origin.
        """
        if transform is None:
            first = self._description.transforms[0]
            if isinstance(first, AffineTransform):
                transform = AffineTransform.zeros(first.dimension)
            else:
                transform = JuliaTransform(Complex(0.0, 0.0), 1)
        self._description.add_transform(transform)
        self.refresh()

    def remove_transform(self, transform: Transform) -> None:
        """Remove the first transform equal to ``transform``; missing ones are ignored."""
        for index, candidate in enumerate(self._description.transforms):
            if candidate == transform:
                self._description.remove_transform(index)
                break
        else:
            logger.debug(f"Transform {transform!r} not found, nothing removed")
        self.refresh()

    def set_probability(self, probability: Optional[Vector]) -> None:
        self._description.set_probability(probability)
        self.refresh()

    def _julia_transform(self) -> JuliaTransform:
        transform = self._description.transforms[0]
        if not isinstance(transform, JuliaTransform):
            raise ValueError("Julia parameters need a Julia description")
        return transform

    def set_julia_point(self, real: float, imag: float) -> None:
        """Move the constant of the first Julia transform."""
        self._julia_transform().set_point(real, imag)
        self.refresh()

    def set_julia_power(self, power: int) -> None:
        """Change the root power of every Julia transform."""
        self._julia_transform()
        for transform in self._description.transforms:
            transform.set_power(power)
        self.refresh()
