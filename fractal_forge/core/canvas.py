"""
Density canvas for chaos game fractals.

The canvas maps a continuous world window onto a ``height x width`` grid and
accumulates hits per pixel. Writes outside the grid are silently dropped so
that zooming never fails; reads outside the grid raise.
"""

from typing import Optional, Tuple
import logging

import numpy as np

from .geometry import Matrix, Vector
from .transforms import AffineTransform
from ..config import PIXEL_HIT_INCREMENT

logger = logging.getLogger(__name__)


class ChaosCanvas:
    """2-D density buffer with a world-to-pixel mapping."""

    def __init__(self, width: int, height: int, min_coords: Vector, max_coords: Vector,
                 pixel_increment: float = PIXEL_HIT_INCREMENT):
        """
        Initialize canvas.

        Args:
            width, height: Grid resolution in pixels
            min_coords: Lower world bounds (x, y)
            max_coords: Upper world bounds (x, y)
            pixel_increment: Density added per hit
        """
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive")

        self.width = width
        self.height = height
        self.min_coords = min_coords
        self.max_coords = max_coords
        self.pixel_increment = pixel_increment
        self._pixels = np.zeros((height, width), dtype=np.float64)
        self._coords_to_indices: Optional[AffineTransform] = None

        self.update_mapping()

    def update_mapping(self) -> None:
        """
        Rebuild the world-to-index transform.

        World axis 1 (y) selects the row, inverted so that increasing y moves
        up the image, and world axis 0 (x) selects the column. The window maps
        onto rows ``0..height-1`` and columns ``0..width-1``.
        """
        rows = self.height
        columns = self.width
        min_x, min_y = self.min_coords.get(0), self.min_coords.get(1)
        max_x, max_y = self.max_coords.get(0), self.max_coords.get(1)

        matrix = Matrix(
            0.0, (rows - 1) / (min_y - max_y),
            (columns - 1) / (max_x - min_x), 0.0,
        )
        vector = Vector(
            ((rows - 1) * max_y) / (max_y - min_y),
            ((columns - 1) * min_x) / (min_x - max_x),
        )
        self._coords_to_indices = AffineTransform(matrix, vector)

    @property
    def coords_to_indices(self) -> AffineTransform:
        return self._coords_to_indices

    def to_indices(self, point: Vector) -> Optional[Tuple[int, int]]:
        """
        Map a world point to ``(row, column)``.

        Returns:
            Indices truncated toward zero, or None if they are not finite
        """
        if point is None:
            raise ValueError("Point cannot be None")
        mapped = self._coords_to_indices.forward(Vector(point.get(0), point.get(1)))
        row, column = mapped.get(0), mapped.get(1)
        if not (np.isfinite(row) and np.isfinite(column)):
            return None
        return int(row), int(column)

    def in_bounds(self, row: int, column: int) -> bool:
        return 0 <= row < self.height and 0 <= column < self.width

    def get_pixel(self, point: Vector) -> float:
        """
        Read the density at a world point.

        Raises:
            IndexError: If the point maps outside the grid
        """
        indices = self.to_indices(point)
        if indices is None or not self.in_bounds(*indices):
            raise IndexError(f"Point {point} is out of bounds")
        row, column = indices
        return float(self._pixels[row, column])

    def put_pixel(self, point: Vector) -> None:
        """
        Paint a world point.

        Two components add one density increment; a third component overwrites
        the pixel with that value. Points outside the grid are ignored.
        """
        indices = self.to_indices(point)
        if indices is None or not self.in_bounds(*indices):
            return
        row, column = indices
        if point.size == 2:
            self._pixels[row, column] += self.pixel_increment
        elif point.size == 3:
            self._pixels[row, column] = point.get(2)

    def map_points(self, points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Vectorised mapping of an ``(N, 2)`` array of world points.

        Returns:
            ``(rows, columns)`` integer arrays of the points that land on the grid
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        matrix = self._coords_to_indices.matrix.to_array()
        translation = self._coords_to_indices.vector.to_array()
        with np.errstate(invalid='ignore', over='ignore'):
            mapped = points @ matrix.T + translation

        finite = np.all(np.isfinite(mapped), axis=1)
        indices = np.trunc(mapped[finite]).astype(np.int64)
        rows, columns = indices[:, 0], indices[:, 1]
        inside = (rows >= 0) & (rows < self.height) & (columns >= 0) & (columns < self.width)
        return rows[inside], columns[inside]

    def density_buffer(self, points: np.ndarray) -> np.ndarray:
        """Partial density buffer for ``points`` without touching the canvas."""
        buffer = np.zeros((self.height, self.width), dtype=np.float64)
        rows, columns = self.map_points(points)
        np.add.at(buffer, (rows, columns), self.pixel_increment)
        return buffer

    def put_points(self, points: np.ndarray) -> None:
        """Paint many 2-component points; every hit is counted."""
        self.accumulate(self.density_buffer(points))

    def accumulate(self, buffer: np.ndarray) -> None:
        """Add a partial density buffer of the same shape."""
        if buffer.shape != self._pixels.shape:
            raise ValueError(f"Buffer shape {buffer.shape} does not match canvas {self._pixels.shape}")
        self._pixels += buffer

    def get_canvas_array(self) -> np.ndarray:
        """Read-only view of the density grid, indexed ``[row, column]``."""
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    def clear(self) -> None:
        self._pixels = np.zeros((self.height, self.width), dtype=np.float64)

    def __repr__(self) -> str:
        return (f"ChaosCanvas({self.width}x{self.height}, min={self.min_coords.to_list()}, "
                f"max={self.max_coords.to_list()})")
