"""
Parallel painting of collected points.

Points are split into chunks; each worker maps its chunk into a private
partial density buffer and the buffers are summed into the canvas once all
workers finish. Hits on the same pixel from different chunks therefore add up
exactly, and the canvas itself is only written from the calling thread.
"""

from typing import List, Optional
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

import numpy as np

from ..core.canvas import ChaosCanvas

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50000


@dataclass
class ChunkSpec:
    """Slice of the point array handled by one worker."""
    chunk_id: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


def create_chunks(count: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> List[ChunkSpec]:
    """
    Split ``count`` points into consecutive chunks.

    Args:
        count: Number of points
        chunk_size: Maximum points per chunk

    Returns:
        List of ChunkSpec objects covering ``[0, count)``
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [
        ChunkSpec(chunk_id=i, start=start, end=min(start + chunk_size, count))
        for i, start in enumerate(range(0, count, chunk_size))
    ]


def paint_chunk(canvas: ChaosCanvas, points: np.ndarray, chunk: ChunkSpec) -> np.ndarray:
    """Density buffer for one chunk of points."""
    return canvas.density_buffer(points[chunk.start:chunk.end])


def get_optimal_worker_count() -> int:
    """Leave one core for the rest of the system."""
    return max(1, (os.cpu_count() or 1) - 1)


class ParallelPainter:
    """Paints point sets onto a canvas using a thread pool."""

    def __init__(self, num_workers: Optional[int] = None, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize painter.

        Args:
            num_workers: Number of worker threads (None for an automatic choice)
            chunk_size: Points per work item
        """
        if num_workers is None:
            self.num_workers = get_optimal_worker_count()
        else:
            self.num_workers = max(1, num_workers)
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def paint(self, canvas: ChaosCanvas, points: np.ndarray) -> None:
        """
        Paint all points onto the canvas as density hits.

        Args:
            canvas: Target canvas
            points: ``(N, 2)`` array of world coordinates
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(points) == 0:
            return

        chunks = create_chunks(len(points), self.chunk_size)
        start_time = time.time()

        if self.num_workers == 1 or len(chunks) == 1:
            for chunk in chunks:
                canvas.accumulate(paint_chunk(canvas, points, chunk))
        else:
            partials = []
            with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
                futures = [executor.submit(paint_chunk, canvas, points, chunk) for chunk in chunks]
                for future in as_completed(futures):
                    partials.append(future.result())
            canvas.accumulate(np.sum(partials, axis=0))

        logger.debug(f"Painted {len(points)} points in {len(chunks)} chunks "
                     f"({time.time() - start_time:.3f}s, {self.num_workers} workers)")
