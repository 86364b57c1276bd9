"""
Colouring of chaos game density buffers.

Pixels that were never hit stay on the background colour. Plain colouring
paints every hit pixel with one foreground colour; heat-map colouring
interpolates hue, saturation and value between two colours according to the
pixel density clipped to ``[0, 1]``.
"""

import numpy as np
from typing import Tuple, Union
from dataclasses import dataclass
import logging

import matplotlib.colors as mcolors

logger = logging.getLogger(__name__)


@dataclass
class ColorRGB:
    """RGB color representation."""
    r: float
    g: float
    b: float

    def __post_init__(self):
        for component in [self.r, self.g, self.b]:
            if not 0 <= component <= 1:
                raise ValueError("RGB components must be between 0 and 1")

    @classmethod
    def from_name(cls, name: str) -> 'ColorRGB':
        """Create a colour from any matplotlib colour spec (name or hex)."""
        return cls(*mcolors.to_rgb(name))

    def to_tuple(self) -> Tuple[float, float, float]:
        return (self.r, self.g, self.b)

    def to_hsv(self) -> np.ndarray:
        return mcolors.rgb_to_hsv(np.array(self.to_tuple()))


BACKGROUND = ColorRGB(1.0, 1.0, 1.0)
FOREGROUND = ColorRGB(0.0, 0.0, 0.0)
HEATMAP_START = ColorRGB.from_name('red')
HEATMAP_END = ColorRGB.from_name('purple')


def heatmap_colors(density: np.ndarray, start: ColorRGB = HEATMAP_START,
                   end: ColorRGB = HEATMAP_END) -> np.ndarray:
    """
    Interpolate between two colours in HSV space.

    Args:
        density: Array of pixel densities
        start: Colour at density 0
        end: Colour at density 1 and above

    Returns:
        RGB array with a trailing axis of size 3
    """
    t = np.clip(np.asarray(density, dtype=np.float64), 0.0, 1.0)[..., np.newaxis]
    start_hsv = start.to_hsv()
    end_hsv = end.to_hsv()
    hsv = start_hsv + (end_hsv - start_hsv) * t
    return mcolors.hsv_to_rgb(hsv)


def density_to_rgb(density: np.ndarray, heatmap: bool = False,
                   background: ColorRGB = BACKGROUND,
                   foreground: Union[ColorRGB, None] = None) -> np.ndarray:
    """
    Convert a density buffer to an RGB image.

    Args:
        density: 2-D density buffer indexed ``[row, column]``
        heatmap: Colour hit pixels by density instead of a single colour
        background: Colour of pixels that were never hit
        foreground: Colour of hit pixels in plain mode

    Returns:
        Float RGB image of shape ``(height, width, 3)`` with values 0-1
    """
    density = np.asarray(density, dtype=np.float64)
    if density.ndim != 2:
        raise ValueError(f"Expected a 2-D density buffer, got shape {density.shape}")

    image = np.empty(density.shape + (3,), dtype=np.float64)
    image[...] = background.to_tuple()

    hit = density != 0
    if heatmap:
        image[hit] = heatmap_colors(density[hit])
    else:
        image[hit] = (foreground or FOREGROUND).to_tuple()

    logger.debug(f"Coloured {int(np.count_nonzero(hit))} of {density.size} pixels "
                 f"({'heatmap' if heatmap else 'plain'})")
    return image
