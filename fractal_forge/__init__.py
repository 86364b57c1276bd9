"""
Chaos game fractal engine.

This library renders iterated function systems (such as the Barnsley fern)
and Julia sets with the chaos game: a point is repeatedly pushed through
randomly chosen transforms and every visited position is counted on a
density canvas. Julia sets can also be rendered with a per-pixel divergence
scan.

Key Features:
- Affine and Julia transforms with a plain text description format
- Stochastic walk with cumulative transform probabilities
- Divergence scan for single Julia transforms
- Parallel painting onto the density canvas
- PNG/JPEG/TIFF export with embedded render metadata

Example usage:
    >>> from fractal_forge import FractalForge, ForgeConfig
    >>> forge = FractalForge(ForgeConfig(width=400, height=400, steps=50000))
    >>> forge.load("barnsley")
    >>> density = forge.render()
    >>> forge.save_image("fern.png")
"""

__version__ = "1.0.0"
__author__ = "Fractal Forge Team"

from .core.geometry import Vector, Matrix, Complex
from .core.transforms import AffineTransform, JuliaTransform, TransformRegistry
from .core.description import FractalDescription
from .core.canvas import ChaosCanvas
from .core.game import ChaosGame, RunMode
from .io.description_file import read_description, write_description
from .io.state import AppContext

# Main API classes
from .api import FractalForge, ForgeConfig

__all__ = [
    "FractalForge",
    "ForgeConfig",
    "Vector",
    "Matrix",
    "Complex",
    "AffineTransform",
    "JuliaTransform",
    "TransformRegistry",
    "FractalDescription",
    "ChaosCanvas",
    "ChaosGame",
    "RunMode",
    "read_description",
    "write_description",
    "AppContext",
]
