"""
Built-in fractal descriptions.

The Barnsley fern is the default fractal used whenever nothing else can be
loaded. Julia presets reuse well-known constants.
"""

from typing import Callable, Dict, List, Tuple

from .description import FractalDescription
from .geometry import Complex, Matrix, Vector
from .transforms import AffineTransform, JuliaTransform


def barnsley_fern() -> FractalDescription:
    """Barnsley fern with its classic 1/85/7/7 percent weights."""
    return FractalDescription(
        Vector(-2.65, 0.0),
        Vector(2.65, 10.0),
        [
            AffineTransform(Matrix(0.0, 0.0, 0.0, 0.16), Vector(0.0, 0.0)),
            AffineTransform(Matrix(0.85, 0.04, -0.04, 0.85), Vector(0.0, 1.6)),
            AffineTransform(Matrix(0.2, -0.26, 0.23, 0.22), Vector(0.0, 1.6)),
            AffineTransform(Matrix(-0.15, 0.28, 0.26, 0.24), Vector(0.0, 0.44)),
        ],
        Vector(1.0, 86.0, 93.0, 100.0),
    )


def sierpinski_triangle() -> FractalDescription:
    """Sierpinski triangle from three half-scale maps."""
    return FractalDescription(
        Vector(0.0, 0.0),
        Vector(1.0, 1.0),
        [
            AffineTransform(Matrix(0.5, 0.0, 0.0, 0.5), Vector(0.0, 0.0)),
            AffineTransform(Matrix(0.5, 0.0, 0.0, 0.5), Vector(0.25, 0.5)),
            AffineTransform(Matrix(0.5, 0.0, 0.0, 0.5), Vector(0.5, 0.0)),
        ],
    )


def julia_set(c: Complex, power: int = 2) -> FractalDescription:
    """Julia set for constant ``c`` on the standard [-2, 2] window."""
    return FractalDescription(
        Vector(-2.0, -2.0),
        Vector(2.0, 2.0),
        [JuliaTransform(c, 1, power)],
    )


# Interesting Julia set constants (real, imag)
JULIA_PRESETS: Dict[str, Tuple[float, float]] = {
    'julia': (-0.74543, 0.11301),
    'dragon': (-0.75, 0.1),
    'spiral': (-0.4, 0.6),
    'dendrite': (-0.235125, 0.827215),
    'lightning': (-0.8, 0.156),
    'rabbit': (-0.123, 0.745),
    'airplane': (-1.25, 0.0),
    'san_marco': (-0.75, 0.0),
    'siegel_disk': (-0.391, -0.587),
}

_AFFINE_PRESETS: Dict[str, Callable[[], FractalDescription]] = {
    'barnsley': barnsley_fern,
    'sierpinski': sierpinski_triangle,
}


def default_description() -> FractalDescription:
    return barnsley_fern()


def list_presets() -> List[str]:
    return list(_AFFINE_PRESETS.keys()) + list(JULIA_PRESETS.keys())


def is_preset(name: str) -> bool:
    return name.lower() in _AFFINE_PRESETS or name.lower() in JULIA_PRESETS


def create_preset(name: str) -> FractalDescription:
    """
    Create a fresh description for a named preset.

    Args:
        name: Preset identifier (case insensitive)

    Returns:
        New description; callers may mutate it freely
    """
    key = name.lower()
    if key in _AFFINE_PRESETS:
        return _AFFINE_PRESETS[key]()
    if key in JULIA_PRESETS:
        return julia_set(Complex(*JULIA_PRESETS[key]))
    available = ', '.join(list_presets())
    raise ValueError(f"Unknown preset '{name}'. Available: {available}")
