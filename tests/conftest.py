"""Shared fixtures for the fractal_forge test suite."""

import pytest

from fractal_forge.core.canvas import ChaosCanvas
from fractal_forge.core.description import FractalDescription
from fractal_forge.core.geometry import Complex, Matrix, Vector
from fractal_forge.core.transforms import AffineTransform, JuliaTransform
from fractal_forge.io.state import AppContext


@pytest.fixture
def three_affine():
    """Bounds (0,1)-(100,101) with three explicit 2x2 affine maps."""
    return FractalDescription(
        Vector(0.0, 1.0),
        Vector(100.0, 101.0),
        [
            AffineTransform(Matrix(1, 2, 3, 4), Vector(1, 2)),
            AffineTransform(Matrix(5, 6, 7, 8), Vector(3, 4)),
            AffineTransform(Matrix(9, 10, 11, 12), Vector(5, 6)),
        ],
    )


@pytest.fixture
def julia_description():
    return FractalDescription(
        Vector(-2.0, -2.0),
        Vector(2.0, 2.0),
        [JuliaTransform(Complex(-0.74543, 0.11301), 1)],
    )


@pytest.fixture
def canvas():
    return ChaosCanvas(100, 100, Vector(0.0, 0.0), Vector(100.0, 100.0))


@pytest.fixture
def context(tmp_path):
    return AppContext(tmp_path / "state" / "save_state.txt")
