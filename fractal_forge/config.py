"""
Constants and defaults shared across the fractal engine.

Values here follow the defaults of the interactive application, so command
line renders look the same.
"""

from pathlib import Path

# Density added to a pixel every time a point lands on it
PIXEL_HIT_INCREMENT = 0.5

DEFAULT_STEPS = 10000
DEFAULT_CANVAS_SIZE = 800

# Julia divergence test
MAX_DIVERGENCE_ITERATIONS = 100
DIVERGENCE_BOUND = 4.0
DEFAULT_JULIA_POWER = 2

# Fixed world window used by the per-pixel divergence scan
DIVERGENCE_WINDOW_X = 1.5
DIVERGENCE_WINDOW_Y = 1.0

# Random draws for transform selection are integers in [0, PROBABILITY_SCALE)
PROBABILITY_SCALE = 100

# Type lines of the description file format
AFFINE_TYPE_NAME = "Affine2D"
JULIA_TYPE_NAME = "Julia"
PROBABILITY_KEYWORD = "Probability"

DATA_DIRECTORY = Path("data")
PRESET_DIRECTORY = DATA_DIRECTORY / "presets"
DEFAULT_STATE_PATH = DATA_DIRECTORY / "state" / "save_state.txt"

ENV_PREFIX = "FRACTAL_FORGE_"
