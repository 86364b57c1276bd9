"""
Main API classes for chaos game rendering.

This module provides the high-level interface used by the command line and by
any front end: a validated render configuration and a session object that
loads descriptions, runs the chaos game and exports the result.
"""

import numpy as np
from typing import Optional, Union, Dict, Any, Callable
from dataclasses import dataclass
from pathlib import Path
import logging
import time

from .core.description import FractalDescription
from .core.game import ChaosGame, RunMode
from .core.presets import create_preset, default_description, is_preset
from .acceleration.parallel import ParallelPainter
from .rendering.coloring import density_to_rgb
from .rendering.image_output import ImageExporter, RenderMetadata
from .io.description_file import read_description, write_description
from .io.state import AppContext
from .config import DEFAULT_CANVAS_SIZE, DEFAULT_JULIA_POWER, DEFAULT_STEPS
from . import __version__

logger = logging.getLogger(__name__)

DescriptionSource = Union[FractalDescription, str, Path, None]


@dataclass
class ForgeConfig:
    """Configuration for chaos game rendering."""

    # Canvas
    width: int = DEFAULT_CANVAS_SIZE
    height: int = DEFAULT_CANVAS_SIZE

    # Run parameters
    steps: int = DEFAULT_STEPS
    mode: str = RunMode.STOCHASTIC.value
    seed: Optional[int] = None
    power: int = DEFAULT_JULIA_POWER

    # Performance
    workers: Optional[int] = None

    # Output
    heatmap: bool = False
    output_format: str = 'png'
    jpeg_quality: int = 95
    save_metadata: bool = True
    save_raw_data: bool = False

    def validate(self):
        """Validate configuration parameters."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Width and height must be positive")

        if self.steps < 0:
            raise ValueError("steps must not be negative")

        valid_modes = [mode.value for mode in RunMode]
        if self.mode not in valid_modes:
            raise ValueError(f"mode must be one of {', '.join(valid_modes)}")

        if self.power < 1:
            raise ValueError("power must be >= 1")

        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be >= 1")

        if self.output_format.lower() not in ('png', 'jpg', 'jpeg', 'tif', 'tiff'):
            raise ValueError(f"Unsupported output format '{self.output_format}'")

        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError("jpeg_quality must be between 1 and 100")

    @property
    def run_mode(self) -> RunMode:
        return RunMode(self.mode)


class FractalForge:
    """Rendering session around one chaos game."""

    def __init__(self, config: Optional[ForgeConfig] = None,
                 context: Optional[AppContext] = None):
        """
        Initialize session.

        Args:
            config: Rendering configuration (uses defaults if None)
            context: Application context for the remembered description
        """
        self.config = config or ForgeConfig()
        self.config.validate()
        self.context = context or AppContext()

        self.image_exporter = ImageExporter()
        self.painter = ParallelPainter(self.config.workers)
        self.game: Optional[ChaosGame] = None
        self._observers = []
        self.last_render_time = 0.0

        logger.info(f"FractalForge initialized: {self.config.width}x{self.config.height}, "
                    f"mode={self.config.mode}")

    def _resolve(self, source: DescriptionSource) -> FractalDescription:
        if isinstance(source, FractalDescription):
            return source

        if source is None:
            description = self.context.description
            if description is None:
                logger.info("No remembered fractal, using the default")
                return default_description()
            return description

        if isinstance(source, str) and is_preset(source):
            return create_preset(source)

        description = read_description(source)
        if description is None:
            logger.warning(f"Falling back to the default fractal instead of {source}")
            return default_description()
        return description

    def load(self, source: DescriptionSource = None) -> FractalDescription:
        """
        Load a description and set up a fresh chaos game for it.

        Args:
            source: Description, preset name or description file path. None
                loads the remembered description, or the default fractal.

        Returns:
            The loaded description
        """
        description = self._resolve(source)

        if description.is_julia and self.config.power != DEFAULT_JULIA_POWER:
            for transform in description.transforms:
                transform.set_power(self.config.power)

        self.game = ChaosGame(
            description,
            self.config.width,
            self.config.height,
            steps=self.config.steps,
            mode=self.config.run_mode,
            seed=self.config.seed,
            painter=self.painter,
        )
        for observer in self._observers:
            self.game.add_observer(observer)

        logger.info(f"Loaded {description!r}")
        return description

    def _require_game(self) -> ChaosGame:
        if self.game is None:
            self.load()
        return self.game

    @property
    def description(self) -> FractalDescription:
        return self._require_game().description

    def render(self) -> np.ndarray:
        """
        Run the current mode on a cleared canvas.

        Returns:
            Copy of the density buffer indexed ``[row, column]``
        """
        game = self._require_game()
        start_time = time.time()
        game.run()
        self.last_render_time = time.time() - start_time
        game.notify()
        logger.info(f"Render complete: {self.last_render_time:.2f}s")
        return self.density()

    def density(self) -> np.ndarray:
        return np.array(self._require_game().canvas.get_canvas_array())

    def to_image(self, heatmap: Optional[bool] = None) -> np.ndarray:
        """RGB image of the current density buffer (values 0-1)."""
        if heatmap is None:
            heatmap = self.config.heatmap
        return density_to_rgb(self.density(), heatmap)

    def create_metadata(self) -> RenderMetadata:
        game = self._require_game()
        description = game.description
        return RenderMetadata(
            fractal_type=description.type_name,
            bounds=tuple(description.min_coords.to_list() + description.max_coords.to_list()),
            resolution=(game.width, game.height),
            transform_count=len(description.transforms),
            mode=game.mode.value,
            steps=game.steps,
            heatmap=self.config.heatmap,
            render_time_seconds=self.last_render_time,
            software_version=__version__,
            transforms=[transform.serialize() for transform in description.transforms],
        )

    def save_image(self, output_path: Union[str, Path]) -> Path:
        """
        Save the current canvas as an image.

        A path without a suffix gets the configured output format.

        Returns:
            Path of the written image
        """
        output_path = Path(output_path)
        if not output_path.suffix:
            output_path = output_path.with_suffix(f".{self.config.output_format.lower()}")

        metadata = self.create_metadata() if self.config.save_metadata else None
        self.image_exporter.save_image(self.to_image(), output_path, metadata,
                                       self.config.jpeg_quality)

        if self.config.save_raw_data:
            self.image_exporter.save_raw_data(self.density(), output_path.with_suffix('.npy'),
                                              metadata)
        return output_path

    def save_description(self, output_path: Union[str, Path]) -> None:
        write_description(self.description, output_path)

    def remember(self) -> bool:
        """Store the current description as the last used one."""
        return self.context.save_last_description(self.description)

    def add_observer(self, observer: Callable[[], None]) -> None:
        self._observers.append(observer)
        if self.game is not None:
            self.game.add_observer(observer)

    def zoom(self, amount: float) -> None:
        self._require_game().zoom(amount)

    def set_resolution(self, width: int, height: int) -> None:
        self.config.width = width
        self.config.height = height
        self._require_game().set_resolution(width, height)

    def get_info(self) -> Dict[str, Any]:
        """Summary of the current session."""
        game = self._require_game()
        description = game.description
        density = game.canvas.get_canvas_array()
        return {
            'fractal_type': description.type_name,
            'transforms': len(description.transforms),
            'min_coords': description.min_coords.to_list(),
            'max_coords': description.max_coords.to_list(),
            'probability': description.get_probability().to_list(),
            'explicit_probability': description.has_explicit_probability,
            'resolution': (game.width, game.height),
            'mode': game.mode.value,
            'steps': game.steps,
            'points': len(game.point_array),
            'hit_pixels': int(np.count_nonzero(density)),
        }
