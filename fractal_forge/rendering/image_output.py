"""
Image export for rendered density buffers.

Supports PNG, TIFF and JPEG with render metadata embedded where the format
allows it, plus raw ``.npy`` dumps of the density buffer.
"""

import numpy as np
from typing import Dict, Any, Optional, Tuple
from pathlib import Path
from dataclasses import dataclass, asdict, field
import json
import logging
from datetime import datetime

from PIL import Image, PngImagePlugin

logger = logging.getLogger(__name__)


@dataclass
class RenderMetadata:
    """Metadata for chaos game renders."""

    # Fractal parameters
    fractal_type: str
    bounds: Tuple[float, float, float, float]  # xmin, ymin, xmax, ymax
    resolution: Tuple[int, int]  # width, height
    transform_count: int

    # Run parameters
    mode: str
    steps: int
    heatmap: bool = False

    # Timing
    render_time_seconds: float = 0.0

    # Generation info
    timestamp: str = ""
    software_version: str = "1.0.0"

    # Serialized transforms, one string per transform
    transforms: list = field(default_factory=list)

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RenderMetadata':
        data = dict(data)
        data['bounds'] = tuple(data['bounds'])
        data['resolution'] = tuple(data['resolution'])
        return cls(**data)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'RenderMetadata':
        return cls.from_dict(json.loads(json_str))


class ImageExporter:
    """Image export with metadata support."""

    def __init__(self):
        self.supported_formats = {
            '.png': self._save_png,
            '.tiff': self._save_tiff,
            '.tif': self._save_tiff,
            '.jpg': self._save_jpeg,
            '.jpeg': self._save_jpeg,
        }

    def save_image(self, image_array: np.ndarray, filepath: Path,
                   metadata: Optional[RenderMetadata] = None,
                   quality: int = 95) -> None:
        """
        Save RGB image array to file with metadata.

        Args:
            image_array: RGB image array (height, width, 3) with values 0-1
            filepath: Output file path; the suffix selects the format
            metadata: Render metadata to embed
            quality: JPEG quality (1-100)
        """
        filepath = Path(filepath)
        suffix = filepath.suffix.lower()

        if suffix not in self.supported_formats:
            supported = ', '.join(self.supported_formats.keys())
            raise ValueError(f"Unsupported format '{suffix}'. Supported: {supported}")

        image_array = self._prepare_image_array(image_array)
        pil_image = Image.fromarray(image_array)

        if filepath.parent and not filepath.parent.exists():
            filepath.parent.mkdir(parents=True, exist_ok=True)

        save_method = self.supported_formats[suffix]
        save_method(pil_image, filepath, metadata, quality)

        logger.info(f"Saved image: {filepath} ({pil_image.size[0]}x{pil_image.size[1]})")

    def _prepare_image_array(self, image_array: np.ndarray) -> np.ndarray:
        """Validate the shape and convert to 8-bit."""
        if len(image_array.shape) != 3 or image_array.shape[2] != 3:
            raise ValueError(f"Expected RGB image array (H, W, 3), got {image_array.shape}")

        if image_array.dtype != np.uint8:
            if np.issubdtype(image_array.dtype, np.floating):
                image_array = np.clip(image_array, 0.0, 1.0)
                image_array = np.round(image_array * 255).astype(np.uint8)
            else:
                image_array = np.clip(image_array, 0, 255).astype(np.uint8)

        return image_array

    def _save_png(self, pil_image: Image.Image, filepath: Path,
                  metadata: Optional[RenderMetadata], quality: int) -> None:
        pnginfo = PngImagePlugin.PngInfo()

        if metadata:
            pnginfo.add_text("Title", f"Fractal: {metadata.fractal_type}")
            pnginfo.add_text("Software", f"FractalForge v{metadata.software_version}")
            pnginfo.add_text("Creation Time", metadata.timestamp)
            pnginfo.add_text("FractalMetadata", metadata.to_json())

        pil_image.save(filepath, "PNG", pnginfo=pnginfo)

    def _save_tiff(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        save_kwargs = {'format': 'TIFF', 'compression': 'tiff_lzw'}
        if metadata:
            # ImageDescription carries the full metadata as JSON
            save_kwargs['description'] = metadata.to_json()
        pil_image.save(filepath, **save_kwargs)

    def _save_jpeg(self, pil_image: Image.Image, filepath: Path,
                   metadata: Optional[RenderMetadata], quality: int) -> None:
        # JPEG has no text chunks; metadata goes to a companion JSON file
        pil_image.save(filepath, "JPEG", quality=quality, optimize=True)

        if metadata:
            json_path = filepath.with_suffix('.json')
            with open(json_path, 'w') as f:
                f.write(metadata.to_json())
            logger.info(f"Saved metadata: {json_path}")

    def save_raw_data(self, density: np.ndarray, filepath: Path,
                      metadata: Optional[RenderMetadata] = None) -> Path:
        """
        Save the raw density buffer as a NumPy array.

        Args:
            density: Density buffer to save
            filepath: Output file path (``.npy`` is enforced)
            metadata: Metadata to save alongside as JSON

        Returns:
            Path the array was written to
        """
        filepath = Path(filepath)
        if filepath.suffix.lower() != '.npy':
            filepath = filepath.with_suffix('.npy')

        np.save(filepath, np.asarray(density))

        if metadata:
            metadata_path = filepath.with_suffix('.json')
            with open(metadata_path, 'w') as f:
                f.write(metadata.to_json())

        logger.info(f"Saved raw data: {filepath}")
        return filepath

    def load_raw_data(self, filepath: Path) -> Tuple[np.ndarray, Optional[RenderMetadata]]:
        """
        Load a raw density buffer and its metadata.

        Returns:
            Tuple of (density, metadata); metadata is None when missing or unreadable
        """
        filepath = Path(filepath)
        density = np.load(filepath)

        metadata = None
        metadata_path = filepath.with_suffix('.json')
        if metadata_path.exists():
            try:
                with open(metadata_path, 'r') as f:
                    metadata = RenderMetadata.from_json(f.read())
            except (OSError, ValueError, TypeError, KeyError) as e:
                logger.warning(f"Could not load metadata from {metadata_path}: {e}")

        return density, metadata

    def extract_metadata_from_image(self, filepath: Path) -> Optional[RenderMetadata]:
        """
        Extract render metadata from a saved image.

        Returns:
            Extracted metadata or None
        """
        filepath = Path(filepath)

        try:
            with Image.open(filepath) as img:
                if hasattr(img, 'text') and 'FractalMetadata' in img.text:
                    return RenderMetadata.from_json(img.text['FractalMetadata'])

                if hasattr(img, 'tag_v2') and 270 in img.tag_v2:
                    return RenderMetadata.from_json(img.tag_v2[270])

            if filepath.suffix.lower() in ['.jpg', '.jpeg']:
                json_path = filepath.with_suffix('.json')
                if json_path.exists():
                    with open(json_path, 'r') as f:
                        return RenderMetadata.from_json(f.read())

        except (OSError, ValueError, TypeError, KeyError) as e:
            logger.warning(f"Could not extract metadata from {filepath}: {e}")

        return None
