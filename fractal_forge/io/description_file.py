"""
Text persistence format for fractal descriptions.

Layout::

    Affine2D | Julia
    <min x>, <min y>
    <max x>, <max y>
    <transform line>
    ...
    [Probability
    <p1>, <p2>, ..., <pn>]

Anything from ``#`` to the end of a line is a comment. The transform block ends
at the first blank line, at the ``Probability`` keyword, or at end of file.
"""

import re
from pathlib import Path
from typing import List, Optional, Union
import logging

from ..core.description import FractalDescription
from ..core.geometry import Vector
from ..core.transforms import TransformRegistry
from ..config import PROBABILITY_KEYWORD

logger = logging.getLogger(__name__)

_COMMENT = re.compile(r"\s*#.*")


def strip_comment(line: str) -> str:
    return _COMMENT.sub("", line).strip()


def parse_numbers(line: str) -> List[float]:
    """
    Parse a comma separated list of numbers.

    Raises:
        ValueError: If the line is empty or any entry is not a number
    """
    if not line:
        raise ValueError("Expected a comma separated list of numbers, got an empty line")
    return [float(part) for part in line.split(",")]


def parse_description(text: str) -> FractalDescription:
    """
    Parse the text of a description file.

    Args:
        text: File contents

    Returns:
        Parsed and validated description

    Raises:
        ValueError: For unknown types, bad numbers or invalid descriptions
        IndexError: When the header lines are missing
    """
    lines = [strip_comment(line) for line in text.splitlines()]

    type_name = lines[0]
    transform_class = TransformRegistry.get(type_name)
    min_coords = Vector(*parse_numbers(lines[1]))
    max_coords = Vector(*parse_numbers(lines[2]))

    transforms = []
    probability = None
    position = 3
    while position < len(lines):
        line = lines[position]
        if not line:
            break
        if line == PROBABILITY_KEYWORD:
            probability = Vector(*parse_numbers(lines[position + 1]))
            break
        transforms.append(transform_class.from_values(parse_numbers(line)))
        position += 1

    return FractalDescription(min_coords, max_coords, transforms, probability)


def read_description(path: Union[str, Path]) -> Optional[FractalDescription]:
    """
    Read a description file.

    Missing or malformed files are logged and yield None, never a partial
    description.

    Args:
        path: File to read

    Returns:
        Description, or None when the file cannot be used
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read fractal description {path}: {e}")
        return None

    try:
        description = parse_description(text)
    except (ValueError, IndexError) as e:
        logger.error(f"Invalid fractal description in {path}: {e}")
        return None

    logger.debug(f"Loaded {description!r} from {path}")
    return description


def _format_vector(vector: Vector) -> str:
    return ", ".join(repr(value) for value in vector.to_list())


def format_description(description: FractalDescription) -> str:
    """Render a description in the file format, ending with a newline."""
    lines = [
        description.type_name,
        _format_vector(description.min_coords),
        _format_vector(description.max_coords),
    ]
    lines.extend(transform.serialize() for transform in description.transforms)

    # Synthesised equal shares are never persisted
    if description.has_explicit_probability:
        lines.append(PROBABILITY_KEYWORD)
        lines.append(_format_vector(description.get_probability()))

    return "\n".join(lines) + "\n"


def write_description(description: FractalDescription, path: Union[str, Path]) -> None:
    """
    Write a description file, creating parent directories as needed.

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(format_description(description), encoding="utf-8")
    except OSError as e:
        logger.error(f"Could not write fractal description {path}: {e}")
        raise

    logger.info(f"Saved {description.type_name} description to {path}")
