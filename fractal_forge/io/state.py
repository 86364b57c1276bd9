"""
Application state persisted between sessions.

The context is created once by the entry point and handed to whatever needs
the remembered description; nothing looks it up globally.
"""

from pathlib import Path
from typing import Optional, Union
import logging

from .description_file import read_description, write_description
from ..core.description import FractalDescription
from ..config import DEFAULT_STATE_PATH

logger = logging.getLogger(__name__)


class AppContext:
    """Remembers the last used fractal description on disk."""

    def __init__(self, state_path: Union[str, Path] = DEFAULT_STATE_PATH):
        """
        Initialize context.

        Args:
            state_path: Description file holding the saved state
        """
        self.state_path = Path(state_path)
        self._description: Optional[FractalDescription] = None
        self._loaded = False

    @property
    def description(self) -> Optional[FractalDescription]:
        """Last used description, loaded lazily from the state file."""
        if not self._loaded:
            self._description = self.load_last_description()
        return self._description

    def has_saved_state(self) -> bool:
        return self.state_path.exists()

    def load_last_description(self) -> Optional[FractalDescription]:
        """Read the state file; a missing or broken file yields None."""
        self._loaded = True
        if not self.state_path.exists():
            logger.debug(f"No saved state at {self.state_path}")
            self._description = None
            return None

        self._description = read_description(self.state_path)
        if self._description is None:
            logger.warning(f"Ignoring unreadable saved state {self.state_path}")
        return self._description

    def save_last_description(self, description: Optional[FractalDescription]) -> bool:
        """
        Store ``description`` as the last used one.

        Returns:
            True if the state file was written
        """
        if description is None:
            logger.warning("No fractal description to save, state left unchanged")
            return False

        self._description = description
        self._loaded = True
        try:
            write_description(description, self.state_path)
        except OSError as e:
            logger.warning(f"Could not save state to {self.state_path}: {e}")
            return False
        return True

    def __repr__(self) -> str:
        return f"AppContext(state_path={str(self.state_path)!r})"
