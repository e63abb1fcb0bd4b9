"""
Tracks the editing session state for the dispatcher.

Holds the currently displayed image, the undo history, the plugin registry
and the threshold cutoff.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from PyQt5.QtGui import QImage

from ..config import con_dict
from .history import EditHistory
from .plugin_manager import PluginRegistry


@dataclass
class EditorContext:
    """
    Lightweight container for the application's current working state.

    One context belongs to one dispatcher; everything runs on a single
    thread so no locking is done.

    Attributes
    ----------
    image : QImage | None
        The currently displayed image, None until one is opened.
    path : Path | None
        File the current image was opened from, if any.
    history : EditHistory
        Pre-operation snapshots for undo.
    registry : PluginRegistry
        Plugins discovered at startup.
    threshold : int
        Cutoff used by the threshold transform.
    """

    _image: Optional[QImage] = None
    path: Path | None = None
    history: EditHistory = field(default_factory=EditHistory)
    registry: PluginRegistry = field(default_factory=PluginRegistry)
    threshold: int = field(default_factory=lambda: int(con_dict["threshold_default"]))
    loaded: bool = False

    # ------------------------------------------------------------------
    # current image; once shown the session stays loaded
    # ------------------------------------------------------------------

    @property
    def image(self):
        return self._image

    @image.setter
    def image(self, img):
        self._image = img
        if img is not None:
            self.loaded = True

    # ------------------------------------------------------------------
    # convenience properties
    # ------------------------------------------------------------------

    @property
    def has_image(self) -> bool:
        return self.loaded and self._image is not None

    @property
    def can_undo(self) -> bool:
        return not self.history.is_empty()

    @property
    def size(self) -> tuple[int, int] | None:
        if self._image is None:
            return None
        return self._image.width(), self._image.height()
