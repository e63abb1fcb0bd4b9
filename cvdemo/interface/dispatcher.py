"""
Routes editing requests against the current image.

OperationDispatcher is the single entry point a GUI or the runner drives. It
resolves an operation to a builtin transform or a plugin, runs it on a
PixelBuffer bridged from the displayed QImage, swaps in the result and keeps
the undo history. It does not depend on any widget.
"""

from dataclasses import dataclass
import logging
from pathlib import Path

from PyQt5.QtGui import QImage

from ..config import con_dict
from ..errors import (
    EditorError,
    FormatError,
    NoImageLoaded,
    PluginNotFound,
    TransformError,
    UnknownOperation,
)
from ..image_ops import transforms as tf
from ..models import EditorContext, PixelBuffer, default_plugin_dir
from .bridge import from_processing_buffer, normalise, to_processing_buffer
from .tools import load_image, save_image

logger = logging.getLogger(__name__)

BUILTIN = "builtin"
PLUGIN = "plugin"

GRAYSCALE = "grayscale"
THRESHOLD = "threshold"
CONNECTED_COMPONENTS = "connected_components"
BUILTIN_OPERATIONS = (GRAYSCALE, THRESHOLD, CONNECTED_COMPONENTS)


@dataclass(frozen=True)
class Operation:
    """A builtin transform or a plugin, referred to by name."""
    kind: str
    name: str

    @classmethod
    def builtin(cls, name):
        if name not in BUILTIN_OPERATIONS:
            raise ValueError(f"Unknown builtin {name!r}; expected one of {BUILTIN_OPERATIONS}")
        return cls(BUILTIN, name)

    @classmethod
    def plugin(cls, name):
        return cls(PLUGIN, name)


@dataclass
class OperationResult:
    """
    Outcome of a dispatcher call.

    Attributes
    ----------
    image : QImage | None
        The image to display afterwards (unchanged on failure).
    status : str
        Status-bar summary on success, the error message on failure.
    error : EditorError | None
        Set when the request was refused or failed.
    """
    image: QImage | None
    status: str
    error: EditorError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def level(self) -> str:
        return "ok" if self.error is None else self.error.level


class OperationDispatcher:
    """
    Façade over the editing engine for one session.

    All state lives in the EditorContext passed in (or a fresh one). Every
    EditorError raised while handling a request is caught here and returned
    inside an OperationResult. The exception is `set_threshold`, which
    raises ValueError for a cutoff outside 0-255 so the caller can reject
    the input before anything runs.
    """
    def __init__(self, context: EditorContext | None = None):
        self.cxt = context if context is not None else EditorContext()

    # ================ plugins ==============================================
    def load_plugins(self, directory=None):
        """Scan `directory` (default: the bundled plugin dir); return skips."""
        directory = Path(directory) if directory is not None else default_plugin_dir()
        skipped = self.cxt.registry.load_directory(directory)
        logger.info(f"Loaded {len(self.cxt.registry)} plugin(s) from {directory}, skipped {len(skipped)}")
        return skipped

    def available_operations(self) -> list[str]:
        """Builtin names followed by plugin names in registration order."""
        return list(BUILTIN_OPERATIONS) + self.cxt.registry.names()

    def resolve(self, name: str) -> Operation:
        """Map a user-facing name to an Operation; builtins win over plugins."""
        if name in BUILTIN_OPERATIONS:
            return Operation.builtin(name)
        return Operation.plugin(name)

    # ================ parameters ===========================================
    def set_threshold(self, value: int):
        value = int(value)
        if not 0 <= value <= 255:
            raise ValueError(f"Threshold must be in [0, 255], got {value}")
        self.cxt.threshold = value
        logger.debug(f"Threshold set to {value}")

    # ================ open / save ==========================================
    def set_image(self, image: QImage, path=None) -> OperationResult:
        """Show `image` as a freshly opened image; history is reset."""
        try:
            image = normalise(image)
        except FormatError as e:
            return self._report(e)
        self.cxt.image = image
        self.cxt.path = Path(path) if path is not None else None
        self.cxt.history.clear()
        return OperationResult(image, f"{image.width()}x{image.height()}")

    def open_image(self, path) -> OperationResult:
        p = Path(path)
        try:
            image = load_image(p)
        except (EditorError, OSError) as e:
            if not isinstance(e, EditorError):
                e = FormatError(str(e))
            return self._report(e)
        result = self.set_image(image, p)
        result.status = f"{p}, {image.width()}x{image.height()}, {p.stat().st_size} Bytes"
        logger.info(f"Opened {result.status}")
        return result

    def save_as(self, path) -> OperationResult:
        if not self.cxt.has_image:
            return self._report(NoImageLoaded("Nothing to save."))
        try:
            saved = save_image(self.cxt.image, path)
        except EditorError as e:
            return self._report(e)
        except OSError as e:
            return self._report(FormatError(f"Save error: {e}"))
        self.cxt.path = saved
        return OperationResult(self.cxt.image, f"Saved {saved}")

    # ================ editing ==============================================
    def apply(self, op: Operation | str) -> OperationResult:
        """
        Run `op` on the current image.

        On success the result becomes the current image and the
        pre-operation snapshot is pushed for undo. On any failure the
        current image and the history are left as they were.
        """
        if isinstance(op, str):
            op = self.resolve(op)
        try:
            if not self.cxt.has_image:
                raise NoImageLoaded()
            run, label = self._resolve(op)
            before = to_processing_buffer(self.cxt.image)
            try:
                after, summary = run(before.copy())
            except (EditorError, MemoryError):
                raise
            except Exception as e:
                raise TransformError(f"{label} failed: {e}") from e
            new_image = from_processing_buffer(after)
        except EditorError as e:
            return self._report(e)

        self.cxt.history.push(before)
        self.cxt.image = new_image
        status = f"({summary}), {new_image.width()}x{new_image.height()}"
        logger.info(f"Applied {label}: {status}")
        return OperationResult(new_image, status)

    def undo(self) -> QImage | None:
        """
        Restore the most recent snapshot; None (and no change) when the
        history is empty.
        """
        snapshot = self.cxt.history.pop()
        if snapshot is None:
            logger.debug("Undo with empty history ignored")
            return None
        self.cxt.image = from_processing_buffer(snapshot)
        logger.info(f"Undo: restored {snapshot!r}")
        return self.cxt.image

    # ================ internals ============================================
    def _resolve(self, op: Operation):
        """Return (callable(buffer) -> (buffer, summary), label) for `op`."""
        if op.kind == BUILTIN:
            if op.name == GRAYSCALE:
                return self._grayscale, "grayscale"
            if op.name == THRESHOLD:
                return self._threshold, f"threshold {self.cxt.threshold}"
            if op.name == CONNECTED_COMPONENTS:
                return self._count_objects, "connected components"
            raise UnknownOperation(op.name)

        descriptor = self.cxt.registry.lookup(op.name)
        if descriptor is None:
            raise PluginNotFound(op.name)

        def _run_plugin(buffer):
            return descriptor.edit(tf.to_rgb(buffer)), f"{descriptor.name} applied"
        return _run_plugin, f"plugin '{descriptor.name}'"

    def _grayscale(self, buffer: PixelBuffer):
        return tf.to_grayscale(buffer), "grayscale image"

    def _threshold(self, buffer: PixelBuffer):
        return tf.threshold(buffer, self.cxt.threshold), "image with threshold applied"

    def _count_objects(self, buffer: PixelBuffer):
        found = tf.connected_components(tf.to_grayscale(buffer))
        canvas = tf.to_rgb(buffer)
        radius = con_dict["marker_radius"]
        colour = con_dict["marker_colour"]
        for comp in found.objects:
            tf.draw_marker(canvas, comp.centroid, radius, colour)
        return canvas, f"{found.count} objects found"

    def _report(self, error: EditorError) -> OperationResult:
        if error.level == "information":
            logger.info(str(error))
        else:
            logger.warning(str(error), exc_info=error.__cause__)
        return OperationResult(self.cxt.image, str(error), error)
