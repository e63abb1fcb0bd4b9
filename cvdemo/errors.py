"""
Error taxonomy for the editing engine.

Every error carries a ``level`` so the dispatcher can turn it into a report
for the caller: ``"information"`` for conditions the user simply needs to be
told about (nothing loaded, unknown plugin) and ``"warning"`` for genuine
failures. None of these terminate the process.
"""
from pathlib import Path


class EditorError(Exception):
    """Base class for all recoverable engine errors."""
    level = "warning"


class NoImageLoaded(EditorError):
    """An editing operation was requested before any image was opened."""
    level = "information"

    def __init__(self, message="No image to edit."):
        super().__init__(message)


class LoadError(EditorError):
    """
    A plugin candidate could not be turned into a registered plugin.

    Parameters
    ----------
    path : str or Path or None
        The candidate file, or None for in-process plugins.
    reason : str
        Human readable description of what went wrong.
    """
    def __init__(self, path, reason):
        self.path = Path(path) if path is not None else None
        self.reason = reason
        where = self.path.name if self.path is not None else "<in-process>"
        super().__init__(f"{where}: {reason}")


class LoadFailed(LoadError):
    """The module itself could not be imported (syntax, missing symbols, ABI)."""


class NotAPlugin(LoadError):
    """The module imported but exposes no usable editor plugin."""


class DuplicatePlugin(LoadError):
    """A plugin with the same name is already registered."""


class PluginNotFound(EditorError):
    level = "information"

    def __init__(self, name):
        self.name = name
        super().__init__(f"No plugin is found: {name!r}")


class UnknownOperation(EditorError):
    """A builtin operation name the dispatcher does not implement."""
    level = "information"

    def __init__(self, name):
        self.name = name
        super().__init__(f"Unknown operation: {name!r}")


class FormatError(EditorError, ValueError):
    """A pixel format, or a file format, the engine cannot interpret."""


class TransformError(EditorError):
    """A builtin transform or plugin failed while running."""
