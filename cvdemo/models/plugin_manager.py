"""
Non-UI manager for editor plugins.

This module centralises:
    - Discovering candidate plugin files in a directory
    - Importing a candidate and checking it exposes the editor capability
    - The name -> PluginDescriptor registry used for dispatch
    - Running a plugin against a PixelBuffer under the host contract

A plugin is a Python module (source or compiled extension) that defines a
module-level ``plugin`` object::

    class InvertPlugin:
        def name(self):
            return "Invert"

        def edit(self, input, output):
            output[...] = cv2.bitwise_not(input)

    plugin = InvertPlugin()

``input`` and ``output`` are (H, W, 3) uint8 RGB arrays of the same shape.
The host passes the same working array for both, so a plugin may edit in
place or fill ``output``; returning a new array is accepted too.

Callers (the dispatcher, the runner) decide where to look and what to do
with the skipped candidates; nothing here shows UI.
"""

from __future__ import annotations

from dataclasses import dataclass
import importlib.machinery
import importlib.util
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, runtime_checkable
import uuid

import numpy as np

from ..config import con_dict
from ..errors import DuplicatePlugin, LoadError, LoadFailed, NotAPlugin, TransformError
from .pixel_buffer import PixelBuffer, PixelFormat

logger = logging.getLogger(__name__)

# Module attribute a plugin file must define
PLUGIN_ATTRIBUTE = "plugin"

# Source and compiled-extension suffixes the running interpreter can import
PLUGIN_SUFFIXES = tuple(importlib.machinery.SOURCE_SUFFIXES
                        + importlib.machinery.EXTENSION_SUFFIXES)


@runtime_checkable
class EditorPluginInterface(Protocol):
    """Capability every editor plugin must provide."""

    def name(self) -> str:
        ...

    def edit(self, input: np.ndarray, output: np.ndarray) -> Optional[np.ndarray]:
        ...


@dataclass(frozen=True)
class PluginDescriptor:
    """
    One registered editing capability.

    Attributes
    ----------
    name : str
        Display label and dispatch key.
    plugin : EditorPluginInterface
        The object implementing ``edit``.
    path : Path | None
        File the plugin was loaded from, None for in-process plugins.
    """
    name: str
    plugin: Any
    path: Path | None = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Plugin name must be a non-empty string")

    @classmethod
    def from_plugin(cls, plugin, path=None):
        """
        Check the capability of `plugin` and wrap it.

        Raises
        ------
        NotAPlugin
            If the object does not satisfy EditorPluginInterface or its
            name is not a non-empty string.
        """
        if not isinstance(plugin, EditorPluginInterface):
            raise NotAPlugin(path, f"{type(plugin).__name__} does not implement name() and edit()")
        try:
            name = plugin.name()
        except (Exception, SystemExit) as e:
            raise NotAPlugin(path, f"name() failed: {e}") from e
        if not isinstance(name, str) or not name:
            raise NotAPlugin(path, f"name() must return a non-empty string, got {name!r}")
        return cls(name=name, plugin=plugin, path=Path(path) if path is not None else None)

    def edit(self, buffer: PixelBuffer) -> PixelBuffer:
        """
        Run the plugin on an RGB8 buffer and return a new packed buffer.

        The input buffer is never modified.

        Raises
        ------
        TransformError
            If the buffer is not RGB8, the plugin raises, or the plugin's
            result is not a uint8 array of the input's shape.
        """
        if buffer.fmt is not PixelFormat.RGB8:
            raise TransformError(f"Plugin {self.name!r} needs an RGB8 buffer, got {buffer.fmt.name}")
        work = np.ascontiguousarray(buffer.array()).copy()
        try:
            returned = self.plugin.edit(work, work)
        except (Exception, SystemExit) as e:
            raise TransformError(f"Plugin {self.name!r} failed: {e}") from e

        result = work if returned is None else np.asarray(returned)
        if result.shape != work.shape or result.dtype != np.uint8:
            raise TransformError(
                f"Plugin {self.name!r} returned {result.dtype} {result.shape}, expected uint8 {work.shape}"
            )
        return PixelBuffer.from_array(result)


#======= Discovery and loading ================================================

def default_plugin_dir() -> Path:
    """The plugin directory beside the installed package."""
    return Path(__file__).resolve().parent.parent / con_dict["plugin_dir"]


def discover(directory) -> list[Path]:
    """
    List candidate plugin files in `directory` (non-recursive).

    Parameters
    ----------
    directory : str or Path
        Folder to scan.

    Returns
    -------
    list[Path]
        Files with an importable suffix, sorted by filename. Empty if the
        directory does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.info(f"Plugin directory not found: {directory}")
        return []
    candidates = [p for p in directory.iterdir()
                  if p.is_file() and p.name.endswith(PLUGIN_SUFFIXES)]
    return sorted(candidates, key=lambda p: p.name)


def load_plugin(path) -> PluginDescriptor:
    """
    Import one candidate file and return its descriptor.

    Raises
    ------
    LoadFailed
        The import itself failed (bad syntax, missing symbols, wrong
        architecture, corrupt file).
    NotAPlugin
        The import succeeded but the module has no valid plugin object.
    """
    path = Path(path)
    stem = path.name.split(".")[0]
    # compiled extensions must keep their own name to find their init symbol
    if path.suffix in importlib.machinery.SOURCE_SUFFIXES:
        module_name = f"cvdemo_plugin_{stem}_{uuid.uuid4().hex}"
    else:
        module_name = stem
    try:
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError("Unable to build an import spec")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
    except (Exception, SystemExit) as e:
        raise LoadFailed(path, f"{type(e).__name__}: {e}") from e

    obj = getattr(module, PLUGIN_ATTRIBUTE, None)
    if obj is None:
        raise NotAPlugin(path, f"module defines no '{PLUGIN_ATTRIBUTE}' object")
    return PluginDescriptor.from_plugin(obj, path)


#======= Registry =============================================================

class PluginRegistry:
    """
    Name -> PluginDescriptor mapping used for dispatch.

    Registration order is kept so menus list plugins in discovery order.
    Names are unique: a second plugin with a registered name is rejected.
    """

    def __init__(self) -> None:
        self._plugins: dict[str, PluginDescriptor] = {}

    def register(self, descriptor: PluginDescriptor):
        if descriptor.name in self._plugins:
            existing = self._plugins[descriptor.name]
            origin = existing.path.name if existing.path is not None else "in-process"
            raise DuplicatePlugin(descriptor.path,
                                  f"plugin name {descriptor.name!r} already registered from {origin}")
        self._plugins[descriptor.name] = descriptor
        logger.info(f"Registered plugin '{descriptor.name}'")

    def register_plugin(self, plugin) -> PluginDescriptor:
        """Check and register an in-process plugin object."""
        descriptor = PluginDescriptor.from_plugin(plugin)
        self.register(descriptor)
        return descriptor

    def lookup(self, name: str) -> PluginDescriptor | None:
        return self._plugins.get(name)

    def names(self) -> list[str]:
        return list(self._plugins)

    def load_directory(
        self,
        directory,
        loader: Callable[[Path], PluginDescriptor] = load_plugin,
    ) -> list[tuple[Path, LoadError]]:
        """
        Discover, load and register every plugin in `directory`.

        A candidate that fails to load, is not a plugin, or reuses a
        registered name is logged and skipped; the scan carries on.

        Parameters
        ----------
        directory : str or Path
            Folder to scan.
        loader : callable, optional
            Path -> PluginDescriptor; defaults to `load_plugin`.

        Returns
        -------
        list[tuple[Path, LoadError]]
            The skipped candidates and why.
        """
        skipped = []
        for path in discover(directory):
            try:
                self.register(loader(path))
            except LoadError as e:
                logger.warning(f"bad plugin: {path} ({e.reason})")
                skipped.append((path, e))
        return skipped

    def __contains__(self, name):
        return name in self._plugins

    def __len__(self):
        return len(self._plugins)

    def __iter__(self):
        return iter(self._plugins.values())
