"""
cvdemo.models package.

Core data structures for the editing session.

Classes
-------
PixelBuffer, PixelFormat
    Packed, strided pixel data handed to every transform and plugin.
EditHistory
    Undo stack of pre-operation snapshots.
PluginRegistry, PluginDescriptor
    Discovered editor plugins, indexed by name.
EditorContext
    The current image, history, registry and threshold for one session.

Notes
-----
Nothing in this package touches widgets; the dispatcher in
`cvdemo.interface` is the only thing that mutates an EditorContext.
"""

from .context import EditorContext
from .history import EditHistory
from .pixel_buffer import PixelBuffer, PixelFormat
from .plugin_manager import (
    EditorPluginInterface,
    PluginDescriptor,
    PluginRegistry,
    default_plugin_dir,
    discover,
    load_plugin,
)

__all__ = [
    "PixelBuffer",
    "PixelFormat",
    "EditHistory",
    "EditorContext",
    "EditorPluginInterface",
    "PluginDescriptor",
    "PluginRegistry",
    "default_plugin_dir",
    "discover",
    "load_plugin",
]
