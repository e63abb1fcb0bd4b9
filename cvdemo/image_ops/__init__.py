"""
Pixel-level operations on PixelBuffer objects.

- transforms
    Grayscale reduction, binary threshold, 8-connected component labelling
    with per-label area and centroid, and filled-circle centroid markers.
"""

from .transforms import (
    Component,
    ConnectedComponentResult,
    connected_components,
    draw_marker,
    threshold,
    to_grayscale,
    to_rgb,
)

__all__ = [
    "Component",
    "ConnectedComponentResult",
    "connected_components",
    "draw_marker",
    "threshold",
    "to_grayscale",
    "to_rgb",
]
