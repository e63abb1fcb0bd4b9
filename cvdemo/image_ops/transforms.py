"""
Builtin image transforms: grayscale reduction, binary threshold,
connected-component labelling and centroid markers.

All functions take and return PixelBuffer objects and are UI agnostic.
Everything except `draw_marker` returns a new, tightly packed buffer and
leaves its input untouched.
"""
from dataclasses import dataclass, field
import logging

import cv2
import numpy as np

from ..errors import FormatError
from ..models import PixelBuffer, PixelFormat

logger = logging.getLogger(__name__)

# qGray: R, G, B weights over 32
QGRAY_WEIGHTS = np.array([11, 16, 5], dtype=np.uint32)


def _require(buffer, fmt, what):
    if buffer.fmt is not fmt:
        raise FormatError(f"{what} expects a {fmt.name} buffer, got {buffer.fmt.name}")


def _packed(buffer):
    """Contiguous copy of the visible pixels, as OpenCV wants them."""
    return np.ascontiguousarray(buffer.array())


#============= colour conversions ==============================================

def to_grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """
    Reduce an RGB8 buffer to GRAY8.

    Uses Qt's qGray weights, (11 R + 16 G + 5 B) / 32 truncated, so the
    result matches QImage.convertToFormat(QImage.Format_Grayscale8).
    A GRAY8 buffer comes back as a packed copy.
    """
    if buffer.fmt is PixelFormat.GRAY8:
        return PixelBuffer.from_array(_packed(buffer))
    rgb = buffer.array().astype(np.uint32)
    gray = (rgb @ QGRAY_WEIGHTS) >> 5
    return PixelBuffer.from_array(gray.astype(np.uint8))


def to_rgb(buffer: PixelBuffer) -> PixelBuffer:
    """Expand GRAY8 to RGB8 by channel replication; RGB8 is copied."""
    if buffer.fmt is PixelFormat.RGB8:
        return PixelBuffer.from_array(_packed(buffer))
    rgb = cv2.cvtColor(_packed(buffer), cv2.COLOR_GRAY2RGB)
    return PixelBuffer.from_array(rgb)


#============= thresholding ====================================================

def threshold(buffer: PixelBuffer, cutoff: int) -> PixelBuffer:
    """
    Binary threshold applied to every channel independently.

    Parameters
    ----------
    buffer : PixelBuffer
        RGB8 or GRAY8 input.
    cutoff : int
        Values strictly greater than `cutoff` become 255, all others 0
        (OpenCV THRESH_BINARY).

    Returns
    -------
    PixelBuffer
        Same format and dimensions as the input.
    """
    cutoff = int(cutoff)
    if not 0 <= cutoff <= 255:
        raise ValueError(f"Threshold cutoff must be in [0, 255], got {cutoff}")
    _, out = cv2.threshold(_packed(buffer), cutoff, 255, cv2.THRESH_BINARY)
    return PixelBuffer.from_array(out)


#============= connected components ============================================

@dataclass
class Component:
    """Area and centroid of one label. Centroid is in buffer (x, y) coordinates."""
    label: int
    area: int
    centroid_x: float
    centroid_y: float

    @property
    def centroid(self) -> tuple[float, float]:
        return self.centroid_x, self.centroid_y


@dataclass
class ConnectedComponentResult:
    """
    Label image plus one Component per label, background (label 0) first.

    Attributes
    ----------
    labels : ndarray
        int32 (H, W); 0 is background, objects are numbered 1..N in the
        row-major order of their first pixel.
    components : list[Component]
        Entry i describes label i.
    """
    labels: np.ndarray
    components: list = field(default_factory=list)

    @property
    def objects(self) -> list:
        """Components excluding the background."""
        return self.components[1:]

    @property
    def count(self) -> int:
        return len(self.components) - 1


def connected_components(buffer: PixelBuffer) -> ConnectedComponentResult:
    """
    Label 8-connected foreground regions of a GRAY8 buffer.

    Any non-zero pixel is foreground. OpenCV's label numbering depends on the
    algorithm it picks, so labels are renumbered into scan order (row-major,
    first pixel of each component) before returning.

    Raises
    ------
    FormatError
        If the buffer is not GRAY8.
    """
    _require(buffer, PixelFormat.GRAY8, "connected_components")
    bw = (_packed(buffer) > 0).astype(np.uint8)
    n, labels, stats, centroids = cv2.connectedComponentsWithStats(bw, connectivity=8)

    # old label -> new label, ordered by first occurrence in the flat image
    flat = labels.ravel()
    present, first = np.unique(flat, return_index=True)
    keep = present != 0
    order = present[keep][np.argsort(first[keep], kind="stable")]
    perm = np.concatenate(([0], order)).astype(np.intp)
    lut = np.zeros(n, dtype=np.int32)
    lut[perm] = np.arange(perm.size, dtype=np.int32)
    labels = lut[labels]

    components = []
    for new_label, old_label in enumerate(perm):
        area = int(stats[old_label, cv2.CC_STAT_AREA])
        if area == 0:
            cx = cy = float("nan")
        else:
            cx, cy = (float(v) for v in centroids[old_label])
        components.append(Component(label=new_label, area=area, centroid_x=cx, centroid_y=cy))

    logger.debug(f"connected_components: {len(components) - 1} objects in {buffer!r}")
    return ConnectedComponentResult(labels=labels, components=components)


#============= markers =========================================================

def draw_marker(buffer: PixelBuffer, center, radius: int, colour) -> PixelBuffer:
    """
    Draw a filled circle into an RGB8 buffer, in place.

    Parameters
    ----------
    buffer : PixelBuffer
        RGB8 buffer to draw into.
    center : tuple[float, float]
        (x, y) position; clamped into the buffer so markers at or beyond the
        edge are still drawn and never fail.
    radius : int
        Circle radius in pixels.
    colour : tuple[int, int, int]
        RGB fill colour.

    Returns
    -------
    PixelBuffer
        The same buffer, for chaining.
    """
    _require(buffer, PixelFormat.RGB8, "draw_marker")
    x = int(round(min(max(center[0], 0), buffer.width - 1)))
    y = int(round(min(max(center[1], 0), buffer.height - 1)))
    colour = tuple(int(c) for c in colour)

    view = buffer.array()
    if buffer.is_packed:
        cv2.circle(view, (x, y), int(radius), colour, thickness=-1)
    else:
        canvas = np.ascontiguousarray(view)
        cv2.circle(canvas, (x, y), int(radius), colour, thickness=-1)
        view[...] = canvas
    return buffer
