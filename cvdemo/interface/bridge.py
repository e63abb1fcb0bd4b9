"""
Conversion between the display-native QImage and PixelBuffer.

Only QImage.Format_RGB888 and QImage.Format_Grayscale8 are bridged; anything
else must go through `normalise` first.
"""
import logging

import numpy as np
from PyQt5.QtGui import QImage

from ..errors import FormatError
from ..models import PixelBuffer, PixelFormat

logger = logging.getLogger(__name__)

_QT_TO_PIXEL = {
    QImage.Format_RGB888: PixelFormat.RGB8,
    QImage.Format_Grayscale8: PixelFormat.GRAY8,
}
_PIXEL_TO_QT = {v: k for k, v in _QT_TO_PIXEL.items()}


def normalise(image: QImage) -> QImage:
    """
    Convert any QImage to a bridgeable format.

    Grayscale8 images are kept as they are; everything else (alpha, indexed,
    32-bit, 16-bit) is converted to RGB888, dropping alpha.
    """
    if image.isNull():
        raise FormatError("Cannot normalise a null image")
    if image.format() in _QT_TO_PIXEL:
        return image
    logger.debug(f"Normalising QImage format {image.format()} to RGB888")
    return image.convertToFormat(QImage.Format_RGB888)


def to_processing_buffer(image: QImage) -> PixelBuffer:
    """
    Copy a QImage's pixels into a PixelBuffer.

    Width, height and bytesPerLine (as stride) are preserved and no pixel
    value changes.

    Raises
    ------
    FormatError
        If the image is null or not RGB888 / Grayscale8.
    """
    if image.isNull():
        raise FormatError("Cannot bridge a null image")
    fmt = _QT_TO_PIXEL.get(image.format())
    if fmt is None:
        raise FormatError(
            f"Unsupported QImage format {image.format()}; normalise to RGB888 or Grayscale8 first"
        )
    ptr = image.constBits()
    ptr.setsize(image.sizeInBytes())
    data = np.frombuffer(ptr, dtype=np.uint8).copy()
    return PixelBuffer(width=image.width(), height=image.height(),
                       stride=image.bytesPerLine(), fmt=fmt, data=data)


def from_processing_buffer(buffer: PixelBuffer) -> QImage:
    """
    Build a QImage holding a copy of the buffer's pixels.

    The returned image owns its memory, so the buffer may be dropped or
    reused afterwards.
    """
    qfmt = _PIXEL_TO_QT[buffer.fmt]
    raw = buffer.data.tobytes()
    image = QImage(raw, buffer.width, buffer.height, buffer.stride, qfmt)
    # detach from `raw`, which Qt does not own
    return image.copy()
