"""
High-level helpers for opening and saving images.
Used by the dispatcher and the command line runner; decoding and encoding is
left to Pillow.
"""
import logging
from pathlib import Path
import re

import numpy as np
from PIL import Image
from PyQt5.QtGui import QImage

from .. import config
from ..errors import FormatError
from ..models import PixelBuffer
from .bridge import from_processing_buffer, to_processing_buffer

logger = logging.getLogger(__name__)

#======Getting and setting app configs ========================================


def get_config():
    """
    Loads the config dictionary - a single mutable dictionary of settings
    used across the engine
    """
    return config.get_all()

def modify_config(key, value):
    """
    Sets user selected values in the config dictionary
    """
    config.set_value(key, value)

#==== Image file helpers ======================================================

def load_image(path) -> QImage:
    """
    Decode an image file into a bridgeable QImage.

    Single-channel 8-bit images stay Grayscale8; everything else (alpha,
    palette, CMYK, 16-bit) is normalised to RGB888.

    Raises
    ------
    FileNotFoundError
        If `path` is not a file.
    FormatError
        If Pillow cannot decode the file.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Image not found: {p}")
    try:
        with Image.open(p) as im:
            im.load()
            mode = "L" if im.mode == "L" else "RGB"
            arr = np.asarray(im.convert(mode), dtype=np.uint8)
    except (OSError, ValueError) as e:
        raise FormatError(f"Cannot decode {p.name}: {e}") from e
    logger.debug(f"Decoded {p.name} as {arr.shape}")
    return from_processing_buffer(PixelBuffer.from_array(arr))


def is_savable(path) -> bool:
    """True if `path` has one of the allow-listed save extensions."""
    exts = "|".join(re.escape(e) for e in config.con_dict["save_formats"])
    return re.fullmatch(rf".+\.({exts})", str(path), flags=re.IGNORECASE) is not None


def save_image(image: QImage, path) -> Path:
    """
    Encode `image` to `path`; the format follows the extension.

    Raises
    ------
    FormatError
        If the extension is not allow-listed or the image cannot be bridged.
    """
    if not is_savable(path):
        raise FormatError("Save error: bad format or filename.")
    p = Path(path)
    arr = np.ascontiguousarray(to_processing_buffer(image).array())
    Image.fromarray(arr).save(p)
    logger.info(f"Saved {p.name} ({image.width()}x{image.height()})")
    return p
