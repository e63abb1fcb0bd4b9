"""
Canonical in-memory image representation used by every transform and plugin.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class PixelFormat(Enum):
    """Supported packed pixel layouts; the value is the bytes per pixel."""
    RGB8 = 3
    GRAY8 = 1

    @property
    def bytes_per_pixel(self) -> int:
        return self.value


@dataclass(eq=False)
class PixelBuffer:
    """
    Packed, row-major, strided image buffer.

    Parameters
    ----------
    width : int
        Image width in pixels (> 0).
    height : int
        Image height in pixels (> 0).
    stride : int
        Bytes between the starts of consecutive rows. May exceed
        ``width * fmt.bytes_per_pixel`` when rows are padded.
    fmt : PixelFormat
        Layout of each pixel.
    data : np.ndarray
        Flat uint8 array of exactly ``stride * height`` bytes.

    Notes
    -----
    Padding bytes at the end of each row carry no meaning; `array()` and
    `same_pixels()` ignore them.
    """
    width: int
    height: int
    stride: int
    fmt: PixelFormat
    data: np.ndarray

    def __post_init__(self):
        """Validate geometry and coerce `data` to a flat uint8 array."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Buffer dimensions must be positive, got {self.width}x{self.height}")
        row_bytes = self.width * self.fmt.bytes_per_pixel
        if self.stride < row_bytes:
            raise ValueError(f"Stride {self.stride} is smaller than the packed row width {row_bytes}")
        data = np.asarray(self.data)
        if data.dtype != np.uint8:
            raise ValueError(f"Buffer data must be uint8, got {data.dtype}")
        self.data = data.reshape(-1)
        if self.data.size != self.stride * self.height:
            raise ValueError(
                f"Buffer holds {self.data.size} bytes, expected stride*height = {self.stride * self.height}"
            )

    @classmethod
    def from_array(cls, arr):
        """
        Build a tightly packed buffer from an (H, W) or (H, W, 3) uint8 array.
        """
        arr = np.asarray(arr)
        if arr.dtype != np.uint8:
            raise ValueError(f"Expected a uint8 array, got {arr.dtype}")
        if arr.ndim == 2:
            fmt = PixelFormat.GRAY8
        elif arr.ndim == 3 and arr.shape[2] == 3:
            fmt = PixelFormat.RGB8
        else:
            raise ValueError(f"Unsupported array shape {arr.shape}; expected (H, W) or (H, W, 3)")
        h, w = arr.shape[:2]
        packed = np.ascontiguousarray(arr)
        return cls(width=w, height=h, stride=w * fmt.bytes_per_pixel, fmt=fmt,
                   data=packed.reshape(-1).copy())

    @property
    def row_bytes(self) -> int:
        return self.width * self.fmt.bytes_per_pixel

    @property
    def is_packed(self) -> bool:
        return self.stride == self.row_bytes

    def array(self):
        """
        Return a view of the visible pixels, skipping row padding.

        (H, W, 3) for RGB8, (H, W) for GRAY8. Writes through the view
        modify the buffer.
        """
        rows = self.data.reshape(self.height, self.stride)[:, :self.row_bytes]
        if self.fmt is PixelFormat.GRAY8:
            return rows
        return rows.reshape(self.height, self.width, 3)

    def copy(self):
        """Independent deep copy with the same stride."""
        return PixelBuffer(width=self.width, height=self.height, stride=self.stride,
                           fmt=self.fmt, data=self.data.copy())

    def same_pixels(self, other) -> bool:
        """True if format, dimensions and every visible pixel match."""
        if not isinstance(other, PixelBuffer):
            return False
        if (self.fmt, self.width, self.height) != (other.fmt, other.width, other.height):
            return False
        return bool(np.array_equal(self.array(), other.array()))

    def __repr__(self):
        return (f"PixelBuffer({self.width}x{self.height}, {self.fmt.name}, "
                f"stride={self.stride})")
