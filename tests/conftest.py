import logging

import numpy as np
import pytest

from cvdemo.interface import OperationDispatcher
from cvdemo.interface.bridge import from_processing_buffer
from cvdemo.models import PixelBuffer

logging.getLogger("cvdemo").setLevel(logging.DEBUG)


def make_qimage(arr):
    """QImage holding a copy of a (H, W) or (H, W, 3) uint8 array."""
    return from_processing_buffer(PixelBuffer.from_array(np.asarray(arr, dtype=np.uint8)))


def two_blocks(shape=(10, 10)):
    """Black image with two disjoint 2x2 white blocks."""
    arr = np.zeros(shape, dtype=np.uint8)
    arr[1:3, 1:3] = 255
    arr[6:8, 5:7] = 255
    return arr


@pytest.fixture
def rgb_array():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(7, 5, 3), dtype=np.uint8)


@pytest.fixture
def dispatcher():
    return OperationDispatcher()


@pytest.fixture
def loaded(dispatcher, rgb_array):
    dispatcher.set_image(make_qimage(rgb_array))
    return dispatcher


class InvertStub:
    def name(self):
        return "Invert"

    def edit(self, input, output):
        output[...] = ~input
