"""
cvdemo Integration Test

Performs the full object-counting workflow through the command line runner:
1. Write a synthetic "grains" image to disk
2. Open it and load the bundled plugins
3. Grayscale, threshold and count objects
4. Undo and invert with the bundled plugin
5. Save and compare against the expected pixels

Run with pytest:
    pytest tests/integration_test.py
"""

import logging

import numpy as np
from PIL import Image

from cvdemo import main as runner

logging.getLogger("cvdemo").setLevel(logging.DEBUG)
logger = logging.getLogger(__name__)

# ============================================================================
# TEST CONFIGURATION
# ============================================================================

IMAGE_SHAPE = (40, 60)
# (y_min, y_max, x_min, x_max) of each bright grain
GRAINS = [
    (5, 10, 5, 12),
    (20, 26, 30, 36),
    (30, 38, 48, 56),
]
GRAIN_COLOUR = (230, 200, 90)
BACKGROUND = (20, 30, 40)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _assert_equal(name, a, b):
    if a.shape != b.shape:
        raise AssertionError(f"{name}: shape mismatch {a.shape} vs {b.shape}")
    if not np.array_equal(a, b):
        n = np.sum(a != b)
        raise AssertionError(f"{name}: array_equal failed ({n} differing elements)")
    logger.debug(f"{name} passed comparison")


def make_grains(path):
    arr = np.empty(IMAGE_SHAPE + (3,), dtype=np.uint8)
    arr[...] = BACKGROUND
    for y0, y1, x0, x1 in GRAINS:
        arr[y0:y1, x0:x1] = GRAIN_COLOUR
    Image.fromarray(arr).save(path)
    return arr


def read(path):
    with Image.open(path) as im:
        return np.asarray(im).copy()


# ============================================================================
# WORKFLOW
# ============================================================================

def test_count_grains(tmp_path, capsys):
    src = tmp_path / "grains.png"
    make_grains(src)
    out = tmp_path / "counted.png"

    code = runner.main([str(src), "--op", "grayscale", "--op", "threshold",
                        "--threshold", "100", "--op", "connected_components",
                        "-o", str(out)])
    assert code == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "(grayscale image), 60x40"
    assert lines[1] == "(image with threshold applied), 60x40"
    assert lines[2] == "(3 objects found), 60x40"
    assert lines[3] == f"Saved {out}"

    counted = read(out)
    assert counted.shape == IMAGE_SHAPE + (3,)
    # grain centres carry the marker, background stays black after threshold
    assert counted[7, 8].tolist() == [255, 0, 0]
    assert counted[0, 0].tolist() == [0, 0, 0]


def test_invert_then_undo(tmp_path):
    src = tmp_path / "grains.bmp"
    original = make_grains(src)
    thresholded = 255 * (original > 128).astype(np.uint8)

    inverted = tmp_path / "inverted.bmp"
    assert runner.main([str(src), "--op", "threshold", "--op", "Invert",
                        "-o", str(inverted)]) == 0
    _assert_equal("threshold + invert", read(inverted), 255 - thresholded)

    # undo runs after every --op, so the invert is rolled back
    undone = tmp_path / "undone.bmp"
    assert runner.main([str(src), "--op", "threshold", "--op", "Invert",
                        "--undo", "1", "-o", str(undone)]) == 0
    _assert_equal("undo invert", read(undone), thresholded)


def test_unknown_operation_fails(tmp_path):
    src = tmp_path / "grains.png"
    make_grains(src)
    assert runner.main([str(src), "--op", "Sharpen"]) == 1


def test_list_operations(capsys):
    assert runner.main(["--list"]) == 0
    names = capsys.readouterr().out.split()
    assert names[:3] == ["grayscale", "threshold", "connected_components"]
    assert "Invert" in names


def test_bad_output_extension(tmp_path):
    src = tmp_path / "grains.png"
    make_grains(src)
    assert runner.main([str(src), "-o", str(tmp_path / "out.gif")]) == 1
