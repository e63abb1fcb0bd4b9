import numpy as np
import pytest
from PIL import Image
from PyQt5.QtGui import QColor, QImage

from conftest import InvertStub, make_qimage, two_blocks
from cvdemo.config import con_dict
from cvdemo.errors import (
    FormatError,
    NoImageLoaded,
    PluginNotFound,
    TransformError,
    UnknownOperation,
)
from cvdemo.interface import Operation, OperationDispatcher
from cvdemo.interface.bridge import to_processing_buffer
from cvdemo.interface.dispatcher import BUILTIN
from cvdemo.models import EditorContext


def _pixels(image):
    return to_processing_buffer(image).array()


#==== no image loaded ==========================================================

def test_apply_without_image_is_information(dispatcher):
    result = dispatcher.apply("grayscale")
    assert not result.ok
    assert isinstance(result.error, NoImageLoaded)
    assert result.level == "information"
    assert result.status == "No image to edit."
    assert result.image is None
    assert dispatcher.cxt.history.is_empty()


def test_save_without_image(dispatcher, tmp_path):
    result = dispatcher.save_as(tmp_path / "out.png")
    assert isinstance(result.error, NoImageLoaded)
    assert result.status == "Nothing to save."


def test_undo_on_empty_history_is_noop(loaded, rgb_array):
    before = loaded.cxt.image
    assert loaded.undo() is None
    assert loaded.cxt.image is before
    assert np.array_equal(_pixels(loaded.cxt.image), rgb_array)


#==== builtins =================================================================

def test_grayscale_status_and_undo(loaded, rgb_array):
    result = loaded.apply(Operation.builtin("grayscale"))
    assert result.ok
    assert result.status == "(grayscale image), 5x7"
    assert result.image.format() == QImage.Format_Grayscale8
    assert loaded.cxt.image is result.image
    assert len(loaded.cxt.history) == 1

    restored = loaded.undo()
    assert restored.format() == QImage.Format_RGB888
    assert np.array_equal(_pixels(restored), rgb_array)
    assert loaded.cxt.history.is_empty()


def test_threshold_uses_current_cutoff(dispatcher):
    dispatcher.set_image(make_qimage(np.array([[10, 100, 101, 200]], dtype=np.uint8)))
    dispatcher.set_threshold(100)
    result = dispatcher.apply("threshold")
    assert result.status == "(image with threshold applied), 4x1"
    assert _pixels(result.image).tolist() == [[0, 0, 255, 255]]


def test_threshold_default_comes_from_config():
    assert EditorContext().threshold == con_dict["threshold_default"] == 128


@pytest.mark.parametrize("value", [-1, 256])
def test_set_threshold_out_of_range(dispatcher, value):
    with pytest.raises(ValueError):
        dispatcher.set_threshold(value)
    assert dispatcher.cxt.threshold == 128


def test_count_objects_marks_centroids(dispatcher):
    dispatcher.set_image(make_qimage(two_blocks()))
    result = dispatcher.apply("connected_components")
    assert result.ok
    assert result.status == "(2 objects found), 10x10"
    pixels = _pixels(result.image)
    assert pixels.shape == (10, 10, 3)
    assert pixels[2, 2].tolist() == list(con_dict["marker_colour"])
    assert pixels[6, 6].tolist() == list(con_dict["marker_colour"])
    assert pixels[9, 0].tolist() == [0, 0, 0]


def test_count_objects_on_empty_image(dispatcher):
    dispatcher.set_image(make_qimage(np.zeros((4, 4, 3), dtype=np.uint8)))
    result = dispatcher.apply("connected_components")
    assert result.status == "(0 objects found), 4x4"
    assert not _pixels(result.image).any()


def test_undo_walks_back_through_every_step(loaded, rgb_array):
    loaded.apply("threshold")
    after_threshold = _pixels(loaded.cxt.image).copy()
    loaded.apply("grayscale")
    loaded.apply("connected_components")
    assert len(loaded.cxt.history) == 3

    loaded.undo()
    loaded.undo()
    assert np.array_equal(_pixels(loaded.cxt.image), after_threshold)
    loaded.undo()
    assert np.array_equal(_pixels(loaded.cxt.image), rgb_array)
    assert loaded.undo() is None


#==== plugins ==================================================================

def test_invert_plugin_gives_bitwise_complement(loaded, rgb_array):
    loaded.cxt.registry.register_plugin(InvertStub())
    result = loaded.apply("Invert")
    assert result.ok
    assert result.status == "(Invert applied), 5x7"
    assert np.array_equal(_pixels(result.image), ~rgb_array)


def test_plugin_on_gray_image_gets_rgb(dispatcher):
    dispatcher.cxt.registry.register_plugin(InvertStub())
    dispatcher.set_image(make_qimage(np.array([[0, 255]], dtype=np.uint8)))
    result = dispatcher.apply(Operation.plugin("Invert"))
    assert _pixels(result.image).tolist() == [[[255, 255, 255], [0, 0, 0]]]


def test_unknown_plugin_is_reported(loaded):
    result = loaded.apply("Blur")
    assert isinstance(result.error, PluginNotFound)
    assert result.level == "information"
    assert loaded.cxt.history.is_empty()


def test_failed_plugin_leaves_image_and_history(loaded, rgb_array):
    class Boom(InvertStub):
        def name(self):
            return "Boom"

        def edit(self, input, output):
            output[...] = 0
            raise RuntimeError("plugin crashed")

    loaded.cxt.registry.register_plugin(Boom())
    before = loaded.cxt.image
    result = loaded.apply("Boom")
    assert isinstance(result.error, TransformError)
    assert result.level == "warning"
    assert "plugin crashed" in result.status
    assert result.image is before
    assert np.array_equal(_pixels(loaded.cxt.image), rgb_array)
    assert loaded.cxt.history.is_empty()


def test_plugin_calling_exit_is_reported(loaded, rgb_array):
    class Quits(InvertStub):
        def name(self):
            return "Quits"

        def edit(self, input, output):
            raise SystemExit("bye")

    loaded.cxt.registry.register_plugin(Quits())
    result = loaded.apply("Quits")
    assert isinstance(result.error, TransformError)
    assert np.array_equal(_pixels(loaded.cxt.image), rgb_array)
    assert loaded.cxt.history.is_empty()


def test_unknown_builtin_is_reported(loaded):
    result = loaded.apply(Operation(BUILTIN, "sharpen"))
    assert isinstance(result.error, UnknownOperation)
    assert result.level == "information"
    assert loaded.cxt.history.is_empty()


def test_available_operations_lists_builtins_then_plugins(dispatcher):
    dispatcher.cxt.registry.register_plugin(InvertStub())
    assert dispatcher.available_operations() == [
        "grayscale", "threshold", "connected_components", "Invert",
    ]


def test_load_plugins_from_directory(dispatcher, tmp_path):
    (tmp_path / "bad.py").write_text("raise SystemError('no')\n", encoding="utf-8")
    (tmp_path / "good.py").write_text(
        "class G:\n"
        "    def name(self):\n"
        "        return 'Good'\n"
        "    def edit(self, input, output):\n"
        "        pass\n"
        "plugin = G()\n",
        encoding="utf-8",
    )
    skipped = dispatcher.load_plugins(tmp_path)
    assert [p.name for p, _ in skipped] == ["bad.py"]
    assert dispatcher.cxt.registry.names() == ["Good"]


#==== open / save ==============================================================

def test_open_apply_save(dispatcher, tmp_path, rgb_array):
    src = tmp_path / "in.png"
    Image.fromarray(rgb_array).save(src)

    opened = dispatcher.open_image(src)
    assert opened.ok
    assert opened.status == f"{src}, 5x7, {src.stat().st_size} Bytes"
    assert np.array_equal(_pixels(dispatcher.cxt.image), rgb_array)

    dispatcher.apply("grayscale")
    saved = dispatcher.save_as(tmp_path / "out.png")
    assert saved.ok
    with Image.open(tmp_path / "out.png") as im:
        assert im.mode == "L"
        assert np.array_equal(np.asarray(im), _pixels(dispatcher.cxt.image))


def test_open_resets_history(dispatcher, tmp_path, rgb_array):
    src = tmp_path / "in.bmp"
    Image.fromarray(rgb_array).save(src)
    dispatcher.open_image(src)
    dispatcher.apply("threshold")
    dispatcher.open_image(src)
    assert dispatcher.cxt.history.is_empty()


def test_open_missing_file(dispatcher, tmp_path):
    result = dispatcher.open_image(tmp_path / "missing.png")
    assert isinstance(result.error, FormatError)
    assert not dispatcher.cxt.has_image


def test_open_rgba_file_is_normalised(dispatcher, tmp_path):
    src = tmp_path / "alpha.png"
    rgba = np.zeros((3, 3, 4), dtype=np.uint8)
    rgba[..., 0] = 200
    rgba[..., 3] = 255
    Image.fromarray(rgba).save(src)
    dispatcher.open_image(src)
    assert dispatcher.cxt.image.format() == QImage.Format_RGB888
    assert _pixels(dispatcher.cxt.image)[0, 0].tolist() == [200, 0, 0]


def test_save_rejects_bad_extension(loaded, tmp_path):
    result = loaded.save_as(tmp_path / "out.tiff")
    assert isinstance(result.error, FormatError)
    assert result.status == "Save error: bad format or filename."
    assert not (tmp_path / "out.tiff").exists()


def test_set_image_normalises(dispatcher):
    image = QImage(2, 2, QImage.Format_ARGB32)
    image.fill(QColor(1, 2, 3))
    result = dispatcher.set_image(image)
    assert result.ok
    assert dispatcher.cxt.image.format() == QImage.Format_RGB888


def test_dispatchers_do_not_share_state():
    a, b = OperationDispatcher(), OperationDispatcher()
    a.cxt.registry.register_plugin(InvertStub())
    a.set_threshold(3)
    assert "Invert" not in b.cxt.registry
    assert b.cxt.threshold == 128
