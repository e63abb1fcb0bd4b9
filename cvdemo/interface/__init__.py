"""
cvdemo Interface Package
========================

This package connects callers (a GUI, the command line runner, tests) to the
editing engine.

It provides:

- ``OperationDispatcher``
  The façade every editing request goes through. It owns an
  ``EditorContext`` and, for each request, bridges the current image to a
  ``PixelBuffer``, runs a builtin transform or a plugin, swaps in the
  result and records the pre-operation snapshot for undo.

- ``bridge``
  ``QImage`` <-> ``PixelBuffer`` conversion for RGB888 and Grayscale8.

- ``tools``
  Opening and saving image files through Pillow, and config accessors.

Design Notes
------------
The interface layer contains *no* pixel algorithms (see
:mod:`cvdemo.image_ops`) and *no* widgets. Errors raised below it are
turned into ``OperationResult`` reports at the dispatcher boundary.

Typical Usage
-------------
::

    disp = OperationDispatcher()
    disp.load_plugins()
    disp.open_image("grains.png")
    disp.set_threshold(100)
    for name in ("grayscale", "threshold", "connected_components"):
        print(disp.apply(name).status)
    disp.undo()

"""

from .dispatcher import Operation, OperationDispatcher, OperationResult
