
"""
cvdemo package.

The engine behind a small computer-vision image editor: it holds the image
on display, applies builtin transforms and editor plugins to it, and keeps an
undo history. The application in mind is counting objects, like food
grains, step by step: grayscale, threshold, then count.

Subpackages
-----------
- models
    PixelBuffer and PixelFormat, EditHistory, the plugin registry and the
    EditorContext holding one session's state.

- image_ops
    Builtin pixel transforms: grayscale, threshold, connected components and
    centroid markers.

- interface
    The OperationDispatcher façade, the QImage bridge and file helpers.

Other modules
-------------
- config
    Single in-memory configuration dictionary (con_dict) and helpers.

- errors
    Recoverable error taxonomy reported by the dispatcher.

- main
    Command line runner, `main()`.

Typical usage
-------------
    python -m cvdemo.main grains.png --op grayscale --op threshold \
        --op connected_components -o counted.png
"""
