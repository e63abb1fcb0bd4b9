"""
Command line runner for the cvdemo editing engine.

Opens an image, loads the editor plugins, applies the requested operations
in order, optionally undoes some of them, and saves the result. It drives the
same `OperationDispatcher` a GUI would; every status line a window would show
in its status bar is logged instead.

Run this module directly via:

    python -m cvdemo.main grains.png --op grayscale --op threshold \
        --threshold 100 --op connected_components -o counted.png

or call `main(argv)`.
"""
import argparse
import logging
import sys

from .interface import OperationDispatcher

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="cvdemo",
        description="Computer Vision Demo: apply builtin transforms and plugins to an image",
    )
    parser.add_argument("input", nargs="?", help="Image to open (png, bmp, jpg, ...)")
    parser.add_argument("-o", "--output", help="Where to save the edited image (.png, .bmp or .jpg)")
    parser.add_argument(
        "--op",
        dest="ops",
        action="append",
        default=[],
        metavar="NAME",
        help="Operation to apply; repeat to chain. Builtin name or plugin name",
    )
    parser.add_argument("--threshold", type=int, default=None, help="Threshold cutoff, 0-255")
    parser.add_argument("--plugin-dir", default=None, help="Directory to load plugins from")
    parser.add_argument("--undo", type=int, default=0, metavar="N", help="Undo the last N operations")
    parser.add_argument("--list", action="store_true", help="List available operations and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    disp = OperationDispatcher()
    for path, err in disp.load_plugins(args.plugin_dir):
        logger.warning(f"Skipped plugin {path.name}: {err.reason}")

    if args.list:
        for name in disp.available_operations():
            print(name)
        return 0

    if args.input is None:
        logger.error("No input image given")
        return 2

    if args.threshold is not None:
        try:
            disp.set_threshold(args.threshold)
        except ValueError as e:
            logger.error(str(e))
            return 2

    failed = False
    result = disp.open_image(args.input)
    if not result.ok:
        logger.error(result.status)
        return 1

    for name in args.ops:
        result = disp.apply(name)
        if result.ok:
            print(result.status)
        else:
            failed = True
            logger.error(f"{name}: {result.status}")

    for _ in range(args.undo):
        if disp.undo() is None:
            logger.info("Nothing left to undo")
            break

    if args.output:
        result = disp.save_as(args.output)
        if not result.ok:
            logger.error(result.status)
            return 1
        print(result.status)

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
