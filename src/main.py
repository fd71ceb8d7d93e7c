import os
import argparse
import logging

import numpy as np

import config
from analysis_worker import AnalysisWorker
from byte_window import validate_window
from errors import Cancelled, EntropyError, InvalidConfiguration
from gradient_mapper import GradientMapper, validate_canvas
from visualization import EntropyVisualizer


def setup_logging(verbose=False, log_file=None):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )


def arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Renders the sliding-window metric entropy of files as a black-to-red image",
    )
    parser.add_argument("files", nargs="*", help="files to analyze, one after another")
    parser.add_argument("--window-size", type=int, default=config.DEFAULT_WINDOW_SIZE,
                        help="window size in bytes (default: %(default)s)")
    parser.add_argument("--window-stride", type=int, default=config.DEFAULT_WINDOW_STRIDE,
                        help="window stride in bytes (default: %(default)s)")
    parser.add_argument("--width", type=int, default=config.DEFAULT_IMAGE_WIDTH)
    parser.add_argument("--height", type=int, default=config.DEFAULT_IMAGE_HEIGHT)
    parser.add_argument("-o", "--output", metavar="DIR", help="write one PNG per analyzed file into DIR")
    parser.add_argument("--no-display", action="store_true", help="do not open a window")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--log-file", default=None, help="also append log records to this file")
    return parser.parse_args(argv)


def status_lines(result, args):
    name = os.path.basename(result.path)
    return [
        f"{name}: {len(result.sequence)} windows in {result.elapsed:.1f}s",
        f"Window: {args.window_size} bytes, stride {args.window_stride}",
        f"min={result.state.min_value:.4f} max={result.state.max_value:.4f} avg={result.state.average:.4f}",
    ]


def wait_for(worker, visualizer=None):
    """
    Waits for a worker. With a visualizer the window stays responsive and 'q'
    cancels the analysis. Returns the result, or None if the run failed or was
    cancelled.
    """
    while True:
        try:
            result = worker.get_result(timeout=0.05)
        except Cancelled:
            logging.info(f"Analysis of {worker.path} cancelled.")
            return None
        except EntropyError as e:
            logging.error(f"Analysis of {worker.path} failed: {e}")
            return None
        if result is not None:
            return result
        if visualizer is not None and visualizer.wait_key(1) == ord("q"):
            worker.cancel()
            raise KeyboardInterrupt


def main(argv=None):
    args = arguments(argv)
    setup_logging(args.verbose, args.log_file)

    try:
        validate_window(args.window_size, args.window_stride)
        validate_canvas(args.width, args.height)
    except InvalidConfiguration as e:
        logging.error(str(e))
        return 2

    mapper = GradientMapper()
    visualizer = EntropyVisualizer(width=args.width, height=args.height, steps=mapper.steps)
    display = not args.no_display and visualizer.open_window()

    if args.output:
        os.makedirs(args.output, exist_ok=True)

    try:
        if not args.files and display:
            # Nothing to analyze: show the neutral canvas.
            canvas = mapper.render(np.zeros(0), args.width, args.height)
            if visualizer.show(visualizer.colorize(canvas)):
                visualizer.wait_key(0)
            return 0

        for path in args.files:
            if not os.path.isfile(path):
                logging.error(f"Not a readable file: {path}")
                continue

            worker = AnalysisWorker(path, args.window_size, args.window_stride,
                                    args.width, args.height, mapper=mapper)
            result = wait_for(worker, visualizer if display else None)
            if result is None:
                continue

            image = visualizer.annotate(visualizer.colorize(result.canvas), status_lines(result, args))
            if args.output:
                name = os.path.splitext(os.path.basename(path))[0] + ".png"
                try:
                    visualizer.save(image, os.path.join(args.output, name))
                except EntropyError as e:
                    logging.error(str(e))

            if display:
                display = visualizer.show(image)
            if display:
                # 'n' shows the next file, 'q' quits
                while True:
                    key = visualizer.wait_key(50)
                    if key == ord("n"):
                        break
                    if key == ord("q"):
                        return 0
    except KeyboardInterrupt:
        logging.info("Interrupted.")
    finally:
        logging.info("Shutting down...")
        if display:
            visualizer.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
