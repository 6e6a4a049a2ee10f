"""
Command-Line Interface for stonegrid

Usage:
    stonegrid -o grid.png
    stonegrid --stones 4 --min-radius 8 --max-radius 16 -o grid.png
    stonegrid --dataset 500 --output-dir Output

"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from . import __version__
from .codec import save_image
from .config import (
    DATASET_PREFIX,
    DEFAULT_GRID_SIZE,
    DEFAULT_SEED,
    MODEL_RESOLUTION,
    SessionConfig,
)
from .errors import StoneGridError
from .session import DatasetGenerator, StoneSession


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="stonegrid",
        description="Stone layout generator - paint random stones on a voxel grid and export them as images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  stonegrid -o grid.png
      Paint 3 random stones and write the letterboxed grid image

  stonegrid --stones 5 --no-resize -o grid.png
      Paint 5 stones and write the image at grid resolution

  stonegrid --dataset 500 --min-amount 2 --max-amount 3 --output-dir Output
      Write 500 training images Output/Grid_0.png ... Output/Grid_499.png
        """
    )

    # Grid
    parser.add_argument(
        "--grid-size",
        type=int,
        nargs=3,
        metavar=("X", "Y", "Z"),
        default=list(DEFAULT_GRID_SIZE),
        help="Lattice dimensions (default: %(default)s)"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help="Random seed (default: %(default)s)"
    )

    # Stones
    parser.add_argument(
        "--stones",
        type=int,
        default=3,
        help="Number of stones for a single image (default: 3)"
    )

    parser.add_argument(
        "--min-radius",
        type=int,
        default=10,
        help="Smallest stone radius, inclusive (default: 10)"
    )

    parser.add_argument(
        "--max-radius",
        type=int,
        default=20,
        help="Largest stone radius, exclusive (default: 20)"
    )

    parser.add_argument(
        "--regular",
        action="store_true",
        help="Grow full diamonds instead of irregular stones"
    )

    # Output
    parser.add_argument(
        "-o", "--output",
        default="grid.png",
        help="Output image path for a single image (default: grid.png)"
    )

    parser.add_argument(
        "--no-resize",
        action="store_true",
        help="Write the image at grid resolution instead of the model resolution"
    )

    parser.add_argument(
        "--resolution",
        type=int,
        default=MODEL_RESOLUTION,
        help="Square output resolution (default: %(default)s)"
    )

    # Dataset
    parser.add_argument(
        "--dataset",
        type=int,
        metavar="N",
        help="Write N random samples instead of a single image"
    )

    parser.add_argument(
        "--output-dir",
        default="Output",
        help="Output directory for dataset generation (default: Output)"
    )

    parser.add_argument(
        "--min-amount",
        type=int,
        default=2,
        help="Fewest stones per sample, inclusive (default: 2)"
    )

    parser.add_argument(
        "--max-amount",
        type=int,
        default=3,
        help="Most stones per sample, exclusive (default: 3)"
    )

    parser.add_argument(
        "--prefix",
        default=DATASET_PREFIX,
        help="Sample file name prefix (default: %(default)s)"
    )

    # Misc
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def build_session(args) -> StoneSession:
    """Create a session from parsed arguments."""
    config = SessionConfig(
        grid_size=tuple(args.grid_size),
        seed=args.seed,
        model_resolution=args.resolution,
    )
    return StoneSession(config)


def process_single(args) -> int:
    """Paint stones and write one image."""
    start_time = time.time()

    try:
        session = build_session(args)
        session.painter.scatter_blobs(
            args.stones,
            args.min_radius,
            args.max_radius,
            picky=not args.regular
        )

        image = session.codec.rasterize(session.lattice, include_alpha=True)
        if not args.no_resize:
            image = session.codec.resize(image)

        output_path = save_image(image, Path(args.output))

        if args.verbose:
            stats = session.preview()
            _, count = session.painter.label_regions()
            print(f"Stones painted: {args.stones}")
            print(f"  Black cells: {stats['black']}")
            print(f"  Connected regions: {count}")
            print(f"Exported: {output_path}")
            print(f"\nCompleted in {time.time() - start_time:.2f}s")

        return 0

    except (StoneGridError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def process_dataset(args) -> int:
    """Write a batch of random samples."""
    output_dir = Path(args.output_dir)
    start_time = time.time()

    try:
        generator = DatasetGenerator(build_session(args), prefix=args.prefix)
        outputs = generator.generate(
            args.dataset,
            args.min_amount,
            args.max_amount,
            args.min_radius,
            args.max_radius,
            output_dir,
            picky=not args.regular
        )

        elapsed = time.time() - start_time
        print(f"Generated {len(outputs)} images in {elapsed:.2f}s")
        print(f"Output directory: {output_dir}")

        return 0

    except (StoneGridError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    if args.dataset is not None:
        return process_dataset(args)
    return process_single(args)


if __name__ == "__main__":
    sys.exit(main())
