"""
Argument parsing for the CLI interface.

Provides functions to create and configure the argument parser for the
imgsearch command-line interface.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from ..fingerprint import HASH_ALGORITHMS
from ..user_config import get_user_config


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Defaults come from the user configuration (file and environment).

    Returns:
        Configured ArgumentParser instance
    """
    config = get_user_config()

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '-d', '--database',
        type=Path,
        default=Path(config.database_path),
        help=f'Path to the database file. Default: {config.database_path}'
    )
    common.add_argument(
        '-a', '--algorithm',
        choices=sorted(HASH_ALGORITHMS),
        default=config.hash_algorithm,
        help=f'Fingerprint algorithm. Default: {config.hash_algorithm}'
    )
    common.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose (debug) logging'
    )

    parser = argparse.ArgumentParser(
        prog='imgsearch',
        description='Find visually similar images with perceptual hashes',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s index ./images
      Index every file in ./images into database.txt

  %(prog)s index-sampled laion.json --sample-size 30000 --max-in-flight 64
      Index an evenly spaced sample of a remote URL list

  %(prog)s search ./query.jpg --limit 10
      Print the 10 closest matches

  %(prog)s serve --port 8080
      Serve the JSON search API
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    index = subparsers.add_parser('index', parents=[common], help='Index a local folder')
    index.add_argument('directory', type=Path, help='Folder to index')

    sampled = subparsers.add_parser(
        'index-sampled', parents=[common],
        help='Index a sample of a large URL list (JSON records with "url", or one URL per line)'
    )
    sampled.add_argument('source', type=Path, help='Reference list file')
    sampled.add_argument(
        '-n', '--sample-size',
        type=int,
        default=config.sample_size,
        help=f'Number of references to sample. Default: {config.sample_size}'
    )
    sampled.add_argument(
        '-j', '--max-in-flight',
        type=int,
        default=config.max_in_flight,
        help=f'Maximum concurrent downloads. Default: {config.max_in_flight}'
    )
    sampled.add_argument(
        '--timeout',
        type=float,
        default=config.fetch_timeout,
        help=f'Per-image fetch timeout in seconds. Default: {config.fetch_timeout}'
    )
    sampled.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable the progress bar'
    )

    search = subparsers.add_parser('search', parents=[common], help='Search for an image')
    search.add_argument('image', help='Image file path or http(s) URL')
    search.add_argument('-l', '--limit', type=int, default=20, help='Maximum results to print. Default: 20')

    serve = subparsers.add_parser('serve', parents=[common], help='Serve the JSON search API')
    serve.add_argument('--host', default='127.0.0.1', help='Interface to bind. Default: 127.0.0.1')
    serve.add_argument('-p', '--port', type=int, default=config.port, help=f'Port. Default: {config.port}')
    serve.add_argument(
        '--images-dir',
        type=Path,
        default=Path(config.images_dir),
        help=f'Folder indexed when the database is missing. Default: {config.images_dir}'
    )

    cfg = subparsers.add_parser('config', help='Show or create the user configuration')
    cfg.add_argument('-i', '--init', action='store_true', help='Create an example config file')

    return parser


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return create_parser().parse_args(argv)


__all__ = ['create_parser', 'parse_arguments']
