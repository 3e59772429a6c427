"""
CLI command dispatch for the image similarity search.

Each subcommand maps to one method; library errors are turned into log
messages and a non-zero exit code here and nowhere else.
"""

from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from ..database import Database
from ..exceptions import DatabaseIOError, IndexTaskError
from ..fingerprint import FingerprintProvider, fetch_and_decode
from ..indexer import build_database, index_sampled, load_or_build
from ..search import SearchEngine
from ..user_config import get_user_config
from .arg_parser import parse_arguments


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for the CLI.

    Args:
        verbose: Enable verbose (DEBUG level) logging

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    return logging.getLogger(__name__)


class CLIOrchestrator:
    """Parses arguments and runs the requested command."""

    def __init__(self, argv: Optional[Sequence[str]] = None):
        self.argv = argv
        self.args: Optional[argparse.Namespace] = None
        self.logger = logging.getLogger(__name__)

    def run(self) -> int:
        """
        Execute the selected command.

        Returns:
            Exit code (0 for success, 1 for error)
        """
        self.args = parse_arguments(self.argv)
        self.logger = setup_logging(getattr(self.args, 'verbose', False))

        handler = {
            'index': self._index,
            'index-sampled': self._index_sampled,
            'search': self._search,
            'serve': self._serve,
            'config': self._config,
        }[self.args.command]

        try:
            return handler()
        except (DatabaseIOError, FileNotFoundError) as e:
            self.logger.error(str(e))
            return 1

    def _provider(self) -> FingerprintProvider:
        return FingerprintProvider(self.args.algorithm)

    def _index(self) -> int:
        report = build_database(self.args.directory, self.args.database, self._provider())
        self.logger.info(f"Wrote {report.indexed:,} entries to {self.args.database}")
        return 0

    def _index_sampled(self) -> int:
        if self.args.max_in_flight < 1:
            self.logger.error("--max-in-flight must be at least 1")
            return 1
        try:
            report = index_sampled(
                self.args.source,
                self.args.database,
                sample_size=self.args.sample_size,
                provider=self._provider(),
                max_in_flight=self.args.max_in_flight,
                timeout=self.args.timeout,
                show_progress=not self.args.no_progress,
            )
        except ValueError as e:
            self.logger.error(f"Invalid reference list: {e}")
            return 1
        if report.indexed < report.requested:
            self.logger.warning(
                f"Indexed {report.indexed:,} of {report.requested:,} requested images"
            )
        return 0

    def _search(self) -> int:
        engine = SearchEngine(Database.load_file(self.args.database), self._provider())
        try:
            img = fetch_and_decode(self.args.image)
            results = engine.search_image(img)
        except IndexTaskError as e:
            self.logger.error(f"Cannot read query image: {e}")
            return 1

        self.logger.info(f"{len(results):,} results")
        for result in results[:self.args.limit]:
            print(f"{result.distance:6.1f}  {result.identifier}")
        return 0

    def _serve(self) -> int:
        from ..app import serve

        db = load_or_build(self.args.database, self.args.images_dir, self._provider())
        serve(
            SearchEngine(db, self._provider()),
            host=self.args.host,
            port=self.args.port,
            verbose=self.args.verbose,
        )
        return 0

    def _config(self) -> int:
        config = get_user_config()
        if self.args.init:
            if not config.create_example_config():
                print("Failed to create configuration file.")
                return 1
            print(f"Created example configuration file at:\n  {config.config_file_path}")
            return 0

        print(f"Configuration file: {config.config_file_path}")
        print("Status: found" if config.config_file_path.exists() else "Status: not found (using defaults)")
        print("\nCurrent settings:")
        for key, value in config.as_dict().items():
            print(f"  {key}: {value}")
        return 0


__all__ = ['CLIOrchestrator', 'setup_logging']
