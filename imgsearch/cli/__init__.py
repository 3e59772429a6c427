"""
CLI package for the image similarity search.

Public API:
- main: Entry point for CLI execution
- CLIOrchestrator: Command dispatch class
- create_parser / parse_arguments: Argument parsing
- setup_logging: Logging configuration
"""

from __future__ import annotations

from typing import Optional, Sequence

from .orchestrator import CLIOrchestrator, setup_logging
from .arg_parser import create_parser, parse_arguments


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    return CLIOrchestrator(argv).run()


__all__ = [
    'main',
    'CLIOrchestrator',
    'setup_logging',
    'create_parser',
    'parse_arguments',
]
