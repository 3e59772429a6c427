"""
Image Similarity Search - Web API
=================================
Loads the fingerprint database once and answers search queries over HTTP.

Run with: python -m imgsearch serve
"""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask

from .api import api
from .config import DEFAULT_HOST, DEFAULT_PORT, MAX_UPLOAD_BYTES
from .search import SearchEngine

logger = logging.getLogger(__name__)


def create_app(engine: SearchEngine, fetcher=None, verbose: bool = False) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        engine: Search engine over the loaded database
        fetcher: Optional fetcher used for URL queries (pooled HttpFetcher if None)
        verbose: Keep Flask's per-request logging

    Returns:
        Configured Flask app instance
    """
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_BYTES
    app.config['SEARCH_ENGINE'] = engine
    app.config['FETCHER'] = fetcher

    if not verbose:
        # Suppress werkzeug's request logging
        logging.getLogger('werkzeug').setLevel(logging.WARNING)

    app.register_blueprint(api)
    return app


def serve(
    engine: SearchEngine,
    host: str = DEFAULT_HOST,
    port: Optional[int] = None,
    verbose: bool = False,
) -> None:
    """Run the API with Flask's threaded server until interrupted."""
    port = port or DEFAULT_PORT
    app = create_app(engine, verbose=verbose)
    logger.info(f"Starting on http://{host}:{port} ({len(engine.database):,} images indexed)")
    try:
        app.run(host=host, port=port, debug=False, threaded=True, use_reloader=False)
    except KeyboardInterrupt:
        logger.info("Server stopped")
