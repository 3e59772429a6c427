"""
Flask routes for the image similarity search.

JSON endpoints only; HTML rendering is left to whatever front end
consumes them.
"""

from __future__ import annotations

import logging
import time
from typing import Optional
from urllib.parse import urlparse

from flask import Blueprint, current_app, jsonify, request

from ..exceptions import DecodeError, FetchError, HashError
from ..fingerprint import HttpFetcher, decode_image, fetch_and_decode
from ..models import format_count
from ..search import SearchEngine

# Create blueprint for routes
api = Blueprint('api', __name__)

# Module logger
_logger = logging.getLogger(__name__)


def is_url_valid(url: str) -> bool:
    """Accept only absolute http(s) URLs."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def _engine() -> SearchEngine:
    return current_app.config['SEARCH_ENGINE']


def _fetcher() -> HttpFetcher:
    fetcher = current_app.config.get('FETCHER')
    if fetcher is None:
        fetcher = HttpFetcher(max_connections=4)
        current_app.config['FETCHER'] = fetcher
    return fetcher


def _parse_limit(raw) -> Optional[int]:
    """Parse the optional result limit; raises ValueError if invalid."""
    if raw is None or raw == '':
        return None
    limit = int(raw)
    if limit < 0:
        raise ValueError("limit must be >= 0")
    return limit


# =============================================================================
# Route Handlers
# =============================================================================

@api.route('/api/stats')
def api_stats():
    """Number of images in the database."""
    count = len(_engine().database)
    return jsonify({
        'indexed_images': count,
        'indexed_images_formatted': format_count(count),
    })


@api.route('/api/search', methods=['POST'])
def api_search():
    """Search with an uploaded file or an image URL."""
    client = request.remote_addr
    body = request.get_json(silent=True) or {}
    url = (request.form.get('url') or body.get('url') or '').strip()
    upload = request.files.get('file')

    try:
        limit = _parse_limit(request.form.get('limit', body.get('limit')))
    except (TypeError, ValueError):
        return jsonify({'error': 'limit must be a non-negative integer'}), 400

    if upload is not None and upload.filename:
        _logger.info(f"[{client}] got file \"{upload.filename}\"")
        try:
            img = decode_image(upload.read())
        except DecodeError as e:
            return jsonify({'error': f'Failed to decode image from file "{upload.filename}": {e}'}), 400
    elif is_url_valid(url):
        _logger.info(f"[{client}] requesting URL \"{url}\"")
        try:
            img = fetch_and_decode(url, fetcher=_fetcher())
        except FetchError as e:
            return jsonify({'error': f'Failed to fetch image from url "{url}": {e}'}), 502
        except DecodeError as e:
            return jsonify({'error': f'Failed to decode image from url "{url}": {e}'}), 400
    else:
        return jsonify({'error': 'Provide an image file or a valid http(s) url'}), 400

    start = time.perf_counter()
    try:
        results = _engine().search_image(img)
    except HashError as e:
        _logger.error(f"[{client}] hashing query image failed: {e}")
        return jsonify({'error': str(e)}), 500
    elapsed_ms = (time.perf_counter() - start) * 1000
    _logger.info(f"[{client}] found {len(results):,} results in {elapsed_ms:.3f}ms")

    total = len(results)
    if limit is not None:
        results = results[:limit]

    return jsonify({
        'results': [r.to_dict() for r in results],
        'count': total,
        'count_formatted': format_count(total),
        'elapsed_ms': round(elapsed_ms, 3),
    })
