"""
API package for the image similarity search.

Provides the Flask blueprint serving search queries.
"""

from __future__ import annotations

from .routes import api

__all__ = ['api']
