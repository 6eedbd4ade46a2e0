"""
HTTP API for legal-doc-auto.
"""

from .app import create_app

__all__ = ["create_app"]
