"""HTTP and Lambda handlers for the Field Operations API."""

from .api_handler import app

__all__ = ["app"]
