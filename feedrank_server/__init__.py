"""HTTP surface for the feedrank engine."""

from .app import app, create_app

__all__ = ["app", "create_app"]
