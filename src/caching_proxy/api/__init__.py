"""HTTP application: app factory, lifespan and dependency wiring."""

from .app import create_app

__all__ = ["create_app"]
