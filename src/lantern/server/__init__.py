"""Lantern liveness server.

Usage:
    from lantern.server import create_app
    app = create_app(get_config())

    # Or with uvicorn directly
    uvicorn lantern.server.app:create_app --factory --port 3000
"""

from .app import LivenessServer, create_app

__all__ = ["LivenessServer", "create_app"]
