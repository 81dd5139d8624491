"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.redirects import router as redirects_router

__all__ = [
    "redirects_router",
]
