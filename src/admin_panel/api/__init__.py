"""
Admin Panel API Routes.
"""

from .router import admin_router

__all__ = ["admin_router"]
