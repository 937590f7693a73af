"""
Admin Panel API Router

Aggregates all admin panel routes into a single router.
Organized by domain for maintainability.

Route Structure (mounted under /api):
- /register, /login, /logout, /user   - Authentication
- /users, /user/profile, /user/password - Account management
- /sessions                            - Login sessions
- /complaints                          - Complaints and chat history
- /stats                               - Dashboard counters
"""

from fastapi import APIRouter
import logging

from .auth_routes import router as auth_router
from .complaint_routes import router as complaint_router
from .session_routes import router as session_router
from .stats_routes import router as stats_router
from .user_routes import router as user_router

logger = logging.getLogger(__name__)

# Create main admin router
admin_router = APIRouter()

admin_router.include_router(auth_router)
admin_router.include_router(user_router)
admin_router.include_router(session_router)
admin_router.include_router(complaint_router)
admin_router.include_router(stats_router)


# =============================================================================
# HEALTH CHECK
# =============================================================================

@admin_router.get("/health", tags=["Health"])
async def health_check():
    """Admin panel health check endpoint."""
    return {
        "status": "healthy",
        "module": "admin_panel",
        "routes": {
            "auth": "active",
            "users": "active",
            "sessions": "active",
            "complaints": "active",
            "stats": "active",
        },
    }
