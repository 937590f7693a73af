"""
Admin Panel Module

Account administration for a role-based user base:
- Authentication with bcrypt passwords and session-bound JWTs
- Staff management of roles and status flags
- Complaints with a staff triage workflow and live chat

Key Components:
- models/: Dataclass models for users and login sessions
- support/: Complaint models and lifecycle service
- services/: User, auth and stats business logic
- auth/: Password hashing, tokens and FastAPI guards
- api/: REST API routes
"""

__all__ = ["admin_router"]


def __getattr__(name):
    """
    Lazily expose admin_router to avoid import-time side effects.

    Storage backends import admin_panel.models and admin_panel.support; loading
    the router tree here would import them back in a cycle.
    """
    if name == "admin_router":
        from .api.router import admin_router

        return admin_router
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
