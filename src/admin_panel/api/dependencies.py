"""
Service dependencies for API routes.

Each request builds its services on the active storage backend.
"""

from fastapi import Depends

from database import Storage, get_storage

from ..services import AuthService, StatsService, UserService
from ..support import ComplaintService


def get_user_service(storage: Storage = Depends(get_storage)) -> UserService:
    return UserService(storage)


def get_auth_service(storage: Storage = Depends(get_storage)) -> AuthService:
    return AuthService(storage)


def get_complaint_service(storage: Storage = Depends(get_storage)) -> ComplaintService:
    return ComplaintService(storage)


def get_stats_service(storage: Storage = Depends(get_storage)) -> StatsService:
    return StatsService(storage)
