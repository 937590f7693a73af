"""
Dashboard Stats Routes
"""

from fastapi import APIRouter, Depends

from realtime.connection_manager import ConnectionManager, get_connection_manager

from ..auth.rbac import CurrentUser, require_admin
from ..services import StatsService
from .dependencies import get_stats_service

router = APIRouter(tags=["Stats"])


@router.get("/stats")
def get_stats(
    current: CurrentUser = Depends(require_admin),
    service: StatsService = Depends(get_stats_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """User, session and complaint counters, plus live chat connections."""
    stats = service.get_stats()
    stats["realtime"] = manager.get_stats()
    return stats
