"""
Stats Service - Dashboard counters for admins.
"""

from collections import Counter
from typing import TYPE_CHECKING, Any, Dict

from rbac import is_staff

from ..support.complaint_models import ComplaintStatus

if TYPE_CHECKING:
    from database.storage import Storage


class StatsService:
    """Aggregate counts over users, sessions and complaints."""

    def __init__(self, storage: "Storage"):
        self.storage = storage

    def get_stats(self) -> Dict[str, Any]:
        users = self.storage.get_all_users()
        complaints = self.storage.get_all_complaints()
        by_status = Counter(c.status for c in complaints)

        return {
            "users": {
                "total": len(users),
                "staff": sum(1 for u in users if is_staff(u)),
                "premium": sum(1 for u in users if u.is_premium),
                "verified": sum(1 for u in users if u.is_verified),
                "blocked": sum(1 for u in users if u.is_blocked),
            },
            "sessions": {
                "active": len(self.storage.get_active_sessions()),
                "expired": len(self.storage.get_expired_sessions()),
            },
            "complaints": {
                "total": len(complaints),
                "by_status": {status.value: by_status.get(status, 0) for status in ComplaintStatus},
                "unassigned": sum(
                    1 for c in complaints
                    if c.assigned_to_id is None and not c.is_closed
                ),
            },
        }
