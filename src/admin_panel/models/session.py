"""
Login Session Model - One record per successful login.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .common import utcnow


@dataclass
class LoginSession:
    """A login session. Ended on logout, block or account deletion."""
    id: int
    user_id: int
    start_time: datetime = field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    is_active: bool = True

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    def end(self) -> None:
        self.end_time = utcnow()
        self.is_active = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "is_active": self.is_active,
        }
