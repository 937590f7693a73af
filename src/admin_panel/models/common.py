from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored by the database backend."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
