from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp; all stored times use this convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
