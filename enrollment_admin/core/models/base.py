from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware column default for created_at / updated_at."""
    return datetime.now(timezone.utc)
