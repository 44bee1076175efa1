# wellcare/util.py
from __future__ import annotations
from datetime import datetime, timezone
from uuid import uuid4


def uid(prefix: str) -> str:
    """Generate a short unique id with a prefix."""
    return f"{prefix}_{uuid4().hex[:12]}"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_iso(dt: datetime | None) -> str:
    """Normalise a datetime to an ISO8601 UTC string; naive values are taken as UTC."""
    if dt is None:
        return now_iso()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def parse_dt(s: str | None):
    """Parse ISO8601 date/time; accept 'Z' as UTC."""
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Invalid datetime: {s}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def newest_first(records: list[dict], field: str = "timestamp") -> list[dict]:
    """Sort records by an ISO timestamp field, newest first; ties fall back to createdAt."""
    epoch = datetime.min.replace(tzinfo=timezone.utc)

    def _key(r):
        return (parse_dt(r.get(field)) or epoch, parse_dt(r.get("createdAt")) or epoch)

    return sorted(records, key=_key, reverse=True)
