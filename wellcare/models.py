# wellcare/models.py
from datetime import datetime, timezone
from .extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class Record(db.Model):
    """One key-value entry; every entity lives in this table under its own key prefix."""
    __tablename__ = "records"

    key = db.Column(db.String(255), primary_key=True)
    value = db.Column(db.JSON, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
