# wellcare/access.py
"""
Access-gated query facade.

Every read of another principal's journals goes through ``AccessGate``. A
failed consent check is always ``AccessDenied``; whether the target exists is
never revealed to a caller without consent.
"""
from __future__ import annotations

from .errors import AccessDenied


class AccessGate:
    def __init__(self, ledger, journal, alerting):
        self.ledger = ledger
        self.journal = journal
        self.alerting = alerting

    def authorize(self, caller_id: str, target_id: str | None) -> str:
        """Return the owner id to read from, or raise AccessDenied."""
        if not target_id or target_id == caller_id:
            return caller_id
        if not self.ledger.is_granted(caller_id, target_id):
            raise AccessDenied("Access denied")
        return target_id

    def authorize_full(self, caller_id: str, target_id: str | None) -> str:
        """Like authorize, but a cross-user caller must hold a 'full' grant."""
        if not target_id or target_id == caller_id:
            return caller_id
        if self.ledger.access_level(caller_id, target_id) != "full":
            raise AccessDenied("Access denied")
        return target_id

    def vitals(self, caller_id, target_id=None):
        return self.journal.vitals(self.authorize(caller_id, target_id))

    def medications(self, caller_id, target_id=None):
        return self.journal.medications(self.authorize(caller_id, target_id))

    def dose_logs(self, caller_id, target_id=None):
        return self.journal.dose_logs(self.authorize(caller_id, target_id))

    def alerts(self, caller_id, target_id=None):
        return self.alerting.alerts(self.authorize(caller_id, target_id))
