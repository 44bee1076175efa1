# wellcare/alerting.py
"""
Threshold alerts derived from new vital readings, and the notification
fan-out to every principal holding consent over the patient.

Per reading: Recorded -> Evaluated -> NoAlert | AlertRaised.
"""
from __future__ import annotations
import logging

from .errors import NotFound
from .util import uid, now_iso, newest_first

logger = logging.getLogger(__name__)

# Blood pressure thresholds in mmHg; a reading at a boundary is inside the band.
CRITICAL_SYSTOLIC, CRITICAL_DIASTOLIC = 160, 100
WARNING_SYSTOLIC, WARNING_DIASTOLIC = 140, 90


def classify(systolic: int, diastolic: int) -> str | None:
    """Return 'critical', 'warning' or None for a blood pressure reading."""
    if systolic >= CRITICAL_SYSTOLIC or diastolic >= CRITICAL_DIASTOLIC:
        return "critical"
    if systolic >= WARNING_SYSTOLIC or diastolic >= WARNING_DIASTOLIC:
        return "warning"
    return None


def alert_key(owner_id: str, alert_id: str) -> str:
    return f"alert:{owner_id}:{alert_id}"


def notification_key(recipient_id: str, notification_id: str) -> str:
    return f"notification:{recipient_id}:{notification_id}"


class AlertingService:
    def __init__(self, store, journal, ledger):
        self.store = store
        self.journal = journal
        self.ledger = ledger

    def record_vital(self, owner_id: str, **reading) -> dict:
        """
        Persist a reading, raise an alert when it breaches a threshold and fan
        the alert out to consent holders.

        The vital and its alert commit together. Fan-out runs afterwards and
        never fails the call.
        """
        alert = None
        with self.store.atomic():
            vital = self.journal.record_vital(owner_id, **reading)
            severity = classify(vital["systolic"], vital["diastolic"])
            if severity:
                alert = {
                    "id": uid("alert"),
                    "ownerId": owner_id,
                    "type": "high_bp",
                    "severity": severity,
                    "message": f"High blood pressure detected: {vital['systolic']}/{vital['diastolic']} mmHg",
                    "relatedVitalId": vital["id"],
                    "timestamp": now_iso(),
                    "read": False,
                }
                self.store.set(alert_key(owner_id, alert["id"]), alert)

        if alert:
            logger.info("Raised %s alert %s for %s", alert["severity"], alert["id"], owner_id)
            self.notify_shared_users(owner_id, alert)
        return {"vital": vital, "alert": alert}

    def notify_shared_users(self, patient_id: str, alert: dict) -> list[dict]:
        """Write one notification per distinct grantee; a failed recipient is logged and skipped."""
        try:
            grants = self.ledger.list_grants_by_patient(patient_id)
        except Exception:
            logger.exception("Could not list consent holders for %s", patient_id)
            return []

        sent = []
        seen = set()
        for grant in grants:
            recipient_id = grant.get("granteeId")
            if not grant.get("granted") or not recipient_id or recipient_id in seen:
                continue
            seen.add(recipient_id)
            try:
                sent.append(self._write_notification(recipient_id, patient_id, alert))
            except Exception:
                logger.exception("Failed to notify %s about alert %s", recipient_id, alert["id"])
        return sent

    def _write_notification(self, recipient_id: str, patient_id: str, alert: dict) -> dict:
        notification = {
            "id": uid("ntf"),
            "recipientId": recipient_id,
            "patientId": patient_id,
            "type": alert["type"],
            "message": alert["message"],
            "alertId": alert["id"],
            "timestamp": now_iso(),
            "read": False,
        }
        return self.store.set(notification_key(recipient_id, notification["id"]), notification)

    def alerts(self, owner_id: str) -> list[dict]:
        return newest_first(self.store.scan_by_prefix(f"alert:{owner_id}:"))

    def mark_alert_read(self, owner_id: str, alert_id: str) -> dict:
        alert = self.store.get(alert_key(owner_id, alert_id))
        if alert is None:
            raise NotFound("Alert not found")
        alert["read"] = True
        return self.store.set(alert_key(owner_id, alert_id), alert)

    def notifications(self, recipient_id: str, unread_only: bool = False) -> list[dict]:
        items = self.store.scan_by_prefix(f"notification:{recipient_id}:")
        if unread_only:
            items = [n for n in items if not n.get("read")]
        return newest_first(items)

    def mark_notification_read(self, recipient_id: str, notification_id: str) -> dict:
        notification = self.store.get(notification_key(recipient_id, notification_id))
        if notification is None:
            raise NotFound("Notification not found")
        notification["read"] = True
        return self.store.set(notification_key(recipient_id, notification_id), notification)
