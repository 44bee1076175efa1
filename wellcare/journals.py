# wellcare/journals.py
"""Append-only per-patient journals: vital readings, medications and dose logs."""
from __future__ import annotations
from datetime import datetime

from .errors import NotFound
from .util import uid, now_iso, to_iso, newest_first


def vital_key(owner_id: str, vital_id: str) -> str:
    return f"vital:{owner_id}:{vital_id}"


def medication_key(owner_id: str, medication_id: str) -> str:
    return f"medication:{owner_id}:{medication_id}"


def dose_log_key(owner_id: str, log_id: str) -> str:
    return f"medlog:{owner_id}:{log_id}"


class HealthJournal:
    def __init__(self, store):
        self.store = store

    def record_vital(self, owner_id: str, systolic: int, diastolic: int, pulse: int | None = None,
                     notes: str | None = None, timestamp: datetime | None = None) -> dict:
        vital = {
            "id": uid("v"),
            "ownerId": owner_id,
            "systolic": int(systolic),
            "diastolic": int(diastolic),
            "pulse": int(pulse) if pulse is not None else None,
            "notes": notes or "",
            "timestamp": to_iso(timestamp),
            "createdAt": now_iso(),
        }
        return self.store.set(vital_key(owner_id, vital["id"]), vital)

    def vitals(self, owner_id: str) -> list[dict]:
        return newest_first(self.store.scan_by_prefix(f"vital:{owner_id}:"))

    def latest_vital(self, owner_id: str) -> dict | None:
        vitals = self.vitals(owner_id)
        return vitals[0] if vitals else None

    def add_medication(self, owner_id: str, name: str, dosage: str, schedule: str | None = None,
                       notes: str | None = None) -> dict:
        medication = {
            "id": uid("med"),
            "ownerId": owner_id,
            "name": name,
            "dosage": dosage,
            "schedule": schedule or "as needed",
            "notes": notes or "",
            "active": True,
            "createdAt": now_iso(),
        }
        return self.store.set(medication_key(owner_id, medication["id"]), medication)

    def get_medication(self, owner_id: str, medication_id: str) -> dict:
        medication = self.store.get(medication_key(owner_id, medication_id))
        if medication is None:
            raise NotFound("Medication not found")
        return medication

    def set_medication_active(self, owner_id: str, medication_id: str, active: bool) -> dict:
        medication = self.get_medication(owner_id, medication_id)
        medication["active"] = bool(active)
        return self.store.set(medication_key(owner_id, medication_id), medication)

    def medications(self, owner_id: str, active_only: bool = False) -> list[dict]:
        meds = self.store.scan_by_prefix(f"medication:{owner_id}:")
        if active_only:
            meds = [m for m in meds if m.get("active")]
        return newest_first(meds, field="createdAt")

    def log_dose(self, owner_id: str, medication_id: str, taken: bool = True,
                 timestamp: datetime | None = None, notes: str | None = None) -> dict:
        # the dose must reference one of the owner's own medications
        self.get_medication(owner_id, medication_id)
        log = {
            "id": uid("dose"),
            "ownerId": owner_id,
            "medicationId": medication_id,
            "taken": bool(taken),
            "timestamp": to_iso(timestamp),
            "notes": notes or "",
        }
        return self.store.set(dose_log_key(owner_id, log["id"]), log)

    def dose_logs(self, owner_id: str) -> list[dict]:
        return newest_first(self.store.scan_by_prefix(f"medlog:{owner_id}:"))
