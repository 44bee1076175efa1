# wellcare/consent.py
"""
Consent ledger: who may read whose health data, and at what level.

Every grant is kept under two keys so both directions are a single prefix
scan:

    consent:patient:<patientId>:<granteeId>   "who can see my data"
    consent:grantee:<granteeId>:<patientId>   "whose data can I see"

Both copies are written and deleted in one store transaction.
"""
from __future__ import annotations
import logging

from .errors import InvalidInput, NotFound
from .registry import normalize_email
from .schemas import ACCESS_LEVELS
from .util import now_iso

logger = logging.getLogger(__name__)


def forward_key(patient_id: str, grantee_id: str) -> str:
    return f"consent:patient:{patient_id}:{grantee_id}"


def reverse_key(grantee_id: str, patient_id: str) -> str:
    return f"consent:grantee:{grantee_id}:{patient_id}"


class ConsentLedger:
    def __init__(self, store, registry):
        self.store = store
        self.registry = registry

    def grant(self, patient_id: str, grantee_email: str, access_level: str) -> dict:
        if access_level not in ACCESS_LEVELS:
            raise InvalidInput("Access level must be 'view' or 'full'")

        patient = self.registry.get_profile(patient_id)
        grantee_email = normalize_email(grantee_email)
        if grantee_email == patient["email"]:
            raise InvalidInput("You cannot grant access to yourself")

        grantee_id = self.registry.find_by_email(grantee_email)
        if grantee_id is None:
            raise NotFound("User with that email not found")
        if grantee_id == patient_id:
            raise InvalidInput("You cannot grant access to yourself")

        consent = {
            "id": forward_key(patient_id, grantee_id),
            "patientId": patient_id,
            "granteeId": grantee_id,
            "granteeEmail": grantee_email,
            "accessLevel": access_level,
            "granted": True,
            "grantedAt": now_iso(),
        }
        with self.store.atomic():
            self.store.set(forward_key(patient_id, grantee_id), consent)
            self.store.set(reverse_key(grantee_id, patient_id), consent)

        logger.info("Patient %s granted %s access to %s", patient_id, access_level, grantee_id)
        return consent

    def revoke(self, patient_id: str, grantee_email: str) -> None:
        # one message for "no such user" and "no such grant"
        grantee_id = self.registry.find_by_email(grantee_email)
        if grantee_id is None or self.store.get(forward_key(patient_id, grantee_id)) is None:
            raise NotFound("No consent grant found for that email")

        with self.store.atomic():
            self.store.delete(forward_key(patient_id, grantee_id))
            self.store.delete(reverse_key(grantee_id, patient_id))

        logger.info("Patient %s revoked access for %s", patient_id, grantee_id)

    def get_grant(self, requester_id: str, patient_id: str) -> dict | None:
        consent = self.store.get(forward_key(patient_id, requester_id))
        if consent and consent.get("granted"):
            return consent
        return None

    def is_granted(self, requester_id: str, patient_id: str) -> bool:
        return self.get_grant(requester_id, patient_id) is not None

    def access_level(self, requester_id: str, patient_id: str) -> str | None:
        consent = self.get_grant(requester_id, patient_id)
        return consent["accessLevel"] if consent else None

    def list_grants_by_patient(self, patient_id: str) -> list[dict]:
        return self.store.scan_by_prefix(f"consent:patient:{patient_id}:")

    def list_grants_by_grantee(self, grantee_id: str) -> list[dict]:
        return self.store.scan_by_prefix(f"consent:grantee:{grantee_id}:")
