# wellcare/registry.py
"""
Identity & profile registry.

Keys:
    principal:<id>    profile record
    email:<email>     {"id": <id>}, the email -> id index
    credential:<id>   bcrypt password hash, never returned to callers
"""
from __future__ import annotations
import logging

import bcrypt
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError

from .errors import Conflict, InvalidInput, NotFound, Unauthorized
from .schemas import ROLES, ROLE_ATTRIBUTE_SCHEMAS
from .util import uid, now_iso

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = ("id", "email", "role", "createdAt", "updatedAt")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def principal_key(principal_id: str) -> str:
    return f"principal:{principal_id}"


def email_key(email: str) -> str:
    return f"email:{normalize_email(email)}"


class IdentityRegistry:
    def __init__(self, store):
        self.store = store

    def create_principal(self, email: str, name: str, role: str,
                         attributes: dict | None = None, password: str | None = None) -> dict:
        if role not in ROLES:
            raise InvalidInput("Invalid role. Must be patient, caregiver, or doctor")
        email = normalize_email(email)
        if not email or not (name or "").strip():
            raise InvalidInput("Email and name are required")
        attrs = self._validate_attributes(role, attributes or {})

        if self.store.get(email_key(email)) is not None:
            raise Conflict("Email already registered")

        principal_id = uid("usr")
        profile = {
            **attrs,
            "id": principal_id,
            "email": email,
            "name": name.strip(),
            "role": role,
            "createdAt": now_iso(),
        }
        try:
            with self.store.atomic():
                self.store.insert(principal_key(principal_id), profile)
                # the email row's primary key is the uniqueness guard
                self.store.insert(email_key(email), {"id": principal_id})
                if password is not None:
                    hashed = bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()
                    self.store.insert(f"credential:{principal_id}", {"passwordHash": hashed})
        except IntegrityError:
            raise Conflict("Email already registered")

        logger.info("Created %s principal %s", role, principal_id)
        return profile

    def get_profile(self, principal_id: str) -> dict:
        profile = self.store.get(principal_key(principal_id))
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    def find_by_email(self, email: str) -> str | None:
        entry = self.store.get(email_key(email))
        return entry["id"] if entry else None

    def update_profile(self, principal_id: str, patch: dict) -> dict:
        """Apply a partial update; identity fields and timestamps are silently dropped."""
        current = self.get_profile(principal_id)
        patch = {k: v for k, v in (patch or {}).items() if k not in IMMUTABLE_FIELDS}

        name = patch.pop("name", None)
        if name is not None and not str(name).strip():
            raise InvalidInput("Name cannot be empty")
        attrs = self._validate_attributes(current["role"], patch)

        updated = {**current, **attrs, "updatedAt": now_iso()}
        if name is not None:
            updated["name"] = str(name).strip()
        self.store.set(principal_key(principal_id), updated)
        return updated

    def authenticate(self, email: str, password: str) -> dict:
        principal_id = self.find_by_email(email)
        credential = self.store.get(f"credential:{principal_id}") if principal_id else None
        if not credential or not bcrypt.checkpw(password.encode(), credential["passwordHash"].encode()):
            raise Unauthorized("Invalid credentials")
        return self.get_profile(principal_id)

    @staticmethod
    def _validate_attributes(role: str, attributes: dict) -> dict:
        try:
            return ROLE_ATTRIBUTE_SCHEMAS[role]().load(attributes, partial=True)
        except ValidationError as e:
            raise InvalidInput("Invalid profile attributes", e.messages)
