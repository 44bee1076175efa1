# wellcare/routes/consent.py
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from ..errors import error
from ..registry import principal_key
from ..schemas import GrantSchema, RevokeSchema
from ..services import get_services, current_principal

consent_bp = Blueprint("consent", __name__, url_prefix="/consent")


@consent_bp.post("/grant")
@jwt_required()
def grant():
    """Let a caregiver or doctor, identified by email, read the caller's health data."""
    try:
        body = GrantSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    me = current_principal()
    consent = get_services().ledger.grant(me["id"], body["granteeEmail"], body["accessLevel"])
    return {"success": True, "consent": consent}, 200


@consent_bp.post("/revoke")
@jwt_required()
def revoke():
    try:
        body = RevokeSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    me = current_principal()
    get_services().ledger.revoke(me["id"], body["granteeEmail"])
    return {"success": True}, 200


@consent_bp.get("/granted")
@jwt_required()
def granted():
    """Who can see my data."""
    me = current_principal()
    return {"consents": get_services().ledger.list_grants_by_patient(me["id"])}, 200


@consent_bp.get("/patients")
@jwt_required()
def patients():
    """Whose data can I see, with each patient's profile and the level granted."""
    me = current_principal()
    services = get_services()
    result = []
    for consent in services.ledger.list_grants_by_grantee(me["id"]):
        if not consent.get("granted"):
            continue
        profile = services.store.get(principal_key(consent["patientId"]))
        if profile is None:
            continue
        result.append({
            **profile,
            "accessLevel": consent["accessLevel"],
            "grantedAt": consent["grantedAt"],
        })
    return {"patients": result}, 200
