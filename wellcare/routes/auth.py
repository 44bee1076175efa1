# wellcare/routes/auth.py
from flask import Blueprint, request
from flask_jwt_extended import create_access_token, jwt_required
from marshmallow import ValidationError

from ..errors import error
from ..schemas import SignupSchema, LoginSchema
from ..services import get_services, current_principal

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


@auth_bp.post("/signup")
def signup():
    """Register a patient, caregiver or doctor. The only write that needs no bearer token."""
    try:
        body = SignupSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    profile = get_services().registry.create_principal(
        email=body["email"],
        name=body["name"],
        role=body["role"],
        attributes=body["profileData"],
        password=body["password"],
    )
    return {"success": True, "userId": profile["id"], "message": "User created successfully"}, 201


@auth_bp.post("/login")
def login():
    try:
        body = LoginSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    profile = get_services().registry.authenticate(body["email"], body["password"])
    token = create_access_token(
        identity=profile["id"],
        additional_claims={"email": profile["email"], "role": profile["role"]},
    )
    return {"accessToken": token, "profile": profile}, 200


@auth_bp.get("/profile")
@jwt_required()
def get_profile():
    return {"profile": current_principal()}, 200


@auth_bp.put("/profile")
@jwt_required()
def update_profile():
    """Partial profile update; id, email and role are ignored if present."""
    patch = request.get_json(silent=True)
    if not isinstance(patch, dict):
        return error("validation_error", 400, "Invalid payload", {"_schema": ["Expected a JSON object."]})

    me = current_principal()
    profile = get_services().registry.update_profile(me["id"], patch)
    return {"success": True, "profile": profile}, 200
