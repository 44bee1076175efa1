# wellcare/routes/journals.py
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from ..errors import error
from ..schemas import VitalInSchema, MedicationInSchema, MedicationUpdateSchema, DoseLogInSchema
from ..services import get_services, current_principal

journals_bp = Blueprint("journals", __name__)


@journals_bp.post("/vitals")
@jwt_required()
def post_vital():
    """
    Record a blood pressure reading for the caller.
    Returns the stored vital and the alert it raised, if any.
    """
    try:
        body = VitalInSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    me = current_principal()
    result = get_services().alerting.record_vital(me["id"], **body)
    return result, 201


@journals_bp.get("/vitals")
@jwt_required()
def get_vitals():
    """Vitals newest first; ?patientId= reads another patient's journal under consent."""
    me = current_principal()
    vitals = get_services().gate.vitals(me["id"], request.args.get("patientId"))
    return {"vitals": vitals}, 200


@journals_bp.post("/medications")
@jwt_required()
def post_medication():
    try:
        body = MedicationInSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    me = current_principal()
    medication = get_services().journal.add_medication(me["id"], **body)
    return {"success": True, "medication": medication}, 201


@journals_bp.get("/medications")
@jwt_required()
def get_medications():
    me = current_principal()
    medications = get_services().gate.medications(me["id"], request.args.get("patientId"))
    return {"medications": medications}, 200


@journals_bp.put("/medications/<medication_id>")
@jwt_required()
def update_medication(medication_id):
    """Activate or deactivate one of the caller's medications."""
    try:
        body = MedicationUpdateSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    me = current_principal()
    medication = get_services().journal.set_medication_active(me["id"], medication_id, body["active"])
    return {"success": True, "medication": medication}, 200


@journals_bp.post("/medications/log")
@jwt_required()
def log_dose():
    try:
        body = DoseLogInSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    me = current_principal()
    log = get_services().journal.log_dose(
        me["id"],
        body["medicationId"],
        taken=body["taken"],
        timestamp=body.get("timestamp"),
        notes=body.get("notes"),
    )
    return {"success": True, "log": log}, 201


@journals_bp.get("/medications/logs")
@jwt_required()
def get_dose_logs():
    me = current_principal()
    logs = get_services().gate.dose_logs(me["id"], request.args.get("patientId"))
    return {"logs": logs}, 200
