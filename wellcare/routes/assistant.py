# wellcare/routes/assistant.py
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from marshmallow import ValidationError

from ..errors import error
from ..schemas import ChatInSchema, SymptomCheckInSchema, FaceAnalysisInSchema, SessionCompleteSchema
from ..services import get_services, current_principal

assistant_bp = Blueprint("assistant", __name__)


@assistant_bp.post("/ai/chat")
@jwt_required()
def chat():
    try:
        body = ChatInSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    me = current_principal()
    reply = get_services().assistant.chat(me["id"], body["message"], body["conversationHistory"])
    return {"success": True, **reply}, 200


@assistant_bp.get("/ai/chat/history")
@jwt_required()
def chat_history():
    me = current_principal()
    return {"history": get_services().assistant.chat_history(me["id"])}, 200


@assistant_bp.post("/ai/symptom-check")
@jwt_required()
def symptom_check():
    try:
        body = SymptomCheckInSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    me = current_principal()
    result = get_services().assistant.check_symptoms(
        me["id"], body["symptoms"], body.get("duration"), body.get("severity"))
    return {"success": True, **result}, 200


@assistant_bp.get("/ai/symptom-history")
@jwt_required()
def symptom_history():
    me = current_principal()
    return {"checks": get_services().assistant.symptom_history(me["id"])}, 200


@assistant_bp.post("/health-check/session")
@jwt_required()
def start_session():
    me = current_principal()
    session = get_services().assistant.start_session(me["id"])
    return {"success": True, "sessionId": session["id"], "session": session}, 201


@assistant_bp.post("/health-check/analyze-face")
@jwt_required()
def analyze_face():
    try:
        body = FaceAnalysisInSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    me = current_principal()
    result = get_services().assistant.analyze_face(me["id"], body["imageData"], body.get("sessionId"))
    return {"success": True, **result}, 200


@assistant_bp.post("/health-check/session/complete")
@jwt_required()
def complete_session():
    try:
        body = SessionCompleteSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return error("validation_error", 400, "Invalid payload", e.messages)

    me = current_principal()
    session = get_services().assistant.complete_session(me["id"], body["sessionId"])
    return {"success": True, "session": session}, 200


@assistant_bp.get("/health-check/history")
@jwt_required()
def health_check_history():
    me = current_principal()
    return get_services().assistant.health_check_history(me["id"]), 200
