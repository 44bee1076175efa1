# wellcare/routes/alerts.py
from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from ..services import get_services, current_principal

alerts_bp = Blueprint("alerts", __name__)


@alerts_bp.get("/alerts")
@jwt_required()
def get_alerts():
    me = current_principal()
    alerts = get_services().gate.alerts(me["id"], request.args.get("patientId"))
    return {"alerts": alerts}, 200


@alerts_bp.put("/alerts/<alert_id>/read")
@jwt_required()
def mark_alert_read(alert_id):
    """
    Acknowledge an alert. The owner may always do so; for another patient's
    alert (?patientId=) the caller needs a 'full' grant.
    """
    me = current_principal()
    services = get_services()
    owner_id = services.gate.authorize_full(me["id"], request.args.get("patientId"))
    alert = services.alerting.mark_alert_read(owner_id, alert_id)
    return {"success": True, "alert": alert}, 200


@alerts_bp.get("/notifications")
@jwt_required()
def get_notifications():
    me = current_principal()
    unread_only = request.args.get("unread") in ("1", "true", "yes")
    notifications = get_services().alerting.notifications(me["id"], unread_only=unread_only)
    return {"notifications": notifications}, 200


@alerts_bp.put("/notifications/<notification_id>/read")
@jwt_required()
def mark_notification_read(notification_id):
    me = current_principal()
    notification = get_services().alerting.mark_notification_read(me["id"], notification_id)
    return {"success": True, "notification": notification}, 200
