# wellcare/services.py
"""Per-request wiring of the domain services over the shared record store."""
from flask import g
from flask_jwt_extended import get_jwt_identity

from .access import AccessGate
from .alerting import AlertingService
from .assistant import HealthAssistant
from .consent import ConsentLedger
from .errors import NotFound, Unauthorized
from .extensions import db
from .journals import HealthJournal
from .registry import IdentityRegistry
from .store import RecordStore


class Services:
    def __init__(self, session):
        self.store = RecordStore(session)
        self.registry = IdentityRegistry(self.store)
        self.journal = HealthJournal(self.store)
        self.ledger = ConsentLedger(self.store, self.registry)
        self.alerting = AlertingService(self.store, self.journal, self.ledger)
        self.gate = AccessGate(self.ledger, self.journal, self.alerting)
        self.assistant = HealthAssistant(self.store, self.registry, self.gate)


def get_services() -> Services:
    if "services" not in g:
        g.services = Services(db.session)
    return g.services


def current_principal() -> dict:
    """Profile of the verified bearer; a token for a vanished principal is Unauthorized."""
    principal_id = get_jwt_identity()
    try:
        return get_services().registry.get_profile(principal_id)
    except NotFound:
        raise Unauthorized("Unauthorized - unknown principal")
