# wellcare/errors.py
"""Domain errors and the JSON error payload shared by every endpoint."""


def error(code: str, http: int, message: str, details=None):
    """Return a consistent JSON error payload with HTTP status."""
    payload = {"code": code, "message": message}
    if details is not None:
        payload["details"] = details
    return payload, http


class ServiceError(Exception):
    code = "service_error"
    http = 500

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self):
        return error(self.code, self.http, self.message, self.details)


class Unauthorized(ServiceError):
    code = "unauthorized"
    http = 401


class InvalidInput(ServiceError):
    code = "invalid_input"
    http = 400


class AccessDenied(ServiceError):
    code = "access_denied"
    http = 403


class NotFound(ServiceError):
    code = "not_found"
    http = 404


class Conflict(ServiceError):
    code = "conflict"
    http = 409
