import logging

from flask import Flask, request
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from .extensions import db, cors, jwt
from .config import Config
from .errors import ServiceError, error


def create_app(config_class: type = Config) -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    cors.init_app(app)
    jwt.init_app(app)
    _register_error_handlers(app)

    @app.before_request
    def _log_req():
        app.logger.info("REQ: %s %s | CT: %s | Bearer: %s",
                        request.method, request.path,
                        request.headers.get("Content-Type"),
                        request.headers.get("Authorization", "").startswith("Bearer "))

    @app.get("/health")
    def health():
        return {"status": "OK"}, 200

    # register blueprints
    from .routes.auth import auth_bp
    app.register_blueprint(auth_bp)

    from .routes.journals import journals_bp
    app.register_blueprint(journals_bp)

    from .routes.consent import consent_bp
    app.register_blueprint(consent_bp)

    from .routes.alerts import alerts_bp
    app.register_blueprint(alerts_bp)

    from .routes.assistant import assistant_bp
    app.register_blueprint(assistant_bp)

    return app


def _register_error_handlers(app: Flask) -> None:
    @jwt.unauthorized_loader
    def _missing_token(reason):
        return error("unauthorized", 401, "Missing authorization token")

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return error("unauthorized", 401, "Unauthorized - Invalid token")

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return error("unauthorized", 401, "Unauthorized - Token expired")

    @app.errorhandler(ServiceError)
    def _service_error(e):
        if e.http >= 500:
            app.logger.error("Service error: %s", e.message)
        return e.to_response()

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return error(e.name.lower().replace(" ", "_"), e.code, e.description)

    @app.errorhandler(Exception)
    def _unexpected(e):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        return error("internal_error", 500, "Internal server error")
