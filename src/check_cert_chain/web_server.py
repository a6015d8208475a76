# src/check_cert_chain/web_server.py

import logging
from typing import Optional

from flask import Flask, current_app, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from check_cert_chain.config import Settings, load_settings
from check_cert_chain.errors import InspectionError
from check_cert_chain.inspector import inspect
from check_cert_chain.report import report_to_dict
from check_cert_chain.schemas import CheckRequest, describe_validation_error
from check_cert_chain.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def error_response(message: str, status_code: int):
    response = jsonify({"error": message})
    response.status_code = status_code
    return response


def create_app(settings: Optional[Settings] = None) -> Flask:
    """
    Build the Flask application.

    Settings are passed in explicitly; when omitted they are read once from
    the CHECK_CERT_CHAIN_* environment variables.
    """
    app = Flask(__name__)
    app.config['SETTINGS'] = settings or load_settings()

    @app.route('/api/tools/ssl/check', methods=['POST'])
    def check_certificate():
        settings = current_app.config['SETTINGS']
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return error_response("Request body must be a JSON object", 400)

        try:
            check = CheckRequest.model_validate(payload)
        except ValidationError as e:
            logger.info(f"Rejected check request: {e.errors()}")
            return error_response(describe_validation_error(e), 400)

        logger.info(f"Web request: checking {check.domain!r} port {check.port}")
        try:
            report = inspect(check.domain, check.port, timeout=settings.timeout, backend=settings.backend)
        except InspectionError as e:
            logger.warning(f"Check of {check.domain!r} failed: {e.message} ({e.detail})")
            return error_response(e.message, e.status_code)
        return jsonify(report_to_dict(report))

    @app.route('/health')
    def health_check():
        return jsonify({'status': 'healthy'}), 200

    @app.errorhandler(HTTPException)
    def http_error(e):
        return error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def unexpected_error(e):
        logger.exception(f"Unexpected server error: {e}")
        return error_response("Internal server error", 500)

    return app


def run_server(args):
    """Run the Flask development server with settings taken from CLI args."""
    settings = Settings(timeout=args.timeout, backend=args.backend, loglevel=args.loglevel)
    app = create_app(settings)
    logger.info(f"Starting Flask server on http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=False, threaded=True)


def get_flask_app() -> Flask:
    """Function to return the app instance, needed for WSGI servers like waitress."""
    settings = load_settings()
    setup_logging(settings.loglevel)
    return create_app(settings)
