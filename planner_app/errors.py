import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base error rendered as ``{'success': False, 'error': message}``."""
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400
    default_message = 'Invalid request'


class AuthenticationError(ApiError):
    status_code = 401
    default_message = 'Please authenticate'


class AuthorizationError(ApiError):
    status_code = 403
    default_message = 'Not authorized'


class NotFoundError(ApiError):
    status_code = 404
    default_message = 'Not found'


def error_response(message, status_code):
    return jsonify({'success': False, 'error': message}), status_code


def register_error_handlers(app, db):
    @app.errorhandler(ApiError)
    def handle_api_error(err):
        if err.status_code >= 500:
            db.session.rollback()
        return error_response(err.message, err.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        # Flask raises BadRequest for unparsable JSON bodies
        message = err.description if err.code == 400 else err.name
        return error_response(message, err.code)

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        logger.exception('Unhandled error: %s', err)
        db.session.rollback()
        return error_response('Internal server error', 500)
