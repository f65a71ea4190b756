# crm/errors.py
import logging

from flask import g, jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger('crm.errors')


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status code."""
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(ApiError):
    status_code = 400
    default_message = 'Invalid input'


class InvalidPhoneNumber(InvalidInput):
    status_code = 403
    default_message = 'Invalid phone number'


class DuplicateContact(ApiError):
    status_code = 403
    default_message = 'Contact already exists'


class NotFound(ApiError):
    status_code = 404
    default_message = 'Not found'


class Forbidden(ApiError):
    status_code = 403
    default_message = 'Access denied'


class MethodNotAllowed(ApiError):
    status_code = 405
    default_message = 'Method not allowed'


class Unauthorized(ApiError):
    status_code = 401
    default_message = 'Unauthorized'


def error_envelope(status_code, message):
    response = jsonify({
        'statusCode': status_code,
        'message': message,
        'correlationId': g.get('correlation_id'),
    })
    response.status_code = status_code
    return response


def _log_error(status_code, message, exc_info=False):
    # Every error path records the request line and correlation id.
    level = logging.ERROR if status_code >= 500 else logging.WARNING
    logger.log(
        level,
        f"{request.method} {request.url} -> {status_code} {message} [{g.get('correlation_id')}]",
        exc_info=exc_info
    )


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        _log_error(error.status_code, error.message, exc_info=error.status_code >= 500)
        return error_envelope(error.status_code, error.message)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        _log_error(error.code, error.description)
        return error_envelope(error.code, error.description)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        _log_error(500, f"Unhandled error: {error}", exc_info=True)
        return error_envelope(500, ApiError.default_message)
