"""Service-layer exceptions and their JSON rendering."""

from flask import jsonify


class ServiceError(Exception):
    """Base for errors the HTTP layer turns into a JSON response."""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'message': self.message}


class ValidationError(ServiceError):
    """Malformed or out-of-range input. Carries one entry per offending field."""
    status_code = 400

    def __init__(self, errors, message='Invalid input'):
        super().__init__(message)
        self.errors = list(errors)

    @property
    def fields(self):
        return [e['field'] for e in self.errors]

    def to_dict(self):
        return {'message': self.message, 'errors': self.errors}


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class StorageFailure(ServiceError):
    """Persistence failed; the transaction was rolled back."""
    status_code = 500


def field_error(field, message):
    return {'field': field, 'message': message}


def register_error_handlers(flask_app):
    @flask_app.errorhandler(ServiceError)
    def handle_service_error(exc):
        if exc.status_code >= 500:
            flask_app.logger.error(f"[service-error] {exc.message}: {exc.__cause__!r}")
        return jsonify(exc.to_dict()), exc.status_code
