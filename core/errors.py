"""
Application error taxonomy
Raised by routers and services, converted to {"success": false, "message"} by main.py
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class ValidationFailed(AppError):
    status_code = 400


class InvalidState(AppError):
    status_code = 400


class Unauthorized(AppError):
    status_code = 401


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class ConflictViolation(AppError):
    status_code = 409


class InternalFailure(AppError):
    status_code = 500
