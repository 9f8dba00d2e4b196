# core/errors.py
"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``main.py`` renders them as
``{"success": false, "error": <kind>, "message": <text>}``.
"""
from typing import Optional


class AppError(Exception):
    kind = "error"
    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    kind = "validation_error"
    status_code = 400
    default_message = "Validation error"


class Unauthenticated(AppError):
    kind = "unauthenticated"
    status_code = 401
    default_message = "Access token required"


class PermissionDenied(AppError):
    kind = "permission_denied"
    status_code = 403
    default_message = "You do not have permission to perform this action"

    def __init__(self, action: str, message: Optional[str] = None):
        self.action = action
        super().__init__(message or f"You do not have permission to {action.replace('_', ' ')}")


class EmailMismatch(PermissionDenied):
    kind = "email_mismatch"

    def __init__(self, message: Optional[str] = None):
        super().__init__("accept_invitation", message or "This invitation is not for your email address")


class NotFound(AppError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    kind = "conflict"
    status_code = 409
    default_message = "Conflict"


class DuplicateInvitation(Conflict):
    kind = "duplicate_invitation"
    default_message = "Invitation already sent to this email"


class AlreadyProcessed(AppError):
    kind = "already_processed"
    status_code = 409
    default_message = "Invitation has already been processed"


class Expired(AppError):
    kind = "expired"
    status_code = 410
    default_message = "Invitation has expired"
