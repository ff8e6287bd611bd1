"""Error hierarchy for the API.

Every error carries a machine-readable code, a category and the HTTP status
it maps to. ``to_response()`` produces the JSON envelope returned to clients.
"""

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """High-level error categories."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    STORAGE = "storage"
    INTERNAL = "internal"


class AppError(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        http_status: int = 500,
        details: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.http_status = http_status
        self.details = details

    def to_response(self) -> dict:
        """Convert to the REST error envelope."""
        body: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }
        if self.details:
            body["details"] = self.details
        return {"error": body}


# ─── Generic errors ─────────────────────────────────────────────


class ValidationFailedError(AppError):
    """Request data failed validation; ``details`` lists ``{field, message}``."""

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code, ErrorCategory.VALIDATION, 400, details)


class AuthenticationError(AppError):
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION, 401)


class PermissionDeniedError(AppError):
    def __init__(self, message: str = "Access denied", code: str = "FORBIDDEN"):
        super().__init__(message, code, ErrorCategory.PERMISSION, 403)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND"):
        super().__init__(message, code, ErrorCategory.RESOURCE_NOT_FOUND, 404)


class ConflictError(AppError):
    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message, code, ErrorCategory.CONFLICT, 409)


class StorageError(AppError):
    """Object storage is unreachable or misconfigured."""

    def __init__(self, message: str = "Failed to upload file to storage"):
        super().__init__(message, "STORAGE_ERROR", ErrorCategory.STORAGE, 500)


def single_field_error(field: str, message: str, summary: str | None = None) -> ValidationFailedError:
    """Shortcut for a validation error about one field."""
    return ValidationFailedError(summary or message, [{"field": field, "message": message}])


# ─── Business profile errors ────────────────────────────────────


class BusinessProfileNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Business profile not found", "BUSINESS_PROFILE_NOT_FOUND")


class DuplicateCompanyNameError(ConflictError):
    def __init__(self):
        super().__init__("Company name already exists", "COMPANY_NAME_EXISTS")


class AboutSectionExistsError(ConflictError):
    def __init__(self):
        super().__init__("About section already exists", "ABOUT_SECTION_EXISTS")


class AboutSectionNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("About section not found", "ABOUT_SECTION_NOT_FOUND")


class PrivateInfoExistsError(ConflictError):
    def __init__(self):
        super().__init__("Private info already exists", "PRIVATE_INFO_EXISTS")


class PrivateInfoNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Private info not found", "PRIVATE_INFO_NOT_FOUND")


class ProjectNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Project not found", "PROJECT_NOT_FOUND")


class AchievementNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Achievement not found", "ACHIEVEMENT_NOT_FOUND")


class BusinessProfilePrivacyError(PermissionDeniedError):
    def __init__(self, message: str = "This section is private"):
        super().__init__(message, "BUSINESS_PROFILE_PRIVATE")


# ─── Team management errors ─────────────────────────────────────


class UserNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("User not found", "USER_NOT_FOUND")


class UserAlreadyMemberError(ConflictError):
    def __init__(self):
        super().__init__("User is already a member", "USER_ALREADY_MEMBER")


class PendingInvitationExistsError(ConflictError):
    def __init__(self):
        super().__init__("A pending invitation already exists", "PENDING_INVITATION_EXISTS")


class InvalidRoleError(ValidationFailedError):
    def __init__(self):
        super().__init__(
            "Role must be either admin or editor",
            [{"field": "role", "message": "Role must be either admin or editor"}],
            code="INVALID_ROLE",
        )


class InvitationNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Invitation not found", "INVITATION_NOT_FOUND")


class InvitationNotForUserError(PermissionDeniedError):
    def __init__(self):
        super().__init__("This invitation is not for you", "INVITATION_NOT_FOR_USER")


class InvitationAlreadyAcceptedError(ConflictError):
    def __init__(self):
        super().__init__("Invitation has already been accepted", "INVITATION_ALREADY_ACCEPTED")


class InvitationAlreadyDeclinedError(ConflictError):
    def __init__(self):
        super().__init__("Invitation has already been declined", "INVITATION_ALREADY_DECLINED")


# ─── Profile errors ─────────────────────────────────────────────


class ProfileNotFoundError(NotFoundError):
    def __init__(self, message: str = "User profile not found"):
        super().__init__(message, "PROFILE_NOT_FOUND")


class ProfileExistsError(ConflictError):
    def __init__(self):
        super().__init__("Profile already exists for this user", "PROFILE_EXISTS")


class BusinessProfilePermissionError(PermissionDeniedError):
    def __init__(self):
        super().__init__("You do not have permission to modify this business profile", "BUSINESS_PROFILE_FORBIDDEN")


class OwnerOnlyError(PermissionDeniedError):
    def __init__(self, action: str):
        super().__init__(f"Only profile owner can {action}", "OWNER_ONLY")


class MemberNotFoundError(NotFoundError):
    def __init__(self, message: str = "Member not found"):
        super().__init__(message, "MEMBER_NOT_FOUND")


# ─── Connection errors ──────────────────────────────────────────


class ConnectionRequestNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Connection request not found", "CONNECTION_REQUEST_NOT_FOUND")


class DuplicateConnectionRequestError(ConflictError):
    def __init__(self):
        super().__init__("Connection request already exists", "DUPLICATE_REQUEST")


class AlreadyConnectedError(ConflictError):
    def __init__(self):
        super().__init__("Users are already connected", "CONNECTION_ALREADY_EXISTS")


class ConnectionNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Connection not found", "CONNECTION_NOT_FOUND")


class NotificationNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Notification not found", "NOTIFICATION_NOT_FOUND")


# ─── Job and application errors ─────────────────────────────────


class JobNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Job not found", "JOB_NOT_FOUND")


class DuplicateJobError(ConflictError):
    def __init__(self):
        super().__init__("A job with the same details already exists for this company", "DUPLICATE_JOB")


class ApplicationNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Application not found", "APPLICATION_NOT_FOUND")


class AlreadyAppliedError(ConflictError):
    def __init__(self):
        super().__init__("You have already applied for this job", "ALREADY_APPLIED")
