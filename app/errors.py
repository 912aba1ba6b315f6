"""Typed failures raised by the service layer.

Services never choose HTTP status codes; ``main.py`` maps these to responses.
"""


class AppError(Exception):
    """Base class for expected, client-facing failures."""

    code = "APP_ERROR"
    message = "Request could not be completed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)


class ConfigurationError(RuntimeError):
    """Fatal startup misconfiguration."""


# Auth


class DuplicateEmail(AppError):
    code = "DUPLICATE_EMAIL"
    message = "Unable to create account. Please try again."


class InvalidCredentials(AppError):
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials."


class InvalidOrExpiredToken(AppError):
    code = "INVALID_OR_EXPIRED_TOKEN"
    message = "Invalid or expired refresh token."


class InvalidOrExpiredOtp(AppError):
    code = "INVALID_OR_EXPIRED_OTP"
    message = "Invalid or expired OTP."


# Tenancy / companies


class CrossTenantAccessDenied(AppError):
    code = "CROSS_TENANT_ACCESS_DENIED"
    message = "Cannot access an entity belonging to a different company."


class PermissionDenied(AppError):
    code = "FORBIDDEN"
    message = "Forbidden."


class DuplicateName(AppError):
    code = "DUPLICATE_NAME"
    message = "Company name already exists."


class CompanyNotFound(AppError):
    code = "COMPANY_NOT_FOUND"
    message = "Company not found."


class UserNotFound(AppError):
    code = "USER_NOT_FOUND"
    message = "User not found."


class MemberNotFound(AppError):
    code = "MEMBER_NOT_FOUND"
    message = "Member not found."


class AlreadyInCompany(AppError):
    code = "ALREADY_IN_COMPANY"
    message = "User is already a member of a company."


class InvalidRole(AppError):
    code = "INVALID_ROLE"
    message = "Unknown role."
