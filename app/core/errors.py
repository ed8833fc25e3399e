# app/core/errors.py
from typing import Any, Dict, Optional
from fastapi import HTTPException
from enum import Enum


class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"        # 401
    FORBIDDEN = "forbidden"              # 403
    NOT_FOUND = "not_found"              # 404
    CONFLICT = "conflict"                # 409
    VALIDATION_ERROR = "validation_error"# 422
    INTERNAL_ERROR = "internal_error"    # 500
    BAD_REQUEST = "bad_request"          # 400

    # validation
    CODE_REQUIRED = "code_required"
    NAME_REQUIRED = "name_required"
    INVALID_NAME = "invalid_name"
    CREDENTIAL_REQUIRED = "credential_required"
    APPROVER_IS_REQUESTER = "approver_is_requester"
    # not found
    INVALID_CODE = "invalid_code"
    TENANT_NOT_FOUND = "tenant_not_found"
    JOIN_REQUEST_NOT_FOUND = "join_request_not_found"
    # conflict
    ALREADY_EXISTS = "already_exists"
    ALREADY_MEMBER = "already_member"
    EMAIL_IN_USE = "email_in_use"
    TENANT_MISMATCH = "tenant_mismatch"
    REQUEST_ALREADY_PROCESSED = "request_already_processed"
    APPROVAL_EMAIL_IN_USE = "approval_email_in_use"
    CODE_COLLISION = "code_collision"
    # auth
    INVALID_CREDENTIALS = "invalid_credentials"
    WRONG_PASSWORD_EXISTING_ACCOUNT = "wrong_password_existing_account"
    # upstream
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    AUTH_FAILURE = "auth_failure"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"


KIND_STATUS = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.AUTH_FAILURE: 401,
    ErrorKind.UPSTREAM_UNAVAILABLE: 503,
}


def http_error(
    *,
    status_code: int,
    code: ErrorCode,
    message: str,
    meta: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    """
    Standardized HTTPException factory.
    Frontend should key on `detail.code` for i18n and behavior.
    """
    detail = {
        "code": code.value,
        "message": message,
    }
    if meta:
        detail["meta"] = meta
    return HTTPException(status_code=status_code, detail=detail)


class IdentityError(Exception):
    """
    Base class for structured failures raised by the identity services.

    Carries a taxonomy `kind`, a stable machine `code` and optional `meta`
    with whatever the human needs to correct course (tenant, email, ...).
    """
    kind: ErrorKind = ErrorKind.VALIDATION
    code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: Optional[ErrorCode] = None,
        meta: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.meta = meta or {}

    def to_http(self) -> HTTPException:
        return http_error(
            status_code=KIND_STATUS[self.kind],
            code=self.code,
            message=self.message,
            meta=self.meta,
        )


class ValidationFailed(IdentityError):
    kind = ErrorKind.VALIDATION
    code = ErrorCode.VALIDATION_ERROR


class NotFound(IdentityError):
    kind = ErrorKind.NOT_FOUND
    code = ErrorCode.NOT_FOUND


class Conflict(IdentityError):
    kind = ErrorKind.CONFLICT
    code = ErrorCode.CONFLICT


class AuthFailure(IdentityError):
    kind = ErrorKind.AUTH_FAILURE
    code = ErrorCode.INVALID_CREDENTIALS


class UpstreamUnavailable(IdentityError):
    kind = ErrorKind.UPSTREAM_UNAVAILABLE
    code = ErrorCode.UPSTREAM_UNAVAILABLE


class EmailInUse(Conflict):
    """Raised by an authenticator when the email already has a credential."""
    code = ErrorCode.EMAIL_IN_USE


class InvalidCredentials(AuthFailure):
    """Raised by an authenticator when email/password do not match."""
    code = ErrorCode.INVALID_CREDENTIALS
