"""
Error taxonomy for the authentication service.

Every failure raised by AuthManager is an AuthError carrying a kind tag and a
human-readable message. UI code displays ``message`` and branches on ``kind``.
"""

from enum import Enum


# Shared by "no such user" and "wrong password" so usernames cannot be probed
INVALID_LOGIN_MESSAGE = "Invalid username or password"
INACTIVE_ACCOUNT_MESSAGE = "Account is inactive. Please contact administrator."
SCHEMA_MISSING_MESSAGE = "Authentication system not initialized. Please contact administrator."


class AuthErrorKind(Enum):
    """Kinds of authentication failures"""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE_ACCOUNT = "inactive_account"
    SCHEMA = "schema"
    DUPLICATE_USER = "duplicate_user"
    REMOTE = "remote"
    UNSUPPORTED = "unsupported"


class AuthError(Exception):
    """Base class for authentication failures"""

    kind: AuthErrorKind = AuthErrorKind.REMOTE

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def is_user_error(self) -> bool:
        """True when the user can recover by changing their input"""
        return self.kind in (
            AuthErrorKind.VALIDATION,
            AuthErrorKind.NOT_FOUND,
            AuthErrorKind.INVALID_CREDENTIALS,
            AuthErrorKind.INACTIVE_ACCOUNT,
            AuthErrorKind.DUPLICATE_USER,
        )


class ValidationError(AuthError):
    """Required input missing or malformed"""
    kind = AuthErrorKind.VALIDATION


class NotFoundError(AuthError):
    """No user row matched"""
    kind = AuthErrorKind.NOT_FOUND


class InvalidCredentialsError(AuthError):
    """Password did not match"""
    kind = AuthErrorKind.INVALID_CREDENTIALS


class InactiveAccountError(AuthError):
    """Account disabled by an administrator"""
    kind = AuthErrorKind.INACTIVE_ACCOUNT


class SchemaError(AuthError):
    """Users table has not been provisioned on the backend"""
    kind = AuthErrorKind.SCHEMA


class DuplicateUserError(AuthError):
    """Username already taken"""
    kind = AuthErrorKind.DUPLICATE_USER


class RemoteError(AuthError):
    """Generic backend failure"""
    kind = AuthErrorKind.REMOTE


class UnsupportedOperationError(AuthError):
    """Flow not available in this deployment"""
    kind = AuthErrorKind.UNSUPPORTED
