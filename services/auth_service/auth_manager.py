"""
Authentication service - handles login, signup, password changes and the client session.

Users live in the managed backend's ``users`` table; the authenticated session is a
record kept in client-side storage. Backend error codes are mapped onto the
AuthError taxonomy here, so callers only ever see an AuthResult or an AuthError.
"""

import logging
from typing import Any, Dict, Optional

from config.app_config import get_config
from services.auth_service.credentials import encode_password, verify_password
from services.auth_service.errors import (
    INACTIVE_ACCOUNT_MESSAGE,
    INVALID_LOGIN_MESSAGE,
    SCHEMA_MISSING_MESSAGE,
    AuthError,
    DuplicateUserError,
    InactiveAccountError,
    InvalidCredentialsError,
    NotFoundError,
    RemoteError,
    SchemaError,
    UnsupportedOperationError,
    ValidationError,
)
from services.auth_service.models import AuthResult, SessionRecord, UserRecord, utc_now_iso
from services.auth_service.session_store import SessionStore, create_storage
from services.auth_service.user_repository import (
    NETWORK_ERROR_CODE,
    NO_ROWS_CODE,
    UserRepository,
    get_user_repository,
)
from utils.logging_config import ErrorTracker, get_error_tracker, get_logger, log_auth_event


class AuthManager:
    """
    Main authentication manager service.
    Handles user authentication, session management, and profile updates.
    """

    def __init__(
        self,
        user_repository: Optional[UserRepository] = None,
        session_store: Optional[SessionStore] = None,
        error_tracker: Optional[ErrorTracker] = None,
    ):
        self.logger = get_logger(__name__)
        self.user_repository = user_repository or get_user_repository()
        if session_store is None:
            auth_config = get_config().auth
            storage = create_storage(auth_config.session_backend, auth_config.session_file_path)
            session_store = SessionStore(storage, auth_config.session_storage_key)
        self.session_store = session_store
        self.error_tracker = error_tracker or get_error_tracker()

    def _fail(self, error: AuthError, context: str, **details) -> AuthError:
        """Record an error before it is raised to the caller"""
        level = logging.WARNING if error.is_user_error else logging.ERROR
        self.error_tracker.track_error(
            error, context, level=level, error_kind=error.kind.value, **details
        )
        return error

    async def login(self, username: str, password: str) -> AuthResult:
        """
        Authenticate user and create session

        Args:
            username: Exact username
            password: Password as typed

        Returns:
            AuthResult with the new session in ``user``

        Raises:
            ValidationError, NotFoundError, SchemaError, RemoteError,
            InactiveAccountError, InvalidCredentialsError
        """
        if not username or not password:
            raise self._fail(ValidationError("Username and password are required"), "login")

        response = await self.user_repository.find_by_username(username)

        if response.error:
            error = response.error
            if error.is_no_rows:
                raise self._fail(NotFoundError(INVALID_LOGIN_MESSAGE, error.code), "login", username=username)
            if error.is_table_missing:
                raise self._fail(SchemaError(SCHEMA_MISSING_MESSAGE, error.code), "login")
            # Anything else still reads as a failed login to the user
            raise self._fail(
                RemoteError(INVALID_LOGIN_MESSAGE, error.code),
                "login",
                backend_message=error.message,
            )

        user = UserRecord.from_row(response.first)

        if not user.is_active:
            raise self._fail(InactiveAccountError(INACTIVE_ACCOUNT_MESSAGE), "login", username=username)

        if not verify_password(password, user.password):
            raise self._fail(InvalidCredentialsError(INVALID_LOGIN_MESSAGE), "login", username=username)

        update = await self.user_repository.update(user.id, {"last_login": utc_now_iso()}, columns="id")
        if update.error:
            # A stale last_login never blocks a login
            self.logger.warning(f"Failed to update last_login for {username}: {update.error.message}")

        session = SessionRecord.from_user(user)
        self.session_store.save(session)

        log_auth_event(self.logger, "login", username=user.username, role=session.role)
        return AuthResult(success=True, user=session, record=user, message="Login successful")

    async def signup(self, username: str, password: str, email: Optional[str] = None) -> AuthResult:
        """
        Register a new user and sign them in

        Args:
            username: Desired username
            password: Password (stored with the legacy encoding)
            email: Contact email

        Returns:
            AuthResult with the new session in ``user``
        """
        if not username or not password:
            raise self._fail(ValidationError("Username and password are required"), "signup")

        existing = await self.user_repository.find_by_username(username, columns="id")
        if existing.ok:
            raise self._fail(DuplicateUserError("Username already exists"), "signup", username=username)
        if existing.error.is_table_missing:
            raise self._fail(SchemaError(SCHEMA_MISSING_MESSAGE, existing.error.code), "signup")

        inserted = await self.user_repository.insert({
            "username": username,
            "password": encode_password(password),
            "email": email,
            "role": "user",
            "created_at": utc_now_iso(),
        })

        if inserted.error:
            raise self._fail(
                RemoteError(inserted.error.message or "Signup failed", inserted.error.code),
                "signup",
                username=username,
            )
        if not inserted.rows:
            raise self._fail(RemoteError("Signup failed"), "signup", username=username)

        user = UserRecord.from_row(inserted.first)
        session = SessionRecord.from_user(user)
        self.session_store.save(session)

        log_auth_event(self.logger, "signup", username=user.username)
        return AuthResult(success=True, user=session, record=user, message="Account created successfully")

    async def forgot_password(self, username: str, new_password: str) -> AuthResult:
        """
        Overwrite a user's password without a reset token

        The new password is stored as plain text. Login still accepts it through
        the plain-text branch of verify_password.

        Returns:
            AuthResult without a session; the user signs in afterwards
        """
        if not username or not new_password:
            raise self._fail(ValidationError("Username and new password are required"), "forgot_password")

        response = await self.user_repository.find_by_username(username, columns="id,username,is_active")

        if response.error:
            error = response.error
            if error.is_no_rows:
                raise self._fail(NotFoundError("Invalid username", error.code), "forgot_password", username=username)
            if error.is_table_missing:
                raise self._fail(SchemaError(SCHEMA_MISSING_MESSAGE, error.code), "forgot_password")
            raise self._fail(RemoteError(error.message or "Invalid username", error.code), "forgot_password")

        user = UserRecord.from_row(response.first)
        if not user.is_active:
            raise self._fail(InactiveAccountError(INACTIVE_ACCOUNT_MESSAGE), "forgot_password", username=username)

        updated = await self.user_repository.update(user.id, {"password": new_password}, columns="id,username")

        if updated.error:
            raise self._fail(
                RemoteError(updated.error.message or "Failed to update password", updated.error.code),
                "forgot_password",
                username=username,
            )
        if not updated.rows:
            raise self._fail(
                NotFoundError("Password update failed. User not found."),
                "forgot_password",
                username=username,
            )

        log_auth_event(self.logger, "password_updated", username=username)
        return AuthResult(success=True, message="Password updated successfully")

    async def reset_password(self, token: Optional[str] = None, new_password: Optional[str] = None) -> AuthResult:
        """Token-based password reset; no token flow is deployed yet"""
        raise self._fail(
            UnsupportedOperationError("Password reset with token not implemented in this example"),
            "reset_password",
        )

    def logout(self) -> AuthResult:
        """
        Logout current user

        Returns:
            AuthResult; always successful, safe to repeat
        """
        session = self.session_store.load()
        self.session_store.clear()
        log_auth_event(self.logger, "logout", username=session.username if session else None)
        return AuthResult(success=True, message="Logged out successfully")

    def get_current_user(self) -> Optional[SessionRecord]:
        """
        Get the stored session

        Returns:
            SessionRecord if a valid session is stored, None otherwise
        """
        return self.session_store.load()

    def is_authenticated(self) -> bool:
        """
        Local-only authentication check

        Does not consult the backend, so an account deactivated after login
        stays authenticated here until the session is cleared.
        """
        session = self.get_current_user()
        return session is not None and session.isAuthenticated is True

    async def update_user(self, user_id: Any, updates: Dict[str, Any]) -> AuthResult:
        """
        Update a user row and keep the local session in step

        Args:
            user_id: Backend id of the row
            updates: Column values to write

        Returns:
            AuthResult with the updated row in ``record`` and, when the row belongs
            to the signed-in user, the merged session in ``user``
        """
        response = await self.user_repository.update(user_id, updates)

        if response.error:
            raise self._fail(
                RemoteError(response.error.message or "Failed to update user", response.error.code),
                "update_user",
                user_id=user_id,
            )

        if not response.rows:
            raise self._fail(
                NotFoundError("Failed to update user", NO_ROWS_CODE),
                "update_user",
                user_id=user_id,
            )

        record = UserRecord.from_row(response.first)

        session = self.session_store.load()
        if session and session.id == user_id:
            session = session.merged(updates)
            self.session_store.save(session)
        else:
            session = None

        log_auth_event(self.logger, "profile_updated", user_id=user_id, fields=sorted(updates))
        return AuthResult(success=True, record=record, user=session, message="User updated successfully")

    async def initialize_auth_table(self) -> bool:
        """
        Check that the users table exists on the backend

        Returns:
            False if the table is missing or the backend is unreachable, True otherwise
        """
        response = await self.user_repository.probe()

        if response.error and response.error.is_table_missing:
            self.logger.error(
                "Users table does not exist. Please create it in the Supabase dashboard."
            )
            return False

        if response.error and response.error.code == NETWORK_ERROR_CODE:
            self.logger.error(f"Error checking users table: {response.error.message}")
            return False

        return True


# Global authentication service instance
_auth_manager: Optional[AuthManager] = None


def get_auth_manager() -> AuthManager:
    """Get the global authentication manager service instance"""
    global _auth_manager
    if _auth_manager is None:
        _auth_manager = AuthManager()
    return _auth_manager
