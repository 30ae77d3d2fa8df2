"""
Login / password-reset form.

LoginFormController holds the form state machine (LOGIN <-> RESET) and is free of
Streamlit so it can be driven from tests; render_login_form draws it with Streamlit.
"""

import asyncio
import time
from enum import Enum
from typing import Callable, Optional

import streamlit as st

from config.app_config import get_config
from services.auth_service.auth_manager import AuthManager, get_auth_manager
from services.auth_service.errors import AuthError
from services.auth_service.models import SessionRecord
from utils.logging_config import get_logger, log_user_interaction


RESET_SUCCESS_MESSAGE = "Password updated successfully! You can now login with your new password."
LOGIN_FALLBACK_ERROR = "Login failed. Please try again."
RESET_FALLBACK_ERROR = "Failed to update password. Please try again."


class FormMode(Enum):
    """Form modes"""
    LOGIN = "login"
    RESET = "reset"


class LoginFormController:
    """
    State machine behind the sign-in form.

    LOGIN --submit ok--> on_login_success(session)
    LOGIN --toggle--> RESET
    RESET --submit ok--> LOGIN, after reset_return_delay seconds (via poll)
    RESET --toggle--> LOGIN

    Toggling clears messages and fields. The delayed return after a reset
    clears the fields but keeps the success message on screen.
    """

    def __init__(
        self,
        auth_manager: Optional[AuthManager] = None,
        on_login_success: Optional[Callable[[SessionRecord], None]] = None,
        password_min_length: Optional[int] = None,
        reset_return_delay: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        auth_config = get_config().auth
        self.auth_manager = auth_manager or get_auth_manager()
        self.on_login_success = on_login_success
        self.password_min_length = password_min_length or auth_config.password_min_length
        self.reset_return_delay = (
            reset_return_delay if reset_return_delay is not None else auth_config.reset_return_delay_seconds
        )
        self.clock = clock
        self.logger = get_logger(__name__)

        self.mode = FormMode.LOGIN
        self.username = ""
        self.password = ""
        self.confirm_password = ""
        self.loading = False
        self.error = ""
        self.message = ""
        self.authenticated_user: Optional[SessionRecord] = None
        # Bumped whenever the fields are reset so widgets can be re-keyed
        self.generation = 0
        self._return_at: Optional[float] = None

    @property
    def is_login(self) -> bool:
        return self.mode is FormMode.LOGIN

    @property
    def has_pending_return(self) -> bool:
        return self._return_at is not None

    def seconds_until_return(self) -> float:
        if self._return_at is None:
            return 0.0
        return max(0.0, self._return_at - self.clock())

    def _reset_fields(self):
        self.username = ""
        self.password = ""
        self.confirm_password = ""
        self.generation += 1

    def update_field(self, name: str, value: str):
        """Set one of username, password, confirm_password; clears any displayed message"""
        if name not in ("username", "password", "confirm_password"):
            raise ValueError(f"Unknown form field: {name}")
        setattr(self, name, value)
        self.error = ""
        self.message = ""

    def toggle_mode(self):
        """Switch between sign-in and password-reset"""
        self.mode = FormMode.RESET if self.is_login else FormMode.LOGIN
        self.error = ""
        self.message = ""
        self._return_at = None
        self._reset_fields()
        log_user_interaction(self.logger, "toggle_mode", mode=self.mode.value)

    def validate(self) -> bool:
        """Check the fields for the current mode, setting ``error`` on failure"""
        if not self.username.strip():
            self.error = "Username is required"
            return False

        if self.is_login:
            if not self.password:
                self.error = "Password is required"
                return False
            return True

        if not self.password:
            self.error = "New password is required"
            return False
        if len(self.password) < self.password_min_length:
            self.error = f"Password must be at least {self.password_min_length} characters long"
            return False
        if self.password != self.confirm_password:
            self.error = "Passwords do not match"
            return False
        return True

    async def submit(self) -> bool:
        """
        Submit the form for the current mode

        Returns:
            True if the login or password update succeeded
        """
        if self.loading:
            # A request is already in flight
            return False

        if not self.validate():
            return False

        self.loading = True
        self.error = ""
        self.message = ""
        log_user_interaction(self.logger, "submit", mode=self.mode.value, username=self.username)

        try:
            if self.is_login:
                return await self._submit_login()
            return await self._submit_reset()
        finally:
            self.loading = False

    async def _submit_login(self) -> bool:
        try:
            result = await self.auth_manager.login(self.username, self.password)
        except AuthError as e:
            self.error = e.message or LOGIN_FALLBACK_ERROR
            return False

        self.authenticated_user = result.user
        if self.on_login_success:
            self.on_login_success(result.user)
        return True

    async def _submit_reset(self) -> bool:
        try:
            await self.auth_manager.forgot_password(self.username, self.password)
        except AuthError as e:
            self.error = e.message or RESET_FALLBACK_ERROR
            return False

        self.message = RESET_SUCCESS_MESSAGE
        self._return_at = self.clock() + self.reset_return_delay
        return True

    def poll(self, now: Optional[float] = None) -> bool:
        """
        Apply the delayed return to sign-in once it is due

        Returns:
            True if the form switched back to LOGIN
        """
        if self._return_at is None:
            return False
        if (now if now is not None else self.clock()) < self._return_at:
            return False

        self._return_at = None
        self.mode = FormMode.LOGIN
        self._reset_fields()
        return True


def render_login_form(controller: LoginFormController):
    """Render the sign-in / password-reset form for a controller"""
    ui = get_config().ui
    controller.poll()

    st.markdown(f"<h3 style='text-align: center;'>🏥 {ui.app_title}</h3>", unsafe_allow_html=True)

    if controller.is_login:
        st.title(f"🛡️ {ui.login_heading}")
        st.caption(ui.login_subtitle)
    else:
        st.title(f"🔑 {ui.reset_heading}")
        st.caption(ui.reset_subtitle)

    if controller.error:
        st.error(controller.error)

    if controller.message:
        st.success(controller.message)

    form_key = f"auth_form_{controller.mode.value}_{controller.generation}"
    with st.form(form_key):
        username = st.text_input("👤 Username", placeholder="Enter your username")
        password = st.text_input(
            "🔒 Password" if controller.is_login else "🔒 New Password",
            type="password",
            placeholder="Enter your password" if controller.is_login else "Enter new password",
        )
        confirm_password = ""
        if not controller.is_login:
            confirm_password = st.text_input(
                "🔒 Confirm New Password", type="password", placeholder="Confirm new password"
            )

        submitted = st.form_submit_button(
            "Sign In" if controller.is_login else "Update Password",
            type="primary",
            use_container_width=True,
            disabled=controller.loading,
        )

    if submitted:
        controller.update_field("username", username)
        controller.update_field("password", password)
        controller.update_field("confirm_password", confirm_password)

        with st.spinner("Signing in..." if controller.is_login else "Updating..."):
            asyncio.run(controller.submit())
        st.rerun()

    if st.button(
        "Forgot your password?" if controller.is_login else "Back to sign in",
        key=f"toggle_{controller.generation}",
    ):
        controller.toggle_mode()
        st.rerun()

    if controller.has_pending_return:
        # Leave the success message up, then return to sign-in
        time.sleep(controller.seconds_until_return())
        controller.poll()
        st.rerun()
