"""
Tests for the login / password-reset form controller
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from services.auth_service.errors import AuthError, RemoteError
from services.ui_service.login_form import (
    LOGIN_FALLBACK_ERROR,
    RESET_SUCCESS_MESSAGE,
    FormMode,
    LoginFormController,
)


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(auth_manager, clock):
    return LoginFormController(
        auth_manager=auth_manager,
        password_min_length=6,
        reset_return_delay=2.0,
        clock=clock,
    )


def fill(controller, username="", password="", confirm_password=""):
    controller.update_field("username", username)
    controller.update_field("password", password)
    controller.update_field("confirm_password", confirm_password)


class TestModeToggle:
    """Test switching between sign-in and reset"""

    def test_starts_in_login(self, controller):
        assert controller.mode is FormMode.LOGIN
        assert controller.is_login

    def test_toggle_clears_fields_and_messages(self, controller):
        fill(controller, "admin", "hunter2", "hunter2")
        controller.error = "Invalid username or password"
        generation = controller.generation

        controller.toggle_mode()

        assert controller.mode is FormMode.RESET
        assert controller.username == controller.password == controller.confirm_password == ""
        assert controller.error == ""
        assert controller.generation == generation + 1

    def test_toggle_back(self, controller):
        controller.toggle_mode()
        controller.toggle_mode()

        assert controller.mode is FormMode.LOGIN

    def test_unknown_field(self, controller):
        with pytest.raises(ValueError):
            controller.update_field("email", "x@y.z")

    def test_typing_clears_error(self, controller):
        controller.error = "Username is required"

        controller.update_field("username", "a")

        assert controller.error == ""


class TestValidation:
    """Test client-side checks"""

    def test_login_requires_username(self, controller, users_table):
        fill(controller, "   ", "hunter2")

        assert asyncio.run(controller.submit()) is False
        assert controller.error == "Username is required"
        assert users_table.requests == []

    def test_login_requires_password(self, controller):
        fill(controller, "admin", "")

        assert asyncio.run(controller.submit()) is False
        assert controller.error == "Password is required"

    def test_login_has_no_length_rule(self, controller, users_table):
        users_table.add(username="admin", password="abc")
        fill(controller, "admin", "abc")

        assert asyncio.run(controller.submit()) is True

    def test_reset_requires_new_password(self, controller):
        controller.toggle_mode()
        fill(controller, "admin", "")

        assert controller.validate() is False
        assert controller.error == "New password is required"

    def test_reset_minimum_length(self, controller, users_table):
        controller.toggle_mode()
        fill(controller, "admin", "abc", "abc")

        assert asyncio.run(controller.submit()) is False
        assert controller.error == "Password must be at least 6 characters long"
        assert users_table.requests == []

    def test_reset_passwords_must_match(self, controller):
        controller.toggle_mode()
        fill(controller, "admin", "newpass123", "newpass124")

        assert controller.validate() is False
        assert controller.error == "Passwords do not match"

    def test_reset_valid(self, controller):
        controller.toggle_mode()
        fill(controller, "admin", "newpass123", "newpass123")

        assert controller.validate() is True


class TestLoginSubmit:
    """Test submitting in LOGIN mode"""

    def test_success_calls_callback(self, auth_manager, users_table, clock):
        users_table.add(username="admin", password="hunter2", role="admin")
        on_success = Mock()
        controller = LoginFormController(
            auth_manager=auth_manager, on_login_success=on_success, clock=clock
        )
        fill(controller, "admin", "hunter2")

        assert asyncio.run(controller.submit()) is True

        on_success.assert_called_once()
        session = on_success.call_args[0][0]
        assert session.username == "admin"
        assert controller.authenticated_user == session
        assert controller.loading is False
        assert controller.error == ""

    def test_failure_shows_message(self, controller, users_table):
        users_table.add(username="admin", password="hunter2")
        fill(controller, "admin", "wrong")

        assert asyncio.run(controller.submit()) is False
        assert controller.error == "Invalid username or password"
        assert controller.loading is False
        assert controller.authenticated_user is None

    def test_inactive_message(self, controller, users_table):
        users_table.add(username="admin", password="hunter2", is_active=False)
        fill(controller, "admin", "hunter2")

        asyncio.run(controller.submit())

        assert controller.error == "Account is inactive. Please contact administrator."

    def test_error_without_message_uses_fallback(self, clock):
        manager = Mock()
        manager.login = AsyncMock(side_effect=RemoteError(""))
        controller = LoginFormController(auth_manager=manager, clock=clock)
        fill(controller, "admin", "hunter2")

        asyncio.run(controller.submit())

        assert controller.error == LOGIN_FALLBACK_ERROR

    def test_unexpected_exception_resets_loading(self, clock):
        manager = Mock()
        manager.login = AsyncMock(side_effect=RuntimeError("boom"))
        controller = LoginFormController(auth_manager=manager, clock=clock)
        fill(controller, "admin", "hunter2")

        with pytest.raises(RuntimeError):
            asyncio.run(controller.submit())

        assert controller.loading is False

    def test_submit_ignored_while_loading(self, controller, users_table):
        fill(controller, "admin", "hunter2")
        controller.loading = True

        assert asyncio.run(controller.submit()) is False
        assert users_table.requests == []


class TestResetSubmit:
    """Test submitting in RESET mode"""

    def test_success_then_delayed_return(self, controller, users_table, clock):
        users_table.add(username="admin", password="hunter2")
        controller.toggle_mode()
        fill(controller, "admin", "newpass123", "newpass123")

        assert asyncio.run(controller.submit()) is True
        assert controller.message == RESET_SUCCESS_MESSAGE
        assert controller.mode is FormMode.RESET
        assert controller.has_pending_return
        assert controller.seconds_until_return() == pytest.approx(2.0)

        clock.now += 1.0
        assert controller.poll() is False
        assert controller.mode is FormMode.RESET

        clock.now += 1.0
        assert controller.poll() is True
        assert controller.mode is FormMode.LOGIN
        assert controller.username == controller.password == controller.confirm_password == ""
        assert controller.message == RESET_SUCCESS_MESSAGE
        assert not controller.has_pending_return

    def test_new_password_signs_in(self, controller, users_table, clock):
        users_table.add(username="admin", password="hunter2")
        controller.toggle_mode()
        fill(controller, "admin", "newpass123", "newpass123")
        asyncio.run(controller.submit())
        controller.poll(now=clock.now + 5)

        fill(controller, "admin", "newpass123")

        assert asyncio.run(controller.submit()) is True

    def test_toggle_cancels_pending_return(self, controller, users_table, clock):
        users_table.add(username="admin", password="hunter2")
        controller.toggle_mode()
        fill(controller, "admin", "newpass123", "newpass123")
        asyncio.run(controller.submit())

        controller.toggle_mode()

        assert controller.mode is FormMode.LOGIN
        assert controller.message == ""
        assert controller.poll(now=clock.now + 10) is False

    def test_unknown_user(self, controller):
        controller.toggle_mode()
        fill(controller, "ghost", "newpass123", "newpass123")

        assert asyncio.run(controller.submit()) is False
        assert controller.error == "Invalid username"
        assert controller.message == ""
        assert not controller.has_pending_return

    def test_poll_without_pending_return(self, controller):
        assert controller.poll() is False
        assert controller.seconds_until_return() == 0.0

    def test_auth_error_subclass_is_caught(self, clock):
        manager = Mock()
        manager.forgot_password = AsyncMock(side_effect=AuthError("Failed to update password"))
        controller = LoginFormController(auth_manager=manager, clock=clock)
        controller.toggle_mode()
        fill(controller, "admin", "newpass123", "newpass123")

        assert asyncio.run(controller.submit()) is False
        assert controller.error == "Failed to update password"
