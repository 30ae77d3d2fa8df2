import asyncio

import streamlit as st

from config.app_config import get_config
from services.auth_service.auth_manager import AuthManager
from services.auth_service.session_store import SessionStore, create_storage
from services.ui_service.login_form import LoginFormController, render_login_form
from utils.logging_config import initialize_logging, get_logger, log_user_interaction

# Initialize logging and error tracking
error_tracker = initialize_logging()
logger = get_logger(__name__)

# Get configuration
config = get_config()

st.set_page_config(page_title=config.ui.app_title, page_icon="🏥", layout="centered")


def get_auth() -> AuthManager:
    """AuthManager bound to this browser session's storage"""
    if "auth_manager" not in st.session_state:
        storage = create_storage(config.auth.session_backend, config.auth.session_file_path)
        st.session_state.auth_manager = AuthManager(
            session_store=SessionStore(storage, config.auth.session_storage_key),
            error_tracker=error_tracker,
        )
    return st.session_state.auth_manager


def get_login_controller(auth: AuthManager) -> LoginFormController:
    if "login_controller" not in st.session_state:
        st.session_state.login_controller = LoginFormController(auth_manager=auth)
    return st.session_state.login_controller


def check_backend(auth: AuthManager):
    """Warn once per browser session if the users table is missing"""
    if "users_table_ok" not in st.session_state:
        st.session_state.users_table_ok = asyncio.run(auth.initialize_auth_table())
    if not st.session_state.users_table_ok:
        st.warning("⚠️ The users table was not found on the backend. Sign-in will fail until an administrator creates it.")


def render_user_menu(auth: AuthManager):
    """Render user menu in sidebar"""
    session = auth.get_current_user()
    if not session:
        return

    with st.sidebar:
        st.subheader("👤 User Account")
        st.write(f"**Welcome, {session.username}!**")
        st.write(f"Role: {(session.role or 'user').title()}")
        if session.email:
            st.caption(session.email)

        if st.button("🚪 Logout", use_container_width=True):
            auth.logout()
            log_user_interaction(logger, "logout", username=session.username)
            st.session_state.pop("login_controller", None)
            st.rerun()


def main_app(auth: AuthManager):
    """Console landing page (protected by authentication)"""
    session = auth.get_current_user()
    st.title(f"🏥 {config.ui.app_title}")
    st.write(f"Signed in as **{session.username}** ({session.role}).")
    if session.role == "admin":
        st.info("Administrator access: hospitals, sponsors, appointments and notifications are managed from this console.")


auth = get_auth()
check_backend(auth)

if auth.is_authenticated():
    render_user_menu(auth)
    main_app(auth)
else:
    render_login_form(get_login_controller(auth))
