import streamlit as st
from typing import Dict
from config import APP_TITLE


class AuthManager:
    """Handles authentication for the dashboards."""

    def __init__(self, secrets=None):
        secrets = st.secrets if secrets is None else secrets
        self.users: Dict[str, str] = {
            str(name).strip(): str(password).strip()
            for name, password in dict(secrets.get("DASHBOARD_USERS", {})).items()
        }
        username = secrets.get("DASHBOARD_USERNAME", "").strip()
        password = secrets.get("DASHBOARD_PASSWORD", "").strip()
        if username and password:
            self.users[username] = password

    def is_auth_enabled(self) -> bool:
        """Check if authentication is enabled."""
        return bool(self.users)

    def require_login(self) -> bool:
        """Require login if authentication is enabled."""
        if not self.is_auth_enabled():
            return True  # Authentication disabled

        if "auth_ok" not in st.session_state:
            st.session_state.auth_ok = False

        if not st.session_state.auth_ok:
            self._render_login_form()
            st.stop()

        return True

    @staticmethod
    def current_user() -> str:
        """Name recorded on inventory transfers."""
        return st.session_state.get("auth_user_name", "") or "Unknown"

    def _render_login_form(self) -> None:
        """Render the login form."""
        st.title(APP_TITLE)

        username_input = st.text_input("Username", key="auth_user")
        password_input = st.text_input("Password", type="password", key="auth_pass")

        if st.button("Login", key="auth_login_btn"):
            if self.validate_credentials(username_input, password_input):
                st.session_state.auth_ok = True
                st.session_state.auth_user_name = username_input.strip()
                st.rerun()
            else:
                st.error("Invalid credentials")

    def validate_credentials(self, username: str, password: str) -> bool:
        """Validate user credentials."""
        expected = self.users.get((username or "").strip())
        return expected is not None and password == expected

    @staticmethod
    def logout() -> None:
        for key in ["auth_ok", "auth_user_name"]:
            st.session_state.pop(key, None)
