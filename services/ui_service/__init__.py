"""
UI service - handles the sign-in form and its interactions.
"""

from .login_form import FormMode, LoginFormController, render_login_form

__all__ = [
    'FormMode',
    'LoginFormController',
    'render_login_form'
]
