"""
auth/messages.py -- User-facing message catalogue for auth failures.

Every message a client may display lives here, keyed either by error kind or,
for password reset, by the identity provider's error name. Provider messages
are diagnostic only and never shown in place of these strings.

Layer rule: no imports from api/.
"""

from __future__ import annotations

DUPLICATE_USER = "A user associated with this email already exists"
SIGNUP_FAILED = "An error occurred while signing up the user"
CONFIRMATION_FAILED = "An error occurred while confirming the user"
LOGIN_FAILED = "Incorrect email or password"
SETUP_MFA_FAILED = "An error occurred while setting up MFA"
INVALID_CODE = "Invalid code, please try again"
SESSION_EXPIRED = "Session expired, please try again"
RESEND_FAILED = "An error occurred while resending the confirmation code"

# ---------------------------------------------------------------------------
# Password reset -- message chosen by provider error name
# ---------------------------------------------------------------------------

CONFIRM_FORGOT_PASSWORD_GENERAL = "An error occurred while resetting the password"

_CONFIRM_FORGOT_PASSWORD_MESSAGES: dict[str, str] = {
    "CodeMismatchException": "Invalid verification code, please try again",
    "ExpiredCodeException": "Verification code has expired, please request a new one",
    "InvalidPasswordException": "Password does not meet the password policy",
    "LimitExceededException": "Attempt limit exceeded, please try again later",
    "TooManyFailedAttemptsException": "Too many failed attempts, please try again later",
    "UserNotFoundException": "No account is associated with this email",
}


def confirm_forgot_password_message(error_name: str | None) -> str:
    """Return the reset-password failure message for a provider error name."""
    if not error_name:
        return CONFIRM_FORGOT_PASSWORD_GENERAL
    return _CONFIRM_FORGOT_PASSWORD_MESSAGES.get(error_name, CONFIRM_FORGOT_PASSWORD_GENERAL)
