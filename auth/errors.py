"""
auth/errors.py -- Error taxonomy for the authentication flows.

Two exception types cover every failure the coordinator can produce:

  AuthFlowError  -- a caller-facing failure tagged with an AuthErrorKind. The
                    kind fixes the user message and HTTP status; detail holds
                    the provider's diagnostic text and name the provider's
                    error name when callers need to branch on it.

  ProviderError  -- the identity provider's own error (name + message), raised
                    by the adapter. When the coordinator does not reclassify a
                    failure, this is what the caller sees, unchanged.

One tagged exception instead of a subclass per flow keeps dispatch a single
`except AuthFlowError` plus a lookup on `.kind`.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from enum import Enum

from auth import messages


class AuthErrorKind(str, Enum):
    DUPLICATE_USER = "duplicate_user"
    SIGNUP_FAILED = "signup_failed"
    CONFIRMATION_FAILED = "confirmation_failed"
    LOGIN_FAILED = "login_failed"
    SETUP_MFA_FAILED = "setup_mfa_failed"
    INVALID_CODE = "invalid_code"
    SESSION_EXPIRED = "session_expired"
    RESEND_FAILED = "resend_failed"
    CONFIRM_FORGOT_PASSWORD_FAILED = "confirm_forgot_password_failed"

    @property
    def message(self) -> str:
        return _DEFAULT_MESSAGES[self]

    @property
    def status_code(self) -> int:
        return 409 if self is AuthErrorKind.DUPLICATE_USER else 400


_DEFAULT_MESSAGES: dict[AuthErrorKind, str] = {
    AuthErrorKind.DUPLICATE_USER: messages.DUPLICATE_USER,
    AuthErrorKind.SIGNUP_FAILED: messages.SIGNUP_FAILED,
    AuthErrorKind.CONFIRMATION_FAILED: messages.CONFIRMATION_FAILED,
    AuthErrorKind.LOGIN_FAILED: messages.LOGIN_FAILED,
    AuthErrorKind.SETUP_MFA_FAILED: messages.SETUP_MFA_FAILED,
    AuthErrorKind.INVALID_CODE: messages.INVALID_CODE,
    AuthErrorKind.SESSION_EXPIRED: messages.SESSION_EXPIRED,
    AuthErrorKind.RESEND_FAILED: messages.RESEND_FAILED,
    AuthErrorKind.CONFIRM_FORGOT_PASSWORD_FAILED: messages.CONFIRM_FORGOT_PASSWORD_GENERAL,
}


class AuthFlowError(Exception):
    """A named, caller-facing failure of one authentication flow.

    Attributes:
        kind:    AuthErrorKind -- what failed.
        message: User-facing text. Defaults to the kind's fixed message.
        detail:  Optional diagnostic text (usually the provider's message).
                 Safe to log and return, never used as the user message.
        name:    Optional provider error name, e.g. "CodeMismatchException".
    """

    def __init__(
        self,
        kind: AuthErrorKind,
        *,
        detail: str | None = None,
        name: str | None = None,
        message: str | None = None,
    ) -> None:
        self.kind = kind
        self.message = message or kind.message
        self.detail = detail
        self.name = name
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def __repr__(self) -> str:
        return f"AuthFlowError(kind={self.kind.value!r}, name={self.name!r}, detail={self.detail!r})"


class ProviderError(Exception):
    """An error reported by the identity provider.

    name is the provider's error code (e.g. "NotAuthorizedException"), message
    its human-readable text.
    """

    def __init__(self, name: str, message: str = "") -> None:
        self.name = name
        self.message = message
        super().__init__(f"{name}: {message}" if message else name)
