"""
auth/validation.py -- Input policies checked before any identity provider call.

The HTTP request models apply these through pydantic AfterValidator, so a weak
password or malformed code is rejected with 422 and never reaches Cognito.

The password pattern uses lookaheads, which pydantic's Rust regex engine
(Field(pattern=...)) does not support -- hence plain `re` in a validator
function instead of a Field constraint.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import re

PASSWORD_MIN_LENGTH = 8
CODE_LENGTH = 6

# lowercase, uppercase, digit, and one of !@#$%^&*?()-_,=+
_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])(?=.*[!@#$%^&*?()\-_,=+])(?=.{8,})")


def validate_password(value: str) -> str:
    """Return value unchanged if it satisfies the password policy, else raise ValueError."""
    if not value:
        raise ValueError("password should not be empty")
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not _PASSWORD_RE.match(value):
        raise ValueError("password is too weak")
    return value


def validate_code(value: str) -> str:
    """Return value unchanged if it is a 6-character confirmation code, else raise ValueError."""
    if not value:
        raise ValueError("code should not be empty")
    if len(value) != CODE_LENGTH:
        raise ValueError(f"code must be {CODE_LENGTH} characters long")
    return value
