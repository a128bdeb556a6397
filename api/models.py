"""
API request and response models for AuthGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Input policies (password strength, 6-character codes) are applied here through
AfterValidator, so invalid input is rejected with 422 before any identity
provider call is made.
"""

from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

from auth.models import AuthenticationResult, LoginResult, VerificationResult
from auth.validation import validate_code, validate_password

# ---------------------------------------------------------------------------
# Field types
# ---------------------------------------------------------------------------

_Email = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
_Password = Annotated[str, Field(max_length=256), AfterValidator(validate_password)]
_Code = Annotated[str, Field(max_length=64), AfterValidator(validate_code)]
_Session = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=4096)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/v1/auth/signup."""

    email: _Email
    password: _Password


class ConfirmSignupRequest(BaseModel):
    email: _Email
    code: _Code


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    The password is only checked for presence -- accounts created before a
    policy change must still be able to log in. Only the email is trimmed.
    """

    email: _Email
    password: str = Field(min_length=1, max_length=256)


class SetupMFARequest(BaseModel):
    session: _Session
    code: _Code


class ConfirmLoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/confirm-login.

    Email and session are trimmed; the code is taken as sent and must be
    exactly 6 characters.
    """

    email: _Email
    session: _Session
    code: _Code


class EmailOnlyRequest(BaseModel):
    """Request body for resend-confirmation-code and forgot-password."""

    email: _Email


class ResetPasswordRequest(BaseModel):
    email: _Email
    code: _Code
    password: _Password


class RefreshTokenRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    refresh_token: str = Field(min_length=1, max_length=8192)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class TokenResponse(BaseModel):
    """Tokens issued by the identity provider."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: Optional[str] = None

    @classmethod
    def from_result(cls, result: AuthenticationResult) -> "TokenResponse":
        return cls(
            access_token=result.access_token,
            id_token=result.id_token,
            refresh_token=result.refresh_token,
            expires_in=result.expires_in,
            token_type=result.token_type,
        )


class LoginResponse(BaseModel):
    """Response for POST /api/v1/auth/login.

    Serialized with exclude_none, so a NEW_PASSWORD_REQUIRED challenge renders
    as {challenge_name, session} only.
    """

    model_config = ConfigDict(frozen=True)

    challenge_name: Optional[str] = None
    session: Optional[str] = None
    secret_code: Optional[str] = None
    authentication_result: Optional[TokenResponse] = None

    @classmethod
    def from_result(cls, result: LoginResult) -> "LoginResponse":
        tokens = result.authentication_result
        return cls(
            challenge_name=result.challenge_name,
            session=result.session,
            secret_code=result.secret_code,
            authentication_result=TokenResponse.from_result(tokens) if tokens else None,
        )


class VerificationResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Optional[str] = None
    session: Optional[str] = None

    @classmethod
    def from_result(cls, result: VerificationResult) -> "VerificationResponse":
        return cls(status=result.status, session=result.session)


class ErrorDetail(BaseModel):
    """Machine-readable error payload.

    name is set when the caller may need to branch on the identity provider's
    error name (e.g. CodeMismatchException vs NotAuthorizedException).
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    name: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
