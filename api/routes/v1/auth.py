"""
api/routes/v1/auth.py -- Authentication flow REST endpoints.

Routes:
  POST /api/v1/auth/signup                    -- create account; 201
  POST /api/v1/auth/confirm-signup            -- verify signup code
  POST /api/v1/auth/login                     -- password login; returns challenge or tokens
  POST /api/v1/auth/setup-mfa                 -- verify first authenticator code
  POST /api/v1/auth/confirm-login             -- answer SOFTWARE_TOKEN_MFA challenge; returns tokens
  POST /api/v1/auth/resend-confirmation-code  -- send a new signup code
  POST /api/v1/auth/forgot-password           -- send a password reset code
  POST /api/v1/auth/reset-password            -- set a new password with the reset code
  POST /api/v1/auth/refresh-token             -- exchange a refresh token for new tokens

All routes are public: they are how a client obtains credentials in the first
place. Handlers only parse the body, call the coordinator and shape the
response. AuthFlowError and ProviderError are rendered by the exception
handlers in api/main.py.

Security:
  Credential-bearing routes (login, confirm-login, reset-password) are
  rate-limited per IP with LOGIN_RATE_LIMIT.
  Responses that carry sessions or tokens set Cache-Control: no-store.
  Handlers are plain `def`: the coordinator does blocking I/O (boto3,
  SQLAlchemy), so FastAPI runs them in its thread pool.
  No `from __future__ import annotations` here: FastAPI resolves the
  annotations of the @limiter.limit wrappers, which live in slowapi.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    ConfirmLoginRequest,
    ConfirmSignupRequest,
    EmailOnlyRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshTokenRequest,
    ResetPasswordRequest,
    SetupMFARequest,
    SignupRequest,
    TokenResponse,
    VerificationResponse,
)
from auth.coordinator import AuthFlowCoordinator
from auth.dependencies import get_coordinator
from auth.models import AuthenticationResult
from core.config import get_settings

router = APIRouter()

_LOGIN_LIMIT = get_settings().login_rate_limit


# ---------------------------------------------------------------------------
# Signup
# ---------------------------------------------------------------------------


@router.post("/auth/signup", response_model=MessageResponse, status_code=201)
def signup(body: SignupRequest, coordinator: AuthFlowCoordinator = Depends(get_coordinator)) -> MessageResponse:
    """Create the identity provider account and the local user record."""
    coordinator.signup(body.email, body.password)
    return MessageResponse(message="User created. Check your email for the confirmation code.")


@router.post("/auth/confirm-signup", response_model=MessageResponse)
def confirm_signup(
    body: ConfirmSignupRequest,
    coordinator: AuthFlowCoordinator = Depends(get_coordinator),
) -> MessageResponse:
    coordinator.confirm_signup(body.email, body.code)
    return MessageResponse(message="User confirmed.")


@router.post("/auth/resend-confirmation-code", response_model=MessageResponse)
def resend_confirmation_code(
    body: EmailOnlyRequest,
    coordinator: AuthFlowCoordinator = Depends(get_coordinator),
) -> MessageResponse:
    coordinator.resend_confirmation_code(body.email)
    return MessageResponse(message="Confirmation code sent.")


# ---------------------------------------------------------------------------
# Login and MFA
# ---------------------------------------------------------------------------


@router.post("/auth/login", response_model=LoginResponse, response_model_exclude_none=True)
@limiter.limit(_LOGIN_LIMIT)  # below @router so the registered endpoint is the limiting wrapper
def login(
    request: Request,
    body: LoginRequest,
    coordinator: AuthFlowCoordinator = Depends(get_coordinator),
) -> JSONResponse:
    """Start a password login.

    The body holds either a challenge to answer (challenge_name + session,
    plus secret_code for MFA_SETUP) or, when no challenge was raised, the
    issued tokens under authentication_result. Absent fields are omitted.
    """
    result = coordinator.login(body.email, body.password)
    return _no_store(LoginResponse.from_result(result).model_dump(exclude_none=True))


@router.post("/auth/setup-mfa", response_model=VerificationResponse, response_model_exclude_none=True)
def setup_mfa(
    body: SetupMFARequest,
    coordinator: AuthFlowCoordinator = Depends(get_coordinator),
) -> JSONResponse:
    result = coordinator.setup_mfa(body.session, body.code)
    return _no_store(VerificationResponse.from_result(result).model_dump(exclude_none=True))


@router.post("/auth/confirm-login", response_model=TokenResponse, response_model_exclude_none=True)
@limiter.limit(_LOGIN_LIMIT)
def confirm_login(
    request: Request,
    body: ConfirmLoginRequest,
    coordinator: AuthFlowCoordinator = Depends(get_coordinator),
) -> JSONResponse:
    """Answer the SOFTWARE_TOKEN_MFA challenge from /auth/login and return tokens."""
    result = coordinator.confirm_login(body.email, body.session, body.code)
    return _token_response(result)


# ---------------------------------------------------------------------------
# Password reset and refresh
# ---------------------------------------------------------------------------


@router.post("/auth/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: EmailOnlyRequest,
    coordinator: AuthFlowCoordinator = Depends(get_coordinator),
) -> MessageResponse:
    coordinator.forgot_password(body.email)
    return MessageResponse(message="Password reset code sent.")


@router.post("/auth/reset-password", response_model=MessageResponse)
@limiter.limit(_LOGIN_LIMIT)
def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    coordinator: AuthFlowCoordinator = Depends(get_coordinator),
) -> MessageResponse:
    coordinator.reset_password(body.email, body.code, body.password)
    return MessageResponse(message="Password has been reset.")


@router.post("/auth/refresh-token", response_model=TokenResponse, response_model_exclude_none=True)
def refresh_token(
    body: RefreshTokenRequest,
    coordinator: AuthFlowCoordinator = Depends(get_coordinator),
) -> JSONResponse:
    result = coordinator.refresh_token(body.refresh_token)
    return _token_response(result)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _no_store(content: dict) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=content)
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _token_response(result: AuthenticationResult | None) -> JSONResponse:
    if result is None:
        # Provider answered without tokens -- e.g. it raised a further challenge
        # this gateway does not support.
        return JSONResponse(
            status_code=502,
            content={"error": {"code": "no_tokens", "message": "The identity provider did not issue tokens."}},
        )
    return _no_store(TokenResponse.from_result(result).model_dump(exclude_none=True))
