"""
auth/provider.py -- Identity provider capability and its AWS Cognito adapter.

Pattern: Port + Adapter. IdentityProvider is the capability the coordinator
depends on; CognitoIdentityProvider implements it over a boto3 `cognito-idp`
client. Tests substitute an in-memory double with the same method set.

Error translation:
  botocore ClientError (the service answered with an error) becomes
  ProviderError(name=<Cognito error code>, message=<Cognito message>). The
  coordinator branches on the name only, never on botocore types.

  Transport-level failures (EndpointConnectionError, ReadTimeoutError, ...) are
  NOT translated. They are infrastructure faults, not auth outcomes, and
  propagate to the API's generic 500 handler. Timeouts and connection pooling
  are whatever botocore is configured with; this module adds no retries.

Resource lifetime:
  One client per process, created by from_settings() in the API lifespan and
  released by close() on shutdown. boto3 clients are thread-safe, so the
  synchronous route handlers running in FastAPI's thread pool share it.

Secrets: passwords, codes, sessions and tokens are never logged here.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import boto3
from botocore.exceptions import ClientError

from auth.errors import ProviderError
from auth.models import (
    AuthChallenge,
    AuthenticationResult,
    ChallengeName,
    MFAAssociation,
    SignupResult,
    VerificationResult,
)

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("authgate.auth.cognito")


# ---------------------------------------------------------------------------
# Capability
# ---------------------------------------------------------------------------


class IdentityProvider(Protocol):
    """Operations the coordinator needs from the identity provider.

    Every method raises ProviderError when the provider rejects the request.
    """

    def create_account(self, email: str, password: str) -> SignupResult: ...

    def confirm_account(self, email: str, code: str) -> None: ...

    def authenticate(self, email: str, password: str) -> AuthChallenge: ...

    def associate_mfa(self, session: str) -> MFAAssociation: ...

    def verify_mfa(self, session: str, code: str) -> VerificationResult: ...

    def respond_to_challenge(self, email: str, session: str, code: str) -> AuthenticationResult | None: ...

    def resend_code(self, email: str) -> None: ...

    def initiate_password_reset(self, email: str) -> None: ...

    def confirm_password_reset(self, email: str, code: str, new_password: str) -> None: ...

    def refresh(self, refresh_token: str) -> AuthenticationResult | None: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Cognito adapter
# ---------------------------------------------------------------------------


class CognitoIdentityProvider:
    """IdentityProvider backed by an AWS Cognito user pool app client.

    Usage:
        provider = CognitoIdentityProvider.from_settings(get_settings())
        result = provider.create_account("a@example.com", "Abc123!@")
        provider.close()
    """

    def __init__(self, client: Any, client_id: str, domain: str = "") -> None:
        self._client = client
        self.client_id = client_id
        self.domain = domain

    @classmethod
    def from_settings(cls, settings: Settings) -> CognitoIdentityProvider:
        """Build the boto3 client from COGNITO_* settings."""
        client = boto3.client(
            "cognito-idp",
            region_name=settings.cognito_region,
            aws_access_key_id=settings.cognito_access_key_id,
            aws_secret_access_key=settings.cognito_secret_access_key,
        )
        logger.info("Cognito client created (region=%s)", settings.cognito_region)
        return cls(client, settings.cognito_client_id, settings.cognito_domain)

    @property
    def hosted_ui_url(self) -> str:
        """Base URL of the user pool's hosted UI, or "" when no domain is configured."""
        if not self.domain:
            return ""
        if self.domain.startswith(("https://", "http://")):
            return self.domain.rstrip("/")
        return f"https://{self.domain.rstrip('/')}"

    def _call(self, operation: str, **params: Any) -> dict:
        """Invoke one Cognito API operation, translating service errors."""
        logger.debug("cognito-idp %s", operation)
        try:
            return getattr(self._client, operation)(**params)
        except ClientError as exc:
            error = exc.response.get("Error", {})
            name = error.get("Code", "UnknownError")
            logger.info("cognito-idp %s failed: %s", operation, name)
            raise ProviderError(name, error.get("Message", "")) from exc

    # ------------------------------------------------------------------
    # Signup
    # ------------------------------------------------------------------

    def create_account(self, email: str, password: str) -> SignupResult:
        resp = self._call("sign_up", ClientId=self.client_id, Username=email, Password=password)
        return SignupResult(user_sub=resp["UserSub"], user_confirmed=bool(resp.get("UserConfirmed", False)))

    def confirm_account(self, email: str, code: str) -> None:
        self._call("confirm_sign_up", ClientId=self.client_id, Username=email, ConfirmationCode=code)

    def resend_code(self, email: str) -> None:
        self._call("resend_confirmation_code", ClientId=self.client_id, Username=email)

    # ------------------------------------------------------------------
    # Login and MFA
    # ------------------------------------------------------------------

    def authenticate(self, email: str, password: str) -> AuthChallenge:
        resp = self._call(
            "initiate_auth",
            AuthFlow="USER_PASSWORD_AUTH",
            ClientId=self.client_id,
            AuthParameters={"USERNAME": email, "PASSWORD": password},
        )
        return AuthChallenge(
            challenge_name=resp.get("ChallengeName"),
            session=resp.get("Session"),
            authentication_result=_to_authentication_result(resp.get("AuthenticationResult")),
        )

    def associate_mfa(self, session: str) -> MFAAssociation:
        resp = self._call("associate_software_token", Session=session)
        return MFAAssociation(secret_code=resp["SecretCode"], session=resp.get("Session"))

    def verify_mfa(self, session: str, code: str) -> VerificationResult:
        resp = self._call("verify_software_token", Session=session, UserCode=code)
        return VerificationResult(status=resp.get("Status"), session=resp.get("Session"))

    def respond_to_challenge(self, email: str, session: str, code: str) -> AuthenticationResult | None:
        resp = self._call(
            "respond_to_auth_challenge",
            ClientId=self.client_id,
            ChallengeName=ChallengeName.SOFTWARE_TOKEN_MFA.value,
            Session=session,
            ChallengeResponses={"USERNAME": email, "SOFTWARE_TOKEN_MFA_CODE": code},
        )
        return _to_authentication_result(resp.get("AuthenticationResult"))

    # ------------------------------------------------------------------
    # Password reset and refresh
    # ------------------------------------------------------------------

    def initiate_password_reset(self, email: str) -> None:
        self._call("forgot_password", ClientId=self.client_id, Username=email)

    def confirm_password_reset(self, email: str, code: str, new_password: str) -> None:
        self._call(
            "confirm_forgot_password",
            ClientId=self.client_id,
            Username=email,
            ConfirmationCode=code,
            Password=new_password,
        )

    def refresh(self, refresh_token: str) -> AuthenticationResult | None:
        resp = self._call(
            "initiate_auth",
            AuthFlow="REFRESH_TOKEN_AUTH",
            ClientId=self.client_id,
            AuthParameters={"REFRESH_TOKEN": refresh_token},
        )
        return _to_authentication_result(resp.get("AuthenticationResult"))

    def close(self) -> None:
        self._client.close()
        logger.info("Cognito client closed")


# ---------------------------------------------------------------------------
# Response mappers
# ---------------------------------------------------------------------------


def _to_authentication_result(raw: dict | None) -> AuthenticationResult | None:
    if not raw:
        return None
    return AuthenticationResult(
        access_token=raw["AccessToken"],
        id_token=raw.get("IdToken"),
        refresh_token=raw.get("RefreshToken"),
        expires_in=raw.get("ExpiresIn"),
        token_type=raw.get("TokenType"),
    )
