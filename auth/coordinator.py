"""
auth/coordinator.py -- Authentication flow coordinator.

AuthFlowCoordinator turns one local request into (at most two) identity
provider calls, interprets the outcome, and keeps the local UserRecord's
registration step in step with the provider.

It holds no state between calls. The multi-step challenge state machine
(new password, MFA setup, MFA verification) belongs to the identity provider;
the session token it issues is the only continuation handle, and the caller
carries it from one request to the next.

Error policy:
  - Each flow catches ProviderError at the call site and either reclassifies
    it into an AuthFlowError kind or lets it propagate unchanged
    (forgot_password, refresh_token, unmatched confirm_login names).
  - No retries. A transient provider failure surfaces immediately.
  - No rollback. When the provider accepts a change but the local write fails,
    the divergence is logged at ERROR with the email (and subject when known)
    so it can be reconciled by hand.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import AuthErrorKind, AuthFlowError, ProviderError
from auth.messages import confirm_forgot_password_message
from auth.models import (
    AuthenticationResult,
    ChallengeName,
    LoginResult,
    RegistrationStep,
    UserRecord,
    VerificationResult,
)
from auth.provider import IdentityProvider
from auth.store import UserStore

logger = logging.getLogger("authgate.auth")

# Provider error names that mean "the MFA code was wrong" on confirm_login.
_CODE_MISMATCH_ERRORS = frozenset({"CodeMismatchException", "ExpiredCodeException"})


class AuthFlowCoordinator:
    """Coordinates signup, login, MFA, password reset and token refresh.

    Usage:
        coordinator = AuthFlowCoordinator(CognitoIdentityProvider.from_settings(cfg), UserStore(cfg.database_url))
        coordinator.signup("a@example.com", "Abc123!@")
        result = coordinator.login("a@example.com", "Abc123!@")
    """

    def __init__(self, provider: IdentityProvider, store: UserStore) -> None:
        self.provider = provider
        self.store = store

    # ------------------------------------------------------------------
    # Signup
    # ------------------------------------------------------------------

    def signup(self, email: str, password: str) -> None:
        """Create the provider account and the local PENDING/DONE record.

        Raises:
            AuthFlowError(DUPLICATE_USER): a record for this email exists.
            AuthFlowError(SIGNUP_FAILED):  the provider rejected the account.
        """
        if self.store.email_exists(email):
            logger.info("Signup rejected: duplicate email")
            raise AuthFlowError(AuthErrorKind.DUPLICATE_USER)

        try:
            resp = self.provider.create_account(email, password)
        except ProviderError as exc:
            logger.info("Signup failed at provider: %s", exc.name)
            raise AuthFlowError(AuthErrorKind.SIGNUP_FAILED, detail=exc.message, name=exc.name) from exc

        step = RegistrationStep.DONE if resp.user_confirmed else RegistrationStep.PENDING_CONFIRMATION
        try:
            self.store.create_user(UserRecord(email=email, sub=resp.user_sub, registration_step=step))
        except IntegrityError as exc:
            # Lost the race against a concurrent signup for the same email.
            logger.error("Provider account %s created but local record already exists for %s", resp.user_sub, email)
            raise AuthFlowError(AuthErrorKind.DUPLICATE_USER) from exc
        except SQLAlchemyError as exc:
            logger.error("Provider account %s created but local insert failed for %s: %s", resp.user_sub, email, exc)
            raise AuthFlowError(AuthErrorKind.SIGNUP_FAILED, detail=str(exc)) from exc

        logger.info("User signed up (sub=%s, step=%s)", resp.user_sub, step.value)

    def confirm_signup(self, email: str, code: str) -> None:
        """Verify the signup code and move the local record to DONE.

        Raises:
            AuthFlowError(CONFIRMATION_FAILED): the provider rejected the code,
                or the local record could not be updated.
        """
        try:
            self.provider.confirm_account(email, code)
        except ProviderError as exc:
            logger.info("Signup confirmation failed at provider: %s", exc.name)
            raise AuthFlowError(AuthErrorKind.CONFIRMATION_FAILED, detail=exc.message, name=exc.name) from exc

        try:
            updated = self.store.mark_confirmed(email)
            missing = not updated and self.store.get_by_email(email) is None
        except SQLAlchemyError as exc:
            logger.error("Provider confirmed %s but local update failed: %s", email, exc)
            raise AuthFlowError(AuthErrorKind.CONFIRMATION_FAILED, detail=str(exc)) from exc

        if missing:
            logger.error("Provider confirmed %s but no local record exists", email)
            raise AuthFlowError(AuthErrorKind.CONFIRMATION_FAILED, detail="No local record for this email")

        logger.info("Signup confirmed")

    def resend_confirmation_code(self, email: str) -> None:
        try:
            self.provider.resend_code(email)
        except ProviderError as exc:
            raise AuthFlowError(AuthErrorKind.RESEND_FAILED, detail=exc.message, name=exc.name) from exc

    # ------------------------------------------------------------------
    # Login and MFA
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> LoginResult:
        """Start a password login and classify the provider's challenge.

        NEW_PASSWORD_REQUIRED -> challenge name and session only.
        MFA_SETUP             -> one associate-software-token call; the result
                                 carries its secret code and refreshed session.
        anything else         -> challenge name and session, plus tokens when
                                 the provider issued them straight away.

        Raises:
            AuthFlowError(LOGIN_FAILED): any provider failure. The provider's
                message goes to detail; the user message is fixed.
        """
        try:
            challenge = self.provider.authenticate(email, password)

            if challenge.challenge_name == ChallengeName.NEW_PASSWORD_REQUIRED:
                return LoginResult(challenge_name=challenge.challenge_name, session=challenge.session)

            if challenge.challenge_name == ChallengeName.MFA_SETUP:
                association = self.provider.associate_mfa(challenge.session)
                return LoginResult(
                    challenge_name=challenge.challenge_name,
                    session=association.session or challenge.session,
                    secret_code=association.secret_code,
                )
        except ProviderError as exc:
            logger.info("Login failed at provider: %s", exc.name)
            raise AuthFlowError(AuthErrorKind.LOGIN_FAILED, detail=exc.message, name=exc.name) from exc

        return LoginResult(
            challenge_name=challenge.challenge_name,
            session=challenge.session,
            authentication_result=challenge.authentication_result,
        )

    def setup_mfa(self, session: str, code: str) -> VerificationResult:
        """Verify the first code from a newly associated authenticator.

        Raises:
            AuthFlowError(SETUP_MFA_FAILED): carries the provider's error name
                so the caller can tell a wrong code from an expired session.
        """
        try:
            return self.provider.verify_mfa(session, code)
        except ProviderError as exc:
            raise AuthFlowError(AuthErrorKind.SETUP_MFA_FAILED, detail=exc.message, name=exc.name) from exc

    def confirm_login(self, email: str, session: str, code: str) -> AuthenticationResult | None:
        """Answer a SOFTWARE_TOKEN_MFA challenge and return the issued tokens.

        Raises:
            AuthFlowError(INVALID_CODE):    wrong or expired code.
            AuthFlowError(SESSION_EXPIRED): the challenge session is no longer valid.
            ProviderError:                  any other provider failure, unchanged.
        """
        try:
            return self.provider.respond_to_challenge(email, session, code)
        except ProviderError as exc:
            if exc.name in _CODE_MISMATCH_ERRORS:
                raise AuthFlowError(
                    AuthErrorKind.INVALID_CODE, name="CodeMismatchException", detail=exc.message
                ) from exc
            if exc.name == "NotAuthorizedException":
                raise AuthFlowError(
                    AuthErrorKind.SESSION_EXPIRED, name="NotAuthorizedException", detail=exc.message
                ) from exc
            raise

    # ------------------------------------------------------------------
    # Password reset and refresh
    # ------------------------------------------------------------------

    def forgot_password(self, email: str) -> None:
        """Ask the provider to send a reset code. Provider errors propagate unchanged."""
        self.provider.initiate_password_reset(email)

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        """Complete a password reset.

        Raises:
            AuthFlowError(CONFIRM_FORGOT_PASSWORD_FAILED): user message picked
                by the provider's error name.
        """
        try:
            self.provider.confirm_password_reset(email, code, new_password)
        except ProviderError as exc:
            raise AuthFlowError(
                AuthErrorKind.CONFIRM_FORGOT_PASSWORD_FAILED,
                message=confirm_forgot_password_message(exc.name),
                detail=exc.message,
                name=exc.name,
            ) from exc

    def refresh_token(self, refresh_token: str) -> AuthenticationResult | None:
        """Exchange a refresh token for new tokens. Provider errors propagate unchanged."""
        return self.provider.refresh(refresh_token)
