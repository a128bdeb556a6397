"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, the provider adapter and the coordinator do the work.

UserRecord is the only persisted entity. Everything else here is transient:
built from a single identity provider response and handed back to the caller,
never stored. The session token inside a LoginResult is the sole continuation
handle for a challenge and must be round-tripped by the client.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RegistrationStep(str, Enum):
    PENDING_CONFIRMATION = "PENDING_CONFIRMATION"
    DONE = "DONE"


class ChallengeName(str, Enum):
    """Challenge names the coordinator branches on.

    The provider may return others (SMS_MFA, SELECT_MFA_TYPE, ...); those are
    passed through as plain strings.
    """

    NEW_PASSWORD_REQUIRED = "NEW_PASSWORD_REQUIRED"
    MFA_SETUP = "MFA_SETUP"
    SOFTWARE_TOKEN_MFA = "SOFTWARE_TOKEN_MFA"


@dataclass
class UserRecord:
    """Local shadow of an identity provider account.

    email is the natural key (case-sensitive, immutable). sub is the stable
    subject id issued by the provider at signup and never changes afterwards.
    """

    email: str
    sub: str
    registration_step: RegistrationStep = RegistrationStep.PENDING_CONFIRMATION
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class SignupResult:
    """Outcome of a create-account call."""

    user_sub: str
    user_confirmed: bool


@dataclass
class AuthenticationResult:
    """Tokens issued by the identity provider.

    refresh_token is None on a refresh-token exchange -- the provider keeps the
    original refresh token valid and does not issue a new one.
    """

    access_token: str
    id_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str | None = None


@dataclass
class AuthChallenge:
    """Raw initiate-auth outcome before the coordinator classifies it."""

    challenge_name: str | None = None
    session: str | None = None
    authentication_result: AuthenticationResult | None = None


@dataclass
class MFAAssociation:
    """Response to an associate-software-token call."""

    secret_code: str
    session: str | None = None


@dataclass
class LoginResult:
    """What a login attempt hands back to the caller.

    secret_code is set only for MFA_SETUP (seeds the authenticator app).
    authentication_result is set only when no challenge was raised.
    """

    challenge_name: str | None = None
    session: str | None = None
    secret_code: str | None = None
    authentication_result: AuthenticationResult | None = None


@dataclass
class VerificationResult:
    """Response to a verify-software-token call. status is SUCCESS or ERROR."""

    status: str | None = None
    session: str | None = None
