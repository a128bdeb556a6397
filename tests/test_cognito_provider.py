"""Unit tests for auth/provider.py -- CognitoIdentityProvider.

A real boto3 cognito-idp client is wrapped in botocore's Stubber, so each test
asserts the exact request parameters sent to Cognito and feeds back a canned
response or service error. No network access happens.
"""

from unittest.mock import MagicMock

import boto3
import pytest
from botocore.stub import Stubber

from auth.errors import ProviderError
from auth.provider import CognitoIdentityProvider

_CLIENT_ID = "client-123"
_EMAIL = "jane@example.com"
# Cognito session strings have a 20-character minimum.
_SESSION = "session-token-aaaaaaaaaaaaaaaaaaaa"
_NEW_SESSION = "session-token-bbbbbbbbbbbbbbbbbbbb"
_AUTH_RESULT = {
    "AccessToken": "access-token",
    "IdToken": "id-token",
    "RefreshToken": "refresh-token",
    "ExpiresIn": 3600,
    "TokenType": "Bearer",
}


@pytest.fixture
def cognito():
    client = boto3.client(
        "cognito-idp",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    provider = CognitoIdentityProvider(client, _CLIENT_ID, "auth.example.com")
    with Stubber(client) as stubber:
        yield provider, stubber
        stubber.assert_no_pending_responses()


class TestSignupCalls:
    def test_create_account(self, cognito):
        provider, stubber = cognito
        stubber.add_response(
            "sign_up",
            {"UserConfirmed": False, "UserSub": "sub-1234"},
            {"ClientId": _CLIENT_ID, "Username": _EMAIL, "Password": "Abc123!@"},
        )

        result = provider.create_account(_EMAIL, "Abc123!@")

        assert result.user_sub == "sub-1234"
        assert result.user_confirmed is False

    def test_confirm_account(self, cognito):
        provider, stubber = cognito
        stubber.add_response(
            "confirm_sign_up",
            {},
            {"ClientId": _CLIENT_ID, "Username": _EMAIL, "ConfirmationCode": "123456"},
        )
        provider.confirm_account(_EMAIL, "123456")

    def test_resend_code(self, cognito):
        provider, stubber = cognito
        stubber.add_response("resend_confirmation_code", {}, {"ClientId": _CLIENT_ID, "Username": _EMAIL})
        provider.resend_code(_EMAIL)


class TestLoginCalls:
    def test_authenticate_with_challenge(self, cognito):
        provider, stubber = cognito
        stubber.add_response(
            "initiate_auth",
            {"ChallengeName": "MFA_SETUP", "Session": _SESSION},
            {
                "AuthFlow": "USER_PASSWORD_AUTH",
                "ClientId": _CLIENT_ID,
                "AuthParameters": {"USERNAME": _EMAIL, "PASSWORD": "Abc123!@"},
            },
        )

        challenge = provider.authenticate(_EMAIL, "Abc123!@")

        assert challenge.challenge_name == "MFA_SETUP"
        assert challenge.session == _SESSION
        assert challenge.authentication_result is None

    def test_authenticate_without_challenge_returns_tokens(self, cognito):
        provider, stubber = cognito
        stubber.add_response("initiate_auth", {"AuthenticationResult": _AUTH_RESULT})

        challenge = provider.authenticate(_EMAIL, "Abc123!@")

        assert challenge.challenge_name is None
        assert challenge.authentication_result.access_token == "access-token"
        assert challenge.authentication_result.expires_in == 3600

    def test_associate_mfa(self, cognito):
        provider, stubber = cognito
        stubber.add_response(
            "associate_software_token",
            {"SecretCode": "JBSWY3DPEHPK3PXPJBSWY3DPEHPK3PXP", "Session": _NEW_SESSION},
            {"Session": _SESSION},
        )

        association = provider.associate_mfa(_SESSION)

        assert association.secret_code == "JBSWY3DPEHPK3PXPJBSWY3DPEHPK3PXP"
        assert association.session == _NEW_SESSION

    def test_verify_mfa(self, cognito):
        provider, stubber = cognito
        stubber.add_response(
            "verify_software_token",
            {"Status": "SUCCESS", "Session": _NEW_SESSION},
            {"Session": _SESSION, "UserCode": "123456"},
        )

        result = provider.verify_mfa(_SESSION, "123456")

        assert result.status == "SUCCESS"
        assert result.session == _NEW_SESSION

    def test_respond_to_challenge(self, cognito):
        provider, stubber = cognito
        stubber.add_response(
            "respond_to_auth_challenge",
            {"AuthenticationResult": _AUTH_RESULT},
            {
                "ClientId": _CLIENT_ID,
                "ChallengeName": "SOFTWARE_TOKEN_MFA",
                "Session": _SESSION,
                "ChallengeResponses": {"USERNAME": _EMAIL, "SOFTWARE_TOKEN_MFA_CODE": "123456"},
            },
        )

        tokens = provider.respond_to_challenge(_EMAIL, _SESSION, "123456")

        assert tokens.refresh_token == "refresh-token"
        assert tokens.id_token == "id-token"


class TestPasswordAndRefreshCalls:
    def test_initiate_password_reset(self, cognito):
        provider, stubber = cognito
        stubber.add_response("forgot_password", {}, {"ClientId": _CLIENT_ID, "Username": _EMAIL})
        provider.initiate_password_reset(_EMAIL)

    def test_confirm_password_reset(self, cognito):
        provider, stubber = cognito
        stubber.add_response(
            "confirm_forgot_password",
            {},
            {"ClientId": _CLIENT_ID, "Username": _EMAIL, "ConfirmationCode": "123456", "Password": "Xyz789#$"},
        )
        provider.confirm_password_reset(_EMAIL, "123456", "Xyz789#$")

    def test_refresh(self, cognito):
        provider, stubber = cognito
        tokens = {k: v for k, v in _AUTH_RESULT.items() if k != "RefreshToken"}
        stubber.add_response(
            "initiate_auth",
            {"AuthenticationResult": tokens},
            {
                "AuthFlow": "REFRESH_TOKEN_AUTH",
                "ClientId": _CLIENT_ID,
                "AuthParameters": {"REFRESH_TOKEN": "refresh-token"},
            },
        )

        result = provider.refresh("refresh-token")

        assert result.access_token == "access-token"
        assert result.refresh_token is None


class TestErrorTranslation:
    def test_client_error_becomes_provider_error(self, cognito):
        provider, stubber = cognito
        stubber.add_client_error(
            "respond_to_auth_challenge",
            service_error_code="CodeMismatchException",
            service_message="Invalid code received for user",
        )

        with pytest.raises(ProviderError) as exc_info:
            provider.respond_to_challenge(_EMAIL, _SESSION, "000000")

        assert exc_info.value.name == "CodeMismatchException"
        assert exc_info.value.message == "Invalid code received for user"

    def test_sign_up_error(self, cognito):
        provider, stubber = cognito
        stubber.add_client_error("sign_up", service_error_code="UsernameExistsException", service_message="exists")

        with pytest.raises(ProviderError) as exc_info:
            provider.create_account(_EMAIL, "Abc123!@")

        assert exc_info.value.name == "UsernameExistsException"


def test_hosted_ui_url():
    assert CognitoIdentityProvider(MagicMock(), _CLIENT_ID, "auth.example.com").hosted_ui_url == (
        "https://auth.example.com"
    )
    assert CognitoIdentityProvider(MagicMock(), _CLIENT_ID, "https://auth.example.com/").hosted_ui_url == (
        "https://auth.example.com"
    )
    assert CognitoIdentityProvider(MagicMock(), _CLIENT_ID).hosted_ui_url == ""


def test_close_releases_client():
    client = MagicMock()
    CognitoIdentityProvider(client, _CLIENT_ID).close()
    client.close.assert_called_once_with()


def test_from_settings_builds_regional_client():
    settings = MagicMock(
        cognito_region="eu-west-1",
        cognito_access_key_id="AKIA",
        cognito_secret_access_key="secret",
        cognito_client_id="client-xyz",
        cognito_domain="auth.example.com",
    )

    provider = CognitoIdentityProvider.from_settings(settings)

    assert provider.client_id == "client-xyz"
    assert provider._client.meta.region_name == "eu-west-1"
    provider.close()
