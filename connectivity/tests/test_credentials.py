"""
Unit tests for credential retrieval from Secrets Manager.
"""

import json
from unittest.mock import patch, MagicMock

import pytest
from botocore.exceptions import ClientError

from connectivity.credentials import CredentialError, get_mongodb_credentials

SECRET_ARN = "arn:aws:secretsmanager:ap-southeast-2:123456789012:secret:atlas-db-user"


def _client_returning(secret_string):
    client = MagicMock()
    client.get_secret_value.return_value = {"SecretString": secret_string}
    return client


class TestGetMongodbCredentials:
    @patch("connectivity.credentials.get_secrets_client")
    def test_returns_username_and_password(self, mock_client):
        mock_client.return_value = _client_returning(
            json.dumps({"username": "my-app-user", "password": "Abc123Def456"})
        )

        result = get_mongodb_credentials(SECRET_ARN)

        assert result == {"username": "my-app-user", "password": "Abc123Def456"}
        mock_client.return_value.get_secret_value.assert_called_once_with(
            SecretId=SECRET_ARN
        )

    @patch("connectivity.credentials.get_secrets_client")
    def test_missing_secret_string(self, mock_client):
        client = MagicMock()
        client.get_secret_value.return_value = {"SecretBinary": b"..."}
        mock_client.return_value = client

        with pytest.raises(CredentialError, match="Secret value is empty"):
            get_mongodb_credentials(SECRET_ARN)

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"username": "my-app-user"},
            {"password": "Abc123Def456"},
            {"username": "", "password": "Abc123Def456"},
        ],
    )
    @patch("connectivity.credentials.get_secrets_client")
    def test_missing_fields(self, mock_client, payload):
        mock_client.return_value = _client_returning(json.dumps(payload))

        with pytest.raises(CredentialError, match="Username or password not found"):
            get_mongodb_credentials(SECRET_ARN)

    @patch("connectivity.credentials.get_secrets_client")
    def test_non_json_payload(self, mock_client):
        mock_client.return_value = _client_returning("not-json")

        with pytest.raises(CredentialError, match="not valid JSON"):
            get_mongodb_credentials(SECRET_ARN)

    @patch("connectivity.credentials.get_secrets_client")
    def test_client_error_propagates(self, mock_client):
        mock_client.return_value.get_secret_value.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException"}}, "GetSecretValue"
        )

        with pytest.raises(ClientError):
            get_mongodb_credentials(SECRET_ARN)
