"""
Database user retrieval from AWS Secrets Manager.
"""

import json
from typing import Dict

import boto3
from botocore.exceptions import ClientError

from .config import Config
from .utils.logging_utils import log_progress, log_error


class CredentialError(ValueError):
    """Raised when the secret is empty or lacks username/password."""


def get_secrets_client():
    return boto3.client("secretsmanager", region_name=Config.AWS_REGION or None)


def get_mongodb_credentials(secret_arn: str) -> Dict[str, str]:
    """
    Retrieve the MongoDB user from Secrets Manager.

    Args:
        secret_arn: ARN of the secret holding a JSON {"username", "password"} payload.

    Returns:
        Dict with 'username' and 'password'.

    Raises:
        CredentialError: If the payload is empty or a field is missing.
        ClientError: If Secrets Manager rejects the request.
    """
    log_progress("Credentials", "Retrieving MongoDB credentials from Secrets Manager")
    try:
        response = get_secrets_client().get_secret_value(SecretId=secret_arn)
    except ClientError as e:
        log_error("Credentials", f"Failed to retrieve secret: {e}")
        raise

    secret_string = response.get("SecretString")
    if not secret_string:
        raise CredentialError("Secret value is empty")

    try:
        secret_data = json.loads(secret_string)
    except json.JSONDecodeError as e:
        raise CredentialError(f"Secret value is not valid JSON: {e}") from e

    if not isinstance(secret_data, dict):
        raise CredentialError("Secret value is not a JSON object")

    username = secret_data.get("username")
    password = secret_data.get("password")
    if not username or not password:
        raise CredentialError("Username or password not found in secret")

    return {"username": username, "password": password}
