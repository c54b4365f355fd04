"""
AWS Lambda handler that tests MongoDB Atlas connectivity through VPC peering.

Single pass, no retries: read configuration, fetch the database user from
Secrets Manager, connect, ping the admin database and list the collections
of the target database. Every outcome is reported as a structured response.
"""

import json
from datetime import datetime, UTC
from typing import Any, Dict, Optional
from urllib.parse import quote_plus

from botocore.exceptions import ClientError
from pymongo import MongoClient

from .config import Config
from .credentials import CredentialError, get_mongodb_credentials
from .utils.logging_utils import (
    log_section_start,
    log_section_complete,
    log_progress,
    log_error,
)

MISSING_CONFIG_MESSAGE = (
    "MongoDB configuration not provided "
    "(missing MONGODB_HOST_NAME, MONGODB_DB_NAME, or MONGODB_SECRET_ARN)"
)
SUCCESS_MESSAGE = "Successfully connected to MongoDB Atlas"
FAILURE_MESSAGE = "Failed to connect to MongoDB Atlas"
CREDENTIAL_FAILURE_MESSAGE = "Invalid MongoDB credentials secret"


def build_connection_uri(username: str, password: str, host: str, db_name: str) -> str:
    """
    Assemble the SRV connection string with percent-encoded credentials.

    Returns:
        str: mongodb+srv://<user>:<password>@<host>/<db>?retryWrites=true&w=majority
    """
    return (
        f"mongodb+srv://{quote_plus(username)}:{quote_plus(password)}"
        f"@{host}/{db_name}?{Config.CONNECTION_OPTIONS}"
    )


def get_mongo_client(uri: str) -> MongoClient:
    return MongoClient(uri)


def error_code(error: Exception) -> Optional[Any]:
    """Driver or AWS error code for an exception, if it carries one."""
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return getattr(error, "code", None)


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    body["timestamp"] = datetime.now(UTC).isoformat()
    body["vpcInfo"] = Config.vpc_info()
    # Ping replies carry BSON timestamps
    return {"statusCode": status_code, "body": json.dumps(body, default=str)}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler for the connectivity test.

    Args:
        event: Lambda event (unused)
        context: Lambda context object

    Returns:
        Dict with statusCode and a JSON body: 200 on success, 400 when
        configuration is missing, 500 for any other failure.
    """
    missing = Config.missing_settings()
    if missing:
        log_error("Configuration Validation", f"Missing {', '.join(missing)}")
        return _response(400, {"success": False, "message": MISSING_CONFIG_MESSAGE})

    host_name = Config.MONGODB_HOST_NAME
    db_name = Config.MONGODB_DB_NAME
    client = None
    try:
        log_section_start("MongoDB Connectivity Test")
        credentials = get_mongodb_credentials(Config.MONGODB_SECRET_ARN)
        uri = build_connection_uri(
            credentials["username"], credentials["password"], host_name, db_name
        )

        log_progress("MongoDB Connectivity Test", f"Hostname: {host_name}")
        log_progress("MongoDB Connectivity Test", f"Database: {db_name}")
        client = get_mongo_client(uri)

        ping = client.admin.command("ping")
        collections = list(client[db_name].list_collections())
        collection_names = [collection["name"] for collection in collections]

        log_section_complete(
            "MongoDB Connectivity Test", f"{len(collection_names)} collections in {db_name}"
        )
        return _response(
            200,
            {
                "success": True,
                "message": SUCCESS_MESSAGE,
                "ping": ping,
                "database": db_name,
                "collectionsCount": len(collection_names),
                "collections": collection_names,
            },
        )
    except Exception as e:
        log_error("MongoDB Connectivity Test", str(e))
        message = FAILURE_MESSAGE
        if isinstance(e, CredentialError):
            message = f"{CREDENTIAL_FAILURE_MESSAGE}: {e}"
        return _response(
            500,
            {
                "success": False,
                "message": message,
                "error": str(e),
                "errorCode": error_code(e),
            },
        )
    finally:
        if client is not None:
            client.close()
