"""
Configuration module for the connectivity test.

Reads the MongoDB settings injected by the connectivity stack and the
execution context provided by the Lambda runtime.
"""

import os
from pathlib import Path
from typing import Dict, List

from dotenv import load_dotenv

AWS_INDICATORS = (
    "AWS_EXECUTION_ENV",
    "AWS_LAMBDA_FUNCTION_NAME",
)


def _load_dotenv_if_local(dotenv_path: Path) -> None:
    """
    Load a .env file for local runs; inside AWS the environment is authoritative.

    Args:
        dotenv_path (Path): Location of the .env file.
    """
    if any(os.getenv(indicator) for indicator in AWS_INDICATORS):
        return
    if dotenv_path.exists():
        # Do not overwrite existing environment variables
        load_dotenv(dotenv_path=dotenv_path, override=False)


_load_dotenv_if_local(Path(__file__).parent.parent / ".env")


class Config:
    """
    Configuration class that reads environment variables for the connectivity test.
    """

    # MongoDB Configuration
    MONGODB_HOST_NAME: str = os.getenv("MONGODB_HOST_NAME", "")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME", "")
    MONGODB_SECRET_ARN: str = os.getenv("MONGODB_SECRET_ARN", "")

    # Execution context
    AWS_REGION: str = os.getenv("AWS_REGION", "")
    FUNCTION_NAME: str = os.getenv("AWS_LAMBDA_FUNCTION_NAME", "")

    CONNECTION_OPTIONS: str = "retryWrites=true&w=majority"

    @classmethod
    def missing_settings(cls) -> List[str]:
        """
        List the required settings that are not set.

        Returns:
            List[str]: Environment variable names, in a fixed order.
        """
        required_vars = [
            ("MONGODB_HOST_NAME", cls.MONGODB_HOST_NAME),
            ("MONGODB_DB_NAME", cls.MONGODB_DB_NAME),
            ("MONGODB_SECRET_ARN", cls.MONGODB_SECRET_ARN),
        ]
        return [name for name, value in required_vars if not value]

    @classmethod
    def validate(cls) -> None:
        """
        Validate that required configuration values are present.

        Raises:
            ValueError: If any required configuration is missing.
        """
        missing = cls.missing_settings()
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

    @classmethod
    def vpc_info(cls) -> Dict[str, str]:
        return {
            "availabilityZone": cls.AWS_REGION,
            "functionName": cls.FUNCTION_NAME,
        }
