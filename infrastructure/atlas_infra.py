#!/usr/bin/env python3
"""
AWS CDK App for the MongoDB Atlas VPC peering deployment
"""

import os
import sys
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
import aws_cdk as cdk

from infrastructure.vpc.vpc_stack import VPCStack
from infrastructure.atlas.atlas_stack import AtlasStack, DEFAULT_REGION
from infrastructure.connectivity.connectivity_stack import ConnectivityStack


def load_environment(env_path: Path) -> None:
    """
    Load the project .env file and normalize AWS variables for the CDK CLI.

    Args:
        env_path: Location of the .env file.
    """
    if not env_path.exists():
        print(f"Warning: .env file not found at {env_path}", file=sys.stderr)
        return

    load_dotenv(dotenv_path=env_path, override=True)

    # Child processes (AWS CLI, asset publishing) read these from os.environ
    aws_vars = [
        "AWS_PROFILE",
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_DEFAULT_REGION",
        "AWS_ACCOUNT_ID",
    ]
    for var in aws_vars:
        value = os.getenv(var)
        if value:
            os.environ[var] = value.strip()


def atlas_setting(
    app: cdk.App, context_key: str, env_var: str, default: Optional[str] = None
) -> Optional[str]:
    """
    Read an Atlas setting from CDK context, falling back to the environment.

    Args:
        app: The CDK app holding the context.
        context_key: Context key, e.g. 'mongodb-atlas:org-id'.
        env_var: Environment variable used when the context key is absent.
        default: Value used when neither is set.
    """
    value = app.node.try_get_context(context_key)
    if value is None or value == "":
        value = os.getenv(env_var, default)
    return value if value != "" else default


def parse_flag(value: Union[bool, str, None]) -> bool:
    """
    Interpret a context or environment flag such as MONGODB_ATLAS_ENABLE_BACKUP.

    Args:
        value: A bool from cdk.json context, or a string like 'true', '1', 'yes', 'on'.

    Returns:
        bool: True for a truthy setting, False otherwise (including None).
    """
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def build_app(app: cdk.App) -> cdk.App:
    """
    Create the stacks of the deployment in dependency order.

    Raises:
        ValueError: If no Atlas organization ID is configured.
    """
    env = cdk.Environment(
        account=os.getenv("AWS_ACCOUNT_ID", os.getenv("CDK_DEFAULT_ACCOUNT")),
        region=os.getenv(
            "AWS_DEFAULT_REGION", os.getenv("CDK_DEFAULT_REGION", DEFAULT_REGION)
        ),
    )

    atlas_org_id = atlas_setting(app, "mongodb-atlas:org-id", "MONGODB_ATLAS_ORG_ID")
    if not atlas_org_id:
        raise ValueError(
            "Atlas organization ID is required "
            "(context 'mongodb-atlas:org-id' or MONGODB_ATLAS_ORG_ID)"
        )

    vpc_stack = VPCStack(app, "AtlasVPCStack", env=env)

    atlas_stack = AtlasStack(
        app,
        "AtlasClusterStack",
        vpc=vpc_stack.vpc,
        atlas_org_id=atlas_org_id,
        atlas_profile_name=atlas_setting(
            app, "mongodb-atlas:profile", "MONGODB_ATLAS_PROFILE", "default"
        ),
        project_name=atlas_setting(
            app, "mongodb-atlas:project-name", "MONGODB_ATLAS_PROJECT_NAME", "my-app-project"
        ),
        cluster_name=atlas_setting(
            app, "mongodb-atlas:cluster-name", "MONGODB_ATLAS_CLUSTER_NAME"
        ),
        db_name="my-app",
        db_user_name="my-app-user",
        atlas_cidr=atlas_setting(
            app, "mongodb-atlas:atlas-cidr", "MONGODB_ATLAS_CIDR", "192.168.8.0/21"
        ),
        instance_size=atlas_setting(
            app, "mongodb-atlas:instance-size", "MONGODB_ATLAS_INSTANCE_SIZE", "M10"
        ),
        enable_backup=parse_flag(
            atlas_setting(
                app, "mongodb-atlas:enable-backup", "MONGODB_ATLAS_ENABLE_BACKUP", "false"
            )
        ),
        env=env,
    )

    ConnectivityStack(
        app,
        "AtlasConnectivityStack",
        vpc=vpc_stack.vpc,
        mongodb_host_name=atlas_stack.atlas.get_connection_hostname(),
        mongodb_db_name=atlas_stack.atlas.get_default_db_name(),
        mongodb_credentials=atlas_stack.atlas.credentials,
        env=env,
    )

    return app


if __name__ == "__main__":
    # Load environment variables from .env file (in project root, one level up)
    load_environment(Path(__file__).parent.parent / ".env")
    build_app(cdk.App()).synth()
