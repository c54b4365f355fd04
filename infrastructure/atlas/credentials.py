"""
Database credentials kept in Secrets Manager.

The password is generated by Secrets Manager at deploy time. Everything this
construct hands out is a reference to the secret, never its value.
"""

import json

from aws_cdk import (
    SecretValue,
    aws_ecs as ecs,
    aws_iam as iam,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

PASSWORD_LENGTH = 12


class DatabaseCredentials(Construct):
    def __init__(self, scope: Construct, construct_id: str, username: str) -> None:
        super().__init__(scope, construct_id)

        self.secret = secretsmanager.Secret(
            self,
            "DatabaseSecret",
            description="MongoDB Atlas database user credentials",
            generate_secret_string=secretsmanager.SecretStringGenerator(
                secret_string_template=json.dumps({"username": username}),
                generate_string_key="password",
                password_length=PASSWORD_LENGTH,
                exclude_punctuation=True,
            ),
        )

    @property
    def secret_arn(self) -> str:
        return self.secret.secret_arn

    def field_value(self, field: str) -> SecretValue:
        """Dynamic reference to one JSON field, resolved by CloudFormation."""
        return self.secret.secret_value_from_json(field)

    def username_env(self) -> ecs.Secret:
        return ecs.Secret.from_secrets_manager(self.secret, "username")

    def password_env(self) -> ecs.Secret:
        return ecs.Secret.from_secrets_manager(self.secret, "password")

    def grant_read(self, grantee: iam.IGrantable) -> iam.Grant:
        return self.secret.grant_read(grantee)
