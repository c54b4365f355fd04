"""
Connectivity Stack for testing Atlas reachability through the VPC peering.

Creates the connectivity test Lambda inside the egress subnets, with read
access to the Atlas credentials secret and a CloudWatch log group.
"""

from aws_cdk import (
    Stack,
    Duration,
    Tags,
    CfnOutput,
    BundlingOptions,
    DockerImage,
    aws_ec2 as ec2,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_logs as logs,
)
from constructs import Construct
from pathlib import Path

from infrastructure.atlas.credentials import DatabaseCredentials


class ConnectivityStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        mongodb_host_name: str,
        mongodb_db_name: str,
        mongodb_credentials: DatabaseCredentials,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Tag all resources in this stack
        Tags.of(self).add("project", "atlas-vpc-peering")

        # Lambda code directory
        lambda_dir = Path(__file__).parent.parent.parent / "connectivity"

        # Create IAM role for Lambda function (VPC access needs ENI permissions)
        lambda_role = iam.Role(
            self,
            "ConnectivityTestLambdaRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    "service-role/AWSLambdaVPCAccessExecutionRole"
                )
            ],
        )

        # Grant access to the database credentials
        mongodb_credentials.grant_read(lambda_role)

        # Install the driver for x86_64 and ship the package as `connectivity`
        bundling_command = [
            "bash",
            "-c",
            "pip install --no-cache-dir --platform manylinux2014_x86_64 --only-binary=:all: -r requirements.txt -t /asset-output && "
            "mkdir -p /asset-output/connectivity && "
            "cp -r /asset-input/* /asset-output/connectivity/",
        ]

        connectivity_lambda = lambda_.Function(
            self,
            "MongoDBConnectivityTest",
            runtime=lambda_.Runtime.PYTHON_3_12,
            handler="connectivity.lambda_handler.lambda_handler",
            code=lambda_.Code.from_asset(
                str(lambda_dir),
                exclude=["tests", "__pycache__", ".env"],
                bundling=BundlingOptions(
                    image=DockerImage.from_registry("python:3.12-slim"),
                    command=bundling_command,
                ),
            ),
            role=lambda_role,
            vpc=vpc,
            vpc_subnets=ec2.SubnetSelection(
                subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS
            ),
            timeout=Duration.seconds(30),
            memory_size=256,
            description="Lambda function to test MongoDB Atlas connectivity through VPC peering",
            environment={
                "MONGODB_HOST_NAME": mongodb_host_name,
                "MONGODB_DB_NAME": mongodb_db_name,
                "MONGODB_SECRET_ARN": mongodb_credentials.secret_arn,
            },
        )

        # Create CloudWatch Log Group with retention
        log_group = logs.LogGroup(
            self,
            "ConnectivityTestLogGroup",
            log_group_name=f"/aws/lambda/{connectivity_lambda.function_name}",
            retention=logs.RetentionDays.ONE_MONTH,
        )

        # Outputs
        CfnOutput(
            self,
            "ConnectivityTestLambdaArn",
            value=connectivity_lambda.function_arn,
            description="ARN of the MongoDB connectivity test Lambda function",
        )

        CfnOutput(
            self,
            "ConnectivityTestLambdaName",
            value=connectivity_lambda.function_name,
            description="Name of the MongoDB connectivity test Lambda function",
        )

        CfnOutput(
            self,
            "LogGroupName",
            value=log_group.log_group_name,
            description="CloudWatch Log Group for connectivity test logs",
        )

        # Store reference for other stacks if needed
        self.connectivity_lambda = connectivity_lambda
