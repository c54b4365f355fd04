"""
MongoDB Atlas Stack
Dedicated Atlas cluster reachable from the VPC through network peering
"""
from typing import Optional, Sequence

from aws_cdk import (
    Stack,
    Tags,
    Token,
    aws_ec2 as ec2,
    CfnOutput,
)
from constructs import Construct

from .atlas_construct import MongoAtlasConstruct
from .naming import NameAllocator
from .topology import AccessListEntry

DEFAULT_REGION = "ap-southeast-2"


class AtlasStack(Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc: ec2.IVpc,
        atlas_org_id: str,
        atlas_profile_name: str,
        project_name: Optional[str] = None,
        cluster_name: Optional[str] = None,
        db_name: str = "my-app",
        db_user_name: str = "my-app-user",
        atlas_cidr: str = "192.168.8.0/21",
        instance_size: str = "M10",
        enable_backup: bool = False,
        access_list: Optional[Sequence[AccessListEntry]] = None,
        name_allocator: Optional[NameAllocator] = None,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Tag all resources in this stack
        Tags.of(self).add("project", "atlas-vpc-peering")

        # The Atlas region name is derived textually, so it needs a concrete region
        region = self.region
        if Token.is_unresolved(region):
            region = DEFAULT_REGION

        self.atlas = MongoAtlasConstruct(
            self,
            "MongoDBCluster",
            vpc=vpc,
            atlas_org_id=atlas_org_id,
            atlas_profile_name=atlas_profile_name,
            project_name=project_name,
            cluster_name=cluster_name,
            db_name=db_name,
            db_user_name=db_user_name,
            ebs_volume_type="STANDARD",
            instance_size=instance_size,  # M10+ required for VPC peering
            node_count=3,
            region=region,
            atlas_cidr=atlas_cidr,
            enable_backup=enable_backup,  # Also enables PIT and termination protection
            access_list=access_list,
            name_allocator=name_allocator,
        )

        # Outputs
        CfnOutput(
            self,
            "AtlasProjectId",
            value=self.atlas.project.get_att("Id").to_string(),
            description="MongoDB Atlas project ID",
        )

        CfnOutput(
            self,
            "AtlasClusterName",
            value=self.atlas.cluster_name,
            description="MongoDB Atlas cluster name",
        )

        CfnOutput(
            self,
            "DatabaseSecretArn",
            value=self.atlas.credentials.secret_arn,
            description="ARN of the database user credentials secret",
        )
