"""
MongoDB Atlas cluster peered with an AWS VPC.

Creates an Atlas project, network container, network peering, dedicated
cluster, database user and project IP access list, plus a route from every
private-with-egress subnet to the Atlas CIDR through the peering connection.
"""

from typing import Any, Dict, Optional, Sequence

import awscdk_resources_mongodbatlas as atlas
from aws_cdk import (
    CfnResource,
    aws_ec2 as ec2,
    aws_ecs as ecs,
)
from constructs import Construct

from .connection import connection_hostname
from .credentials import DatabaseCredentials
from .naming import NameAllocator
from .topology import (
    AccessListDescriptor,
    AccessListEntry,
    AttrRef,
    ClusterDescriptor,
    ClusterRequest,
    DatabaseUserDescriptor,
    NetworkContainerDescriptor,
    NetworkInfo,
    NetworkPeeringDescriptor,
    ProjectDescriptor,
    RouteDescriptor,
    SecretField,
    TopologyConfig,
    build_topology,
    validate_instance_size,
)


class MongoAtlasConstruct(Construct):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        vpc: ec2.IVpc,
        atlas_org_id: str,
        atlas_profile_name: str,
        db_name: str,
        db_user_name: str,
        instance_size: str,
        region: str,
        atlas_cidr: str,
        node_count: int = 3,
        ebs_volume_type: str = "STANDARD",
        enable_backup: bool = False,
        auto_scaling: Optional[atlas.AdvancedAutoScaling] = None,
        project_name: Optional[str] = None,
        cluster_name: Optional[str] = None,
        access_list: Optional[Sequence[AccessListEntry]] = None,
        name_allocator: Optional[NameAllocator] = None,
    ) -> None:
        super().__init__(scope, construct_id)

        # Must fail before anything is added to the tree
        validate_instance_size(instance_size)

        self.db_name = db_name
        self.credentials = DatabaseCredentials(self, "Credentials", username=db_user_name)
        self.secret = self.credentials.secret

        egress_subnets = vpc.select_subnets(
            subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS
        ).subnets

        self.topology = build_topology(
            TopologyConfig(
                org_id=atlas_org_id,
                profile=atlas_profile_name,
                network=NetworkInfo(
                    vpc_id=vpc.vpc_id,
                    cidr_block=vpc.vpc_cidr_block,
                    region=vpc.env.region,
                    account=vpc.env.account,
                    egress_route_table_ids=tuple(
                        subnet.route_table.route_table_id for subnet in egress_subnets
                    ),
                ),
                atlas_cidr=atlas_cidr,
                cluster=ClusterRequest(
                    instance_size=instance_size,
                    region=region,
                    node_count=node_count,
                    ebs_volume_type=ebs_volume_type,
                    auto_scaling=auto_scaling,
                    enable_backup=enable_backup,
                ),
                db_name=db_name,
                db_user_name=db_user_name,
                project_name=project_name,
                cluster_name=cluster_name,
                access_list=tuple(access_list or ()),
            ),
            name_allocator,
        )

        self.resources: Dict[str, CfnResource] = {}
        descriptors = self.topology.resources()
        for logical_id in self.topology.declaration_order():
            self.resources[logical_id] = self._declare(descriptors[logical_id])

        for logical_id, resource in self.resources.items():
            for dependency in self.topology.explicit_dependencies(logical_id):
                resource.add_dependency(self.resources[dependency])

        topology = self.topology
        self.project = self.resources[topology.project.logical_id]
        self.network_container = self.resources[topology.network_container.logical_id]
        self.network_peering = self.resources[topology.network_peering.logical_id]
        self.cluster = self.resources[topology.cluster.logical_id]
        self.database_user = self.resources[topology.database_user.logical_id]
        self.ip_access_list = self.resources[topology.access_list.logical_id]
        self.routes = [self.resources[route.logical_id] for route in topology.routes]
        self.cluster_name = topology.cluster.name
        self.atlas_region = topology.network_container.region_name

    def _attr(self, ref: AttrRef) -> str:
        return self.resources[ref.resource].get_att(ref.attribute).to_string()

    def _secret(self, ref: SecretField) -> str:
        # Dynamic reference ({{resolve:secretsmanager:...}}), not the value
        return self.credentials.field_value(ref.field).unsafe_unwrap()

    def _declare(self, descriptor: Any) -> CfnResource:
        if isinstance(descriptor, ProjectDescriptor):
            return atlas.CfnProject(
                self,
                descriptor.logical_id,
                profile=descriptor.profile,
                name=descriptor.name,
                org_id=descriptor.org_id,
            )

        if isinstance(descriptor, NetworkContainerDescriptor):
            return atlas.CfnNetworkContainer(
                self,
                descriptor.logical_id,
                profile=descriptor.profile,
                project_id=self._attr(descriptor.project_id),
                vpc_id=descriptor.vpc_id,
                atlas_cidr_block=descriptor.atlas_cidr_block,
                region_name=descriptor.region_name,
            )

        if isinstance(descriptor, NetworkPeeringDescriptor):
            return atlas.CfnNetworkPeering(
                self,
                descriptor.logical_id,
                profile=descriptor.profile,
                container_id=self._attr(descriptor.container_id),
                project_id=self._attr(descriptor.project_id),
                vpc_id=descriptor.vpc_id,
                accepter_region_name=descriptor.accepter_region_name,
                aws_account_id=descriptor.aws_account_id,
                route_table_cidr_block=descriptor.route_table_cidr_block,
            )

        if isinstance(descriptor, ClusterDescriptor):
            return self._declare_cluster(descriptor)

        if isinstance(descriptor, DatabaseUserDescriptor):
            return atlas.CfnDatabaseUser(
                self,
                descriptor.logical_id,
                profile=descriptor.profile,
                username=self._secret(descriptor.username),
                password=self._secret(descriptor.password),
                database_name=descriptor.database_name,
                project_id=self._attr(descriptor.project_id),
                roles=[
                    atlas.RoleDefinition(
                        role_name=role.role_name, database_name=role.database_name
                    )
                    for role in descriptor.roles
                ],
            )

        if isinstance(descriptor, AccessListDescriptor):
            return atlas.CfnProjectIpAccessList(
                self,
                descriptor.logical_id,
                profile=descriptor.profile,
                project_id=self._attr(descriptor.project_id),
                access_list=[
                    atlas.AccessListDefinition(
                        cidr_block=entry.cidr_block, comment=entry.comment
                    )
                    for entry in descriptor.entries
                ],
            )

        if isinstance(descriptor, RouteDescriptor):
            return ec2.CfnRoute(
                self,
                descriptor.logical_id,
                route_table_id=descriptor.route_table_id,
                destination_cidr_block=descriptor.destination_cidr_block,
                vpc_peering_connection_id=self._attr(descriptor.peering_connection_id),
            )

        raise TypeError(f"Unsupported descriptor: {type(descriptor).__name__}")

    def _declare_cluster(self, descriptor: ClusterDescriptor) -> atlas.CfnCluster:
        region_configs = [
            atlas.AdvancedRegionConfig(
                electable_specs=atlas.Specs(
                    ebs_volume_type=spec.ebs_volume_type,
                    instance_size=spec.instance_size,
                    node_count=spec.node_count,
                ),
                priority=spec.priority,
                region_name=spec.region_name,
                provider_name=atlas.AdvancedRegionConfigProviderName[spec.provider_name],
                backing_provider_name=spec.backing_provider_name,
                auto_scaling=spec.auto_scaling,
            )
            for spec in descriptor.region_configs
        ]
        return atlas.CfnCluster(
            self,
            descriptor.logical_id,
            profile=descriptor.profile,
            name=descriptor.name,
            project_id=self._attr(descriptor.project_id),
            cluster_type=descriptor.cluster_type,
            backup_enabled=descriptor.backup_enabled,
            pit_enabled=descriptor.pit_enabled,
            termination_protection_enabled=descriptor.termination_protection_enabled,
            replication_specs=[
                atlas.AdvancedReplicationSpec(
                    num_shards=descriptor.num_shards,
                    advanced_region_configs=region_configs,
                )
            ],
        )

    def get_connection_hostname(self) -> str:
        uri = self.cluster.get_att("ConnectionStrings.StandardSrv").to_string()
        return connection_hostname(uri)

    def get_default_db_name(self) -> str:
        return self.db_name

    def get_username(self) -> ecs.Secret:
        return self.credentials.username_env()

    def get_password(self) -> ecs.Secret:
        return self.credentials.password_env()
