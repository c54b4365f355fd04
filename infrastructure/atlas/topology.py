"""
Atlas deployment topology.

Builds an immutable description of everything one Atlas deployment declares
(project, network container, peering, cluster, database user, IP access list
and the VPC routes towards Atlas) together with the dependency edges between
those resources. Nothing here touches CDK: `MongoAtlasConstruct` consumes the
result and turns each descriptor into a CloudFormation resource.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .naming import (
    CLUSTER_NAME_PREFIX,
    CLUSTER_TYPE,
    DB_USER_AUTH_DATABASE,
    DB_USER_DEFAULT_ROLES,
    PROJECT_NAME_PREFIX,
    NameAllocator,
    RandomNameAllocator,
    resolve_name,
)

# Shared tiers cannot use VPC peering.
SHARED_TIER_INSTANCE_SIZES = ("M0", "M2", "M5")

PRIVATE_ACCESS_COMMENT = "private access"

PROJECT_ID = "Project"
NETWORK_CONTAINER_ID = "NetworkContainer"
NETWORK_PEERING_ID = "NetworkPeering"
CLUSTER_ID = "Cluster"
DATABASE_USER_ID = "User"
ACCESS_LIST_ID = "IpAccess"
ROUTE_ID_PREFIX = "AwsPeerToAtlasRoute"


class UnsupportedInstanceSizeError(ValueError):
    """Raised for instance sizes that cannot be used with network peering."""


def validate_instance_size(instance_size: str) -> None:
    """
    Reject shared-tier instance sizes.

    Args:
        instance_size: Atlas instance size, e.g. 'M10'.

    Raises:
        UnsupportedInstanceSizeError: If the size is a shared tier.
    """
    if instance_size in SHARED_TIER_INSTANCE_SIZES:
        raise UnsupportedInstanceSizeError(
            f"Instance size {instance_size} is not supported. "
            "Only dedicated instances (M10 and above) are allowed."
        )


@dataclass(frozen=True)
class AccessListEntry:
    cidr_block: str
    comment: str = ""


def compose_access_list(
    private_cidr: str, extra: Optional[Iterable[AccessListEntry]] = None
) -> List[AccessListEntry]:
    """
    Build the project IP access list.

    The private network CIDR always comes first; caller entries follow in the
    order given. Duplicates are kept.
    """
    entries = [AccessListEntry(cidr_block=private_cidr, comment=PRIVATE_ACCESS_COMMENT)]
    if extra:
        entries.extend(extra)
    return entries


@dataclass(frozen=True)
class ClusterRequest:
    instance_size: str
    region: str
    node_count: int = 3
    ebs_volume_type: str = "STANDARD"
    auto_scaling: Optional[Any] = None
    enable_backup: bool = False


@dataclass(frozen=True)
class NetworkInfo:
    """The AWS side of the peering. Values may be unresolved CDK tokens."""

    vpc_id: str
    cidr_block: str
    region: str
    account: str
    # Route tables of the private-with-egress subnets, in subnet order.
    egress_route_table_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TopologyConfig:
    org_id: str
    profile: str
    network: NetworkInfo
    atlas_cidr: str
    cluster: ClusterRequest
    db_name: str
    db_user_name: str
    project_name: Optional[str] = None
    cluster_name: Optional[str] = None
    access_list: Tuple[AccessListEntry, ...] = ()


@dataclass(frozen=True)
class AttrRef:
    """Reference to an attribute of another resource in the topology."""

    resource: str
    attribute: str


@dataclass(frozen=True)
class SecretField:
    """Reference to one JSON field of the credentials secret."""

    field: str


@dataclass(frozen=True)
class ProjectDescriptor:
    name: str
    org_id: str
    profile: str
    logical_id: str = PROJECT_ID


@dataclass(frozen=True)
class NetworkContainerDescriptor:
    project_id: AttrRef
    vpc_id: str
    atlas_cidr_block: str
    region_name: str
    profile: str
    logical_id: str = NETWORK_CONTAINER_ID


@dataclass(frozen=True)
class NetworkPeeringDescriptor:
    container_id: AttrRef
    project_id: AttrRef
    vpc_id: str
    accepter_region_name: str
    aws_account_id: str
    route_table_cidr_block: str
    profile: str
    logical_id: str = NETWORK_PEERING_ID


@dataclass(frozen=True)
class RegionSpec:
    instance_size: str
    node_count: int
    ebs_volume_type: str
    region_name: str
    priority: int = 7
    provider_name: str = "AWS"
    backing_provider_name: str = "AWS"
    auto_scaling: Optional[Any] = None


@dataclass(frozen=True)
class ClusterDescriptor:
    name: str
    project_id: AttrRef
    cluster_type: str
    backup_enabled: bool
    pit_enabled: bool
    termination_protection_enabled: bool
    region_configs: Tuple[RegionSpec, ...]
    profile: str
    num_shards: int = 1
    logical_id: str = CLUSTER_ID


@dataclass(frozen=True)
class RoleSpec:
    role_name: str
    database_name: str


@dataclass(frozen=True)
class DatabaseUserDescriptor:
    username: SecretField
    password: SecretField
    database_name: str
    project_id: AttrRef
    roles: Tuple[RoleSpec, ...]
    profile: str
    logical_id: str = DATABASE_USER_ID


@dataclass(frozen=True)
class AccessListDescriptor:
    project_id: AttrRef
    entries: Tuple[AccessListEntry, ...]
    profile: str
    logical_id: str = ACCESS_LIST_ID


@dataclass(frozen=True)
class RouteDescriptor:
    route_table_id: str
    destination_cidr_block: str
    peering_connection_id: AttrRef
    subnet_index: int

    @property
    def logical_id(self) -> str:
        return f"{ROUTE_ID_PREFIX}{self.subnet_index}"


@dataclass(frozen=True)
class Edge:
    """`dependent` must be created after `dependency`."""

    dependent: str
    dependency: str
    # Explicit edges are declared to the engine; the others follow from
    # attribute references.
    explicit: bool = False


@dataclass(frozen=True)
class Topology:
    project: ProjectDescriptor
    network_container: NetworkContainerDescriptor
    network_peering: NetworkPeeringDescriptor
    cluster: ClusterDescriptor
    database_user: DatabaseUserDescriptor
    access_list: AccessListDescriptor
    routes: Tuple[RouteDescriptor, ...]
    edges: Tuple[Edge, ...] = field(default=())

    def resources(self) -> Dict[str, Any]:
        """All descriptors keyed by logical id, in build order."""
        ordered = [
            self.project,
            self.network_container,
            self.network_peering,
            self.cluster,
            self.database_user,
            self.access_list,
            *self.routes,
        ]
        return {descriptor.logical_id: descriptor for descriptor in ordered}

    def explicit_dependencies(self, logical_id: str) -> List[str]:
        return [
            edge.dependency
            for edge in self.edges
            if edge.explicit and edge.dependent == logical_id
        ]

    def declaration_order(self) -> List[str]:
        """
        Order logical ids so that every dependency precedes its dependents.

        Ties keep build order, so the result is stable across runs.

        Raises:
            ValueError: If the edges contain a cycle.
        """
        pending = list(self.resources())
        depends_on: Dict[str, set] = {logical_id: set() for logical_id in pending}
        for edge in self.edges:
            depends_on[edge.dependent].add(edge.dependency)

        order: List[str] = []
        done: set = set()
        while pending:
            for logical_id in pending:
                if depends_on[logical_id] <= done:
                    break
            else:
                raise ValueError(f"Dependency cycle between: {', '.join(pending)}")
            pending.remove(logical_id)
            order.append(logical_id)
            done.add(logical_id)
        return order


def atlas_region_name(region: str) -> str:
    """Convert an AWS region ('ap-southeast-2') to Atlas form ('AP_SOUTHEAST_2')."""
    return region.upper().replace("-", "_")


def _references(descriptor: Any) -> List[str]:
    referenced = []
    for descriptor_field in fields(descriptor):
        value = getattr(descriptor, descriptor_field.name)
        if isinstance(value, AttrRef) and value.resource not in referenced:
            referenced.append(value.resource)
    return referenced


def _collect_edges(resources: Iterable[Any], explicit: Dict[str, List[str]]) -> Tuple[Edge, ...]:
    edges: List[Edge] = []
    for descriptor in resources:
        for dependency in _references(descriptor):
            edges.append(Edge(descriptor.logical_id, dependency))
        for dependency in explicit.get(descriptor.logical_id, []):
            edges.append(Edge(descriptor.logical_id, dependency, explicit=True))
    return tuple(edges)


def build_topology(
    config: TopologyConfig, allocator: Optional[NameAllocator] = None
) -> Topology:
    """
    Describe every resource of one Atlas deployment.

    Args:
        config: Deployment settings.
        allocator: Name allocation strategy for unnamed project/cluster.
            Defaults to a random suffix.

    Returns:
        Topology: Descriptors plus dependency edges.

    Raises:
        UnsupportedInstanceSizeError: For shared-tier instance sizes.
    """
    validate_instance_size(config.cluster.instance_size)
    allocator = allocator or RandomNameAllocator()

    region_name = atlas_region_name(config.cluster.region)
    network = config.network
    project_ref = AttrRef(PROJECT_ID, "Id")

    project = ProjectDescriptor(
        name=resolve_name(config.project_name, PROJECT_NAME_PREFIX, allocator),
        org_id=config.org_id,
        profile=config.profile,
    )
    container = NetworkContainerDescriptor(
        project_id=project_ref,
        vpc_id=network.vpc_id,
        atlas_cidr_block=config.atlas_cidr,
        region_name=region_name,
        profile=config.profile,
    )
    peering = NetworkPeeringDescriptor(
        container_id=AttrRef(NETWORK_CONTAINER_ID, "Id"),
        project_id=project_ref,
        vpc_id=network.vpc_id,
        accepter_region_name=network.region,
        aws_account_id=network.account,
        route_table_cidr_block=network.cidr_block,
        profile=config.profile,
    )

    backup = config.cluster.enable_backup
    cluster = ClusterDescriptor(
        name=resolve_name(config.cluster_name, CLUSTER_NAME_PREFIX, allocator),
        project_id=project_ref,
        cluster_type=CLUSTER_TYPE,
        backup_enabled=backup,
        pit_enabled=backup,
        termination_protection_enabled=backup,
        region_configs=(
            RegionSpec(
                instance_size=config.cluster.instance_size,
                node_count=config.cluster.node_count,
                ebs_volume_type=config.cluster.ebs_volume_type,
                region_name=region_name,
                auto_scaling=config.cluster.auto_scaling,
            ),
        ),
        profile=config.profile,
    )

    database_user = DatabaseUserDescriptor(
        username=SecretField("username"),
        password=SecretField("password"),
        database_name=DB_USER_AUTH_DATABASE,
        project_id=project_ref,
        roles=tuple(RoleSpec(**role) for role in DB_USER_DEFAULT_ROLES),
        profile=config.profile,
    )

    access_list = AccessListDescriptor(
        project_id=project_ref,
        entries=tuple(compose_access_list(network.cidr_block, config.access_list)),
        profile=config.profile,
    )

    connection_ref = AttrRef(NETWORK_PEERING_ID, "ConnectionId")
    routes = tuple(
        RouteDescriptor(
            route_table_id=route_table_id,
            destination_cidr_block=config.atlas_cidr,
            peering_connection_id=connection_ref,
            subnet_index=index,
        )
        for index, route_table_id in enumerate(network.egress_route_table_ids)
    )

    resources = [project, container, peering, cluster, database_user, access_list, *routes]
    # Cluster creation races the peering setup unless ordered explicitly.
    edges = _collect_edges(
        resources, {CLUSTER_ID: [NETWORK_CONTAINER_ID, NETWORK_PEERING_ID]}
    )

    return Topology(
        project=project,
        network_container=container,
        network_peering=peering,
        cluster=cluster,
        database_user=database_user,
        access_list=access_list,
        routes=routes,
        edges=edges,
    )
