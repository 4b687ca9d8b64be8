"""
Azure Resource Manager id parsing for NetApp Files resources.

A resource id such as
/subscriptions/<sub>/resourceGroups/<rg>/providers/Microsoft.NetApp/netAppAccounts/<account>/capacityPools/<pool>/volumes/<volume>
is parsed once into a ResourceIdentity that knows its hierarchy level and the
names of all of its ancestors.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from modules.anf_exceptions import ConfigurationError


NETAPP_PROVIDER = "Microsoft.NetApp"


class ResourceLevel(Enum):
    """Position of a resource in the NetApp Files hierarchy."""
    ACCOUNT = "netAppAccounts"
    POOL = "capacityPools"
    VOLUME = "volumes"
    SNAPSHOT = "snapshots"


# Order of the key/value pairs following providers/Microsoft.NetApp
_HIERARCHY = [
    ResourceLevel.ACCOUNT,
    ResourceLevel.POOL,
    ResourceLevel.VOLUME,
    ResourceLevel.SNAPSHOT,
]


def get_resource_value(resource_id: str, key: str) -> Optional[str]:
    """Return the segment following `key` in a resource id (case insensitive)."""
    if not resource_id or not key:
        return None
    segments = [segment for segment in resource_id.split("/") if segment]
    for index, segment in enumerate(segments[:-1]):
        if segment.lower() == key.lower():
            return segments[index + 1]
    return None


def get_resource_name(resource_id: str) -> Optional[str]:
    """Return the last segment of a resource id."""
    if not resource_id:
        return None
    segments = [segment for segment in resource_id.split("/") if segment]
    return segments[-1] if segments else None


def get_resource_group(resource_id: str) -> Optional[str]:
    return get_resource_value(resource_id, "resourceGroups")


@dataclass(frozen=True)
class ResourceIdentity:
    """
    Identity of an ANF resource classified into exactly one hierarchy level.

    Attributes:
        resource_id: The full ARM resource id
        level: Hierarchy level of the resource
        subscription_id: Subscription containing the resource
        resource_group: Resource group containing the account
        account: NetApp account name
        pool: Capacity pool name (pool level and below)
        volume: Volume name (volume level and below)
        snapshot: Snapshot name (snapshot level only)
    """
    resource_id: str
    level: ResourceLevel
    subscription_id: str
    resource_group: str
    account: str
    pool: Optional[str] = None
    volume: Optional[str] = None
    snapshot: Optional[str] = None

    @classmethod
    def parse(cls, resource_id: str) -> "ResourceIdentity":
        """
        Parse and classify an ARM resource id.

        The segments after providers/Microsoft.NetApp are read as key/value
        pairs in hierarchy order, so a resource may be named like a level
        keyword (e.g. a pool called "volumes").

        Raises:
            ConfigurationError: If the id does not identify a NetApp Files resource
        """
        segments = [segment for segment in (resource_id or "").split("/") if segment]
        keys = [segment.lower() for segment in segments[0:6:2]]
        if len(segments) < 6 or keys != ["subscriptions", "resourcegroups", "providers"]:
            raise ConfigurationError(f"Incomplete Azure NetApp Files resource id: {resource_id}")
        if segments[5].lower() != NETAPP_PROVIDER.lower():
            raise ConfigurationError(f"Not an Azure NetApp Files resource id: {resource_id}")

        pairs = segments[6:]
        if not pairs or len(pairs) % 2 or len(pairs) > 2 * len(_HIERARCHY):
            raise ConfigurationError(f"Incomplete Azure NetApp Files resource id: {resource_id}")

        names = {}
        for expected, key, value in zip(_HIERARCHY, pairs[0::2], pairs[1::2]):
            if key.lower() != expected.value.lower():
                raise ConfigurationError(
                    f"Resource id {resource_id} has segment {key!r} where {expected.value!r} was expected"
                )
            names[expected] = value

        return cls(
            resource_id=resource_id,
            level=_HIERARCHY[len(names) - 1],
            subscription_id=segments[1],
            resource_group=segments[3],
            account=names[ResourceLevel.ACCOUNT],
            pool=names.get(ResourceLevel.POOL),
            volume=names.get(ResourceLevel.VOLUME),
            snapshot=names.get(ResourceLevel.SNAPSHOT),
        )

    @property
    def name(self) -> str:
        return get_resource_name(self.resource_id)

    def is_account(self) -> bool:
        return self.level is ResourceLevel.ACCOUNT

    def is_pool(self) -> bool:
        return self.level is ResourceLevel.POOL

    def is_volume(self) -> bool:
        return self.level is ResourceLevel.VOLUME

    def is_snapshot(self) -> bool:
        return self.level is ResourceLevel.SNAPSHOT


def build_subnet_id(subscription_id: str, resource_group: str, vnet_name: str, subnet_name: str) -> str:
    return (
        f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
        f"/providers/Microsoft.Network/virtualNetworks/{vnet_name}/subnets/{subnet_name}"
    )
