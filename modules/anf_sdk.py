"""
Azure NetApp Files control-plane operations.

Every call that talks to the Azure SDK lives here. Mutations start a
long-running operation and block on its result; failures are wrapped in
MutationError. Observation calls return the raw SDK result and let the
azure.core exceptions propagate so the poller can classify them.
"""

import logging
from typing import Any, Dict, List, Optional

from azure.core.credentials import TokenCredential
from azure.core.exceptions import AzureError
from azure.mgmt.netapp import NetAppManagementClient
from azure.mgmt.netapp.models import (
    AuthorizeRequest,
    BreakReplicationRequest,
    CapacityPool,
    ExportPolicyRule,
    NetAppAccount,
    ReplicationObject,
    ReplicationStatus,
    ServiceLevel,
    Snapshot,
    Volume,
    VolumePropertiesDataProtection,
    VolumePatch,
    VolumePropertiesExportPolicy,
)
from azure.mgmt.resource import ResourceManagementClient

from modules.anf_exceptions import ConfigurationError, MutationError
from modules.anf_uri import ResourceIdentity


USER_AGENT = "anf-python-crr-sdk-sample-agent"

NFSV3 = "NFSv3"
NFSV41 = "NFSv4.1"
CIFS = "CIFS"
VALID_PROTOCOLS = [NFSV3, NFSV41, CIFS]

_SERVICE_LEVELS = {
    "standard": ServiceLevel.STANDARD,
    "premium": ServiceLevel.PREMIUM,
    "ultra": ServiceLevel.ULTRA,
}


def validate_service_level(service_level: str) -> ServiceLevel:
    try:
        return _SERVICE_LEVELS[(service_level or "").lower()]
    except KeyError:
        raise ConfigurationError(
            f"invalid service level {service_level!r}, supported service levels are: "
            f"{', '.join(level.value for level in _SERVICE_LEVELS.values())}"
        ) from None


def validate_protocol_types(protocol_types: List[str]) -> List[str]:
    if not protocol_types or protocol_types[0] not in VALID_PROTOCOLS:
        raise ConfigurationError(
            f"invalid protocol type {protocol_types}, valid protocol types are: {', '.join(VALID_PROTOCOLS)}"
        )
    return protocol_types


def build_export_policy(
    protocol_types: List[str], unix_read_only: bool, unix_read_write: bool
) -> Optional[VolumePropertiesExportPolicy]:
    """Single allow-all export rule for NFS volumes, None for SMB volumes."""
    protocol = protocol_types[0]
    if CIFS in protocol_types:
        return None
    return VolumePropertiesExportPolicy(
        rules=[
            ExportPolicyRule(
                rule_index=1,
                allowed_clients="0.0.0.0/0",
                cifs=False,
                nfsv3=protocol == NFSV3,
                nfsv41=protocol == NFSV41,
                unix_read_only=unix_read_only,
                unix_read_write=unix_read_write,
            )
        ]
    )


def build_replication_protection(
    remote_volume_id: str, remote_region: str, schedule: str = "hourly"
) -> VolumePropertiesDataProtection:
    """Data protection block that turns a new volume into a replication destination."""
    return VolumePropertiesDataProtection(
        replication=ReplicationObject(
            endpoint_type="dst",
            remote_volume_region=remote_region,
            remote_volume_resource_id=remote_volume_id,
            replication_schedule=schedule,
        )
    )


class AnfClient:
    """Thin wrapper over the NetApp Files and generic resource management clients."""

    def __init__(
        self,
        credential: Optional[TokenCredential],
        subscription_id: str,
        netapp_client: Optional[NetAppManagementClient] = None,
        resource_client: Optional[ResourceManagementClient] = None,
    ):
        self.subscription_id = subscription_id
        self.netapp = netapp_client or NetAppManagementClient(
            credential, subscription_id, user_agent=USER_AGENT
        )
        self.resources = resource_client or ResourceManagementClient(
            credential, subscription_id, user_agent=USER_AGENT
        )

    def _wait(self, operation: str, resource_name: str, start, *args) -> Any:
        """Start a long-running operation and block until it completes."""
        try:
            poller = start(*args)
            return poller.result()
        except AzureError as e:
            logging.debug(f"{operation} failed for {resource_name}: {e}")
            raise MutationError(operation, resource_name, e) from e

    def get_resource_by_id(self, resource_id: str, api_version: str) -> Any:
        return self.resources.resources.get_by_id(resource_id, api_version)

    # Creation

    def create_account(
        self,
        location: str,
        resource_group: str,
        account_name: str,
        tags: Optional[Dict[str, str]] = None,
    ) -> NetAppAccount:
        account = NetAppAccount(location=location, tags=tags)
        return self._wait(
            "create account",
            account_name,
            self.netapp.accounts.begin_create_or_update,
            resource_group,
            account_name,
            account,
        )

    def create_capacity_pool(
        self,
        location: str,
        resource_group: str,
        account_name: str,
        pool_name: str,
        service_level: str,
        size_bytes: int,
        tags: Optional[Dict[str, str]] = None,
    ) -> CapacityPool:
        pool = CapacityPool(
            location=location,
            tags=tags,
            service_level=validate_service_level(service_level),
            size=size_bytes,
        )
        return self._wait(
            "create capacity pool",
            pool_name,
            self.netapp.pools.begin_create_or_update,
            resource_group,
            account_name,
            pool_name,
            pool,
        )

    def create_volume(
        self,
        location: str,
        resource_group: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        service_level: str,
        subnet_id: str,
        protocol_types: List[str],
        usage_threshold: int,
        unix_read_only: bool = False,
        unix_read_write: bool = True,
        tags: Optional[Dict[str, str]] = None,
        snapshot_id: Optional[str] = None,
        data_protection: Optional[VolumePropertiesDataProtection] = None,
    ) -> Volume:
        protocol_types = validate_protocol_types(protocol_types)
        volume = Volume(
            location=location,
            tags=tags,
            creation_token=volume_name,
            service_level=validate_service_level(service_level),
            subnet_id=subnet_id,
            protocol_types=protocol_types,
            usage_threshold=usage_threshold,
            export_policy=build_export_policy(protocol_types, unix_read_only, unix_read_write),
            snapshot_id=snapshot_id or None,
            volume_type="DataProtection" if data_protection else None,
            data_protection=data_protection,
        )
        return self._wait(
            "create volume",
            volume_name,
            self.netapp.volumes.begin_create_or_update,
            resource_group,
            account_name,
            pool_name,
            volume_name,
            volume,
        )

    def create_snapshot(
        self,
        location: str,
        resource_group: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        snapshot_name: str,
    ) -> Snapshot:
        return self._wait(
            "create snapshot",
            snapshot_name,
            self.netapp.snapshots.begin_create,
            resource_group,
            account_name,
            pool_name,
            volume_name,
            snapshot_name,
            Snapshot(location=location),
        )

    # Update

    def update_volume(
        self,
        resource_group: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        volume_patch: VolumePatch,
    ) -> Volume:
        """Patch an existing volume, e.g. to resize it or change its export policy."""
        return self._wait(
            "update volume",
            volume_name,
            self.netapp.volumes.begin_update,
            resource_group,
            account_name,
            pool_name,
            volume_name,
            volume_patch,
        )

    # Replication

    def authorize_replication(
        self,
        resource_group: str,
        account_name: str,
        pool_name: str,
        volume_name: str,
        remote_volume_id: str,
    ) -> None:
        self._wait(
            "authorize volume replication",
            volume_name,
            self.netapp.volumes.begin_authorize_replication,
            resource_group,
            account_name,
            pool_name,
            volume_name,
            AuthorizeRequest(remote_volume_resource_id=remote_volume_id),
        )

    def break_replication(self, resource_group: str, account_name: str, pool_name: str, volume_name: str) -> None:
        self._wait(
            "break volume replication",
            volume_name,
            self.netapp.volumes.begin_break_replication,
            resource_group,
            account_name,
            pool_name,
            volume_name,
            BreakReplicationRequest(),
        )

    def delete_replication(self, resource_group: str, account_name: str, pool_name: str, volume_name: str) -> None:
        self._wait(
            "delete volume replication",
            volume_name,
            self.netapp.volumes.begin_delete_replication,
            resource_group,
            account_name,
            pool_name,
            volume_name,
        )

    # Deletion

    def delete_snapshot(
        self, resource_group: str, account_name: str, pool_name: str, volume_name: str, snapshot_name: str
    ) -> None:
        self._wait(
            "delete snapshot",
            snapshot_name,
            self.netapp.snapshots.begin_delete,
            resource_group,
            account_name,
            pool_name,
            volume_name,
            snapshot_name,
        )

    def delete_volume(self, resource_group: str, account_name: str, pool_name: str, volume_name: str) -> None:
        self._wait(
            "delete volume",
            volume_name,
            self.netapp.volumes.begin_delete,
            resource_group,
            account_name,
            pool_name,
            volume_name,
        )

    def delete_capacity_pool(self, resource_group: str, account_name: str, pool_name: str) -> None:
        self._wait(
            "delete capacity pool",
            pool_name,
            self.netapp.pools.begin_delete,
            resource_group,
            account_name,
            pool_name,
        )

    def delete_account(self, resource_group: str, account_name: str) -> None:
        self._wait(
            "delete account",
            account_name,
            self.netapp.accounts.begin_delete,
            resource_group,
            account_name,
        )

    # Observation

    def get_account(self, identity: ResourceIdentity) -> NetAppAccount:
        return self.netapp.accounts.get(identity.resource_group, identity.account)

    def get_pool(self, identity: ResourceIdentity) -> CapacityPool:
        return self.netapp.pools.get(identity.resource_group, identity.account, identity.pool)

    def get_volume(self, identity: ResourceIdentity) -> Volume:
        return self.netapp.volumes.get(
            identity.resource_group, identity.account, identity.pool, identity.volume
        )

    def get_snapshot(self, identity: ResourceIdentity) -> Snapshot:
        return self.netapp.snapshots.get(
            identity.resource_group,
            identity.account,
            identity.pool,
            identity.volume,
            identity.snapshot,
        )

    def get_replication_status(self, identity: ResourceIdentity) -> ReplicationStatus:
        return self.netapp.volumes.replication_status(
            identity.resource_group, identity.account, identity.pool, identity.volume
        )
