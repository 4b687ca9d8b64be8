"""
Provisioning of both replication sides and cross-region replication setup.

Each side goes through NOT_STARTED -> ACCOUNT_CREATED -> POOL_CREATED ->
VOLUME_CREATED -> VOLUME_READY, the Secondary then reaches REPLICATION_LINKED
once the Primary authorized it. Any failure stops the run where it is; the
recorded resource ids tell the cleanup what actually exists.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from azure.core.exceptions import AzureError, ResourceNotFoundError

from config import PRIMARY, SECONDARY, SampleConfig, SiteConfig
from modules.anf_exceptions import PreflightError
from modules.anf_poller import ResourcePoller
from modules.anf_sdk import AnfClient, build_replication_protection


VIRTUAL_NETWORKS_API_VERSION = "2019-09-01"
MIRRORED = "Mirrored"


class SiteState(Enum):
    NOT_STARTED = "NotStarted"
    ACCOUNT_CREATED = "AccountCreated"
    POOL_CREATED = "PoolCreated"
    VOLUME_CREATED = "VolumeCreated"
    VOLUME_READY = "VolumeReady"
    REPLICATION_LINKED = "ReplicationLinked"


@dataclass
class SiteResources:
    """Progress of one side and the ids of what was created there."""
    config: SiteConfig
    state: SiteState = SiteState.NOT_STARTED
    account_id: Optional[str] = None
    pool_id: Optional[str] = None
    volume_id: Optional[str] = None
    snapshot_id: Optional[str] = None

    @property
    def side(self) -> str:
        return self.config.side


class ReplicationOrchestrator:
    """Creates the Primary and Secondary resources and links their volumes."""

    def __init__(self, config: SampleConfig, client: AnfClient, poller: ResourcePoller):
        self.config = config
        self.client = client
        self.poller = poller
        self.sites: Dict[str, SiteResources] = {
            side: SiteResources(site_config) for side, site_config in config.sites.items()
        }

    @property
    def primary(self) -> SiteResources:
        return self.sites[PRIMARY]

    @property
    def secondary(self) -> SiteResources:
        return self.sites[SECONDARY]

    def run(self) -> None:
        for side in (PRIMARY, SECONDARY):
            logging.info(f"Working on {side} ANF Resources...")
            self.provision_site(self.sites[side])

        self.link_replication()

        if self.config.wait_for_mirrored:
            self.wait_for_mirrored()
        if self.config.snapshot_name:
            self.take_snapshot(self.config.snapshot_name)

    def check_subnet(self, site: SiteResources) -> str:
        """Make sure the delegated subnet exists before creating anything."""
        subnet_id = site.config.subnet_id(self.config.subscription_id)
        logging.info(f"Checking if vnet/subnet {subnet_id} exists.")
        try:
            self.client.get_resource_by_id(subnet_id, VIRTUAL_NETWORKS_API_VERSION)
        except ResourceNotFoundError as e:
            raise PreflightError(f"{site.side} subnet {subnet_id} not found: {e}") from e
        except AzureError as e:
            raise PreflightError(
                f"an error occurred trying to check if {site.side} {subnet_id} subnet exists: {e}"
            ) from e
        return subnet_id

    def provision_site(self, site: SiteResources) -> None:
        cfg = self.config
        site_cfg = site.config
        subnet_id = self.check_subnet(site)

        logging.info(f"Creating {site.side} Azure NetApp Files account...")
        account = self.client.create_account(
            site_cfg.location, site_cfg.resource_group_name, site_cfg.account_name, cfg.tags
        )
        site.account_id = account.id
        site.state = SiteState.ACCOUNT_CREATED
        logging.info(f"Account successfully created, resource id: {site.account_id}")

        logging.info(f"Creating {site.side} Capacity Pool...")
        pool = self.client.create_capacity_pool(
            site_cfg.location,
            site_cfg.resource_group_name,
            site_cfg.account_name,
            site_cfg.pool_name,
            site_cfg.service_level,
            cfg.capacity_pool_size_bytes,
            cfg.tags,
        )
        site.pool_id = pool.id
        site.state = SiteState.POOL_CREATED
        logging.info(f"Capacity Pool successfully created, resource id: {site.pool_id}")

        data_protection = None
        if site.side == SECONDARY:
            logging.info(f"\tCreating data protection object since this is {site.side} volume...")
            logging.info(f"\tRemote volume id is {self.primary.volume_id}...")
            data_protection = build_replication_protection(
                self.primary.volume_id, self.primary.config.location, cfg.replication_schedule
            )

        logging.info(f"Creating {site.side} {cfg.protocol_types[0]} Volume...")
        volume = self.client.create_volume(
            site_cfg.location,
            site_cfg.resource_group_name,
            site_cfg.account_name,
            site_cfg.pool_name,
            site_cfg.volume_name,
            site_cfg.service_level,
            subnet_id,
            cfg.protocol_types,
            cfg.volume_size_bytes,
            tags=cfg.tags,
            data_protection=data_protection,
        )
        site.volume_id = volume.id
        site.state = SiteState.VOLUME_CREATED
        logging.info(f"Volume successfully created, resource id: {site.volume_id}")

        logging.info("Waiting for volume to be ready...")
        self.poller.wait_for_resource(site.volume_id, cfg.poll_interval, cfg.poll_retries)
        site.state = SiteState.VOLUME_READY

    def link_replication(self) -> None:
        primary = self.primary.config
        logging.info("Authorizing replication...")
        self.client.authorize_replication(
            primary.resource_group_name,
            primary.account_name,
            primary.pool_name,
            primary.volume_name,
            self.secondary.volume_id,
        )

        logging.info("Waiting for primary volume replication be ready...")
        self.poller.wait_for_resource(
            self.primary.volume_id, self.config.poll_interval, self.config.poll_retries, check_replication=True
        )
        self.secondary.state = SiteState.REPLICATION_LINKED
        logging.info("Replication successfully authorized")

    def wait_for_mirrored(self) -> None:
        logging.info(f"Waiting for secondary volume to reach mirror state {MIRRORED}...")
        status = self.poller.wait_for_mirror_state(
            self.secondary.volume_id, MIRRORED, self.config.poll_interval, self.config.poll_retries
        )
        logging.info(f"Secondary volume mirror state: {status.mirror_state}")

    def take_snapshot(self, snapshot_name: str) -> None:
        primary = self.primary.config
        logging.info(f"Creating snapshot {snapshot_name} of {PRIMARY} volume...")
        snapshot = self.client.create_snapshot(
            primary.location,
            primary.resource_group_name,
            primary.account_name,
            primary.pool_name,
            primary.volume_name,
            snapshot_name,
        )
        self.primary.snapshot_id = snapshot.id
        self.poller.wait_for_resource(self.primary.snapshot_id, self.config.poll_interval, self.config.poll_retries)
        logging.info(f"Snapshot successfully created, resource id: {self.primary.snapshot_id}")
