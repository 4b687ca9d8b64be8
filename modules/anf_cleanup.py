"""
Teardown of everything the replication run created.

Clean up must be executed in reverse order, mainly because the replication must
be deleted on the secondary volume before the primary can go away.
"""

import logging
from typing import Callable, Dict, List, Tuple

from config import PRIMARY, SECONDARY, SampleConfig
from modules.anf_exceptions import AnfSampleError, MutationError
from modules.anf_poller import ResourcePoller
from modules.anf_replication import SiteResources
from modules.anf_sdk import AnfClient
from modules.anf_uri import get_resource_name


class CleanupSequencer:
    """Deletes both sides, Secondary first, waiting for each resource to disappear."""

    def __init__(self, config: SampleConfig, client: AnfClient, poller: ResourcePoller):
        self.config = config
        self.client = client
        self.poller = poller
        self.errors: List[Tuple[str, str]] = []

    def run(self, sites: Dict[str, SiteResources]) -> bool:
        """Clean both sides; returns True when nothing failed."""
        self.errors = []
        for side in (SECONDARY, PRIMARY):
            try:
                self.clean_site(sites[side])
            except AnfSampleError as e:
                logging.error(f"an error occurred while cleaning up {side} resources: {e}")
                self.errors.append((side, str(e)))

        if self.errors:
            logging.warning(f"Cleanup completed with {len(self.errors)} errors")
            for side, err in self.errors:
                logging.warning(f"{side} -> {err}")
            return False
        logging.info("\tCleanup completed!")
        return True

    def _wait_gone(self, resource_id: str, check_replication: bool = False) -> None:
        self.poller.wait_for_no_resource(
            resource_id, self.config.poll_interval, self.config.delete_poll_retries, check_replication
        )

    def _tolerate_missing_replication(self, operation: Callable[..., None], *args) -> bool:
        """Run a replication operation; returns False when there was no replication to act on."""
        try:
            operation(*args)
            return True
        except MutationError as e:
            if not e.is_replication_missing:
                raise
            logging.info(f"\tNo replication found on volume {e.resource_name}, nothing to remove")
            return False

    def clean_site(self, site: SiteResources) -> None:
        cfg = site.config
        volume_args = (cfg.resource_group_name, cfg.account_name, cfg.pool_name, cfg.volume_name)

        if site.snapshot_id:
            logging.info(f"\tRemoving snapshot {site.snapshot_id}...")
            self.client.delete_snapshot(*volume_args, get_resource_name(site.snapshot_id))
            self._wait_gone(site.snapshot_id)
            site.snapshot_id = None
            logging.info("\tSnapshot successfully deleted")

        if site.volume_id:
            if site.side == SECONDARY and self.config.break_replication_on_cleanup:
                logging.info(f"\tBreaking replication on {cfg.volume_name}...")
                self._tolerate_missing_replication(self.client.break_replication, *volume_args)

            logging.info(f"\tRemoving data protection object from {cfg.volume_name} volume...")
            self._tolerate_missing_replication(self.client.delete_replication, *volume_args)
            self._wait_gone(site.volume_id, check_replication=True)
            logging.info("\tData replication successfully deleted")

            logging.info(f"\tRemoving {site.volume_id} volume...")
            self.client.delete_volume(*volume_args)
            self._wait_gone(site.volume_id)
            site.volume_id = None
            logging.info("\tVolume successfully deleted")

        if site.pool_id:
            logging.info(f"\tCleaning up capacity pool {site.pool_id}...")
            self.client.delete_capacity_pool(cfg.resource_group_name, cfg.account_name, cfg.pool_name)
            self._wait_gone(site.pool_id)
            site.pool_id = None
            logging.info("\tCapacity pool successfully deleted")

        if site.account_id:
            logging.info(f"\tCleaning up account {site.account_id}...")
            self.client.delete_account(cfg.resource_group_name, cfg.account_name)
            self._wait_gone(site.account_id)
            site.account_id = None
            logging.info("\tAccount successfully deleted")
