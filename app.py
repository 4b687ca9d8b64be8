"""
Main application orchestrator for the Azure NetApp Files replication sample.

This module wires configuration, credentials and the SDK client together, runs
the replication setup and always finishes with the exit handling, which performs
the clean up when it was asked for.
"""

import logging
import threading
from typing import Optional

from config import SampleConfig
from credentials import CredentialManager
from display import DisplayManager
from modules.anf_cleanup import CleanupSequencer
from modules.anf_exceptions import AnfSampleError
from modules.anf_poller import ResourcePoller
from modules.anf_replication import ReplicationOrchestrator
from modules.anf_sdk import AnfClient


HEADER = (
    "Azure NetAppFiles Python CRR SDK Sample - Sample application that enables "
    "cross-region replication on an NFSv3 volume."
)


class AnfReplicationApplication:
    """Main application class that orchestrates the replication sample."""

    def __init__(
        self,
        config: SampleConfig,
        display: Optional[DisplayManager] = None,
        client: Optional[AnfClient] = None,
        poller: Optional[ResourcePoller] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize the application; client and poller are built lazily unless given."""
        self.config = config
        self.display = display or DisplayManager()
        self.client = client
        self.poller = poller
        self.cancel_event = cancel_event
        self.orchestrator: Optional[ReplicationOrchestrator] = None
        self.exit_code = 0

    def _connect(self) -> bool:
        if self.client is None:
            credential_manager = CredentialManager(self.config, self.display)
            credential = credential_manager.get_credential()
            if not credential_manager.validate_credential(credential):
                self.display.print_error("Credential validation failed. Please check your authentication setup.")
                return False
            self.client = AnfClient(credential, self.config.subscription_id)
        if self.poller is None:
            self.poller = ResourcePoller(self.client, cancel_event=self.cancel_event)
        return True

    def run(self) -> int:
        """Execute the replication workflow and return the process exit code."""
        self.display.print_header(HEADER)

        if not self._connect():
            return 1

        self.orchestrator = ReplicationOrchestrator(self.config, self.client, self.poller)
        try:
            self.orchestrator.run()
            self.display.print_success("Cross-region replication successfully configured")
            self.print_summary()
        except AnfSampleError as e:
            logging.error(f"Replication setup failed: {e}")
            self.display.print_error(f"an error occurred: {e}")
            self.exit_code = 1
        except KeyboardInterrupt:
            self.display.print_warning("Operation cancelled by user")
            self.exit_code = 1
        finally:
            self.exit()
        return self.exit_code

    def print_summary(self) -> None:
        for side, site in self.orchestrator.sites.items():
            self.display.print_resources(
                side,
                {
                    "account": site.account_id,
                    "pool": site.pool_id,
                    "volume": site.volume_id,
                    "snapshot": site.snapshot_id,
                },
            )

    def exit(self) -> None:
        """Exit handling: clean up every created resource when enabled."""
        self.display.print_info("Exiting")
        if not self.config.should_cleanup or self.orchestrator is None:
            return

        self.display.print_info("Performing clean up")
        cleanup = CleanupSequencer(self.config, self.client, self.poller)
        if cleanup.run(self.orchestrator.sites):
            self.display.print_success("Cleanup completed!")
        else:
            self.display.print_error(f"Cleanup finished with {len(cleanup.errors)} error(s)")
            self.exit_code = 1
