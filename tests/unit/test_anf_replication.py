"""Tests for the replication orchestrator.

Verifies the per-site sequencing, the Secondary data protection volume,
replication authorization and that a failing step stops the run.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, call

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError, ServiceRequestError

from config import PRIMARY, SECONDARY, SampleConfig
from modules.anf_exceptions import MutationError, PreflightError, WaitTimeoutError
from modules.anf_replication import MIRRORED, ReplicationOrchestrator, SiteState


def resource(resource_id: str) -> SimpleNamespace:
    return SimpleNamespace(id=resource_id)


@pytest.fixture()
def client() -> MagicMock:
    client = MagicMock(name="AnfClient")
    client.create_account.side_effect = lambda location, rg, name, tags: resource(f"/acc/{name}")
    client.create_capacity_pool.side_effect = lambda location, rg, acc, name, *args: resource(f"/pool/{name}")
    client.create_volume.side_effect = lambda location, rg, acc, pool, name, *args, **kwargs: resource(f"/vol/{name}")
    client.create_snapshot.side_effect = lambda location, rg, acc, pool, vol, name: resource(f"/snap/{name}")
    return client


@pytest.fixture()
def poller() -> MagicMock:
    return MagicMock(name="ResourcePoller")


@pytest.fixture()
def orchestrator(sample_config: SampleConfig, client: MagicMock, poller: MagicMock) -> ReplicationOrchestrator:
    return ReplicationOrchestrator(sample_config, client, poller)


class TestHappyPath:
    def test_both_sides_reach_final_state(self, orchestrator: ReplicationOrchestrator) -> None:
        orchestrator.run()
        assert orchestrator.primary.state is SiteState.VOLUME_READY
        assert orchestrator.secondary.state is SiteState.REPLICATION_LINKED

    def test_ids_are_recorded(self, orchestrator: ReplicationOrchestrator) -> None:
        orchestrator.run()
        assert orchestrator.primary.account_id == "/acc/PrimaryANFAccount"
        assert orchestrator.primary.pool_id == "/pool/PrimaryPool"
        assert orchestrator.secondary.volume_id == "/vol/SecondaryVolume"

    def test_primary_is_provisioned_before_secondary(self, orchestrator: ReplicationOrchestrator, client: MagicMock) -> None:
        orchestrator.run()
        created = [c.args[2] for c in client.create_account.call_args_list]
        assert created == ["PrimaryANFAccount", "SecondaryANFAccount"]

    def test_subnet_checked_with_network_api_version(
        self, orchestrator: ReplicationOrchestrator, client: MagicMock, sample_config: SampleConfig
    ) -> None:
        orchestrator.run()
        subnet_id = sample_config.primary.subnet_id(sample_config.subscription_id)
        assert client.get_resource_by_id.call_args_list[0] == call(subnet_id, "2019-09-01")

    def test_only_secondary_volume_has_data_protection(
        self, orchestrator: ReplicationOrchestrator, client: MagicMock
    ) -> None:
        orchestrator.run()
        primary_call, secondary_call = client.create_volume.call_args_list
        assert primary_call.kwargs["data_protection"] is None
        replication = secondary_call.kwargs["data_protection"].replication
        assert replication.remote_volume_resource_id == "/vol/PrimaryVolume"
        assert replication.remote_volume_region == "westus"

    def test_waits_and_authorization(
        self, orchestrator: ReplicationOrchestrator, client: MagicMock, poller: MagicMock
    ) -> None:
        orchestrator.run()
        assert poller.wait_for_resource.call_args_list == [
            call("/vol/PrimaryVolume", 0, 3),
            call("/vol/SecondaryVolume", 0, 3),
            call("/vol/PrimaryVolume", 0, 3, check_replication=True),
        ]
        client.authorize_replication.assert_called_once_with(
            "anf-primary-rg", "PrimaryANFAccount", "PrimaryPool", "PrimaryVolume", "/vol/SecondaryVolume"
        )

    def test_optional_steps_off_by_default(
        self, orchestrator: ReplicationOrchestrator, client: MagicMock, poller: MagicMock
    ) -> None:
        orchestrator.run()
        poller.wait_for_mirror_state.assert_not_called()
        client.create_snapshot.assert_not_called()


class TestOptionalSteps:
    def test_wait_for_mirrored(self, sample_config: SampleConfig, client: MagicMock, poller: MagicMock) -> None:
        sample_config.wait_for_mirrored = True
        poller.wait_for_mirror_state.return_value = SimpleNamespace(mirror_state=MIRRORED)
        ReplicationOrchestrator(sample_config, client, poller).run()
        poller.wait_for_mirror_state.assert_called_once_with("/vol/SecondaryVolume", "Mirrored", 0, 3)

    def test_snapshot(self, sample_config: SampleConfig, client: MagicMock, poller: MagicMock) -> None:
        sample_config.snapshot_name = "snap-1"
        orchestrator = ReplicationOrchestrator(sample_config, client, poller)
        orchestrator.run()
        assert orchestrator.primary.snapshot_id == "/snap/snap-1"
        poller.wait_for_resource.assert_called_with("/snap/snap-1", 0, 3)


class TestFailures:
    def test_missing_subnet_aborts_before_creation(
        self, orchestrator: ReplicationOrchestrator, client: MagicMock
    ) -> None:
        client.get_resource_by_id.side_effect = ResourceNotFoundError("NotFound")
        with pytest.raises(PreflightError, match="not found"):
            orchestrator.run()
        client.create_account.assert_not_called()
        assert orchestrator.primary.state is SiteState.NOT_STARTED

    @pytest.mark.parametrize("cause", [HttpResponseError("Forbidden"), ServiceRequestError("name resolution failed")])
    def test_subnet_check_error(
        self, orchestrator: ReplicationOrchestrator, client: MagicMock, cause: Exception
    ) -> None:
        client.get_resource_by_id.side_effect = cause
        with pytest.raises(PreflightError) as exc_info:
            orchestrator.run()
        assert exc_info.value.__cause__ is cause
        client.create_account.assert_not_called()

    def test_pool_failure_stops_site(self, orchestrator: ReplicationOrchestrator, client: MagicMock) -> None:
        client.create_capacity_pool.side_effect = MutationError("create capacity pool", "PrimaryPool", HttpResponseError("x"))
        with pytest.raises(MutationError):
            orchestrator.run()
        assert orchestrator.primary.state is SiteState.ACCOUNT_CREATED
        assert orchestrator.primary.pool_id is None
        client.create_volume.assert_not_called()
        assert orchestrator.sites[SECONDARY].state is SiteState.NOT_STARTED

    def test_volume_wait_timeout_is_fatal(
        self, orchestrator: ReplicationOrchestrator, client: MagicMock, poller: MagicMock
    ) -> None:
        poller.wait_for_resource.side_effect = WaitTimeoutError("timeout", "/vol/PrimaryVolume", 3)
        with pytest.raises(WaitTimeoutError):
            orchestrator.run()
        assert orchestrator.sites[PRIMARY].state is SiteState.VOLUME_CREATED
        client.authorize_replication.assert_not_called()

    def test_authorization_failure(self, orchestrator: ReplicationOrchestrator, client: MagicMock) -> None:
        client.authorize_replication.side_effect = MutationError(
            "authorize volume replication", "PrimaryVolume", HttpResponseError("x")
        )
        with pytest.raises(MutationError):
            orchestrator.run()
        assert orchestrator.secondary.state is SiteState.VOLUME_READY
