"""Tests for the application run / exit handling and the CLI entry point."""

import os
from unittest.mock import MagicMock, patch

import pytest
from azure.core.exceptions import HttpResponseError, ServiceRequestError

from app import AnfReplicationApplication
from config import SampleConfig
from main import build_parser, main
from modules.anf_exceptions import ConfigurationError, MutationError
from modules.anf_sdk import AnfClient

from conftest import SUBSCRIPTION


@pytest.fixture()
def client() -> MagicMock:
    return MagicMock(name="AnfClient")


@pytest.fixture()
def poller() -> MagicMock:
    return MagicMock(name="ResourcePoller")


def application(config: SampleConfig, client: MagicMock, poller: MagicMock) -> AnfReplicationApplication:
    return AnfReplicationApplication(config, display=MagicMock(), client=client, poller=poller)


class TestRun:
    def test_success_without_cleanup(self, sample_config: SampleConfig, client: MagicMock, poller: MagicMock) -> None:
        assert application(sample_config, client, poller).run() == 0
        client.authorize_replication.assert_called_once()
        client.delete_account.assert_not_called()

    def test_cleanup_when_enabled(self, sample_config: SampleConfig, client: MagicMock, poller: MagicMock) -> None:
        sample_config.should_cleanup = True
        assert application(sample_config, client, poller).run() == 0
        assert client.delete_account.call_count == 2

    def test_failure_sets_exit_code(self, sample_config: SampleConfig, client: MagicMock, poller: MagicMock) -> None:
        client.create_volume.side_effect = MutationError("create volume", "PrimaryVolume", HttpResponseError("x"))
        assert application(sample_config, client, poller).run() == 1
        client.delete_account.assert_not_called()

    def test_failure_with_cleanup_removes_created_resources(
        self, sample_config: SampleConfig, client: MagicMock, poller: MagicMock
    ) -> None:
        sample_config.should_cleanup = True
        client.create_volume.side_effect = MutationError("create volume", "PrimaryVolume", HttpResponseError("x"))
        app = application(sample_config, client, poller)
        assert app.run() == 1
        # Only the Primary account and pool existed
        client.delete_volume.assert_not_called()
        client.delete_capacity_pool.assert_called_once()
        client.delete_account.assert_called_once()

    def test_cleanup_failure_sets_exit_code(
        self, sample_config: SampleConfig, client: MagicMock, poller: MagicMock
    ) -> None:
        sample_config.should_cleanup = True
        client.delete_account.side_effect = MutationError("delete account", "acc", HttpResponseError("Conflict"))
        assert application(sample_config, client, poller).run() == 1

    def test_transport_failure_sets_exit_code(self, sample_config: SampleConfig, poller: MagicMock) -> None:
        netapp = MagicMock(name="NetAppManagementClient")
        netapp.accounts.begin_create_or_update.side_effect = ServiceRequestError("connection refused")
        client = AnfClient(None, SUBSCRIPTION, netapp_client=netapp, resource_client=MagicMock())
        display = MagicMock()
        app = AnfReplicationApplication(sample_config, display=display, client=client, poller=poller)

        assert app.run() == 1
        assert "connection refused" in display.print_error.call_args.args[0]
        netapp.pools.begin_create_or_update.assert_not_called()

    def test_summary_printed_per_site(self, sample_config: SampleConfig, client: MagicMock, poller: MagicMock) -> None:
        display = MagicMock()
        AnfReplicationApplication(sample_config, display=display, client=client, poller=poller).run()
        assert [c.args[0] for c in display.print_resources.call_args_list] == ["Primary", "Secondary"]
        assert display.print_resources.call_args.args[1]["snapshot"] is None

    def test_credential_validation_failure(self, sample_config: SampleConfig) -> None:
        with patch("app.CredentialManager") as credential_manager:
            credential_manager.return_value.validate_credential.return_value = False
            app = AnfReplicationApplication(sample_config, display=MagicMock())
            assert app.run() == 1
        assert app.orchestrator is None


class TestCli:
    @patch.dict(os.environ, {}, clear=True)
    def test_parser_defaults_are_none(self) -> None:
        args = build_parser().parse_args([])
        assert args.subscription_id is None
        assert args.should_cleanup is None
        assert args.log_file == "anf_crr_sample.log"

    @patch.dict(os.environ, {"ANF_POLL_RETRIES": "7", "ANF_SHOULD_CLEANUP": "yes"}, clear=True)
    def test_parser_reads_environment(self) -> None:
        args = build_parser().parse_args([])
        assert args.poll_retries == 7
        assert args.should_cleanup is True

    def test_parser_flags(self) -> None:
        args = build_parser().parse_args(["--cleanup", "true", "--poll-interval", "5", "--snapshot-name", "s1"])
        assert args.should_cleanup is True
        assert args.poll_interval == 5
        assert args.snapshot_name == "s1"

    @patch.dict(os.environ, {}, clear=True)
    def test_main_runs_application(self, tmp_path) -> None:
        with patch("main.ConfigurationManager") as manager_cls, patch("main.AnfReplicationApplication") as app_cls, \
                patch("main.setup_logging"):
            app_cls.return_value.run.return_value = 0
            exit_code = main(["--subscription-id", SUBSCRIPTION, "--log-file", str(tmp_path / "x.log")])
        assert exit_code == 0
        overrides = manager_cls.return_value.get_sample_config.call_args.kwargs
        assert overrides["subscription_id"] == SUBSCRIPTION
        assert "log_file" not in overrides

    @patch.dict(os.environ, {}, clear=True)
    def test_main_invalid_configuration(self) -> None:
        with patch("main.ConfigurationManager") as manager_cls, patch("main.setup_logging"):
            manager_cls.return_value.get_sample_config.side_effect = ConfigurationError("bad")
            assert main([]) == 1
