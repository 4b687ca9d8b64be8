"""Tests for credential selection and validation."""

from unittest.mock import MagicMock

from azure.core.exceptions import ClientAuthenticationError
from azure.identity import ChainedTokenCredential, ClientSecretCredential

from config import SampleConfig
from credentials import MANAGEMENT_SCOPE, CredentialManager


def test_service_principal_when_fully_configured(sample_config: SampleConfig) -> None:
    sample_config.tenant_id = "tenant"
    sample_config.client_id = "client"
    sample_config.client_secret = "secret"
    credential = CredentialManager(sample_config, MagicMock()).get_credential()
    assert isinstance(credential, ClientSecretCredential)


def test_chain_when_secret_missing(sample_config: SampleConfig) -> None:
    sample_config.tenant_id = "tenant"
    sample_config.client_id = "client"
    credential = CredentialManager(sample_config, MagicMock()).get_credential()
    assert isinstance(credential, ChainedTokenCredential)


def test_validate_requests_management_token(sample_config: SampleConfig) -> None:
    credential = MagicMock()
    assert CredentialManager(sample_config, MagicMock()).validate_credential(credential) is True
    credential.get_token.assert_called_once_with(MANAGEMENT_SCOPE)


def test_validate_authentication_failure(sample_config: SampleConfig) -> None:
    credential = MagicMock()
    credential.get_token.side_effect = ClientAuthenticationError("denied")
    display = MagicMock()
    assert CredentialManager(sample_config, display).validate_credential(credential) is False
    display.print_error.assert_called_once()
