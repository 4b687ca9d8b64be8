"""
Azure credential management for the NetApp Files control plane.

A service principal supplied through settings is used directly; otherwise a
chain of environment and managed identity credentials is tried.
"""

from azure.identity import (
    ChainedTokenCredential,
    ClientSecretCredential,
    EnvironmentCredential,
    ManagedIdentityCredential
)
from azure.core.exceptions import ClientAuthenticationError
from azure.core.credentials import TokenCredential

from config import SampleConfig
from display import DisplayManager


MANAGEMENT_SCOPE = "https://management.azure.com/.default"


class CredentialManager:
    """Manages Azure authentication credentials with fallback strategies."""

    def __init__(self, config: SampleConfig, display: DisplayManager):
        """Initialize credential manager with configuration and display handler."""
        self.config = config
        self.display = display

    def get_credential(self) -> TokenCredential:
        """
        Get Azure credential for the management plane.

        Returns:
            TokenCredential: Azure credential for authentication
        """
        if all([self.config.tenant_id, self.config.client_id, self.config.client_secret]):
            self.display.print_info(f"Using service principal {self.config.client_id} in tenant {self.config.tenant_id}")
            return ClientSecretCredential(
                tenant_id=self.config.tenant_id,
                client_id=self.config.client_id,
                client_secret=self.config.client_secret,
            )
        return self._get_chained_credential()

    def _get_chained_credential(self) -> ChainedTokenCredential:
        """Get credential using a custom chain for better control."""
        self.display.print_info("Using default credential chain")
        return ChainedTokenCredential(
            # Service principal via environment variables
            EnvironmentCredential(),
            # For Azure-hosted scenarios
            ManagedIdentityCredential())

    def validate_credential(self, credential: TokenCredential) -> bool:
        """
        Validate credential by attempting to get a management token.

        Args:
            credential: The credential to validate

        Returns:
            bool: True if credential is valid, False otherwise
        """
        try:
            self.display.print_info("Validating Azure credential...")
            token = credential.get_token(MANAGEMENT_SCOPE)
            self.display.print_success(f"Credential validated. Token expires at: {token.expires_on}")
            return True
        except ClientAuthenticationError as e:
            self.display.print_error(f"Credential validation failed: {e}")
            return False
