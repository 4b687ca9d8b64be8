"""
Configuration management for the Azure NetApp Files replication sample.

This module loads settings from a .env file and the environment, applies
command-line overrides and validates the result before any resource is touched.
"""

import os
import json
import logging
from typing import Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum

from dotenv import load_dotenv

from display import DisplayManager
from modules.anf_exceptions import ConfigurationError
from modules.anf_sdk import VALID_PROTOCOLS, validate_service_level
from modules.anf_uri import build_subnet_id


PRIMARY = "Primary"
SECONDARY = "Secondary"

CAPACITY_POOL_SIZE_BYTES = 4398046511104  # 4TiB (minimum capacity pool size)
VOLUME_SIZE_BYTES = 107374182400  # 100GiB (minimum volume size)

SAMPLE_TAGS = {
    "Author": "ANF Python CRR SDK Sample",
    "Service": "Azure Netapp Files",
}

_TRUE_VALUES = ("1", "true", "yes", "y", "on")


class LogLevel(Enum):
    """Logging levels for the application."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


def str_to_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def _log_level_env() -> LogLevel:
    return LogLevel.__members__.get(os.getenv("ANF_LOG_LEVEL", "INFO").upper(), LogLevel.INFO)


@dataclass
class SiteConfig:
    """
    Resources of one side (Primary or Secondary) of the replication.

    Attributes:
        side: "Primary" or "Secondary"
        location: Azure region of every resource on this side
        resource_group_name: Resource group holding the NetApp account
        vnet_resource_group_name: Resource group holding the virtual network
        vnet_name: Virtual network with the delegated subnet
        subnet_name: Subnet delegated to Microsoft.NetApp/volumes
        account_name: NetApp account to create
        pool_name: Capacity pool to create
        volume_name: Volume to create
        service_level: Standard, Premium or Ultra
    """
    side: str
    location: str
    resource_group_name: str
    vnet_resource_group_name: str
    vnet_name: str
    subnet_name: str
    account_name: str
    pool_name: str
    volume_name: str
    service_level: str

    def __post_init__(self):
        """Validate configuration after initialization."""
        missing = [name for name, value in vars(self).items() if not value]
        if missing:
            raise ConfigurationError(f"{self.side} settings missing: {', '.join(missing)}")
        validate_service_level(self.service_level)

    def subnet_id(self, subscription_id: str) -> str:
        return build_subnet_id(subscription_id, self.vnet_resource_group_name, self.vnet_name, self.subnet_name)


@dataclass
class SampleConfig:
    """
    Settings for a full run of the sample.

    Attributes:
        subscription_id: Subscription where both sides are deployed
        primary: Replication source side
        secondary: Replication destination side
        tenant_id, client_id, client_secret: Optional service principal
        should_cleanup: Delete everything when the run ends
        poll_interval: Seconds between observations while waiting
        poll_retries: Attempts when waiting for a resource to be ready
        delete_poll_retries: Attempts when waiting for a resource to disappear
        wait_for_mirrored: Also wait for the secondary mirror state to be Mirrored
        snapshot_name: Optional snapshot taken on the primary volume
        break_replication_on_cleanup: Break the replication before deleting it
    """
    subscription_id: str
    primary: SiteConfig
    secondary: SiteConfig
    tenant_id: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    capacity_pool_size_bytes: int = CAPACITY_POOL_SIZE_BYTES
    volume_size_bytes: int = VOLUME_SIZE_BYTES
    protocol_types: List[str] = field(default_factory=lambda: ["NFSv3"])
    replication_schedule: str = "hourly"
    tags: Dict[str, str] = field(default_factory=lambda: dict(SAMPLE_TAGS))
    should_cleanup: bool = False
    poll_interval: int = 60
    poll_retries: int = 50
    delete_poll_retries: int = 60
    wait_for_mirrored: bool = False
    snapshot_name: Optional[str] = None
    break_replication_on_cleanup: bool = False
    log_level: LogLevel = LogLevel.INFO

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.subscription_id:
            raise ConfigurationError(
                "Subscription ID is missing. Set AZURE_SUBSCRIPTION_ID or point "
                "AZURE_AUTH_LOCATION to an auth file containing subscriptionId."
            )
        if self.poll_interval < 0:
            raise ConfigurationError("Poll interval cannot be negative")
        if self.poll_retries < 1 or self.delete_poll_retries < 1:
            raise ConfigurationError("Poll retries must be at least 1")
        if not self.protocol_types or self.protocol_types[0] not in VALID_PROTOCOLS:
            raise ConfigurationError(
                f"Invalid protocol types {self.protocol_types}, valid protocol types are: {', '.join(VALID_PROTOCOLS)}"
            )

    @property
    def sites(self) -> Dict[str, SiteConfig]:
        return {PRIMARY: self.primary, SECONDARY: self.secondary}


_SITE_DEFAULTS = {
    PRIMARY: {
        "location": "westus",
        "resource_group_name": "anf-primary-rg",
        "vnet_resource_group_name": "anf-primary-rg",
        "vnet_name": "westus-primary-vnet",
        "subnet_name": "anf-primary-sn",
        "account_name": "PrimaryANFAccount",
        "pool_name": "PrimaryPool",
        "volume_name": "PrimaryVolume",
        "service_level": "Premium",
    },
    SECONDARY: {
        "location": "eastus",
        "resource_group_name": "anf-secondary-rg",
        "vnet_resource_group_name": "anf-secondary-rg",
        "vnet_name": "eastus-secondary-vnet",
        "subnet_name": "anf-secondary-sn",
        "account_name": "SecondaryANFAccount",
        "pool_name": "SecondaryPool",
        "volume_name": "SecondaryVolume",
        "service_level": "Standard",
    },
}


class ConfigurationManager:
    """Manages application configuration and environment variables."""

    def __init__(self, display: Optional[DisplayManager] = None, load_env_file: bool = True):
        """Initialize configuration manager and load environment variables."""
        self.display = display or DisplayManager()
        if load_env_file:
            self._load_environment()

    def _load_environment(self) -> None:
        """Load environment variables from .env file."""
        if load_dotenv():
            self.display.print_info("Environment variables loaded from .env file")
        else:
            self.display.print_warning("Failed to load .env file, using system environment variables")

    @staticmethod
    def _site_from_env(side: str) -> SiteConfig:
        """Read a site from ANF_<SIDE>_<SETTING> variables, e.g. ANF_PRIMARY_LOCATION."""
        prefix = f"ANF_{side.upper()}_"
        values = {
            key: os.getenv(prefix + key.upper(), default)
            for key, default in _SITE_DEFAULTS[side].items()
        }
        return SiteConfig(side=side, **values)

    def get_subscription_id(self) -> Optional[str]:
        """Subscription from AZURE_SUBSCRIPTION_ID, falling back to the AZURE_AUTH_LOCATION file."""
        subscription_id = os.getenv("AZURE_SUBSCRIPTION_ID")
        if subscription_id:
            return subscription_id

        auth_location = os.getenv("AZURE_AUTH_LOCATION")
        if not auth_location:
            return None
        try:
            with open(auth_location, encoding="utf-8-sig") as auth_file:
                auth_info = json.load(auth_file)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Unable to read Azure auth file {auth_location}: {e}") from e
        self.display.print_info(f"Subscription read from auth file {auth_location}")
        return auth_info.get("subscriptionId")

    def get_sample_config(self, **overrides) -> SampleConfig:
        """
        Create and validate the sample configuration.

        Args:
            **overrides: SampleConfig fields taking precedence over the environment;
                None values are ignored

        Returns:
            SampleConfig: Validated configuration

        Raises:
            ConfigurationError: If a required setting is missing or invalid
        """
        protocol_types = os.getenv("ANF_PROTOCOL_TYPES", "NFSv3")
        snapshot_name = os.getenv("ANF_SNAPSHOT_NAME")
        settings = {
            "subscription_id": self.get_subscription_id() if overrides.get("subscription_id") is None else None,
            "primary": self._site_from_env(PRIMARY),
            "secondary": self._site_from_env(SECONDARY),
            "tenant_id": os.getenv("ARM_TENANT_ID"),
            "client_id": os.getenv("ARM_CLIENT_ID"),
            "client_secret": os.getenv("ARM_CLIENT_SECRET"),
            "capacity_pool_size_bytes": _int_env("ANF_CAPACITY_POOL_SIZE_BYTES", CAPACITY_POOL_SIZE_BYTES),
            "volume_size_bytes": _int_env("ANF_VOLUME_SIZE_BYTES", VOLUME_SIZE_BYTES),
            "protocol_types": [p.strip() for p in protocol_types.split(",") if p.strip()],
            "replication_schedule": os.getenv("ANF_REPLICATION_SCHEDULE", "hourly"),
            "should_cleanup": str_to_bool(os.getenv("ANF_SHOULD_CLEANUP", "false")),
            "poll_interval": _int_env("ANF_POLL_INTERVAL_SECONDS", 60),
            "poll_retries": _int_env("ANF_POLL_RETRIES", 50),
            "delete_poll_retries": _int_env("ANF_DELETE_POLL_RETRIES", 60),
            "wait_for_mirrored": str_to_bool(os.getenv("ANF_WAIT_FOR_MIRRORED", "false")),
            "snapshot_name": snapshot_name or None,
            "break_replication_on_cleanup": str_to_bool(os.getenv("ANF_BREAK_REPLICATION_ON_CLEANUP", "false")),
            "log_level": _log_level_env(),
        }
        settings.update({key: value for key, value in overrides.items() if value is not None})

        config = SampleConfig(**settings)
        self.display.print_info(
            f"Primary: {config.primary.location}/{config.primary.account_name} -> "
            f"Secondary: {config.secondary.location}/{config.secondary.account_name}"
        )
        if config.should_cleanup:
            self.display.print_info("Clean up is enabled - all resources will be deleted at the end")
        return config
