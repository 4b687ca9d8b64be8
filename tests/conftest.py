"""Shared pytest fixtures for the ANF replication sample test suite."""

from typing import List
from unittest.mock import MagicMock

import pytest

from config import PRIMARY, SECONDARY, SampleConfig, SiteConfig

SUBSCRIPTION = "00000000-1111-2222-3333-444444444444"
ACCOUNT_ID = (
    f"/subscriptions/{SUBSCRIPTION}/resourceGroups/anf-primary-rg"
    "/providers/Microsoft.NetApp/netAppAccounts/PrimaryANFAccount"
)
POOL_ID = f"{ACCOUNT_ID}/capacityPools/PrimaryPool"
VOLUME_ID = f"{POOL_ID}/volumes/PrimaryVolume"
SNAPSHOT_ID = f"{VOLUME_ID}/snapshots/snap-1"


class RecordingSleep:
    """Stand-in for time.sleep that only records the requested delays."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


# ---------------------------------------------------------------------------
# Resource id fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def account_id() -> str:
    return ACCOUNT_ID


@pytest.fixture()
def pool_id() -> str:
    return POOL_ID


@pytest.fixture()
def volume_id() -> str:
    return VOLUME_ID


@pytest.fixture()
def snapshot_id() -> str:
    return SNAPSHOT_ID


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def anf_client() -> MagicMock:
    """AnfClient double; observation methods succeed unless a test says otherwise."""
    return MagicMock(name="AnfClient")


def make_site(side: str) -> SiteConfig:
    prefix = side.lower()
    return SiteConfig(
        side=side,
        location="westus" if side == PRIMARY else "eastus",
        resource_group_name=f"anf-{prefix}-rg",
        vnet_resource_group_name=f"anf-{prefix}-rg",
        vnet_name=f"{prefix}-vnet",
        subnet_name=f"anf-{prefix}-sn",
        account_name=f"{side}ANFAccount",
        pool_name=f"{side}Pool",
        volume_name=f"{side}Volume",
        service_level="Premium" if side == PRIMARY else "Standard",
    )


@pytest.fixture()
def sample_config() -> SampleConfig:
    """Configuration with a zero poll interval and a small retry budget."""
    return SampleConfig(
        subscription_id=SUBSCRIPTION,
        primary=make_site(PRIMARY),
        secondary=make_site(SECONDARY),
        poll_interval=0,
        poll_retries=3,
        delete_poll_retries=3,
    )
