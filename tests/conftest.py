"""
Shared fixtures for Frappeur tests.
"""

import pytest

from frappeur.config.settings import FrappeurConfig
from frappeur.di.container import FrappeurContainer
from helpers import FakeChainClient, WebhookTarget, new_address


# ================================================================
# Fixtures
# ================================================================


@pytest.fixture
def fake_chain() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def webhook_target() -> WebhookTarget:
    return WebhookTarget()


@pytest.fixture
def tree_address() -> str:
    return new_address()


@pytest.fixture
def collection_address() -> str:
    return new_address()


@pytest.fixture
def recipient() -> str:
    return new_address()


@pytest.fixture
def test_settings(tree_address, collection_address) -> FrappeurConfig:
    """Settings with every delay set to zero and one active collection."""
    return FrappeurConfig(
        environment="test",
        log_level="warning",
        confirmation={
            "max_attempts": 3,
            "poll_interval": 0.0,
            "max_polls": 3,
            "retry_delay": 0.0,
            "blockhash_retry_delay": 0.0,
            "rate_limit_base_delay": 0.0,
        },
        leaf_index={"initial_delay": 0.0, "retry_delay": 0.0},
        # Long interval: tests drive monitor cycles by hand
        indexing={"check_interval": 60.0, "max_attempts": 3, "probe_timeout": 1.0},
        webhooks={"retry_attempts": 3, "retry_delay": 0.0, "timeout": 1.0},
        batch={"max_items": 5, "item_delay": 0.0},
        collections=[
            {
                "id": "tickets",
                "name": "Tickets",
                "symbol": "TIX",
                "tree_address": tree_address,
                "collection_address": collection_address,
                "seller_fee_basis_points": 500,
            },
            {
                "id": "paused",
                "name": "Paused drop",
                "tree_address": tree_address,
                "collection_address": collection_address,
                "status": "paused",
            },
        ],
    )


@pytest.fixture
async def container(test_settings, fake_chain, webhook_target):
    """Container wired to the fake chain and the recording webhook target."""
    container = FrappeurContainer(
        test_settings,
        chain_client=fake_chain,
        webhook_http_client=webhook_target.client(),
    )
    await container.initialize()
    yield container
    await container.shutdown()
