"""Shared test doubles."""

from helpers.fake_chain import (
    FakeChainClient,
    new_address,
    not_found,
    tree_config_data,
    wait_until,
)
from helpers.webhook_target import WebhookTarget

__all__ = [
    "FakeChainClient",
    "WebhookTarget",
    "new_address",
    "not_found",
    "tree_config_data",
    "wait_until",
]
