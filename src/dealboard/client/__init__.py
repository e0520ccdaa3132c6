"""Dashboard client -- REST client, persisted selection, state store and controller."""

from src.dealboard.client.dashboard import DashboardController
from src.dealboard.client.http import DealboardAPIError, DealboardClient
from src.dealboard.client.state import DashboardState, DashboardStore, reduce
from src.dealboard.client.storage import (
    SELECTED_ORGANIZATION_KEY,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)

__all__ = [
    "DashboardController",
    "DashboardState",
    "DashboardStore",
    "DealboardAPIError",
    "DealboardClient",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "SELECTED_ORGANIZATION_KEY",
    "reduce",
]
