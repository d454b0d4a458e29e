"""Collaborator implementations: in-memory state and YAML-backed config."""

from tradeapp.storage.config_store import YamlConfigStore
from tradeapp.storage.memory import InMemoryAccountRepository, InMemoryMarketData, OrderRecord

__all__ = [
    "YamlConfigStore",
    "InMemoryAccountRepository",
    "InMemoryMarketData",
    "OrderRecord",
]
