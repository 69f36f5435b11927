"""inbox-relay - watch a cloud-storage inbox and route files through a conversion service."""

from inbox_relay.config import RelayConfig, load_config
from inbox_relay.conversion import ZamzarClient, create_conversion_client
from inbox_relay.pipeline import Orchestrator
from inbox_relay.storage import DropboxStorage, LocalStorage, StorageProvider, create_storage

__version__ = "0.1.0"

__all__ = [
    "DropboxStorage",
    "LocalStorage",
    "Orchestrator",
    "RelayConfig",
    "StorageProvider",
    "ZamzarClient",
    "create_conversion_client",
    "create_storage",
    "load_config",
]
