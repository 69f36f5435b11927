from .loader import (
    find_config_file,
    load_config,
    resolve_access_token,
    resolve_api_key,
    resolve_app_credentials,
)
from .models import (
    ConversionConfig,
    FolderConfig,
    PollConfig,
    RelayConfig,
    StorageConfig,
)

__all__ = [
    "ConversionConfig",
    "FolderConfig",
    "PollConfig",
    "RelayConfig",
    "StorageConfig",
    "find_config_file",
    "load_config",
    "resolve_access_token",
    "resolve_api_key",
    "resolve_app_credentials",
]
