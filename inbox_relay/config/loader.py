"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from inbox_relay.errors import ConfigurationError

from .models import ConversionConfig, RelayConfig, StorageConfig


def config_search_paths(cli_path: str | None = None) -> list[Path]:
    """Candidate config files in resolution order: CLI > project-local > user-global."""
    paths = [
        Path(cli_path) if cli_path else None,
        Path("./inbox_relay.yaml"),
        Path.home() / ".inbox_relay" / "config.yaml",
    ]
    return [p for p in paths if p is not None]


def find_config_file(cli_path: str | None = None) -> Path | None:
    for path in config_search_paths(cli_path):
        if path.exists():
            return path
    return None


def load_config(cli_path: str | None = None) -> RelayConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    if cli_path and not Path(cli_path).exists():
        raise ConfigurationError(f"Config file not found: {cli_path}")

    for path in config_search_paths(cli_path):
        if path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                if not isinstance(raw, dict):
                    raise ConfigurationError(f"Invalid config in {path}: expected a mapping")
                raw = _expand_env_vars(raw)
                return RelayConfig(**raw)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ConfigurationError(f"Invalid config in {path}: {e}") from e

    return RelayConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def resolve_api_key(config: ConversionConfig) -> str:
    """Return the conversion-service API key: explicit value, then env var."""
    key = config.api_key or os.environ.get(config.api_key_env, "")
    if not key:
        raise ConfigurationError(
            f"Conversion API key not found. Set conversion.api_key or the "
            f"{config.api_key_env} environment variable."
        )
    return key


def resolve_access_token(config: StorageConfig) -> str:
    """Return the Dropbox access token: explicit value, then env var."""
    token = config.access_token or os.environ.get(config.access_token_env, "")
    if not token:
        raise ConfigurationError(
            f"Dropbox access token not found. Run `inbox-relay auth`, set "
            f"storage.access_token, or set the {config.access_token_env} environment variable."
        )
    return token


def resolve_app_credentials(config: StorageConfig) -> tuple[str, str]:
    """Return the Dropbox (app_key, app_secret) pair from the environment."""
    app_key = os.environ.get(config.app_key_env, "")
    app_secret = os.environ.get(config.app_secret_env, "")
    if not app_key or not app_secret:
        raise ConfigurationError(
            f"Dropbox app credentials not found. Set {config.app_key_env} "
            f"and {config.app_secret_env}."
        )
    return app_key, app_secret


def save_tokens(path: Path, access_token: str, refresh_token: str | None = None) -> None:
    """Write Dropbox tokens into the storage section of the YAML file at path.

    Other keys in the file are kept.
    """
    raw: dict = {}
    if path.exists():
        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    storage = raw.setdefault("storage", {})
    storage["access_token"] = access_token
    if refresh_token:
        storage["refresh_token"] = refresh_token
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(raw, default_flow_style=False, sort_keys=False))


# Default YAML template for `inbox-relay config init`
DEFAULT_CONFIG_TEMPLATE = """\
# inbox_relay.yaml

# Remote storage
storage:
  provider: "dropbox"          # dropbox | local
  # access_token: "${DROPBOX_ACCESS_TOKEN}"
  access_token_env: "DROPBOX_ACCESS_TOKEN"
  app_key_env: "DROPBOX_APP_KEY"
  app_secret_env: "DROPBOX_APP_SECRET"
  local_root: "./relay-storage"
  timeout: 100

# Conversion service
conversion:
  base_url: "https://sandbox.zamzar.com/v1/"
  api_key_env: "ZAMZAR_API_KEY"
  timeout: 60
  poll:
    initial_delay: 1.0
    multiplier: 2.0
    max_delay: 30.0
    max_wait: 900

# Folders watched and written
folders:
  inbox: "/To Convert"
  converted: "/Converted"
  unconvertible: "/Can't Convert"

# Source extension -> target extension
conversions:
  docx: "pdf"
  doc: "pdf"
  odt: "pdf"
  bmp: "png"
  gif: "png"
  "tar.gz": "zip"

idle_interval: 3.0
same_format_policy: "leave"    # leave | move
partial_fetch_policy: "abort"  # abort | best_effort

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
