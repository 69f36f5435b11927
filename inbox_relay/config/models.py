from pydantic import BaseModel, Field
from typing import Literal


class StorageConfig(BaseModel):
    provider: Literal["dropbox", "local"] = "dropbox"
    access_token: str | None = None
    access_token_env: str = "DROPBOX_ACCESS_TOKEN"
    refresh_token: str | None = None
    app_key_env: str = "DROPBOX_APP_KEY"
    app_secret_env: str = "DROPBOX_APP_SECRET"
    local_root: str = "./relay-storage"
    timeout: int = Field(default=100, gt=0)


class PollConfig(BaseModel):
    initial_delay: float = Field(default=1.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1)
    max_delay: float = Field(default=30.0, ge=0)
    max_wait: float = Field(default=900.0, ge=0)


class ConversionConfig(BaseModel):
    base_url: str = "https://sandbox.zamzar.com/v1/"
    api_key: str | None = None
    api_key_env: str = "ZAMZAR_API_KEY"
    timeout: int = Field(default=60, gt=0)
    poll: PollConfig = Field(default_factory=PollConfig)


class FolderConfig(BaseModel):
    inbox: str = "/To Convert"
    converted: str = "/Converted"
    unconvertible: str = "/Can't Convert"


class RelayConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
    folders: FolderConfig = Field(default_factory=FolderConfig)
    conversions: dict[str, str] = Field(default_factory=dict)
    idle_interval: float = Field(default=3.0, ge=0)
    same_format_policy: Literal["leave", "move"] = "leave"
    partial_fetch_policy: Literal["abort", "best_effort"] = "abort"
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
