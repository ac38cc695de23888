import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

_CONFIG_PATH = os.getenv("IMAGE_BROWSER_CONFIG", "config.toml")
_ENV_PATH = os.getenv("IMAGE_BROWSER_ENV", ".env")


class AuthSettings(BaseModel):
    username: str = "admin"
    password: str = "change-me"
    realm: str = "Image Browser"


class StorageSettings(BaseModel):
    backend: Literal["memory", "s3"] = "memory"
    bucket: str = "images"
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    region: str = "auto"
    public_base_url: str = "https://images.example.com"


class LimitSettings(BaseModel):
    max_path_length: int = 1024
    max_filename_length: int = 255
    max_upload_size: int = 10 * 1024 * 1024  # 10MB
    list_page_size: int = 1000
    max_descendants: int = 10000
    descendant_ceiling: int = 50000
    batch_size: int = 50
    max_rename_attempts: int = 1000
    max_depth: int = 10
    result_report_cap: int = 100


class AuditSettings(BaseModel):
    enabled: bool = True
    log_file: str = "operations.log"
    log_request_body: bool = True
    max_body_size: int = 10240  # 10KB
    sensitive_fields: list[str] = ["password", "token", "secret", "key"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        toml_file=_CONFIG_PATH,
        env_file=_ENV_PATH,
    )

    auth: AuthSettings = Field(default_factory=AuthSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    limits: LimitSettings = Field(default_factory=LimitSettings)
    audit: AuditSettings = Field(default_factory=AuditSettings)

    # Folder names whose contents are thumbnails or other system artifacts
    hidden_prefixes: list[str] = [".thumb"]
    stats_include_hidden: bool = True

    logs_dir: Path = Field(default=Path("logs"))
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Source order: init args > OS env > .env > config.toml > secrets
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


settings = Settings()
