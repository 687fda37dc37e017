from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="log_", extra="ignore")

    level: str = "info"
    colors: bool = True


class ProxmoxSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="proxmox_", extra="ignore")

    # "https://pve.example.com:8006", https is assumed when the scheme is left out
    endpoint: str
    # "USER@REALM!TOKENID=SECRET"
    api_token: str
    insecure: bool = False
    timeout: float | None = None


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="database_", extra="ignore")

    path: str | None = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    log: LogSettings = Field(default_factory=LogSettings)
    proxmox: ProxmoxSettings = Field(default_factory=ProxmoxSettings)  # type: ignore
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
