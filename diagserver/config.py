from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    host: str = Field(default="0.0.0.0", alias="DIAG_HOST")
    http_port: int = Field(default=8080, alias="DIAG_HTTP_PORT")
    metrics_port: int = Field(default=9090, alias="DIAG_METRICS_PORT")
    version: str = Field(default="1.2", alias="DIAG_VERSION")
    log_level: str = Field(default="INFO", alias="DIAG_LOG_LEVEL")
    proc_root: str = Field(default="/proc", alias="DIAG_PROC_ROOT")
    process_backend: Literal["psutil", "procfs"] = Field(default="psutil", alias="DIAG_PROCESS_BACKEND")

    @property
    def proc_path(self) -> Path:
        return Path(self.proc_root)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
