from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GRAPHQL_HARNESS_", env_file=".env")

    host: str = Field("127.0.0.1", title="Demo server bind address")
    port: int = Field(3000, title="Demo server port")
    log_level: str = Field("INFO", title="Root log level")
    max_body_size: int = Field(100 * 1024, title="Request body limit in bytes")
    remote_url: Optional[str] = Field(None, title="External GraphQL endpoint")
    credentials_file: Optional[str] = Field(
        None, title="File holding the bearer token for the external endpoint"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
