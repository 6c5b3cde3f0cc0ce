from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CeleryConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CELERY_")

    broker_url: str = "redis://localhost:6379/0"
    queue: str = "dispatch"


class DispatchConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DISPATCH_")

    log_level: str = "INFO"
    provider_timeout_seconds: float = Field(default=30.0, gt=0)
    # When disabled, rendered content and raw payloads are not persisted.
    store_content: bool = True
    publish_execution_details: bool = False
