"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class ServerConfig(BaseSettings):
    """HTTP / WebSocket server configuration."""

    model_config = {"env_prefix": "SKUFLOW_SERVER_"}

    host: str = "0.0.0.0"
    port: int = 3000
    websocket_path: str = "/ws"


class BatchConfig(BaseSettings):
    """Default batching behaviour for tasks that talk to the downstream system."""

    model_config = {"env_prefix": "SKUFLOW_BATCH_"}

    batch_size: int = 500
    inter_batch_delay: float = 1.0  # seconds between consecutive batches
    retry_delay: float = 65.0  # seconds to wait before retrying a rate-limited batch
    rate_limit_markers: list[str] = ["频繁操作", "too many requests", "rate limit"]
    wait_seconds: float = 3.0  # default pause used by the built-in wait task


class EngineConfig(BaseSettings):
    """Workflow engine configuration."""

    model_config = {"env_prefix": "SKUFLOW_ENGINE_"}

    task_timeout: float | None = None  # None disables the per-task timeout


class SessionConfig(BaseSettings):
    """Session resolution configuration."""

    model_config = {"env_prefix": "SKUFLOW_SESSION_"}

    backend: Literal["memory", "redis"] = "memory"
    ttl: int = 86400  # 24 hours
    key_prefix: str = "session:"
    sliding_ttl: bool = True  # refresh the ttl every time a workflow resolves the session


class RedisConfig(BaseSettings):
    """Redis connection used by the redis session backend."""

    model_config = {"env_prefix": "SKUFLOW_REDIS_"}

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    decode_responses: bool = True


class AppSettings(BaseSettings):
    """Root application settings aggregating all sub-configs."""

    model_config = {"env_prefix": "SKUFLOW_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    server: ServerConfig = ServerConfig()
    batch: BatchConfig = BatchConfig()
    engine: EngineConfig = EngineConfig()
    session: SessionConfig = SessionConfig()
    redis: RedisConfig = RedisConfig()
