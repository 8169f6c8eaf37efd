from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_name: str = "tokenoracle"
    redis_url: str = "redis://localhost:6379/0"
    cache_backend: str = "redis"  # redis / memory
    cache_ttl_seconds: int = 300
    cache_max_entries: int = 10_000  # memory backend only
    alchemy_api_key: str = ""
    alchemy_rate_per_second: float = 5.0
    http_timeout_seconds: float = 30.0
    source_max_attempts: int = 3
    source_backoff_min_seconds: float = 1.0
    source_backoff_max_seconds: float = 10.0
    backfill_batch_size: int = 5
    backfill_batch_delay_seconds: float = 1.0
    backfill_max_concurrent_jobs: int = 2
    backfill_max_attempts: int = 3
    backfill_retry_backoff_seconds: int = 2
    job_retention_hours: int = 24
    debug: bool = False
    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    class Config:
        env_file = ".env"


settings = Settings()
