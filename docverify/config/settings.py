from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "onboarding"
    db_username: str = "onboarding"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    max_job_attempts: int = 3
    job_poll_interval_seconds: int = 5
    job_backoff_base_seconds: int = 30

    ocr_concurrency: int = 2
    ocr_limiter_max: int = 10
    ocr_limiter_duration_ms: int = 60000

    ocr_min_width: int = 600
    ocr_min_height: int = 600
    ocr_min_bytes: int = 20000
    ocr_min_text_length: int = 20
    # Ratio (0.2) or percentage (20), parsed and clamped by the comparator; junk means 0.2.
    ocr_divergence_threshold: str | None = None

    ocr_enabled: bool = True
    ocr_provider: str = "google_vision"
    google_vision_api_key: str = ""
    google_vision_base_url: str = "https://vision.googleapis.com/v1"
    google_vision_timeout_seconds: int = 30

    storage_driver: str = "s3"
    files_root: str = "/app/files"
    s3_bucket: str = ""
    s3_endpoint: str | None = None
    s3_region: str = "us-east-1"
    s3_access_key: str | None = None
    s3_secret_key: str | None = None
    s3_force_path_style: bool = False
