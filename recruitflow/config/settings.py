from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "recruitflow"
    db_username: str = "recruitflow"
    db_password: str = "secret"

    job_poll_interval_seconds: int = 5
    # Treat pending jobs as in flight when guarding re-processing requests.
    reprocess_block_pending: bool = False
    auto_process_uploads: bool = True
    detect_legacy_ai_reports: bool = True

    storage_backend: str = "local"
    storage_root: str = "/app/files"
    storage_public_base_url: str = "http://localhost:8000/files"
    blob_api_url: str = "https://blob.vercel-storage.com"
    blob_token: str = ""
    storage_timeout_seconds: int = 30

    inference_provider: str = "openai"
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_model_name: str = "gpt-4o"
    openai_timeout_seconds: int = 300
    inference_max_output_tokens: int = 4096
    prompt_max_output_tokens: int = 32000
    summary_max_output_tokens: int = 8192

    pdf_engine: str = "inference"

    api_host: str = "0.0.0.0"
    api_port: int = 8000
