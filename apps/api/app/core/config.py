from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: str = "dev"
    app_name: str = "Gestión Cristiana"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    database_url: str = "postgresql+psycopg://app:app@db:5432/app"
    redis_url: str = "redis://redis:6379/0"

    jwt_secret: str = "change-me"
    jwt_expires_minutes: int = 60 * 24

    # Password reset codes
    reset_code_ttl_minutes: int = 15

    # File uploads (minutes attachments, branding logos)
    upload_dir: str = "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024  # logos
    max_minute_file_bytes: int = 10 * 1024 * 1024

    # Church statistics outbox
    max_stats_task_attempts: int = 5

    # Hourly cron (WhatsApp reminders, stats sweep)
    enable_scheduler: bool = False
    scheduler_timezone: str = "America/Panama"

    # WhatsApp Cloud API
    whatsapp_token: str = ""
    whatsapp_phone_number_id: str = ""
    whatsapp_api_base: str = "https://graph.facebook.com/v18.0"
    whatsapp_template_name: str = "culto_recordatorio"
    whatsapp_template_lang: str = "es"
    whatsapp_timeout_seconds: float = 10.0

    # Middleware configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    log_format: str = "json"  # json or text
    enable_request_logging: bool = True
    cors_origins: str = ""  # Comma-separated list of allowed origins
    enable_gzip: bool = True

    # Metrics configuration (CloudWatch EMF over logs)
    enable_metrics: bool = True
    metrics_namespace: str = ""  # defaults to app_name

    model_config = {
        "env_file": "../.env",
        "env_file_encoding": "utf-8",
    }

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.whatsapp_token and self.whatsapp_phone_number_id)


settings = Settings()
