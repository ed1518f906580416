"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./finflow.db"

    # Sessions
    session_secret: str = "change-me"
    session_cookie: str = "finflow_session"
    session_max_age_seconds: int = 7 * 24 * 3600
    dev_login_enabled: bool = False

    # Service
    service_name: str = "finflow"
    log_level: str = "INFO"

    # Placeholder collaborators
    payment_link_base_url: str = "https://finflow.app"
    upi_vpa: str = "finflow@upi"
    document_base_url: str = "https://documents.finflow.app"

    # Finance defaults
    default_interest_rate: Decimal = Decimal("12")  # % per annum
    default_gst_rate: Decimal = Decimal("18")  # % on invoice subtotal


settings = Settings()
