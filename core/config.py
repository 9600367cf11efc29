"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="PLOTPLANNER_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Persistence
    session_file: str = "plot_planner_session.json"
    autosave: bool = True

    # Service
    service_name: str = "plot-planner"
    log_level: str = "INFO"
    json_logs: bool = True


settings = Settings()
