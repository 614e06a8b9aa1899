from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {
        "env_file": (".env", "../.env"),
        "extra": "ignore",
        "env_prefix": "",
        "case_sensitive": False,
    }

    # Intake simulation
    upload_interval_ms: int = Field(default=100, ge=0)
    progress_increment: int = Field(default=10, gt=0)
    redirect_delay_ms: int = Field(default=600, ge=0)
    max_upload_bytes: int = 10 * 1024 * 1024  # advertised, enforced by the UI
    accepted_extensions: list[str] = [".jpg", ".jpeg", ".png"]

    # Session handoff
    handoff_key_prefix: str = "visualizer:"

    # Persistence
    persistence_base_url: str = "http://localhost:8000"
    persistence_timeout_seconds: float = 30.0
    default_visibility: str = "private"

    # AI APIs
    google_ai_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash-image"
    mock_generation_delay: float = 2.0  # seconds; set to 0.0 in tests

    # App
    environment: str = "development"
    log_level: str = "INFO"
    log_file: str = ""
    use_mock_clients: bool = True


settings = Settings()
