from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    environment: str = "development"
    log_level: str = "info"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Headless renderer
    viewport_width: int = 1920
    viewport_height: int = 1080
    device_scale_factor: float = 2.0
    navigation_timeout_ms: int = 30000

    # Snapshot capture (milliseconds / CSS pixels)
    capture_settle_ms: int = 800
    image_settle_ms: int = 500
    capture_default_width: int = 1200
    landscape_capture_width: int = 1400
    portrait_capture_width: int = 1000

    # Decorative assets
    image_fetch_timeout_seconds: float = 15.0

    # Documents
    default_package_name: str = "report-package"
    cover_theme_color: str = "#1e293b"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
