import logging
from typing import Optional

from pydantic_settings import BaseSettings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


class Settings(BaseSettings):
    target_minutes: int = 20
    long_workout_minutes: int = 30
    extract_long_workouts: bool = True  # False = analyze long rides in full
    rider_weight_kg: Optional[float] = None
    log_level: str = "INFO"

    class Config:
        env_prefix = "FTPLAB_"
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
