import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from platformdirs import user_config_dir

from .models import DEFAULT_MODEL

APP_NAME = "ask"
DEFAULT_API_BASE = "https://api.openai.com/v1"

AVAILABLE_MODELS = [
    "gpt-4.1-nano",
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4-turbo",
    "gpt-4",
    DEFAULT_MODEL,
    "gpt-3.5-turbo-16k",
]


def config_dir() -> Path:
    return Path(user_config_dir(APP_NAME))


@dataclass
class Settings:
    config_file: Path
    api_base: str = DEFAULT_API_BASE
    log_level: str = "WARNING"


def load_settings() -> Settings:
    """Read settings from the environment, an optional .env in the config
    directory, and a .env in the working directory (first one wins per key)"""
    load_dotenv(config_dir() / ".env")
    load_dotenv()

    config_file = os.getenv("ASK_CONFIG_FILE")
    return Settings(
        config_file=Path(config_file).expanduser() if config_file else config_dir() / "config.json",
        api_base=os.getenv("API_BASE_URL", DEFAULT_API_BASE),
        log_level=os.getenv("ASK_LOG_LEVEL", "WARNING").upper(),
    )
