from pathlib import Path
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{BASE_DIR / 'conjuga.db'}"
    log_dir: Path = BASE_DIR / "data" / "logs"
    forms_path: Path = BASE_DIR / "data" / "forms.json"

    default_region: str = "la_general"
    default_level: str = "B1"

    # SRS bounds
    ease_min: float = 1.3
    ease_max: float = 3.2
    ease_start: float = 2.5
    leech_threshold: int = 8

    # Family clustering (transfer learning between irregular families)
    family_min_size: int = 3
    family_min_mastery_for_boost: float = 0.3
    family_transfer_coefficient: float = 0.3
    family_interval_boost: float = 1.3
    family_ease_boost: float = 0.2
    family_max_boost: float = 2.0
    family_mastery_threshold: float = 0.7

    # Review sessions and variety
    light_review_limit: int = 10
    variety_history_window: int = 6
    max_session_caches: int = 512

    model_config = {"env_file": [BASE_DIR / ".env"], "extra": "ignore"}


settings = Settings()
