"""Load engine configuration from environment (e.g. .env)."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DONATION_",
        extra="ignore",
    )

    # Questionnaire: the option text meaning "no risk / condition present"
    canonical_negative_answer: str = "Không"

    # Question accepted once answered, whatever the content (None disables)
    screening_question_id: Optional[int] = 1

    # Whole blood: minimum wait before the next donation
    donation_interval_days: int = 84

    # Inventory summary: available/total below this ratio is flagged low
    low_stock_ratio: float = 0.2


def get_settings() -> Settings:
    return Settings()
