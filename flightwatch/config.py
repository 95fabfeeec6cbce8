from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


AMADEUS_PRODUCTION_URL = "https://api.amadeus.com"
AMADEUS_TEST_URL = "https://test.api.amadeus.com"


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "sqlite:///./data/flightwatch.db"

    amadeus_api_key: str = ""
    amadeus_api_secret: str = ""
    amadeus_env: str = "test"
    amadeus_currency: str = "USD"
    amadeus_max_results: int = 50

    # +/- days tried when an exact-date search comes back empty (0 disables)
    flex_days: int = 1

    cors_origins: List[str] = ["*"]

    def model_post_init(self, __context):
        if self.env == "prod" and self.database_url.startswith("sqlite"):
            raise ValueError(
                "Production requires explicit DATABASE_URL (not SQLite)"
            )
        if self.flex_days < 0:
            raise ValueError("FLEX_DAYS must be zero or positive")

    @property
    def amadeus_base_url(self) -> str:
        if self.amadeus_env.lower() == "production":
            return AMADEUS_PRODUCTION_URL
        return AMADEUS_TEST_URL

    @property
    def has_amadeus_credentials(self) -> bool:
        return bool(self.amadeus_api_key.strip() and self.amadeus_api_secret.strip())

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
