from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CHEF_", populate_by_name=True)

    env: Env = Env.local
    core_model: str = "gpt-3.5-turbo"
    max_tokens: int = 1500
    timeout: float = 60 * 2
    dish_count: int = 3

    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    nutrition_api_key: str | None = Field(
        default=None, validation_alias="API_NINJAS_KEY"
    )
    unsplash_access_key: str | None = Field(
        default=None, validation_alias="UNSPLASH_ACCESS_KEY"
    )

    nutrition_base_url: str = "https://api.api-ninjas.com/v1/"
    unsplash_base_url: str = "https://api.unsplash.com/"

    # Attempts in total, not retries.
    extraction_attempts: int = 3
    completion_retries: int = 3
    nutrition_retries: int = 3
    retry_base_delay: float = 0.5
