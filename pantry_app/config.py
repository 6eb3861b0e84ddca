from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="PANTRY_")

    env: Env = Env.local
    log_level: str = "INFO"
    db_url: str = "sqlite+aiosqlite:///pantry.db"
    llm_api_key: str = ""
    llm_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    generation_model: str = "gemini-2.0-flash"
    extraction_model: str = "gemini-1.5-pro"
    vision_model: str = "gemini-1.5-pro"
    max_tokens: int = 3000
    request_timeout: float = 60
    foursquare_api_key: str = ""
    places_radius: int = 5000
    places_limit: int = 5
