from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

DEFAULT_BASE_URL = "https://api.deepgram.com/v1"
DEFAULT_MODEL = "nova-3"


class Settings(BaseSettings):
    deepgram_api_key: str = ""
    # Skips the /projects lookup when set
    deepgram_project_id: Optional[str] = None
    deepgram_base_url: str = DEFAULT_BASE_URL
    deepgram_timeout: float = 30.0
    deepgram_default_model: str = DEFAULT_MODEL

    port: int = 8000
    mcp_transport: str = "streamable-http"
    metrics_port: Optional[int] = None

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
