from openai import AsyncOpenAI
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4.1-mini"

    DEFAULT_LAYER: str = "SAT"
    USER_AGENT: str = "parcel-ndvi/0.1"

    # Sampling budget
    MAX_SELECTION_TILES: int = 12
    PIXEL_SAMPLE_STEP: int = 6
    MIN_ZOOM: int = 6
    MAX_ZOOM: int = 16
    TILE_SIZE: int = 256

    # Tile fetching
    TILE_FETCH_TIMEOUT: float = 30.0
    MAX_TILE_WORKERS: int = 4
    TILE_CACHE_ENABLED: bool = True
    CACHE_DIR: str = "tmp/cache"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def async_openai_client(self) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=self.OPENAI_API_KEY)


settings = Settings()
