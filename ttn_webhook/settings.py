from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    mongo_uri: str = "mongodb://mongo:27017"
    mongo_db: str = "ttndb"
    global_collection: str = "all-sensor-data"
    device_collection_prefix: str = "sensor-data-"
    health_collection: str = "health-check"
    default_query_limit: int = 10
    # None means no ceiling on ?limit=
    max_query_limit: Optional[int] = None
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
