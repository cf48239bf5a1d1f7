import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "climate_telemetry"
    reading_retention: int = 3
    default_device_name: str = "KVB"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from the environment (and a local .env file if present)."""
    load_dotenv()
    defaults = Settings()
    return Settings(
        host=os.getenv("HOST", defaults.host),
        port=int(os.getenv("PORT", defaults.port)),
        database_url=os.getenv("DATABASE_URL") or os.getenv("MONGO_URI") or defaults.database_url,
        database_name=os.getenv("DATABASE_NAME", defaults.database_name),
        reading_retention=int(os.getenv("READING_RETENTION", defaults.reading_retention)),
        default_device_name=os.getenv("DEFAULT_DEVICE_NAME", defaults.default_device_name),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
    )
