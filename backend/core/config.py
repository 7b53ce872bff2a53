import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    store_api_url: str = os.getenv("STORE_API_URL", "http://localhost:3000/api")
    store_timeout_seconds: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "30"))

    database_url: str = os.getenv(
        "DATABASE_URL",
        "sqlite+aiosqlite:///./dashboard.db"
    )
    database_echo: bool = os.getenv("DATABASE_ECHO", "False").lower() == "true"

    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    cors_origins: list[str] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
    ]


settings = Settings()
