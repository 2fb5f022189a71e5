from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Leon Analytics"
    API_PREFIX: str = "/api"

    DATABASE_URL: str = "sqlite+aiosqlite:///./analytics.db"
    CREATE_TABLES: bool = True

    # Dashboard access
    ADMIN_PASSWORD: str = ""

    # Ingestion
    BLOCKED_SITE_IDS: list[str] = ["broadcast"]
    CLIENT_IP_HEADER: str = "CF-Connecting-IP"
    COUNTRY_HEADER: str = "CF-IPCountry"

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
