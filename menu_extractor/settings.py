from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class Settings(BaseSettings):
    # Either a full connection string or the discrete PG* set (which wins when complete)
    database_url: str | None = None
    pghost: str | None = None
    pguser: str | None = None
    pgpassword: str | None = None
    pgdatabase: str | None = None
    pgport: int | None = None
    db_ssl: bool | None = None  # None means "decide from host"
    db_pool_size: int = 5

    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    gemini_timeout_seconds: float = 60.0

    menu_list_limit: int = 20
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file="config.env", extra="ignore")
