from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "SmartMatch Risk API"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3005

    database_url: str = "sqlite+aiosqlite:///./smartmatch.db"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    log_level: str = "INFO"
    # Console output instead of JSON when false (forced off in debug)
    log_json: bool = True
    # 100 or 850; used when an assessment request names no scale
    default_score_scale: int = 100
    # Create the built-in instrument configurations on startup
    seed_defaults: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
