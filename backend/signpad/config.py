from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    db_path: Path = Path("signpad.sqlite")
    upload_path: Path = Path("uploads") / "signatures"
    log_dir: Path = Path("logs")
    # Decoded signature bytes; anything larger is rejected before a file is written.
    max_file_size: int = 5 * 1024 * 1024  # 5 MiB
    allowed_formats: list[str] = ["png", "webp", "svg"]
    default_format: str = "png"
    save_multiple_formats: bool = False
    require_signature: bool = True
    log_submissions: bool = True
    debug_mode: bool = False
    # argon2 hash of the admin bearer token; admin routes are disabled while unset.
    admin_token_hash: str | None = None
    cors_origins: list[str] = [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
    ]
    api_prefix: str = ""
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = {"env_prefix": "SIGNPAD_"}


settings = Settings()


def get_settings() -> Settings:
    return settings
