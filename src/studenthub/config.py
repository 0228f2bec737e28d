from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "StudentHub"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8790
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/studenthub.db"
    data_dir: Path = Path("./data")
    upload_dir: Path = Path("./data/uploads")
    seed_skills: bool = True

    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_upload_extensions: str = "pdf,doc,docx,txt,png,jpg,jpeg"
    file_url_prefix: str = "/api/files"

    principal_id_header: str = "X-Principal-Id"
    principal_role_header: str = "X-Principal-Role"
    principal_email_header: str = "X-Principal-Email"
    principal_name_header: str = "X-Principal-Name"

    cors_origins: str = "http://127.0.0.1:8790"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("max_upload_bytes")
    @classmethod
    def validate_upload_limit(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("max_upload_bytes must be positive")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def upload_extension_set(self) -> set[str]:
        return {
            ext.strip().lower().lstrip(".")
            for ext in self.allowed_upload_extensions.split(",")
            if ext.strip()
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
