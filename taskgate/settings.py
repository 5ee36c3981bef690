from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local (SQLite file, bundled security config) so the service runs without setup.
    - Every field can be overridden with a `TASKGATE_` environment variable.
    - `jwt_secret` is only read when the security config selects the `jwt` auth provider.
    """

    model_config = SettingsConfigDict(env_prefix="TASKGATE_", extra="ignore")

    db_url: str | None = None
    security_config_path: str | None = None
    log_level: str = "INFO"

    jwt_secret: str | None = None
    jwt_leeway_seconds: int = 30

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "taskgate.db"
        return f"sqlite:///{db_path}"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path:
            return Path(self.security_config_path)

        return Path(__file__).resolve().parent / "config" / "security_config.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
