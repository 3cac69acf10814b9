from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  database_url: str = "sqlite+aiosqlite:///./db/kanban.db"
  database_echo: bool = False
  app_version: str = "0.1.0"
  build_sha: str = "dev"
  api_docs_enabled: bool = True
  log_level: str = "INFO"
  password_hash_rounds: int = 12

  jwt_secret: str = "dev-secret-change-me"
  jwt_algorithm: str = "HS256"
  access_token_expire_minutes: int = 15
  refresh_token_expire_days: int = 7

  rate_limit_login_ip_per_minute: int = 60
  rate_limit_login_username_per_minute: int = 20

  activity_retention_enabled: bool = True
  activity_retention_days: int = 90
  activity_retention_interval_seconds: int = 24 * 60 * 60

  cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000"

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
