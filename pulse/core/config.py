import re
from datetime import timedelta
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pulse.core.durations import parse_duration


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    app_name: str = "pulse"
    environment: str = "production"

    host: str = "0.0.0.0"
    port: int = 8080
    idle_timeout: timedelta = timedelta(seconds=120)
    shutdown_timeout: timedelta = timedelta(seconds=30)

    rate_limit_rps: int = 100

    cors_origins: str = "https://*,http://*"
    cors_allow_methods: str = "GET,POST,PUT,DELETE,OPTIONS,PATCH"
    cors_allow_headers: str = "Accept,Authorization,Content-Type,X-CSRF-Token"
    cors_expose_headers: str = "Link"
    cors_max_age: int = 300

    gzip_minimum_size: int = 500
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="", extra="ignore")

    @field_validator("idle_timeout", "shutdown_timeout", mode="before")
    @classmethod
    def parse_duration_text(cls, value: object) -> object:
        if isinstance(value, str):
            try:
                return parse_duration(value)
            except ValueError:
                # let pydantic try seconds / ISO 8601 and report the error
                return value
        return value

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def rate_limit(self) -> str:
        return f"{self.rate_limit_rps}/second"

    @property
    def rate_limit_enabled(self) -> bool:
        return self.environment.lower() != "test" and self.rate_limit_rps > 0

    @property
    def allowed_origins(self) -> list[str]:
        return [o for o in _split_csv(self.cors_origins) if "*" not in o]

    @property
    def allowed_origin_regex(self) -> str | None:
        patterns = [
            re.escape(o).replace(r"\*", ".*")
            for o in _split_csv(self.cors_origins)
            if "*" in o
        ]
        if not patterns:
            return None
        return "|".join(patterns)

    @property
    def allowed_methods(self) -> list[str]:
        return [m.upper() for m in _split_csv(self.cors_allow_methods)]

    @property
    def allowed_headers(self) -> list[str]:
        return _split_csv(self.cors_allow_headers)

    @property
    def exposed_headers(self) -> list[str]:
        return _split_csv(self.cors_expose_headers)


@lru_cache
def get_settings() -> Settings:
    return Settings()
