"""Usage Stats — Central Configuration via Pydantic Settings."""

import os
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

CONFIG_ENV_VAR = "USAGE_STATS_CONFIG"


class Settings(BaseSettings):
    """Application settings loaded from environment variables / config file."""

    # ── Database ──
    database_url: str = ""
    db_driver: str = "postgresql+psycopg2"
    db_host: str = ""
    db_port: Optional[int] = None
    db_user: str = ""
    db_password: str = ""
    db_name: str = ""

    # ── Collector ──
    # 1 = sites/objects, 2 = + locale/user, 3 = + os/java
    schema_revision: int = Field(default=3, ge=1, le=3)
    response_format: Literal["json", "html"] = "json"
    trust_forwarded_for: bool = False

    # ── App ──
    log_level: str = "INFO"

    @property
    def effective_database_url(self) -> str:
        """Return the configured URL, a URL built from the db_* parts, or SQLite."""
        if self.database_url:
            return self.database_url
        if self.db_host:
            port = f":{self.db_port}" if self.db_port else ""
            credentials = self.db_user
            if self.db_password:
                credentials = f"{credentials}:{self.db_password}"
            if credentials:
                credentials = f"{credentials}@"
            return f"{self.db_driver}://{credentials}{self.db_host}{port}/{self.db_name}"
        return "sqlite:///./usage_stats.db"

    model_config = {"env_file_encoding": "utf-8", "extra": "ignore"}


def load_settings() -> Settings:
    """Load settings from the environment and the file named by USAGE_STATS_CONFIG."""
    return Settings(_env_file=os.environ.get(CONFIG_ENV_VAR, ".env"))


settings = load_settings()
