import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import toml
from pydantic import BaseModel
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(os.getenv("BUG_REPORT_CONFIG", "config/settings.toml"))


class DBSettings(BaseModel):
    url: str = "sqlite+aiosqlite:///./bug_reports.db"
    table_name: str = "bugs"
    echo: bool = False
    create_tables: bool = True


class ProductSettings(BaseModel):
    name: str = "jEveAssets"
    # Permalinks are built as f"{bug_link_base}#bugid{id}".
    bug_link_base: str = "http://localhost:8000/bugs/"


class NotificationSettings(BaseModel):
    backend: Literal["smtp", "queue", "disabled"] = "smtp"
    to_address: str = "bugs@localhost"
    from_address: str = "bugs@localhost"
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_starttls: bool = False
    smtp_timeout: float = 10.0


class RedisSettings(BaseModel):
    host: str = "localhost"
    port: int = 6379


class Settings(BaseSettings):
    database: DBSettings = DBSettings()
    product: ProductSettings = ProductSettings()
    notification: NotificationSettings = NotificationSettings()
    redis: RedisSettings = RedisSettings()


@lru_cache()
def get_settings() -> Settings:
    """Loads settings from the config file, falling back to defaults."""
    if not CONFIG_PATH.exists():
        logger.debug("No config file at %s; using default settings", CONFIG_PATH)
        return Settings()
    with open(CONFIG_PATH, "r") as f:
        data = toml.load(f)
    logger.debug(
        "Loaded settings from %s with sections=%s", CONFIG_PATH, list(data.keys())
    )
    return Settings(**data)


settings = get_settings()
