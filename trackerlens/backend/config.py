"""
backend/config.py

Application configuration via Pydantic Settings.
All values can be overridden with environment variables or a .env file.

Quick start — create a .env file in your project root:
    DB_PATH=data/trackerlens.db
    API_PORT=8000
    TREND_CAP_POLICY=earliest
    CORS_ORIGINS=http://localhost:5173,http://localhost:3000
"""

from __future__ import annotations

from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Storage
    DB_PATH: str = "data/trackerlens.db"

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Change feed
    CHANGE_FEED_DEFAULT_DAYS: int = 7
    CHANGE_FEED_LIMIT: int = 50

    # Trends: "earliest" keeps the first N days present, "latest" the last N
    TREND_MAX_BUCKETS: int = 30
    TREND_CAP_POLICY: str = "earliest"

    # Network graph
    GRAPH_MAX_SITES: int = 20
    GRAPH_MAX_TRACKERS: int = 20
    GRAPH_MAX_EDGES: int = 100

    # Tracker listings
    TOP_TRACKERS_LIMIT: int = 10
    TRACKER_LIST_LIMIT: int = 100
    TRACKER_EVENTS_LIMIT: int = 50

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_origins(cls, v):
        if isinstance(v, str):
            import json as _json
            v = v.strip()
            if v.startswith("["):
                try:
                    return _json.loads(v)
                except ValueError:
                    pass
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    @field_validator("TREND_CAP_POLICY")
    @classmethod
    def check_policy(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("earliest", "latest"):
            raise ValueError(f"TREND_CAP_POLICY must be 'earliest' or 'latest' — got {v!r}")
        return v


settings = Settings()
