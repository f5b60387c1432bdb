"""Configuration management."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

# Load .env file from current working directory
load_dotenv()


@dataclass
class Config:
    """Application configuration."""

    api_base_url: str = "http://localhost:5000"
    storage_path: Path = Path("~/.codekit")
    request_timeout_seconds: int = 30
    stale_time_seconds: float = 300.0
    mobile_breakpoint: int = 768
    page_size: int = 20
    api_token: Optional[str] = None
    session_cookie: Optional[str] = None
    utm_source: str = "codekit"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file.

        A missing file yields the defaults. Environment variables take
        precedence over YAML values:
        - CODEKIT_API_URL: Base URL of the REST backend
        - CODEKIT_STORAGE_PATH: Directory for local client storage
        - CODEKIT_API_TOKEN: Bearer token sent with every request
        """
        path = Path(path)
        data: dict = {}
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}

        api_base_url = os.environ.get("CODEKIT_API_URL") or data.get(
            "api_base_url", cls.api_base_url
        )
        storage_path = os.environ.get("CODEKIT_STORAGE_PATH") or data.get(
            "storage_path", str(cls.storage_path)
        )
        api_token = os.environ.get("CODEKIT_API_TOKEN") or data.get("api_token")

        page_size = int(data.get("page_size", 20))
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        return cls(
            api_base_url=api_base_url,
            storage_path=Path(storage_path).expanduser(),
            request_timeout_seconds=data.get("request_timeout_seconds", 30),
            stale_time_seconds=data.get("stale_time_seconds", 300.0),
            mobile_breakpoint=data.get("mobile_breakpoint", 768),
            page_size=page_size,
            api_token=api_token,
            session_cookie=data.get("session_cookie"),
            utm_source=data.get("utm_source", "codekit"),
        )
